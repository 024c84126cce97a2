"""Unit tests for category analytics"""

import pytest
from datetime import date, datetime
from operator import attrgetter
from transfer_gateway.domain.analytics import (
    TOTAL_INCOMING_LABEL,
    TOTAL_OUTGOING_LABEL,
    category_breakdown,
    percent_of,
    projected_spend,
    realized_history,
)
from transfer_gateway.domain.models import Category, Direction
from transfer_gateway.infrastructure.database.models import RecurringDefinition, TransferRecord

WINDOW_START = datetime(2024, 5, 1)
WINDOW_END = datetime(2024, 6, 1)


def record(amount_cents, category, direction=Direction.OUTGOING, when=datetime(2024, 5, 15), owner_id=1):
    return TransferRecord(
        owner_id=owner_id,
        amount_cents=amount_cents,
        transfer_date=when,
        category=category,
        direction=direction,
        counterparty_name="Someone",
        counterparty_account_number="X",
        title="t",
    )


def definition(amount_cents, category, due, owner_id=1):
    return RecurringDefinition(
        owner_id=owner_id,
        amount_cents=amount_cents,
        receiver_name="Payee",
        destination_account_number="X",
        category=category,
        title="t",
        next_due_date=due,
    )


def test_percent_of_zero_total_is_zero():
    assert percent_of(0, 0) == 0.0
    assert percent_of(500, 0) == 0.0


def test_breakdown_rows_in_category_order():
    records = [record(3_000, Category.GROCERIES), record(1_000, Category.BILLS)]
    report = category_breakdown(1, WINDOW_START, WINDOW_END, records, attrgetter("transfer_date"))

    assert [row.label for row in report] == [TOTAL_OUTGOING_LABEL] + [c.label for c in Category]
    assert report[0].amount_cents == 4_000
    assert report[0].percent == 100.0
    assert report[1].amount_cents == 1_000 and report[1].percent == 25.0
    assert report[2].amount_cents == 3_000 and report[2].percent == 75.0


def test_breakdown_categories_sum_to_total():
    records = [
        record(1_001, Category.BILLS),
        record(2_002, Category.GROCERIES),
        record(333, Category.ENTERTAINMENT),
        record(7, Category.OTHER),
    ]
    report = category_breakdown(1, WINDOW_START, WINDOW_END, records, attrgetter("transfer_date"))
    total, categories = report[0], report[1:]

    assert sum(row.amount_cents for row in categories) == total.amount_cents
    assert sum(row.percent for row in categories) == pytest.approx(100.0, abs=0.05)


def test_breakdown_filters_owner_and_window():
    records = [
        record(1_000, Category.BILLS),
        record(9_000, Category.BILLS, owner_id=2),
        record(9_000, Category.BILLS, when=datetime(2024, 4, 30)),
        record(9_000, Category.BILLS, when=datetime(2024, 6, 2)),
    ]
    report = category_breakdown(1, WINDOW_START, WINDOW_END, records, attrgetter("transfer_date"))
    assert report[0].amount_cents == 1_000


def test_breakdown_zero_total_reports_no_data():
    report = category_breakdown(1, WINDOW_START, WINDOW_END, [], attrgetter("transfer_date"))
    assert all(row.amount_cents == 0 for row in report)
    assert all(row.percent == 0.0 for row in report)


def test_realized_history_splits_directions():
    records = [
        record(6_000, Category.BILLS),
        record(2_000, Category.GROCERIES),
        record(2_000, Category.OTHER, direction=Direction.INCOMING),
    ]
    report = realized_history(1, WINDOW_START, WINDOW_END, records)

    outgoing, incoming, categories = report[0], report[1], report[2:]
    assert (outgoing.label, outgoing.amount_cents, outgoing.percent) == (TOTAL_OUTGOING_LABEL, 8_000, 80.0)
    assert (incoming.label, incoming.amount_cents, incoming.percent) == (TOTAL_INCOMING_LABEL, 2_000, 20.0)

    # Categories cover outgoing money only
    by_label = {row.label: row for row in categories}
    assert by_label[Category.BILLS.label].percent == 75.0
    assert by_label[Category.OTHER.label].amount_cents == 0
    assert sum(row.amount_cents for row in categories) == outgoing.amount_cents


def test_realized_history_only_incoming():
    report = realized_history(1, WINDOW_START, WINDOW_END, [record(500, Category.OTHER, direction=Direction.INCOMING)])
    assert report[0].percent == 0.0
    assert report[1].percent == 100.0
    assert all(row.percent == 0.0 for row in report[2:])


def test_projected_spend_includes_overdue_and_stops_at_window_end():
    definitions = [
        definition(1_000, Category.BILLS, date(2024, 5, 20)),
        definition(4_000, Category.ENTERTAINMENT, date(2024, 6, 10)),
        definition(9_999, Category.BILLS, date(2024, 7, 2)),
    ]
    report = projected_spend(1, date(2024, 6, 15), definitions)

    assert report[0].amount_cents == 5_000
    assert report[0].percent == 100.0
    by_label = {row.label: row for row in report[1:]}
    assert by_label[Category.BILLS.label].percent == 20.0
    assert by_label[Category.ENTERTAINMENT.label].percent == 80.0
