"""Category analytics over realized transfers and upcoming recurring definitions"""

from operator import attrgetter
from typing import Callable, Iterable, List, Optional
from transfer_gateway.domain.models import Category, CategoryShare, Direction

TOTAL_OUTGOING_LABEL = "Total outgoing"
TOTAL_INCOMING_LABEL = "Total incoming"


def percent_of(part_cents: int, total_cents: int) -> float:
    """Share of total in percent; a zero total yields 0.0 for every part (no data)"""
    if total_cents == 0:
        return 0.0
    return round(part_cents / total_cents * 100, 2)


def total_cents(items: Iterable) -> int:
    return sum(item.amount_cents for item in items)


def in_window(
    owner_id: int,
    window_start,
    window_end,
    candidates: Iterable,
    when: Callable,
) -> List:
    """Candidates owned by owner_id whose timestamp lies in [window_start, window_end]"""
    selected = []
    for item in candidates:
        if item.owner_id != owner_id:
            continue
        moment = when(item)
        if window_start is not None and moment < window_start:
            continue
        if window_end is not None and moment > window_end:
            continue
        selected.append(item)
    return selected


def category_breakdown(
    owner_id: int,
    window_start,
    window_end,
    candidates: Iterable,
    when: Callable,
    total_label: str = TOTAL_OUTGOING_LABEL,
) -> List[CategoryShare]:
    """
    Bucket candidates by category and compute percentage shares.

    Emits the total row first (100%), then one row per Category in enum
    order. Amounts are integer cents so category rows always sum to the
    total exactly. When the total is zero every percent is 0.0.
    """
    selected = in_window(owner_id, window_start, window_end, candidates, when)
    total = total_cents(selected)

    report = [CategoryShare(label=total_label, amount_cents=total, percent=100.0 if total else 0.0)]
    report.extend(_category_rows(selected, total))
    return report


def realized_history(
    owner_id: int,
    window_start,
    window_end,
    records: Iterable,
) -> List[CategoryShare]:
    """
    Summarize realized transfer records of an owner within a window.

    Rows: total outgoing and total incoming, each as a share of all money
    moved, then one row per category over outgoing records only.
    """
    selected = in_window(owner_id, window_start, window_end, records, attrgetter("transfer_date"))
    outgoing = [r for r in selected if r.direction == Direction.OUTGOING]
    incoming = [r for r in selected if r.direction == Direction.INCOMING]

    sum_outgoing = total_cents(outgoing)
    sum_incoming = total_cents(incoming)
    moved = sum_outgoing + sum_incoming

    report = [
        CategoryShare(TOTAL_OUTGOING_LABEL, sum_outgoing, percent_of(sum_outgoing, moved)),
        CategoryShare(TOTAL_INCOMING_LABEL, sum_incoming, percent_of(sum_incoming, moved)),
    ]
    report.extend(_category_rows(outgoing, sum_outgoing))
    return report


def projected_spend(
    owner_id: int,
    window_end,
    definitions: Iterable,
    window_start: Optional[object] = None,
) -> List[CategoryShare]:
    """Projection of upcoming spend from recurring definitions due up to window_end"""
    return category_breakdown(
        owner_id,
        window_start,
        window_end,
        definitions,
        attrgetter("next_due_date"),
    )


def _category_rows(items: List, total: int) -> List[CategoryShare]:
    rows = []
    for category in Category:
        amount = total_cents(i for i in items if i.category == category)
        rows.append(CategoryShare(category.label, amount, percent_of(amount, total)))
    return rows
