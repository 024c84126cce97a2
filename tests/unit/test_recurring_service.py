"""Unit tests for recurring definition management and spend projection"""

import dataclasses
import pytest
from datetime import date, datetime
from unittest.mock import patch
from transfer_gateway.domain.exceptions import DuplicateDefinitionError, InvalidTransferError, NotFoundError
from transfer_gateway.domain.models import Category, RecurringTerms
from transfer_gateway.infrastructure.database.models import RecurringDefinition
from transfer_gateway.infrastructure.database.repositories import AccountRepository, RecurringDefinitionRepository
from transfer_gateway.services.recurring import RecurringTransferService


@pytest.fixture
def gym_terms() -> RecurringTerms:
    return RecurringTerms(
        amount_cents=9_900,
        receiver_name="City Gym",
        destination_account_number="PL55000000000000000000000009",
        next_due_date=date(2024, 7, 5),
        category=Category.ENTERTAINMENT,
        title="membership",
    )


def test_create_definition(db, alice, gym_terms):
    definition = RecurringTransferService(db).create_definition(alice.id, gym_terms)
    db.commit()

    assert definition.id is not None
    assert definition.owner_id == alice.id
    assert definition.next_due_date == date(2024, 7, 5)


def test_create_duplicate_is_rejected_without_changes(db, alice, gym_terms):
    service = RecurringTransferService(db)
    service.create_definition(alice.id, gym_terms)
    db.commit()

    with pytest.raises(DuplicateDefinitionError):
        service.create_definition(alice.id, gym_terms)
    db.rollback()
    assert db.query(RecurringDefinition).count() == 1


def test_same_terms_for_another_owner_are_allowed(db, alice, bob, gym_terms):
    service = RecurringTransferService(db)
    service.create_definition(alice.id, gym_terms)
    service.create_definition(bob.id, gym_terms)
    db.commit()
    assert db.query(RecurringDefinition).count() == 2


def test_create_for_unknown_owner(db, gym_terms):
    with pytest.raises(NotFoundError):
        RecurringTransferService(db).create_definition(31337, gym_terms)


def test_create_rejects_non_positive_amount(db, alice, gym_terms):
    with pytest.raises(InvalidTransferError):
        RecurringTransferService(db).create_definition(alice.id, dataclasses.replace(gym_terms, amount_cents=0))


def test_update_unchanged_definition_does_not_collide_with_itself(db, alice, gym_terms):
    service = RecurringTransferService(db)
    definition = service.create_definition(alice.id, gym_terms)
    db.commit()

    updated = service.update_definition(definition.id, gym_terms)
    db.commit()
    assert updated.id == definition.id


def test_update_changes_terms_in_place(db, alice, gym_terms):
    service = RecurringTransferService(db)
    definition = service.create_definition(alice.id, gym_terms)
    db.commit()

    service.update_definition(definition.id, dataclasses.replace(gym_terms, amount_cents=12_900))
    db.commit()

    assert service.get_definition(definition.id).amount_cents == 12_900
    assert db.query(RecurringDefinition).count() == 1


def test_update_into_another_definition_is_rejected(db, alice, gym_terms):
    service = RecurringTransferService(db)
    service.create_definition(alice.id, gym_terms)
    other = service.create_definition(alice.id, dataclasses.replace(gym_terms, title="sauna"))
    db.commit()

    with pytest.raises(DuplicateDefinitionError):
        service.update_definition(other.id, gym_terms)
    db.rollback()
    assert service.get_definition(other.id).title == "sauna"


def test_update_unknown_definition(db, gym_terms):
    with pytest.raises(NotFoundError):
        RecurringTransferService(db).update_definition(5, gym_terms)


@pytest.fixture
def guard_calls():
    """Owner locks and sibling reads, in the order the service issues them"""
    calls = []
    lock = AccountRepository.lock
    find_all = RecurringDefinitionRepository.find_all

    def locking(self, account_id):
        calls.append(("lock", account_id))
        return lock(self, account_id)

    def reading(self, owner_id=None):
        calls.append(("find_all", owner_id))
        return find_all(self, owner_id=owner_id)

    with patch.object(AccountRepository, "lock", autospec=True, side_effect=locking), patch.object(
        RecurringDefinitionRepository, "find_all", autospec=True, side_effect=reading
    ):
        yield calls


def test_create_locks_owner_before_checking_for_duplicates(db, alice, gym_terms, guard_calls):
    RecurringTransferService(db).create_definition(alice.id, gym_terms)
    db.commit()

    assert guard_calls == [("lock", alice.id), ("find_all", alice.id)]


def test_update_locks_owner_before_checking_for_duplicates(db, alice, gym_terms, guard_calls):
    service = RecurringTransferService(db)
    definition_id = service.create_definition(alice.id, gym_terms).id
    db.commit()
    guard_calls.clear()

    service.update_definition(definition_id, dataclasses.replace(gym_terms, amount_cents=12_900))
    db.commit()

    assert guard_calls == [("lock", alice.id), ("find_all", alice.id)]


def test_delete_definition(db, alice, gym_terms):
    service = RecurringTransferService(db)
    definition = service.create_definition(alice.id, gym_terms)
    db.commit()
    definition_id = definition.id

    service.delete_definition(definition_id)
    db.commit()

    with pytest.raises(NotFoundError):
        service.get_definition(definition_id)
    with pytest.raises(NotFoundError):
        service.delete_definition(definition_id)


def test_list_and_coming_definitions(db, alice, bob, gym_terms):
    service = RecurringTransferService(db)
    for day in (20, 3, 11, 27):
        service.create_definition(alice.id, dataclasses.replace(gym_terms, next_due_date=date(2024, 8, day)))
    service.create_definition(bob.id, gym_terms)
    db.commit()

    assert len(service.list_definitions()) == 5
    assert len(service.list_definitions(owner_id=alice.id)) == 4
    coming = service.coming_definitions(alice.id)
    assert [d.next_due_date.day for d in coming] == [3, 11, 20]


def test_estimate_projects_next_month(db, alice, gym_terms):
    service = RecurringTransferService(db)
    service.create_definition(alice.id, gym_terms)
    service.create_definition(
        alice.id,
        dataclasses.replace(gym_terms, amount_cents=100, category=Category.BILLS, next_due_date=date(2024, 6, 30)),
    )
    # Beyond the one month window
    service.create_definition(alice.id, dataclasses.replace(gym_terms, next_due_date=date(2024, 8, 1)))
    db.commit()

    report = service.estimate(alice.id, now=datetime(2024, 6, 20))

    assert report[0].amount_cents == 10_000
    assert report[0].percent == 100.0
    by_label = {row.label: row for row in report[1:]}
    assert by_label[Category.ENTERTAINMENT.label].percent == 99.0
    assert by_label[Category.BILLS.label].percent == 1.0


def test_estimate_without_definitions_reports_no_data(db, alice):
    report = RecurringTransferService(db).estimate(alice.id, now=datetime(2024, 6, 20))
    assert all(row.amount_cents == 0 and row.percent == 0.0 for row in report)
