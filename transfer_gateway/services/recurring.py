"""Recurring transfer definitions - guarded create/update and spend projection"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session

from transfer_gateway.config import settings
from transfer_gateway.domain.analytics import projected_spend
from transfer_gateway.domain.duplicates import assert_not_duplicate
from transfer_gateway.domain.exceptions import InvalidTransferError, NotFoundError
from transfer_gateway.domain.models import CategoryShare, RecurringTerms
from transfer_gateway.infrastructure.database.models import RecurringDefinition
from transfer_gateway.infrastructure.database.repositories import (
    AccountRepository,
    RecurringDefinitionRepository,
)
from transfer_gateway.utils.date_utils import add_months


def _not_found(definition_id: int) -> NotFoundError:
    return NotFoundError(f"Recurring transfer with given id {definition_id} is not present in database")


class RecurringTransferService:
    """CRUD over standing transfer orders; the caller owns the transaction"""

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.definitions = RecurringDefinitionRepository(db)

    def create_definition(self, owner_id: int, terms: RecurringTerms) -> RecurringDefinition:
        """
        Declare a new standing order for an account.

        Raises:
            NotFoundError: Owner account does not exist
            InvalidTransferError: Non-positive amount
            DuplicateDefinitionError: The owner already has this exact definition
        """
        # Owner row lock serialises concurrent guard checks for the same owner
        if self.accounts.lock(owner_id) is None:
            raise NotFoundError(f"Account with id {owner_id} does not exist")
        _validate(terms)

        assert_not_duplicate(terms, self.definitions.find_all(owner_id=owner_id))

        return self.definitions.add(
            RecurringDefinition(
                owner_id=owner_id,
                amount_cents=terms.amount_cents,
                receiver_name=terms.receiver_name,
                destination_account_number=terms.destination_account_number,
                category=terms.category,
                title=terms.title,
                next_due_date=terms.next_due_date,
            )
        )

    def update_definition(self, definition_id: int, terms: RecurringTerms) -> RecurringDefinition:
        """Replace the terms of an existing definition, keeping its id and owner"""
        definition = self.definitions.get(definition_id)
        if definition is None:
            raise _not_found(definition_id)
        _validate(terms)

        # An orphaned definition has no siblings to collide with
        siblings = []
        if definition.owner_id is not None and self.accounts.lock(definition.owner_id) is not None:
            siblings = self.definitions.find_all(owner_id=definition.owner_id)
        assert_not_duplicate(terms, siblings, exclude_id=definition.id)

        definition.amount_cents = terms.amount_cents
        definition.receiver_name = terms.receiver_name
        definition.destination_account_number = terms.destination_account_number
        definition.category = terms.category
        definition.title = terms.title
        definition.next_due_date = terms.next_due_date
        return self.definitions.save(definition)

    def delete_definition(self, definition_id: int) -> None:
        if not self.definitions.exists(definition_id):
            raise _not_found(definition_id)
        self.definitions.delete(definition_id)

    def get_definition(self, definition_id: int) -> RecurringDefinition:
        definition = self.definitions.get(definition_id)
        if definition is None:
            raise _not_found(definition_id)
        return definition

    def list_definitions(self, owner_id: Optional[int] = None) -> List[RecurringDefinition]:
        return self.definitions.find_all(owner_id=owner_id)

    def coming_definitions(self, owner_id: int, limit: int = 3) -> List[RecurringDefinition]:
        return self.definitions.find_coming(owner_id, limit=limit)

    def estimate(self, owner_id: int, now: Optional[datetime] = None) -> List[CategoryShare]:
        """Projected spend of everything due before the end of the estimate window"""
        if self.accounts.get(owner_id) is None:
            raise NotFoundError(f"Account with id {owner_id} does not exist")

        window_end = add_months((now or datetime.now()).date(), settings.estimate_window_months)
        return projected_spend(owner_id, window_end, self.definitions.find_all(owner_id=owner_id))


def _validate(terms: RecurringTerms) -> None:
    if terms.amount_cents <= 0:
        raise InvalidTransferError("Recurring transfer amount must be positive")
