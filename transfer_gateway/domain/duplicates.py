"""Duplicate detection for recurring transfer definitions"""

from typing import Iterable, Optional
from transfer_gateway.domain.models import RecurringTerms
from transfer_gateway.domain.exceptions import DuplicateDefinitionError


def terms_of(definition) -> RecurringTerms:
    """Project a stored definition onto the fields compared for duplicates"""
    return RecurringTerms(
        amount_cents=definition.amount_cents,
        receiver_name=definition.receiver_name,
        destination_account_number=definition.destination_account_number,
        next_due_date=definition.next_due_date,
        category=definition.category,
        title=definition.title,
    )


def assert_not_duplicate(
    candidate: RecurringTerms,
    existing: Iterable,
    exclude_id: Optional[int] = None,
) -> None:
    """
    Reject a definition that exactly matches one the owner already has.

    Args:
        candidate: Terms of the definition being created or updated
        existing: The owner's stored definitions
        exclude_id: Id of the definition being replaced on update; it is
            dropped by identity before comparing so an unchanged update
            does not collide with itself

    Raises:
        DuplicateDefinitionError: If any remaining definition matches on all fields
    """
    for definition in existing:
        if exclude_id is not None and definition.id == exclude_id:
            continue
        if terms_of(definition) == candidate:
            raise DuplicateDefinitionError(
                f"This exact recurring transfer is already declared (id {definition.id})"
            )
