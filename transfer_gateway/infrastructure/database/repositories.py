"""Data access layer for accounts, transfer records and recurring definitions"""

from datetime import date, datetime
from typing import List, Optional
from sqlalchemy import update
from sqlalchemy.orm import Session
from transfer_gateway.infrastructure.database.models import Account, TransferRecord, RecurringDefinition
from transfer_gateway.domain.models import Direction, TransferFilter
from transfer_gateway.domain.exceptions import NotFoundError, InsufficientBalanceError


class AccountRepository:
    """Repository for client accounts and their balances"""

    def __init__(self, db: Session):
        self.db = db

    def create(self, account_number: str, full_name: str, email: str, balance_cents: int = 0) -> Account:
        """Provision an account"""
        account = Account(
            account_number=account_number,
            full_name=full_name,
            email=email,
            balance_cents=balance_cents,
        )
        self.db.add(account)
        self.db.flush()
        return account

    def get(self, account_id: int) -> Optional[Account]:
        return self.db.query(Account).filter(Account.id == account_id).first()

    def get_by_account_number(self, account_number: str) -> Optional[Account]:
        return self.db.query(Account).filter(Account.account_number == account_number).first()

    def lock(self, account_id: int) -> Optional[Account]:
        """Load an account holding its row lock until the transaction ends"""
        return self.db.query(Account).filter(Account.id == account_id).with_for_update().first()

    def adjust_balance(self, account_id: int, amount_cents: int, direction: Direction) -> Account:
        """
        Atomically move an account balance by amount_cents.

        Debits are a single conditional UPDATE guarded by
        ``balance_cents >= amount``, so the sufficiency check and the write
        cannot be interleaved by a concurrent transfer. The row stays locked
        until the surrounding transaction ends.

        Raises:
            NotFoundError: No account with this id
            InsufficientBalanceError: Debit would make the balance negative
        """
        stmt = update(Account).where(Account.id == account_id)
        if direction == Direction.OUTGOING:
            stmt = stmt.where(Account.balance_cents >= amount_cents).values(
                balance_cents=Account.balance_cents - amount_cents
            )
        else:
            stmt = stmt.values(balance_cents=Account.balance_cents + amount_cents)

        result = self.db.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount == 0:
            if self.db.query(Account.id).filter(Account.id == account_id).first() is None:
                raise NotFoundError(f"Account with id {account_id} does not exist")
            raise InsufficientBalanceError(account_id, amount_cents)

        # Reload so callers never see the pre-update balance from the identity map
        return self.db.query(Account).populate_existing().filter(Account.id == account_id).one()


class TransferRepository:
    """Repository for realized transfer records"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, record: TransferRecord) -> TransferRecord:
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get(self, record_id: int) -> Optional[TransferRecord]:
        return self.db.query(TransferRecord).filter(TransferRecord.id == record_id).first()

    def exists(self, record_id: int) -> bool:
        return self.db.query(TransferRecord.id).filter(TransferRecord.id == record_id).first() is not None

    def delete(self, record_id: int) -> None:
        self.db.query(TransferRecord).filter(TransferRecord.id == record_id).delete(synchronize_session=False)

    def find_all(self, transfer_filter: TransferFilter) -> List[TransferRecord]:
        """Filtered, newest first, paginated"""
        query = self.db.query(TransferRecord)
        if transfer_filter.owner_id is not None:
            query = query.filter(TransferRecord.owner_id == transfer_filter.owner_id)
        if transfer_filter.direction is not None:
            query = query.filter(TransferRecord.direction == transfer_filter.direction)
        if transfer_filter.category is not None:
            query = query.filter(TransferRecord.category == transfer_filter.category)
        if transfer_filter.since is not None:
            query = query.filter(TransferRecord.transfer_date >= transfer_filter.since)
        if transfer_filter.until is not None:
            query = query.filter(TransferRecord.transfer_date <= transfer_filter.until)

        return (
            query.order_by(TransferRecord.transfer_date.desc(), TransferRecord.id.desc())
            .offset(transfer_filter.offset)
            .limit(transfer_filter.limit)
            .all()
        )

    def find_in_window(self, owner_id: int, since: datetime, until: datetime) -> List[TransferRecord]:
        """All records of an owner dated within [since, until]"""
        return (
            self.db.query(TransferRecord)
            .filter(
                TransferRecord.owner_id == owner_id,
                TransferRecord.transfer_date >= since,
                TransferRecord.transfer_date <= until,
            )
            .all()
        )


class RecurringDefinitionRepository:
    """Repository for standing transfer orders"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, definition: RecurringDefinition) -> RecurringDefinition:
        self.db.add(definition)
        self.db.flush()
        return definition

    def save(self, definition: RecurringDefinition) -> RecurringDefinition:
        """Flush in-place changes to a loaded definition"""
        self.db.flush()
        return definition

    def get(self, definition_id: int) -> Optional[RecurringDefinition]:
        return self.db.query(RecurringDefinition).filter(RecurringDefinition.id == definition_id).first()

    def get_for_update(self, definition_id: int) -> Optional[RecurringDefinition]:
        return (
            self.db.query(RecurringDefinition)
            .filter(RecurringDefinition.id == definition_id)
            .with_for_update()
            .first()
        )

    def exists(self, definition_id: int) -> bool:
        return (
            self.db.query(RecurringDefinition.id).filter(RecurringDefinition.id == definition_id).first()
            is not None
        )

    def delete(self, definition_id: int) -> None:
        self.db.query(RecurringDefinition).filter(RecurringDefinition.id == definition_id).delete(
            synchronize_session=False
        )

    def find_all(self, owner_id: Optional[int] = None) -> List[RecurringDefinition]:
        query = self.db.query(RecurringDefinition)
        if owner_id is not None:
            query = query.filter(RecurringDefinition.owner_id == owner_id)
        return query.order_by(RecurringDefinition.next_due_date.asc(), RecurringDefinition.id.asc()).all()

    def find_due(self, cutoff: date) -> List[RecurringDefinition]:
        """Definitions with next_due_date on or before cutoff, oldest first"""
        return (
            self.db.query(RecurringDefinition)
            .filter(RecurringDefinition.next_due_date <= cutoff)
            .order_by(RecurringDefinition.next_due_date.asc(), RecurringDefinition.id.asc())
            .all()
        )

    def find_coming(self, owner_id: int, limit: int = 3) -> List[RecurringDefinition]:
        """Soonest upcoming definitions of an owner"""
        return (
            self.db.query(RecurringDefinition)
            .filter(RecurringDefinition.owner_id == owner_id)
            .order_by(RecurringDefinition.next_due_date.asc(), RecurringDefinition.id.asc())
            .limit(limit)
            .all()
        )
