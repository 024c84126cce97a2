"""Transfer execution engine - moves money between accounts with double-entry records"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from transfer_gateway.config import settings
from transfer_gateway.domain.analytics import realized_history
from transfer_gateway.domain.exceptions import (
    InsufficientBalanceError,
    InvalidTransferError,
    NotFoundError,
    SenderUnavailableError,
)
from transfer_gateway.domain.models import Category, CategoryShare, Direction, LoanRate, TransferFilter
from transfer_gateway.infrastructure.database.models import Account, RecurringDefinition, TransferRecord
from transfer_gateway.infrastructure.database.repositories import AccountRepository, TransferRepository
from transfer_gateway.infrastructure.observability.logging import log_transfer
from transfer_gateway.infrastructure.observability.metrics import record_transfer, record_rejected_transfer
from transfer_gateway.utils.date_utils import add_months

MODE_ONE_SHOT = "one_shot"
MODE_RATE_PAYMENT = "rate_payment"
MODE_RECURRING = "recurring"


class TransferService:
    """
    Realizes fund movements against the account and transfer stores.

    The service never commits. Every public mutation leaves the session
    either with the complete set of balance updates and records, or raises;
    the caller owns the transaction and must roll back on error so a failed
    transfer leaves no trace.
    """

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountRepository(db)
        self.transfers = TransferRepository(db)

    def execute(
        self,
        source_account_id: int,
        amount_cents: int,
        category: Category,
        title: str,
        destination_account_number: str,
        when_realized: Optional[datetime] = None,
        receiver_name: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> Tuple[TransferRecord, Optional[TransferRecord]]:
        """
        Move amount_cents from the source account to the destination account number.

        Returns:
            (outgoing_record, incoming_record); incoming_record is None when the
            destination is not an account of this system (external payee)

        Raises:
            InvalidTransferError: Non-positive amount or transfer to self
            SenderUnavailableError: Source account does not exist
            InsufficientBalanceError: Source balance does not cover the amount
        """
        return self._move(
            mode=MODE_ONE_SHOT,
            source_account_id=source_account_id,
            amount_cents=amount_cents,
            category=category,
            title=title,
            destination_account_number=destination_account_number,
            receiver_name=receiver_name,
            when_realized=when_realized,
            request_id=request_id,
        )

    def realise_definition(
        self,
        definition: RecurringDefinition,
        when_realized: datetime,
    ) -> Tuple[TransferRecord, Optional[TransferRecord]]:
        """Execute one occurrence of a recurring definition on behalf of its owner"""
        if definition.owner_id is None:
            raise SenderUnavailableError(f"Recurring transfer {definition.id} has no owner")
        return self._move(
            mode=MODE_RECURRING,
            source_account_id=definition.owner_id,
            amount_cents=definition.amount_cents,
            category=definition.category,
            title=definition.title,
            destination_account_number=definition.destination_account_number,
            receiver_name=definition.receiver_name,
            when_realized=when_realized,
        )

    def execute_rate_payment(
        self,
        account_id: int,
        loan_rate: LoanRate,
        when_realized: Optional[datetime] = None,
    ) -> TransferRecord:
        """
        Debit one loan rate to the bank's fixed payee.

        No destination lookup is attempted; exactly one OUTGOING record is written.
        """
        amount_cents = loan_rate.rate_amount_cents
        if amount_cents <= 0:
            raise InvalidTransferError("Rate amount must be positive")

        sender = self.accounts.get(account_id)
        if sender is None:
            record_rejected_transfer(MODE_RATE_PAYMENT)
            raise SenderUnavailableError(f"Sender account {account_id} not available")

        self._debit(sender.id, amount_cents, MODE_RATE_PAYMENT)
        record = self.transfers.add(
            TransferRecord(
                owner_id=sender.id,
                amount_cents=amount_cents,
                transfer_date=when_realized or datetime.now(),
                category=Category.BILLS,
                direction=Direction.OUTGOING,
                counterparty_name=settings.rate_payee_name,
                counterparty_account_number=settings.rate_payee_account_number,
                title=f"Loan: {loan_rate.loan_id} | Rate number: {loan_rate.rate_number}",
            )
        )

        record_transfer(MODE_RATE_PAYMENT, amount_cents, paired=False)
        log_transfer(MODE_RATE_PAYMENT, sender.id, amount_cents, record.id, None)
        return record

    def _move(
        self,
        mode: str,
        source_account_id: int,
        amount_cents: int,
        category: Category,
        title: str,
        destination_account_number: str,
        receiver_name: Optional[str],
        when_realized: Optional[datetime],
        request_id: Optional[str] = None,
    ) -> Tuple[TransferRecord, Optional[TransferRecord]]:
        if amount_cents <= 0:
            record_rejected_transfer(mode)
            raise InvalidTransferError("Transfer amount must be positive")

        sender = self.accounts.get(source_account_id)
        if sender is None:
            record_rejected_transfer(mode)
            raise SenderUnavailableError(f"Sender account {source_account_id} not available")
        if sender.account_number == destination_account_number:
            record_rejected_transfer(mode)
            raise InvalidTransferError("Cannot transfer to the sender's own account")

        receiver = self.accounts.get_by_account_number(destination_account_number)
        realized_at = when_realized or datetime.now()

        # Source is always locked before destination
        self._debit(sender.id, amount_cents, mode)

        if receiver is not None:
            counterparty_name = receiver.full_name
        else:
            counterparty_name = receiver_name or destination_account_number

        outgoing = self.transfers.add(
            TransferRecord(
                owner_id=sender.id,
                amount_cents=amount_cents,
                transfer_date=realized_at,
                category=category,
                direction=Direction.OUTGOING,
                counterparty_name=counterparty_name,
                counterparty_account_number=destination_account_number,
                title=title,
            )
        )

        incoming = None
        if receiver is not None:
            self.accounts.adjust_balance(receiver.id, amount_cents, Direction.INCOMING)
            incoming = self.transfers.add(
                TransferRecord(
                    owner_id=receiver.id,
                    amount_cents=amount_cents,
                    transfer_date=realized_at,
                    category=category,
                    direction=Direction.INCOMING,
                    counterparty_name=sender.full_name,
                    counterparty_account_number=sender.account_number,
                    title=title,
                )
            )

        record_transfer(mode, amount_cents, paired=incoming is not None)
        log_transfer(mode, sender.id, amount_cents, outgoing.id, incoming.id if incoming else None, request_id)
        return outgoing, incoming

    def _debit(self, account_id: int, amount_cents: int, mode: str) -> Account:
        try:
            return self.accounts.adjust_balance(account_id, amount_cents, Direction.OUTGOING)
        except InsufficientBalanceError:
            record_rejected_transfer(mode)
            raise
        except NotFoundError as e:
            # Account vanished between lookup and debit
            record_rejected_transfer(mode)
            raise SenderUnavailableError(str(e)) from e

    # Record administration

    def get_transfer(self, record_id: int) -> TransferRecord:
        record = self.transfers.get(record_id)
        if record is None:
            raise NotFoundError(f"Transfer with given id {record_id} doesn't exist")
        return record

    def delete_transfer(self, record_id: int) -> None:
        if not self.transfers.exists(record_id):
            raise NotFoundError(f"Transfer with given id {record_id} doesn't exist")
        self.transfers.delete(record_id)

    def list_transfers(self, transfer_filter: TransferFilter) -> List[TransferRecord]:
        return self.transfers.find_all(transfer_filter)

    def recent_transfers(self, owner_id: int, limit: int = 3) -> List[TransferRecord]:
        return self.transfers.find_all(TransferFilter(owner_id=owner_id, limit=limit))

    def history(self, owner_id: int, now: Optional[datetime] = None) -> List[CategoryShare]:
        """Outgoing/incoming split and category breakdown over the trailing window"""
        if self.accounts.get(owner_id) is None:
            raise NotFoundError(f"Account with id {owner_id} does not exist")

        window_end = now or datetime.now()
        window_start = add_months(window_end, -settings.history_window_months)
        records = self.transfers.find_in_window(owner_id, window_start, window_end)
        return realized_history(owner_id, window_start, window_end, records)
