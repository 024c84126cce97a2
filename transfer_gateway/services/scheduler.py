"""Recurring transfer scheduler - realises due standing orders once a day"""

import asyncio
import logging
import time
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from transfer_gateway.config import settings
from transfer_gateway.domain.exceptions import InsufficientBalanceError, SenderUnavailableError
from transfer_gateway.domain.models import RunOutcome, SchedulerReport
from transfer_gateway.infrastructure.clients.notifications import NotificationClient, insufficient_balance_message
from transfer_gateway.infrastructure.database.repositories import AccountRepository, RecurringDefinitionRepository
from transfer_gateway.infrastructure.database.session import SessionLocal
from transfer_gateway.infrastructure.observability.logging import log_scheduler_run
from transfer_gateway.infrastructure.observability.metrics import scheduler_outcome_counter, scheduler_run_histogram
from transfer_gateway.services.transfers import TransferService
from transfer_gateway.utils.date_utils import add_months, next_run_at, seconds_until

logger = logging.getLogger(__name__)

INSUFFICIENT_BALANCE_SUBJECT = "Your cyclical transfer couldn't be realised!"

# (recipient, message, subject)
Notice = Tuple[str, str, str]


class RecurringTransferScheduler:
    """
    Realises recurring definitions whose due date has come.

    Each definition is processed in its own session and transaction, so a
    failure on one definition never rolls back or blocks the others. Runs
    on one scheduler never overlap, and each definition is re-checked under
    a row lock so that runs from other schedulers cannot realise it twice.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        notifier: Optional[NotificationClient] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory
        self.notifier = notifier or NotificationClient()
        self.clock = clock
        self._run_lock = asyncio.Lock()

    async def run_once(self, run_at: Optional[datetime] = None) -> SchedulerReport:
        """
        Process every definition due on or before the run date plus the lookahead.

        Per definition:
        1. Owner missing -> definition deleted (REMOVED)
        2. Balance insufficient -> definition kept as is, owner notified (NOTIFIED)
        3. Otherwise realised and next_due_date advanced one month (REALISED)
        4. Any other error -> that definition rolled back and skipped (FAILED)

        A call made while another run is in progress waits for it to finish.
        """
        async with self._run_lock:
            return await self._run(run_at or self.clock())

    async def run_forever(self) -> None:
        """Daily trigger: sleep until the configured local time, run, repeat"""
        while True:
            now = self.clock()
            target = next_run_at(now, settings.scheduler_run_hour, settings.scheduler_run_minute)
            logger.info("Next scheduler run at %s", target.isoformat())
            await asyncio.sleep(seconds_until(target, now))
            try:
                await self.run_once()
            except Exception:
                # Selection itself failed (e.g. database down); try again tomorrow
                logger.exception("Scheduler run aborted")

    async def _run(self, run_at: datetime) -> SchedulerReport:
        cutoff = run_at.date() + timedelta(days=settings.due_lookahead_days)
        report = SchedulerReport(run_at=run_at, cutoff=cutoff)
        start_time = time.time()

        due_ids = await asyncio.to_thread(self._select_due, cutoff)
        if not due_ids:
            logger.debug("No transfer will be realised today")

        for definition_id in due_ids:
            outcome = await self._process(definition_id, run_at, cutoff)
            if outcome is None:
                continue
            report.record(definition_id, outcome)
            scheduler_outcome_counter.labels(outcome=outcome.value).inc()

        duration = time.time() - start_time
        scheduler_run_histogram.observe(duration)
        log_scheduler_run(cutoff.isoformat(), report.counts(), duration * 1000)
        return report

    def _select_due(self, cutoff: date) -> List[int]:
        with self.session_factory() as db:
            return [d.id for d in RecurringDefinitionRepository(db).find_due(cutoff)]

    async def _process(self, definition_id: int, run_at: datetime, cutoff: date) -> Optional[RunOutcome]:
        # Database work runs off the event loop; only the notification is awaited here
        outcome, notice = await asyncio.to_thread(self._transact, definition_id, run_at, cutoff)

        if notice is not None:
            try:
                await self.notifier.notify(*notice)
            except Exception:
                logger.exception("Notification failed", extra={"definition_id": definition_id})
        return outcome

    def _transact(
        self, definition_id: int, run_at: datetime, cutoff: date
    ) -> Tuple[Optional[RunOutcome], Optional[Notice]]:
        with self.session_factory() as db:
            try:
                result = self._realise(db, definition_id, run_at, cutoff)
                db.commit()
                return result
            except Exception:
                db.rollback()
                logger.exception(
                    "Cannot realise recurring transfer, skipping",
                    extra={"definition_id": definition_id},
                )
                return RunOutcome.FAILED, None

    def _realise(
        self, db: Session, definition_id: int, run_at: datetime, cutoff: date
    ) -> Tuple[Optional[RunOutcome], Optional[Notice]]:
        definitions = RecurringDefinitionRepository(db)
        definition = definitions.get_for_update(definition_id)
        if definition is None or definition.next_due_date > cutoff:
            # Deleted by its owner, or already realised by another run, since selection
            return None, None

        owner = AccountRepository(db).get(definition.owner_id) if definition.owner_id is not None else None
        if owner is None:
            logger.error(
                "Cannot realise transfer, client doesn't exist anymore, deleting recurring transfer",
                extra={"definition_id": definition_id},
            )
            definitions.delete(definition_id)
            return RunOutcome.REMOVED, None

        owner_id, recipient, full_name = owner.id, owner.email, owner.full_name
        amount_cents = definition.amount_cents

        try:
            TransferService(db).realise_definition(definition, when_realized=run_at)
        except InsufficientBalanceError:
            db.rollback()
            logger.warning(
                "Cannot realise transfer, insufficient balance",
                extra={"definition_id": definition_id, "owner_id": owner_id},
            )
            notice = (
                recipient,
                insufficient_balance_message(full_name, definition_id, amount_cents),
                INSUFFICIENT_BALANCE_SUBJECT,
            )
            return RunOutcome.NOTIFIED, notice
        except SenderUnavailableError:
            # Owner deleted between lookup and debit
            db.rollback()
            definitions.delete(definition_id)
            return RunOutcome.REMOVED, None

        definition.next_due_date = add_months(definition.next_due_date, 1)
        definitions.save(definition)
        logger.debug(
            "Recurring transfer finalized",
            extra={"definition_id": definition_id, "next_due_date": definition.next_due_date.isoformat()},
        )
        return RunOutcome.REALISED, None
