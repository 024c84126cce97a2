"""Domain models - pure Python dataclasses and enums shared by services and storage"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional


class Category(str, Enum):
    """Closed set of transfer categories, in report order"""

    BILLS = "BILLS"
    GROCERIES = "GROCERIES"
    ENTERTAINMENT = "ENTERTAINMENT"
    OTHER = "OTHER"

    @property
    def label(self) -> str:
        return _CATEGORY_LABELS[self]


_CATEGORY_LABELS = {
    Category.BILLS: "Bills",
    Category.GROCERIES: "Groceries",
    Category.ENTERTAINMENT: "Entertainment",
    Category.OTHER: "Other",
}


class Direction(str, Enum):
    """Side of a transfer from the record owner's point of view"""

    OUTGOING = "OUTGOING"
    INCOMING = "INCOMING"


@dataclass(frozen=True)
class RecurringTerms:
    """The fields that identify a recurring definition for duplicate detection"""

    amount_cents: int
    receiver_name: str
    destination_account_number: str
    next_due_date: date
    category: Category
    title: str


@dataclass
class LoanRate:
    """Single loan installment to be debited to the bank's fixed payee"""

    loan_id: int
    rate_amount_cents: int
    rate_number: int


@dataclass
class TransferFilter:
    """Query filter for realized transfer records"""

    owner_id: Optional[int] = None
    direction: Optional[Direction] = None
    category: Optional[Category] = None
    since: Optional[datetime] = None
    until: Optional[datetime] = None
    limit: int = 50
    offset: int = 0


@dataclass
class CategoryShare:
    """One row of an analytics report"""

    label: str
    amount_cents: int
    percent: float


class RunOutcome(str, Enum):
    """What the scheduler did with one due definition"""

    REALISED = "realised"
    NOTIFIED = "notified"
    REMOVED = "removed"
    FAILED = "failed"


@dataclass
class SchedulerReport:
    """Result of one scheduler run"""

    run_at: datetime
    cutoff: date
    outcomes: List[tuple] = field(default_factory=list)  # (definition_id, RunOutcome)

    def record(self, definition_id: int, outcome: RunOutcome) -> None:
        self.outcomes.append((definition_id, outcome))

    def counts(self) -> Dict[str, int]:
        totals = {outcome.value: 0 for outcome in RunOutcome}
        for _, outcome in self.outcomes:
            totals[outcome.value] += 1
        return totals
