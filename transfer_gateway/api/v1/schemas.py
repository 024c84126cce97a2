"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional
from transfer_gateway.domain.models import Category, Direction, RecurringTerms


class TransferRequest(BaseModel):
    """Request body for POST /v1/transfers"""

    source_account_id: int = Field(..., description="Account the money leaves")
    amount_cents: int = Field(..., gt=0, description="Amount to move in cents")
    category: Category
    title: str = Field(..., min_length=1, max_length=255)
    destination_account_number: str = Field(..., min_length=1, max_length=34)
    receiver_name: Optional[str] = Field(None, description="Payee name used when the destination is external")
    transfer_date: Optional[datetime] = None


class RatePaymentRequest(BaseModel):
    """Request body for POST /v1/accounts/{account_id}/rate-payments"""

    loan_id: int
    rate_amount_cents: int = Field(..., gt=0)
    rate_number: int = Field(..., ge=1)


class TransferRecordSchema(BaseModel):
    """Single realized transfer record"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: int
    amount_cents: int
    transfer_date: datetime
    category: Category
    direction: Direction
    counterparty_name: str
    counterparty_account_number: str
    title: str


class TransferResponse(BaseModel):
    """Response for POST /v1/transfers"""

    outgoing: TransferRecordSchema
    incoming: Optional[TransferRecordSchema] = None


class RecurringDefinitionRequest(BaseModel):
    """Request body for POST and PUT /v1/recurring"""

    amount_cents: int = Field(..., gt=0)
    receiver_name: str = Field(..., min_length=1)
    destination_account_number: str = Field(..., min_length=1, max_length=34)
    category: Category
    title: str = Field(..., min_length=1, max_length=255)
    next_due_date: date

    def to_terms(self) -> RecurringTerms:
        return RecurringTerms(
            amount_cents=self.amount_cents,
            receiver_name=self.receiver_name,
            destination_account_number=self.destination_account_number,
            next_due_date=self.next_due_date,
            category=self.category,
            title=self.title,
        )


class RecurringDefinitionCreateRequest(RecurringDefinitionRequest):
    owner_id: int


class RecurringDefinitionSchema(BaseModel):
    """Stored recurring definition"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    owner_id: Optional[int]
    amount_cents: int
    receiver_name: str
    destination_account_number: str
    category: Category
    title: str
    next_due_date: date


class CategoryShareSchema(BaseModel):
    """One analytics row; percent is 0.0 when there is no data"""

    model_config = ConfigDict(from_attributes=True)

    label: str
    amount_cents: int
    percent: float


class AnalyticsResponse(BaseModel):
    """Response for history and estimate endpoints"""

    account_id: int
    entries: List[CategoryShareSchema]


class SchedulerRunResponse(BaseModel):
    """Response for POST /v1/scheduler/run"""

    run_at: datetime
    cutoff: date
    counts: dict
