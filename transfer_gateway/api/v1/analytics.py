"""GET /v1/accounts/{id}/history and /estimate - category breakdowns"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from transfer_gateway.api.dependencies import http_error
from transfer_gateway.api.v1.schemas import AnalyticsResponse, CategoryShareSchema
from transfer_gateway.domain.exceptions import DomainException
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.services.recurring import RecurringTransferService
from transfer_gateway.services.transfers import TransferService

router = APIRouter()


@router.get("/accounts/{account_id}/history", response_model=AnalyticsResponse)
def get_history(account_id: int, db: Session = Depends(get_db)):
    """
    Realized transfers over the trailing window.

    Returns:
        Outgoing and incoming totals, then spend per category
    """
    try:
        shares = TransferService(db).history(account_id)
    except DomainException as e:
        raise http_error(e)

    return AnalyticsResponse(
        account_id=account_id,
        entries=[CategoryShareSchema.model_validate(share) for share in shares],
    )


@router.get("/accounts/{account_id}/estimate", response_model=AnalyticsResponse)
def get_estimate(account_id: int, db: Session = Depends(get_db)):
    """
    Projected spend from recurring definitions due within the estimate window.

    Returns:
        Total projected outgoing, then projection per category
    """
    try:
        shares = RecurringTransferService(db).estimate(account_id)
    except DomainException as e:
        raise http_error(e)

    return AnalyticsResponse(
        account_id=account_id,
        entries=[CategoryShareSchema.model_validate(share) for share in shares],
    )
