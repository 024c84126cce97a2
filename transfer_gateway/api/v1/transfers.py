"""Transfer endpoints - one-shot execution, rate payments and record administration"""

import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from transfer_gateway.api.dependencies import get_request_id, http_error
from transfer_gateway.api.v1.schemas import (
    RatePaymentRequest,
    TransferRecordSchema,
    TransferRequest,
    TransferResponse,
)
from transfer_gateway.domain.exceptions import DomainException
from transfer_gateway.domain.models import Category, Direction, LoanRate, TransferFilter
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.services.transfers import TransferService

router = APIRouter()


@router.post("/transfers", response_model=TransferResponse, status_code=201)
def create_transfer(
    request_body: TransferRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Execute a one-shot transfer.

    Either both balance changes and both records are committed, or nothing is.
    """
    request_id = get_request_id(request)
    try:
        outgoing, incoming = TransferService(db).execute(
            source_account_id=request_body.source_account_id,
            amount_cents=request_body.amount_cents,
            category=request_body.category,
            title=request_body.title,
            destination_account_number=request_body.destination_account_number,
            when_realized=request_body.transfer_date,
            receiver_name=request_body.receiver_name,
            request_id=request_id,
        )
        db.commit()
        return TransferResponse(
            outgoing=TransferRecordSchema.model_validate(outgoing),
            incoming=TransferRecordSchema.model_validate(incoming) if incoming else None,
        )

    except DomainException as e:
        db.rollback()
        logging.warning(f"Transfer rejected: {e}", extra={"request_id": request_id})
        raise http_error(e)

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/accounts/{account_id}/rate-payments", response_model=TransferRecordSchema, status_code=201)
def create_rate_payment(
    account_id: int,
    request_body: RatePaymentRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Debit one loan rate to the bank's fixed payee account"""
    request_id = get_request_id(request)
    try:
        record = TransferService(db).execute_rate_payment(
            account_id,
            LoanRate(
                loan_id=request_body.loan_id,
                rate_amount_cents=request_body.rate_amount_cents,
                rate_number=request_body.rate_number,
            ),
        )
        db.commit()
        return TransferRecordSchema.model_validate(record)

    except DomainException as e:
        db.rollback()
        logging.warning(f"Rate payment rejected: {e}", extra={"request_id": request_id})
        raise http_error(e)


@router.get("/transfers", response_model=List[TransferRecordSchema])
def list_transfers(
    owner_id: Optional[int] = Query(None, description="Owning account"),
    direction: Optional[Direction] = None,
    category: Optional[Category] = None,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """Filtered, newest-first page of realized transfer records"""
    transfer_filter = TransferFilter(
        owner_id=owner_id,
        direction=direction,
        category=category,
        since=since,
        until=until,
        limit=limit,
        offset=offset,
    )
    return TransferService(db).list_transfers(transfer_filter)


@router.get("/transfers/{transfer_id}", response_model=TransferRecordSchema)
def get_transfer(transfer_id: int, db: Session = Depends(get_db)):
    try:
        return TransferService(db).get_transfer(transfer_id)
    except DomainException as e:
        raise http_error(e)


@router.delete("/transfers/{transfer_id}", status_code=204)
def delete_transfer(transfer_id: int, db: Session = Depends(get_db)):
    """Administrative delete of a single record; balances are not touched"""
    try:
        TransferService(db).delete_transfer(transfer_id)
        db.commit()
    except DomainException as e:
        db.rollback()
        raise http_error(e)


@router.get("/accounts/{account_id}/transfers/recent", response_model=List[TransferRecordSchema])
def recent_transfers(account_id: int, limit: int = Query(3, ge=1, le=50), db: Session = Depends(get_db)):
    return TransferService(db).recent_transfers(account_id, limit=limit)
