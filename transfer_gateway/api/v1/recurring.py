"""Recurring transfer definition endpoints"""

import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from transfer_gateway.api.dependencies import get_request_id, http_error
from transfer_gateway.api.v1.schemas import (
    RecurringDefinitionCreateRequest,
    RecurringDefinitionRequest,
    RecurringDefinitionSchema,
)
from transfer_gateway.domain.exceptions import DomainException
from transfer_gateway.infrastructure.database.session import get_db
from transfer_gateway.services.recurring import RecurringTransferService

router = APIRouter()


@router.post("/recurring", response_model=RecurringDefinitionSchema, status_code=201)
def create_definition(
    request_body: RecurringDefinitionCreateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Declare a standing order; an exact duplicate of an existing one is rejected"""
    try:
        definition = RecurringTransferService(db).create_definition(request_body.owner_id, request_body.to_terms())
        db.commit()
        return RecurringDefinitionSchema.model_validate(definition)
    except DomainException as e:
        db.rollback()
        logging.warning(f"Recurring transfer rejected: {e}", extra={"request_id": get_request_id(request)})
        raise http_error(e)


@router.get("/recurring", response_model=List[RecurringDefinitionSchema])
def list_definitions(
    owner_id: Optional[int] = Query(None, description="Owning account"),
    db: Session = Depends(get_db),
):
    return RecurringTransferService(db).list_definitions(owner_id=owner_id)


@router.get("/recurring/{definition_id}", response_model=RecurringDefinitionSchema)
def get_definition(definition_id: int, db: Session = Depends(get_db)):
    try:
        return RecurringTransferService(db).get_definition(definition_id)
    except DomainException as e:
        raise http_error(e)


@router.put("/recurring/{definition_id}", response_model=RecurringDefinitionSchema)
def update_definition(
    definition_id: int,
    request_body: RecurringDefinitionRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    try:
        definition = RecurringTransferService(db).update_definition(definition_id, request_body.to_terms())
        db.commit()
        return RecurringDefinitionSchema.model_validate(definition)
    except DomainException as e:
        db.rollback()
        logging.warning(f"Recurring transfer update rejected: {e}", extra={"request_id": get_request_id(request)})
        raise http_error(e)


@router.delete("/recurring/{definition_id}", status_code=204)
def delete_definition(definition_id: int, db: Session = Depends(get_db)):
    try:
        RecurringTransferService(db).delete_definition(definition_id)
        db.commit()
    except DomainException as e:
        db.rollback()
        raise http_error(e)


@router.get("/accounts/{account_id}/recurring/coming", response_model=List[RecurringDefinitionSchema])
def coming_definitions(account_id: int, limit: int = Query(3, ge=1, le=50), db: Session = Depends(get_db)):
    """Soonest upcoming standing orders of an account"""
    return RecurringTransferService(db).coming_definitions(account_id, limit=limit)
