"""Dependency injection and error mapping for FastAPI endpoints"""

from functools import lru_cache
from fastapi import HTTPException, Request
from transfer_gateway.domain.exceptions import (
    DomainException,
    DuplicateDefinitionError,
    InsufficientBalanceError,
    InvalidTransferError,
    NotFoundError,
    SenderUnavailableError,
)
from transfer_gateway.infrastructure.clients.notifications import NotificationClient
from transfer_gateway.services.scheduler import RecurringTransferScheduler

_STATUS_BY_ERROR = {
    NotFoundError: 404,
    SenderUnavailableError: 404,
    InsufficientBalanceError: 409,
    DuplicateDefinitionError: 409,
    InvalidTransferError: 422,
}


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_notification_client() -> NotificationClient:
    """Provide notification client instance"""
    return NotificationClient()


@lru_cache
def get_scheduler() -> RecurringTransferScheduler:
    """Provide the one scheduler shared by the daily trigger and on-demand runs"""
    return RecurringTransferScheduler(notifier=get_notification_client())


def http_error(error: DomainException) -> HTTPException:
    """Translate a domain error into the HTTP error surfaced to the caller"""
    for error_type, status_code in _STATUS_BY_ERROR.items():
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))
