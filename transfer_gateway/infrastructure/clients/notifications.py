"""Notification webhook client with exponential backoff retry logic"""

import asyncio
import logging
import httpx
from transfer_gateway.config import settings
from transfer_gateway.infrastructure.observability.metrics import notification_failure_counter

logger = logging.getLogger(__name__)


class NotificationClient:
    """Client for handing e-mail notifications to the mailer service"""

    def __init__(self, webhook_url: str | None = None, timeout: float | None = None):
        self.webhook_url = webhook_url or settings.notification_webhook_url
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.notification_max_retries
        self.backoff_base = settings.notification_backoff_base

    async def notify(self, recipient: str, message: str, subject: str) -> bool:
        """
        Deliver a notification, fire-and-forget.

        Retry strategy:
        - Exponential backoff: base * 2^(attempt-1) between attempts
        - Retries on HTTP errors and network failures
        - Never raises: a final failure is logged and counted

        Returns:
            True if the mailer accepted the notification
        """
        payload = {
            "from": settings.notification_sender,
            "to": recipient,
            "subject": subject,
            "body": message,
        }
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            while attempt < self.max_retries:
                try:
                    response = await client.post(self.webhook_url, json=payload)
                    response.raise_for_status()
                    return True

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1

                    if attempt >= self.max_retries:
                        notification_failure_counter.inc()
                        logger.error(
                            f"Notification to {recipient} failed after {attempt} attempts: {e}",
                            extra={"recipient": recipient, "subject": subject},
                        )
                        return False

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
        return False


def insufficient_balance_message(full_name: str, definition_id: int, amount_cents: int) -> str:
    """Body of the e-mail sent when a recurring transfer cannot be realised"""
    return (
        f"Hello {full_name},\n\n"
        f"your cyclical transfer #{definition_id} of {amount_cents / 100:.2f} "
        f"couldn't be realised because your account balance is insufficient.\n"
        f"We will try again tomorrow. Top up your account or cancel the transfer "
        f"to stop these messages."
    )
