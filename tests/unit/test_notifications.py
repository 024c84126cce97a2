"""Unit tests for the notification webhook client"""

import httpx
from unittest.mock import AsyncMock, patch
from transfer_gateway.infrastructure.clients.notifications import NotificationClient, insufficient_balance_message

WEBHOOK_URL = "http://mailer.test/send"


def response(status_code: int) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request("POST", WEBHOOK_URL))


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_notify_success(mock_post: AsyncMock):
    mock_post.return_value = response(202)

    delivered = await NotificationClient(webhook_url=WEBHOOK_URL).notify("a@example.com", "body", "subject")

    assert delivered is True
    assert mock_post.await_count == 1
    payload = mock_post.await_args.kwargs["json"]
    assert payload["to"] == "a@example.com"
    assert payload["subject"] == "subject"
    assert payload["body"] == "body"


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_notify_retries_then_succeeds(mock_post: AsyncMock):
    mock_post.side_effect = [httpx.ConnectError("refused"), response(503), response(200)]

    client = NotificationClient(webhook_url=WEBHOOK_URL)
    client.backoff_base = 0

    assert await client.notify("a@example.com", "body", "subject") is True
    assert mock_post.await_count == 3


@patch("httpx.AsyncClient.post", new_callable=AsyncMock)
async def test_notify_gives_up_without_raising(mock_post: AsyncMock):
    mock_post.return_value = response(500)

    client = NotificationClient(webhook_url=WEBHOOK_URL)
    client.backoff_base = 0
    client.max_retries = 2

    assert await client.notify("a@example.com", "body", "subject") is False
    assert mock_post.await_count == 2


def test_insufficient_balance_message_mentions_definition_and_amount():
    message = insufficient_balance_message("Bob Kowalski", 17, 9_050)
    assert "Bob Kowalski" in message
    assert "#17" in message
    assert "90.50" in message
