"""Shared pytest fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from mercury.api.types import EmailListResponse, SendResponse


@pytest.fixture
def client() -> MagicMock:
    """A MailClient stand-in whose API methods are AsyncMocks."""
    c = MagicMock()
    c.list_emails = AsyncMock(return_value=EmailListResponse(emails=[], total=0))
    c.get_email = AsyncMock()
    c.mark_as_read = AsyncMock()
    c.delete_email = AsyncMock()
    c.send_email = AsyncMock(return_value=SendResponse(success=True, message_id="msg-1"))
    return c


@pytest.fixture
def raw_multipart() -> str:
    return (
        "From: Alice <alice@example.com>\r\n"
        "To: bob@example.com\r\n"
        "Subject: Lunch\r\n"
        "Content-Type: multipart/alternative; boundary=\"XYZ\"\r\n"
        "\r\n"
        "--XYZ\r\n"
        "Content-Type: text/html\r\n"
        "\r\n"
        "<p>Lunch at noon?</p>\r\n"
        "--XYZ\r\n"
        "Content-Type: text/plain; charset=utf-8\r\n"
        "\r\n"
        "Lunch at noon?\r\n"
        "--XYZ--\r\n"
    )
