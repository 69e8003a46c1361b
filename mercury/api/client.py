"""Mercury Mail API client — a typed async wrapper around the REST endpoints."""

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from mercury.api.types import Email, EmailListResponse, EmailUpdate, SendRequest, SendResponse
from mercury.auth import get_secret

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://mail-api.mistystep.io"
_TIMEOUT_SECONDS = 20.0
_MAX_ERROR_BODY = 1 << 20  # 1 MiB


class APIError(Exception):
    """Raised when the API answers with a status code >= 400.

    Keeps the status so callers can tell an expired secret (401) from a
    vanished message (404) or throttling (429).
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"server returned {status_code}: {message}")
        self.status_code = status_code
        self.message = message

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404

    @property
    def is_rate_limited(self) -> bool:
        return self.status_code == 429


def base_url_from_env() -> str:
    """Return ``MERCURY_API_URL`` if set, otherwise the hosted default."""
    return os.environ.get("MERCURY_API_URL", "").strip() or DEFAULT_BASE_URL


class MailClient:
    """Thin async wrapper around the Mercury Mail API.

    Holds one ``httpx.AsyncClient`` so every command issued by the TUI reuses
    the same connection pool.  Use the ``mail_client()`` context manager to
    construct and tear down correctly.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    # ── Public API ─────────────────────────────────────────────────────────────

    async def list_emails(self, limit: int, offset: int = 0, folder: str = "inbox") -> EmailListResponse:
        """Return one page of message summaries (no raw source)."""
        params: dict[str, Any] = {"limit": limit, "offset": offset}
        if folder.strip():
            params["folder"] = folder
        data = await self._call("GET", "/emails", params=params)
        return EmailListResponse.from_dict(data or {})

    async def get_email(self, email_id: int) -> Email:
        """Return a single message including its raw source."""
        data = await self._call("GET", f"/emails/{email_id}")
        if not isinstance(data, dict) or not isinstance(data.get("email"), dict):
            raise APIError(200, f"unexpected response for email {email_id}")
        return Email.from_dict(data["email"])

    async def send_email(self, request: SendRequest) -> SendResponse:
        data = await self._call("POST", "/send", json_body=request.to_dict())
        response = SendResponse.from_dict(data or {})
        logger.info("Sent email to %s: %r (id=%s)", request.to, request.subject, response.message_id)
        return response

    async def update_email(self, email_id: int, update: EmailUpdate) -> None:
        await self._call("PATCH", f"/emails/{email_id}", json_body=update.to_dict())
        logger.debug("Updated email %d: %s", email_id, update.to_dict())

    async def mark_as_read(self, email_id: int) -> None:
        await self.update_email(email_id, EmailUpdate(is_read=True))

    async def delete_email(self, email_id: int, permanent: bool = False) -> None:
        """Move a message to trash, or remove it for good with ``permanent``."""
        params = {"permanent": "true"} if permanent else None
        await self._call("DELETE", f"/emails/{email_id}", params=params)
        logger.debug("Deleted email %d (permanent=%s)", email_id, permanent)

    # ── Internal helpers ───────────────────────────────────────────────────────

    async def _call(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Issue a request and return the decoded JSON body (or None).

        Raises APIError for any status >= 400.  Transport failures surface as
        ``httpx.HTTPError``.
        """
        logger.debug("API → %s %s %s", method, path, params or "")
        response = await self._http.request(method, path, params=params, json=json_body)

        if response.status_code >= 400:
            raise _api_error(response)

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise APIError(response.status_code, f"decode response: {exc}") from exc


def _api_error(response: httpx.Response) -> APIError:
    """Build an APIError from an error response, preferring the JSON message."""
    body = response.content[:_MAX_ERROR_BODY].decode("utf-8", errors="replace")
    message = body.strip()

    if body:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            payload = None
        if isinstance(payload, dict):
            if payload.get("error"):
                message = str(payload["error"])
            elif payload.get("message"):
                message = str(payload["message"])

    if not message:
        message = response.reason_phrase
    return APIError(response.status_code, message)


def _warn_if_insecure(base_url: str, secret: str) -> None:
    if not secret or base_url.startswith("https://"):
        return
    if "localhost" in base_url or "127.0.0.1" in base_url:
        return
    logger.warning("API secret will be sent over an insecure connection to %s", base_url)


@asynccontextmanager
async def mail_client(
    *,
    base_url: str | None = None,
    secret: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[MailClient]:
    """Async context manager that yields a ready-to-use MailClient.

    Args:
        base_url: API root. Falls back to MERCURY_API_URL, then the hosted default.
        secret: Bearer secret. Falls back to the credential provider.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).

    Example::

        async with mail_client() as client:
            page = await client.list_emails(50)
    """
    url = (base_url or "").strip() or base_url_from_env()
    url = url.rstrip("/")
    token = secret if secret is not None else get_secret()
    _warn_if_insecure(url, token)

    headers = {"Authorization": f"Bearer {token}"} if token else {}
    async with httpx.AsyncClient(
        base_url=url,
        headers=headers,
        timeout=_TIMEOUT_SECONDS,
        transport=transport,
    ) as http:
        logger.info("Mail API client ready (%s)", url)
        yield MailClient(http)
