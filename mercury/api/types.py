"""Wire types for the Mercury Mail API, plus plain-text body extraction."""

from __future__ import annotations

import email
import email.policy
import logging
from dataclasses import dataclass, field, fields
from email.message import Message
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Email:
    """A single message as returned by ``GET /emails`` or ``GET /emails/{id}``.

    List responses usually omit ``raw_email``; the detail endpoint includes it,
    which is what ``body()`` works from.
    """

    id: int
    message_id: str = ""
    sender: str = ""
    recipient: str = ""
    subject: str = ""
    received_at: str = ""
    is_read: int = 0
    is_starred: int = 0
    folder: str = ""
    raw_email: str = ""
    headers_json: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Email:
        """Build an Email from a decoded JSON object. Unknown keys are ignored."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known and v is not None}
        values["id"] = int(values.get("id", 0))
        for flag in ("is_read", "is_starred"):
            if flag in values:
                values[flag] = int(values[flag])
        return cls(**values)

    @property
    def read(self) -> bool:
        return self.is_read == 1

    @property
    def starred(self) -> bool:
        return self.is_starred == 1

    def body(self) -> str:
        """Return the plain-text body extracted from ``raw_email``.

        Charsets and transfer encodings are passed through untouched, so this
        is only exact for 7-bit and UTF-8 payloads.
        """
        if not self.raw_email.strip():
            return ""
        return extract_plain_text(self.raw_email)


@dataclass
class EmailUpdate:
    """Fields accepted by ``PATCH /emails/{id}``. ``None`` means "leave alone"."""

    is_read: bool | None = None
    is_starred: bool | None = None
    folder: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class SendRequest:
    to: str
    subject: str
    text: str = ""
    html: str = ""
    from_: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"to": self.to, "subject": self.subject}
        if self.from_:
            payload["from"] = self.from_
        if self.text:
            payload["text"] = self.text
        if self.html:
            payload["html"] = self.html
        if self.headers:
            payload["headers"] = dict(self.headers)
        return payload


@dataclass(frozen=True)
class SendResponse:
    success: bool
    message_id: str
    error: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SendResponse:
        return cls(
            success=bool(data.get("success", False)),
            message_id=str(data.get("messageId", "")),
            error=data.get("error") or None,
        )


@dataclass(frozen=True)
class EmailListResponse:
    emails: list[Email]
    total: int
    limit: int = 0
    offset: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmailListResponse:
        return cls(
            emails=[Email.from_dict(e) for e in data.get("emails") or [] if isinstance(e, dict)],
            total=int(data.get("total", 0)),
            limit=int(data.get("limit", 0)),
            offset=int(data.get("offset", 0)),
        )


# ── Body extraction ────────────────────────────────────────────────────────────


def extract_plain_text(raw: str) -> str:
    """Pull the first text/plain part out of a raw RFC 822 message.

    Single-part messages with no (or a text/plain) Content-Type return their
    body.  Multipart messages are searched depth-first.  Anything else falls
    back to the raw text after the header block.
    """
    msg = email.message_from_string(raw, policy=email.policy.compat32)
    raw_body = _raw_body(raw)

    if msg.get("Content-Type") is None:
        return raw_body.strip()

    content_type = msg.get_content_type()
    if content_type == "text/plain":
        return _payload_text(msg)

    if msg.get_content_maintype() == "multipart":
        text = _text_from_multipart(msg)
        if text:
            return text
        logger.debug("No text/plain part found in %s message", content_type)

    return raw_body.strip()


def _text_from_multipart(msg: Message) -> str:
    if not msg.is_multipart():
        # Missing or unmatched boundary: the parser leaves the payload as a string.
        return ""
    for part in msg.get_payload():
        if part.is_multipart():
            text = _text_from_multipart(part)
        elif part.get_content_type() == "text/plain":
            text = _payload_text(part)
        else:
            text = ""
        if text:
            return text
    return ""


def _payload_text(part: Message) -> str:
    payload = part.get_payload()
    if not isinstance(payload, str):
        return ""
    return payload.strip()


def _raw_body(raw: str) -> str:
    """Return everything after the first blank line, or "" if there is none."""
    normalized = raw.replace("\r\n", "\n")
    _, sep, body = normalized.partition("\n\n")
    return body if sep else ""
