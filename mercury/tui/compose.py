"""Compose and reply through an external editor.

A draft is a plain-text file in the temp directory::

    To: alice@example.com
    Subject: Re: Lunch
    In-Reply-To: <abc@example.com>

    Body text goes here.
    # Lines starting with # are ignored.

The header block ends at the first blank line.  ``To`` and ``Subject`` are
read case-insensitively; any other header is passed through to the API
unchanged (this is how threading headers survive the round trip).
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from email.utils import parseaddr
from pathlib import Path
from typing import TYPE_CHECKING

from mercury.api.types import Email, SendRequest
from mercury.config import DEFAULT_EDITOR
from mercury.tui.commands import Command, LaunchEditor, SendEmail

if TYPE_CHECKING:
    from mercury.tui.model import Model

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "# Write your message above. Lines starting with # are ignored.\n"
    "# Save and close the editor to send, or delete all content to cancel.\n"
)

_ADDRESS_RE = re.compile(r"[^@\s<>]+@[^@\s<>]+")
_REPLY_PREFIXES = ("re:", "re ")


class DraftValidationError(ValueError):
    """Raised when a finished draft cannot be sent as written."""


@dataclass
class ComposeSession:
    """An open draft.  Only one exists at a time."""

    to: str
    subject: str
    headers: dict[str, str] = field(default_factory=dict)
    draft_path: str = ""


@dataclass(frozen=True)
class Draft:
    to: str
    subject: str
    headers: dict[str, str]
    body: str


# ── Address and subject helpers ───────────────────────────────────────────────


def extract_email_address(sender: str) -> str:
    """Return the bare address from a From-style field.

    ``"John Doe <john@example.com>"`` → ``"john@example.com"``.  Falls back to
    the trimmed input when it merely contains an @, and to "" otherwise.
    """
    sender = sender.strip()
    if not sender:
        return ""
    _, address = parseaddr(sender)
    if address and _ADDRESS_RE.fullmatch(address):
        return address
    return sender if "@" in sender else ""


def normalize_reply_subject(subject: str) -> str:
    """Strip any stack of "Re:"/"Re " prefixes and add exactly one "Re: "."""
    cleaned = subject.strip()
    while cleaned.lower().startswith(_REPLY_PREFIXES):
        cleaned = cleaned[3:].strip()
    return "Re: " + cleaned


def quote_body(body: str) -> str:
    """Prefix each line with "> " (a bare ">" for empty lines)."""
    return "\n".join(f"> {line}" if line else ">" for line in body.split("\n"))


# ── Draft file format ──────────────────────────────────────────────────────────


def _header_value(value: str) -> str:
    return " ".join(value.splitlines()).strip()


def render_draft(to: str, subject: str, headers: dict[str, str] | None = None, body: str = "") -> str:
    """Serialise a draft into the editor file format, instructions included."""
    lines = [f"To: {_header_value(to)}", f"Subject: {_header_value(subject)}"]
    for key, value in (headers or {}).items():
        lines.append(f"{key}: {_header_value(value)}")
    text = "\n".join(lines) + "\n\n"
    if body:
        text += body if body.endswith("\n") else body + "\n"
    return text + INSTRUCTIONS


def reply_body(email: Email) -> str:
    """Body seeded into a reply draft: two spare lines, attribution, quote."""
    attribution = f"On {email.received_at}, {email.sender} wrote:"
    return f"\n\n{attribution}\n{quote_body(email.body())}\n"


def parse_draft(text: str) -> Draft:
    to = ""
    subject = ""
    headers: dict[str, str] = {}
    body_lines: list[str] = []
    in_headers = True

    for line in text.replace("\r\n", "\n").split("\n"):
        if in_headers:
            if not line.strip():
                in_headers = False
                continue
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key, value = key.strip(), value.strip()
            if key.lower() == "to":
                to = value
            elif key.lower() == "subject":
                subject = value
            elif key:
                headers[key] = value
        elif not line.strip().startswith("#"):
            body_lines.append(line)

    return Draft(to=to, subject=subject, headers=headers, body="\n".join(body_lines).strip())


def validate_draft(draft: Draft) -> None:
    """Raise DraftValidationError unless the draft has a usable To and Subject."""
    if not draft.to or "@" not in draft.to:
        raise DraftValidationError(
            "invalid recipient: To must be non-empty and contain @. Press 'c' to edit draft"
        )
    if not draft.subject:
        raise DraftValidationError(
            "invalid email: Subject must be non-empty. Press 'c' to edit draft"
        )


# ── Files and editor ───────────────────────────────────────────────────────────


def build_editor_command(editor: str, path: str) -> tuple[str, ...]:
    """Split an editor command line ("code --wait") and append the file path."""
    parts = editor.split() or [DEFAULT_EDITOR]
    return (*parts, path)


def create_draft_file(prefix: str, content: str) -> str:
    """Write ``content`` to a new temp file and return its path."""
    fd, path = tempfile.mkstemp(prefix=prefix, suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fp:
            fp.write(content)
    except OSError:
        remove_draft(path)
        raise
    logger.debug("Created draft %s", path)
    return path


def remove_draft(path: str) -> None:
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove draft %s: %s", path, exc)


# ── Workflow ───────────────────────────────────────────────────────────────────


def start_compose(
    model: Model,
    to: str = "",
    subject: str = "",
    headers: dict[str, str] | None = None,
) -> list[Command]:
    """Open a blank draft, or reopen the draft that is already in progress."""
    if model.compose is not None:
        if not model.compose.draft_path:
            return []
        logger.info("Resuming draft %s", model.compose.draft_path)
        return [_launch(model, model.compose.draft_path)]

    headers = dict(headers or {})
    return _open_session(model, "mercury-compose-", to, subject, headers, render_draft(to, subject, headers))


def start_reply(model: Model, email: Email | None) -> list[Command]:
    """Open a reply draft seeded from ``email``.  Ignored while a draft is open."""
    if model.compose is not None:
        model.status = "A draft is already open. Press 'c' to resume it"
        return []
    if email is None:
        return []

    to = extract_email_address(email.sender) or email.sender
    subject = normalize_reply_subject(email.subject)
    headers: dict[str, str] = {}
    if email.message_id:
        headers["In-Reply-To"] = email.message_id
        headers["References"] = email.message_id

    content = render_draft(to, subject, headers, reply_body(email))
    return _open_session(model, "mercury-reply-", to, subject, headers, content)


def finalize_draft(model: Model, path: str, error: str | None) -> list[Command]:
    """Handle the editor closing on ``path``: cancel, keep, or send the draft."""
    session = model.compose
    if session is None or session.draft_path != path:
        logger.debug("Ignoring editor exit for unknown draft %s", path)
        return []

    if error is not None:
        _discard(model)
        model.fail(error)
        return []

    try:
        text = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _discard(model)
        model.fail(f"read draft: {exc}")
        return []

    draft = parse_draft(text)
    if not draft.body:
        logger.info("Draft %s has no body; cancelled", path)
        _discard(model)
        return []

    try:
        validate_draft(draft)
    except DraftValidationError as exc:
        # The file and session stay so 'c' reopens the same draft.
        model.fail(str(exc))
        return []

    _discard(model)
    request = SendRequest(to=draft.to, subject=draft.subject, text=draft.body, headers=draft.headers)
    model.loading = True
    model.error = None
    model.status = "Sending..."
    return [SendEmail(client=model.client, request=request), *model.start_spinner()]


def _open_session(
    model: Model,
    prefix: str,
    to: str,
    subject: str,
    headers: dict[str, str],
    content: str,
) -> list[Command]:
    try:
        path = create_draft_file(prefix, content)
    except OSError as exc:
        model.fail(f"create draft: {exc}")
        return []
    model.compose = ComposeSession(to=to, subject=subject, headers=headers, draft_path=path)
    return [_launch(model, path)]


def _launch(model: Model, path: str) -> LaunchEditor:
    return LaunchEditor(argv=build_editor_command(model.editor, path), path=path)


def _discard(model: Model) -> None:
    if model.compose is not None and model.compose.draft_path:
        remove_draft(model.compose.draft_path)
    model.compose = None
