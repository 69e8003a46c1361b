"""Commands — asynchronous work requested by the state machine.

``Model.update`` never performs I/O itself; it returns Command objects and the
dispatcher runs them.  Each command resolves to exactly one message (or none
for Quit), which goes back onto the program's queue.  Commands are plain
dataclasses so tests can inspect what the model asked for without running
anything.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx

from mercury.api.client import APIError
from mercury.api.types import SendRequest
from mercury.tui.messages import (
    CatalogFetched,
    Deleted,
    DetailFetched,
    EditorClosed,
    Failed,
    MarkedRead,
    Msg,
    Sent,
    SpinnerTick,
)

if TYPE_CHECKING:
    from mercury.api.client import MailClient

logger = logging.getLogger(__name__)


class EditorError(Exception):
    """Raised when the external editor cannot be started or exits non-zero."""


def describe_error(exc: BaseException) -> str:
    """Human-readable text for a command failure, shown in the status bar."""
    if isinstance(exc, httpx.RequestError):
        return f"request failed: {exc or type(exc).__name__}"
    if isinstance(exc, APIError):
        if exc.is_unauthorized:
            return f"{exc} (check MERCURY_API_SECRET)"
        if exc.is_not_found:
            return f"{exc} (press r to refresh)"
        if exc.is_rate_limited:
            return f"{exc} (rate limited, try again shortly)"
    return str(exc) or type(exc).__name__


class Command:
    """Base class.  Subclasses implement ``run``."""

    #: True when the command needs the terminal to itself (the editor).
    suspends_terminal = False

    async def run(self) -> Msg | None:
        raise NotImplementedError


# ── API commands ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class FetchCatalog(Command):
    client: MailClient = field(repr=False, compare=False)
    limit: int = 50
    offset: int = 0
    folder: str = "inbox"

    async def run(self) -> Msg:
        page = await self.client.list_emails(self.limit, self.offset, self.folder)
        logger.debug("Fetched %d of %d email(s)", len(page.emails), page.total)
        return CatalogFetched(emails=page.emails, total=page.total)


@dataclass(frozen=True)
class FetchDetail(Command):
    client: MailClient = field(repr=False, compare=False)
    email_id: int = 0

    async def run(self) -> Msg:
        return DetailFetched(email=await self.client.get_email(self.email_id))


@dataclass(frozen=True)
class MarkRead(Command):
    client: MailClient = field(repr=False, compare=False)
    email_id: int = 0

    async def run(self) -> Msg:
        await self.client.mark_as_read(self.email_id)
        return MarkedRead(email_id=self.email_id)


@dataclass(frozen=True)
class DeleteEmail(Command):
    """Soft delete unless ``permanent`` is set."""

    client: MailClient = field(repr=False, compare=False)
    email_id: int = 0
    permanent: bool = False

    async def run(self) -> Msg:
        await self.client.delete_email(self.email_id, permanent=self.permanent)
        return Deleted(email_id=self.email_id)


@dataclass(frozen=True)
class SendEmail(Command):
    client: MailClient = field(repr=False, compare=False)
    request: SendRequest

    async def run(self) -> Msg:
        response = await self.client.send_email(self.request)
        if not response.success:
            return Failed(error=f"send failed: {response.error or 'server reported failure'}")
        return Sent(message_id=response.message_id)


# ── Local commands ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Tick(Command):
    """Sleep one spinner interval, then report a tick for chain ``tag``."""

    tag: int
    interval: float = 0.1

    async def run(self) -> Msg:
        await asyncio.sleep(self.interval)
        return SpinnerTick(tag=self.tag)


@dataclass(frozen=True)
class LaunchEditor(Command):
    """Run the external editor on a draft file.

    Executed synchronously by the dispatcher while the terminal is suspended,
    so ``run_blocking`` is the real entry point.
    """

    argv: tuple[str, ...]
    path: str

    suspends_terminal = True

    async def run(self) -> Msg:
        return self.run_blocking()

    def run_blocking(self) -> EditorClosed:
        try:
            _run_editor(list(self.argv))
        except EditorError as exc:
            logger.warning("Editor failed on %s: %s", self.path, exc)
            return EditorClosed(path=self.path, error=str(exc))
        return EditorClosed(path=self.path)


def _run_editor(argv: list[str]) -> None:
    logger.info("Launching editor: %s", argv)
    try:
        completed = subprocess.run(argv, check=False)
    except OSError as exc:
        raise EditorError(f"launch editor {argv[0]!r}: {exc}") from exc
    if completed.returncode != 0:
        raise EditorError(f"editor {argv[0]!r} exited with status {completed.returncode}")


@dataclass(frozen=True)
class Quit(Command):
    """Stop the program loop."""

    async def run(self) -> None:
        return None
