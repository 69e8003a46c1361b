"""Application state machine — the root of the TUI.

``Model.update`` is the only place state changes.  It handles one message at
a time, synchronously, and returns the commands it wants run.  Results come
back later as further messages, in whatever order they finish, so anything
that depends on "which email is selected" is re-checked by id when the
result arrives.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from mercury.api.types import Email
from mercury.config import DEFAULT_EDITOR, DEFAULT_FOLDER, DEFAULT_PAGE_SIZE
from mercury.tui import compose
from mercury.tui.commands import Command, DeleteEmail, FetchCatalog, FetchDetail, MarkRead, Quit
from mercury.tui.compose import ComposeSession
from mercury.tui.keys import KEYS
from mercury.tui.list_panel import ListPanel
from mercury.tui.messages import (
    CatalogFetched,
    Deleted,
    DetailFetched,
    EditorClosed,
    Failed,
    KeyPressed,
    MarkedRead,
    Msg,
    Resized,
    Sent,
    SpinnerTick,
)
from mercury.tui.preview_panel import PreviewPanel
from mercury.tui.spinner import SpinnerState

if TYPE_CHECKING:
    from mercury.api.client import MailClient

logger = logging.getLogger(__name__)

#: Rows taken by the status bar below the panels.
STATUS_HEIGHT = 1
#: Rows taken by a panel's top and bottom border.
BORDER_SIZE = 2


class Focus(Enum):
    LIST = "list"
    PREVIEW = "preview"


class Model:
    """All state for one TUI session.

    ``loading`` is a single flag rather than a counter: only one blocking
    operation is modelled at a time, and whichever result lands first clears
    it.

    Usage::

        model = Model(client)
        commands = model.init()
        ...
        commands = model.update(msg)
    """

    def __init__(
        self,
        client: MailClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        folder: str = DEFAULT_FOLDER,
        editor: str = DEFAULT_EDITOR,
    ) -> None:
        self.client = client
        self.page_size = page_size
        self.folder = folder
        self.editor = editor

        self.focus = Focus.LIST
        self.width = 0
        self.height = 0
        self.loading = True
        self.error: str | None = None
        self.status: str | None = None

        self.emails: list[Email] = []
        self.selected = 0
        self.current_email: Email | None = None
        self.compose: ComposeSession | None = None

        self.list = ListPanel()
        self.preview = PreviewPanel()
        self.spinner = SpinnerState()

    # ── Entry points ───────────────────────────────────────────────────────────

    def init(self) -> list[Command]:
        """Commands to run at startup: first page of the inbox plus the spinner."""
        return [self._fetch_catalog(), *self.start_spinner()]

    def update(self, msg: Msg) -> list[Command]:
        match msg:
            case KeyPressed(key=key, character=character):
                return self._on_key(key, character)
            case Resized(width=width, height=height):
                self._on_resize(width, height)
                return []
            case CatalogFetched(emails=emails):
                return self._on_catalog(emails)
            case DetailFetched(email=email):
                self._on_detail(email)
                return []
            case MarkedRead(email_id=email_id):
                self._on_marked_read(email_id)
                return []
            case Deleted(email_id=email_id):
                return self._on_deleted(email_id)
            case EditorClosed(path=path, error=error):
                return compose.finalize_draft(self, path, error)
            case Sent(message_id=message_id):
                self.loading = True
                self.error = None
                self.status = f"Sent {message_id}"
                return [self._fetch_catalog(), *self.start_spinner()]
            case Failed(error=error):
                self.fail(error)
                return []
            case SpinnerTick(tag=tag):
                return self._on_tick(tag)
        logger.warning("Unhandled message: %r", msg)
        return []

    # ── Helpers shared with the compose workflow ───────────────────────────────

    def fail(self, error: str) -> None:
        """Record a failure.  The status bar shows it until something clears it."""
        logger.warning("Operation failed: %s", error)
        self.loading = False
        self.error = error
        self.status = None

    def start_spinner(self) -> list[Command]:
        tick = self.spinner.start()
        return [tick] if tick is not None else []

    def selected_email(self) -> Email | None:
        return self.list.selected_email()

    # ── Keys ───────────────────────────────────────────────────────────────────

    def _on_key(self, key: str, character: str | None) -> list[Command]:
        self.status = None

        if key == "ctrl+c":
            return [Quit()]
        if self.focus is Focus.LIST and self.list.filtering:
            return self._list_navigate(key, character)

        if KEYS.quit.matches(key):
            return [Quit()]
        if KEYS.tab.matches(key):
            self.focus = Focus.PREVIEW if self.focus is Focus.LIST else Focus.LIST
            return []
        if KEYS.refresh.matches(key):
            self.loading = True
            self.error = None
            return [self._fetch_catalog(), *self.start_spinner()]
        if KEYS.mark_read.matches(key):
            selected = self.selected_email()
            if selected is None or selected.read:
                return []
            return self._busy(MarkRead(client=self.client, email_id=selected.id))
        if KEYS.delete.matches(key):
            selected = self.selected_email()
            if selected is None:
                return []
            return self._busy(DeleteEmail(client=self.client, email_id=selected.id))
        if KEYS.compose.matches(key):
            self.error = None
            return compose.start_compose(self)
        if KEYS.reply.matches(key):
            self.error = None
            return compose.start_reply(self, self.current_email)

        if self.focus is Focus.LIST:
            if KEYS.enter.matches(key):
                self.focus = Focus.PREVIEW
                return []
            return self._list_navigate(key, character)

        self.preview.update(key)
        return []

    def _list_navigate(self, key: str, character: str | None) -> list[Command]:
        """Let the list panel handle the key, then fetch detail if the selection moved.

        Up/down always re-check the detail against the selection, even when the
        cursor is pinned at either end; other keys only fetch when they moved it.
        """
        before = self.selected_email()
        self.list.update(key, character)
        selected = self.selected_email()
        if selected is None:
            return []
        self.selected = self._catalog_index(selected.id)
        moved = before is None or before.id != selected.id
        if not moved and not (KEYS.up.matches(key) or KEYS.down.matches(key)):
            return []
        if self.current_email is not None and self.current_email.id == selected.id:
            return []
        return self._busy(FetchDetail(client=self.client, email_id=selected.id))

    # ── Layout ─────────────────────────────────────────────────────────────────

    def list_width(self) -> int:
        return self.width // 3

    def preview_width(self) -> int:
        return max(self.width - self.list_width() - BORDER_SIZE, 0)

    def panel_height(self) -> int:
        content = max(self.height - STATUS_HEIGHT, 0)
        return max(content - BORDER_SIZE, 0)

    def _on_resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.list.set_size(self.list_width(), self.panel_height())
        self.preview.set_size(self.preview_width(), self.panel_height())

    # ── Command results ────────────────────────────────────────────────────────

    def _on_catalog(self, emails: list[Email]) -> list[Command]:
        self.loading = False
        self.error = None
        self.emails = list(emails)
        self.list.set_emails(self.emails)

        if not self.emails:
            self._clear_selection()
            return []

        if not 0 <= self.selected < len(self.emails):
            self.selected = 0
        self._select(self.selected)
        selected = self.selected_email()
        if selected is None:
            # Everything is filtered out; nothing to preview.
            return []
        return self._busy(FetchDetail(client=self.client, email_id=selected.id))

    def _on_detail(self, email: Email) -> None:
        self.loading = False
        self.error = None
        selected = self.selected_email()
        if selected is not None and selected.id != email.id:
            logger.debug("Discarding stale detail for email %d (selected %d)", email.id, selected.id)
            return
        self.current_email = email
        self.preview.set_email(email)

    def _on_marked_read(self, email_id: int) -> None:
        self.loading = False
        self.error = None
        for email in self.emails:
            if email.id == email_id:
                email.is_read = 1
                break
        if self.current_email is not None and self.current_email.id == email_id:
            self.current_email.is_read = 1
        self.list.set_emails(self.emails)
        if 0 <= self.selected < len(self.emails):
            self._select(self.selected)

    def _on_deleted(self, email_id: int) -> list[Command]:
        self.loading = False
        self.error = None
        idx = self._catalog_index(email_id, default=-1)
        if idx == -1:
            return []

        del self.emails[idx]
        self.list.set_emails(self.emails)
        if not self.emails:
            self._clear_selection()
            return []

        idx = min(idx, len(self.emails) - 1)
        self._select(idx)
        self.current_email = None
        self.preview.set_email(None)
        selected = self.selected_email()
        if selected is None:
            return []
        return self._busy(FetchDetail(client=self.client, email_id=selected.id))

    def _on_tick(self, tag: int) -> list[Command]:
        if not self.loading:
            self.spinner.stop()
            return []
        tick = self.spinner.advance(tag)
        return [tick] if tick is not None else []

    # ── Internal ───────────────────────────────────────────────────────────────

    def _busy(self, command: Command) -> list[Command]:
        self.loading = True
        self.error = None
        return [command, *self.start_spinner()]

    def _fetch_catalog(self) -> FetchCatalog:
        return FetchCatalog(client=self.client, limit=self.page_size, offset=0, folder=self.folder)

    def _catalog_index(self, email_id: int, default: int = 0) -> int:
        for i, email in enumerate(self.emails):
            if email.id == email_id:
                return i
        return default

    def _select(self, index: int) -> None:
        """Select catalog entry ``index`` in both the model and the list panel."""
        self.selected = index
        if not self.list.select_id(self.emails[index].id):
            # Filtered out of the visible rows; keep whatever the panel shows.
            selected = self.list.selected_email()
            if selected is not None:
                self.selected = self._catalog_index(selected.id)

    def _clear_selection(self) -> None:
        self.selected = 0
        self.current_email = None
        self.preview.set_email(None)
