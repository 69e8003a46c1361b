"""List panel — the catalog as display rows, with a cursor and a filter."""

from dataclasses import dataclass

from mercury.api.types import Email

SENDER_WIDTH = 18
SUBJECT_WIDTH = 40


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters; a cut string ends in two dots."""
    if len(text) <= limit:
        return text
    return text[: max(limit - 2, 0)] + ".."


@dataclass(frozen=True)
class ListRow:
    email_id: int
    unread: bool
    title: str
    description: str


def make_row(email: Email) -> ListRow:
    marker = " " if email.read else "*"
    return ListRow(
        email_id=email.id,
        unread=not email.read,
        title=f"{marker} [{email.id:>3}] {truncate(email.sender, SENDER_WIDTH)}",
        description=truncate(email.subject, SUBJECT_WIDTH),
    )


class ListPanel:
    """Cursor and incremental filter over the catalog.

    ``index`` always points into the *visible* rows, i.e. the catalog after the
    filter has been applied.  Each row takes two lines on screen (title and
    subject), which is what ``height`` is measured against when scrolling.
    """

    LINES_PER_ROW = 2

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.width = width
        self.height = height
        self.emails: list[Email] = []
        self.index = 0
        self.offset = 0
        self.filter_text = ""
        self.filtering = False

    # ── Content ────────────────────────────────────────────────────────────────

    def set_emails(self, emails: list[Email]) -> None:
        """Replace the catalog, keeping the filter and clamping the cursor."""
        self.emails = list(emails)
        self._clamp()

    def visible(self) -> list[Email]:
        if not self.filter_text:
            return self.emails
        needle = self.filter_text.lower()
        return [e for e in self.emails if needle in f"{e.subject} {e.sender}".lower()]

    def rows(self) -> list[ListRow]:
        return [make_row(e) for e in self.visible()]

    def selected_email(self) -> Email | None:
        visible = self.visible()
        if not visible:
            return None
        return visible[self.index]

    def select(self, index: int) -> None:
        self.index = index
        self._clamp()

    def select_id(self, email_id: int) -> bool:
        """Move the cursor to the email with ``email_id``.  False if not visible."""
        for i, email in enumerate(self.visible()):
            if email.id == email_id:
                self.select(i)
                return True
        return False

    def set_size(self, width: int, height: int) -> None:
        self.width = max(width, 0)
        self.height = max(height, 0)
        self._scroll_to_cursor()

    def window(self) -> range:
        """Indices of the visible rows that fit on screen."""
        per_page = self._rows_per_page()
        end = min(self.offset + per_page, len(self.visible()))
        return range(self.offset, end)

    # ── Input ──────────────────────────────────────────────────────────────────

    def update(self, key: str, character: str | None = None) -> None:
        if self.filtering:
            self._update_filter(key, character)
            return

        if key in ("up", "k"):
            self.select(self.index - 1)
        elif key in ("down", "j"):
            self.select(self.index + 1)
        elif key in ("home", "g"):
            self.select(0)
        elif key in ("end", "G"):
            self.select(len(self.visible()) - 1)
        elif key == "pageup":
            self.select(self.index - self._rows_per_page())
        elif key == "pagedown":
            self.select(self.index + self._rows_per_page())
        elif key in ("slash", "/"):
            self.filtering = True
        elif key == "escape" and self.filter_text:
            self.filter_text = ""
            self._clamp()

    def _update_filter(self, key: str, character: str | None) -> None:
        if key == "escape":
            self.filtering = False
            self.filter_text = ""
        elif key == "enter":
            self.filtering = False
        elif key == "backspace":
            self.filter_text = self.filter_text[:-1]
        elif character and character.isprintable():
            self.filter_text += character
        self.index = 0
        self._clamp()

    # ── Internal ───────────────────────────────────────────────────────────────

    def _rows_per_page(self) -> int:
        # The first line of the panel is the title.
        return max((self.height - 1) // self.LINES_PER_ROW, 1)

    def _clamp(self) -> None:
        count = len(self.visible())
        if count == 0:
            self.index = 0
        else:
            self.index = min(max(self.index, 0), count - 1)
        self._scroll_to_cursor()

    def _scroll_to_cursor(self) -> None:
        per_page = self._rows_per_page()
        if self.index < self.offset:
            self.offset = self.index
        elif self.index >= self.offset + per_page:
            self.offset = self.index - per_page + 1
        self.offset = max(min(self.offset, max(len(self.visible()) - per_page, 0)), 0)
