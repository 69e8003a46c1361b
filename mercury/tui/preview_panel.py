"""Preview panel — headers and plain-text body of the current email."""

import textwrap

from mercury.api.types import Email

PLACEHOLDER = "Select an email to preview"
NO_CONTENT = "(No content)"
HEADER_FIELDS = ("From", "To", "Subject", "Date")


class PreviewPanel:
    """Scrollable view of one email.

    Content is wrapped to the panel width whenever the email or the size
    changes, so ``lines`` is always ready to slice for display.
    """

    def __init__(self, width: int = 0, height: int = 0) -> None:
        self.width = width
        self.height = height
        self.email: Email | None = None
        self.lines: list[str] = []
        self.offset = 0

    def set_email(self, email: Email | None) -> None:
        self.email = email
        self.offset = 0
        self._render()

    def set_size(self, width: int, height: int) -> None:
        self.width = max(width, 0)
        self.height = max(height, 0)
        self._render()
        self._clamp()

    def headers(self) -> list[tuple[str, str]]:
        if self.email is None:
            return []
        e = self.email
        return list(zip(HEADER_FIELDS, (e.sender, e.recipient, e.subject, e.received_at)))

    def visible_lines(self) -> list[str]:
        if self.height <= 0:
            return self.lines[self.offset:]
        return self.lines[self.offset : self.offset + self.height]

    def update(self, key: str) -> None:
        if key in ("up", "k"):
            self.offset -= 1
        elif key in ("down", "j"):
            self.offset += 1
        elif key in ("pageup", "b"):
            self.offset -= max(self.height, 1)
        elif key in ("pagedown", "space", "f"):
            self.offset += max(self.height, 1)
        elif key in ("home", "g"):
            self.offset = 0
        elif key in ("end", "G"):
            self.offset = len(self.lines)
        self._clamp()

    # ── Internal ───────────────────────────────────────────────────────────────

    def _render(self) -> None:
        if self.email is None:
            self.lines = []
            return

        text_width = self._text_width()
        lines = [f"{label}: {value}" for label, value in self.headers()]
        lines.append("─" * max(self.width - 2, 0))
        lines.append("")

        body = self.email.body() or NO_CONTENT
        for paragraph in body.split("\n"):
            if text_width and len(paragraph) > text_width:
                lines.extend(textwrap.wrap(paragraph, text_width, replace_whitespace=False) or [""])
            else:
                lines.append(paragraph)
        self.lines = lines

    def _text_width(self) -> int:
        # One column of padding on each side.
        return max(self.width - 2, 0)

    def _clamp(self) -> None:
        max_offset = max(len(self.lines) - max(self.height, 1), 0)
        self.offset = min(max(self.offset, 0), max_offset)
