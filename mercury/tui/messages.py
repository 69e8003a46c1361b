"""Messages consumed by the TUI state machine.

Everything that can change the application state arrives as one of these:
terminal input, a timer tick, or the result of a finished command.  The set
is closed; ``Model.update`` matches on each type explicitly.
"""

from dataclasses import dataclass, field

from mercury.api.types import Email


# ── Terminal input ─────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class KeyPressed:
    """A key press.  ``key`` uses Textual key names ("up", "ctrl+c", "R")."""

    key: str
    character: str | None = None


@dataclass(frozen=True)
class Resized:
    width: int
    height: int


@dataclass(frozen=True)
class SpinnerTick:
    """Animation tick.  ``tag`` ties it to the tick chain that scheduled it."""

    tag: int


# ── Command results ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CatalogFetched:
    emails: list[Email] = field(default_factory=list)
    total: int = 0


@dataclass(frozen=True)
class DetailFetched:
    email: Email


@dataclass(frozen=True)
class MarkedRead:
    email_id: int


@dataclass(frozen=True)
class Deleted:
    email_id: int


@dataclass(frozen=True)
class EditorClosed:
    """The external editor exited.  ``error`` is None on a clean exit."""

    path: str
    error: str | None = None


@dataclass(frozen=True)
class Sent:
    message_id: str


@dataclass(frozen=True)
class Failed:
    """Any command failure, carried as display text."""

    error: str


Msg = (
    KeyPressed
    | Resized
    | SpinnerTick
    | CatalogFetched
    | DetailFetched
    | MarkedRead
    | Deleted
    | EditorClosed
    | Sent
    | Failed
)
