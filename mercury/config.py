"""Runtime configuration for the terminal client, read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50
DEFAULT_FOLDER = "inbox"
DEFAULT_EDITOR = "vim"


def _int_from_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s %r; defaulting to %d", name, raw, default)
        return default
    if value <= 0:
        logger.warning("%s must be positive, got %d; defaulting to %d", name, value, default)
        return default
    return value


def editor_from_env() -> str:
    """Return the editor command line: $VISUAL, then $EDITOR, then vim."""
    for name in ("VISUAL", "EDITOR"):
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return DEFAULT_EDITOR


@dataclass
class TuiConfig:
    """Settings for one ``mercury tui`` session.

    CLI options override these after ``from_env()`` has run.
    """

    api_url: str = ""
    page_size: int = DEFAULT_PAGE_SIZE
    folder: str = DEFAULT_FOLDER
    editor: str = DEFAULT_EDITOR
    log_file: str = ""
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> TuiConfig:
        """Build TuiConfig from environment variables."""
        return cls(
            api_url=os.environ.get("MERCURY_API_URL", "").strip(),
            page_size=_int_from_env("MERCURY_PAGE_SIZE", DEFAULT_PAGE_SIZE),
            folder=os.environ.get("MERCURY_FOLDER", "").strip() or DEFAULT_FOLDER,
            editor=editor_from_env(),
            log_file=os.environ.get("MERCURY_LOG_FILE", "").strip(),
            log_level=os.environ.get("MERCURY_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )
