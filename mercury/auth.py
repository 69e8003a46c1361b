"""Credential provider — resolves the bearer secret for the Mail API."""

import logging
import os

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when no API secret can be found."""


def get_secret() -> str:
    """Return the API secret from MERCURY_API_SECRET.

    Call after ``load_dotenv()`` so a project-local ``.env`` is honoured.
    """
    secret = os.environ.get("MERCURY_API_SECRET", "").strip()
    if not secret:
        raise AuthError(
            "MERCURY_API_SECRET is not set; export it or add it to a .env file"
        )
    logger.debug("API secret loaded from environment")
    return secret
