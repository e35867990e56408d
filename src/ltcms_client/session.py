"""Holder for the current bearer credential."""

import logging

logger = logging.getLogger(__name__)


class SessionToken:
    """Mutable slot for the session bearer token.

    The slot either holds a non-blank string or nothing. It is set on login,
    cleared on logout, and cleared by the transport on 401/403 responses.
    Expiry is enforced by the server only.
    """

    def __init__(self, token: object = None) -> None:
        self._token: str | None = None
        if token is not None:
            self.set(token)

    def set(self, token: object) -> None:
        """Store token, or clear the slot if token is not a non-blank string."""
        if token is None:
            logger.debug("Session token set to None; clearing")
            self._token = None
            return

        if isinstance(token, str) and token.strip():
            self._token = token
            return

        logger.warning(f"Attempted to set invalid session token ({type(token).__name__}); clearing")
        self._token = None

    def get(self) -> str | None:
        """Return the current token or None."""
        return self._token

    def clear(self) -> None:
        """Drop the current token."""
        if self._token is not None:
            logger.info("Session token cleared")
        self._token = None

    def __bool__(self) -> bool:
        return self._token is not None
