"""Login session state on top of the auth endpoints."""

import logging
from typing import Any

from ltcms_client.api import CmsApi
from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ApiError, ValidationError

logger = logging.getLogger(__name__)


class AuthService:
    """Tracks the authenticated user and keeps the session token in sync."""

    def __init__(self, api: CmsApi) -> None:
        self._api = api
        self.user: dict[str, Any] | None = None
        self.error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    async def check(self, *, cancel: CancellationToken | None = None) -> dict[str, Any] | None:
        """Re-hydrate the session from /auth/me.

        Any failure counts as unauthenticated. The token is only dropped for
        401 here; transient failures leave it in place.
        """
        try:
            user = await self._api.me(cancel=cancel)
        except ApiError as e:
            logger.info(f"Auth check failed: {e.message}")
            self.user = None
            if e.status == 401:
                self._api.gateway.session.clear()
            return None

        self.user = user if isinstance(user, dict) else None
        return self.user

    async def login(
        self,
        username: str,
        password: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        """Log in and return the user.

        Raises:
            ValidationError: If username is blank or the response has no user
            ApiError: If the request fails
        """
        self.error = None
        sanitized = username.strip()
        try:
            if not sanitized:
                raise ValidationError("Username is required")
            response = await self._api.login(sanitized, password, cancel=cancel)
            if not isinstance(response, dict) or not response.get("user"):
                raise ValidationError("Invalid response from server")
        except ApiError as e:
            self._api.gateway.session.clear()
            self.user = None
            self.error = e.message or "Invalid credentials"
            raise

        self._api.gateway.session.set(response.get("token"))
        self.user = response["user"]
        logger.info(f"Logged in as {sanitized}")
        return self.user

    async def logout(self, *, cancel: CancellationToken | None = None) -> None:
        """Log out; local state is cleared even if the request fails."""
        try:
            await self._api.logout(cancel=cancel)
        finally:
            self.user = None
