"""Error taxonomy for the content API client.

Every failure surfaced by this package is an ``ApiError`` carrying a message,
an optional numeric HTTP-like ``status`` and an optional ``cause``. Subclasses
let callers branch on the kind of failure instead of inspecting ``status``.
"""


class ApiError(Exception):
    """Base error for all client failures."""

    def __init__(
        self,
        message: str,
        status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.cause = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status={self.status!r})"


class NetworkError(ApiError):
    """The request never produced a response (DNS, connection, protocol)."""


class RequestCancelledError(ApiError):
    """The caller cancelled the request."""

    def __init__(self, message: str = "Request aborted", cause: BaseException | None = None) -> None:
        super().__init__(message, status=0, cause=cause)


class RequestTimeoutError(ApiError):
    """The request did not complete within its timeout."""

    def __init__(self, message: str = "Request timed out", cause: BaseException | None = None) -> None:
        super().__init__(message, status=408, cause=cause)


class HttpError(ApiError):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, status: int, cause: BaseException | None = None) -> None:
        super().__init__(message, status=status, cause=cause)


class AuthorizationError(HttpError):
    """The server rejected the credentials (401 or 403)."""


class ResponseParseError(ApiError):
    """The server declared a JSON body that could not be parsed."""


class ValidationError(ApiError):
    """A call argument was rejected locally before any request was made."""

    code = "validation"

    def __init__(self, message: str) -> None:
        super().__init__(message, status=None)


class NotPublishedError(HttpError):
    """The requested page is not published or no longer exists."""

    def __init__(
        self,
        message: str = "Page is not published or has been removed.",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, status=404, cause=cause)


def is_auth_status(status: int | None) -> bool:
    """Return True for statuses that invalidate the session token."""
    return status in (401, 403)
