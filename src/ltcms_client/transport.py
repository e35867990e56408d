"""Transport gateway for the content API.

Wraps an ``httpx.AsyncClient`` and adds the request lifecycle shared by every
API call: timeout and cancellation, bearer authentication, anti-forgery
header, body encoding and uniform error classification. Each call performs
exactly one network attempt.
"""

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import httpx

from ltcms_client.cancellation import CancellationToken
from ltcms_client.config import DEFAULT_CSRF_COOKIE, ApiConfig
from ltcms_client.errors import (
    ApiError,
    AuthorizationError,
    HttpError,
    NetworkError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseParseError,
    is_auth_status,
)
from ltcms_client.session import SessionToken

logger = logging.getLogger(__name__)

LOCAL_FALLBACK_URL = "http://localhost:8489/api"
CSRF_HEADER_NAME = "x-csrf-token"
SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
DEFAULT_TIMEOUT = 15.0


@dataclass
class FormPayload:
    """Form body: url-encoded fields, or multipart when files are present.

    ``files`` maps a field name to ``(filename, data, content_type)``.
    """

    fields: dict[str, str] = field(default_factory=dict)
    files: dict[str, tuple[str, bytes, str]] = field(default_factory=dict)


def resolve_api_base_url(api_config: ApiConfig) -> str:
    """Compute the absolute API base URL.

    Priority: explicit ``base_url``, then ``<origin><base_path>/api`` for an
    http(s) origin, then the local development fallback.
    """
    if api_config.base_url:
        return api_config.base_url.rstrip("/")

    origin = api_config.origin
    if origin and origin.startswith(("http://", "https://")):
        try:
            resolved = httpx.URL(origin).join(api_config.base_path or "/")
            pathname = resolved.path.rstrip("/")
            return f"{resolved.scheme}://{resolved.netloc.decode('ascii')}{pathname}/api"
        except httpx.InvalidURL as e:
            logger.warning(f"Failed to resolve base path {api_config.base_path!r}: {e}")
            return f"{origin.rstrip('/')}/api"

    return LOCAL_FALLBACK_URL


class TransportGateway:
    """Single-attempt HTTP gateway with uniform error handling."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        session: SessionToken | None = None,
        base_url: str | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        csrf_cookie: str = DEFAULT_CSRF_COOKIE,
        cache_bust: bool = False,
    ) -> None:
        """Initialize gateway.

        Args:
            client: httpx AsyncClient to send requests with; one is created
                (and closed by aclose()) when omitted
            session: Session token holder read for the Authorization header
            base_url: Absolute API base URL (default: local fallback)
            timeout: Default per-request timeout in seconds
            csrf_cookie: Name of the cookie holding the anti-forgery token
            cache_bust: Append a timestamp parameter to GET requests by default
        """
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=None)
        self.session = session if session is not None else SessionToken()
        self.base_url = (base_url or LOCAL_FALLBACK_URL).rstrip("/")
        self.timeout = timeout
        self.csrf_cookie = csrf_cookie
        self.cache_bust = cache_bust

    @classmethod
    def from_config(
        cls,
        api_config: ApiConfig,
        *,
        client: httpx.AsyncClient | None = None,
        session: SessionToken | None = None,
    ) -> "TransportGateway":
        """Create a gateway from the api configuration section."""
        return cls(
            client,
            session=session,
            base_url=resolve_api_base_url(api_config),
            timeout=api_config.timeout,
            csrf_cookie=api_config.csrf_cookie,
            cache_bust=api_config.cache_bust,
        )

    async def aclose(self) -> None:
        """Close the underlying client if this gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def send(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
        cancel: CancellationToken | None = None,
        credentials: bool = True,
        cache: bool = False,
        cache_bust: bool | None = None,
    ) -> Any:
        """Send one request and return the parsed body.

        Args:
            endpoint: Path relative to the API base URL (e.g. "/content")
            method: HTTP method
            body: dict/list (sent as JSON), str or bytes (sent as-is),
                or FormPayload
            headers: Extra headers; they override the defaults
            params: Query parameters
            timeout: Seconds before the request is aborted with status 408
            cancel: Token that aborts the request with status 0
            credentials: Send cookies with the request
            cache: Allow intermediary caching (adds no Cache-Control header)
            cache_bust: Append "_ts" to GET requests (default: gateway setting)

        Returns:
            Parsed JSON body, ``{"message": text}`` for non-JSON bodies,
            or None for empty responses

        Raises:
            ApiError: On any failure; see ltcms_client.errors
        """
        method = method.upper()
        timeout = self.timeout if timeout is None else timeout

        if cancel is not None and cancel.cancelled:
            raise RequestCancelledError()

        request = self._build_request(
            endpoint,
            method=method,
            body=body,
            headers=headers,
            params=params,
            credentials=credentials,
            cache=cache,
            cache_bust=self.cache_bust if cache_bust is None else cache_bust,
        )
        logger.debug(f"{method} {request.url}")

        try:
            response = await self._dispatch(request, timeout, cancel)
            return self._classify(response)
        except ApiError as e:
            if is_auth_status(e.status):
                self.session.clear()
            if isinstance(e, RequestCancelledError):
                logger.info(f"{method} {endpoint} cancelled")
            else:
                logger.error(f"API error on {method} {endpoint}: {e.message} (status={e.status})")
            raise

    def _build_request(
        self,
        endpoint: str,
        *,
        method: str,
        body: Any,
        headers: dict[str, str] | None,
        params: dict[str, Any] | None,
        credentials: bool,
        cache: bool,
        cache_bust: bool,
    ) -> httpx.Request:
        merged = httpx.Headers()
        token = self.session.get()
        if token:
            merged["Authorization"] = f"Bearer {token}"
        for key, value in (headers or {}).items():
            if value is not None:
                merged[key] = value

        if not cache and "cache-control" not in merged:
            merged["Cache-Control"] = "no-store"

        content: str | bytes | None = None
        data: dict[str, str] | None = None
        files: dict[str, tuple[str, bytes, str]] | None = None
        if isinstance(body, FormPayload):
            data = body.fields or None
            files = body.files or None
        elif isinstance(body, bytes | bytearray | memoryview):
            content = bytes(body)
        elif isinstance(body, str):
            content = body
        elif body is not None:
            content = json.dumps(body)
            if "content-type" not in merged:
                merged["Content-Type"] = "application/json"

        if method not in SAFE_METHODS and CSRF_HEADER_NAME not in merged:
            csrf_token = self._read_cookie(self.csrf_cookie)
            if csrf_token:
                merged[CSRF_HEADER_NAME] = csrf_token

        query = dict(params or {})
        if cache_bust and method == "GET":
            query["_ts"] = int(time.time() * 1000)

        request = self._client.build_request(
            method,
            f"{self.base_url}{endpoint}",
            params=query or None,
            headers=merged,
            content=content,
            data=data,
            files=files,
        )
        if not credentials:
            request.headers.pop("Cookie", None)
        return request

    async def _dispatch(
        self,
        request: httpx.Request,
        timeout: float,
        cancel: CancellationToken | None,
    ) -> httpx.Response:
        """Run the request racing the timeout and the cancellation token.

        Whichever finishes first wins; the timer and the cancellation waiter
        are always released before returning.
        """
        request_task = asyncio.ensure_future(self._client.send(request))
        cancel_task = asyncio.ensure_future(cancel.wait()) if cancel is not None else None
        waiters: set[asyncio.Future[Any]] = {request_task}
        if cancel_task is not None:
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if request_task not in done:
                if cancel is not None and cancel.cancelled:
                    raise RequestCancelledError()
                raise RequestTimeoutError()

            try:
                return request_task.result()
            except httpx.TimeoutException as e:
                raise RequestTimeoutError(cause=e) from e
            except httpx.HTTPError as e:
                raise NetworkError(f"Network error: {e}", cause=e) from e
        finally:
            if cancel_task is not None and not cancel_task.done():
                cancel_task.cancel()
            if not request_task.done():
                request_task.cancel()
                await asyncio.gather(request_task, return_exceptions=True)

    def _classify(self, response: httpx.Response) -> Any:
        status = response.status_code
        ok = response.is_success
        reason = response.reason_phrase or "Request failed"

        if status in (204, 205) or response.headers.get("content-length") == "0":
            if not ok:
                raise _http_error(reason, status)
            return None

        content_type = response.headers.get("content-type", "").lower()
        payload: Any
        if "application/json" in content_type:
            try:
                payload = response.json()
            except ValueError as e:
                raise ResponseParseError(
                    "Invalid JSON response from server",
                    status=status,
                    cause=e,
                ) from e
        else:
            text = response.text
            if "text/html" in content_type and not ok:
                payload = {"message": "Server error"}
            else:
                payload = {"message": text} if text else None

        if not ok:
            raise _http_error(_error_message(payload) or reason, status)

        return payload

    def _read_cookie(self, name: str) -> str | None:
        for cookie in self._client.cookies.jar:
            if cookie.name == name and cookie.value:
                return cookie.value
        return None


def _http_error(message: str, status: int) -> HttpError:
    if is_auth_status(status):
        return AuthorizationError(message, status)
    return HttpError(message, status)


def _error_message(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    for key in ("error", "message"):
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None
