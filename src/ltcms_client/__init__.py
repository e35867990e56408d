"""Client-side data access layer for ltcms content sites.

Talks to the remote content API and keeps a consistent in-memory view of
site sections, navigation and published pages.
"""

from .api import CmsApi
from .cancellation import CancellationToken
from .config import Config
from .content import CONTENT_SECTIONS, DEFAULT_CONTENT, ContentStore
from .errors import (
    ApiError,
    AuthorizationError,
    HttpError,
    NetworkError,
    NotPublishedError,
    RequestCancelledError,
    RequestTimeoutError,
    ResponseParseError,
    ValidationError,
)
from .navigation import NavItem, ResolvedNavigation, resolve_navigation
from .pages import PublishedPageCache, normalize_slug
from .retry import load_with_retry
from .session import SessionToken
from .site import SiteClient
from .transport import FormPayload, TransportGateway, resolve_api_base_url

__all__ = [
    "CONTENT_SECTIONS",
    "DEFAULT_CONTENT",
    "ApiError",
    "AuthorizationError",
    "CancellationToken",
    "CmsApi",
    "Config",
    "ContentStore",
    "FormPayload",
    "HttpError",
    "NavItem",
    "NetworkError",
    "NotPublishedError",
    "PublishedPageCache",
    "RequestCancelledError",
    "RequestTimeoutError",
    "ResolvedNavigation",
    "ResponseParseError",
    "SessionToken",
    "SiteClient",
    "TransportGateway",
    "ValidationError",
    "load_with_retry",
    "normalize_slug",
    "resolve_api_base_url",
    "resolve_navigation",
]
