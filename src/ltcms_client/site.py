"""Client composition root.

``SiteClient`` owns every piece of shared state of the data layer: the
session token, the gateway, the content store, the page cache, the dynamic
navigation and the tutorial list. Create one at application start and close
it at logout or shutdown.
"""

import asyncio
import logging
from types import TracebackType

import httpx

from ltcms_client.api import CmsApi
from ltcms_client.auth import AuthService
from ltcms_client.cancellation import CancellationToken
from ltcms_client.config import Config
from ltcms_client.content import NAVIGATION_SECTION, ContentStore
from ltcms_client.navigation import NavigationSource, ResolvedNavigation, resolve_navigation
from ltcms_client.pages import PublishedPageCache
from ltcms_client.session import SessionToken
from ltcms_client.transport import TransportGateway
from ltcms_client.tutorials import TutorialStore

logger = logging.getLogger(__name__)


class SiteClient:
    """Data layer facade used by the presentation layer."""

    def __init__(
        self,
        config: Config | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
        token: str | None = None,
    ) -> None:
        """Initialize client.

        Args:
            config: Configuration (default: all defaults)
            http_client: httpx client to use instead of a private one
            token: Initial bearer token
        """
        self.config = config or Config.default()
        self.session = SessionToken(token)
        self.gateway = TransportGateway.from_config(
            self.config.api,
            client=http_client,
            session=self.session,
        )
        self.api = CmsApi(self.gateway)
        self.auth = AuthService(self.api)
        self.content = ContentStore(self.api)
        self.pages = PublishedPageCache(self.api)
        self.navigation_source = NavigationSource(self.api)
        self.tutorials = TutorialStore(self.api, retry=self.config.retry)

    async def __aenter__(self) -> "SiteClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def start(self, *, cancel: CancellationToken | None = None) -> None:
        """Run the initial loads concurrently.

        Failures are recorded on the owning component (``error``) and
        never raised, except cancellation, which propagates as
        RequestCancelledError with every component left as it was.
        """
        logger.info(f"Connecting to {self.gateway.base_url}")
        await asyncio.gather(
            self.content.load(cancel=cancel),
            self.navigation_source.load(cancel=cancel),
            self.pages.refresh_published(cancel=cancel),
        )

    @property
    def navigation(self) -> ResolvedNavigation:
        """Navigation resolved from the current content, entries and slugs."""
        header = self.content.get_section(NAVIGATION_SECTION)
        if not isinstance(header, dict):
            header = self.content.get_default_section(NAVIGATION_SECTION) or {}
        static_items = header.get("navItems")
        return resolve_navigation(
            static_items if isinstance(static_items, list) else [],
            self.navigation_source.items,
            self.pages.published_slugs,
        )

    async def aclose(self) -> None:
        """Drop the session and cached pages and close the transport."""
        self.session.clear()
        self.pages.invalidate()
        await self.gateway.aclose()
