"""Published page cache.

Page bundles (page metadata plus posts) are cached by normalized slug and
gated by the set of slugs the server reports as published. The gate is a
client-side convenience, not a security boundary.
"""

import copy
import logging
from collections.abc import Iterable

from ltcms_client.api import CmsApi, PageBundleDict
from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ApiError, NotPublishedError, RequestCancelledError, ValidationError

logger = logging.getLogger(__name__)


def normalize_slug(slug: object) -> str:
    """Trim and lowercase a slug.

    Raises:
        ValidationError: If slug is not a string or is blank
    """
    if not isinstance(slug, str):
        raise ValidationError("Slug is required")
    normalized = slug.strip().lower()
    if not normalized:
        raise ValidationError("Slug is required")
    return normalized


def build_slug_set(values: Iterable[object]) -> frozenset[str]:
    """Normalize values into a slug set, dropping non-strings and blanks."""
    return frozenset(
        value.strip().lower()
        for value in values
        if isinstance(value, str) and value.strip()
    )


class PublishedPageCache:
    """Keyed cache of published page bundles."""

    def __init__(self, api: CmsApi) -> None:
        self._api = api
        self._entries: dict[str, PageBundleDict] = {}
        self._published: frozenset[str] = frozenset()
        self.loading = False
        self.error: ApiError | None = None

    @property
    def published_slugs(self) -> frozenset[str]:
        """Slugs currently known to be published."""
        return self._published

    @property
    def cached_slugs(self) -> frozenset[str]:
        return frozenset(self._entries)

    def is_published(self, slug: str) -> bool:
        return slug in self._published

    def get_cached(self, slug: str) -> PageBundleDict | None:
        """Return a copy of the cached bundle for slug without fetching."""
        entry = self._entries.get(normalize_slug(slug))
        return copy.deepcopy(entry) if entry is not None else None

    async def refresh_published(
        self, *, cancel: CancellationToken | None = None
    ) -> frozenset[str]:
        """Reload the published slug set.

        On failure the previous set is kept and the error is recorded in
        ``self.error``. Cancellation is re-raised without recording anything.
        """
        self.loading = True
        self.error = None
        try:
            data = await self._api.list_published_pages(cancel=cancel)
        except RequestCancelledError:
            raise
        except ApiError as e:
            logger.warning(f"Failed to load published pages: {e.message}")
            self.error = e
            return self._published
        finally:
            self.loading = False

        self._published = build_slug_set(data if isinstance(data, list) else [])
        logger.info(f"{len(self._published)} published page(s)")
        return self._published

    async def fetch(
        self,
        slug: str,
        *,
        force: bool = False,
        cancel: CancellationToken | None = None,
    ) -> PageBundleDict:
        """Return the bundle for slug, from cache when possible.

        Args:
            slug: Page slug; trimmed and lowercased before use
            force: Skip the cache and the published gate, always refetch
            cancel: Optional cancellation token

        Returns:
            Copy of the page bundle

        Raises:
            ValidationError: If slug is blank
            NotPublishedError: If slug is not published
            ApiError: If the fetch fails and no stale entry can be served
        """
        key = normalize_slug(slug)

        if not force:
            cached = self._entries.get(key)
            if cached is not None:
                return copy.deepcopy(cached)

            if key not in self._published:
                await self.refresh_published(cancel=cancel)
                if cancel is not None and cancel.cancelled:
                    raise RequestCancelledError()
                if key not in self._published:
                    raise NotPublishedError()

        try:
            data = await self._api.get_published_page(key, cancel=cancel)
        except RequestCancelledError:
            raise
        except ApiError as e:
            stale = self._entries.get(key)
            if not force and stale is not None:
                logger.warning(f"Serving cached page '{key}' after fetch failure: {e.message}")
                return copy.deepcopy(stale)
            if key not in self._published:
                raise NotPublishedError(cause=e) from e
            raise

        self._entries[key] = data
        return copy.deepcopy(data)

    def invalidate(self, slug: str | None = None) -> None:
        """Drop the entry for slug, or every entry when slug is None."""
        if slug is None:
            self._entries.clear()
            return

        if not isinstance(slug, str) or not slug.strip():
            return
        self._entries.pop(slug.strip().lower(), None)
