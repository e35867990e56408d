"""Navigation resolution.

Merges the static entries of the site header with the dynamic entries the
server derives from published pages. Resolution is a pure function of its
inputs and is recomputed on every access.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal, TypedDict
from urllib.parse import urlsplit

from ltcms_client.api import CmsApi, PublicNavItemDict
from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ApiError, RequestCancelledError
from ltcms_client.pages import build_slug_set

logger = logging.getLogger(__name__)

NavKind = Literal["route", "section", "external"]

SAFE_URL_SCHEMES = frozenset({"http", "https", "mailto", "tel"})


class NavItemDict(TypedDict, total=False):
    """Dictionary representation of a navigation item."""

    id: str
    label: str
    kind: str
    target: str | None
    source: str
    slug: str
    order_index: int


@dataclass
class NavItem:
    """Normalized navigation entry."""

    id: str
    label: str
    kind: NavKind
    target: str | None
    source: str = "static"
    slug: str | None = None
    order_index: int | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> NavItemDict:
        """Convert to dictionary for JSON serialization.

        Static items keep their original fields alongside the normalized ones.
        """
        result: dict[str, Any] = dict(self.raw)
        result.update(
            {
                "id": self.id,
                "label": self.label,
                "kind": self.kind,
                "target": self.target,
                "source": self.source,
            }
        )
        if self.slug is not None:
            result["slug"] = self.slug
        if self.order_index is not None:
            result["order_index"] = self.order_index
        return result  # type: ignore[return-value]


@dataclass
class ResolvedNavigation:
    """Static and dynamic navigation lists."""

    static: list[NavItem]
    dynamic: list[NavItem]

    @property
    def items(self) -> list[NavItem]:
        """Static items followed by dynamic items."""
        return [*self.static, *self.dynamic]

    def to_dict(self) -> dict[str, list[NavItemDict]]:
        return {
            "static": [item.to_dict() for item in self.static],
            "dynamic": [item.to_dict() for item in self.dynamic],
            "items": [item.to_dict() for item in self.items],
        }


def sanitize_external_url(value: object) -> str | None:
    """Return value if it is a safe link target, else None.

    Allows fragments, relative paths and http/https/mailto/tel URLs.
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if candidate.startswith("#"):
        return candidate
    if candidate.startswith("/") and not candidate.startswith("//"):
        return candidate
    scheme = urlsplit(candidate).scheme.lower()
    if scheme in SAFE_URL_SCHEMES:
        return candidate
    return None


def build_page_path(value: object) -> str | None:
    """Build a route for a page target: "/pages/<slug>" unless already absolute."""
    if isinstance(value, dict):
        value = value.get("slug") or value.get("path") or value.get("value")
    if not isinstance(value, str) or not value.strip():
        return None
    trimmed = value.strip()
    return trimmed if trimmed.startswith("/") else f"/pages/{trimmed}"


def resolve_target(target: object) -> tuple[NavKind, str | None] | None:
    """Resolve a content target object into a (kind, target) pair.

    Targets look like ``{"type": "route", "value": "/blog"}``. Types ``page``
    map to routes under /pages, ``href`` to external links. Unsafe external
    URLs resolve to a None target. Returns None for unknown types.
    """
    if not isinstance(target, dict) or not target.get("type"):
        return None

    value = target.get("value")
    if value is None:
        value = target.get("path")
    if value is None:
        value = target.get("href")

    match target["type"]:
        case "section":
            if isinstance(value, int | float) and not isinstance(value, bool):
                value = str(value)
            section_id = value.strip() if isinstance(value, str) else ""
            return "section", section_id or None
        case "route":
            return "route", value if isinstance(value, str) else None
        case "page":
            return "route", build_page_path(value)
        case "external" | "href":
            safe_url = sanitize_external_url(value)
            if safe_url is None:
                logger.warning(f"Blocked unsafe navigation target: {value!r}")
            return "external", safe_url
        case _:
            return None


def _normalize_static(item: dict[str, Any], index: int) -> NavItem:
    item_id = item.get("id") or item.get("slug") or item.get("path") or f"static-{index}"
    resolved = resolve_target(item)
    if resolved is None and isinstance(item.get("target"), dict):
        resolved = resolve_target(item["target"])
    kind, target = resolved if resolved is not None else ("route", item.get("path"))
    return NavItem(
        id=str(item_id),
        label=str(item.get("label") or ""),
        kind=kind,
        target=target,
        source=item.get("source") or "static",
        raw=dict(item),
    )


def _sort_key(value: object) -> float:
    """Numeric sort position; anything non-numeric sorts as 0."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return 0
    return value


def resolve_navigation(
    static_items: Iterable[object],
    dynamic_items: Iterable[object],
    published_slugs: Iterable[object],
) -> ResolvedNavigation:
    """Derive the effective navigation.

    Args:
        static_items: Entries from the content store, kept verbatim
        dynamic_items: Entries from the server navigation endpoint
        published_slugs: Currently published slugs; an empty set means
            "not loaded yet" and disables the published filter

    Returns:
        ResolvedNavigation with static items first, then dynamic items
        sorted by ``order_index`` (ties keep server order)
    """
    static = [
        _normalize_static(item, index)
        for index, item in enumerate(static_items)
        if isinstance(item, dict)
    ]

    published = build_slug_set(published_slugs)
    candidates: list[tuple[str, dict[str, Any]]] = []
    for item in dynamic_items:
        if not isinstance(item, dict) or not isinstance(item.get("slug"), str):
            continue
        slug = item["slug"].strip().lower()
        if not slug:
            continue
        if published and slug not in published:
            continue
        candidates.append((slug, item))

    candidates.sort(key=lambda pair: _sort_key(pair[1].get("order_index")))

    dynamic = []
    for index, (slug, item) in enumerate(candidates):
        order_index = item.get("order_index")
        dynamic.append(
            NavItem(
                id=str(item.get("id") or f"page-{slug}-{index}"),
                label=str(item.get("label") or item["slug"] or "Page"),
                kind="route",
                target=f"/pages/{slug}",
                source="dynamic",
                slug=slug,
                order_index=order_index if order_index is not None else index,
            )
        )

    return ResolvedNavigation(static=static, dynamic=dynamic)


class NavigationSource:
    """Holder for the dynamic navigation entries reported by the server."""

    def __init__(self, api: CmsApi) -> None:
        self._api = api
        self._items: list[PublicNavItemDict] = []
        self.loading = False
        self.error: ApiError | None = None

    @property
    def items(self) -> list[PublicNavItemDict]:
        return [dict(item) for item in self._items]  # type: ignore[misc]

    async def load(self, *, cancel: CancellationToken | None = None) -> None:
        """Fetch dynamic entries; on failure keep the previous ones."""
        self.loading = True
        self.error = None
        try:
            data = await self._api.get_navigation(cancel=cancel)
        except RequestCancelledError:
            raise
        except ApiError as e:
            logger.warning(f"Failed to load dynamic navigation: {e.message}")
            self.error = e
            return
        finally:
            self.loading = False

        items = data.get("items") if isinstance(data, dict) else None
        self._items = list(items) if isinstance(items, list) else []
        logger.info(f"Loaded {len(self._items)} dynamic navigation item(s)")
