"""Site content store.

Server-provided sections override compiled-in defaults. The override is
whole-section: a section is either entirely the server value or entirely the
default, never a field-by-field merge. Partial edits are the caller's job.
"""

import copy
import logging
from collections import Counter
from typing import Any

from ltcms_client.api import CmsApi
from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ApiError, RequestCancelledError, ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONTENT: dict[str, Any] = {
    "hero": {
        "badgeText": "Professional IT knowledge",
        "icon": "Terminal",
        "title": {
            "line1": "IT Security, Programming",
            "line2": "& Administration",
        },
        "subtitle": "Your knowledge portal for IT topics, from security to system administration.",
        "subline": "Current, practical and easy to follow.",
        "heroImage": "",
        "primaryCta": {
            "label": "Explore topics",
            "target": {"type": "section", "value": "features"},
        },
        "secondaryCta": {
            "label": "Read the blog",
            "target": {"type": "route", "value": "/blog"},
        },
        "features": [
            {
                "icon": "Shield",
                "title": "IT Security",
                "description": "Security concepts and practices",
                "color": "from-blue-500 to-cyan-500",
            },
            {
                "icon": "Code",
                "title": "Programming",
                "description": "Software development and coding",
                "color": "from-purple-500 to-pink-500",
            },
            {
                "icon": "Server",
                "title": "IT Administration",
                "description": "System administration and DevOps",
                "color": "from-orange-500 to-red-500",
            },
        ],
    },
    "stats": {
        "items": [
            {"label": "Monthly readers", "value": "10k+"},
            {"label": "Articles", "value": "500+"},
            {"label": "Topics", "value": "20+"},
            {"label": "Community", "value": "Active"},
        ],
    },
    "cta_section": {
        "title": "Share and grow knowledge",
        "description": "Stay up to date with the latest developments in IT.",
    },
    "site_meta": {
        "title": "IT Knowledge Portal - Security, Programming & Admin",
        "description": "Your portal for IT security, programming and administration.",
    },
    "header": {
        "brand": {
            "name": "IT Portal",
            "tagline": "",
            "icon": "Terminal",
        },
        "navItems": [
            {"id": "features", "label": "Features", "type": "section", "value": "features"},
            {"id": "tutorial", "label": "Tutorial", "type": "route", "path": "/tutorial/getting-started"},
            {"id": "blog", "label": "Blog", "type": "route", "path": "/blog"},
            {"id": "about", "label": "About", "type": "route", "path": "/about"},
        ],
        "cta": {
            "guestLabel": "Login",
            "authLabel": "Admin",
            "icon": "Lock",
        },
    },
    "footer": {
        "brand": {
            "title": "IT Knowledge Portal",
            "description": "Your portal for IT security, programming and administration.",
            "icon": "Terminal",
        },
        "quickLinks": [
            {"label": "Home", "target": {"type": "section", "value": "home"}},
            {"label": "Blog", "target": {"type": "route", "value": "/blog"}},
        ],
        "contactLinks": [
            {"label": "GitHub", "href": "https://github.com", "icon": "Github"},
            {"label": "E-Mail", "href": "mailto:info@example.com", "icon": "Mail"},
        ],
        "bottom": {
            "copyright": "© {year} IT Knowledge Portal. All rights reserved.",
            "signature": "Made for IT Professionals",
        },
    },
    "login": {
        "title": "Linux Tutorial",
        "subtitle": "Admin Login",
        "icon": "Terminal",
        "buttonLabel": "Sign in",
        "usernameLabel": "Username",
        "passwordLabel": "Password",
        "backLinkText": "Back to home",
    },
}

CONTENT_SECTIONS: tuple[str, ...] = tuple(DEFAULT_CONTENT)

# Section whose "navItems" list feeds the static navigation entries.
NAVIGATION_SECTION = "header"


class ContentStore:
    """In-memory site content with per-section save tracking."""

    def __init__(self, api: CmsApi, defaults: dict[str, Any] | None = None) -> None:
        """Initialize store.

        Args:
            api: Endpoint access used for loading and saving sections
            defaults: Compiled-in defaults (default: DEFAULT_CONTENT)
        """
        self._api = api
        self._defaults = defaults if defaults is not None else DEFAULT_CONTENT
        self._overrides: dict[str, Any] = {}
        self._saving: Counter[str] = Counter()
        self.loading = False
        self.error: ApiError | None = None

    @property
    def content(self) -> dict[str, Any]:
        """Snapshot of every effective section."""
        keys = list(self._defaults) + [k for k in self._overrides if k not in self._defaults]
        return {key: self.get_section(key) for key in keys}

    @property
    def saving_sections(self) -> frozenset[str]:
        """Sections with at least one save in flight."""
        return frozenset(key for key, count in self._saving.items() if count > 0)

    def is_saving(self, section: str) -> bool:
        return self._saving[section] > 0

    def has_override(self, section: str) -> bool:
        """Whether the server has supplied a value for section."""
        return section in self._overrides

    def get_section(self, section: str) -> Any:
        """Return the server value for section if present, else its default.

        Returns a copy; None for an unknown section without default.
        """
        if section in self._overrides:
            return copy.deepcopy(self._overrides[section])
        return self.get_default_section(section)

    def get_default_section(self, section: str) -> Any:
        """Return the compiled-in default for section, ignoring overrides."""
        return copy.deepcopy(self._defaults.get(section))

    def get_site_meta(self) -> dict[str, Any]:
        return self.get_section("site_meta") or {}

    async def load(self, *, cancel: CancellationToken | None = None) -> None:
        """Fetch all sections from the server.

        The new overrides replace the old ones only after the whole response
        has been read. On failure the previous state is kept (all defaults on
        the first load) and the error is recorded in ``self.error``.
        Cancellation is re-raised and leaves the store untouched.
        """
        self.loading = True
        self.error = None
        try:
            data = await self._api.get_site_content(cancel=cancel)
        except RequestCancelledError:
            raise
        except ApiError as e:
            logger.warning(f"Failed to load site content: {e.message}")
            if e.status is None:
                e = ApiError("Site content could not be loaded.", status=500, cause=e)
            self.error = e
            return
        finally:
            self.loading = False

        overrides: dict[str, Any] = {}
        items = data.get("items") if isinstance(data, dict) else None
        for item in items or []:
            if isinstance(item, dict) and isinstance(item.get("section"), str):
                overrides[item["section"]] = item.get("content")
        self._overrides = overrides
        logger.info(f"Loaded {len(overrides)} content section(s) from server")

    async def update_section(
        self,
        section: str,
        value: Any,
        *,
        cancel: CancellationToken | None = None,
    ) -> Any:
        """Persist section and adopt the server's echoed value.

        While the save is in flight, get_section() keeps returning the
        previously committed value. On failure nothing is changed.

        Returns:
            The persisted value as echoed by the server

        Raises:
            ValidationError: If section is empty
            ApiError: If the save fails
        """
        if not section:
            raise ValidationError("Section is required")

        self._saving[section] += 1
        try:
            response = await self._api.update_site_content_section(
                section, value, cancel=cancel
            )
            if isinstance(response, dict) and "content" in response:
                persisted = response["content"]
            else:
                persisted = value
            self._overrides[section] = copy.deepcopy(persisted)
            logger.info(f"Saved content section '{section}'")
            return copy.deepcopy(persisted)
        finally:
            self._saving[section] -= 1
            if self._saving[section] <= 0:
                del self._saving[section]
