"""Tests for navigation resolution."""

import asyncio

import httpx
import pytest

from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import RequestCancelledError
from ltcms_client.navigation import (
    NavigationSource,
    build_page_path,
    resolve_navigation,
    resolve_target,
    sanitize_external_url,
)


class TestResolveNavigation:
    """Tests for resolve_navigation()."""

    def test__only_published_dynamic_items__kept(self) -> None:
        """Filter dynamic items to the published slugs."""
        result = resolve_navigation(
            [{"id": "a", "label": "A", "type": "route", "path": "/a"}],
            [{"slug": "x", "label": "X"}, {"slug": "y", "label": "Y"}],
            ["x"],
        )

        assert [item.slug for item in result.dynamic] == ["x"]
        assert result.dynamic[0].target == "/pages/x"
        assert result.dynamic[0].kind == "route"

    def test__empty_published_set__disables_filter(self) -> None:
        """Treat an empty slug set as not loaded yet."""
        result = resolve_navigation([], [{"slug": "x"}, {"slug": "y"}], [])

        assert [item.slug for item in result.dynamic] == ["x", "y"]

    def test__static_first_then_dynamic(self) -> None:
        """Concatenate static and dynamic lists in that order."""
        result = resolve_navigation(
            [{"id": "a", "label": "A", "type": "section", "value": "features"}],
            [{"slug": "x", "label": "X"}],
            ["x"],
        )

        assert [item.id for item in result.items] == ["a", "page-x-0"]
        assert [item.source for item in result.items] == ["static", "dynamic"]

    def test__dynamic_sorted_by_order_index_stable(self) -> None:
        """Sort by order_index and keep server order for ties."""
        result = resolve_navigation(
            [],
            [
                {"slug": "c", "order_index": 2},
                {"slug": "a", "order_index": 1},
                {"slug": "b", "order_index": 1},
                {"slug": "z"},
            ],
            [],
        )

        assert [item.slug for item in result.dynamic] == ["z", "a", "b", "c"]

    def test__non_numeric_order_index__sorts_as_zero(self) -> None:
        """Treat string or missing order_index as 0 instead of failing."""
        result = resolve_navigation(
            [],
            [
                {"slug": "b", "order_index": 2},
                {"slug": "a", "order_index": "1"},
                {"slug": "c", "order_index": None},
            ],
            [],
        )

        assert [item.slug for item in result.dynamic] == ["a", "c", "b"]

    def test__dynamic_item_normalization(self) -> None:
        """Normalize slug, label, id and order_index."""
        result = resolve_navigation(
            [],
            [
                {"slug": " About ", "id": "nav-1", "label": "About us", "order_index": 4},
                {"slug": "faq"},
            ],
            ["about", "FAQ"],
        )

        faq, about = result.dynamic
        assert about.to_dict() == {
            "id": "nav-1",
            "label": "About us",
            "kind": "route",
            "target": "/pages/about",
            "source": "dynamic",
            "slug": "about",
            "order_index": 4,
        }
        assert faq.id == "page-faq-0"
        assert faq.label == "faq"
        assert faq.order_index == 0

    def test__invalid_dynamic_items__dropped(self) -> None:
        """Skip entries without a usable slug."""
        result = resolve_navigation([], [None, {"slug": ""}, {"slug": 3}, {"label": "x"}], [])

        assert result.dynamic == []

    def test__static_ids__fallback_chain(self) -> None:
        """Use id, then slug, then path, then position."""
        result = resolve_navigation(
            [
                {"id": "explicit", "label": "A"},
                {"slug": "by-slug", "label": "B"},
                {"path": "/by-path", "label": "C"},
                {"label": "D"},
            ],
            [],
            [],
        )

        assert [item.id for item in result.static] == [
            "explicit",
            "by-slug",
            "/by-path",
            "static-3",
        ]

    def test__static_items__kept_verbatim(self) -> None:
        """Preserve original fields of static entries."""
        item = {"id": "blog", "label": "Blog", "type": "route", "path": "/blog", "icon": "Book"}

        result = resolve_navigation([item], [], [])

        data = result.static[0].to_dict()
        assert data["icon"] == "Book"
        assert data["path"] == "/blog"
        assert data["kind"] == "route"
        assert data["target"] == "/blog"

    def test__to_dict__exposes_sublists(self) -> None:
        """Serialize static, dynamic and combined lists."""
        result = resolve_navigation([{"id": "a", "label": "A"}], [{"slug": "x"}], [])

        data = result.to_dict()

        assert [i["id"] for i in data["static"]] == ["a"]
        assert [i["slug"] for i in data["dynamic"]] == ["x"]
        assert len(data["items"]) == 2


class TestResolveTarget:
    """Tests for resolve_target() and helpers."""

    @pytest.mark.parametrize(
        ("target", "expected"),
        [
            ({"type": "section", "value": "features"}, ("section", "features")),
            ({"type": "section", "value": 3}, ("section", "3")),
            ({"type": "route", "value": "/blog"}, ("route", "/blog")),
            ({"type": "route", "path": "/about"}, ("route", "/about")),
            ({"type": "page", "value": "faq"}, ("route", "/pages/faq")),
            ({"type": "page", "value": {"slug": "faq"}}, ("route", "/pages/faq")),
            ({"type": "external", "value": "https://example.com"}, ("external", "https://example.com")),
            ({"type": "href", "href": "mailto:a@b.c"}, ("external", "mailto:a@b.c")),
            ({"type": "external", "value": "javascript:alert(1)"}, ("external", None)),
        ],
    )
    def test_resolution(self, target: dict, expected: tuple) -> None:
        """Map each target type to kind and target."""
        assert resolve_target(target) == expected

    @pytest.mark.parametrize("target", [None, {}, {"type": "unknown", "value": "x"}])
    def test_unresolvable(self, target: object) -> None:
        """Return None for missing or unknown types."""
        assert resolve_target(target) is None

    def test_build_page_path_keeps_absolute_paths(self) -> None:
        """Leave absolute paths alone."""
        assert build_page_path("/custom") == "/custom"
        assert build_page_path("  ") is None

    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("#top", "#top"),
            ("/local", "/local"),
            ("//evil.example", None),
            ("data:text/html,x", None),
            ("tel:+123", "tel:+123"),
        ],
    )
    def test_sanitize_external_url(self, url: str, expected: str | None) -> None:
        """Allow only safe schemes and local links."""
        assert sanitize_external_url(url) == expected


class TestNavigationSource:
    """Tests for NavigationSource.load()."""

    @pytest.mark.asyncio
    async def test__load__stores_items(self, fake_api, api) -> None:
        """Keep the items of the navigation response."""
        fake_api.add(
            "GET",
            "/public/navigation",
            httpx.Response(200, json={"items": [{"slug": "page1", "label": "Page 1"}]}),
        )
        source = NavigationSource(api)

        await source.load()

        assert source.items == [{"slug": "page1", "label": "Page 1"}]
        assert source.error is None

    @pytest.mark.asyncio
    async def test__failure__keeps_previous_items(self, fake_api, api) -> None:
        """Record the error and keep the last good items."""
        responses = [
            httpx.Response(200, json={"items": [{"slug": "a"}]}),
            httpx.Response(503, json={"error": "Down"}),
        ]
        fake_api.add("GET", "/public/navigation", lambda request: responses.pop(0))
        source = NavigationSource(api)

        await source.load()
        await source.load()

        assert source.items == [{"slug": "a"}]
        assert source.error is not None
        assert source.error.status == 503

    @pytest.mark.asyncio
    async def test__cancelled__propagates_and_keeps_items(self, fake_api, api) -> None:
        """Re-raise cancellation without recording an error."""
        started = asyncio.Event()

        async def slow(request: httpx.Request) -> httpx.Response:
            started.set()
            await asyncio.sleep(5)
            return httpx.Response(200, json={"items": [{"slug": "late"}]})

        fake_api.add("GET", "/public/navigation", slow)
        source = NavigationSource(api)
        token = CancellationToken()

        task = asyncio.create_task(source.load(cancel=token))
        await started.wait()
        token.cancel()

        with pytest.raises(RequestCancelledError):
            await task
        assert source.items == []
        assert source.error is None
