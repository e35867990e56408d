"""Endpoint methods for the content API.

Thin wrappers over ``TransportGateway.send``; one method per endpoint.
Identifier arguments are validated and URL-encoded before any request.
"""

import logging
from typing import Any, NotRequired, TypedDict
from urllib.parse import quote

from ltcms_client.cancellation import CancellationToken
from ltcms_client.errors import ValidationError
from ltcms_client.transport import FormPayload, TransportGateway

logger = logging.getLogger(__name__)


class SectionItemDict(TypedDict):
    """One section in the content list response."""

    section: str
    content: Any
    updated_at: NotRequired[str]


class ContentListDict(TypedDict):
    """GET /content response."""

    items: list[SectionItemDict]


class PublicNavItemDict(TypedDict, total=False):
    """One entry of GET /public/navigation."""

    id: str
    slug: str
    label: str
    order_index: int


class PageBundleDict(TypedDict):
    """GET /public/pages/:slug response."""

    page: dict[str, Any]
    posts: list[dict[str, Any]]


class LoginResponseDict(TypedDict, total=False):
    """POST /auth/login response."""

    token: str
    user: dict[str, Any]


def _segment(value: object, name: str) -> str:
    """Validate an identifier and encode it as a single path segment."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} is required")
    return quote(str(value), safe="")


class CmsApi:
    """Endpoint-level access to the content API."""

    def __init__(self, gateway: TransportGateway) -> None:
        self.gateway = gateway

    # Auth

    async def login(
        self,
        username: str,
        password: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> LoginResponseDict:
        """Log in and store the returned bearer token, if any."""
        data = await self.gateway.send(
            "/auth/login",
            method="POST",
            body={"username": username, "password": password},
            cancel=cancel,
        )
        if isinstance(data, dict) and data.get("token"):
            self.gateway.session.set(data["token"])
        return data

    async def logout(self, *, cancel: CancellationToken | None = None) -> None:
        """Log out; the local token is cleared even if the request fails."""
        try:
            await self.gateway.send("/auth/logout", method="POST", cancel=cancel)
        finally:
            self.gateway.session.clear()

    async def me(self, *, cancel: CancellationToken | None = None) -> dict[str, Any]:
        return await self.gateway.send("/auth/me", cancel=cancel)

    # Tutorials

    async def list_tutorials(
        self, *, cancel: CancellationToken | None = None
    ) -> list[dict[str, Any]]:
        return await self.gateway.send("/tutorials", cancel=cancel)

    async def get_tutorial(
        self, tutorial_id: str, *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/tutorials/{_segment(tutorial_id, 'tutorial_id')}", cancel=cancel
        )

    async def create_tutorial(
        self, tutorial: dict[str, Any], *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(
            "/tutorials", method="POST", body=tutorial, cancel=cancel
        )

    async def update_tutorial(
        self,
        tutorial_id: str,
        tutorial: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/tutorials/{_segment(tutorial_id, 'tutorial_id')}",
            method="PUT",
            body=tutorial,
            cancel=cancel,
        )

    async def delete_tutorial(
        self, tutorial_id: str, *, cancel: CancellationToken | None = None
    ) -> None:
        await self.gateway.send(
            f"/tutorials/{_segment(tutorial_id, 'tutorial_id')}",
            method="DELETE",
            cancel=cancel,
        )

    # Comments

    async def list_tutorial_comments(
        self,
        tutorial_id: str,
        *,
        limit: int | None = None,
        offset: int | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {}
        if limit is not None:
            params["limit"] = limit
        if offset is not None:
            params["offset"] = offset
        return await self.gateway.send(
            f"/tutorials/{_segment(tutorial_id, 'tutorial_id')}/comments",
            params=params or None,
            cancel=cancel,
        )

    async def create_tutorial_comment(
        self,
        tutorial_id: str,
        content: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/tutorials/{_segment(tutorial_id, 'tutorial_id')}/comments",
            method="POST",
            body={"content": content},
            cancel=cancel,
        )

    async def list_post_comments(
        self,
        post_id: str,
        *,
        params: dict[str, Any] | None = None,
        cancel: CancellationToken | None = None,
    ) -> list[dict[str, Any]]:
        return await self.gateway.send(
            f"/posts/{_segment(post_id, 'post_id')}/comments",
            params=params,
            cancel=cancel,
        )

    async def create_post_comment(
        self,
        post_id: str,
        content: str,
        author: str | None = None,
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/posts/{_segment(post_id, 'post_id')}/comments",
            method="POST",
            body={"content": content, "author": author},
            cancel=cancel,
        )

    async def vote_comment(
        self, comment_id: str, *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/comments/{_segment(comment_id, 'comment_id')}/vote",
            method="POST",
            cancel=cancel,
        )

    async def delete_comment(
        self, comment_id: str, *, cancel: CancellationToken | None = None
    ) -> None:
        await self.gateway.send(
            f"/comments/{_segment(comment_id, 'comment_id')}",
            method="DELETE",
            cancel=cancel,
        )

    # Site content

    async def get_site_content(
        self, *, cancel: CancellationToken | None = None
    ) -> ContentListDict:
        return await self.gateway.send("/content", cancel=cancel)

    async def get_site_content_section(
        self, section: str, *, cancel: CancellationToken | None = None
    ) -> SectionItemDict:
        return await self.gateway.send(
            f"/content/{_segment(section, 'section')}", cancel=cancel
        )

    async def update_site_content_section(
        self,
        section: str,
        content: Any,
        *,
        cancel: CancellationToken | None = None,
    ) -> SectionItemDict | None:
        return await self.gateway.send(
            f"/content/{_segment(section, 'section')}",
            method="PUT",
            body={"content": content},
            cancel=cancel,
        )

    # Admin pages and posts

    async def list_pages(self, *, cancel: CancellationToken | None = None) -> dict[str, Any]:
        return await self.gateway.send("/pages", cancel=cancel)

    async def create_page(
        self, payload: dict[str, Any], *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send("/pages", method="POST", body=payload, cancel=cancel)

    async def get_page(
        self, page_id: str, *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(f"/pages/{_segment(page_id, 'page_id')}", cancel=cancel)

    async def update_page(
        self,
        page_id: str,
        payload: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/pages/{_segment(page_id, 'page_id')}",
            method="PUT",
            body=payload,
            cancel=cancel,
        )

    async def delete_page(
        self, page_id: str, *, cancel: CancellationToken | None = None
    ) -> None:
        await self.gateway.send(
            f"/pages/{_segment(page_id, 'page_id')}", method="DELETE", cancel=cancel
        )

    async def list_posts(
        self, page_id: str, *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/pages/{_segment(page_id, 'page_id')}/posts", cancel=cancel
        )

    async def create_post(
        self,
        page_id: str,
        payload: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/pages/{_segment(page_id, 'page_id')}/posts",
            method="POST",
            body=payload,
            cancel=cancel,
        )

    async def get_post(
        self, post_id: str, *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        return await self.gateway.send(f"/posts/{_segment(post_id, 'post_id')}", cancel=cancel)

    async def update_post(
        self,
        post_id: str,
        payload: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/posts/{_segment(post_id, 'post_id')}",
            method="PUT",
            body=payload,
            cancel=cancel,
        )

    async def delete_post(
        self, post_id: str, *, cancel: CancellationToken | None = None
    ) -> None:
        await self.gateway.send(
            f"/posts/{_segment(post_id, 'post_id')}", method="DELETE", cancel=cancel
        )

    # Public site

    async def get_published_page(
        self, slug: str, *, cancel: CancellationToken | None = None
    ) -> PageBundleDict:
        return await self.gateway.send(f"/public/pages/{_segment(slug, 'slug')}", cancel=cancel)

    async def get_published_post(
        self,
        page_slug: str,
        post_slug: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        return await self.gateway.send(
            f"/public/pages/{_segment(page_slug, 'page_slug')}"
            f"/posts/{_segment(post_slug, 'post_slug')}",
            cancel=cancel,
        )

    async def get_navigation(self, *, cancel: CancellationToken | None = None) -> dict[str, Any]:
        return await self.gateway.send("/public/navigation", cancel=cancel)

    async def list_published_pages(
        self, *, cancel: CancellationToken | None = None
    ) -> list[str]:
        return await self.gateway.send("/public/published-pages", cancel=cancel)

    # Uploads

    async def upload_image(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        """Upload an image as multipart form field "file"."""
        if not filename:
            raise ValidationError("filename is required")
        logger.info(f"Uploading image '{filename}' ({len(data)} bytes)")
        return await self.gateway.send(
            "/upload",
            method="POST",
            body=FormPayload(files={"file": (filename, data, content_type)}),
            cancel=cancel,
        )
