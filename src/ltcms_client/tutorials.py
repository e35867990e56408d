"""Tutorial list store with retrying loads and CRUD."""

import copy
import logging
from typing import Any

from ltcms_client.api import CmsApi
from ltcms_client.cancellation import CancellationToken
from ltcms_client.config import RetryConfig
from ltcms_client.errors import ApiError, ValidationError
from ltcms_client.retry import load_with_retry

logger = logging.getLogger(__name__)

TOPICS_REQUIRED_MESSAGE = "At least one topic must be provided."


def sanitize_topics(topics: object) -> list[str] | None:
    """Keep non-blank string topics; None if topics is not a list."""
    if not isinstance(topics, list):
        return None
    return [topic for topic in topics if isinstance(topic, str) and topic.strip()]


def _normalize(tutorial: dict[str, Any]) -> dict[str, Any]:
    topics = tutorial.get("topics")
    return {**tutorial, "topics": list(topics) if isinstance(topics, list) else []}


class TutorialStore:
    """Tutorials cached in memory.

    A failed reload keeps the last successfully loaded list; only a failed
    first load leaves the list empty. Either way the error is recorded in
    ``self.error`` and re-raised.
    """

    def __init__(self, api: CmsApi, retry: RetryConfig | None = None) -> None:
        self._api = api
        self._retry = retry or RetryConfig()
        self._tutorials: list[dict[str, Any]] = []
        self.loaded = False
        self.loading = False
        self.error: ApiError | None = None

    @property
    def tutorials(self) -> list[dict[str, Any]]:
        return copy.deepcopy(self._tutorials)

    def get(self, tutorial_id: str) -> dict[str, Any] | None:
        for tutorial in self._tutorials:
            if tutorial.get("id") == tutorial_id:
                return copy.deepcopy(tutorial)
        return None

    async def load(self, *, cancel: CancellationToken | None = None) -> list[dict[str, Any]]:
        """Load the tutorial list, retrying transient failures."""
        self.loading = True
        self.error = None
        try:
            data = await load_with_retry(
                lambda: self._api.list_tutorials(cancel=cancel),
                cancel=cancel,
                max_attempts=self._retry.max_attempts,
                base_delay=self._retry.base_delay,
            )
        except ApiError as e:
            if cancel is not None and cancel.cancelled:
                raise
            logger.error(f"Failed to load tutorials: {e.message}")
            if not self.loaded:
                self._tutorials = []
            self.error = e
            raise
        finally:
            self.loading = False

        self._tutorials = [_normalize(t) for t in data if isinstance(t, dict)] if isinstance(data, list) else []
        self.loaded = True
        return self.tutorials

    async def add(
        self, tutorial: dict[str, Any], *, cancel: CancellationToken | None = None
    ) -> dict[str, Any]:
        """Create a tutorial and insert it ordered by created_at.

        Raises:
            ValidationError: If no non-blank topic is given
        """
        topics = sanitize_topics(tutorial.get("topics"))
        if not topics:
            raise ValidationError(TOPICS_REQUIRED_MESSAGE)

        created = await self._api.create_tutorial({**tutorial, "topics": topics}, cancel=cancel)
        self._tutorials.append(_normalize(created))
        self._tutorials.sort(key=lambda t: str(t.get("created_at") or ""))
        return copy.deepcopy(created)

    async def update(
        self,
        tutorial_id: str,
        changes: dict[str, Any],
        *,
        cancel: CancellationToken | None = None,
    ) -> dict[str, Any]:
        """Update a tutorial and replace it in the list.

        Raises:
            ValidationError: If topics is given but has no non-blank entry
        """
        payload = dict(changes)
        if "topics" in changes:
            topics = sanitize_topics(changes["topics"])
            if isinstance(changes["topics"], list) and not topics:
                raise ValidationError(TOPICS_REQUIRED_MESSAGE)
            if topics is not None:
                payload["topics"] = topics

        updated = await self._api.update_tutorial(tutorial_id, payload, cancel=cancel)
        self._tutorials = [
            _normalize(updated) if t.get("id") == tutorial_id else t for t in self._tutorials
        ]
        return copy.deepcopy(updated)

    async def delete(self, tutorial_id: str, *, cancel: CancellationToken | None = None) -> None:
        await self._api.delete_tutorial(tutorial_id, cancel=cancel)
        self._tutorials = [t for t in self._tutorials if t.get("id") != tutorial_id]
