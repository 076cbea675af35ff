from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Iterable, Sequence

from apps.activity.client import ActivityApiClient, get_activity_client
from apps.activity.types import ACTIVITY_MESSAGES, Activity
from apps.activity.visibility import ActivityVisibilityCache, VisibilityConfig

logger = logging.getLogger(__name__)


def _build_activities(raw_items: Iterable[Any]) -> list[Activity]:
    return [Activity.from_dict(item) for item in raw_items if isinstance(item, dict)]


def get_activity_message(activity: Activity | str) -> str:
    activity_type = activity if isinstance(activity, str) else activity.type
    return ACTIVITY_MESSAGES.get(activity_type, "")


class ActivityService:
    def __init__(self, client: ActivityApiClient, visibility: ActivityVisibilityCache) -> None:
        self.client = client
        self.visibility = visibility

    def get_user_activities(self, user_id: int, force: bool = False) -> list[Activity] | None:
        raw = self.visibility.fetch(user_id, force=force)
        if not raw:
            return None
        return _build_activities(raw)

    def get_user_activity_feed(self, user_id: int, force: bool = False) -> tuple[list[Activity] | None, bool | None]:
        """Listing plus the visibility flag from a single source pull."""
        raw, entry = self.visibility.refresh(user_id, force=force)
        if not raw or entry is None:
            return None, None
        return _build_activities(raw), entry.visible

    def get_user_group_invite_activities(self, user_id: int, force: bool = False) -> list[Activity] | None:
        raw = self.client.get_user_group_invite_activities(user_id, force)
        if not raw:
            return None
        # Invites share the user's visibility entry with the main listing.
        self.visibility.evaluate(user_id, raw)
        return _build_activities(raw)

    def get_group_activities(
        self,
        group_id: int,
        *,
        owner_id: int | None,
        viewer_id: int | None,
        force: bool = False,
    ) -> list[Activity]:
        if owner_id is None or viewer_id is None or owner_id != viewer_id:
            return []
        raw = self.client.get_group_activities(group_id, force) or []
        return _build_activities(raw)

    def is_visible(self, user_id: int) -> bool:
        return self.visibility.is_visible(user_id)

    def set_visible(self, user_id: int) -> None:
        self.visibility.acknowledge(user_id)

    def remove_activity(self, activity_id: int, user_id: int) -> None:
        self.client.remove_event(activity_id)
        self.visibility.on_event_removed(user_id)
        logger.info("activity removed", extra={"user_id": user_id, "activity_id": activity_id})

    def update_from_back(self, user_id: int, activities: Sequence[Any] | None = None) -> None:
        self.visibility.on_authoritative_push(user_id, activities or [])


@lru_cache(maxsize=1)
def get_activity_service() -> ActivityService:
    client = get_activity_client()
    visibility = ActivityVisibilityCache(client, VisibilityConfig.from_settings())
    return ActivityService(client, visibility)
