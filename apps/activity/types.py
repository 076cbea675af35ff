from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from django.db import models


class ActivityType(models.TextChoices):
    REQUEST_FRIEND = "request_friend", "Friend request"
    IS_FRIEND = "is_friend", "Became friends"
    NEW_COMMENT = "new_comment", "Photo comment"
    NEW_VIDEO_COMMENT = "new_video_comment", "Video comment"
    VISIT = "visit", "Profile visit"
    PHOTO_LIKE = "photo_like", "Photo like"
    VIDEO_LIKE = "video_like", "Video like"
    PHOTO_MODERATION = "photo_moderation", "Photo in moderation"
    PHOTO_APPROVED = "photo_approved", "Photo approved"
    PHOTO_REJECTED = "photo_rejected", "Photo rejected"
    VIDEO_MODERATION = "video_moderation", "Video in moderation"
    VIDEO_APPROVED = "video_approved", "Video approved"
    VIDEO_REJECTED = "video_rejected", "Video rejected"
    INVITE_CHAT = "invite_chat", "Chat invite"
    GROUP_USER_REQUEST_JOIN = "group_user_request_join", "Group join request"
    GROUP_USER_REQUEST_INVITATION = "group_user_request_invitation", "Group invitation"
    NEW_ACTIVITY_IN_GROUP = "new_activity_in_group", "New group activity"
    ACTIVITY_USER_GROUP_JOIN = "activity_user_group_join", "Joined group"
    GROUP_USER_JOINED = "group_user_joined", "User joined group"
    PHOTO_REAL = "photo_real", "Real photo confirmed"
    PHOTO_REAL_FAILED = "photo_real_failed", "Real photo rejected"
    NEW_PUBLICATIONS_IN_GROUP = "new_publications_in_group", "New group posts"
    NEW_PUBLICATIONS_IN_GROUP_FOR_MEMBER = "new_publications_in_group_for_member", "New group posts for member"
    GROUP_AVATAR_STATUS_NEW = "group_avatar_status_new", "Group avatar in moderation"
    GROUP_AVATAR_STATUS_APPROVED = "group_avatar_status_approved", "Group avatar approved"
    GROUP_AVATAR_STATUS_REJECTED = "group_avatar_status_rejected", "Group avatar rejected"
    ADD_TO_FAVOURITES = "add_to_favourites", "Added to favourites"
    PRESENT_RECEIVED = "present_received", "Present received"
    PRESENT_RECEIVED_INCOGNITO = "present_received_incognito", "Anonymous present received"


# Translation keys rendered by the frontend; several types share a key.
ACTIVITY_MESSAGES: dict[str, str] = {
    ActivityType.REQUEST_FRIEND: "activity_user_want_friend",
    ActivityType.IS_FRIEND: "activity_user_become_friend",
    ActivityType.NEW_COMMENT: "activity_user_commented_photo",
    ActivityType.NEW_VIDEO_COMMENT: "activity_user_commented_video",
    ActivityType.VISIT: "activity_user_visited",
    ActivityType.PHOTO_LIKE: "activity_user_liked_photo",
    ActivityType.VIDEO_LIKE: "activity_user_liked_video",
    ActivityType.PHOTO_MODERATION: "activity_photo_moderation",
    ActivityType.PHOTO_APPROVED: "activity_photo_activated",
    ActivityType.PHOTO_REJECTED: "activity_photo_deactivated",
    ActivityType.VIDEO_MODERATION: "activity_video_moderation",
    ActivityType.VIDEO_APPROVED: "activity_video_activated",
    ActivityType.VIDEO_REJECTED: "activity_video_deactivated",
    ActivityType.INVITE_CHAT: "activity_chat_invite",
    ActivityType.GROUP_USER_REQUEST_JOIN: "groups_user_want_to_join",
    ActivityType.GROUP_USER_REQUEST_INVITATION: "groups_user_offer_to_join",
    ActivityType.NEW_ACTIVITY_IN_GROUP: "activity_user_group_notification",
    ActivityType.ACTIVITY_USER_GROUP_JOIN: "activity_user_group_join",
    ActivityType.GROUP_USER_JOINED: "groups_user_joined",
    ActivityType.PHOTO_REAL: "activity_real",
    ActivityType.PHOTO_REAL_FAILED: "activity_real_failed",
    ActivityType.NEW_PUBLICATIONS_IN_GROUP: "activity_user_group_posts",
    ActivityType.NEW_PUBLICATIONS_IN_GROUP_FOR_MEMBER: "activity_user_group_posts",
    ActivityType.GROUP_AVATAR_STATUS_NEW: "activity_photo_moderation",
    ActivityType.GROUP_AVATAR_STATUS_APPROVED: "activity_photo_activated",
    ActivityType.GROUP_AVATAR_STATUS_REJECTED: "activity_photo_deactivated",
    ActivityType.ADD_TO_FAVOURITES: "activity_added_to_favorites",
    ActivityType.PRESENT_RECEIVED: "activity_gifts_present",
    ActivityType.PRESENT_RECEIVED_INCOGNITO: "activity_gifts_present_anonym",
}


def _positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


@dataclass
class Activity:
    """A single feed event as returned by the activity API."""

    id: int
    type: str
    created_at: str
    user: int | None = None
    group: int | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return ACTIVITY_MESSAGES.get(self.type, "")

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Activity":
        known = {"id", "type", "created_at", "createdAt", "userId", "user", "groupId", "group"}
        user = _positive_int(raw.get("userId"))
        if user is None:
            user = _positive_int(raw.get("user"))
        return cls(
            id=_positive_int(raw.get("id")) or 0,
            type=str(raw.get("type") or ""),
            created_at=str(raw.get("created_at") or raw.get("createdAt") or ""),
            user=user,
            group=_positive_int(raw.get("groupId") or raw.get("group")),
            payload={key: value for key, value in raw.items() if key not in known},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "created_at": self.created_at,
            "user": self.user,
            "group": self.group,
            "payload": self.payload,
        }
