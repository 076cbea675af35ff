from __future__ import annotations

from typing import Any


def make_event(event_id: int, created_at: str = "2024-05-01 10:00:00", **extra: Any) -> dict:
    return {"id": event_id, "created_at": created_at, **extra}


class FakeActivitySource:
    """In-memory stand-in for the activity API client."""

    def __init__(
        self,
        events: list | None = None,
        *,
        invites: list | None = None,
        groups: dict[int, list] | None = None,
    ) -> None:
        self.events = events
        self.invites = invites
        self.groups = groups or {}
        self.calls: list[tuple[int, bool]] = []
        self.removed: list[int] = []
        self.purged: list[int] = []

    def get_events(self, user_id: int, force: bool = False) -> list | None:
        self.calls.append((user_id, force))
        return self.events

    def remove_event(self, event_id: int) -> None:
        self.removed.append(event_id)

    def purge_event_listing_cache(self, user_id: int) -> None:
        self.purged.append(user_id)

    def get_user_group_invite_activities(self, user_id: int, force: bool = False) -> list | None:
        return self.invites

    def get_group_activities(self, group_id: int, force: bool = False) -> list | None:
        return self.groups.get(group_id)
