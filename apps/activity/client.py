from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Protocol

import requests
from django.conf import settings
from django.core.cache import caches

from apps.activity.exceptions import ActivityApiError

logger = logging.getLogger(__name__)

CACHE_KEY_PREFIX = "activity_api:"


class ActivityApiPath:
    USER_ACTIVITIES = "users/{userId}/activities"
    USER_GROUP_INVITE_ACTIVITIES = "users/{userId}/group-invite-activities"
    GROUP_ACTIVITIES = "groups/{groupId}/activities"
    ACTIVITY = "activities/{activityId}"


class ActivitySource(Protocol):
    def get_events(self, user_id: int, force: bool = False) -> list | None: ...

    def remove_event(self, event_id: int) -> None: ...

    def purge_event_listing_cache(self, user_id: int) -> None: ...


def make_cache_key(path: str, params: dict[str, Any]) -> str:
    params_part = ",".join(f"{key}={params[key]}" for key in sorted(params)) or "none"
    return f"{CACHE_KEY_PREFIX}{path}:{params_part}"


class ActivityApiClient:
    """
    HTTP client for the upstream activity API.

    Listing responses are cached per path and params; ``force=True`` skips the
    cached copy and refreshes it. Any failure to obtain a list is logged and
    reported as ``None`` so callers can treat it as "no data".
    """

    def __init__(
        self,
        *,
        base_url: str,
        token: str = "",
        timeout: float = 5.0,
        cache_ttl: int = 60,
        cache_alias: str = "default",
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self.cache_alias = cache_alias
        self.session = session or requests.Session()

    @property
    def cache(self):
        return caches[self.cache_alias]

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _request(self, method: str, path: str) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.request(method, url, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as exc:
            raise ActivityApiError(f"{method} {path} failed: {exc}") from exc
        if not response.ok:
            raise ActivityApiError(f"{method} {path} returned {response.status_code}", status_code=response.status_code)
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ActivityApiError(f"{method} {path} returned invalid JSON") from exc

    # Response cache failures degrade to a cache miss; they never reach the caller.

    def _cache_get(self, cache_key: str) -> Any:
        try:
            return self.cache.get(cache_key)
        except Exception as exc:
            logger.warning("activity api cache read failed", extra={"cache_key": cache_key, "error": str(exc)})
            return None

    def _cache_set(self, cache_key: str, data: list) -> None:
        try:
            self.cache.set(cache_key, data, self.cache_ttl)
        except Exception as exc:
            logger.warning("activity api cache write failed", extra={"cache_key": cache_key, "error": str(exc)})

    def _cache_delete(self, cache_key: str) -> None:
        try:
            self.cache.delete(cache_key)
        except Exception as exc:
            logger.warning("activity api cache purge failed", extra={"cache_key": cache_key, "error": str(exc)})

    def _get_list(self, path: str, params: dict[str, Any], *, force: bool = False) -> list | None:
        cache_key = make_cache_key(path, params)
        if not force:
            cached = self._cache_get(cache_key)
            if isinstance(cached, list):
                return cached

        try:
            data = self._request("GET", path.format(**params))
        except ActivityApiError as exc:
            logger.warning(
                "activity api request failed",
                extra={"path": path, "status_code": exc.status_code, "error": str(exc)},
            )
            return None
        if not isinstance(data, list):
            logger.warning("activity api returned non-list payload", extra={"path": path})
            return None

        self._cache_set(cache_key, data)
        return data

    def get_user_activities(self, user_id: int, force: bool = False) -> list | None:
        return self._get_list(ActivityApiPath.USER_ACTIVITIES, {"userId": user_id}, force=force)

    def get_user_group_invite_activities(self, user_id: int, force: bool = False) -> list | None:
        return self._get_list(ActivityApiPath.USER_GROUP_INVITE_ACTIVITIES, {"userId": user_id}, force=force)

    def get_group_activities(self, group_id: int, force: bool = False) -> list | None:
        return self._get_list(ActivityApiPath.GROUP_ACTIVITIES, {"groupId": group_id}, force=force)

    def remove_activity(self, activity_id: int) -> bool:
        try:
            self._request("DELETE", ActivityApiPath.ACTIVITY.format(activityId=activity_id))
        except ActivityApiError as exc:
            logger.warning(
                "activity api delete failed",
                extra={"activity_id": activity_id, "status_code": exc.status_code, "error": str(exc)},
            )
            return False
        return True

    def clear_cache(self, path: str, params: dict[str, Any]) -> None:
        self._cache_delete(make_cache_key(path, params))

    # ActivitySource

    def get_events(self, user_id: int, force: bool = False) -> list | None:
        return self.get_user_activities(user_id, force)

    def remove_event(self, event_id: int) -> None:
        self.remove_activity(event_id)

    def purge_event_listing_cache(self, user_id: int) -> None:
        self.clear_cache(ActivityApiPath.USER_ACTIVITIES, {"userId": user_id})


@lru_cache(maxsize=1)
def get_activity_client() -> ActivityApiClient:
    return ActivityApiClient(
        base_url=getattr(settings, "ACTIVITY_API_URL", "http://localhost:8080/api"),
        token=getattr(settings, "ACTIVITY_API_TOKEN", "") or "",
        timeout=float(getattr(settings, "ACTIVITY_API_TIMEOUT", 5.0)),
        cache_ttl=int(getattr(settings, "ACTIVITY_API_CACHE_TTL", 60)),
        cache_alias=getattr(settings, "ACTIVITY_VISIBILITY_CACHE_ALIAS", "default"),
    )
