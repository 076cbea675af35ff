from __future__ import annotations

import hashlib
import logging
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, Sequence

from django.conf import settings
from django.core.cache import caches

from apps.activity.client import ActivitySource

logger = logging.getLogger(__name__)

DEFAULT_KEY_PREFIX = "user_activity_"
DEFAULT_TTL_SECONDS = 86400

# Hour rendered on the 12-hour clock without a meridiem, so midnight reads "12:00:00".
SENTINEL_CREATED_AT = datetime(2020, 1, 1, 0, 0, 0).strftime("%Y-%m-%d %I:%M:%S")


def _event_field(event: Any, name: str) -> Any:
    if isinstance(event, dict):
        return event.get(name)
    return getattr(event, name, None)


def activities_hash(activities: Sequence[Any] | None) -> str:
    """
    Fingerprint of an activity batch.

    Only the head element (the newest event) is digested, so changes further
    down the list do not alter the fingerprint.
    """
    if not activities:
        activities = [{"id": 0, "created_at": SENTINEL_CREATED_AT}]
    head = activities[0]
    event_id = _event_field(head, "id")
    created_at = _event_field(head, "created_at")
    raw = f"{'' if event_id is None else event_id}_{'' if created_at is None else created_at}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    fingerprint: str
    visible: bool

    def to_payload(self) -> dict[str, Any]:
        return {"hash": self.fingerprint, "visible": self.visible}

    @classmethod
    def from_payload(cls, payload: Any) -> "CacheEntry | None":
        if not isinstance(payload, dict):
            return None
        fingerprint = payload.get("hash")
        visible = payload.get("visible")
        if not isinstance(fingerprint, str) or not fingerprint or not isinstance(visible, bool):
            return None
        return cls(fingerprint=fingerprint, visible=visible)


@dataclass(frozen=True)
class VisibilityConfig:
    key_prefix: str = DEFAULT_KEY_PREFIX
    ttl_seconds: int = DEFAULT_TTL_SECONDS
    cache_alias: str = "default"
    lock_enabled: bool = True
    lock_wait_seconds: float = 0.5
    lock_timeout_seconds: int = 15

    @classmethod
    def from_settings(cls) -> "VisibilityConfig":
        # A miss initializes from the source while the lock is held; requests applies the
        # API timeout to connect and read separately, so the lock must outlive both.
        api_timeout = float(getattr(settings, "ACTIVITY_API_TIMEOUT", 5.0))
        lock_timeout = int(getattr(settings, "ACTIVITY_VISIBILITY_LOCK_TIMEOUT", 15))
        return cls(
            key_prefix=getattr(settings, "ACTIVITY_VISIBILITY_KEY_PREFIX", DEFAULT_KEY_PREFIX),
            ttl_seconds=int(getattr(settings, "ACTIVITY_VISIBILITY_TTL", DEFAULT_TTL_SECONDS)),
            cache_alias=getattr(settings, "ACTIVITY_VISIBILITY_CACHE_ALIAS", "default"),
            lock_enabled=bool(getattr(settings, "ACTIVITY_VISIBILITY_LOCK_ENABLED", True)),
            lock_wait_seconds=float(getattr(settings, "ACTIVITY_VISIBILITY_LOCK_WAIT", 0.5)),
            lock_timeout_seconds=max(lock_timeout, int(2 * api_timeout) + 5),
        )


class ActivityVisibilityCache:
    """
    Tracks per user whether the last evaluated activity batch has been seen.

    The stored entry is ``{"hash": <fingerprint>, "visible": <bool>}`` under
    ``<prefix><user_id>``. A changed fingerprint flips ``visible`` to False;
    only ``acknowledge``, ``initialize`` and ``on_authoritative_push`` set it
    back to True. Store failures are treated as cache misses and never reach
    the caller.
    """

    def __init__(self, source: ActivitySource, config: VisibilityConfig | None = None) -> None:
        self.source = source
        self.config = config or VisibilityConfig()

    @property
    def cache(self):
        return caches[self.config.cache_alias]

    def make_key(self, user_id: int) -> str:
        return f"{self.config.key_prefix}{user_id}"

    # store access

    def _read(self, user_id: int) -> CacheEntry | None:
        key = self.make_key(user_id)
        try:
            payload = self.cache.get(key)
        except Exception as exc:
            logger.warning("activity visibility read failed", extra={"user_id": user_id, "error": str(exc)})
            return None
        entry = CacheEntry.from_payload(payload)
        if entry is None and payload is not None:
            logger.warning("activity visibility entry malformed", extra={"user_id": user_id})
        return entry

    def _write(self, user_id: int, entry: CacheEntry) -> None:
        key = self.make_key(user_id)
        try:
            self.cache.set(key, entry.to_payload(), self.config.ttl_seconds)
        except Exception as exc:
            logger.warning("activity visibility write failed", extra={"user_id": user_id, "error": str(exc)})

    @contextmanager
    def _user_lock(self, user_id: int) -> Iterator[bool]:
        if not self.config.lock_enabled:
            yield False
            return
        lock_key = f"{self.make_key(user_id)}:lock"
        token = uuid.uuid4().hex
        deadline = time.monotonic() + self.config.lock_wait_seconds
        acquired = False
        while True:
            try:
                acquired = bool(self.cache.add(lock_key, token, self.config.lock_timeout_seconds))
            except Exception as exc:
                logger.warning("activity visibility lock unavailable", extra={"user_id": user_id, "error": str(exc)})
                break
            if acquired or time.monotonic() >= deadline:
                break
            time.sleep(0.01)
        if not acquired:
            logger.warning("activity visibility proceeding without lock", extra={"user_id": user_id})
        try:
            yield acquired
        finally:
            if acquired:
                self._release_lock(lock_key, token)

    def _release_lock(self, lock_key: str, token: str) -> None:
        try:
            if self.cache.get(lock_key) == token:
                self.cache.delete(lock_key)
        except Exception as exc:
            logger.warning("activity visibility lock release failed", extra={"lock_key": lock_key, "error": str(exc)})

    def _get_or_initialize(self, user_id: int) -> CacheEntry:
        entry = self._read(user_id)
        if entry is None:
            entry = self.initialize(user_id)
        return entry

    # public operations

    def initialize(self, user_id: int) -> CacheEntry:
        """Anchor the entry to the source's current listing, marked as seen."""
        activities = self.source.get_events(user_id)
        entry = CacheEntry(fingerprint=activities_hash(activities), visible=True)
        self._write(user_id, entry)
        logger.info("activity visibility initialized", extra={"user_id": user_id, "hash": entry.fingerprint})
        return entry

    def _evaluate(self, user_id: int, activities: Sequence[Any] | None) -> CacheEntry:
        with self._user_lock(user_id):
            entry = self._get_or_initialize(user_id)
            fingerprint = activities_hash(activities)
            if entry.fingerprint == fingerprint:
                return entry
            updated = CacheEntry(fingerprint=fingerprint, visible=False)
            self._write(user_id, updated)
        logger.info(
            "activity visibility changed",
            extra={"user_id": user_id, "previous_hash": entry.fingerprint, "hash": fingerprint},
        )
        return updated

    def evaluate(self, user_id: int, activities: Sequence[Any] | None) -> None:
        self._evaluate(user_id, activities)

    def acknowledge(self, user_id: int) -> None:
        with self._user_lock(user_id):
            entry = self._get_or_initialize(user_id)
            self._write(user_id, CacheEntry(fingerprint=entry.fingerprint, visible=True))

    def refresh(self, user_id: int, force: bool = False) -> tuple[list | None, CacheEntry | None]:
        """
        Pull the current listing and evaluate it.

        Returns the listing with the entry it left behind, or ``(None, None)``
        when the source has no data; nothing is read or written in that case.
        """
        activities = self.source.get_events(user_id, force)
        if not activities:
            return None, None
        return activities, self._evaluate(user_id, activities)

    def fetch(self, user_id: int, force: bool = False) -> list | None:
        activities, _ = self.refresh(user_id, force)
        return activities

    def is_visible(self, user_id: int) -> bool:
        # The evaluated entry is used as is, so a failed store write cannot
        # trigger a second initialize within the same call.
        _, entry = self.refresh(user_id)
        if entry is None:
            entry = self._read(user_id)
        if entry is None:
            self.initialize(user_id)
            return True
        return entry.visible

    def on_event_removed(self, user_id: int) -> None:
        self.fetch(user_id, force=True)

    def on_authoritative_push(self, user_id: int, activities: Sequence[Any] | None) -> None:
        entry = CacheEntry(fingerprint=activities_hash(activities), visible=True)
        with self._user_lock(user_id):
            self._write(user_id, entry)
        self.source.purge_event_listing_cache(user_id)
        logger.info("activity visibility pushed", extra={"user_id": user_id, "hash": entry.fingerprint})
