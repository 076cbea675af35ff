from __future__ import annotations

from unittest.mock import patch

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import caches
from rest_framework.test import APIClient

from apps.activity.services import ActivityService
from apps.activity.visibility import ActivityVisibilityCache, VisibilityConfig, activities_hash
from tests.fakes import FakeActivitySource, make_event

PUSH_URL = "/api/v1/internal/activity/push/"


def _service(source: FakeActivitySource) -> ActivityService:
    visibility = ActivityVisibilityCache(source, VisibilityConfig(lock_wait_seconds=0.0))
    return ActivityService(source, visibility)  # type: ignore[arg-type]


def _client_for(username: str) -> tuple[APIClient, object]:
    user = get_user_model().objects.create_user(username=username, password="pass12345")
    client = APIClient()
    client.force_authenticate(user=user)
    return client, user


def _stored(user_id: int):
    return caches["default"].get(f"user_activity_{user_id}")


@pytest.mark.django_db
def test_activity_endpoints_require_auth():
    response = APIClient().get("/api/v1/activity/")
    assert response.status_code in {401, 403}


@pytest.mark.django_db
def test_activity_list_returns_items_and_visibility():
    source = FakeActivitySource(events=[make_event(2, type="visit", userId=9), make_event(1, type="photo_like")])
    client, _ = _client_for("lister")

    with patch("apps.activity.views.get_activity_service", return_value=_service(source)):
        response = client.get("/api/v1/activity/")

    assert response.status_code == 200
    assert response.data["visible"] is True
    assert [item["message"] for item in response.data["items"]] == [
        "activity_user_visited",
        "activity_user_liked_photo",
    ]
    assert response.data["items"][0]["user"] == 9


@pytest.mark.django_db
def test_activity_list_without_data_leaves_cache_untouched():
    source = FakeActivitySource(events=None)
    client, user = _client_for("empty")

    with patch("apps.activity.views.get_activity_service", return_value=_service(source)):
        response = client.get("/api/v1/activity/?force=true")

    assert response.status_code == 200
    assert response.data == {"items": [], "visible": None}
    assert source.calls == [(user.id, True)]
    assert _stored(user.id) is None


@pytest.mark.django_db
def test_visibility_flow_through_api():
    source = FakeActivitySource(events=[make_event(1)])
    service = _service(source)
    client, _ = _client_for("viewer")

    with patch("apps.activity.views.get_activity_service", return_value=service):
        assert client.get("/api/v1/activity/visibility/").data == {"visible": True}

        source.events = [make_event(2), make_event(1)]
        assert client.get("/api/v1/activity/visibility/").data == {"visible": False}

        seen = client.post("/api/v1/activity/seen/")
        assert seen.status_code == 200
        assert client.get("/api/v1/activity/visibility/").data == {"visible": True}


@pytest.mark.django_db
def test_delete_activity_removes_upstream():
    source = FakeActivitySource(events=[make_event(1)])
    client, user = _client_for("remover")

    with patch("apps.activity.views.get_activity_service", return_value=_service(source)):
        response = client.delete("/api/v1/activity/5/")

    assert response.status_code == 204
    assert source.removed == [5]
    assert (user.id, True) in source.calls


@pytest.mark.django_db
def test_group_invites_endpoint():
    source = FakeActivitySource(events=[make_event(1)], invites=[make_event(8, type="group_user_request_join")])
    client, _ = _client_for("inviter")

    with patch("apps.activity.views.get_activity_service", return_value=_service(source)):
        response = client.get("/api/v1/activity/group-invites/")

    assert response.status_code == 200
    assert response.data["items"][0]["message"] == "groups_user_want_to_join"


@pytest.mark.django_db
def test_push_requires_token():
    response = APIClient().post(PUSH_URL, {"user_id": 3, "activities": []}, format="json")
    assert response.status_code == 403

    response = APIClient().post(
        PUSH_URL,
        {"user_id": 3, "activities": []},
        format="json",
        HTTP_AUTHORIZATION="Bearer wrong",
    )
    assert response.status_code == 403


@pytest.mark.django_db
def test_push_rejects_invalid_body():
    response = APIClient().post(
        PUSH_URL,
        {"user_id": 3, "activities": [{"type": "visit"}]},
        format="json",
        HTTP_AUTHORIZATION="Bearer test-push-token",
    )
    assert response.status_code == 400


@pytest.mark.django_db
def test_push_marks_entry_visible():
    source = FakeActivitySource(events=[make_event(1)])
    service = _service(source)
    pushed = [make_event(4, "2024-07-01 07:00:00")]
    caches["default"].set("user_activity_3", {"hash": activities_hash(pushed), "visible": False}, 60)

    with patch("apps.activity.tasks.get_activity_service", return_value=service):
        response = APIClient().post(
            PUSH_URL,
            {"user_id": 3, "activities": pushed},
            format="json",
            HTTP_AUTHORIZATION="Bearer test-push-token",
        )

    assert response.status_code == 202
    assert _stored(3) == {"hash": activities_hash(pushed), "visible": True}
    assert source.purged == [3]


@pytest.mark.django_db
def test_health_endpoint_reports_cache():
    response = APIClient().get("/api/v1/health/")
    assert response.status_code == 200
    assert response.data == {"status": "ok", "cache_connected": True}


@pytest.mark.django_db
def test_activity_list_pulls_source_once():
    events = [make_event(2), make_event(1)]
    source = FakeActivitySource(events=events)
    client, user = _client_for("single-pull")
    caches["default"].set(f"user_activity_{user.id}", {"hash": activities_hash([make_event(1)]), "visible": True}, 60)

    with patch("apps.activity.views.get_activity_service", return_value=_service(source)):
        response = client.get("/api/v1/activity/")

    assert response.data["visible"] is False
    assert source.calls == [(user.id, False)]
