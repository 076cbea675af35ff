from __future__ import annotations

import json
from unittest.mock import Mock, patch

import requests

from apps.activity.client import ActivityApiClient, ActivityApiPath, make_cache_key


def _response(payload=None, *, status_code: int = 200) -> Mock:
    content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return Mock(
        ok=200 <= status_code < 300,
        status_code=status_code,
        content=content,
        json=Mock(return_value=payload),
    )


def _client(*responses, token: str = "") -> tuple[ActivityApiClient, Mock]:
    session = Mock()
    session.request.side_effect = list(responses)
    client = ActivityApiClient(base_url="http://activity-api.test/api/", token=token, session=session)
    return client, session


def test_user_activities_request_and_headers():
    events = [{"id": 3, "created_at": "2024-05-01 10:00:00"}]
    client, session = _client(_response(events), token="secret")

    assert client.get_user_activities(7) == events
    method, url = session.request.call_args.args
    assert method == "GET"
    assert url == "http://activity-api.test/api/users/7/activities"
    assert session.request.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"


def test_listing_is_served_from_cache_until_forced():
    first = [{"id": 1, "created_at": "2024-05-01 10:00:00"}]
    second = [{"id": 2, "created_at": "2024-05-01 11:00:00"}, *first]
    client, session = _client(_response(first), _response(second))

    assert client.get_events(7) == first
    assert client.get_events(7) == first
    assert session.request.call_count == 1

    assert client.get_events(7, force=True) == second
    assert session.request.call_count == 2
    assert client.get_events(7) == second


def test_purge_drops_cached_listing():
    first = [{"id": 1, "created_at": "2024-05-01 10:00:00"}]
    client, session = _client(_response(first), _response(first))

    client.get_events(7)
    client.purge_event_listing_cache(7)
    client.get_events(7)

    assert session.request.call_count == 2


def test_error_status_returns_none_and_caches_nothing():
    client, session = _client(_response({"detail": "boom"}, status_code=502))

    assert client.get_user_activities(7) is None
    assert client.cache.get(make_cache_key(ActivityApiPath.USER_ACTIVITIES, {"userId": 7})) is None


def test_transport_error_returns_none():
    client, session = _client(requests.ConnectionError("refused"))

    assert client.get_user_activities(7) is None


def test_non_list_payload_returns_none():
    client, _ = _client(_response({"items": []}))

    assert client.get_user_group_invite_activities(7) is None


def test_group_activities_path():
    client, session = _client(_response([]))

    assert client.get_group_activities(12) == []
    assert session.request.call_args.args[1] == "http://activity-api.test/api/groups/12/activities"


def test_remove_activity_issues_delete():
    client, session = _client(_response(None, status_code=204))

    assert client.remove_activity(99) is True
    assert session.request.call_args.args == ("DELETE", "http://activity-api.test/api/activities/99")


def test_remove_activity_failure_is_reported():
    client, _ = _client(_response({"detail": "missing"}, status_code=404))

    assert client.remove_activity(99) is False


def test_cache_key_is_stable_for_param_order():
    assert make_cache_key("x", {"b": 1, "a": 2}) == make_cache_key("x", {"a": 2, "b": 1})


def test_cache_outage_falls_through_to_http():
    events = [{"id": 1, "created_at": "2024-05-01 10:00:00"}]
    client, session = _client(_response(events), _response(events))

    with patch.object(client.cache, "get", side_effect=ConnectionError("down")), patch.object(
        client.cache, "set", side_effect=ConnectionError("down")
    ), patch.object(client.cache, "delete", side_effect=ConnectionError("down")):
        assert client.get_events(7) == events
        client.purge_event_listing_cache(7)
        assert client.get_events(7) == events

    assert session.request.call_count == 2
