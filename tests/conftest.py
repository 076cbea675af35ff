from __future__ import annotations

import pytest
from django.core.cache import cache

from apps.activity.client import get_activity_client
from apps.activity.services import get_activity_service


@pytest.fixture(autouse=True)
def _clear_activity_state():
    cache.clear()
    get_activity_client.cache_clear()
    get_activity_service.cache_clear()
    yield
    cache.clear()
