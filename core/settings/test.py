from .base import REST_FRAMEWORK
from .base import *  # noqa: F403

# Keep tests self-contained without external services.
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_TASK_STORE_EAGER_RESULT = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = "cache+memory://"

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "activity-test",
    }
}

ACTIVITY_API_URL = "http://activity-api.test/api"
ACTIVITY_PUSH_TOKEN = "test-push-token"
ACTIVITY_VISIBILITY_LOCK_WAIT = 0.0

REST_FRAMEWORK["DEFAULT_THROTTLE_CLASSES"] = ()
