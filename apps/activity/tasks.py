from __future__ import annotations

import logging

from celery import shared_task

from apps.activity.services import get_activity_service

logger = logging.getLogger(__name__)


@shared_task
def apply_activity_push(user_id: int, activities: list[dict]) -> dict:
    get_activity_service().update_from_back(user_id, activities)
    logger.info("activity push applied", extra={"user_id": user_id, "count": len(activities)})
    return {"user_id": user_id, "count": len(activities)}
