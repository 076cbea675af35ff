from __future__ import annotations

import hmac
import logging

from django.conf import settings
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_exempt
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.activity.serializers import ActivityPushSerializer, ActivitySerializer
from apps.activity.services import get_activity_service
from apps.activity.tasks import apply_activity_push

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


def _force_param(request: Request) -> bool:
    return str(request.query_params.get("force", "")).lower() in _TRUTHY


class ActivityListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request: Request, *args, **kwargs) -> Response:  # type: ignore[override]
        activities, visible = get_activity_service().get_user_activity_feed(
            request.user.id,
            force=_force_param(request),
        )
        if activities is None:
            return Response({"items": [], "visible": None})
        items = ActivitySerializer([activity.to_dict() for activity in activities], many=True).data
        return Response({"items": items, "visible": visible})


class ActivityGroupInviteListView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request: Request, *args, **kwargs) -> Response:  # type: ignore[override]
        activities = get_activity_service().get_user_group_invite_activities(
            request.user.id,
            force=_force_param(request),
        )
        items = ActivitySerializer([activity.to_dict() for activity in activities or []], many=True).data
        return Response({"items": items})


class ActivityVisibilityView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request: Request, *args, **kwargs) -> Response:  # type: ignore[override]
        return Response({"visible": get_activity_service().is_visible(request.user.id)})


class ActivitySeenView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request: Request, *args, **kwargs) -> Response:  # type: ignore[override]
        get_activity_service().set_visible(request.user.id)
        return Response({"visible": True}, status=status.HTTP_200_OK)


class ActivityDetailView(APIView):
    permission_classes = [IsAuthenticated]

    def delete(self, request: Request, activity_id: int, *args, **kwargs) -> Response:  # type: ignore[override]
        get_activity_service().remove_activity(activity_id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@method_decorator(csrf_exempt, name="dispatch")
class ActivityPushView(APIView):
    """Internal endpoint for the activity backend to push a known-good listing."""

    authentication_classes: list = []
    permission_classes: list = []

    def _authorized(self, request: Request) -> bool:
        expected = str(getattr(settings, "ACTIVITY_PUSH_TOKEN", "") or "")
        if not expected:
            return False
        header = request.META.get("HTTP_AUTHORIZATION", "")
        scheme, _, candidate = header.partition(" ")
        if scheme.lower() != "bearer" or not candidate:
            return False
        return hmac.compare_digest(candidate.strip(), expected)

    def post(self, request: Request) -> Response:
        if not self._authorized(request):
            logger.warning("activity push rejected", extra={"remote_addr": request.META.get("REMOTE_ADDR")})
            return Response(status=status.HTTP_403_FORBIDDEN)
        serializer = ActivityPushSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = serializer.validated_data["user_id"]
        activities = serializer.validated_data["activities"]
        apply_activity_push.delay(user_id, activities)
        return Response({"queued": True}, status=status.HTTP_202_ACCEPTED)
