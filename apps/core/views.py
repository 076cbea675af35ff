from __future__ import annotations

from django.core.cache import cache
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView


class HealthView(APIView):
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs) -> Response:
        cache_ok = False
        try:
            test_key = "activity_health_check"
            cache.set(test_key, "ok", 5)
            cache_ok = cache.get(test_key) == "ok"
        except Exception:
            cache_ok = False
        return Response({"status": "ok", "cache_connected": cache_ok}, status=status.HTTP_200_OK)
