from __future__ import annotations

from rest_framework import serializers


class ActivitySerializer(serializers.Serializer):
    id = serializers.IntegerField()
    type = serializers.CharField()
    message = serializers.CharField()
    created_at = serializers.CharField()
    user = serializers.IntegerField(allow_null=True)
    group = serializers.IntegerField(allow_null=True)
    payload = serializers.DictField()


class ActivityPushSerializer(serializers.Serializer):
    user_id = serializers.IntegerField(min_value=1)
    activities = serializers.ListField(child=serializers.DictField(), allow_empty=True)

    def validate_activities(self, value: list[dict]) -> list[dict]:
        for item in value:
            if "id" not in item or "created_at" not in item:
                raise serializers.ValidationError("Each activity needs id and created_at.")
        return value
