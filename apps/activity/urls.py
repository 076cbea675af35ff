from django.urls import path

from apps.activity.views import (
    ActivityDetailView,
    ActivityGroupInviteListView,
    ActivityListView,
    ActivityPushView,
    ActivitySeenView,
    ActivityVisibilityView,
)

urlpatterns = [
    path("activity/", ActivityListView.as_view(), name="activity-list"),
    path("activity/visibility/", ActivityVisibilityView.as_view(), name="activity-visibility"),
    path("activity/seen/", ActivitySeenView.as_view(), name="activity-seen"),
    path("activity/group-invites/", ActivityGroupInviteListView.as_view(), name="activity-group-invites"),
    path("activity/<int:activity_id>/", ActivityDetailView.as_view(), name="activity-detail"),
    path("internal/activity/push/", ActivityPushView.as_view(), name="activity-push"),
]
