# PATH: apps/support/playback/urls.py

from django.urls import path

from .views import (
    PlaybackEventView,
    PlaybackHeartbeatView,
    PlaybackSessionCreateView,
    PlaybackSessionDetailView,
    PlaybackSessionEndView,
    VideoAnalyticsView,
    WatchHistoryView,
)

# ========================================================
# Playback APIs
# ========================================================

urlpatterns = [
    path("playback/sessions/", PlaybackSessionCreateView.as_view(), name="playback-session-create"),
    path(
        "playback/sessions/<str:session_id>/",
        PlaybackSessionDetailView.as_view(),
        name="playback-session-detail",
    ),
    path(
        "playback/sessions/<str:session_id>/end/",
        PlaybackSessionEndView.as_view(),
        name="playback-session-end",
    ),
    path("playback/heartbeat/", PlaybackHeartbeatView.as_view(), name="playback-heartbeat"),
    path("playback/events/", PlaybackEventView.as_view(), name="playback-events"),
    path("playback/history/", WatchHistoryView.as_view(), name="playback-history"),
    path(
        "playback/videos/<str:video_id>/analytics/",
        VideoAnalyticsView.as_view(),
        name="playback-video-analytics",
    ),
]
