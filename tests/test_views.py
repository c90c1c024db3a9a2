import pytest
from rest_framework.test import APIRequestFactory, force_authenticate

from apps.support.playback import views
from src.application.playback.models import HeartbeatStatus

from conftest import VIDEO_ID


class FakeUser:
    is_authenticated = True

    def __init__(self, pk, is_staff=False):
        self.pk = pk
        self.is_staff = is_staff


@pytest.fixture
def api(manager, monkeypatch):
    monkeypatch.setattr(views, "get_session_manager", lambda: manager)
    return APIRequestFactory()


def call(view_cls, request, user, **kwargs):
    force_authenticate(request, user=user)
    return view_cls.as_view()(request, **kwargs)


def start(api, user, video_id=VIDEO_ID):
    request = api.post(
        "/playback/sessions/",
        {"video_id": video_id, "device_info": {"platform": "web"}},
        format="json",
        HTTP_USER_AGENT="pytest-agent",
    )
    return call(views.PlaybackSessionCreateView, request, user)


def test_create_session_returns_secure_payload(api, manager):
    response = start(api, FakeUser(42))

    assert response.status_code == 201
    data = response.data
    assert data["session_id"].startswith("session_")
    assert data["manifest_url"] == "https://cdn.example.com/video-1/master.m3u8"
    assert [q["quality"] for q in data["qualities"]] == ["360p", "720p"]
    assert data["duration"] == 1800
    assert data["restrictions"]["download_disabled"] is True
    assert data["watermark"]["text"] == "LazyGameDevs - 42"
    assert data["heartbeat_url"].endswith("/api/v1/playback/heartbeat/")
    assert data["expires_at"] == manager.tokens.peek_expiry(data["access_token"])
    assert data["player_config"]["enable_fullscreen"] is True

    session = manager.get_session(data["session_id"])
    assert session.user_id == "42"
    assert session.device_info["userAgent"] == "pytest-agent"
    assert session.device_info["platform"] == "web"


def test_create_session_unknown_video_is_404(api):
    assert start(api, FakeUser(1), video_id="missing").status_code == 404


def test_create_session_denied_is_403(api, entitlement):
    entitlement.allowed = False
    assert start(api, FakeUser(1)).status_code == 403


def test_unauthenticated_request_is_rejected(api):
    request = api.post("/playback/sessions/", {"video_id": VIDEO_ID}, format="json")
    response = views.PlaybackSessionCreateView.as_view()(request)
    assert response.status_code in (401, 403)


def test_update_session(api):
    user = FakeUser(7)
    sid = start(api, user).data["session_id"]

    request = api.patch(f"/playback/sessions/{sid}/", {"current_position": 900, "quality": "480p"}, format="json")
    response = call(views.PlaybackSessionDetailView, request, user, session_id=sid)

    assert response.status_code == 200
    assert response.data["completion_percentage"] == 50
    assert response.data["quality"] == "480p"


def test_update_session_validation(api):
    user = FakeUser(7)
    sid = start(api, user).data["session_id"]

    for body in ({"volume": 2}, {"quality": "4k"}, {}):
        request = api.patch(f"/playback/sessions/{sid}/", body, format="json")
        assert call(views.PlaybackSessionDetailView, request, user, session_id=sid).status_code == 400


def test_other_users_session_is_forbidden(api, security):
    sid = start(api, FakeUser(1)).data["session_id"]

    request = api.get(f"/playback/sessions/{sid}/")
    response = call(views.PlaybackSessionDetailView, request, FakeUser(2), session_id=sid)

    assert response.status_code == 403
    assert security.events[-1]["kind"] == "unauthorized_access"
    assert security.events[-1]["context"]["actualUserId"] == "1"


def test_heartbeat_messages(api):
    user = FakeUser(3)
    sid = start(api, user).data["session_id"]

    request = api.post(
        "/playback/heartbeat/",
        {"session_id": sid, "position": 30, "buffer_health": 3, "quality": "720p"},
        format="json",
    )
    response = call(views.PlaybackHeartbeatView, request, user)

    assert response.status_code == 200
    assert response.data["status"] == HeartbeatStatus.OK.value
    assert response.data["recommendations"]["quality"] == "480p"
    assert response.data["recommendations"]["messages"] == [
        "Quality change recommended: 720p → 480p",
        "Low buffer detected. Consider reducing quality.",
    ]


def test_heartbeat_expired_session(api, clock):
    user = FakeUser(3)
    sid = start(api, user).data["session_id"]
    clock.advance(1801)

    request = api.post(
        "/playback/heartbeat/",
        {"session_id": sid, "position": 30, "buffer_health": 12, "quality": "720p"},
        format="json",
    )
    response = call(views.PlaybackHeartbeatView, request, user)

    assert response.status_code == 410
    assert response.data["status"] == "expired"


def test_heartbeat_unknown_session_is_404(api):
    request = api.post(
        "/playback/heartbeat/",
        {"session_id": "session_nope", "position": 0, "buffer_health": 12, "quality": "720p"},
        format="json",
    )
    assert call(views.PlaybackHeartbeatView, request, FakeUser(1)).status_code == 404


def test_track_ended_event(api):
    user = FakeUser(5)
    sid = start(api, user).data["session_id"]

    request = api.post(
        "/playback/events/",
        {"session_id": sid, "type": "ended", "position": 1799},
        format="json",
    )
    response = call(views.PlaybackEventView, request, user)

    assert response.status_code == 200
    assert response.data["recorded"] is True
    assert response.data["video_completed"] is True


def test_end_session_and_history(api, clock):
    user = FakeUser(9)
    sid = start(api, user).data["session_id"]
    clock.advance(30)

    request = api.post(f"/playback/sessions/{sid}/end/")
    response = call(views.PlaybackSessionEndView, request, user, session_id=sid)
    assert response.status_code == 200
    assert response.data["session_id"] == sid
    assert response.data["session_duration"] == 30

    again = call(views.PlaybackSessionEndView, api.post(f"/playback/sessions/{sid}/end/"), user, session_id=sid)
    assert again.status_code == 404

    history = call(views.WatchHistoryView, api.get("/playback/history/"), user)
    assert [r["session_id"] for r in history.data["results"]] == [sid]


def test_video_analytics_requires_staff(api):
    request = api.get(f"/playback/videos/{VIDEO_ID}/analytics/")
    assert call(views.VideoAnalyticsView, request, FakeUser(1), video_id=VIDEO_ID).status_code == 403


def test_video_analytics(api):
    start(api, FakeUser(1))

    request = api.get(f"/playback/videos/{VIDEO_ID}/analytics/", {"range": 3, "metrics": "total_views"})
    response = call(views.VideoAnalyticsView, request, FakeUser(99, is_staff=True), video_id=VIDEO_ID)

    assert response.status_code == 200
    assert response.data["total_views"] == 1
    assert "unique_viewers" not in response.data
    assert len(response.data["dates"]) == 3

    bad = api.get(f"/playback/videos/{VIDEO_ID}/analytics/", {"range": "abc"})
    assert call(views.VideoAnalyticsView, bad, FakeUser(99, is_staff=True), video_id=VIDEO_ID).status_code == 400
