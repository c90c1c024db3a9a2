import json

import pytest

from src.application.playback import keys
from src.application.playback.analytics import MAX_CURVE_POINTS, AnalyticsAggregator

from conftest import VIDEO_ID

DATE = "2023-11-14"


def test_track_increments_counter_and_appends_record(store, clock):
    analytics = AnalyticsAggregator(store, clock=clock)

    analytics.track("play", video_id=VIDEO_ID, session_id="s1", user_id="u1", data={"position": 5})
    clock.advance(1)
    analytics.track("play", video_id=VIDEO_ID, session_id="s1", user_id="u1", data={"position": 9})

    assert analytics.count(VIDEO_ID, DATE, "play") == 2
    records = analytics.events_for(VIDEO_ID, DATE)
    assert [r["position"] for r in records] == [5, 9]
    assert records[0]["sessionId"] == "s1"
    assert store.ttl(keys.video_analytics_counter_key(VIDEO_ID, DATE, "play")) == pytest.approx(86400)
    assert store.ttl(keys.video_analytics_events_key(VIDEO_ID, DATE)) == pytest.approx(86400)


def test_analytics_keys_expire_after_retention(store, clock):
    analytics = AnalyticsAggregator(store, clock=clock)
    analytics.track("pause", video_id=VIDEO_ID)

    clock.advance(86401)

    assert analytics.count(VIDEO_ID, DATE, "pause") == 0
    assert analytics.events_for(VIDEO_ID, DATE) == []


def test_malformed_records_are_skipped(store, clock):
    analytics = AnalyticsAggregator(store, clock=clock)
    store.set_add(keys.video_analytics_events_key(VIDEO_ID, DATE), "not-json")
    store.set_add(keys.video_analytics_events_key(VIDEO_ID, DATE), json.dumps({"event": "play", "timestamp": 1}))

    assert analytics.events_for(VIDEO_ID, DATE) == [{"event": "play", "timestamp": 1}]


def test_video_analytics_summary(manager, clock):
    a = manager.create_session(VIDEO_ID, "user-1", device_info={"platform": "web"}).session.session_id
    b = manager.create_session(VIDEO_ID, "user-2", device_info={"platform": "ios"}).session.session_id
    manager.create_session(VIDEO_ID, "user-1")

    clock.advance(10)
    manager.process_heartbeat(a, 1700, 10, "1080p")
    manager.process_heartbeat(b, 90, 10, "480p")
    clock.advance(10)
    manager.end_session(a)
    manager.end_session(b)

    summary = manager.get_video_analytics(VIDEO_ID, 7)

    assert summary["total_views"] == 3
    assert summary["unique_viewers"] == 2
    assert summary["total_watch_time"] == pytest.approx(20)
    assert summary["average_watch_time"] == pytest.approx(10)
    assert summary["completion_rate"] == 0.5
    assert summary["quality_distribution"] == {"1080p": 1, "480p": 1}
    assert summary["device_distribution"] == {"web": 1, "ios": 1, "unknown": 1}
    assert summary["drop_off_points"] == [
        {"position": 60, "drop_off_rate": 0.5},
        {"position": 1680, "drop_off_rate": 0.5},
    ]
    engagement = summary["engagement"]
    assert engagement[0] == {"position": 0, "viewer_count": 2}
    assert engagement[2] == {"position": 120, "viewer_count": 1}
    assert engagement[-1] == {"position": 1680, "viewer_count": 1}
    assert len(summary["dates"]) == 7


def test_video_analytics_empty(manager):
    summary = manager.get_video_analytics("nothing", 1)
    assert summary["total_views"] == 0
    assert summary["completion_rate"] == 0.0
    assert summary["drop_off_points"] == []
    assert summary["engagement"] == []


def test_curves_are_clamped_to_video_duration(manager):
    sid = manager.create_session(VIDEO_ID, "user-1").session.session_id
    manager.update_session(sid, {"current_position": 6e7})
    manager.end_session(sid)

    summary = manager.get_video_analytics(VIDEO_ID, 1)

    assert summary["drop_off_points"] == [{"position": 1800, "drop_off_rate": 1.0}]
    assert len(summary["engagement"]) == 31
    assert summary["engagement"][-1] == {"position": 1800, "viewer_count": 1}


def test_curves_are_capped_without_duration(manager):
    sid = manager.create_session("no-duration", "user-1").session.session_id
    manager.update_session(sid, {"current_position": 6e12})
    manager.end_session(sid)

    summary = manager.get_video_analytics("no-duration", 1)

    assert len(summary["engagement"]) == MAX_CURVE_POINTS
    assert summary["drop_off_points"] == [{"position": 60 * (MAX_CURVE_POINTS - 1), "drop_off_rate": 1.0}]
