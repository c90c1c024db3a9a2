"""
저장소 키 레이아웃 (논리 키)

session:{session_id}                       세션 레코드 (TTL = 최대 세션 길이)
watchHistory:{session_id}                  시청 기록 (TTL 없음)
userWatchHistory:{user_id}                 유저별 시청 기록 session_id set (TTL 없음)
userSessions:{user_id}                     유저별 열린 세션 side-index (동시 세션 제한용)
videoAnalytics:{video_id}:{date}:{event}   이벤트 카운터 (24h TTL)
videoAnalytics:{video_id}:{date}:events    상세 이벤트 로그 set (24h TTL)
"""
from __future__ import annotations


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def watch_history_key(session_id: str) -> str:
    return f"watchHistory:{session_id}"


def user_watch_history_key(user_id: str) -> str:
    return f"userWatchHistory:{user_id}"


def user_sessions_key(user_id: str) -> str:
    return f"userSessions:{user_id}"


def video_analytics_prefix(video_id: str, date: str) -> str:
    return f"videoAnalytics:{video_id}:{date}"


def video_analytics_counter_key(video_id: str, date: str, event: str) -> str:
    return f"{video_analytics_prefix(video_id, date)}:{event}"


def video_analytics_events_key(video_id: str, date: str) -> str:
    return f"{video_analytics_prefix(video_id, date)}:events"


def video_manifest_key(video_id: str) -> str:
    return f"videoManifest:{video_id}"
