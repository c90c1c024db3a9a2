"""
재생 세션 코어 예외

- NotFound 계열: 호출부가 반응해야 하는 경우에만 경계를 넘는다 (create/update)
- heartbeat 의 invalid/expired 는 예외가 아니라 HeartbeatStatus 로 표현
"""
from __future__ import annotations

from typing import Optional


class PlaybackError(Exception):
    """재생 세션 코어 예외 베이스"""


class NotFound(PlaybackError):
    pass


class VideoNotFound(NotFound):
    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video manifest not found: {video_id}")


class SessionNotFound(NotFound):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class InvalidPlaybackUpdate(PlaybackError, ValueError):
    pass


class PlaybackAccessDenied(PlaybackError):
    def __init__(self, user_id: str, video_id: str):
        self.user_id = user_id
        self.video_id = video_id
        super().__init__(f"Video access denied: user={user_id} video={video_id}")


class SessionStoreUnavailable(PlaybackError):
    """세션 스토어 접근 불가 (Redis 장애 등). critical path 에서는 그대로 전파."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        self.cause = cause
        super().__init__(message)
