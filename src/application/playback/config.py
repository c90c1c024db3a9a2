"""
재생 세션 설정

Django settings 에서 읽는다 (getattr + 기본값).
soft timeout(heartbeat expired) 은 반드시 hard TTL(store) 보다 먼저 터져야 한다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from django.core.exceptions import ImproperlyConfigured


@dataclass(frozen=True)
class PlaybackConfig:
    token_secret: str
    max_concurrent_sessions: int = 3
    session_timeout_seconds: int = 1800
    max_session_duration_seconds: int = 86400
    token_expiry_seconds: int = 86400

    default_quality: str = "720p"
    low_buffer_threshold: float = 5.0
    high_buffer_threshold: float = 15.0

    max_heartbeat_gap_seconds: float = 60.0
    event_log_capacity: int = 100
    completion_tolerance_seconds: float = 10.0
    completion_threshold_percent: int = 90

    analytics_ttl_seconds: int = 86400
    analytics_bucket_seconds: int = 60
    watch_history_ttl_seconds: Optional[int] = None

    watermark_enabled: bool = True
    watermark_tag: str = "LazyGameDevs"

    dispatch_queue_size: int = 1000

    app_url: str = ""

    def __post_init__(self) -> None:
        if not self.token_secret:
            raise ImproperlyConfigured("VIDEO_TOKEN_SECRET (or SECRET_KEY) is missing")
        if self.max_concurrent_sessions < 1:
            raise ImproperlyConfigured("VIDEO_MAX_CONCURRENT_SESSIONS must be >= 1")
        if self.session_timeout_seconds >= self.max_session_duration_seconds:
            raise ImproperlyConfigured(
                "VIDEO_SESSION_TIMEOUT_SECONDS must be shorter than "
                "VIDEO_SESSION_MAX_DURATION_SECONDS"
            )
        if self.low_buffer_threshold > self.high_buffer_threshold:
            raise ImproperlyConfigured(
                "VIDEO_ABR_LOW_BUFFER_SECONDS must not exceed VIDEO_ABR_HIGH_BUFFER_SECONDS"
            )

    @classmethod
    def from_settings(cls) -> "PlaybackConfig":
        from django.conf import settings

        history_ttl = getattr(settings, "VIDEO_WATCH_HISTORY_TTL_SECONDS", None)

        return cls(
            token_secret=getattr(settings, "VIDEO_TOKEN_SECRET", None) or settings.SECRET_KEY,
            max_concurrent_sessions=int(getattr(settings, "VIDEO_MAX_CONCURRENT_SESSIONS", 3)),
            session_timeout_seconds=int(getattr(settings, "VIDEO_SESSION_TIMEOUT_SECONDS", 1800)),
            max_session_duration_seconds=int(
                getattr(settings, "VIDEO_SESSION_MAX_DURATION_SECONDS", 86400)
            ),
            token_expiry_seconds=int(getattr(settings, "VIDEO_TOKEN_EXPIRY_SECONDS", 86400)),
            default_quality=getattr(settings, "VIDEO_DEFAULT_QUALITY", "720p"),
            low_buffer_threshold=float(getattr(settings, "VIDEO_ABR_LOW_BUFFER_SECONDS", 5)),
            high_buffer_threshold=float(getattr(settings, "VIDEO_ABR_HIGH_BUFFER_SECONDS", 15)),
            max_heartbeat_gap_seconds=float(
                getattr(settings, "VIDEO_MAX_HEARTBEAT_GAP_SECONDS", 60)
            ),
            event_log_capacity=int(getattr(settings, "VIDEO_EVENT_LOG_CAPACITY", 100)),
            completion_tolerance_seconds=float(
                getattr(settings, "VIDEO_COMPLETION_TOLERANCE_SECONDS", 10)
            ),
            completion_threshold_percent=int(
                getattr(settings, "VIDEO_COMPLETION_THRESHOLD_PERCENT", 90)
            ),
            analytics_ttl_seconds=int(getattr(settings, "VIDEO_ANALYTICS_TTL_SECONDS", 86400)),
            analytics_bucket_seconds=int(getattr(settings, "VIDEO_ANALYTICS_BUCKET_SECONDS", 60)),
            watch_history_ttl_seconds=int(history_ttl) if history_ttl else None,
            watermark_enabled=bool(getattr(settings, "VIDEO_WATERMARK_ENABLED", True)),
            watermark_tag=getattr(settings, "VIDEO_WATERMARK_TAG", "LazyGameDevs"),
            dispatch_queue_size=int(getattr(settings, "VIDEO_DISPATCH_QUEUE_SIZE", 1000)),
            app_url=getattr(settings, "API_BASE_URL", ""),
        )
