"""
재생 세션 도메인 모델

- PlaybackSession: 시청자 1명 x 영상 1개의 재생 컨텍스트 (store 에 JSON 으로 저장)
- WatchHistoryRecord: 세션 종료 시점 스냅샷 (불변)
- ManifestReference: 외부 인코딩 파이프라인이 제공하는 매니페스트 (읽기 전용)
"""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Deque, Optional

QUALITY_LADDER = ("240p", "360p", "480p", "720p", "1080p")

EVENT_LOG_CAPACITY = 100

DEVICE_INFO_FIELDS = ("userAgent", "platform", "browser", "screenResolution")


class HeartbeatStatus(str, Enum):
    OK = "ok"
    EXPIRED = "expired"
    INVALID = "invalid"


def normalize_device_info(device_info: Optional[dict[str, Any]]) -> dict[str, Any]:
    """기본 필드는 'unknown' 으로 채우고, 추가 키는 그대로 보존"""
    info = dict(device_info or {})
    for name in DEVICE_INFO_FIELDS:
        if not info.get(name):
            info[name] = "unknown"
    return info


@dataclass
class PlaybackEvent:
    type: str
    position: float
    timestamp: float
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "position": self.position,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PlaybackEvent":
        return cls(
            type=data["type"],
            position=float(data.get("position") or 0),
            timestamp=float(data.get("timestamp") or 0),
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass(frozen=True)
class Restrictions:
    download_disabled: bool = True
    seeking_disabled: bool = False
    speed_change_disabled: bool = False
    max_concurrent_sessions: int = 3

    def to_dict(self) -> dict[str, Any]:
        return {
            "download_disabled": self.download_disabled,
            "seeking_disabled": self.seeking_disabled,
            "speed_change_disabled": self.speed_change_disabled,
            "max_concurrent_sessions": self.max_concurrent_sessions,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> "Restrictions":
        if not data:
            return cls()
        return cls(
            download_disabled=bool(data.get("download_disabled", True)),
            seeking_disabled=bool(data.get("seeking_disabled", False)),
            speed_change_disabled=bool(data.get("speed_change_disabled", False)),
            max_concurrent_sessions=int(data.get("max_concurrent_sessions", 3)),
        )


@dataclass(frozen=True)
class Watermark:
    text: str
    position: str = "bottom-right"
    opacity: float = 0.7

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "position": self.position, "opacity": self.opacity}

    @classmethod
    def from_dict(cls, data: Optional[dict[str, Any]]) -> Optional["Watermark"]:
        if not data:
            return None
        return cls(
            text=data["text"],
            position=data.get("position", "bottom-right"),
            opacity=float(data.get("opacity", 0.7)),
        )


@dataclass(frozen=True)
class QualityVariant:
    quality: str
    bandwidth: int = 0
    url: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"quality": self.quality, "bandwidth": self.bandwidth, "url": self.url}


@dataclass(frozen=True)
class ManifestReference:
    video_id: str
    format: str
    base_url: str
    qualities: tuple[QualityVariant, ...] = ()
    duration: Optional[float] = None
    thumbnails: tuple[str, ...] = ()
    encrypted: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManifestReference":
        base_url = data.get("base_url") or data.get("baseUrl") or ""
        qualities = []
        for q in data.get("qualities") or []:
            # 구버전 매니페스트는 "720p" 같은 문자열 목록
            if isinstance(q, str):
                qualities.append(QualityVariant(quality=q, url=base_url))
            else:
                qualities.append(
                    QualityVariant(
                        quality=q["quality"],
                        bandwidth=int(q.get("bandwidth") or 0),
                        url=q.get("url") or base_url,
                    )
                )
        duration = data.get("duration")
        return cls(
            video_id=str(data.get("video_id") or data.get("videoId")),
            format=data.get("format") or "hls",
            base_url=base_url,
            qualities=tuple(qualities),
            duration=float(duration) if duration else None,
            thumbnails=tuple(data.get("thumbnails") or ()),
            encrypted=bool(data.get("encrypted", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "video_id": self.video_id,
            "format": self.format,
            "base_url": self.base_url,
            "qualities": [q.to_dict() for q in self.qualities],
            "duration": self.duration,
            "thumbnails": list(self.thumbnails),
            "encrypted": self.encrypted,
        }


def new_event_log(capacity: int = EVENT_LOG_CAPACITY) -> Deque[PlaybackEvent]:
    return deque(maxlen=capacity)


@dataclass
class PlaybackSession:
    session_id: str
    user_id: str
    video_id: str
    start_time: float
    last_activity: float
    access_token: str
    course_id: Optional[str] = None
    device_info: dict[str, Any] = field(default_factory=dict)
    restrictions: Restrictions = field(default_factory=Restrictions)
    watermark: Optional[Watermark] = None

    current_position: float = 0.0
    quality: str = "720p"
    playback_speed: float = 1.0
    volume: float = 1.0
    is_fullscreen: bool = False

    watch_time: float = 0.0
    completion_percentage: int = 0
    events: Deque[PlaybackEvent] = field(default_factory=new_event_log)

    def append_event(self, event: PlaybackEvent) -> None:
        # deque(maxlen) 가 가장 오래된 이벤트를 밀어낸다
        self.events.append(event)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "video_id": self.video_id,
            "course_id": self.course_id,
            "start_time": self.start_time,
            "last_activity": self.last_activity,
            "access_token": self.access_token,
            "device_info": dict(self.device_info),
            "restrictions": self.restrictions.to_dict(),
            "watermark": self.watermark.to_dict() if self.watermark else None,
            "current_position": self.current_position,
            "quality": self.quality,
            "playback_speed": self.playback_speed,
            "volume": self.volume,
            "is_fullscreen": self.is_fullscreen,
            "watch_time": self.watch_time,
            "completion_percentage": self.completion_percentage,
            "events": [e.to_dict() for e in self.events],
        }

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        event_capacity: int = EVENT_LOG_CAPACITY,
    ) -> "PlaybackSession":
        events = new_event_log(event_capacity)
        events.extend(PlaybackEvent.from_dict(e) for e in data.get("events") or [])
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            video_id=data["video_id"],
            course_id=data.get("course_id"),
            start_time=float(data["start_time"]),
            last_activity=float(data["last_activity"]),
            access_token=data.get("access_token") or "",
            device_info=dict(data.get("device_info") or {}),
            restrictions=Restrictions.from_dict(data.get("restrictions")),
            watermark=Watermark.from_dict(data.get("watermark")),
            current_position=float(data.get("current_position") or 0),
            quality=data.get("quality") or "720p",
            playback_speed=float(data.get("playback_speed") or 1.0),
            volume=float(data["volume"]) if data.get("volume") is not None else 1.0,
            is_fullscreen=bool(data.get("is_fullscreen", False)),
            watch_time=float(data.get("watch_time") or 0),
            completion_percentage=int(data.get("completion_percentage") or 0),
            events=events,
        )


@dataclass(frozen=True)
class WatchHistoryRecord:
    session_id: str
    user_id: str
    video_id: str
    course_id: Optional[str]
    watch_time: float
    completion_percentage: int
    event_count: int
    device_info: dict[str, Any]
    start_time: float
    ended_at: float
    video_duration: Optional[float] = None

    @property
    def session_duration(self) -> float:
        return max(0.0, self.ended_at - self.start_time)

    @classmethod
    def from_session(
        cls,
        session: PlaybackSession,
        *,
        ended_at: float,
        video_duration: Optional[float] = None,
    ) -> "WatchHistoryRecord":
        return cls(
            session_id=session.session_id,
            user_id=session.user_id,
            video_id=session.video_id,
            course_id=session.course_id,
            watch_time=session.watch_time,
            completion_percentage=session.completion_percentage,
            event_count=len(session.events),
            device_info=dict(session.device_info),
            start_time=session.start_time,
            ended_at=ended_at,
            video_duration=video_duration,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "video_id": self.video_id,
            "course_id": self.course_id,
            "watch_time": self.watch_time,
            "completion_percentage": self.completion_percentage,
            "event_count": self.event_count,
            "device_info": dict(self.device_info),
            "start_time": self.start_time,
            "ended_at": self.ended_at,
            "session_duration": self.session_duration,
            "video_duration": self.video_duration,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WatchHistoryRecord":
        return cls(
            session_id=data["session_id"],
            user_id=data["user_id"],
            video_id=data["video_id"],
            course_id=data.get("course_id"),
            watch_time=float(data.get("watch_time") or 0),
            completion_percentage=int(data.get("completion_percentage") or 0),
            event_count=int(data.get("event_count") or 0),
            device_info=dict(data.get("device_info") or {}),
            start_time=float(data.get("start_time") or 0),
            ended_at=float(data.get("ended_at") or 0),
            video_duration=data.get("video_duration"),
        )


@dataclass(frozen=True)
class HeartbeatResult:
    status: HeartbeatStatus
    recommended_quality: Optional[str] = None


@dataclass(frozen=True)
class TrackEventResult:
    recorded: bool
    video_completed: bool = False


@dataclass(frozen=True)
class CreatedSession:
    """CreateSession 결과: 세션 + 클라이언트에 내려줄 매니페스트"""
    session: PlaybackSession
    manifest: ManifestReference
