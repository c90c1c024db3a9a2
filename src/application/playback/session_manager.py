"""
PlaybackSessionManager - 재생 세션 라이프사이클 유스케이스

흐름:
1. create_session: 권한 확인 → 매니페스트 확인 → 동시 세션 제한 → 토큰 발급 → 저장
2. update_session / process_heartbeat / track_event: store 기준 read-modify-write
3. end_session: 시청 기록 저장 → 유저 인덱스 추가 → 세션 삭제 (단계별 best-effort)

프로세스 내 락 없음. 같은 세션에 대한 동시 갱신은 last-writer-wins.
분석 / 보안 신호는 디스패처로 넘겨 재생 경로에 지연/실패를 전파하지 않는다.
"""
from __future__ import annotations

import logging
import math
import time
import uuid
from typing import Any, Callable, Mapping, Optional

from src.application.playback import keys
from src.application.playback.abr import AdaptiveBitrateController
from src.application.playback.analytics import (
    HEARTBEAT,
    SESSION_CREATED,
    SESSION_ENDED,
    AnalyticsAggregator,
)
from src.application.playback.concurrency import ConcurrencyLimiter
from src.application.playback.config import PlaybackConfig
from src.application.playback.dispatch import Dispatcher, InlineDispatcher
from src.application.playback.errors import (
    InvalidPlaybackUpdate,
    PlaybackAccessDenied,
    SessionNotFound,
    SessionStoreUnavailable,
    VideoNotFound,
)
from src.application.playback.models import (
    QUALITY_LADDER,
    CreatedSession,
    HeartbeatResult,
    HeartbeatStatus,
    PlaybackEvent,
    PlaybackSession,
    Restrictions,
    TrackEventResult,
    Watermark,
    WatchHistoryRecord,
    new_event_log,
    normalize_device_info,
)
from src.application.playback.token_issuer import AccessTokenIssuer
from src.application.ports.entitlement import IEntitlementCheck
from src.application.ports.manifest_source import IManifestSource
from src.application.ports.security_signal import ISecuritySignal
from src.application.ports.session_store import ISessionStore

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("current_position", "quality", "playback_speed", "volume", "is_fullscreen")

SIGNIFICANT_EVENTS = ("play", "pause", "ended", "error")


def completion_percentage(position: float, duration: Optional[float]) -> Optional[int]:
    """100 * position / duration 반올림 (.5 는 올림), [0, 100] clamp. duration 모르면 None."""
    if not duration or duration <= 0:
        return None
    pct = math.floor(100 * float(position) / float(duration) + 0.5)
    return int(min(100, max(0, pct)))


class PlaybackSessionManager:
    def __init__(
        self,
        store: ISessionStore,
        manifests: IManifestSource,
        entitlement: IEntitlementCheck,
        security: ISecuritySignal,
        config: PlaybackConfig,
        *,
        dispatcher: Optional[Dispatcher] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._manifests = manifests
        self._entitlement = entitlement
        self._security = security
        self._config = config
        self._dispatcher = dispatcher or InlineDispatcher()
        self._clock = clock

        self._tokens = AccessTokenIssuer(config.token_secret, clock=clock)
        self._abr = AdaptiveBitrateController(
            low_threshold=config.low_buffer_threshold,
            high_threshold=config.high_buffer_threshold,
        )
        self._limiter = ConcurrencyLimiter(
            store,
            security,
            self._dispatcher,
            max_sessions=config.max_concurrent_sessions,
            index_ttl_seconds=config.max_session_duration_seconds,
            event_capacity=config.event_log_capacity,
        )
        self._analytics = AnalyticsAggregator(
            store,
            clock=clock,
            ttl_seconds=config.analytics_ttl_seconds,
            bucket_seconds=config.analytics_bucket_seconds,
            completion_threshold=config.completion_threshold_percent,
        )

    @property
    def config(self) -> PlaybackConfig:
        return self._config

    @property
    def tokens(self) -> AccessTokenIssuer:
        return self._tokens

    @property
    def limiter(self) -> ConcurrencyLimiter:
        return self._limiter

    @property
    def analytics(self) -> AnalyticsAggregator:
        return self._analytics

    def emit_security_signal(
        self,
        kind: str,
        context: dict[str, Any],
        user_id: Optional[str] = None,
        severity: str = "medium",
    ) -> None:
        """API 레이어 보안 신호 (세션 소유자 불일치 등). fire-and-forget."""
        self._dispatcher.submit(self._security.emit, kind, severity, context, user_id)

    # --------------------------------------------------
    # Create
    # --------------------------------------------------

    def create_session(
        self,
        video_id: str,
        user_id: str,
        course_id: Optional[str] = None,
        device_info: Optional[Mapping[str, Any]] = None,
    ) -> CreatedSession:
        if not self._entitlement.has_access(user_id, video_id, course_id):
            logger.warning("Video access denied user_id=%s video_id=%s", user_id, video_id)
            self.emit_security_signal(
                "unauthorized_access",
                {
                    "resource": "video_content",
                    "videoId": video_id,
                    "courseId": course_id,
                    "action": "stream_access_denied",
                },
                user_id,
            )
            raise PlaybackAccessDenied(user_id, video_id)

        manifest = self._manifests.get_manifest(video_id)
        if manifest is None:
            raise VideoNotFound(video_id)

        self._limiter.enforce(user_id, self.end_session)

        now = self._clock()
        session_id = self._generate_session_id(now)
        token = self._tokens.issue(
            session_id,
            self._config.token_expiry_seconds,
            video_id=video_id,
            user_id=user_id,
        )
        restrictions, watermark = self._access_policy(user_id)

        session = PlaybackSession(
            session_id=session_id,
            user_id=user_id,
            video_id=video_id,
            course_id=course_id,
            start_time=now,
            last_activity=now,
            access_token=token,
            device_info=normalize_device_info(dict(device_info or {})),
            restrictions=restrictions,
            watermark=watermark,
            quality=self._config.default_quality,
            events=new_event_log(self._config.event_log_capacity),
        )

        self._persist(session)
        self._limiter.register(user_id, session_id)

        logger.info(
            "Video streaming session created session_id=%s user_id=%s video_id=%s course_id=%s",
            session_id,
            user_id,
            video_id,
            course_id,
        )
        self._emit_analytics(
            SESSION_CREATED,
            session,
            {"courseId": course_id, "deviceInfo": session.device_info},
        )
        return CreatedSession(session=session, manifest=manifest)

    # --------------------------------------------------
    # Read
    # --------------------------------------------------

    def get_session(self, session_id: str) -> Optional[PlaybackSession]:
        raw = self._store.get(keys.session_key(session_id))
        if raw is None:
            return None
        return PlaybackSession.from_dict(raw, self._config.event_log_capacity)

    def get_watch_history(self, user_id: str, limit: Optional[int] = None) -> list[WatchHistoryRecord]:
        records = []
        for session_id in self._store.set_members(keys.user_watch_history_key(user_id)):
            raw = self._store.get(keys.watch_history_key(session_id))
            if raw is not None:
                records.append(WatchHistoryRecord.from_dict(raw))
        records.sort(key=lambda r: r.ended_at, reverse=True)
        return records[:limit] if limit else records

    def get_video_analytics(self, video_id: str, range_days: int = 7) -> dict[str, Any]:
        return self._analytics.get_video_analytics(video_id, range_days)

    # --------------------------------------------------
    # Update / Heartbeat
    # --------------------------------------------------

    def update_session(self, session_id: str, updates: Mapping[str, Any]) -> PlaybackSession:
        session = self.get_session(session_id)
        if session is None:
            raise SessionNotFound(session_id)

        self._apply_updates(session, updates, self._clock())
        self._persist(session)
        return session

    def process_heartbeat(
        self,
        session_id: str,
        position: float,
        buffer_health: float,
        current_quality: str,
    ) -> HeartbeatResult:
        session = self.get_session(session_id)
        if session is None:
            return HeartbeatResult(status=HeartbeatStatus.INVALID)

        now = self._clock()
        if now - session.start_time > self._config.session_timeout_seconds:
            logger.info("Video session expired session_id=%s", session_id)
            return HeartbeatResult(status=HeartbeatStatus.EXPIRED)

        # heartbeat 사이 간격만 시청 시간으로 누적 (너무 긴 공백은 제외)
        gap = now - session.last_activity
        if 0 < gap <= self._config.max_heartbeat_gap_seconds:
            session.watch_time += gap

        # 사다리 밖 화질("auto" 등)은 기록하지 않는다
        updates = {"current_position": position}
        if current_quality in QUALITY_LADDER:
            updates["quality"] = current_quality
        self._apply_updates(session, updates, now)
        self._persist(session)

        recommended = self._abr.recommend(buffer_health, current_quality)

        logger.debug(
            "Video heartbeat processed session_id=%s position=%s buffer=%s quality=%s recommended=%s watch_time=%.1f",
            session_id,
            position,
            buffer_health,
            current_quality,
            recommended,
            session.watch_time,
        )
        self._emit_analytics(
            HEARTBEAT,
            session,
            {
                "position": position,
                "quality": current_quality,
                "bufferHealth": buffer_health,
                "recommendedQuality": recommended,
            },
        )
        return HeartbeatResult(status=HeartbeatStatus.OK, recommended_quality=recommended)

    # --------------------------------------------------
    # Events
    # --------------------------------------------------

    def track_event(
        self,
        session_id: str,
        event_type: str,
        position: float,
        metadata: Optional[Mapping[str, Any]] = None,
    ) -> TrackEventResult:
        try:
            session = self.get_session(session_id)
            if session is None:
                return TrackEventResult(recorded=False)

            now = self._clock()
            event = PlaybackEvent(
                type=event_type,
                position=float(position),
                timestamp=now,
                metadata=dict(metadata or {}),
            )
            session.append_event(event)
            session.last_activity = now
            self._persist(session)
            completed = self._handle_special_event(session, event)
        except SessionStoreUnavailable as e:
            logger.warning("Playback event dropped session_id=%s type=%s: %s", session_id, event_type, e)
            return TrackEventResult(recorded=False)

        if event_type in SIGNIFICANT_EVENTS:
            logger.info(
                "Video playback event session_id=%s user_id=%s video_id=%s type=%s position=%s",
                session_id,
                session.user_id,
                session.video_id,
                event_type,
                position,
            )

        self._emit_analytics(
            event_type,
            session,
            {"position": event.position, "metadata": event.metadata, "quality": session.quality},
        )
        return TrackEventResult(recorded=True, video_completed=completed)

    # --------------------------------------------------
    # End
    # --------------------------------------------------

    def end_session(self, session_id: str) -> Optional[WatchHistoryRecord]:
        """세션 종료. 단계별 실패는 개별 로그만 남기고 계속 진행. 세션이 없으면 None."""
        session = self.get_session(session_id)
        if session is None:
            return None

        now = self._clock()
        record = WatchHistoryRecord.from_session(
            session,
            ended_at=now,
            video_duration=self._duration_or_none(session.video_id),
        )

        try:
            self._store.set(
                keys.watch_history_key(session_id),
                record.to_dict(),
                self._config.watch_history_ttl_seconds,
            )
        except Exception as e:
            logger.error("Failed to store watch history session_id=%s: %s", session_id, e)

        try:
            self._store.set_add(keys.user_watch_history_key(session.user_id), session_id)
        except Exception as e:
            logger.error("Failed to index watch history session_id=%s user_id=%s: %s", session_id, session.user_id, e)

        try:
            self._store.delete(keys.session_key(session_id))
        except Exception as e:
            logger.error("Failed to delete session record session_id=%s: %s", session_id, e)

        try:
            self._limiter.release(session.user_id, session_id)
        except Exception as e:
            logger.warning("Failed to release session slot session_id=%s: %s", session_id, e)

        logger.info(
            "Video streaming session ended session_id=%s user_id=%s video_id=%s duration=%.1f watch_time=%.1f completion=%s events=%s",
            session_id,
            session.user_id,
            session.video_id,
            record.session_duration,
            record.watch_time,
            record.completion_percentage,
            record.event_count,
        )
        self._emit_analytics(
            SESSION_ENDED,
            session,
            {
                "position": session.current_position,
                "watchTime": record.watch_time,
                "completionPercentage": record.completion_percentage,
                "eventCount": record.event_count,
                "sessionDuration": record.session_duration,
                "videoDuration": record.video_duration,
            },
        )
        return record

    # --------------------------------------------------
    # internal helpers
    # --------------------------------------------------

    @staticmethod
    def _generate_session_id(now: float) -> str:
        return f"session_{int(now * 1000)}_{uuid.uuid4().hex[:16]}"

    def _access_policy(self, user_id: str) -> tuple[Restrictions, Optional[Watermark]]:
        restrictions = Restrictions(
            download_disabled=True,
            seeking_disabled=False,
            speed_change_disabled=False,
            max_concurrent_sessions=self._config.max_concurrent_sessions,
        )
        watermark = None
        if self._config.watermark_enabled:
            watermark = Watermark(text=f"{self._config.watermark_tag} - {user_id[:8]}")
        return restrictions, watermark

    def _persist(self, session: PlaybackSession) -> None:
        self._store.set(
            keys.session_key(session.session_id),
            session.to_dict(),
            self._config.max_session_duration_seconds,
        )

    def _duration_of(self, video_id: str) -> Optional[float]:
        manifest = self._manifests.get_manifest(video_id)
        return manifest.duration if manifest else None

    def _duration_or_none(self, video_id: str) -> Optional[float]:
        try:
            return self._duration_of(video_id)
        except Exception as e:
            logger.warning("Manifest lookup failed video_id=%s: %s", video_id, e)
            return None

    def _apply_updates(self, session: PlaybackSession, updates: Mapping[str, Any], now: float) -> None:
        unknown = set(updates) - set(UPDATABLE_FIELDS)
        if unknown:
            raise InvalidPlaybackUpdate(f"Unsupported session fields: {sorted(unknown)}")

        if updates.get("quality") is not None and updates["quality"] not in QUALITY_LADDER:
            raise InvalidPlaybackUpdate(f"Unknown quality: {updates['quality']}")
        if updates.get("playback_speed") is not None and not 0.25 <= float(updates["playback_speed"]) <= 2.0:
            raise InvalidPlaybackUpdate("playback_speed must be between 0.25 and 2.0")
        if updates.get("volume") is not None and not 0 <= float(updates["volume"]) <= 1:
            raise InvalidPlaybackUpdate("volume must be between 0 and 1")

        for name in UPDATABLE_FIELDS:
            value = updates.get(name)
            if value is not None:
                setattr(session, name, value)

        if updates.get("current_position") is not None:
            session.current_position = float(updates["current_position"])
            pct = completion_percentage(session.current_position, self._duration_of(session.video_id))
            if pct is not None:
                session.completion_percentage = pct

        session.last_activity = now

    def _handle_special_event(self, session: PlaybackSession, event: PlaybackEvent) -> bool:
        if event.type == "ended":
            duration = self._duration_or_none(session.video_id)
            near_end = bool(duration) and event.position >= duration - self._config.completion_tolerance_seconds
            completed = near_end or session.completion_percentage >= self._config.completion_threshold_percent
            if completed:
                logger.info(
                    "Video completed user_id=%s video_id=%s course_id=%s watch_time=%.1f",
                    session.user_id,
                    session.video_id,
                    session.course_id,
                    session.watch_time,
                )
            return completed

        if event.type == "error":
            logger.warning(
                "Video playback error session_id=%s video_id=%s error=%s",
                session.session_id,
                session.video_id,
                event.metadata.get("error"),
            )
        elif event.type == "quality_change":
            logger.debug(
                "Video quality changed session_id=%s from=%s to=%s reason=%s",
                session.session_id,
                event.metadata.get("from"),
                event.metadata.get("to"),
                event.metadata.get("reason"),
            )
        return False

    def _emit_analytics(self, event: str, session: PlaybackSession, data: dict[str, Any]) -> None:
        self._dispatcher.submit(
            self._analytics.track,
            event,
            video_id=session.video_id,
            session_id=session.session_id,
            user_id=session.user_id,
            data=data,
        )
