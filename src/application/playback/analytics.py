"""
재생 분석 집계

쓰기 (best-effort):
- videoAnalytics:{video_id}:{date}:{event}   카운터 +1
- videoAnalytics:{video_id}:{date}:events    상세 이벤트 JSON set
둘 다 retention(기본 24h) TTL. 실패는 호출부(디스패처)가 로그만 남기고 삼킨다.

읽기: get_video_analytics() 가 요청 기간의 일자별 로그를 모아 요약한다.
장기 보관 / 대시보드는 외부 웨어하우스 책임.
"""
from __future__ import annotations

import json
import logging
import time
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from src.application.playback import keys
from src.application.ports.session_store import ISessionStore

logger = logging.getLogger(__name__)

SESSION_CREATED = "session_created"
SESSION_ENDED = "session_ended"
HEARTBEAT = "heartbeat"
QUALITY_CHANGE = "quality_change"

DAY_SECONDS = 86400

# engagement / drop-off 곡선의 최대 bucket 수
MAX_CURVE_POINTS = 1000


def _date_of(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


class AnalyticsAggregator:
    def __init__(
        self,
        store: ISessionStore,
        *,
        clock: Callable[[], float] = time.time,
        ttl_seconds: int = DAY_SECONDS,
        bucket_seconds: int = 60,
        completion_threshold: int = 90,
    ) -> None:
        self._store = store
        self._clock = clock
        self._ttl = ttl_seconds
        self._bucket = max(1, int(bucket_seconds))
        self._completion_threshold = completion_threshold

    def track(
        self,
        event: str,
        *,
        video_id: str,
        session_id: Optional[str] = None,
        user_id: Optional[str] = None,
        data: Optional[dict[str, Any]] = None,
    ) -> None:
        now = self._clock()
        date = _date_of(now)

        self._store.incr(keys.video_analytics_counter_key(video_id, date, event), self._ttl)

        record = dict(data or {})
        record.update({
            "event": event,
            "timestamp": now,
            "sessionId": session_id,
            "userId": user_id,
            "videoId": video_id,
        })
        self._store.set_add(
            keys.video_analytics_events_key(video_id, date),
            json.dumps(record, sort_keys=True, default=str),
            self._ttl,
        )
        logger.debug("Video analytics tracked event=%s video_id=%s", event, video_id)

    def count(self, video_id: str, date: str, event: str) -> int:
        return self._store.get_counter(keys.video_analytics_counter_key(video_id, date, event))

    def events_for(self, video_id: str, date: str) -> list[dict[str, Any]]:
        records = []
        for raw in self._store.set_members(keys.video_analytics_events_key(video_id, date)):
            try:
                records.append(json.loads(raw))
            except ValueError:
                logger.warning("Skipping malformed analytics record video_id=%s date=%s", video_id, date)
        records.sort(key=lambda r: r.get("timestamp") or 0)
        return records

    def _dates(self, range_days: int) -> list[str]:
        now = self._clock()
        return sorted({_date_of(now - i * DAY_SECONDS) for i in range(max(1, int(range_days)))})

    def get_video_analytics(self, video_id: str, range_days: int = 7) -> dict[str, Any]:
        dates = self._dates(range_days)

        records: list[dict[str, Any]] = []
        total_views = 0
        for date in dates:
            total_views += self.count(video_id, date, SESSION_CREATED)
            records.extend(self.events_for(video_id, date))

        created = [r for r in records if r.get("event") == SESSION_CREATED]
        ended = [r for r in records if r.get("event") == SESSION_ENDED]

        viewers = {r["userId"] for r in records if r.get("userId")}

        total_watch_time = sum(float(r.get("watchTime") or 0) for r in ended)
        completed = [
            r for r in ended
            if int(r.get("completionPercentage") or 0) >= self._completion_threshold
        ]

        quality = Counter(
            r["quality"] for r in records
            if r.get("event") in (HEARTBEAT, QUALITY_CHANGE) and r.get("quality")
        )
        devices = Counter(
            (r.get("deviceInfo") or {}).get("platform") or "unknown" for r in created
        )

        return {
            "video_id": video_id,
            "range_days": int(range_days),
            "dates": dates,
            "total_views": total_views,
            "unique_viewers": len(viewers),
            "total_watch_time": total_watch_time,
            "average_watch_time": (total_watch_time / len(ended)) if ended else 0.0,
            "completion_rate": round(len(completed) / len(ended), 4) if ended else 0.0,
            "quality_distribution": dict(quality),
            "device_distribution": dict(devices),
            "drop_off_points": self._drop_off_points(ended),
            "engagement": self._engagement(ended),
        }

    def _bucket_of(self, position: float) -> int:
        return int(position // self._bucket) * self._bucket

    def _final_position(self, record: dict[str, Any]) -> float:
        """종료 위치. 영상 길이 / 곡선 길이 상한으로 clamp."""
        position = max(0.0, float(record.get("position") or 0))
        duration = record.get("videoDuration")
        if duration:
            position = min(position, float(duration))
        return min(position, float(self._bucket * (MAX_CURVE_POINTS - 1)))

    def _drop_off_points(self, ended: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not ended:
            return []
        buckets = Counter(self._bucket_of(self._final_position(r)) for r in ended)
        return [
            {"position": pos, "drop_off_rate": round(n / len(ended), 4)}
            for pos, n in sorted(buckets.items())
        ]

    def _engagement(self, ended: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not ended:
            return []
        finals = [self._final_position(r) for r in ended]
        last = self._bucket_of(max(finals))
        return [
            {"position": pos, "viewer_count": sum(1 for p in finals if p >= pos)}
            for pos in range(0, last + 1, self._bucket)
        ]
