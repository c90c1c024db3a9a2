"""
동시 세션 제한 (soft enforcement)

정책: 한도 초과 시 생성을 막지 않고, 가장 오래 활동 없는 세션을 종료시킨다.
- 열린 세션 목록은 userSessions:{user_id} side-index 로 관리
- index 에 남았지만 레코드가 TTL 로 사라진 id 는 읽을 때 정리
- 동시 생성 race 로 잠깐 한도를 넘는 것은 허용 (eventual consistency)
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

from src.application.playback import keys
from src.application.playback.dispatch import Dispatcher
from src.application.playback.models import PlaybackSession
from src.application.ports.security_signal import ISecuritySignal
from src.application.ports.session_store import ISessionStore

logger = logging.getLogger(__name__)

EndSessionFn = Callable[[str], object]


class ConcurrencyLimiter:
    def __init__(
        self,
        store: ISessionStore,
        security: ISecuritySignal,
        dispatcher: Dispatcher,
        *,
        max_sessions: int = 3,
        index_ttl_seconds: Optional[int] = None,
        event_capacity: int = 100,
    ) -> None:
        self._store = store
        self._security = security
        self._dispatcher = dispatcher
        self._max_sessions = max_sessions
        self._index_ttl = index_ttl_seconds
        self._event_capacity = event_capacity

    @property
    def max_sessions(self) -> int:
        return self._max_sessions

    def register(self, user_id: str, session_id: str) -> None:
        self._store.set_add(keys.user_sessions_key(user_id), session_id, self._index_ttl)

    def release(self, user_id: str, session_id: str) -> None:
        self._store.set_remove(keys.user_sessions_key(user_id), session_id)

    def open_sessions(self, user_id: str) -> list[PlaybackSession]:
        index_key = keys.user_sessions_key(user_id)
        sessions = []
        for session_id in self._store.set_members(index_key):
            raw = self._store.get(keys.session_key(session_id))
            if raw is None:
                # TTL 로 사라진 세션
                self._store.set_remove(index_key, session_id)
                continue
            sessions.append(PlaybackSession.from_dict(raw, self._event_capacity))
        return sessions

    def sessions_to_evict(self, user_id: str) -> list[PlaybackSession]:
        """새 세션 1개가 들어갈 자리를 만들기 위해 종료할 세션 (least-recently-active 순)"""
        sessions = self.open_sessions(user_id)
        overflow = len(sessions) - self._max_sessions + 1
        if overflow <= 0:
            return []
        sessions.sort(key=lambda s: (s.last_activity, s.start_time))
        return sessions[:overflow]

    def enforce(self, user_id: str, end_session: EndSessionFn) -> list[str]:
        """
        한도 초과 시 오래된 세션 종료 + 어뷰징 신호 1회 발행.

        Returns:
            종료시킨 session_id 목록 (없으면 빈 리스트)
        """
        victims = self.sessions_to_evict(user_id)
        if not victims:
            return []

        terminated = []
        for victim in victims:
            end_session(victim.session_id)
            terminated.append(victim.session_id)

        logger.info(
            "Session limit enforced user_id=%s terminated=%s max=%s",
            user_id,
            terminated,
            self._max_sessions,
        )
        self._dispatcher.submit(
            self._security.emit,
            "resource_abuse",
            "medium",
            {
                "context": "video_streaming",
                "action": "session_limit_enforced",
                "userId": user_id,
                "terminatedSessionIds": terminated,
                "maxSessions": self._max_sessions,
            },
            user_id,
        )
        return terminated
