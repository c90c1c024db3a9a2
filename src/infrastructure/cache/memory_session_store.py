"""
InMemorySessionStore - ISessionStore Port 구현체 (개발/테스트용)

Redis 미설정 시 fallback. 단일 프로세스 한정.
- 키별 만료 시각을 clock 기준으로 검사 (읽을 때 lazy 삭제)
- 값은 JSON 으로 직렬화해서 보관 (Redis 와 같은 복사 의미론)
"""
from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable, Optional

from src.application.ports.session_store import ISessionStore


class InMemorySessionStore(ISessionStore):
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._values: dict[str, Any] = {}
        self._expiry: dict[str, float] = {}

    def _alive(self, key: str) -> bool:
        exp = self._expiry.get(key)
        if exp is not None and self._clock() >= exp:
            self._values.pop(key, None)
            self._expiry.pop(key, None)
        return key in self._values

    def _touch(self, key: str, ttl_seconds: Optional[int]) -> None:
        if ttl_seconds:
            self._expiry[key] = self._clock() + ttl_seconds
        else:
            self._expiry.pop(key, None)

    def get(self, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            if not self._alive(key):
                return None
            return json.loads(self._values[key])

    def set(self, key: str, value: dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        payload = json.dumps(value, default=str)
        with self._lock:
            self._values[key] = payload
            self._touch(key, ttl_seconds)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._values.pop(key, None)
                self._expiry.pop(key, None)

    def set_add(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        with self._lock:
            if not self._alive(key):
                self._values[key] = set()
            self._values[key].add(member)
            if ttl_seconds:
                self._touch(key, ttl_seconds)

    def set_remove(self, key: str, member: str) -> None:
        with self._lock:
            if self._alive(key):
                self._values[key].discard(member)

    def set_members(self, key: str) -> set[str]:
        with self._lock:
            if not self._alive(key):
                return set()
            return set(self._values[key])

    def incr(self, key: str, ttl_seconds: Optional[int] = None) -> int:
        with self._lock:
            current = int(self._values[key]) if self._alive(key) else 0
            self._values[key] = current + 1
            if ttl_seconds:
                self._touch(key, ttl_seconds)
            return current + 1

    def get_counter(self, key: str) -> int:
        with self._lock:
            if not self._alive(key):
                return 0
            return int(self._values[key])

    def ttl(self, key: str) -> Optional[float]:
        """남은 TTL (초). 만료 없음 / 키 없음이면 None"""
        with self._lock:
            if not self._alive(key) or key not in self._expiry:
                return None
            return self._expiry[key] - self._clock()

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._expiry.clear()
