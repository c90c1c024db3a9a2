"""
RedisSessionStore - ISessionStore Port 구현체

값은 JSON 문자열로 저장 (decode_responses=True 클라이언트 전제).
redis.RedisError 는 SessionStoreUnavailable 로 변환해서 던진다.
best-effort 경로에서 삼킬지 여부는 호출부(코어)가 결정.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import redis

from src.application.playback.errors import SessionStoreUnavailable
from src.application.ports.session_store import ISessionStore

logger = logging.getLogger(__name__)


@contextmanager
def _guard(op: str, key: str) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as e:
        logger.warning("Redis %s failed key=%s: %s", op, key, e)
        raise SessionStoreUnavailable(f"Redis {op} failed: {e}", cause=e) from e


class RedisSessionStore(ISessionStore):
    """ISessionStore 구현 (Redis)"""

    def __init__(self, client: redis.Redis) -> None:
        self._client = client

    def get(self, key: str) -> Optional[dict[str, Any]]:
        with _guard("get", key):
            raw = self._client.get(key)
        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Corrupted JSON in Redis key=%s, treating as missing", key)
            return None

    def set(self, key: str, value: dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        payload = json.dumps(value, default=str)
        with _guard("set", key):
            self._client.set(key, payload, ex=ttl_seconds)

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        with _guard("delete", ",".join(keys)):
            self._client.delete(*keys)

    def set_add(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        with _guard("sadd", key):
            pipe = self._client.pipeline(transaction=False)
            pipe.sadd(key, member)
            if ttl_seconds:
                pipe.expire(key, ttl_seconds)
            pipe.execute()

    def set_remove(self, key: str, member: str) -> None:
        with _guard("srem", key):
            self._client.srem(key, member)

    def set_members(self, key: str) -> set[str]:
        with _guard("smembers", key):
            return set(self._client.smembers(key) or ())

    def incr(self, key: str, ttl_seconds: Optional[int] = None) -> int:
        with _guard("incr", key):
            pipe = self._client.pipeline(transaction=False)
            pipe.incr(key)
            if ttl_seconds:
                pipe.expire(key, ttl_seconds)
            results = pipe.execute()
        return int(results[0])

    def get_counter(self, key: str) -> int:
        with _guard("get", key):
            raw = self._client.get(key)
        return int(raw or 0)
