"""
재생 세션 스토어용 Redis 클라이언트

접속 정보는 settings.REDIS_* (base.py 에서 env 로 채움).
REDIS_HOST 가 비어 있거나 ping 이 실패하면 None → composition root 가
InMemorySessionStore 로 전환한다. 결과는 프로세스 단위로 캐시.

모든 명령은 REDIS_SOCKET_TIMEOUT 으로 제한된다.
"""

from __future__ import annotations

import logging
from typing import Optional

import redis
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 2.0

_redis_client: Optional[redis.Redis] = None
_redis_available: Optional[bool] = None


def _connection_options() -> dict:
    timeout = float(getattr(settings, "REDIS_SOCKET_TIMEOUT", DEFAULT_SOCKET_TIMEOUT))
    return {
        "host": getattr(settings, "REDIS_HOST", "") or "",
        "port": int(getattr(settings, "REDIS_PORT", 6379)),
        "password": getattr(settings, "REDIS_PASSWORD", None) or None,
        "db": int(getattr(settings, "REDIS_DB", 0)),
        "socket_timeout": timeout,
        "socket_connect_timeout": timeout,
    }


def get_redis_client() -> Optional[redis.Redis]:
    """연결된 클라이언트 또는 None (미설정 / 연결 실패)."""
    global _redis_client, _redis_available

    if _redis_available is False:
        return None
    if _redis_client is not None:
        return _redis_client

    options = _connection_options()
    if not options["host"]:
        logger.debug("REDIS_HOST not set, playback sessions stay in memory")
        _redis_available = False
        return None

    try:
        client = redis.Redis(decode_responses=True, **options)
        client.ping()
    except redis.RedisError as e:
        logger.warning("Redis unreachable host=%s, using in-memory session store: %s", options["host"], e)
        _redis_available = False
        return None

    _redis_client = client
    _redis_available = True
    logger.info("Playback session store on Redis %s:%s db=%s", options["host"], options["port"], options["db"])
    return client


def is_redis_available() -> bool:
    return get_redis_client() is not None


def reset_redis_state() -> None:
    """테스트용: 캐시된 연결 상태 초기화"""
    global _redis_client, _redis_available
    _redis_client = None
    _redis_available = None
