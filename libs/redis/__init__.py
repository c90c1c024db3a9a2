"""
Redis 연결 레이어

재생 세션 / 시청 기록 / 분석 카운터의 저장소.
Redis 장애 시 in-memory 스토어로 자동 fallback.
"""

from libs.redis.client import get_redis_client, is_redis_available, reset_redis_state

__all__ = [
    "get_redis_client",
    "is_redis_available",
    "reset_redis_state",
]
