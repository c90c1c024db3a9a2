# PATH: apps/support/playback/services.py

"""
재생 세션 서비스 조립 (composition root)

- Redis 가 있으면 RedisSessionStore, 없으면 InMemorySessionStore (단일 프로세스 한정)
- 매니페스트: store(videoManifest:{id}) → settings.VIDEO_STATIC_MANIFESTS 순서로 조회
- 부수효과(분석/보안 신호)는 BackgroundDispatcher 로 비동기 처리
"""
from __future__ import annotations

import logging
from functools import lru_cache

from django.conf import settings
from django.utils.module_loading import import_string

from libs.redis import get_redis_client
from src.application.playback.config import PlaybackConfig
from src.application.playback.dispatch import BackgroundDispatcher
from src.application.playback.session_manager import PlaybackSessionManager
from src.application.ports.entitlement import IEntitlementCheck
from src.application.ports.security_signal import ISecuritySignal
from src.application.ports.session_store import ISessionStore
from src.infrastructure.cache.memory_session_store import InMemorySessionStore
from src.infrastructure.cache.redis_session_store import RedisSessionStore
from src.infrastructure.playback.entitlement import AllowAllEntitlement
from src.infrastructure.playback.security_signal import LoggingSecuritySignal
from src.infrastructure.video.manifest_source import (
    FallbackManifestSource,
    StaticManifestSource,
    StoreManifestSource,
)

logger = logging.getLogger(__name__)


def build_session_store() -> ISessionStore:
    client = get_redis_client()
    if client is None:
        logger.warning("Redis unavailable, playback sessions use in-memory store (single process only)")
        return InMemorySessionStore()
    return RedisSessionStore(client)


def build_entitlement() -> IEntitlementCheck:
    path = getattr(settings, "VIDEO_ENTITLEMENT_CHECK", None)
    if path:
        return import_string(path)()
    return AllowAllEntitlement()


def build_security_signal() -> ISecuritySignal:
    path = getattr(settings, "VIDEO_SECURITY_SIGNAL", None)
    if path:
        return import_string(path)()
    return LoggingSecuritySignal()


@lru_cache(maxsize=1)
def get_session_manager() -> PlaybackSessionManager:
    config = PlaybackConfig.from_settings()
    store = build_session_store()
    manifests = FallbackManifestSource(
        StoreManifestSource(store),
        StaticManifestSource(getattr(settings, "VIDEO_STATIC_MANIFESTS", {}) or {}),
    )
    return PlaybackSessionManager(
        store,
        manifests,
        build_entitlement(),
        build_security_signal(),
        config,
        dispatcher=BackgroundDispatcher(maxsize=config.dispatch_queue_size),
    )


def reset_session_manager() -> None:
    """테스트 / 설정 변경 후 재조립용"""
    get_session_manager.cache_clear()
