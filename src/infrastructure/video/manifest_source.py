"""
IManifestSource 구현체

- StoreManifestSource: 인코딩 파이프라인이 videoManifest:{video_id} 에 기록한 매니페스트
- StaticManifestSource: 설정/테스트용 고정 매니페스트
- FallbackManifestSource: 앞에서부터 조회, 처음 찾은 것 반환
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from src.application.playback import keys
from src.application.playback.models import ManifestReference
from src.application.ports.manifest_source import IManifestSource
from src.application.ports.session_store import ISessionStore

logger = logging.getLogger(__name__)


class StoreManifestSource(IManifestSource):
    def __init__(self, store: ISessionStore) -> None:
        self._store = store

    def get_manifest(self, video_id: str) -> Optional[ManifestReference]:
        raw = self._store.get(keys.video_manifest_key(video_id))
        if raw is None:
            return None
        try:
            return ManifestReference.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Malformed manifest video_id=%s: %s", video_id, e)
            return None

    def put_manifest(self, manifest: ManifestReference) -> None:
        self._store.set(keys.video_manifest_key(manifest.video_id), manifest.to_dict())


class StaticManifestSource(IManifestSource):
    def __init__(self, manifests: Mapping[str, Union[ManifestReference, Mapping[str, Any]]]) -> None:
        self._manifests: dict[str, ManifestReference] = {}
        for video_id, m in manifests.items():
            if not isinstance(m, ManifestReference):
                m = ManifestReference.from_dict({"video_id": video_id, **m})
            self._manifests[str(video_id)] = m

    def get_manifest(self, video_id: str) -> Optional[ManifestReference]:
        return self._manifests.get(video_id)


class FallbackManifestSource(IManifestSource):
    def __init__(self, *sources: IManifestSource) -> None:
        self._sources = sources

    def get_manifest(self, video_id: str) -> Optional[ManifestReference]:
        for source in self._sources:
            manifest = source.get_manifest(video_id)
            if manifest is not None:
                return manifest
        return None
