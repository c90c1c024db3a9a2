"""
Manifest Port (인터페이스)

인코딩 파이프라인이 만든 스트리밍 매니페스트 조회 (읽기 전용).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.application.playback.models import ManifestReference


class IManifestSource(ABC):
    @abstractmethod
    def get_manifest(self, video_id: str) -> Optional[ManifestReference]:
        """없으면 None"""
        pass
