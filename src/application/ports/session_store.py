"""
Session Store Port (인터페이스)

재생 세션 / 시청 기록 / 분석 카운터의 단일 공유 상태.
키 단위 TTL 지원. 값은 JSON 직렬화 가능한 dict.

구현체는 백엔드 장애를 SessionStoreUnavailable 로 변환해서 던진다.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class ISessionStore(ABC):
    """키-값 + set + counter 저장소 (TTL 지원)"""

    @abstractmethod
    def get(self, key: str) -> Optional[dict[str, Any]]:
        """만료되었거나 없으면 None"""
        pass

    @abstractmethod
    def set(self, key: str, value: dict[str, Any], ttl_seconds: Optional[int] = None) -> None:
        """ttl_seconds=None 이면 만료 없음"""
        pass

    @abstractmethod
    def delete(self, *keys: str) -> None:
        pass

    @abstractmethod
    def set_add(self, key: str, member: str, ttl_seconds: Optional[int] = None) -> None:
        """set 에 member 추가. ttl_seconds 가 있으면 키 TTL 갱신"""
        pass

    @abstractmethod
    def set_remove(self, key: str, member: str) -> None:
        pass

    @abstractmethod
    def set_members(self, key: str) -> set[str]:
        pass

    @abstractmethod
    def incr(self, key: str, ttl_seconds: Optional[int] = None) -> int:
        """카운터 +1 후 새 값 반환"""
        pass

    @abstractmethod
    def get_counter(self, key: str) -> int:
        pass
