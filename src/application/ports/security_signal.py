"""
Security Signal Port (인터페이스)

보안/어뷰징 신호 발행 (fire-and-forget).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional


class ISecuritySignal(ABC):
    @abstractmethod
    def emit(
        self,
        kind: str,
        severity: str,
        context: dict[str, Any],
        user_id: Optional[str] = None,
    ) -> None:
        pass
