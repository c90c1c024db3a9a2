"""
Entitlement Port (인터페이스)

수강/결제 여부 판정은 외부 책임. 코어는 bool 만 소비한다.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class IEntitlementCheck(ABC):
    @abstractmethod
    def has_access(self, user_id: str, video_id: str, course_id: Optional[str] = None) -> bool:
        pass
