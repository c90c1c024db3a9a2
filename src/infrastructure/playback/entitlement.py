"""
IEntitlementCheck 구현체

실제 수강/결제 판정은 외부 서비스 몫.
AllowAllEntitlement: 인증된 사용자는 모두 허용 (개발 / 무료 강의)
"""
from __future__ import annotations

from typing import Optional

from src.application.ports.entitlement import IEntitlementCheck


class AllowAllEntitlement(IEntitlementCheck):
    def has_access(self, user_id: str, video_id: str, course_id: Optional[str] = None) -> bool:
        return bool(user_id)
