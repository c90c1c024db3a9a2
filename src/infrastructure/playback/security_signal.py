"""
LoggingSecuritySignal - ISecuritySignal 구현체

보안/어뷰징 신호를 'security' 로거로 흘린다 (수집은 로그 파이프라인 책임).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional

from src.application.ports.security_signal import ISecuritySignal

security_logger = logging.getLogger("security")

_LEVELS = {
    "low": logging.INFO,
    "medium": logging.WARNING,
    "high": logging.ERROR,
    "critical": logging.CRITICAL,
}


class LoggingSecuritySignal(ISecuritySignal):
    def emit(
        self,
        kind: str,
        severity: str,
        context: dict[str, Any],
        user_id: Optional[str] = None,
    ) -> None:
        security_logger.log(
            _LEVELS.get(severity, logging.WARNING),
            "SECURITY_EVENT kind=%s severity=%s user_id=%s context=%s",
            kind,
            severity,
            user_id,
            json.dumps(context, default=str, sort_keys=True),
        )
