"""
재생 Access Token 발급/검증

- payload: session_id, video_id, user_id, iat, exp
- django.core.signing (HMAC) 서명 → 변조 불가
- payload 부분은 base64url JSON 이라 클라이언트가 exp 를 읽을 수 있다
- 검증(차단)은 delivery 레이어 책임, 백엔드는 생성 + 참고용 verify 만 제공
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional, Tuple

from django.core import signing

logger = logging.getLogger(__name__)

_SALT = "playback.session.token.v1"


class AccessTokenIssuer:
    def __init__(self, secret: str, *, clock: Callable[[], float] = time.time) -> None:
        self._signer = signing.TimestampSigner(key=secret, salt=_SALT, fallback_keys=[])
        self._clock = clock

    def issue(self, session_id: str, ttl_seconds: int, **claims: Any) -> str:
        now = int(self._clock())
        data: Dict[str, Any] = dict(claims)
        data["session_id"] = session_id
        data["iat"] = now
        data["exp"] = now + int(ttl_seconds)
        return self._signer.sign_object(data)

    def verify(self, token: str) -> Tuple[bool, Dict[str, Any] | None, str | None]:
        if not token:
            return False, None, "token_required"

        try:
            data = self._signer.unsign_object(token)
        except signing.BadSignature:
            return False, None, "invalid_token"

        try:
            exp = int(data.get("exp") or 0)
        except (TypeError, ValueError):
            return False, None, "token_exp_invalid"

        if exp <= int(self._clock()):
            return False, None, "token_expired"

        return True, data, None

    @staticmethod
    def peek_expiry(token: str) -> Optional[int]:
        """서명 검증 없이 exp 만 읽는다 (만료 표시용)"""
        try:
            payload = token.split(":", 1)[0]
            data = json.loads(signing.b64_decode(payload.encode("ascii")))
            return int(data["exp"])
        except (ValueError, KeyError, TypeError) as e:
            logger.debug("token peek failed: %s", e)
            return None
