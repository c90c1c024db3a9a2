"""
Adaptive Bitrate 추천 (stateless)

buffer health 만 보고 화질 사다리를 한 칸 내리거나 올린다.
현재 화질은 매 호출마다 클라이언트가 넘긴다.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from src.application.playback.models import QUALITY_LADDER


def recommend_quality(
    buffer_health: float,
    current_quality: str,
    *,
    low_threshold: float = 5.0,
    high_threshold: float = 15.0,
    ladder: Sequence[str] = QUALITY_LADDER,
) -> Optional[str]:
    """
    Returns:
        한 단계 아래/위 화질, 또는 None (버퍼 적정 / 사다리 끝 / 알 수 없는 화질)
    """
    if current_quality not in ladder:
        return None

    idx = ladder.index(current_quality)

    if buffer_health < low_threshold:
        return ladder[idx - 1] if idx > 0 else None

    if buffer_health > high_threshold:
        return ladder[idx + 1] if idx < len(ladder) - 1 else None

    return None


@dataclass(frozen=True)
class AdaptiveBitrateController:
    low_threshold: float = 5.0
    high_threshold: float = 15.0
    ladder: Sequence[str] = QUALITY_LADDER

    def recommend(self, buffer_health: float, current_quality: str) -> Optional[str]:
        return recommend_quality(
            buffer_health,
            current_quality,
            low_threshold=self.low_threshold,
            high_threshold=self.high_threshold,
            ladder=self.ladder,
        )
