"""
화면 정보 유틸리티

캘리브레이션 타겟 배치와 시선 좌표 정규화에 쓰는 화면 해상도 조회
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from screeninfo import ScreenInfoError, get_monitors

logger = logging.getLogger(__name__)


def get_screen_size(fallback: Optional[Tuple[int, int]] = None) -> Tuple[int, int]:
    """
    주 모니터의 해상도를 반환합니다

    주 모니터 표시가 없으면 첫 번째 모니터를 사용합니다.
    디스플레이가 없는 환경(헤드리스 서버 등)에서는 fallback 을 반환합니다.

    Args:
        fallback: 모니터를 찾지 못했을 때 사용할 (가로, 세로)

    Returns:
        tuple: (가로, 세로) 해상도 (픽셀 단위)

    Raises:
        ScreenInfoError: 모니터를 찾지 못했고 fallback 도 없는 경우
    """
    try:
        monitors = get_monitors()
    except ScreenInfoError:
        if fallback is None:
            raise
        monitors = []

    if not monitors:
        if fallback is None:
            raise ScreenInfoError("No monitors found")
        logger.warning(f"[Screen] No monitor detected, using {fallback[0]}x{fallback[1]}")
        return fallback

    m = next((m for m in monitors if getattr(m, "is_primary", False)), monitors[0])
    return m.width, m.height
