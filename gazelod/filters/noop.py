"""
No-Op (아무 작업도 하지 않는) 필터 모듈

필터링을 하지 않고 입력된 시선 위치를 그대로 반환하는
필터 (주로 디버깅이나 필터 비교용)
"""

from __future__ import annotations

from typing import Tuple

from .base import BaseSmoother


class NoSmoother(BaseSmoother):
    """
    필터링을 수행하지 않는 스무더

    입력받은 시선 위치를 그대로 반환합니다.
    """

    def step(self, x: float, y: float) -> Tuple[float, float]:
        return float(x), float(y)
