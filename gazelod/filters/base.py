"""시선 스무더 공통 인터페이스"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple


class BaseSmoother(ABC):
    """
    화면 픽셀 좌표 스트림을 한 점씩 받아 보정된 좌표를 돌려주는 필터

    `debug` 에는 구현별 내부 상태(추정치, 공분산 등)를 남깁니다.
    """

    def __init__(self) -> None:
        self.debug: dict = {}

    @abstractmethod
    def step(self, x: float, y: float) -> Tuple[float, float]:
        """
        회귀 모델이 예측한 (x, y) 픽셀 좌표 하나를 반영합니다.

        Returns:
            Tuple[float, float]: 스무딩된 (x, y)
        """
        ...

    def reset(self) -> None:
        """새 추적 세션 시작 시 호출 (상태 없는 필터는 debug 만 비움)"""
        self.debug.clear()
