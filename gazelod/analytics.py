"""
렌더링 연산량 추적

전체 화질 렌더링(기준선)과 시선 기반 선택적 렌더링의 레이마칭 스텝 수를 비교합니다.
두 비용 모두 실제로 기록된 프레임 수를 사용합니다.
"""

from __future__ import annotations

import math
import threading
from dataclasses import asdict, dataclass
from typing import List

FRAMES_PER_SECOND = 30


@dataclass(frozen=True)
class RenderCost:
    """세션 하나의 연산 비용"""

    label: str
    total_frames: int
    avg_steps_per_frame: float
    compute_units: float

    def to_dict(self) -> dict:
        return asdict(self)


class ComputeTracker:
    """
    세션 동안 프레임별 평균 스텝 수를 모읍니다

    start_session() 과 end_session() 사이에 기록된 프레임만 집계됩니다.
    """

    def __init__(self, full_render_steps: int = 80, demo_duration_sec: int = 45) -> None:
        """
        Args:
            full_render_steps (int): 전체 화질에서 픽셀당 스텝 수
            demo_duration_sec (int): 세션 길이 상한 (초)
        """
        self.full_render_steps = full_render_steps
        self.demo_duration_sec = demo_duration_sec
        self._frame_steps: List[float] = []
        self._lock = threading.Lock()
        self.is_tracking = False

    @property
    def frame_count(self) -> int:
        return len(self._frame_steps)

    def start_session(self) -> None:
        with self._lock:
            self._frame_steps = []
            self.is_tracking = True

    def record_frame(self, avg_steps: float) -> None:
        """프레임 하나의 평균 레이마칭 스텝 수를 기록합니다 (세션 중에만)"""
        with self._lock:
            if not self.is_tracking:
                return
            self._frame_steps.append(float(avg_steps))

    def end_session(self) -> None:
        with self._lock:
            self.is_tracking = False

    def full_render_cost(self) -> RenderCost:
        # 프레임이 없어도 기준선은 1프레임으로 계산
        frames = len(self._frame_steps) or 1
        return RenderCost(
            label="Full Render",
            total_frames=frames,
            avg_steps_per_frame=float(self.full_render_steps),
            compute_units=float(frames * self.full_render_steps),
        )

    def selective_render_cost(self) -> RenderCost:
        with self._lock:
            steps = list(self._frame_steps)
        if not steps:
            return RenderCost("Selective Render", 0, 0.0, 0.0)
        total = sum(steps)
        return RenderCost(
            label="Selective Render",
            total_frames=len(steps),
            avg_steps_per_frame=float(round(total / len(steps))),
            compute_units=float(round(total)),
        )

    def summary(self) -> dict:
        """
        결과 화면용 세션 요약

        Returns:
            dict: full_render, selective_render, savings_percent,
                  session_duration_sec, frames_captured
        """
        full = self.full_render_cost()
        selective = self.selective_render_cost()

        savings = 0.0
        if full.compute_units > 0:
            savings = (full.compute_units - selective.compute_units) / full.compute_units * 100

        frames = selective.total_frames
        if frames > 0:
            duration = min(self.demo_duration_sec, math.ceil(frames / FRAMES_PER_SECOND))
        else:
            duration = self.demo_duration_sec

        return {
            "full_render": full.to_dict(),
            "selective_render": selective.to_dict(),
            "savings_percent": round(savings),
            "session_duration_sec": duration,
            "frames_captured": frames,
        }
