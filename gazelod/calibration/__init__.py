"""
시선 추적 캘리브레이션 모듈

시선 추적 모델을 사용자 환경에 맞게 조정하는 9포인트 캘리브레이션 제공
"""

from .common import NINE_POINT_ORDER, compute_grid_points
from .nine_point import run_9_point_calibration
from .protocol import (
    CalibrationProgress,
    CalibrationProtocol,
    CalibrationResult,
    CalibrationState,
)

__all__ = [
    "NINE_POINT_ORDER",
    "compute_grid_points",
    "run_9_point_calibration",
    "CalibrationProgress",
    "CalibrationProtocol",
    "CalibrationResult",
    "CalibrationState",
]
