"""
시선 추적 필터링 모듈

이 모듈은 시선 위치의 노이즈를 제거하고 스무딩하는
필터 알고리즘을 제공합니다.

필터 종류:
- Kalman 필터: 축별 1차원 상수 위치 칼만 필터
- NoOp: 필터링 없이 원본 데이터 반환
"""

from __future__ import annotations

import cv2
import numpy as np


def make_kalman(
    process_var: float = 0.5,
    measurement_var: float = 0.4,
    init_state: float = 0.0,
    init_cov: float = 1.0,
) -> cv2.KalmanFilter:
    """
    1차원 상수 위치 칼만 필터를 생성하고 초기화합니다.

    상태: [x] (위치만), 측정값: [x]
    전이 행렬과 측정 행렬이 모두 1 이므로

        P' = P + Q
        K  = P' / (P' + R)
        x' = x + K (z - x)
        P  = (1 - K) P'

    와 같습니다. 정밀도를 위해 float64 로 동작합니다.

    Args:
        process_var (float): 프로세스 노이즈 분산 Q
        measurement_var (float): 측정 노이즈 분산 R
        init_state (float): 초기 추정값
        init_cov (float): 초기 오차 공분산

    Returns:
        cv2.KalmanFilter: 초기화된 칼만 필터 객체
    """
    kf = cv2.KalmanFilter(1, 1, 0, cv2.CV_64F)

    kf.transitionMatrix = np.eye(1, dtype=np.float64)
    kf.measurementMatrix = np.eye(1, dtype=np.float64)
    kf.processNoiseCov = np.array([[process_var]], dtype=np.float64)
    kf.measurementNoiseCov = np.array([[measurement_var]], dtype=np.float64)

    kf.statePre = np.array([[init_state]], dtype=np.float64)
    kf.statePost = np.array([[init_state]], dtype=np.float64)
    kf.errorCovPre = np.array([[init_cov]], dtype=np.float64)
    kf.errorCovPost = np.array([[init_cov]], dtype=np.float64)

    return kf


# 필터 클래스들 임포트
from .base import BaseSmoother
from .kalman import AxisKalman, KalmanSmoother
from .noop import NoSmoother

FILTERS = {
    "kalman": KalmanSmoother,
    "noop": NoSmoother,
}


def make_smoother(method: str = "kalman", **kwargs) -> BaseSmoother:
    """
    이름으로 스무더를 생성합니다.

    Args:
        method (str): "kalman" 또는 "noop"
        **kwargs: 스무더 생성자 인자 (noop 은 무시)

    Raises:
        ValueError: 알 수 없는 필터 이름인 경우
    """
    try:
        cls = FILTERS[method]
    except KeyError as e:
        raise ValueError(f"Unknown filter '{method}'. Available: {sorted(FILTERS)}") from e
    if cls is NoSmoother:
        return cls()
    return cls(**kwargs)


__all__ = [
    "make_kalman",
    "make_smoother",
    "BaseSmoother",
    "AxisKalman",
    "KalmanSmoother",
    "NoSmoother",
]
