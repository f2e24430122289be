"""
칼만 필터 스무더 모듈

cv2.KalmanFilter를 래핑한 축별 시선 위치 스무딩 필터
"""

from __future__ import annotations

from typing import Tuple

import numpy as np

from . import make_kalman
from .base import BaseSmoother


class AxisKalman:
    """
    한 축(X 또는 Y)의 1차원 상수 위치 칼만 필터

    첫 측정값은 필터링 없이 그대로 추정값이 됩니다.
    (0 에서 시작하는 급격한 과도 응답을 피하기 위함)
    """

    def __init__(self, process_noise: float = 0.5, measurement_noise: float = 0.4) -> None:
        """
        Args:
            process_noise (float): 프로세스 노이즈 Q (예측 불확실성)
            measurement_noise (float): 측정 노이즈 R (클수록 더 부드러움)
        """
        self.kf = make_kalman(process_var=process_noise, measurement_var=measurement_noise)
        self.initialized = False

    @property
    def estimate(self) -> float:
        return float(self.kf.statePost[0, 0])

    @property
    def covariance(self) -> float:
        return float(self.kf.errorCovPost[0, 0])

    @property
    def process_noise(self) -> float:
        return float(self.kf.processNoiseCov[0, 0])

    @property
    def measurement_noise(self) -> float:
        return float(self.kf.measurementNoiseCov[0, 0])

    @measurement_noise.setter
    def measurement_noise(self, value: float) -> None:
        self.kf.measurementNoiseCov = np.array([[float(value)]], dtype=np.float64)

    def update(self, measurement: float) -> float:
        """
        측정값 하나로 추정값을 갱신합니다

        Args:
            measurement (float): 새 측정값

        Returns:
            float: 필터링된 값
        """
        measurement = float(measurement)
        if not self.initialized:
            self.kf.statePost = np.array([[measurement]], dtype=np.float64)
            self.initialized = True
            return measurement

        # 예측 단계: x' = x, P' = P + Q
        self.kf.predict()
        # 보정 단계: K = P' / (P' + R)
        self.kf.correct(np.array([[measurement]], dtype=np.float64))
        return self.estimate

    def reset(self) -> None:
        """추정값 0, 공분산 1, 미초기화 상태로 되돌립니다"""
        self.kf.statePre = np.zeros((1, 1), dtype=np.float64)
        self.kf.statePost = np.zeros((1, 1), dtype=np.float64)
        self.kf.errorCovPre = np.ones((1, 1), dtype=np.float64)
        self.kf.errorCovPost = np.ones((1, 1), dtype=np.float64)
        self.initialized = False


class KalmanSmoother(BaseSmoother):
    """
    칼만 필터를 사용한 시선 위치 스무더

    X, Y 축을 서로 독립적인 1차원 필터로 처리합니다.
    측정 노이즈 R 은 실행 중에 바꿀 수 있는 "스무딩" 값입니다.
    """

    def __init__(self, process_noise: float = 0.5, measurement_noise: float = 0.4) -> None:
        """
        칼만 필터 스무더 초기화

        Args:
            process_noise (float): 프로세스 노이즈 Q
            measurement_noise (float): 측정 노이즈 R (스무딩 강도)
        """
        super().__init__()
        self.filter_x = AxisKalman(process_noise, measurement_noise)
        self.filter_y = AxisKalman(process_noise, measurement_noise)

    @property
    def smoothing(self) -> float:
        return self.filter_x.measurement_noise

    @smoothing.setter
    def smoothing(self, value: float) -> None:
        if value <= 0:
            raise ValueError(f"smoothing must be positive, got {value}")
        self.filter_x.measurement_noise = value
        self.filter_y.measurement_noise = value

    def step(self, x: float, y: float) -> Tuple[float, float]:
        """
        한 프레임의 시선 위치를 필터링합니다.

        Args:
            x (float): 측정된 X 좌표 (필터링 전)
            y (float): 측정된 Y 좌표 (필터링 전)

        Returns:
            Tuple[float, float]: 필터링된 (x, y) 좌표
        """
        fx = self.filter_x.update(x)
        fy = self.filter_y.update(y)
        self.debug["covariance"] = (self.filter_x.covariance, self.filter_y.covariance)
        return fx, fy

    def reset(self) -> None:
        super().reset()
        self.filter_x.reset()
        self.filter_y.reset()
