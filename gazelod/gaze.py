from __future__ import annotations

import logging
from collections import deque
from pathlib import Path
from typing import Tuple

import numpy as np

from gazelod.constants import FEATURE_SUBSETS, LEFT_EYE_CORNERS, RIGHT_EYE_CORNERS
from gazelod.models import BaseModel, create_model
from gazelod.pose import PoseNormalizer

logger = logging.getLogger(__name__)


def eye_aspect_ratio(points: np.ndarray, corners: dict) -> float:
    """
    한쪽 눈의 Eye Aspect Ratio (EAR) 계산: 높이 / 너비

    원본 이미지 좌표의 (x, y) 만 사용합니다.

    @param points: (N, 3) 원본 랜드마크
    @param corners: inner / outer / top / bottom 인덱스
    @return: EAR 값
    """
    inner = points[corners["inner"], :2]
    outer = points[corners["outer"], :2]
    top = points[corners["top"], :2]
    bottom = points[corners["bottom"], :2]

    width = np.linalg.norm(outer - inner)
    height = np.linalg.norm(top - bottom)
    return float(height / (width + 1e-9))


class BlinkDetector:
    """
    EAR 기반 깜빡임 감지기

    최근 EAR 값의 평균에 비율을 곱한 적응형 임계값을 사용합니다.
    히스토리가 충분하지 않으면 고정 임계값(기본 0.2)을 사용합니다.
    """

    def __init__(
        self,
        history_length: int = 50,
        threshold_ratio: float = 0.8,
        min_history: int = 15,
        default_threshold: float = 0.2,
    ):
        self._history: deque = deque(maxlen=history_length)
        self.threshold_ratio = threshold_ratio
        self.min_history = min_history
        self.default_threshold = default_threshold

    @property
    def history(self) -> Tuple[float, ...]:
        return tuple(self._history)

    @property
    def threshold(self) -> float:
        """현재 적용 중인 임계값"""
        if len(self._history) >= self.min_history:
            return float(np.mean(self._history)) * self.threshold_ratio
        return self.default_threshold

    def update(self, ear: float) -> bool:
        """
        EAR 값을 히스토리에 추가하고 깜빡임 여부를 반환합니다

        @param ear: 현재 프레임의 EAR
        @return: 깜빡임 감지 여부
        """
        self._history.append(float(ear))
        return ear < self.threshold

    def reset(self) -> None:
        self._history.clear()


class GazeEstimator:
    """
    시선 추적 추정기
    - 얼굴 특징점의 머리 자세 정규화
    - 눈 영역의 특징점 추출
    - 깜빡임 감지 (Eye Aspect Ratio 기반)
    - 회귀 모델을 통한 시선 위치 예측

    얼굴 특징점 감지 자체는 외부 랜드마크 소스가 담당합니다.
    """

    def __init__(
        self,
        model_name: str = "ridge",
        model_kwargs: dict | None = None,
        feature_subset: str = "eyes",
        ear_history_len: int = 50,
        blink_threshold_ratio: float = 0.8,
        min_history: int = 15,
        default_blink_threshold: float = 0.2,
    ):
        """
        GazeEstimator 초기화

        @param model_name: 시선 추적 모델명 (ridge)
        @param model_kwargs: 모델에 전달할 추가 인자 (예: alpha)
        @param feature_subset: 특징으로 사용할 랜드마크 집합 ("eyes" 또는 "all")
        @param ear_history_len: Eye Aspect Ratio 히스토리 길이
        @param blink_threshold_ratio: 깜빡임 감지 임계값 비율
        @param min_history: 적응형 임계값을 쓰기 위한 최소 히스토리
        @param default_blink_threshold: 히스토리가 부족할 때의 임계값
        """
        if feature_subset not in FEATURE_SUBSETS:
            raise ValueError(
                f"Unknown feature subset '{feature_subset}'. Available: {sorted(FEATURE_SUBSETS)}"
            )
        self.feature_subset = feature_subset
        self._subset_indices = np.asarray(FEATURE_SUBSETS[feature_subset])

        self.normalizer = PoseNormalizer()
        # 시선 추적 모델 생성
        self.model: BaseModel = create_model(model_name, **(model_kwargs or {}))
        self.blink = BlinkDetector(
            history_length=ear_history_len,
            threshold_ratio=blink_threshold_ratio,
            min_history=min_history,
            default_threshold=default_blink_threshold,
        )

        # 프레임이 최소한 가져야 할 랜드마크 개수
        self.required_points = 1 + max(
            int(self._subset_indices.max()),
            self.normalizer.required_points - 1,
            *LEFT_EYE_CORNERS.values(),
            *RIGHT_EYE_CORNERS.values(),
        )

    @property
    def feature_length(self) -> int:
        """특징 벡터 길이 (랜드마크 x 3 + 머리 자세 3)"""
        return len(self._subset_indices) * 3 + 3

    def extract_features(self, landmarks):
        """
        랜드마크에서 정규화된 특징 벡터와 깜빡임 여부를 반환

        랜드마크가 required_points 보다 적은 프레임은 버립니다 (얼굴 없음과 동일하게 처리).
        그보다 긴 프레임은 앞쪽 required_points 개만 사용합니다.

        @param landmarks: (N, 3) 랜드마크 배열, 얼굴이 없으면 None
        @return: (특징 벡터, 깜빡임 여부) 튜플, 또는 (None, False) 얼굴 미감지 시
        """
        if landmarks is None:
            return None, False

        all_points = np.asarray(landmarks, dtype=np.float64)
        if all_points.ndim != 2 or all_points.shape[1] != 3:
            logger.debug(f"[GazeEstimator] Malformed landmark frame: {all_points.shape}")
            return None, False
        if all_points.shape[0] < self.required_points:
            logger.debug(
                f"[GazeEstimator] Expected {self.required_points} landmarks, "
                f"got {all_points.shape[0]} - frame rejected"
            )
            return None, False
        all_points = all_points[: self.required_points]

        pose = self.normalizer.normalize(all_points)
        if pose is None:
            return None, False

        # 눈 영역 특징점 + 머리 자세 (Yaw, Pitch, Roll)
        features = np.concatenate(
            [pose.points[self._subset_indices].ravel(), np.asarray(pose.angles)]
        )

        # 깜빡임 감지: 양쪽 눈의 EAR 평균
        ear = (
            eye_aspect_ratio(all_points, LEFT_EYE_CORNERS)
            + eye_aspect_ratio(all_points, RIGHT_EYE_CORNERS)
        ) / 2
        blink_detected = self.blink.update(ear)

        return features, blink_detected

    def is_trained(self) -> bool:
        return self.model.trained

    def train(self, X, y):
        """
        시선 추적 모델을 훈련 데이터로 학습합니다.

        Args:
            X (np.ndarray): 특징 데이터 (N x D 배열, N=샘플수, D=특징수)
            y (np.ndarray): 시선 위치 레이블 (N x 2 배열, x, y 픽셀 좌표)
        """
        self.model.train(X, y)

    def predict(self, X):
        """
        입력 특징에 대한 시선 위치를 예측합니다.

        Args:
            X (np.ndarray): 특징 데이터 (N x D 배열 또는 1D 배열)

        Returns:
            np.ndarray: 예측된 시선 위치 (x, y 픽셀 좌표)
        """
        return self.model.predict(X)

    def reset_session(self) -> None:
        """이전 사용자의 깜빡임 히스토리를 지웁니다"""
        self.blink.reset()

    def save_model(self, path: str | Path):
        """
        학습된 시선 추적 모델을 파일에 저장합니다.

        Args:
            path (str | Path): 모델을 저장할 파일 경로
        """
        self.model.save(path)

    def load_model(self, path: str | Path):
        """
        저장된 시선 추적 모델을 파일에서 불러옵니다.

        Args:
            path (str | Path): 저장된 모델 파일 경로
        """
        self.model = BaseModel.load(path)
