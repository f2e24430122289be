"""
시선 예측 모델 기본 클래스

모든 회귀 모델이 구현해야 하는 공통 인터페이스 정의
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

import numpy as np
from sklearn.preprocessing import StandardScaler

from gazelod.errors import (
    FeatureDimensionError,
    InsufficientSamplesError,
    ModelNotTrainedError,
    TrainingError,
)

logger = logging.getLogger(__name__)

# 직렬화 포맷 버전
SCHEMA_VERSION = 1


class BaseModel(ABC):
    """
    모든 시선 예측 모델이 구현해야 하는 추상 기본 클래스

    특징: 자동 특징 표준화, 원자적 학습, 레코드 직렬화

    학습은 새 스케일러와 새 파라미터를 먼저 계산한 뒤 한 번에 교체합니다.
    학습이 중간에 실패해도 이전에 학습된 상태는 그대로 유지됩니다.
    """

    name = "base"

    def __init__(self) -> None:
        """
        기본 모델 초기화

        Attributes:
            scaler (StandardScaler): 특징 정규화용 스케일러 (모집단 표준편차)
            trained (bool): 학습 완료 여부
        """
        self.scaler = StandardScaler()
        self.trained = False

    @abstractmethod
    def _native_train(self, X: np.ndarray, y: np.ndarray) -> dict:
        """
        표준화된 특징으로 파라미터를 계산합니다 (서브클래스에서 구현 필수)

        인스턴스 상태를 바꾸지 않고 파라미터 딕셔너리를 반환해야 합니다.

        Args:
            X (np.ndarray): 정규화된 입력 특징 (N x D)
            y (np.ndarray): 타겟 값 (N x 2) - 시선 위치
        """
        ...

    @abstractmethod
    def _apply_params(self, params: dict) -> None:
        """_native_train 이 반환한 파라미터를 인스턴스에 반영합니다"""
        ...

    @abstractmethod
    def _native_predict(self, X: np.ndarray) -> np.ndarray:
        """
        네이티브 모델로 예측 (서브클래스에서 구현 필수)

        Args:
            X (np.ndarray): 정규화된 입력 특징 (N x D)

        Returns:
            np.ndarray: 예측된 시선 위치 (N x 2)
        """
        ...

    @property
    def n_features(self) -> int | None:
        """학습된 특징 수 (학습 전에는 None)"""
        if not self.trained:
            return None
        return int(self.scaler.n_features_in_)

    def train(self, X, y) -> None:
        """
        공개 훈련 인터페이스 (자동 정규화 포함)

        Args:
            X: 입력 특징 (N x D)
            y: 타겟 값 (N x 2) - 시선 위치

        Raises:
            InsufficientSamplesError: 샘플이 2개 미만인 경우
            TrainingError: 계산 결과가 유한하지 않은 경우
        """
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        if X.ndim != 2 or X.shape[0] < 2:
            raise InsufficientSamplesError(
                f"Need at least 2 samples to train, got {0 if X.ndim != 2 else X.shape[0]}"
            )
        if y.shape != (X.shape[0], 2):
            raise ValueError(f"Targets must have shape ({X.shape[0]}, 2), got {y.shape}")

        logger.info(f"[{self.name}] Training on {X.shape[0]} samples with {X.shape[1]} features")

        # 특징 정규화 (평균=0, 표준편차=1), 기존 스케일러는 건드리지 않음
        scaler = StandardScaler()
        Xs = scaler.fit_transform(X)
        params = self._native_train(Xs, y)

        if not all(np.all(np.isfinite(v)) for v in params.values() if isinstance(v, np.ndarray)):
            raise TrainingError("Training produced non-finite parameters")

        self.scaler = scaler
        self._apply_params(params)
        self.trained = True
        logger.info(f"[{self.name}] Model trained successfully")

    def predict(self, X) -> np.ndarray:
        """
        공개 예측 인터페이스 (자동 정규화 포함)

        Args:
            X: 입력 특징 (D) 또는 (N x D)

        Returns:
            np.ndarray: 예측된 시선 위치, 입력이 1차원이면 (2,), 아니면 (N x 2)

        Raises:
            ModelNotTrainedError: 학습 전에 호출한 경우
            FeatureDimensionError: 특징 수가 학습 때와 다른 경우
        """
        if not self.trained:
            raise ModelNotTrainedError("Model not trained")

        X = np.asarray(X, dtype=np.float64)
        single = X.ndim == 1
        X2 = X.reshape(1, -1) if single else X
        if X2.shape[1] != self.n_features:
            raise FeatureDimensionError(
                f"Expected {self.n_features} features, got {X2.shape[1]}"
            )

        # 입력 특징 정규화 (훈련 때의 통계 사용)
        Xs = self.scaler.transform(X2)
        out = self._native_predict(Xs)
        return out[0] if single else out

    # ------------------------------------------------------------------
    # 직렬화
    # ------------------------------------------------------------------
    def _scaler_state(self) -> dict:
        if not self.trained:
            return {"mean": None, "std": None}
        return {
            "mean": self.scaler.mean_.tolist(),
            "std": self.scaler.scale_.tolist(),
        }

    def _restore_scaler(self, mean, std) -> None:
        """저장된 평균/표준편차로 학습된 StandardScaler 상태를 복원합니다"""
        mean = np.asarray(mean, dtype=np.float64)
        std = np.asarray(std, dtype=np.float64)
        scaler = StandardScaler()
        scaler.mean_ = mean
        scaler.scale_ = std
        scaler.var_ = std**2
        scaler.n_features_in_ = mean.shape[0]
        scaler.n_samples_seen_ = 0
        self.scaler = scaler

    @abstractmethod
    def to_dict(self) -> dict:
        """모델을 JSON 호환 레코드로 변환합니다"""
        ...

    @classmethod
    @abstractmethod
    def from_dict(cls, data: dict) -> "BaseModel":
        """to_dict() 레코드에서 모델을 복원합니다"""
        ...

    def save(self, path: str | Path) -> None:
        """
        학습된 모델을 파일에 저장합니다 (JSON 포맷)

        Args:
            path (str | Path): 저장할 파일 경로
        """
        with Path(path).open("w", encoding="utf-8") as fh:
            json.dump(self.to_dict(), fh)

    @classmethod
    def load(cls, path: str | Path) -> "BaseModel":
        """
        저장된 모델을 파일에서 불러옵니다

        Args:
            path (str | Path): 저장된 모델 파일 경로

        Returns:
            BaseModel: 로드된 모델 인스턴스
        """
        with Path(path).open("r", encoding="utf-8") as fh:
            data = json.load(fh)
        if cls is BaseModel:
            # 기본 클래스로 호출하면 레코드의 모델 이름으로 클래스를 찾음
            from gazelod.models import model_from_dict

            return model_from_dict(data)
        return cls.from_dict(data)
