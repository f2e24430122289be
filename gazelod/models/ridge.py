"""
릿지 회귀 모델

L2 정규화를 사용한 선형 회귀 모델
정규 방정식을 닫힌 형태로 풀어 시선 위치를 예측하는 가벼운 모델
"""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from gazelod.errors import GazeLODError

from . import register_model
from .base import SCHEMA_VERSION, BaseModel

logger = logging.getLogger(__name__)

# 피벗이 이보다 작으면 이 값으로 대체
PIVOT_FLOOR = 1e-10


def gauss_jordan_inverse(
    m: np.ndarray, pivot_floor: float = PIVOT_FLOOR
) -> Tuple[np.ndarray, int]:
    """
    부분 피벗팅을 사용한 가우스-조던 소거법으로 역행렬을 구합니다

    각 단계에서 절댓값이 가장 큰 행을 피벗으로 올립니다.
    피벗이 pivot_floor 보다 작으면 실패하는 대신 pivot_floor 로 대체하고 계속 진행합니다.

    Args:
        m (np.ndarray): n x n 정방 행렬
        pivot_floor (float): 최소 피벗 크기

    Returns:
        tuple: (역행렬, 대체된 피벗 개수)
    """
    a = np.asarray(m, dtype=np.float64)
    n = a.shape[0]
    if a.shape != (n, n):
        raise ValueError(f"Matrix must be square, got {a.shape}")

    # [A | I] 확장 행렬
    aug = np.hstack((a, np.eye(n)))
    floored = 0

    for i in range(n):
        # 피벗 찾기 (동점이면 위쪽 행 유지)
        pivot_row = i + int(np.argmax(np.abs(aug[i:, i])))
        if pivot_row != i:
            aug[[i, pivot_row]] = aug[[pivot_row, i]]

        if abs(aug[i, i]) < pivot_floor:
            aug[i, i] = pivot_floor
            floored += 1

        # 피벗 행 스케일링
        aug[i] /= aug[i, i]

        # 나머지 행에서 i 열 소거
        factors = aug[:, i].copy()
        factors[i] = 0.0
        aug -= np.outer(factors, aug[i])

    return aug[:, n:], floored


class RidgeModel(BaseModel):
    """
    Ridge 회귀를 사용한 시선 위치 예측 모델

    표준화된 특징에 상수 1 열을 붙여 편향까지 하나의 선형 시스템으로 풀고,
    (XᵗX + αI)⁻¹ XᵗY 를 가우스-조던 소거법으로 계산합니다.
    """

    def __init__(self, alpha: float = 1.0) -> None:
        """
        Ridge 모델 초기화

        Args:
            alpha (float): 정규화 강도 (기본값: 1.0)
                          값이 클수록 정규화가 강함
        """
        super().__init__()
        if alpha < 0:
            raise ValueError(f"alpha must be non-negative, got {alpha}")
        self.alpha = float(alpha)
        self.weights: np.ndarray | None = None
        self.bias: np.ndarray | None = None
        # 마지막 학습에서 대체된 피벗 개수
        self.degenerate_pivots = 0

    def _native_train(self, X, y):
        n, d = X.shape
        # 편향 항을 위한 상수 열 추가
        Xb = np.hstack((X, np.ones((n, 1))))

        A = Xb.T @ Xb + self.alpha * np.eye(d + 1)
        B = Xb.T @ y

        A_inv, floored = gauss_jordan_inverse(A)
        if floored:
            logger.warning(
                f"[Ridge] Matrix near singular, {floored} pivot(s) replaced by {PIVOT_FLOOR}"
            )

        W = A_inv @ B
        return {"weights": W[:d], "bias": W[d], "degenerate_pivots": floored}

    def _apply_params(self, params):
        self.weights = params["weights"]
        self.bias = params["bias"]
        self.degenerate_pivots = params["degenerate_pivots"]

    def _native_predict(self, X):
        """y_i = bias_i + Σ_j x_j · W[j, i]"""
        return self.bias + X @ self.weights

    def to_dict(self) -> dict:
        """
        모델을 저장 가능한 레코드로 변환합니다

        Returns:
            dict: schema_version, model, alpha, weights, bias, mean, std, trained
        """
        return {
            "schema_version": SCHEMA_VERSION,
            "model": self.name,
            "alpha": self.alpha,
            "weights": None if self.weights is None else self.weights.tolist(),
            "bias": None if self.bias is None else self.bias.tolist(),
            **self._scaler_state(),
            "trained": self.trained,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RidgeModel":
        """
        레코드에서 모델을 복원합니다

        Raises:
            GazeLODError: 지원하지 않는 schema_version 인 경우
        """
        version = data.get("schema_version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise GazeLODError(f"Unsupported model schema version: {version}")

        model = cls(alpha=data.get("alpha", 1.0))
        if not data.get("trained"):
            return model

        model.weights = np.asarray(data["weights"], dtype=np.float64)
        model.bias = np.asarray(data["bias"], dtype=np.float64)
        model._restore_scaler(data["mean"], data["std"])
        model.trained = True
        return model


# 모델 레지스트리에 등록
register_model("ridge", RidgeModel)
