"""
시선 거리 기반 LOD (Level of Detail) 매핑

정규화된 시선 위치와 중심와 반경으로부터 0~1 사이의 LOD 값을 계산합니다.
0 = 중심와 (최대 디테일), 1 = 주변부 (최소 디테일)

상태가 없는 순수 계산만 포함합니다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from gazelod.scenes import SceneProfile


def smoothstep(edge0: float, edge1: float, x):
    """
    3차 에르미트 보간 (GLSL smoothstep 과 동일)

    edge0 아래는 0, edge1 위는 1, 그 사이는 t²(3 - 2t)

    스칼라와 numpy 배열 모두 받습니다.
    """
    t = np.clip((np.asarray(x, dtype=np.float64) - edge0) / (edge1 - edge0), 0.0, 1.0)
    out = t * t * (3.0 - 2.0 * t)
    return float(out) if out.ndim == 0 else out


@dataclass(frozen=True)
class RenderBudget:
    """LOD 값 하나에 대한 렌더 예산"""

    lod: float
    max_steps: int
    detail_octaves: int
    epsilon: float

    def to_dict(self) -> dict:
        return {
            "lod": self.lod,
            "max_steps": self.max_steps,
            "detail_octaves": self.detail_octaves,
            "epsilon": self.epsilon,
        }


class LODMapper:
    """
    시선 거리 → LOD 변환기

    lod = smoothstep(radius * inner_ratio, radius * outer_ratio, distance)
    """

    def __init__(
        self,
        fovea_radius: float = 0.15,
        inner_ratio: float = 0.3,
        outer_ratio: float = 2.5,
    ) -> None:
        """
        Args:
            fovea_radius (float): 고화질 영역 반경 (정규화 화면 좌표)
            inner_ratio (float): LOD 가 0 에서 증가하기 시작하는 거리 (반경 배수)
            outer_ratio (float): LOD 가 1 에 도달하는 거리 (반경 배수)
        """
        if fovea_radius <= 0:
            raise ValueError(f"fovea_radius must be positive, got {fovea_radius}")
        if not 0 <= inner_ratio < outer_ratio:
            raise ValueError("Expected 0 <= inner_ratio < outer_ratio")
        self.fovea_radius = float(fovea_radius)
        self.inner_ratio = float(inner_ratio)
        self.outer_ratio = float(outer_ratio)

    @classmethod
    def for_scene(cls, scene: SceneProfile, fovea_radius: float = 0.15) -> "LODMapper":
        """장면의 smoothstep 경계를 사용하는 매퍼를 만듭니다"""
        inner, outer = scene.lod_edges
        return cls(fovea_radius, inner_ratio=inner, outer_ratio=outer)

    @property
    def edges(self) -> Tuple[float, float]:
        return self.fovea_radius * self.inner_ratio, self.fovea_radius * self.outer_ratio

    def lod_for_distance(self, distance):
        """시선까지의 거리로 LOD 를 계산합니다 (스칼라 또는 배열)"""
        lo, hi = self.edges
        return smoothstep(lo, hi, distance)

    def lod_at(self, gaze: Sequence[float], point: Sequence[float]) -> float:
        """
        화면 위 한 점의 LOD

        Args:
            gaze: 정규화된 시선 위치 (gx, gy)
            point: 정규화된 화면 좌표 (px, py)
        """
        distance = float(np.hypot(point[0] - gaze[0], point[1] - gaze[1]))
        return self.lod_for_distance(distance)

    def lod_field(self, gaze: Sequence[float], points: np.ndarray) -> np.ndarray:
        """(N, 2) 화면 좌표 배열 전체의 LOD"""
        points = np.asarray(points, dtype=np.float64)
        distance = np.linalg.norm(points - np.asarray(gaze, dtype=np.float64), axis=-1)
        return np.asarray(self.lod_for_distance(distance))

    def budget(self, lod: float, scene: SceneProfile) -> RenderBudget:
        """LOD 값을 장면의 렌더 예산으로 변환합니다"""
        lod = float(np.clip(lod, 0.0, 1.0))
        return RenderBudget(
            lod=lod,
            max_steps=scene.steps_for(lod),
            detail_octaves=scene.octaves_for(lod),
            epsilon=scene.epsilon_for(lod),
        )

    def average_steps(
        self,
        gaze: Sequence[float],
        scene: SceneProfile,
        grid: Tuple[int, int] = (16, 9),
    ) -> float:
        """
        화면 샘플 격자에서의 평균 레이마칭 스텝 예산

        프레임 하나의 연산량 추정치로 사용합니다.

        Args:
            gaze: 정규화된 시선 위치
            scene: 장면 프로파일
            grid: (가로, 세로) 샘플 수
        """
        gx, gy = grid
        xs = (np.arange(gx) + 0.5) / gx
        ys = (np.arange(gy) + 0.5) / gy
        points = np.stack(np.meshgrid(xs, ys), axis=-1).reshape(-1, 2)
        lods = self.lod_field(gaze, points)
        return float(np.mean([scene.steps_for(float(l)) for l in lods]))
