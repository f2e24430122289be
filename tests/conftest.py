from __future__ import annotations

import numpy as np
import pytest

from gazelod.constants import (
    ALL_LANDMARK_COUNT,
    LEFT_EYE_CORNERS,
    LEFT_IRIS_INDICES,
    POSE_LANDMARKS,
    RIGHT_EYE_CORNERS,
    RIGHT_IRIS_INDICES,
)

# 홍채가 화면 끝에서 끝까지 움직이는 거리 (이미지 좌표)
IRIS_TRAVEL = 0.02


def rotation_matrix(yaw: float = 0.0, pitch: float = 0.0, roll: float = 0.0) -> np.ndarray:
    cy, sy = np.cos(yaw), np.sin(yaw)
    cp, sp = np.cos(pitch), np.sin(pitch)
    cr, sr = np.cos(roll), np.sin(roll)
    rz = np.array([[cy, -sy, 0.0], [sy, cy, 0.0], [0.0, 0.0, 1.0]])
    ry = np.array([[cp, 0.0, sp], [0.0, 1.0, 0.0], [-sp, 0.0, cp]])
    rx = np.array([[1.0, 0.0, 0.0], [0.0, cr, -sr], [0.0, sr, cr]])
    return rz @ ry @ rx


class FaceFactory:
    """Synthetic Face Mesh frames whose iris position tracks a screen target."""

    def __init__(self, seed: int = 7, iris_noise: float = 2e-5):
        self.rng = np.random.default_rng(seed)
        self.iris_noise = iris_noise

        base = np.empty((ALL_LANDMARK_COUNT, 3))
        base[:, :2] = self.rng.uniform(0.3, 0.7, (ALL_LANDMARK_COUNT, 2))
        base[:, 2] = self.rng.normal(0.0, 0.02, ALL_LANDMARK_COUNT)

        base[POSE_LANDMARKS["nose"]] = (0.50, 0.55, -0.05)
        base[POSE_LANDMARKS["top_of_head"]] = (0.50, 0.20, 0.00)
        self._set_eye(base, LEFT_EYE_CORNERS, outer_x=0.38, inner_x=0.45)
        self._set_eye(base, RIGHT_EYE_CORNERS, outer_x=0.62, inner_x=0.55)

        base[LEFT_IRIS_INDICES] = (0.415, 0.42, 0.0) + self.rng.normal(0, 0.003, (5, 3))
        base[RIGHT_IRIS_INDICES] = (0.585, 0.42, 0.0) + self.rng.normal(0, 0.003, (5, 3))
        self.base = base

    @staticmethod
    def _set_eye(points, corners, outer_x, inner_x, y=0.42, half_height=0.02):
        mid = (outer_x + inner_x) / 2
        points[corners["outer"]] = (outer_x, y, 0.0)
        points[corners["inner"]] = (inner_x, y, 0.0)
        points[corners["top"]] = (mid, y - half_height, 0.0)
        points[corners["bottom"]] = (mid, y + half_height, 0.0)

    def frame(
        self,
        target=(0.5, 0.5),
        *,
        blink: bool = False,
        rotation: np.ndarray | None = None,
        scale: float = 1.0,
        translation=(0.0, 0.0, 0.0),
    ) -> np.ndarray:
        """
        Args:
            target: normalized screen point the eyes look at
        """
        points = self.base.copy()
        shift = np.array([(target[0] - 0.5) * IRIS_TRAVEL, (target[1] - 0.5) * IRIS_TRAVEL, 0.0])
        iris = LEFT_IRIS_INDICES + RIGHT_IRIS_INDICES
        points[iris] += shift
        if self.iris_noise:
            points[iris] += self.rng.normal(0.0, self.iris_noise, (len(iris), 3))

        if blink:
            for corners in (LEFT_EYE_CORNERS, RIGHT_EYE_CORNERS):
                y = points[corners["outer"], 1]
                points[corners["top"], 1] = y - 0.001
                points[corners["bottom"], 1] = y + 0.001

        if rotation is not None or scale != 1.0 or any(translation):
            anchor = points[POSE_LANDMARKS["nose"]].copy()
            r = np.eye(3) if rotation is None else rotation
            points = scale * ((points - anchor) @ r.T) + anchor + np.asarray(translation)
        return points


class FakeClock:
    """Monotonic clock that only advances when sleep() is called."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def faces() -> FaceFactory:
    return FaceFactory()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
