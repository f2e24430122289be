"""
머리 자세 정규화

얼굴 랜드마크로부터 머리 방향에 무관한 좌표계를 만들고
모든 랜드마크를 그 좌표계로 투영합니다.

정규화 프로세스:
1. 콧대(nose tip)를 기준점으로 설정
2. 얼굴의 3D 좌표계 구성 (X: 양쪽 눈 방향, Y: 수직 방향, Z: 깊이 방향)
3. 모든 포인트를 이 좌표계로 회전
4. 회전된 좌표계에서 잰 눈 사이 거리로 스케일링
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from gazelod.constants import POSE_LANDMARKS

# 정규화 시 0 나눗셈 방지용
_EPS = 1e-9
# 눈 사이 거리가 이보다 작으면 스케일링 생략
MIN_INTER_EYE_DIST = 1e-7


def _normalize(v: np.ndarray) -> np.ndarray:
    return v / (np.linalg.norm(v) + _EPS)


@dataclass(frozen=True)
class PoseFrame:
    """
    한 프레임의 머리 좌표계

    Attributes:
        basis (np.ndarray): 3x3 정규직교 기저 (행 = X, Y, Z 축)
        anchor (np.ndarray): 기준점 (콧대)
        scale (float): 회전된 좌표계에서의 눈 사이 거리
    """

    basis: np.ndarray
    anchor: np.ndarray
    scale: float

    def angles(self) -> Tuple[float, float, float]:
        """기저 행렬로부터 (yaw, pitch, roll) 을 계산합니다"""
        return head_pose_angles(self.basis)


@dataclass(frozen=True)
class NormalizedPose:
    """정규화 결과: 좌표계, 투영된 랜드마크, 머리 자세 각도"""

    frame: PoseFrame
    points: np.ndarray
    angles: Tuple[float, float, float]


def head_pose_angles(basis: np.ndarray) -> Tuple[float, float, float]:
    """
    atan2 분해로 머리 자세 각도를 구합니다

    Args:
        basis (np.ndarray): 행이 X, Y, Z 축인 3x3 회전 행렬

    Returns:
        tuple: (yaw, pitch, roll) 라디안
    """
    R = basis
    yaw = np.arctan2(R[1, 0], R[0, 0])
    pitch = np.arctan2(-R[2, 0], np.sqrt(R[2, 1] ** 2 + R[2, 2] ** 2))
    roll = np.arctan2(R[2, 1], R[2, 2])
    return float(yaw), float(pitch), float(roll)


class PoseNormalizer:
    """
    랜드마크를 머리 자세/스케일 불변 좌표계로 투영하는 정규화기

    기준점 인덱스는 MediaPipe Face Mesh 기준이며 생성자에서 바꿀 수 있습니다.
    """

    def __init__(
        self,
        nose: int = POSE_LANDMARKS["nose"],
        left_eye_corner: int = POSE_LANDMARKS["left_eye_corner"],
        right_eye_corner: int = POSE_LANDMARKS["right_eye_corner"],
        top_of_head: int = POSE_LANDMARKS["top_of_head"],
    ) -> None:
        self.nose = nose
        self.left_eye_corner = left_eye_corner
        self.right_eye_corner = right_eye_corner
        self.top_of_head = top_of_head

    @property
    def required_points(self) -> int:
        """좌표계 구성에 필요한 최소 랜드마크 개수"""
        return (
            max(self.nose, self.left_eye_corner, self.right_eye_corner, self.top_of_head)
            + 1
        )

    def build_frame(self, points: np.ndarray) -> PoseFrame:
        """
        기준 랜드마크 4개로 머리 좌표계를 구성합니다

        Args:
            points (np.ndarray): (N, 3) 랜드마크 배열

        Returns:
            PoseFrame: 기저, 기준점, 눈 사이 거리
        """
        nose_anchor = points[self.nose]
        left_corner = points[self.left_eye_corner]
        right_corner = points[self.right_eye_corner]
        top_of_head = points[self.top_of_head]

        # X축: 왼쪽 눈 모서리 → 오른쪽 눈 모서리
        x_axis = _normalize(right_corner - left_corner)
        # Y축: 콧대 → 머리 위쪽, X축에 수직인 성분만 유지
        y_approx = _normalize(top_of_head - nose_anchor)
        y_axis = _normalize(y_approx - np.dot(y_approx, x_axis) * x_axis)
        # Z축: X와 Y의 외적 (깊이 방향)
        z_axis = _normalize(np.cross(x_axis, y_axis))

        basis = np.vstack((x_axis, y_axis, z_axis))

        # 눈 사이 거리는 회전된 좌표계에서 측정
        left_rot = basis @ (left_corner - nose_anchor)
        right_rot = basis @ (right_corner - nose_anchor)
        inter_eye_dist = float(np.linalg.norm(right_rot - left_rot))

        return PoseFrame(basis=basis, anchor=nose_anchor.copy(), scale=inter_eye_dist)

    def normalize(self, landmarks) -> NormalizedPose | None:
        """
        랜드마크 전체를 정규화된 좌표계로 투영합니다

        Args:
            landmarks: (N, 3) 배열 또는 (x, y, z) 시퀀스, 얼굴이 없으면 None

        Returns:
            NormalizedPose | None: 얼굴이 없거나 기준점이 부족하면 None
        """
        if landmarks is None:
            return None
        points = np.asarray(landmarks, dtype=np.float64)
        if points.ndim != 2 or points.shape[1] != 3:
            return None
        if points.shape[0] < self.required_points:
            return None

        frame = self.build_frame(points)
        # 콧대 기준으로 이동 후 행벡터 곱으로 회전
        rotated = (points - frame.anchor) @ frame.basis.T
        if frame.scale > MIN_INTER_EYE_DIST:
            rotated /= frame.scale

        return NormalizedPose(frame=frame, points=rotated, angles=frame.angles())
