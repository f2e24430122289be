"""
랜드마크 소스

외부 얼굴 특징점 감지기를 감싸는 어댑터.
프레임마다 (N, 3) 정규화 랜드마크 배열 또는 None(얼굴 없음)을 반환합니다.

MediaPipe / OpenCV 카메라 스택은 선택 의존성입니다 (pip install gazelod[camera]).
"""

from __future__ import annotations

import importlib
import logging
from typing import Any, Optional, Protocol

import numpy as np

from gazelod.errors import LandmarkSourceUnavailable

logger = logging.getLogger(__name__)


class LandmarkSource(Protocol):
    """랜드마크 소스 인터페이스"""

    def read(self) -> Optional[np.ndarray]:
        ...

    def release(self) -> None:
        ...


class NullLandmarkSource:
    """
    항상 "얼굴 없음"을 반환하는 소스

    카메라를 열 수 없을 때 DEMO 모드로 서버를 띄우는 데 사용합니다
    """

    def read(self) -> Optional[np.ndarray]:
        return None

    def release(self) -> None:
        pass


class MediaPipeLandmarkSource:
    """
    웹캠 + MediaPipe Face Mesh 랜드마크 소스

    refine_landmarks=True 로 홍채 포인트까지 포함한 478개 랜드마크를 반환합니다.
    """

    def __init__(
        self,
        camera_index: int = 0,
        *,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
    ) -> None:
        """
        Raises:
            LandmarkSourceUnavailable: mediapipe / opencv 가 없거나 카메라를 열 수 없는 경우
        """
        try:
            cv2: Any = importlib.import_module("cv2")
            mp: Any = importlib.import_module("mediapipe")
        except ImportError as exc:  # pragma: no cover - optional dependency
            raise LandmarkSourceUnavailable(
                "mediapipe is required for camera tracking. Install it via 'pip install gazelod[camera]'."
            ) from exc

        self._cv2 = cv2
        self.camera_index = camera_index
        self.cap = cv2.VideoCapture(camera_index)
        if not self.cap.isOpened():
            self.cap.release()
            raise LandmarkSourceUnavailable(f"Cannot open camera {camera_index}")

        # MediaPipe 얼굴 메시 감지기 초기화
        self.face_mesh = mp.solutions.face_mesh.FaceMesh(
            static_image_mode=False,
            max_num_faces=1,
            refine_landmarks=True,
            min_detection_confidence=min_detection_confidence,
            min_tracking_confidence=min_tracking_confidence,
        )
        logger.info(f"[Source] Camera {camera_index} opened with MediaPipe Face Mesh")

    def read(self) -> Optional[np.ndarray]:
        """
        카메라 프레임 하나를 읽고 랜드마크를 반환합니다

        Returns:
            np.ndarray | None: (N, 3) 랜드마크, 프레임 읽기 실패나 얼굴 미감지 시 None
        """
        ok, frame = self.cap.read()
        if not ok:
            return None
        image_rgb = self._cv2.cvtColor(frame, self._cv2.COLOR_BGR2RGB)
        results = self.face_mesh.process(image_rgb)
        if not results.multi_face_landmarks:
            return None
        landmarks = results.multi_face_landmarks[0].landmark
        return np.array([(lm.x, lm.y, lm.z) for lm in landmarks], dtype=np.float64)

    def release(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        self.face_mesh.close()
