"""
실시간 시선 파이프라인

랜드마크 프레임 하나를 받아 특징 추출 → 예측 → 스무딩 → 정규화/클램프 후
최신 스냅샷 슬롯에 게시하는 순수 스텝 함수.

스냅샷은 불변 객체이며 슬롯은 항상 가장 최근 값 하나만 가집니다 (큐 없음).
읽는 쪽은 최대 한 프레임 늦은 값을 볼 수 있습니다.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from gazelod.analytics import ComputeTracker
from gazelod.filters.base import BaseSmoother
from gazelod.gaze import GazeEstimator
from gazelod.lod import LODMapper
from gazelod.scenes import SceneProfile

logger = logging.getLogger(__name__)

SCREEN_CENTER = (0.5, 0.5)


@dataclass(frozen=True)
class GazeSnapshot:
    """
    한 틱의 시선 상태

    Attributes:
        gaze: 스무딩 후 [0,1] 로 클램프된 화면 비율 좌표
        raw_gaze: 이번 틱의 모델 출력 (픽셀), 예측하지 않은 틱이면 None
        blink: 깜빡임 여부
        face_detected: 얼굴 감지 여부
        calibrated: 모델 학습 여부
        timestamp: 게시 시각 (epoch 초)
        frame_index: 파이프라인이 처리한 프레임 번호
    """

    gaze: Tuple[float, float]
    raw_gaze: Optional[Tuple[float, float]]
    blink: bool
    face_detected: bool
    calibrated: bool
    timestamp: float
    frame_index: int

    def to_dict(self) -> dict:
        return {
            "gaze": list(self.gaze),
            "raw_gaze": None if self.raw_gaze is None else list(self.raw_gaze),
            "blink": self.blink,
            "face_detected": self.face_detected,
            "calibrated": self.calibrated,
            "timestamp": self.timestamp,
            "frame_index": self.frame_index,
        }


def _initial_snapshot() -> GazeSnapshot:
    return GazeSnapshot(
        gaze=SCREEN_CENTER,
        raw_gaze=None,
        blink=False,
        face_detected=False,
        calibrated=False,
        timestamp=0.0,
        frame_index=0,
    )


class SnapshotSlot:
    """최신 GazeSnapshot 하나를 보관하는 잠금 슬롯"""

    def __init__(self, initial: Optional[GazeSnapshot] = None) -> None:
        self._lock = threading.Lock()
        self._snapshot = initial or _initial_snapshot()

    def publish(self, snapshot: GazeSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def latest(self) -> GazeSnapshot:
        with self._lock:
            return self._snapshot


class GazePipeline:
    """
    프레임 단위 시선 처리기

    lock 은 파이프라인 상태(추정기, 스무더)를 보호합니다.
    캘리브레이션은 실행 내내 lock 을 잡고 있으며, 그동안 주기 틱은 건너뜁니다.
    """

    def __init__(
        self,
        estimator: GazeEstimator,
        smoother: BaseSmoother,
        screen_size: Tuple[int, int],
        slot: Optional[SnapshotSlot] = None,
        *,
        lod_mapper: Optional[LODMapper] = None,
        scene: Optional[SceneProfile] = None,
        compute_tracker: Optional[ComputeTracker] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if screen_size[0] <= 0 or screen_size[1] <= 0:
            raise ValueError(f"Invalid screen size: {screen_size}")
        self.estimator = estimator
        self.smoother = smoother
        self.screen_size = (int(screen_size[0]), int(screen_size[1]))
        self.slot = slot or SnapshotSlot()
        self.lod_mapper = lod_mapper
        self.scene = scene
        self.compute_tracker = compute_tracker
        self._clock = clock

        self.lock = threading.Lock()
        self.frame_index = 0
        self._last_gaze: Optional[Tuple[float, float]] = None

    def normalize(self, x: float, y: float) -> Tuple[float, float]:
        """픽셀 좌표를 [0,1] 화면 비율로 변환하고 클램프합니다"""
        w, h = self.screen_size
        return (
            float(np.clip(x / w, 0.0, 1.0)),
            float(np.clip(y / h, 0.0, 1.0)),
        )

    def step(self, landmarks) -> GazeSnapshot:
        """
        랜드마크 프레임 하나를 처리하고 스냅샷을 게시합니다

        얼굴이 없거나 깜빡였거나 모델이 학습되지 않은 프레임은 예측하지 않고
        마지막 시선 위치(없으면 화면 중앙)를 유지합니다.

        Args:
            landmarks: (N, 3) 랜드마크 배열, 얼굴이 없으면 None

        Returns:
            GazeSnapshot: 게시된 스냅샷
        """
        features, blink = self.estimator.extract_features(landmarks)
        face_detected = features is not None
        calibrated = self.estimator.is_trained()

        raw_gaze = None
        if face_detected and not blink and calibrated:
            x, y = self.estimator.predict(features)
            raw_gaze = (float(x), float(y))
            sx, sy = self.smoother.step(raw_gaze[0], raw_gaze[1])
            self._last_gaze = self.normalize(sx, sy)

            if self.compute_tracker is not None and self.lod_mapper is not None and self.scene is not None:
                self.compute_tracker.record_frame(
                    self.lod_mapper.average_steps(self._last_gaze, self.scene)
                )

        self.frame_index += 1
        snapshot = GazeSnapshot(
            gaze=self._last_gaze or SCREEN_CENTER,
            raw_gaze=raw_gaze,
            blink=bool(blink),
            face_detected=face_detected,
            calibrated=calibrated,
            timestamp=self._clock(),
            frame_index=self.frame_index,
        )
        self.slot.publish(snapshot)
        return snapshot

    def reset_session(self) -> None:
        """스무더와 깜빡임 히스토리 등 세션 상태를 초기화합니다"""
        self.smoother.reset()
        self.estimator.reset_session()
        self._last_gaze = None
        logger.info("[GazePipeline] Session state reset")

    def latest(self) -> GazeSnapshot:
        return self.slot.latest()
