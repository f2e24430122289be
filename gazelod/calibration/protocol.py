"""
9포인트 캘리브레이션 프로토콜

화면의 3x3 격자 타겟을 순서대로 보여주며 학습 샘플을 모으는 상태 머신

상태 전이:
    IDLE → INSTRUCTIONS → (PULSE → CAPTURE) x 9 → TRAINING → COMPLETED | FAILED
    종료 상태가 아닌 모든 상태에서 CANCELLED 로 갈 수 있음

각 타겟마다:
1. 펄스 단계: 시선이 새 타겟에 자리잡도록 기다림 (샘플링 없음)
2. 캡처 단계: 일정 간격으로 랜드마크를 읽어 깜빡임이 아닌 프레임을 모두 샘플로 저장

샘플은 타겟별로 평균내지 않습니다. 자연스러운 미세 떨림도 학습 신호로 사용합니다.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from gazelod.calibration.common import NINE_POINT_ORDER, compute_grid_points
from gazelod.errors import CalibrationInProgressError, GazeLODError

logger = logging.getLogger(__name__)

INSUFFICIENT_SAMPLES = "insufficient samples"
TRAINING_FAILED = "training failed"
CANCELLED = "cancelled"


class CalibrationState(str, Enum):
    """캘리브레이션 상태"""

    IDLE = "idle"
    INSTRUCTIONS = "instructions"
    PULSE = "pulse"
    CAPTURE = "capture"
    TRAINING = "training"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def terminal(self) -> bool:
        return self in (
            CalibrationState.COMPLETED,
            CalibrationState.FAILED,
            CalibrationState.CANCELLED,
        )


@dataclass(frozen=True)
class CalibrationProgress:
    """타겟 하나의 캡처가 끝났을 때 전달되는 진행 상황"""

    point: int
    total_points: int
    samples: int
    total_samples: int


@dataclass(frozen=True)
class CalibrationResult:
    """캘리브레이션 결과 (실패 시 reason 포함)"""

    success: bool
    reason: Optional[str]
    samples: int

    def to_dict(self) -> dict:
        return asdict(self)


class CalibrationProtocol:
    """
    펄스-캡처 캘리브레이션 프로토콜

    start() 는 캘리브레이션 전체를 동기적으로 실행하고 결과를 반환합니다.
    다른 스레드에서 cancel() 을 호출하면 다음 폴링/단계 경계에서 중단됩니다.
    """

    def __init__(
        self,
        gaze_estimator,
        frame_source: Callable[[], object],
        screen_size: Tuple[int, int],
        *,
        pulse_duration: float = 1.0,
        capture_duration: float = 1.0,
        poll_interval: float = 0.033,
        margin_ratio: float = 0.12,
        min_samples: int = 20,
        order: Sequence[Tuple[int, int]] = NINE_POINT_ORDER,
        on_progress: Optional[Callable[[CalibrationProgress], None]] = None,
        on_complete: Optional[Callable[[CalibrationResult], None]] = None,
        wait_for_ready: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Args:
            gaze_estimator: extract_features() / train() 을 제공하는 시선 추정기
            frame_source: 호출할 때마다 랜드마크 프레임(얼굴 없으면 None)을 반환
            screen_size: (너비, 높이) 픽셀
            pulse_duration: 펄스 단계 시간 (초)
            capture_duration: 캡처 단계 시간 (초)
            poll_interval: 캡처 중 랜드마크 폴링 간격 (초)
            margin_ratio: 화면 가장자리 마진 비율
            min_samples: 학습을 시도하기 위한 최소 샘플 수
            order: (행, 열) 타겟 순서
            on_progress: 타겟마다 호출되는 콜백
            on_complete: COMPLETED / FAILED 시 호출되는 콜백
            wait_for_ready: 안내 단계 훅, False 를 반환하면 취소
            clock / sleep: 시간 함수 (테스트에서 교체 가능)
        """
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got {poll_interval}")
        self.gaze_estimator = gaze_estimator
        self.frame_source = frame_source
        self.screen_size = (int(screen_size[0]), int(screen_size[1]))
        self.pulse_duration = pulse_duration
        self.capture_duration = capture_duration
        self.poll_interval = poll_interval
        self.margin_ratio = margin_ratio
        self.min_samples = min_samples
        self.on_progress = on_progress
        self.on_complete = on_complete
        self.wait_for_ready = wait_for_ready
        self._clock = clock
        self._sleep = sleep

        self.points: List[Tuple[int, int]] = compute_grid_points(
            order, self.screen_size[0], self.screen_size[1], margin_ratio
        )

        self.state = CalibrationState.IDLE
        self.current_index = -1
        self.result: Optional[CalibrationResult] = None
        self.point_samples: List[int] = []
        self._features: List[np.ndarray] = []
        self._targets: List[Tuple[int, int]] = []

        self._cancel = threading.Event()
        self._run_lock = threading.Lock()

    # ------------------------------------------------------------------
    # 외부 트리거
    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._run_lock.locked()

    @property
    def current_target(self) -> Optional[Tuple[int, int]]:
        if 0 <= self.current_index < len(self.points):
            return self.points[self.current_index]
        return None

    @property
    def sample_count(self) -> int:
        return len(self._features)

    @property
    def samples(self) -> Tuple[np.ndarray, np.ndarray]:
        """지금까지 모인 (특징, 타겟) 배열"""
        if not self._features:
            return np.empty((0, 0)), np.empty((0, 2))
        return np.vstack(self._features), np.asarray(self._targets, dtype=np.float64)

    def cancel(self) -> None:
        """진행 중(또는 시작 전)인 캘리브레이션 취소를 요청합니다"""
        if self.state.terminal:
            return
        logger.info(f"[Calibration] Cancel requested (state={self.state.value})")
        self._cancel.set()

    def start(self) -> CalibrationResult:
        """
        캘리브레이션을 처음부터 끝까지 실행합니다

        Returns:
            CalibrationResult: 성공 여부와 실패 사유

        Raises:
            CalibrationInProgressError: 이미 실행 중인 경우
        """
        if not self._run_lock.acquire(blocking=False):
            raise CalibrationInProgressError("Calibration already running")
        try:
            self._reset_samples()
            self.result = None
            return self._run()
        except Exception:
            self.state = CalibrationState.FAILED
            logger.exception("[Calibration] Unexpected error during calibration")
            raise
        finally:
            self._cancel.clear()
            self._run_lock.release()

    def status(self) -> dict:
        """API 응답용 현재 상태"""
        return {
            "state": self.state.value,
            "point": self.current_index + 1 if self.current_index >= 0 else 0,
            "total_points": len(self.points),
            "target": self.current_target,
            "samples": self.sample_count,
            "point_samples": list(self.point_samples),
            "result": None if self.result is None else self.result.to_dict(),
        }

    # ------------------------------------------------------------------
    # 내부 구현
    # ------------------------------------------------------------------
    def _reset_samples(self) -> None:
        self._features = []
        self._targets = []
        self.point_samples = []
        self.current_index = -1

    def _finish(self, state: CalibrationState, reason: Optional[str] = None) -> CalibrationResult:
        self.state = state
        if state is CalibrationState.CANCELLED:
            # 취소 시 부분 샘플은 버림
            self._reset_samples()
        result = CalibrationResult(
            success=state is CalibrationState.COMPLETED,
            reason=reason,
            samples=self.sample_count,
        )
        self.result = result
        if state is CalibrationState.CANCELLED:
            logger.info("[Calibration] Cancelled, collected samples discarded")
        elif result.success:
            logger.info(f"[Calibration] Completed with {result.samples} samples")
        else:
            logger.warning(f"[Calibration] Failed: {reason} ({result.samples} samples)")

        if state is not CalibrationState.CANCELLED and self.on_complete is not None:
            self.on_complete(result)
        return result

    def _hold(self, duration: float) -> bool:
        """펄스 단계: duration 동안 기다림. 취소되면 False"""
        start = self._clock()
        while self._clock() - start < duration:
            if self._cancel.is_set():
                return False
            self._sleep(self.poll_interval)
        return not self._cancel.is_set()

    def _capture(self, target: Tuple[int, int]) -> Optional[int]:
        """캡처 단계: 유효한 프레임을 샘플로 저장. 취소되면 None"""
        collected = 0
        start = next_frame = self._clock()
        while self._clock() - start < self.capture_duration:
            if self._cancel.is_set():
                return None
            frame = self.frame_source()
            features, blink = self.gaze_estimator.extract_features(frame)
            # 얼굴이 없거나 깜빡인 프레임은 버림
            if features is not None and not blink:
                self._features.append(np.array(features, dtype=np.float64))
                self._targets.append(target)
                collected += 1

            # 프레임 처리 시간을 빼고 남은 만큼만 대기
            next_frame += self.poll_interval
            delay = next_frame - self._clock()
            if delay > 0:
                self._sleep(delay)
            else:
                # 처리가 폴링 간격보다 길었으면 밀린 프레임을 몰아 읽지 않음
                next_frame = self._clock()
        return collected

    def _run(self) -> CalibrationResult:
        total = len(self.points)

        self.state = CalibrationState.INSTRUCTIONS
        if self._cancel.is_set():
            return self._finish(CalibrationState.CANCELLED, CANCELLED)
        if self.wait_for_ready is not None and not self.wait_for_ready():
            return self._finish(CalibrationState.CANCELLED, CANCELLED)

        for i, target in enumerate(self.points):
            self.current_index = i

            # === 펄스 단계 ===
            self.state = CalibrationState.PULSE
            if not self._hold(self.pulse_duration):
                return self._finish(CalibrationState.CANCELLED, CANCELLED)

            # === 캡처 단계 ===
            self.state = CalibrationState.CAPTURE
            collected = self._capture(target)
            if collected is None:
                return self._finish(CalibrationState.CANCELLED, CANCELLED)

            self.point_samples.append(collected)
            logger.info(f"[Calibration] Point {i + 1}/{total}: collected {collected} samples")
            if self.on_progress is not None:
                self.on_progress(
                    CalibrationProgress(
                        point=i + 1,
                        total_points=total,
                        samples=collected,
                        total_samples=self.sample_count,
                    )
                )

        if self._cancel.is_set():
            return self._finish(CalibrationState.CANCELLED, CANCELLED)

        logger.info(f"[Calibration] Total samples collected: {self.sample_count}")
        if self.sample_count < self.min_samples:
            return self._finish(CalibrationState.FAILED, INSUFFICIENT_SAMPLES)

        # === 학습 단계 ===
        self.state = CalibrationState.TRAINING
        X, y = self.samples
        try:
            self.gaze_estimator.train(X, y)
        except (GazeLODError, ValueError, np.linalg.LinAlgError) as e:
            logger.error(f"[Calibration] Training failed: {e}")
            return self._finish(CalibrationState.FAILED, TRAINING_FAILED)

        return self._finish(CalibrationState.COMPLETED)
