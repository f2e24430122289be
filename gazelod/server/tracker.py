"""웹 애플리케이션용 시선 추적 서비스."""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional, Tuple

from gazelod.analytics import ComputeTracker
from gazelod.calibration import CalibrationProtocol, CalibrationResult
from gazelod.config import Settings, build_estimator, build_lod_mapper, build_smoother
from gazelod.errors import CalibrationInProgressError, LandmarkSourceUnavailable
from gazelod.filters import KalmanSmoother
from gazelod.gaze import GazeEstimator
from gazelod.lod import RenderBudget
from gazelod.runtime import GazePipeline, GazeSnapshot
from gazelod.scenes import get_scene
from gazelod.sources import LandmarkSource, NullLandmarkSource
from gazelod.storage import ModelStore

logger = logging.getLogger(__name__)


class GazeTracker:
    """
    주기적으로 시선 파이프라인을 실행하는 비동기 서비스

    - 추적 틱은 asyncio 태스크에서 tracking_interval_ms 마다 실행되며
      실제 처리는 asyncio.to_thread 로 이벤트 루프 밖에서 수행
    - 캘리브레이션은 별도 스레드에서 파이프라인 lock 을 잡고 실행
    - 성공한 캘리브레이션 모델만 ModelStore 에 저장
    """

    def __init__(
        self,
        settings: Settings,
        *,
        source: Optional[LandmarkSource] = None,
        estimator: Optional[GazeEstimator] = None,
        store: Optional[ModelStore] = None,
        screen_size: Optional[Tuple[int, int]] = None,
    ):
        self.settings = settings
        self.screen_size = screen_size or settings.screen_size
        self.estimator = estimator or build_estimator(settings)
        self.smoother = build_smoother(settings)
        self.lod_mapper = build_lod_mapper(settings)
        self.scene = get_scene(settings.scene)
        self.compute_tracker = ComputeTracker(full_render_steps=self.scene.max_steps)
        self.pipeline = GazePipeline(
            self.estimator,
            self.smoother,
            self.screen_size,
            lod_mapper=self.lod_mapper,
            scene=self.scene,
            compute_tracker=self.compute_tracker,
        )
        self.store = store or ModelStore(settings.calibration_dir)

        self.source = source
        self._source_closed = False
        self._pending_smoothing: Optional[float] = None
        self._smoothing_guard = threading.Lock()
        self.demo_mode = False
        self.is_running = False
        self._task: Optional[asyncio.Task] = None

        self.calibration: Optional[CalibrationProtocol] = None
        self._calibration_thread: Optional[threading.Thread] = None
        self._calibration_guard = threading.Lock()

    # ------------------------------------------------------------------
    # 수명 주기
    # ------------------------------------------------------------------
    def initialize(self) -> None:
        """기능: 랜드마크 소스를 열고 저장된 모델을 불러옴."""
        if self.source is None:
            try:
                from gazelod.sources import MediaPipeLandmarkSource

                self.source = MediaPipeLandmarkSource(self.settings.camera_index)
            except LandmarkSourceUnavailable as e:
                logger.error(f"[GazeTracker] Landmark source unavailable: {e}")
                logger.warning("[GazeTracker] Running in DEMO mode (no face input)")
                self.source = NullLandmarkSource()
                self.demo_mode = True
        self.load_calibration()

    def load_calibration(self) -> bool:
        """기능: 저장소 슬롯에서 학습된 모델을 불러옴."""
        model = self.store.load(self.settings.model_slot)
        if model is None:
            logger.info("[GazeTracker] No stored calibration, calibration required")
            return False
        if model.trained and model.n_features != self.estimator.feature_length:
            logger.warning(
                f"[GazeTracker] Stored model expects {model.n_features} features, "
                f"estimator produces {self.estimator.feature_length} - ignored"
            )
            return False
        with self.pipeline.lock:
            self.estimator.model = model
        logger.info(f"[GazeTracker] Calibration loaded from slot '{self.settings.model_slot}'")
        return True

    async def start(self) -> None:
        """기능: 초기화 후 백그라운드 추적 태스크 시작."""
        await asyncio.to_thread(self.initialize)
        self.compute_tracker.start_session()
        self.is_running = True
        self._task = asyncio.create_task(self.start_tracking())
        logger.info(
            f"[GazeTracker] Tracking started every {self.settings.tracking_interval_ms} ms"
        )

    async def start_tracking(self) -> None:
        """기능: 시선 추적 루프 (is_running 동안 반복)."""
        interval = self.settings.tracking_interval_ms / 1000.0
        while self.is_running:
            try:
                await asyncio.to_thread(self.tick)
            except Exception:
                logger.exception("[GazeTracker] Tick failed")
            await asyncio.sleep(interval)

    def tick(self) -> Optional[GazeSnapshot]:
        """
        기능: 랜드마크 프레임 하나를 처리.

        캘리브레이션이 파이프라인을 점유 중이면 건너뜀.
        """
        if not self.pipeline.lock.acquire(blocking=False):
            return None
        try:
            if self._source_closed:
                return None
            self._apply_pending_smoothing()
            return self.pipeline.step(self.source.read())
        finally:
            self.pipeline.lock.release()

    def _release_source(self) -> None:
        # 진행 중인 틱이 source.read() 를 마칠 때까지 기다린 뒤 해제
        with self.pipeline.lock:
            self._source_closed = True
            if self.source is not None:
                self.source.release()

    async def stop_tracking(self) -> None:
        """기능: 추적 중지 및 자원 해제."""
        self.is_running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        self.cancel_calibration()
        thread = self._calibration_thread
        if thread is not None:
            await asyncio.to_thread(thread.join)

        self.compute_tracker.end_session()
        await asyncio.to_thread(self._release_source)
        logger.info("[GazeTracker] Tracking stopped")

    # ------------------------------------------------------------------
    # 상태 조회
    # ------------------------------------------------------------------
    @property
    def calibrated(self) -> bool:
        return self.estimator.is_trained()

    def latest(self) -> GazeSnapshot:
        return self.pipeline.latest()

    def lod_at(self, point: Tuple[float, float]) -> Tuple[float, RenderBudget]:
        """기능: 최신 시선 기준 한 점의 LOD 와 렌더 예산."""
        lod = self.lod_mapper.lod_at(self.latest().gaze, point)
        return lod, self.lod_mapper.budget(lod, self.scene)

    def status(self) -> dict:
        return {
            "tracker_active": self.is_running,
            "demo_mode": self.demo_mode,
            "calibrated": self.calibrated,
            "calibrating": self.calibration_running,
            "screen_size": list(self.screen_size),
            "scene": self.scene.id,
        }

    # ------------------------------------------------------------------
    # 스무딩 설정
    # ------------------------------------------------------------------
    @property
    def smoothing(self) -> Optional[float]:
        """현재 측정 노이즈 R (noop 필터면 None). 적용 대기 중인 값이 우선."""
        if not isinstance(self.smoother, KalmanSmoother):
            return None
        pending = self._pending_smoothing
        return pending if pending is not None else self.smoother.smoothing

    @smoothing.setter
    def smoothing(self, value: float) -> None:
        """
        파이프라인이 비어 있으면 즉시, 틱이나 캘리브레이션이 점유 중이면
        다음 틱 시작 시 적용.
        """
        if not isinstance(self.smoother, KalmanSmoother):
            raise ValueError(f"Filter '{self.settings.filter_method}' has no smoothing parameter")
        if value <= 0:
            raise ValueError(f"smoothing must be positive, got {value}")
        with self._smoothing_guard:
            self._pending_smoothing = value
        if self.pipeline.lock.acquire(blocking=False):
            try:
                self._apply_pending_smoothing()
            finally:
                self.pipeline.lock.release()
        logger.info(f"[GazeTracker] Smoothing (R) set to {value}")

    def _apply_pending_smoothing(self) -> None:
        # pipeline.lock 을 잡은 상태에서만 호출
        with self._smoothing_guard:
            value, self._pending_smoothing = self._pending_smoothing, None
        if value is not None:
            self.smoother.smoothing = value

    # ------------------------------------------------------------------
    # 캘리브레이션
    # ------------------------------------------------------------------
    @property
    def calibration_running(self) -> bool:
        thread = self._calibration_thread
        return thread is not None and thread.is_alive()

    def start_calibration(self) -> dict:
        """
        기능: 백그라운드 스레드에서 9포인트 캘리브레이션 시작.

        Raises:
            CalibrationInProgressError: 이미 실행 중인 경우
        """
        with self._calibration_guard:
            if self.calibration_running:
                raise CalibrationInProgressError("Calibration already running")

            source = self.source or NullLandmarkSource()
            self.calibration = CalibrationProtocol(
                self.estimator,
                source.read,
                self.screen_size,
                on_complete=self._on_calibration_complete,
                **self.settings.calibration_kwargs(),
            )
            self._calibration_thread = threading.Thread(
                target=self._run_calibration,
                args=(self.calibration,),
                name="gazelod-calibration",
                daemon=True,
            )
            self._calibration_thread.start()
        logger.info("[GazeTracker] Calibration started")
        return self.calibration.status()

    def _run_calibration(self, protocol: CalibrationProtocol) -> None:
        # 캘리브레이션 동안 주기 틱은 lock 을 얻지 못해 건너뜀
        with self.pipeline.lock:
            self.pipeline.reset_session()
            try:
                protocol.start()
            except Exception:
                logger.exception("[GazeTracker] Calibration aborted")

    def _on_calibration_complete(self, result: CalibrationResult) -> None:
        if not result.success:
            return
        try:
            self.store.save(self.estimator.model, self.settings.model_slot)
        except OSError as e:
            logger.error(f"[GazeTracker] Failed to save calibration: {e}")

    def cancel_calibration(self) -> bool:
        """기능: 진행 중인 캘리브레이션 취소 요청. 실행 중이 아니면 False."""
        if self.calibration is None or not self.calibration_running:
            return False
        self.calibration.cancel()
        return True

    def calibration_status(self) -> dict:
        if self.calibration is None:
            return {
                "state": "idle",
                "point": 0,
                "total_points": 9,
                "target": None,
                "samples": 0,
                "point_samples": [],
                "result": None,
            }
        return self.calibration.status()

    def wait_for_calibration(self, timeout: Optional[float] = None) -> bool:
        """기능: 캘리브레이션 스레드 종료 대기. 종료되었으면 True."""
        thread = self._calibration_thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()
