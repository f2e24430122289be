"""애플리케이션 설정."""
from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional, Tuple

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gazelod.filters import BaseSmoother, make_smoother
from gazelod.gaze import GazeEstimator
from gazelod.lod import LODMapper
from gazelod.scenes import SCENES, get_scene
from gazelod.utils.screen import get_screen_size

# 모니터를 찾지 못한 헤드리스 환경의 기본 해상도
FALLBACK_SCREEN_SIZE = (1920, 1080)


class Settings(BaseSettings):
    """시선 추적 / LOD 설정 (환경 변수 접두사 GAZELOD_)."""

    model_config = SettingsConfigDict(
        env_prefix="GAZELOD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        protected_namespaces=(),
    )

    # ===== 서버 설정 =====
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = False
    log_level: Literal["critical", "error", "warning", "info", "debug"] = "info"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # ===== 시선 추적 설정 =====
    camera_index: int = Field(default=0, ge=0)
    model_name: str = "ridge"
    # kalman: 칼만 필터 스무딩, noop: 필터링 없음
    filter_method: Literal["kalman", "noop"] = "kalman"
    # eyes: 눈 주변 71개 랜드마크 (216 특징), all: 전체 478개 (1437 특징)
    feature_subset: Literal["eyes", "all"] = "eyes"
    process_noise: float = Field(default=0.5, gt=0)
    # 측정 노이즈 R, 클수록 더 부드럽고 느리게 따라감
    measurement_noise: float = Field(default=0.4, gt=0)
    ridge_alpha: float = Field(default=1.0, ge=0)

    # ===== 깜빡임 감지 =====
    ear_history_length: int = Field(default=50, ge=1)
    blink_threshold_ratio: float = Field(default=0.8, gt=0, le=1)
    min_history_for_adaptive_threshold: int = Field(default=15, ge=1)
    default_blink_threshold: float = Field(default=0.2, gt=0)

    # ===== 캘리브레이션 =====
    calibration_pulse_duration_ms: int = Field(default=1000, ge=0)
    calibration_capture_duration_ms: int = Field(default=1000, gt=0)
    calibration_poll_interval_ms: int = Field(default=33, gt=0)
    calibration_margin_ratio: float = Field(default=0.12, ge=0, lt=0.5)
    min_calibration_samples: int = Field(default=20, ge=2)
    calibration_dir: Path = Path.home() / ".gazelod" / "models"
    model_slot: str = "gaze_model"

    # ===== LOD / 렌더링 =====
    fovea_radius: float = Field(default=0.15, gt=0)
    scene: str = "raymarch-forest"

    # ===== 스케줄링 =====
    tracking_interval_ms: int = Field(default=33, gt=0)
    stream_interval_ms: int = Field(default=16, gt=0)

    # ===== 디스플레이 (None 이면 주 모니터 해상도) =====
    screen_width: Optional[int] = Field(default=None, gt=0)
    screen_height: Optional[int] = Field(default=None, gt=0)

    @field_validator("scene")
    @classmethod
    def _known_scene(cls, value: str) -> str:
        if value not in SCENES:
            raise ValueError(f"Unknown scene '{value}'. Available: {sorted(SCENES)}")
        return value

    @property
    def screen_size(self) -> Tuple[int, int]:
        """화면 크기를 튜플로 반환합니다."""
        if self.screen_width is not None and self.screen_height is not None:
            return (self.screen_width, self.screen_height)
        width, height = get_screen_size(fallback=FALLBACK_SCREEN_SIZE)
        return (self.screen_width or width, self.screen_height or height)

    def calibration_kwargs(self) -> dict:
        """CalibrationProtocol 에 전달할 타이밍 인자 (초 단위)."""
        return {
            "pulse_duration": self.calibration_pulse_duration_ms / 1000.0,
            "capture_duration": self.calibration_capture_duration_ms / 1000.0,
            "poll_interval": self.calibration_poll_interval_ms / 1000.0,
            "margin_ratio": self.calibration_margin_ratio,
            "min_samples": self.min_calibration_samples,
        }


def build_estimator(settings: Settings) -> GazeEstimator:
    """설정으로 GazeEstimator 를 생성합니다."""
    model_kwargs = {"alpha": settings.ridge_alpha} if settings.model_name == "ridge" else {}
    return GazeEstimator(
        model_name=settings.model_name,
        model_kwargs=model_kwargs,
        feature_subset=settings.feature_subset,
        ear_history_len=settings.ear_history_length,
        blink_threshold_ratio=settings.blink_threshold_ratio,
        min_history=settings.min_history_for_adaptive_threshold,
        default_blink_threshold=settings.default_blink_threshold,
    )


def build_smoother(settings: Settings) -> BaseSmoother:
    """설정으로 시선 스무더를 생성합니다."""
    return make_smoother(
        settings.filter_method,
        process_noise=settings.process_noise,
        measurement_noise=settings.measurement_noise,
    )


def build_lod_mapper(settings: Settings) -> LODMapper:
    """설정된 장면의 경계를 사용하는 LOD 매퍼를 생성합니다."""
    return LODMapper.for_scene(get_scene(settings.scene), fovea_radius=settings.fovea_radius)
