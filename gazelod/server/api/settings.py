"""시선 스무딩 설정 및 장면 조회를 위한 REST API 엔드포인트."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from gazelod.scenes import SCENES
from gazelod.server.api.deps import get_gaze_tracker
from gazelod.server.tracker import GazeTracker

router = APIRouter()
scenes_router = APIRouter()


class SmoothingSettings(BaseModel):
    """칼만 필터 측정 노이즈 R 변경 요청."""
    measurement_noise: float = Field(gt=0, description="클수록 더 부드럽고 느린 시선")


class SmoothingStatusResponse(BaseModel):
    """현재 스무딩 설정."""
    filter_method: str
    measurement_noise: Optional[float] = None
    process_noise: Optional[float] = None


class SceneResponse(BaseModel):
    """장면 프로파일 요약."""
    id: str
    name: str
    description: str
    thumbnail: str
    max_steps: int
    min_steps: int
    resolution_scale: float
    active: bool


def _smoothing_status(tracker: GazeTracker) -> SmoothingStatusResponse:
    process_noise = None
    if tracker.smoothing is not None:
        process_noise = tracker.smoother.filter_x.process_noise
    return SmoothingStatusResponse(
        filter_method=tracker.settings.filter_method,
        measurement_noise=tracker.smoothing,
        process_noise=process_noise,
    )


@router.get("/smoothing", response_model=SmoothingStatusResponse)
async def get_smoothing(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 현재 필터 방식과 노이즈 파라미터 조회.

    args: 없음
    return: filter_method, measurement_noise, process_noise (noop 이면 None)
    """
    return _smoothing_status(tracker)


@router.put("/smoothing", response_model=SmoothingStatusResponse)
async def set_smoothing(
    body: SmoothingSettings,
    tracker: GazeTracker = Depends(get_gaze_tracker),
):
    """기능: 측정 노이즈 R 변경 (양쪽 축에 동시 적용).

    args: measurement_noise
    return: 변경 후 스무딩 설정 (noop 필터면 400)
    """
    try:
        tracker.smoothing = body.measurement_noise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _smoothing_status(tracker)


@scenes_router.get("", response_model=List[SceneResponse])
async def list_scenes(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 사용 가능한 장면 목록 조회.

    args: 없음
    return: 장면 프로파일 목록 (active = 현재 LOD 매핑에 쓰이는 장면)
    """
    return [
        SceneResponse(**scene.to_dict(), active=scene.id == tracker.scene.id)
        for scene in SCENES.values()
    ]
