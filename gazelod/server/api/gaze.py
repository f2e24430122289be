"""시선 상태 및 LOD 조회를 위한 REST API 엔드포인트."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from gazelod.server.api.deps import get_gaze_tracker
from gazelod.server.tracker import GazeTracker

router = APIRouter()


class RenderBudgetResponse(BaseModel):
    """LOD 값 하나의 렌더 예산."""
    lod: float
    max_steps: int
    detail_octaves: int
    epsilon: float


class GazeStateResponse(BaseModel):
    """최신 시선 스냅샷."""
    gaze: List[float]
    raw_gaze: Optional[List[float]] = None
    blink: bool
    face_detected: bool
    calibrated: bool
    timestamp: float
    frame_index: int
    center_lod: float
    center_budget: RenderBudgetResponse


class LODResponse(BaseModel):
    """화면 위 한 점의 LOD."""
    x: float
    y: float
    gaze: List[float]
    lod: float
    budget: RenderBudgetResponse


@router.get("", response_model=GazeStateResponse)
async def get_gaze(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 최신 시선 스냅샷과 화면 중앙의 LOD 조회.

    args: 없음
    return: 스냅샷 (gaze, raw_gaze, blink, face_detected, calibrated, timestamp, frame_index)
            + 화면 중앙 LOD 와 렌더 예산
    """
    snapshot = tracker.latest()
    lod, budget = tracker.lod_at((0.5, 0.5))
    return GazeStateResponse(
        **snapshot.to_dict(),
        center_lod=lod,
        center_budget=RenderBudgetResponse(**budget.to_dict()),
    )


@router.get("/lod", response_model=LODResponse)
async def get_lod(
    x: float = Query(..., ge=0.0, le=1.0, description="정규화된 화면 x"),
    y: float = Query(..., ge=0.0, le=1.0, description="정규화된 화면 y"),
    tracker: GazeTracker = Depends(get_gaze_tracker),
):
    """기능: 정규화 좌표 한 점의 LOD 조회.

    args: x, y (0~1)
    return: LOD 값과 현재 장면의 렌더 예산
    """
    lod, budget = tracker.lod_at((x, y))
    return LODResponse(
        x=x,
        y=y,
        gaze=list(tracker.latest().gaze),
        lod=lod,
        budget=RenderBudgetResponse(**budget.to_dict()),
    )


@router.get("/analytics")
async def get_analytics(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 현재 세션의 전체 렌더 대비 선택적 렌더 연산량 요약.

    args: 없음
    return: full_render, selective_render, savings_percent, session_duration_sec, frames_captured
    """
    return tracker.compute_tracker.summary()
