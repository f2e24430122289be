"""9포인트 캘리브레이션 REST API 엔드포인트."""
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from gazelod.errors import CalibrationInProgressError
from gazelod.server.api.deps import get_gaze_tracker
from gazelod.server.tracker import GazeTracker

logger = logging.getLogger(__name__)
router = APIRouter()


class CalibrationResultResponse(BaseModel):
    """캘리브레이션 결과."""
    success: bool
    reason: Optional[str] = None
    samples: int


class CalibrationStatusResponse(BaseModel):
    """현재 캘리브레이션 상태."""
    state: str
    point: int = Field(ge=0, description="현재 타겟 번호 (1부터, 시작 전 0)")
    total_points: int
    target: Optional[List[int]] = None
    samples: int
    point_samples: List[int] = []
    progress: float = Field(ge=0.0, le=1.0)
    result: Optional[CalibrationResultResponse] = None


class CalibrationCancelResponse(BaseModel):
    """캘리브레이션 취소 응답."""
    cancelled: bool
    state: str


def _status_response(status: dict) -> CalibrationStatusResponse:
    total = status["total_points"] or 1
    return CalibrationStatusResponse(
        **{k: v for k, v in status.items() if k != "target"},
        target=None if status["target"] is None else list(status["target"]),
        progress=len(status["point_samples"]) / total,
    )


@router.post("/start", response_model=CalibrationStatusResponse, status_code=202)
async def start_calibration(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 백그라운드에서 9포인트 캘리브레이션 시작.

    args: 없음
    return: 시작 직후 상태 (이미 실행 중이면 409)
    """
    try:
        status = tracker.start_calibration()
    except CalibrationInProgressError as e:
        logger.warning(f"[Calibration API] Start rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    return _status_response(status)


@router.post("/cancel", response_model=CalibrationCancelResponse)
async def cancel_calibration(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 진행 중인 캘리브레이션 취소.

    args: 없음
    return: 취소 요청 여부와 현재 상태 (이전 모델은 유지됨)
    """
    cancelled = tracker.cancel_calibration()
    return CalibrationCancelResponse(
        cancelled=cancelled,
        state=tracker.calibration_status()["state"],
    )


@router.get("/status", response_model=CalibrationStatusResponse)
async def get_calibration_status(tracker: GazeTracker = Depends(get_gaze_tracker)):
    """기능: 캘리브레이션 진행 상황 조회.

    args: 없음
    return: 상태, 현재 타겟, 진행률, 결과
    """
    return _status_response(tracker.calibration_status())
