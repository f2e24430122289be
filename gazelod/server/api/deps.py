"""라우터 공용 의존성."""
from __future__ import annotations

from fastapi import HTTPException, Request, WebSocket

from gazelod.server.tracker import GazeTracker


def get_gaze_tracker(request: Request) -> GazeTracker:
    """시선 추적기 인스턴스를 가져오는 의존성.

    Raises:
        HTTPException: 시선 추적기가 초기화되지 않은 경우 (503)
    """
    tracker = getattr(request.app.state, "tracker", None)
    if tracker is None:
        raise HTTPException(status_code=503, detail="Gaze tracker is not initialized")
    return tracker


def get_ws_tracker(websocket: WebSocket) -> GazeTracker | None:
    return getattr(websocket.app.state, "tracker", None)
