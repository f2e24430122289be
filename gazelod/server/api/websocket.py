"""실시간 시선 스트리밍을 위한 WebSocket 엔드포인트."""
from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from gazelod.server.api.deps import get_ws_tracker

logger = logging.getLogger(__name__)
router = APIRouter()


class ConnectionManager:
    """WebSocket 연결을 관리합니다."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.append(websocket)
        logger.info(f"[WebSocket] Client connected. Total: {len(self.active_connections)}")

    def disconnect(self, websocket: WebSocket):
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)
        logger.info(f"[WebSocket] Client disconnected. Total: {len(self.active_connections)}")


manager = ConnectionManager()


@router.websocket("/gaze")
async def websocket_gaze(websocket: WebSocket):
    """기능: 최신 시선 스냅샷을 stream_interval_ms 마다 전송.

    args: websocket
    return: 없음 (연속 스트림)

    메시지 타입:
    1. gaze_update: 시선 스냅샷 + 화면 중앙의 LOD 와 렌더 예산
    2. pong: 클라이언트의 "ping" 텍스트에 대한 응답
    """
    tracker = get_ws_tracker(websocket)
    if tracker is None:
        await websocket.close(code=1011, reason="Gaze tracker is not initialized")
        return

    await manager.connect(websocket)
    interval = tracker.settings.stream_interval_ms / 1000.0
    try:
        while True:
            snapshot = tracker.latest()
            lod, budget = tracker.lod_at((0.5, 0.5))
            await websocket.send_json(
                {
                    "type": "gaze_update",
                    **snapshot.to_dict(),
                    "center_lod": lod,
                    "center_budget": budget.to_dict(),
                }
            )

            # 다음 전송까지 클라이언트 메시지를 기다림 (연결 종료 감지)
            try:
                message = await asyncio.wait_for(websocket.receive_text(), timeout=interval)
            except asyncio.TimeoutError:
                continue
            if message == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
