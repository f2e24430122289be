"""FastAPI 애플리케이션."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from gazelod._version import __version__
from gazelod.config import Settings
from gazelod.server.api import calibration, gaze, settings as settings_api, websocket
from gazelod.server.tracker import GazeTracker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """서버 시작 및 종료 이벤트."""
    settings: Settings = app.state.settings
    logger.info(f"[Backend] GazeLOD server starting: {settings.host}:{settings.port}")

    if app.state.tracker is None:
        app.state.tracker = GazeTracker(settings)
    tracker: GazeTracker = app.state.tracker

    await tracker.start()
    logger.info(
        f"[Backend] Gaze tracker ready (calibrated={tracker.calibrated}, demo={tracker.demo_mode})"
    )

    yield

    logger.info("[Backend] Shutting down...")
    await tracker.stop_tracking()
    logger.info("[Backend] Gaze tracker stopped")


def create_app(
    settings: Optional[Settings] = None,
    tracker: Optional[GazeTracker] = None,
) -> FastAPI:
    """FastAPI 앱을 생성합니다.

    Args:
        settings: 애플리케이션 설정 (None 이면 환경 변수에서 읽음)
        tracker: 미리 구성된 시선 추적기 (None 이면 시작 시 생성)
    """
    settings = settings or (tracker.settings if tracker is not None else Settings())

    app = FastAPI(
        title="GazeLOD API",
        description="Gaze estimation and level-of-detail control",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.tracker = tracker

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(websocket.router, prefix="/ws", tags=["WebSocket"])
    app.include_router(gaze.router, prefix="/api/gaze", tags=["Gaze"])
    app.include_router(calibration.router, prefix="/api/calibration", tags=["Calibration"])
    app.include_router(settings_api.router, prefix="/api/settings", tags=["Settings"])
    app.include_router(settings_api.scenes_router, prefix="/api/scenes", tags=["Scenes"])

    @app.get("/")
    async def root():
        """루트 엔드포인트."""
        return {"app": "GazeLOD", "version": __version__, "status": "running"}

    @app.get("/health")
    async def health(request: Request):
        """헬스 체크 엔드포인트."""
        current = request.app.state.tracker
        if current is None:
            return {"status": "initializing", "tracker_active": False}
        return {"status": "ok", **current.status()}

    return app
