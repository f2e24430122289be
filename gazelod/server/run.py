#!/usr/bin/env python3
"""GazeLOD 백엔드 서버를 실행합니다.

    python -m gazelod.server.run
"""
import logging

import uvicorn

from gazelod.config import Settings


def main() -> None:
    settings = Settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"""
GazeLOD server

  server:    http://{settings.host}:{settings.port}
  API docs:  http://{settings.host}:{settings.port}/docs
  WebSocket: ws://{settings.host}:{settings.port}/ws/gaze

  model:     {settings.model_name} (alpha={settings.ridge_alpha})
  filter:    {settings.filter_method}
  scene:     {settings.scene}
  camera:    {settings.camera_index}

Press Ctrl+C to stop
""")

    uvicorn.run(
        "gazelod.server.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
