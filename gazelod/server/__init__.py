"""GazeLOD 백엔드 서버 (FastAPI)."""
