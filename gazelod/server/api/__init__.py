"""REST / WebSocket 라우터."""
