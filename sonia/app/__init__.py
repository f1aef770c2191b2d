"""
App layer: API server (FastAPI).

Role:
- HTTP/WebSocket surface, request validation, auth dependency
- LLM provider calls via services
- persistence is delegated to core (UserStore)
"""
