"""
tts-relay HTTP API.

Components:
    - routes.py: /tts, /voices, /health, /metrics and exception handlers
    - schemas.py: Pydantic request/response models
    - dependencies.py: app.state accessors and per-client rate limiting
"""
