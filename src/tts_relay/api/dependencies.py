"""
FastAPI Dependency Providers.

The application builds its service objects once, in the lifespan handler
of main.create_app(), and keeps them on ``app.state``:

    app.state.config          SpeechConfig
    app.state.speech_service  SpeechService
    app.state.rate_limiters   {"tts": RateLimiter, "voices": RateLimiter}

The functions here hand them to route handlers through Depends(), so
handlers never reach for module-level globals.

Usage in Route Handlers:
    @router.post("/tts", dependencies=[Depends(rate_limited("tts"))])
    def generate(req: GenerateRequest, service: SpeechService = Depends(get_speech_service)):
        ...
"""
from __future__ import annotations

from typing import Callable

from fastapi import Request, Response

from tts_relay.core.config import SpeechConfig
from tts_relay.core.metrics import metrics
from tts_relay.services.speech_service import SpeechService
from tts_relay.tts.rate_limit import RateLimitDecision


class RateLimitExceeded(Exception):
    """Raised by rate_limited() dependencies; rendered as HTTP 429."""

    def __init__(self, scope: str, decision: RateLimitDecision):
        self.scope = scope
        self.decision = decision
        super().__init__(f"rate limit exceeded for {scope}")


def get_config(request: Request) -> SpeechConfig:
    return request.app.state.config


def get_speech_service(request: Request) -> SpeechService:
    return request.app.state.speech_service


def client_key(request: Request) -> str:
    """Identify the calling client for rate limiting (its IP address)."""
    return request.client.host if request.client else "unknown"


def rate_limit_headers(decision: RateLimitDecision) -> dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(decision.limit),
        "X-RateLimit-Remaining": str(decision.remaining),
    }
    if not decision.allowed:
        headers["Retry-After"] = str(decision.retry_after)
    return headers


def rate_limited(scope: str) -> Callable[[Request, Response], None]:
    """
    Build a dependency enforcing the ``scope`` budget for each client.

    Rejection happens before the request body is validated and before the
    speech service is touched.
    """

    def dependency(request: Request, response: Response) -> None:
        limiters = getattr(request.app.state, "rate_limiters", {}) or {}
        limiter = limiters.get(scope)
        if limiter is None:
            return
        decision = limiter.hit(f"{scope}:{client_key(request)}")
        if not decision.allowed:
            metrics.record_rate_limited(scope)
            raise RateLimitExceeded(scope, decision)
        response.headers.update(rate_limit_headers(decision))

    return dependency
