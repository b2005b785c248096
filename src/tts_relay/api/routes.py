"""
TTS Relay API Routes.

Endpoints:
    POST /tts       - Synthesize text, store the MP3, return its public URL
    GET  /voices    - Voice catalog of the configured ElevenLabs account
    GET  /health    - Health check for load balancers and probes
    GET  /metrics   - Prometheus metrics

The /tts and /voices routes live on ``router``, which main.py registers
both at the root and under /api. /health and /metrics live on
``ops_router`` and are registered at the root only.

Request Flow (POST /tts):
    1. Per-client rate limit (429 before anything else happens)
    2. Body validation (422 with per-field messages)
    3. SpeechService.synthesize()
    4. Ok  -> 200 with audio_url
       Err -> 400, or 500 when the classified status is >= 500

Response Envelopes:
    {"success": true, "message": "Audio generated successfully!",
     "audio_url": "/storage/audio/tts_....mp3", "text_length": 22}

    {"success": false, "message": "voice id not found", "error_code": 404}

    {"success": false, "message": "validation error",
     "errors": {"text": ["The text field is required."]}}

Example Usage:
    >>> import httpx
    >>> r = httpx.post("http://localhost:8000/api/tts", json={"text": "Hello there"})
    >>> r.json()["audio_url"]
    '/storage/audio/tts_5d1e....mp3'
"""
from __future__ import annotations

import uuid
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tts_relay import __version__
from tts_relay.api.dependencies import (
    RateLimitExceeded,
    client_key,
    get_config,
    get_speech_service,
    rate_limit_headers,
    rate_limited,
)
from tts_relay.api.schemas import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    ValidationErrorResponse,
    VoicesResponse,
    field_message,
)
from tts_relay.core.config import SpeechConfig
from tts_relay.core.logging import error, get_logger, info, set_request_id, warn
from tts_relay.core.metrics import metrics
from tts_relay.services.errors import SynthesisError
from tts_relay.services.speech_service import SpeechService

router = APIRouter()
ops_router = APIRouter()

_LOG = get_logger("tts-relay.api")

SUCCESS_MESSAGE = "Audio generated successfully!"
INTERNAL_ERROR_MESSAGE = "Internal server error. Please try again."
RATE_LIMIT_MESSAGE = "Too many requests. Please slow down and try again later."


def _new_request_id() -> str:
    rid = str(uuid.uuid4())[:12]
    set_request_id(rid)
    return rid


def _synthesis_error_response(err: SynthesisError, rid: str) -> JSONResponse:
    """Render a classified failure; 5xx classifications stay 5xx, the rest become 400."""
    status_code = 500 if err.status_code >= 500 else 400
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": err.message, "error_code": err.status_code},
        headers={"X-Request-Id": rid},
    )


def _internal_error_response(rid: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": INTERNAL_ERROR_MESSAGE},
        headers={"X-Request-Id": rid},
    )


@router.post(
    "/tts",
    response_model=GenerateResponse,
    responses={
        400: {"model": ErrorResponse},
        422: {"model": ValidationErrorResponse},
        429: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    dependencies=[Depends(rate_limited("tts"))],
)
def generate(
    req: GenerateRequest,
    request: Request,
    response: Response,
    service: SpeechService = Depends(get_speech_service),
):
    """
    Synthesize ``req.text`` and return the public URL of the MP3.

    Example:
        curl -X POST http://localhost:8000/api/tts \\
            -H "Content-Type: application/json" \\
            -d '{"text": "Hello there", "voice_id": "21m00Tcm4TlvDq8ikWAM"}'
    """
    rid = _new_request_id()

    try:
        result = service.synthesize(req.text, req.voice_id)
    except Exception as e:
        # Storage failures and bugs: log the detail, show the client nothing
        error(_LOG, "tts_unexpected_error", error=str(e), error_type=type(e).__name__, exc_info=True)
        return _internal_error_response(rid)

    if not result.ok:
        err = result.error
        error(
            _LOG, "tts_generation_failed",
            message=err.message,
            status_code=err.status_code,
            text_length=len(req.text),
            voice_id=req.voice_id,
            ip=client_key(request),
        )
        return _synthesis_error_response(err, rid)

    info(
        _LOG, "tts_generated",
        text_length=len(req.text),
        voice_id=req.voice_id,
        audio_url=result.value,
        ip=client_key(request),
        user_agent=request.headers.get("user-agent"),
    )
    response.headers["X-Request-Id"] = rid
    return GenerateResponse(
        success=True,
        message=SUCCESS_MESSAGE,
        audio_url=result.value,
        text_length=len(req.text),
    )


@router.get(
    "/voices",
    response_model=VoicesResponse,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    dependencies=[Depends(rate_limited("voices"))],
)
def voices(service: SpeechService = Depends(get_speech_service)):
    """List the voices available to the configured account."""
    rid = _new_request_id()

    try:
        result = service.list_voices()
    except Exception as e:
        error(_LOG, "voices_unexpected_error", error=str(e), error_type=type(e).__name__, exc_info=True)
        return _internal_error_response(rid)

    if not result.ok:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": result.error.message},
            headers={"X-Request-Id": rid},
        )

    return VoicesResponse(success=True, voices=[v.to_dict() for v in result.value])


@ops_router.get("/health")
def health(request: Request, config: SpeechConfig = Depends(get_config)) -> Dict[str, Any]:
    """
    Health check endpoint.

    Reports configuration only; it never calls the remote API, so a
    health probe does not spend quota.
    """
    limiters = getattr(request.app.state, "rate_limiters", {}) or {}
    rate_limits = {}
    for scope, limiter in limiters.items():
        stats = limiter.stats()
        rate_limits[scope] = {
            "max_requests": stats.max_requests,
            "window_seconds": stats.window_seconds,
            "total_rejected": stats.total_rejected,
        }
    return {
        "ok": True,
        "service": "tts-relay",
        "version": __version__,
        "default_voice_id": config.default_voice_id,
        "model_id": config.model_id,
        "storage": {
            "disk": config.storage.disk,
            "path": config.storage.path,
            "ttl_minutes": config.storage.ttl_minutes,
        },
        "rate_limits": rate_limits,
    }


@ops_router.get("/metrics")
def prometheus_metrics():
    """Prometheus metrics endpoint."""
    content, content_type = metrics.get_metrics_response()
    return Response(content=content, media_type=content_type)


# =============================================================================
# Exception handlers (registered in main.create_app)
# =============================================================================

def validation_errors(exc: RequestValidationError) -> Dict[str, List[str]]:
    """Group pydantic errors by request field with client-facing messages."""
    errors: Dict[str, List[str]] = {}
    for e in exc.errors():
        loc = tuple(e.get("loc", ()))
        error_type = str(e.get("type", ""))
        if len(loc) > 1 and loc[0] == "body" and isinstance(loc[1], str):
            field = loc[1]
        elif error_type == "missing":
            # no body at all: the one required field is missing
            field = "text"
        else:
            field = "body"
        message = field_message(field, error_type)
        if message not in errors.setdefault(field, []):
            errors[field].append(message)
    return errors


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = validation_errors(exc)
    warn(_LOG, "request_validation_failed", path=request.url.path, errors=errors)
    if request.url.path.endswith("/tts"):
        metrics.record_request("synthesize", "invalid_input")
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": "validation error", "errors": errors},
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": RATE_LIMIT_MESSAGE},
        headers=rate_limit_headers(exc.decision),
    )
