"""
FastAPI Application Entry Point.

This module creates and configures the FastAPI application instance for
tts-relay. Configuration is loaded and validated once, in the lifespan
handler; a missing API key stops the server before it accepts traffic.

Routes:
    - /tts, /voices           (web routes)
    - /api/tts, /api/voices   (API routes, same handlers and budgets)
    - /health, /metrics
    - /storage/...            generated audio on the public disk

Usage:
    # Run with uvicorn
    uvicorn tts_relay.main:app --host 0.0.0.0 --port 8000

    # Or use the module directly
    python -m uvicorn tts_relay.main:app --reload
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles

from tts_relay import __version__
from tts_relay.api.dependencies import RateLimitExceeded
from tts_relay.api.routes import (
    ops_router,
    rate_limit_exception_handler,
    router,
    validation_exception_handler,
)
from tts_relay.core.config import ConfigValidationError, Settings, SpeechConfig, load_settings
from tts_relay.core.logging import configure_logging, error, get_level_name, get_logger, info
from tts_relay.services.speech_service import SpeechService
from tts_relay.tts.rate_limit import RateLimiter
from tts_relay.tts.storage import LocalDisk, disk_for

_LOG = get_logger("tts-relay.main")


def _mount_public_disk(app: FastAPI, disk: LocalDisk, url: Optional[str]) -> None:
    """Serve the disk under its URL prefix when that prefix is a local path."""
    if not url or not url.startswith("/"):
        return
    prefix = url.rstrip("/")
    if any(getattr(r, "path", None) == prefix for r in app.routes):
        return
    Path(disk.root).mkdir(parents=True, exist_ok=True)
    app.mount(prefix, StaticFiles(directory=str(disk.root), check_dir=False), name="storage")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Settings to use instead of config/settings.yaml and the
            environment (tests pass them explicitly).
        transport: httpx transport for the remote API client (tests pass
            httpx.MockTransport).

    Returns:
        FastAPI: Configured application instance ready to serve requests.
    """
    configure_logging()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            config = SpeechConfig.from_settings(settings or load_settings())
        except ConfigValidationError as e:
            error(_LOG, "startup_config_invalid", error=str(e))
            raise

        disk = disk_for(config)
        service = SpeechService(config, disk, transport=transport)

        app.state.config = config
        app.state.speech_service = service
        app.state.rate_limiters = {}
        if config.rate_limit.enabled:
            app.state.rate_limiters = {
                "tts": RateLimiter(config.rate_limit.tts_per_minute, config.rate_limit.window_seconds),
                "voices": RateLimiter(config.rate_limit.voices_per_minute, config.rate_limit.window_seconds),
            }
        _mount_public_disk(app, disk, config.disk.url)

        info(
            _LOG, "startup",
            version=__version__,
            voice_id=config.default_voice_id,
            model=config.model_id,
            disk=config.storage.disk,
            ttl_minutes=config.storage.ttl_minutes,
            rate_limit=config.rate_limit.enabled,
            log_level=get_level_name(),
        )
        try:
            yield
        finally:
            service.close()
            info(_LOG, "shutdown")

    app = FastAPI(title="tts-relay", version=__version__, lifespan=lifespan)

    app.include_router(router)                   # Web: /tts, /voices
    app.include_router(router, prefix="/api")    # API: /api/tts, /api/voices
    app.include_router(ops_router)               # /health, /metrics

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)

    return app


# Global application instance for ASGI servers (uvicorn, gunicorn, etc.)
app = create_app()
