"""
SpeechService - text in, public audio URL out.

This module holds the request/response translation between the relay's
callers (HTTP routes, CLI) and the ElevenLabs API.

Architecture:
    Validate → POST text-to-speech → Classify status → Store MP3 → URL

    One outbound call and at most one storage write per synthesis. No
    retries: the first classification is final and goes back to the
    caller unchanged.

Outcomes:
    Both operations return a Result (Ok / Err from services.errors).
    Validation errors and classified remote failures come back as Err.
    Storage failures and programming errors are not classified; they
    propagate as exceptions to the outermost boundary.

Example:
    >>> from tts_relay.core.config import load_settings
    >>> from tts_relay.tts.storage import disk_for
    >>>
    >>> config = load_settings().get_speech_config()
    >>> service = SpeechService(config, disk_for(config))
    >>> result = service.synthesize("Hello world")
    >>> result.unwrap()
    '/storage/audio/tts_3b0f...mp3'
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from tts_relay.core.config import SpeechConfig
from tts_relay.core.logging import debug, fail, get_logger, info, success, warn
from tts_relay.core.metrics import metrics
from tts_relay.services.errors import Err, Ok, Result, SynthesisError, ValidationError
from tts_relay.services.validators import validate_text, validate_voice_id
from tts_relay.tts.client import ElevenLabsClient
from tts_relay.tts.status import FailureKind, classify_status, extract_detail, is_failure
from tts_relay.tts.storage import Disk
from tts_relay.utils.timeit import timeit

_LOG = get_logger("tts-relay.service")


@dataclass(frozen=True)
class Voice:
    """One entry of the remote voice catalog."""
    voice_id: str
    name: str
    category: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Voice":
        return cls(
            voice_id=str(data.get("voice_id", "")),
            name=str(data.get("name", "")),
            category=data.get("category"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"voice_id": self.voice_id, "name": self.name, "category": self.category}


def artifact_name() -> str:
    """Unique filename for a new audio artifact."""
    return f"tts_{uuid.uuid4()}.mp3"


def _json_or_none(response: httpx.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None


class SpeechService:
    """
    Speech Request Translator and Voice Catalog Lookup.

    The service holds no per-request state; concurrent calls only share
    the httpx connection pool and write to distinct generated filenames.

    Args:
        config: Validated, immutable configuration.
        disk: Storage backend for generated audio.
        client: Remote API client. Built from ``config`` when omitted.
        transport: httpx transport for the built client (tests only).
    """

    def __init__(
        self,
        config: SpeechConfig,
        disk: Disk,
        client: Optional[ElevenLabsClient] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._config = config
        self._disk = disk
        self._client = client or ElevenLabsClient(config, transport=transport)

    @property
    def config(self) -> SpeechConfig:
        return self._config

    @property
    def disk(self) -> Disk:
        return self._disk

    def close(self) -> None:
        self._client.close()

    # =========================================================================
    # Synthesis
    # =========================================================================

    def synthesize(self, text: str, voice_id: Optional[str] = None) -> Result[str]:
        """
        Convert text to speech and store the MP3.

        Args:
            text: Text to speak (1-5000 characters, not blank).
            voice_id: ElevenLabs voice id; the configured default when None.

        Returns:
            Ok(public URL of the stored artifact) or Err(SynthesisError).
        """
        try:
            validate_text(text)
            voice_id = validate_voice_id(voice_id) or self._config.default_voice_id
        except ValidationError as e:
            warn(_LOG, "tts_invalid_input", field=e.field, reason=e.message, text_length=len(text or ""))
            metrics.record_request("synthesize", e.label)
            return Err(e)

        url = self._client.speech_url(voice_id)
        info(
            _LOG, "tts_request",
            url=url,
            voice_id=voice_id,
            text_length=len(text),
            model=self._config.model_id,
        )
        debug(_LOG, "tts_payload", payload=self._client.build_payload(text))

        with timeit("text_to_speech") as t:
            try:
                response: Optional[httpx.Response] = self._client.text_to_speech(text, voice_id)
                transport_error: Optional[httpx.HTTPError] = None
            except httpx.HTTPError as e:
                response = None
                transport_error = e
        metrics.observe_upstream("synthesize", t.seconds)

        if response is None:
            return self._failed(
                "synthesize",
                SynthesisError.from_kind(
                    FailureKind.CONNECTION,
                    detail=str(transport_error) or type(transport_error).__name__,
                    cause=transport_error,
                ),
                seconds=t.seconds,
            )

        if is_failure(response.status_code):
            body = _json_or_none(response)
            kind = classify_status(response.status_code)
            detail = extract_detail(body) if kind is FailureKind.INVALID_PARAMETERS else ""
            return self._failed(
                "synthesize",
                SynthesisError.from_kind(kind, response.status_code, response_data=body, detail=detail),
                seconds=t.seconds,
            )

        audio = response.content
        if not audio:
            return self._failed(
                "synthesize",
                SynthesisError.from_kind(FailureKind.EMPTY_BODY),
                seconds=t.seconds,
            )

        filename = artifact_name()
        path = f"{self._config.storage.path}/{filename}" if self._config.storage.path else filename
        public_url = self._disk.url(path)
        self._disk.put(path, audio)

        success(
            _LOG, "tts_success",
            filename=filename,
            size_bytes=len(audio),
            url=public_url,
            seconds=round(t.seconds, 3),
        )
        metrics.record_request("synthesize", "success", audio_bytes=len(audio))
        return Ok(public_url)

    # =========================================================================
    # Voice catalog
    # =========================================================================

    def list_voices(self) -> Result[List[Voice]]:
        """
        Fetch the voices available to the configured account.

        Every call goes to the remote API; nothing is cached.

        Returns:
            Ok(list of Voice, in remote order) or Err(SynthesisError).
        """
        with timeit("voices") as t:
            try:
                response: Optional[httpx.Response] = self._client.voices()
                transport_error: Optional[httpx.HTTPError] = None
            except httpx.HTTPError as e:
                response = None
                transport_error = e
        metrics.observe_upstream("list_voices", t.seconds)

        if response is None:
            return self._failed(
                "list_voices",
                SynthesisError.from_kind(
                    FailureKind.CONNECTION,
                    detail=str(transport_error) or type(transport_error).__name__,
                    cause=transport_error,
                ),
            )

        body = _json_or_none(response)
        if is_failure(response.status_code) or not isinstance(body, dict):
            status = response.status_code if is_failure(response.status_code) else 500
            return self._failed(
                "list_voices",
                SynthesisError("error fetching available voices", status, response_data=body),
            )

        voices = [Voice.from_api(v) for v in body.get("voices") or [] if isinstance(v, dict)]
        info(_LOG, "voices_fetched", count=len(voices), seconds=round(t.seconds, 3))
        metrics.record_request("list_voices", "success")
        return Ok(voices)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _failed(self, operation: str, err: SynthesisError, seconds: Optional[float] = None) -> Err:
        fields: Dict[str, Any] = dict(err.to_dict())
        if err.cause is not None:
            fields["cause"] = repr(err.cause)
        if seconds is not None:
            fields["seconds"] = round(seconds, 3)
        fail(_LOG, f"{operation}_failed", **fields)
        metrics.record_request(operation, err.label)
        return Err(err)
