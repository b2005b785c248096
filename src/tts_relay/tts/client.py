"""
HTTP client for the ElevenLabs REST API.

This module only speaks HTTP: it builds URLs, headers and payloads and
returns the raw httpx.Response. Interpreting status codes is the job of
tts.status and the speech service.

Endpoints used:
    POST {base_url}/text-to-speech/{voice_id}   -> audio/mpeg bytes
    GET  {base_url}/voices                      -> {"voices": [...]}

Headers:
    xi-api-key: authentication (every call)
    Content-Type: application/json (synthesis)
    Accept: audio/mpeg (synthesis; asks for raw MP3 instead of JSON)

API docs: https://elevenlabs.io/docs/api-reference
"""
from __future__ import annotations

from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from tts_relay.core.config import SpeechConfig

API_KEY_HEADER = "xi-api-key"


class ElevenLabsClient:
    """
    Thin synchronous wrapper around an httpx.Client.

    The underlying client is thread-safe and keeps a connection pool, so
    one instance serves every request for the lifetime of the process.

    ``timeout_seconds`` bounds each phase of a call separately (connect,
    write, each read, pool wait), as httpx.Timeout does. It is not a
    deadline for the whole call: a server that keeps trickling bytes can
    hold a request open for longer.

    Args:
        config: Validated speech configuration.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(self, config: SpeechConfig, transport: Optional[httpx.BaseTransport] = None):
        self._config = config
        self._http = httpx.Client(
            timeout=httpx.Timeout(float(config.timeout_seconds)),
            headers={API_KEY_HEADER: config.api_key},
            follow_redirects=True,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._config.base_url

    def speech_url(self, voice_id: str) -> str:
        # voice_id is always a single path segment
        return f"{self._config.base_url}/text-to-speech/{quote(voice_id, safe='')}"

    def build_payload(self, text: str) -> Dict[str, Any]:
        return {
            "text": text,
            "model_id": self._config.model_id,
            "voice_settings": self._config.voice_settings.as_dict(),
        }

    def text_to_speech(self, text: str, voice_id: str) -> httpx.Response:
        """
        Request MP3 audio for ``text`` spoken by ``voice_id``.

        Raises:
            httpx.HTTPError: On transport failures and timeouts. HTTP error
                statuses are returned, not raised.
        """
        return self._http.post(
            self.speech_url(voice_id),
            json=self.build_payload(text),
            headers={
                "Content-Type": "application/json",
                "Accept": "audio/mpeg",
            },
        )

    def voices(self) -> httpx.Response:
        """Fetch the voice catalog of the account."""
        return self._http.get(f"{self._config.base_url}/voices")

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ElevenLabsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
