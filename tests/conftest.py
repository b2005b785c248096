"""Shared fixtures: isolated settings, a temporary public disk and a fake ElevenLabs API."""
from __future__ import annotations

import json
from typing import Any, Dict, List

import httpx
import pytest

from tts_relay.core.config import Settings, SpeechConfig
from tts_relay.tts.storage import LocalDisk

FAKE_MP3 = b"ID3\x04\x00\x00\x00\x00\x00\x00" + b"\xff\xfb\x90\x64" * 64

VOICES_BODY = {
    "voices": [
        {"voice_id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel", "category": "premade"},
        {"voice_id": "AZnzlk1XvdvUeBnXmlld", "name": "Domi", "category": "premade"},
    ]
}


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Keep the developer's environment and settings file out of tests."""
    for name in (
        "ELEVEN_API_KEY",
        "ELEVEN_VOICE_ID",
        "ELEVEN_API_BASE_URL",
        "ELEVEN_API_TIMEOUT",
        "ELEVEN_MODEL_ID",
        "ELEVEN_AUDIO_TTL",
        "TTS_RELAY_STORAGE_DISK",
        "TTS_RELAY_STORAGE_PATH",
        "TTS_RELAY_LOG_LEVEL",
        "TTS_RELAY_LOG_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TTS_RELAY_SETTINGS", str(tmp_path / "missing-settings.yaml"))


def make_raw(tmp_path, **sections: Dict[str, Any]) -> Dict[str, Any]:
    """Raw settings with an API key and disks rooted under tmp_path."""
    raw: Dict[str, Any] = {
        "elevenlabs": {"api_key": "test-key"},
        "disks": {
            "public": {"root": str(tmp_path / "public"), "url": "/storage"},
            "local": {"root": str(tmp_path / "local"), "url": None},
        },
    }
    for section, values in sections.items():
        raw.setdefault(section, {}).update(values)
    return raw


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(raw=make_raw(tmp_path))


@pytest.fixture
def speech_config(settings) -> SpeechConfig:
    return SpeechConfig.from_settings(settings)


@pytest.fixture
def disk(speech_config) -> LocalDisk:
    return LocalDisk(speech_config.disk.root, url=speech_config.disk.url)


class FakeElevenLabs:
    """
    Scripted stand-in for the remote API, used through httpx.MockTransport.

    ``tts_response`` and ``voices_response`` are either an httpx.Response or
    an exception to raise. Every request is kept in ``requests``.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.tts_response: Any = httpx.Response(200, content=FAKE_MP3, headers={"Content-Type": "audio/mpeg"})
        self.voices_response: Any = httpx.Response(200, json=VOICES_BODY)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if "/text-to-speech/" in request.url.path:
            outcome = self.tts_response
        elif request.url.path.endswith("/voices"):
            outcome = self.voices_response
        else:
            outcome = httpx.Response(404, json={"detail": "not found"})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def fake_api() -> FakeElevenLabs:
    return FakeElevenLabs()

