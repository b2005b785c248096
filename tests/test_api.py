"""
Tests for the HTTP API (FastAPI TestClient + fake ElevenLabs transport).

Tests cover:
- POST /tts and /api/tts success envelope and served audio
- 422 envelopes with per-field messages; invalid input never calls out
- Classified remote failures mapped to 400/500 with error_code
- Unclassified failures mapped to the generic 500
- GET /voices success and failure envelopes
- Per-client rate limiting (429 before validation or synthesis)
- /health and /metrics
- Startup fails without an API key or with a storage disk that has no URL
- OpenAPI documents the 422 envelope
"""
import re

import httpx
import pytest
from fastapi.testclient import TestClient

from tts_relay.core.config import ConfigValidationError, Settings
from tts_relay.main import create_app

from conftest import FAKE_MP3, make_raw

URL_PATTERN = re.compile(r"^/storage/audio/tts_[0-9a-f-]{36}\.mp3$")


@pytest.fixture
def make_client(tmp_path, fake_api):
    clients = []

    def _make(**sections):
        app = create_app(settings=Settings(raw=make_raw(tmp_path, **sections)), transport=fake_api.transport)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


class TestGenerate:
    """POST /tts and /api/tts."""

    @pytest.mark.parametrize("path", ["/tts", "/api/tts"])
    def test_success_envelope(self, client, path):
        text = "Hello, this is a test."
        r = client.post(path, json={"text": text})

        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert body["message"] == "Audio generated successfully!"
        assert URL_PATTERN.match(body["audio_url"])
        assert body["text_length"] == len(text)
        assert "X-Request-Id" in r.headers

    def test_audio_url_is_served(self, client):
        audio_url = client.post("/tts", json={"text": "Hello"}).json()["audio_url"]

        r = client.get(audio_url)

        assert r.status_code == 200
        assert r.content == FAKE_MP3

    def test_voice_id_forwarded(self, client, fake_api):
        client.post("/api/tts", json={"text": "Hello", "voice_id": "AZnzlk1XvdvUeBnXmlld"})
        assert fake_api.requests[-1].url.path.endswith("/text-to-speech/AZnzlk1XvdvUeBnXmlld")

    def test_null_voice_id_uses_default(self, client, fake_api):
        client.post("/api/tts", json={"text": "Hello", "voice_id": None})
        assert fake_api.requests[-1].url.path.endswith("/text-to-speech/21m00Tcm4TlvDq8ikWAM")

    def test_rate_limit_headers_on_success(self, client):
        r = client.post("/tts", json={"text": "Hello"})
        assert r.headers["X-RateLimit-Limit"] == "10"
        assert r.headers["X-RateLimit-Remaining"] == "9"


class TestGenerateValidation:
    """422 responses from request validation."""

    @pytest.mark.parametrize("payload,field,message", [
        ({}, "text", "The text field is required."),
        ({"text": ""}, "text", "The text field is required."),
        ({"text": "   "}, "text", "The text field is required."),
        ({"text": "a" * 5001}, "text", "The text may not exceed 5000 characters."),
        ({"text": 123}, "text", "The text must be a string."),
        ({"text": "Hi", "voice_id": "v" * 101}, "voice_id", "The voice id may not exceed 100 characters."),
        ({"text": "Hi", "voice_id": 7}, "voice_id", "The voice id must be a string."),
    ])
    def test_field_errors(self, client, fake_api, payload, field, message):
        r = client.post("/api/tts", json=payload)

        assert r.status_code == 422
        body = r.json()
        assert body["success"] is False
        assert body["message"] == "validation error"
        assert body["errors"][field] == [message]
        assert fake_api.requests == []

    def test_missing_body(self, client):
        r = client.post("/tts")
        assert r.status_code == 422
        assert r.json()["errors"] == {"text": ["The text field is required."]}

    def test_text_at_limit_accepted(self, client):
        r = client.post("/tts", json={"text": "a" * 5000})
        assert r.status_code == 200
        assert r.json()["text_length"] == 5000


class TestGenerateFailures:
    """Classified and unclassified failures."""

    @pytest.mark.parametrize("status,http_status,message", [
        (401, 400, "API key is invalid or unauthorized"),
        (404, 400, "voice id not found"),
        (429, 400, "rate limit exceeded, retry shortly"),
        (500, 500, "internal error in the remote speech API, retry"),
        (503, 500, "internal error in the remote speech API, retry"),
        (418, 400, "error calling remote speech API"),
    ])
    def test_remote_status(self, client, fake_api, status, http_status, message):
        fake_api.tts_response = httpx.Response(status, json={"detail": "nope"})

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == http_status
        assert r.json() == {"success": False, "message": message, "error_code": status}

    def test_invalid_parameters(self, client, fake_api):
        fake_api.tts_response = httpx.Response(422, json={"detail": {"message": "bad voice settings"}})

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == 400
        assert r.json()["message"] == "invalid parameters: bad voice settings"
        assert r.json()["error_code"] == 422

    def test_empty_body(self, client, fake_api):
        fake_api.tts_response = httpx.Response(200, content=b"")

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "response body is empty", "error_code": 500}

    def test_connection_error(self, client, fake_api):
        fake_api.tts_response = httpx.ConnectError("refused")

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == 500
        assert r.json()["message"] == "error connecting to remote speech API: refused"

    def test_storage_failure_is_generic_500(self, client, monkeypatch):
        def broken_put(path, data):
            raise OSError("disk full")

        monkeypatch.setattr(client.app.state.speech_service.disk, "put", broken_put)

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == 500
        assert r.json() == {"success": False, "message": "Internal server error. Please try again."}


class TestVoices:
    """GET /voices and /api/voices."""

    @pytest.mark.parametrize("path", ["/voices", "/api/voices"])
    def test_success(self, client, path):
        r = client.get(path)

        assert r.status_code == 200
        body = r.json()
        assert body["success"] is True
        assert [v["voice_id"] for v in body["voices"]] == ["21m00Tcm4TlvDq8ikWAM", "AZnzlk1XvdvUeBnXmlld"]
        assert body["voices"][0] == {"voice_id": "21m00Tcm4TlvDq8ikWAM", "name": "Rachel", "category": "premade"}

    def test_failure(self, client, fake_api):
        fake_api.voices_response = httpx.Response(401, json={"detail": "unauthorized"})

        r = client.get("/api/voices")

        assert r.status_code == 400
        assert r.json() == {"success": False, "message": "error fetching available voices"}


class TestRateLimiting:
    """Per-client budgets applied before the service."""

    def test_eleventh_synthesis_is_rejected(self, client, fake_api):
        for _ in range(10):
            assert client.post("/tts", json={"text": "Hello"}).status_code == 200

        r = client.post("/tts", json={"text": "Hello"})

        assert r.status_code == 429
        assert r.json()["success"] is False
        assert r.json()["message"].startswith("Too many requests.")
        assert r.headers["X-RateLimit-Limit"] == "10"
        assert r.headers["X-RateLimit-Remaining"] == "0"
        assert int(r.headers["Retry-After"]) >= 1
        assert len(fake_api.requests) == 10

    def test_web_and_api_routes_share_budget(self, client):
        for i in range(10):
            path = "/tts" if i % 2 else "/api/tts"
            assert client.post(path, json={"text": "Hello"}).status_code == 200

        assert client.post("/api/tts", json={"text": "Hello"}).status_code == 429

    def test_rejected_before_validation(self, client):
        for _ in range(10):
            assert client.post("/tts", json={}).status_code == 422

        assert client.post("/tts", json={}).status_code == 429

    def test_voices_budget(self, client, fake_api):
        for _ in range(30):
            assert client.get("/voices").status_code == 200

        assert client.get("/voices").status_code == 429
        assert len(fake_api.requests) == 30

    def test_synthesis_and_voices_budgets_are_separate(self, client):
        for _ in range(10):
            client.post("/tts", json={"text": "Hello"})

        assert client.get("/voices").status_code == 200

    def test_custom_budget(self, make_client):
        client = make_client(rate_limit={"tts_per_minute": 2})

        assert client.post("/tts", json={"text": "a"}).status_code == 200
        assert client.post("/tts", json={"text": "b"}).status_code == 200
        assert client.post("/tts", json={"text": "c"}).status_code == 429

    def test_disabled(self, make_client):
        client = make_client(rate_limit={"enabled": False})

        for _ in range(12):
            r = client.post("/tts", json={"text": "Hello"})
            assert r.status_code == 200
        assert "X-RateLimit-Limit" not in r.headers


class TestOps:
    """/health, /metrics and startup."""

    def test_health(self, client):
        r = client.get("/health")

        assert r.status_code == 200
        body = r.json()
        assert body["ok"] is True
        assert body["service"] == "tts-relay"
        assert body["default_voice_id"] == "21m00Tcm4TlvDq8ikWAM"
        assert body["model_id"] == "eleven_multilingual_v2"
        assert body["storage"] == {"disk": "public", "path": "audio", "ttl_minutes": 60}
        assert body["rate_limits"]["tts"]["max_requests"] == 10

    def test_health_does_not_call_remote(self, client, fake_api):
        client.get("/health")
        assert fake_api.requests == []

    def test_metrics(self, client):
        client.post("/tts", json={"text": "Hello"})

        r = client.get("/metrics")

        assert r.status_code == 200
        assert "tts_relay_requests_total" in r.text
        assert "tts_relay_upstream_duration_seconds" in r.text

    def test_startup_fails_without_api_key(self, tmp_path):
        raw = make_raw(tmp_path)
        raw["elevenlabs"] = {}
        app = create_app(settings=Settings(raw=raw))

        with pytest.raises(ConfigValidationError):
            with TestClient(app):
                pass

    def test_startup_fails_with_private_storage_disk(self, tmp_path):
        app = create_app(settings=Settings(raw=make_raw(tmp_path, storage={"disk": "local"})))

        with pytest.raises(ConfigValidationError):
            with TestClient(app):
                pass

    def test_openapi_documents_validation_envelope(self, client):
        responses = client.get("/openapi.json").json()["paths"]["/api/tts"]["post"]["responses"]

        schema = responses["422"]["content"]["application/json"]["schema"]
        assert schema["$ref"] == "#/components/schemas/ValidationErrorResponse"
