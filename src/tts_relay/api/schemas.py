"""
API Request/Response Schemas.

Models:
    GenerateRequest: Input schema for POST /tts and /api/tts
    GenerateResponse: Success envelope for synthesis
    ErrorResponse: Failure envelope (synthesis errors, rate limiting)
    VoicesResponse: Envelope for GET /voices

Example Request:
    {
        "text": "Hello, this is a test.",
        "voice_id": "21m00Tcm4TlvDq8ikWAM"
    }

Validation failures are rendered by api.routes as
    {"success": false, "message": "validation error",
     "errors": {"text": ["The text field is required."]}}
with the per-field messages below.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from tts_relay.services.validators import MAX_TEXT_LENGTH, MAX_VOICE_ID_LENGTH

# (field, pydantic error type) -> message shown to the client
FIELD_MESSAGES = {
    ("text", "missing"): "The text field is required.",
    ("text", "string_too_short"): "The text field is required.",
    ("text", "value_error"): "The text field is required.",
    ("text", "string_too_long"): f"The text may not exceed {MAX_TEXT_LENGTH} characters.",
    ("voice_id", "string_too_long"): f"The voice id may not exceed {MAX_VOICE_ID_LENGTH} characters.",
}


def field_message(field: str, error_type: str) -> str:
    """Client-facing message for a pydantic error on ``field``."""
    if (field, error_type) in FIELD_MESSAGES:
        return FIELD_MESSAGES[(field, error_type)]
    if error_type == "string_type":
        return f"The {field.replace('_', ' ')} must be a string."
    if field == "body":
        return "The request body must be a JSON object."
    return f"The {field.replace('_', ' ')} is invalid."


class GenerateRequest(BaseModel):
    """
    Synthesis request.

    Attributes:
        text: Text to speak, 1-5000 characters and not only whitespace.
        voice_id: ElevenLabs voice id. Omit for the configured default.
    """
    text: str = Field(
        ...,
        min_length=1,
        max_length=MAX_TEXT_LENGTH,
        description="Text to synthesize (1-5000 characters)",
    )
    voice_id: Optional[str] = Field(
        default=None,
        max_length=MAX_VOICE_ID_LENGTH,
        description="Voice id (None for the configured default)",
    )

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text is blank")
        return v


class GenerateResponse(BaseModel):
    """Success envelope for synthesis."""
    success: bool = True
    message: str
    audio_url: str
    text_length: int


class ErrorResponse(BaseModel):
    """Failure envelope."""
    success: bool = False
    message: str
    error_code: Optional[int] = None


class ValidationErrorResponse(BaseModel):
    """Envelope for rejected request bodies (HTTP 422)."""
    success: bool = False
    message: str = "validation error"
    errors: Dict[str, List[str]]


class VoicesResponse(BaseModel):
    """Envelope for the voice catalog."""
    success: bool = True
    voices: List[Dict[str, Any]]
