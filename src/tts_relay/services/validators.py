"""
Input Validation for the speech service.

Validation happens before any outbound call so that bad input never
costs an API request or leaves an artifact behind.

Validation Rules (checked in order, first failure wins):
    - Text: must contain something other than whitespace
    - Text: at most 5000 characters, counted on the raw input
    - Voice id: optional, at most 100 characters

Usage:
    from tts_relay.services.validators import validate_text, ValidationError

    try:
        validate_text(text)
        voice_id = validate_voice_id(voice_id)
    except ValidationError as e:
        return Err(e)
"""
from __future__ import annotations

from typing import Optional

from tts_relay.services.errors import ValidationError

# ElevenLabs rejects longer inputs per request
MAX_TEXT_LENGTH = 5000
MAX_VOICE_ID_LENGTH = 100


def validate_text(text: str, max_length: int = MAX_TEXT_LENGTH) -> str:
    """
    Validate text input.

    The text is returned unchanged; surrounding whitespace is only
    ignored for the emptiness check and is still sent to the API.

    Raises:
        ValidationError: If the text is blank or too long.
    """
    if not text or not text.strip():
        raise ValidationError("text must not be empty", field="text")

    if len(text) > max_length:
        raise ValidationError(
            f"text exceeds the {max_length} character limit",
            field="text",
        )

    return text


def validate_voice_id(voice_id: Optional[str], max_length: int = MAX_VOICE_ID_LENGTH) -> Optional[str]:
    """
    Validate voice identifier.

    Only the length is checked; whether the voice exists is for the
    remote API to decide (it answers 404).

    Returns:
        The voice id, or None when absent or blank.
    """
    if not voice_id or not voice_id.strip():
        return None

    if len(voice_id) > max_length:
        raise ValidationError("voice id is invalid", field="voice_id")

    return voice_id
