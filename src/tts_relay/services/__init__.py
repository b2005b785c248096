"""
tts-relay Services Layer.

This package holds the business logic between the API layer and the
remote speech API.

Components:
    - speech_service.py: SpeechService (synthesize, list_voices)
    - sweeper.py: StorageSweeper (TTL cleanup of stored audio)
    - validators.py: Input validation functions
    - errors.py: SynthesisError, ValidationError and the Ok/Err result type
"""
from .errors import Err, Ok, Result, SynthesisError, ValidationError
from .speech_service import SpeechService, Voice
from .sweeper import StorageSweeper

__all__ = [
    "SpeechService",
    "StorageSweeper",
    "Voice",
    "SynthesisError",
    "ValidationError",
    "Ok",
    "Err",
    "Result",
]
