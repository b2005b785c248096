"""
tts-relay: ElevenLabs Text-to-Speech Relay.

A small service that turns text into a publicly retrievable MP3. It
forwards the text to the ElevenLabs text-to-speech API, stores the
returned audio on a configured disk and hands back the file's URL.

Key Features:
    - POST /tts and GET /voices, at the root and under /api
    - Classified, user-safe error messages for every remote failure
    - Per-client rate limiting (10 syntheses, 30 catalog lookups per minute)
    - Storage sweeper removing artifacts older than the configured TTL
    - Prometheus metrics and structured logging

Example Usage:
    >>> from tts_relay.core.config import load_settings
    >>> from tts_relay.services import SpeechService
    >>> from tts_relay.tts.storage import disk_for
    >>>
    >>> config = load_settings().get_speech_config()
    >>> service = SpeechService(config, disk_for(config))
    >>> service.synthesize("Hello world").unwrap()
    '/storage/audio/tts_3b0f....mp3'
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
