"""
Command-Line Interface for tts-relay.

This module runs the speech service without the HTTP server: one-off
syntheses, a look at the voice catalog, and the storage sweep that an
external scheduler should run periodically.

Usage Examples:
    # Synthesize with the default voice; prints the public URL
    tts-relay synth "Hello world"

    # Pick a voice and print a JSON summary
    tts-relay synth "Hello world" --voice 21m00Tcm4TlvDq8ikWAM --json

    # List the voices of the configured account
    tts-relay voices

    # Delete audio older than the configured TTL (e.g. from cron)
    */10 * * * *  tts-relay cleanup

    # Use another settings file
    tts-relay --settings /etc/tts-relay/settings.yaml voices

Exit Codes:
    0  success
    1  the speech service reported an error
    2  configuration is missing or invalid

Environment Variables:
    ELEVEN_API_KEY: ElevenLabs API key (required)
    TTS_RELAY_SETTINGS: Settings file path
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import List, Optional
from uuid import uuid4

import httpx

from tts_relay.core.config import ConfigValidationError, SpeechConfig, load_settings
from tts_relay.core.logging import configure_logging, get_logger, info, set_request_id
from tts_relay.services.errors import SynthesisError
from tts_relay.services.speech_service import SpeechService
from tts_relay.services.sweeper import StorageSweeper
from tts_relay.tts.storage import disk_for

EXIT_OK = 0
EXIT_SERVICE_ERROR = 1
EXIT_CONFIG_ERROR = 2


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: Optional list of arguments (defaults to sys.argv).

    Returns:
        Parsed argument namespace; ``command`` names the subcommand.
    """
    parser = argparse.ArgumentParser(prog="tts-relay", description="tts-relay CLI (ElevenLabs TTS relay)")
    parser.add_argument("--settings", help="Settings file (default: $TTS_RELAY_SETTINGS or config/settings.yaml)")

    sub = parser.add_subparsers(dest="command", required=True)

    synth = sub.add_parser("synth", help="Synthesize text and print the audio URL")
    synth.add_argument("text", help="Text to synthesize")
    synth.add_argument("--voice", help="Voice id (default: configured voice)")
    synth.add_argument("--json", action="store_true", help="Print JSON summary")

    voices = sub.add_parser("voices", help="List available voices")
    voices.add_argument("--json", action="store_true", help="Print JSON")

    cleanup = sub.add_parser("cleanup", help="Delete audio older than the storage TTL")
    cleanup.add_argument("--json", action="store_true", help="Print JSON summary")

    return parser.parse_args(argv)


def _print_error(err: SynthesisError, as_json: bool) -> None:
    if as_json:
        print(json.dumps({"ok": False, "message": err.message, "error_code": err.status_code}))
    else:
        print(f"error ({err.status_code}): {err.message}", file=sys.stderr)


def _synth(service: SpeechService, args: argparse.Namespace) -> int:
    try:
        url = service.synthesize(args.text, args.voice).unwrap()
    except SynthesisError as e:
        _print_error(e, args.json)
        return EXIT_SERVICE_ERROR

    if args.json:
        print(json.dumps({"ok": True, "audio_url": url, "text_length": len(args.text)}, ensure_ascii=False))
    else:
        print(url)
    return EXIT_OK


def _voices(service: SpeechService, args: argparse.Namespace) -> int:
    try:
        voices = service.list_voices().unwrap()
    except SynthesisError as e:
        _print_error(e, args.json)
        return EXIT_SERVICE_ERROR

    if args.json:
        print(json.dumps({"ok": True, "voices": [v.to_dict() for v in voices]}, ensure_ascii=False))
    else:
        for v in voices:
            category = f"  [{v.category}]" if v.category else ""
            print(f"{v.voice_id}  {v.name}{category}")
    return EXIT_OK


def main(argv: Optional[List[str]] = None, transport: Optional[httpx.BaseTransport] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Optional list of command-line arguments.
        transport: httpx transport for the remote API client (tests only).

    Returns:
        Exit code (see module docstring).
    """
    args = _parse_args(argv)

    configure_logging(settings_path=args.settings, force=args.settings is not None)
    log = get_logger("tts-relay.cli")
    set_request_id(str(uuid4())[:12])

    try:
        config = SpeechConfig.from_settings(load_settings(args.settings))
    except ConfigValidationError as e:
        print(f"configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    disk = disk_for(config)

    if args.command == "cleanup":
        deleted = StorageSweeper(config.storage, disk).cleanup()
        if args.json:
            print(json.dumps({"ok": True, "deleted": deleted}))
        else:
            print(f"deleted {deleted} file(s)")
        return EXIT_OK

    service = SpeechService(config, disk, transport=transport)
    try:
        info(log, "cli_command", command=args.command)
        if args.command == "synth":
            return _synth(service, args)
        return _voices(service, args)
    finally:
        service.close()


if __name__ == "__main__":
    raise SystemExit(main())
