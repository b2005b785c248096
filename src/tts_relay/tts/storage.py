"""
Storage backends for generated audio.

The speech service and the sweeper talk to storage through the Disk
protocol, which mirrors a minimal object-store API:

    put(path, data)       write bytes, replacing any existing object
    url(path)             public URL of an object
    files(prefix)         object paths directly under prefix, sorted
    last_modified(path)   POSIX timestamp of the last write
    delete(path)          remove an object; False if it was already gone

LocalDisk implements it on a local directory. Paths are always relative,
'/'-separated and never escape the disk root.

File Organization:
    {root}/
        audio/
            tts_1f0c....mp3
            tts_9b2e....mp3

Usage:
    disk = LocalDisk("./storage/public", url="/storage")
    disk.put("audio/tts_x.mp3", mp3_bytes)
    disk.url("audio/tts_x.mp3")   # "/storage/audio/tts_x.mp3"
"""
from __future__ import annotations

import os
import uuid
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol

from tts_relay.core.config import DiskConfig, SpeechConfig
from tts_relay.core.logging import debug, get_logger

_LOG = get_logger("tts-relay.storage")


class Disk(Protocol):
    """Capabilities the relay needs from a storage backend."""

    def put(self, path: str, data: bytes) -> None: ...

    def url(self, path: str) -> str: ...

    def files(self, prefix: str) -> List[str]: ...

    def last_modified(self, path: str) -> float: ...

    def delete(self, path: str) -> bool: ...


class LocalDisk:
    """
    Disk backed by a local directory.

    Writes go to a temporary sibling first and are renamed into place, so
    a crash mid-write never leaves a truncated MP3 behind a public URL.

    Args:
        root: Directory holding the objects. Created on first write.
        url: Public URL prefix the directory is served under. Without one,
            url() raises, which is the right behaviour for private disks.
    """

    def __init__(self, root: str | os.PathLike, url: Optional[str] = None):
        self._root = Path(root)
        self._url = url.rstrip("/") if url else None

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        rel = PurePosixPath(path.strip("/"))
        if rel.is_absolute() or ".." in rel.parts:
            raise ValueError(f"invalid storage path: {path!r}")
        return self._root.joinpath(*rel.parts)

    def put(self, path: str, data: bytes) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        tmp = target.with_name(f".{target.name}.{uuid.uuid4().hex}.tmp")
        try:
            tmp.write_bytes(data)
            tmp.replace(target)
        finally:
            if tmp.exists():
                tmp.unlink()
        debug(_LOG, "disk_put", path=path, bytes=len(data))

    def url(self, path: str) -> str:
        if self._url is None:
            raise RuntimeError(f"disk at {self._root} has no public URL")
        return f"{self._url}/{path.strip('/')}"

    def files(self, prefix: str) -> List[str]:
        directory = self._resolve(prefix)
        if not directory.is_dir():
            return []
        base = prefix.strip("/")
        return sorted(
            f"{base}/{entry.name}" if base else entry.name
            for entry in directory.iterdir()
            if entry.is_file() and not entry.name.startswith(".")
        )

    def last_modified(self, path: str) -> float:
        return self._resolve(path).stat().st_mtime

    def delete(self, path: str) -> bool:
        try:
            self._resolve(path).unlink()
        except FileNotFoundError:
            return False
        return True

    def get(self, path: str) -> bytes:
        return self._resolve(path).read_bytes()


def build_disk(disk_config: DiskConfig) -> LocalDisk:
    """Create the backend for a configured disk."""
    return LocalDisk(disk_config.root, url=disk_config.url)


def disk_for(config: SpeechConfig) -> LocalDisk:
    """Create the backend of the disk configured for audio artifacts."""
    return build_disk(config.disk)
