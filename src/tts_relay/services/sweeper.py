"""
Storage sweeper for expired audio artifacts.

Generated MP3s are only useful for a short while after the request that
produced them. The sweeper removes everything under the configured
storage path that was last modified more than ``ttl_minutes`` ago.

It is meant to be run periodically by an external scheduler, e.g.:

    */10 * * * *  tts-relay cleanup

Policy:
    - ttl_minutes == 0 disables expiry; cleanup() returns 0 at once.
    - An object is expired when its last-modified time is strictly
      earlier than now - ttl.
    - An object that disappears between listing and deletion (a
      concurrent sweep got there first) is skipped and not counted.
    - A delete that fails for any other reason is logged and skipped; the
      scan continues and the count of successful deletions is returned.
"""
from __future__ import annotations

import time
from typing import Callable, Optional

from tts_relay.core.config import StorageConfig
from tts_relay.core.logging import get_logger, info, verbose, warn
from tts_relay.core.metrics import metrics
from tts_relay.tts.storage import Disk

_LOG = get_logger("tts-relay.sweeper")


class StorageSweeper:
    """
    Deletes artifacts older than the configured TTL.

    Args:
        storage: Storage section of the speech configuration.
        disk: Backend holding the artifacts.
        clock: Wall-clock source returning POSIX seconds (tests override).
    """

    def __init__(
        self,
        storage: StorageConfig,
        disk: Disk,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._storage = storage
        self._disk = disk
        self._clock = clock or time.time

    @property
    def ttl_minutes(self) -> int:
        return self._storage.ttl_minutes

    def cleanup(self) -> int:
        """
        Delete expired artifacts.

        Returns:
            Number of artifacts deleted by this sweep.
        """
        if self._storage.ttl_minutes == 0:
            return 0

        threshold = self._clock() - self._storage.ttl_minutes * 60
        deleted = 0
        errors = 0

        for path in self._disk.files(self._storage.path):
            try:
                if self._disk.last_modified(path) >= threshold:
                    continue
                if self._disk.delete(path):
                    deleted += 1
                    verbose(_LOG, "cleanup_deleted", path=path)
            except FileNotFoundError:
                continue
            except OSError as e:
                errors += 1
                warn(_LOG, "cleanup_file_error", path=path, error=str(e))

        info(
            _LOG, "storage_cleanup",
            deleted=deleted,
            errors=errors,
            ttl_minutes=self._storage.ttl_minutes,
        )
        metrics.record_cleanup(deleted)
        return deleted
