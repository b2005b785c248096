"""
Timing helper.

    with timeit("upstream") as t:
        response = client.post(...)
    info(_LOG, "done", seconds=round(t.seconds, 3))

Uses time.perf_counter() for sub-millisecond resolution.
"""
from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter
from typing import Optional


@dataclass
class Timing:
    """A finished measurement."""
    name: str
    seconds: float


class timeit:
    """
    Context manager measuring the wall-clock time of its block.

    The measurement is recorded even when the block raises, so failure
    paths can log how long the remote call took before it failed.
    """

    def __init__(self, name: str):
        self.name = name
        self._t0: Optional[float] = None
        self.timing: Optional[Timing] = None

    def __enter__(self) -> "timeit":
        self._t0 = perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._t0 is not None
        self.timing = Timing(name=self.name, seconds=perf_counter() - self._t0)

    @property
    def seconds(self) -> float:
        """Elapsed seconds; time so far while the block is still running."""
        if self.timing is not None:
            return self.timing.seconds
        if self._t0 is None:
            return 0.0
        return perf_counter() - self._t0
