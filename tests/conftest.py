"""Shared fixtures: a manual clock and a scripted audio source."""

import threading
import time
from typing import List, Optional, Tuple

import numpy as np
import pytest

from nightshield import AudioConfig, NoiseLevelMonitor

BLOCK_SIZE = 6400


def block(value: int, size: int = BLOCK_SIZE) -> np.ndarray:
    """A block where every sample equals ``value``."""
    return np.full(size, value, dtype=np.int16)


class FakeClock:
    """Clock in seconds that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


class ScriptedSource:
    """Audio source that replays a script of (advance_ms, samples) reads.

    Each read first advances the clock, then returns the samples. Once the
    script runs out it returns silent blocks without moving the clock, or
    raises ``read_error`` if one is set.
    """

    def __init__(self, clock: FakeClock, script: Optional[List[Tuple[float, np.ndarray]]] = None):
        self.clock = clock
        self.script = list(script or [])
        self.fail_open: Optional[Exception] = None
        self.read_error: Optional[Exception] = None
        self.opened = 0
        self.closed = 0
        self.open_args: List[tuple] = []
        self.open_handles = set()
        self.exhausted = threading.Event()
        self.closed_event = threading.Event()
        self._lock = threading.Lock()

    def open(self, sample_rate, channels, sample_format, buffer_size):
        if self.fail_open is not None:
            raise self.fail_open
        with self._lock:
            self.opened += 1
            handle = object()
            self.open_handles.add(handle)
            self.open_args.append((sample_rate, channels, sample_format, buffer_size))
        return handle

    def read(self, handle, block_size):
        assert handle in self.open_handles
        with self._lock:
            item = self.script.pop(0) if self.script else None
        if item is not None:
            advance_ms, samples = item
            self.clock.advance_ms(advance_ms)
            return samples

        self.exhausted.set()
        if self.read_error is not None:
            raise self.read_error
        time.sleep(0.002)
        return np.zeros(block_size, dtype=np.int16)

    def close(self, handle):
        with self._lock:
            self.open_handles.discard(handle)
            self.closed += 1
        self.closed_event.set()


class HangingSource(ScriptedSource):
    """Source whose reads block until ``release`` is set."""

    def __init__(self, clock: FakeClock):
        super().__init__(clock)
        self.release = threading.Event()
        self.reading = threading.Event()

    def read(self, handle, block_size):
        self.reading.set()
        self.release.wait(5.0)
        return np.zeros(block_size, dtype=np.int16)


class LevelRecorder:
    """on_level callback that lets a test wait for published levels."""

    def __init__(self):
        self.levels: List[float] = []
        self._cond = threading.Condition()

    def __call__(self, level: float) -> None:
        with self._cond:
            self.levels.append(level)
            self._cond.notify_all()

    def wait_for(self, count: int, timeout: float = 2.0) -> List[float]:
        with self._cond:
            self._cond.wait_for(lambda: len(self.levels) >= count, timeout)
            return list(self.levels)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def source(clock):
    return ScriptedSource(clock)


@pytest.fixture
def recorder():
    return LevelRecorder()


@pytest.fixture
def monitor(source, clock, recorder):
    mon = NoiseLevelMonitor(
        source=source,
        audio_config=AudioConfig(block_size=BLOCK_SIZE),
        on_level=recorder,
        clock=clock,
    )
    yield mon
    mon.stop()
    mon.wait_stopped(2.0)


class SlowOpenSource(ScriptedSource):
    """Source whose ``open`` takes ``delay`` seconds, like a slow device probe."""

    def __init__(self, clock: FakeClock, delay: float = 0.5):
        super().__init__(clock)
        self.delay = delay
        self.opening = threading.Event()

    def open(self, sample_rate, channels, sample_format, buffer_size):
        self.opening.set()
        time.sleep(self.delay)
        return super().open(sample_rate, channels, sample_format, buffer_size)
