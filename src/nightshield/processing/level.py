"""Windowed decibel level computation."""

import logging
import math
from typing import List, Optional

import numpy as np

logger = logging.getLogger(__name__)


def compute_level_db(total: float, count: int) -> float:
    """Convert accumulated sample magnitudes into a decibel level.

    The level is ``10 * log10(total / count)``. An empty window or a zero
    mean produces a non-finite value, which is reported as 0.0.

    Args:
        total: Sum of the absolute sample magnitudes in the window
        count: Number of magnitudes summed

    Returns:
        Level in dB, always finite
    """
    with np.errstate(divide="ignore", invalid="ignore"):
        mean = np.float64(total) / np.float64(count)
        level = 10.0 * np.log10(mean)

    if not np.isfinite(level):
        return 0.0
    return float(level)


def max_buffer_samples(block_size: int, sample_rate: int, window_duration_ms: float) -> int:
    """Upper bound on the magnitudes held by one window.

    A window only closes after a block read, so it can run one block past
    its nominal length.
    """
    block_ms = block_size * 1000.0 / sample_rate
    return block_size * (math.ceil(window_duration_ms / block_ms) + 1)


class LevelWindow:
    """Accumulates sample magnitudes and closes fixed-length windows.

    Exact-zero samples are dropped; every other sample contributes its
    absolute value. The elapsed-time check only runs after each block, so
    the effective window is the requested duration rounded up to whole
    blocks.
    """

    def __init__(self, window_duration_ms: float, start_time: float):
        """Initialize the window.

        Args:
            window_duration_ms: Averaging window length in milliseconds
            start_time: Clock reading (seconds) when the first window opens
        """
        self.window_duration_ms = window_duration_ms
        self._window_start = start_time
        self._magnitudes: List[np.ndarray] = []
        self._count = 0

    @property
    def window_start(self) -> float:
        return self._window_start

    @property
    def sample_count(self) -> int:
        """Number of non-zero magnitudes in the current window."""
        return self._count

    def add_block(self, samples: np.ndarray) -> None:
        """Add one block of raw int16 samples to the current window."""
        # float64 first: abs(-32768) overflows int16
        block = np.asarray(samples).astype(np.float64).ravel()
        magnitudes = np.abs(block[block != 0])
        if magnitudes.size:
            self._magnitudes.append(magnitudes)
            self._count += magnitudes.size

    def close(self, now: float) -> float:
        """Close the current window and start a new one at ``now``.

        Returns:
            The level of the closed window in dB
        """
        total = float(sum(m.sum() for m in self._magnitudes))
        level = compute_level_db(total, self._count)
        if self._count == 0:
            logger.debug("Window closed with no non-zero samples, level reset to 0.0")

        self._magnitudes.clear()
        self._count = 0
        self._window_start = now
        return level

    def process(self, samples: np.ndarray, now: float) -> Optional[float]:
        """Process one block read at time ``now``.

        Args:
            samples: Raw audio samples (int16, mono)
            now: Clock reading in seconds taken after the read

        Returns:
            The new level if this block closed the window, else None
        """
        self.add_block(samples)

        elapsed_ms = (now - self._window_start) * 1000.0
        if elapsed_ms > self.window_duration_ms:
            return self.close(now)
        return None
