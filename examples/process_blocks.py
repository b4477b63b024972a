#!/usr/bin/env python3
"""Example: Compute noise levels without microphone capture.

This example feeds synthetic audio into a LevelWindow, useful for:
- Processing recorded audio
- Choosing an alarm threshold
- Testing and simulation
"""

import numpy as np

from nightshield import LevelWindow

SAMPLE_RATE = 44100
BLOCK_SIZE = 6400


def generate_noise(amplitude: float, duration: float) -> np.ndarray:
    """Generate white noise as int16 samples."""
    rng = np.random.default_rng(0)
    signal = rng.uniform(-1.0, 1.0, int(SAMPLE_RATE * duration)) * amplitude
    return (signal * 32767).astype(np.int16)


def main():
    # Quiet room, a door slam, quiet again
    audio = np.concatenate(
        [
            generate_noise(0.001, 2.0),
            generate_noise(0.5, 0.5),
            generate_noise(0.001, 2.0),
        ]
    )

    window = LevelWindow(window_duration_ms=500.0, start_time=0.0)
    block_duration = BLOCK_SIZE / SAMPLE_RATE

    print(f"Total audio length: {len(audio) / SAMPLE_RATE:.2f}s")

    # Feed block by block with a simulated clock
    now = 0.0
    for i in range(0, len(audio) - BLOCK_SIZE, BLOCK_SIZE):
        now += block_duration
        level = window.process(audio[i : i + BLOCK_SIZE], now)
        if level is not None:
            print(f"  t={now:5.2f}s  {level:6.2f} dB")


if __name__ == "__main__":
    main()
