"""Tests for the windowed decibel computation."""

import math

import numpy as np
import pytest

from nightshield.processing.level import LevelWindow, compute_level_db, max_buffer_samples

from conftest import block

BLOCK_SECONDS = 6400 / 44100


def test_empty_window_is_zero():
    assert compute_level_db(0.0, 0) == 0.0


@pytest.mark.parametrize("magnitude", [1, 7, 1000, 32767])
def test_constant_magnitude_level(magnitude):
    window = LevelWindow(100.0, 0.0)
    window.add_block(block(magnitude))
    window.add_block(block(-magnitude))

    level = window.close(1.0)

    assert level == pytest.approx(10 * math.log10(magnitude))


def test_zero_samples_are_discarded():
    window = LevelWindow(100.0, 0.0)
    window.add_block(np.array([0, 10, -10, 0, 0], dtype=np.int16))

    assert window.sample_count == 2
    assert window.close(1.0) == pytest.approx(10.0)


def test_all_zero_window_reports_zero():
    window = LevelWindow(500.0, 0.0)

    assert window.process(block(0), 0.2) is None
    assert window.process(block(0), 0.6) == 0.0


def test_most_negative_sample_does_not_overflow():
    window = LevelWindow(100.0, 0.0)
    window.add_block(np.array([-32768], dtype=np.int16))

    assert window.close(1.0) == pytest.approx(10 * math.log10(32768))


def test_window_closes_only_after_duration_exceeded():
    window = LevelWindow(1000.0, 0.0)

    assert window.process(block(1000), 0.5) is None
    # Exactly the window length is not enough
    assert window.process(block(1000), 1.0) is None
    assert window.process(block(1000), 1.001) == pytest.approx(30.0)


def test_close_resets_buffer_and_start():
    window = LevelWindow(100.0, 0.0)
    window.process(block(1000), 0.05)

    assert window.process(block(10), 0.2) is not None
    assert window.sample_count == 0
    assert window.window_start == 0.2

    assert window.process(block(10), 0.25) is None
    assert window.process(block(10), 0.31) == pytest.approx(10.0)


def test_window_length_is_quantised_to_blocks():
    # A 200ms window needs two ~145ms blocks before it closes
    window = LevelWindow(200.0, 0.0)

    assert window.process(block(100), BLOCK_SECONDS) is None
    assert window.process(block(100), 2 * BLOCK_SECONDS) == pytest.approx(20.0)


def test_max_buffer_samples():
    assert max_buffer_samples(6400, 44100, 1000.0) == 6400 * 8
