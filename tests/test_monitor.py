"""Tests for the NoiseLevelMonitor state machine and sampling loop."""

import math
import threading
import time

import numpy as np
import pytest

from nightshield import (
    AudioConfig,
    InvalidConfiguration,
    MonitorState,
    NoiseLevelMonitor,
    ResourceUnavailable,
)

from conftest import BLOCK_SIZE, HangingSource, LevelRecorder, SlowOpenSource, block


def sampler_threads():
    return [t for t in threading.enumerate() if t.name == "nightshield-sampler"]


def test_initial_state(monitor):
    assert monitor.state is MonitorState.IDLE
    assert not monitor.is_listening
    assert monitor.current_level() == 0.0


def test_loud_block_then_window_close(monitor, source, recorder):
    source.script = [(0, block(1000)), (1001, block(0))]

    monitor.start(1000)

    levels = recorder.wait_for(1)
    assert levels[0] == pytest.approx(10 * math.log10(1000))
    assert monitor.current_level() == pytest.approx(30.0)


def test_silent_window_reports_zero(monitor, source, recorder):
    source.script = [
        (0, block(1000)),
        (501, block(0)),
        (0, block(0)),
        (501, block(0)),
    ]

    monitor.start(500)

    levels = recorder.wait_for(2)
    assert levels[0] == pytest.approx(30.0)
    assert levels[1] == 0.0
    assert monitor.current_level() == 0.0


def test_start_opens_mono_int16_at_44k(monitor, source):
    monitor.start(1000)

    assert source.open_args == [(44100, 1, "int16", 12800)]
    assert monitor.window_duration_ms == 1000.0


@pytest.mark.parametrize("window", [-5, 0, float("nan"), float("inf"), "soon"])
def test_invalid_window_rejected(monitor, source, window):
    with pytest.raises(InvalidConfiguration):
        monitor.start(window)

    assert not monitor.is_listening
    assert source.opened == 0


def test_stop_when_idle_is_noop(monitor):
    monitor.stop()
    monitor.stop()

    assert monitor.state is MonitorState.IDLE
    assert monitor.wait_stopped()


def test_double_start_runs_one_loop(monitor, source):
    monitor.start(1000)
    monitor.start(1000)

    assert source.opened == 1
    assert len(sampler_threads()) == 1


def test_stop_releases_audio_input(monitor, source):
    monitor.start(1000)
    assert source.exhausted.wait(2.0)

    monitor.stop()
    assert not monitor.is_listening
    assert monitor.wait_stopped()

    assert source.closed == 1
    assert not source.open_handles


def test_open_failure_then_retry(monitor, source):
    source.fail_open = ResourceUnavailable("device busy")

    with pytest.raises(ResourceUnavailable):
        monitor.start(1000)
    assert monitor.state is MonitorState.IDLE
    assert monitor.current_level() == 0.0

    source.fail_open = None
    monitor.start(1000)
    assert monitor.is_listening
    assert source.opened == 1


def test_unexpected_open_error_is_resource_unavailable(monitor, source):
    source.fail_open = OSError("permission denied")

    with pytest.raises(ResourceUnavailable):
        monitor.start(1000)
    assert not monitor.is_listening


def test_read_error_releases_audio_input(monitor, source):
    source.read_error = OSError("input overflowed")

    monitor.start(1000)

    assert source.closed_event.wait(2.0)
    assert monitor.wait_stopped()
    assert monitor.state is MonitorState.IDLE
    assert source.closed == 1


def test_restart_after_stop(monitor, source, recorder):
    monitor.start(1000)
    monitor.stop()
    assert monitor.wait_stopped()

    source.script = [(0, block(100)), (1001, block(0))]
    monitor.start(1000)

    assert recorder.wait_for(1)[0] == pytest.approx(20.0)
    assert source.opened == 2
    assert source.closed == 1
    assert len(sampler_threads()) == 1


def test_level_survives_stop(monitor, source, recorder):
    source.script = [(0, block(1000)), (1001, block(0))]
    monitor.start(1000)
    recorder.wait_for(1)

    monitor.stop()
    monitor.wait_stopped()

    assert monitor.current_level() == pytest.approx(30.0)


def test_callback_error_does_not_stop_loop(clock, source):
    calls = LevelRecorder()

    def flaky(level):
        calls(level)
        raise RuntimeError("front-end went away")

    source.script = [(0, block(10)), (101, block(0)), (0, block(100)), (101, block(0))]
    monitor = NoiseLevelMonitor(source=source, on_level=flaky, clock=clock)

    with monitor:
        monitor.start(100)
        levels = calls.wait_for(2)

    assert levels == [pytest.approx(10.0), pytest.approx(20.0)]
    assert source.closed == 1


def test_hung_read_is_reported(clock, caplog):
    source = HangingSource(clock)
    monitor = NoiseLevelMonitor(source=source, clock=clock, stop_timeout_blocks=0.1)

    monitor.start(1000)
    assert source.reading.wait(2.0)
    monitor.stop()

    assert not monitor.wait_stopped()
    assert "did not exit" in caplog.text

    # Device is still held, so a new session cannot start
    with pytest.raises(ResourceUnavailable):
        monitor.start(1000)

    source.release.set()
    assert monitor.wait_stopped(2.0)
    assert source.closed == 1


def test_current_level_from_many_readers(monitor, source, recorder):
    source.script = [(0, block(1000)), (1001, block(0))]
    monitor.start(1000)
    recorder.wait_for(1)

    results = []

    def reader():
        results.append(monitor.current_level())

    readers = [threading.Thread(target=reader) for _ in range(8)]
    for t in readers:
        t.start()
    for t in readers:
        t.join()

    assert results == [pytest.approx(30.0)] * 8


def test_default_stop_timeout_scales_with_block():
    monitor = NoiseLevelMonitor(source=object(), audio_config=AudioConfig(block_size=4410))

    assert monitor.stop_timeout == pytest.approx(0.4)


def test_current_level_does_not_wait_for_slow_open(clock):
    source = SlowOpenSource(clock, delay=0.5)
    monitor = NoiseLevelMonitor(source=source, clock=clock)

    starter = threading.Thread(target=monitor.start, args=(1000,))
    starter.start()
    assert source.opening.wait(2.0)

    began = time.monotonic()
    assert monitor.current_level() == 0.0
    assert not monitor.is_listening
    elapsed = time.monotonic() - began

    starter.join(2.0)
    assert elapsed < 0.1
    assert monitor.is_listening

    monitor.stop()
    assert monitor.wait_stopped(2.0)


def test_wait_stopped_from_level_callback(clock, source):
    results = []

    source.script = [(0, block(1000)), (1001, block(0))]
    monitor = NoiseLevelMonitor(source=source, clock=clock)

    def on_level(level):
        monitor.stop()
        results.append(monitor.wait_stopped())
        with pytest.raises(ResourceUnavailable):
            monitor.start(1000)
        results.append("restart refused")

    monitor.on_level = on_level
    monitor.start(1000)

    assert source.closed_event.wait(2.0)
    assert monitor.wait_stopped(2.0)
    assert results == [False, "restart refused"]
    assert source.closed == 1
