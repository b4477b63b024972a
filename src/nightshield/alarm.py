"""Looping alarm tone played through the default output device."""

import logging
import threading
from typing import Optional

import numpy as np

try:
    import pyaudio

    HAS_PYAUDIO = True
except ImportError:
    HAS_PYAUDIO = False

logger = logging.getLogger(__name__)


def generate_alarm_tone(
    sample_rate: int = 44100,
    duration: float = 1.0,
    low_hz: float = 800.0,
    high_hz: float = 1000.0,
    pulse_rate: float = 4.0,
) -> np.ndarray:
    """Generate a siren that alternates between two frequencies.

    Args:
        sample_rate: Output sample rate in Hz
        duration: Length of one loop in seconds
        low_hz: First tone frequency
        high_hz: Second tone frequency
        pulse_rate: Frequency switches per second

    Returns:
        Mono int16 samples at full scale
    """
    t = np.arange(int(sample_rate * duration)) / sample_rate
    gate = np.sin(2 * np.pi * pulse_rate * t) > 0

    signal = np.where(gate, np.sin(2 * np.pi * low_hz * t), np.sin(2 * np.pi * high_hz * t))

    peak = np.max(np.abs(signal)) if signal.size else 0.0
    if peak > 0:
        signal = signal / peak
    return (signal * 32767).astype(np.int16)


class AlarmPlayer:
    """Plays the alarm tone in a loop on a background thread."""

    def __init__(self, sample_rate: int = 44100, chunk_size: int = 1024):
        self.sample_rate = sample_rate
        self.chunk_size = chunk_size
        self._tone = generate_alarm_tone(sample_rate)
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_playing(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def play(self) -> bool:
        """Start looping the alarm tone.

        Returns:
            True if playback is running, False if PyAudio is unavailable
        """
        if self.is_playing:
            return True
        if not HAS_PYAUDIO:
            logger.error("PyAudio is required for alarm playback. Install it with: pip install pyaudio")
            return False

        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="nightshield-alarm", daemon=True
        )
        self._thread.start()
        return True

    def stop(self, timeout: float = 1.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self, stop_event: threading.Event) -> None:
        pa = pyaudio.PyAudio()
        stream = None
        try:
            stream = pa.open(
                format=pyaudio.paInt16,
                channels=1,
                rate=self.sample_rate,
                output=True,
                frames_per_buffer=self.chunk_size,
            )
            logger.info("🔊 Alarm playback started")
            while not stop_event.is_set():
                for i in range(0, len(self._tone), self.chunk_size):
                    if stop_event.is_set():
                        break
                    stream.write(self._tone[i : i + self.chunk_size].tobytes())
        except Exception as e:
            logger.error(f"Alarm playback failed: {e}", exc_info=True)
        finally:
            if stream is not None:
                try:
                    stream.stop_stream()
                    stream.close()
                except Exception as e:
                    logger.warning(f"Error closing alarm stream: {e}")
            pa.terminate()
            logger.info("Alarm playback stopped")
