"""NoiseLevelMonitor - samples the microphone and keeps a rolling dB level."""

import enum
import logging
import threading
import time
from typing import Any, Callable, Optional

from nightshield.config import DEFAULT_STOP_TIMEOUT_BLOCKS, AudioConfig, validate_window_duration
from nightshield.errors import ResourceUnavailable
from nightshield.listener import AudioSource, PyAudioSource
from nightshield.processing.level import LevelWindow, max_buffer_samples

logger = logging.getLogger(__name__)


class MonitorState(enum.Enum):
    IDLE = "idle"
    LISTENING = "listening"


class NoiseLevelMonitor:
    """Continuously samples an audio source and publishes a decibel level.

    One background thread per session reads fixed-size blocks, feeds them to
    a :class:`LevelWindow` and publishes the level every time a window
    closes. ``start`` and ``stop`` never wait on that thread.

    Example:
        >>> monitor = NoiseLevelMonitor()
        >>> monitor.start(1000.0)
        >>> level = monitor.current_level()
        >>> monitor.stop()
    """

    def __init__(
        self,
        source: Optional[AudioSource] = None,
        audio_config: Optional[AudioConfig] = None,
        on_level: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        stop_timeout_blocks: float = DEFAULT_STOP_TIMEOUT_BLOCKS,
    ):
        """Initialize the monitor.

        Args:
            source: Audio input source (PyAudio microphone if None)
            audio_config: Capture settings (uses defaults if None)
            on_level: Callback receiving every published level
            clock: Monotonic clock in seconds used to time windows
            stop_timeout_blocks: Block durations to wait for the loop to exit
        """
        self.audio_config = audio_config or AudioConfig()
        self.source = source if source is not None else PyAudioSource(self.audio_config)
        self.on_level = on_level
        self._clock = clock
        self.stop_timeout = stop_timeout_blocks * self.audio_config.block_duration

        self._lock = threading.Lock()
        self._start_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._state = MonitorState.IDLE
        self._level = 0.0
        self._window_duration_ms: Optional[float] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    @property
    def is_listening(self) -> bool:
        """Check if the sampling loop is active."""
        return self.state is MonitorState.LISTENING

    @property
    def window_duration_ms(self) -> Optional[float]:
        """Window length of the current (or last) session."""
        return self._window_duration_ms

    def current_level(self) -> float:
        """Return the last published level in dB (0.0 before the first window)."""
        with self._lock:
            return self._level

    def start(self, window_duration_ms: float) -> None:
        """Open the audio source and start the sampling loop.

        Does nothing if the monitor is already listening.

        Args:
            window_duration_ms: Averaging window length in milliseconds

        Raises:
            InvalidConfiguration: If the window duration is not > 0
            ResourceUnavailable: If the audio source cannot be opened
        """
        window_ms = validate_window_duration(window_duration_ms)

        # Readers only ever wait on _lock, never on the device open
        with self._start_lock:
            if self.is_listening:
                logger.debug("Monitor already listening, start ignored")
                return

            # A stopped loop may still be releasing the device
            if not self.wait_stopped():
                raise ResourceUnavailable("Previous sampling loop is still holding the audio input")

            cfg = self.audio_config
            try:
                handle = self.source.open(
                    cfg.sample_rate, cfg.channels, cfg.sample_format, cfg.buffer_size
                )
            except ResourceUnavailable:
                logger.error("Audio input unavailable, monitor stays idle")
                raise
            except Exception as e:
                logger.error(f"Failed to open audio input: {e}")
                raise ResourceUnavailable(f"Failed to open audio input: {e}") from e

            stop_event = threading.Event()
            thread = threading.Thread(
                target=self._run,
                args=(handle, window_ms, stop_event),
                name="nightshield-sampler",
                daemon=True,
            )
            with self._lock:
                self._window_duration_ms = window_ms
                self._stop_event = stop_event
                self._state = MonitorState.LISTENING
                self._thread = thread
            thread.start()

        logger.info(
            f"🎤 Listening: window={window_ms:.0f}ms, block={cfg.block_size} samples "
            f"@ {cfg.sample_rate}Hz (buffer bound "
            f"{max_buffer_samples(cfg.block_size, cfg.sample_rate, window_ms)} samples)"
        )

    def stop(self) -> None:
        """Ask the sampling loop to exit. Safe to call when idle."""
        with self._lock:
            if self._state is MonitorState.IDLE:
                return
            self._state = MonitorState.IDLE
            self._stop_event.set()
        logger.info("🛑 Monitor stopping...")

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Wait for the sampling loop to release the audio source.

        Args:
            timeout: Seconds to wait (defaults to ``stop_timeout``)

        Returns:
            True if no loop is running, False if it did not exit in time
        """
        thread = self._thread
        if thread is None:
            return True
        if thread is threading.current_thread():
            # Called from on_level; the loop exits once this callback returns
            return False

        wait = self.stop_timeout if timeout is None else timeout
        thread.join(wait)
        if thread.is_alive():
            logger.warning(
                f"Sampling loop did not exit within {wait:.2f}s, "
                "audio read may be hung"
            )
            return False
        return True

    def _run(self, handle: Any, window_ms: float, stop_event: threading.Event) -> None:
        """Sampling loop. Always closes ``handle`` on exit."""
        window = LevelWindow(window_ms, self._clock())
        block_size = self.audio_config.block_size

        try:
            while not stop_event.is_set():
                samples = self.source.read(handle, block_size)
                level = window.process(samples, self._clock())
                if level is not None:
                    self._publish(level)
        except Exception as e:
            logger.error(f"Error in sampling loop: {e}", exc_info=True)
        finally:
            try:
                self.source.close(handle)
            except Exception as e:
                logger.error(f"Failed to release audio input: {e}")
            with self._lock:
                if self._stop_event is stop_event:
                    self._state = MonitorState.IDLE
            logger.info("Sampling loop exited")

    def _publish(self, level: float) -> None:
        with self._lock:
            self._level = level
        logger.debug(f"Noise level: {level:.2f} dB")

        if self.on_level:
            try:
                self.on_level(level)
            except Exception as e:
                logger.error(f"Error in on_level callback: {e}")

    def __enter__(self) -> "NoiseLevelMonitor":
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
        self.wait_stopped()
