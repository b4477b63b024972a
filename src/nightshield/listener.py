"""Audio input sources for the noise monitor."""

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

import numpy as np

from nightshield.config import AudioConfig
from nightshield.errors import ResourceUnavailable

try:
    import pyaudio

    HAS_PYAUDIO = True
except ImportError:
    HAS_PYAUDIO = False

logger = logging.getLogger(__name__)


@runtime_checkable
class AudioSource(Protocol):
    """Blocking source of raw microphone samples.

    Implementations hand out an opaque handle from ``open`` that is passed
    back to ``read`` and ``close``. Only one handle is open at a time.
    """

    def open(self, sample_rate: int, channels: int, sample_format: str, buffer_size: int) -> Any:
        """Acquire the input device.

        Raises:
            ResourceUnavailable: If the device cannot be opened
        """
        ...

    def read(self, handle: Any, block_size: int) -> np.ndarray:
        """Block until ``block_size`` int16 samples are available."""
        ...

    def close(self, handle: Any) -> None:
        """Release the input device."""
        ...


@dataclass
class InputHandle:
    """An open PyAudio input stream."""

    pa: Any
    stream: Any
    device_index: Optional[int] = None


class PyAudioSource:
    """Captures microphone input through PyAudio.

    The device index comes from the audio config; sample rate, channel
    count and buffer size are given at open time.
    """

    def __init__(self, config: Optional[AudioConfig] = None):
        self.config = config or AudioConfig()

    def open(
        self, sample_rate: int, channels: int, sample_format: str, buffer_size: int
    ) -> InputHandle:
        """Initialize PyAudio and open a blocking input stream.

        Returns:
            Handle wrapping the PyAudio instance and stream

        Raises:
            ResourceUnavailable: If PyAudio is missing or the stream fails to open
        """
        if not HAS_PYAUDIO:
            raise ResourceUnavailable(
                "PyAudio is required for audio capture. Install it with: pip install pyaudio"
            )
        if sample_format != "int16":
            raise ResourceUnavailable(f"Unsupported sample format: {sample_format}")

        device_index = self.config.device_index
        logger.info("Initializing PyAudio...")
        pa = pyaudio.PyAudio()

        try:
            self._list_devices(pa)

            if device_index is not None:
                self._validate_device(pa, device_index)
                logger.info(f"Using audio device index: {device_index}")
            else:
                logger.info("Using default audio device")

            stream = pa.open(
                format=pyaudio.paInt16,
                channels=channels,
                rate=sample_rate,
                input=True,
                input_device_index=device_index,
                frames_per_buffer=buffer_size,
            )
        except ResourceUnavailable:
            pa.terminate()
            raise
        except Exception as e:
            pa.terminate()
            raise ResourceUnavailable(f"Failed to open audio input: {e}") from e

        logger.info("✅ Audio stream opened successfully")
        return InputHandle(pa=pa, stream=stream, device_index=device_index)

    def read(self, handle: InputHandle, block_size: int) -> np.ndarray:
        audio_data = handle.stream.read(block_size, exception_on_overflow=False)
        return np.frombuffer(audio_data, dtype=np.int16)

    def close(self, handle: InputHandle) -> None:
        """Stop the stream and release PyAudio."""
        logger.info("Cleaning up audio resources...")
        try:
            handle.stream.stop_stream()
            handle.stream.close()
        except Exception as e:
            logger.warning(f"Error closing audio stream: {e}")
        finally:
            handle.pa.terminate()
        logger.info("Audio cleanup complete")

    def _validate_device(self, pa: Any, device_index: int) -> None:
        """Validate that a device index is usable for input."""
        try:
            dev_info = pa.get_device_info_by_host_api_device_index(0, device_index)
        except Exception as e:
            raise ResourceUnavailable(f"Invalid device index {device_index}: {e}") from e

        if dev_info.get("maxInputChannels", 0) == 0:
            raise ResourceUnavailable(f"Device index {device_index} has no input channels")
        logger.info(f"Device: {dev_info.get('name')} (Inputs: {dev_info.get('maxInputChannels')})")

    def _list_devices(self, pa: Any) -> None:
        """Log all available audio input devices."""
        logger.debug("-" * 40)
        logger.debug("AVAILABLE AUDIO DEVICES:")
        try:
            info = pa.get_host_api_info_by_index(0)
            num_devices = info.get("deviceCount", 0)

            if num_devices == 0:
                logger.warning("No audio devices found!")
                return

            for i in range(num_devices):
                device_info = pa.get_device_info_by_host_api_device_index(0, i)
                if device_info.get("maxInputChannels", 0) > 0:
                    logger.debug(
                        f"  Index {i}: {device_info.get('name')} "
                        f"(Inputs: {device_info.get('maxInputChannels')})"
                    )
        except Exception as e:
            logger.error(f"Could not list devices: {e}")
        logger.debug("-" * 40)
