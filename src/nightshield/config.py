"""Configuration utilities for the NightShield noise monitor.

This module centralizes the audio capture settings, monitor defaults and
alert behaviour. Everything can be loaded from a single YAML file through
``GlobalConfig.load`` and the logging system is set up from the same file
with ``configure_logging``.
"""

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

# Capture defaults (mono 16-bit PCM)
DEFAULT_SAMPLE_RATE = 44100
DEFAULT_BLOCK_SIZE = 6400  # samples per read (~145ms at 44.1kHz)
DEFAULT_BUFFER_SIZE = 12800  # device buffer in samples

# Monitor defaults
DEFAULT_WINDOW_DURATION_MS = 1000.0
DEFAULT_STOP_TIMEOUT_BLOCKS = 4.0

# Alert defaults
DEFAULT_VIBRATION_PATTERN = [0, 500, 250]  # delay, vibrate, pause (ms)
DEFAULT_WAKE_LOCK_TIMEOUT = 10 * 60.0  # seconds

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"


def validate_window_duration(window_duration_ms: Any) -> float:
    """Check that a window duration is a finite number above zero.

    Args:
        window_duration_ms: Candidate window length in milliseconds.

    Returns:
        The window length as a float.

    Raises:
        InvalidConfiguration: If the value is not a positive finite number.
    """
    try:
        value = float(window_duration_ms)
    except (TypeError, ValueError):
        raise InvalidConfiguration(f"Window duration must be a number, got {window_duration_ms!r}")

    if not math.isfinite(value) or value <= 0:
        raise InvalidConfiguration(f"Window duration must be > 0 ms, got {window_duration_ms!r}")
    return value


@dataclass
class SystemConfig:
    """System-level configuration settings.

    Attributes:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
    """

    log_level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class AudioConfig:
    """Audio capture configuration.

    Attributes:
        sample_rate: Sample rate in Hz (default 44100)
        block_size: Samples per read (default 6400)
        buffer_size: Device buffer size in samples (default 12800)
        channels: Number of audio channels (default 1 = mono)
        sample_format: Sample encoding, only "int16" is supported
        device_index: Specific audio device index, or None for default
    """

    sample_rate: int = DEFAULT_SAMPLE_RATE
    block_size: int = DEFAULT_BLOCK_SIZE
    buffer_size: int = DEFAULT_BUFFER_SIZE
    channels: int = 1
    sample_format: str = "int16"
    device_index: Optional[int] = None

    @property
    def block_duration(self) -> float:
        """Duration of one block of audio in seconds."""
        return self.block_size / self.sample_rate


@dataclass
class MonitorConfig:
    """Noise monitor settings.

    Attributes:
        window_duration_ms: Default averaging window used by the CLI.
        stop_timeout_blocks: How many block durations to wait for the
            sampling loop to exit before reporting it as hung.
    """

    window_duration_ms: float = DEFAULT_WINDOW_DURATION_MS
    stop_timeout_blocks: float = DEFAULT_STOP_TIMEOUT_BLOCKS


@dataclass
class AlertConfig:
    """Alarm and power settings used by the command bridge.

    Attributes:
        threshold_db: Level above which the CLI raises the alarm.
        vibration_pattern: Waveform in ms (delay, on, off, ...), repeated.
        wake_lock_timeout: Seconds before a held wake-lock expires.
        notification_title: Title used for alarm notifications.
    """

    threshold_db: float = 40.0
    vibration_pattern: List[int] = field(default_factory=lambda: list(DEFAULT_VIBRATION_PATTERN))
    wake_lock_timeout: float = DEFAULT_WAKE_LOCK_TIMEOUT
    notification_title: str = "NightShield"


@dataclass
class GlobalConfig:
    """Unified configuration for the entire application.

    Loads system settings, audio parameters, monitor defaults and alert
    behaviour from a single YAML file or structure.
    """

    system: SystemConfig = field(default_factory=SystemConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    alerts: AlertConfig = field(default_factory=AlertConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GlobalConfig":
        """Build a GlobalConfig from already parsed YAML data.

        Args:
            data: Mapping with optional ``system``, ``audio``, ``monitor``
                and ``alerts`` sections.

        Returns:
            A GlobalConfig object populated with the settings.
        """
        sys_data = data.get("system") or {}
        system_config = SystemConfig(
            log_level=str(sys_data.get("log_level", "INFO")).upper(),
            log_file=sys_data.get("log_file"),
        )

        audio_data = data.get("audio") or {}
        try:
            audio_config = AudioConfig(
                sample_rate=int(audio_data.get("sample_rate", DEFAULT_SAMPLE_RATE)),
                block_size=int(audio_data.get("block_size", DEFAULT_BLOCK_SIZE)),
                buffer_size=int(audio_data.get("buffer_size", DEFAULT_BUFFER_SIZE)),
                channels=int(audio_data.get("channels", 1)),
                sample_format=str(audio_data.get("sample_format", "int16")),
                device_index=audio_data.get("device_index"),
            )
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"Invalid audio settings: {e}")

        if audio_config.sample_rate <= 0 or audio_config.block_size <= 0:
            raise InvalidConfiguration("sample_rate and block_size must be positive")
        if audio_config.channels != 1:
            raise InvalidConfiguration("Only mono capture (channels: 1) is supported")
        if audio_config.sample_format != "int16":
            raise InvalidConfiguration("Only int16 sample format is supported")

        monitor_data = data.get("monitor") or {}
        monitor_config = MonitorConfig(
            window_duration_ms=validate_window_duration(
                monitor_data.get("window_duration_ms", DEFAULT_WINDOW_DURATION_MS)
            ),
            stop_timeout_blocks=float(
                monitor_data.get("stop_timeout_blocks", DEFAULT_STOP_TIMEOUT_BLOCKS)
            ),
        )

        alert_data = data.get("alerts") or {}
        alert_config = AlertConfig(
            threshold_db=float(alert_data.get("threshold_db", 40.0)),
            vibration_pattern=[
                int(x) for x in alert_data.get("vibration_pattern", DEFAULT_VIBRATION_PATTERN)
            ],
            wake_lock_timeout=float(
                alert_data.get("wake_lock_timeout", DEFAULT_WAKE_LOCK_TIMEOUT)
            ),
            notification_title=str(alert_data.get("notification_title", "NightShield")),
        )

        return cls(
            system=system_config,
            audio=audio_config,
            monitor=monitor_config,
            alerts=alert_config,
        )

    @classmethod
    def load(cls, path: Union[str, Path]) -> "GlobalConfig":
        """Load the global configuration from a YAML file.

        The YAML file should have the following structure:
        ```yaml
        system:
          log_level: INFO
        audio:
          sample_rate: 44100
          block_size: 6400
        monitor:
          window_duration_ms: 1000
        alerts:
          threshold_db: 40
          vibration_pattern: [0, 500, 250]
        ```

        Args:
            path: Path to the configuration YAML file.

        Returns:
            A GlobalConfig object populated with the settings.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise InvalidConfiguration(f"Configuration root must be a mapping: {path}")

        logger.debug(f"Loaded configuration from {path}")
        return cls.from_dict(data)


def configure_logging(system: SystemConfig) -> None:
    """Configure the root logger from system settings."""
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if system.log_file:
        handlers.append(logging.FileHandler(system.log_file))

    logging.basicConfig(
        level=getattr(logging, system.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
