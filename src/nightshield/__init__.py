"""NightShield - sound-triggered alarm host.

Samples the microphone, keeps a rolling noise level in decibels and exposes
it, together with torch, vibration, alarm and notification controls, through
a small named-command bridge.

Usage:
    from nightshield import NoiseLevelMonitor

    monitor = NoiseLevelMonitor()
    monitor.start(1000.0)
    print(monitor.current_level())
    monitor.stop()
"""

__version__ = "1.0.0"

# Core exports
from nightshield.errors import (
    CommandNotImplemented,
    InvalidConfiguration,
    NightShieldError,
    ResourceUnavailable,
)
from nightshield.config import (
    AlertConfig,
    AudioConfig,
    GlobalConfig,
    MonitorConfig,
    SystemConfig,
    configure_logging,
)
from nightshield.processing.level import LevelWindow, compute_level_db
from nightshield.listener import AudioSource, PyAudioSource
from nightshield.monitor import MonitorState, NoiseLevelMonitor
from nightshield.alarm import AlarmPlayer, generate_alarm_tone
from nightshield.capabilities import DeviceCapabilities, HeadlessCapabilities
from nightshield.bridge import CommandBridge

__all__ = [
    # Version
    "__version__",
    # Core classes
    "NoiseLevelMonitor",
    "MonitorState",
    "LevelWindow",
    "compute_level_db",
    "AudioSource",
    "PyAudioSource",
    "CommandBridge",
    # Alerts
    "DeviceCapabilities",
    "HeadlessCapabilities",
    "AlarmPlayer",
    "generate_alarm_tone",
    # Configuration
    "GlobalConfig",
    "SystemConfig",
    "AudioConfig",
    "MonitorConfig",
    "AlertConfig",
    "configure_logging",
    # Errors
    "NightShieldError",
    "ResourceUnavailable",
    "InvalidConfiguration",
    "CommandNotImplemented",
]
