"""Device capabilities used to raise an alert.

The monitor never touches these. The command bridge drives them in
response to commands from the front-end.
"""

import logging
from typing import List, Optional, Protocol, Tuple, runtime_checkable

from nightshield.alarm import AlarmPlayer

logger = logging.getLogger(__name__)


@runtime_checkable
class DeviceCapabilities(Protocol):
    """Torch, vibration, alarm sound, notification and power controls."""

    def has_torch(self) -> bool: ...

    def set_torch(self, on: bool) -> None: ...

    def start_vibration(self, pattern_ms: List[int], repeat: bool = True) -> None: ...

    def stop_vibration(self) -> None: ...

    def play_alarm_sound(self) -> None: ...

    def stop_alarm_sound(self) -> None: ...

    def is_volume_fixed(self) -> bool: ...

    def get_alarm_volume(self) -> int: ...

    def get_max_alarm_volume(self) -> int: ...

    def set_alarm_volume(self, volume: int) -> None: ...

    def notify(self, title: str, message: str) -> None: ...

    def acquire_wake_lock(self, timeout: float) -> None: ...

    def release_wake_lock(self) -> None: ...


class HeadlessCapabilities:
    """Capabilities for a host without torch or vibration motor.

    Keeps the requested state in attributes and logs every call. Alarm
    sound goes through an optional :class:`AlarmPlayer`.

    Attributes:
        torch_on: Whether the torch was last switched on
        vibration: Active vibration pattern, or None
        alarm_playing: Whether the alarm sound was started
        alarm_volume: Current alarm stream volume
        wake_lock_timeout: Timeout of the held wake-lock, or None
        notifications: Every (title, message) posted
    """

    def __init__(
        self,
        player: Optional[AlarmPlayer] = None,
        torch_available: bool = False,
        volume_fixed: bool = False,
        alarm_volume: int = 5,
        max_alarm_volume: int = 7,
    ):
        self.player = player
        self.torch_available = torch_available
        self.volume_fixed = volume_fixed
        self.alarm_volume = alarm_volume
        self.max_alarm_volume = max_alarm_volume

        self.torch_on = False
        self.vibration: Optional[List[int]] = None
        self.alarm_playing = False
        self.wake_lock_timeout: Optional[float] = None
        self.notifications: List[Tuple[str, str]] = []

    def has_torch(self) -> bool:
        return self.torch_available

    def set_torch(self, on: bool) -> None:
        self.torch_on = on
        logger.info(f"Torch {'on' if on else 'off'}")

    def start_vibration(self, pattern_ms: List[int], repeat: bool = True) -> None:
        self.vibration = list(pattern_ms)
        logger.info(f"Vibrating with pattern {pattern_ms} (repeat={repeat})")

    def stop_vibration(self) -> None:
        self.vibration = None
        logger.info("Vibration stopped")

    def play_alarm_sound(self) -> None:
        if self.player and not self.player.play():
            logger.error("Alarm sound unavailable")
            return
        self.alarm_playing = True
        logger.warning("🚨 Alarm sound playing")

    def stop_alarm_sound(self) -> None:
        self.alarm_playing = False
        if self.player:
            self.player.stop()
        logger.info("Alarm sound stopped")

    def is_volume_fixed(self) -> bool:
        return self.volume_fixed

    def get_alarm_volume(self) -> int:
        return self.alarm_volume

    def get_max_alarm_volume(self) -> int:
        return self.max_alarm_volume

    def set_alarm_volume(self, volume: int) -> None:
        self.alarm_volume = volume
        logger.debug(f"Alarm volume set to {volume}")

    def notify(self, title: str, message: str) -> None:
        self.notifications.append((title, message))
        logger.info(f"Notification: {title}: {message}")

    def acquire_wake_lock(self, timeout: float) -> None:
        self.wake_lock_timeout = timeout
        logger.info(f"Wake-lock acquired for {timeout:.0f}s")

    def release_wake_lock(self) -> None:
        self.wake_lock_timeout = None
        logger.info("Wake-lock released")
