"""Named-command surface exposing the monitor and alerts to a front-end."""

import logging
from typing import Any, Callable, Dict, Optional

from nightshield.capabilities import DeviceCapabilities
from nightshield.config import AlertConfig
from nightshield.errors import CommandNotImplemented, InvalidConfiguration
from nightshield.monitor import NoiseLevelMonitor

logger = logging.getLogger(__name__)


class CommandBridge:
    """Dispatches front-end commands to the monitor and device capabilities.

    Command names and argument keys are the ones the mobile front-end
    sends over its method channel: ``startListening(recordTime)``,
    ``endListening``, ``getAudioLevel``, ``enableFlashLight``,
    ``disableFlashLight``, ``playAlarm``, ``stopAlarm`` and
    ``sendNotification(title, message)``.

    Example:
        >>> bridge = CommandBridge(NoiseLevelMonitor(), HeadlessCapabilities())
        >>> bridge.handle("startListening", {"recordTime": 1000.0})
        True
        >>> bridge.handle("getAudioLevel")
        0.0
    """

    def __init__(
        self,
        monitor: NoiseLevelMonitor,
        capabilities: DeviceCapabilities,
        alert_config: Optional[AlertConfig] = None,
    ):
        self.monitor = monitor
        self.capabilities = capabilities
        self.alert_config = alert_config or AlertConfig()

        self._wake_lock_held = False
        self._vibrating = False
        self._alarm_playing = False
        self._saved_volume: Optional[int] = None

        self._commands: Dict[str, Callable[[Dict[str, Any]], Any]] = {
            "startListening": lambda args: self.start_listening(_require(args, "recordTime")),
            "endListening": lambda args: self.end_listening(),
            "getAudioLevel": lambda args: self.get_audio_level(),
            "enableFlashLight": lambda args: self.enable_flash_light(),
            "disableFlashLight": lambda args: self.disable_flash_light(),
            "playAlarm": lambda args: self.play_alarm(),
            "stopAlarm": lambda args: self.stop_alarm(),
            "sendNotification": lambda args: self.send_notification(
                _require(args, "title"), _require(args, "message")
            ),
        }

    def handle(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """Run a named command.

        Args:
            method: Command name
            arguments: Command arguments keyed by name

        Returns:
            The command result (True for actions, a float for getAudioLevel)

        Raises:
            CommandNotImplemented: If the command name is unknown
            InvalidConfiguration: If a required argument is missing or invalid
            ResourceUnavailable: If startListening cannot open the microphone
        """
        command = self._commands.get(method)
        if command is None:
            logger.warning(f"Unknown command: {method}")
            raise CommandNotImplemented(method)

        logger.debug(f"Command: {method} {arguments or {}}")
        return command(arguments or {})

    def start_listening(self, record_time_ms: float) -> bool:
        """Hold a wake-lock and start the monitor."""
        if self.monitor.is_listening:
            return True

        acquired = False
        if not self._wake_lock_held:
            self.capabilities.acquire_wake_lock(self.alert_config.wake_lock_timeout)
            self._wake_lock_held = acquired = True

        try:
            self.monitor.start(record_time_ms)
        except Exception:
            if acquired:
                self.capabilities.release_wake_lock()
                self._wake_lock_held = False
            raise

        self.capabilities.notify(self.alert_config.notification_title, "NightShield is running")
        return True

    def end_listening(self) -> bool:
        if self._wake_lock_held:
            self.capabilities.release_wake_lock()
            self._wake_lock_held = False

        self.monitor.stop()
        return True

    def get_audio_level(self) -> float:
        return self.monitor.current_level()

    def enable_flash_light(self) -> bool:
        return self._set_torch(True)

    def disable_flash_light(self) -> bool:
        return self._set_torch(False)

    def _set_torch(self, on: bool) -> bool:
        if not self.capabilities.has_torch():
            logger.debug("No flash light on device")
            return True
        self.capabilities.set_torch(on)
        return True

    def play_alarm(self) -> bool:
        """Play the alarm at full volume and start vibrating."""
        self._force_volume()

        if not self._alarm_playing:
            self.capabilities.play_alarm_sound()
            self._alarm_playing = True

        if not self._vibrating:
            self.capabilities.start_vibration(self.alert_config.vibration_pattern, repeat=True)
            self._vibrating = True
        return True

    def stop_alarm(self) -> bool:
        """Stop sound and vibration and restore the previous volume."""
        if self._alarm_playing:
            self.capabilities.stop_alarm_sound()
            self._alarm_playing = False

        if self._vibrating:
            self.capabilities.stop_vibration()
            self._vibrating = False

        self._reset_volume()
        return True

    def send_notification(self, title: str, message: str) -> bool:
        self.capabilities.notify(str(title), str(message))
        return True

    def _force_volume(self) -> None:
        if self.capabilities.is_volume_fixed():
            return
        # Keep the first saved value if the alarm is raised twice
        if self._saved_volume is None:
            self._saved_volume = self.capabilities.get_alarm_volume()
        self.capabilities.set_alarm_volume(self.capabilities.get_max_alarm_volume())

    def _reset_volume(self) -> None:
        if self._saved_volume is None or self.capabilities.is_volume_fixed():
            return
        self.capabilities.set_alarm_volume(self._saved_volume)
        self._saved_volume = None


def _require(arguments: Dict[str, Any], name: str) -> Any:
    if arguments.get(name) is None:
        raise InvalidConfiguration(f"Missing required argument: {name}")
    return arguments[name]
