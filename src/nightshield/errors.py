"""Exceptions raised by the noise monitor and its command bridge."""


class NightShieldError(Exception):
    """Base class for all NightShield errors."""


class ResourceUnavailable(NightShieldError):
    """The audio input device could not be opened.

    Raised synchronously from ``start()`` when the microphone is missing,
    busy, not permitted, or still held by a previous sampling loop.
    """


class InvalidConfiguration(NightShieldError, ValueError):
    """A configuration value or command argument is out of range."""


class CommandNotImplemented(NightShieldError):
    """The command bridge received a method name it does not know."""

    def __init__(self, method: str):
        super().__init__(f"Command not implemented: {method}")
        self.method = method
