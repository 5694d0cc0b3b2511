"""Exceptions raised by Stave Practice components."""


class StavePracticeError(Exception):
    """Base class for all Stave Practice errors."""


class AudioPermissionError(StavePracticeError, PermissionError):
    """The audio input device was denied or is unavailable."""


class BufferMisconfiguredError(StavePracticeError):
    """The capture window does not match the pitch estimator window."""

    def __init__(self, capture_window: int, estimator_window: int):
        self.capture_window = capture_window
        self.estimator_window = estimator_window
        super().__init__(
            f"Audio capture delivers {capture_window}-sample windows but the "
            f"pitch estimator expects {estimator_window} samples"
        )


class ConfigError(StavePracticeError, ValueError):
    """A configuration value is out of range."""


class InvalidTransitionError(StavePracticeError):
    """A session status change that the lifecycle does not allow."""


class UnknownSequenceError(StavePracticeError, KeyError):
    """No practice sequence is registered under the requested name."""

    def __str__(self) -> str:
        # KeyError would otherwise quote the message
        return str(self.args[0]) if self.args else ""
