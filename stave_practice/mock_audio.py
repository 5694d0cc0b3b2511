import numpy as np

from .core.interfaces import IAudioCapture, IPitchEstimator
from .errors import AudioPermissionError


class MockCapture(IAudioCapture):
    """A mock capture service for unit tests. Records acquire/release calls."""

    def __init__(self, window_size=2048, sample_rate=44100, deny=False):
        self._window_size = window_size
        self._sample_rate = sample_rate
        self.deny = deny
        self.acquire_calls = 0
        self.release_calls = 0
        self.window = np.zeros(window_size, dtype=np.float32)
        self._acquired = False

    @property
    def window_size(self):
        return self._window_size

    @property
    def sample_rate(self):
        return self._sample_rate

    def acquire(self):
        self.acquire_calls += 1
        if self.deny:
            raise AudioPermissionError("Permission denied by user")
        self._acquired = True

    def release(self):
        if not self._acquired:
            return
        self.release_calls += 1
        self._acquired = False

    def is_acquired(self):
        return self._acquired

    def latest_window(self):
        return self.window if self._acquired else None


class MockPitchEstimator(IPitchEstimator):
    """A mock estimator for unit tests. Returns whatever reading was set last."""

    def __init__(self, window_size=2048, frequency=0.0, confidence=0.0):
        self._window_size = window_size
        self.frequency = frequency
        self.confidence = confidence
        self.calls = 0

    @property
    def window_size(self):
        return self._window_size

    def set_reading(self, frequency, confidence=0.95):
        self.frequency = frequency
        self.confidence = confidence

    def estimate(self, samples):
        self.calls += 1
        return self.frequency, self.confidence
