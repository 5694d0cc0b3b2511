"""Circular sample buffer shared by the capture services."""

from __future__ import annotations
import threading
from typing import Optional

import numpy as np


class SampleRingBuffer:
    """Fixed-size circular buffer of mono float32 samples.

    Written from the audio callback thread and read from the sampler thread;
    both sides go through the same lock.
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"Buffer size must be positive, got {size}")
        self._size = size
        self._data = np.zeros(size, dtype=np.float32)
        self._write_pos = 0
        self._filled = 0
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return self._size

    @property
    def filled(self) -> int:
        with self._lock:
            return self._filled

    def write(self, samples: np.ndarray) -> None:
        """Append samples, overwriting the oldest ones when full."""
        samples = np.asarray(samples, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            return
        if samples.size >= self._size:
            samples = samples[-self._size :]

        with self._lock:
            end = self._write_pos + samples.size
            if end <= self._size:
                self._data[self._write_pos : end] = samples
            else:
                first = self._size - self._write_pos
                self._data[self._write_pos :] = samples[:first]
                self._data[: samples.size - first] = samples[first:]
            self._write_pos = end % self._size
            self._filled = min(self._size, self._filled + samples.size)

    def snapshot(self) -> Optional[np.ndarray]:
        """Return the buffer contents oldest-first, or None until it has filled once."""
        with self._lock:
            if self._filled < self._size:
                return None
            return np.concatenate(
                (self._data[self._write_pos :], self._data[: self._write_pos])
            )

    def clear(self) -> None:
        with self._lock:
            self._data.fill(0.0)
            self._write_pos = 0
            self._filled = 0
