"""Audio capture that plays back a recording instead of a live device."""

from __future__ import annotations
import time
from typing import Callable, Optional

import numpy as np
import soundfile as sf

from ..errors import AudioPermissionError
from ..logger import get_logger
from ..core.interfaces import IAudioCapture

logger = get_logger(__name__)


class WavFileCapture(IAudioCapture):
    """Provides analysis windows from a sound file at real-time speed.

    The read position follows the wall clock from the moment the file is
    acquired, so the sampler sees the same audio it would have heard live.
    """

    def __init__(
        self,
        file_path: str,
        window_size: int = 2048,
        loop: bool = False,
        gain: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._file_path = file_path
        self._window_size = window_size
        self._loop = loop
        self._gain = gain
        self._clock = clock

        self._samples: Optional[np.ndarray] = None
        self._sample_rate = 0
        self._started_at = 0.0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def window_size(self) -> int:
        return self._window_size

    def is_acquired(self) -> bool:
        return self._samples is not None

    def acquire(self) -> None:
        if self._samples is not None:
            return

        try:
            data, rate = sf.read(self._file_path, dtype="float32", always_2d=True)
        except (OSError, RuntimeError) as e:
            raise AudioPermissionError(f"Cannot open {self._file_path}: {e}") from e

        # Mono: first channel only
        samples = np.ascontiguousarray(data[:, 0])
        if self._gain != 1.0:
            samples = samples * np.float32(self._gain)

        self._samples = samples
        self._sample_rate = int(rate)
        self._started_at = self._clock()
        logger.info(
            f"Playing {self._file_path}: {len(samples)} samples at {rate} Hz"
            f"{' (looping)' if self._loop else ''}"
        )

    def release(self) -> None:
        if self._samples is None:
            return
        self._samples = None
        logger.info(f"Released {self._file_path}")

    def latest_window(self) -> Optional[np.ndarray]:
        samples = self._samples
        if samples is None or len(samples) < self._window_size:
            return None

        end = int((self._clock() - self._started_at) * self._sample_rate)
        if self._loop:
            end %= len(samples)
            if end < self._window_size:
                # Wrap around the end of the recording
                return np.concatenate(
                    (samples[len(samples) - (self._window_size - end) :], samples[:end])
                )
        elif end > len(samples):
            # Past the end of the recording: silence
            return None
        elif end < self._window_size:
            return None

        return samples[end - self._window_size : end]
