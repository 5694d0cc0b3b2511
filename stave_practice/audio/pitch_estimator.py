"""Single-pitch estimation backed by aubio."""

from __future__ import annotations
from typing import ClassVar, Optional, Tuple

import aubio
import numpy as np

from ..logger import get_logger
from ..core.interfaces import IPitchEstimator

logger = get_logger(__name__)


class AubioPitchEstimator(IPitchEstimator):
    """Autocorrelation-class pitch estimator (YIN by default).

    aubio reports a confidence in [0, 1] for each window; for YIN it is one
    minus the minimum of the cumulative mean normalized difference.
    """

    DEFAULT_METHOD: ClassVar[str] = "yin"
    DEFAULT_TOLERANCE: ClassVar[float] = 0.15

    def __init__(
        self,
        window_size: int = 2048,
        sample_rate: int = 44100,
        method: str = DEFAULT_METHOD,
        tolerance: Optional[float] = None,
    ) -> None:
        """Initialize the estimator.

        Args:
            window_size: Samples per call to estimate(); used as both buffer and hop size
            sample_rate: Audio sample rate in Hz
            method: aubio pitch method ('yin', 'yinfft', 'yinfast', ...)
            tolerance: aubio pitch tolerance, or None for the method default
        """
        self._window_size = window_size
        self._sample_rate = sample_rate
        self._method = method

        # One full window per call: buffer size == hop size
        self._detector = aubio.pitch(method, window_size, window_size, sample_rate)
        self._detector.set_unit("Hz")
        self._detector.set_tolerance(
            tolerance if tolerance is not None else self.DEFAULT_TOLERANCE
        )

        logger.info(
            f"Pitch estimator initialized: method={method}, sample_rate={sample_rate}, "
            f"window_size={window_size}"
        )

    @property
    def window_size(self) -> int:
        return self._window_size

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    def estimate(self, samples: np.ndarray) -> Tuple[float, float]:
        """Estimate the fundamental of one window.

        Raises:
            ValueError: If the window length does not match window_size
        """
        if len(samples) != self._window_size:
            raise ValueError(
                f"Expected {self._window_size} samples, got {len(samples)}"
            )
        samples = np.ascontiguousarray(samples, dtype=np.float32)

        pitch = float(self._detector(samples)[0])
        confidence = float(self._detector.get_confidence())
        return pitch, confidence
