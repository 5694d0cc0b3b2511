"""Defines the core interfaces for the Stave Practice application."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import numpy as np

from ..note_types import StaveGeometry

# (pitch_key, duration, x_position, style)
RenderItem = Tuple[str, str, float, str]


class IAudioCapture(ABC):
    """Interface for audio capture services."""

    @abstractmethod
    def acquire(self) -> None:
        """Open the input device and start filling the sample buffer.

        Raises:
            AudioPermissionError: If the device is denied or unavailable
        """
        pass

    @abstractmethod
    def release(self) -> None:
        """Close the input device. Safe to call more than once."""
        pass

    @abstractmethod
    def is_acquired(self) -> bool:
        """Check if the device is currently held."""
        pass

    @property
    @abstractmethod
    def sample_rate(self) -> int:
        """The sample rate of the captured audio."""
        pass

    @property
    @abstractmethod
    def window_size(self) -> int:
        """Number of samples returned by latest_window()."""
        pass

    @abstractmethod
    def latest_window(self) -> Optional[np.ndarray]:
        """Return the most recent window of mono samples, or None on underrun."""
        pass


class IPitchEstimator(ABC):
    """Interface for single-pitch estimation algorithms."""

    @property
    @abstractmethod
    def window_size(self) -> int:
        """Number of samples expected by estimate()."""
        pass

    @abstractmethod
    def estimate(self, samples: np.ndarray) -> Tuple[float, float]:
        """Return (frequency in Hz, confidence 0-1) for a window of samples."""
        pass


class IStaveRenderer(ABC):
    """Interface for the drawing collaborator."""

    @property
    @abstractmethod
    def geometry(self) -> StaveGeometry:
        """Origin and size of the scroll region."""
        pass

    @abstractmethod
    def draw(
        self,
        items: List[RenderItem],
        target_x: float,
        feedback: str,
        detected: Optional[str],
    ) -> None:
        """Clear and redraw the whole scene."""
        pass
