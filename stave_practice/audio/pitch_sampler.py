"""Periodic pitch sampling from the capture buffer."""

from __future__ import annotations
import threading
from typing import Optional

from ..logger import get_logger
from ..note_types import DetectedPitch
from ..note_utils import get_note_name
from ..core.interfaces import IAudioCapture, IPitchEstimator
from ..core.scheduling import RepeatingTask

logger = get_logger(__name__)


class DetectedPitchSlot:
    """Holds the latest accepted pitch reading.

    Single writer (the sampler), any number of readers. Only the most recent
    value is kept.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pitch: Optional[DetectedPitch] = None
        self._note_name: Optional[str] = None

    def publish(self, pitch: Optional[DetectedPitch]) -> None:
        note_name = get_note_name(pitch.frequency) if pitch is not None else None
        with self._lock:
            self._pitch = pitch
            self._note_name = note_name

    def latest(self) -> Optional[DetectedPitch]:
        with self._lock:
            return self._pitch

    def latest_note_name(self) -> Optional[str]:
        """The latest reading quantized to a pitch key, or None."""
        with self._lock:
            return self._note_name

    def clear(self) -> None:
        self.publish(None)


class PitchSampler:
    """Reads one analysis window per period and publishes the result."""

    def __init__(
        self,
        capture: IAudioCapture,
        estimator: IPitchEstimator,
        slot: DetectedPitchSlot,
        period: float = 0.1,
        confidence_threshold: float = 0.9,
    ) -> None:
        """Initialize the sampler.

        Args:
            capture: Source of time-domain sample windows
            estimator: Pitch estimation algorithm
            slot: Shared slot the readings are published to
            period: Sampling period in seconds
            confidence_threshold: Readings must have a confidence strictly above this
        """
        self._capture = capture
        self._estimator = estimator
        self._slot = slot
        self._period = period
        self._confidence_threshold = confidence_threshold
        self._task: Optional[RepeatingTask] = None
        self._failing = False

    @property
    def slot(self) -> DetectedPitchSlot:
        return self._slot

    def is_running(self) -> bool:
        return self._task is not None and not self._task.cancelled

    def start(self) -> None:
        if self.is_running():
            logger.warning("Pitch sampler already running")
            return
        self._task = RepeatingTask(self.sample_once, self._period, name="pitch-sampler")
        self._task.start()
        logger.info(f"Pitch sampler started ({self._period * 1000:.0f} ms period)")

    def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        self._slot.clear()
        logger.info("Pitch sampler stopped")

    def sample_once(self) -> Optional[DetectedPitch]:
        """Take one reading and publish it.

        Any failure while reading or estimating publishes None and keeps the
        sampler alive, so the slot never holds a reading older than one period.
        """
        try:
            pitch = self._read_pitch()
        except Exception as e:
            if not self._failing:
                logger.warning(f"Pitch sampling failed, publishing no pitch: {e!r}")
            self._failing = True
            pitch = None
        else:
            if self._failing:
                logger.info("Pitch sampling recovered")
            self._failing = False
        self._slot.publish(pitch)
        return pitch

    def _read_pitch(self) -> Optional[DetectedPitch]:
        samples = self._capture.latest_window()
        if samples is None or len(samples) != self._estimator.window_size:
            logger.debug(
                "No usable audio window (%s samples)",
                None if samples is None else len(samples),
            )
            return None

        frequency, confidence = self._estimator.estimate(samples)
        if confidence > self._confidence_threshold and frequency > 0:
            logger.debug(f"Pitch {frequency:.1f}Hz (confidence {confidence:.2f})")
            return DetectedPitch(frequency=frequency, confidence=confidence)
        return None
