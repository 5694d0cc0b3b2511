"""Session controller: owns the audio resources, the sampler and the per-frame tick."""

from __future__ import annotations
import threading
import time
from typing import Callable, List, Optional, Union

from .audio.pitch_sampler import DetectedPitchSlot, PitchSampler
from .core.config import PracticeConfig
from .core.events import SessionEvents
from .core.interfaces import IAudioCapture, IPitchEstimator, RenderItem
from .errors import AudioPermissionError, BufferMisconfiguredError
from .game_session import GameSession
from .logger import get_logger
from .match_engine import MatchEngine
from .note_types import SessionStatus, StaveGeometry
from .scroll_engine import ScrollEngine
from .sequence import NoteSequence, get_sequence

# Get logger for this module
logger = get_logger(__name__)

PERMISSION_DENIED_FEEDBACK = (
    "Microphone access denied. Please allow microphone to use the practice mode."
)

DEFAULT_GEOMETRY = StaveGeometry(origin_x=10, origin_y=40, width=980, height=150)

CaptureFactory = Callable[[PracticeConfig], IAudioCapture]
EstimatorFactory = Callable[[int, int], IPitchEstimator]


def default_capture_factory(config: PracticeConfig) -> IAudioCapture:
    from .audio.audio_input import SoundDeviceCapture

    return SoundDeviceCapture(
        device_id=config.device_id,
        sample_rate=config.sample_rate,
        window_size=config.window_size,
    )


def default_estimator_factory(window_size: int, sample_rate: int) -> IPitchEstimator:
    from .audio.pitch_estimator import AubioPitchEstimator

    return AubioPitchEstimator(window_size=window_size, sample_rate=sample_rate)


class SessionController:
    """Starts, drives and stops practice sessions.

    Two loops run while a session is active: the pitch sampler on its own
    thread, and the frame tick driven by the caller (normally the pygame
    loop). They share the detected-pitch slot, and every change to the
    session happens under the controller lock, with the scroll engine
    finishing before the match engine reads the slot.
    """

    def __init__(
        self,
        config: Optional[PracticeConfig] = None,
        capture_factory: CaptureFactory = default_capture_factory,
        estimator_factory: EstimatorFactory = default_estimator_factory,
        geometry: StaveGeometry = DEFAULT_GEOMETRY,
        clock: Callable[[], float] = time.monotonic,
        start_sampler: bool = True,
    ) -> None:
        """Initialize the controller.

        Args:
            config: Timing constants, or None for defaults
            capture_factory: Builds the audio capture service for a session
            estimator_factory: Builds the pitch estimator from (window_size, sample_rate)
            geometry: Scroll region of the stave
            clock: Monotonic clock used for activation timestamps
            start_sampler: Run the sampler on its background thread; when False the
                caller drives it through sampler.sample_once()
        """
        self._config = (config or PracticeConfig()).validate()
        self._capture_factory = capture_factory
        self._estimator_factory = estimator_factory
        self._geometry = geometry
        self._clock = clock
        self._start_sampler = start_sampler

        self._lock = threading.RLock()
        self._slot = DetectedPitchSlot()
        self.events = SessionEvents()

        self._session: Optional[GameSession] = None
        self._capture: Optional[IAudioCapture] = None
        self._sampler: Optional[PitchSampler] = None
        self._scroll: Optional[ScrollEngine] = None
        self._matcher: Optional[MatchEngine] = None
        self._idle_feedback = ""

    # ------------------------------------------------------------------
    # Observable state
    # ------------------------------------------------------------------

    @property
    def config(self) -> PracticeConfig:
        return self._config

    @property
    def session(self) -> Optional[GameSession]:
        return self._session

    @property
    def sampler(self) -> Optional[PitchSampler]:
        return self._sampler

    @property
    def pitch_slot(self) -> DetectedPitchSlot:
        return self._slot

    @property
    def scroll_engine(self) -> Optional[ScrollEngine]:
        return self._scroll

    @property
    def status(self) -> SessionStatus:
        with self._lock:
            return self._session.status if self._session else SessionStatus.NOT_STARTED

    @property
    def feedback(self) -> str:
        with self._lock:
            return self._session.feedback if self._session else self._idle_feedback

    @property
    def target_key(self) -> Optional[str]:
        with self._lock:
            return self._session.target_key if self._session else None

    @property
    def detected_note(self) -> Optional[str]:
        return self._slot.latest_note_name()

    def set_geometry(self, geometry: StaveGeometry) -> None:
        """Use new stave geometry for the next session."""
        self._geometry = geometry

    def render_items(self) -> List[RenderItem]:
        with self._lock:
            if self._session is None or self._scroll is None:
                return []
            return self._scroll.render_items(self._session)

    @property
    def target_x(self) -> float:
        return self._geometry.origin_x + self._geometry.width / 3

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(self, sequence: Union[NoteSequence, str, None] = None) -> GameSession:
        """Acquire audio and start a fresh session.

        A session that is already running is stopped first.

        Args:
            sequence: A NoteSequence, a catalogue name, or None for the default

        Raises:
            AudioPermissionError: If the audio input could not be acquired
            BufferMisconfiguredError: If capture and estimator windows differ
            UnknownSequenceError: If a catalogue name is not known
        """
        self.stop_session()

        if isinstance(sequence, NoteSequence):
            notes = sequence.fresh()
        else:
            notes = get_sequence(sequence)

        with self._lock:
            capture = self._capture_factory(self._config)
            try:
                capture.acquire()
            except AudioPermissionError as e:
                logger.error(f"Microphone permission denied or other audio error: {e}")
                self._session = None
                self._idle_feedback = PERMISSION_DENIED_FEEDBACK
                self.events.emit_feedback(PERMISSION_DENIED_FEEDBACK)
                raise

            try:
                estimator = self._estimator_factory(self._config.window_size, capture.sample_rate)
                if capture.window_size != estimator.window_size:
                    raise BufferMisconfiguredError(capture.window_size, estimator.window_size)
            except Exception:
                capture.release()
                raise

            session = GameSession(notes)
            session.transition(SessionStatus.RUNNING)

            self._slot.clear()
            sampler = PitchSampler(
                capture,
                estimator,
                self._slot,
                period=self._config.sampling_period,
                confidence_threshold=self._config.confidence_threshold,
            )
            if self._start_sampler:
                sampler.start()

            self._capture = capture
            self._sampler = sampler
            self._scroll = ScrollEngine(self._config, self._geometry, clock=self._clock)
            self._matcher = MatchEngine(clock=self._clock)
            self._session = session
            self._idle_feedback = ""

        logger.info(f"Session started: '{notes.name}' ({len(notes)} notes)")
        self.events.emit_feedback("")
        self.events.emit_status(SessionStatus.RUNNING)
        return session

    def tick(self) -> bool:
        """Run one display frame.

        Returns:
            True while the session keeps running, False once it has finished
            or if no session is running
        """
        with self._lock:
            session = self._session
            if session is None or not session.is_running:
                return False

            before = (session.feedback, session.target_key)
            self._scroll.tick(session)
            if session.is_running:
                self._matcher.evaluate(session, self._slot.latest_note_name())
            after = (session.feedback, session.target_key)
            finished = session.status is SessionStatus.FINISHED

        if after[1] != before[1]:
            self.events.emit_target(after[1])
        if after[0] != before[0]:
            self.events.emit_feedback(after[0])

        if finished:
            self._release_resources()
            self.events.emit_status(SessionStatus.FINISHED)
            return False
        return True

    def stop_session(self) -> None:
        """Stop the running session and release its resources. Idempotent."""
        with self._lock:
            session = self._session
            if session is None or not session.is_running:
                logger.debug("stop_session: no running session")
                return

            had_target = session.target is not None
            session.release_notes()
            session.transition(SessionStatus.NOT_STARTED)

        self._release_resources()
        logger.info("Session stopped")
        if had_target:
            self.events.emit_target(None)
        self.events.emit_status(SessionStatus.NOT_STARTED)

    def _release_resources(self) -> None:
        with self._lock:
            sampler, self._sampler = self._sampler, None
            capture, self._capture = self._capture, None

        try:
            if sampler is not None:
                sampler.stop()
        finally:
            if capture is not None:
                capture.release()
            self._slot.clear()

    def __enter__(self) -> "SessionController":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop_session()
