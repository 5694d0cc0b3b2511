"""Per-session state shared by the scroll and match engines."""

from typing import List, Optional

from .errors import InvalidTransitionError
from .logger import get_logger
from .note_types import ActiveNote, SessionStatus
from .sequence import NoteSequence

# Get logger for this module
logger = get_logger(__name__)

FINISHED_FEEDBACK = "Practice finished!"


class GameSession:
    """State of one run through a note sequence.

    Only one ActiveNote can be the target at a time; the target is cleared
    whenever that note is retired.
    """

    _TRANSITIONS = {
        (SessionStatus.NOT_STARTED, SessionStatus.RUNNING),
        (SessionStatus.RUNNING, SessionStatus.FINISHED),
        (SessionStatus.RUNNING, SessionStatus.NOT_STARTED),  # explicit stop
    }

    def __init__(self, sequence: NoteSequence) -> None:
        self.sequence = sequence
        self.active_notes: List[ActiveNote] = []
        self.target: Optional[ActiveNote] = None
        self.feedback = ""
        self.status = SessionStatus.NOT_STARTED

        # In-memory tallies, discarded with the session
        self.correct = 0
        self.missed = 0
        self.wrong_attempts = 0
        self.reaction_times: List[float] = []

    @property
    def is_running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    @property
    def target_key(self) -> Optional[str]:
        return self.target.pitch_key if self.target is not None else None

    def transition(self, new_status: SessionStatus) -> None:
        """Move to a new lifecycle state.

        Raises:
            InvalidTransitionError: If the lifecycle does not allow the change
        """
        if (self.status, new_status) not in self._TRANSITIONS:
            raise InvalidTransitionError(
                f"Cannot go from {self.status.name} to {new_status.name}"
            )
        logger.debug(f"Session '{self.sequence.name}': {self.status.name} -> {new_status.name}")
        self.status = new_status

    def finish(self) -> None:
        self.transition(SessionStatus.FINISHED)
        self.target = None
        self.feedback = FINISHED_FEEDBACK
        logger.info(
            "Practice finished. Score: %d/%d (missed %d)",
            self.correct,
            len(self.sequence),
            self.missed,
        )

    def release_notes(self) -> None:
        """Drop the target and every active note."""
        self.target = None
        self.active_notes.clear()
