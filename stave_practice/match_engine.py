"""Judges the detected pitch against the current target note."""

import time
from typing import Callable, Optional

from .game_session import GameSession
from .logger import get_logger
from .note_utils import NATURAL_LETTERS, note_part

# Get logger for this module
logger = get_logger(__name__)

CORRECT_FEEDBACK = "Correct!"


class MatchEngine:
    """
    Compares the latest detected pitch key against the session's target and
    turns the result into feedback text.

    A match needs the exact pitch key (name and octave); the mismatch message
    only names the notes, so a right-note-wrong-octave reading is reported as
    e.g. "You played A instead of A".
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    @staticmethod
    def mismatch_feedback(detected: str, target_key: str) -> str:
        played_name = note_part(detected)
        target_name = note_part(target_key)
        if played_name in NATURAL_LETTERS:
            return f"Incorrect! You played {played_name} instead of {target_name}"
        return f"Detected: {detected}"

    def evaluate(self, session: GameSession, detected: Optional[str]) -> None:
        """Judge the current target against the detected pitch key.

        Args:
            session: The running session
            detected: Latest detected pitch key (e.g. 'A/4'), or None when
                nothing clear was heard
        """
        target = session.target
        if target is None or target.played or detected is None:
            return

        if detected == target.pitch_key:
            target.mark_played()
            session.correct += 1
            session.feedback = CORRECT_FEEDBACK
            if target.activated_at is not None:
                elapsed = self._clock() - target.activated_at
                session.reaction_times.append(elapsed)
                logger.info(f"NOTE MATCHED! '{detected}' in {elapsed:.2f} seconds")
            else:
                logger.info(f"NOTE MATCHED! '{detected}'")
            return

        feedback = self.mismatch_feedback(detected, target.pitch_key)
        if feedback != session.feedback:
            session.wrong_attempts += 1
            logger.debug(f"Target '{target.pitch_key}' vs played '{detected}' -> NO MATCH")
        session.feedback = feedback
