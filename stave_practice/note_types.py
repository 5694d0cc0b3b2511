"""Type definitions for the Stave Practice project."""

from typing import Optional
from dataclasses import dataclass
from enum import Enum

from .note_utils import canonical_pitch_key


class SessionStatus(Enum):
    """Lifecycle states of a practice session."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    FINISHED = "finished"


@dataclass(frozen=True)
class Note:
    """A target note in a practice sequence.

    The pitch key is stored in the detector's spelling (capitalised, sharps
    only), so 'bb/4' and 'A#/4' are the same note.
    """

    pitch_key: str  # Note name and octave (e.g., 'A/4', 'C#/5')
    duration: str = "q"  # Duration code used by the stave renderer

    def __post_init__(self):
        object.__setattr__(self, "pitch_key", canonical_pitch_key(self.pitch_key))

    def __str__(self):
        return self.pitch_key


class ActiveNote:
    """A note that has been spawned onto the scroll axis.

    Position only moves forward through advance(), and the played flag can
    only be set through mark_played().
    """

    def __init__(self, note: Note, position: float, activated_at: Optional[float] = None):
        self.note = note
        self._position = float(position)
        self._played = False
        self.activated_at = activated_at  # Clock value when it became the target

    def __repr__(self):
        return (
            f"ActiveNote({self.note.pitch_key!r}, position={self._position:.1f}, "
            f"played={self._played})"
        )

    @property
    def position(self) -> float:
        """X coordinate on the stave."""
        return self._position

    @property
    def played(self) -> bool:
        return self._played

    def advance(self, delta: float) -> None:
        """Move the note along the scroll axis. Positions never decrease."""
        if delta < 0:
            raise ValueError(f"Cannot move a note backwards (delta={delta})")
        self._position += delta

    def mark_played(self) -> None:
        """Flag the note as correctly played. The flag is never cleared."""
        self._played = True

    @property
    def pitch_key(self) -> str:
        return self.note.pitch_key


@dataclass(frozen=True)
class DetectedPitch:
    """A single accepted reading from the pitch estimator."""

    frequency: float  # Frequency in Hz
    confidence: float  # Estimator clarity (0-1)


@dataclass(frozen=True)
class StaveGeometry:
    """Geometry of the scroll region reported by the renderer."""

    origin_x: float
    origin_y: float
    width: float
    height: float
