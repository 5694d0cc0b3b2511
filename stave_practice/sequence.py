"""Target note sequences and the practice catalogue."""

from typing import Dict, Iterable, List, Optional, Tuple

from .errors import UnknownSequenceError
from .logger import get_logger
from .note_types import Note
from .note_utils import NOTE_NAMES, parse_pitch_key

# Get logger for this module
logger = get_logger(__name__)

MAJOR_STEPS = (2, 2, 1, 2, 2, 2, 1)
NATURAL_MINOR_STEPS = (2, 1, 2, 2, 1, 2, 2)


class NoteSequence:
    """An immutable, ordered list of notes with a cursor over the unconsumed ones."""

    def __init__(self, notes: Iterable[Note], name: str = "custom") -> None:
        self._notes: Tuple[Note, ...] = tuple(notes)
        self._cursor = 0
        self.name = name

    @classmethod
    def from_keys(cls, keys: Iterable[str], duration: str = "q", name: str = "custom"):
        """Build a sequence from pitch keys such as 'A/4' or 'Bb/3'."""
        return cls((Note(pitch_key=key, duration=duration) for key in keys), name=name)

    @property
    def notes(self) -> Tuple[Note, ...]:
        return self._notes

    def __len__(self) -> int:
        return len(self._notes)

    def has_next(self) -> bool:
        return self._cursor < len(self._notes)

    def next(self) -> Note:
        """Consume and return the next note.

        Raises:
            IndexError: If the sequence is exhausted
        """
        if not self.has_next():
            raise IndexError("Note sequence exhausted")
        note = self._notes[self._cursor]
        self._cursor += 1
        return note

    @property
    def remaining(self) -> int:
        return len(self._notes) - self._cursor

    def fresh(self) -> "NoteSequence":
        """A new cursor over the same notes."""
        return NoteSequence(self._notes, name=self.name)


def scale_keys(root: str, steps: Tuple[int, ...]) -> List[str]:
    """Spell a one-octave ascending scale from a root pitch key (sharps only)."""
    name, octave = parse_pitch_key(root)
    index = NOTE_NAMES.index(name) + octave * 12
    keys = [f"{NOTE_NAMES[index % 12]}/{index // 12}"]
    for step in steps:
        index += step
        keys.append(f"{NOTE_NAMES[index % 12]}/{index // 12}")
    return keys


def _string_drill(open_string: str) -> List[str]:
    # Open string plus four diatonic steps in first position
    return scale_keys(open_string, MAJOR_STEPS)[:5]


CATALOGUE: Dict[str, List[str]] = {
    "warm-up": ["A/4", "B/4", "C/5", "G/4", "E/5"],
    "A major": scale_keys("A/4", MAJOR_STEPS),
    "D major": scale_keys("D/4", MAJOR_STEPS),
    "G major": scale_keys("G/3", MAJOR_STEPS),
    "C major": scale_keys("C/4", MAJOR_STEPS),
    "E minor": scale_keys("E/4", NATURAL_MINOR_STEPS),
    "G string": _string_drill("G/3"),
    "D string": _string_drill("D/4"),
    "A string": _string_drill("A/4"),
    "E string": _string_drill("E/5"),
}

DEFAULT_SEQUENCE = "warm-up"


def available_sequences() -> List[str]:
    return list(CATALOGUE)


def get_sequence(name: Optional[str] = None) -> NoteSequence:
    """Look up a catalogue sequence by name (case-insensitive).

    Raises:
        UnknownSequenceError: If no sequence has that name
    """
    name = name or DEFAULT_SEQUENCE
    for key, keys in CATALOGUE.items():
        if key.lower() == name.strip().lower():
            logger.debug(f"Loaded sequence '{key}': {keys}")
            return NoteSequence.from_keys(keys, name=key)
    raise UnknownSequenceError(
        f"Unknown sequence '{name}'. Available: {', '.join(CATALOGUE)}"
    )
