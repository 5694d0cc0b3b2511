"""Utility functions for working with musical notes and frequencies."""

import math
import re
from typing import Optional, Tuple

import numpy as np

from .logger import get_logger

# Get logger for this module
logger = get_logger(__name__)

# Equal-tempered reference: A4 = 440Hz, C0 sits 4.75 octaves below it
A4_FREQUENCY = 440.0
C0_FREQUENCY = A4_FREQUENCY * 2 ** -4.75

NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NATURAL_LETTERS = frozenset("CDEFGAB")

# Matches pitch keys such as 'A/4', 'c#/5' or 'Bb/-1'
PITCH_KEY_PATTERN = re.compile(r"^([A-Ga-g][#b]?)/(-?[0-9]+)$")


def _round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def get_note_name(freq: float) -> Optional[str]:
    """Convert a frequency to a quantized pitch key.

    Args:
        freq: Frequency in Hz

    Returns:
        Pitch key in '<Name>/<Octave>' form (e.g., 'A/4', 'C#/5'), or None
        when the frequency is not positive

    Note:
        - Middle C is C/4 (261.63 Hz)
        - A/4 is 440 Hz
        - Octave numbers change between B and C (e.g., B/3 -> C/4)
    """
    if freq is None or not np.isfinite(freq) or freq <= 0:
        return None

    semitones_from_c0 = 12 * np.log2(freq / C0_FREQUENCY)
    nearest = _round_half_away_from_zero(float(semitones_from_c0))

    # Python's modulo and floor division already give a non-negative index
    note_idx = nearest % 12
    octave = nearest // 12

    return f"{NOTE_NAMES[note_idx]}/{octave}"


def parse_pitch_key(pitch_key: str) -> Tuple[str, int]:
    """Split a pitch key into its note name and octave.

    Raises:
        ValueError: If the key is not in '<Name>/<Octave>' form
    """
    match = PITCH_KEY_PATTERN.match(str(pitch_key).strip())
    if not match:
        raise ValueError(f"Invalid pitch key: '{pitch_key}'")
    name = match.group(1)
    return name[0].upper() + name[1:], int(match.group(2))


def note_part(pitch_key: str) -> str:
    """Return the part of a pitch key before the octave, upper-cased."""
    return str(pitch_key).split("/")[0].upper()


def canonical_pitch_key(pitch_key: str) -> str:
    """Spell a pitch key the way get_note_name does (e.g., 'bb/4' -> 'A#/4').

    Raises:
        ValueError: If the key is not in '<Name>/<Octave>' form
    """
    name, octave = parse_pitch_key(pitch_key)
    return f"{normalize_to_sharp(name)}/{octave}"


def normalize_to_sharp(name: str) -> str:
    """Spell a flat note name with its sharp equivalent (e.g., 'Bb' -> 'A#')."""
    flat_to_sharp = {
        "Ab": "G#",
        "Bb": "A#",
        "Db": "C#",
        "Eb": "D#",
        "Fb": "E",
        "Gb": "F#",
    }
    return flat_to_sharp.get(name, name)


def midi_number(pitch_key: str) -> int:
    """Return the MIDI note number for a pitch key (A/4 = 69)."""
    name, octave = parse_pitch_key(pitch_key)
    name = normalize_to_sharp(name)
    if name not in NOTE_NAMES:
        raise ValueError(f"Unsupported note name: '{name}'")
    return (octave + 1) * 12 + NOTE_NAMES.index(name)


def note_frequency(pitch_key: str) -> float:
    """Return the equal-tempered frequency of a pitch key in Hz."""
    return A4_FREQUENCY * 2 ** ((midi_number(pitch_key) - 69) / 12)
