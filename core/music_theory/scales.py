"""
core/music_theory/scales.py — Pure scale and diatonic chord functions.

Exports:
    SCALE_FORMULAS          semitone intervals for each mode
    DIATONIC_QUALITIES      chord qualities per scale degree, per mode
    ROMAN_NUMERALS          roman numeral labels per degree, per mode

    normalize_note(note) → str
    note_to_pitch_class(note) → int
    get_scale_notes(root, mode) → tuple[str, ...]
    get_diatonic_chords(root, mode) → tuple[DiatonicChord, ...]

Modes are named after the key detector's vocabulary: "major" and "minor",
where "minor" is the natural (Aeolian) minor. Chord tones are not voiced
here: a label from chord_label() resolves to pitches through core.midi.
"""

from __future__ import annotations

from core.audio.pitch import NOTE_NAMES
from core.music_theory.types import DiatonicChord

# Input normalisation: flat → sharp
FLAT_TO_SHARP: dict[str, str] = {
    "Db": "C#",
    "Eb": "D#",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "Cb": "B",
    "Fb": "E",
    "E#": "F",
    "B#": "C",
}

# ---------------------------------------------------------------------------
# Scale formulas (semitone intervals from root)
# ---------------------------------------------------------------------------

SCALE_FORMULAS: dict[str, tuple[int, ...]] = {
    "major": (0, 2, 4, 5, 7, 9, 11),
    "minor": (0, 2, 3, 5, 7, 8, 10),
}

# ---------------------------------------------------------------------------
# Diatonic chord qualities per scale degree (0-indexed)
# ---------------------------------------------------------------------------

DIATONIC_QUALITIES: dict[str, tuple[str, ...]] = {
    "major": ("major", "minor", "minor", "major", "major", "minor", "dim"),
    "minor": ("minor", "dim", "major", "minor", "minor", "major", "major"),
}

ROMAN_NUMERALS: dict[str, tuple[str, ...]] = {
    "major": ("I", "ii", "iii", "IV", "V", "vi", "vii°"),
    "minor": ("i", "ii°", "III", "iv", "v", "VI", "VII"),
}

_CHORD_SUFFIX: dict[str, str] = {
    "major": "",
    "minor": "m",
    "dim": "dim",
}


# ---------------------------------------------------------------------------
# Low-level helpers
# ---------------------------------------------------------------------------


def normalize_note(note: str) -> str:
    """Normalize a note name to sharp notation.

    Args:
        note: Note name, e.g. "Bb", "C#", "g"

    Returns:
        Canonical sharp-notation name, e.g. "A#", "C#", "G"

    Raises:
        ValueError: If note is not a recognized pitch class
    """
    note = note.strip()
    note = note[:1].upper() + note[1:]
    if note in FLAT_TO_SHARP:
        note = FLAT_TO_SHARP[note]
    if note not in NOTE_NAMES:
        raise ValueError(f"Unknown note {note!r}. Valid: {list(NOTE_NAMES)}")
    return note


def note_to_pitch_class(note: str) -> int:
    """Return the pitch class (0–11) of a note name, e.g. "Bb" → 10."""
    return NOTE_NAMES.index(normalize_note(note))


def chord_label(root: str, quality: str) -> str:
    """Short chord label, e.g. ("A", "minor") → "Am"."""
    return f"{normalize_note(root)}{_CHORD_SUFFIX.get(quality, quality)}"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_scale_notes(root: str, mode: str = "major") -> tuple[str, ...]:
    """Return ordered note names for a diatonic scale.

    Raises:
        ValueError: If root or mode is unrecognized

    Examples:
        >>> get_scale_notes("A", "minor")
        ('A', 'B', 'C', 'D', 'E', 'F', 'G')
        >>> get_scale_notes("C", "major")
        ('C', 'D', 'E', 'F', 'G', 'A', 'B')
    """
    root_norm = normalize_note(root)
    if mode not in SCALE_FORMULAS:
        raise ValueError(f"Unknown mode {mode!r}. Valid: {sorted(SCALE_FORMULAS)}")
    root_idx = NOTE_NAMES.index(root_norm)
    return tuple(NOTE_NAMES[(root_idx + interval) % 12] for interval in SCALE_FORMULAS[mode])


def get_diatonic_chords(root: str, mode: str = "major") -> tuple[DiatonicChord, ...]:
    """Return all 7 diatonic triads for a key.

    Args:
        root: Root note of the key, e.g. "A", "C#"
        mode: "major" or "minor"

    Returns:
        Tuple of 7 DiatonicChord objects, one per scale degree (I through VII).

    Raises:
        ValueError: If root or mode is unrecognized

    Examples:
        >>> [c.name for c in get_diatonic_chords("A", "minor")]
        ['Am', 'Bdim', 'C', 'Dm', 'Em', 'F', 'G']
    """
    scale_notes = get_scale_notes(root, mode)
    qualities = DIATONIC_QUALITIES[mode]
    romans = ROMAN_NUMERALS[mode]

    return tuple(
        DiatonicChord(
            root=note,
            quality=quality,
            name=chord_label(note, quality),
            roman=romans[degree],
            degree=degree,
        )
        for degree, (note, quality) in enumerate(zip(scale_notes, qualities))
    )
