"""
core/audio/edits.py — Pure note-editor operations on a transcription.

Each helper takes the current melody or chord tuple and returns a new one;
nothing is mutated. After an edit, callers re-render with
core.strudel.to_pattern_text() (or AudioAnalysisEngine.regenerate_pattern()).
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import TypeVar

from core.audio.pitch import parse_pitch_name, transpose_pitch_name
from core.audio.types import Note
from core.midi import chord_pitch_names
from core.music_theory.types import Chord

T = TypeVar("T")

MIN_EDIT_OCTAVE: int = 2
MAX_EDIT_OCTAVE: int = 7

DEFAULT_NOTE_PITCH: str = "C4"
DEFAULT_NOTE_DURATION_SEC: float = 0.25
DEFAULT_CHORD: str = "C"
DEFAULT_CHORD_DURATION_SEC: float = 1.0


def transpose_note(note: Note, semitones: int) -> Note:
    """Shift a note by semitones, keeping its octave within [2, 7].

    A shift that would leave the range moves the pitch class but pins the
    octave at the boundary, e.g. B7 + 1 → C7 and C2 − 1 → B2.
    """
    shifted = transpose_pitch_name(note.pitch_name, semitones)
    pitch_class, octave = parse_pitch_name(shifted)
    clamped = max(MIN_EDIT_OCTAVE, min(MAX_EDIT_OCTAVE, octave))
    if clamped != octave:
        shifted = transpose_pitch_name(shifted, (clamped - octave) * 12)
    return dataclasses.replace(note, pitch_name=shifted)


def append_note(
    melody: Sequence[Note],
    pitch_name: str | None = None,
    duration_sec: float = DEFAULT_NOTE_DURATION_SEC,
) -> tuple[Note, ...]:
    """Add a note right after the last one (or at 0 for an empty melody)."""
    onset = max((n.end_sec for n in melody), default=0.0)
    note = Note(
        pitch_name=pitch_name or DEFAULT_NOTE_PITCH,
        onset_sec=onset,
        duration_sec=duration_sec,
    )
    return (*melody, note)


def append_chord(
    chords: Sequence[Chord],
    label: str = DEFAULT_CHORD,
    duration_sec: float = DEFAULT_CHORD_DURATION_SEC,
) -> tuple[Chord, ...]:
    """Add a chord (C major triad, 1 s by default) after the last chord."""
    onset = max((c.end_sec for c in chords), default=0.0)
    chord = Chord(
        notes=chord_pitch_names(label),
        label=label,
        onset_sec=onset,
        duration_sec=duration_sec,
    )
    return (*chords, chord)


def remove_at(items: Sequence[T], index: int) -> tuple[T, ...]:
    """Drop the item at `index`.

    Raises:
        IndexError: If index is out of range.
    """
    if not -len(items) <= index < len(items):
        raise IndexError(f"index {index} out of range for {len(items)} items")
    index %= len(items)
    return (*items[:index], *items[index + 1 :])
