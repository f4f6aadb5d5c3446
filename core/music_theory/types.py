"""
core/music_theory/types.py — Frozen value objects for the harmony engine.

All types are immutable frozen dataclasses — safe to hash, cache, and use as
dict keys. No I/O, no side effects.

Types:
    DiatonicChord  — a chord at a scale degree of a key (theory level)
    Chord          — a timed chord in a transcription (pitch names + span)
"""

from __future__ import annotations

from dataclasses import dataclass

from core.audio.pitch import name_to_midi

# ---------------------------------------------------------------------------
# DiatonicChord
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DiatonicChord:
    """A diatonic chord at a specific scale degree.

    Attributes:
        root:       Root note name, e.g. "A", "C#"
        quality:    Chord quality key, "major", "minor" or "dim"
        name:       Chord label, e.g. "Am", "F", "Bdim"
        roman:      Roman numeral label, e.g. "i", "IV", "vii°"
        degree:     0-based scale degree (0=I/i, 6=VII/vii)
    """

    root: str
    quality: str
    name: str
    roman: str
    degree: int

    def __post_init__(self) -> None:
        if not self.root:
            raise ValueError("DiatonicChord.root must not be empty")
        if not self.quality:
            raise ValueError("DiatonicChord.quality must not be empty")
        if not (0 <= self.degree <= 6):
            raise ValueError(f"DiatonicChord.degree must be in [0, 6], got {self.degree}")


# ---------------------------------------------------------------------------
# Chord — timed chord event
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Chord:
    """A chord sounding over a span of the transcription.

    Attributes:
        notes:        Pitch names sounded together, e.g. ("A4", "C5", "E5")
        label:        Chord label, e.g. "Am"
        onset_sec:    Start time in seconds
        duration_sec: Length in seconds (> 0)
    """

    notes: tuple[str, ...]
    label: str
    onset_sec: float
    duration_sec: float

    def __post_init__(self) -> None:
        if not self.notes:
            raise ValueError("Chord.notes must not be empty")
        for name in self.notes:
            name_to_midi(name)
        if self.onset_sec < 0:
            raise ValueError(f"Chord.onset_sec must be >= 0, got {self.onset_sec}")
        if self.duration_sec <= 0:
            raise ValueError(f"Chord.duration_sec must be > 0, got {self.duration_sec}")

    @property
    def pitches(self) -> tuple[int, ...]:
        """MIDI note numbers of the chord tones, in stored order."""
        return tuple(name_to_midi(n) for n in self.notes)

    @property
    def end_sec(self) -> float:
        return self.onset_sec + self.duration_sec
