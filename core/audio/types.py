"""
core/audio/types.py — Frozen data types for audio analysis results.

All types are frozen dataclasses — immutable value objects that can be
safely passed between layers and cached.

Design principles:
    - No I/O, no state, no side effects.
    - Note invariants are enforced at construction time so edited melodies
      (see core/audio/edits.py) can never reach the serializers malformed.
    - `Key.label` and `Note.pitch_midi` are computed properties to avoid
      duplicate storage.
    - `AnalysisResult` sequences are tuples for hashability; edits go through
      dataclasses.replace().
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

import numpy as np

from core.audio.pitch import NOTE_NAMES, name_to_midi
from core.music_theory.scales import normalize_note
from core.music_theory.types import Chord

MAX_MELODY_NOTES: int = 64
"""Melody cap. Notes beyond the first 64 are dropped."""

# "C", "Am", "C#m", "Dbm", "A minor", "C#/Db", "C#/Dbm"
_KEY_LABEL_RE = re.compile(r"^([A-Ga-g][#b]?)(?:/[A-Ga-g][#b]?)?\s*([A-Za-z]*)$")

_MODE_SUFFIXES: dict[str, str] = {
    "": "major",
    "maj": "major",
    "major": "major",
    "m": "minor",
    "min": "minor",
    "minor": "minor",
}


@dataclass(frozen=True, eq=False)
class SampleBuffer:
    """A decoded mono audio signal.

    The samples array is copied to float64 and marked read-only, so the
    pipeline can share it without copying.
    """

    samples: np.ndarray
    """1-D float samples in [-1, 1]."""

    sample_rate: int
    """Sample rate in Hz."""

    def __post_init__(self) -> None:
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be > 0, got {self.sample_rate}")
        samples = np.array(self.samples, dtype=np.float64)
        if samples.ndim != 1:
            raise ValueError(f"samples must be 1-D, got shape {samples.shape}")
        samples.setflags(write=False)
        object.__setattr__(self, "samples", samples)

    @classmethod
    def from_array(cls, y: np.ndarray, sample_rate: int) -> SampleBuffer:
        """Build a buffer from decoder output, keeping only the first channel.

        librosa returns multi-channel audio as (channels, n_samples).
        """
        arr = np.asarray(y)
        if arr.ndim > 1:
            arr = arr[0]
        return cls(samples=arr, sample_rate=int(sample_rate))

    @property
    def duration_sec(self) -> float:
        """Buffer length in seconds."""
        return len(self.samples) / float(self.sample_rate)


@dataclass(frozen=True)
class Note:
    """A single melody note.

    Invariants:
        pitch_name parses to a MIDI number in [0, 127]
        onset_sec >= 0
        duration_sec > 0
        0 <= velocity <= 1
    """

    pitch_name: str
    """Scientific pitch notation, e.g. 'A4', 'C#5'."""

    onset_sec: float
    """Start time in seconds from the beginning of the audio."""

    duration_sec: float
    """Note duration in seconds. Always > 0."""

    velocity: float = 0.8
    """Normalised loudness in [0, 1], estimated from frame RMS."""

    def __post_init__(self) -> None:
        name_to_midi(self.pitch_name)
        if self.onset_sec < 0:
            raise ValueError(f"Note.onset_sec must be >= 0, got {self.onset_sec}")
        if self.duration_sec <= 0:
            raise ValueError(f"Note.duration_sec must be > 0, got {self.duration_sec}")
        if not 0.0 <= self.velocity <= 1.0:
            raise ValueError(f"Note.velocity must be in [0, 1], got {self.velocity}")

    @property
    def pitch_midi(self) -> int:
        """MIDI note number (A4 = 69, C4 = 60)."""
        return name_to_midi(self.pitch_name)

    @property
    def end_sec(self) -> float:
        return self.onset_sec + self.duration_sec


@dataclass(frozen=True)
class Key:
    """Musical key detected via Krumhansl-Schmuckler algorithm.

    Invariants:
        mode in {"major", "minor"}
        0.0 <= confidence <= 1.0
        root is a sharp-spelled pitch class name (e.g. "C", "F#")
    """

    root: str
    """Root note name, e.g. 'A', 'C#'."""

    mode: str
    """'major' or 'minor'."""

    confidence: float = 0.0
    """Pearson correlation of the best K-S match, clipped to [0, 1].
    0.0 for a key that was configured rather than detected."""

    def __post_init__(self) -> None:
        if self.root not in NOTE_NAMES:
            raise ValueError(f"Key.root must be one of {list(NOTE_NAMES)}, got {self.root!r}")
        if self.mode not in ("major", "minor"):
            raise ValueError(f"Key.mode must be 'major' or 'minor', got {self.mode!r}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"Key.confidence must be in [0, 1], got {self.confidence}")

    @property
    def label(self) -> str:
        """Short key label, e.g. 'C', 'Am', 'F#m'."""
        return self.root if self.mode == "major" else f"{self.root}m"

    @property
    def pitch_class(self) -> int:
        """Tonic pitch class 0 (C) through 11 (B)."""
        return NOTE_NAMES.index(self.root)


def parse_key(label: str) -> Key:
    """Parse a key label into a Key with zero confidence.

    Accepts "C", "Am", "Bb", "C#m", "Dbm", "A minor", "C major" and the
    enharmonic pair spelling used by key pickers ("C#/Db", "C#/Dbm").
    The first spelling of a pair wins; flats are respelled as sharps.

    Raises:
        ValueError: If the label cannot be parsed.
    """
    match = _KEY_LABEL_RE.match(label.strip())
    if match is None:
        raise ValueError(f"Cannot parse key {label!r}")
    root, suffix = match.groups()
    if len(suffix) > 1:
        suffix = suffix.lower()
    mode = _MODE_SUFFIXES.get(suffix)
    if mode is None:
        raise ValueError(f"Cannot parse key {label!r}: unknown mode {suffix!r}")
    return Key(root=normalize_note(root), mode=mode, confidence=0.0)


@dataclass(frozen=True, eq=False)
class MelodyExtraction:
    """Output of the note segmenter (core/audio/melody.py)."""

    notes: tuple[Note, ...]
    """Segmented notes, ordered by onset, at most max_notes long."""

    pitch_class_histogram: np.ndarray
    """12-bin RMS-weighted pitch class histogram (index 0 = C)."""


@dataclass(frozen=True)
class PatternText:
    """Strudel pattern code for one analysis."""

    melody: str
    chords: str
    combined: str


@dataclass(frozen=True)
class AnalysisResult:
    """Complete output of one pipeline run (core/audio/pipeline.py).

    Invariants:
        len(melody) <= MAX_MELODY_NOTES
        60 <= tempo <= 200
        every chord has at least one note
    """

    melody: tuple[Note, ...]
    """Melody notes, ordered by onset. Quantized when the config asks for it."""

    chords: tuple[Chord, ...]
    """Chord progression aligned to the melody."""

    key: Key
    """Detected (or configured) key."""

    tempo: int
    """Tempo in BPM, folded into [60, 200]."""

    time_signature: str
    """Time signature used for serialization, e.g. '4/4'."""

    sample_rate: int
    """Sample rate of the analysed signal in Hz."""

    duration_sec: float
    """Duration of the analysed signal in seconds."""

    waveform: tuple[float, ...] = field(default_factory=tuple)
    """Downsampled |amplitude| summary for display. Not used by any analysis step."""

    @property
    def key_label(self) -> str:
        return self.key.label
