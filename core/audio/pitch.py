"""
core/audio/pitch.py — Autocorrelation pitch detection and pitch naming.

Two concerns live here because every other component depends on both:

    detect_pitch()            frame → fundamental frequency (Hz)
    frequency_to_pitch_name() Hz → scientific pitch name ("A4", "C#5")

Pitch naming convention (shared with the MIDI encoder and Strudel output):
    midi  = round(12 × log₂(hz / 440)) + 69      A4 = 440 Hz = MIDI 69
    name  = NOTE_NAMES[midi % 12] + (midi // 12 − 1)

Anchoring on A4 is algebraically identical to anchoring on C0
(440 × 2^−4.75 Hz); only one of the two is implemented so that the melody
segmenter and the sequence-file encoder can never disagree.

Autocorrelation:
    For each candidate lag p the correlation Σ x[i]·x[i+p] over the
    overlapping region is divided by the overlap length n − p. The first
    local maximum within PEAK_THRESHOLD of the best lag is the period, which
    keeps low notes from losing to short lags on 2048-sample frames and keeps
    multiples of the period from winning on 4096-sample frames.
    O(frame_length × lag_range) per frame; intended for offline analysis of
    a complete buffer.
"""

from __future__ import annotations

import math
import re

import numpy as np

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MIN_FREQUENCY_HZ: float = 80.0
"""Lowest fundamental the autocorrelation search considers (longest lag)."""

MAX_FREQUENCY_HZ: float = 1000.0
"""Highest fundamental the autocorrelation search considers (shortest lag)."""

PEAK_THRESHOLD: float = 0.9
"""Fraction of the best normalised correlation a peak needs to be taken as the period."""

REFERENCE_HZ: float = 440.0
"""A4 tuning reference."""

REFERENCE_MIDI: int = 69
"""MIDI number of the A4 reference."""

NOTE_NAMES: tuple[str, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)

# "C#4", "Db4", "cs4" (Strudel sharp), "df4" (Strudel flat), "A-1"
_PITCH_NAME_RE = re.compile(r"^([A-Ga-g])(#|b|s|f)?(-?\d+)$")


# ---------------------------------------------------------------------------
# Pitch detection
# ---------------------------------------------------------------------------


def detect_pitch(frame: np.ndarray, sample_rate: int) -> float:
    """Estimate the fundamental frequency of a frame by autocorrelation.

    Candidate lags run from floor(sr / 1000) up to (excluding) floor(sr / 80),
    further bounded by half the frame length so every correlation sums over
    at least half of the frame. Each lag's correlation is divided by its
    overlap length n − p, so long lags are not penalised for summing fewer
    products.

    The period is the first local maximum reaching PEAK_THRESHOLD of the best
    normalised correlation. Multiples of the period correlate about as well
    as the period itself, so the first qualifying peak is taken rather than
    the global maximum. When no interior peak qualifies (a period at the edge
    of the lag range) the best lag is used.

    Args:
        frame:       1-D array of samples (typically 2048 or 4096 long).
        sample_rate: Sample rate in Hz.

    Returns:
        Frequency in Hz, or 0.0 when no lag has a positive correlation
        (silence, noise, frame too short).
    """
    x = np.asarray(frame, dtype=np.float64)
    n = len(x)
    min_period = max(1, int(sample_rate // MAX_FREQUENCY_HZ))
    max_period = min(int(sample_rate // MIN_FREQUENCY_HZ), math.ceil(n / 2))
    if max_period <= min_period:
        return 0.0

    periods = np.arange(min_period, max_period)
    corr = np.array([np.dot(x[: n - p], x[p:]) / (n - p) for p in periods])

    best = int(np.argmax(corr))
    if corr[best] <= 0.0:
        return 0.0

    threshold = PEAK_THRESHOLD * corr[best]
    for i in range(1, len(corr) - 1):
        if corr[i] >= threshold and corr[i - 1] < corr[i] >= corr[i + 1]:
            return float(sample_rate) / int(periods[i])
    return float(sample_rate) / int(periods[best])


# ---------------------------------------------------------------------------
# Pitch naming
# ---------------------------------------------------------------------------


def hz_to_midi(hz: float) -> int:
    """Convert a frequency to the nearest MIDI note number.

    Formula: midi = round(12 × log₂(hz / 440)) + 69

    Raises:
        ValueError: If hz ≤ 0.
    """
    if hz <= 0.0:
        raise ValueError(f"Hz must be > 0, got {hz}")
    half_steps = 12.0 * math.log2(hz / REFERENCE_HZ)
    return max(0, min(127, round(half_steps) + REFERENCE_MIDI))


def midi_to_hz(midi: int) -> float:
    """Equal-tempered frequency of a MIDI note number."""
    return REFERENCE_HZ * 2.0 ** ((midi - REFERENCE_MIDI) / 12.0)


def midi_to_name(midi: int) -> str:
    """Convert a MIDI note number to scientific pitch notation.

    Examples:
        69 → 'A4'
        60 → 'C4'
        61 → 'C#4'
    """
    midi = max(0, min(127, midi))
    octave = (midi // 12) - 1
    return f"{NOTE_NAMES[midi % 12]}{octave}"


def frequency_to_pitch_name(hz: float) -> str:
    """Hz → nearest pitch name, e.g. 440.0 → 'A4'."""
    return midi_to_name(hz_to_midi(hz))


def parse_pitch_name(name: str) -> tuple[int, int]:
    """Split a pitch name into (pitch_class, octave).

    Accepts sharps and flats in both scientific ("C#4", "Bb3") and Strudel
    ("cs4", "bf3") spelling.

    Raises:
        ValueError: If the name cannot be parsed.
    """
    match = _PITCH_NAME_RE.match(name.strip())
    if match is None:
        raise ValueError(f"Cannot parse pitch name {name!r}")
    letter, accidental, octave = match.groups()
    letter = letter.upper()
    pitch_class = NOTE_NAMES.index(letter)
    if accidental in ("#", "s"):
        pitch_class += 1
    elif accidental in ("b", "f"):
        pitch_class -= 1
    octave_num = int(octave)
    # B#3 is C4, Cb4 is B3
    if pitch_class == 12:
        pitch_class, octave_num = 0, octave_num + 1
    elif pitch_class == -1:
        pitch_class, octave_num = 11, octave_num - 1
    return pitch_class, octave_num


def name_to_midi(name: str) -> int:
    """Convert a pitch name to a MIDI note number ('C4' → 60, 'cs4' → 61).

    Raises:
        ValueError: If the name is unparseable or falls outside [0, 127].
    """
    pitch_class, octave = parse_pitch_name(name)
    midi = (octave + 1) * 12 + pitch_class
    if not 0 <= midi <= 127:
        raise ValueError(f"Pitch {name!r} is outside the MIDI range")
    return midi


def pitch_class_of(name: str) -> int:
    """Pitch class (0–11) of a pitch name."""
    return parse_pitch_name(name)[0]


def transpose_pitch_name(name: str, semitones: int) -> str:
    """Shift a pitch name by a number of semitones, respelled with sharps."""
    return midi_to_name(name_to_midi(name) + semitones)
