"""
core/audio/features.py — Pure DSP feature extraction from audio signals.

All functions are pure numpy — no librosa dependency — so this module is
testable with synthetic arrays.

Design:
    - `detect_key()` takes the RMS-weighted pitch class histogram produced by
      the note segmenter and runs Krumhansl-Schmuckler.
    - `detect_tempo()` is an energy-onset estimator: onsets are windows whose
      energy jumps by 50% over the previous window, and the tempo is the
      reciprocal of the mean inter-onset interval.
    - `fold_tempo()` is shared by the detector and the configured-tempo path
      so both always land in the same [60, 200] BPM range.
    - `extract_waveform()` is the display summary attached to each result.

Krumhansl-Schmuckler profiles (1990):
    Psychoacoustic salience weights for each of 12 pitch classes
    relative to a tonal centre. Pearson correlation against all 24
    key templates (12 major + 12 minor) selects the best match.
"""

from __future__ import annotations

import math

import numpy as np

from core.audio.pitch import NOTE_NAMES
from core.audio.types import Key

# ---------------------------------------------------------------------------
# Krumhansl-Schmuckler profiles (1990)
# Starting from C — 12-element salience weights
# ---------------------------------------------------------------------------

_MAJOR_PROFILE: tuple[float, ...] = (
    6.35,
    2.23,
    3.48,
    2.33,
    4.38,
    4.09,
    2.52,
    5.19,
    2.39,
    3.66,
    2.29,
    2.88,
)
_MINOR_PROFILE: tuple[float, ...] = (
    6.33,
    2.68,
    3.52,
    5.38,
    2.60,
    3.53,
    2.54,
    4.75,
    3.98,
    2.69,
    3.34,
    3.17,
)

# ---------------------------------------------------------------------------
# Tempo constants
# ---------------------------------------------------------------------------

MIN_TEMPO_BPM: int = 60
MAX_TEMPO_BPM: int = 200
DEFAULT_TEMPO_BPM: int = 120
"""Returned when fewer than two onsets are found (silence, drones)."""

_ONSET_WINDOW_SEC: float = 0.05
_ONSET_RATIO: float = 1.5
_ONSET_MIN_ENERGY: float = 0.01

WAVEFORM_POINTS: int = 200


# ---------------------------------------------------------------------------
# Key detection
# ---------------------------------------------------------------------------


def detect_key(histogram: np.ndarray) -> Key:
    """Detect musical key using Krumhansl-Schmuckler profiles.

    Pearson-correlates the 12-element pitch class histogram against all
    24 key templates (12 major + 12 minor, each rotated to align with
    a different tonic). Tonics are tried from C upwards, major before minor,
    and a candidate only wins on a strictly higher correlation, so ties
    resolve to the earliest candidate.

    Args:
        histogram: np.ndarray of shape (12,) — RMS-weighted pitch class
                   totals, index 0 = C.

    Returns:
        Key with root, mode, and confidence (best Pearson r clipped to [0, 1]).
        C major with confidence 0.0 for an all-zero (or flat) histogram.

    Raises:
        ValueError: If histogram is not shape (12,).
    """
    histogram = np.asarray(histogram, dtype=np.float64)
    if histogram.shape != (12,):
        raise ValueError(f"histogram must have shape (12,), got {histogram.shape}")

    if not np.any(histogram) or np.ptp(histogram) == 0.0:
        return Key(root="C", mode="major", confidence=0.0)

    best_score: float = -2.0  # Pearson r ∈ [-1, 1]
    best_root: str = "C"
    best_mode: str = "major"

    major_arr = np.array(_MAJOR_PROFILE)
    minor_arr = np.array(_MINOR_PROFILE)

    for root_idx in range(12):
        major_r = float(np.corrcoef(histogram, np.roll(major_arr, root_idx))[0, 1])
        minor_r = float(np.corrcoef(histogram, np.roll(minor_arr, root_idx))[0, 1])

        if major_r > best_score:
            best_score = major_r
            best_root = NOTE_NAMES[root_idx]
            best_mode = "major"

        if minor_r > best_score:
            best_score = minor_r
            best_root = NOTE_NAMES[root_idx]
            best_mode = "minor"

    confidence = max(0.0, min(1.0, best_score))
    return Key(root=best_root, mode=best_mode, confidence=confidence)


# ---------------------------------------------------------------------------
# Tempo
# ---------------------------------------------------------------------------


def fold_tempo(bpm: float) -> int:
    """Octave-fold a tempo into [60, 200] BPM and round half-up.

    Doubles while below 60 and halves while above 200, so 30 → 60,
    45 → 90, 400 → 200, 450 → 112.5 → 113.

    Raises:
        ValueError: If bpm is not a positive finite number.
    """
    if not math.isfinite(bpm) or bpm <= 0:
        raise ValueError(f"tempo must be a positive finite number, got {bpm}")
    while bpm < MIN_TEMPO_BPM:
        bpm *= 2.0
    while bpm > MAX_TEMPO_BPM:
        bpm /= 2.0
    return max(MIN_TEMPO_BPM, min(MAX_TEMPO_BPM, math.floor(bpm + 0.5)))


def _window_energies(samples: np.ndarray, window: int) -> np.ndarray:
    """Σx² per non-overlapping window; windows start while i < len − window."""
    starts = range(0, len(samples) - window, window)
    return np.array([float(np.dot(samples[i : i + window], samples[i : i + window])) for i in starts])


def detect_onsets(samples: np.ndarray, sample_rate: int) -> list[float]:
    """Onset times in seconds from 50 ms energy windows.

    Window k ≥ 1 is an onset when its energy exceeds 1.5× the previous
    window's and 0.01 in absolute terms.
    """
    window = int(math.floor(_ONSET_WINDOW_SEC * sample_rate))
    if window <= 0:
        return []
    energies = _window_energies(np.asarray(samples, dtype=np.float64), window)

    onsets: list[float] = []
    for k in range(1, len(energies)):
        if energies[k] > _ONSET_RATIO * energies[k - 1] and energies[k] > _ONSET_MIN_ENERGY:
            onsets.append(k * window / float(sample_rate))
    return onsets


def detect_tempo(samples: np.ndarray, sample_rate: int) -> int:
    """Estimate tempo from the mean inter-onset interval.

    Args:
        samples:     Mono signal.
        sample_rate: Sample rate in Hz.

    Returns:
        Tempo in BPM in [60, 200]. 120 when fewer than two onsets are found.
    """
    onsets = detect_onsets(samples, sample_rate)
    if len(onsets) < 2:
        return DEFAULT_TEMPO_BPM

    mean_interval = float(np.mean(np.diff(onsets)))
    if mean_interval <= 0:
        return DEFAULT_TEMPO_BPM
    return fold_tempo(60.0 / mean_interval)


# ---------------------------------------------------------------------------
# Waveform summary
# ---------------------------------------------------------------------------


def extract_waveform(samples: np.ndarray, points: int = WAVEFORM_POINTS) -> tuple[float, ...]:
    """Downsample |x| into `points` block means, normalised by the peak block.

    Returns:
        Tuple of `points` floats in [0, 1]. All zeros for silence or an
        empty signal.
    """
    if points <= 0:
        raise ValueError(f"points must be > 0, got {points}")
    x = np.abs(np.asarray(samples, dtype=np.float64))
    if len(x) == 0:
        return (0.0,) * points

    means = np.array([block.mean() if len(block) else 0.0 for block in np.array_split(x, points)])
    peak = float(means.max())
    if peak <= 0.0:
        return (0.0,) * points
    return tuple(float(v) for v in means / peak)
