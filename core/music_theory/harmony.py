"""
core/music_theory/harmony.py — Chord progression generation for a transcription.

generate_chords() supports two strategies:

    "progression" (default, key-driven)
        1. Look up the mode's progression template (I vi IV V / i VI III VII)
        2. Resolve each degree to a root-position triad at octave 4
        3. Stretch the progression evenly over the melody's extent

    "energy" (signal-driven)
        1. Split the buffer into up to 8 segments of ~2 s
        2. Sum |x| over each segment
        3. Index the key's diatonic triads with floor(energy × 1000) mod 7

YAML Progression Templates
--------------------------
Located in core/music_theory/templates/progressions.yaml.
Loaded lazily on first call (module-level cache).

Design decisions:
    - generate_chords() is pure (no I/O after the first template load,
      no random), so identical input always yields identical chords.
    - The function never raises on degenerate input; an empty melody or a
      buffer shorter than one segment produces no chords.
"""

from __future__ import annotations

import functools
import math
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Any

import numpy as np

from core.midi import chord_pitch_names
from core.music_theory.scales import get_diatonic_chords
from core.music_theory.types import Chord

if TYPE_CHECKING:
    from core.audio.types import Key, Note

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CHORD_STRATEGIES: frozenset[str] = frozenset({"progression", "energy"})

ENERGY_SEGMENT_SEC: float = 2.0
"""Nominal length of one energy segment (and of each chord it produces)."""

MAX_ENERGY_SEGMENTS: int = 8

# ---------------------------------------------------------------------------
# YAML loading — lazy, cached, pure after first load
# ---------------------------------------------------------------------------

_TEMPLATES_DIR: Path = Path(__file__).parent / "templates"


@functools.cache
def _load_progressions() -> dict[str, Any]:
    """Load and cache the progression templates.

    Returns:
        Parsed YAML dict keyed by mode ("major", "minor")

    Raises:
        ValueError: If the template file is missing
    """
    try:
        import yaml  # pyyaml
    except ImportError as exc:
        raise ImportError(
            "pyyaml is required for progression templates. Install with: pip install pyyaml"
        ) from exc

    template_path = _TEMPLATES_DIR / "progressions.yaml"
    if not template_path.exists():
        raise ValueError(f"Template file not found: {template_path}")

    with template_path.open() as fh:
        data = yaml.safe_load(fh)

    return data  # type: ignore[return-value]


def progression_degrees(mode: str) -> tuple[int, ...]:
    """Return the template's scale degrees for a mode.

    Raises:
        ValueError: If the mode has no template
    """
    templates = _load_progressions()
    if mode not in templates:
        raise ValueError(f"No progression template for mode {mode!r}. Available: {sorted(templates)}")
    return tuple(int(d) for d in templates[mode]["degrees"])


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _progression_chords(notes: Sequence[Note], key: Key) -> tuple[Chord, ...]:
    if not notes:
        return ()

    diatonic = get_diatonic_chords(key.root, key.mode)
    degrees = progression_degrees(key.mode)

    extent = max(n.end_sec for n in notes)
    span = extent / len(degrees)
    if span <= 0:
        return ()

    chords: list[Chord] = []
    for i, degree in enumerate(degrees):
        label = diatonic[degree].name
        chords.append(
            Chord(
                notes=chord_pitch_names(label),
                label=label,
                onset_sec=i * span,
                duration_sec=span,
            )
        )
    return tuple(chords)


def _energy_chords(
    samples: np.ndarray,
    key: Key,
    duration_sec: float,
) -> tuple[Chord, ...]:
    n_segments = min(MAX_ENERGY_SEGMENTS, math.floor(duration_sec / ENERGY_SEGMENT_SEC))
    if n_segments <= 0 or len(samples) == 0:
        return ()

    diatonic = get_diatonic_chords(key.root, key.mode)
    per_segment = len(samples) // n_segments

    chords: list[Chord] = []
    for i in range(n_segments):
        segment = samples[i * per_segment : (i + 1) * per_segment]
        energy = float(np.sum(np.abs(segment)))
        chosen = diatonic[math.floor(energy * 1000) % len(diatonic)]
        chords.append(
            Chord(
                notes=chord_pitch_names(chosen.name),
                label=chosen.name,
                onset_sec=i * ENERGY_SEGMENT_SEC,
                duration_sec=ENERGY_SEGMENT_SEC,
            )
        )
    return tuple(chords)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_chords(
    notes: Sequence[Note],
    key: Key,
    *,
    samples: np.ndarray | None = None,
    sample_rate: int | None = None,
    duration_sec: float | None = None,
    strategy: str = "progression",
) -> tuple[Chord, ...]:
    """Produce a chord progression for a transcribed melody.

    Args:
        notes:        Melody notes (usually already quantized)
        key:          Key of the piece; selects template and diatonic triads
        samples:      Mono signal, required by the "energy" strategy
        sample_rate:  Sample rate of samples; used to derive duration_sec
                      when it is not given
        duration_sec: Signal duration in seconds ("energy" strategy)
        strategy:     "progression" or "energy"

    Returns:
        Tuple of Chord objects ordered by onset. Empty when there is nothing
        to harmonize.

    Raises:
        ValueError: If strategy is unknown, or "energy" is requested without
                    samples
    """
    if strategy not in CHORD_STRATEGIES:
        raise ValueError(f"Unknown chord strategy {strategy!r}. Valid: {sorted(CHORD_STRATEGIES)}")

    if strategy == "progression":
        return _progression_chords(notes, key)

    if samples is None:
        raise ValueError("The 'energy' chord strategy requires samples")
    if duration_sec is None:
        if not sample_rate:
            raise ValueError("The 'energy' chord strategy requires duration_sec or sample_rate")
        duration_sec = len(samples) / float(sample_rate)
    return _energy_chords(np.asarray(samples, dtype=np.float64), key, duration_sec)
