"""
core/music_theory/quantize.py — Snap note timing to a rhythmic grid.

Grid math:
    beat_sec  = 60 / tempo                      (one quarter note)
    grid_sec  = beat_sec × (4 / denominator)    "1/16" → a quarter of a beat

Onsets snap to the nearest grid multiple; durations snap likewise but never
below one grid unit, so no note collapses to zero length. Python's round()
(half-to-even) is used for both so re-quantizing is a no-op.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from core.audio.types import Note

QUANTIZE_VALUES: tuple[str, ...] = ("none", "1/4", "1/8", "1/16", "1/32")


def grid_seconds(tempo: float, grid: str) -> float:
    """Length of one grid unit in seconds.

    Raises:
        ValueError: If tempo ≤ 0 or grid is not one of the note-value grids.
    """
    if tempo <= 0:
        raise ValueError(f"tempo must be > 0, got {tempo}")
    if grid not in QUANTIZE_VALUES or grid == "none":
        raise ValueError(f"Unknown quantize grid {grid!r}. Valid: {list(QUANTIZE_VALUES[1:])}")
    denominator = int(grid.split("/")[1])
    return (60.0 / tempo) * (4.0 / denominator)


def quantize(notes: Sequence[Note], tempo: float, grid: str) -> tuple[Note, ...]:
    """Snap onsets and durations to a grid.

    Args:
        notes: Melody notes
        tempo: Tempo in BPM
        grid:  "none", "1/4", "1/8", "1/16" or "1/32"

    Returns:
        New tuple of notes in the same order. "none" returns the input
        unchanged (as a tuple).

    Raises:
        ValueError: For an unknown grid or non-positive tempo.
    """
    if grid == "none":
        return tuple(notes)

    unit = grid_seconds(tempo, grid)
    return tuple(
        dataclasses.replace(
            note,
            onset_sec=round(note.onset_sec / unit) * unit,
            duration_sec=max(1, round(note.duration_sec / unit)) * unit,
        )
        for note in notes
    )
