"""
core/music_theory/ — Pure harmony and rhythm helpers for transcriptions.

Exports:
    Types:    Chord, DiatonicChord
    Scales:   get_scale_notes, get_diatonic_chords, note_to_pitch_class
    Harmony:  generate_chords, progression_degrees, CHORD_STRATEGIES
    Quantize: quantize, grid_seconds, QUANTIZE_VALUES
"""

from core.music_theory.harmony import CHORD_STRATEGIES, generate_chords, progression_degrees
from core.music_theory.quantize import QUANTIZE_VALUES, grid_seconds, quantize
from core.music_theory.scales import get_diatonic_chords, get_scale_notes, note_to_pitch_class
from core.music_theory.types import Chord, DiatonicChord

__all__ = [
    # Types
    "Chord",
    "DiatonicChord",
    # Scales
    "get_scale_notes",
    "get_diatonic_chords",
    "note_to_pitch_class",
    # Harmony
    "generate_chords",
    "progression_degrees",
    "CHORD_STRATEGIES",
    # Quantize
    "quantize",
    "grid_seconds",
    "QUANTIZE_VALUES",
]
