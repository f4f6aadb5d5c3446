"""
Tests for core/music_theory/quantize.py — grid snapping of note timing.
"""

import pytest

from core.audio.types import Note
from core.music_theory.quantize import QUANTIZE_VALUES, grid_seconds, quantize


class TestGridSeconds:
    @pytest.mark.parametrize(
        "grid,expected",
        [("1/4", 0.5), ("1/8", 0.25), ("1/16", 0.125), ("1/32", 0.0625)],
    )
    def test_at_120_bpm(self, grid, expected):
        """At 120 BPM a quarter note is 0.5 s."""
        assert grid_seconds(120, grid) == pytest.approx(expected)

    def test_none_is_not_a_grid(self):
        """'none' has no unit length."""
        with pytest.raises(ValueError, match="Unknown quantize grid"):
            grid_seconds(120, "none")

    def test_non_positive_tempo_raises(self):
        """Tempo must be positive."""
        with pytest.raises(ValueError, match="tempo"):
            grid_seconds(0, "1/16")


class TestQuantize:
    def test_snaps_onset_and_duration(self):
        """0.13 s → 0.125 s onset, 0.26 s → 0.25 s duration on a 1/16 grid at 120 BPM."""
        (note,) = quantize([Note("C4", 0.13, 0.26)], 120, "1/16")
        assert note.onset_sec == pytest.approx(0.125)
        assert note.duration_sec == pytest.approx(0.25)

    def test_tiny_duration_becomes_one_unit(self):
        """Durations never collapse to zero."""
        (note,) = quantize([Note("C4", 0.0, 0.01)], 120, "1/16")
        assert note.duration_sec == pytest.approx(0.125)

    def test_keeps_pitch_and_velocity(self):
        """Only timing changes."""
        (note,) = quantize([Note("F#3", 0.51, 0.49, velocity=0.4)], 120, "1/8")
        assert note.pitch_name == "F#3"
        assert note.velocity == 0.4

    def test_none_returns_input(self):
        """'none' leaves notes untouched."""
        notes = [Note("C4", 0.13, 0.26), Note("D4", 0.41, 0.2)]
        assert quantize(notes, 120, "none") == tuple(notes)

    def test_idempotent(self):
        """Quantizing twice equals quantizing once."""
        notes = [Note("C4", 0.13, 0.26), Note("D4", 0.41, 0.2), Note("E4", 0.93, 0.07)]
        once = quantize(notes, 97, "1/16")
        twice = quantize(once, 97, "1/16")
        for a, b in zip(once, twice):
            assert a.onset_sec == pytest.approx(b.onset_sec)
            assert a.duration_sec == pytest.approx(b.duration_sec)

    def test_preserves_order(self):
        """Output order matches input order."""
        notes = [Note("C4", 0.0, 0.2), Note("E4", 0.3, 0.2), Note("G4", 0.6, 0.2)]
        assert [n.pitch_name for n in quantize(notes, 120, "1/8")] == ["C4", "E4", "G4"]

    def test_empty(self):
        """No notes → empty tuple."""
        assert quantize([], 120, "1/16") == ()

    def test_unknown_grid_raises(self):
        """Grids outside the supported values raise ValueError."""
        with pytest.raises(ValueError):
            quantize([Note("C4", 0.0, 0.2)], 120, "1/12")

    def test_supported_values(self):
        """The grid menu is fixed."""
        assert QUANTIZE_VALUES == ("none", "1/4", "1/8", "1/16", "1/32")
