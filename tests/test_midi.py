"""
Tests for core/midi.py — chord-name resolution.

Pure function tests — no I/O.
"""

import pytest

from core.midi import ChordVoicing, chord_pitch_names, parse_chord_name, resolve_chord


class TestParseChordName:
    def test_bare_root_is_major(self):
        """'C' → ('C', 'maj')."""
        assert parse_chord_name("C") == ("C", "maj")

    def test_minor(self):
        """'Am' → ('A', 'm')."""
        assert parse_chord_name("Am") == ("A", "m")

    def test_two_char_root(self):
        """'F#dim' → ('F#', 'dim')."""
        assert parse_chord_name("F#dim") == ("F#", "dim")

    def test_flat_root(self):
        """'Bbm' → ('Bb', 'm')."""
        assert parse_chord_name("Bbm") == ("Bb", "m")

    def test_unknown_root_raises(self):
        """An unrecognized root raises ValueError."""
        with pytest.raises(ValueError, match="unknown root"):
            parse_chord_name("Hm")


class TestResolveChord:
    def test_c_major_at_middle_c(self):
        """C → C4 E4 G4 = (60, 64, 67)."""
        voicing = resolve_chord("C")
        assert isinstance(voicing, ChordVoicing)
        assert voicing.pitches == (60, 64, 67)

    def test_a_minor(self):
        """Am → (69, 72, 76)."""
        assert resolve_chord("Am").pitches == (69, 72, 76)

    def test_diminished(self):
        """Bdim → (71, 74, 77)."""
        assert resolve_chord("Bdim").pitches == (71, 74, 77)

    def test_octave_argument(self):
        """octave=3 shifts down 12 semitones."""
        assert resolve_chord("C", octave=3).pitches == (48, 52, 55)

    def test_pitches_ascending(self):
        """Root position is ascending."""
        pitches = resolve_chord("G#m").pitches
        assert list(pitches) == sorted(pitches)

    def test_unknown_quality_raises(self):
        """Only major, minor and diminished triads are known."""
        with pytest.raises(ValueError, match="Unknown chord quality"):
            resolve_chord("Cmaj9")


class TestChordPitchNames:
    def test_c_major(self):
        """'C' → ('C4', 'E4', 'G4')."""
        assert chord_pitch_names("C") == ("C4", "E4", "G4")

    def test_am_crosses_octave(self):
        """'Am' → ('A4', 'C5', 'E5')."""
        assert chord_pitch_names("Am") == ("A4", "C5", "E5")

    def test_flat_root_spelled_with_sharps(self):
        """'Bb' → ('A#4', 'D5', 'F5')."""
        assert chord_pitch_names("Bb") == ("A#4", "D5", "F5")
