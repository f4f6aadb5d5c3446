"""
Tests for core/audio/pitch.py — autocorrelation pitch detection and naming.

Tests cover:
    - detect_pitch() on sines, silence and frames too short to analyse
    - hz_to_midi / midi_to_name / frequency_to_pitch_name conventions
    - name_to_midi parsing of scientific and Strudel spellings
    - Round trip name → Hz → name across the detectable range
"""

import numpy as np
import pytest

from core.audio.pitch import (
    detect_pitch,
    frequency_to_pitch_name,
    hz_to_midi,
    midi_to_hz,
    midi_to_name,
    name_to_midi,
    parse_pitch_name,
    pitch_class_of,
    transpose_pitch_name,
)

from conftest import SR, make_sine

# ---------------------------------------------------------------------------
# detect_pitch
# ---------------------------------------------------------------------------


class TestDetectPitch:
    def test_a4_sine(self):
        """A 440 Hz frame is detected within a semitone."""
        hz = detect_pitch(make_sine(440.0, 4096 / SR), SR)
        assert frequency_to_pitch_name(hz) == "A4"

    def test_c4_sine(self):
        """A 261.63 Hz frame names as C4."""
        hz = detect_pitch(make_sine(261.63, 4096 / SR), SR)
        assert frequency_to_pitch_name(hz) == "C4"

    def test_silence_returns_zero(self):
        """No lag has positive correlation in silence."""
        assert detect_pitch(np.zeros(4096), SR) == 0.0

    def test_short_frame_returns_zero(self):
        """A frame shorter than twice the minimum lag has no candidates."""
        assert detect_pitch(make_sine(440.0, 60 / SR), SR) == 0.0

    def test_result_is_sr_over_integer_lag(self):
        """The estimate is sample_rate / lag for an integer lag."""
        hz = detect_pitch(make_sine(200.0, 0.128, sr=8000), 8000)
        assert hz == pytest.approx(8000 / 40)

    def test_returns_float(self):
        """Return type is float."""
        assert isinstance(detect_pitch(make_sine(440.0, 0.1), SR), float)

    @pytest.mark.parametrize("frame_size", [2048, 4096])
    @pytest.mark.parametrize("midi", range(40, 84))
    def test_named_pitch_sweep(self, midi, frame_size):
        """Every pitch from E2 to B5 names correctly on both frame sizes."""
        frame = make_sine(midi_to_hz(midi), frame_size / SR)
        assert frequency_to_pitch_name(detect_pitch(frame, SR)) == midi_to_name(midi)

    def test_low_note_on_short_frame(self):
        """G2 on a 2048-sample frame is not mistaken for a short-lag pitch."""
        hz = detect_pitch(make_sine(98.0, 2048 / SR), SR)
        assert frequency_to_pitch_name(hz) == "G2"

    def test_period_multiple_does_not_win(self):
        """A4 on a 4096-sample frame reports the period, not four periods."""
        hz = detect_pitch(make_sine(440.0, 4096 / SR), SR)
        assert hz == pytest.approx(SR / 100)


# ---------------------------------------------------------------------------
# Naming
# ---------------------------------------------------------------------------


class TestHzToMidi:
    def test_a4_is_69(self):
        """A4 = 440 Hz = MIDI 69 by definition."""
        assert hz_to_midi(440.0) == 69

    def test_c4_is_60(self):
        """C4 = 261.63 Hz = MIDI 60."""
        assert hz_to_midi(261.63) == 60

    def test_raises_on_zero_hz(self):
        """Hz = 0 raises ValueError."""
        with pytest.raises(ValueError, match="Hz must be > 0"):
            hz_to_midi(0.0)

    def test_clamps_to_127(self):
        """Very high frequency is clamped to 127."""
        assert hz_to_midi(100000.0) == 127


class TestMidiToName:
    def test_a4(self):
        """MIDI 69 → 'A4'."""
        assert midi_to_name(69) == "A4"

    def test_c4(self):
        """MIDI 60 → 'C4'."""
        assert midi_to_name(60) == "C4"

    def test_sharp(self):
        """MIDI 61 → 'C#4' (sharps, never flats)."""
        assert midi_to_name(61) == "C#4"

    def test_b3_octave_boundary(self):
        """MIDI 59 → 'B3' — the octave number changes at C."""
        assert midi_to_name(59) == "B3"


class TestFrequencyToPitchName:
    def test_440_is_a4(self):
        """440 Hz → 'A4'."""
        assert frequency_to_pitch_name(440.0) == "A4"

    def test_nearest_semitone(self):
        """450 Hz is closer to A4 than A#4."""
        assert frequency_to_pitch_name(450.0) == "A4"

    def test_880_is_a5(self):
        """One octave up → 'A5'."""
        assert frequency_to_pitch_name(880.0) == "A5"


class TestNameToMidi:
    @pytest.mark.parametrize(
        "name,expected",
        [("C4", 60), ("A4", 69), ("C#4", 61), ("Db4", 61), ("cs4", 61), ("df4", 61), ("Bb3", 58)],
    )
    def test_spellings(self, name, expected):
        """Scientific and Strudel spellings parse to the same MIDI number."""
        assert name_to_midi(name) == expected

    def test_b_sharp_wraps_octave(self):
        """B#3 is C4."""
        assert name_to_midi("B#3") == 60

    def test_c_flat_wraps_octave(self):
        """Cb4 is B3."""
        assert name_to_midi("Cb4") == 59

    def test_unparseable_raises(self):
        """Garbage raises ValueError."""
        with pytest.raises(ValueError, match="Cannot parse pitch name"):
            name_to_midi("H2")

    def test_out_of_range_raises(self):
        """G#9 is above MIDI 127."""
        with pytest.raises(ValueError, match="outside the MIDI range"):
            name_to_midi("G#9")


class TestHelpers:
    def test_parse_pitch_name(self):
        """'F#2' → (6, 2)."""
        assert parse_pitch_name("F#2") == (6, 2)

    def test_pitch_class_of(self):
        """'E5' → 4."""
        assert pitch_class_of("E5") == 4

    def test_transpose_up(self):
        """B3 + 1 semitone → C4."""
        assert transpose_pitch_name("B3", 1) == "C4"

    def test_transpose_respells_with_sharps(self):
        """Bb3 + 0 is respelled A#3."""
        assert transpose_pitch_name("Bb3", 0) == "A#3"


# ---------------------------------------------------------------------------
# Round trip
# ---------------------------------------------------------------------------


class TestRoundTrip:
    @pytest.mark.parametrize("midi", range(hz_to_midi(80.0) + 1, hz_to_midi(1000.0)))
    def test_name_hz_name(self, midi):
        """Every named pitch in [80, 1000] Hz maps back to its own name."""
        name = midi_to_name(midi)
        assert frequency_to_pitch_name(midi_to_hz(name_to_midi(name))) == name
