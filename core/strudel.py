"""
core/strudel.py — Render a transcription as Strudel pattern code.

Output shape (tempo 120, 4/4):

    // Tempo: 120 BPM, Time Signature: 4/4
    stack(
      note("c4 e4*2 g4").sound("piano"),
      note("[c4,e4,g4]*4 [a4,c5,e5]*4").sound("piano")
    ).cpm(30)

Durations are expressed relative to one beat of the time signature:
within 0.1 beats of ½, 1, 2 or 4 beats the token gets "*0.5", nothing,
"*2" or "*4"; any other length is written without a suffix. The text is a
lossy sketch for a live-coding session; the MIDI export carries exact timing.

No I/O. Pure string formatting.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from core.audio.pitch import parse_pitch_name
from core.audio.types import Note, PatternText
from core.config import parse_time_signature
from core.music_theory.types import Chord

REST_TOKEN: str = "~"
DEFAULT_SOUND: str = "piano"

# (beats, suffix) checked in order; first band within tolerance wins
_DURATION_SUFFIXES: tuple[tuple[float, str], ...] = (
    (0.5, "*0.5"),
    (1.0, ""),
    (2.0, "*2"),
    (4.0, "*4"),
)
_DURATION_TOLERANCE: float = 0.1


def pitch_token(pitch_name: str) -> str:
    """Strudel spelling of a pitch name: 'C#4' → 'cs4', 'Bb3' → 'bf3', 'A4' → 'a4'."""
    name = pitch_name.strip()
    parse_pitch_name(name)
    letter, rest = name[0].lower(), name[1:]
    if rest[:1] == "#":
        return f"{letter}s{rest[1:]}"
    if rest[:1] == "b":
        return f"{letter}f{rest[1:]}"
    return f"{letter}{rest}"


def duration_suffix(duration_sec: float, beat_sec: float) -> str:
    """Multiplier suffix for a duration, or '' when no band matches."""
    beats = duration_sec / beat_sec
    for target, suffix in _DURATION_SUFFIXES:
        if abs(beats - target) < _DURATION_TOLERANCE:
            return suffix
    return ""


def _wrap(body: str, sound: str) -> str:
    return f'note("{body or REST_TOKEN}").sound("{sound}")'


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def melody_pattern(
    notes: Sequence[Note],
    beat_sec: float,
    *,
    sound: str = DEFAULT_SOUND,
) -> str:
    tokens = [pitch_token(n.pitch_name) + duration_suffix(n.duration_sec, beat_sec) for n in notes]
    return _wrap(" ".join(tokens), sound)


def chord_pattern(
    chords: Sequence[Chord],
    beat_sec: float,
    *,
    sound: str = DEFAULT_SOUND,
) -> str:
    tokens = [
        "[" + ",".join(pitch_token(p) for p in c.notes) + "]" + duration_suffix(c.duration_sec, beat_sec)
        for c in chords
    ]
    return _wrap(" ".join(tokens), sound)


def to_pattern_text(
    notes: Sequence[Note],
    chords: Sequence[Chord],
    tempo: float,
    time_signature: str = "4/4",
    *,
    sound: str = DEFAULT_SOUND,
) -> PatternText:
    """Render melody and chords as Strudel pattern code.

    Args:
        notes:          Melody notes in playback order.
        chords:         Chords in playback order.
        tempo:          Tempo in BPM (> 0).
        time_signature: Meter; its denominator sets the beat unit.
        sound:          Strudel sound name for both voices.

    Returns:
        PatternText with the melody expression, the chord expression and the
        combined stack() program. Empty voices render as a rest.

    Raises:
        ValueError: If tempo ≤ 0 or the time signature is malformed.
    """
    if tempo <= 0:
        raise ValueError(f"tempo must be > 0, got {tempo}")
    _, denominator = parse_time_signature(time_signature)
    beat_sec = (60.0 / tempo) * (4.0 / denominator)

    melody = melody_pattern(notes, beat_sec, sound=sound)
    chord_text = chord_pattern(chords, beat_sec, sound=sound)
    combined = (
        f"// Tempo: {tempo} BPM, Time Signature: {time_signature}\n"
        f"stack(\n"
        f"  {melody},\n"
        f"  {chord_text}\n"
        f").cpm({_round_half_up(tempo / 4)})"
    )
    return PatternText(melody=melody, chords=chord_text, combined=combined)
