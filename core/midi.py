"""
core/midi.py — Pure chord-name resolution to MIDI pitches and pitch names.

Converts chord labels (e.g. "Am", "C", "F#dim") into root-position triads.
No I/O, no side effects.

Design:
    - Root spelling is parsed by core.audio.pitch, so "Bb" and "A#" resolve
      to the same pitches the melody uses
    - Voicing: root position triad, root in octave 4 (middle C = 60)
    - Qualities: major (bare root), minor ("m") and diminished ("dim")

Used by:
    core/music_theory/harmony.py — chord events for a progression
    core/audio/edits.py          — chord appended by the editor
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from core.audio.pitch import midi_to_name, name_to_midi

_CHORD_NAME_RE = re.compile(r"^([A-Ga-g][#b]?)(.*)$")

# Chord quality suffix → intervals in semitones from root
_CHORD_INTERVALS: dict[str, tuple[int, ...]] = {
    "maj": (0, 4, 7),
    "m": (0, 3, 7),
    "dim": (0, 3, 6),
}


@dataclass(frozen=True)
class ChordVoicing:
    """A chord label resolved to MIDI pitches."""

    name: str  # chord label as given, e.g. "Am"
    root: str  # e.g. "A"
    quality: str  # "maj", "m" or "dim"
    pitches: tuple[int, ...]  # ascending

    @property
    def pitch_names(self) -> tuple[str, ...]:
        """Sharp-spelled pitch names, e.g. ('A4', 'C5', 'E5')."""
        return tuple(midi_to_name(p) for p in self.pitches)


def parse_chord_name(chord_name: str) -> tuple[str, str]:
    """
    Split a chord label into (root, quality).

    Args:
        chord_name: e.g. "Am", "C#", "Bb", "Bdim"

    Returns:
        (root, quality), with quality "maj" for a bare root

    Raises:
        ValueError: if the label does not start with a note letter
    """
    match = _CHORD_NAME_RE.match(chord_name.strip())
    if match is None:
        raise ValueError(f"Cannot parse chord name {chord_name!r}: unknown root note")
    root, quality = match.groups()
    return root[0].upper() + root[1:], quality or "maj"


def resolve_chord(chord_name: str, octave: int = 4) -> ChordVoicing:
    """
    Resolve a chord label to a root-position triad.

    Args:
        chord_name: e.g. "Am", "F", "C#m", "Bdim"
        octave: octave of the root (4 = middle C octave)

    Returns:
        ChordVoicing; tones above MIDI 127 are dropped

    Raises:
        ValueError: for an unrecognized root or quality
    """
    root, quality = parse_chord_name(chord_name)
    intervals = _CHORD_INTERVALS.get(quality)
    if intervals is None:
        raise ValueError(
            f"Unknown chord quality {quality!r} in {chord_name!r}. "
            f"Valid: {sorted(_CHORD_INTERVALS)}"
        )
    root_midi = name_to_midi(f"{root}{octave}")
    pitches = tuple(root_midi + i for i in intervals if root_midi + i <= 127)
    return ChordVoicing(name=chord_name, root=root, quality=quality, pitches=pitches)


def chord_pitch_names(chord_name: str, octave: int = 4) -> tuple[str, ...]:
    """Shorthand for resolve_chord(...).pitch_names, e.g. "C" → ('C4', 'E4', 'G4')."""
    return resolve_chord(chord_name, octave=octave).pitch_names
