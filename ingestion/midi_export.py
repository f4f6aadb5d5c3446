"""
ingestion/midi_export.py — Encode a transcription as a Standard MIDI File using mido.

This module is the binary output boundary of the transcription pipeline:
    audio → melody + chords (core/) → to_sequence_file → .mid bytes

Usage:
    from ingestion.midi_export import to_sequence_file, save_sequence_file

MIDI structure (format 1, two tracks):
    Track 0: set_tempo, time_signature, track_name ("Audio Track")
    Track 1: melody on channel 0, chords on channel 1

Timing:
    ticks(s) = round(s × tempo / 60 × ticks_per_beat)
    A note starts at ticks(onset) and ends max(1, ticks(duration)) later,
    so zero-length notes still produce a note-off after the note-on.
    Events are ordered by absolute tick; at equal ticks every note-off
    precedes every note-on, otherwise insertion order is kept (melody
    before chords, on before off of the same note).

mido writes the chunk headers, running status, variable-length delta times
and the end_of_track meta events.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from pathlib import Path

import mido

from core.audio.pitch import midi_to_name
from core.audio.types import Note
from core.config import DEFAULT_EXPORT_OPTIONS, MidiExportOptions, parse_time_signature
from core.music_theory.types import Chord

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MELODY_CHANNEL: int = 0
"""MIDI channel for melody notes (0-indexed = channel 1 in DAW)."""

CHORD_CHANNEL: int = 1
"""MIDI channel for chord notes (0-indexed = channel 2 in DAW)."""

CHORD_VELOCITY: int = 80


# ---------------------------------------------------------------------------
# Time conversion utilities
# ---------------------------------------------------------------------------


def _sec_to_ticks(
    seconds: float,
    bpm: float,
    ticks_per_beat: int,
) -> int:
    """Convert a time in seconds to MIDI ticks.

    Formula: ticks = seconds × (BPM / 60) × ticks_per_beat

    Args:
        seconds: Time in seconds. Negative values clamp to 0.
        bpm: Tempo in beats per minute.
        ticks_per_beat: MIDI resolution (ticks per quarter note).

    Returns:
        Non-negative integer tick count.
    """
    if seconds < 0:
        return 0
    beats_per_sec = bpm / 60.0
    return max(0, round(seconds * beats_per_sec * ticks_per_beat))


def _bpm_to_tempo_us(bpm: float) -> int:
    """Convert BPM to MIDI tempo (microseconds per beat).

    MIDI represents tempo as microseconds per quarter note.
    120 BPM = 500,000 μs/beat.

    Raises:
        ValueError: If bpm ≤ 0.
    """
    if bpm <= 0:
        raise ValueError(f"tempo must be > 0, got {bpm}")
    return max(1, round(60_000_000.0 / bpm))


def _note_velocity(velocity: float) -> int:
    """0–1 loudness → MIDI velocity, never 0 (a 0-velocity note_on is a note-off)."""
    return max(1, min(127, round(velocity * 127)))


# ---------------------------------------------------------------------------
# Event assembly
# ---------------------------------------------------------------------------

# (absolute_tick, message_type, channel, pitch, velocity)
_Event = tuple[int, str, int, int, int]


def _note_events(
    pitch: int,
    onset_sec: float,
    duration_sec: float,
    velocity: int,
    channel: int,
    bpm: float,
    ticks_per_beat: int,
) -> list[_Event]:
    on_tick = _sec_to_ticks(onset_sec, bpm, ticks_per_beat)
    off_tick = on_tick + max(1, _sec_to_ticks(duration_sec, bpm, ticks_per_beat))
    return [
        (on_tick, "note_on", channel, pitch, velocity),
        (off_tick, "note_off", channel, pitch, 0),
    ]


def _collect_events(
    notes: Sequence[Note],
    chords: Sequence[Chord],
    bpm: float,
    options: MidiExportOptions,
) -> list[_Event]:
    events: list[_Event] = []
    ppq = options.ticks_per_beat

    if options.include_melody:
        for note in notes:
            events.extend(
                _note_events(
                    note.pitch_midi,
                    note.onset_sec,
                    note.duration_sec,
                    _note_velocity(note.velocity),
                    MELODY_CHANNEL,
                    bpm,
                    ppq,
                )
            )

    if options.include_chords:
        for chord in chords:
            for pitch in chord.pitches:
                events.extend(
                    _note_events(
                        pitch,
                        chord.onset_sec,
                        chord.duration_sec,
                        CHORD_VELOCITY,
                        CHORD_CHANNEL,
                        bpm,
                        ppq,
                    )
                )

    # list.sort is stable: ties beyond (tick, off-before-on) keep insertion order
    events.sort(key=lambda e: (e[0], 0 if e[1] == "note_off" else 1))
    return events


# ---------------------------------------------------------------------------
# Primary export functions
# ---------------------------------------------------------------------------


def build_midi_file(
    notes: Sequence[Note],
    chords: Sequence[Chord],
    tempo: float,
    options: MidiExportOptions = DEFAULT_EXPORT_OPTIONS,
) -> mido.MidiFile:
    """Build a two-track MIDI file for a melody and its chords.

    Delta time encoding:
        Absolute tick positions are computed for every event, sorted, then
        converted to deltas from the sorted sequence.

    Args:
        notes:   Melody notes.
        chords:  Chord events.
        tempo:   Tempo in BPM (> 0).
        options: Resolution, stream filters, meter and track name.

    Returns:
        mido.MidiFile (type 1). Empty input still yields both tracks.

    Raises:
        ValueError: If tempo ≤ 0.
    """
    numerator, denominator = parse_time_signature(options.time_signature)
    midi = mido.MidiFile(type=1, ticks_per_beat=options.ticks_per_beat)

    # Track 0: metadata
    meta_track = mido.MidiTrack()
    midi.tracks.append(meta_track)
    meta_track.append(mido.MetaMessage("set_tempo", tempo=_bpm_to_tempo_us(tempo), time=0))
    meta_track.append(
        mido.MetaMessage(
            "time_signature",
            numerator=numerator,
            denominator=denominator,
            clocks_per_click=24,
            notated_32nd_notes_per_beat=8,
            time=0,
        )
    )
    meta_track.append(mido.MetaMessage("track_name", name=options.track_name, time=0))
    meta_track.append(mido.MetaMessage("end_of_track", time=0))

    # Track 1: note events
    note_track = mido.MidiTrack()
    midi.tracks.append(note_track)

    current_tick = 0
    for abs_tick, msg_type, channel, pitch, velocity in _collect_events(notes, chords, tempo, options):
        note_track.append(
            mido.Message(
                msg_type,
                channel=channel,
                note=pitch,
                velocity=velocity,
                time=abs_tick - current_tick,
            )
        )
        current_tick = abs_tick

    note_track.append(mido.MetaMessage("end_of_track", time=0))
    return midi


def to_sequence_file(
    notes: Sequence[Note],
    chords: Sequence[Chord],
    tempo: float,
    options: MidiExportOptions = DEFAULT_EXPORT_OPTIONS,
) -> bytes:
    """Encode a melody and chords as Standard MIDI File bytes.

    Deterministic: identical input always yields identical bytes.
    """
    midi = build_midi_file(notes, chords, tempo, options)
    buffer = io.BytesIO()
    midi.save(file=buffer)
    data = buffer.getvalue()
    logger.debug(
        "Encoded MIDI: %d notes, %d chords, %d bytes at %s BPM",
        len(notes),
        len(chords),
        len(data),
        tempo,
    )
    return data


def save_sequence_file(
    path: str | Path,
    notes: Sequence[Note],
    chords: Sequence[Chord],
    tempo: float,
    options: MidiExportOptions = DEFAULT_EXPORT_OPTIONS,
) -> Path:
    """Write MIDI bytes to `path` and return it as a Path.

    Raises:
        OSError: If path is not writable (the parent directory must exist).
    """
    out = Path(path)
    out.write_bytes(to_sequence_file(notes, chords, tempo, options))
    logger.info("Wrote MIDI file %s", out)
    return out


# ---------------------------------------------------------------------------
# Round-trip parser (MIDI → Notes)
# ---------------------------------------------------------------------------


def midi_to_notes(data: bytes | mido.MidiFile, channel: int = MELODY_CHANNEL) -> list[Note]:
    """Parse a MIDI file back into Note objects for one channel.

    Useful for round-trip testing and verification.

    Parsing logic:
        - Reads the tempo from Track 0 (120 BPM when absent)
        - Walks Track 1 accumulating delta times into absolute ticks
        - Matches note_on events to the next note_off for the same pitch
        - Converts ticks back to seconds and velocity back to [0, 1]

    Args:
        data:    MIDI bytes or an already-parsed mido.MidiFile.
        channel: 0-based channel to read (0 = melody, 1 = chords).

    Returns:
        List of Note objects sorted by onset_sec. Empty list if the channel
        has no notes.
    """
    midi_file = data if isinstance(data, mido.MidiFile) else mido.MidiFile(file=io.BytesIO(data))

    tempo_us = 500_000
    if midi_file.tracks:
        for msg in midi_file.tracks[0]:
            if msg.type == "set_tempo":
                tempo_us = msg.tempo
                break

    bpm = 60_000_000.0 / tempo_us
    ticks_per_beat = midi_file.ticks_per_beat

    def ticks_to_sec(ticks: int) -> float:
        return ticks / ticks_per_beat / (bpm / 60.0)

    if len(midi_file.tracks) < 2:
        return []

    abs_tick = 0
    # pitch → (on_tick, velocity)
    pending: dict[int, tuple[int, int]] = {}
    notes: list[Note] = []

    for msg in midi_file.tracks[1]:
        abs_tick += msg.time
        if msg.type not in ("note_on", "note_off") or msg.channel != channel:
            continue

        if msg.type == "note_on" and msg.velocity > 0:
            pending[msg.note] = (abs_tick, msg.velocity)
        elif msg.note in pending:
            on_tick, velocity = pending.pop(msg.note)
            notes.append(
                Note(
                    pitch_name=midi_to_name(msg.note),
                    onset_sec=ticks_to_sec(on_tick),
                    duration_sec=max(0.001, ticks_to_sec(abs_tick - on_tick)),
                    velocity=velocity / 127.0,
                )
            )

    return sorted(notes, key=lambda n: n.onset_sec)
