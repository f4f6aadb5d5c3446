"""
core/audio/melody.py — Monophonic note segmentation from framed pitch estimates.

The signal is cut into overlapping frames (default 4096 samples, hop 2048).
Each frame yields one observation:

    silence   RMS below the silence threshold
    rest      pitch undetected or outside [80, 2000] Hz
    pitch     a pitch name from core.audio.pitch

Observations drive a two-state machine:

    Idle ──pitch──▶ InNote(pitch, start, rms_total, frames)
    InNote ──same pitch──▶ InNote (extended)
    InNote ──other pitch──▶ emit, InNote(new pitch)
    InNote ──silence/rest──▶ emit, Idle

"emit" closes the note at the current frame time and keeps it only when it
lasted at least min_duration_sec. The open note at the end of the buffer is
closed at the buffer duration.

Usage:
    from core.audio.melody import extract_melody
    extraction = extract_melody(buffer.samples, buffer.sample_rate)
    extraction.notes, extraction.pitch_class_histogram
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.audio.pitch import detect_pitch, frequency_to_pitch_name, pitch_class_of
from core.audio.types import MAX_MELODY_NOTES, MelodyExtraction, Note

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_FRAME_SIZE: int = 4096
DEFAULT_HOP_SIZE: int = 2048

SEGMENT_MIN_HZ: float = 80.0
"""Lowest pitch accepted as a note. Lower detections count as a rest."""

SEGMENT_MAX_HZ: float = 2000.0
"""Highest pitch accepted as a note. Higher detections count as a rest."""

MIN_NOTE_DURATION_SEC: float = 0.05
"""Notes shorter than this are discarded as pitch-tracking artifacts."""

DEFAULT_SILENCE_THRESHOLD: float = 0.03
"""Frame RMS below this is silence. Matches a pitch sensitivity of 70."""

_VELOCITY_GAIN: float = 10.0


# ---------------------------------------------------------------------------
# Segmenter state machine
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Idle:
    """No note is sounding."""


@dataclass(frozen=True)
class InNote:
    """A note is sounding since `start` seconds."""

    pitch: str
    start: float
    rms_total: float
    frames: int


SegmenterState = Idle | InNote

IDLE = Idle()


def _close(state: InNote, time: float, min_duration_sec: float) -> Note | None:
    """Close an open note at `time`; None when it is too short to keep."""
    duration = time - state.start
    if duration < min_duration_sec or duration <= 0:
        return None
    mean_rms = state.rms_total / state.frames
    return Note(
        pitch_name=state.pitch,
        onset_sec=state.start,
        duration_sec=duration,
        velocity=min(1.0, mean_rms * _VELOCITY_GAIN),
    )


def _step(
    state: SegmenterState,
    pitch: str | None,
    time: float,
    rms: float,
    min_duration_sec: float = MIN_NOTE_DURATION_SEC,
) -> tuple[SegmenterState, Note | None]:
    """Advance the segmenter by one frame observation.

    Args:
        state:  Current state.
        pitch:  Pitch name for a pitched frame, None for silence or a rest.
        time:   Frame start time in seconds.
        rms:    Frame RMS.
        min_duration_sec: Shortest note that is emitted.

    Returns:
        (next_state, emitted_note_or_None)
    """
    if isinstance(state, Idle):
        if pitch is None:
            return IDLE, None
        return InNote(pitch=pitch, start=time, rms_total=rms, frames=1), None

    if pitch == state.pitch:
        return (
            InNote(
                pitch=state.pitch,
                start=state.start,
                rms_total=state.rms_total + rms,
                frames=state.frames + 1,
            ),
            None,
        )

    emitted = _close(state, time, min_duration_sec)
    if pitch is None:
        return IDLE, emitted
    return InNote(pitch=pitch, start=time, rms_total=rms, frames=1), emitted


# ---------------------------------------------------------------------------
# Frame classification
# ---------------------------------------------------------------------------


def _frame_rms(frame: np.ndarray) -> float:
    return float(np.sqrt(np.mean(frame * frame)))


def classify_frame(
    frame: np.ndarray,
    sample_rate: int,
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
) -> tuple[str | None, float]:
    """Return (pitch_name_or_None, rms) for one frame."""
    rms = _frame_rms(frame)
    if rms < silence_threshold:
        return None, rms
    hz = detect_pitch(frame, sample_rate)
    if not SEGMENT_MIN_HZ <= hz <= SEGMENT_MAX_HZ:
        return None, rms
    return frequency_to_pitch_name(hz), rms


# ---------------------------------------------------------------------------
# Main melody extraction
# ---------------------------------------------------------------------------


def extract_melody(
    samples: np.ndarray,
    sample_rate: int,
    *,
    frame_size: int = DEFAULT_FRAME_SIZE,
    hop_size: int = DEFAULT_HOP_SIZE,
    silence_threshold: float = DEFAULT_SILENCE_THRESHOLD,
    min_duration_sec: float = MIN_NOTE_DURATION_SEC,
    max_notes: int = MAX_MELODY_NOTES,
) -> MelodyExtraction:
    """Segment a mono signal into notes and a pitch class histogram.

    Pipeline:
        1. Frames start at 0, hop, 2·hop, … while start < len − frame_size
        2. classify_frame() → silence / rest / pitch name
        3. Pitched frames add their RMS to histogram[pitch_class]
        4. _step() folds the observations into notes
        5. The open note is closed at the buffer duration
        6. The first max_notes notes are kept

    Args:
        samples:           Mono signal.
        sample_rate:       Sample rate in Hz.
        frame_size:        Analysis frame length in samples.
        hop_size:          Distance between frame starts in samples.
        silence_threshold: Frame RMS below this is silence.
        min_duration_sec:  Shortest note kept.
        max_notes:         Melody cap.

    Returns:
        MelodyExtraction. Empty notes and a zero histogram when the buffer
        is silent or no longer than one frame.

    Raises:
        ValueError: For non-positive frame/hop sizes or sample rate.
    """
    if frame_size <= 0 or hop_size <= 0:
        raise ValueError(f"frame_size and hop_size must be > 0, got {frame_size}/{hop_size}")
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be > 0, got {sample_rate}")

    x = np.asarray(samples, dtype=np.float64)
    histogram = np.zeros(12, dtype=np.float64)
    notes: list[Note] = []
    state: SegmenterState = IDLE

    for start in range(0, len(x) - frame_size, hop_size):
        pitch, rms = classify_frame(x[start : start + frame_size], sample_rate, silence_threshold)
        if pitch is not None:
            histogram[pitch_class_of(pitch)] += rms
        state, emitted = _step(state, pitch, start / float(sample_rate), rms, min_duration_sec)
        if emitted is not None:
            notes.append(emitted)

    if isinstance(state, InNote):
        emitted = _close(state, len(x) / float(sample_rate), min_duration_sec)
        if emitted is not None:
            notes.append(emitted)

    return MelodyExtraction(notes=tuple(notes[:max_notes]), pitch_class_histogram=histogram)
