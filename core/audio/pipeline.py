"""
core/audio/pipeline.py — One pure analysis pipeline for single files and batches.

Stages (each reports progress when a callback is given):

    waveform   extract_waveform()            display summary
    tempo      detect_tempo() or fold_tempo(config.target_tempo)
    melody     extract_melody()              notes + pitch class histogram
    key        detect_key() or parse_key(config.target_key)
    quantize   quantize() on config.quantize_value (or "none")
    chords     generate_chords() on the quantized melody
    complete

The progress callback is observational only; results never depend on it.
"""

from __future__ import annotations

from collections.abc import Callable

from core.audio.features import detect_key, detect_tempo, extract_waveform, fold_tempo
from core.audio.melody import extract_melody
from core.audio.types import AnalysisResult, SampleBuffer, parse_key
from core.config import DEFAULT_CONFIG, AnalysisConfig
from core.music_theory.harmony import generate_chords
from core.music_theory.quantize import quantize

ProgressCallback = Callable[[str, int], None]
"""progress(stage, percent) — stage name and overall completion 0–100."""

# stage → percent reported when the stage finishes
STAGE_PROGRESS: dict[str, int] = {
    "waveform": 10,
    "tempo": 25,
    "melody": 60,
    "key": 70,
    "quantize": 80,
    "chords": 95,
    "complete": 100,
}

__all__ = ["analyze_buffer", "extract_waveform", "ProgressCallback", "STAGE_PROGRESS"]


def _report(progress: ProgressCallback | None, stage: str) -> None:
    if progress is not None:
        progress(stage, STAGE_PROGRESS[stage])


def analyze_buffer(
    buffer: SampleBuffer,
    config: AnalysisConfig = DEFAULT_CONFIG,
    *,
    progress: ProgressCallback | None = None,
) -> AnalysisResult:
    """Run the full transcription on a decoded buffer.

    Args:
        buffer:   Mono samples and sample rate.
        config:   Analysis parameters.
        progress: Optional progress(stage, percent) callback.

    Returns:
        AnalysisResult. Degenerate signals (empty, silent) produce an empty
        melody, no chords, 120 BPM and C major rather than an error.
    """
    samples, sr = buffer.samples, buffer.sample_rate

    waveform = extract_waveform(samples)
    _report(progress, "waveform")

    if config.auto_detect_tempo:
        tempo = detect_tempo(samples, sr)
    else:
        tempo = fold_tempo(config.target_tempo)
    _report(progress, "tempo")

    extraction = extract_melody(
        samples,
        sr,
        frame_size=config.frame_size,
        hop_size=config.hop_size,
        silence_threshold=config.silence_threshold,
        min_duration_sec=config.min_note_duration_sec,
    )
    _report(progress, "melody")

    if config.auto_detect_key:
        key = detect_key(extraction.pitch_class_histogram)
    else:
        key = parse_key(config.target_key)
    _report(progress, "key")

    grid = config.quantize_value if config.quantize_notes else "none"
    melody = quantize(extraction.notes, tempo, grid)
    _report(progress, "quantize")

    chords = generate_chords(
        melody,
        key,
        samples=samples,
        sample_rate=sr,
        duration_sec=buffer.duration_sec,
        strategy=config.chord_strategy,
    )
    _report(progress, "chords")

    result = AnalysisResult(
        melody=melody,
        chords=chords,
        key=key,
        tempo=tempo,
        time_signature=config.time_signature,
        sample_rate=sr,
        duration_sec=buffer.duration_sec,
        waveform=waveform,
    )
    _report(progress, "complete")
    return result
