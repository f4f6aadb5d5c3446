"""
ingestion/audio_engine.py — High-level orchestrator for the audio→pattern pipeline.

AudioAnalysisEngine wires together the transcription pipeline:

    audio file
        │
        ├─ load_audio()          [ingestion/audio_loader.py — I/O boundary]
        │       ↓
        ├─ analyze_buffer()      [core/audio/pipeline.py — pure DSP + theory]
        │       ↓
        ├─ to_pattern_text()     [core/strudel.py — Strudel code]
        │       ↓
        └─ to_sequence_file()    [ingestion/midi_export.py — MIDI output]

This module is in `ingestion/` because it performs file I/O (audio loading,
MIDI writing) and coordinates side-effectful operations. The core logic is
pure and lives in `core/`.

Usage:
    engine = AudioAnalysisEngine()
    result = engine.analyze_file("/path/to/take.wav")
    print(result.tempo, result.key.label)
    print(engine.render_pattern(result).combined)
    engine.export_midi(result, output_path="/tmp/take.mid")

    items = engine.process_batch(["a.wav", "b.mp3"], stop_event=stop)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from core.audio.pipeline import ProgressCallback, analyze_buffer
from core.audio.types import AnalysisResult, Note, PatternText, SampleBuffer
from core.config import DEFAULT_CONFIG, AnalysisConfig, MidiExportOptions
from core.music_theory.types import Chord
from core.strudel import to_pattern_text
from ingestion.audio_loader import load_audio
from ingestion.midi_export import to_sequence_file

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# BatchItemResult — per-file outcome of process_batch()
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchItemResult:
    """Outcome of one file in a batch.

    Exactly one of (result, error) is set.

    Attributes:
        path:               Input file path as given
        result:             Analysis result, None when the file failed
        pattern:            Rendered Strudel code, None when the file failed
        error:              Failure text, None on success
        processing_time_ms: Wall-clock time for this file in milliseconds
    """

    path: str
    result: AnalysisResult | None = None
    pattern: PatternText | None = None
    error: str | None = None
    processing_time_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


# ---------------------------------------------------------------------------
# AudioAnalysisEngine
# ---------------------------------------------------------------------------


class AudioAnalysisEngine:
    """Orchestrates the audio→Strudel/MIDI transcription pipeline.

    This class is the single integration point between:
      - I/O layer (audio decoding, MIDI file writing)
      - DSP layer (tempo, melody, key)
      - Music theory layer (quantization, chords) and pattern rendering

    All core operations are delegated to pure functions in `core/`.
    librosa is imported lazily on first decode (or injected for testing).

    Example:
        engine = AudioAnalysisEngine()
        result = engine.analyze_file("/path/to/take.mp3")
        print(result.tempo, result.key.label)
    """

    def __init__(self, librosa: Any = None) -> None:
        """Initialise the engine.

        Args:
            librosa: Injected librosa module. Pass a MagicMock in tests to avoid
                     loading the audio stack. None = import lazily on first use.
        """
        self._librosa = librosa

    def _get_librosa(self) -> Any:
        """Return librosa, importing it lazily if not already injected."""
        if self._librosa is None:
            import librosa as _lib  # deferred — allows testing without audio backend

            self._librosa = _lib
        return self._librosa

    # ------------------------------------------------------------------
    # Stage 1 — Decoding
    # ------------------------------------------------------------------

    def load(self, path: str | Path, *, duration: float | None = None) -> SampleBuffer:
        """Decode an audio file into a SampleBuffer.

        Raises:
            FileNotFoundError, ValueError, AudioDecodeError: see load_audio().
        """
        return load_audio(path, duration=duration, librosa=self._get_librosa())

    # ------------------------------------------------------------------
    # Stage 2 — Analysis
    # ------------------------------------------------------------------

    def analyze_buffer(
        self,
        buffer: SampleBuffer,
        config: AnalysisConfig = DEFAULT_CONFIG,
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Run the pure pipeline on an already decoded buffer."""
        result = analyze_buffer(buffer, config, progress=progress)
        logger.info(
            "Analysis complete: %d notes, %d chords, key=%s, tempo=%d BPM",
            len(result.melody),
            len(result.chords),
            result.key.label,
            result.tempo,
        )
        return result

    def analyze_file(
        self,
        path: str | Path,
        config: AnalysisConfig = DEFAULT_CONFIG,
        *,
        progress: ProgressCallback | None = None,
    ) -> AnalysisResult:
        """Decode and analyse one file.

        Reports a "decode" progress stage (5%) before the pipeline stages.

        Raises:
            FileNotFoundError, ValueError, AudioDecodeError: from decoding.
        """
        logger.info("Analysing %s", path)
        buffer = self.load(path)
        if progress is not None:
            progress("decode", 5)
        return self.analyze_buffer(buffer, config, progress=progress)

    # ------------------------------------------------------------------
    # Stage 3 — Rendering
    # ------------------------------------------------------------------

    def render_pattern(self, result: AnalysisResult) -> PatternText:
        """Render an analysis result as Strudel code."""
        return to_pattern_text(result.melody, result.chords, result.tempo, result.time_signature)

    def regenerate_pattern(
        self,
        notes: Sequence[Note],
        chords: Sequence[Chord],
        tempo: float,
        time_signature: str = "4/4",
    ) -> PatternText:
        """Re-render Strudel code after the melody or chords were edited."""
        return to_pattern_text(notes, chords, tempo, time_signature)

    def export_midi(
        self,
        result: AnalysisResult,
        options: MidiExportOptions | None = None,
        *,
        output_path: str | Path | None = None,
    ) -> bytes:
        """Encode a result as MIDI bytes, optionally writing them to output_path.

        When no options are given, the result's own time signature is used.

        Raises:
            OSError: If output_path is not writable.
        """
        if options is None:
            options = MidiExportOptions(time_signature=result.time_signature)
        data = to_sequence_file(result.melody, result.chords, result.tempo, options)
        if output_path is not None:
            Path(output_path).write_bytes(data)
            logger.info("Wrote MIDI file %s (%d bytes)", output_path, len(data))
        return data

    # ------------------------------------------------------------------
    # Batch processing
    # ------------------------------------------------------------------

    def process_batch(
        self,
        paths: Sequence[str | Path],
        config: AnalysisConfig = DEFAULT_CONFIG,
        *,
        stop_event: threading.Event | None = None,
        on_item: Callable[[int, BatchItemResult], None] | None = None,
    ) -> list[BatchItemResult]:
        """Analyse files one after another.

        The stop flag is checked before each file, never inside one file's
        analysis, so a stop request lets the current file finish. A failing
        file is recorded and the batch moves on.

        Args:
            paths:      Files in processing order.
            config:     Analysis parameters shared by every file.
            stop_event: Set it from another thread to stop after the current
                        file.
            on_item:    Called as on_item(index, item) after each file.

        Returns:
            One BatchItemResult per processed file, in input order. Files not
            reached because of a stop request are omitted.
        """
        items: list[BatchItemResult] = []
        total = len(paths)

        for index, path in enumerate(paths):
            if stop_event is not None and stop_event.is_set():
                logger.info("Batch stopped after %d of %d files", index, total)
                break

            t_start = time.monotonic()
            try:
                result = self.analyze_file(path, config)
                pattern = self.render_pattern(result)
            except (OSError, ValueError, RuntimeError) as exc:
                logger.warning("Batch item %d/%d failed (%s): %s", index + 1, total, path, exc)
                item = BatchItemResult(
                    path=str(path),
                    error=str(exc),
                    processing_time_ms=(time.monotonic() - t_start) * 1000.0,
                )
            else:
                item = BatchItemResult(
                    path=str(path),
                    result=result,
                    pattern=pattern,
                    processing_time_ms=(time.monotonic() - t_start) * 1000.0,
                )
                logger.info("Batch item %d/%d done: %s", index + 1, total, path)

            items.append(item)
            if on_item is not None:
                on_item(index, item)

        return items
