#!/usr/bin/env python
"""Audio → Strudel / MIDI transcription — command-line runner.

Usage
-----
    # Transcribe one take with detected tempo and key
    python scripts/transcribe_audio.py take.wav

    # Several files, outputs next to each other in out/
    python scripts/transcribe_audio.py a.wav b.mp3 --out-dir out

    # Fixed tempo and key, 6/8, eighth-note grid
    python scripts/transcribe_audio.py take.wav --tempo 96 --key Am \
        --time-signature 6/8 --quantize 1/8

    # Short frames for fast passages, chords from signal energy
    python scripts/transcribe_audio.py take.wav --fine --chords energy

For every input FILE the runner writes FILE-stem.strudel.js (the combined
pattern) and FILE-stem.mid.

Exit codes
----------
    0  — every file transcribed
    2  — at least one file failed (the others are still written)
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

# Add project root to sys.path
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import DEFAULT_CONFIG, FINE_RESOLUTION_CONFIG, AnalysisConfig  # noqa: E402
from core.music_theory.harmony import CHORD_STRATEGIES  # noqa: E402
from core.music_theory.quantize import QUANTIZE_VALUES  # noqa: E402
from ingestion.audio_engine import AudioAnalysisEngine, BatchItemResult  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Transcribe audio into Strudel patterns and MIDI")
    p.add_argument("files", nargs="+", type=Path, metavar="FILE", help="Audio files to transcribe")
    p.add_argument(
        "--out-dir",
        type=Path,
        default=None,
        help="Directory for outputs (default: next to each input file)",
    )
    p.add_argument(
        "--tempo",
        type=float,
        default=None,
        help="Fixed tempo in BPM instead of onset detection",
    )
    p.add_argument(
        "--key",
        default=None,
        help="Fixed key instead of detection, e.g. C, Am, F#m, Bb",
    )
    p.add_argument(
        "--time-signature",
        default=DEFAULT_CONFIG.time_signature,
        help="Meter for the outputs (default: 4/4)",
    )
    p.add_argument(
        "--quantize",
        choices=QUANTIZE_VALUES,
        default=DEFAULT_CONFIG.quantize_value,
        help="Quantize grid, or 'none' (default: 1/16)",
    )
    p.add_argument(
        "--sensitivity",
        type=float,
        default=DEFAULT_CONFIG.pitch_sensitivity,
        help="Pitch sensitivity 0-100; higher picks up quieter notes (default: 70)",
    )
    p.add_argument(
        "--min-note-ms",
        type=float,
        default=DEFAULT_CONFIG.min_note_duration_ms,
        help="Shortest note kept, in milliseconds (default: 50)",
    )
    p.add_argument(
        "--fine",
        action="store_true",
        help="Use 2048/512 frames instead of 4096/2048",
    )
    p.add_argument(
        "--chords",
        choices=sorted(CHORD_STRATEGIES),
        default=DEFAULT_CONFIG.chord_strategy,
        help="Chord strategy (default: progression)",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return p.parse_args(argv)


def build_config(args: argparse.Namespace) -> AnalysisConfig:
    """Translate CLI flags into an AnalysisConfig.

    Raises:
        ValueError: For invalid flag values (bad key, meter, sensitivity).
    """
    base = FINE_RESOLUTION_CONFIG if args.fine else DEFAULT_CONFIG
    return dataclasses.replace(
        base,
        auto_detect_tempo=args.tempo is None,
        target_tempo=args.tempo if args.tempo is not None else base.target_tempo,
        auto_detect_key=args.key is None,
        target_key=args.key if args.key is not None else base.target_key,
        time_signature=args.time_signature,
        quantize_notes=args.quantize != "none",
        quantize_value=args.quantize,
        pitch_sensitivity=args.sensitivity,
        min_note_duration_ms=args.min_note_ms,
        chord_strategy=args.chords,
    )


def write_outputs(
    engine: AudioAnalysisEngine,
    item: BatchItemResult,
    out_dir: Path | None,
) -> tuple[Path, Path]:
    """Write <stem>.strudel.js and <stem>.mid for a successful item.

    Raises:
        ValueError: If the item has no result (a failed batch item).
        OSError: If the output directory is not writable.
    """
    if item.result is None or item.pattern is None:
        raise ValueError(f"No transcription to write for {item.path}")
    source = Path(item.path)
    target_dir = out_dir if out_dir is not None else source.parent
    target_dir.mkdir(parents=True, exist_ok=True)

    pattern_path = target_dir / f"{source.stem}.strudel.js"
    pattern_path.write_text(item.pattern.combined + "\n", encoding="utf-8")
    midi_path = target_dir / f"{source.stem}.mid"
    engine.export_midi(item.result, output_path=midi_path)
    return pattern_path, midi_path


def main(argv: list[str] | None = None, engine: AudioAnalysisEngine | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = build_config(args)
    except ValueError as exc:
        print(f"  ERROR: {exc}")
        return 2

    if engine is None:
        engine = AudioAnalysisEngine()
    items = engine.process_batch([str(f) for f in args.files], config)

    failures = 0
    print()
    for item in items:
        if not item.ok:
            failures += 1
            print(f"  ✗  {item.path}: {item.error}")
            continue
        try:
            pattern_path, midi_path = write_outputs(engine, item, args.out_dir)
        except OSError as exc:
            failures += 1
            print(f"  ✗  {item.path}: {exc}")
            continue
        result = item.result
        print(
            f"  ✓  {item.path}: {len(result.melody)} notes, {len(result.chords)} chords, "
            f"key {result.key.label}, {result.tempo} BPM → {pattern_path.name}, {midi_path.name}"
        )

    print()
    print(f"  {len(items) - failures}/{len(args.files)} files transcribed")
    return 2 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
