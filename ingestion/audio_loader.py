"""
ingestion/audio_loader.py — File I/O boundary for audio loading.

This is the ONLY module in the transcription pipeline that reads audio from
disk. Everything downstream (core/audio/pipeline.py and friends) takes a
pre-loaded SampleBuffer — never file paths.

Usage:
    from ingestion.audio_loader import load_audio
    buffer = load_audio("/path/to/take.wav")
    buffer.samples, buffer.sample_rate
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from core.audio.types import SampleBuffer

logger = logging.getLogger(__name__)

# Supported audio file extensions (must be loadable by librosa / soundfile)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus", ".webm"}
)


class AudioDecodeError(RuntimeError):
    """The decoder could not read an existing, supported file.

    Raised for corrupted, truncated or DRM-protected files. The underlying
    decoder exception is chained as __cause__.
    """


def load_audio(
    path: str | Path,
    *,
    duration: float | None = None,
    sr: int | None = None,
    librosa: Any = None,
) -> SampleBuffer:
    """Load an audio file and return its first channel as a SampleBuffer.

    This is the I/O boundary — the only function in the pipeline that
    touches audio files. The file is decoded at its native sample rate
    unless `sr` is given; multi-channel files keep channel 0 only.

    Args:
        path: Absolute or relative path to an audio file.
              Supported formats: mp3, wav, flac, aiff, ogg, m4a, opus, webm.
        duration: Maximum seconds to load. None loads the entire file.
        sr: Target sample rate in Hz. None preserves the native rate.
        librosa: Injected librosa module (tests pass a MagicMock).
                 None = import lazily.

    Returns:
        SampleBuffer with float64 samples and the decoded sample rate.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: File extension is not a supported audio format.
        AudioDecodeError: librosa/soundfile could not decode the file.
    """
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")

    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )

    if librosa is None:
        import librosa  # deferred to allow testing without audio backend

    try:
        y, loaded_sr = librosa.load(
            file_path,
            sr=sr,
            mono=False,
            duration=duration,
            offset=0.0,
        )
    except Exception as exc:
        raise AudioDecodeError(f"Failed to decode audio file {file_path.name!r}: {exc}") from exc

    buffer = SampleBuffer.from_array(y, int(loaded_sr))
    logger.debug(
        "Decoded %s: %d samples at %d Hz (%.2f s)",
        file_path.name,
        len(buffer.samples),
        buffer.sample_rate,
        buffer.duration_sec,
    )
    return buffer
