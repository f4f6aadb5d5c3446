"""
Configuration dataclasses for the transcription pipeline.

These immutable config objects decouple parameter passing from function
signatures, making it easy to define standard configurations and reuse them
across single-file and batch runs.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any

from core.audio.types import parse_key
from core.music_theory.harmony import CHORD_STRATEGIES
from core.music_theory.quantize import QUANTIZE_VALUES

# camelCase parameter names of the analysis form → field names
_PARAM_ALIASES: dict[str, str] = {
    "autoDetectTempo": "auto_detect_tempo",
    "targetTempo": "target_tempo",
    "autoDetectKey": "auto_detect_key",
    "targetKey": "target_key",
    "timeSignature": "time_signature",
    "minNoteDuration": "min_note_duration_ms",
    "pitchSensitivity": "pitch_sensitivity",
    "quantizeNotes": "quantize_notes",
    "quantizeValue": "quantize_value",
    "frameSize": "frame_size",
    "hopSize": "hop_size",
    "chordStrategy": "chord_strategy",
}


def parse_time_signature(time_signature: str) -> tuple[int, int]:
    """
    Parse "6/8" into (6, 8).

    Raises:
        ValueError: if the text is malformed, the numerator is not positive,
            or the denominator is not a power of two.
    """
    try:
        numerator_text, denominator_text = time_signature.strip().split("/")
        numerator, denominator = int(numerator_text), int(denominator_text)
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid time signature {time_signature!r}, expected e.g. '4/4'") from exc
    if numerator <= 0:
        raise ValueError(f"Time signature numerator must be positive, got {numerator}")
    if denominator <= 0 or denominator & (denominator - 1):
        raise ValueError(f"Time signature denominator must be a power of two, got {denominator}")
    return numerator, denominator


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configuration for one transcription run.

    Mirrors the analysis parameter panel: tempo and key can be detected or
    fixed, and melody segmentation is tuned by sensitivity and minimum note
    length.

    Attributes:
        auto_detect_tempo: Estimate tempo from onsets. When False,
            target_tempo is used (octave-folded into [60, 200]).
        target_tempo: Tempo in BPM used when auto_detect_tempo is False.
        auto_detect_key: Estimate key from the melody. When False,
            target_key is parsed instead.
        target_key: Key label such as "C", "Am", "F#m", "Bb".
        time_signature: Meter for serialization, e.g. "4/4", "6/8".
        min_note_duration_ms: Shortest note kept by the segmenter.
        pitch_sensitivity: 0–100. Higher values lower the silence
            threshold, so quieter frames are treated as notes.
        quantize_notes: Snap the melody to quantize_value.
        quantize_value: "none", "1/4", "1/8", "1/16" or "1/32".
        frame_size: Segmenter frame length in samples.
        hop_size: Segmenter hop in samples.
        chord_strategy: "progression" (key template) or "energy" (signal).

    Example:
        >>> config = AnalysisConfig(auto_detect_tempo=False, target_tempo=90)
        >>> result = analyze_buffer(buffer, config)
    """

    auto_detect_tempo: bool = True
    target_tempo: float = 120
    auto_detect_key: bool = True
    target_key: str = "C"
    time_signature: str = "4/4"
    min_note_duration_ms: float = 50
    pitch_sensitivity: float = 70
    quantize_notes: bool = True
    quantize_value: str = "1/16"
    frame_size: int = 4096
    hop_size: int = 2048
    chord_strategy: str = "progression"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.target_tempo <= 0:
            raise ValueError(f"target_tempo must be positive, got {self.target_tempo}")
        parse_key(self.target_key)
        parse_time_signature(self.time_signature)
        if self.min_note_duration_ms < 0:
            raise ValueError(
                f"min_note_duration_ms must be non-negative, got {self.min_note_duration_ms}"
            )
        if not 0 <= self.pitch_sensitivity <= 100:
            raise ValueError(f"pitch_sensitivity must be in [0, 100], got {self.pitch_sensitivity}")
        if self.quantize_value not in QUANTIZE_VALUES:
            raise ValueError(
                f"Unknown quantize_value {self.quantize_value!r}, "
                f"valid options: {list(QUANTIZE_VALUES)}"
            )
        if self.frame_size <= 0:
            raise ValueError(f"frame_size must be positive, got {self.frame_size}")
        if not 0 < self.hop_size <= self.frame_size:
            raise ValueError(
                f"hop_size must be in (0, frame_size={self.frame_size}], got {self.hop_size}"
            )
        if self.chord_strategy not in CHORD_STRATEGIES:
            raise ValueError(
                f"Unknown chord_strategy {self.chord_strategy!r}, "
                f"valid options: {sorted(CHORD_STRATEGIES)}"
            )

    @property
    def silence_threshold(self) -> float:
        """Frame RMS threshold: (100 − sensitivity) / 1000. 70 → 0.03."""
        return (100 - self.pitch_sensitivity) / 1000

    @property
    def min_note_duration_sec(self) -> float:
        return self.min_note_duration_ms / 1000

    @property
    def time_signature_parts(self) -> tuple[int, int]:
        return parse_time_signature(self.time_signature)

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "AnalysisConfig":
        """
        Build a config from a parameter mapping.

        Keys may use the form's camelCase names ("autoDetectTempo",
        "quantizeValue", …) or the field names. Missing keys keep defaults.

        Raises:
            ValueError: for unknown keys or invalid values.
        """
        valid = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for name, value in params.items():
            field_name = _PARAM_ALIASES.get(name, name)
            if field_name not in valid:
                raise ValueError(f"Unknown analysis parameter {name!r}")
            kwargs[field_name] = value
        return cls(**kwargs)


@dataclass(frozen=True)
class MidiExportOptions:
    """
    Options for Standard MIDI File export.

    Attributes:
        ticks_per_beat: Resolution (PPQ). 480 by default.
        include_melody: Write melody notes (channel 1 in 1-based terms).
        include_chords: Write chord notes (channel 2 in 1-based terms).
        time_signature: Meter written to the tempo track.
        track_name: Name meta event of the tempo track.
    """

    ticks_per_beat: int = 480
    include_melody: bool = True
    include_chords: bool = True
    time_signature: str = "4/4"
    track_name: str = "Audio Track"

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if not 0 < self.ticks_per_beat < 0x8000:
            raise ValueError(f"ticks_per_beat must be in [1, 32767], got {self.ticks_per_beat}")
        parse_time_signature(self.time_signature)


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = AnalysisConfig()
"""Default configuration: detected tempo and key, 4/4, 1/16 grid, 4096/2048 frames."""

FINE_RESOLUTION_CONFIG = AnalysisConfig(frame_size=2048, hop_size=512)
"""Shorter frames and hop for fast passages; costs roughly 4× the pitch detection work."""

DEFAULT_EXPORT_OPTIONS = MidiExportOptions()
"""480 PPQ, melody and chords, 4/4, "Audio Track"."""
