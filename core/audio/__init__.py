"""
core/audio — Pure audio analysis module.

Provides DSP functions for turning a mono signal into a symbolic
transcription. All functions are pure: they take (samples: np.ndarray,
sample_rate: int) and return structured data. No file I/O — that lives in
ingestion/audio_loader.py.

Architecture note:
    Only numpy is used here. librosa is confined to ingestion/ (decoding),
    so every algorithm can be tested with synthetic arrays.

    This __init__ imports nothing: core.music_theory depends on
    core.audio.pitch, and core.audio.types depends on core.music_theory.

Modules:
    pitch      detect_pitch, frequency_to_pitch_name, name_to_midi
    types      SampleBuffer, Note, Key, parse_key, AnalysisResult, PatternText
    melody     extract_melody
    features   detect_key, detect_tempo, fold_tempo, extract_waveform
    pipeline   analyze_buffer
    edits      transpose_note, append_note, append_chord, remove_at
"""
