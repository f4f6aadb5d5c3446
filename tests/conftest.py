"""
Shared fixtures for the test suite.

Centralizes synthetic signal builders and the mock librosa module so
individual test files don't need to repeat numpy/mock boilerplate.
"""

from collections.abc import Callable
from unittest.mock import MagicMock

import numpy as np
import pytest

from core.audio.types import SampleBuffer

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SR: int = 44100
"""Default sample rate for synthetic signals."""

ONSET_WINDOW: int = 2205
"""50 ms onset window at 44.1 kHz — burst signals align to it."""


# ---------------------------------------------------------------------------
# Signal builders
# ---------------------------------------------------------------------------


def make_sine(
    freq_hz: float,
    duration_sec: float,
    sr: int = SR,
    amplitude: float = 0.5,
) -> np.ndarray:
    """Pure sine wave."""
    t = np.arange(int(round(duration_sec * sr))) / sr
    return amplitude * np.sin(2.0 * np.pi * freq_hz * t)


def make_bursts(
    period_windows: int,
    count: int,
    total_windows: int,
    first_window: int = 2,
    window: int = ONSET_WINDOW,
) -> np.ndarray:
    """Silence with one-window 0.5-amplitude bursts every `period_windows` windows."""
    y = np.zeros(total_windows * window)
    burst = 0.5 * np.sin(2.0 * np.pi * 440.0 * np.arange(window) / SR)
    for j in range(count):
        start = (first_window + j * period_windows) * window
        y[start : start + window] = burst
    return y


@pytest.fixture
def sine() -> Callable[..., np.ndarray]:
    """Factory fixture: sine(freq_hz, duration_sec, sr=44100, amplitude=0.5)."""
    return make_sine


@pytest.fixture
def bursts() -> Callable[..., np.ndarray]:
    """Factory fixture: bursts(period_windows, count, total_windows)."""
    return make_bursts


@pytest.fixture
def silent_buffer() -> SampleBuffer:
    """Two seconds of digital silence."""
    return SampleBuffer(samples=np.zeros(2 * SR), sample_rate=SR)


@pytest.fixture
def a4_buffer() -> SampleBuffer:
    """One second of a 440 Hz sine."""
    return SampleBuffer(samples=make_sine(440.0, 1.0), sample_rate=SR)


# ---------------------------------------------------------------------------
# Mock librosa
# ---------------------------------------------------------------------------


def make_mock_librosa(y: np.ndarray | None = None, sr: int = SR) -> MagicMock:
    """Return a mock librosa module whose load() returns (y, sr)."""
    mock = MagicMock()
    if y is None:
        y = make_sine(440.0, 1.0, sr=sr)
    mock.load.return_value = (y.astype(np.float32), sr)
    return mock


@pytest.fixture
def mock_librosa() -> MagicMock:
    """Mock librosa that decodes every file to one second of A4."""
    return make_mock_librosa()
