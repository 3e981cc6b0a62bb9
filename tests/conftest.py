"""Shared fixtures: small synthetic recordings."""

from __future__ import annotations

import numpy as np
import pytest

from reeg import MarkerSet, Recording


def make_sines(
    freqs: list[float],
    amplitude: float = 1000.0,
    sample_rate: int = 1000,
    n_samples: int = 1000,
    n_channels: int = 1,
) -> Recording:
    """Sum of sines with whole cycles in the recording (periodic, band-limited)."""
    t = np.arange(n_samples) / sample_rate
    row = sum(amplitude * np.sin(2 * np.pi * f * t) for f in freqs)
    data = np.tile(np.rint(row), (n_channels, 1)).astype(np.int16)
    return Recording(data, sample_rate)


@pytest.fixture
def constant_recording() -> Recording:
    """1000 Hz, one channel, 5000 samples all equal to 100."""
    return Recording(np.full((1, 5000), 100, dtype=np.int16), 1000, ["Cz"])


@pytest.fixture
def ramp_recording() -> Recording:
    """1000 Hz, three channels of straight lines with different slopes."""
    x = np.arange(2000)
    data = np.vstack([x, 2 * x - 1000, -x]).astype(np.int16)
    return Recording(data, 1000, ["Fz", "Cz", "Pz"])


@pytest.fixture
def noise_recording() -> Recording:
    """500 Hz, four channels of seeded noise, 10000 samples."""
    rng = np.random.default_rng(42)
    data = rng.normal(0, 300, size=(4, 10000)).astype(np.int16)
    return Recording(data, 500)


@pytest.fixture
def single_marker() -> MarkerSet:
    return MarkerSet([2500.0])


@pytest.fixture
def sines():
    """Factory for periodic sine recordings (see make_sines)."""
    return make_sines
