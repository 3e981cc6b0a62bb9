"""
Tests for spectral and linear resampling.
"""

from __future__ import annotations

import numpy as np
import pytest
from scipy import signal as sig

from reeg import (
    ConfigurationError,
    Recording,
    resample,
    resample_linear,
    resample_spectral,
)
from reeg.resample import target_length


def _random_recording(n_samples: int, sample_rate: int = 100, n_channels: int = 2) -> Recording:
    rng = np.random.default_rng(n_samples)
    data = rng.integers(-2000, 2000, size=(n_channels, n_samples)).astype(np.int16)
    return Recording(data, sample_rate)


# =============================================================================
# Length bookkeeping
# =============================================================================


class TestTargetLength:
    """Output length covers the same duration at the new rate."""

    @pytest.mark.parametrize(
        "n, fs, target, expected",
        [(5000, 1000, 250, 1250), (1000, 1000, 2000, 2000), (7, 10, 4, 3), (1, 1000, 1, 0)],
    )
    def test_target_length(self, n, fs, target, expected) -> None:
        assert target_length(n, fs, target) == expected


# =============================================================================
# Spectral method
# =============================================================================


class TestSpectral:
    """Fourier-domain resampling."""

    @pytest.mark.parametrize(
        "n, target_rate",
        [(8, 150), (8, 75), (9, 70), (9, 150), (10, 70), (7, 140), (64, 100)],
    )
    def test_matches_scipy_resample(self, n, target_rate) -> None:
        """Odd/even lengths, up and down, agree with scipy.signal.resample."""
        rec = _random_recording(n)
        out = resample_spectral(rec, target_rate)

        num = target_length(n, 100, target_rate)
        expected = np.rint(sig.resample(rec.data.astype(np.float64), num, axis=1))
        assert out.data.shape == (2, num)
        np.testing.assert_allclose(out.data, expected, atol=1)

    def test_window_matches_scipy(self) -> None:
        rec = _random_recording(64)
        out = resample_spectral(rec, 50, window="hann")

        expected = np.rint(sig.resample(rec.data.astype(np.float64), 32, axis=1, window="hann"))
        np.testing.assert_allclose(out.data, expected, atol=1)

    def test_array_window_in_fft_order(self) -> None:
        """An array window in fft bin order matches the named window it came from."""
        rec = _random_recording(64)
        weights = np.fft.ifftshift(sig.get_window("hann", 64))

        np.testing.assert_array_equal(
            resample_spectral(rec, 50, window=weights).data,
            resample_spectral(rec, 50, window="hann").data,
        )

    def test_array_window_wrong_length(self) -> None:
        with pytest.raises(ConfigurationError):
            resample_spectral(_random_recording(64), 50, window=np.ones(10))

    def test_upsample_round_trip(self, sines) -> None:
        """Up to 2000 Hz and back is the identity within rounding."""
        rec = sines([5.0, 12.0], amplitude=800.0)
        back = resample_spectral(resample_spectral(rec, 2000), 1000)

        assert back.sample_rate == 1000
        assert back.data.shape == rec.data.shape
        assert np.max(np.abs(back.data.astype(int) - rec.data.astype(int))) <= 2

    def test_downsample_round_trip(self, sines) -> None:
        """Down to 500 Hz and back is close when the signal is band-limited."""
        rec = sines([5.0, 12.0], amplitude=800.0)
        back = resample_spectral(resample_spectral(rec, 500), 1000)

        assert np.max(np.abs(back.data.astype(int) - rec.data.astype(int))) <= 3

    def test_constant_preserved(self, constant_recording) -> None:
        out = resample_spectral(constant_recording, 250)

        assert out.data.shape == (1, 1250)
        assert np.all(out.data == 100)

    def test_rate_travels_with_data(self, noise_recording) -> None:
        out = resample_spectral(noise_recording, 250)

        assert out.sample_rate == 250
        assert out.n_samples == 5000
        assert out.channel_names == noise_recording.channel_names
        assert out.data.dtype == np.int16
        assert noise_recording.sample_rate == 500

    def test_same_rate_is_copy(self, noise_recording) -> None:
        out = resample_spectral(noise_recording, 500)

        np.testing.assert_array_equal(out.data, noise_recording.data)
        assert out.data is not noise_recording.data

    def test_deterministic_across_workers(self, noise_recording) -> None:
        serial = resample_spectral(noise_recording, 173, n_jobs=1)
        threaded = resample_spectral(noise_recording, 173, n_jobs=3)

        np.testing.assert_array_equal(serial.data, threaded.data)


# =============================================================================
# Linear method
# =============================================================================


class TestLinear:
    """Linear interpolation between neighbouring samples."""

    def test_upsample_ramp(self) -> None:
        """Half-sample positions interpolate; past the last sample holds its value."""
        rec = Recording(np.arange(0, 1000, 10, dtype=np.int16)[None, :], 100)
        out = resample_linear(rec, 200)

        assert out.data.shape == (1, 200)
        np.testing.assert_array_equal(out.data[0, :199], 5 * np.arange(199))
        assert out.data[0, 199] == 990

    def test_downsample_picks_samples(self, noise_recording) -> None:
        out = resample_linear(noise_recording, 250)

        np.testing.assert_array_equal(out.data, noise_recording.data[:, ::2])

    def test_up_down_identity(self, noise_recording) -> None:
        back = resample_linear(resample_linear(noise_recording, 1000), 500)

        np.testing.assert_array_equal(back.data, noise_recording.data)

    def test_deterministic_across_workers(self, noise_recording) -> None:
        serial = resample_linear(noise_recording, 333, n_jobs=1)
        threaded = resample_linear(noise_recording, 333, n_jobs=4)

        np.testing.assert_array_equal(serial.data, threaded.data)


# =============================================================================
# Dispatch and edge cases
# =============================================================================


class TestResampleDispatch:
    """Method selection, degenerate inputs and bad parameters."""

    def test_dispatch(self, noise_recording) -> None:
        np.testing.assert_array_equal(
            resample(noise_recording, 250, method="linear").data,
            resample_linear(noise_recording, 250).data,
        )
        np.testing.assert_array_equal(
            resample(noise_recording, 250, method="spectral").data,
            resample_spectral(noise_recording, 250).data,
        )

    @pytest.mark.parametrize("method", ["spectral", "linear"])
    def test_empty_recording(self, method) -> None:
        rec = Recording(np.zeros((3, 0), dtype=np.int16), 1000)
        out = resample(rec, 250, method=method)

        assert out.data.shape == (3, 0)
        assert out.sample_rate == 250

    @pytest.mark.parametrize("method", ["spectral", "linear"])
    def test_zero_target_length(self, method) -> None:
        """A target length that rounds to zero is an empty result, not an error."""
        rec = Recording(np.ones((2, 1), dtype=np.int16), 1000)
        out = resample(rec, 1, method=method)

        assert out.data.shape == (2, 0)
        assert out.sample_rate == 1

    def test_unknown_method(self, noise_recording) -> None:
        with pytest.raises(ConfigurationError):
            resample(noise_recording, 250, method="polyphase")

    @pytest.mark.parametrize("rate", [0, -100, 250.5])
    def test_bad_target_rate(self, noise_recording, rate) -> None:
        with pytest.raises(ConfigurationError):
            resample(noise_recording, rate)

    def test_window_rejected_for_linear(self, noise_recording) -> None:
        with pytest.raises(ConfigurationError):
            resample(noise_recording, 250, method="linear", window="hann")
