"""
Time-axis resampling.

Two strategies, picked explicitly by the caller:

    resample_spectral(rec, fs)  Fourier method: copy/pad/truncate the spectrum
    resample_linear(rec, fs)    linear interpolation, cheap and exactly reproducible

Both return a Recording carrying the new sample rate with the new matrix.
Marker positions are *not* converted; use MarkerSet.rescaled().
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple, Union

import numpy as np
from scipy import signal as sig

from .core import Recording, as_float, to_fixed
from .errors import ConfigurationError, NumericalError
from .parallel import map_channels

logger = logging.getLogger(__name__)

RESAMPLE_METHODS = ("spectral", "linear")

WindowSpec = Union[str, Tuple, np.ndarray, None]


def target_length(n_samples: int, sample_rate: int, target_sample_rate: int) -> int:
    """Samples needed to cover the same duration at the target rate."""
    return int(round(n_samples / sample_rate * target_sample_rate))


def _check_rate(target_sample_rate: int):
    if isinstance(target_sample_rate, bool) or not isinstance(target_sample_rate, (int, np.integer)):
        raise ConfigurationError(f"target sample rate must be an integer, got {target_sample_rate!r}")
    if target_sample_rate <= 0:
        raise ConfigurationError(f"target sample rate must be positive, got {target_sample_rate}")


def _empty_like(recording: Recording, target_sample_rate: int) -> Recording:
    data = np.zeros((recording.n_channels, 0), dtype=recording.data.dtype)
    return recording.with_data(data, sample_rate=int(target_sample_rate))


# ── spectral ─────────────────────────────────────────────────────────────────

def _check_window(window: WindowSpec, n: int):
    # arrays are taken to be in fft bin order already, as scipy.signal.resample expects
    if isinstance(window, np.ndarray) and window.shape != (n,):
        raise ConfigurationError(f"window must have shape ({n},), got {window.shape}")


def _resample_row_fft(row: np.ndarray, num: int, window: WindowSpec = None) -> np.ndarray:
    """
    Fourier resampling of one channel to num samples.

    The lowest min(n, num) frequencies are kept; higher bins are dropped when
    downsampling and zero when upsampling. The Nyquist bin of an even-length
    shorter spectrum is split on the way up and folded on the way down.
    """
    result = sig.resample(as_float(row), num, window=window)
    if not np.all(np.isfinite(result)):
        raise NumericalError("inverse transform produced non-finite samples")
    return result


def resample_spectral(
    recording: Recording,
    target_sample_rate: int,
    window: WindowSpec = None,
    n_jobs: Optional[int] = None,
) -> Recording:
    """
    Fourier-domain resampling of every channel.

    window tapers the copied spectrum to reduce ringing at sharp edges; any
    scipy.signal.get_window spec ('hann', ('kaiser', 8.0), ...) or an array of
    the source length in fft bin order. Assumes the channel is periodic, so a
    step between the first and last sample rings near both ends.

    >>> rec_250 = resample_spectral(rec_1000, 250)
    >>> rec_250.sample_rate
    250
    """
    _check_rate(target_sample_rate)
    num = target_length(recording.n_samples, recording.sample_rate, target_sample_rate)
    if recording.is_empty or num == 0:
        logger.info(f"Nothing to resample ({recording.n_samples} -> {num} samples)")
        return _empty_like(recording, target_sample_rate)

    _check_window(window, recording.n_samples)
    if num == recording.n_samples and window is None:
        data = recording.data.copy()
    else:
        resampled = map_channels(lambda row: _resample_row_fft(row, num, window),
                                 recording.data, n_jobs=n_jobs)
        data = to_fixed(resampled, recording.data.dtype)

    logger.info(f"Spectral resample {recording.sample_rate} -> {target_sample_rate} Hz "
                f"({recording.n_samples} -> {num} samples)")
    return recording.with_data(data, sample_rate=int(target_sample_rate))


# ── linear ───────────────────────────────────────────────────────────────────

def _resample_row_linear(row: np.ndarray, num: int) -> np.ndarray:
    n = row.shape[0]
    positions = np.arange(num) * (n / num)
    # np.interp holds the last sample beyond the end (clamp at the array bound)
    return np.interp(positions, np.arange(n), as_float(row))


def resample_linear(
    recording: Recording,
    target_sample_rate: int,
    n_jobs: Optional[int] = None,
) -> Recording:
    """Linear-interpolation resampling; output sample i sits at source index i * n / num."""
    _check_rate(target_sample_rate)
    num = target_length(recording.n_samples, recording.sample_rate, target_sample_rate)
    if recording.is_empty or num == 0:
        logger.info(f"Nothing to resample ({recording.n_samples} -> {num} samples)")
        return _empty_like(recording, target_sample_rate)

    resampled = map_channels(lambda row: _resample_row_linear(row, num),
                             recording.data, n_jobs=n_jobs)
    logger.info(f"Linear resample {recording.sample_rate} -> {target_sample_rate} Hz "
                f"({recording.n_samples} -> {num} samples)")
    return recording.with_data(to_fixed(resampled, recording.data.dtype),
                               sample_rate=int(target_sample_rate))


# ── dispatch ─────────────────────────────────────────────────────────────────

def resample(
    recording: Recording,
    target_sample_rate: int,
    method: str = "spectral",
    window: WindowSpec = None,
    n_jobs: Optional[int] = None,
) -> Recording:
    """Resample with the named method ('spectral' or 'linear')."""
    if method == "spectral":
        return resample_spectral(recording, target_sample_rate, window=window, n_jobs=n_jobs)
    if method == "linear":
        if window is not None:
            raise ConfigurationError("window only applies to the spectral method")
        return resample_linear(recording, target_sample_rate, n_jobs=n_jobs)
    raise ConfigurationError(f"method must be one of {RESAMPLE_METHODS}, got '{method}'")
