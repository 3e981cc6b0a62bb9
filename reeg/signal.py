"""
Signal processing for stimulation EEG.

Core functions:
    remove_artifacts(rec, markers, tmin_cut, tmax_cut) --> rec with stim pulses cut
    design_lowpass(order, cutoff, fs) --> FilterCascade
    design_highpass(order, cutoff, fs) --> FilterCascade
    design_bandpass(order, low, high, fs) --> FilterCascade
    apply_filter(rec, cascade) --> zero-phase filtered rec

Every function returns a new Recording; inputs are never modified.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple, Union

import numpy as np
from scipy import signal as sig
from scipy.interpolate import CubicSpline

from .core import MarkerSet, Recording, as_float, nearest_sample, to_fixed
from .errors import ConfigurationError, NumericalError
from .parallel import map_channels

logger = logging.getLogger(__name__)

ARTIFACT_MODES = ("zero", "spline")


# ── artifact removal ─────────────────────────────────────────────────────────

def artifact_window(
    marker: float,
    tmin_cut: float,
    tmax_cut: float,
    sample_rate: float,
    n_samples: int,
) -> Tuple[int, int]:
    """Half-open [start, end) sample range cut around one marker, clipped to the recording."""
    start = nearest_sample(marker - tmin_cut * sample_rate)
    end = nearest_sample(marker + tmax_cut * sample_rate)
    return min(max(start, 0), n_samples), min(max(end, 0), n_samples)


def _spline_bridge(data: np.ndarray, start: int, end: int) -> np.ndarray:
    """
    Bridge [start, end) on every channel with a spline through samples start-1 and end.

    Two knots give the straight chord between the anchors: a smooth fill that
    joins both edges, not an estimate of the signal under the pulse.
    """
    if start < 1 or end >= data.shape[1]:
        raise NumericalError(f"gap [{start}, {end}) has no anchor sample on both sides")

    knots = np.array([start - 1, end], dtype=np.float64)
    anchors = as_float(data[:, [start - 1, end]]).T
    try:
        spline = CubicSpline(knots, anchors, axis=0)
    except ValueError as e:
        raise NumericalError(f"spline fit failed for gap [{start}, {end}): {e}") from e

    bridge = spline(np.arange(start, end)).T
    return to_fixed(bridge, data.dtype)


def remove_artifacts(
    recording: Recording,
    markers: MarkerSet,
    tmin_cut: float,
    tmax_cut: float,
    mode: str = "zero",
) -> Recording:
    """
    Cut stimulation pulses out of every channel.

    For each marker, in list order, the window [marker - tmin_cut, marker + tmax_cut)
    (seconds, rounded to samples, clipped to the recording) is either zeroed
    (mode='zero') or bridged with a spline between its neighbouring samples
    (mode='spline'). A spline gap touching either end of the recording has no
    anchor on that side and is zeroed instead.

    Overlapping windows are applied one after another, so a later cut sees the
    output of an earlier one. Sort the markers first (MarkerSet.sorted) if
    that matters.

    >>> clean = remove_artifacts(rec, markers, tmin_cut=0.002, tmax_cut=0.008, mode="spline")
    """
    if mode not in ARTIFACT_MODES:
        raise ConfigurationError(f"mode must be one of {ARTIFACT_MODES}, got '{mode}'")

    out = recording.data.copy()
    if recording.is_empty or len(markers) == 0:
        return recording.with_data(out)

    if not markers.is_sorted:
        logger.warning("Markers are not in chronological order; overlapping cuts follow list order")

    n_samples = recording.n_samples
    n_zeroed, n_bridged, n_skipped = 0, 0, 0

    for marker in markers:
        start, end = artifact_window(marker, tmin_cut, tmax_cut, recording.sample_rate, n_samples)
        if start >= end:
            n_skipped += 1
            continue

        if mode == "spline":
            if start > 0 and end < n_samples:
                out[:, start:end] = _spline_bridge(out, start, end)
                n_bridged += 1
                continue
            logger.debug(f"Gap [{start}, {end}) touches the recording edge, zeroing")

        out[:, start:end] = 0
        n_zeroed += 1

    logger.info(f"Artifact removal ({mode}): {n_bridged} bridged, {n_zeroed} zeroed, "
                f"{n_skipped} skipped of {len(markers)} markers")
    return recording.with_data(out)


# ── filter design ────────────────────────────────────────────────────────────

@dataclass
class FilterCascade:
    """Butterworth filter as second-order sections (scipy 'sos' layout)."""

    sos: np.ndarray
    btype: str
    order: int
    cutoff_hz: Union[float, Tuple[float, float]]
    sample_rate_hz: float

    @property
    def n_sections(self) -> int:
        return self.sos.shape[0]

    @property
    def passband_gain(self) -> float:
        # Butterworth passband is maximally flat at unity, and so is its square
        return 1.0

    def gain(self, freq_hz: float) -> float:
        """Magnitude response of one pass at freq_hz."""
        z = np.exp(-1j * 2 * np.pi * freq_hz / self.sample_rate_hz)
        powers = np.array([1.0, z, z * z])
        num = self.sos[:, :3] @ powers
        den = self.sos[:, 3:] @ powers
        return float(np.abs(np.prod(num / den)))

    def zero_phase_gain(self, freq_hz: float) -> float:
        """Forward + backward filtering squares the magnitude response."""
        return self.gain(freq_hz) ** 2


def _check_design(order: int, cutoff_hz: float, sample_rate_hz: float):
    if isinstance(order, bool) or not isinstance(order, (int, np.integer)) or order < 1:
        raise ConfigurationError(f"filter order must be a positive integer, got {order!r}")
    if sample_rate_hz <= 0:
        raise ConfigurationError(f"sample rate must be positive, got {sample_rate_hz}")
    nyquist = sample_rate_hz / 2
    if not 0 < cutoff_hz < nyquist:
        raise ConfigurationError(
            f"cutoff {cutoff_hz} Hz outside (0, {nyquist}) Hz for fs={sample_rate_hz} Hz"
        )


def _design(order: int, cutoff_hz: float, sample_rate_hz: float, btype: str) -> FilterCascade:
    _check_design(order, cutoff_hz, sample_rate_hz)
    sos = sig.butter(int(order), cutoff_hz, btype=btype, fs=sample_rate_hz, output="sos")
    logger.debug(f"Designed order-{order} {btype} at {cutoff_hz} Hz ({sos.shape[0]} sections)")
    return FilterCascade(sos=sos, btype=btype, order=int(order),
                         cutoff_hz=cutoff_hz, sample_rate_hz=sample_rate_hz)


def design_lowpass(order: int, cutoff_hz: float, sample_rate_hz: float) -> FilterCascade:
    """Butterworth lowpass. Raises ConfigurationError unless 0 < cutoff < fs/2."""
    return _design(order, cutoff_hz, sample_rate_hz, "lowpass")


def design_highpass(order: int, cutoff_hz: float, sample_rate_hz: float) -> FilterCascade:
    """Butterworth highpass. Raises ConfigurationError unless 0 < cutoff < fs/2."""
    return _design(order, cutoff_hz, sample_rate_hz, "highpass")


def design_bandpass(order: int, low_hz: float, high_hz: float, sample_rate_hz: float) -> FilterCascade:
    """Highpass at low_hz chained with lowpass at high_hz, as a single cascade."""
    if low_hz >= high_hz:
        raise ConfigurationError(f"band edges must satisfy low < high, got ({low_hz}, {high_hz})")
    high = design_highpass(order, low_hz, sample_rate_hz)
    low = design_lowpass(order, high_hz, sample_rate_hz)
    return FilterCascade(sos=np.vstack([high.sos, low.sos]), btype="bandpass", order=int(order),
                         cutoff_hz=(low_hz, high_hz), sample_rate_hz=sample_rate_hz)


# ── zero-phase filtering ─────────────────────────────────────────────────────

def _default_padlen(sos: np.ndarray) -> int:
    # same edge padding sosfiltfilt uses by default
    ntaps = 2 * sos.shape[0] + 1
    ntaps -= min(int((sos[:, 2] == 0).sum()), int((sos[:, 5] == 0).sum()))
    return 3 * ntaps


def apply_filter(
    recording: Recording,
    cascade: FilterCascade,
    n_jobs: Optional[int] = None,
) -> Recording:
    """
    Zero-phase filter every channel (cascade run forward, then backward).

    Samples are promoted to float64 for the arithmetic and rounded back to the
    recording's integer dtype afterwards, saturating at its limits.

    >>> lowpass = design_lowpass(2, 40.0, rec.sample_rate)
    >>> filtered = apply_filter(rec, lowpass)
    """
    if cascade.sample_rate_hz != recording.sample_rate:
        raise ConfigurationError(
            f"filter designed for {cascade.sample_rate_hz} Hz, recording is {recording.sample_rate} Hz"
        )
    if recording.is_empty:
        return recording.with_data(recording.data.copy())

    # short channels get a shorter edge extension instead of an error
    padlen = min(_default_padlen(cascade.sos), recording.n_samples - 1)
    sos = cascade.sos

    def _filter_row(row: np.ndarray) -> np.ndarray:
        return sig.sosfiltfilt(sos, as_float(row), padlen=padlen)

    filtered = map_channels(_filter_row, recording.data, n_jobs=n_jobs)
    logger.info(f"Applied zero-phase {cascade.btype} {cascade.cutoff_hz} Hz "
                f"to {recording.n_channels} channels")
    return recording.with_data(to_fixed(filtered, recording.data.dtype))
