"""
Event-locked epoching and averaging.

    epoch(tmin, tmax, rec, markers) --> EpochCollection (epochs x channels x samples)
    evoked(epochs) --> Evoked (channels x samples, float64 mean)
"""

import logging
from typing import Optional, Tuple

import numpy as np

from .core import EpochCollection, Evoked, MarkerSet, Recording, nearest_sample, window_offsets
from .errors import BoundsError, ConfigurationError

logger = logging.getLogger(__name__)


# ── epoching ─────────────────────────────────────────────────────────────────

def epoch(tmin: float, tmax: float, recording: Recording, markers: MarkerSet) -> EpochCollection:
    """
    Cut a window of tmin seconds before to tmax seconds after every marker.

    Each window is [round(marker) - round(tmin*fs), round(marker) + round(tmax*fs)),
    so all epochs have the same length. A window that would run past either
    end of the recording is dropped, never clipped. Epochs come out in marker
    order.

    >>> epochs = epoch(0.1, 0.5, rec, markers)
    >>> epochs.data.shape
    (n_epochs, n_channels, 300)
    """
    pre, post = window_offsets(tmin, tmax, recording.sample_rate)
    empty = EpochCollection.empty(tmin, tmax, recording.sample_rate, dtype=recording.data.dtype)
    if recording.is_empty or len(markers) == 0:
        return empty
    if pre + post <= 0:
        raise BoundsError(f"epoch window [-{tmin}, {tmax}) s is empty at {recording.sample_rate} Hz")

    n_samples = recording.n_samples
    windows, kept = [], []
    for marker in markers:
        center = nearest_sample(marker)
        start, end = center - pre, center + post
        if start < 0 or end > n_samples:
            logger.debug(f"Marker at {marker} needs [{start}, {end}), outside [0, {n_samples}): rejected")
            continue
        windows.append(recording.data[:, start:end])
        kept.append(marker)

    logger.info(f"Epoched {len(windows)} of {len(markers)} markers "
                f"({pre + post} samples, {recording.n_channels} channels)")
    if not windows:
        return empty

    return EpochCollection(
        data=np.stack(windows),
        tmin=tmin, tmax=tmax,
        sample_rate=recording.sample_rate,
        channel_names=list(recording.channel_names),
        marker_positions=np.array(kept, dtype=np.float64),
    )


def reject_bad_epochs(epochs: EpochCollection, threshold: float) -> EpochCollection:
    """Drop epochs where any sample on any channel exceeds +/-threshold."""
    if threshold <= 0:
        raise ConfigurationError(f"rejection threshold must be positive, got {threshold}")
    if epochs.n_epochs == 0:
        return epochs

    # promote first: abs(int16 min) overflows
    peak = np.max(np.abs(epochs.data.astype(np.float64)), axis=(1, 2))
    keep = peak <= threshold
    logger.info(f"Rejected {int((~keep).sum())} of {epochs.n_epochs} epochs above {threshold}")
    if not keep.any():
        return EpochCollection.empty(epochs.tmin, epochs.tmax, epochs.sample_rate, dtype=epochs.data.dtype)

    return EpochCollection(
        data=epochs.data[keep],
        tmin=epochs.tmin, tmax=epochs.tmax,
        sample_rate=epochs.sample_rate,
        channel_names=list(epochs.channel_names),
        marker_positions=epochs.marker_positions[keep],
    )


# ── averaging ────────────────────────────────────────────────────────────────

def evoked(epochs: EpochCollection) -> Evoked:
    """Mean across epochs (float64). No epochs gives an empty (0, 0) Evoked."""
    if epochs.n_epochs == 0:
        return Evoked.empty(epochs.tmin, epochs.tmax, epochs.sample_rate)

    return Evoked(
        data=epochs.data.mean(axis=0, dtype=np.float64),
        tmin=epochs.tmin, tmax=epochs.tmax,
        sample_rate=epochs.sample_rate,
        channel_names=list(epochs.channel_names),
        n_averaged=epochs.n_epochs,
    )


def apply_baseline(
    evoked_data: Evoked,
    baseline: Tuple[Optional[float], Optional[float]] = (None, 0.0),
) -> Evoked:
    """
    Subtract each channel's mean over the baseline interval (seconds, marker at 0).

    None stands for the start (or end) of the window, so the default
    (None, 0.0) is the whole pre-stimulus part.
    """
    if evoked_data.n_samples == 0:
        return evoked_data

    times = evoked_data.times
    lo = times[0] if baseline[0] is None else baseline[0]
    hi = times[-1] if baseline[1] is None else baseline[1]
    mask = (times >= lo) & (times <= hi)
    if not mask.any():
        raise BoundsError(f"baseline ({lo}, {hi}) s contains no samples of [{times[0]}, {times[-1]}] s")

    offset = evoked_data.data[:, mask].mean(axis=1, keepdims=True)
    return Evoked(
        data=evoked_data.data - offset,
        tmin=evoked_data.tmin, tmax=evoked_data.tmax,
        sample_rate=evoked_data.sample_rate,
        channel_names=list(evoked_data.channel_names),
        n_averaged=evoked_data.n_averaged,
    )
