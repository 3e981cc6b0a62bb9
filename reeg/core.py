from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple
import math
import numpy as np
import pandas as pd

from .errors import BoundsError, ConfigurationError, NumericalError, ShapeError


# ── fixed-point boundary ─────────────────────────────────────────────────────
# Recordings hold integer PCM. Every stage promotes to float64 on entry and
# rounds back on exit; to_fixed is the only lossy step.

def as_float(data: np.ndarray) -> np.ndarray:
    """Promote integer samples to float64 (always a new array)."""
    return np.array(data, dtype=np.float64)


def to_fixed(values: np.ndarray, dtype=np.int16) -> np.ndarray:
    """
    Round float samples to the nearest integer and saturate to dtype's range.

    >>> to_fixed(np.array([1.4, 1.6, 1e9]), np.int16)
    array([    1,     2, 32767], dtype=int16)
    """
    values = np.asarray(values, dtype=np.float64)
    if not np.all(np.isfinite(values)):
        raise NumericalError("cannot convert non-finite samples to fixed point")
    info = np.iinfo(dtype)
    return np.clip(np.rint(values), info.min, info.max).astype(dtype)


def nearest_sample(position: float) -> int:
    """Round a fractional sample index to the nearest sample (halves round up)."""
    return int(math.floor(position + 0.5))


def default_channel_names(n: int) -> List[str]:
    return [f"Ch{i + 1}" for i in range(n)]


# ── recording ────────────────────────────────────────────────────────────────

@dataclass
class Recording:
    """Multichannel EEG recording: integer matrix (channels x samples) + rate."""

    data: np.ndarray
    sample_rate: int
    channel_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        try:
            self.data = np.asarray(self.data)
        except ValueError as e:
            raise ShapeError(f"recording data is not rectangular: {e}") from e
        if self.data.ndim != 2:
            raise ShapeError(f"recording data must be 2-D (channels x samples), got {self.data.ndim}-D")
        if not np.issubdtype(self.data.dtype, np.signedinteger):
            raise ShapeError(f"recording data must be signed integer PCM, got {self.data.dtype}")
        if isinstance(self.sample_rate, bool) or not isinstance(self.sample_rate, (int, np.integer)):
            raise ConfigurationError(f"sample_rate must be an integer, got {self.sample_rate!r}")
        if self.sample_rate <= 0:
            raise ConfigurationError(f"sample_rate must be positive, got {self.sample_rate}")
        self.sample_rate = int(self.sample_rate)

        self.channel_names = [str(n) for n in self.channel_names]
        if not self.channel_names:
            self.channel_names = default_channel_names(self.data.shape[0])
        if len(self.channel_names) != self.data.shape[0]:
            raise ShapeError(
                f"{len(self.channel_names)} channel names for {self.data.shape[0]} channels"
            )

    @classmethod
    def from_rows(
        cls,
        rows: Iterable[Sequence[int]],
        sample_rate: int,
        channel_names: Optional[List[str]] = None,
        dtype=np.int16,
    ) -> "Recording":
        """
        Build a recording from per-channel sample lists.

        Ragged input is rejected, never padded or truncated.

        >>> rec = Recording.from_rows([[1, 2, 3], [4, 5, 6]], sample_rate=500)
        >>> rec.data.shape
        (2, 3)
        """
        rows = [list(r) for r in rows]
        if not rows:
            return cls(np.zeros((0, 0), dtype=dtype), sample_rate, channel_names or [])

        lengths = sorted({len(r) for r in rows})
        if len(lengths) > 1:
            raise ShapeError(f"ragged rows: channel lengths {lengths}")
        return cls(np.array(rows, dtype=dtype), sample_rate, channel_names or [])

    @property
    def n_channels(self) -> int:
        return self.data.shape[0]

    @property
    def n_samples(self) -> int:
        return self.data.shape[1]

    @property
    def is_empty(self) -> bool:
        return self.data.size == 0

    @property
    def duration(self) -> float:
        return self.n_samples / self.sample_rate

    @property
    def time(self) -> np.ndarray:
        return np.arange(self.n_samples) / self.sample_rate

    def with_data(self, data: np.ndarray, sample_rate: Optional[int] = None) -> "Recording":
        """New recording with the same channels; matrix and rate travel together."""
        rate = self.sample_rate if sample_rate is None else sample_rate
        return Recording(data=data, sample_rate=rate, channel_names=list(self.channel_names))

    def pick(self, names: Sequence[str]) -> "Recording":
        """Subset (and reorder) channels by name."""
        missing = [n for n in names if n not in self.channel_names]
        if missing:
            raise ShapeError(f"unknown channels: {missing}")
        idx = [self.channel_names.index(n) for n in names]
        return Recording(self.data[idx].copy(), self.sample_rate, list(names))

    def __repr__(self):
        return (f"Recording({self.n_channels} channels, {self.n_samples} samples, "
                f"{self.sample_rate} Hz, {self.data.dtype})")


# ── markers ──────────────────────────────────────────────────────────────────

@dataclass
class MarkerSet:
    """
    Event positions as fractional sample indices, kept in the given order.

    Positions are tied to the sample rate they were recorded at. Nothing
    rescales them when a recording is resampled; use rescaled().
    """

    positions: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        self.positions = np.asarray(self.positions, dtype=np.float64)
        if self.positions.ndim == 0:
            self.positions = self.positions.reshape(1)
        if self.positions.ndim != 1:
            raise ShapeError(f"marker positions must be 1-D, got shape {self.positions.shape}")
        if not np.all(np.isfinite(self.positions)):
            raise BoundsError("marker positions must be finite")

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self) -> Iterator[float]:
        return iter(self.positions.tolist())

    @property
    def is_sorted(self) -> bool:
        return bool(np.all(np.diff(self.positions) >= 0))

    def sorted(self) -> "MarkerSet":
        return MarkerSet(np.sort(self.positions, kind="stable"))

    def rescaled(self, old_rate: float, new_rate: float) -> "MarkerSet":
        """Convert positions recorded at old_rate to sample indices at new_rate."""
        if old_rate <= 0 or new_rate <= 0:
            raise ConfigurationError(f"sample rates must be positive, got {old_rate} -> {new_rate}")
        return MarkerSet(self.positions * (new_rate / old_rate))

    def __repr__(self):
        return f"MarkerSet({len(self)} markers)"


# ── epochs / evoked ──────────────────────────────────────────────────────────

def window_offsets(tmin: float, tmax: float, sample_rate: float) -> Tuple[int, int]:
    """Samples before and after the marker for an epoch window."""
    return nearest_sample(tmin * sample_rate), nearest_sample(tmax * sample_rate)


def _epoch_times(tmin: float, tmax: float, sample_rate: float, n_samples: int) -> np.ndarray:
    pre, _ = window_offsets(tmin, tmax, sample_rate)
    return (np.arange(n_samples) - pre) / sample_rate


@dataclass
class EpochCollection:
    """Event-locked windows, shape (epochs x channels x samples). Empty is (0, 0, 0)."""

    data: np.ndarray
    tmin: float
    tmax: float
    sample_rate: int
    channel_names: List[str] = field(default_factory=list)
    marker_positions: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        self.data = np.asarray(self.data)
        if self.data.ndim != 3:
            raise ShapeError(f"epoch data must be 3-D, got {self.data.ndim}-D")
        self.marker_positions = np.asarray(self.marker_positions, dtype=np.float64)

    @classmethod
    def empty(cls, tmin: float, tmax: float, sample_rate: int, dtype=np.int16) -> "EpochCollection":
        return cls(np.zeros((0, 0, 0), dtype=dtype), tmin, tmax, sample_rate, [])

    @property
    def n_epochs(self) -> int:
        return self.data.shape[0]

    @property
    def n_channels(self) -> int:
        return self.data.shape[1]

    @property
    def n_samples(self) -> int:
        return self.data.shape[2]

    @property
    def times(self) -> np.ndarray:
        return _epoch_times(self.tmin, self.tmax, self.sample_rate, self.n_samples)

    def __len__(self) -> int:
        return self.n_epochs

    def __repr__(self):
        return (f"EpochCollection({self.n_epochs} epochs, {self.n_channels} channels, "
                f"{self.n_samples} samples)")


@dataclass
class Evoked:
    """Grand average across epochs, float64 (channels x samples). Empty is (0, 0)."""

    data: np.ndarray
    tmin: float
    tmax: float
    sample_rate: int
    channel_names: List[str] = field(default_factory=list)
    n_averaged: int = 0

    @classmethod
    def empty(cls, tmin: float, tmax: float, sample_rate: int) -> "Evoked":
        return cls(np.zeros((0, 0)), tmin, tmax, sample_rate, [], 0)

    @property
    def n_channels(self) -> int:
        return self.data.shape[0]

    @property
    def n_samples(self) -> int:
        return self.data.shape[1]

    @property
    def times(self) -> np.ndarray:
        return _epoch_times(self.tmin, self.tmax, self.sample_rate, self.n_samples)

    def to_dataframe(self) -> pd.DataFrame:
        """Long format: one row per (channel, time) with the mean amplitude."""
        times = self.times
        return pd.DataFrame({
            "channel": np.repeat(self.channel_names, self.n_samples),
            "time": np.tile(times, self.n_channels),
            "amplitude": self.data.reshape(-1),
        })

    def __repr__(self):
        return (f"Evoked({self.n_channels} channels, {self.n_samples} samples, "
                f"n_averaged={self.n_averaged})")
