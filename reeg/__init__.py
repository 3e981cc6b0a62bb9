"""
reeg: offline processing for stimulation EEG recordings.

Artifact removal, zero-phase Butterworth filtering, resampling, epoching and
averaging. Every stage takes a Recording and returns a new one.

Quick start:
    >>> import reeg
    >>> rec = reeg.Recording(data, sample_rate=5000, channel_names=names)
    >>> markers = reeg.MarkerSet(positions)
    >>> clean = reeg.remove_artifacts(rec, markers, 0.002, 0.008, mode="spline")
    >>> filtered = reeg.apply_filter(clean, reeg.design_lowpass(2, 40.0, clean.sample_rate))
    >>> ev = reeg.evoked(reeg.epoch(0.1, 0.5, filtered, markers))
"""

__version__ = "0.1.0"

# core data structures
from .core import (
    Recording, MarkerSet, EpochCollection, Evoked,
    as_float, to_fixed,
)

# errors
from .errors import (
    ReegError, ConfigurationError, BoundsError, ShapeError, NumericalError,
)

# signal processing
from .signal import (
    remove_artifacts, design_lowpass, design_highpass, design_bandpass,
    apply_filter, FilterCascade,
)
from .resample import resample, resample_spectral, resample_linear

# epochs
from .epochs import epoch, evoked, reject_bad_epochs, apply_baseline

# batch processing
from .batch import (
    PipelineResult, preprocess, process_recording, process_many,
    results_to_dataframe, evoked_to_dataframe,
)

# config
from .config import ProcessingConfig, PROC_CONFIG

__all__ = [
    "__version__",
    # core
    "Recording", "MarkerSet", "EpochCollection", "Evoked", "as_float", "to_fixed",
    # errors
    "ReegError", "ConfigurationError", "BoundsError", "ShapeError", "NumericalError",
    # signal
    "remove_artifacts", "design_lowpass", "design_highpass", "design_bandpass",
    "apply_filter", "FilterCascade",
    "resample", "resample_spectral", "resample_linear",
    # epochs
    "epoch", "evoked", "reject_bad_epochs", "apply_baseline",
    # batch
    "PipelineResult", "preprocess", "process_recording", "process_many",
    "results_to_dataframe", "evoked_to_dataframe",
    # config
    "ProcessingConfig", "PROC_CONFIG",
]
