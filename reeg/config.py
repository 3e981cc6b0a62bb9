from dataclasses import dataclass, replace
from typing import Optional, Tuple, Union


# ── processing params ────────────────────────────────────────────────────────

@dataclass
class ProcessingConfig:
    # artifact removal: seconds cut before/after each stimulation marker
    artifact_mode: Optional[str] = "spline"   # "zero", "spline" or None to skip
    artifact_tmin: float = 0.002
    artifact_tmax: float = 0.008

    # filtering (Butterworth, zero-phase); None skips that edge
    filter_order: int = 2
    highpass: Optional[float] = 0.1
    lowpass: Optional[float] = 40.0

    # resampling
    target_sample_rate: Optional[int] = None   # None keeps the native rate
    resample_method: str = "spectral"          # "spectral" or "linear"
    resample_window: Optional[Union[str, Tuple]] = None

    # epoching
    tmin: float = 0.1    # seconds before marker
    tmax: float = 0.5    # seconds after marker
    reject_threshold: Optional[float] = None   # peak amplitude, raw units
    baseline: Optional[Tuple[Optional[float], Optional[float]]] = (None, 0.0)

    # worker threads for per-channel stages; None = executor default
    n_jobs: Optional[int] = None

    def replace(self, **changes) -> "ProcessingConfig":
        return replace(self, **changes)


# ── default instance ─────────────────────────────────────────────────────────

PROC_CONFIG = ProcessingConfig()
