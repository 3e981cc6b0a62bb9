import logging
from dataclasses import dataclass
from typing import Iterable, List, Tuple

import pandas as pd

from .config import PROC_CONFIG, ProcessingConfig
from .core import EpochCollection, Evoked, MarkerSet, Recording
from .epochs import apply_baseline, epoch, evoked, reject_bad_epochs
from .resample import resample
from .signal import apply_filter, design_highpass, design_lowpass, remove_artifacts

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Everything one pass of the pipeline produced for a recording."""

    name: str
    recording: Recording      # after artifacts/filter/resample
    markers: MarkerSet        # positions at recording.sample_rate
    epochs: EpochCollection
    evoked: Evoked


# ── single recording ─────────────────────────────────────────────────────────

def preprocess(
    recording: Recording,
    markers: MarkerSet,
    config: ProcessingConfig = PROC_CONFIG,
) -> Tuple[Recording, MarkerSet]:
    """Artifact removal --> highpass --> lowpass --> resample. Returns new (recording, markers)."""
    rec = recording
    if config.artifact_mode is not None:
        rec = remove_artifacts(rec, markers, config.artifact_tmin, config.artifact_tmax,
                               mode=config.artifact_mode)

    # filters are designed per call at the current rate
    if config.highpass is not None:
        rec = apply_filter(rec, design_highpass(config.filter_order, config.highpass, rec.sample_rate),
                           n_jobs=config.n_jobs)
    if config.lowpass is not None:
        rec = apply_filter(rec, design_lowpass(config.filter_order, config.lowpass, rec.sample_rate),
                           n_jobs=config.n_jobs)

    if config.target_sample_rate is not None and config.target_sample_rate != rec.sample_rate:
        old_rate = rec.sample_rate
        rec = resample(rec, config.target_sample_rate, method=config.resample_method,
                       window=config.resample_window, n_jobs=config.n_jobs)
        markers = markers.rescaled(old_rate, rec.sample_rate)

    return rec, markers


def process_recording(
    recording: Recording,
    markers: MarkerSet,
    config: ProcessingConfig = PROC_CONFIG,
    name: str = "",
) -> PipelineResult:
    #preprocess --> epoch --> reject --> average --> baseline
    rec, markers = preprocess(recording, markers, config)

    epochs = epoch(config.tmin, config.tmax, rec, markers)
    if config.reject_threshold is not None:
        epochs = reject_bad_epochs(epochs, config.reject_threshold)

    ev = evoked(epochs)
    if config.baseline is not None:
        ev = apply_baseline(ev, config.baseline)

    return PipelineResult(name=name, recording=rec, markers=markers, epochs=epochs, evoked=ev)


# ── many recordings ──────────────────────────────────────────────────────────

def process_many(
    items: Iterable[Tuple[str, Recording, MarkerSet]],
    config: ProcessingConfig = PROC_CONFIG,
    verbose: bool = True,
) -> List[PipelineResult]:
    #(name, recording, markers) triples; a failing recording is reported and left out
    results = []
    n_items = 0
    for name, recording, markers in items:
        n_items += 1
        try:
            result = process_recording(recording, markers, config, name=name)
        except Exception as e:
            logger.exception(f"Processing {name} failed")
            if verbose:
                print(f"  ERROR {name}: {e}")
            continue

        results.append(result)
        if verbose:
            print(f"  {name}: {result.epochs.n_epochs} epochs, {result.evoked.n_channels} channels")

    if verbose:
        print(f"Processed {len(results)} of {n_items} recordings")
    return results


# ── export ───────────────────────────────────────────────────────────────────

def results_to_dataframe(results: List[PipelineResult]) -> pd.DataFrame:
    #one row per recording
    rows = []
    for result in results:
        rows.append({
            "recording": result.name,
            "sample_rate": result.recording.sample_rate,
            "n_channels": result.recording.n_channels,
            "n_samples": result.recording.n_samples,
            "n_markers": len(result.markers),
            "n_epochs": result.epochs.n_epochs,
        })
    return pd.DataFrame(rows)


def evoked_to_dataframe(results: List[PipelineResult]) -> pd.DataFrame:
    #all evoked responses in long format, tagged by recording
    frames = []
    for result in results:
        df = result.evoked.to_dataframe()
        df.insert(0, "recording", result.name)
        frames.append(df)
    if not frames:
        return pd.DataFrame(columns=["recording", "channel", "time", "amplitude"])
    return pd.concat(frames, ignore_index=True)
