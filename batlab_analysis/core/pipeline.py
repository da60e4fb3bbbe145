# batlab_analysis/core/pipeline.py
from __future__ import annotations
from pathlib import Path
import logging

from .metrics import summarize_samples
from .model import RunSummary
from .validate import filter_valid
from ..loaders.jsonl_loader import load_samples, run_id_from_path
from ..loaders.meta_loader import resolve_metadata
from ..utils.detect import discover_run_logs

_LOG = logging.getLogger(__name__)


def analyze_run(log_path: Path, min_samples: int) -> RunSummary | None:
    """
    Build the summary for one .jsonl run log.

    Returns None when the run is unusable: unreadable file, no telemetry
    lines, or fewer than ``min_samples`` samples before or after filtering.
    """
    log_path = Path(log_path)
    run_id = run_id_from_path(log_path)

    try:
        samples = load_samples(log_path)
    except (OSError, ValueError) as e:
        _LOG.debug("skip %s: %s", run_id, e)
        return None

    # cheap reject before filtering
    if len(samples) < min_samples:
        _LOG.debug("skip %s: %d samples < min %d", run_id, len(samples), min_samples)
        return None

    valid = filter_valid(samples)
    if len(valid) < min_samples:
        _LOG.debug("skip %s: %d valid samples < min %d", run_id, len(valid), min_samples)
        return None

    meta = resolve_metadata(log_path)
    stats = summarize_samples(valid)

    return RunSummary(
        run_id=run_id,
        config=meta.config,
        os=meta.os,
        workload=meta.workload,
        samples_total=len(samples),
        samples_valid=len(valid),
        **stats,
    )


def load_run_summaries(data_dir: Path, min_samples: int) -> list[RunSummary]:
    """
    Summaries for every accepted run log in ``data_dir`` (non-recursive).

    Rejected runs are left out silently; only an unreadable directory raises.
    """
    summaries: list[RunSummary] = []
    candidates = discover_run_logs(Path(data_dir))
    for path in candidates:
        summary = analyze_run(path, min_samples)
        if summary is not None:
            summaries.append(summary)

    _LOG.info("accepted %d of %d run log(s) in %s", len(summaries), len(candidates), data_dir)
    return summaries
