# batlab_analysis/core/grouping.py
from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
import numpy as np

from .model import RunSummary

GROUP_KEYS: tuple[str, ...] = ("config", "os", "workload")
NO_WORKLOAD_LABEL = "none"


@dataclass(frozen=True)
class GroupStats:
    group_name: str
    run_count: int
    avg_watts_mean: float
    avg_watts_stddev: float                 # population stddev across runs
    efficiency_vs_baseline: float | None    # % less power than baseline; None without one


def _group_key(summary: RunSummary, group_by: str) -> str:
    if group_by == "os":
        return summary.os
    if group_by == "workload":
        return summary.workload or NO_WORKLOAD_LABEL
    return summary.config


def _mean_std(values: list[float]) -> tuple[float, float]:
    arr = np.asarray(values, dtype=float)
    return float(arr.mean()), float(arr.std())     # ddof=0: population


def group_summaries(summaries: list[RunSummary],
                    group_by: str = "config",
                    baseline: str | None = None) -> dict[str, GroupStats]:
    """
    Descriptive per-group statistics of run-level average power.

    ``group_by`` is one of config | os | workload (anything else means config).
    With ``baseline`` naming an existing group, each group also gets
    ``(baseline_mean - mean) / baseline_mean * 100``: positive = more efficient.
    """
    if group_by not in GROUP_KEYS:
        group_by = "config"

    groups: dict[str, list[float]] = defaultdict(list)
    for s in summaries:
        groups[_group_key(s, group_by)].append(s.avg_watts)

    baseline_watts = None
    if baseline is not None and baseline in groups:
        baseline_watts, _ = _mean_std(groups[baseline])

    out: dict[str, GroupStats] = {}
    for name, watts in sorted(groups.items()):
        m, sd = _mean_std(watts)
        eff = None
        if baseline_watts:
            eff = (baseline_watts - m) / baseline_watts * 100.0
        out[name] = GroupStats(
            group_name=name,
            run_count=len(watts),
            avg_watts_mean=m,
            avg_watts_stddev=sd,
            efficiency_vs_baseline=eff,
        )
    return out


# --- config-driven wrapper helpers ---

@dataclass
class PreparedGrouping:
    group_by: str
    baseline: str | None


def prepare_grouping(global_cfg: dict) -> PreparedGrouping:
    """Read the grouping section from config (defaults: by config, no baseline)."""
    grp = (global_cfg or {}).get("grouping", {}) or {}
    group_by = str(grp.get("group_by", "config")).lower().strip()
    if group_by not in GROUP_KEYS:
        group_by = "config"
    baseline = grp.get("baseline")
    baseline = str(baseline) if baseline not in (None, "") else None
    return PreparedGrouping(group_by=group_by, baseline=baseline)
