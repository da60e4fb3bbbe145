# batlab_analysis/core/metrics.py
from __future__ import annotations
import math
from typing import Sequence
import numpy as np

from .model import TelemetrySample

# one sample per minute is assumed; the log's own sampling_hz is not consulted
ASSUMED_SAMPLE_INTERVAL_S = 60.0


def mean(values: Sequence[float]) -> float:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    return float(arr.sum() / arr.size)


def percentile(sorted_values: Sequence[float], p: float) -> float:
    """
    Linear-interpolated percentile of an ascending sequence, p in [0, 1].

    The caller sorts. Empty input gives 0.0, a single value is returned as is.
    """
    n = len(sorted_values)
    if n == 0:
        return 0.0
    if n == 1:
        return float(sorted_values[0])

    index = p * (n - 1)
    lo, hi = int(math.floor(index)), int(math.ceil(index))
    if lo == hi:
        return float(sorted_values[lo])
    w = index - lo
    return float(sorted_values[lo]) * (1.0 - w) + float(sorted_values[hi]) * w


def estimate_duration(count: int) -> float:
    # TODO: derive from first/last timestamp once existing summaries can be regenerated
    if count < 2:
        return 0.0
    return count * ASSUMED_SAMPLE_INTERVAL_S


def battery_drop(samples: Sequence[TelemetrySample]) -> tuple[float, float, float]:
    """(start_pct, end_pct, pct_drop); all zero with fewer than two samples."""
    if len(samples) < 2:
        return 0.0, 0.0, 0.0
    start, end = samples[0].percentage, samples[-1].percentage
    drop = start - end if start > end else 0.0
    return start, end, drop


def summarize_samples(samples: Sequence[TelemetrySample]) -> dict:
    if not samples:
        return {"duration_s": 0.0, "avg_watts": 0.0, "median_watts": 0.0,
                "p95_watts": 0.0, "avg_cpu_load": 0.0, "avg_ram_pct": 0.0,
                "avg_temp_c": 0.0, "start_pct": 0.0, "end_pct": 0.0, "pct_drop": 0.0}

    watts = np.array([s.watts for s in samples], dtype=float)
    watts_sorted = np.sort(watts)      # shared by median and p95
    start, end, drop = battery_drop(samples)
    return {
        "duration_s":   estimate_duration(len(samples)),
        "avg_watts":    mean(watts),
        "median_watts": percentile(watts_sorted, 0.5),
        "p95_watts":    percentile(watts_sorted, 0.95),
        "avg_cpu_load": mean([s.cpu_load for s in samples]),
        "avg_ram_pct":  mean([s.ram_pct for s in samples]),
        "avg_temp_c":   mean([s.temp_c for s in samples]),
        "start_pct":    start,
        "end_pct":      end,
        "pct_drop":     drop,
    }
