# batlab_analysis/core/model.py
from __future__ import annotations
from dataclasses import dataclass

LOG_SUFFIX = ".jsonl"
META_SUFFIX = ".meta.json"
META_READ_LIMIT = 4095        # bytes of a .meta.json that are looked at

# field bounds (characters) shared with the acquisition side
TIMESTAMP_MAX = 63
SOURCE_MAX = 31
LABEL_MAX = 127               # config / os / workload
RUN_ID_MAX = 255


@dataclass(frozen=True)
class TelemetrySample:
    timestamp: str            # e.g. 2024-01-01T00:00:00.000000000Z
    percentage: float         # battery charge, 0..100
    watts: float              # instantaneous draw
    cpu_load: float           # 1-min load average
    ram_pct: float
    temp_c: float
    source: str               # "upower", "sysctl", "sysfs", ...


@dataclass(frozen=True)
class RunMetadata:
    config: str
    os: str
    workload: str = ""        # empty when the run had no workload


@dataclass(frozen=True)
class RunSummary:
    run_id: str
    config: str
    os: str
    workload: str
    samples_total: int
    samples_valid: int
    duration_s: float = 0.0
    avg_watts: float = 0.0
    median_watts: float = 0.0
    p95_watts: float = 0.0
    avg_cpu_load: float = 0.0
    avg_ram_pct: float = 0.0
    avg_temp_c: float = 0.0
    start_pct: float = 0.0
    end_pct: float = 0.0
    pct_drop: float = 0.0
