# batlab_analysis/loaders/jsonl_loader.py
from __future__ import annotations
from pathlib import Path
import logging

from ..core.lineparse import extract_number, extract_string
from ..core.model import (LOG_SUFFIX, RUN_ID_MAX, SOURCE_MAX, TIMESTAMP_MAX,
                          TelemetrySample)

_LOG = logging.getLogger(__name__)


# ---------- filename helpers ----------
def run_id_from_path(path: Path) -> str:
    """Base file name without the .jsonl extension."""
    name = Path(path).name
    if name.endswith(LOG_SUFFIX):
        name = name[:-len(LOG_SUFFIX)]
    return name[:RUN_ID_MAX]


# ---------- line <-> sample ----------
def parse_sample_line(line: str) -> TelemetrySample:
    return TelemetrySample(
        timestamp=extract_string(line, "t", TIMESTAMP_MAX),
        percentage=extract_number(line, "pct"),
        watts=extract_number(line, "watts"),
        cpu_load=extract_number(line, "cpu_load"),
        ram_pct=extract_number(line, "ram_pct"),
        temp_c=extract_number(line, "temp_c"),
        source=extract_string(line, "src", SOURCE_MAX),
    )


def format_sample_line(sample: TelemetrySample) -> str:
    """Line layout written by the logger (no trailing newline)."""
    return (
        f'{{"t": "{sample.timestamp}", "pct": {sample.percentage:.1f}, '
        f'"watts": {sample.watts:.3f}, "cpu_load": {sample.cpu_load:.2f}, '
        f'"ram_pct": {sample.ram_pct:.3f}, "temp_c": {sample.temp_c:.2f}, '
        f'"src": "{sample.source}"}}'
    )


# ---------- public loader ----------
def load_samples(path: Path) -> list[TelemetrySample]:
    """
    Read every non-blank line of a .jsonl telemetry log, in file order.

    Raises OSError if the file cannot be opened and ValueError if it holds no
    usable lines. Individual lines never fail; missing fields take defaults.
    """
    samples: list[TelemetrySample] = []
    with open(path, "r", encoding="utf-8", errors="replace") as f:
        for line in f:
            if not line.strip():
                continue
            samples.append(parse_sample_line(line))

    if not samples:
        raise ValueError(f"{Path(path).name}: no telemetry lines")
    _LOG.debug("read %d samples from %s", len(samples), Path(path).name)
    return samples
