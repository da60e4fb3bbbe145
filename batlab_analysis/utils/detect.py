# batlab_analysis/utils/detect.py
from __future__ import annotations
from pathlib import Path

from ..core.model import LOG_SUFFIX


def is_run_log(p: Path) -> bool:
    return p.is_file() and p.name.endswith(LOG_SUFFIX)


def discover_run_logs(root: Path) -> list[Path]:
    """
    Telemetry logs (*.jsonl) directly inside ``root``; subfolders are not walked.
    Raises OSError when ``root`` cannot be listed.
    """
    root = Path(root)
    items = [p for p in root.iterdir() if is_run_log(p)]
    # deterministic ordering
    items.sort(key=lambda p: p.name)
    return items
