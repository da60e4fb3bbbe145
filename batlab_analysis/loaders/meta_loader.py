# batlab_analysis/loaders/meta_loader.py
from __future__ import annotations
from pathlib import Path
import logging

from ..core.lineparse import extract_string
from ..core.model import LABEL_MAX, LOG_SUFFIX, META_READ_LIMIT, META_SUFFIX, RunMetadata
from .jsonl_loader import run_id_from_path

_LOG = logging.getLogger(__name__)

UNKNOWN = "unknown"


def meta_path_for(log_path: Path) -> Path:
    """<run>.jsonl -> <run>.meta.json in the same folder."""
    log_path = Path(log_path)
    name = log_path.name
    if name.endswith(LOG_SUFFIX):
        name = name[:-len(LOG_SUFFIX)]
    return log_path.with_name(name + META_SUFFIX)


# ---- run id parsing: TIMESTAMP_HOSTNAME_OS_CONFIG[_WORKLOAD] ----
def parse_run_id_fallback(run_id: str) -> RunMetadata:
    # consecutive separators do not produce empty tokens
    parts = [p for p in (run_id or "").split("_") if p]
    if len(parts) < 4:
        return RunMetadata(config=UNKNOWN, os=UNKNOWN, workload="")
    return RunMetadata(
        config=parts[3][:LABEL_MAX],
        os=parts[2][:LABEL_MAX],
        workload=parts[4][:LABEL_MAX] if len(parts) >= 5 else "",
    )


def _read_meta_buffer(meta_path: Path) -> str | None:
    if not meta_path.is_file():
        return None
    try:
        with meta_path.open("rb") as f:
            raw = f.read(META_READ_LIMIT)
    except OSError as e:
        _LOG.debug("cannot read %s: %s", meta_path.name, e)
        return None
    return raw.decode("utf-8", errors="replace")


def resolve_metadata(log_path: Path) -> RunMetadata:
    """
    Identity of a run: the companion .meta.json when it names a config,
    otherwise whatever the run id encodes. Never raises.
    """
    config = os_name = workload = ""
    buf = _read_meta_buffer(meta_path_for(log_path))
    if buf is not None:
        config = extract_string(buf, "config", LABEL_MAX)
        os_name = extract_string(buf, "os", LABEL_MAX)
        workload = extract_string(buf, "workload", LABEL_MAX)

    if config:
        return RunMetadata(config=config, os=os_name, workload=workload)

    run_id = run_id_from_path(Path(log_path))
    meta = parse_run_id_fallback(run_id)
    _LOG.debug("metadata for %s taken from run id → %s", run_id, meta)
    return meta
