# batlab_analysis/main.py
"""
Run from a checkout with ``python -m batlab_analysis.main [config.yaml]`` or,
once installed, with the ``batlab-analysis`` script.
"""
from __future__ import annotations
from pathlib import Path
import logging
import sys
import yaml

from batlab_analysis.core import validate
from batlab_analysis.core.grouping import group_summaries, prepare_grouping
from batlab_analysis.core.pipeline import load_run_summaries
from batlab_analysis.core.reports import write_grouped_report, write_report

DEFAULT_MIN_SAMPLES = 10


def _section(cfg: dict, name: str) -> dict:
    # "logging:" with no body loads as None
    return cfg.get(name) or {}


def load_config(cfg_path: Path) -> dict:
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def _setup_logging(cfg: dict) -> None:
    level_name = str(_section(cfg, "logging").get("level", "INFO")).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO),
                        format="%(levelname)s %(name)s: %(message)s")


def main(cfg_path: Path | None = None) -> int:
    # ---------- config ----------
    here = Path(__file__).resolve().parent
    cfg = load_config(cfg_path or here / "config.yaml")
    _setup_logging(cfg)
    validate.configure_from_config(cfg)

    in_path = Path(_section(cfg, "input").get("path", ".")).resolve()
    out_root = Path(_section(cfg, "output").get("root", "out")).resolve()
    min_samples = int(_section(cfg, "analysis").get("min_samples", DEFAULT_MIN_SAMPLES))

    verbose = bool(_section(cfg, "logging").get("verbose", True))
    if verbose:
        print(f"[cfg] input={in_path} (min_samples={min_samples})")
        print(f"[cfg] output={out_root}")

    # ---------- corpus ----------
    try:
        summaries = load_run_summaries(in_path, min_samples)
    except OSError as e:
        print(f"[ERROR] cannot read data directory {in_path}: {e}")
        return 1

    if not summaries:
        print(f"[INFO] No valid runs found in {in_path}")
        return 0
    if verbose:
        configs = sorted({s.config for s in summaries})
        print(f"[corpus] {len(summaries)} run(s) across {len(configs)} config(s): {', '.join(configs)}")

    # ---------- reports ----------
    fmt = str(_section(cfg, "reports").get("format", "csv")).lower()
    mat_var = str(_section(cfg, "reports").get("mat_variable", "report"))
    out_root.mkdir(parents=True, exist_ok=True)

    write_report(summaries, out_root / "runs", "individual runs", fmt=fmt, mat_variable=mat_var)

    prep = prepare_grouping(cfg)
    stats = group_summaries(summaries, prep.group_by, prep.baseline)
    if prep.baseline is not None and prep.baseline not in stats:
        print(f"[WARN] baseline group '{prep.baseline}' not found; efficiency left blank")
    write_grouped_report(
        stats,
        out_root / f"grouped_by_{prep.group_by}",
        f"grouped by {prep.group_by}",
        fmt=fmt,
        mat_variable=f"{mat_var}_grouped",
    )

    if verbose:
        print(f"[summary] finished with {len(summaries)} run(s), {len(stats)} group(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main(Path(sys.argv[1]) if len(sys.argv) > 1 else None))
