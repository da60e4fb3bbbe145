# batlab_analysis/core/reports.py
from __future__ import annotations
from dataclasses import asdict
from pathlib import Path
from typing import Literal, Mapping, Sequence
import numpy as np
import pandas as pd
from scipy.io import savemat

from .grouping import GroupStats
from .model import RunSummary

ReportFormat = Literal["csv", "mat", "json", "both", "all"]   # both = csv + mat

SUMMARY_COLUMNS = [
    "run_id", "config", "os", "workload", "duration_s", "samples_total", "samples_valid",
    "avg_watts", "median_watts", "p95_watts", "avg_cpu_load", "avg_ram_pct", "avg_temp_c",
    "pct_drop", "start_pct", "end_pct",
]
SUMMARY_TEXT_COLUMNS = ("run_id", "config", "os", "workload")

GROUP_COLUMNS = ["group_name", "run_count", "avg_watts_mean", "avg_watts_stddev",
                 "efficiency_vs_baseline"]
GROUP_TEXT_COLUMNS = ("group_name",)


def summaries_to_frame(summaries: Sequence[RunSummary]) -> pd.DataFrame:
    """One row per run, columns in the order downstream report tools expect."""
    return pd.DataFrame([asdict(s) for s in summaries], columns=SUMMARY_COLUMNS)


def grouped_to_frame(stats: Mapping[str, GroupStats]) -> pd.DataFrame:
    return pd.DataFrame([asdict(g) for g in stats.values()], columns=GROUP_COLUMNS)


def _write_csv(df_out: pd.DataFrame, out_csv: Path, title: str) -> None:
    out_csv.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_csv(out_csv, index=False, encoding="utf-8")
    print(f"[OK] wrote report: {title} → {out_csv}")


def _write_json(df_out: pd.DataFrame, out_json: Path, title: str) -> None:
    out_json.parent.mkdir(parents=True, exist_ok=True)
    df_out.to_json(out_json, orient="records", indent=2)
    print(f"[OK] wrote report: {title} → {out_json}")


def _to_mat_cellstr(seq: list[str]) -> np.ndarray:
    """Make a MATLAB column cell array from a list of strings."""
    seq2 = [("" if s is None else str(s)) for s in seq]
    arr = np.empty((len(seq2), 1), dtype=object)
    arr[:, 0] = seq2
    return arr


def _write_mat(df_out: pd.DataFrame, out_mat: Path, varname: str, title: str,
               text_columns: Sequence[str]) -> None:
    """
    Save a MATLAB struct with fields matching the CSV columns.
    Strings become cell arrays (Nx1), numerics become double (Nx1, NaN for missing).
    """
    out_mat.parent.mkdir(parents=True, exist_ok=True)

    mat_struct = {}
    for name in df_out.columns:
        if name in text_columns:
            mat_struct[name] = _to_mat_cellstr(df_out[name].tolist())
        else:
            col = pd.to_numeric(df_out[name], errors="coerce")
            mat_struct[name] = col.to_numpy(dtype=float).reshape(-1, 1)

    savemat(out_mat, {varname: mat_struct})
    print(f"[OK] wrote report: {title} → {out_mat}")


def _emit(df_out: pd.DataFrame, out_base: Path, title: str, fmt: str,
          mat_variable: str, text_columns: Sequence[str]) -> None:
    if fmt in ("csv", "both", "all"):
        _write_csv(df_out, out_base.with_suffix(".csv"), title)
    if fmt in ("mat", "both", "all"):
        _write_mat(df_out, out_base.with_suffix(".mat"), mat_variable, title, text_columns)
    if fmt in ("json", "all"):
        _write_json(df_out, out_base.with_suffix(".json"), title)


def write_report(summaries: Sequence[RunSummary],
                 out_base: Path,
                 title: str,
                 fmt: ReportFormat = "csv",
                 mat_variable: str = "report") -> None:
    """
    Export the run summaries.
    - out_base is a *base path without extension* (e.g., .../runs)
    - fmt: "csv" | "mat" | "json" | "both" (csv + mat) | "all"
    - mat_variable: MATLAB variable name of the struct
    """
    if not summaries:
        return
    _emit(summaries_to_frame(summaries), out_base, title, fmt, mat_variable,
          SUMMARY_TEXT_COLUMNS)


def write_grouped_report(stats: Mapping[str, GroupStats], out_base: Path, title: str,
                         fmt: ReportFormat = "csv", mat_variable: str = "report_grouped") -> None:
    if not stats:
        return
    _emit(grouped_to_frame(stats), out_base, title, fmt, mat_variable, GROUP_TEXT_COLUMNS)
