from pathlib import Path
from unittest import mock
import json
import runpy
import tempfile
import unittest

import pandas as pd
import yaml

from batlab_analysis.core.grouping import group_summaries, prepare_grouping
from batlab_analysis.core.model import RunSummary, TelemetrySample
from batlab_analysis.core.pipeline import analyze_run, load_run_summaries
from batlab_analysis.core.reports import (SUMMARY_COLUMNS, summaries_to_frame, write_grouped_report,
                                         write_report)
from batlab_analysis.loaders.jsonl_loader import format_sample_line
from batlab_analysis.main import main
from batlab_analysis.utils.detect import discover_run_logs


def _write_run(folder: Path, run_id: str, n_valid: int, n_invalid: int = 0,
               start_pct: float = 95.0, watts: float = 6.0) -> Path:
    lines = []
    for i in range(n_valid):
        lines.append(format_sample_line(TelemetrySample(
            timestamp=f"2024-01-01T00:{i % 60:02d}:00.000000000Z",
            percentage=start_pct - 0.5 * i, watts=watts + (i % 3),
            cpu_load=0.25, ram_pct=40.0, temp_c=50.0, source="sysfs",
        )))
    for _ in range(n_invalid):
        lines.append('{"t": "x", "pct": 150.0, "watts": 250.000, "src": "sysfs"}')
    path = folder / f"{run_id}.jsonl"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _summary(config, avg_watts, os="Linux", workload=""):
    return RunSummary(run_id=f"r_{config}_{avg_watts}", config=config, os=os, workload=workload,
                      samples_total=10, samples_valid=10, avg_watts=avg_watts)


class AnalyzeRunTests(unittest.TestCase):
    def test_summary_fields(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write_run(Path(tmpdir), "2024-01-01T00_host_Linux_tlp_idle", 120, n_invalid=3)
            s = analyze_run(path, min_samples=10)

        self.assertIsNotNone(s)
        self.assertEqual("2024-01-01T00_host_Linux_tlp_idle", s.run_id)
        self.assertEqual(("tlp", "Linux", "idle"), (s.config, s.os, s.workload))
        self.assertEqual(123, s.samples_total)
        self.assertEqual(120, s.samples_valid)
        self.assertEqual(7200.0, s.duration_s)
        self.assertAlmostEqual(95.0, s.start_pct)
        self.assertAlmostEqual(95.0 - 0.5 * 119, s.end_pct)
        self.assertAlmostEqual(0.5 * 119, s.pct_drop)
        self.assertAlmostEqual(7.0, s.median_watts)
        self.assertAlmostEqual(0.25, s.avg_cpu_load)

    def test_threshold_applies_after_filtering(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write_run(Path(tmpdir), "a_b_Linux_c", 9, n_invalid=5)
            self.assertIsNone(analyze_run(path, min_samples=10))
            s = analyze_run(path, min_samples=9)
        self.assertEqual(9, s.samples_valid)
        self.assertEqual(14, s.samples_total)

    def test_unreadable_or_empty_run_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            empty = Path(tmpdir) / "empty.jsonl"
            empty.write_text("\n", encoding="utf-8")
            self.assertIsNone(analyze_run(empty, min_samples=0))
            self.assertIsNone(analyze_run(Path(tmpdir) / "missing.jsonl", min_samples=0))


class CorpusLoaderTests(unittest.TestCase):
    def test_only_runs_above_threshold_survive(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write_run(root, "t1_host_Linux_good", 15)
            _write_run(root, "t2_host_Linux_short", 3)
            (root / "notes.txt").write_text("not a log", encoding="utf-8")
            (root / "t1_host_Linux_good.meta.json").write_text('{"config": "good"}', encoding="utf-8")
            summaries = load_run_summaries(root, min_samples=10)

        self.assertEqual(1, len(summaries))
        self.assertEqual("t1_host_Linux_good", summaries[0].run_id)
        self.assertEqual("good", summaries[0].config)
        self.assertEqual(15, summaries[0].samples_valid)

    def test_discovery_is_non_recursive(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "sub").mkdir()
            _write_run(root / "sub", "nested", 20)
            _write_run(root, "b_run", 20)
            _write_run(root, "a_run", 20)
            found = [p.name for p in discover_run_logs(root)]
        self.assertEqual(["a_run.jsonl", "b_run.jsonl"], found)

    def test_empty_directory_gives_empty_list(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            self.assertEqual([], load_run_summaries(Path(tmpdir), min_samples=10))

    def test_missing_directory_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            with self.assertRaises(OSError):
                load_run_summaries(Path(tmpdir) / "absent", min_samples=10)


class GroupingTests(unittest.TestCase):
    def test_group_stats_with_baseline(self):
        summaries = [_summary("stock", 10.0), _summary("stock", 12.0), _summary("tlp", 8.0)]
        stats = group_summaries(summaries, "config", baseline="stock")

        self.assertEqual(["stock", "tlp"], list(stats))
        self.assertEqual(2, stats["stock"].run_count)
        self.assertAlmostEqual(11.0, stats["stock"].avg_watts_mean)
        self.assertAlmostEqual(1.0, stats["stock"].avg_watts_stddev)
        self.assertAlmostEqual(0.0, stats["stock"].efficiency_vs_baseline)
        self.assertAlmostEqual((11.0 - 8.0) / 11.0 * 100.0, stats["tlp"].efficiency_vs_baseline)

    def test_workload_grouping_and_missing_baseline(self):
        summaries = [_summary("a", 5.0, workload="idle"), _summary("b", 7.0)]
        stats = group_summaries(summaries, "workload", baseline="absent")
        self.assertEqual({"idle", "none"}, set(stats))
        self.assertIsNone(stats["none"].efficiency_vs_baseline)

    def test_population_stddev_over_three_runs(self):
        summaries = [_summary("stock", w) for w in (2.0, 4.0, 9.0)]
        g = group_summaries(summaries)["stock"]
        self.assertAlmostEqual(5.0, g.avg_watts_mean)
        self.assertAlmostEqual((26.0 / 3.0) ** 0.5, g.avg_watts_stddev)

    def test_prepare_grouping_defaults(self):
        prep = prepare_grouping({"grouping": {"group_by": "bogus", "baseline": ""}})
        self.assertEqual("config", prep.group_by)
        self.assertIsNone(prep.baseline)


class ReportTests(unittest.TestCase):
    def test_frame_columns(self):
        df = summaries_to_frame([_summary("stock", 10.0), _summary("tlp", 8.0)])
        self.assertEqual(SUMMARY_COLUMNS, list(df.columns))
        self.assertEqual(2, len(df))

    def test_csv_and_mat_written(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "out" / "runs"
            write_report([_summary("stock", 10.0)], base, "runs", fmt="both")
            self.assertTrue(base.with_suffix(".mat").exists())
            df = pd.read_csv(base.with_suffix(".csv"))
        self.assertEqual(["stock"], df["config"].tolist())

    def test_json_written_and_reads_back(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "runs"
            write_report([_summary("stock", 10.0), _summary("tlp", 8.0)], base, "runs", fmt="json")
            self.assertFalse(base.with_suffix(".csv").exists())
            rows = json.loads(base.with_suffix(".json").read_text(encoding="utf-8"))
        self.assertEqual(["stock", "tlp"], [r["config"] for r in rows])
        self.assertEqual(SUMMARY_COLUMNS, list(rows[0]))
        self.assertAlmostEqual(8.0, rows[1]["avg_watts"])

    def test_grouped_json_keeps_missing_efficiency(self):
        stats = group_summaries([_summary("stock", 10.0)])
        with tempfile.TemporaryDirectory() as tmpdir:
            base = Path(tmpdir) / "grouped"
            write_grouped_report(stats, base, "grouped", fmt="all")
            self.assertTrue(base.with_suffix(".csv").exists())
            self.assertTrue(base.with_suffix(".mat").exists())
            rows = json.loads(base.with_suffix(".json").read_text(encoding="utf-8"))
        self.assertEqual("stock", rows[0]["group_name"])
        self.assertIsNone(rows[0]["efficiency_vs_baseline"])

    def test_main_end_to_end(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            data = root / "data"
            data.mkdir()
            _write_run(data, "t1_host_Linux_stock_idle", 12, watts=8.0)
            _write_run(data, "t2_host_Linux_tlp_idle", 12, watts=6.0)
            cfg = {
                "input": {"path": str(data)},
                "output": {"root": str(root / "out")},
                "analysis": {"min_samples": 10},
                "grouping": {"group_by": "config", "baseline": "stock"},
                "reports": {"format": "csv"},
                "logging": {"verbose": False, "level": "WARNING"},
            }
            cfg_path = root / "config.yaml"
            cfg_path.write_text(yaml.safe_dump(cfg), encoding="utf-8")

            self.assertEqual(0, main(cfg_path))
            runs = pd.read_csv(root / "out" / "runs.csv")
            grouped = pd.read_csv(root / "out" / "grouped_by_config.csv")

        self.assertEqual(2, len(runs))
        self.assertEqual(["stock", "tlp"], grouped["group_name"].tolist())
        self.assertGreater(grouped.set_index("group_name").loc["tlp", "efficiency_vs_baseline"], 0)

    def test_main_reports_missing_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            cfg_path = Path(tmpdir) / "config.yaml"
            cfg_path.write_text(yaml.safe_dump({"input": {"path": str(Path(tmpdir) / "nope")},
                                                "logging": {"verbose": False}}), encoding="utf-8")
            self.assertEqual(1, main(cfg_path))

    def test_main_accepts_empty_config_sections(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _write_run(root, "t1_host_Linux_stock", 12)
            cfg_path = root / "config.yaml"
            cfg_path.write_text(
                f"input:\n  path: {root}\noutput:\n  root: {root / 'out'}\n"
                "analysis:\nreports:\ngrouping:\nvalidation:\nlogging:\n",
                encoding="utf-8",
            )
            self.assertEqual(0, main(cfg_path))
            runs = pd.read_csv(root / "out" / "runs.csv")
        self.assertEqual(["stock"], runs["config"].tolist())

    def test_runs_as_module_with_config_argument(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            cfg_path = root / "config.yaml"
            cfg_path.write_text(yaml.safe_dump({"input": {"path": str(root)},
                                                "logging": {"verbose": False}}), encoding="utf-8")
            with mock.patch("sys.argv", ["batlab_analysis.main", str(cfg_path)]):
                with self.assertRaises(SystemExit) as ctx:
                    runpy.run_module("batlab_analysis.main", run_name="__main__")
        self.assertEqual(0, ctx.exception.code)
