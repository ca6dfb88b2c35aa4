import json
import re

import matplotlib
matplotlib.use("Agg")

from ..backend.config import RoundRobinConfig
from ..backend.metrics import compute_metrics
from ..backend.simulator import Scheduler, simulate
from ..backend.utils import EventLogger, sample_workload, trace_segments, parse_process_spec
from ..backend.visualizer import plot_gantt, render_text_gantt, format_results_table, format_metrics


class TestTextOutput:

    def test_trace_segments(self):
        trace = ["P1", "P1", "IDLE", "P2", "P2", "P2"]
        assert trace_segments(trace, 3) == [("P1", 3, 5), ("IDLE", 5, 6), ("P2", 6, 9)]
        assert trace_segments([]) == []

    def test_render_text_gantt(self):
        chart = render_text_gantt(["P1", "P1", "IDLE", "P2"], 0)
        bar, axis = chart.split("\n")
        assert bar == "| P1 | -- | P2 |"
        assert axis.split() == ["0", "2", "3", "4"]
        # every time mark sits under a cell border
        for mark in ("2", "3", "4"):
            assert bar[axis.index(mark)] == "|"

    def test_render_text_gantt_keeps_wide_times_aligned(self):
        chart = render_text_gantt(["A", "B"] * 6, 95)
        bar, axis = chart.split("\n")
        marks = [(m.start(), m.group()) for m in re.finditer(r"\d+", axis)]
        assert [int(text) for _, text in marks] == list(range(95, 108))
        for position, _ in marks:
            assert bar[position] == "|"

    def test_render_switches_and_empty(self):
        assert "##" in render_text_gantt(["P1", "CS", "P2"], 0)
        assert render_text_gantt([]) == "(empty trace)"

    def test_results_table(self):
        result = simulate(sample_workload(), Scheduler.RR, RoundRobinConfig(time_quantum=3))
        table = format_results_table(result.processes)
        lines = table.splitlines()
        assert lines[0].split()[:3] == ["Process", "Arrival", "Burst"]
        assert len(lines) == 2 + len(result.processes)
        assert lines[2].startswith("P1")

    def test_unfinished_rows_show_dashes(self):
        pcb = parse_process_spec("web:0:3", pid=1)
        assert "-" in format_results_table([pcb]).splitlines()[2]

    def test_format_metrics(self):
        result = simulate(sample_workload(), Scheduler.RR)
        text = format_metrics(result.metrics)
        assert "Average Waiting Time" in text
        assert "CPU Utilization:         100.00%" in text
        assert format_metrics(compute_metrics([])).count("0.00") >= 4


class TestPlot:

    def test_plot_gantt_saves_png(self, tmp_path):
        config = RoundRobinConfig(time_quantum=2, context_switch_overhead=1)
        result = simulate(sample_workload(), Scheduler.RR, config)
        out = tmp_path / "charts" / "gantt.png"
        plot_gantt(result.processes, result.logger, str(out))
        assert out.exists()
        assert out.stat().st_size > 0


class TestEventLogger:

    def test_export(self, tmp_path):
        result = simulate(sample_workload(), Scheduler.MLQ)
        path = tmp_path / "events.json"
        result.logger.export_json(str(path))
        data = json.loads(path.read_text())
        assert data["timeline"] == result.logger.timeline
        assert {e["event"] for e in data["process_events"]} >= {"admit", "assign", "dispatch", "complete"}

        base = tmp_path / "run"
        result.logger.export_csv(str(base))
        events_csv = (tmp_path / "run_events.csv").read_text().splitlines()
        assert events_csv[0].startswith("time,pid,event")
        assert len(events_csv) == 1 + len(result.logger.process_events)
        assert (tmp_path / "run_timeline.csv").exists()

    def test_timeline_merges_adjacent_slices(self):
        logger = EventLogger()
        logger.log_timeline_slice(0, 2, 1, "run")
        logger.log_timeline_slice(2, 3, 1, "run")
        logger.log_timeline_slice(3, 4, None, "idle")
        assert logger.timeline == [
            {"start": 0, "end": 3, "pid": 1, "reason": "run"},
            {"start": 3, "end": 4, "pid": None, "reason": "idle"},
        ]
