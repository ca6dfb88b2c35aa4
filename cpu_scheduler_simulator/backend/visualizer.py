from __future__ import annotations

from typing import List, Optional, Dict
import os

import numpy as np
import matplotlib.pyplot as plt

from .core import PCB, IDLE_LABEL, SWITCH_LABEL
from .metrics import SchedulingMetrics
from .utils import EventLogger, trace_segments


def ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def plot_gantt(processes: List[PCB], logger: EventLogger, out_path: Optional[str] = None) -> None:
    fig, ax = plt.subplots(figsize=(12, 3 + 0.4 * max(1, len(processes))))

    ordered = sorted(processes, key=lambda p: p.pid)
    y_positions: Dict[int, int] = {p.pid: i for i, p in enumerate(ordered)}
    cmap = plt.get_cmap("tab20")
    pid_to_color = {p.pid: cmap(i % cmap.N) for i, p in enumerate(ordered)}

    for seg in logger.timeline:
        start = seg["start"]
        end = seg["end"]
        if seg["reason"] == "context_switch":
            ax.axvspan(start, end, color="#bbbbbb", alpha=0.5, hatch="//")
            continue
        pid = seg["pid"]
        if pid is None:
            continue
        ax.barh(y_positions[pid], end - start, left=start, color=pid_to_color[pid], edgecolor="black", alpha=0.9)

    if logger.timeline:
        t0 = logger.timeline[0]["start"]
        t1 = logger.timeline[-1]["end"]
        step = max(1, (t1 - t0) // 20)
        ax.set_xticks(np.arange(t0, t1 + 1, step))

    ax.set_yticks([y_positions[p.pid] for p in ordered])
    ax.set_yticklabels([p.name for p in ordered])
    ax.set_xlabel("Time")
    ax.set_title("Gantt Chart (shaded: context switches)")
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    fig.tight_layout()

    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()


def render_text_gantt(trace: List[str], start_time: int = 0) -> str:
    """Two-line chart: one cell per segment, then the time at every edge.

    IDLE renders as ``--`` and context-switch overhead as ``##``.
    """
    if not trace:
        return "(empty trace)"
    bar = "|"
    axis = str(start_time)
    for label, start, end in trace_segments(trace, start_time):
        if label == IDLE_LABEL:
            text = "--"
        elif label == SWITCH_LABEL:
            text = "##"
        else:
            text = label
        # wide enough for the time label printed at either edge
        cell = f" {text} ".center(len(str(end)) + 1)
        bar += cell + "|"
        axis = axis.ljust(len(bar) - 1) + str(end)
    return bar + "\n" + axis


def format_results_table(processes: List[PCB]) -> str:
    headers = ["Process", "Arrival", "Burst", "Priority", "Start", "Completion",
               "Waiting", "Turnaround", "Response", "Switches"]
    rows = []
    for p in sorted(processes, key=lambda p: p.pid):
        s = p.stats
        rows.append([
            p.name, p.arrival_time, p.burst_time, p.base_priority,
            s.start_time, s.completion_time, s.waiting_time,
            s.turnaround_time, s.response_time, s.context_switches,
        ])
    cells = [[("-" if v is None else str(v)) for v in row] for row in rows]
    widths = [max([len(h)] + [len(r[i]) for r in cells]) for i, h in enumerate(headers)]

    lines = ["  ".join(h.ljust(w) for h, w in zip(headers, widths))]
    lines.append("  ".join("-" * w for w in widths))
    for r in cells:
        lines.append("  ".join(v.ljust(w) for v, w in zip(r, widths)))
    return "\n".join(lines)


def format_metrics(metrics: SchedulingMetrics) -> str:
    return "\n".join([
        f"Average Waiting Time:    {metrics.average_waiting_time:.2f}",
        f"Average Turnaround Time: {metrics.average_turnaround_time:.2f}",
        f"Average Response Time:   {metrics.average_response_time:.2f}",
        f"CPU Utilization:         {metrics.cpu_utilization:.2f}%",
        f"Throughput:              {metrics.throughput:.3f} processes/unit",
        f"Context Switches:        {metrics.total_context_switches}",
        f"Total Time:              {metrics.total_time}",
    ])
