"""
Run-level metrics derived from terminated processes.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict, Iterable, List

from .core import PCB, ProcessState


@dataclass(frozen=True)
class SchedulingMetrics:
    """Summary of one scheduling run."""
    average_waiting_time: float = 0.0
    average_turnaround_time: float = 0.0
    average_response_time: float = 0.0
    cpu_utilization: float = 0.0  # percent
    throughput: float = 0.0       # processes per time unit
    total_context_switches: int = 0
    total_time: int = 0           # makespan: earliest arrival to last completion
    completed_processes: int = 0

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def compute_avg(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def compute_metrics(processes: Iterable[PCB]) -> SchedulingMetrics:
    """Reduce a process set to summary metrics.

    Only TERMINATED processes are counted, so this can be called on any
    process list, independently of how it was scheduled.
    """
    done = [p for p in processes if p.state is ProcessState.TERMINATED]
    if not done:
        return SchedulingMetrics()

    makespan = max(p.stats.completion_time for p in done) - min(p.arrival_time for p in done)
    total_burst = sum(p.burst_time for p in done)

    return SchedulingMetrics(
        average_waiting_time=compute_avg([p.stats.waiting_time for p in done]),
        average_turnaround_time=compute_avg([p.stats.turnaround_time for p in done]),
        average_response_time=compute_avg([p.stats.response_time for p in done]),
        cpu_utilization=(total_burst / makespan) * 100 if makespan > 0 else 0.0,
        throughput=len(done) / makespan if makespan > 0 else 0.0,
        total_context_switches=sum(p.stats.context_switches for p in done),
        total_time=makespan,
        completed_processes=len(done),
    )
