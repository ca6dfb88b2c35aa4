from __future__ import annotations

from typing import List, Dict, Optional, Any, Iterable, Tuple
import json
import csv

from .core import PCB
from .errors import WorkloadError


class EventLogger:
    def __init__(self) -> None:
        self.process_events: List[Dict[str, Any]] = []
        self.timeline: List[Dict[str, Any]] = []

    def log_process_event(self, time_s: int, pid: int, event: str, **details: Any) -> None:
        entry = {
            "time": time_s,
            "pid": pid,
            "event": event,
        }
        entry.update(details)
        self.process_events.append(entry)

    def log_timeline_slice(self, start: int, end: int, pid: Optional[int], reason: str) -> None:
        # Extend the previous slice when the same occupant simply keeps going.
        if self.timeline:
            last = self.timeline[-1]
            if last["end"] == start and last["pid"] == pid and last["reason"] == reason:
                last["end"] = end
                return
        self.timeline.append({
            "start": start,
            "end": end,
            "pid": pid,
            "reason": reason,
        })

    def events_for(self, pid: int, event: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            e for e in self.process_events
            if e["pid"] == pid and (event is None or e["event"] == event)
        ]

    def export_json(self, path: str) -> None:
        data = {
            "process_events": self.process_events,
            "timeline": self.timeline,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def export_csv(self, base_path_no_ext: str) -> None:
        detail_keys = sorted({k for e in self.process_events for k in e} - {"time", "pid", "event"})
        with open(f"{base_path_no_ext}_events.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event"] + detail_keys)
            writer.writeheader()
            for row in self.process_events:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_timeline.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["start", "end", "pid", "reason"])
            writer.writeheader()
            for row in self.timeline:
                writer.writerow(row)


def trace_segments(trace: List[str], start_time: int = 0) -> List[Tuple[str, int, int]]:
    """Collapse a per-unit trace into ``(label, start, end)`` runs."""
    segments: List[Tuple[str, int, int]] = []
    t = start_time
    for label in trace:
        if segments and segments[-1][0] == label and segments[-1][2] == t:
            prev_label, prev_start, _ = segments[-1]
            segments[-1] = (prev_label, prev_start, t + 1)
        else:
            segments.append((label, t, t + 1))
        t += 1
    return segments


def clone_workload(processes: Iterable[PCB]) -> List[PCB]:
    return [p.clone() for p in processes]


def sample_workload() -> List[PCB]:
    """The fixed five-process demonstration workload."""
    return [
        PCB(pid=1, name="P1", arrival_time=0, burst_time=10, priority=2),
        PCB(pid=2, name="P2", arrival_time=1, burst_time=5, priority=1),
        PCB(pid=3, name="P3", arrival_time=2, burst_time=8, priority=3),
        PCB(pid=4, name="P4", arrival_time=3, burst_time=4, priority=2),
        PCB(pid=5, name="P5", arrival_time=4, burst_time=6, priority=1),
    ]


def parse_process_spec(raw: str, pid: int) -> PCB:
    """Parse ``NAME:ARRIVAL:BURST[:PRIORITY]`` into a process record."""
    parts = [part.strip() for part in raw.split(":")]
    if len(parts) not in (3, 4) or not parts[0]:
        raise WorkloadError(f"expected NAME:ARRIVAL:BURST[:PRIORITY], got {raw!r}")
    try:
        numbers = [int(x) for x in parts[1:]]
    except ValueError:
        raise WorkloadError(f"non-integer time or priority in {raw!r}") from None
    arrival, burst = numbers[0], numbers[1]
    priority = numbers[2] if len(numbers) == 3 else 0
    return PCB(pid=pid, name=parts[0], arrival_time=arrival, burst_time=burst, priority=priority)
