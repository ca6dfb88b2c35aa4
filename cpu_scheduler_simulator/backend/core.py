"""
Core data structures for the CPU scheduler simulator.
Includes the process record (PCB), its statistics and the ready queue.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Any

from .errors import InvariantViolation


IDLE_LABEL = "IDLE"
SWITCH_LABEL = "CS"
RESERVED_LABELS = (IDLE_LABEL, SWITCH_LABEL)


class ProcessState(Enum):
    """Process states in the system."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    WAITING = "WAITING"  # reserved, no transition reaches it
    TERMINATED = "TERMINATED"


@dataclass
class ProcessStats:
    """Statistics tracked for each process."""
    start_time: Optional[int] = None
    completion_time: Optional[int] = None
    waiting_time: int = 0
    turnaround_time: Optional[int] = None
    response_time: Optional[int] = None
    context_switches: int = 0


@dataclass
class PCB:
    """Process Control Block - identity, workload, scheduling state and metrics."""
    pid: int
    arrival_time: int
    burst_time: int
    priority: int = 0
    name: Optional[str] = None
    remaining_time: Optional[int] = None
    state: ProcessState = ProcessState.NEW
    stats: ProcessStats = field(default_factory=ProcessStats)
    base_priority: Optional[int] = field(default=None, repr=False)

    def __post_init__(self):
        """Initialize derived attributes."""
        if self.name is None:
            self.name = f"P{self.pid}"
        if self.remaining_time is None:
            self.remaining_time = self.burst_time
        if self.base_priority is None:
            self.base_priority = self.priority

    def advance(self, units: int) -> int:
        """Consume up to ``units`` of CPU time and return what was actually used.

        Less than requested is returned when the process finishes mid-request.
        Asking a finished process for more work is an engine bug, not a clamp.
        """
        if units < 0:
            raise InvariantViolation(f"{self.name}: cannot advance by negative units ({units})")
        if self.remaining_time <= 0:
            raise InvariantViolation(f"{self.name}: no remaining time to execute")
        consumed = min(units, self.remaining_time)
        self.remaining_time -= consumed
        return consumed

    def is_complete(self) -> bool:
        return self.remaining_time == 0

    def finalize_metrics(self) -> None:
        """Derive turnaround and response time once the process has finished."""
        if self.stats.turnaround_time is not None:
            raise InvariantViolation(f"{self.name}: metrics already finalized")
        if self.stats.completion_time is None or self.stats.start_time is None:
            raise InvariantViolation(f"{self.name}: start and completion time must be set first")
        if not self.is_complete():
            raise InvariantViolation(f"{self.name}: still has {self.remaining_time} units to run")
        self.stats.turnaround_time = self.stats.completion_time - self.arrival_time
        self.stats.response_time = self.stats.start_time - self.arrival_time

    def reset(self) -> None:
        """Restore the record to its initial snapshot so the workload can be re-run."""
        self.remaining_time = self.burst_time
        self.priority = self.base_priority
        self.state = ProcessState.NEW
        self.stats = ProcessStats()

    def clone(self) -> "PCB":
        """Return an independent copy of the record in its initial snapshot."""
        return PCB(
            pid=self.pid,
            arrival_time=self.arrival_time,
            burst_time=self.burst_time,
            priority=self.base_priority,
            name=self.name,
        )

    @property
    def is_fresh(self) -> bool:
        return (
            self.state is ProcessState.NEW
            and self.remaining_time == self.burst_time
            and self.stats == ProcessStats()
        )


class ReadyQueue:
    """Ready queue with O(1) membership checks.

    ``pop()``/``peek()`` serve insertion order by default. Passing a ``key``
    selects the minimum under that key instead, ties going to the earlier
    insertion. Keys are evaluated at selection time, so priorities mutated by
    aging are always honoured.
    """

    def __init__(self):
        self._items: List[PCB] = []
        self._pid_map: Dict[int, PCB] = {}

    def push(self, pcb: PCB) -> None:
        """Add a process at the tail. A process may only be queued once."""
        if pcb.pid in self._pid_map:
            raise InvariantViolation(f"{pcb.name} is already queued")
        self._items.append(pcb)
        self._pid_map[pcb.pid] = pcb

    def _select_index(self, key: Optional[Callable[[PCB], Any]] = None) -> Optional[int]:
        if not self._items:
            return None
        if key is None:
            return 0
        return min(range(len(self._items)), key=lambda i: key(self._items[i]))

    def pop(self, key: Optional[Callable[[PCB], Any]] = None) -> Optional[PCB]:
        """Remove and return the next process."""
        idx = self._select_index(key)
        if idx is None:
            return None
        pcb = self._items.pop(idx)
        del self._pid_map[pcb.pid]
        return pcb

    def peek(self, key: Optional[Callable[[PCB], Any]] = None) -> Optional[PCB]:
        """View the next process without removing it."""
        idx = self._select_index(key)
        if idx is None:
            return None
        return self._items[idx]

    def remove(self, pid: int) -> Optional[PCB]:
        """Remove a specific process by PID."""
        pcb = self._pid_map.pop(pid, None)
        if pcb is None:
            return None
        self._items.remove(pcb)
        return pcb

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def __contains__(self, pcb: PCB) -> bool:
        return pcb.pid in self._pid_map

    def __len__(self) -> int:
        return len(self._items)

    def get_all_processes(self) -> List[PCB]:
        return list(self._items)
