"""
Simulation engine shared by every scheduling strategy.

The engine owns the virtual clock, the process set and the execution trace for
a single run. Strategies receive it explicitly and drive it; nothing about a run
lives on the strategy object between runs.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from .config import AgingMode
from .core import PCB, ProcessState, IDLE_LABEL, SWITCH_LABEL, RESERVED_LABELS
from .errors import ConfigurationError, InvariantViolation, WorkloadError
from .utils import EventLogger


ClockListener = Callable[[int, int, Optional[PCB]], None]


def validate_workload(processes: List[PCB]) -> None:
    """Reject process sets that cannot be simulated."""
    seen_pids = set()
    seen_names = set()
    for p in processes:
        for attr in ("arrival_time", "burst_time", "priority"):
            value = getattr(p, attr)
            if isinstance(value, bool) or not isinstance(value, int):
                raise WorkloadError(f"{p.name}: {attr} must be an integer, got {value!r}")
        if p.arrival_time < 0:
            raise WorkloadError(f"{p.name}: arrival_time cannot be negative")
        if p.burst_time <= 0:
            raise WorkloadError(f"{p.name}: burst_time must be strictly positive")
        if p.pid in seen_pids:
            raise WorkloadError(f"duplicate pid {p.pid}")
        if p.name in seen_names:
            raise WorkloadError(f"duplicate process name {p.name!r}")
        if p.name in RESERVED_LABELS:
            raise WorkloadError(f"process name {p.name!r} is reserved for the trace")
        if not p.is_fresh:
            raise WorkloadError(f"{p.name} has already been scheduled; reset() or clone() it first")
        seen_pids.add(p.pid)
        seen_names.add(p.name)


class SimulationEngine:
    """Virtual clock plus process set for one scheduling run."""

    def __init__(self, processes: Iterable[PCB], context_switch_overhead: int = 0,
                 logger: Optional[EventLogger] = None):
        if isinstance(context_switch_overhead, bool) or not isinstance(context_switch_overhead, int) \
                or context_switch_overhead < 0:
            raise ConfigurationError(
                f"context_switch_overhead must be a non-negative integer, got {context_switch_overhead!r}"
            )
        self.processes: List[PCB] = list(processes)
        validate_workload(self.processes)

        self.context_switch_overhead = context_switch_overhead
        self.logger = logger or EventLogger()
        self.trace: List[str] = []
        self.last_process: Optional[PCB] = None
        self.busy_time = 0
        self.idle_time = 0
        self.switch_time = 0

        self._order: Dict[int, int] = {p.pid: i for i, p in enumerate(self.processes)}
        self._pending: List[PCB] = sorted(self.processes, key=self.arrival_key)
        self._next_pending = 0
        self._listeners: List[ClockListener] = []

        self.start_time = self._pending[0].arrival_time if self._pending else 0
        self.current_time = self.start_time

    def arrival_key(self, pcb: PCB):
        """Stable admission order: arrival time, then position in the workload."""
        return (pcb.arrival_time, self._order[pcb.pid])

    @property
    def context_switches(self) -> int:
        return sum(p.stats.context_switches for p in self.processes)

    def add_clock_listener(self, listener: ClockListener) -> None:
        """Call ``listener(start, end, holder)`` every time the clock advances.

        ``holder`` is the process that owns the CPU for the slice: the running
        process, or the one being dispatched while its switch overhead is paid.
        """
        self._listeners.append(listener)

    def admit_arrivals(self) -> List[PCB]:
        """Move every arrived NEW process to READY, in admission order."""
        admitted: List[PCB] = []
        while (self._next_pending < len(self._pending)
               and self._pending[self._next_pending].arrival_time <= self.current_time):
            pcb = self._pending[self._next_pending]
            self._next_pending += 1
            pcb.state = ProcessState.READY
            self.logger.log_process_event(self.current_time, pcb.pid, "admit")
            admitted.append(pcb)
        return admitted

    def next_arrival_time(self) -> Optional[int]:
        if self._next_pending >= len(self._pending):
            return None
        return self._pending[self._next_pending].arrival_time

    def all_terminated(self) -> bool:
        return all(p.state is ProcessState.TERMINATED for p in self.processes)

    def waiting_at(self, instant: int, running: Optional[PCB] = None) -> List[PCB]:
        """Processes that have arrived by ``instant`` and are not holding the CPU."""
        return [
            p for p in self.processes
            if p is not running and (
                p.state is ProcessState.READY
                or (p.state is ProcessState.NEW and p.arrival_time <= instant)
            )
        ]

    def accrue_waiting(self, start: int, end: int, running: Optional[PCB] = None) -> None:
        """Charge ``[start, end)`` to everyone who had arrived and was kept off the CPU.

        Processes arriving inside the window are charged from their arrival, so a
        bulk jump accrues exactly what unit stepping would.
        """
        for p in self.processes:
            if p is running:
                continue
            if p.state is ProcessState.READY:
                p.stats.waiting_time += end - start
            elif p.state is ProcessState.NEW and p.arrival_time < end:
                p.stats.waiting_time += end - max(p.arrival_time, start)

    def _advance_clock(self, units: int, running: Optional[PCB], label: str, reason: str,
                       holder: Optional[PCB] = None) -> None:
        if units <= 0:
            return
        start = self.current_time
        end = start + units
        self.accrue_waiting(start, end, running)
        self.trace.extend([label] * units)
        self.current_time = end
        self.logger.log_timeline_slice(start, end, running.pid if running else None, reason)
        holder = holder if holder is not None else running
        for listener in self._listeners:
            listener(start, end, holder)

    def context_switch(self, previous: Optional[PCB], new_process: Optional[PCB], **details) -> None:
        """Hand the CPU from ``previous`` to ``new_process``.

        Switching between two distinct processes counts as a context switch and
        costs the configured overhead. ``start_time`` is stamped after the
        overhead, when the process actually begins executing. The overhead
        accrues waiting time to ``new_process``, but it already holds the CPU
        as far as aging is concerned.
        """
        if new_process is not None and new_process.state not in (ProcessState.READY, ProcessState.RUNNING):
            raise InvariantViolation(f"cannot dispatch {new_process.name} in state {new_process.state.value}")

        if previous is not None and previous is not new_process and previous.state is ProcessState.RUNNING:
            previous.state = ProcessState.READY

        if previous is not None and new_process is not None and previous is not new_process:
            new_process.stats.context_switches += 1
            if self.context_switch_overhead:
                self._advance_clock(self.context_switch_overhead, None, SWITCH_LABEL, "context_switch",
                                    holder=new_process)
                self.switch_time += self.context_switch_overhead

        if new_process is None:
            return
        new_process.state = ProcessState.RUNNING
        if new_process.stats.start_time is None:
            new_process.stats.start_time = self.current_time
        self.last_process = new_process
        self.logger.log_process_event(self.current_time, new_process.pid, "dispatch", **details)

    def execute(self, pcb: PCB, units: int) -> int:
        """Run ``pcb`` for up to ``units`` and return the time it actually consumed."""
        if pcb.state is not ProcessState.RUNNING:
            raise InvariantViolation(f"{pcb.name} is not running (state {pcb.state.value})")
        consumed = pcb.advance(units)
        self.busy_time += consumed
        self._advance_clock(consumed, pcb, pcb.name, "run")
        return consumed

    def preempt(self, pcb: PCB) -> None:
        if pcb.state is not ProcessState.RUNNING:
            raise InvariantViolation(f"cannot preempt {pcb.name} in state {pcb.state.value}")
        pcb.state = ProcessState.READY
        self.logger.log_process_event(self.current_time, pcb.pid, "preempt", remaining=pcb.remaining_time)

    def complete(self, pcb: PCB) -> None:
        if pcb.state is not ProcessState.RUNNING:
            raise InvariantViolation(f"cannot complete {pcb.name} in state {pcb.state.value}")
        pcb.stats.completion_time = self.current_time
        pcb.finalize_metrics()
        pcb.state = ProcessState.TERMINATED
        self.logger.log_process_event(self.current_time, pcb.pid, "complete")

    def idle_until_next_arrival(self) -> None:
        """Jump the clock to the next arrival, recording one idle slot per unit."""
        next_arrival = self.next_arrival_time()
        if next_arrival is None:
            raise InvariantViolation(
                f"nothing ready and nothing pending at t={self.current_time}, "
                "but not every process has terminated"
            )
        units = next_arrival - self.current_time
        if units > 0:
            self._advance_clock(units, None, IDLE_LABEL, "idle")
            self.idle_time += units
        self.last_process = None


class AgingTimer:
    """Fires an aging callback on every positive multiple of ``interval``.

    A scheduling cycle that starts exactly on a multiple always fires. In
    BOUNDARY mode, multiples crossed inside a bulk clock advance fire as well;
    in EXACT mode they are skipped. The run's start instant never fires and each
    boundary fires at most once. The process holding the CPU, including one
    still paying its switch overhead, is never aged.
    """

    def __init__(self, engine: SimulationEngine, interval: int, mode: AgingMode,
                 callback: Callable[[List[PCB], int], None]):
        self._engine = engine
        self._interval = interval
        self._callback = callback
        self._last_boundary = engine.start_time
        if mode is AgingMode.BOUNDARY:
            engine.add_clock_listener(self._on_advance)

    def check(self, running: Optional[PCB] = None) -> None:
        """Cycle-start check against the current clock."""
        now = self._engine.current_time
        if now % self._interval == 0 and now > self._last_boundary:
            self._fire(now, running)

    def _on_advance(self, start: int, end: int, holder: Optional[PCB]) -> None:
        # [start, end): a multiple at ``start`` that no cycle-start check saw,
        # e.g. right after switch overhead, fires here. ``end`` is left to the
        # next advance or the next cycle start.
        first = -(-start // self._interval) * self._interval
        for boundary in range(first, end, self._interval):
            if boundary > self._last_boundary:
                self._fire(boundary, holder)

    def _fire(self, boundary: int, running: Optional[PCB]) -> None:
        self._last_boundary = boundary
        waiting = self._engine.waiting_at(boundary, running)
        if waiting:
            self._callback(waiting, boundary)
