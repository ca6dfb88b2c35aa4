"""
Base scheduler plus the Round Robin and Priority strategies.
"""

from __future__ import annotations

import dataclasses
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional, Tuple

from .config import SchedulerConfig, RoundRobinConfig, PriorityConfig
from .core import PCB, ReadyQueue
from .engine import SimulationEngine, AgingTimer
from .errors import ConfigurationError
from .utils import EventLogger


class BaseScheduler(ABC):
    """Abstract base class for all schedulers."""

    config_class = SchedulerConfig

    def __init__(self, config: Optional[SchedulerConfig] = None):
        config = config if config is not None else self.config_class()
        if not isinstance(config, self.config_class):
            raise ConfigurationError(
                f"{type(self).__name__} expects {self.config_class.__name__}, got {type(config).__name__}"
            )
        # Own copy, so per-scheduler tuning stays local.
        self.config = dataclasses.replace(config)

    @property
    @abstractmethod
    def name(self) -> str:
        """Human readable algorithm name."""

    @abstractmethod
    def schedule(self, engine: SimulationEngine) -> None:
        """Drive ``engine`` until every process has terminated."""

    def create_engine(self, processes: Iterable[PCB], logger: Optional[EventLogger] = None) -> SimulationEngine:
        return SimulationEngine(processes, self.config.context_switch_overhead, logger=logger)

    def run(self, processes: Iterable[PCB]) -> Tuple[List[PCB], List[str]]:
        """Simulate ``processes`` and return them terminated, with the execution trace."""
        engine = self.create_engine(processes)
        self.schedule(engine)
        return engine.processes, engine.trace


class RoundRobinScheduler(BaseScheduler):
    """Round Robin scheduler implementation."""

    config_class = RoundRobinConfig

    def __init__(self, config: Optional[RoundRobinConfig] = None):
        super().__init__(config)
        self.time_quantum = self.config.time_quantum

    @property
    def name(self) -> str:
        return f"Round Robin (Quantum={self.time_quantum})"

    def schedule(self, engine: SimulationEngine) -> None:
        ready_queue = ReadyQueue()
        while not engine.all_terminated():
            for pcb in engine.admit_arrivals():
                ready_queue.push(pcb)

            if ready_queue.is_empty():
                engine.idle_until_next_arrival()
                continue

            process = ready_queue.pop()
            engine.context_switch(engine.last_process, process)
            engine.execute(process, self.time_quantum)

            if process.is_complete():
                engine.complete(process)
                continue

            # Arrivals during the slice go ahead of the process that just ran.
            for pcb in engine.admit_arrivals():
                ready_queue.push(pcb)
            engine.preempt(process)
            ready_queue.push(process)


class PriorityScheduler(BaseScheduler):
    """Priority-based scheduler (lower value = higher precedence).

    Non-preemptive mode runs the selected process for its whole remaining burst.
    Preemptive mode advances one unit at a time and swaps in any ready process
    with a strictly lower priority value. With aging enabled, every waiting
    process gains one priority step per aging boundary, down to 0.
    """

    config_class = PriorityConfig

    def __init__(self, config: Optional[PriorityConfig] = None):
        super().__init__(config)
        self.preemptive = self.config.preemptive

    @property
    def name(self) -> str:
        mode = "Preemptive" if self.preemptive else "Non-Preemptive"
        aging = " with Aging" if self.config.aging_enabled else ""
        return f"{mode} Priority{aging}"

    def schedule(self, engine: SimulationEngine) -> None:
        ready_queue = ReadyQueue()

        def precedence(pcb: PCB):
            return (pcb.priority,) + engine.arrival_key(pcb)

        def age(waiting: List[PCB], boundary: int) -> None:
            for pcb in waiting:
                if pcb.priority > 0:
                    pcb.priority -= 1
                    engine.logger.log_process_event(boundary, pcb.pid, "age", priority=pcb.priority)

        aging = None
        if self.config.aging_enabled:
            aging = AgingTimer(engine, self.config.aging_interval, self.config.aging_mode, age)

        running: Optional[PCB] = None
        while not engine.all_terminated():
            for pcb in engine.admit_arrivals():
                ready_queue.push(pcb)
            if aging is not None:
                aging.check(running)

            if running is None:
                if ready_queue.is_empty():
                    engine.idle_until_next_arrival()
                    continue
                running = ready_queue.pop(key=precedence)
                engine.context_switch(engine.last_process, running)
            elif self.preemptive:
                challenger = ready_queue.peek(key=precedence)
                if challenger is not None and challenger.priority < running.priority:
                    ready_queue.remove(challenger.pid)
                    engine.preempt(running)
                    ready_queue.push(running)
                    engine.context_switch(running, challenger)
                    running = challenger

            if self.preemptive:
                engine.execute(running, 1)
            else:
                engine.execute(running, running.remaining_time)

            if running.is_complete():
                engine.complete(running)
                running = None
