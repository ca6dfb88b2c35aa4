"""
Multilevel queue schedulers.

MultilevelQueueScheduler routes each process once, by priority, to a fixed
queue. MultilevelFeedbackQueueScheduler moves processes between levels:
down when they burn a whole quantum, up when aging says they waited too long.
"""

from typing import Dict, List, Optional

from .config import MultilevelQueueConfig, MultilevelFeedbackQueueConfig, QueueAlgorithm
from .core import PCB, ReadyQueue
from .engine import SimulationEngine, AgingTimer
from .schedulers import BaseScheduler


def _first_nonempty(queues: List[ReadyQueue]) -> Optional[int]:
    for index, queue in enumerate(queues):
        if not queue.is_empty():
            return index
    return None


class MultilevelQueueScheduler(BaseScheduler):
    """Static multilevel queue: no feedback, no cross-queue preemption."""

    config_class = MultilevelQueueConfig

    def __init__(self, config: Optional[MultilevelQueueConfig] = None):
        super().__init__(config)
        self.descriptors = self.config.queue_descriptors
        # pid -> queue index, fixed at first readiness
        self.assignments: Dict[int, int] = {}

    @property
    def name(self) -> str:
        return f"Multilevel Queue ({len(self.descriptors)} queues)"

    def queue_for(self, pcb: PCB) -> int:
        """First queue whose threshold admits the priority, else the last queue."""
        for index, descriptor in enumerate(self.descriptors):
            if pcb.priority <= descriptor.priority_threshold:
                return index
        return len(self.descriptors) - 1

    def schedule(self, engine: SimulationEngine) -> None:
        self.assignments = {}
        queues = [ReadyQueue() for _ in self.descriptors]

        def enqueue_arrivals() -> None:
            for pcb in engine.admit_arrivals():
                index = self.queue_for(pcb)
                self.assignments[pcb.pid] = index
                engine.logger.log_process_event(engine.current_time, pcb.pid, "assign", queue=index)
                queues[index].push(pcb)

        while not engine.all_terminated():
            enqueue_arrivals()

            index = _first_nonempty(queues)
            if index is None:
                engine.idle_until_next_arrival()
                continue

            descriptor = self.descriptors[index]
            process = queues[index].pop()
            engine.context_switch(engine.last_process, process, queue=index)

            if descriptor.algorithm is QueueAlgorithm.FCFS:
                engine.execute(process, process.remaining_time)
            else:
                engine.execute(process, descriptor.quantum)

            if process.is_complete():
                engine.complete(process)
                continue

            enqueue_arrivals()
            engine.preempt(process)
            queues[self.assignments[process.pid]].push(process)


class MultilevelFeedbackQueueScheduler(BaseScheduler):
    """
    Adaptive multilevel feedback queue.

    1. New processes enter level 0.
    2. The head of the lowest non-empty level runs for that level's quantum.
    3. Using the whole quantum without finishing demotes one level.
    4. With aging on, each aging boundary adds one to the time-in-level counter
       of every waiting process; reaching the threshold promotes one level.
    """

    config_class = MultilevelFeedbackQueueConfig

    def __init__(self, config: Optional[MultilevelFeedbackQueueConfig] = None):
        super().__init__(config)
        self.num_levels = self.config.num_levels
        self.levels: Dict[int, int] = {}
        self.time_in_level: Dict[int, int] = {}

    @property
    def time_quanta(self) -> List[int]:
        return self.config.level_quanta

    def set_time_quantum(self, level: int, quantum: int) -> None:
        self.config.set_time_quantum(level, quantum)

    @property
    def name(self) -> str:
        aging = " with Aging" if self.config.aging_enabled else ""
        return f"Multilevel Feedback Queue ({self.num_levels} levels){aging}"

    def schedule(self, engine: SimulationEngine) -> None:
        self.levels = {}
        self.time_in_level = {}
        queues = [ReadyQueue() for _ in range(self.num_levels)]

        def place(pcb: PCB) -> None:
            self.levels.setdefault(pcb.pid, 0)
            self.time_in_level.setdefault(pcb.pid, 0)
            queues[self.levels[pcb.pid]].push(pcb)

        def move(pcb: PCB, new_level: int, event: str, time_s: int) -> None:
            old_level = self.levels[pcb.pid]
            self.levels[pcb.pid] = new_level
            self.time_in_level[pcb.pid] = 0
            if old_level == new_level:
                return
            # Only re-queue if it was sitting in a queue; a dispatched process
            # is pushed by the main loop at its new level.
            if queues[old_level].remove(pcb.pid) is not None:
                queues[new_level].push(pcb)
            engine.logger.log_process_event(
                time_s, pcb.pid, event, from_level=old_level, to_level=new_level
            )

        def age(waiting: List[PCB], boundary: int) -> None:
            for pcb in waiting:
                level = self.levels.setdefault(pcb.pid, 0)
                self.time_in_level[pcb.pid] = self.time_in_level.get(pcb.pid, 0) + 1
                if level > 0 and self.time_in_level[pcb.pid] >= self.config.aging_threshold:
                    move(pcb, level - 1, "promote", boundary)

        aging = None
        if self.config.aging_enabled:
            aging = AgingTimer(engine, self.config.aging_interval, self.config.aging_mode, age)

        while not engine.all_terminated():
            for pcb in engine.admit_arrivals():
                place(pcb)
            if aging is not None:
                aging.check()

            level = _first_nonempty(queues)
            if level is None:
                engine.idle_until_next_arrival()
                continue

            process = queues[level].pop()
            engine.context_switch(engine.last_process, process, level=level)
            quantum = self.time_quanta[level]
            used = engine.execute(process, quantum)

            if process.is_complete():
                engine.complete(process)
                continue

            for pcb in engine.admit_arrivals():
                place(pcb)
            engine.preempt(process)
            if used == quantum:
                lower = min(self.levels[process.pid] + 1, self.num_levels - 1)
                move(process, lower, "demote", engine.current_time)
            queues[self.levels[process.pid]].push(process)
