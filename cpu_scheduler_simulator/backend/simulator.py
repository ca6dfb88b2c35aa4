from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple, Type
from dataclasses import dataclass

import pandas as pd

from .config import (
    SchedulerConfig, RoundRobinConfig, PriorityConfig,
    MultilevelQueueConfig, MultilevelFeedbackQueueConfig,
)
from .core import PCB
from .errors import ConfigurationError
from .metrics import SchedulingMetrics, compute_metrics
from .multilevel import MultilevelQueueScheduler, MultilevelFeedbackQueueScheduler
from .schedulers import BaseScheduler, RoundRobinScheduler, PriorityScheduler
from .utils import EventLogger, clone_workload


@dataclass
class SimulationResult:
    policy: str
    algorithm: str
    processes: List[PCB]
    trace: List[str]
    start_time: int
    metrics: SchedulingMetrics
    logger: EventLogger


class Scheduler:
    RR = "RR"
    PRIORITY = "PRIORITY"  # preemptive or not, see PriorityConfig
    MLQ = "MLQ"
    MLFQ = "MLFQ"

    ALL = (RR, PRIORITY, MLQ, MLFQ)


_REGISTRY: Dict[str, Type[BaseScheduler]] = {
    Scheduler.RR: RoundRobinScheduler,
    Scheduler.PRIORITY: PriorityScheduler,
    Scheduler.MLQ: MultilevelQueueScheduler,
    Scheduler.MLFQ: MultilevelFeedbackQueueScheduler,
}


def build_scheduler(policy: str, config: Optional[SchedulerConfig] = None) -> BaseScheduler:
    try:
        scheduler_cls = _REGISTRY[policy]
    except KeyError:
        raise ConfigurationError(
            f"unknown policy {policy!r}; expected one of {', '.join(Scheduler.ALL)}"
        ) from None
    return scheduler_cls(config)


def simulate(
    processes: Sequence[PCB],
    policy: str = Scheduler.RR,
    config: Optional[SchedulerConfig] = None,
) -> SimulationResult:
    """Run one policy over ``processes`` (mutated in place) and summarise it."""
    scheduler = build_scheduler(policy, config)
    engine = scheduler.create_engine(processes)
    scheduler.schedule(engine)
    return SimulationResult(
        policy=policy,
        algorithm=scheduler.name,
        processes=engine.processes,
        trace=engine.trace,
        start_time=engine.start_time,
        metrics=compute_metrics(engine.processes),
        logger=engine.logger,
    )


def default_strategies() -> List[Tuple[str, SchedulerConfig]]:
    return [
        (Scheduler.RR, RoundRobinConfig(time_quantum=3)),
        (Scheduler.PRIORITY, PriorityConfig(preemptive=False, aging_enabled=True, aging_interval=5)),
        (Scheduler.PRIORITY, PriorityConfig(preemptive=True, aging_enabled=True, aging_interval=5)),
        (Scheduler.MLQ, MultilevelQueueConfig()),
        (Scheduler.MLFQ, MultilevelFeedbackQueueConfig(num_levels=3, aging_enabled=True, aging_threshold=10)),
    ]


def compare_strategies(
    processes: Sequence[PCB],
    strategies: Optional[Sequence[Tuple[str, SchedulerConfig]]] = None,
) -> pd.DataFrame:
    """Run every strategy on its own copy of the workload and tabulate the metrics.

    ``processes`` themselves are never scheduled, only cloned.
    """
    strategies = default_strategies() if strategies is None else strategies
    rows = []
    for policy, config in strategies:
        result = simulate(clone_workload(processes), policy, config)
        row = {"algorithm": result.algorithm, "policy": policy}
        row.update(result.metrics.as_dict())
        rows.append(row)
    return pd.DataFrame(rows).set_index("algorithm")
