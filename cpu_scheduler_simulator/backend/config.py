"""
Strategy configuration.

Every config is validated when it is built, so a bad quantum or queue layout
is rejected before any simulation time elapses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

from .errors import ConfigurationError


class AgingMode(Enum):
    """How aging boundaries are detected while the clock advances."""
    BOUNDARY = "boundary"  # every multiple of the interval crossed, even inside a bulk jump
    EXACT = "exact"        # only when a scheduling cycle starts exactly on a multiple


class QueueAlgorithm(Enum):
    """Per-queue discipline for the multilevel queue."""
    FCFS = "FCFS"
    ROUND_ROBIN = "RR"


def _require_int(name: str, value, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        qualifier = "positive" if minimum == 1 else f">= {minimum}"
        raise ConfigurationError(f"{name} must be {qualifier}, got {value}")


def _coerce_aging_mode(value) -> AgingMode:
    try:
        return AgingMode(value)
    except ValueError:
        choices = ", ".join(m.value for m in AgingMode)
        raise ConfigurationError(f"aging_mode must be one of {choices}, got {value!r}") from None


@dataclass
class SchedulerConfig:
    """Settings shared by every strategy."""
    context_switch_overhead: int = 0

    def __post_init__(self):
        _require_int("context_switch_overhead", self.context_switch_overhead, 0)


@dataclass
class RoundRobinConfig(SchedulerConfig):
    time_quantum: int = 2

    def __post_init__(self):
        super().__post_init__()
        _require_int("time_quantum", self.time_quantum, 1)


@dataclass
class PriorityConfig(SchedulerConfig):
    preemptive: bool = False
    aging_enabled: bool = False
    aging_interval: int = 5
    aging_mode: AgingMode = AgingMode.BOUNDARY

    def __post_init__(self):
        super().__post_init__()
        _require_int("aging_interval", self.aging_interval, 1)
        self.aging_mode = _coerce_aging_mode(self.aging_mode)


@dataclass(frozen=True)
class QueueDescriptor:
    """One queue of a multilevel queue: who it admits and how it is served."""
    priority_threshold: int
    algorithm: QueueAlgorithm = QueueAlgorithm.FCFS
    quantum: int = 0

    def __post_init__(self):
        try:
            algorithm = QueueAlgorithm(self.algorithm)
        except ValueError:
            raise ConfigurationError(f"unknown queue algorithm {self.algorithm!r}") from None
        object.__setattr__(self, "algorithm", algorithm)
        _require_int("priority_threshold", self.priority_threshold, 0)
        if algorithm is QueueAlgorithm.ROUND_ROBIN:
            _require_int("round robin queue quantum", self.quantum, 1)


def default_queue_descriptors() -> List[QueueDescriptor]:
    return [
        QueueDescriptor(0, QueueAlgorithm.ROUND_ROBIN, 2),
        QueueDescriptor(1, QueueAlgorithm.ROUND_ROBIN, 4),
        QueueDescriptor(2, QueueAlgorithm.FCFS),
        QueueDescriptor(3, QueueAlgorithm.FCFS),
    ]


@dataclass
class MultilevelQueueConfig(SchedulerConfig):
    queue_descriptors: List[QueueDescriptor] = field(default_factory=default_queue_descriptors)

    def __post_init__(self):
        super().__post_init__()
        descriptors = list(self.queue_descriptors)
        if not descriptors:
            raise ConfigurationError("at least one queue descriptor is required")
        for d in descriptors:
            if not isinstance(d, QueueDescriptor):
                raise ConfigurationError(f"expected QueueDescriptor, got {d!r}")
        descriptors.sort(key=lambda d: d.priority_threshold)
        thresholds = [d.priority_threshold for d in descriptors]
        if len(set(thresholds)) != len(thresholds):
            raise ConfigurationError(f"queue thresholds overlap: {thresholds}")
        self.queue_descriptors = descriptors


@dataclass
class MultilevelFeedbackQueueConfig(SchedulerConfig):
    num_levels: int = 3
    level_quanta: Optional[Union[List[int], Dict[int, int]]] = None
    aging_enabled: bool = True
    aging_interval: int = 1
    aging_threshold: int = 10
    aging_mode: AgingMode = AgingMode.BOUNDARY

    def __post_init__(self):
        super().__post_init__()
        _require_int("num_levels", self.num_levels, 1)
        _require_int("aging_interval", self.aging_interval, 1)
        _require_int("aging_threshold", self.aging_threshold, 1)
        self.aging_mode = _coerce_aging_mode(self.aging_mode)

        # Doubling pattern by default: 2, 4, 8, ...
        quanta = [2 * 2 ** level for level in range(self.num_levels)]
        overrides = self.level_quanta
        if isinstance(overrides, dict):
            for level, quantum in overrides.items():
                self._check_level(level)
                quanta[level] = quantum
        elif overrides is not None:
            overrides = list(overrides)
            if len(overrides) != self.num_levels:
                raise ConfigurationError(
                    f"level_quanta has {len(overrides)} entries for {self.num_levels} levels"
                )
            quanta = overrides
        for level, quantum in enumerate(quanta):
            _require_int(f"quantum for level {level}", quantum, 1)
        self.level_quanta = quanta

    def _check_level(self, level) -> None:
        if isinstance(level, bool) or not isinstance(level, int) or not 0 <= level < self.num_levels:
            raise ConfigurationError(f"level {level!r} is outside 0..{self.num_levels - 1}")

    def set_time_quantum(self, level: int, quantum: int) -> None:
        """Override the quantum of a single level."""
        self._check_level(level)
        _require_int(f"quantum for level {level}", quantum, 1)
        self.level_quanta[level] = quantum
