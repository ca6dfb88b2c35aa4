"""Discrete-time CPU scheduling simulator."""

from .backend.config import (
    AgingMode,
    QueueAlgorithm,
    QueueDescriptor,
    SchedulerConfig,
    RoundRobinConfig,
    PriorityConfig,
    MultilevelQueueConfig,
    MultilevelFeedbackQueueConfig,
)
from .backend.core import PCB, ProcessState, ProcessStats, ReadyQueue, IDLE_LABEL, SWITCH_LABEL
from .backend.errors import SchedulerError, ConfigurationError, WorkloadError, InvariantViolation
from .backend.metrics import SchedulingMetrics, compute_metrics
from .backend.multilevel import MultilevelQueueScheduler, MultilevelFeedbackQueueScheduler
from .backend.schedulers import BaseScheduler, RoundRobinScheduler, PriorityScheduler
from .backend.simulator import Scheduler, SimulationResult, simulate, compare_strategies
from .backend.utils import EventLogger, sample_workload

__version__ = "0.1.0"
