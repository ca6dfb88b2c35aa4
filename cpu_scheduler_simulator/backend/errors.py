"""
Error taxonomy for the scheduling engine.

Configuration errors are raised before a run starts, workload errors when a
process set is admitted to an engine, and invariant violations when the engine
is driven incorrectly.
"""


class SchedulerError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(SchedulerError, ValueError):
    """Invalid strategy configuration (quantum, overhead, queue layout, ...)."""


class WorkloadError(SchedulerError, ValueError):
    """Invalid process set (negative times, duplicate identity, reused records)."""


class InvariantViolation(SchedulerError, RuntimeError):
    """The engine or a process record was driven into an illegal state."""
