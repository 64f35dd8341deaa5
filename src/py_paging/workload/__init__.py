"""Workload subsystem — configuration, trace model, and generator.

Re-exports public symbols so callers can write::

    from py_paging.workload import WorkloadConfig, generate
"""

from py_paging.workload.config import WorkloadConfig
from py_paging.workload.events import (
    MemoryAccess,
    ProcessStart,
    ProcessTerminate,
    TraceEvent,
    WorkingSetChange,
    WorkloadTrace,
    event_rank,
    order_events,
)
from py_paging.workload.generator import WorkloadGenerator, generate

__all__ = [
    "MemoryAccess",
    "ProcessStart",
    "ProcessTerminate",
    "TraceEvent",
    "WorkingSetChange",
    "WorkloadConfig",
    "WorkloadGenerator",
    "WorkloadTrace",
    "event_rank",
    "generate",
    "order_events",
]
