"""Simulation subsystem — the paging kernel and its results.

Re-exports public symbols so callers can write::

    from py_paging.simulation import PagingKernel, SimulationConfig
"""

from py_paging.simulation.config import DEFAULT_PHYSICAL_FRAMES, SimulationConfig
from py_paging.simulation.experiment import Comparison, PageReplacementExperiment, compare
from py_paging.simulation.kernel import PagingKernel
from py_paging.simulation.summary import (
    MAX_PAGE_FAULT_SAMPLES,
    PageFaultRecord,
    ProcessStats,
    SimulationSummary,
    VictimInfo,
)

__all__ = [
    "DEFAULT_PHYSICAL_FRAMES",
    "MAX_PAGE_FAULT_SAMPLES",
    "Comparison",
    "PageFaultRecord",
    "PageReplacementExperiment",
    "PagingKernel",
    "ProcessStats",
    "SimulationConfig",
    "SimulationSummary",
    "VictimInfo",
    "compare",
]
