"""Memory subsystem — page table entries, frames, and replacement policies.

Re-exports public symbols so callers can write::

    from py_paging.memory import ClockPolicy, PhysicalFrame
"""

from py_paging.memory.model import PageTableEntry, PhysicalFrame, bind, unbind
from py_paging.memory.policies import (
    AlgorithmType,
    BasePolicy,
    ClockPolicy,
    PolicyFactory,
    RandomPolicy,
    ReplacementPolicy,
    make_policy,
)

__all__ = [
    "AlgorithmType",
    "BasePolicy",
    "ClockPolicy",
    "PageTableEntry",
    "PhysicalFrame",
    "PolicyFactory",
    "RandomPolicy",
    "ReplacementPolicy",
    "bind",
    "make_policy",
    "unbind",
]
