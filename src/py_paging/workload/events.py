"""Trace model — the events a workload generator emits.

A trace is a flat, ordered list of four kinds of event:

- **ProcessStart** — a process appears with a fixed number of virtual pages.
- **WorkingSetChange** — the set of hot pages for a process moves.
- **MemoryAccess** — a process reads or writes one of its pages.
- **ProcessTerminate** — a process exits and releases its frames.

Every event carries a logical ``step``.  Several events can share a
step (a process starts, gets its first working set, and is accessed all
at step 0), so ties are broken by a fixed **rank**:

    Start (0) < WorkingSetChange (1) < MemoryAccess (2) < Terminate (3)

``TraceEvent`` is a closed union; consumers dispatch with ``match`` and
finish with ``assert_never`` so adding a kind is a type-checked change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeAlias, assert_never

if TYPE_CHECKING:
    from collections.abc import Iterable

    from py_paging.workload.config import WorkloadConfig


@dataclass(frozen=True)
class ProcessStart:
    """A process begins and gets a fresh page table."""

    step: int
    pid: int
    virtual_page_count: int


@dataclass(frozen=True)
class ProcessTerminate:
    """A process exits; every frame it holds is released."""

    step: int
    pid: int


@dataclass(frozen=True)
class WorkingSetChange:
    """The hot pages of a process move to a new subset."""

    step: int
    pid: int
    new_working_set: frozenset[int]


@dataclass(frozen=True)
class MemoryAccess:
    """A single read or write of one virtual page."""

    step: int
    pid: int
    page_index: int
    is_write: bool
    current_working_set: frozenset[int]


TraceEvent: TypeAlias = ProcessStart | WorkingSetChange | MemoryAccess | ProcessTerminate


def event_rank(event: TraceEvent) -> int:
    """Return the tie-breaking rank of an event within a single step."""
    match event:
        case ProcessStart():
            return 0
        case WorkingSetChange():
            return 1
        case MemoryAccess():
            return 2
        case ProcessTerminate():
            return 3
        case _:
            assert_never(event)


def sort_key(event: TraceEvent) -> tuple[int, int]:
    """Return the ``(step, rank)`` ordering key of an event."""
    return event.step, event_rank(event)


def order_events(events: Iterable[TraceEvent]) -> tuple[TraceEvent, ...]:
    """Stable-sort events by ``(step, rank)``."""
    return tuple(sorted(events, key=sort_key))


@dataclass(frozen=True)
class WorkloadTrace:
    """An ordered event sequence plus the configuration that produced it."""

    events: tuple[TraceEvent, ...]
    config: WorkloadConfig

    def __len__(self) -> int:
        """Return the number of events in the trace."""
        return len(self.events)

    def accesses(self) -> list[MemoryAccess]:
        """Return only the memory access events, in trace order."""
        return [e for e in self.events if isinstance(e, MemoryAccess)]

    def pids(self) -> list[int]:
        """Return every pid that appears in the trace, sorted."""
        return sorted({e.pid for e in self.events})
