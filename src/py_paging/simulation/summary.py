"""Run results — per-process counters, fault samples, and the summary.

A paging run ends with one ``SimulationSummary``: every run-wide
counter, a snapshot of each process's counters (live or already
terminated), and up to ``MAX_PAGE_FAULT_SAMPLES`` sample fault
decisions for the report.

``render()`` produces the plain-text report the CLI prints;
``to_dict()`` produces the JSON-ready form the web API returns.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from py_paging.memory.policies import AlgorithmType

MAX_PAGE_FAULT_SAMPLES = 25


@dataclass
class ProcessStats:
    """Per-process counters, incremented as the kernel replays a trace."""

    pid: int
    accesses: int = 0
    page_faults: int = 0
    write_count: int = 0
    dirty_evictions: int = 0

    def copy(self) -> ProcessStats:
        """Return a detached snapshot of these counters."""
        return dataclasses.replace(self)


@dataclass(frozen=True)
class VictimInfo:
    """The page evicted to satisfy a page fault."""

    pid: int
    page_index: int
    was_dirty: bool

    def describe(self) -> str:
        """Return ``pid=P,page=N``."""
        return f"pid={self.pid},page={self.page_index}"


@dataclass(frozen=True)
class PageFaultRecord:
    """One sampled page fault and how it was resolved."""

    step: int
    pid: int
    page_index: int
    victim: VictimInfo | None

    def render(self) -> str:
        """Format the record as one report line (without indentation)."""
        victim = self.victim.describe() if self.victim is not None else "free frame"
        dirty = self.victim.was_dirty if self.victim is not None else None
        return (
            f"[{self.step}] PID={self.pid}, page={self.page_index}, "
            f"victim={victim}, dirtyWrite={dirty}"
        )


@dataclass(frozen=True)
class SimulationSummary:
    """Final, read-only result of one (trace, algorithm) run."""

    algorithm: AlgorithmType
    physical_pages: int
    total_accesses: int
    page_faults: int
    page_fault_rate: float
    free_frame_faults: int
    replacements: int
    disk_writes: int
    clean_evictions: int
    dirty_evictions: int
    working_set_changes: int
    per_process: tuple[ProcessStats, ...]
    sample_page_faults: tuple[PageFaultRecord, ...]

    @property
    def evictions(self) -> int:
        """Return clean plus dirty evictions."""
        return self.clean_evictions + self.dirty_evictions

    def render(self) -> str:
        """Render the summary as a human-readable text report."""
        lines = [
            f"Algorithm: {self.algorithm.display_name}",
            f"Physical frames: {self.physical_pages}",
            f"Accesses: {self.total_accesses} | Page faults: {self.page_faults} | "
            f"Fault rate: {self.page_fault_rate * 100:.2f}%",
            f"Faults to free frames: {self.free_frame_faults} | "
            f"Replacements: {self.replacements} | Disk writes: {self.disk_writes} | "
            f"Evictions (clean/dirty): {self.clean_evictions}/{self.dirty_evictions}",
            f"Working set changes observed: {self.working_set_changes}",
            "Per-process statistics:",
        ]
        lines.extend(
            f"  PID {s.pid}: accesses={s.accesses}, faults={s.page_faults}, "
            f"writes={s.write_count}, dirtyWrites={s.dirty_evictions}"
            for s in self.per_process
        )
        if self.sample_page_faults:
            lines.append("Sample page fault decisions:")
            lines.extend(f"  {record.render()}" for record in self.sample_page_faults)
        return "\n".join(lines) + "\n"

    def to_dict(self) -> dict[str, Any]:
        """Return the summary as plain JSON-serialisable data."""
        data = dataclasses.asdict(self)
        data["algorithm"] = self.algorithm.value
        return data
