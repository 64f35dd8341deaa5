"""Paging kernel — replay a trace through a simulated MMU.

The kernel owns the machine's memory state for the length of one run:

- a **frame table** of ``physical_page_count`` frames, created once;
- a **free-frame queue** (FIFO), seeded with every frame;
- one **process context** (page table + counters) per live pid;
- run-wide **counters** and a capped list of **fault samples**.

Events are applied strictly in trace order:

    ProcessStart      →  allocate a page table (all entries unmapped)
    WorkingSetChange  →  count it; no memory state changes
    MemoryAccess      →  hit: update bits, tell the policy
                         miss: page fault — take a free frame, or ask
                         the policy for a victim and evict it; then
                         load the page
    ProcessTerminate  →  release every resident page, write back dirty
                         ones, keep a snapshot of the process's stats

Every eviction or release of a dirty frame costs one disk write, so
``disk_writes == dirty_evictions`` holds by construction.

All run state lives in a ``_RunState`` built at the top of ``run`` and
consumed into the returned summary, so one kernel can be run any
number of times and runs never share anything.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, assert_never

from py_paging.errors import PagingInvariantError
from py_paging.logging import Logger, LogLevel
from py_paging.memory.model import PageTableEntry, PhysicalFrame, bind, unbind
from py_paging.simulation.summary import (
    MAX_PAGE_FAULT_SAMPLES,
    PageFaultRecord,
    ProcessStats,
    SimulationSummary,
    VictimInfo,
)
from py_paging.workload.events import (
    MemoryAccess,
    ProcessStart,
    ProcessTerminate,
    WorkingSetChange,
)

if TYPE_CHECKING:
    from py_paging.memory.policies import AlgorithmType, PolicyFactory, ReplacementPolicy
    from py_paging.simulation.config import SimulationConfig
    from py_paging.workload.events import WorkloadTrace

_SOURCE = "kernel"


class _ProcessContext:
    """A live process: its page table and its counters."""

    def __init__(self, pid: int, virtual_pages: int) -> None:
        """Create an empty page table of *virtual_pages* entries for *pid*."""
        self.pid = pid
        self.page_table = [PageTableEntry() for _ in range(virtual_pages)]
        self.stats = ProcessStats(pid=pid)


@dataclass
class _RunState:
    """Everything one run mutates."""

    frames: list[PhysicalFrame]
    policy: ReplacementPolicy
    free_frames: deque[PhysicalFrame]
    processes: dict[int, _ProcessContext] = field(default_factory=dict)
    completed: dict[int, ProcessStats] = field(default_factory=dict)
    samples: list[PageFaultRecord] = field(default_factory=list)
    total_accesses: int = 0
    page_faults: int = 0
    free_frame_faults: int = 0
    replacements: int = 0
    disk_writes: int = 0
    clean_evictions: int = 0
    dirty_evictions: int = 0
    working_set_changes: int = 0


class PagingKernel:
    """Replay workload traces against a fixed-size physical memory.

    Args:
        config: The physical memory layout.
        policy_factory: Builds a replacement policy over a frame table.
        logger: Optional sink for run and process lifecycle events.

    """

    def __init__(
        self,
        config: SimulationConfig,
        policy_factory: PolicyFactory,
        *,
        logger: Logger | None = None,
    ) -> None:
        """Create a kernel; the config is validated immediately."""
        config.validate()
        self._config = config
        self._policy_factory = policy_factory
        self._logger = logger

    @property
    def config(self) -> SimulationConfig:
        """Return the simulation configuration."""
        return self._config

    def run(self, trace: WorkloadTrace, algorithm: AlgorithmType) -> SimulationSummary:
        """Replay *trace* and summarise the outcome.

        Args:
            trace: The ordered workload events.
            algorithm: Label for the summary (the factory decides behaviour).

        Returns:
            The run's final statistics.

        Raises:
            NoVictimError: If the policy has nothing to evict.
            PagingInvariantError: If a present entry has no frame.

        """
        frames = [PhysicalFrame(index) for index in range(self._config.physical_page_count)]
        state = _RunState(
            frames=frames,
            policy=self._policy_factory(frames),
            free_frames=deque(frames),
        )
        self._log(
            LogLevel.INFO,
            f"Run started: {algorithm.display_name}, {len(frames)} frames, {len(trace)} events",
        )

        for event in trace.events:
            match event:
                case ProcessStart():
                    state.processes[event.pid] = _ProcessContext(
                        event.pid, event.virtual_page_count
                    )
                    self._log(LogLevel.DEBUG, f"Process {event.pid} started", step=event.step)
                case ProcessTerminate():
                    context = state.processes.pop(event.pid, None)
                    if context is not None:
                        self._release_process(state, context)
                        self._log(
                            LogLevel.DEBUG, f"Process {event.pid} terminated", step=event.step
                        )
                case WorkingSetChange():
                    state.working_set_changes += 1
                case MemoryAccess():
                    context = state.processes.get(event.pid)
                    if context is not None:
                        self._handle_access(state, context, event)
                case _:
                    assert_never(event)

        summary = self._summarise(state, algorithm)
        self._log(
            LogLevel.INFO,
            f"Run finished: {summary.page_faults} faults in {summary.total_accesses} accesses",
        )
        return summary

    # -- Event handlers ------------------------------------------------------

    def _handle_access(
        self,
        state: _RunState,
        context: _ProcessContext,
        event: MemoryAccess,
    ) -> None:
        """Apply one memory access: a hit, or a page fault."""
        entry = context.page_table[event.page_index]
        context.stats.accesses += 1
        state.total_accesses += 1
        if event.is_write:
            context.stats.write_count += 1

        if entry.present:
            if entry.frame_index is None:
                msg = f"Present page {event.page_index} of pid {context.pid} has no frame"
                raise PagingInvariantError(msg)
            frame = state.frames[entry.frame_index]
            frame.note_access(is_write=event.is_write)
            state.policy.on_frame_access(frame)
            return

        # Page fault!
        context.stats.page_faults += 1
        state.page_faults += 1

        victim: VictimInfo | None = None
        if state.free_frames:
            frame = state.free_frames.popleft()
            state.free_frame_faults += 1
        else:
            frame = state.policy.choose_victim()
            victim = self._evict(state, frame)
            state.replacements += 1

        if len(state.samples) < MAX_PAGE_FAULT_SAMPLES:
            state.samples.append(
                PageFaultRecord(
                    step=event.step,
                    pid=context.pid,
                    page_index=event.page_index,
                    victim=victim,
                )
            )

        bind(
            frame,
            entry,
            pid=context.pid,
            page_index=event.page_index,
            stats=context.stats,
            is_write=event.is_write,
        )
        state.policy.on_frame_loaded(frame)

    def _evict(self, state: _RunState, frame: PhysicalFrame) -> VictimInfo | None:
        """Evict the page in *frame*, writing it back if dirty."""
        victim_pid = frame.owner_pid
        victim_page = frame.virtual_page
        dirty = frame.dirty

        self._count_writeback(state, dirty=dirty)
        entry = frame.entry
        if dirty and entry is not None and entry.owner_stats is not None:
            entry.owner_stats.dirty_evictions += 1

        unbind(frame)
        state.policy.on_frame_freed(frame)

        if victim_pid is None or victim_page is None:
            return None
        return VictimInfo(pid=victim_pid, page_index=victim_page, was_dirty=dirty)

    def _release_process(self, state: _RunState, context: _ProcessContext) -> None:
        """Return every frame of a terminating process to the free queue."""
        for entry in context.page_table:
            if not entry.present:
                continue
            if entry.frame_index is None:
                msg = f"Present page of terminating pid {context.pid} has no frame"
                raise PagingInvariantError(msg)
            frame = state.frames[entry.frame_index]
            self._count_writeback(state, dirty=frame.dirty)
            if frame.dirty:
                context.stats.dirty_evictions += 1
            state.policy.on_frame_freed(frame)
            unbind(frame)
            state.free_frames.append(frame)
        state.completed[context.pid] = context.stats.copy()

    @staticmethod
    def _count_writeback(state: _RunState, *, dirty: bool) -> None:
        """Account one eviction as clean, or dirty plus a disk write."""
        if dirty:
            state.disk_writes += 1
            state.dirty_evictions += 1
        else:
            state.clean_evictions += 1

    # -- Summary -------------------------------------------------------------

    @staticmethod
    def _summarise(state: _RunState, algorithm: AlgorithmType) -> SimulationSummary:
        """Consume the run state into an immutable summary."""
        rate = 0.0 if state.total_accesses == 0 else state.page_faults / state.total_accesses
        live = [context.stats.copy() for context in state.processes.values()]
        per_process = sorted([*live, *state.completed.values()], key=lambda s: s.pid)
        return SimulationSummary(
            algorithm=algorithm,
            physical_pages=len(state.frames),
            total_accesses=state.total_accesses,
            page_faults=state.page_faults,
            page_fault_rate=rate,
            free_frame_faults=state.free_frame_faults,
            replacements=state.replacements,
            disk_writes=state.disk_writes,
            clean_evictions=state.clean_evictions,
            dirty_evictions=state.dirty_evictions,
            working_set_changes=state.working_set_changes,
            per_process=tuple(per_process),
            sample_page_faults=tuple(state.samples),
        )

    def _log(self, level: LogLevel, message: str, *, step: int | None = None) -> None:
        if self._logger is not None:
            self._logger.log(level, message, source=_SOURCE, step=step)
