"""Workload generator — synthetic traces with locality of reference.

The generator plays the part of a CPU running several processes in
round-robin order.  Each process lives for a sampled fraction of the
run, and while it is alive every scheduling slot produces one memory
access:

    1. Plan lifetimes: every process gets a start step and an end step.
       The first starts at 0; later starts are drawn so lifetimes
       overlap.
    2. Step the clock.  Processes whose start has arrived are activated
       (Start + initial WorkingSetChange); those whose end has arrived
       are terminated.  If nobody is running, jump straight to the next
       pending start.
    3. The next process in round-robin order makes one access.  Every
       ``working_set_change_interval`` accesses its working set is
       resampled first.
    4. Stop once ``total_cpu_accesses`` accesses exist (or nothing is
       left to run), terminate stragglers, and sort the events.

Because idle gaps are skipped rather than filled, a trace can hold
fewer accesses than requested when every process finishes early.  That
undershoot is part of the model and is never padded.

All randomness comes from one ``random.Random`` seeded per ``generate``
call, so the same config always yields the same trace.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from py_paging.logging import Logger, LogLevel
from py_paging.workload.config import WorkloadConfig
from py_paging.workload.events import (
    MemoryAccess,
    ProcessStart,
    ProcessTerminate,
    TraceEvent,
    WorkingSetChange,
    WorkloadTrace,
    order_events,
)

_SOURCE = "workload"


@dataclass
class _ProcessPlan:
    """Mutable per-process generator state."""

    pid: int
    virtual_pages: int
    start_step: int
    end_step: int
    working_set: frozenset[int]
    accesses_since_change: int = 0
    started: bool = False
    terminated: bool = False


class WorkloadGenerator:
    """Generate deterministic multi-process access traces.

    The config is validated on construction, so a generator that exists
    is always able to produce a trace.
    """

    def __init__(self, config: WorkloadConfig, *, logger: Logger | None = None) -> None:
        """Create a generator for the given workload.

        Args:
            config: The workload shape and seed.
            logger: Optional log sink for a generation summary.

        Raises:
            ConfigurationError: If the config violates a precondition.

        """
        config.validate()
        self._config = config
        self._logger = logger

    @property
    def config(self) -> WorkloadConfig:
        """Return the workload configuration."""
        return self._config

    def generate(self) -> WorkloadTrace:
        """Produce the trace for this generator's config.

        Returns:
            The events ordered by ``(step, rank)`` plus the config.

        """
        config = self._config
        rng = random.Random(config.random_seed)
        events: list[TraceEvent] = []
        plans = self._plan_processes(rng)
        active: list[_ProcessPlan] = []
        rr_index = 0
        step = 0
        generated = 0

        while generated < config.total_cpu_accesses:
            self._activate_ready(plans, active, step, events)
            self._terminate_elapsed(active, step, events)

            if not active:
                pending = [plan.start_step for plan in plans if not plan.started]
                if not pending:
                    break
                step = min(pending)
                continue

            plan = active[rr_index % len(active)]
            rr_index += 1

            self._maybe_rotate(plan, step, events, rng)
            events.append(self._access(plan, step, rng))
            generated += 1
            step += 1

        self._terminate_remaining(plans, step, events)

        trace = WorkloadTrace(events=order_events(events), config=config)
        if self._logger is not None:
            self._logger.log(
                LogLevel.INFO,
                f"Generated {len(trace)} events ({generated} accesses) "
                f"for {config.process_count} processes",
                source=_SOURCE,
            )
        return trace

    # -- Planning ------------------------------------------------------------

    def _plan_processes(self, rng: random.Random) -> list[_ProcessPlan]:
        """Sample a lifetime and an initial working set for every process."""
        config = self._config
        total = config.total_cpu_accesses
        interval = config.working_set_change_interval
        plans: list[_ProcessPlan] = []
        next_start_candidate = 0

        for index in range(config.process_count):
            fraction = rng.uniform(config.min_lifetime_fraction, config.max_lifetime_fraction)
            target_accesses = max(1, int(total * fraction / config.process_count))
            duration = max(target_accesses, 2 * interval)
            start_upper = max(next_start_candidate + 1, total // 2)
            start = 0 if index == 0 else rng.randrange(next_start_candidate, start_upper)
            next_start_candidate = min(total - 1, start + interval)
            working_set = self._pick_working_set(config.virtual_pages_per_process, rng)
            plans.append(
                _ProcessPlan(
                    pid=index + 1,
                    virtual_pages=config.virtual_pages_per_process,
                    start_step=start,
                    end_step=start + duration,
                    working_set=working_set,
                )
            )

        plans.sort(key=lambda plan: plan.start_step)
        return plans

    def _pick_working_set(self, virtual_pages: int, rng: random.Random) -> frozenset[int]:
        """Draw a uniformly random working set (or the whole range)."""
        size = self._config.working_set_size
        if size >= virtual_pages:
            return frozenset(range(virtual_pages))
        return frozenset(rng.sample(range(virtual_pages), size))

    # -- Scheduling ----------------------------------------------------------

    @staticmethod
    def _activate_ready(
        plans: list[_ProcessPlan],
        active: list[_ProcessPlan],
        step: int,
        sink: list[TraceEvent],
    ) -> None:
        """Start every process whose start step has arrived."""
        for plan in plans:
            if plan.started or plan.start_step > step:
                continue
            plan.started = True
            active.append(plan)
            sink.append(
                ProcessStart(step=step, pid=plan.pid, virtual_page_count=plan.virtual_pages)
            )
            sink.append(
                WorkingSetChange(step=step, pid=plan.pid, new_working_set=plan.working_set)
            )

    @staticmethod
    def _terminate_elapsed(
        active: list[_ProcessPlan],
        step: int,
        sink: list[TraceEvent],
    ) -> None:
        """Terminate every running process whose end step has arrived."""
        for plan in [p for p in active if not p.terminated and p.end_step <= step]:
            plan.terminated = True
            active.remove(plan)
            sink.append(ProcessTerminate(step=step, pid=plan.pid))

    @staticmethod
    def _terminate_remaining(
        plans: list[_ProcessPlan],
        step: int,
        sink: list[TraceEvent],
    ) -> None:
        """Force-terminate processes still running when generation stops."""
        for plan in plans:
            if plan.started and not plan.terminated:
                plan.terminated = True
                sink.append(ProcessTerminate(step=max(step, plan.end_step), pid=plan.pid))

    # -- Accesses ------------------------------------------------------------

    def _maybe_rotate(
        self,
        plan: _ProcessPlan,
        step: int,
        sink: list[TraceEvent],
        rng: random.Random,
    ) -> None:
        """Resample the working set once the rotation interval is reached."""
        plan.accesses_since_change += 1
        if plan.accesses_since_change < self._config.working_set_change_interval:
            return
        plan.working_set = self._pick_working_set(plan.virtual_pages, rng)
        plan.accesses_since_change = 0
        sink.append(WorkingSetChange(step=step, pid=plan.pid, new_working_set=plan.working_set))

    def _access(self, plan: _ProcessPlan, step: int, rng: random.Random) -> MemoryAccess:
        """Generate one access, biased toward the working set."""
        is_local = rng.random() < self._config.locality_probability
        is_write = rng.random() < self._config.write_probability
        if is_local and plan.working_set:
            page = rng.choice(sorted(plan.working_set))
        else:
            page = self._pick_outside_page(plan, rng)
        return MemoryAccess(
            step=step,
            pid=plan.pid,
            page_index=page,
            is_write=is_write,
            current_working_set=plan.working_set,
        )

    @staticmethod
    def _pick_outside_page(plan: _ProcessPlan, rng: random.Random) -> int:
        """Pick a page outside the working set, or inside it if none exist."""
        outside = [page for page in range(plan.virtual_pages) if page not in plan.working_set]
        if outside:
            return rng.choice(outside)
        return rng.choice(sorted(plan.working_set))


def generate(config: WorkloadConfig, *, logger: Logger | None = None) -> WorkloadTrace:
    """Generate the trace for *config* (shortcut for ``WorkloadGenerator``)."""
    return WorkloadGenerator(config, logger=logger).generate()
