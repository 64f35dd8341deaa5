"""Tests for the workload generator.

The generator simulates processes running round-robin on one CPU and
emits a trace of Start / WorkingSetChange / MemoryAccess / Terminate
events.  Accesses show locality of reference: most land in a small
working set that drifts every few accesses.

Properties tested:
    - Determinism: the same config and seed give the same trace.
    - Ordering: events sorted by (step, rank).
    - Lifecycle: every pid starts exactly once and terminates exactly
      once, with Start first and Terminate last.
    - Page ranges and working-set bookkeeping.
    - The documented undershoot: idle gaps end generation early and
      the trace is never padded.
"""

from dataclasses import replace

import pytest

from py_paging.errors import ConfigurationError
from py_paging.logging import Logger, LogLevel
from py_paging.workload.config import WorkloadConfig
from py_paging.workload.events import (
    MemoryAccess,
    ProcessStart,
    ProcessTerminate,
    WorkingSetChange,
    event_rank,
)
from py_paging.workload.generator import WorkloadGenerator, generate

BASE_CONFIG = WorkloadConfig(
    process_count=3,
    virtual_pages_per_process=16,
    working_set_size=4,
    working_set_change_interval=6,
    total_cpu_accesses=60,
    locality_probability=0.8,
    write_probability=0.3,
    min_lifetime_fraction=0.95,
    max_lifetime_fraction=1.0,
    random_seed=123,
)

SEEDS = range(40)


class TestValidation:
    """Invalid configs are rejected before any generation happens."""

    def test_zero_processes_rejected(self) -> None:
        """A workload needs at least one process."""
        with pytest.raises(ConfigurationError, match="process_count"):
            WorkloadGenerator(replace(BASE_CONFIG, process_count=0))

    def test_working_set_larger_than_address_space_rejected(self) -> None:
        """The working set must fit inside the virtual address space."""
        with pytest.raises(ConfigurationError, match="working_set_size"):
            WorkloadGenerator(replace(BASE_CONFIG, working_set_size=17))

    def test_lifetime_fraction_out_of_range_rejected(self) -> None:
        """Lifetime fractions live in [0, 1]."""
        with pytest.raises(ConfigurationError, match="Lifetime"):
            WorkloadGenerator(replace(BASE_CONFIG, max_lifetime_fraction=1.5))

    def test_min_lifetime_above_max_rejected(self) -> None:
        """The lower lifetime bound cannot exceed the upper bound."""
        with pytest.raises(ConfigurationError, match="cannot exceed"):
            WorkloadGenerator(
                replace(BASE_CONFIG, min_lifetime_fraction=0.8, max_lifetime_fraction=0.6)
            )

    def test_probability_out_of_range_rejected(self) -> None:
        """Locality and write probabilities live in [0, 1]."""
        with pytest.raises(ConfigurationError, match="write_probability"):
            WorkloadGenerator(replace(BASE_CONFIG, write_probability=-0.1))

    def test_configuration_error_is_value_error(self) -> None:
        """Generic ValueError handlers still catch config problems."""
        with pytest.raises(ValueError, match="working_set_change_interval"):
            WorkloadGenerator(replace(BASE_CONFIG, working_set_change_interval=0))


class TestDeterminism:
    """The same config always produces the same trace."""

    def test_same_seed_same_trace(self) -> None:
        """Two generations with identical inputs are identical."""
        assert generate(BASE_CONFIG) == generate(BASE_CONFIG)

    def test_generator_is_reusable(self) -> None:
        """Calling generate twice on one generator repeats the trace."""
        generator = WorkloadGenerator(BASE_CONFIG)
        assert generator.generate().events == generator.generate().events

    def test_different_seed_different_trace(self) -> None:
        """Changing the seed changes the accesses."""
        config = replace(BASE_CONFIG, total_cpu_accesses=500)
        first = generate(config)
        second = generate(replace(config, random_seed=config.random_seed + 1))
        assert first.events != second.events

    def test_trace_carries_config(self) -> None:
        """The trace remembers the config that produced it."""
        assert generate(BASE_CONFIG).config == BASE_CONFIG


class TestOrdering:
    """Events are sorted by step, ties broken by kind."""

    def test_steps_non_decreasing(self) -> None:
        """Steps never go backwards."""
        steps = [event.step for event in generate(BASE_CONFIG).events]
        assert steps == sorted(steps)

    def test_ties_broken_by_rank(self) -> None:
        """Within a step: Start < WorkingSetChange < MemoryAccess < Terminate."""
        for seed in SEEDS:
            events = generate(replace(BASE_CONFIG, random_seed=seed)).events
            keys = [(event.step, event_rank(event)) for event in events]
            assert keys == sorted(keys)

    def test_rank_values(self) -> None:
        """The rank order is fixed."""
        ranks = [
            event_rank(ProcessStart(step=0, pid=1, virtual_page_count=1)),
            event_rank(WorkingSetChange(step=0, pid=1, new_working_set=frozenset())),
            event_rank(
                MemoryAccess(
                    step=0, pid=1, page_index=0, is_write=False, current_working_set=frozenset()
                )
            ),
            event_rank(ProcessTerminate(step=0, pid=1)),
        ]
        assert ranks == [0, 1, 2, 3]


class TestProcessLifecycle:
    """Every process starts once, terminates once, in the right places."""

    def test_pids_are_one_based(self) -> None:
        """Pids run from 1 to process_count."""
        trace = generate(BASE_CONFIG)
        assert trace.pids() == [1, 2, 3]

    def test_start_first_and_terminate_last(self) -> None:
        """Each pid's first event is its Start and its last is its Terminate."""
        for seed in SEEDS:
            trace = generate(replace(BASE_CONFIG, random_seed=seed))
            for pid in range(1, BASE_CONFIG.process_count + 1):
                own = [event for event in trace.events if event.pid == pid]
                assert isinstance(own[0], ProcessStart)
                assert isinstance(own[-1], ProcessTerminate)
                assert sum(isinstance(e, ProcessStart) for e in own) == 1
                assert sum(isinstance(e, ProcessTerminate) for e in own) == 1

    def test_start_carries_page_count(self) -> None:
        """Start events announce the virtual page count."""
        trace = generate(BASE_CONFIG)
        starts = [event for event in trace.events if isinstance(event, ProcessStart)]
        assert {start.virtual_page_count for start in starts} == {16}

    def test_initial_working_set_follows_start(self) -> None:
        """Every Start is immediately followed by that process's first working set."""
        events = generate(BASE_CONFIG).events
        for index, event in enumerate(events):
            if isinstance(event, ProcessStart):
                following = [e for e in events[index + 1 :] if e.pid == event.pid]
                assert isinstance(following[0], WorkingSetChange)
                assert following[0].step == event.step

    def test_first_process_starts_at_zero(self) -> None:
        """The first Start is at step 0."""
        assert generate(BASE_CONFIG).events[0] == ProcessStart(
            step=0, pid=1, virtual_page_count=16
        )


class TestAccesses:
    """Accesses stay in range and respect the working set."""

    def test_pages_within_address_space(self) -> None:
        """Every page index is a valid virtual page."""
        for seed in SEEDS:
            trace = generate(replace(BASE_CONFIG, random_seed=seed))
            for access in trace.accesses():
                assert 0 <= access.page_index < BASE_CONFIG.virtual_pages_per_process

    def test_access_count_bounds(self) -> None:
        """Generation yields between a third of and all requested accesses."""
        total = BASE_CONFIG.total_cpu_accesses
        for seed in SEEDS:
            count = len(generate(replace(BASE_CONFIG, random_seed=seed)).accesses())
            assert total / 3 <= count <= total

    def test_undershoot_is_not_padded(self) -> None:
        """A lone process living half the run yields exactly half the accesses."""
        config = WorkloadConfig(
            process_count=1,
            virtual_pages_per_process=8,
            working_set_size=2,
            working_set_change_interval=5,
            total_cpu_accesses=100,
            min_lifetime_fraction=0.5,
            max_lifetime_fraction=0.5,
        )
        trace = generate(config)
        expected_accesses = 50
        assert len(trace.accesses()) == expected_accesses
        assert trace.events[-1] == ProcessTerminate(step=expected_accesses, pid=1)

    def test_full_locality_stays_in_working_set(self) -> None:
        """With locality 1.0 every access hits the current working set."""
        trace = generate(replace(BASE_CONFIG, locality_probability=1.0))
        for access in trace.accesses():
            assert access.page_index in access.current_working_set

    def test_zero_locality_avoids_working_set(self) -> None:
        """With locality 0.0 every access misses the current working set."""
        trace = generate(replace(BASE_CONFIG, locality_probability=0.0))
        for access in trace.accesses():
            assert access.page_index not in access.current_working_set

    def test_working_set_covering_all_pages(self) -> None:
        """A working set as large as the address space is the whole range."""
        config = replace(BASE_CONFIG, working_set_size=16, locality_probability=0.0)
        trace = generate(config)
        for event in trace.events:
            if isinstance(event, WorkingSetChange):
                assert event.new_working_set == frozenset(range(16))
        assert trace.accesses()

    def test_write_probability_extremes(self) -> None:
        """Write probability 0 never writes; 1 always writes."""
        reads = generate(replace(BASE_CONFIG, write_probability=0.0)).accesses()
        writes = generate(replace(BASE_CONFIG, write_probability=1.0)).accesses()
        assert not any(access.is_write for access in reads)
        assert all(access.is_write for access in writes)


class TestWorkingSets:
    """Working sets have the right size and rotate on schedule."""

    def test_working_set_size(self) -> None:
        """Every working set has exactly working_set_size pages."""
        trace = generate(BASE_CONFIG)
        for event in trace.events:
            if isinstance(event, WorkingSetChange):
                assert len(event.new_working_set) == BASE_CONFIG.working_set_size

    def test_access_reports_latest_working_set(self) -> None:
        """An access carries the most recently announced working set."""
        current: dict[int, frozenset[int]] = {}
        for event in generate(BASE_CONFIG).events:
            if isinstance(event, WorkingSetChange):
                current[event.pid] = event.new_working_set
            elif isinstance(event, MemoryAccess):
                assert event.current_working_set == current[event.pid]

    def test_rotation_within_interval(self) -> None:
        """No process makes more than interval accesses between changes."""
        interval = BASE_CONFIG.working_set_change_interval
        for seed in SEEDS:
            since_change: dict[int, int] = {}
            for event in generate(replace(BASE_CONFIG, random_seed=seed)).events:
                if isinstance(event, WorkingSetChange):
                    since_change[event.pid] = 0
                elif isinstance(event, MemoryAccess):
                    since_change[event.pid] += 1
                    assert since_change[event.pid] <= interval

    def test_single_process_rotation_count(self) -> None:
        """A lone process rotates once per full interval of accesses."""
        config = WorkloadConfig(
            process_count=1,
            virtual_pages_per_process=8,
            working_set_size=2,
            working_set_change_interval=5,
            total_cpu_accesses=100,
            min_lifetime_fraction=0.5,
            max_lifetime_fraction=0.5,
        )
        trace = generate(config)
        changes = [e for e in trace.events if isinstance(e, WorkingSetChange)]
        # 50 accesses, a rotation before every 5th: 10 rotations + the initial set
        expected_changes = 11
        assert len(changes) == expected_changes


class TestLogging:
    """The generator reports a summary when given a logger."""

    def test_logs_summary(self) -> None:
        """One INFO entry describes the generated trace."""
        logger = Logger()
        trace = WorkloadGenerator(BASE_CONFIG, logger=logger).generate()
        entries = logger.filter(source="workload")
        assert len(entries) == 1
        assert entries[0].level is LogLevel.INFO
        assert f"{len(trace)} events" in entries[0].message

    def test_summary_has_no_step(self) -> None:
        """The summary covers the whole trace, so it is not stamped with a step."""
        logger = Logger()
        WorkloadGenerator(BASE_CONFIG, logger=logger).generate()
        (entry,) = logger.filter(source="workload")
        assert entry.step is None
        assert str(entry).startswith("[INFO] workload: Generated")
