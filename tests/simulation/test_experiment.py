"""Tests for the experiment harness — one trace, every algorithm.

These are end-to-end: a generated workload is replayed by a fresh
kernel per algorithm and the summaries are checked for consistency.
"""

from dataclasses import replace

import pytest

from py_paging.logging import Logger
from py_paging.memory.policies import AlgorithmType
from py_paging.simulation.config import SimulationConfig
from py_paging.simulation.experiment import Comparison, PageReplacementExperiment, compare
from py_paging.simulation.summary import MAX_PAGE_FAULT_SAMPLES
from py_paging.workload.config import WorkloadConfig
from py_paging.workload.generator import generate

MIXED_WORKLOAD = WorkloadConfig(
    process_count=2,
    virtual_pages_per_process=12,
    working_set_size=3,
    working_set_change_interval=5,
    total_cpu_accesses=150,
    locality_probability=0.9,
    write_probability=0.25,
    random_seed=7,
)

# One frame per working-set page and perfect locality: after the working
# set rotates, Clock evicts at most one page of the new set, so it can
# never trail Random by more than one fault per rotation.
HOT_SET_WORKLOAD = WorkloadConfig(
    process_count=1,
    virtual_pages_per_process=16,
    working_set_size=3,
    working_set_change_interval=1000,
    total_cpu_accesses=2000,
    locality_probability=1.0,
    write_probability=0.25,
)
HOT_SET_FRAMES = 3
CLOCK_SLACK = 5


class TestExperiment:
    """The harness runs every algorithm on the same trace."""

    def test_default_algorithms(self) -> None:
        """By default both algorithms are evaluated, Random first."""
        experiment = PageReplacementExperiment(SimulationConfig(physical_page_count=6))
        assert experiment.algorithms == (AlgorithmType.RANDOM, AlgorithmType.CLOCK)

    def test_summaries_for_each_algorithm(self) -> None:
        """Each algorithm gets one summary, labelled with itself."""
        trace = generate(MIXED_WORKLOAD)
        summaries = PageReplacementExperiment(SimulationConfig(physical_page_count=6)).run(trace)
        assert list(summaries) == [AlgorithmType.RANDOM, AlgorithmType.CLOCK]
        for algorithm, summary in summaries.items():
            assert summary.algorithm is algorithm

    def test_selected_algorithms_only(self) -> None:
        """Only the requested algorithms run."""
        trace = generate(MIXED_WORKLOAD)
        experiment = PageReplacementExperiment(
            SimulationConfig(physical_page_count=6), algorithms=[AlgorithmType.CLOCK]
        )
        assert list(experiment.run(trace)) == [AlgorithmType.CLOCK]

    def test_consistent_metrics(self) -> None:
        """Counters agree with each other for every algorithm."""
        trace = generate(MIXED_WORKLOAD)
        summaries = PageReplacementExperiment(SimulationConfig(physical_page_count=6)).run(trace)
        for summary in summaries.values():
            assert 0.0 <= summary.page_fault_rate <= 1.0
            assert summary.disk_writes == summary.dirty_evictions
            assert summary.page_faults == summary.free_frame_faults + summary.replacements
            assert sum(s.page_faults for s in summary.per_process) == summary.page_faults
            assert sum(s.accesses for s in summary.per_process) == summary.total_accesses
            assert summary.total_accesses == len(trace.accesses())

    def test_same_accesses_for_every_algorithm(self) -> None:
        """Algorithms differ in faults, never in the accesses replayed."""
        trace = generate(MIXED_WORKLOAD)
        summaries = PageReplacementExperiment(SimulationConfig(physical_page_count=6)).run(trace)
        random_run = summaries[AlgorithmType.RANDOM]
        clock_run = summaries[AlgorithmType.CLOCK]
        assert random_run.total_accesses == clock_run.total_accesses
        assert random_run.working_set_changes == clock_run.working_set_changes

    def test_eviction_path_exercised(self) -> None:
        """Two frames for a five-page process force replacements."""
        config = WorkloadConfig(
            process_count=1,
            virtual_pages_per_process=5,
            working_set_size=2,
            working_set_change_interval=4,
            total_cpu_accesses=60,
            locality_probability=0.6,
            write_probability=0.5,
            random_seed=123,
        )
        summaries = PageReplacementExperiment(SimulationConfig(physical_page_count=2)).run(
            generate(config)
        )
        for summary in summaries.values():
            assert summary.replacements > 0
            assert summary.page_faults >= summary.free_frame_faults
            assert len(summary.sample_page_faults) <= MAX_PAGE_FAULT_SAMPLES

    def test_clock_keeps_up_with_random(self) -> None:
        """On a hot working set Clock never falls meaningfully behind Random."""
        config = SimulationConfig(physical_page_count=HOT_SET_FRAMES)
        experiment = PageReplacementExperiment(config)
        for seed in range(5):
            trace = generate(replace(HOT_SET_WORKLOAD, random_seed=seed))
            summaries = experiment.run(trace)
            clock_faults = summaries[AlgorithmType.CLOCK].page_faults
            random_faults = summaries[AlgorithmType.RANDOM].page_faults
            assert clock_faults <= random_faults + CLOCK_SLACK

    def test_logger_shared_by_runs(self) -> None:
        """Each run writes its own start and finish entries."""
        logger = Logger()
        PageReplacementExperiment(SimulationConfig(physical_page_count=6), logger=logger).run(
            generate(MIXED_WORKLOAD)
        )
        started = [e for e in logger.filter(source="kernel") if "Run started" in e.message]
        assert [e.message.split(",")[0] for e in started] == [
            "Run started: Random",
            "Run started: Clock",
        ]


class TestComparison:
    """Clock versus Random arithmetic and formatting."""

    def test_delta_and_improvement(self) -> None:
        """Improvement is the fault delta as a share of accesses."""
        comparison = Comparison(clock_faults=30, random_faults=40, total_accesses=200)
        expected_delta = 10
        assert comparison.delta == expected_delta
        assert comparison.improvement == pytest.approx(5.0)

    def test_zero_accesses(self) -> None:
        """No accesses means no improvement rather than a division error."""
        assert Comparison(clock_faults=0, random_faults=0, total_accesses=0).improvement == 0.0

    def test_render(self) -> None:
        """The comparison renders as one report line."""
        comparison = Comparison(clock_faults=30, random_faults=40, total_accesses=200)
        assert comparison.render() == (
            "Clock vs Random: page faults 30 vs 40, delta=10, improvement=5.00% of accesses"
        )

    def test_compare_summaries(self) -> None:
        """compare() reads faults and accesses from the two summaries."""
        summaries = PageReplacementExperiment(SimulationConfig(physical_page_count=6)).run(
            generate(MIXED_WORKLOAD)
        )
        comparison = compare(summaries)
        assert comparison is not None
        assert comparison.clock_faults == summaries[AlgorithmType.CLOCK].page_faults
        assert comparison.random_faults == summaries[AlgorithmType.RANDOM].page_faults
        assert comparison.total_accesses == summaries[AlgorithmType.RANDOM].total_accesses

    def test_compare_needs_both(self) -> None:
        """Without both algorithms there is nothing to compare."""
        summaries = PageReplacementExperiment(
            SimulationConfig(physical_page_count=6), algorithms=[AlgorithmType.CLOCK]
        ).run(generate(MIXED_WORKLOAD))
        assert compare(summaries) is None
