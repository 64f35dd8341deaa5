"""Experiment harness — compare replacement algorithms on one trace.

An experiment fans the same trace out to one fresh ``PagingKernel`` per
algorithm, all with the same physical memory.  Because every kernel
run builds its own frame table and counters, the results differ only
by the eviction decisions.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import TYPE_CHECKING

from py_paging.memory.policies import AlgorithmType, make_policy
from py_paging.simulation.kernel import PagingKernel

if TYPE_CHECKING:
    from collections.abc import Iterable

    from py_paging.logging import Logger
    from py_paging.simulation.config import SimulationConfig
    from py_paging.simulation.summary import SimulationSummary
    from py_paging.workload.events import WorkloadTrace


class PageReplacementExperiment:
    """Run several algorithms against the same trace and memory size."""

    def __init__(
        self,
        config: SimulationConfig,
        *,
        algorithms: Iterable[AlgorithmType] = tuple(AlgorithmType),
        logger: Logger | None = None,
    ) -> None:
        """Create an experiment.

        Args:
            config: Physical memory shared by every run.
            algorithms: The algorithms to evaluate, in report order.
            logger: Optional sink passed to every kernel.

        Raises:
            ConfigurationError: If the config is invalid.

        """
        config.validate()
        self._config = config
        self._algorithms = tuple(algorithms)
        self._logger = logger

    @property
    def algorithms(self) -> tuple[AlgorithmType, ...]:
        """Return the algorithms this experiment evaluates."""
        return self._algorithms

    def run(self, trace: WorkloadTrace) -> dict[AlgorithmType, SimulationSummary]:
        """Replay *trace* once per algorithm.

        Returns:
            One summary per algorithm, keyed and ordered by algorithm.

        """
        return {
            algorithm: PagingKernel(
                self._config,
                partial(make_policy, algorithm, logger=self._logger),
                logger=self._logger,
            ).run(trace, algorithm)
            for algorithm in self._algorithms
        }


@dataclass(frozen=True)
class Comparison:
    """Clock versus Random on the same trace."""

    clock_faults: int
    random_faults: int
    total_accesses: int

    @property
    def delta(self) -> int:
        """Return how many fewer faults Clock took than Random."""
        return self.random_faults - self.clock_faults

    @property
    def improvement(self) -> float:
        """Return the fault reduction as a percentage of all accesses."""
        if self.total_accesses == 0:
            return 0.0
        return self.delta / self.total_accesses * 100

    def render(self) -> str:
        """Format the comparison as one report line."""
        return (
            f"Clock vs Random: page faults {self.clock_faults} vs {self.random_faults}, "
            f"delta={self.delta}, improvement={self.improvement:.2f}% of accesses"
        )


def compare(summaries: dict[AlgorithmType, SimulationSummary]) -> Comparison | None:
    """Compare the Clock and Random summaries, if both are present."""
    clock = summaries.get(AlgorithmType.CLOCK)
    baseline = summaries.get(AlgorithmType.RANDOM)
    if clock is None or baseline is None:
        return None
    return Comparison(
        clock_faults=clock.page_faults,
        random_faults=baseline.page_faults,
        total_accesses=baseline.total_accesses,
    )
