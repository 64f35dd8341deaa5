"""Workload configuration — the knobs that shape a generated trace.

A workload is a handful of processes, each with a fixed-size virtual
address space, touching pages with **locality of reference**: most
accesses land in a small *working set* of hot pages, and the working
set drifts to a new random subset every few accesses.

The config is a frozen dataclass so a trace can carry the exact
settings that produced it.  Validation is explicit (``validate()``)
rather than in ``__post_init__`` — the generator calls it eagerly,
and callers that assemble configs field-by-field (the CLI, the web
API) get the same error type from the same place.
"""

from dataclasses import dataclass

from py_paging.errors import ConfigurationError

DEFAULT_LOCALITY_PROBABILITY = 0.9
DEFAULT_WRITE_PROBABILITY = 0.3
DEFAULT_MIN_LIFETIME_FRACTION = 0.5
DEFAULT_MAX_LIFETIME_FRACTION = 0.9
DEFAULT_RANDOM_SEED = 42


def _check_probability(name: str, value: float) -> None:
    """Raise ConfigurationError unless *value* lies in [0, 1]."""
    if not 0.0 <= value <= 1.0:
        msg = f"{name} must be within [0, 1], got {value}"
        raise ConfigurationError(msg)


@dataclass(frozen=True)
class WorkloadConfig:
    """Parameters for one synthetic multi-process trace.

    Attributes:
        process_count: Number of processes to simulate.
        virtual_pages_per_process: Size of each process's address space.
        working_set_size: Number of hot pages per process.
        working_set_change_interval: Accesses between working-set rotations.
        total_cpu_accesses: Upper bound on generated memory accesses.
        locality_probability: Chance that an access hits the working set.
        write_probability: Chance that an access is a write.
        min_lifetime_fraction: Lower bound of a process's share of the run.
        max_lifetime_fraction: Upper bound of a process's share of the run.
        random_seed: Seed for every random draw the generator makes.

    """

    process_count: int
    virtual_pages_per_process: int
    working_set_size: int
    working_set_change_interval: int
    total_cpu_accesses: int
    locality_probability: float = DEFAULT_LOCALITY_PROBABILITY
    write_probability: float = DEFAULT_WRITE_PROBABILITY
    min_lifetime_fraction: float = DEFAULT_MIN_LIFETIME_FRACTION
    max_lifetime_fraction: float = DEFAULT_MAX_LIFETIME_FRACTION
    random_seed: int = DEFAULT_RANDOM_SEED

    def validate(self) -> None:
        """Check every precondition the generator relies on.

        Raises:
            ConfigurationError: On the first violated rule.

        """
        if self.process_count <= 0:
            msg = "process_count must be positive"
            raise ConfigurationError(msg)
        if self.working_set_size < 0:
            msg = "working_set_size must not be negative"
            raise ConfigurationError(msg)
        if self.virtual_pages_per_process < self.working_set_size:
            msg = "virtual_pages_per_process must be >= working_set_size"
            raise ConfigurationError(msg)
        if self.virtual_pages_per_process <= 0:
            msg = "virtual_pages_per_process must be positive"
            raise ConfigurationError(msg)
        if self.working_set_change_interval <= 0:
            msg = "working_set_change_interval must be positive"
            raise ConfigurationError(msg)
        if self.total_cpu_accesses <= 0:
            msg = "total_cpu_accesses must be positive"
            raise ConfigurationError(msg)
        _check_probability("locality_probability", self.locality_probability)
        _check_probability("write_probability", self.write_probability)
        if not (
            0.0 <= self.min_lifetime_fraction <= 1.0 and 0.0 <= self.max_lifetime_fraction <= 1.0
        ):
            msg = "Lifetime fractions must be within [0, 1]"
            raise ConfigurationError(msg)
        if self.min_lifetime_fraction > self.max_lifetime_fraction:
            msg = "min_lifetime_fraction cannot exceed max_lifetime_fraction"
            raise ConfigurationError(msg)
