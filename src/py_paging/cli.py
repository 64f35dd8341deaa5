"""Command-line front end — run the paging experiment from a terminal.

The CLI turns ``--key=value`` flags into a ``CliOptions`` value, then,
for each requested working-set size:

    1. Generate one trace with that working-set size.
    2. Replay it under every replacement algorithm.
    3. Print each algorithm's report and a Clock-vs-Random comparison.

Parsing and validation are pure (``parse_options`` returns a value or
raises), and ``run`` writes to a caller-supplied stream, so the whole
flow is testable without touching stdout.  ``main`` is the thin
console-script wrapper.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, TextIO

from py_paging.errors import ConfigurationError
from py_paging.logging import Logger, LogLevel
from py_paging.simulation.config import DEFAULT_PHYSICAL_FRAMES, SimulationConfig
from py_paging.simulation.experiment import PageReplacementExperiment, compare
from py_paging.workload.config import WorkloadConfig
from py_paging.workload.generator import WorkloadGenerator

if TYPE_CHECKING:
    from collections.abc import Sequence

EXIT_OK = 0
EXIT_INVALID_OPTIONS = 1

DEFAULT_WORKING_SET_SIZES = (3, 6, 9)

CLOSING_HINT = (
    "Adjust parameters via CLI flags (use --help) to explore behaviour under different workloads."
)


@dataclass(frozen=True)
class CliOptions:
    """Options accepted on the command line, with their defaults."""

    physical_frames: int = DEFAULT_PHYSICAL_FRAMES
    process_count: int = 3
    virtual_pages_per_process: int = 16
    working_set_sizes: tuple[int, ...] = DEFAULT_WORKING_SET_SIZES
    working_set_change_interval: int = 25
    total_cpu_accesses: int = 2000
    locality_probability: float = 0.9
    write_probability: float = 0.25
    random_seed: int = 42
    verbose: bool = False

    def validate(self) -> None:
        """Check the options before any simulation runs.

        Raises:
            ConfigurationError: On the first invalid option.

        """
        checks = [
            (self.physical_frames > 0, "physical-frames must be positive"),
            (self.process_count > 0, "processes must be positive"),
            (self.virtual_pages_per_process > 0, "virtual-pages must be positive"),
            (
                len(self.working_set_sizes) > 0,
                "working-set-sizes must contain at least one positive value",
            ),
            (
                all(size <= self.virtual_pages_per_process for size in self.working_set_sizes),
                "working-set size cannot exceed the virtual page count",
            ),
            (self.working_set_change_interval > 0, "working-set-change must be positive"),
            (self.total_cpu_accesses > 0, "total-accesses must be positive"),
            (0.0 <= self.locality_probability <= 1.0, "locality must be within [0, 1]"),
            (0.0 <= self.write_probability <= 1.0, "write-prob must be within [0, 1]"),
        ]
        for ok, msg in checks:
            if not ok:
                raise ConfigurationError(msg)

    def to_workload_config(self, working_set_size: int) -> WorkloadConfig:
        """Build the workload config for one working-set size."""
        return WorkloadConfig(
            process_count=self.process_count,
            virtual_pages_per_process=self.virtual_pages_per_process,
            working_set_size=working_set_size,
            working_set_change_interval=self.working_set_change_interval,
            total_cpu_accesses=self.total_cpu_accesses,
            locality_probability=self.locality_probability,
            write_probability=self.write_probability,
            random_seed=self.random_seed,
        )

    def to_simulation_config(self) -> SimulationConfig:
        """Build the physical memory config."""
        return SimulationConfig(physical_page_count=self.physical_frames)


def _size_list(raw: str) -> tuple[int, ...]:
    """Parse ``a,b,c`` into positive integers (non-positive values dropped)."""
    try:
        sizes = [int(part.strip()) for part in raw.split(",")]
    except ValueError as e:
        msg = f"invalid working-set size list: '{raw}'"
        raise argparse.ArgumentTypeError(msg) from e
    return tuple(size for size in sizes if size > 0)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (all options use ``--key=value``)."""
    defaults = CliOptions()
    parser = argparse.ArgumentParser(
        prog="py-paging",
        description="Compare Random and Clock page replacement on a synthetic workload.",
        epilog="Adjust parameters to explore behaviour under different workloads.",
    )
    parser.add_argument(
        "--physical-frames",
        type=int,
        default=defaults.physical_frames,
        dest="physical_frames",
        help=f"number of physical frames (default {defaults.physical_frames})",
    )
    parser.add_argument(
        "--processes",
        type=int,
        default=defaults.process_count,
        dest="process_count",
        help=f"number of concurrent processes (default {defaults.process_count})",
    )
    parser.add_argument(
        "--virtual-pages",
        type=int,
        default=defaults.virtual_pages_per_process,
        dest="virtual_pages_per_process",
        help=f"virtual pages per process (default {defaults.virtual_pages_per_process})",
    )
    parser.add_argument(
        "--working-set-sizes",
        type=_size_list,
        default=defaults.working_set_sizes,
        dest="working_set_sizes",
        metavar="A,B,C",
        help="working set sizes to evaluate (default 3,6,9)",
    )
    parser.add_argument(
        "--working-set-change",
        type=int,
        default=defaults.working_set_change_interval,
        dest="working_set_change_interval",
        help=(
            "accesses between working set changes "
            f"(default {defaults.working_set_change_interval})"
        ),
    )
    parser.add_argument(
        "--total-accesses",
        type=int,
        default=defaults.total_cpu_accesses,
        dest="total_cpu_accesses",
        help=f"total memory accesses to generate (default {defaults.total_cpu_accesses})",
    )
    parser.add_argument(
        "--locality",
        type=float,
        default=defaults.locality_probability,
        dest="locality_probability",
        help=f"probability of hitting the working set (default {defaults.locality_probability})",
    )
    parser.add_argument(
        "--write-prob",
        type=float,
        default=defaults.write_probability,
        dest="write_probability",
        help=f"probability that an access is a write (default {defaults.write_probability})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=defaults.random_seed,
        dest="random_seed",
        help=f"seed for workload generation (default {defaults.random_seed})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="print the simulation log after the reports",
    )
    return parser


def parse_options(argv: Sequence[str]) -> CliOptions:
    """Parse and validate command-line arguments.

    Raises:
        ConfigurationError: If a value is out of range.
        SystemExit: On malformed syntax or ``--help`` (raised by argparse).

    """
    namespace = build_parser().parse_args(list(argv))
    options = CliOptions(**vars(namespace))
    options.validate()
    return options


def run(argv: Sequence[str], out: TextIO) -> int:
    """Run every requested scenario and write the reports to *out*.

    Returns:
        The process exit code.

    """
    try:
        options = parse_options(argv)
    except ConfigurationError as e:
        out.write(f"{e}\n")
        out.write(build_parser().format_usage())
        return EXIT_INVALID_OPTIONS

    logger = Logger(min_level=LogLevel.DEBUG if options.verbose else LogLevel.INFO)
    sizes = ", ".join(str(size) for size in options.working_set_sizes)
    out.write(
        f"Page replacement laboratory | physical frames={options.physical_frames} "
        f"| total accesses={options.total_cpu_accesses}\n"
    )
    out.write(f"Working set sizes to evaluate: {sizes}\n\n")

    experiment = PageReplacementExperiment(options.to_simulation_config(), logger=logger)
    for size in options.working_set_sizes:
        trace = WorkloadGenerator(options.to_workload_config(size), logger=logger).generate()
        summaries = experiment.run(trace)

        out.write(f"=== Working set size: {size} ===\n")
        for summary in summaries.values():
            out.write(summary.render())
            out.write("\n")
        comparison = compare(summaries)
        if comparison is not None and comparison.total_accesses > 0:
            out.write(f"{comparison.render()}\n")
        out.write("\n")
    out.write(f"{CLOSING_HINT}\n")

    if options.verbose:
        out.write("Simulation log:\n")
        out.writelines(f"  {entry}\n" for entry in logger.entries)
    return EXIT_OK


def main() -> None:
    """Console entry point for ``py-paging``."""
    sys.exit(run(sys.argv[1:], sys.stdout))
