"""Exception hierarchy for the paging simulator.

Every failure the simulator can report is fatal for the current run:
nothing is retried and nothing is clamped into range.  The classes
exist so callers can tell *why* a run stopped:

- **ConfigurationError** — a workload, simulation, or CLI setting is
  out of range.  Raised at construction, before any simulation work.
- **NoVictimError** — a replacement policy was asked for a victim
  while no frame was occupied.  Always a caller bug.
- **PagingInvariantError** — the page table and frame table disagree.
  Always a simulator bug.

``ConfigurationError`` also subclasses ``ValueError`` and the two
runtime failures subclass ``RuntimeError`` so generic handlers keep
working.
"""


class PagingError(Exception):
    """Base class for all simulator errors."""


class ConfigurationError(PagingError, ValueError):
    """Raised when a configuration value violates its precondition."""


class NoVictimError(PagingError, RuntimeError):
    """Raised when a replacement policy has no occupied frame to evict."""


class PagingInvariantError(PagingError, RuntimeError):
    """Raised when a present page table entry has no physical frame."""
