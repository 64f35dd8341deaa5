"""Page replacement policies — choosing which frame to evict.

When a page fault finds no free frame, the kernel asks its policy for
a **victim**: an occupied frame whose page will be written back (if
dirty) and replaced.

Policies (Strategy pattern, like the scheduler):
    - **Random** — evict a uniformly random occupied frame.  The
      baseline every smarter algorithm should beat.  Seeded with a
      fixed value that does not depend on the workload seed, so the
      same trace always sees the same evictions.
    - **Clock** — second-chance approximation of LRU.  A hand sweeps
      the frame table: a frame with its reference bit set has the bit
      cleared and is skipped; the first occupied frame with the bit
      clear is evicted and the hand stops just past it.

A policy is built over the kernel's frame table and only *observes*
it — membership changes are the kernel's job.  The three ``on_frame_*``
hooks let stateful policies track loads, hits, and frees; both
built-in policies read frame state directly and leave them as no-ops.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import Protocol, TypeAlias, assert_never

from py_paging.errors import NoVictimError
from py_paging.logging import Logger, LogLevel
from py_paging.memory.model import PhysicalFrame

RANDOM_POLICY_SEED = 0

_SOURCE = "policy"


class AlgorithmType(StrEnum):
    """Page replacement algorithms the simulator can run."""

    RANDOM = "random"
    CLOCK = "clock"

    @property
    def display_name(self) -> str:
        """Return the human-readable algorithm name."""
        return self.value.capitalize()


# ---------------------------------------------------------------------------
# Replacement Policy Protocol (Strategy pattern)
# ---------------------------------------------------------------------------


class ReplacementPolicy(Protocol):
    """Interface for page replacement algorithms."""

    def on_frame_access(self, frame: PhysicalFrame) -> None:
        """Observe a hit on a resident page."""
        ...  # pragma: no cover

    def on_frame_loaded(self, frame: PhysicalFrame) -> None:
        """Observe a page being loaded into a frame."""
        ...  # pragma: no cover

    def on_frame_freed(self, frame: PhysicalFrame) -> None:
        """Observe a frame being evicted or released."""
        ...  # pragma: no cover

    def choose_victim(self) -> PhysicalFrame:
        """Choose an occupied frame to evict.

        Raises:
            NoVictimError: If no frame is occupied.

        """
        ...  # pragma: no cover


PolicyFactory: TypeAlias = Callable[[Sequence[PhysicalFrame]], ReplacementPolicy]


class BasePolicy:
    """Shared plumbing: the frame table and no-op hooks."""

    def __init__(self, frames: Sequence[PhysicalFrame]) -> None:
        """Create a policy over the kernel's frame table.

        Args:
            frames: The live frame table (fixed size, shared with the kernel).

        """
        self._frames = frames

    def on_frame_access(self, frame: PhysicalFrame) -> None:
        """Ignore hits by default."""

    def on_frame_loaded(self, frame: PhysicalFrame) -> None:
        """Ignore loads by default."""

    def on_frame_freed(self, frame: PhysicalFrame) -> None:
        """Ignore frees by default."""


# ---------------------------------------------------------------------------
# Random Policy
# ---------------------------------------------------------------------------


class RandomPolicy(BasePolicy):
    """Evict a uniformly random occupied frame."""

    def __init__(self, frames: Sequence[PhysicalFrame], *, seed: int = RANDOM_POLICY_SEED) -> None:
        """Create a random policy with its own seeded generator.

        Args:
            frames: The live frame table.
            seed: Seed for victim selection.

        """
        super().__init__(frames)
        self._rng = random.Random(seed)

    def choose_victim(self) -> PhysicalFrame:
        """Return a random occupied frame.

        Raises:
            NoVictimError: If every frame is free.

        """
        occupied = [frame for frame in self._frames if not frame.is_free()]
        if not occupied:
            msg = "No occupied frames available for eviction"
            raise NoVictimError(msg)
        return occupied[self._rng.randrange(len(occupied))]


# ---------------------------------------------------------------------------
# Clock Policy
# ---------------------------------------------------------------------------


class ClockPolicy(BasePolicy):
    """Second Chance (Clock) — approximate LRU with reference bits.

    The hand walks the whole frame table, skipping free frames.  A
    sweep is bounded by ``2 * len(frames)`` steps: one full pass clears
    every reference bit, so the second pass always finds a victim
    unless the bits are being set again mid-sweep.  If the bound is
    ever exhausted, the first occupied frame in table order is evicted.
    """

    def __init__(self, frames: Sequence[PhysicalFrame], *, logger: Logger | None = None) -> None:
        """Create a clock policy with the hand at frame 0.

        Args:
            frames: The live frame table.
            logger: Optional sink for the fallback warning.

        """
        super().__init__(frames)
        self._hand = 0
        self._logger = logger

    @property
    def hand(self) -> int:
        """Return the index the next sweep starts from."""
        return self._hand

    def choose_victim(self) -> PhysicalFrame:
        """Sweep the clock hand to find a frame to evict.

        Raises:
            NoVictimError: If every frame is free.

        """
        total = len(self._frames)
        for _ in range(2 * total):
            frame = self._frames[self._hand]
            self._hand = (self._hand + 1) % total
            if frame.is_free():
                continue
            if frame.reference:
                # Second chance: clear the bit, move on
                frame.clear_reference()
                continue
            return frame

        for frame in self._frames:
            if not frame.is_free():
                if self._logger is not None:
                    self._logger.log(
                        LogLevel.WARNING,
                        f"Clock sweep exhausted; falling back to frame {frame.index}",
                        source=_SOURCE,
                    )
                return frame
        msg = "No occupied frames available for eviction"
        raise NoVictimError(msg)


def make_policy(
    algorithm: AlgorithmType,
    frames: Sequence[PhysicalFrame],
    *,
    logger: Logger | None = None,
) -> ReplacementPolicy:
    """Build the policy for *algorithm* over *frames*."""
    match algorithm:
        case AlgorithmType.RANDOM:
            return RandomPolicy(frames)
        case AlgorithmType.CLOCK:
            return ClockPolicy(frames, logger=logger)
        case _:
            assert_never(algorithm)
