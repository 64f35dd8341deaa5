"""Simulation configuration — the physical memory the kernel emulates."""

from dataclasses import dataclass

from py_paging.errors import ConfigurationError

DEFAULT_PHYSICAL_FRAMES = 8


@dataclass(frozen=True)
class SimulationConfig:
    """Physical memory layout for a paging run.

    Attributes:
        physical_page_count: Number of frames in the frame table.

    """

    physical_page_count: int = DEFAULT_PHYSICAL_FRAMES

    def validate(self) -> None:
        """Raise ConfigurationError unless the frame count is positive."""
        if self.physical_page_count <= 0:
            msg = f"physical_page_count must be positive, got {self.physical_page_count}"
            raise ConfigurationError(msg)
