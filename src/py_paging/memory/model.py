"""Memory model — page table entries and physical frames.

Two records describe every resident page, one on each side of the
mapping:

- **PageTableEntry** lives in a process's page table (one per virtual
  page) and says whether the page is present and, if so, which frame
  of the kernel's frame table holds it.
- **PhysicalFrame** lives in the kernel's frame table (one per physical
  slot) and says which process and virtual page currently occupy it.

Both carry a reference bit and a dirty bit.  The frame is the
authoritative copy — the clock policy reads and clears the frame's
bit — and every change to the frame's bits is mirrored onto its entry.

Design choices:
    - **The entry stores a frame index**, not the frame object.  Frames
      are owned by the kernel's frame table; the index is the stable
      key into it.
    - **The frame keeps its entry** so that hits and clock sweeps can
      mirror bits without a page-table lookup.
    - **bind / unbind update both sides together.**  The kernel never
      attaches or clears one record without the other, so a present
      entry always points at a frame that points back at it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from py_paging.simulation.summary import ProcessStats


class PageTableEntry:
    """One virtual page of one process."""

    def __init__(self) -> None:
        """Create an unmapped entry."""
        self.present = False
        self.reference = False
        self.dirty = False
        self.frame_index: int | None = None
        self.owner_stats: ProcessStats | None = None

    def attach(self, frame: PhysicalFrame, stats: ProcessStats, *, is_write: bool) -> None:
        """Map this page onto *frame* after a page fault.

        Args:
            frame: The frame that now holds the page.
            stats: Counters of the owning process.
            is_write: Whether the faulting access was a write.

        """
        self.present = True
        self.reference = True
        self.dirty = is_write
        self.frame_index = frame.index
        self.owner_stats = stats

    def clear_mapping(self) -> None:
        """Reset to the unmapped state."""
        self.present = False
        self.reference = False
        self.dirty = False
        self.frame_index = None
        self.owner_stats = None

    def __repr__(self) -> str:
        """Return a compact debugging representation."""
        return (
            f"PageTableEntry(present={self.present}, frame={self.frame_index}, "
            f"ref={self.reference}, dirty={self.dirty})"
        )


class PhysicalFrame:
    """One physical page slot in the kernel's frame table."""

    def __init__(self, index: int) -> None:
        """Create a free frame.

        Args:
            index: Position in the frame table; never changes.

        """
        self._index = index
        self._owner_pid: int | None = None
        self._virtual_page: int | None = None
        self._reference = False
        self._dirty = False
        self._entry: PageTableEntry | None = None

    @property
    def index(self) -> int:
        """Return the frame's position in the frame table."""
        return self._index

    @property
    def owner_pid(self) -> int | None:
        """Return the pid occupying this frame, or None when free."""
        return self._owner_pid

    @property
    def virtual_page(self) -> int | None:
        """Return the virtual page held by this frame, or None when free."""
        return self._virtual_page

    @property
    def reference(self) -> bool:
        """Return True if the page was referenced since the bit was cleared."""
        return self._reference

    @property
    def dirty(self) -> bool:
        """Return True if the page was written since it was loaded."""
        return self._dirty

    @property
    def entry(self) -> PageTableEntry | None:
        """Return the page table entry mapped onto this frame."""
        return self._entry

    def is_free(self) -> bool:
        """Return True if no page occupies this frame."""
        return self._owner_pid is None

    def attach(self, pid: int, page_index: int, entry: PageTableEntry, *, is_write: bool) -> None:
        """Load a page into this frame.

        Args:
            pid: The owning process.
            page_index: The virtual page being loaded.
            entry: The owning process's entry for that page.
            is_write: Whether the faulting access was a write.

        """
        self._owner_pid = pid
        self._virtual_page = page_index
        self._reference = True
        self._dirty = is_write
        self._entry = entry

    def note_access(self, *, is_write: bool) -> None:
        """Record a hit: set the reference bit, and the dirty bit on writes."""
        self._reference = True
        if is_write:
            self._dirty = True
        if self._entry is not None:
            self._entry.reference = True
            if is_write:
                self._entry.dirty = True

    def clear_reference(self) -> None:
        """Clear the reference bit on the frame and its entry."""
        self._reference = False
        if self._entry is not None:
            self._entry.reference = False

    def mark_free(self) -> None:
        """Drop ownership and clear every flag."""
        self._owner_pid = None
        self._virtual_page = None
        self._reference = False
        self._dirty = False
        self._entry = None

    def __repr__(self) -> str:
        """Return a compact debugging representation."""
        if self.is_free():
            return f"PhysicalFrame({self._index}, free)"
        return (
            f"PhysicalFrame({self._index}, pid={self._owner_pid}, page={self._virtual_page}, "
            f"ref={self._reference}, dirty={self._dirty})"
        )


def bind(
    frame: PhysicalFrame,
    entry: PageTableEntry,
    *,
    pid: int,
    page_index: int,
    stats: ProcessStats,
    is_write: bool,
) -> None:
    """Map *entry* onto *frame*, updating both sides."""
    frame.attach(pid, page_index, entry, is_write=is_write)
    entry.attach(frame, stats, is_write=is_write)


def unbind(frame: PhysicalFrame) -> None:
    """Unmap whatever page *frame* holds, clearing both sides."""
    if frame.entry is not None:
        frame.entry.clear_mapping()
    frame.mark_free()
