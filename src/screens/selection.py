"""Cyclic selection over the events of the selected day."""

from typing import Sequence, TypeVar

T = TypeVar("T")


class SelectionIndexer:
    """
    Index into a list owned by someone else.

    Only the index is stored; callers pass the current list (or its length) on
    every call, so a reloaded list can never leave a dangling selection.
    """

    def __init__(self):
        self.index = 0

    def reset(self) -> None:
        self.index = 0

    def next(self, count: int) -> int:
        if count > 0:
            self.index = (self.index + 1) % count
        return self.index

    def previous(self, count: int) -> int:
        if count > 0:
            self.index = (self.index - 1 + count) % count
        return self.index

    def clamp(self, count: int) -> int:
        """Pull the index back into [0, count), or 0 when empty."""
        if count <= 0 or self.index >= count or self.index < 0:
            self.index = 0
        return self.index

    def selected(self, items: Sequence[T]) -> T | None:
        if not items:
            self.index = 0
            return None
        return items[self.clamp(len(items))]
