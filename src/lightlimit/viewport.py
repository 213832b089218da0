"""Selection and viewport handling for the process table."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")


def page_size_for(height: int, chrome_rows: int) -> int:
    """Rows available for the table once header and footer rows are removed."""
    return max(1, height - chrome_rows)


def _clamp(index: int, count: int) -> int:
    if count <= 0:
        return 0
    return max(0, min(index, count - 1))


@dataclass(slots=True, frozen=True)
class ViewState:
    """
    Position of the selection within the ranked snapshot.

    ``selected_index`` is a position, not a PID. Every transition returns a
    new ViewState clamped to ``[0, count - 1]`` (0 when the snapshot is empty).
    """

    selected_index: int = 0

    def viewport_start(self, page_size: int) -> int:
        """First visible row, aligned down to a page boundary."""
        page_size = max(1, page_size)
        return (self.selected_index // page_size) * page_size

    def clamp(self, count: int) -> "ViewState":
        return ViewState(_clamp(self.selected_index, count))

    def move(self, delta: int, count: int) -> "ViewState":
        return ViewState(_clamp(self.selected_index + delta, count))

    def first(self) -> "ViewState":
        return ViewState(0)

    def last(self, count: int) -> "ViewState":
        return ViewState(_clamp(count - 1, count))

    def page_up(self, page_size: int, count: int) -> "ViewState":
        return self.move(-page_size, count)

    def page_down(self, page_size: int, count: int) -> "ViewState":
        return self.move(page_size, count)


def visible(items: Sequence[T], view: ViewState, page_size: int) -> Sequence[T]:
    """Return the slice of ``items`` shown in the viewport."""
    start = view.viewport_start(page_size)
    return items[start : start + max(1, page_size)]


def selected(items: Sequence[T], view: ViewState) -> T | None:
    """Return the selected item, or None when nothing can be selected."""
    if 0 <= view.selected_index < len(items):
        return items[view.selected_index]
    return None
