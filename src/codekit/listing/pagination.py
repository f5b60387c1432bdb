"""Page bookkeeping for in-memory lists."""

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PageState:
    current_page: int
    page_size: int
    total_items: int
    total_pages: int
    start_index: int
    end_index: int
    has_next_page: bool
    has_previous_page: bool


def compute_page(page: int, page_size: int, total_items: int) -> PageState:
    """Clamp `page` into `[1, total_pages]` and derive the slice bounds."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    total_items = max(0, total_items)
    total_pages = max(1, math.ceil(total_items / page_size))
    current = max(1, min(page, total_pages))
    start = (current - 1) * page_size
    end = min(start + page_size, total_items)
    return PageState(
        current_page=current,
        page_size=page_size,
        total_items=total_items,
        total_pages=total_pages,
        start_index=start,
        end_index=end,
        has_next_page=current < total_pages,
        has_previous_page=current > 1,
    )


class Paginator:
    """1-indexed pagination over a list whose length may change."""

    def __init__(self, page_size: int = 10, total_items: int = 0, initial_page: int = 1):
        self.initial_page = initial_page
        self._page = initial_page
        self._page_size = page_size
        self._total_items = total_items

    @property
    def state(self) -> PageState:
        return compute_page(self._page, self._page_size, self._total_items)

    def __getattr__(self, name: str):
        # Expose PageState fields directly, e.g. paginator.total_pages
        if name in PageState.__dataclass_fields__:
            return getattr(self.state, name)
        raise AttributeError(name)

    def set_total_items(self, total: int) -> None:
        self._total_items = total

    def next_page(self) -> None:
        state = self.state
        if state.has_next_page:
            self._page = state.current_page + 1

    def previous_page(self) -> None:
        state = self.state
        if state.has_previous_page:
            self._page = state.current_page - 1

    def go_to_page(self, page: int) -> None:
        self._page = max(1, min(page, self.state.total_pages))

    def set_page_size(self, size: int) -> None:
        if size < 1:
            raise ValueError("page size must be at least 1")
        self._page_size = size
        self._page = 1

    def reset(self) -> None:
        self._page = self.initial_page

    def paginate(self, items: Sequence[T]) -> list[T]:
        """Slice `items` to the current page, tracking its length as the total."""
        self._total_items = len(items)
        state = self.state
        return list(items[state.start_index : state.end_index])
