"""In-memory filtering and sorting of already-fetched resource lists."""

import json
import locale
from dataclasses import asdict, dataclass, is_dataclass
from datetime import date, datetime, timezone
from functools import cmp_to_key
from typing import Any, Callable, Literal, Optional, Sequence, TypeVar

T = TypeVar("T")

SortOrder = Literal["asc", "desc"]

DATE_FIELDS = {"date", "createdAt", "created_at", "updatedAt", "updated_at"}

_ALIASES = {
    "createdAt": "created_at",
    "created_at": "createdAt",
    "updatedAt": "updated_at",
    "updated_at": "updatedAt",
}


@dataclass
class FilterOptions:
    """Filter values and the projections used to read them from an item.

    A stage runs only when both its value and its projection are set.
    """

    search_term: str = ""
    searchable_text: Optional[Callable[[Any], str]] = None
    category: Optional[str] = None
    get_category: Optional[Callable[[Any], str]] = None
    tag: Optional[str] = None
    get_tags: Optional[Callable[[Any], Sequence[str]]] = None
    language: Optional[str] = None
    get_language: Optional[Callable[[Any], str]] = None
    predicate: Optional[Callable[[Any], bool]] = None


def field_value(item: Any, name: str) -> Any:
    """Read a field from a mapping or an object, accepting camel/snake aliases."""
    names = (name, _ALIASES[name]) if name in _ALIASES else (name,)
    for n in names:
        if isinstance(item, dict):
            if n in item:
                return item[n]
        elif hasattr(item, n):
            return getattr(item, n)
    return None


def _default_text(item: Any) -> str:
    raw = asdict(item) if is_dataclass(item) and not isinstance(item, type) else item
    return json.dumps(raw, default=str, ensure_ascii=False)


def apply_filters(items: Sequence[T], options: FilterOptions) -> list[T]:
    """Run search, category, tag, language and predicate stages in order."""
    filtered = list(items)

    if options.search_term:
        term = options.search_term.lower()
        text_of = options.searchable_text or _default_text
        filtered = [item for item in filtered if term in text_of(item).lower()]

    if options.category and options.get_category:
        filtered = [item for item in filtered if options.get_category(item) == options.category]

    if options.tag and options.get_tags:
        filtered = [item for item in filtered if options.tag in (options.get_tags(item) or [])]

    if options.language and options.get_language:
        filtered = [item for item in filtered if options.get_language(item) == options.language]

    if options.predicate:
        filtered = [item for item in filtered if options.predicate(item)]

    return filtered


def to_epoch_ms(value: Any) -> float:
    """Convert a date-like value to epoch milliseconds; unparsable values give 0."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return 0
    else:
        return 0

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.timestamp() * 1000


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def compare_values(a: Any, b: Any) -> int:
    if _is_number(a) and _is_number(b):
        return (a > b) - (a < b)
    return locale.strcoll(str(a), str(b))


def sort_items(
    items: Sequence[T],
    sort_by: str = "date",
    order: SortOrder = "desc",
    sort_value: Optional[Callable[[T, str], Any]] = None,
) -> list[T]:
    """Stable sort keyed by `sort_by`.

    Date fields compare as epoch milliseconds, numbers numerically, anything
    else as locale-aware strings. `desc` negates the comparison.
    """

    def value_of(item: T) -> Any:
        if sort_value is not None:
            return sort_value(item, sort_by)
        raw = field_value(item, sort_by)
        if sort_by in DATE_FIELDS:
            return to_epoch_ms(raw)
        if _is_number(raw):
            return raw
        return "" if raw is None else str(raw)

    sign = 1 if order == "asc" else -1

    def cmp(a: T, b: T) -> int:
        return sign * compare_values(value_of(a), value_of(b))

    return sorted(items, key=cmp_to_key(cmp))


class ListFilter:
    """Stateful filter/sort settings over a list of items."""

    def __init__(
        self,
        options: FilterOptions | None = None,
        sort_by: str = "date",
        sort_order: SortOrder = "desc",
        sort_value: Optional[Callable[[Any, str], Any]] = None,
    ):
        self.options = options or FilterOptions()
        self._initial_sort = (sort_by, sort_order)
        self.sort_by = sort_by
        self.sort_order: SortOrder = sort_order
        self.sort_value = sort_value
        self._total = 0
        self._filtered = 0

    def set_search_term(self, term: str) -> None:
        self.options.search_term = term

    def set_category(self, category: str | None) -> None:
        self.options.category = category

    def set_tag(self, tag: str | None) -> None:
        self.options.tag = tag

    def set_language(self, language: str | None) -> None:
        self.options.language = language

    def set_sort(self, sort_by: str, order: SortOrder | None = None) -> None:
        self.sort_by = sort_by
        if order is not None:
            self.sort_order = order

    def toggle_sort_order(self) -> None:
        self.sort_order = "asc" if self.sort_order == "desc" else "desc"

    def reset(self) -> None:
        """Clear every filter value and restore the initial sort."""
        self.options.search_term = ""
        self.options.category = None
        self.options.tag = None
        self.options.language = None
        self.sort_by, self.sort_order = self._initial_sort

    def apply(self, items: Sequence[T]) -> list[T]:
        filtered = apply_filters(items, self.options)
        self._total = len(items)
        self._filtered = len(filtered)
        return sort_items(filtered, self.sort_by, self.sort_order, self.sort_value)

    @property
    def total_count(self) -> int:
        return self._total

    @property
    def filtered_count(self) -> int:
        return self._filtered
