"""Sort order and page window for a record query."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

from backoffice.query.errors import InvalidSortField

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
DEFAULT_SORT_FIELD = "createdAt"


@dataclass(frozen=True)
class SortSpec:
    field: str
    direction: str = "desc"

    def to_mongo(self) -> List[Tuple[str, int]]:
        order = ASCENDING if self.direction == "asc" else DESCENDING
        keys = [(self.field, order)]
        # Ties fall back to _id so repeated requests page identically.
        if self.field != "_id":
            keys.append(("_id", order))
        return keys


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def resolve_sort(
    sort_by,
    sort_direction,
    allowed_fields: Iterable[str],
    default_field: str = DEFAULT_SORT_FIELD,
) -> SortSpec:
    allowed = frozenset(allowed_fields)
    field = str(sort_by or "").strip() or default_field
    if field not in allowed:
        raise InvalidSortField(field, allowed)

    direction = "asc" if str(sort_direction or "").strip().lower() == "asc" else "desc"
    return SortSpec(field, direction)


def coerce_positive_int(value, default: int) -> int:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    try:
        numeric = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default
    return max(numeric, 1)


def resolve_window(page, limit, default_limit: Optional[int] = None) -> PageWindow:
    return PageWindow(
        page=coerce_positive_int(page, DEFAULT_PAGE),
        limit=coerce_positive_int(limit, default_limit or DEFAULT_LIMIT),
    )
