"""Direct field filters and the calendar-day date range."""

import re
from datetime import date, datetime, time, timezone
from typing import Callable, List, Mapping, Optional

from backoffice.query.params import read_text
from backoffice.query.predicates import ExactMatch, Predicate, RangeMatch, SubstringMatch

PredicateFactory = Callable[[str], Predicate]

DATE_ONLY_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")
END_OF_DAY = time(23, 59, 59, 999000)


def substring(field: str) -> PredicateFactory:
    def factory(value: str) -> Predicate:
        return SubstringMatch(field, value)

    return factory


def exact(field: str) -> PredicateFactory:
    def factory(value: str) -> Predicate:
        return ExactMatch(field, value)

    return factory


def build_field_predicates(
    params: Mapping[str, object], table: Mapping[str, PredicateFactory]
) -> List[Predicate]:
    """One predicate per table key that carries a non-blank value, in table order."""
    predicates: List[Predicate] = []
    for key, factory in table.items():
        value = read_text(params, key)
        if value:
            predicates.append(factory(value))
    return predicates


def utc_date(value: datetime) -> date:
    """Calendar day of a timestamp in UTC, the zone stored timestamps use."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def parse_calendar_date(value) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return utc_date(value)
    if isinstance(value, date):
        return value
    candidate = str(value).strip()
    if not candidate:
        return None
    try:
        if DATE_ONLY_PATTERN.fullmatch(candidate):
            return date.fromisoformat(candidate)
        return utc_date(datetime.fromisoformat(candidate.replace("Z", "+00:00")))
    except ValueError:
        return None


def build_date_range(field: str, start_value, end_value) -> Optional[RangeMatch]:
    """Inclusive range covering whole calendar days, or None without bounds.

    The lower bound starts at midnight of ``start_value``; the upper bound is
    the last millisecond of ``end_value``, the finest precision Mongo stores.
    """
    start_day = parse_calendar_date(start_value)
    end_day = parse_calendar_date(end_value)

    lower = datetime.combine(start_day, time.min) if start_day else None
    upper = datetime.combine(end_day, END_OF_DAY) if end_day else None
    if lower is None and upper is None:
        return None
    return RangeMatch(field, lower, upper)
