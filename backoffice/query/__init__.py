from backoffice.query.engine import (
    MongoQueryExecutor,
    Pagination,
    QueryProfile,
    QueryResult,
    RecordQuery,
    assemble_result,
    empty_result,
)
from backoffice.query.errors import InvalidSortField, QueryError, ReferenceNotFound
from backoffice.query.filters import build_date_range, build_field_predicates, exact, substring
from backoffice.query.predicates import ExactMatch, Predicate, RangeMatch, SubstringMatch, compose_filter
from backoffice.query.references import ReferenceFilter, resolve_references
from backoffice.query.windowing import PageWindow, SortSpec, resolve_sort, resolve_window

__all__ = [
    "ExactMatch",
    "InvalidSortField",
    "MongoQueryExecutor",
    "PageWindow",
    "Pagination",
    "Predicate",
    "QueryError",
    "QueryProfile",
    "QueryResult",
    "RangeMatch",
    "RecordQuery",
    "ReferenceFilter",
    "ReferenceNotFound",
    "SortSpec",
    "SubstringMatch",
    "assemble_result",
    "build_date_range",
    "build_field_predicates",
    "compose_filter",
    "empty_result",
    "exact",
    "resolve_references",
    "resolve_sort",
    "resolve_window",
    "substring",
]
