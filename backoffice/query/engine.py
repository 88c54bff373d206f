"""Record query pipeline: filters, reference lookup, window, fetch and count."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from pymongo import ASCENDING

from backoffice.query.errors import ReferenceNotFound
from backoffice.query.filters import PredicateFactory, build_date_range, build_field_predicates
from backoffice.query.params import normalize_params
from backoffice.query.predicates import Predicate, compose_filter
from backoffice.query.references import ReferenceFilter, resolve_references
from backoffice.query.windowing import (
    DEFAULT_LIMIT,
    DEFAULT_SORT_FIELD,
    PageWindow,
    resolve_sort,
    resolve_window,
)

logger = logging.getLogger(__name__)

RecordView = Callable[[List[Dict[str, object]]], List[Dict[str, object]]]


@dataclass(frozen=True)
class QueryProfile:
    """Everything a collection exposes to list-page searches."""

    collection: str
    filters: Mapping[str, PredicateFactory]
    sortable_fields: FrozenSet[str]
    references: Tuple[ReferenceFilter, ...] = ()
    date_field: str = "createdAt"
    start_param: str = "startDate"
    end_param: str = "endDate"
    default_sort: str = DEFAULT_SORT_FIELD
    default_limit: int = DEFAULT_LIMIT
    aliases: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Pagination:
    total_record: int
    limit: int
    page: int

    def to_dict(self) -> Dict[str, int]:
        return {"totalRecord": self.total_record, "limit": self.limit, "page": self.page}


@dataclass(frozen=True)
class QueryResult:
    records: List[Dict[str, object]]
    pagination: Pagination

    def to_dict(self) -> Dict[str, object]:
        return {"records": self.records, "pagination": self.pagination.to_dict()}


def assemble_result(records: List[Dict[str, object]], total: int, window: PageWindow) -> QueryResult:
    return QueryResult(
        records=list(records),
        pagination=Pagination(total_record=total, limit=window.limit, page=window.page),
    )


def empty_result(window: PageWindow) -> QueryResult:
    return assemble_result([], 0, window)


class MongoQueryExecutor:
    """Runs composed filters against a pymongo (or compatible) database.

    ``timeout_ms`` bounds every server call through ``maxTimeMS``; pymongo
    raises ``ExecutionTimeout`` when it is exceeded. Failures are not caught.
    """

    def __init__(self, database, collection_name: str, timeout_ms: Optional[int] = None):
        self.database = database
        self.collection_name = collection_name
        self.timeout_ms = timeout_ms

    @property
    def collection(self):
        return self.database[self.collection_name]

    def fetch(
        self,
        query: Mapping[str, object],
        sort: Sequence[Tuple[str, int]],
        skip: int,
        limit: int,
    ) -> List[Dict[str, object]]:
        cursor = self.collection.find(query).sort(list(sort)).skip(skip).limit(limit)
        if self.timeout_ms:
            cursor = cursor.max_time_ms(self.timeout_ms)
        return list(cursor)

    def count(self, query: Mapping[str, object]) -> int:
        options: Dict[str, object] = {}
        if self.timeout_ms:
            options["maxTimeMS"] = self.timeout_ms
        return self.collection.count_documents(query, **options)

    def find_first(self, collection_name: str, query: Mapping[str, object]):
        options: Dict[str, object] = {"sort": [("_id", ASCENDING)]}
        if self.timeout_ms:
            options["max_time_ms"] = self.timeout_ms
        return self.database[collection_name].find_one(query, **options)

    def find_many(
        self,
        collection_name: str,
        query: Mapping[str, object],
        projection: Optional[Mapping[str, int]] = None,
    ) -> List[Dict[str, object]]:
        cursor = self.database[collection_name].find(query, projection)
        if self.timeout_ms:
            cursor = cursor.max_time_ms(self.timeout_ms)
        return list(cursor)


class RecordQuery:
    """Search, sort and paginate one collection according to a profile.

    The fetch and the count are separate round-trips with the same filter and
    no shared snapshot, so a write landing between them can make
    ``totalRecord`` disagree with the returned page.
    """

    def __init__(self, executor: MongoQueryExecutor, profile: QueryProfile, view: Optional[RecordView] = None):
        self.executor = executor
        self.profile = profile
        self.view = view

    def build_predicates(self, params) -> List[Predicate]:
        """Compile request parameters into the AND-ed predicate list.

        Raises ``ReferenceNotFound`` when a related-collection filter matches
        nothing.
        """
        return self._compile(normalize_params(params, self.profile.aliases))

    def _compile(self, params: Mapping[str, object]) -> List[Predicate]:
        profile = self.profile
        predicates = build_field_predicates(params, profile.filters)
        predicates.extend(resolve_references(params, profile.references, self.executor.find_first))
        date_range = build_date_range(
            profile.date_field,
            params.get(profile.start_param),
            params.get(profile.end_param),
        )
        if date_range is not None:
            predicates.append(date_range)
        return predicates

    def run(self, params) -> QueryResult:
        profile = self.profile
        params = normalize_params(params, profile.aliases)
        window = resolve_window(params.get("page"), params.get("limit"), profile.default_limit)
        sort = resolve_sort(
            params.get("sortBy"),
            params.get("sortDirection"),
            profile.sortable_fields,
            profile.default_sort,
        )

        try:
            predicates = self._compile(params)
        except ReferenceNotFound as exc:
            logger.debug("Skipping %s query: %s", profile.collection, exc)
            return empty_result(window)

        query = compose_filter(predicates)
        logger.debug(
            "Querying %s filter=%s sort=%s skip=%d limit=%d",
            profile.collection,
            query,
            sort.to_mongo(),
            window.skip,
            window.limit,
        )
        documents = self.executor.fetch(query, sort.to_mongo(), window.skip, window.limit)
        total = self.executor.count(query)

        records = self.view(documents) if self.view else documents
        return assemble_result(records, total, window)
