from dataclasses import dataclass
from typing import Callable, List, Mapping, Optional, Sequence

from backoffice.query.errors import ReferenceNotFound
from backoffice.query.params import read_text
from backoffice.query.predicates import ExactMatch, SubstringMatch


@dataclass(frozen=True)
class ReferenceFilter:
    """A request key that filters on a field of a related collection.

    ``field`` is matched as a case-insensitive substring in ``collection``;
    the owning document's ``_id`` then becomes an exact match on
    ``local_field`` of the queried collection.
    """

    param: str
    collection: str
    field: str
    local_field: str


FindFirst = Callable[[str, Mapping[str, object]], Optional[Mapping[str, object]]]


def resolve_references(
    params: Mapping[str, object],
    references: Sequence[ReferenceFilter],
    find_first: FindFirst,
) -> List[ExactMatch]:
    predicates: List[ExactMatch] = []
    for reference in references:
        value = read_text(params, reference.param)
        if not value:
            continue

        lookup = SubstringMatch(reference.field, value).to_mongo()
        owner = find_first(reference.collection, lookup)
        if not owner:
            raise ReferenceNotFound(reference.collection, reference.field, value)

        predicates.append(ExactMatch(reference.local_field, owner.get("_id")))
    return predicates
