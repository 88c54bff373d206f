"""Field predicates and their MongoDB filter form."""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union


@dataclass(frozen=True)
class ExactMatch:
    field: str
    value: object

    def to_mongo(self) -> Dict[str, object]:
        return {self.field: self.value}


@dataclass(frozen=True)
class SubstringMatch:
    field: str
    pattern: str
    case_insensitive: bool = True

    def to_mongo(self) -> Dict[str, object]:
        condition: Dict[str, object] = {"$regex": re.escape(self.pattern)}
        if self.case_insensitive:
            condition["$options"] = "i"
        return {self.field: condition}


@dataclass(frozen=True)
class RangeMatch:
    field: str
    lower: Optional[datetime] = None
    upper: Optional[datetime] = None

    def to_mongo(self) -> Dict[str, object]:
        condition: Dict[str, object] = {}
        if self.lower is not None:
            condition["$gte"] = self.lower
        if self.upper is not None:
            condition["$lte"] = self.upper
        return {self.field: condition}


Predicate = Union[ExactMatch, SubstringMatch, RangeMatch]


def compose_filter(predicates: Sequence[Predicate]) -> Dict[str, object]:
    """AND the predicates together into one Mongo filter document.

    Predicates on distinct fields are merged into a flat document; if a field
    repeats, every fragment goes under ``$and`` instead so none is overwritten.
    """
    fragments: List[Dict[str, object]] = [predicate.to_mongo() for predicate in predicates]
    fields = [predicate.field for predicate in predicates]
    if len(set(fields)) != len(fields):
        return {"$and": fragments}

    query: Dict[str, object] = {}
    for fragment in fragments:
        query.update(fragment)
    return query
