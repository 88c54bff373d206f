class QueryError(ValueError):
    """Base class for record query failures raised by the engine."""


class ReferenceNotFound(QueryError):
    """A filter on a related collection matched nothing.

    Caught inside the pipeline and turned into an empty page; callers never
    see it.
    """

    def __init__(self, collection: str, field: str, value: str):
        super().__init__(f"No {collection} record has {field} matching '{value}'.")
        self.collection = collection
        self.field = field
        self.value = value


class InvalidSortField(QueryError):
    def __init__(self, field: str, allowed):
        allowed_list = ", ".join(sorted(allowed))
        super().__init__(f"Cannot sort by '{field}'. Allowed fields: {allowed_list}.")
        self.field = field
        self.allowed = frozenset(allowed)
