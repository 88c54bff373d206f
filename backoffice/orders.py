from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId

from backoffice.query import (
    MongoQueryExecutor,
    QueryProfile,
    RecordQuery,
    ReferenceFilter,
    exact,
    substring,
)

ORDER_FILTERS = {
    "orderNumber": substring("orderNumber"),
    "shippingPhone": substring("shippingInfor.phone"),
    "shippingRecipientName": substring("shippingInfor.recipientName"),
    "status": exact("status"),
    "paymentStatus": exact("paymentStatus"),
}

USERS_COLLECTION = "users"

ORDER_REFERENCES = (
    ReferenceFilter(param="customerEmail", collection=USERS_COLLECTION, field="email", local_field="user"),
)

ORDER_SORTABLE_FIELDS = frozenset(
    {"createdAt", "updatedAt", "orderDate", "orderNumber", "totalAmount", "status", "paymentStatus"}
)

# Query-string names used by the admin dashboard.
ORDER_PARAM_ALIASES = {
    "shippingInfor.phone": "shippingPhone",
    "shippingInfor.recipientName": "shippingRecipientName",
    "email": "customerEmail",
    "sort_by": "sortBy",
    "sort_type": "sortDirection",
}

ORDER_QUERY = QueryProfile(
    collection="orders",
    filters=ORDER_FILTERS,
    sortable_fields=ORDER_SORTABLE_FIELDS,
    references=ORDER_REFERENCES,
    date_field="createdAt",
    aliases=ORDER_PARAM_ALIASES,
)

USER_HIDDEN_FIELDS = {"password": 0, "refreshToken": 0, "resetPasswordToken": 0}


def to_jsonable(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat() if value.tzinfo is not None else f"{value.isoformat()}Z"
    if isinstance(value, dict):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def populate_users(orders: List[Dict[str, object]], executor: MongoQueryExecutor) -> List[Dict[str, object]]:
    """Replace each order's ``user`` id with the user document it points to."""
    user_ids = []
    for order in orders:
        user_id = order.get("user")
        if user_id is not None and user_id not in user_ids:
            user_ids.append(user_id)
    if not user_ids:
        return orders

    users = executor.find_many(USERS_COLLECTION, {"_id": {"$in": user_ids}}, USER_HIDDEN_FIELDS)
    users_by_id = {user["_id"]: user for user in users}

    populated = []
    for order in orders:
        order_copy = dict(order)
        if order.get("user") is not None:
            order_copy["user"] = users_by_id.get(order["user"])
        populated.append(order_copy)
    return populated


def build_order_query(database, timeout_ms: Optional[int] = None) -> RecordQuery:
    executor = MongoQueryExecutor(database, ORDER_QUERY.collection, timeout_ms=timeout_ms)

    def order_view(orders):
        return [to_jsonable(order) for order in populate_users(orders, executor)]

    return RecordQuery(executor, ORDER_QUERY, view=order_view)
