from datetime import datetime

import mongomock
import pytest
from bson import ObjectId

ALICE_ID = ObjectId("65a000000000000000000001")
BOB_ID = ObjectId("65a000000000000000000002")


def make_order(number, created_at, user=None, **extra):
    document = {
        "_id": ObjectId(),
        "orderNumber": number,
        "createdAt": created_at,
        "status": "pending",
        "paymentStatus": "pending",
        "totalAmount": 0,
        "shippingInfor": {"phone": "0900000000", "recipientName": "Nobody"},
    }
    if user is not None:
        document["user"] = user
    document.update(extra)
    return document


@pytest.fixture
def database():
    return mongomock.MongoClient().get_database("backoffice_test")


@pytest.fixture
def seeded_database(database):
    database.users.insert_many(
        [
            {"_id": ALICE_ID, "email": "alice@shop.test", "name": "Alice", "role": "admin", "password": "hash-a"},
            {"_id": BOB_ID, "email": "bob@shop.test", "name": "Bob", "role": "standard", "password": "hash-b"},
        ]
    )
    database.orders.insert_many(
        [
            make_order(
                "ORD-2024-000123",
                datetime(2024, 1, 1, 9, 0, 0),
                user=ALICE_ID,
                totalAmount=120,
                status="shipped",
                shippingInfor={"phone": "0912345678", "recipientName": "Alice Nguyen"},
            ),
            make_order(
                "ORD-2024-000124",
                datetime(2024, 1, 1, 23, 59, 59, 998000),
                user=BOB_ID,
                totalAmount=55,
                shippingInfor={"phone": "0987654321", "recipientName": "Bob Tran"},
            ),
            make_order(
                "ORD-2024-000155",
                datetime(2024, 1, 2, 0, 0, 0),
                user=BOB_ID,
                totalAmount=300,
                paymentStatus="paid",
            ),
            make_order("ORD-2024-000200", datetime(2024, 3, 1, 12, 0, 0), user=ALICE_ID, totalAmount=80),
            make_order("ORD-2024-000201", datetime(2024, 3, 2, 8, 30, 0), totalAmount=10),
        ]
    )
    return database
