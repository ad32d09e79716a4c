"""End-to-end tests through the FastAPI app."""

from decimal import Decimal

from sqlalchemy.exc import OperationalError

from settleup.db.session import get_db
from settleup.main import app
from settleup.models.expense_split import ExpenseSplit
from settleup.models.user import User


async def register(client, name):
    res = await client.post("/api/v1/users/", json={"name": name, "email": f"{name.lower()}@example.com"})
    assert res.status_code == 201
    return res.json()["id"]


async def setup_trip(client):
    a = await register(client, "Alice")
    b = await register(client, "Bob")
    c = await register(client, "Carol")

    res = await client.post("/api/v1/groups/", json={"name": "Trip", "created_by": a, "members": [b, c]})
    assert res.status_code == 201
    group_id = res.json()["id"]

    res = await client.post(
        f"/api/v1/expenses/{group_id}",
        json={
            "description": "Hotel",
            "amount": "90.00",
            "paid_by": a,
            "strategy": "equal",
            "splits": [{"user_id": a}, {"user_id": b}, {"user_id": c}],
        },
    )
    assert res.status_code == 201
    return group_id, (a, b, c)


async def test_root_and_health(client):
    assert (await client.get("/")).status_code == 200
    assert (await client.get("/api/v1/system/health")).json() == {"status": "ok"}


async def test_summary_and_settle_flow(client):
    group_id, (a, b, c) = await setup_trip(client)

    res = await client.get(f"/api/v1/groups/{group_id}/summary")
    assert res.status_code == 200
    assert res.json() == [
        {"from_id": b, "from_name": "Bob", "to_id": a, "to_name": "Alice", "amount": "30.00"},
        {"from_id": c, "from_name": "Carol", "to_id": a, "to_name": "Alice", "amount": "30.00"},
    ]

    res = await client.post(
        "/api/v1/settlements/",
        json={"group_id": group_id, "payer_id": b, "payee_id": a, "amount": "30"},
    )
    assert res.status_code == 201
    assert res.json()["amount"] == "30.00"

    res = await client.get(f"/api/v1/groups/{group_id}/balances")
    assert res.status_code == 200
    assert res.json() == {
        "net": {str(a): "30.00", str(b): "0.00", str(c): "-30.00"},
        "settled": False,
        "settlements": [
            {"from_id": c, "from_name": "Carol", "to_id": a, "to_name": "Alice", "amount": "30.00"},
        ],
    }


async def test_group_detail_and_listing(client):
    group_id, (a, b, c) = await setup_trip(client)

    detail = (await client.get(f"/api/v1/groups/{group_id}")).json()
    assert [m["name"] for m in detail["members"]] == ["Alice", "Bob", "Carol"]
    assert detail["expenses"][0]["amount"] == "90.00"

    groups = (await client.get(f"/api/v1/groups/for-user/{c}")).json()
    assert [g["id"] for g in groups] == [group_id]

    assert (await client.delete(f"/api/v1/groups/{group_id}")).status_code == 200
    assert (await client.get(f"/api/v1/groups/{group_id}/summary")).status_code == 404


async def test_invalid_split_total_is_bad_request(client):
    group_id, (a, b, _) = await setup_trip(client)

    res = await client.post(
        f"/api/v1/expenses/{group_id}",
        json={
            "description": "Fuel",
            "amount": "50",
            "paid_by": b,
            "splits": [{"user_id": a, "amount": "20"}, {"user_id": b, "amount": "20"}],
        },
    )

    assert res.status_code == 400


async def test_integrity_error_maps_to_server_error(client, db):
    group_id, (a, _, _) = await setup_trip(client)
    outsider = User(name="Eve", email="eve@example.com")
    db.add(outsider)
    await db.flush()
    db.add(ExpenseSplit(expense_id=1, user_id=outsider.id, amount=Decimal("5")))
    await db.commit()

    res = await client.get(f"/api/v1/groups/{group_id}/summary")

    assert res.status_code == 500
    assert "not in the group roster" in res.json()["detail"]


async def test_duplicate_email_conflicts(client):
    await register(client, "Alice")

    res = await client.post("/api/v1/users/", json={"name": "Alice", "email": "ALICE@example.com"})

    assert res.status_code == 409


async def test_search_users(client):
    a = await register(client, "Alice")
    await register(client, "Alicia")
    await register(client, "Bob")

    res = await client.get("/api/v1/users/search", params={"name": "ali", "exclude_id": a})

    assert [u["name"] for u in res.json()] == ["Alicia"]


async def test_near_full_settlements_leave_cent_transfers(client):
    group_id, (a, b, c) = await setup_trip(client)

    for payer in (b, c):
        res = await client.post(
            "/api/v1/settlements/",
            json={"group_id": group_id, "payer_id": payer, "payee_id": a, "amount": "29.99"},
        )
        assert res.status_code == 201

    res = await client.get(f"/api/v1/groups/{group_id}/summary")
    assert res.status_code == 200
    assert [(t["from_id"], t["to_id"], t["amount"]) for t in res.json()] == [
        (b, a, "0.01"),
        (c, a, "0.01"),
    ]
    assert (await client.get(f"/api/v1/groups/{group_id}/settled")).json() == {
        "group_id": group_id,
        "settled": False,
    }

    for payer in (b, c):
        await client.post(
            "/api/v1/settlements/",
            json={"group_id": group_id, "payer_id": payer, "payee_id": a, "amount": "0.01"},
        )

    assert (await client.get(f"/api/v1/groups/{group_id}/summary")).json() == []
    assert (await client.get(f"/api/v1/groups/{group_id}/settled")).json()["settled"] is True
    assert (await client.get(f"/api/v1/groups/{group_id}/balances")).json()["settled"] is True


async def test_db_health(client):
    res = await client.get("/api/v1/system/health/db")

    assert res.status_code == 200
    assert res.json() == {"db": True, "message": "Database is connected"}


async def test_db_health_reports_unreachable_database(client):
    class BrokenSession:
        async def execute(self, statement):
            raise OperationalError("SELECT 1", {}, OSError("connection refused"))

    async def broken_db():
        yield BrokenSession()

    app.dependency_overrides[get_db] = broken_db
    res = await client.get("/api/v1/system/health/db")

    assert res.status_code == 503
    assert res.json()["db"] is False
    assert "connection refused" in res.json()["message"]


async def test_metrics_count_live_rows(client):
    group_id, (a, b, _) = await setup_trip(client)
    res = await client.post(
        f"/api/v1/expenses/{group_id}",
        json={
            "description": "Fuel",
            "amount": "40",
            "paid_by": b,
            "splits": [{"user_id": a, "amount": "20"}, {"user_id": b, "amount": "20"}],
        },
    )
    await client.delete(f"/api/v1/expenses/{res.json()['id']}")

    res = await client.get("/api/v1/system/metrics")

    assert res.status_code == 200
    assert res.json() == {"users": 3, "groups": 1, "expenses": 1}
