from datetime import datetime, timezone
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from greep.api.deps import get_clock, get_db
from greep.db.base import Base
from greep.main import app
from greep.services.seed import ensure_default_admin


FIXED_NOW = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)
API = "/api/v1"


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite+pysqlite://",
        future=True,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with TestingSession() as db:
        ensure_default_admin(db)

    def _get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_clock] = lambda: FIXED_NOW
    yield TestClient(app)
    app.dependency_overrides.clear()
    engine.dispose()


def _money(value) -> Decimal:
    return Decimal(str(value))


def _create_user(client: TestClient, name: str, role: str, tier: str | None = None) -> dict:
    payload = {"name": name, "email": f"{name.lower()}@greep.test", "role": role}
    if tier is not None:
        payload["tier"] = tier
    response = client.post(f"{API}/users", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def test_health(client: TestClient) -> None:
    response = client.get(f"{API}/health")
    assert response.status_code == 200


def test_user_tiers_are_checked_against_role(client: TestClient) -> None:
    investor = _create_user(client, "Cem", "investor")
    assert investor["tier"] == "X"

    response = client.post(f"{API}/users", json={"name": "Bad", "email": "bad@greep.test", "role": "driver", "tier": "Y"})
    assert response.status_code == 400

    response = client.post(f"{API}/users", json={"name": "Copy", "email": "cem@greep.test", "role": "driver"})
    assert response.status_code == 409


def test_payment_carryover_is_derived_from_tier(client: TestClient) -> None:
    driver = _create_user(client, "Mehmet", "driver", "A")

    response = client.post(
        f"{API}/payments",
        json={"driver_id": driver["id"], "week_start_date": "2024-03-04", "amount_paid": "500"},
    )
    assert response.status_code == 201, response.text
    assert _money(response.json()["balance_carryover"]) == Decimal("260")

    response = client.post(
        f"{API}/payments",
        json={"driver_id": driver["id"], "week_start_date": "2024-03-11", "amount_paid": "500", "balance_carryover": "0"},
    )
    assert _money(response.json()["balance_carryover"]) == Decimal("0")

    preview = client.get(f"{API}/payments/carryover-preview", params={"driver_id": driver["id"], "amount_paid": "900"})
    assert preview.status_code == 200
    assert _money(preview.json()["expected_amount"]) == Decimal("760")
    assert _money(preview.json()["balance_carryover"]) == Decimal("-140")


def test_payment_for_unknown_driver_is_404(client: TestClient) -> None:
    response = client.post(
        f"{API}/payments",
        json={"driver_id": "missing", "week_start_date": "2024-03-04", "amount_paid": "500"},
    )
    assert response.status_code == 404
    assert client.delete(f"{API}/payments/missing").status_code == 404


def test_payments_are_paginated(client: TestClient) -> None:
    driver = _create_user(client, "Ayse", "driver", "B")
    for day in ("2024-03-04", "2024-03-11", "2024-03-18"):
        client.post(f"{API}/payments", json={"driver_id": driver["id"], "week_start_date": day, "amount_paid": "800"})

    first = client.get(f"{API}/payments", params={"page": 0, "page_size": 2}).json()
    assert first["total_count"] == 3
    assert first["page_count"] == 2
    assert [item["week_start_date"] for item in first["items"]] == ["2024-03-18", "2024-03-11"]

    second = client.get(f"{API}/payments", params={"page": 1, "page_size": 2}).json()
    assert [item["week_start_date"] for item in second["items"]] == ["2024-03-04"]

    ranged = client.get(f"{API}/payments", params={"start_date": "2024-03-10", "end_date": "2024-03-18"}).json()
    assert ranged["total_count"] == 2

    assert client.get(f"{API}/payments", params={"sort": "bogus"}).status_code == 400


def test_attributed_expense_requires_user(client: TestClient) -> None:
    response = client.post(
        f"{API}/expenses",
        json={"type": "driver", "amount": "100", "date": "2024-03-05", "description": "Tyres"},
    )
    assert response.status_code == 400

    driver = _create_user(client, "Mehmet", "driver")
    response = client.post(
        f"{API}/expenses",
        json={"type": "investor", "amount": "100", "date": "2024-03-05", "description": "Tyres", "user_id": driver["id"]},
    )
    assert response.status_code == 404


def test_payout_net_amount_uses_investor_month_expenses(client: TestClient) -> None:
    investor = _create_user(client, "Cem", "investor")
    for day, amount in (("2024-03-01", "1500"), ("2024-03-31", "500"), ("2024-04-01", "999")):
        response = client.post(
            f"{API}/expenses",
            json={"type": "investor", "amount": amount, "date": day, "description": "Insurance", "user_id": investor["id"]},
        )
        assert response.status_code == 201, response.text

    preview = client.get(
        f"{API}/payouts/preview",
        params={"investor_id": investor["id"], "month": "2024-03", "gross_amount": "15000"},
    ).json()
    assert _money(preview["total_expenses"]) == Decimal("2000")
    assert _money(preview["net_amount"]) == Decimal("13000")
    assert preview["expense_count"] == 2

    response = client.post(f"{API}/payouts", json={"investor_id": investor["id"], "month": "2024-03", "gross_amount": "15000"})
    assert response.status_code == 201, response.text
    payout = response.json()
    assert payout["status"] == "pending"
    assert _money(payout["net_amount"]) == Decimal("13000")

    response = client.patch(f"{API}/payouts/{payout['id']}", json={"gross_amount": "1000"})
    assert _money(response.json()["net_amount"]) == Decimal("-1000")

    toggled = client.post(f"{API}/payouts/{payout['id']}/toggle-status").json()
    assert toggled["status"] == "paid"
    toggled = client.post(f"{API}/payouts/{payout['id']}/toggle-status").json()
    assert toggled["status"] == "pending"

    assert client.patch(f"{API}/payouts/missing", json={"notes": "x"}).status_code == 404
    bad_month = client.post(f"{API}/payouts", json={"investor_id": investor["id"], "month": "2024-3", "gross_amount": "10"})
    assert bad_month.status_code == 422


def test_dashboard_and_monthly_report(client: TestClient) -> None:
    driver = _create_user(client, "Mehmet", "driver", "A")
    investor = _create_user(client, "Cem", "investor")
    client.post(f"{API}/payments", json={"driver_id": driver["id"], "week_start_date": "2024-03-04", "amount_paid": "1000"})
    client.post(f"{API}/payments", json={"driver_id": driver["id"], "week_start_date": "2024-02-26", "amount_paid": "760"})
    client.post(f"{API}/expenses", json={"type": "admin", "amount": "300", "date": "2024-03-02", "description": "Rent"})
    client.post(f"{API}/payouts", json={"investor_id": investor["id"], "month": "2024-03", "gross_amount": "200"})

    dashboard = client.get(f"{API}/dashboard").json()
    stats = dashboard["stats"]
    assert _money(stats["total_revenue"]) == Decimal("1760")
    assert _money(stats["total_expenses"]) == Decimal("300")
    assert _money(stats["total_payouts"]) == Decimal("200")
    assert _money(stats["net_profit"]) == Decimal("1260")
    assert _money(stats["current_month_revenue"]) == Decimal("1000")
    assert stats["active_drivers"] == 1
    assert stats["active_investors"] == 1
    assert stats["pending_payouts"] == 1
    assert dashboard["recent_payments"][0]["driver_name"] == "Mehmet"
    assert dashboard["pending_payouts"][0]["investor_name"] == "Cem"

    report = client.get(f"{API}/reports/monthly").json()
    assert report["month"] == "2024-03"
    assert _money(report["monthly_revenue"]) == Decimal("1000")
    assert _money(report["monthly_profit"]) == Decimal("500")
    assert len(report["payment_rows"]) == 1

    february = client.get(f"{API}/reports/monthly", params={"month": "2024-02"}).json()
    assert _money(february["monthly_revenue"]) == Decimal("760")

    assert client.get(f"{API}/reports/monthly", params={"month": "March"}).status_code == 422


def test_report_exports(client: TestClient) -> None:
    driver = _create_user(client, "Mehmet", "driver", "A")
    client.post(f"{API}/payments", json={"driver_id": driver["id"], "week_start_date": "2024-03-04", "amount_paid": "700"})

    csv_response = client.get(f"{API}/reports/monthly/export/csv", params={"category": "payments"})
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    lines = csv_response.text.splitlines()
    assert lines[0] == "driver_name,driver_tier,week_start,amount,notes"
    assert lines[1].startswith("Mehmet,A,2024-03-04,700.00")

    assert client.get(f"{API}/reports/monthly/export/csv", params={"category": "bogus"}).status_code == 422

    excel = client.get(f"{API}/reports/monthly/export/excel")
    assert excel.status_code == 200
    assert excel.content[:2] == b"PK"

    pdf = client.get(f"{API}/reports/monthly/export/pdf")
    assert pdf.content.startswith(b"%PDF")

    backup = client.get(f"{API}/exports/backup")
    assert backup.status_code == 200
    assert backup.content[:2] == b"PK"


def test_csv_import_dry_run_and_commit(client: TestClient) -> None:
    content = "name,email,role,tier\nDeniz,deniz@greep.test,driver,B\nEce,ece@greep.test,investor,Y\n"

    dry = client.post(f"{API}/imports/csv", json={"content": content, "dry_run": True}).json()
    assert dry["entity_type"] == "users"
    assert dry["parsed"] == 2
    assert dry["created"] == 0
    assert len(client.get(f"{API}/users").json()) == 1

    real = client.post(f"{API}/imports/csv", json={"content": content}).json()
    assert real["created"] == 2
    assert len(client.get(f"{API}/users", params={"role": "driver"}).json()) == 1

    unknown = client.post(f"{API}/imports/csv", json={"content": "foo,bar\n1,2\n"})
    assert unknown.status_code == 400

    actions = [entry["action"] for entry in client.get(f"{API}/audit").json()]
    assert "import.csv" in actions


def test_cannot_delete_own_account(client: TestClient) -> None:
    admin = client.get(f"{API}/users", params={"role": "admin"}).json()[0]
    assert client.delete(f"{API}/users/{admin['id']}").status_code == 400


def test_recent_payments_follow_creation_order(client: TestClient) -> None:
    driver = _create_user(client, "Mehmet", "driver", "A")
    created = []
    for index in range(7):
        response = client.post(
            f"{API}/payments",
            json={"driver_id": driver["id"], "week_start_date": "2024-03-04", "amount_paid": str(700 + index)},
        )
        created.append(response.json()["id"])

    recent = client.get(f"{API}/dashboard").json()["recent_payments"]

    assert [row["payment_id"] for row in recent] == created[:1:-1]
    assert _money(recent[0]["amount_paid"]) == Decimal("706")


def test_recent_payments_keep_csv_row_order(client: TestClient) -> None:
    driver = _create_user(client, "Mehmet", "driver", "A")
    lines = ["id,driver_id,week_start_date,amount_paid"]
    lines += [f"row-{index},{driver['id']},2024-03-04,{700 + index}" for index in range(6)]

    response = client.post(f"{API}/imports/csv", json={"content": "\n".join(lines) + "\n"})
    assert response.json()["created"] == 6

    recent = client.get(f"{API}/dashboard").json()["recent_payments"]
    assert [row["payment_id"] for row in recent] == ["row-5", "row-4", "row-3", "row-2", "row-1"]
