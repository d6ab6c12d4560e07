from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

import home_finance.people as people_mod
from home_finance.api import create_app
from tests.helpers.db import seed_basic


@pytest.fixture()
def client(db_url: str) -> Iterator[TestClient]:
    with TestClient(create_app(database_url=db_url)) as c:
        yield c


@pytest.fixture()
def seeded(db_url: str) -> dict:
    return seed_basic(database_url=db_url)


def _tx_body(seeded: dict, **overrides) -> dict:
    body = {
        "description": "Monthly groceries",
        "amount": "100.00",
        "date": "2026-01-08",
        "type": 0,
        "categoryId": seeded["groceries"].id,
        "personId": seeded["adult"].id,
    }
    body.update(overrides)
    return body


# ---- Persons -----------------------------------------------------------------


def test_create_person_returns_camel_case_with_minor_flag(client: TestClient):
    r = client.post("/api/persons", json={"name": "  isac  ", "age": 16})

    assert r.status_code == 201
    body = r.json()
    assert body["name"] == "Isac"
    assert body["isMinor"] is True
    assert set(body) == {"id", "name", "age", "isMinor"}


def test_duplicate_person_is_400_conflict(client: TestClient):
    assert client.post("/api/persons", json={"name": "joão silva", "age": 30}).status_code == 201

    r = client.post("/api/persons", json={"name": "João Silva", "age": 31})

    assert r.status_code == 400
    assert r.json()["error"] == "conflict"
    assert r.json()["field"] == "name"


def test_invalid_person_fields_are_400(client: TestClient):
    r = client.post("/api/persons", json={"name": "ab", "age": 30})
    assert r.status_code == 400
    assert r.json() == {
        "message": "Name must be at least 3 characters",
        "error": "validation_error",
        "field": "name",
    }

    r = client.post("/api/persons", json={"name": "Abel"})
    assert r.status_code == 400
    assert r.json()["error"] == "validation_error"


def test_person_reads_and_filters(client: TestClient, seeded: dict):
    assert [p["name"] for p in client.get("/api/persons").json()] == ["Isac", "Pedro"]
    assert [p["name"] for p in client.get("/api/persons/minors").json()] == ["Isac"]
    assert [p["name"] for p in client.get("/api/persons/adults").json()] == ["Pedro"]

    r = client.get(f"/api/persons/{seeded['adult'].id}")
    assert r.status_code == 200
    assert r.json()["isMinor"] is False


def test_unknown_person_is_404(client: TestClient):
    r = client.get("/api/persons/999")
    assert r.status_code == 404
    assert r.json() == {"message": "Person with id 999 not found", "error": "not_found"}

    assert client.delete("/api/persons/999").status_code == 404
    assert client.patch("/api/persons/999", json={"age": 3}).status_code == 404


def test_patch_person_updates_only_supplied_fields(client: TestClient, seeded: dict):
    pid = seeded["minor"].id

    r = client.patch(f"/api/persons/{pid}", json={"age": 18})

    assert r.status_code == 200
    assert r.json()["name"] == "Isac"
    assert r.json()["isMinor"] is False


def test_delete_person_cascades(client: TestClient, seeded: dict):
    pid = seeded["adult"].id
    assert client.post("/api/transactions", json=_tx_body(seeded)).status_code == 201

    assert client.delete(f"/api/persons/{pid}").status_code == 204

    assert client.get("/api/transactions").json() == []
    assert client.get(f"/api/persons/{pid}").status_code == 404


def test_person_detail_includes_transactions(client: TestClient, seeded: dict):
    client.post("/api/transactions", json=_tx_body(seeded, amount="80.5"))

    r = client.get(f"/api/persons/{seeded['adult'].id}/detail")

    assert r.status_code == 200
    (tx,) = r.json()["transactions"]
    assert tx["amount"] == "80.50"
    assert tx["categoryDescription"] == "Groceries"


# ---- Categories --------------------------------------------------------------


def test_category_create_and_filters(client: TestClient):
    r = client.post("/api/categories", json={"description": "Salary", "purpose": 1})
    assert r.status_code == 201
    assert r.json()["purposeDescription"] == "Income"
    client.post("/api/categories", json={"description": "Other", "purpose": 2})

    assert [c["description"] for c in client.get("/api/categories").json()] == ["Other", "Salary"]
    by_query = client.get("/api/categories", params={"purpose": "Income"}).json()
    by_path = client.get("/api/categories/purpose/1").json()
    assert [c["description"] for c in by_query] == ["Salary"]
    assert by_query == by_path


def test_category_errors(client: TestClient):
    client.post("/api/categories", json={"description": "Salary", "purpose": 1})

    dup = client.post("/api/categories", json={"description": "SALARY", "purpose": 2})
    assert dup.status_code == 400
    assert dup.json()["error"] == "conflict"

    bad_purpose = client.post("/api/categories", json={"description": "Gifts", "purpose": 9})
    assert bad_purpose.status_code == 400

    assert client.get("/api/categories/purpose/9").status_code == 400
    assert client.get("/api/categories/4242").status_code == 404


# ---- Transactions ------------------------------------------------------------


def test_create_transaction_contract(client: TestClient, seeded: dict):
    r = client.post("/api/transactions", json=_tx_body(seeded, amount="80.505"))

    assert r.status_code == 201
    body = r.json()
    assert body["amount"] == "80.51"
    assert body["type"] == 0
    assert body["personName"] == "Pedro"
    assert body["categoryDescription"] == "Groceries"
    assert body["createdAt"] == body["updatedAt"]
    assert client.get(f"/api/transactions/{body['id']}").json() == body


def test_minor_income_is_400_business_rule(client: TestClient, seeded: dict):
    r = client.post(
        "/api/transactions",
        json=_tx_body(seeded, type=1, personId=seeded["minor"].id, categoryId=seeded["other"].id),
    )

    assert r.status_code == 400
    assert r.json()["error"] == "business_rule"
    assert r.json()["rule"] == "minor_income"


def test_category_purpose_mismatch_is_400(client: TestClient, seeded: dict):
    r = client.post("/api/transactions", json=_tx_body(seeded, categoryId=seeded["salary"].id))

    assert r.status_code == 400
    assert r.json()["rule"] == "category_type"


def test_unknown_referenced_ids_are_400_not_404(client: TestClient, seeded: dict):
    r = client.post("/api/transactions", json=_tx_body(seeded, personId=999))
    assert r.status_code == 400
    assert r.json()["field"] == "person_id"

    r = client.post("/api/transactions", json=_tx_body(seeded, categoryId=999))
    assert r.status_code == 400
    assert r.json()["field"] == "category_id"


def test_non_positive_amount_is_400(client: TestClient, seeded: dict):
    r = client.post("/api/transactions", json=_tx_body(seeded, amount="0.004"))
    assert r.status_code == 400
    assert r.json()["field"] == "amount"


@pytest.mark.parametrize("method", ["put", "patch"])
def test_update_transaction_rechecks_rules(client: TestClient, seeded: dict, method: str):
    tx = client.post("/api/transactions", json=_tx_body(seeded)).json()
    send = getattr(client, method)

    rejected = send(f"/api/transactions/{tx['id']}", json={"type": 1})
    assert rejected.status_code == 400
    assert rejected.json()["rule"] == "category_type"

    ok = send(
        f"/api/transactions/{tx['id']}",
        json={"type": 1, "categoryId": seeded["salary"].id, "amount": "10"},
    )
    assert ok.status_code == 200
    assert ok.json()["amount"] == "10.00"
    assert ok.json()["description"] == tx["description"]


def test_transaction_not_found_and_delete(client: TestClient, seeded: dict):
    assert client.get("/api/transactions/99").status_code == 404
    assert client.put("/api/transactions/99", json={"amount": "1"}).status_code == 404

    tx = client.post("/api/transactions", json=_tx_body(seeded)).json()
    assert client.delete(f"/api/transactions/{tx['id']}").status_code == 204
    assert client.delete(f"/api/transactions/{tx['id']}").status_code == 404


# ---- Reports -----------------------------------------------------------------


def test_person_report_scenario(client: TestClient, seeded: dict):
    client.post(
        "/api/transactions",
        json=_tx_body(seeded, type=1, amount="5000", categoryId=seeded["salary"].id),
    )
    client.post("/api/transactions", json=_tx_body(seeded, amount="1000"))

    body = client.get("/api/reports/persons").json()

    pedro = next(p for p in body["people"] if p["personName"] == "Pedro")
    isac = next(p for p in body["people"] if p["personName"] == "Isac")
    assert (pedro["totalIncome"], pedro["totalExpense"], pedro["balance"]) == (
        "5000.00",
        "1000.00",
        "4000.00",
    )
    assert isac["balance"] == "0.00"
    assert body["grandBalance"] == "4000.00"


def test_category_report_labels_purpose(client: TestClient, seeded: dict):
    body = client.get("/api/reports/categories").json()

    assert [(c["categoryName"], c["purpose"]) for c in body["categories"]] == [
        ("Groceries", "Expense"),
        ("Other", "Both"),
        ("Salary", "Income"),
    ]
    assert body["grandTotalIncome"] == "0.00"


# ---- Internal errors ---------------------------------------------------------


def test_database_failure_is_500_with_generic_message(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
):
    def _boom(_session):
        raise OperationalError("SELECT 1", {}, Exception("disk I/O error"))

    monkeypatch.setattr(people_mod, "list_people", _boom)

    r = client.get("/api/persons")

    assert r.status_code == 500
    assert r.json() == {"message": "Internal server error", "error": "internal_error"}
