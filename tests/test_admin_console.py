import json
import time
from contextlib import contextmanager
from decimal import Decimal
from types import SimpleNamespace
from urllib.parse import urlencode

import pytest
from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.core.security import sign_init_data
from app.dependencies import get_ledger
from app.main import app


@contextmanager
def _client_with_ledger(ledger):
    app.dependency_overrides.clear()
    app.dependency_overrides[get_ledger] = lambda: ledger
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


def _auth_headers(telegram_id: int, username: str):
    values = {
        "auth_date": str(int(time.time())),
        "user": json.dumps({"id": telegram_id, "username": username}),
    }
    values["hash"] = sign_init_data(values, get_settings().telegram_bot_token)
    return {"X-Telegram-Init-Data": urlencode(values)}


@pytest.fixture
def client(ledger, admin):
    ledger.create_user(10, "alice")
    with _client_with_ledger(ledger) as test_client:
        yield test_client


def test_admin_routes_require_admin():
    stub = SimpleNamespace(is_admin=lambda user_id: False)
    with _client_with_ledger(stub) as client:
        headers = _auth_headers(10, "alice")
        list_res = client.get("/api/v1/admin/users", headers=headers)
        balance_res = client.post(
            "/api/v1/admin/balances",
            headers=headers,
            json={"username": "alice", "amount": "100", "currency": "SHL"},
        )
        currency_res = client.post(
            "/api/v1/admin/currencies",
            headers=headers,
            json={"code": "USD", "name": "Dollars", "sign": "$"},
        )

    for res in (list_res, balance_res, currency_res):
        assert res.status_code == 403
        assert res.json()["detail"] == "Admin access required"


def test_admin_routes_require_init_data():
    stub = SimpleNamespace(is_admin=lambda user_id: True)
    with _client_with_ledger(stub) as client:
        res = client.get("/api/v1/admin/users")
    assert res.status_code == 401


def test_admin_sets_balance_and_lists_users(client):
    headers = _auth_headers(1, "scrooge")
    res = client.post(
        "/api/v1/admin/balances",
        headers=headers,
        json={"username": "alice", "amount": "250.00", "currency": "shl"},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["kind"] == "admin_set_balance"
    assert Decimal(body["balance_after"]) == Decimal("250")

    res = client.get("/api/v1/admin/users", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["total"] == 2
    alice = next(item for item in body["items"] if item["username"] == "alice")
    assert Decimal(alice["balances"]["SHL"]) == Decimal("250")


def test_admin_negative_balance_maps_to_400(client):
    res = client.post(
        "/api/v1/admin/balances",
        headers=_auth_headers(1, "scrooge"),
        json={"username": "alice", "amount": "-1", "currency": "SHL"},
    )
    assert res.status_code == 400
    assert res.json()["detail"]["code"] == "INVALID_AMOUNT"


def test_admin_user_lifecycle(client):
    headers = _auth_headers(1, "scrooge")

    res = client.post("/api/v1/admin/users", headers=headers, json={"telegram_id": 30, "username": "carol"})
    assert res.status_code == 200
    assert res.json()["outcome"] == "created"

    res = client.post("/api/v1/admin/users/carol/admin", headers=headers, json={"is_admin": True})
    assert res.json()["is_admin"] is True

    res = client.post("/api/v1/admin/users/carol/disable", headers=headers)
    assert res.json()["status"] == "disabled"

    res = client.get("/api/v1/admin/users", headers=headers, params={"include_disabled": True})
    assert {item["username"] for item in res.json()["items"]} == {"scrooge", "alice", "carol"}

    res = client.delete("/api/v1/admin/users/carol", headers=headers)
    assert res.status_code == 200
    assert res.json()["telegram_id"] == 30

    res = client.delete("/api/v1/admin/users/carol", headers=headers)
    assert res.status_code == 404
    assert res.json()["detail"]["code"] == "NOT_FOUND"


def test_admin_manages_currencies(client):
    headers = _auth_headers(1, "scrooge")

    res = client.post("/api/v1/admin/currencies", headers=headers, json={"code": "usd", "name": "Dollars", "sign": "$"})
    assert res.status_code == 200
    assert res.json()["code"] == "USD"

    res = client.post("/api/v1/admin/currencies", headers=headers, json={"code": "USD", "name": "Dollars", "sign": "$"})
    assert res.status_code == 409

    res = client.post("/api/v1/admin/currencies/default", headers=headers, json={"code": "USD"})
    assert res.json()["is_default"] is True

    res = client.get("/api/v1/currencies/default", headers=headers)
    assert res.json()["code"] == "USD"


def test_bootstrap_admins_promotes_configured_ids(ledger, session_factory, monkeypatch):
    import app.main as main_module

    ledger.create_user(10, "alice")
    ledger.create_user(20, "bob")
    monkeypatch.setattr(main_module, "SessionLocal", session_factory)
    monkeypatch.setattr(main_module.settings, "bootstrap_admin_ids", "10, 99")

    main_module._bootstrap_admins()

    assert ledger.is_admin(10) is True
    assert ledger.is_admin(20) is False
