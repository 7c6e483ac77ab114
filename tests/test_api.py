"""
Tests for the booking HTTP endpoints.
"""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from tourbooking.application.use_cases.booking import BookingOrchestrator
from tourbooking.infrastructure.mock.mock_catalog import MockProductCatalog
from tourbooking.infrastructure.mock.mock_gateway import MockCartGateway
from tourbooking.infrastructure.store.json_store import JsonCartIdStore
from tourbooking.infrastructure.store.memory_store import BookingSessionRegistry
from tourbooking.main import app
from tourbooking.wiring.dependencies import (
    get_orchestrator_factory,
    get_product_catalog,
    get_session_registry,
)

ADDRESS = {
    "firstname": "Ana",
    "lastname": "Reyes",
    "street": ["12 Harbour Road"],
    "city": "Road Town",
    "postcode": "VG1110",
    "country_code": "VG",
    "telephone": "+1 284 555 0100",
}


@pytest.fixture
def gateway():
    return MockCartGateway()


@pytest.fixture
def client(gateway, tmp_path):
    registry = BookingSessionRegistry(max_sessions=10)
    catalog = MockProductCatalog()

    def factory(session_id: str) -> BookingOrchestrator:
        return BookingOrchestrator(
            gateway=gateway,
            cart_id_store=JsonCartIdStore(tmp_path / f"{session_id}.json"),
            today=lambda: date(2030, 6, 1),
            session_id=session_id,
        )

    app.dependency_overrides[get_product_catalog] = lambda: catalog
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_orchestrator_factory] = lambda: factory
    yield TestClient(app)
    app.dependency_overrides.clear()


def _start(client: TestClient, url_key: str = "island-highlights-tour") -> dict:
    resp = client.post("/api/v1/booking/sessions", json={"url_key": url_key})
    assert resp.status_code == 201, resp.text
    return resp.json()


def _answer(client: TestClient, session_id: str, option_id: int, value) -> dict:
    resp = client.put(f"/api/v1/booking/sessions/{session_id}/options/{option_id}", json={"value": value})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_products(client):
    resp = client.get("/api/v1/booking/products")

    assert resp.status_code == 200
    assert {p["url_key"] for p in resp.json()} == {"island-highlights-tour", "private-charter"}


def test_unknown_product_returns_404(client):
    resp = client.post("/api/v1/booking/sessions", json={"url_key": "nope"})

    assert resp.status_code == 404


def test_start_session_shows_product_step(client):
    view = _start(client)

    assert view["step"] == "product"
    assert view["quantity"] == 1
    by_id = {o["option_id"]: o for o in view["options"]}
    assert by_id[4]["visible"] is False
    assert [v["title"] for v in by_id[3]["values"]] == ["YES", "NO"]


def test_cruise_answer_reveals_ship_times(client):
    session_id = _start(client)["session_id"]

    view = _answer(client, session_id, 3, "31")

    by_id = {o["option_id"]: o for o in view["options"]}
    assert by_id[4]["visible"] is True
    assert by_id[4]["required"] is True


def test_capacity_warning_and_blocked_confirm(client, gateway):
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-01")
    _answer(client, session_id, 2, "21")
    _answer(client, session_id, 3, "32")

    qty = client.put(f"/api/v1/booking/sessions/{session_id}/quantity", json={"quantity": 3})
    confirm = client.post(f"/api/v1/booking/sessions/{session_id}/confirm")

    assert qty.status_code == 200
    assert qty.json()["date_availability"] == {"date": "2030-07-01", "remaining": 2, "allowed": 12}
    assert "Only 2 seats" in qty.json()["error"]
    assert confirm.status_code == 422
    assert confirm.json()["detail"]["failure"] == "validation"
    assert gateway.calls_to("add_item") == []


def test_full_booking_flow(client, gateway):
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-03")
    _answer(client, session_id, 2, "22")
    _answer(client, session_id, 3, "32")
    _answer(client, session_id, 6, ["61", "62"])

    confirm = client.post(f"/api/v1/booking/sessions/{session_id}/confirm")
    assert confirm.status_code == 200
    assert confirm.json()["step"] == "checkout"
    assert confirm.json()["item_total"]["value"] == 50.0

    checkout = client.post(
        f"/api/v1/booking/sessions/{session_id}/checkout",
        json={"email": "ana@example.com", "address": ADDRESS},
    )
    assert checkout.status_code == 200
    assert checkout.json()["step"] == "payment"

    methods = client.get(f"/api/v1/booking/sessions/{session_id}/payment-methods")
    assert [m["code"] for m in methods.json()] == ["checkmo", "banktransfer"]
    view = client.get(f"/api/v1/booking/sessions/{session_id}").json()
    assert view["selected_payment_method"]["code"] == "checkmo"

    review = client.post(f"/api/v1/booking/sessions/{session_id}/payment", json={"method_code": "checkmo"})
    assert review.status_code == 200
    assert review.json()["step"] == "review"
    assert review.json()["totals"]["grand_total"]["value"] == 50.0

    placed = client.post(f"/api/v1/booking/sessions/{session_id}/place-order")
    assert placed.status_code == 200
    assert placed.json()["step"] == "success"
    assert placed.json()["order_number"] == "000000001"

    again = client.post(f"/api/v1/booking/sessions/{session_id}/place-order")
    assert again.status_code == 422
    assert gateway.calls_to("place_order") == ["mock_cart_1"]


def test_checkout_field_errors(client):
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-03")
    _answer(client, session_id, 2, "21")
    _answer(client, session_id, 3, "32")
    client.post(f"/api/v1/booking/sessions/{session_id}/confirm")

    resp = client.post(
        f"/api/v1/booking/sessions/{session_id}/checkout",
        json={"email": "bad", "address": {**ADDRESS, "city": ""}},
    )

    assert resp.status_code == 422
    assert set(resp.json()["detail"]["fields"]) == {"email", "city"}


def test_gateway_failure_maps_to_502(client, gateway):
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-03")
    _answer(client, session_id, 2, "21")
    _answer(client, session_id, 3, "32")
    gateway.fail_next("add_item")

    resp = client.post(f"/api/v1/booking/sessions/{session_id}/confirm")

    assert resp.status_code == 502
    assert resp.json()["detail"]["step"] == "product"


def test_missing_cart_maps_to_410(client, gateway):
    gateway.fail_next("create_cart")
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-03")
    _answer(client, session_id, 2, "21")
    _answer(client, session_id, 3, "32")

    resp = client.post(f"/api/v1/booking/sessions/{session_id}/confirm")

    assert resp.status_code == 410
    assert client.get(f"/api/v1/booking/sessions/{session_id}").json()["needs_restart"] is True


def test_back_from_checkout(client):
    session_id = _start(client)["session_id"]
    _answer(client, session_id, 1, "2030-07-03")
    _answer(client, session_id, 2, "21")
    _answer(client, session_id, 3, "32")
    client.post(f"/api/v1/booking/sessions/{session_id}/confirm")

    resp = client.post(f"/api/v1/booking/sessions/{session_id}/back")

    assert resp.status_code == 200
    assert resp.json()["step"] == "product"


def test_enquiry_redirect(client):
    session_id = _start(client, "private-charter")["session_id"]

    resp = client.post(f"/api/v1/booking/sessions/{session_id}/enquiry")

    assert resp.status_code == 200
    assert resp.json()["url"].startswith("/contact?message=")


def test_close_session_removes_cart_id_file(client, tmp_path):
    session_id = _start(client)["session_id"]
    cart_file = tmp_path / f"{session_id}.json"
    assert cart_file.exists()

    assert client.delete(f"/api/v1/booking/sessions/{session_id}").status_code == 204
    assert client.get(f"/api/v1/booking/sessions/{session_id}").status_code == 404
    assert not cart_file.exists()
