"""HTTP-level tests for the order router (in-memory record store, no lifespan)."""
from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mo_common.enums import ActorRole
from src.mo_gateway.auth.jwt_handler import create_access_token
from src.mo_order.application.registry import OrderStoreRegistry, get_order_store_registry

BASE = "/api/v1/projects/project-1/orders"


def _auth(actor_id: str, name: str, role: ActorRole = ActorRole.MEMBER) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor_id, name, role)}"}


OPS = _auth("ateli-ops", "Ateli Ops", ActorRole.OPERATOR)
ALEX = _auth("alex", "Alex", ActorRole.PROJECT_MANAGER)
SARAH = _auth("sarah", "Sarah", ActorRole.ARCHITECT)

CREATE_BODY = {
    "items": [
        {"name": "Plywood 19mm", "quantity": 2, "unitPrice": 500},
        {"name": "Hinge set", "quantity": 1, "unitPrice": "250"},
    ],
    "approvers": [{"user_id": "alex", "user_name": "Alex"},
                  {"user_id": "sarah", "user_name": "Sarah"}],
    "initiated_by": "alex",
}


@pytest.fixture
async def client(repo) -> AsyncIterator[AsyncClient]:
    registry = OrderStoreRegistry(lambda: repo)
    app.dependency_overrides[get_order_store_registry] = lambda: registry
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _create(client: AsyncClient) -> dict:
    resp = await client.post(BASE, json=CREATE_BODY, headers=OPS)
    assert resp.status_code == 201
    return resp.json()["data"]["order"]


class TestOrderApi:
    async def test_requires_token(self, client: AsyncClient) -> None:
        resp = await client.get(BASE)
        assert resp.status_code == 401

    async def test_create_order(self, client: AsyncClient) -> None:
        resp = await client.post(BASE, json=CREATE_BODY, headers=OPS)
        assert resp.status_code == 201
        body = resp.json()
        assert body["code"] == 0
        assert body["request_id"] == resp.headers["X-Request-ID"]
        order = body["data"]["order"]
        assert order["status"] == "pending_confirmation"
        assert order["total_amount_paise"] == 125_000
        assert order["total_amount_display"] == "₹1,250.00"
        assert body["data"]["confirmation_message"].endswith("2 items, total ₹1,250.00")

    async def test_create_rejects_bad_quantity(self, client: AsyncClient) -> None:
        body = {"items": [{"name": "Tile", "quantity": 0, "unitPrice": 10}]}
        resp = await client.post(BASE, json=body, headers=OPS)
        assert resp.status_code == 422

    async def test_list_and_get(self, client: AsyncClient) -> None:
        created = await _create(client)
        listed = (await client.get(BASE, headers=ALEX)).json()["data"]["items"]
        assert [o["id"] for o in listed] == [created["id"]]

        resp = await client.get(f"{BASE}/{created['id']}", headers=ALEX)
        assert resp.json()["data"]["order_number"] == created["order_number"]

    async def test_unknown_order_envelope(self, client: AsyncClient) -> None:
        resp = await client.get(f"{BASE}/missing", headers=ALEX)
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == 4004
        assert body["data"] is None

    async def test_approval_flow(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        first = await client.post(f"{BASE}/{order_id}/approve", json={}, headers=ALEX)
        assert first.json()["data"]["pending_approvers"] == ["sarah"]
        resp = await client.post(
            f"{BASE}/{order_id}/approve", json={"comment": "go ahead"}, headers=SARAH
        )
        assert resp.json()["data"]["status"] == "confirmed"

        again = await client.post(f"{BASE}/{order_id}/reject", json={}, headers=SARAH)
        assert again.status_code == 409
        assert again.json()["code"] == 4102

    async def test_reject_cancels(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        resp = await client.post(
            f"{BASE}/{order_id}/reject", json={"comment": "no"}, headers=ALEX
        )
        assert resp.json()["data"]["status"] == "cancelled"

    async def test_member_cannot_advance(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        resp = await client.post(
            f"{BASE}/{order_id}/fulfillment", json={"stage": "material_loading"}, headers=ALEX
        )
        assert resp.status_code == 403
        assert resp.json()["code"] == 1006

    async def test_delivery_and_item_confirmation(self, client: AsyncClient) -> None:
        order = await _create(client)
        order_id = order["id"]
        for headers in (ALEX, SARAH):
            await client.post(f"{BASE}/{order_id}/approve", json={}, headers=headers)
        await client.post(
            f"{BASE}/{order_id}/fulfillment", json={"stage": "material_loading"}, headers=OPS
        )
        dispatched = await client.post(
            f"{BASE}/{order_id}/fulfillment",
            json={"stage": "dispatched",
                  "driver": {"name": "Ravi", "phone": "98450 00000", "vehicle_number": "KA-01"}},
            headers=OPS,
        )
        assert dispatched.json()["data"]["driver_name"] == "Ravi"
        await client.post(
            f"{BASE}/{order_id}/fulfillment", json={"stage": "delivered"}, headers=OPS
        )

        first, second = (i["id"] for i in order["items"])
        await client.post(f"{BASE}/{order_id}/items/{first}/confirm", headers=ALEX)
        partial = await client.post(
            f"{BASE}/{order_id}/delivery-outcome",
            json={"pending_item_ids": [second]},
            headers=OPS,
        )
        assert partial.json()["data"]["status"] == "partially_completed"

        done = await client.post(f"{BASE}/{order_id}/items/{second}/confirm", headers=SARAH)
        assert done.json()["data"]["status"] == "completed"

    async def test_payment_and_overpayment(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        over = await client.post(
            f"{BASE}/{order_id}/payment",
            json={"method": "pay_now", "amount_paise": 200_000},
            headers=ALEX,
        )
        assert over.status_code == 422
        assert over.json()["code"] == 4301

        paid = await client.post(
            f"{BASE}/{order_id}/payment",
            json={"method": "pay_now", "amount_paise": 125_000, "transaction_id": "txn-1"},
            headers=ALEX,
        )
        payment = paid.json()["data"]["payment"]
        assert payment["status"] == "completed"
        assert payment["amount_paid_display"] == "₹1,250.00"

    async def test_payment_replaces_earlier_amount(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        url = f"{BASE}/{order_id}/payment"
        await client.post(url, json={"method": "wallet", "amount_paise": 50_000}, headers=ALEX)
        resp = await client.post(
            url, json={"method": "wallet", "amount_paise": 125_000}, headers=ALEX
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["payment"]["amount_paid_paise"] == 125_000
        assert resp.json()["data"]["payment"]["status"] == "completed"

    async def test_instalments(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        url = f"{BASE}/{order_id}/payment/instalments"
        first = await client.post(
            url, json={"method": "payment_link", "amount_paise": 100_000}, headers=ALEX
        )
        assert first.json()["data"]["payment"]["status"] == "partial"

        over = await client.post(
            url, json={"method": "payment_link", "amount_paise": 50_000}, headers=ALEX
        )
        assert over.json()["code"] == 4301

        rest = await client.post(
            url, json={"method": "payment_link", "amount_paise": 25_000}, headers=SARAH
        )
        assert rest.json()["data"]["payment"]["amount_paid_paise"] == 125_000
        assert rest.json()["data"]["payment"]["status"] == "completed"

        done = await client.post(
            url, json={"method": "payment_link", "amount_paise": 1}, headers=ALEX
        )
        assert done.status_code == 409
        assert done.json()["code"] == 4302

    async def test_zero_instalment_rejected(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        resp = await client.post(
            f"{BASE}/{order_id}/payment/instalments",
            json={"method": "wallet", "amount_paise": 0},
            headers=ALEX,
        )
        assert resp.status_code == 422

    async def test_cancel_hold_resume(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        held = await client.post(f"{BASE}/{order_id}/hold", headers=OPS)
        assert held.json()["data"]["status"] == "on_hold"
        resumed = await client.post(f"{BASE}/{order_id}/resume", headers=OPS)
        assert resumed.json()["data"]["status"] == "pending_confirmation"

        forbidden = await client.post(f"{BASE}/{order_id}/cancel", json={}, headers=ALEX)
        assert forbidden.status_code == 403
        cancelled = await client.post(
            f"{BASE}/{order_id}/cancel", json={"reason": "duplicate"}, headers=OPS
        )
        assert cancelled.json()["data"]["cancel_reason"] == "duplicate"

    async def test_clarification_round_trip(self, client: AsyncClient) -> None:
        created = await client.post(BASE, json={**CREATE_BODY, "approvers": []}, headers=OPS)
        order_id = created.json()["data"]["order"]["id"]
        asked = await client.post(
            f"{BASE}/{order_id}/clarification", json={"note": "Which shade?"}, headers=OPS
        )
        assert asked.json()["data"]["status"] == "clarification_requested"
        resolved = await client.post(f"{BASE}/{order_id}/clarification/resolve", headers=ALEX)
        assert resolved.json()["data"]["status"] == "order_received"

    async def test_clarification_refused_once_approvals_open(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        resp = await client.post(
            f"{BASE}/{order_id}/clarification", json={"note": "Which shade?"}, headers=OPS
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 4203

    async def test_invoice(self, client: AsyncClient) -> None:
        order_id = (await _create(client))["id"]
        invoice = (await client.get(f"{BASE}/{order_id}/invoice", headers=ALEX)).json()["data"]
        assert [line["total_price_paise"] for line in invoice["lines"]] == [100_000, 25_000]
        assert invoice["total_amount_paise"] == 125_000

    async def test_write_failure_is_503(self, client: AsyncClient, repo) -> None:
        order_id = (await _create(client))["id"]
        repo.fail_writes = True
        resp = await client.post(f"{BASE}/{order_id}/approve", json={}, headers=ALEX)
        assert resp.status_code == 503
        assert resp.json()["code"] == 9101

        repo.fail_writes = False
        current = (await client.get(f"{BASE}/{order_id}", headers=ALEX)).json()["data"]
        assert current["approvals"][0]["action"] == "pending"


async def test_incoming_request_id_is_echoed(client: AsyncClient) -> None:
    headers = {**ALEX, "X-Request-ID": "req_caller00001"}
    resp = await client.get(f"{BASE}/missing", headers=headers)
    assert resp.headers["X-Request-ID"] == "req_caller00001"
    assert resp.json()["request_id"] == "req_caller00001"


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/health")
    assert resp.json()["status"] == "ok"
