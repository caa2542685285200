"""Unit tests for mo_order domain dataclasses."""
from typing import Any

from src.mo_common.enums import ActorRole, ApprovalAction, PaymentMethod, PaymentStatus
from src.mo_order.domain.models import Actor, Order, OrderApproval, OrderItem, PaymentInfo


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "order-1",
        "project_id": "project-1",
        "order_number": "ATL-2026-001",
        "created_by": "ateli-ops",
        "initiated_by": "user-1",
        "items": [
            OrderItem(id="item-1", name="Plywood 19mm", quantity=2, unit_price=50_000),
            OrderItem(id="item-2", name="Hinge set", quantity=3, unit_price=25_000),
        ],
    }
    defaults.update(kwargs)
    return Order(**defaults)


class TestOrderItem:
    def test_total_price_computed_on_init(self) -> None:
        item = OrderItem(id="i", name="Tile", quantity=4, unit_price=1_250)
        assert item.total_price == 5_000

    def test_recompute_after_quantity_change(self) -> None:
        item = OrderItem(id="i", name="Tile", quantity=4, unit_price=1_250)
        item.quantity = 10
        item.recompute()
        assert item.total_price == 12_500

    def test_defaults_unconfirmed(self) -> None:
        item = OrderItem(id="i", name="Tile", quantity=1, unit_price=0)
        assert item.is_confirmed is False
        assert item.confirmed_by is None


class TestOrder:
    def test_recompute_totals(self) -> None:
        order = _make_order()
        order.recompute_totals()
        assert order.total_amount == 175_000

    def test_recompute_totals_empty(self) -> None:
        order = _make_order(items=[])
        order.recompute_totals()
        assert order.total_amount == 0

    def test_find_item(self) -> None:
        order = _make_order()
        assert order.find_item("item-2").name == "Hinge set"
        assert order.find_item("nope") is None

    def test_find_approval(self) -> None:
        order = _make_order(approvals=[OrderApproval(user_id="u1", user_name="Alex")])
        assert order.find_approval("u1").action is ApprovalAction.PENDING
        assert order.find_approval("u2") is None

    def test_is_fully_paid(self) -> None:
        order = _make_order()
        assert order.is_fully_paid is False
        order.payment = PaymentInfo(
            method=PaymentMethod.PAY_NOW, status=PaymentStatus.COMPLETED, amount_paid=175_000
        )
        assert order.is_fully_paid is True

    def test_default_lists_not_shared(self) -> None:
        a = Order(id="a", project_id="p", order_number="n", created_by="c", initiated_by="c")
        b = Order(id="b", project_id="p", order_number="n", created_by="c", initiated_by="c")
        a.pending_items.append("x")
        assert b.pending_items == []


class TestApprovalAndActor:
    def test_approval_is_decided(self) -> None:
        approval = OrderApproval(user_id="u1", user_name="Alex")
        assert approval.is_decided is False
        approval.action = ApprovalAction.REJECTED
        assert approval.is_decided is True

    def test_actor_is_operator(self) -> None:
        assert Actor(id="ops", name="Ops", role=ActorRole.OPERATOR).is_operator
        assert not Actor(id="u1", name="Alex").is_operator
