# src/mo_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence over the orders table.

Nested parts of the aggregate (items, approvals, payment, driver info,
pending items) live in JSONB columns, so a single row is the whole order and
upsert_order is a full-record replace keyed by id.
"""
import json
from collections.abc import Callable
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mo_common.datetime_utils import ensure_utc
from src.mo_common.enums import (
    AdminState,
    ApprovalAction,
    DeliveryOutcome,
    FulfillmentStage,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.mo_order.domain.models import (
    DriverInfo,
    Order,
    OrderApproval,
    OrderItem,
    PaymentInfo,
)

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_UPSERT_ORDER_SQL = text("""
    INSERT INTO orders (id, project_id, order_number, items, total_amount, status,
        approvals, created_by, created_by_name, initiated_by, payment, driver_info,
        fulfillment_stage, delivery_outcome, pending_items, admin_state,
        clarification_note, cancel_reason, notes, updated_by_name,
        created_at, updated_at, confirmed_at, delivery_date, estimated_delivery)
    VALUES (:id, :project_id, :order_number, CAST(:items AS JSONB), :total_amount, :status,
        CAST(:approvals AS JSONB), :created_by, :created_by_name, :initiated_by,
        CAST(:payment AS JSONB), CAST(:driver_info AS JSONB),
        :fulfillment_stage, :delivery_outcome, CAST(:pending_items AS JSONB), :admin_state,
        :clarification_note, :cancel_reason, :notes, :updated_by_name,
        :created_at, :updated_at, :confirmed_at, :delivery_date, :estimated_delivery)
    ON CONFLICT (id) DO UPDATE SET
        order_number = EXCLUDED.order_number,
        items = EXCLUDED.items,
        total_amount = EXCLUDED.total_amount,
        status = EXCLUDED.status,
        approvals = EXCLUDED.approvals,
        initiated_by = EXCLUDED.initiated_by,
        payment = EXCLUDED.payment,
        driver_info = EXCLUDED.driver_info,
        fulfillment_stage = EXCLUDED.fulfillment_stage,
        delivery_outcome = EXCLUDED.delivery_outcome,
        pending_items = EXCLUDED.pending_items,
        admin_state = EXCLUDED.admin_state,
        clarification_note = EXCLUDED.clarification_note,
        cancel_reason = EXCLUDED.cancel_reason,
        notes = EXCLUDED.notes,
        updated_by_name = EXCLUDED.updated_by_name,
        updated_at = EXCLUDED.updated_at,
        confirmed_at = EXCLUDED.confirmed_at,
        delivery_date = EXCLUDED.delivery_date,
        estimated_delivery = EXCLUDED.estimated_delivery
""")

_SELECT_COLUMNS = """
    id, project_id, order_number, items, total_amount, status, approvals,
    created_by, created_by_name, initiated_by, payment, driver_info,
    fulfillment_stage, delivery_outcome, pending_items, admin_state,
    clarification_note, cancel_reason, notes,
    created_at, updated_at, confirmed_at, delivery_date, estimated_delivery
"""

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE project_id = :project_id
    ORDER BY created_at DESC, id DESC
""")


# ---------------------------------------------------------------------------
# JSON codec
# ---------------------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value)))


def _load_json(value: Any) -> Any:
    """asyncpg may hand back JSONB as text or as decoded Python; accept both."""
    if isinstance(value, (str, bytes, bytearray)):
        return json.loads(value)
    return value


def _item_to_dict(item: OrderItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "image_url": item.image_url,
        "quantity": item.quantity,
        "unit_price": item.unit_price,
        "total_price": item.total_price,
        "is_confirmed": item.is_confirmed,
        "confirmed_by": item.confirmed_by,
        "confirmed_at": _iso(item.confirmed_at),
    }


def _dict_to_item(data: dict[str, Any]) -> OrderItem:
    # total_price is recomputed from quantity * unit_price, never trusted from storage
    return OrderItem(
        id=data["id"],
        name=data["name"],
        description=data.get("description"),
        image_url=data.get("image_url"),
        quantity=int(data["quantity"]),
        unit_price=int(data["unit_price"]),
        is_confirmed=bool(data.get("is_confirmed", False)),
        confirmed_by=data.get("confirmed_by"),
        confirmed_at=_parse_dt(data.get("confirmed_at")),
    )


def _approval_to_dict(approval: OrderApproval) -> dict[str, Any]:
    return {
        "user_id": approval.user_id,
        "user_name": approval.user_name,
        "action": approval.action.value,
        "timestamp": _iso(approval.timestamp),
        "comment": approval.comment,
    }


def _dict_to_approval(data: dict[str, Any]) -> OrderApproval:
    return OrderApproval(
        user_id=data["user_id"],
        user_name=data.get("user_name") or "",
        action=ApprovalAction(data.get("action", ApprovalAction.PENDING.value)),
        timestamp=_parse_dt(data.get("timestamp")),
        comment=data.get("comment"),
    )


def _payment_to_dict(payment: PaymentInfo) -> dict[str, Any]:
    return {
        "method": payment.method.value,
        "status": payment.status.value,
        "amount_paid": payment.amount_paid,
        "transaction_id": payment.transaction_id,
        "paid_by": payment.paid_by,
        "paid_at": _iso(payment.paid_at),
    }


def _dict_to_payment(data: dict[str, Any]) -> PaymentInfo:
    return PaymentInfo(
        method=PaymentMethod(data["method"]),
        status=PaymentStatus(data["status"]),
        amount_paid=int(data["amount_paid"]),
        transaction_id=data.get("transaction_id"),
        paid_by=data.get("paid_by"),
        paid_at=_parse_dt(data.get("paid_at")),
    )


def _driver_to_dict(driver: DriverInfo) -> dict[str, Any]:
    return {"name": driver.name, "phone": driver.phone, "vehicle_number": driver.vehicle_number}


def _dict_to_driver(data: dict[str, Any]) -> DriverInfo:
    return DriverInfo(
        name=data["name"], phone=data["phone"], vehicle_number=data.get("vehicle_number")
    )


def _enum_or_none(enum_cls: Any, value: str | None) -> Any:
    return enum_cls(value) if value else None


def _order_to_params(order: Order, attribution_name: str) -> dict[str, Any]:
    return {
        "id": order.id,
        "project_id": order.project_id,
        "order_number": order.order_number,
        "items": json.dumps([_item_to_dict(i) for i in order.items]),
        "total_amount": order.total_amount,
        "status": order.status.value,
        "approvals": json.dumps([_approval_to_dict(a) for a in order.approvals]),
        "created_by": order.created_by,
        "created_by_name": order.created_by_name or attribution_name,
        "initiated_by": order.initiated_by,
        "payment": json.dumps(_payment_to_dict(order.payment)) if order.payment else None,
        "driver_info": json.dumps(_driver_to_dict(order.driver_info)) if order.driver_info else None,
        "fulfillment_stage": order.fulfillment_stage.value if order.fulfillment_stage else None,
        "delivery_outcome": order.delivery_outcome.value if order.delivery_outcome else None,
        "pending_items": json.dumps(order.pending_items),
        "admin_state": order.admin_state.value if order.admin_state else None,
        "clarification_note": order.clarification_note,
        "cancel_reason": order.cancel_reason,
        "notes": order.notes,
        "updated_by_name": attribution_name,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
        "confirmed_at": order.confirmed_at,
        "delivery_date": order.delivery_date,
        "estimated_delivery": order.estimated_delivery,
    }


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object.

    The stored status is read as-is; the store re-derives it after loading.
    """
    payment = _load_json(row.payment)
    driver = _load_json(row.driver_info)
    order = Order(
        id=row.id,
        project_id=row.project_id,
        order_number=row.order_number,
        created_by=row.created_by,
        created_by_name=row.created_by_name,
        initiated_by=row.initiated_by,
        items=[_dict_to_item(d) for d in _load_json(row.items) or []],
        approvals=[_dict_to_approval(d) for d in _load_json(row.approvals) or []],
        status=OrderStatus(row.status),
        total_amount=row.total_amount,
        payment=_dict_to_payment(payment) if payment else None,
        driver_info=_dict_to_driver(driver) if driver else None,
        fulfillment_stage=_enum_or_none(FulfillmentStage, row.fulfillment_stage),
        delivery_outcome=_enum_or_none(DeliveryOutcome, row.delivery_outcome),
        pending_items=list(_load_json(row.pending_items) or []),
        admin_state=_enum_or_none(AdminState, row.admin_state),
        clarification_note=row.clarification_note,
        cancel_reason=row.cancel_reason,
        notes=row.notes,
        created_at=row.created_at,
        updated_at=row.updated_at,
        confirmed_at=row.confirmed_at,
        delivery_date=row.delivery_date,
        estimated_delivery=row.estimated_delivery,
    )
    return order


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL.

    Each call opens its own short session: the Order Store holds no
    transaction across an optimistic mutation.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None) -> None:
        if session_factory is None:
            from src.mo_common.database import async_session_factory

            session_factory = async_session_factory
        self._session_factory = session_factory

    async def list_orders(self, project_id: str) -> list[Order]:
        async with self._session_factory() as db:
            result = await db.execute(_LIST_ORDERS_SQL, {"project_id": project_id})
            rows = result.fetchall()
        return [_row_to_order(row) for row in rows]

    async def upsert_order(self, order: Order, attribution_name: str) -> None:
        async with self._session_factory() as db:
            try:
                await db.execute(_UPSERT_ORDER_SQL, _order_to_params(order, attribution_name))
                await db.commit()
            except Exception:
                await db.rollback()
                raise
