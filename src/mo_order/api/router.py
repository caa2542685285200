# src/mo_order/api/router.py
"""mo_order REST API — every write goes through the project's OrderStore."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from src.mo_common.response import ApiResponse, success_response
from src.mo_gateway.auth.dependencies import get_current_actor
from src.mo_order.application.registry import OrderStoreRegistry, get_order_store_registry
from src.mo_order.application.schemas import (
    CancelRequest,
    ClarificationRequest,
    CreateOrderRequest,
    CreateOrderResponse,
    DecisionRequest,
    DeliveryOutcomeRequest,
    FulfillmentRequest,
    InstalmentRequest,
    InvoiceResponse,
    OrderDraft,
    OrderListResponse,
    OrderResponse,
    PaymentRequest,
)
from src.mo_order.application.store import OrderStore
from src.mo_order.domain.models import Actor, DriverInfo, Order

router = APIRouter(prefix="/projects/{project_id}/orders", tags=["orders"])


async def get_order_store(
    project_id: str,
    registry: Annotated[OrderStoreRegistry, Depends(get_order_store_registry)],
) -> OrderStore:
    return await registry.get(project_id)


StoreDep = Annotated[OrderStore, Depends(get_order_store)]
ActorDep = Annotated[Actor, Depends(get_current_actor)]


def _ok(data: BaseModel, request: Request) -> ApiResponse:
    return success_response(data.model_dump(mode="json"), request)


def _order_ok(order: Order, request: Request) -> ApiResponse:
    return _ok(OrderResponse.from_domain(order), request)


@router.get("")
async def list_orders(store: StoreDep, actor: ActorDep, request: Request) -> ApiResponse:
    orders = store.list_orders()
    return _ok(OrderListResponse(items=[OrderResponse.from_domain(o) for o in orders]), request)


@router.post("", status_code=201)
async def create_order(
    body: CreateOrderRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    order, message = await store.create_order(
        OrderDraft(items=body.items),
        actor,
        approvers=[(a.user_id, a.user_name) for a in body.approvers],
        initiated_by=body.initiated_by,
        notes=body.notes,
        estimated_delivery=body.estimated_delivery,
    )
    data = CreateOrderResponse(
        order=OrderResponse.from_domain(order), confirmation_message=message
    )
    return _ok(data, request)


@router.get("/{order_id}")
async def get_order(
    order_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(store.get_order(order_id), request)


@router.get("/{order_id}/invoice")
async def get_invoice(
    order_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _ok(InvoiceResponse.from_domain(store.get_order(order_id)), request)


@router.post("/{order_id}/approve")
async def approve_order(
    order_id: str, body: DecisionRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.approve(order_id, actor, body.comment), request)


@router.post("/{order_id}/reject")
async def reject_order(
    order_id: str, body: DecisionRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.reject(order_id, actor, body.comment), request)


@router.post("/{order_id}/items/{item_id}/confirm")
async def confirm_item(
    order_id: str, item_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.confirm_item(order_id, item_id, actor), request)


@router.post("/{order_id}/payment")
async def record_payment(
    order_id: str, body: PaymentRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    order = await store.record_payment(
        order_id, body.method, body.amount_paise, actor, body.transaction_id
    )
    return _order_ok(order, request)


@router.post("/{order_id}/payment/instalments")
async def record_instalment(
    order_id: str, body: InstalmentRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    order = await store.record_instalment(
        order_id, body.method, body.amount_paise, actor, body.transaction_id
    )
    return _order_ok(order, request)


@router.post("/{order_id}/fulfillment")
async def advance_fulfillment(
    order_id: str, body: FulfillmentRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    driver = (
        DriverInfo(
            name=body.driver.name,
            phone=body.driver.phone,
            vehicle_number=body.driver.vehicle_number,
        )
        if body.driver
        else None
    )
    order = await store.advance_fulfillment(order_id, body.stage, actor, driver)
    return _order_ok(order, request)


@router.post("/{order_id}/delivery-outcome")
async def mark_delivery_outcome(
    order_id: str,
    body: DeliveryOutcomeRequest,
    store: StoreDep,
    actor: ActorDep,
    request: Request,
) -> ApiResponse:
    order = await store.mark_delivery_outcome(order_id, body.pending_item_ids, actor)
    return _order_ok(order, request)


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str, body: CancelRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.cancel(order_id, actor, body.reason), request)


@router.post("/{order_id}/hold")
async def hold_order(
    order_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.hold(order_id, actor), request)


@router.post("/{order_id}/resume")
async def resume_order(
    order_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.resume(order_id, actor), request)


@router.post("/{order_id}/clarification")
async def request_clarification(
    order_id: str, body: ClarificationRequest, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.request_clarification(order_id, body.note, actor), request)


@router.post("/{order_id}/clarification/resolve")
async def resolve_clarification(
    order_id: str, store: StoreDep, actor: ActorDep, request: Request
) -> ApiResponse:
    return _order_ok(await store.resolve_clarification(order_id, actor), request)
