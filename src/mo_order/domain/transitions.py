"""Operator-recorded lifecycle facts: fulfilment progress, delivery outcome,
cancellation, hold/resume and clarification.

These functions only record facts; the status itself always comes from
derive_status. Each checks the current (already derived) status first.
"""
from datetime import datetime

from src.mo_common.datetime_utils import utc_now
from src.mo_common.enums import AdminState, DeliveryOutcome, FulfillmentStage, OrderStatus
from src.mo_common.errors import (
    InvalidStageTransitionError,
    ItemNotFoundError,
    OrderNotCancellableError,
    OrderNotDeliverableError,
    ValidationFailedError,
)
from src.mo_order.domain.models import DriverInfo, Order
from src.mo_order.domain.status import (
    DELIVERABLE_STATUSES,
    FULFILLMENT_SEQUENCE,
    TERMINAL_STATUSES,
    is_at_or_after,
)

CLARIFIABLE_STATUSES = frozenset(
    {OrderStatus.ORDER_RECEIVED, OrderStatus.CLARIFICATION_REQUESTED}
)


def next_fulfillment_stage(order: Order) -> FulfillmentStage | None:
    if order.fulfillment_stage is None:
        return FULFILLMENT_SEQUENCE[0]
    idx = FULFILLMENT_SEQUENCE.index(order.fulfillment_stage)
    if idx + 1 < len(FULFILLMENT_SEQUENCE):
        return FULFILLMENT_SEQUENCE[idx + 1]
    return None


def advance_fulfillment(
    order: Order,
    stage: FulfillmentStage,
    driver_info: DriverInfo | None = None,
    at: datetime | None = None,
) -> None:
    """Move the order one fulfilment step forward (confirmed -> loading -> dispatched -> delivered)."""
    if not is_at_or_after(order.status, OrderStatus.CONFIRMED):
        raise InvalidStageTransitionError(order.id, order.status.value, stage.value)
    if stage is not next_fulfillment_stage(order):
        raise InvalidStageTransitionError(order.id, order.status.value, stage.value)
    if driver_info is not None and FULFILLMENT_SEQUENCE.index(stage) < FULFILLMENT_SEQUENCE.index(
        FulfillmentStage.DISPATCHED
    ):
        raise ValidationFailedError("driver details are only accepted from dispatch onwards")

    order.fulfillment_stage = stage
    if driver_info is not None:
        order.driver_info = driver_info
    if stage is FulfillmentStage.DELIVERED:
        order.delivery_date = at or utc_now()


def mark_delivery_outcome(order: Order, pending_item_ids: list[str]) -> None:
    """Record a delivery with exceptions; the listed items are still outstanding."""
    if order.status not in DELIVERABLE_STATUSES:
        raise OrderNotDeliverableError(order.id, order.status.value)
    if order.status is OrderStatus.COMPLETED:
        raise InvalidStageTransitionError(
            order.id, order.status.value, OrderStatus.PARTIALLY_COMPLETED.value
        )
    for item_id in pending_item_ids:
        item = order.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(order.id, item_id)
        if item.is_confirmed:
            raise ValidationFailedError(f"item {item_id} is already confirmed")

    order.delivery_outcome = DeliveryOutcome.PARTIALLY_COMPLETED
    order.pending_items = list(dict.fromkeys(pending_item_ids))


def cancel(order: Order, reason: str | None = None) -> None:
    if order.status in TERMINAL_STATUSES:
        raise OrderNotCancellableError(order.id, order.status.value)
    order.admin_state = AdminState.CANCELLED
    order.cancel_reason = reason


def hold(order: Order) -> None:
    if order.status in TERMINAL_STATUSES or order.status is OrderStatus.ON_HOLD:
        raise InvalidStageTransitionError(order.id, order.status.value, OrderStatus.ON_HOLD.value)
    order.admin_state = AdminState.ON_HOLD


def resume(order: Order) -> None:
    """Clear the hold; derivation puts the order back where its facts say it is."""
    if order.admin_state is not AdminState.ON_HOLD or order.status is not OrderStatus.ON_HOLD:
        raise InvalidStageTransitionError(order.id, order.status.value, "resume")
    order.admin_state = None


def request_clarification(order: Order, note: str) -> None:
    """Park an order that has not entered approval yet; status never moves back."""
    if not note.strip():
        raise ValidationFailedError("clarification note must not be empty")
    if order.status not in CLARIFIABLE_STATUSES:
        raise InvalidStageTransitionError(
            order.id, order.status.value, OrderStatus.CLARIFICATION_REQUESTED.value
        )
    order.clarification_note = note.strip()


def resolve_clarification(order: Order) -> None:
    if order.clarification_note is None:
        raise InvalidStageTransitionError(order.id, order.status.value, "resolve_clarification")
    order.clarification_note = None
