"""Status derivation: maps an order's recorded facts to its lifecycle stage.

Status is never stored as independent truth. Every mutation, and every
refresh from the record store, re-runs derive_status over the full
approvals/items/fulfilment facts, so a stale or racing write is corrected the
next time anyone looks at the order.

Precedence (first match wins):
  1. explicit cancellation                     -> cancelled
  2. any approval rejected (veto)              -> cancelled
  3. explicit hold                             -> on_hold
  4. clarification requested                   -> clarification_requested
  5. no approval entries yet                   -> order_received
  6. any approval pending                      -> pending_confirmation
  7. all approved                              -> confirmed, or the recorded fulfilment stage
  8. at delivered: all items confirmed         -> completed
                   partial outcome + some conf -> partially_completed
"""

from src.mo_common.enums import (
    AdminState,
    ApprovalAction,
    DeliveryOutcome,
    FulfillmentStage,
    OrderStatus,
)
from src.mo_order.domain.models import Order

# Main line, in order. partially_completed and completed share the last rank.
STATUS_RANK: dict[OrderStatus, int] = {
    OrderStatus.CLARIFICATION_REQUESTED: 0,
    OrderStatus.ORDER_RECEIVED: 1,
    OrderStatus.PENDING_CONFIRMATION: 2,
    OrderStatus.CONFIRMED: 3,
    OrderStatus.MATERIAL_LOADING: 4,
    OrderStatus.DISPATCHED: 5,
    OrderStatus.DELIVERED: 6,
    OrderStatus.PARTIALLY_COMPLETED: 7,
    OrderStatus.COMPLETED: 7,
}

TERMINAL_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})

DELIVERABLE_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.PARTIALLY_COMPLETED, OrderStatus.COMPLETED}
)

FULFILLMENT_SEQUENCE: tuple[FulfillmentStage, ...] = (
    FulfillmentStage.MATERIAL_LOADING,
    FulfillmentStage.DISPATCHED,
    FulfillmentStage.DELIVERED,
)

_STAGE_TO_STATUS: dict[FulfillmentStage, OrderStatus] = {
    FulfillmentStage.MATERIAL_LOADING: OrderStatus.MATERIAL_LOADING,
    FulfillmentStage.DISPATCHED: OrderStatus.DISPATCHED,
    FulfillmentStage.DELIVERED: OrderStatus.DELIVERED,
}


def is_at_or_after(status: OrderStatus, milestone: OrderStatus) -> bool:
    """True if status is on the main line at or past milestone (side branches never are)."""
    if status not in STATUS_RANK:
        return False
    return STATUS_RANK[status] >= STATUS_RANK[milestone]


def all_approved(order: Order) -> bool:
    """Consensus: at least one approver, and every one of them approved."""
    return bool(order.approvals) and all(
        a.action is ApprovalAction.APPROVED for a in order.approvals
    )


def any_rejected(order: Order) -> bool:
    return any(a.action is ApprovalAction.REJECTED for a in order.approvals)


def _delivered_branch(order: Order) -> OrderStatus:
    confirmed = sum(1 for item in order.items if item.is_confirmed)
    if order.items and confirmed == len(order.items):
        return OrderStatus.COMPLETED
    if confirmed > 0 and order.delivery_outcome is DeliveryOutcome.PARTIALLY_COMPLETED:
        return OrderStatus.PARTIALLY_COMPLETED
    return OrderStatus.DELIVERED


def derive_status(order: Order) -> OrderStatus:
    """Pure function of the order's facts. Does not mutate the order."""
    if order.admin_state is AdminState.CANCELLED:
        return OrderStatus.CANCELLED
    if any_rejected(order):
        return OrderStatus.CANCELLED
    if order.admin_state is AdminState.ON_HOLD:
        return OrderStatus.ON_HOLD
    if order.clarification_note is not None:
        return OrderStatus.CLARIFICATION_REQUESTED
    if not order.approvals:
        return OrderStatus.ORDER_RECEIVED
    if not all_approved(order):
        return OrderStatus.PENDING_CONFIRMATION

    if order.fulfillment_stage is None:
        return OrderStatus.CONFIRMED
    stage_status = _STAGE_TO_STATUS[order.fulfillment_stage]
    if stage_status is OrderStatus.DELIVERED:
        return _delivered_branch(order)
    return stage_status
