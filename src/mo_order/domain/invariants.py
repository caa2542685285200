"""Order invariant verification after each mutation."""

import logging

from src.mo_common.enums import PaymentStatus
from src.mo_order.domain.models import Order
from src.mo_order.domain.status import derive_status

logger = logging.getLogger(__name__)


def verify_order_invariants(order: Order) -> None:
    """Verify aggregate invariants. Raises AssertionError if violated.

    INV-1: item.total_price == item.quantity * item.unit_price
    INV-2: total_amount == sum(item.total_price)
    INV-3: at most one approval per approver identity
    INV-4: payment.amount_paid <= total_amount; completed <=> amount_paid == total_amount
    INV-5: status == derive_status(order)
    """
    for item in order.items:
        assert item.quantity > 0, f"INV-1 violated: item {item.id} quantity={item.quantity}"
        assert item.total_price == item.quantity * item.unit_price, (
            f"INV-1 violated: item {item.id} total={item.total_price} "
            f"!= {item.quantity} * {item.unit_price}"
        )

    items_sum = sum(item.total_price for item in order.items)
    assert order.total_amount == items_sum, (
        f"INV-2 violated: total_amount={order.total_amount} != sum(items)={items_sum}"
    )

    approver_ids = [a.user_id for a in order.approvals]
    assert len(approver_ids) == len(set(approver_ids)), (
        f"INV-3 violated: duplicate approvers in {approver_ids}"
    )

    if order.payment is not None:
        paid = order.payment.amount_paid
        assert 0 <= paid <= order.total_amount, (
            f"INV-4 violated: amount_paid={paid} outside [0, {order.total_amount}]"
        )
        completed = order.payment.status is PaymentStatus.COMPLETED
        assert completed == (paid == order.total_amount), (
            f"INV-4 violated: payment status={order.payment.status.value} "
            f"with amount_paid={paid}, total={order.total_amount}"
        )

    derived = derive_status(order)
    assert order.status is derived, (
        f"INV-5 violated: status={order.status.value} != derived={derived.value}"
    )

    logger.debug(
        "Invariants OK: order=%s, total=%d, status=%s",
        order.id, order.total_amount, order.status.value,
    )
