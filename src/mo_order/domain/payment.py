"""Payment reconciler — tracks amount paid against the order total.

Payment and fulfilment are independent axes: nothing here touches
order.status, and an order can be completed while still unpaid
(pay-on-delivery).

record_payment sets the amount recorded for the order outright;
record_instalment adds to whatever is already recorded.
"""
from datetime import datetime

from src.mo_common.datetime_utils import utc_now
from src.mo_common.enums import PaymentMethod, PaymentStatus
from src.mo_common.errors import (
    OverPaymentError,
    PaymentAlreadyCompletedError,
    ValidationFailedError,
)
from src.mo_order.domain.models import Order, PaymentInfo


def payment_status_for(amount_paid: int, total_amount: int) -> PaymentStatus:
    if amount_paid == total_amount:
        return PaymentStatus.COMPLETED
    return PaymentStatus.PARTIAL


def _attach(
    order: Order,
    method: PaymentMethod,
    amount_paid: int,
    payer_id: str,
    transaction_id: str | None,
    at: datetime | None,
) -> PaymentInfo:
    order.payment = PaymentInfo(
        method=method,
        status=payment_status_for(amount_paid, order.total_amount),
        amount_paid=amount_paid,
        transaction_id=transaction_id,
        paid_by=payer_id,
        paid_at=at or utc_now(),
    )
    return order.payment


def record_payment(
    order: Order,
    method: PaymentMethod,
    amount_paid: int,
    payer_id: str,
    transaction_id: str | None = None,
    at: datetime | None = None,
) -> PaymentInfo:
    """Record amount_paid (paise) as the amount paid against the order.

    Replaces any earlier payment record. All checks run before anything is
    written, so a rejected payment leaves order.payment untouched.
    """
    if amount_paid < 0:
        raise ValidationFailedError(f"amount_paid must be >= 0, got {amount_paid}")
    if amount_paid > order.total_amount:
        raise OverPaymentError(amount_paid, order.total_amount)
    return _attach(order, method, amount_paid, payer_id, transaction_id, at)


def record_instalment(
    order: Order,
    method: PaymentMethod,
    amount: int,
    payer_id: str,
    transaction_id: str | None = None,
    at: datetime | None = None,
) -> PaymentInfo:
    """Add one instalment of amount (paise) to the running amount paid.

    Raises:
        ValidationFailedError: amount is not positive.
        PaymentAlreadyCompletedError: the order is already paid in full.
        OverPaymentError: the running total would exceed the order total.
    """
    if amount <= 0:
        raise ValidationFailedError(f"instalment must be > 0, got {amount}")
    if order.is_fully_paid:
        raise PaymentAlreadyCompletedError(order.id)

    cumulative = (order.payment.amount_paid if order.payment else 0) + amount
    if cumulative > order.total_amount:
        raise OverPaymentError(cumulative, order.total_amount)
    return _attach(order, method, cumulative, payer_id, transaction_id, at)
