"""Conversational order intake.

The drafting assistant hands over ``{"items": [{"name", "description"?,
"quantity", "unitPrice"}]}``. Nothing beyond the OrderItem rules is checked:
numbers are coerced, quantity must be positive, price non-negative.
"""
from typing import Any

from pydantic import ValidationError

from src.mo_common.errors import ValidationFailedError
from src.mo_common.id_generator import generate_id
from src.mo_common.money import paise_to_display, to_paise
from src.mo_order.application.schemas import OrderDraft
from src.mo_order.domain.models import Order, OrderItem


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)


def parse_draft(payload: dict[str, Any]) -> OrderDraft:
    """Validate a raw draft payload. Raises ValidationFailedError."""
    try:
        return OrderDraft.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError(_describe(exc)) from exc


def build_items(draft: OrderDraft) -> list[OrderItem]:
    """Priced OrderItems, in draft order, with fresh ids."""
    return [
        OrderItem(
            id=generate_id(),
            name=line.name,
            description=line.description,
            quantity=line.quantity,
            unit_price=to_paise(line.unit_price),
        )
        for line in draft.items
    ]


def confirmation_message(order: Order) -> str:
    count = len(order.items)
    noun = "item" if count == 1 else "items"
    return (
        f"Order #{order.order_number} created: {count} {noun}, "
        f"total {paise_to_display(order.total_amount)}"
    )
