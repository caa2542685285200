"""Item confirmation — per-line acknowledgment once the order has been delivered."""
from datetime import datetime

from src.mo_common.datetime_utils import utc_now
from src.mo_common.errors import ItemNotFoundError, OrderNotDeliverableError
from src.mo_order.domain.models import Order
from src.mo_order.domain.status import DELIVERABLE_STATUSES


def confirm_item(
    order: Order, item_id: str, confirmer_id: str, at: datetime | None = None
) -> bool:
    """Mark item_id confirmed by confirmer_id.

    Returns False when the item was already confirmed (no-op, so a retry after
    a failed save is harmless), True when the item changed.
    """
    if order.status not in DELIVERABLE_STATUSES:
        raise OrderNotDeliverableError(order.id, order.status.value)
    item = order.find_item(item_id)
    if item is None:
        raise ItemNotFoundError(order.id, item_id)
    if item.is_confirmed:
        return False

    item.is_confirmed = True
    item.confirmed_by = confirmer_id
    item.confirmed_at = at or utc_now()
    if item_id in order.pending_items:
        order.pending_items.remove(item_id)
    return True
