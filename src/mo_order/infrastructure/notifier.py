"""Best-effort order notifications over Redis pub/sub.

Status transitions and payment completion are published to
``{NOTIFY_CHANNEL_PREFIX}:{project_id}``. Delivery is not guaranteed: the Order Store
logs and drops any publish failure instead of failing the mutation that
triggered it. Subscribers that miss an event see the correct status on their
next read, because status is always derived.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import redis.asyncio as aioredis

from config.settings import settings
from src.mo_common.datetime_utils import utc_now
from src.mo_common.enums import OrderStatus
from src.mo_common.redis_client import get_redis
from src.mo_order.domain.models import Order

logger = logging.getLogger(__name__)

STATUS_CHANGED = "order.status_changed"
PAYMENT_COMPLETED = "order.payment_completed"


class RedisOrderNotifier:
    def __init__(
        self,
        redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis,
        channel_prefix: str | None = None,
        enabled: bool | None = None,
    ) -> None:
        self._redis_factory = redis_factory
        self._channel_prefix = channel_prefix or settings.NOTIFY_CHANNEL_PREFIX
        self._enabled = settings.NOTIFICATIONS_ENABLED if enabled is None else enabled

    def channel_for(self, project_id: str) -> str:
        return f"{self._channel_prefix}:{project_id}"

    async def status_changed(
        self, order: Order, previous: OrderStatus, actor_id: str
    ) -> None:
        await self._publish(order.project_id, {
            "event": STATUS_CHANGED,
            "order_id": order.id,
            "order_number": order.order_number,
            "from_status": previous.value,
            "to_status": order.status.value,
            "actor_id": actor_id,
        })

    async def payment_completed(self, order: Order, actor_id: str) -> None:
        await self._publish(order.project_id, {
            "event": PAYMENT_COMPLETED,
            "order_id": order.id,
            "order_number": order.order_number,
            "amount_paid": order.payment.amount_paid if order.payment else 0,
            "actor_id": actor_id,
        })

    async def _publish(self, project_id: str, payload: dict[str, Any]) -> None:
        if not self._enabled:
            return
        payload["at"] = utc_now().isoformat()
        redis = await self._redis_factory()
        await redis.publish(self.channel_for(project_id), json.dumps(payload))
        logger.debug("Published %s for order %s", payload["event"], payload["order_id"])
