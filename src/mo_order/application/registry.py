# src/mo_order/application/registry.py
"""One OrderStore per project, plus the periodic refresher that polls them.

The service reconciles by polling, not by push: every
ORDER_POLL_INTERVAL_SECONDS each registered store re-reads its project from
the record store. Callers must not assume they see another session's write
before the next poll.
"""
import asyncio
import logging
from collections.abc import Callable

from config.settings import settings
from src.mo_common.errors import InternalError
from src.mo_order.application.store import OrderNotifierProtocol, OrderStore
from src.mo_order.domain.repository import OrderRepositoryProtocol

logger = logging.getLogger(__name__)


class OrderStoreRegistry:
    def __init__(
        self,
        repo_factory: Callable[[], OrderRepositoryProtocol],
        notifier: OrderNotifierProtocol | None = None,
    ) -> None:
        self._repo_factory = repo_factory
        self._notifier = notifier
        self._stores: dict[str, OrderStore] = {}
        self._lock = asyncio.Lock()

    async def get(self, project_id: str) -> OrderStore:
        """Return the project's store, loading it on first use."""
        store = self._stores.get(project_id)
        if store is not None:
            return store
        async with self._lock:
            store = self._stores.get(project_id)
            if store is None:
                store = OrderStore(project_id, self._repo_factory(), self._notifier)
                try:
                    await store.load()
                except Exception as exc:
                    logger.error("Could not load orders for project %s", project_id, exc_info=True)
                    raise InternalError(f"Could not load orders for project {project_id}") from exc
                self._stores[project_id] = store
        return store

    def stores(self) -> list[OrderStore]:
        return list(self._stores.values())

    async def refresh_all(self) -> None:
        for store in self.stores():
            await store.refresh()


class OrderRefresher:
    """Background asyncio task calling registry.refresh_all() on a fixed interval."""

    def __init__(self, registry: OrderStoreRegistry, interval: float | None = None) -> None:
        self._registry = registry
        self._interval = interval if interval is not None else settings.ORDER_POLL_INTERVAL_SECONDS
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="order-refresher")
        logger.info("Order refresher started (every %.1fs)", self._interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Order refresher stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self._registry.refresh_all()


_registry: OrderStoreRegistry | None = None


def get_order_store_registry() -> OrderStoreRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        from src.mo_order.infrastructure.notifier import RedisOrderNotifier
        from src.mo_order.infrastructure.persistence import OrderRepository

        _registry = OrderStoreRegistry(OrderRepository, RedisOrderNotifier())
    return _registry
