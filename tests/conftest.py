"""Shared test fixtures: in-memory record store, recording notifier, loaded store."""

import os

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")

import copy  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402

from src.mo_order.application.store import OrderStore  # noqa: E402
from src.mo_order.domain.models import Order  # noqa: E402


class InMemoryOrderRepository:
    """Record-store double: full-record replace, optional forced failures."""

    def __init__(self) -> None:
        self.rows: dict[str, Order] = {}
        self.attributions: list[tuple[str, str]] = []
        self.fail_writes = False
        self.fail_reads = False
        self.write_count = 0

    async def list_orders(self, project_id: str) -> list[Order]:
        if self.fail_reads:
            raise ConnectionError("record store unreachable")
        return [copy.deepcopy(o) for o in self.rows.values() if o.project_id == project_id]

    async def upsert_order(self, order: Order, attribution_name: str) -> None:
        self.write_count += 1
        if self.fail_writes:
            raise ConnectionError("record store unreachable")
        self.rows[order.id] = copy.deepcopy(order)
        self.attributions.append((order.id, attribution_name))


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[tuple[str, str, Any]] = []

    async def status_changed(self, order: Order, previous: Any, actor_id: str) -> None:
        self.events.append(("status_changed", order.id, order.status))

    async def payment_completed(self, order: Order, actor_id: str) -> None:
        self.events.append(("payment_completed", order.id, order.payment.status))


@pytest.fixture
def repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def store(repo: InMemoryOrderRepository, notifier: RecordingNotifier) -> OrderStore:
    s = OrderStore("project-1", repo, notifier, order_number_prefix="ATL")
    await s.load()
    return s
