# src/mo_order/domain/repository.py
"""OrderRepository Protocol — the engine's whole contract with the record store.

Full-record replace only: there is no partial-field update, so every mutation
round-trips the entire order.
"""
from typing import Protocol

from src.mo_order.domain.models import Order


class OrderRepositoryProtocol(Protocol):
    async def list_orders(self, project_id: str) -> list[Order]: ...

    async def upsert_order(self, order: Order, attribution_name: str) -> None: ...
