# src/mo_order/application/store.py
"""OrderStore — the single write path for a project's orders.

Every mutation follows the same discipline:

    snapshot -> apply on a working copy -> recompute totals + derive status
    -> install working copy (optimistic) -> upsert to the record store
    -> keep on success / restore snapshot and raise DurableWriteFailedError

Domain errors are raised before anything is installed, so the cached view
never shows a half-applied change. There is no retry: the caller decides
whether to act again.

Across sessions the record store is last-write-wins. A session that writes a
stale approval list can overwrite another session's decision until the next
refresh; status itself self-heals because it is re-derived from the facts on
every mutation and every refresh.
"""
import asyncio
import copy
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, Protocol, TypeVar

from config.settings import settings
from src.mo_common.datetime_utils import ensure_utc, utc_now
from src.mo_common.enums import (
    ActorRole,
    ApprovalAction,
    FulfillmentStage,
    OrderStatus,
    PaymentMethod,
)
from src.mo_common.errors import (
    DurableWriteFailedError,
    ForbiddenActionError,
    OrderNotFoundError,
)
from src.mo_common.id_generator import format_order_number, generate_id
from src.mo_order.application.drafts import build_items, confirmation_message, parse_draft
from src.mo_order.application.schemas import OrderDraft
from src.mo_order.domain import approval_ledger, item_tracker, payment, transitions
from src.mo_order.domain.invariants import verify_order_invariants
from src.mo_order.domain.models import Actor, DriverInfo, Order
from src.mo_order.domain.repository import OrderRepositoryProtocol
from src.mo_order.domain.status import all_approved, derive_status

logger = logging.getLogger(__name__)

T = TypeVar("T")

_ADMIN_ROLES = frozenset({ActorRole.OPERATOR, ActorRole.OWNER, ActorRole.ADMIN})
_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class OrderNotifierProtocol(Protocol):
    async def status_changed(
        self, order: Order, previous: OrderStatus, actor_id: str
    ) -> None: ...

    async def payment_completed(self, order: Order, actor_id: str) -> None: ...


def _require_operator(actor: Actor, action: str) -> None:
    if not actor.is_operator:
        raise ForbiddenActionError(action)


def _require_admin(actor: Actor, action: str) -> None:
    if actor.role not in _ADMIN_ROLES:
        raise ForbiddenActionError(action, "operator, owner or admin")


def normalize(order: Order) -> Order:
    """Recompute derived fields in place: line totals, order total, status."""
    order.recompute_totals()
    order.status = derive_status(order)
    return order


class OrderStore:
    """In-memory orders of one project plus the optimistic-write discipline."""

    def __init__(
        self,
        project_id: str,
        repo: OrderRepositoryProtocol,
        notifier: OrderNotifierProtocol | None = None,
        order_number_prefix: str | None = None,
    ) -> None:
        self._project_id = project_id
        self._repo = repo
        self._notifier = notifier
        self._prefix = order_number_prefix or settings.ORDER_NUMBER_PREFIX
        self._orders: list[Order] = []  # newest first
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._loaded = False

    @property
    def project_id(self) -> str:
        return self._project_id

    @property
    def loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load(self) -> None:
        """Initial fetch. Unlike refresh(), failures propagate."""
        fresh = await self._repo.list_orders(self._project_id)
        self._install(fresh)
        self._loaded = True
        logger.info("Loaded %d orders for project %s", len(self._orders), self._project_id)

    async def refresh(self) -> bool:
        """Best-effort re-fetch; on failure the cached orders stay as they are."""
        try:
            fresh = await self._repo.list_orders(self._project_id)
        except Exception:
            logger.warning(
                "Refresh failed for project %s; keeping %d cached orders",
                self._project_id, len(self._orders), exc_info=True,
            )
            return False
        self._install(fresh)
        self._loaded = True
        return True

    def list_orders(self) -> list[Order]:
        return copy.deepcopy(self._orders)

    def get_order(self, order_id: str) -> Order:
        return copy.deepcopy(self._find(order_id))

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_order(
        self,
        draft: OrderDraft | dict[str, Any],
        actor: Actor,
        approvers: list[tuple[str, str]] | None = None,
        initiated_by: str | None = None,
        notes: str | None = None,
        estimated_delivery: datetime | None = None,
    ) -> tuple[Order, str]:
        """Create, persist and cache a new order.

        Returns the order and a confirmation line for the conversation surface.
        """
        if not isinstance(draft, OrderDraft):
            draft = parse_draft(draft)
        now = utc_now()
        order = Order(
            id=generate_id(),
            project_id=self._project_id,
            order_number=self._next_order_number(now.year),
            created_by=actor.id,
            created_by_name=actor.name,
            initiated_by=initiated_by or actor.id,
            items=build_items(draft),
            approvals=approval_ledger.build_approvals(approvers or []),
            notes=notes,
            estimated_delivery=ensure_utc(estimated_delivery),
            created_at=now,
            updated_at=now,
        )
        normalize(order)
        verify_order_invariants(order)

        async with self._locks[order.id]:
            self._orders.insert(0, order)
            try:
                await self._repo.upsert_order(order, actor.name)
            except Exception as exc:
                self._orders = [o for o in self._orders if o.id != order.id]
                logger.warning(
                    "Create rolled back: order=%s project=%s", order.id, self._project_id,
                    exc_info=True,
                )
                raise DurableWriteFailedError(order.id, str(exc) or type(exc).__name__) from exc

        logger.info(
            "Order created: id=%s number=%s items=%d total=%d by=%s",
            order.id, order.order_number, len(order.items), order.total_amount, actor.id,
        )
        return copy.deepcopy(order), confirmation_message(order)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def approve(self, order_id: str, actor: Actor, comment: str | None = None) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "approve",
            lambda o: approval_ledger.record_approval(
                o, actor.id, ApprovalAction.APPROVED, comment
            ),
        )
        return order

    async def reject(self, order_id: str, actor: Actor, comment: str | None = None) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "reject",
            lambda o: approval_ledger.record_approval(
                o, actor.id, ApprovalAction.REJECTED, comment
            ),
        )
        return order

    async def confirm_item(self, order_id: str, item_id: str, actor: Actor) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "confirm_item",
            lambda o: item_tracker.confirm_item(o, item_id, actor.id),
        )
        return order

    async def record_payment(
        self,
        order_id: str,
        method: PaymentMethod,
        amount_paid: int,
        actor: Actor,
        transaction_id: str | None = None,
    ) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "record_payment",
            lambda o: payment.record_payment(o, method, amount_paid, actor.id, transaction_id),
        )
        return order

    async def record_instalment(
        self,
        order_id: str,
        method: PaymentMethod,
        amount: int,
        actor: Actor,
        transaction_id: str | None = None,
    ) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "record_instalment",
            lambda o: payment.record_instalment(o, method, amount, actor.id, transaction_id),
        )
        return order

    async def advance_fulfillment(
        self,
        order_id: str,
        stage: FulfillmentStage,
        actor: Actor,
        driver_info: DriverInfo | None = None,
    ) -> Order:
        _require_operator(actor, "advance_fulfillment")
        order, _ = await self._mutate(
            order_id, actor, "advance_fulfillment",
            lambda o: transitions.advance_fulfillment(o, stage, driver_info),
        )
        return order

    async def mark_delivery_outcome(
        self, order_id: str, pending_item_ids: list[str], actor: Actor
    ) -> Order:
        _require_operator(actor, "mark_delivery_outcome")
        order, _ = await self._mutate(
            order_id, actor, "mark_delivery_outcome",
            lambda o: transitions.mark_delivery_outcome(o, pending_item_ids),
        )
        return order

    async def cancel(self, order_id: str, actor: Actor, reason: str | None = None) -> Order:
        _require_admin(actor, "cancel")
        order, _ = await self._mutate(
            order_id, actor, "cancel", lambda o: transitions.cancel(o, reason)
        )
        return order

    async def hold(self, order_id: str, actor: Actor) -> Order:
        _require_admin(actor, "hold")
        order, _ = await self._mutate(order_id, actor, "hold", transitions.hold)
        return order

    async def resume(self, order_id: str, actor: Actor) -> Order:
        _require_admin(actor, "resume")
        order, _ = await self._mutate(order_id, actor, "resume", transitions.resume)
        return order

    async def request_clarification(self, order_id: str, note: str, actor: Actor) -> Order:
        _require_operator(actor, "request_clarification")
        order, _ = await self._mutate(
            order_id, actor, "request_clarification",
            lambda o: transitions.request_clarification(o, note),
        )
        return order

    async def resolve_clarification(self, order_id: str, actor: Actor) -> Order:
        order, _ = await self._mutate(
            order_id, actor, "resolve_clarification", transitions.resolve_clarification
        )
        return order

    async def remove_order(self, order_id: str, actor: Actor) -> None:
        """Drop an order from this store's cached collection.

        The record store is not touched, so the next refresh brings the order
        back while it still exists there.
        """
        _require_admin(actor, "remove_order")
        async with self._locks[order_id]:
            self._find(order_id)
            self._orders = [o for o in self._orders if o.id != order_id]
        logger.info("Order %s removed from cache by %s", order_id, actor.id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _mutate(
        self,
        order_id: str,
        actor: Actor,
        action: str,
        apply: Callable[[Order], T],
    ) -> tuple[Order, T]:
        async with self._locks[order_id]:
            snapshot = self._find(order_id)
            working = copy.deepcopy(snapshot)

            result = apply(working)
            normalize(working)
            if working == snapshot:
                # Nothing changed (e.g. re-confirming an item): no write, no event
                return copy.deepcopy(working), result

            now = utc_now()
            if working.confirmed_at is None and all_approved(working):
                working.confirmed_at = now
            working.updated_at = now
            verify_order_invariants(working)

            self._replace(working)
            try:
                await self._repo.upsert_order(working, actor.name)
            except Exception as exc:
                self._replace(snapshot)
                logger.warning(
                    "Write failed, rolled back: action=%s order=%s actor=%s",
                    action, order_id, actor.id, exc_info=True,
                )
                raise DurableWriteFailedError(order_id, str(exc) or type(exc).__name__) from exc

        logger.info(
            "Order %s: %s by %s, status %s -> %s",
            order_id, action, actor.id, snapshot.status.value, working.status.value,
        )
        await self._notify(snapshot, working, actor)
        return copy.deepcopy(working), result

    async def _notify(self, before: Order, after: Order, actor: Actor) -> None:
        if self._notifier is None:
            return
        try:
            if before.status is not after.status:
                await self._notifier.status_changed(after, before.status, actor.id)
            if after.is_fully_paid and not before.is_fully_paid:
                await self._notifier.payment_completed(after, actor.id)
        except Exception:
            logger.warning("Notification dropped for order %s", after.id, exc_info=True)

    def _find(self, order_id: str) -> Order:
        for order in self._orders:
            if order.id == order_id:
                return order
        raise OrderNotFoundError(order_id)

    def _replace(self, order: Order) -> None:
        for idx, existing in enumerate(self._orders):
            if existing.id == order.id:
                self._orders[idx] = order
                return
        # Dropped by a refresh while the write was in flight
        self._orders.insert(0, order)
        self._sort()

    def _install(self, fresh: list[Order]) -> None:
        """Swap in fetched orders, keeping local copies of orders mid-mutation."""
        by_id: dict[str, Order] = {}
        for order in fresh:
            approvals = approval_ledger.collapse_duplicate_approvals(order.approvals)
            if len(approvals) != len(order.approvals):
                logger.warning(
                    "Collapsed %d duplicate approval entries on order %s",
                    len(order.approvals) - len(approvals), order.id,
                )
                order.approvals = approvals
            stored_status = order.status
            normalize(order)
            if order.status is not stored_status:
                logger.debug(
                    "Re-derived status for order %s: stored %s, derived %s",
                    order.id, stored_status.value, order.status.value,
                )
            by_id[order.id] = order
        for local in self._orders:
            lock = self._locks.get(local.id)
            if lock is not None and lock.locked():
                by_id[local.id] = local
        self._orders = list(by_id.values())
        self._sort()

    def _sort(self) -> None:
        self._orders.sort(key=lambda o: (o.created_at or _EPOCH, o.id), reverse=True)

    def _next_order_number(self, year: int) -> str:
        marker = f"{self._prefix}-{year}-"
        highest = 0
        for order in self._orders:
            if order.order_number.startswith(marker):
                tail = order.order_number[len(marker):]
                if tail.isdigit():
                    highest = max(highest, int(tail))
        return format_order_number(self._prefix, year, highest + 1)
