"""Approval ledger — one decision per required approver.

Every listed approver is required (AND semantics to proceed) and a single
rejection stops the order (veto). There is no quorum setting and no path to
re-decide: an entry moves from pending to approved/rejected exactly once.
"""
from collections.abc import Iterable
from datetime import datetime

from src.mo_common.datetime_utils import utc_now
from src.mo_common.enums import ApprovalAction
from src.mo_common.errors import (
    AlreadyDecidedError,
    InvalidApproverError,
    ValidationFailedError,
)
from src.mo_order.domain.models import Order, OrderApproval


def build_approvals(approvers: Iterable[tuple[str, str]]) -> list[OrderApproval]:
    """Initial pending ledger from (user_id, user_name) pairs.

    Repeated identities collapse to their first entry so the one-entry-per-
    approver invariant holds whatever the membership source hands us.
    """
    seen: set[str] = set()
    approvals: list[OrderApproval] = []
    for user_id, user_name in approvers:
        if not user_id:
            raise ValidationFailedError("approver id must not be empty")
        if user_id in seen:
            continue
        seen.add(user_id)
        approvals.append(OrderApproval(user_id=user_id, user_name=user_name))
    return approvals


def record_approval(
    order: Order,
    approver_id: str,
    decision: ApprovalAction,
    comment: str | None = None,
    at: datetime | None = None,
) -> OrderApproval:
    """Record approver_id's decision on order. Caller re-derives status and persists.

    Raises:
        ValidationFailedError: decision is not approved/rejected.
        InvalidApproverError: approver_id has no entry in the ledger.
        AlreadyDecidedError: approver_id already decided.
    """
    if decision is ApprovalAction.PENDING:
        raise ValidationFailedError("decision must be approved or rejected")

    entry = order.find_approval(approver_id)
    if entry is None:
        raise InvalidApproverError(order.id, approver_id)
    if entry.is_decided:
        raise AlreadyDecidedError(order.id, approver_id, entry.action.value)

    entry.action = decision
    entry.timestamp = at or utc_now()
    entry.comment = comment
    return entry


def pending_approvers(order: Order) -> list[str]:
    return [a.user_id for a in order.approvals if a.action is ApprovalAction.PENDING]


def collapse_duplicate_approvals(approvals: list[OrderApproval]) -> list[OrderApproval]:
    """One entry per approver, in first-appearance order.

    Another writer can append a second entry for someone already listed. A
    decided entry wins over a pending one; between two decided entries the
    first stands.
    """
    kept: dict[str, OrderApproval] = {}
    for approval in approvals:
        current = kept.get(approval.user_id)
        if current is None or (approval.is_decided and not current.is_decided):
            kept[approval.user_id] = approval
    return list(kept.values())
