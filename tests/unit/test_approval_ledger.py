"""Unit tests for the approval ledger (AND-to-proceed, single-veto-to-stop)."""
from datetime import UTC, datetime
from typing import Any

import pytest

from src.mo_common.enums import ApprovalAction, OrderStatus
from src.mo_common.errors import (
    AlreadyDecidedError,
    InvalidApproverError,
    ValidationFailedError,
)
from src.mo_order.domain.approval_ledger import (
    build_approvals,
    collapse_duplicate_approvals,
    pending_approvers,
    record_approval,
)
from src.mo_order.domain.models import Order, OrderApproval, OrderItem
from src.mo_order.domain.status import derive_status


def _make_order(**kwargs: Any) -> Order:
    defaults: dict[str, Any] = {
        "id": "order-1",
        "project_id": "project-1",
        "order_number": "ATL-2026-001",
        "created_by": "ateli-ops",
        "initiated_by": "alex",
        "items": [OrderItem(id="item-1", name="Plywood", quantity=2, unit_price=50_000)],
        "approvals": build_approvals([("alex", "Alex"), ("sarah", "Sarah"), ("marcus", "Marcus")]),
    }
    defaults.update(kwargs)
    order = Order(**defaults)
    order.status = derive_status(order)
    return order


class TestBuildApprovals:
    def test_all_pending(self) -> None:
        approvals = build_approvals([("a", "A"), ("b", "B")])
        assert [a.user_id for a in approvals] == ["a", "b"]
        assert all(a.action is ApprovalAction.PENDING for a in approvals)

    def test_duplicates_collapse_to_first(self) -> None:
        approvals = build_approvals([("a", "First"), ("b", "B"), ("a", "Second")])
        assert [a.user_id for a in approvals] == ["a", "b"]
        assert approvals[0].user_name == "First"

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(ValidationFailedError):
            build_approvals([("", "Nobody")])

    def test_empty_input(self) -> None:
        assert build_approvals([]) == []


class TestCollapseDuplicateApprovals:
    def test_decided_entry_beats_pending(self) -> None:
        approvals = [
            OrderApproval(user_id="alex", user_name="Alex"),
            OrderApproval(user_id="sam", user_name="Sam"),
            OrderApproval(user_id="alex", user_name="Alex", action=ApprovalAction.APPROVED),
        ]
        collapsed = collapse_duplicate_approvals(approvals)
        assert [(a.user_id, a.action) for a in collapsed] == [
            ("alex", ApprovalAction.APPROVED),
            ("sam", ApprovalAction.PENDING),
        ]

    def test_first_decision_stands(self) -> None:
        approvals = [
            OrderApproval(user_id="alex", user_name="Alex", action=ApprovalAction.APPROVED),
            OrderApproval(user_id="alex", user_name="Alex", action=ApprovalAction.REJECTED),
        ]
        assert collapse_duplicate_approvals(approvals) == [approvals[0]]

    def test_two_pending_keep_first(self) -> None:
        first = OrderApproval(user_id="alex", user_name="Alex")
        second = OrderApproval(user_id="alex", user_name="Alex B.")
        assert collapse_duplicate_approvals([first, second]) == [first]

    def test_distinct_entries_untouched(self) -> None:
        approvals = build_approvals([("alex", "Alex"), ("sarah", "Sarah")])
        assert collapse_duplicate_approvals(approvals) == approvals


class TestRecordApproval:
    def test_records_decision_and_timestamp(self) -> None:
        order = _make_order()
        at = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)
        entry = record_approval(order, "sarah", ApprovalAction.APPROVED, "looks good", at=at)
        assert entry.action is ApprovalAction.APPROVED
        assert entry.timestamp == at
        assert entry.comment == "looks good"

    def test_unknown_approver(self) -> None:
        order = _make_order()
        with pytest.raises(InvalidApproverError):
            record_approval(order, "mallory", ApprovalAction.APPROVED)

    def test_decision_is_final(self) -> None:
        order = _make_order()
        record_approval(order, "alex", ApprovalAction.APPROVED)
        with pytest.raises(AlreadyDecidedError):
            record_approval(order, "alex", ApprovalAction.REJECTED)

    def test_pending_is_not_a_decision(self) -> None:
        order = _make_order()
        with pytest.raises(ValidationFailedError):
            record_approval(order, "alex", ApprovalAction.PENDING)

    def test_rejected_entry_not_modified_on_retry(self) -> None:
        order = _make_order()
        record_approval(order, "alex", ApprovalAction.REJECTED, "too pricey")
        with pytest.raises(AlreadyDecidedError):
            record_approval(order, "alex", ApprovalAction.APPROVED)
        assert order.find_approval("alex").action is ApprovalAction.REJECTED
        assert order.find_approval("alex").comment == "too pricey"

    def test_pending_approvers(self) -> None:
        order = _make_order()
        record_approval(order, "sarah", ApprovalAction.APPROVED)
        assert pending_approvers(order) == ["alex", "marcus"]


class TestApprovalScenarios:
    def test_unanimous_approval_confirms(self) -> None:
        order = _make_order()
        assert order.status is OrderStatus.PENDING_CONFIRMATION

        for approver in ("alex", "sarah"):
            record_approval(order, approver, ApprovalAction.APPROVED)
            order.status = derive_status(order)
            assert order.status is OrderStatus.PENDING_CONFIRMATION

        record_approval(order, "marcus", ApprovalAction.APPROVED)
        order.status = derive_status(order)
        assert order.status is OrderStatus.CONFIRMED

    def test_single_rejection_cancels(self) -> None:
        order = _make_order()
        record_approval(order, "alex", ApprovalAction.APPROVED)
        record_approval(order, "sarah", ApprovalAction.REJECTED, "wrong supplier")
        order.status = derive_status(order)
        assert order.status is OrderStatus.CANCELLED

        # A later approval does not revive the order
        record_approval(order, "marcus", ApprovalAction.APPROVED)
        order.status = derive_status(order)
        assert order.status is OrderStatus.CANCELLED
