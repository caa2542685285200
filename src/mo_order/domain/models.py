"""Order domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass, field
from datetime import datetime

from src.mo_common.enums import (
    ActorRole,
    AdminState,
    ApprovalAction,
    DeliveryOutcome,
    FulfillmentStage,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.mo_common.money import line_total


@dataclass
class OrderItem:
    id: str
    name: str
    quantity: int  # > 0
    unit_price: int  # paise, >= 0
    description: str | None = None
    image_url: str | None = None
    total_price: int = field(init=False)
    is_confirmed: bool = False
    confirmed_by: str | None = None
    confirmed_at: datetime | None = None

    def __post_init__(self) -> None:
        self.total_price = line_total(self.quantity, self.unit_price)

    def recompute(self) -> None:
        self.total_price = line_total(self.quantity, self.unit_price)


@dataclass
class OrderApproval:
    user_id: str
    user_name: str
    action: ApprovalAction = ApprovalAction.PENDING
    timestamp: datetime | None = None
    comment: str | None = None

    @property
    def is_decided(self) -> bool:
        return self.action is not ApprovalAction.PENDING


@dataclass
class PaymentInfo:
    method: PaymentMethod
    status: PaymentStatus
    amount_paid: int  # paise, cumulative
    transaction_id: str | None = None
    paid_by: str | None = None
    paid_at: datetime | None = None


@dataclass
class DriverInfo:
    name: str
    phone: str
    vehicle_number: str | None = None


@dataclass
class Order:
    id: str
    project_id: str
    order_number: str
    created_by: str
    initiated_by: str
    items: list[OrderItem] = field(default_factory=list)
    approvals: list[OrderApproval] = field(default_factory=list)
    created_by_name: str | None = None
    # Derived; only status.derive_status writes it
    status: OrderStatus = OrderStatus.ORDER_RECEIVED
    total_amount: int = 0  # paise, == sum(item.total_price)
    payment: PaymentInfo | None = None
    driver_info: DriverInfo | None = None
    # Facts recorded by the operator; inputs to derivation
    fulfillment_stage: FulfillmentStage | None = None
    delivery_outcome: DeliveryOutcome | None = None
    pending_items: list[str] = field(default_factory=list)
    admin_state: AdminState | None = None
    clarification_note: str | None = None
    cancel_reason: str | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    confirmed_at: datetime | None = None
    delivery_date: datetime | None = None
    estimated_delivery: datetime | None = None

    def recompute_totals(self) -> None:
        for item in self.items:
            item.recompute()
        self.total_amount = sum(item.total_price for item in self.items)

    def find_item(self, item_id: str) -> OrderItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def find_approval(self, user_id: str) -> OrderApproval | None:
        for approval in self.approvals:
            if approval.user_id == user_id:
                return approval
        return None

    @property
    def is_fully_paid(self) -> bool:
        return self.payment is not None and self.payment.status is PaymentStatus.COMPLETED


@dataclass(frozen=True)
class Actor:
    """Who is acting: a team member, or the operator (supplier) side."""

    id: str
    name: str
    role: ActorRole = ActorRole.MEMBER

    @property
    def is_operator(self) -> bool:
        return self.role is ActorRole.OPERATOR
