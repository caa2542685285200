"""Global enums — values are persisted verbatim and must match DB CHECK constraints."""

from enum import Enum


class OrderStatus(str, Enum):
    CLARIFICATION_REQUESTED = "clarification_requested"
    ORDER_RECEIVED = "order_received"
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    MATERIAL_LOADING = "material_loading"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"
    PARTIALLY_COMPLETED = "partially_completed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class ApprovalAction(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class FulfillmentStage(str, Enum):
    """Operator-recorded physical progress after confirmation, in order."""
    MATERIAL_LOADING = "material_loading"
    DISPATCHED = "dispatched"
    DELIVERED = "delivered"


class DeliveryOutcome(str, Enum):
    PARTIALLY_COMPLETED = "partially_completed"


class AdminState(str, Enum):
    """Administrative overrides that take precedence over derivation until cleared."""
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class PaymentMethod(str, Enum):
    PAY_ON_DELIVERY = "pay_on_delivery"
    PAY_NOW = "pay_now"
    WALLET = "wallet"
    PAYMENT_LINK = "payment_link"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class ActorRole(str, Enum):
    OPERATOR = "operator"
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"
    PROJECT_MANAGER = "project_manager"
    SITE_SUPERVISOR = "site_supervisor"
    PURCHASE_MANAGER = "purchase_manager"
    ARCHITECT = "architect"
    VIEWER = "viewer"
