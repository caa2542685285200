# src/mo_order/application/schemas.py
"""Pydantic schemas for the order API and the conversational draft payload."""
from datetime import datetime
from decimal import Decimal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from src.mo_common.enums import (
    ApprovalAction,
    FulfillmentStage,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from src.mo_common.money import paise_to_display
from src.mo_order.domain.approval_ledger import pending_approvers
from src.mo_order.domain.models import Order, OrderApproval, OrderItem, PaymentInfo

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DraftItem(BaseModel):
    """One line as produced by the drafting assistant or the manual order form.

    unit_price is in rupees (major units); quantity and price are coerced from
    numeric strings.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    description: str | None = None
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(
        Decimal(0),
        ge=0,
        validation_alias=AliasChoices("unit_price", "unitPrice", "estimatedUnitPrice"),
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class OrderDraft(BaseModel):
    items: list[DraftItem] = Field(..., min_length=1)


class ApproverIn(BaseModel):
    user_id: str = Field(..., min_length=1)
    user_name: str = ""


class CreateOrderRequest(OrderDraft):
    approvers: list[ApproverIn] = Field(default_factory=list)
    initiated_by: str | None = None
    notes: str | None = None
    estimated_delivery: datetime | None = None


class DecisionRequest(BaseModel):
    comment: str | None = None


class PaymentRequest(BaseModel):
    method: PaymentMethod
    amount_paise: int = Field(..., ge=0)
    transaction_id: str | None = None


class InstalmentRequest(BaseModel):
    method: PaymentMethod
    amount_paise: int = Field(..., gt=0)
    transaction_id: str | None = None


class DriverIn(BaseModel):
    name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    vehicle_number: str | None = None


class FulfillmentRequest(BaseModel):
    stage: FulfillmentStage
    driver: DriverIn | None = None


class DeliveryOutcomeRequest(BaseModel):
    pending_item_ids: list[str] = Field(..., min_length=1)


class CancelRequest(BaseModel):
    reason: str | None = None


class ClarificationRequest(BaseModel):
    note: str = Field(..., min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class OrderItemResponse(BaseModel):
    id: str
    name: str
    description: str | None
    quantity: int
    unit_price_paise: int
    total_price_paise: int
    total_price_display: str
    is_confirmed: bool
    confirmed_by: str | None
    confirmed_at: datetime | None

    @classmethod
    def from_domain(cls, item: OrderItem) -> "OrderItemResponse":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            quantity=item.quantity,
            unit_price_paise=item.unit_price,
            total_price_paise=item.total_price,
            total_price_display=paise_to_display(item.total_price),
            is_confirmed=item.is_confirmed,
            confirmed_by=item.confirmed_by,
            confirmed_at=item.confirmed_at,
        )


class ApprovalResponse(BaseModel):
    user_id: str
    user_name: str
    action: ApprovalAction
    timestamp: datetime | None
    comment: str | None

    @classmethod
    def from_domain(cls, approval: OrderApproval) -> "ApprovalResponse":
        return cls(
            user_id=approval.user_id,
            user_name=approval.user_name,
            action=approval.action,
            timestamp=approval.timestamp,
            comment=approval.comment,
        )


class PaymentResponse(BaseModel):
    method: PaymentMethod
    status: PaymentStatus
    amount_paid_paise: int
    amount_paid_display: str
    transaction_id: str | None
    paid_by: str | None
    paid_at: datetime | None

    @classmethod
    def from_domain(cls, payment: PaymentInfo) -> "PaymentResponse":
        return cls(
            method=payment.method,
            status=payment.status,
            amount_paid_paise=payment.amount_paid,
            amount_paid_display=paise_to_display(payment.amount_paid),
            transaction_id=payment.transaction_id,
            paid_by=payment.paid_by,
            paid_at=payment.paid_at,
        )


class OrderResponse(BaseModel):
    id: str
    project_id: str
    order_number: str
    status: OrderStatus
    items: list[OrderItemResponse]
    total_amount_paise: int
    total_amount_display: str
    approvals: list[ApprovalResponse]
    pending_approvers: list[str]
    payment: PaymentResponse | None
    created_by: str
    created_by_name: str | None
    initiated_by: str
    driver_name: str | None = None
    driver_phone: str | None = None
    vehicle_number: str | None = None
    pending_items: list[str]
    clarification_note: str | None
    cancel_reason: str | None
    notes: str | None
    created_at: datetime | None
    updated_at: datetime | None
    confirmed_at: datetime | None
    delivery_date: datetime | None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        driver = order.driver_info
        return cls(
            id=order.id,
            project_id=order.project_id,
            order_number=order.order_number,
            status=order.status,
            items=[OrderItemResponse.from_domain(i) for i in order.items],
            total_amount_paise=order.total_amount,
            total_amount_display=paise_to_display(order.total_amount),
            approvals=[ApprovalResponse.from_domain(a) for a in order.approvals],
            pending_approvers=pending_approvers(order),
            payment=PaymentResponse.from_domain(order.payment) if order.payment else None,
            created_by=order.created_by,
            created_by_name=order.created_by_name,
            initiated_by=order.initiated_by,
            driver_name=driver.name if driver else None,
            driver_phone=driver.phone if driver else None,
            vehicle_number=driver.vehicle_number if driver else None,
            pending_items=list(order.pending_items),
            clarification_note=order.clarification_note,
            cancel_reason=order.cancel_reason,
            notes=order.notes,
            created_at=order.created_at,
            updated_at=order.updated_at,
            confirmed_at=order.confirmed_at,
            delivery_date=order.delivery_date,
        )


class CreateOrderResponse(BaseModel):
    order: OrderResponse
    confirmation_message: str


class OrderListResponse(BaseModel):
    items: list[OrderResponse]


class InvoiceLine(BaseModel):
    name: str
    quantity: int
    unit_price_paise: int
    total_price_paise: int


class InvoiceResponse(BaseModel):
    """Read-only view handed to the invoice renderer."""

    order_id: str
    order_number: str
    lines: list[InvoiceLine]
    total_amount_paise: int
    total_amount_display: str

    @classmethod
    def from_domain(cls, order: Order) -> "InvoiceResponse":
        return cls(
            order_id=order.id,
            order_number=order.order_number,
            lines=[
                InvoiceLine(
                    name=i.name,
                    quantity=i.quantity,
                    unit_price_paise=i.unit_price,
                    total_price_paise=i.total_price,
                )
                for i in order.items
            ],
            total_amount_paise=order.total_amount,
            total_amount_display=paise_to_display(order.total_amount),
        )
