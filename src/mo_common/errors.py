"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/Actor
  4xxx: Order (40xx lookup/validation, 41xx approvals, 42xx fulfilment, 43xx payment)
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/Actor ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class ForbiddenActionError(AppError):
    def __init__(self, action: str, required: str = "operator") -> None:
        super().__init__(
            1006, f"{required.capitalize()} role required for action: {action}", 403
        )


# --- 40xx: Order lookup / validation ---

class ValidationFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Validation failed: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class OrderNotCancellableError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled", 422)


# --- 41xx: Approvals ---

class InvalidApproverError(AppError):
    def __init__(self, order_id: str, approver_id: str) -> None:
        super().__init__(
            4101, f"User {approver_id} is not a required approver of order {order_id}", 403
        )


class AlreadyDecidedError(AppError):
    def __init__(self, order_id: str, approver_id: str, action: str) -> None:
        super().__init__(
            4102, f"User {approver_id} already {action} order {order_id}", 409
        )


# --- 42xx: Fulfilment ---

class OrderNotDeliverableError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(
            4201, f"Order {order_id} in status {status} is not delivered yet", 422
        )


class ItemNotFoundError(AppError):
    def __init__(self, order_id: str, item_id: str) -> None:
        super().__init__(4202, f"Item {item_id} not found in order {order_id}", 404)


class InvalidStageTransitionError(AppError):
    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            4203, f"Order {order_id} cannot move from {current} to {target}", 422
        )


# --- 43xx: Payment ---

class OverPaymentError(AppError):
    def __init__(self, amount_paid: int, total_amount: int) -> None:
        super().__init__(
            4301,
            f"Payment of {amount_paid} paise exceeds order total of {total_amount} paise",
            422,
        )


class PaymentAlreadyCompletedError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4302, f"Order {order_id} is already fully paid", 409)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class DurableWriteFailedError(AppError):
    def __init__(self, order_id: str, detail: str) -> None:
        super().__init__(9101, f"Could not save order {order_id}: {detail}", 503)
