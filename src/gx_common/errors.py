"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  4xxx: Order
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


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401)


class ForbiddenError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Forbidden", 403)


# --- 2xxx: Account ---

class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


# --- 4xxx: Order ---

class InvalidOrderError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(4001, f"Invalid order: {detail}", 422)


class OrderNotFoundError(AppError):
    def __init__(self, order_id: str) -> None:
        super().__init__(4004, f"Order not found: {order_id}", 404)


class DuplicateOrderError(AppError):
    def __init__(self, client_order_id: str) -> None:
        super().__init__(4005, f"Duplicate client_order_id: {client_order_id}", 409)


class OrderNotCancellableError(AppError):
    def __init__(self, order_id: str, status: str) -> None:
        super().__init__(4006, f"Order {order_id} in status {status} cannot be cancelled", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class UnknownJobError(AppError):
    def __init__(self, kind: str) -> None:
        super().__init__(9003, f"Unknown job kind: {kind}", 500)


class SettlementFailedError(AppError):
    """A settlement task used up all its retries; the rest of its chain is abandoned."""

    def __init__(
        self,
        new_order_id: str,
        matched_order_id: str,
        attempts: int,
        cause: BaseException,
    ) -> None:
        self.new_order_id = new_order_id
        self.matched_order_id = matched_order_id
        self.attempts = attempts
        self.cause = cause
        super().__init__(
            9004,
            f"Settlement of {new_order_id} against {matched_order_id} failed after "
            f"{attempts} attempts: {cause!r}",
            500,
        )
