"""
Custom Exception Hierarchy

Every failure a settlement can hit is a typed AppException, rendered by the API
as {"error": {"code", "message", "details"}}.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any
from enum import Enum


class ErrorCode(str, Enum):
    """Standard error codes for API responses"""

    # General errors (1xxx)
    INTERNAL_ERROR = "ERR_1000"
    VALIDATION_ERROR = "ERR_1001"
    NOT_FOUND = "ERR_1002"
    SHAPE_MISMATCH = "ERR_1003"

    # Account errors (3xxx)
    PROFILE_NOT_FOUND = "ERR_3001"
    DRIVER_DETAILS_NOT_FOUND = "ERR_3002"
    RIDE_NOT_FOUND = "ERR_3003"

    # Wallet errors (4xxx)
    INSUFFICIENT_BALANCE = "ERR_4002"
    INVALID_AMOUNT = "ERR_4003"

    # QR payment errors (5xxx)
    QR_CODE_NOT_FOUND = "ERR_5001"
    QR_CODE_EXPIRED = "ERR_5002"
    QR_CODE_ALREADY_USED = "ERR_5003"

    # Settlement / external errors (6xxx)
    SETTLEMENT_FAILED = "ERR_6001"
    PAYMENT_GATEWAY_ERROR = "ERR_6002"


def _money(value: Any) -> str:
    return str(value) if isinstance(value, Decimal) else str(Decimal(str(value)))


class AppException(Exception):
    """Base exception for all application errors"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API response"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details
            }
        }


class ValidationException(AppException):
    """Raised when input validation fails"""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=400,
            details=details
        )
        if field:
            self.details["field"] = field


class InvalidAmountError(ValidationException):
    """Raised when a money amount is negative, zero or below a configured minimum"""

    def __init__(self, amount: Any, reason: str, field: str = "amount"):
        super().__init__(
            message=f"Invalid amount {amount}: {reason}",
            field=field,
            details={"amount": str(amount)},
            error_code=ErrorCode.INVALID_AMOUNT,
        )


class ShapeMismatchError(AppException):
    """Raised when a stored row is missing a field a settlement needs"""

    def __init__(self, resource: str, field: str, identifier: Any):
        super().__init__(
            message=f"{resource} {identifier} has no usable '{field}'",
            error_code=ErrorCode.SHAPE_MISMATCH,
            status_code=500,
            details={"resource": resource, "field": field, "identifier": str(identifier)}
        )


class NotFoundException(AppException):
    """Raised when a requested resource is not found"""

    def __init__(
        self,
        resource: str,
        identifier: Any,
        error_code: ErrorCode = ErrorCode.NOT_FOUND
    ):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            error_code=error_code,
            status_code=404,
            details={"resource": resource, "identifier": str(identifier)}
        )


class ProfileNotFoundError(NotFoundException):
    def __init__(self, user_id: Any):
        super().__init__("Profile", user_id, ErrorCode.PROFILE_NOT_FOUND)


class DriverDetailsNotFoundError(NotFoundException):
    def __init__(self, driver_id: Any):
        super().__init__("Driver details", driver_id, ErrorCode.DRIVER_DETAILS_NOT_FOUND)


class RideNotFoundError(NotFoundException):
    def __init__(self, ride_id: Any):
        super().__init__("Ride", ride_id, ErrorCode.RIDE_NOT_FOUND)


class QRCodeNotFoundError(NotFoundException):
    """Raised when no QR payment code matches the scanned value"""

    def __init__(self, code: str):
        super().__init__("QR code", code, ErrorCode.QR_CODE_NOT_FOUND)
        self.message = "Invalid or expired QR code"


class QRCodeExpiredError(AppException):
    """Raised when a QR payment code is past its expiry, used or not"""

    def __init__(self, code: str, expired_at: datetime):
        super().__init__(
            message="Invalid or expired QR code",
            error_code=ErrorCode.QR_CODE_EXPIRED,
            status_code=410,
            details={"code": code, "expired_at": expired_at.isoformat()}
        )


class QRCodeAlreadyUsedError(AppException):
    """Raised when a QR payment code has already been consumed"""

    def __init__(self, code: str, scanned_by: Any = None):
        super().__init__(
            message="QR code has already been used",
            error_code=ErrorCode.QR_CODE_ALREADY_USED,
            status_code=409,
            details={"code": code, "scanned_by": str(scanned_by) if scanned_by else None}
        )


class InsufficientBalanceError(AppException):
    """Raised when a wallet or earnings balance cannot cover a debit"""

    def __init__(
        self,
        user_id: Any,
        current_balance: Any,
        required_amount: Any,
        balance_name: str = "wallet_balance"
    ):
        super().__init__(
            message=f"Insufficient {balance_name} for user {user_id}",
            error_code=ErrorCode.INSUFFICIENT_BALANCE,
            status_code=400,
            details={
                "user_id": str(user_id),
                "balance": balance_name,
                "current_balance": _money(current_balance),
                "required_amount": _money(required_amount),
            }
        )


class SettlementError(AppException):
    """Raised when a settlement fails unexpectedly and has been rolled back"""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(
            message=f"{operation} failed and was rolled back",
            error_code=ErrorCode.SETTLEMENT_FAILED,
            status_code=500,
            details={"operation": operation, "cause": type(cause).__name__}
        )


class PaymentGatewayError(AppException):
    """Raised when the payment gateway refuses or fails to capture a payment"""

    def __init__(self, gateway: str, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=f"Payment gateway error: {message}",
            error_code=ErrorCode.PAYMENT_GATEWAY_ERROR,
            status_code=502,
            details=details
        )
        self.details["gateway"] = gateway
