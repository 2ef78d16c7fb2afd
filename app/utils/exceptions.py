from fastapi import HTTPException, status


# ═══════════════════════════════════════════════════════════════════════════════
# ERROR CODES — Machine-readable constants for frontend switch/case
# ═══════════════════════════════════════════════════════════════════════════════
class ErrorCode:
    VALIDATION_ERROR          = "VALIDATION_ERROR"
    UNAUTHORIZED              = "UNAUTHORIZED"
    TOKEN_EXPIRED             = "TOKEN_EXPIRED"
    FORBIDDEN                 = "FORBIDDEN"
    ACCOUNT_INACTIVE          = "ACCOUNT_INACTIVE"
    NOT_FOUND                 = "NOT_FOUND"
    DUPLICATE_ENTRY           = "DUPLICATE_ENTRY"
    BOOKING_CONFLICT          = "BOOKING_CONFLICT"
    INVALID_DATE_RANGE        = "INVALID_DATE_RANGE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    INVALID_COUPON            = "INVALID_COUPON"
    CUSTOMER_BLACKLISTED      = "CUSTOMER_BLACKLISTED"
    INTERNAL_SERVER_ERROR     = "INTERNAL_SERVER_ERROR"


# ═══════════════════════════════════════════════════════════════════════════════
# BASE EXCEPTION
# ═══════════════════════════════════════════════════════════════════════════════
class AppException(HTTPException):
    """
    Base exception for all application-level errors.
    Carries a machine-readable error_code for frontend handling.
    """
    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str,
        details: list | None = None,
        field: str | None = None,
    ):
        super().__init__(status_code=status_code, detail={
            "message": message,
            "error": {
                "code": error_code,
                "details": details,
                "field": field,
            }
        })

    @property
    def error_code(self) -> str:
        return self.detail["error"]["code"]


# ═══════════════════════════════════════════════════════════════════════════════
# CONCRETE EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════════════════

class ValidationException(AppException):
    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, message, ErrorCode.VALIDATION_ERROR,
            details=[{"field": field or "unknown", "message": message}],
            field=field,
        )


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Authentication required"):
        super().__init__(status.HTTP_401_UNAUTHORIZED, message, ErrorCode.UNAUTHORIZED)


class TokenExpiredException(AppException):
    def __init__(self):
        super().__init__(status.HTTP_401_UNAUTHORIZED, "Access token has expired", ErrorCode.TOKEN_EXPIRED)


class ForbiddenException(AppException):
    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(status.HTTP_403_FORBIDDEN, message, ErrorCode.FORBIDDEN)


class AccountInactiveException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_403_FORBIDDEN,
            "Your account has been deactivated. Contact an administrator.",
            ErrorCode.ACCOUNT_INACTIVE,
        )


class NotFoundException(AppException):
    def __init__(self, resource: str = "Resource"):
        super().__init__(status.HTTP_404_NOT_FOUND, f"{resource} not found", ErrorCode.NOT_FOUND)


class DuplicateEntryException(AppException):
    def __init__(self, message: str = "Record already exists", field: str | None = None):
        super().__init__(status.HTTP_409_CONFLICT, message, ErrorCode.DUPLICATE_ENTRY, field=field)


class BookingConflictException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_409_CONFLICT,
            "This vehicle was just booked for the selected dates. Please choose other dates or another vehicle.",
            ErrorCode.BOOKING_CONFLICT,
        )


class InvalidDateRangeException(AppException):
    def __init__(self, message: str = "Dropoff date must be after pickup date"):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_DATE_RANGE,
            details=[{"field": "dates", "message": message}],
        )


class InvalidStatusTransitionException(AppException):
    def __init__(self, current: str, requested: str):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            f"Cannot change booking status from '{current}' to '{requested}'",
            ErrorCode.INVALID_STATUS_TRANSITION,
            field="status",
        )


class InvalidCouponException(AppException):
    def __init__(self, message: str = "Coupon code is invalid or expired"):
        super().__init__(
            status.HTTP_400_BAD_REQUEST, message, ErrorCode.INVALID_COUPON,
            details=[{"field": "coupon_code", "message": message}],
            field="coupon_code",
        )


class CustomerBlacklistedException(AppException):
    def __init__(self):
        super().__init__(
            status.HTTP_403_FORBIDDEN,
            "We are unable to accept bookings for this customer. Please contact us.",
            ErrorCode.CUSTOMER_BLACKLISTED,
        )
