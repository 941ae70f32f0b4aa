from __future__ import annotations

from enum import Enum


class CouponRejection(str, Enum):
    NOT_FOUND = "CouponNotFound"
    INACTIVE = "CouponInactive"
    EXPIRED = "CouponExpired"
    NOT_YET_VALID = "CouponNotYetValid"
    BELOW_MINIMUM_ORDER = "BelowMinimumOrder"
    USAGE_LIMIT_REACHED = "UsageLimitReached"


COUPON_REJECTION_MESSAGES: dict[CouponRejection, str] = {
    CouponRejection.NOT_FOUND: "We couldn't find that coupon code. Please check it and try again.",
    CouponRejection.INACTIVE: "This coupon is no longer active.",
    CouponRejection.EXPIRED: "This coupon has expired.",
    CouponRejection.NOT_YET_VALID: "This coupon is not valid yet.",
    CouponRejection.BELOW_MINIMUM_ORDER: "Your booking does not meet the minimum amount for this coupon.",
    CouponRejection.USAGE_LIMIT_REACHED: "This coupon has reached its usage limit.",
}


class PricingError(Exception):
    """Base class for errors that stop a pricing attempt.

    ``code`` is stable and meant for clients; ``message`` is shown to guests.
    """

    code = "PricingError"
    status_code = 400
    default_message = "Unable to price this stay."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def as_detail(self) -> dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidDateRange(PricingError):
    code = "InvalidDateRange"
    default_message = "Check-out must be after check-in."


class InvalidGuestCount(PricingError):
    code = "InvalidGuestCount"
    default_message = "Guest count must be at least 1."


class PropertyNotFound(PricingError):
    code = "PropertyNotFound"
    status_code = 404
    default_message = "Property not found."


class CouponRejected(PricingError):
    def __init__(self, reason: CouponRejection, message: str | None = None) -> None:
        self.reason = reason
        self.code = reason.value
        super().__init__(message or COUPON_REJECTION_MESSAGES[reason])


class InvalidCouponTransition(Exception):
    pass


class DuplicateBooking(PricingError):
    code = "DuplicateBooking"
    status_code = 409
    default_message = "A booking already exists for this payment."
