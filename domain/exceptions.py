"""Domain Exceptions"""
from typing import Optional


class HotelCoreError(Exception):
    """Base class for front-office errors"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReservationValidationError(HotelCoreError, ValueError):
    """Rejected locally, before any backend call"""


class CapacityError(ReservationValidationError):
    """No inventory for the requested stay"""


class InvalidTransitionError(ReservationValidationError):
    """Status change not allowed by the reservation lifecycle"""


class InsufficientPaymentError(ReservationValidationError):
    """Checkout payments do not cover the bill"""

    def __init__(self, message: str, shortfall):
        super().__init__(message)
        self.shortfall = shortfall


class ReservationNotFoundError(HotelCoreError, LookupError):
    """Reservation is not present in the local collection"""


class BackendError(HotelCoreError):
    """Backend of record failed or rejected the request"""

    def __init__(self, message: str, status_code: Optional[int] = None, server_message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message

    def with_fallback(self, fallback: str) -> "BackendError":
        """Same failure, worded for the operation that triggered it"""
        return BackendError(
            self.server_message or fallback,
            status_code=self.status_code,
            server_message=self.server_message,
        )
