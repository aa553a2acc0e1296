"""
Domain-specific exception hierarchy for DoctorLink.
"""


class DoctorLinkError(Exception):
    """Base class for all application-level errors."""


class InvalidArgumentError(DoctorLinkError, ValueError):
    """Raised when an input value is malformed or inconsistent."""


class NotFoundError(DoctorLinkError):
    """Raised when a requested record does not exist."""


class DataAccessError(DoctorLinkError):
    """Raised when the database cannot be reached or a query fails."""


class BookingError(DoctorLinkError):
    """Base exception for booking failures."""

    def __init__(self, message: str, code: str = "booking_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class PastDateError(BookingError):
    """Raised when trying to book a date or time in the past."""

    def __init__(self, message: str = "Cannot book appointments in the past."):
        super().__init__(message, code="past_date")


class InvalidSlotError(BookingError):
    """Raised when the requested time does not match any slot of the schedule."""

    def __init__(self, message: str = "The selected time is not a valid slot for this doctor."):
        super().__init__(message, code="invalid_slot")


class SlotUnavailableError(BookingError):
    """Raised when the requested slot is already taken."""

    def __init__(self, message: str = "This time slot is no longer available."):
        super().__init__(message, code="slot_unavailable")
