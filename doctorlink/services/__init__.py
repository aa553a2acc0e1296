"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability import AvailabilityService, ScheduleRepositoryProtocol
from .booking import BookingService

__all__ = ["AvailabilityService", "BookingService", "ScheduleRepositoryProtocol"]
