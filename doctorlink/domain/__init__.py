"""
Domain layer - Pure business logic without external dependencies.
"""

from .models import BookedInterval, CandidateSlot, DaySchedule, TimeOfDay, TimeRange, WorkingHours
from .slot_generator import SlotGenerator, generate_slots

__all__ = [
    "BookedInterval",
    "CandidateSlot",
    "DaySchedule",
    "TimeOfDay",
    "TimeRange",
    "WorkingHours",
    "SlotGenerator",
    "generate_slots",
]
