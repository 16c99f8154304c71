"""Booking core: slot availability, the booking draft and store operations."""

from .availability import TIME_SLOTS, available_slots, is_date_bookable, upcoming_bookable_dates
from .draft import BookingDraft, BookingStep

__all__ = [
    "TIME_SLOTS",
    "BookingDraft",
    "BookingStep",
    "available_slots",
    "is_date_bookable",
    "upcoming_bookable_dates",
]
