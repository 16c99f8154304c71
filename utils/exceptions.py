"""
Custom exception classes for the booking flow.
Validation, conflict and transient store failures are kept apart so
callers can answer each one differently.
"""


class ValidationError(Exception):
    """Raised when user input is rejected before any store call.

    The message is a human-readable reason meant to be shown to the user.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTransitionError(Exception):
    """Raised when a booking draft operation is not allowed in its current step."""

    pass


class DatabaseError(Exception):
    """Base exception for store operations (generic "try again" condition)."""

    pass


class SlotConflictError(DatabaseError):
    """Raised when the store rejects an appointment because the slot is taken."""

    pass


class AppointmentNotFoundError(DatabaseError):
    """Raised when an appointment is missing or not in a changeable state."""

    pass


class BookingCreationError(DatabaseError):
    """Raised when the appointment insert returns no row."""

    pass


class AuthenticationError(Exception):
    """Raised when admin sign-in fails or no valid session exists."""

    pass
