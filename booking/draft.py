"""
Booking draft and the booking flow state machine.

A BookingDraft carries everything picked so far in one booking: the service,
the date and time, and the client identity. It is an immutable value; every
operation returns a new draft, so the bot can keep it in FSM storage as a
plain dict (to_state/from_state) between messages.

Steps:
    choosing_service -> choosing_slot -> entering_identity -> reviewing -> confirmed

advance() moves forward only when the current step is complete and raises
ValidationError with the reason shown to the user otherwise. Operations
that make no sense in the current step raise InvalidTransitionError.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from models.service import Service
from utils.constants import MAX_NAME_LENGTH
from utils.datetime_utils import normalize_time
from utils.exceptions import InvalidTransitionError, ValidationError
from utils.validation import is_valid_phone, sanitize_text, strip_digits, validate_cpf


class BookingStep(str, Enum):
    """Steps of the booking flow."""

    CHOOSING_SERVICE = "choosing_service"
    CHOOSING_SLOT = "choosing_slot"
    ENTERING_IDENTITY = "entering_identity"
    REVIEWING = "reviewing"
    CONFIRMED = "confirmed"


_NEXT = {
    BookingStep.CHOOSING_SERVICE: BookingStep.CHOOSING_SLOT,
    BookingStep.CHOOSING_SLOT: BookingStep.ENTERING_IDENTITY,
    BookingStep.ENTERING_IDENTITY: BookingStep.REVIEWING,
}

_PREVIOUS = {
    BookingStep.CHOOSING_SLOT: BookingStep.CHOOSING_SERVICE,
    BookingStep.ENTERING_IDENTITY: BookingStep.CHOOSING_SLOT,
    BookingStep.REVIEWING: BookingStep.ENTERING_IDENTITY,
}


def identity_error(name: Optional[str], phone: Optional[str], cpf: Optional[str]) -> Optional[str]:
    """Return the first reason the identity is unusable, or None when it is fine."""
    if not sanitize_text(name):
        return "Informe seu nome."
    if not is_valid_phone(phone):
        return "Telefone inválido."
    if not validate_cpf(cpf):
        return "CPF inválido."
    return None


class BookingDraft(BaseModel):
    """Selections of one booking in progress."""

    model_config = ConfigDict(frozen=True)

    step: BookingStep = BookingStep.CHOOSING_SERVICE
    service: Optional[Service] = None
    booking_date: Optional[date] = None
    booking_time: Optional[str] = None  # HH:MM
    name: Optional[str] = None
    phone: Optional[str] = None  # digits only
    cpf: Optional[str] = None  # digits only
    appointment_id: Optional[str] = None

    # ========== Guards ==========

    def _require(self, *steps: BookingStep) -> None:
        if self.step not in steps:
            allowed = ", ".join(s.value for s in steps)
            raise InvalidTransitionError(
                f"Operation not allowed in step {self.step.value} (expected {allowed})"
            )

    def _completion_error(self) -> Optional[str]:
        if self.step == BookingStep.CHOOSING_SERVICE and self.service is None:
            return "Selecione um serviço."
        if self.step == BookingStep.CHOOSING_SLOT and (
            self.booking_date is None or self.booking_time is None
        ):
            return "Selecione data e horário."
        if self.step == BookingStep.ENTERING_IDENTITY:
            return identity_error(self.name, self.phone, self.cpf)
        return None

    # ========== Selections ==========

    def select_service(self, service: Service) -> BookingDraft:
        """Pick a service. Date and time are cleared."""
        self._require(BookingStep.CHOOSING_SERVICE)
        return self.model_copy(
            update={"service": service, "booking_date": None, "booking_time": None}
        )

    def choose_date(self, day: date) -> BookingDraft:
        """Pick a date. Any previously chosen time is cleared."""
        self._require(BookingStep.CHOOSING_SLOT)
        return self.model_copy(update={"booking_date": day, "booking_time": None})

    def choose_time(self, value: str) -> BookingDraft:
        """Pick a start time on the chosen date."""
        self._require(BookingStep.CHOOSING_SLOT)
        if self.booking_date is None:
            raise ValidationError("Selecione uma data primeiro.")
        try:
            normalized = normalize_time(value)
        except ValueError:
            raise ValidationError("Horário inválido.") from None
        return self.model_copy(update={"booking_time": normalized})

    def set_name(self, name: str) -> BookingDraft:
        self._require(BookingStep.ENTERING_IDENTITY)
        return self.model_copy(update={"name": sanitize_text(name, MAX_NAME_LENGTH)})

    def set_phone(self, phone: str) -> BookingDraft:
        self._require(BookingStep.ENTERING_IDENTITY)
        return self.model_copy(update={"phone": strip_digits(phone)})

    def set_cpf(self, cpf: str) -> BookingDraft:
        self._require(BookingStep.ENTERING_IDENTITY)
        return self.model_copy(update={"cpf": strip_digits(cpf)})

    # ========== Transitions ==========

    def advance(self) -> BookingDraft:
        """
        Move to the next step.

        Raises:
            InvalidTransitionError: From reviewing (use confirm) or confirmed
            ValidationError: If the current step is incomplete
        """
        if self.step not in _NEXT:
            raise InvalidTransitionError(f"Cannot advance from {self.step.value}")
        reason = self._completion_error()
        if reason:
            raise ValidationError(reason)
        return self.model_copy(update={"step": _NEXT[self.step]})

    def back(self) -> BookingDraft:
        """Return to the previous step, keeping what was picked."""
        if self.step not in _PREVIOUS:
            raise InvalidTransitionError(f"Cannot go back from {self.step.value}")
        return self.model_copy(update={"step": _PREVIOUS[self.step]})

    def back_to_slot(self) -> BookingDraft:
        """Return to slot choice with the time cleared (the slot was taken)."""
        self._require(BookingStep.REVIEWING)
        return self.model_copy(
            update={"step": BookingStep.CHOOSING_SLOT, "booking_time": None}
        )

    def confirm(self, appointment_id: str) -> BookingDraft:
        """Mark the draft as stored under `appointment_id`."""
        self._require(BookingStep.REVIEWING)
        return self.model_copy(
            update={"step": BookingStep.CONFIRMED, "appointment_id": appointment_id}
        )

    # ========== Serialization ==========

    def to_state(self) -> Dict[str, Any]:
        """JSON-compatible dict for FSM storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_state(cls, data: Optional[Dict[str, Any]]) -> BookingDraft:
        """Rebuild a draft from FSM storage; a fresh draft when nothing is stored."""
        if not data:
            return cls()
        return cls.model_validate(data)
