"""
Booking operations against the stores.

Called by the bot handlers; the handlers own the conversation, these
functions own the order of store calls and the error mapping:

- ValidationError: bad input, nothing was written
- SlotConflictError: someone confirmed the same date+time first
- DatabaseError: anything else, the user may simply try again
"""

import logging
from datetime import date
from typing import List

from booking.availability import available_slots
from booking.draft import BookingDraft, BookingStep, identity_error
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.client import ClientCreate
from utils.constants import CPF_LENGTH, TIME_SLOTS
from utils.exceptions import (
    AppointmentNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from utils.validation import is_valid_phone, strip_digits

logger = logging.getLogger(__name__)


async def load_slot_choices(db, day: date) -> List[str]:
    """Start times still free on `day`."""
    booked = await db.get_booked_times(day)
    blocked = await db.get_blocked_times(day)
    return available_slots(TIME_SLOTS, booked, blocked)


async def confirm_booking(db, draft: BookingDraft) -> BookingDraft:
    """
    Store a reviewed draft.

    The client is upserted by CPF (name and phone refreshed when the CPF is
    already known), then a confirmed appointment is inserted.

    Args:
        db: Store facade (SupabaseClient)
        draft: Draft in the reviewing step

    Returns:
        The confirmed draft carrying the appointment id

    Raises:
        InvalidTransitionError: Draft is not in the reviewing step
        ValidationError: Identity no longer valid
        SlotConflictError: The slot was taken meanwhile
        DatabaseError: Store failure
    """
    if draft.step != BookingStep.REVIEWING:
        raise InvalidTransitionError(f"Cannot confirm a draft in step {draft.step.value}")

    reason = identity_error(draft.name, draft.phone, draft.cpf)
    if reason:
        raise ValidationError(reason)

    client = await db.upsert_client_by_cpf(
        ClientCreate(name=draft.name, phone=draft.phone, cpf=draft.cpf)
    )

    appointment = await db.create_appointment(
        AppointmentCreate(
            client_id=client.id,
            service_id=draft.service.id,
            appointment_date=draft.booking_date,
            appointment_time=draft.booking_time,
        )
    )

    logger.info(
        f"Appointment {appointment.id} confirmed for "
        f"{draft.booking_date.isoformat()} {draft.booking_time} ({draft.service.name})"
    )
    return draft.confirm(appointment.id)


async def lookup_appointments(db, cpf: str, phone: str) -> List[Appointment]:
    """
    Appointments of the client identified by CPF + phone, newest first.

    Returns an empty list when no client matches both values.

    Raises:
        ValidationError: CPF does not have 11 digits or phone is too short
    """
    clean_cpf = strip_digits(cpf)
    clean_phone = strip_digits(phone)
    if len(clean_cpf) != CPF_LENGTH:
        raise ValidationError("Informe um CPF válido.")
    if not is_valid_phone(clean_phone):
        raise ValidationError("Informe um telefone válido.")

    client = await db.find_client(clean_cpf, clean_phone)
    if not client:
        return []
    return await db.get_client_appointments(client.id)


async def cancel_client_appointment(db, appointment_id: str, client_id: str) -> Appointment:
    """
    Cancel a confirmed appointment owned by the client.

    Raises:
        AppointmentNotFoundError: Not found, not the client's, or not confirmed
    """
    appointment = await db.update_appointment_status(
        appointment_id, AppointmentStatus.CANCELLED, client_id=client_id
    )
    if not appointment:
        raise AppointmentNotFoundError(f"Appointment {appointment_id} cannot be cancelled")
    logger.info(f"Appointment {appointment_id} cancelled by client {client_id}")
    return appointment


async def set_appointment_status(db, appointment_id: str, status: AppointmentStatus) -> Appointment:
    """
    Admin action: complete or cancel a confirmed appointment.

    Raises:
        ValidationError: Target status is not completed or cancelled
        AppointmentNotFoundError: Appointment missing or no longer confirmed
    """
    if status not in (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED):
        raise ValidationError("Status inválido.")

    appointment = await db.update_appointment_status(appointment_id, status)
    if not appointment:
        raise AppointmentNotFoundError(f"Appointment {appointment_id} is not confirmed")
    logger.info(f"Appointment {appointment_id} marked {status.value}")
    return appointment
