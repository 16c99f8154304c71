"""
Unit tests for booking operations over a mocked store.
"""

from datetime import date

import pytest

from booking.draft import BookingDraft, BookingStep
from booking.service import (
    cancel_client_appointment,
    confirm_booking,
    load_slot_choices,
    lookup_appointments,
    set_appointment_status,
)
from models.appointment import Appointment, AppointmentStatus
from models.client import Client
from utils.exceptions import (
    AppointmentNotFoundError,
    DatabaseError,
    InvalidTransitionError,
    SlotConflictError,
    ValidationError,
)

DAY = date(2026, 10, 20)


@pytest.fixture
def review_draft(manicure):
    return BookingDraft(
        step=BookingStep.REVIEWING,
        service=manicure,
        booking_date=DAY,
        booking_time="09:00",
        name="Maria da Silva",
        phone="11999998888",
        cpf="11144477735",
    )


@pytest.fixture
def stored_client():
    return Client(id="client-1", name="Maria da Silva", phone="11999998888", cpf="11144477735")


def _appointment(**overrides):
    data = {
        "id": "appt-1",
        "client_id": "client-1",
        "service_id": "svc-1",
        "appointment_date": DAY,
        "appointment_time": "09:00",
    }
    data.update(overrides)
    return Appointment(**data)


@pytest.mark.asyncio
async def test_load_slot_choices(mock_db):
    mock_db.get_booked_times.return_value = ["09:00"]
    mock_db.get_blocked_times.return_value = ["14:00"]

    result = await load_slot_choices(mock_db, DAY)

    assert result == ["08:00", "10:00", "11:00", "13:00", "15:00", "16:00", "17:00"]
    mock_db.get_booked_times.assert_awaited_once_with(DAY)


class TestConfirmBooking:
    @pytest.mark.asyncio
    async def test_success(self, mock_db, review_draft, stored_client):
        mock_db.upsert_client_by_cpf.return_value = stored_client
        mock_db.create_appointment.return_value = _appointment()

        confirmed = await confirm_booking(mock_db, review_draft)

        assert confirmed.step == BookingStep.CONFIRMED
        assert confirmed.appointment_id == "appt-1"

        client_data = mock_db.upsert_client_by_cpf.call_args[0][0]
        assert client_data.cpf == "11144477735"
        created = mock_db.create_appointment.call_args[0][0]
        assert created.client_id == "client-1"
        assert created.service_id == "svc-1"
        assert created.appointment_time == "09:00"
        assert created.status == AppointmentStatus.CONFIRMED

    @pytest.mark.asyncio
    async def test_conflict_propagates(self, mock_db, review_draft, stored_client):
        mock_db.upsert_client_by_cpf.return_value = stored_client
        mock_db.create_appointment.side_effect = SlotConflictError("taken")

        with pytest.raises(SlotConflictError):
            await confirm_booking(mock_db, review_draft)

    @pytest.mark.asyncio
    async def test_generic_failure_is_not_conflict(self, mock_db, review_draft, stored_client):
        mock_db.upsert_client_by_cpf.return_value = stored_client
        mock_db.create_appointment.side_effect = DatabaseError("timeout")

        with pytest.raises(DatabaseError) as exc:
            await confirm_booking(mock_db, review_draft)
        assert not isinstance(exc.value, SlotConflictError)

    @pytest.mark.asyncio
    async def test_requires_review_step(self, mock_db, manicure):
        draft = BookingDraft().select_service(manicure)

        with pytest.raises(InvalidTransitionError):
            await confirm_booking(mock_db, draft)
        mock_db.upsert_client_by_cpf.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_identity_writes_nothing(self, mock_db, review_draft):
        draft = review_draft.model_copy(update={"cpf": "11144477734"})

        with pytest.raises(ValidationError) as exc:
            await confirm_booking(mock_db, draft)
        assert exc.value.reason == "CPF inválido."
        mock_db.upsert_client_by_cpf.assert_not_awaited()
        mock_db.create_appointment.assert_not_awaited()


class TestLookup:
    @pytest.mark.asyncio
    async def test_found(self, mock_db, stored_client):
        mock_db.find_client.return_value = stored_client
        mock_db.get_client_appointments.return_value = [_appointment()]

        result = await lookup_appointments(mock_db, "111.444.777-35", "(11) 99999-8888")

        assert len(result) == 1
        mock_db.find_client.assert_awaited_once_with("11144477735", "11999998888")

    @pytest.mark.asyncio
    async def test_no_client(self, mock_db):
        mock_db.find_client.return_value = None

        assert await lookup_appointments(mock_db, "11144477735", "11999998888") == []
        mock_db.get_client_appointments.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_short_cpf(self, mock_db):
        with pytest.raises(ValidationError) as exc:
            await lookup_appointments(mock_db, "1114447773", "11999998888")
        assert exc.value.reason == "Informe um CPF válido."

    @pytest.mark.asyncio
    async def test_short_phone(self, mock_db):
        with pytest.raises(ValidationError) as exc:
            await lookup_appointments(mock_db, "11144477735", "119999")
        assert exc.value.reason == "Informe um telefone válido."


class TestStatusChanges:
    @pytest.mark.asyncio
    async def test_client_cancel(self, mock_db):
        mock_db.update_appointment_status.return_value = _appointment(status="cancelled")

        result = await cancel_client_appointment(mock_db, "appt-1", "client-1")

        assert result.status == "cancelled"
        mock_db.update_appointment_status.assert_awaited_once_with(
            "appt-1", AppointmentStatus.CANCELLED, client_id="client-1"
        )

    @pytest.mark.asyncio
    async def test_client_cancel_not_owned(self, mock_db):
        mock_db.update_appointment_status.return_value = None

        with pytest.raises(AppointmentNotFoundError):
            await cancel_client_appointment(mock_db, "appt-1", "client-2")

    @pytest.mark.asyncio
    async def test_admin_complete(self, mock_db):
        mock_db.update_appointment_status.return_value = _appointment(status="completed")

        result = await set_appointment_status(mock_db, "appt-1", AppointmentStatus.COMPLETED)

        assert result.status == "completed"

    @pytest.mark.asyncio
    async def test_admin_cannot_reconfirm(self, mock_db):
        with pytest.raises(ValidationError):
            await set_appointment_status(mock_db, "appt-1", AppointmentStatus.CONFIRMED)
        mock_db.update_appointment_status.assert_not_awaited()
