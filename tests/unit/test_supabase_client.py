"""
Unit tests for Supabase database client.
Tests with mocked Supabase API calls.
"""

from datetime import date
from unittest.mock import MagicMock, patch

import pytest
from postgrest.exceptions import APIError

from db.supabase_client import SupabaseClient, is_unique_violation
from models.appointment import AppointmentCreate, AppointmentStatus
from models.blocked_slot import BlockedSlotCreate
from models.client import ClientCreate
from utils.exceptions import BookingCreationError, DatabaseError, SlotConflictError

DAY = date(2026, 10, 20)


@pytest.fixture
def supabase_client(mock_supabase_client):
    """Create SupabaseClient with mocked client."""
    mock_client, _ = mock_supabase_client
    with patch("db.supabase_client.create_client", return_value=mock_client):
        client = SupabaseClient()
        client.client = mock_client
        return client


def _response(data):
    response = MagicMock()
    response.data = data
    return response


def _appointment_row(**overrides):
    row = {
        "id": "appt-1",
        "client_id": "client-1",
        "service_id": "svc-1",
        "appointment_date": "2026-10-20",
        "appointment_time": "09:00:00",
        "status": "confirmed",
        "created_at": "2026-10-18T12:00:00Z",
    }
    row.update(overrides)
    return row


# ========== Services ==========


@pytest.mark.asyncio
async def test_get_active_services_is_cached(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.order.return_value.execute.return_value = _response(
        [{"id": "svc-1", "name": "Manicure", "price": "45.00", "duration_minutes": 60, "active": True}]
    )

    first = await supabase_client.get_active_services()
    second = await supabase_client.get_active_services()

    assert len(first) == 1
    assert first[0].name == "Manicure"
    assert second == first
    assert mock_table.select.return_value.eq.return_value.order.return_value.execute.call_count == 1


@pytest.mark.asyncio
async def test_get_service_by_id_missing(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.order.return_value.execute.return_value = _response([])

    assert await supabase_client.get_service_by_id("svc-x") is None


# ========== Availability Inputs ==========


@pytest.mark.asyncio
async def test_get_booked_times_truncates_seconds(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.eq.return_value.execute.return_value = _response(
        [{"appointment_time": "09:00:00"}, {"appointment_time": "14:00:00"}]
    )

    result = await supabase_client.get_booked_times(DAY)

    assert result == ["09:00", "14:00"]
    mock_table.select.return_value.eq.assert_called_with("appointment_date", "2026-10-20")
    mock_table.select.return_value.eq.return_value.eq.assert_called_with("status", "confirmed")


@pytest.mark.asyncio
async def test_get_blocked_times_skips_full_day(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.eq.return_value.execute.return_value = _response(
        [{"blocked_time": "10:00:00"}, {"blocked_time": None}]
    )

    result = await supabase_client.get_blocked_times(DAY)

    assert result == ["10:00"]
    mock_table.select.return_value.eq.return_value.eq.assert_called_with("full_day", False)


@pytest.mark.asyncio
async def test_get_fully_blocked_dates(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.gte.return_value.execute.return_value = _response(
        [{"blocked_date": "2026-10-21"}]
    )

    result = await supabase_client.get_fully_blocked_dates(DAY)

    assert result == [date(2026, 10, 21)]


@pytest.mark.asyncio
async def test_store_failure_wrapped(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.side_effect = Exception("connection reset")

    with pytest.raises(DatabaseError):
        await supabase_client.get_booked_times(DAY)


# ========== Clients ==========


@pytest.mark.asyncio
async def test_upsert_client_inserts_new(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response([])
    mock_table.insert.return_value.execute.return_value = _response(
        [{"id": "client-1", "name": "Maria", "phone": "11999998888", "cpf": "11144477735"}]
    )

    client = await supabase_client.upsert_client_by_cpf(
        ClientCreate(name="Maria", phone="11999998888", cpf="11144477735")
    )

    assert client.id == "client-1"
    mock_table.insert.assert_called_once()
    mock_table.update.assert_not_called()


@pytest.mark.asyncio
async def test_upsert_client_updates_existing(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.execute.return_value = _response(
        [{"id": "client-1", "name": "Maria", "phone": "1133334444", "cpf": "11144477735"}]
    )
    mock_table.update.return_value.eq.return_value.execute.return_value = _response(
        [{"id": "client-1", "name": "Maria S.", "phone": "11999998888", "cpf": "11144477735"}]
    )

    client = await supabase_client.upsert_client_by_cpf(
        ClientCreate(name="Maria S.", phone="11999998888", cpf="11144477735")
    )

    assert client.phone == "11999998888"
    mock_table.update.assert_called_once_with({"name": "Maria S.", "phone": "11999998888"})
    mock_table.update.return_value.eq.assert_called_once_with("id", "client-1")
    mock_table.insert.assert_not_called()


@pytest.mark.asyncio
async def test_find_client_requires_both_values(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.eq.return_value.execute.return_value = _response([])

    assert await supabase_client.find_client("11144477735", "11999998888") is None
    mock_table.select.return_value.eq.assert_called_with("cpf", "11144477735")
    mock_table.select.return_value.eq.return_value.eq.assert_called_with("phone", "11999998888")


# ========== Appointments ==========


@pytest.mark.asyncio
async def test_create_appointment_stores_seconds(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.return_value = _response([_appointment_row()])

    result = await supabase_client.create_appointment(
        AppointmentCreate(
            client_id="client-1",
            service_id="svc-1",
            appointment_date=DAY,
            appointment_time="09:00",
        )
    )

    inserted = mock_table.insert.call_args[0][0]
    assert inserted["appointment_time"] == "09:00:00"
    assert inserted["appointment_date"] == "2026-10-20"
    assert inserted["status"] == "confirmed"
    assert result.id == "appt-1"
    assert result.appointment_time == "09:00"


@pytest.mark.asyncio
async def test_create_appointment_conflict(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.side_effect = APIError(
        {"code": "23505", "message": "duplicate key value", "details": None, "hint": None}
    )

    with pytest.raises(SlotConflictError):
        await supabase_client.create_appointment(
            AppointmentCreate(
                client_id="client-1",
                service_id="svc-1",
                appointment_date=DAY,
                appointment_time="09:00",
            )
        )


@pytest.mark.asyncio
async def test_create_appointment_other_api_error(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.side_effect = APIError(
        {"code": "42501", "message": "permission denied", "details": None, "hint": None}
    )

    with pytest.raises(DatabaseError) as exc:
        await supabase_client.create_appointment(
            AppointmentCreate(
                client_id="client-1",
                service_id="svc-1",
                appointment_date=DAY,
                appointment_time="09:00",
            )
        )
    assert not isinstance(exc.value, SlotConflictError)


@pytest.mark.asyncio
async def test_create_appointment_no_row(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.return_value = _response([])

    with pytest.raises(BookingCreationError):
        await supabase_client.create_appointment(
            AppointmentCreate(
                client_id="client-1",
                service_id="svc-1",
                appointment_date=DAY,
                appointment_time="09:00",
            )
        )


def test_is_unique_violation():
    assert is_unique_violation(APIError({"code": "23505", "message": "dup"})) is True
    assert is_unique_violation(APIError({"code": "23503", "message": "fk"})) is False
    assert is_unique_violation(ValueError("23505")) is False


@pytest.mark.asyncio
async def test_get_client_appointments_embeds_service(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.select.return_value.eq.return_value.order.return_value.execute.return_value = _response(
        [_appointment_row(services={"name": "Manicure", "price": "45.00"})]
    )

    result = await supabase_client.get_client_appointments("client-1")

    assert result[0].service.name == "Manicure"
    mock_table.select.return_value.eq.return_value.order.assert_called_once_with(
        "appointment_date", desc=True
    )


@pytest.mark.asyncio
async def test_update_status_only_confirmed(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    chain = mock_table.update.return_value.eq.return_value.eq.return_value
    chain.eq.return_value.execute.return_value = _response([_appointment_row(status="cancelled")])

    result = await supabase_client.update_appointment_status(
        "appt-1", AppointmentStatus.CANCELLED, client_id="client-1"
    )

    assert result.status == "cancelled"
    mock_table.update.assert_called_once_with({"status": "cancelled"})
    mock_table.update.return_value.eq.return_value.eq.assert_called_once_with("status", "confirmed")
    chain.eq.assert_called_once_with("client_id", "client-1")


@pytest.mark.asyncio
async def test_update_status_nothing_matched(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.update.return_value.eq.return_value.eq.return_value.execute.return_value = _response([])

    assert await supabase_client.update_appointment_status("appt-1", AppointmentStatus.COMPLETED) is None


@pytest.mark.asyncio
async def test_get_appointments_between_embeds_client(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    chain = mock_table.select.return_value.gte.return_value.lte.return_value.order.return_value.order.return_value
    chain.execute.return_value = _response(
        [
            _appointment_row(
                clients={"name": "Maria", "phone": "11999998888", "cpf": "11144477735"},
                services={"name": "Manicure", "price": "45.00"},
            )
        ]
    )

    result = await supabase_client.get_appointments_between(DAY, DAY)

    assert result[0].client.name == "Maria"
    assert result[0].service.name == "Manicure"


# ========== Blocks ==========


@pytest.mark.asyncio
async def test_create_partial_block(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.insert.return_value.execute.return_value = _response(
        [{"id": "blk-1", "blocked_date": "2026-10-20", "blocked_time": "10:00:00", "full_day": False}]
    )

    block = await supabase_client.create_blocked_slot(
        BlockedSlotCreate(blocked_date=DAY, blocked_time="10:00")
    )

    assert mock_table.insert.call_args[0][0]["blocked_time"] == "10:00:00"
    assert block.blocked_time == "10:00"


@pytest.mark.asyncio
async def test_delete_blocked_slot(supabase_client, mock_supabase_client):
    _, mock_table = mock_supabase_client
    mock_table.delete.return_value.eq.return_value.execute.return_value = _response([{"id": "blk-1"}])

    assert await supabase_client.delete_blocked_slot("blk-1") is True

    mock_table.delete.return_value.eq.return_value.execute.return_value = _response([])
    assert await supabase_client.delete_blocked_slot("blk-1") is False
