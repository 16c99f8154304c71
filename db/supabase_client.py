"""
Supabase database client for the salon tables.
Handles the service catalog, appointments, the block schedule and clients.

Tables:
    services(id, name, description, price, duration_minutes, active)
    clients(id, name, phone, cpf UNIQUE, created_at)
    appointments(id, client_id, service_id, appointment_date, appointment_time,
                 status, created_at)
    blocked_slots(id, blocked_date, blocked_time, full_day, reason)

Slot races are settled by the database, not here:
----------------------------------------------
CREATE UNIQUE INDEX appointments_confirmed_slot
ON appointments (appointment_date, appointment_time)
WHERE status = 'confirmed';

A second insert for the same confirmed date+time fails with SQLSTATE 23505,
which create_appointment() turns into SlotConflictError.

Row Level Security (RLS) Notes:
==============================
services is readable by anyone; appointments, clients and blocked_slots
writes from the public flow must be limited by RLS policies configured in
the Supabase dashboard. Admin reads rely on the signed-in admin session.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from postgrest.exceptions import APIError
from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.blocked_slot import BlockedSlot, BlockedSlotCreate
from models.client import Client, ClientCreate
from models.service import Service
from utils.constants import UNIQUE_VIOLATION_CODE
from utils.datetime_utils import parse_iso_datetime, utc_now
from utils.exceptions import (
    BookingCreationError,
    DatabaseError,
    SlotConflictError,
)

APPOINTMENT_FIELDS = "id, client_id, service_id, appointment_date, appointment_time, status, created_at"


def is_unique_violation(error: Exception) -> bool:
    """True when a PostgREST error is the slot uniqueness violation."""
    return getattr(error, "code", None) == UNIQUE_VIOLATION_CODE


class SupabaseClient:
    """
    Supabase database client wrapper.

    The service catalog is cached in memory for a few minutes; it changes
    rarely and is read on every booking.
    """

    def __init__(self, client: Optional[SupabaseClientType] = None):
        """
        Args:
            client: Supabase client to query through; a new anon client
                from settings when omitted
        """
        self.client: SupabaseClientType = client or create_client(
            settings.supabase_url, settings.supabase_key
        )

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=5)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if utc_now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        """Set value in cache with TTL."""
        self._cache[key] = (value, utc_now() + self._cache_ttl)

    # ========== Service Catalog ==========

    async def get_active_services(self) -> List[Service]:
        """Get active services ordered by name."""
        cache_key = "services:active"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table("services")
                .select("*")
                .eq("active", True)
                .order("name", desc=False)
                .execute()
            )
            services = [Service(**item) for item in response.data or []]
            self._set_cache(cache_key, services)
            return services
        except Exception as e:
            raise DatabaseError(f"Failed to get services: {e}") from e

    async def get_service_by_id(self, service_id: str) -> Optional[Service]:
        """Get an active service by ID."""
        for service in await self.get_active_services():
            if service.id == service_id:
                return service
        return None

    # ========== Availability Inputs ==========

    async def get_booked_times(self, day: date) -> List[str]:
        """Times (HH:MM) of confirmed appointments on a date."""
        try:
            response = (
                self.client.table("appointments")
                .select("appointment_time")
                .eq("appointment_date", day.isoformat())
                .eq("status", AppointmentStatus.CONFIRMED.value)
                .execute()
            )
            return [
                item["appointment_time"][:5]
                for item in response.data or []
                if item.get("appointment_time")
            ]
        except Exception as e:
            raise DatabaseError(f"Failed to get booked times: {e}") from e

    async def get_blocked_times(self, day: date) -> List[str]:
        """Times (HH:MM) blocked by partial blocks on a date."""
        try:
            response = (
                self.client.table("blocked_slots")
                .select("blocked_time")
                .eq("blocked_date", day.isoformat())
                .eq("full_day", False)
                .execute()
            )
            return [
                item["blocked_time"][:5]
                for item in response.data or []
                if item.get("blocked_time")
            ]
        except Exception as e:
            raise DatabaseError(f"Failed to get blocked times: {e}") from e

    async def get_fully_blocked_dates(self, start_date: Optional[date] = None) -> List[date]:
        """Dates blocked for the whole day, optionally from start_date on."""
        try:
            query = (
                self.client.table("blocked_slots")
                .select("blocked_date")
                .eq("full_day", True)
            )
            if start_date:
                query = query.gte("blocked_date", start_date.isoformat())

            response = query.execute()
            return [
                date.fromisoformat(item["blocked_date"])
                for item in response.data or []
            ]
        except Exception as e:
            raise DatabaseError(f"Failed to get blocked dates: {e}") from e

    # ========== Client Operations ==========

    async def get_client_by_cpf(self, cpf: str) -> Optional[Client]:
        """Get client by CPF (digits only)."""
        try:
            response = (
                self.client.table("clients").select("*").eq("cpf", cpf).execute()
            )
            if response.data:
                return self._parse_client(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to get client: {e}") from e

    async def find_client(self, cpf: str, phone: str) -> Optional[Client]:
        """Get the client matching both CPF and phone (client area lookup)."""
        try:
            response = (
                self.client.table("clients")
                .select("*")
                .eq("cpf", cpf)
                .eq("phone", phone)
                .execute()
            )
            if response.data:
                return self._parse_client(response.data[0])
            return None
        except Exception as e:
            raise DatabaseError(f"Failed to find client: {e}") from e

    async def upsert_client_by_cpf(self, client_data: ClientCreate) -> Client:
        """
        Create the client, or refresh name and phone when the CPF is known.

        Returns:
            The stored client
        """
        existing = await self.get_client_by_cpf(client_data.cpf)

        try:
            if existing:
                response = (
                    self.client.table("clients")
                    .update({"name": client_data.name, "phone": client_data.phone})
                    .eq("id", existing.id)
                    .execute()
                )
            else:
                response = (
                    self.client.table("clients")
                    .insert(client_data.model_dump())
                    .execute()
                )
        except Exception as e:
            raise DatabaseError(f"Failed to save client: {e}") from e

        if not response.data:
            raise DatabaseError("Failed to save client: no data returned")
        return self._parse_client(response.data[0])

    # ========== Appointment Operations ==========

    async def create_appointment(self, appointment_data: AppointmentCreate) -> Appointment:
        """
        Insert a confirmed appointment.

        Raises:
            SlotConflictError: The date+time already holds a confirmed appointment
            BookingCreationError: The insert returned no row
            DatabaseError: Any other store failure
        """
        data = {
            "client_id": appointment_data.client_id,
            "service_id": appointment_data.service_id,
            "appointment_date": appointment_data.appointment_date.isoformat(),
            "appointment_time": f"{appointment_data.appointment_time}:00",
            "status": AppointmentStatus(appointment_data.status).value,
        }

        try:
            response = self.client.table("appointments").insert(data).execute()
        except APIError as e:
            if is_unique_violation(e):
                raise SlotConflictError(
                    f"Slot {data['appointment_date']} {appointment_data.appointment_time} is taken"
                ) from e
            raise DatabaseError(f"Failed to create appointment: {e}") from e
        except Exception as e:
            raise DatabaseError(f"Failed to create appointment: {e}") from e

        if not response.data:
            raise BookingCreationError("Failed to create appointment: no data returned")
        return self._parse_appointment(response.data[0])

    async def get_client_appointments(self, client_id: str) -> List[Appointment]:
        """Appointments of a client with service name and price, newest first."""
        try:
            response = (
                self.client.table("appointments")
                .select(f"{APPOINTMENT_FIELDS}, services(name, price)")
                .eq("client_id", client_id)
                .order("appointment_date", desc=True)
                .execute()
            )
            return [self._parse_appointment(item) for item in response.data or []]
        except Exception as e:
            raise DatabaseError(f"Failed to get client appointments: {e}") from e

    async def update_appointment_status(
        self,
        appointment_id: str,
        status: AppointmentStatus,
        client_id: Optional[str] = None,
    ) -> Optional[Appointment]:
        """
        Move a confirmed appointment to another status.

        Only confirmed appointments change; passing client_id also restricts
        the update to that client's appointment.

        Returns:
            The updated appointment, or None when nothing matched
        """
        try:
            query = (
                self.client.table("appointments")
                .update({"status": status.value})
                .eq("id", appointment_id)
                .eq("status", AppointmentStatus.CONFIRMED.value)
            )
            if client_id:
                query = query.eq("client_id", client_id)

            response = query.execute()
            if not response.data:
                return None
            return self._parse_appointment(response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to update appointment status: {e}") from e

    async def get_appointments_between(self, start_date: date, end_date: date) -> List[Appointment]:
        """
        All appointments in a date range with client and service details
        (admin operation).
        """
        try:
            response = (
                self.client.table("appointments")
                .select(
                    f"{APPOINTMENT_FIELDS}, clients(name, phone, cpf), services(name, price)"
                )
                .gte("appointment_date", start_date.isoformat())
                .lte("appointment_date", end_date.isoformat())
                .order("appointment_date", desc=False)
                .order("appointment_time", desc=False)
                .execute()
            )
            return [self._parse_appointment(item) for item in response.data or []]
        except Exception as e:
            raise DatabaseError(f"Failed to get appointments: {e}") from e

    # ========== Block Schedule (admin) ==========

    async def create_blocked_slot(self, block_data: BlockedSlotCreate) -> BlockedSlot:
        """Block a whole day or one start time."""
        data = {
            "blocked_date": block_data.blocked_date.isoformat(),
            "blocked_time": f"{block_data.blocked_time}:00" if block_data.blocked_time else None,
            "full_day": block_data.full_day,
            "reason": block_data.reason,
        }
        try:
            response = self.client.table("blocked_slots").insert(data).execute()
        except Exception as e:
            raise DatabaseError(f"Failed to create block: {e}") from e

        if not response.data:
            raise DatabaseError("Failed to create block: no data returned")
        return BlockedSlot(**response.data[0])

    async def get_blocked_slots(self, start_date: date) -> List[BlockedSlot]:
        """Blocks from start_date on, in calendar order."""
        try:
            response = (
                self.client.table("blocked_slots")
                .select("*")
                .gte("blocked_date", start_date.isoformat())
                .order("blocked_date", desc=False)
                .execute()
            )
            return [BlockedSlot(**item) for item in response.data or []]
        except Exception as e:
            raise DatabaseError(f"Failed to get blocks: {e}") from e

    async def delete_blocked_slot(self, block_id: str) -> bool:
        """
        Delete a block.

        Returns:
            True if a row was deleted, False otherwise
        """
        try:
            response = (
                self.client.table("blocked_slots")
                .delete()
                .eq("id", block_id)
                .execute()
            )
            return len(response.data or []) > 0
        except Exception as e:
            raise DatabaseError(f"Failed to delete block: {e}") from e

    # ========== Helper Methods ==========

    def _parse_client(self, item: dict) -> Client:
        item = item.copy()
        if item.get("created_at"):
            item["created_at"] = parse_iso_datetime(item["created_at"])
        return Client(**item)

    def _parse_appointment(self, item: dict) -> Appointment:
        """
        Parse appointment data from database response.

        Embedded `services` and `clients` rows from joined selects become
        the `service` and `client` fields.
        """
        item = item.copy()
        if "services" in item:
            item["service"] = item.pop("services")
        if "clients" in item:
            item["client"] = item.pop("clients")
        if item.get("created_at"):
            item["created_at"] = parse_iso_datetime(item["created_at"])
        return Appointment(**item)


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client


_admin_db_clients: Dict[int, SupabaseClient] = {}


def get_admin_db_client(telegram_id: int) -> SupabaseClient:
    """Store access through the signed-in admin's own Supabase client."""
    db = _admin_db_clients.get(telegram_id)
    if db is None:
        from auth import get_admin_client

        db = SupabaseClient(client=get_admin_client(telegram_id))
        _admin_db_clients[telegram_id] = db
    return db
