"""Appointment models."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.client import ClientSummary
from models.service import ServiceSummary
from utils.datetime_utils import normalize_time


class AppointmentStatus(str, Enum):
    """Appointment status."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class Appointment(BaseModel):
    """Appointment model. At most one confirmed appointment per date+time."""

    id: Optional[str] = None
    client_id: Optional[str] = Field(None, description="Client ID (Supabase UUID)")
    service_id: Optional[str] = Field(None, description="Service ID (Supabase UUID)")
    appointment_date: date
    appointment_time: str = Field(..., description="HH:MM")
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
    created_at: Optional[datetime] = None

    # Embedded rows from joined selects
    service: Optional[ServiceSummary] = None
    client: Optional[ClientSummary] = None

    @field_validator("appointment_time", mode="before")
    @classmethod
    def truncate_seconds(cls, v):
        """Stored times come back as HH:MM:SS."""
        return normalize_time(v)

    class Config:
        use_enum_values = True
        validate_default = True
        json_schema_extra = {
            "example": {
                "client_id": "uuid-here",
                "service_id": "uuid-here",
                "appointment_date": "2026-10-20",
                "appointment_time": "09:00",
                "status": "confirmed",
            }
        }


class AppointmentCreate(BaseModel):
    """Appointment creation model."""

    client_id: str
    service_id: str
    appointment_date: date
    appointment_time: str
    status: AppointmentStatus = AppointmentStatus.CONFIRMED
