"""Pydantic models for data validation and serialization."""

from .appointment import Appointment, AppointmentCreate, AppointmentStatus
from .blocked_slot import BlockedSlot, BlockedSlotCreate
from .client import Client, ClientCreate, ClientSummary
from .service import Service, ServiceSummary

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "BlockedSlot",
    "BlockedSlotCreate",
    "Client",
    "ClientCreate",
    "ClientSummary",
    "Service",
    "ServiceSummary",
]
