"""Service catalog models for nail salon services."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class Service(BaseModel):
    """A bookable salon service, managed by the salon and read-only here."""

    id: str = Field(..., description="Service ID (Supabase UUID)")
    name: str
    description: Optional[str] = None
    price: Decimal = Field(..., ge=0, description="Price in BRL")
    duration_minutes: int = Field(..., gt=0, description="Duration in minutes")
    active: bool = True

    class Config:
        json_schema_extra = {
            "example": {
                "id": "uuid-here",
                "name": "Manicure tradicional",
                "description": "Cutilagem e esmaltação",
                "price": "45.00",
                "duration_minutes": 60,
                "active": True,
            }
        }


class ServiceSummary(BaseModel):
    """Service columns embedded in appointment queries."""

    name: str
    price: Optional[Decimal] = None
