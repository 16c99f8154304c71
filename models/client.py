"""Client models. The CPF is the natural key of a client."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Client(BaseModel):
    """Client model (phone and CPF stored as digits only)."""

    id: Optional[str] = None
    name: str
    phone: str = Field(..., description="Digits only, area code included")
    cpf: str = Field(..., min_length=11, max_length=11, description="Digits only")
    created_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Maria da Silva",
                "phone": "11999998888",
                "cpf": "11144477735",
            }
        }


class ClientCreate(BaseModel):
    """Client creation/update payload."""

    name: str
    phone: str
    cpf: str


class ClientSummary(BaseModel):
    """Client columns embedded in admin agenda queries."""

    name: str
    phone: Optional[str] = None
    cpf: Optional[str] = None
