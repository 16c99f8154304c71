"""Block-schedule models: whole days or single times the salon is closed."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator, model_validator

from utils.datetime_utils import normalize_time


class BlockedSlot(BaseModel):
    """A full-day block (no time) or a partial block of one start time."""

    id: Optional[str] = None
    blocked_date: date
    blocked_time: Optional[str] = None
    full_day: bool = False
    reason: Optional[str] = None

    @field_validator("blocked_time", mode="before")
    @classmethod
    def truncate_seconds(cls, v):
        if v is None:
            return None
        return normalize_time(v)


class BlockedSlotCreate(BaseModel):
    """Block creation model."""

    blocked_date: date
    blocked_time: Optional[str] = None
    full_day: bool = False
    reason: Optional[str] = None

    @field_validator("blocked_time", mode="before")
    @classmethod
    def truncate_seconds(cls, v):
        if v is None:
            return None
        return normalize_time(v)

    @model_validator(mode="after")
    def check_kind(self):
        if self.full_day and self.blocked_time is not None:
            raise ValueError("A full-day block cannot carry a time")
        if not self.full_day and self.blocked_time is None:
            raise ValueError("A partial block needs a time")
        return self
