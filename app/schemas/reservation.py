"""
Pydantic schemas for reservation requests, stored reservations and occurrences.
"""
import datetime as dt
from enum import Enum
from typing import Optional, Union
from pydantic import BaseModel, Field, field_validator


EntityId = Union[int, str]


def to_naive_local(value: dt.datetime) -> dt.datetime:
    """Convert aware datetimes to naive local wall-clock time."""
    if value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


class RepeatPattern(str, Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"


class ReservationStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# ============ Request Schemas ============

class ReservationRequest(BaseModel):
    """
    Reservation form input.
    Required fields are optional here so missing ones are reported together.
    `repeat_pattern` stays a plain string; unknown values are handled on expansion.
    """
    user_id: Optional[EntityId] = None
    parking_lot_id: Optional[EntityId] = None
    space_id: Optional[int] = None
    date: Optional[dt.date] = None
    start_time: Optional[str] = Field(None, description="HH:MM or H:MM AM/PM")
    end_time: Optional[str] = Field(None, description="HH:MM or H:MM AM/PM")
    recurring: bool = False
    repeat_pattern: Optional[str] = None
    end_date: Optional[dt.date] = None

    @field_validator("date", "end_date", mode="before")
    @classmethod
    def truncate_to_day(cls, value):
        # Date pickers send a full date-time; only the calendar day is kept
        if isinstance(value, str) and "T" in value:
            try:
                value = dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
            except ValueError:
                return value
        if isinstance(value, dt.datetime):
            return to_naive_local(value).date()
        return value


# ============ Occurrence Schemas ============

class ReservationOccurrence(BaseModel):
    """One concrete time-bounded instance of a reservation."""
    user_id: EntityId
    parking_lot_id: EntityId
    space_id: int
    starts_at: dt.datetime
    ends_at: dt.datetime

    class Config:
        frozen = True

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_instant(cls, value: dt.datetime) -> dt.datetime:
        return to_naive_local(value)


class Reservation(BaseModel):
    """Stored reservation record as loaded by the caller."""
    id: Optional[EntityId] = None
    user_id: EntityId
    parking_lot_id: EntityId
    space_id: int
    start_time: dt.datetime
    end_time: dt.datetime
    status: str = ReservationStatus.ACTIVE.value
    user_name: Optional[str] = None

    class Config:
        frozen = True

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_instant(cls, value: dt.datetime) -> dt.datetime:
        return to_naive_local(value)
