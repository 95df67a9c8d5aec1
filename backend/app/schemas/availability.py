from pydantic import BaseModel, Field, field_validator
from typing import Dict, List, Optional
from datetime import date

from ..services.availability_calendar import DayStatus, normalize_days_off


class AvailabilitySettingsUpdate(BaseModel):
    days_off: Dict[str, bool] = Field(default_factory=dict)
    slots_per_day: Optional[int] = Field(default=None, ge=0)

    @field_validator("days_off", mode="before")
    def normalize_weekdays(cls, v):
        if v is None:
            return {}
        return normalize_days_off(v, strict=True)


class AvailabilitySettingsResponse(BaseModel):
    vendor_id: int
    days_off: Dict[str, bool]
    slots_per_day: Optional[int] = None
    configured: bool


class BlockedDateCreate(BaseModel):
    dates: List[date] = Field(min_length=1)


class BlockedDatesResponse(BaseModel):
    vendor_id: int
    dates: List[date]


class CalendarDayResponse(BaseModel):
    date: date
    day: int
    weekday: str
    status: DayStatus
    booking_count: int
    selectable: bool


class MonthCalendarResponse(BaseModel):
    vendor_id: int
    month: str
    leading_blanks: int
    trailing_blanks: int
    days: List[CalendarDayResponse]
    counts: Dict[str, int]


class SelectionToggleRequest(BaseModel):
    selected: List[date] = Field(default_factory=list)
    toggle: date


class SelectionResponse(BaseModel):
    selected: List[date]
    changed: bool
    status: Optional[DayStatus] = None


class BookingResponse(BaseModel):
    id: int
    vendor_id: int
    request_id: Optional[int] = None
    user_id: Optional[int] = None
    event_date: date
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
