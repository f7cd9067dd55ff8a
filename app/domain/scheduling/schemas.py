"""Scheduling domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...config import DEFAULT_SLOT_DURATION_MINUTES
from ...shared.validators import validate_category, validate_day_of_week


def _positive(value: Optional[int], field_name: str) -> Optional[int]:
    if value is not None and value <= 0:
        raise ValueError(f"{field_name} must be a positive integer")
    return value


# ============================================================================
# RECURRING SCHEDULES
# ============================================================================


class ScheduleCreate(BaseModel):
    """Schema for creating a recurring weekly schedule"""

    dayOfWeek: int
    startTime: str
    endTime: str
    category: str
    title: Optional[str] = None
    maxParticipants: int = 10
    isActive: bool = True
    graceMinutes: Optional[int] = None
    # Persist even when the conflict check fails
    allowConflicts: bool = False

    @field_validator("dayOfWeek")
    @classmethod
    def check_day(cls, v):
        return validate_day_of_week(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("maxParticipants")
    @classmethod
    def check_participants(cls, v):
        return _positive(v, "maxParticipants")


class ScheduleUpdate(BaseModel):
    """Schema for updating a recurring schedule; omitted fields keep their value"""

    dayOfWeek: Optional[int] = None
    startTime: Optional[str] = None
    endTime: Optional[str] = None
    category: Optional[str] = None
    title: Optional[str] = None
    maxParticipants: Optional[int] = None
    isActive: Optional[bool] = None
    graceMinutes: Optional[int] = None
    allowConflicts: bool = False

    @field_validator("dayOfWeek")
    @classmethod
    def check_day(cls, v):
        return validate_day_of_week(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("maxParticipants")
    @classmethod
    def check_participants(cls, v):
        return _positive(v, "maxParticipants")


class ScheduleValidateRequest(BaseModel):
    dayOfWeek: int
    startTime: str
    endTime: str
    category: str
    title: Optional[str] = None
    graceMinutes: Optional[int] = None
    excludeId: Optional[int] = None

    @field_validator("dayOfWeek")
    @classmethod
    def check_day(cls, v):
        return validate_day_of_week(v)

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)


class ScheduleResponse(BaseModel):
    id: int
    dayOfWeek: int
    startTime: str
    endTime: str
    category: str
    title: Optional[str]
    maxParticipants: int
    isActive: bool
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConflictResponse(BaseModel):
    id: Optional[int] = None
    dayOfWeek: int
    startTime: str
    endTime: str
    category: str
    title: Optional[str] = None


class ValidationResponse(BaseModel):
    isValid: bool
    message: str
    conflicts: list[ConflictResponse]
    suggestions: list[str]
    graceMinutes: int


# ============================================================================
# TIME SLOTS
# ============================================================================


class SlotCreate(BaseModel):
    date: str
    time: str
    category: str
    durationMinutes: int = DEFAULT_SLOT_DURATION_MINUTES
    price: Optional[float] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("durationMinutes")
    @classmethod
    def check_duration(cls, v):
        return _positive(v, "durationMinutes")

    @field_validator("price")
    @classmethod
    def check_price(cls, v):
        if v is not None and v < 0:
            raise ValueError("price cannot be negative")
        return v


class SlotUpdate(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
    category: Optional[str] = None
    durationMinutes: Optional[int] = None
    price: Optional[float] = None
    isAvailable: Optional[bool] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("durationMinutes")
    @classmethod
    def check_duration(cls, v):
        return _positive(v, "durationMinutes")


class SlotResponse(BaseModel):
    id: int
    date: date
    time: str
    durationMinutes: int
    category: str
    price: Optional[float]
    isAvailable: bool
    isBooked: bool
    bookedBy: Optional[str] = None
    createdAt: Optional[datetime] = None

    class Config:
        from_attributes = True


class BulkSlotRequest(BaseModel):
    startDate: str
    endDate: str
    timesOfDay: list[str]
    category: str
    durationMinutes: int = DEFAULT_SLOT_DURATION_MINUTES
    price: Optional[float] = None
    skipWeekends: bool = True
    skipExisting: bool = True

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)

    @field_validator("durationMinutes")
    @classmethod
    def check_duration(cls, v):
        return _positive(v, "durationMinutes")


class SlotGenerateRequest(BaseModel):
    """Generate dated slots from the active recurring schedules of a category"""

    startDate: str
    endDate: str
    category: str
    price: Optional[float] = None

    @field_validator("category")
    @classmethod
    def check_category(cls, v):
        return validate_category(v)


class BulkSlotDetails(BaseModel):
    createdSlots: list[str]
    skippedSlots: list[str]
    errorSlots: list[str]


class BulkSlotResponse(BaseModel):
    created: int
    skipped: int
    errors: int
    details: BulkSlotDetails


class CleanSlotsResponse(BaseModel):
    deletedCount: int
    bookedKept: int
