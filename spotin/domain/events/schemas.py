"""Event domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_phone, validate_required_text, validate_time_of_day


class EventCreate(BaseModel):
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    event_date: date
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    capacity: int = Field(..., ge=1)
    price: float = Field(0, ge=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        return validate_required_text(v, "Title")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return validate_time_of_day(v)


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    event_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_times(cls, v):
        return validate_time_of_day(v)


class EventResponse(BaseModel):
    id: int
    title: str
    description: Optional[str]
    category: Optional[str]
    location: Optional[str]
    event_date: date
    start_time: Optional[str]
    end_time: Optional[str]
    capacity: int
    price: float
    registered_attendees: int
    spots_left: int
    is_full: bool
    is_active: bool


class RegistrationCreate(BaseModel):
    attendee_name: str = Field(..., max_length=255)
    attendee_email: str
    attendee_phone: Optional[str] = None
    special_requests: Optional[str] = Field(None, max_length=1000)
    payment_method: Optional[str] = None  # staff only: paid now, writes an event receipt
    client_id: Optional[int] = None

    @field_validator("attendee_name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Name")

    @field_validator("attendee_email")
    @classmethod
    def validate_attendee_email(cls, v):
        return validate_email(validate_required_text(v, "Email"))

    @field_validator("attendee_phone")
    @classmethod
    def validate_attendee_phone(cls, v):
        return validate_phone(v) if v else v


class RegistrationResponse(BaseModel):
    id: int
    event_id: int
    client_id: Optional[int]
    attendee_name: str
    attendee_email: str
    attendee_phone: Optional[str]
    special_requests: Optional[str]
    status: str
    receipt_id: Optional[int]
    registered_at: datetime
    cancelled_at: Optional[datetime]

    class Config:
        from_attributes = True
