"""Client domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone, validate_required_text


class ClientCreate(BaseModel):
    """Front desk registration of a new member"""

    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    job_title: Optional[str] = None
    how_did_you_find_us: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Name")

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v) if v else None


class ClientSignup(ClientCreate):
    """Public self-service signup; creates a portal login"""

    email: str
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters long")
        return v


class ClientUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    job_title: Optional[str] = None
    how_did_you_find_us: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v) if v else v

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v) if v else v


class ClientResponse(BaseModel):
    id: int
    public_id: Optional[str] = None
    client_code: str
    barcode: str
    first_name: str
    last_name: str
    full_name: str
    phone: str
    email: Optional[str]
    job_title: Optional[str]
    how_did_you_find_us: Optional[str]
    is_active: bool
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MembershipBadge(BaseModel):
    id: int
    plan_name: str
    discount_percentage: float
    end_date: Optional[datetime]


class TicketBadge(BaseModel):
    id: int
    ticket_name: str
    expiry_date: datetime
    hours_remaining: float
    is_paid: bool
    includes_free_drink: bool
    free_drink_claimed: bool


class ClientStatus(BaseModel):
    client: ClientResponse
    checked_in: bool
    checked_in_at: Optional[datetime] = None
    membership: Optional[MembershipBadge] = None
    ticket: Optional[TicketBadge] = None


class VisitRecord(BaseModel):
    id: int
    status: str
    checked_in_at: datetime
    checked_out_at: Optional[datetime]
    duration_minutes: Optional[int]


class ClientHistory(BaseModel):
    client: ClientResponse
    visits: list[VisitRecord]
    receipts: list[dict]
    total_spent: float
