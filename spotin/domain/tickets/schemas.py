"""Ticket domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_required_text


class TicketCreate(BaseModel):
    name: str
    description: Optional[str] = None
    price: float = Field(0, ge=0)
    includes_free_drink: bool = False
    duration_hours: Optional[int] = Field(None, ge=1, le=24 * 31)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Ticket name")


class TicketUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    includes_free_drink: Optional[bool] = None
    duration_hours: Optional[int] = Field(None, ge=1, le=24 * 31)
    is_active: Optional[bool] = None


class TicketResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    price: float
    includes_free_drink: bool
    duration_hours: Optional[int]
    is_active: bool

    class Config:
        from_attributes = True


class TicketAssign(BaseModel):
    client_id: int
    ticket_id: int
    payment_method: str = "pending"  # pending = billed at checkout


class ClientTicketResponse(BaseModel):
    id: int
    client_id: int
    ticket_id: int
    ticket_name: str
    ticket_price: float
    includes_free_drink: bool
    purchase_date: datetime
    expiry_date: datetime
    hours_remaining: float
    is_expired: bool
    payment_method: str
    is_paid: bool
    receipt_id: Optional[int]
    free_drink_claimed: bool
    free_drink_claimed_at: Optional[datetime]
    claimed_drink_name: Optional[str]


class FreeDrinkClaim(BaseModel):
    client_id: int
    client_ticket_id: int
    product_id: int


class FreeDrinkResult(BaseModel):
    ticket: ClientTicketResponse
    order_id: int
    drink_name: str
