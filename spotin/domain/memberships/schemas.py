"""Membership domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_required_text

DURATION_TYPES = ("weekly", "monthly", "6months", "annual")


class PlanCreate(BaseModel):
    plan_name: str
    description: Optional[str] = None
    discount_percentage: float = Field(0, ge=0, le=100)
    perks: list[str] = []
    duration_type: str = "monthly"
    price: float = Field(0, ge=0)

    @field_validator("plan_name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Plan name")

    @field_validator("duration_type")
    @classmethod
    def validate_duration(cls, v):
        if v not in DURATION_TYPES:
            raise ValueError(f"duration_type must be one of {', '.join(DURATION_TYPES)}")
        return v


class PlanUpdate(BaseModel):
    plan_name: Optional[str] = None
    description: Optional[str] = None
    discount_percentage: Optional[float] = Field(None, ge=0, le=100)
    perks: Optional[list[str]] = None
    duration_type: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    is_active: Optional[bool] = None

    @field_validator("duration_type")
    @classmethod
    def validate_duration(cls, v):
        if v is not None and v not in DURATION_TYPES:
            raise ValueError(f"duration_type must be one of {', '.join(DURATION_TYPES)}")
        return v


class PlanResponse(BaseModel):
    id: int
    plan_name: str
    description: Optional[str]
    discount_percentage: float
    perks: list[str]
    duration_type: str
    price: float
    is_active: bool

    class Config:
        from_attributes = True


class MembershipAssign(BaseModel):
    client_id: int
    plan_id: int
    payment_method: Optional[str] = None  # required when the plan has a price


class MembershipResponse(BaseModel):
    id: int
    client_id: int
    client_name: Optional[str] = None
    plan_id: Optional[int]
    plan_name: str
    discount_percentage: float
    perks: list[str]
    start_date: datetime
    end_date: Optional[datetime]
    is_active: bool
    days_remaining: Optional[int]
    total_savings: float
    receipt_id: Optional[int]


class ClientSearchResult(BaseModel):
    id: int
    client_code: str
    full_name: str
    phone: str
    email: Optional[str]
    active_membership: Optional[str] = None
