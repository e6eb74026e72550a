"""Auth domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_email, validate_phone, validate_required_text


class StaffLoginRequest(BaseModel):
    email: str
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower()


class ClientLoginRequest(BaseModel):
    """identifier is the client's phone, email or member code"""

    identifier: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    kind: str
    role: Optional[str] = None


class StaffCreate(BaseModel):
    email: str
    full_name: str
    role: str
    password: str
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)

    @field_validator("full_name")
    @classmethod
    def validate_name(cls, v):
        return validate_required_text(v, "Full name")

    @field_validator("phone")
    @classmethod
    def validate_phone_number(cls, v):
        return validate_phone(v) if v else v


class FirstAdminSetup(BaseModel):
    email: str
    full_name: str
    password: str

    @field_validator("email")
    @classmethod
    def validate_email_address(cls, v):
        return validate_email(v)


class StaffUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class StaffResponse(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str]
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
