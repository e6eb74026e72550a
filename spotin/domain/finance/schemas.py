"""Finance domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ...shared.validators import validate_email, validate_phone, validate_required_text


class VendorBase(BaseModel):
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    address: Optional[str] = None

    @field_validator("contact_email")
    @classmethod
    def email(cls, v):
        return validate_email(v)

    @field_validator("contact_phone")
    @classmethod
    def phone(cls, v):
        return validate_phone(v)


class VendorCreate(VendorBase):
    name: str

    @field_validator("name")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Vendor name")


class VendorUpdate(VendorBase):
    name: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Vendor name") if v is not None else v


class VendorResponse(BaseModel):
    id: int
    name: str
    contact_email: Optional[str]
    contact_phone: Optional[str]
    address: Optional[str]
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


class CategoryCreate(BaseModel):
    name: str
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def normalize(cls, v):
        return validate_required_text(v, "Category name").lower()


class CategoryUpdate(BaseModel):
    description: Optional[str] = None
    is_active: Optional[bool] = None


class CategoryResponse(BaseModel):
    id: int
    name: str
    description: Optional[str]
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class BillCreate(BaseModel):
    """A bill names its vendor as free text, or points at a vendor on file"""

    vendor: Optional[str] = None
    vendor_id: Optional[int] = None
    category: str
    description: Optional[str] = None
    amount: float = Field(..., gt=0)
    due_date: Optional[date] = None

    @field_validator("category")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Category").lower()

    @field_validator("vendor")
    @classmethod
    def strip_vendor(cls, v):
        return v.strip() if v else None

    @model_validator(mode="after")
    def vendor_given(self):
        if not self.vendor and self.vendor_id is None:
            raise ValueError("Vendor is required")
        return self


class BillResponse(BaseModel):
    id: int
    vendor: str
    vendor_id: Optional[int]
    category: str
    description: Optional[str]
    amount: float
    due_date: Optional[date]
    status: str
    paid_at: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True


class MonthlyFigures(BaseModel):
    month: str  # YYYY-MM
    revenue: float
    bill_expenses: float
    payroll_expenses: float
    expenses: float
    profit: float
    margin: float


class TypeTotal(BaseModel):
    transaction_type: str
    count: int
    total: float


class MethodTotal(BaseModel):
    payment_method: str
    count: int
    total: float


class IncomeBreakdown(BaseModel):
    start: datetime
    end: datetime
    receipt_count: int
    gross_total: float
    discount_total: float
    grand_total: float
    by_type: list[TypeTotal]
    by_payment_method: list[MethodTotal]


class TopProduct(BaseModel):
    product_id: Optional[int]
    name: str
    quantity: int
    revenue: float


class HourCount(BaseModel):
    hour: int
    check_ins: int


class TrafficReport(BaseModel):
    start: datetime
    end: datetime
    total_visits: int
    unique_clients: int
    average_session_minutes: float
    peak_hour: Optional[int]
    by_hour: list[HourCount]


class Dashboard(BaseModel):
    today_revenue: float
    today_receipts: int
    checked_in: int
    open_orders: int
    low_stock_items: int
    pending_bills: int
    pending_bills_total: float
