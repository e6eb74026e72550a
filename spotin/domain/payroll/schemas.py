"""Payroll domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_required_text

PAYMENT_FREQUENCIES = ("weekly", "biweekly", "monthly")
PAYROLL_PAYMENT_METHODS = ("bank_transfer", "cash", "cheque", "mobile")


class EmployeeCreate(BaseModel):
    employee_name: str
    employee_code: str
    position: str
    department: Optional[str] = None
    base_salary: float = Field(..., ge=0)
    bonuses: float = Field(0, ge=0)
    deductions: float = Field(0, ge=0)
    payment_frequency: str = "monthly"
    bank_account: Optional[str] = None
    tax_id: Optional[str] = None
    start_date: date
    notes: Optional[str] = None

    @field_validator("employee_name", "employee_code", "position")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Name, employee code and position")

    @field_validator("payment_frequency")
    @classmethod
    def validate_frequency(cls, v):
        if v not in PAYMENT_FREQUENCIES:
            raise ValueError(f"payment_frequency must be one of {', '.join(PAYMENT_FREQUENCIES)}")
        return v


class EmployeeUpdate(BaseModel):
    employee_name: Optional[str] = None
    position: Optional[str] = None
    department: Optional[str] = None
    base_salary: Optional[float] = Field(None, ge=0)
    bonuses: Optional[float] = Field(None, ge=0)
    deductions: Optional[float] = Field(None, ge=0)
    payment_frequency: Optional[str] = None
    bank_account: Optional[str] = None
    tax_id: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("payment_frequency")
    @classmethod
    def validate_frequency(cls, v):
        if v is not None and v not in PAYMENT_FREQUENCIES:
            raise ValueError(f"payment_frequency must be one of {', '.join(PAYMENT_FREQUENCIES)}")
        return v


class EmployeeResponse(BaseModel):
    id: int
    employee_name: str
    employee_code: str
    position: str
    department: Optional[str]
    base_salary: float
    bonuses: float
    deductions: float
    net_salary: float
    payment_frequency: str
    bank_account: Optional[str]
    tax_id: Optional[str]
    is_active: bool
    start_date: date
    end_date: Optional[date]
    notes: Optional[str]

    class Config:
        from_attributes = True


class PayrollProcess(BaseModel):
    period_start: date
    period_end: date
    base_amount: Optional[float] = Field(None, ge=0)  # defaults to the employee's base salary
    bonuses: Optional[float] = Field(None, ge=0)
    deductions: Optional[float] = Field(None, ge=0)
    payment_method: str = "bank_transfer"
    notes: Optional[str] = None

    @field_validator("payment_method")
    @classmethod
    def validate_method(cls, v):
        if v not in PAYROLL_PAYMENT_METHODS:
            raise ValueError(f"payment_method must be one of {', '.join(PAYROLL_PAYMENT_METHODS)}")
        return v


class TransactionResponse(BaseModel):
    id: int
    payroll_id: int
    employee_name: Optional[str] = None
    period_start: date
    period_end: date
    base_amount: float
    bonuses: float
    deductions: float
    total_amount: float
    payment_method: str
    payment_status: str
    paid_at: Optional[datetime]
    notes: Optional[str]
    created_at: datetime


class DepartmentTotal(BaseModel):
    department: str
    headcount: int
    monthly_total: float


class PayrollSummary(BaseModel):
    active_employees: int
    inactive_employees: int
    monthly_payroll: float
    pending_count: int
    pending_total: float
    paid_this_month: float
    by_department: list[DepartmentTotal]
