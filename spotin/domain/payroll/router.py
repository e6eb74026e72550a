"""Payroll router - FastAPI endpoints for HR and finance"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import PAYROLL
from .schemas import (
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    PayrollProcess,
    PayrollSummary,
    TransactionResponse,
)
from .service import PayrollService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payroll", tags=["Payroll"])


def get_payroll_service(db: Session = Depends(get_db)) -> PayrollService:
    """Dependency injection for PayrollService"""
    return PayrollService(db)


@router.get("/employees", response_model=list[EmployeeResponse])
async def list_employees(
    include_inactive: bool = Query(False),
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.list_employees(include_inactive)


@router.post("/employees", response_model=EmployeeResponse, status_code=201)
async def create_employee(
    data: EmployeeCreate,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.create_employee(data)


@router.get("/employees/{payroll_id}", response_model=EmployeeResponse)
async def get_employee(
    payroll_id: int,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.get_employee(payroll_id)


@router.patch("/employees/{payroll_id}", response_model=EmployeeResponse)
async def update_employee(
    payroll_id: int,
    data: EmployeeUpdate,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.update_employee(payroll_id, data)


@router.delete("/employees/{payroll_id}", response_model=EmployeeResponse)
async def deactivate_employee(
    payroll_id: int,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    """Remove from active payroll; the record is kept with an end date"""
    return service.deactivate_employee(payroll_id)


@router.post("/employees/{payroll_id}/process", response_model=TransactionResponse, status_code=201)
async def process_payroll(
    payroll_id: int,
    data: PayrollProcess,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.process_payroll(payroll_id, data, current_staff)


@router.get("/transactions", response_model=list[TransactionResponse])
async def list_transactions(
    payroll_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.transactions(payroll_id, status)


@router.post("/transactions/{transaction_id}/pay", response_model=TransactionResponse)
async def mark_paid(
    transaction_id: int,
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.mark_paid(transaction_id)


@router.get("/summary", response_model=PayrollSummary)
async def payroll_summary(
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.summary()


@router.get("/export")
async def export_payroll_csv(
    current_staff: StaffUser = Depends(require_roles(*PAYROLL)),
    service: PayrollService = Depends(get_payroll_service),
):
    return service.export_csv()
