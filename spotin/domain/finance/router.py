"""Finance router - FastAPI endpoints for vendors, expenses and reports"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import ANALYTICS, FINANCE
from .schemas import (
    BillCreate,
    BillResponse,
    CategoryCreate,
    CategoryResponse,
    CategoryUpdate,
    Dashboard,
    IncomeBreakdown,
    MonthlyFigures,
    TopProduct,
    TrafficReport,
    VendorCreate,
    VendorResponse,
    VendorUpdate,
)
from .service import FinanceService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["Finance"])


def get_finance_service(db: Session = Depends(get_db)) -> FinanceService:
    """Dependency injection for FinanceService"""
    return FinanceService(db)


# ============================================================================
# VENDORS
# ============================================================================


@router.get("/vendors", response_model=list[VendorResponse])
async def list_vendors(
    include_inactive: bool = Query(True),
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.list_vendors(include_inactive)


@router.post("/vendors", response_model=VendorResponse, status_code=201)
async def create_vendor(
    data: VendorCreate,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.create_vendor(data)


@router.patch("/vendors/{vendor_id}", response_model=VendorResponse)
async def update_vendor(
    vendor_id: int,
    data: VendorUpdate,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.update_vendor(vendor_id, data)


@router.delete("/vendors/{vendor_id}")
async def delete_vendor(
    vendor_id: int,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.delete_vendor(vendor_id)


# ============================================================================
# EXPENSE CATEGORIES
# ============================================================================


@router.get("/expense-categories", response_model=list[CategoryResponse])
async def list_categories(
    include_inactive: bool = Query(True),
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.list_categories(include_inactive)


@router.post("/expense-categories", response_model=CategoryResponse, status_code=201)
async def create_category(
    data: CategoryCreate,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.create_category(data)


@router.patch("/expense-categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.update_category(category_id, data)


@router.delete("/expense-categories/{category_id}")
async def delete_category(
    category_id: int,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.delete_category(category_id)


# ============================================================================
# BILLS
# ============================================================================


@router.get("/bills", response_model=list[BillResponse])
async def list_bills(
    status: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.list_bills(status)


@router.post("/bills", response_model=BillResponse, status_code=201)
async def create_bill(
    data: BillCreate,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.create_bill(data, current_staff)


@router.post("/bills/{bill_id}/pay", response_model=BillResponse)
async def mark_bill_paid(
    bill_id: int,
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.mark_bill_paid(bill_id)


# ============================================================================
# REPORTS
# ============================================================================


@router.get("/reports/monthly", response_model=list[MonthlyFigures])
async def monthly_report(
    months: int = Query(6, ge=1, le=36),
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    """Revenue, expenses, profit and margin per month"""
    return service.monthly_report(months)


@router.get("/reports/income", response_model=IncomeBreakdown)
async def income_breakdown(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*FINANCE)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.income_breakdown(start, end)


@router.get("/reports/top-products", response_model=list[TopProduct])
async def top_products(
    limit: int = Query(10, ge=1, le=100),
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*ANALYTICS)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.top_products(limit, start, end)


@router.get("/reports/traffic", response_model=TrafficReport)
async def traffic(
    start: Optional[datetime] = Query(None),
    end: Optional[datetime] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*ANALYTICS)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.traffic(start, end)


@router.get("/dashboard", response_model=Dashboard)
async def dashboard(
    current_staff: StaffUser = Depends(require_roles(*ANALYTICS)),
    service: FinanceService = Depends(get_finance_service),
):
    return service.dashboard()
