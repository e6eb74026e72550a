"""Payroll service - Employee records, payroll runs and payroll reporting"""

import csv
import logging
from collections import defaultdict
from datetime import date, datetime
from io import StringIO
from typing import Optional

from fastapi import HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...database import atomic
from ...models import PayrollEmployee, PayrollTransaction, StaffUser
from ...realtime import publish
from ...shared.billing import round_money, utcnow
from .repository import PayrollRepository
from .schemas import EmployeeCreate, EmployeeUpdate, PayrollProcess

logger = logging.getLogger(__name__)

# Pay periods per month for each frequency
MONTHLY_FACTOR = {"monthly": 1.0, "biweekly": 26 / 12, "weekly": 52 / 12}


def net_salary(base_salary: float, bonuses: float, deductions: float) -> float:
    net = round_money(base_salary + (bonuses or 0) - (deductions or 0))
    if net < 0:
        raise HTTPException(status_code=400, detail="Deductions cannot exceed base salary plus bonuses")
    return net


def serialize_transaction(tx: PayrollTransaction) -> dict:
    return {
        "id": tx.id,
        "payroll_id": tx.payroll_id,
        "employee_name": tx.employee.employee_name if tx.employee else None,
        "period_start": tx.period_start,
        "period_end": tx.period_end,
        "base_amount": tx.base_amount,
        "bonuses": tx.bonuses,
        "deductions": tx.deductions,
        "total_amount": tx.total_amount,
        "payment_method": tx.payment_method,
        "payment_status": tx.payment_status,
        "paid_at": tx.paid_at,
        "notes": tx.notes,
        "created_at": tx.created_at,
    }


def month_start(today: date) -> datetime:
    return datetime(today.year, today.month, 1)


def next_month_start(today: date) -> datetime:
    if today.month == 12:
        return datetime(today.year + 1, 1, 1)
    return datetime(today.year, today.month + 1, 1)


class PayrollService:
    """Service layer for payroll business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PayrollRepository()

    # ============================================================================
    # EMPLOYEES
    # ============================================================================

    def list_employees(self, include_inactive: bool = False) -> list[PayrollEmployee]:
        return self.repo.get_employees(self.db, include_inactive)

    def get_employee(self, payroll_id: int) -> PayrollEmployee:
        employee = self.repo.get_employee(self.db, payroll_id)
        if not employee:
            raise HTTPException(status_code=404, detail="Employee not found")
        return employee

    def create_employee(self, data: EmployeeCreate) -> PayrollEmployee:
        if self.repo.code_taken(self.db, data.employee_code):
            raise HTTPException(status_code=409, detail="An employee with this code already exists")

        values = data.model_dump()
        values["net_salary"] = net_salary(data.base_salary, data.bonuses, data.deductions)
        with atomic(self.db):
            employee = self.repo.add(self.db, PayrollEmployee(**values))

        logger.info(f"👤 Employee added to payroll: {employee.employee_name} ({employee.employee_code})")
        publish("payroll", "employee_created", {"payroll_id": employee.id})
        return employee

    def update_employee(self, payroll_id: int, data: EmployeeUpdate) -> PayrollEmployee:
        """Net salary is always recomputed from the stored components"""
        employee = self.get_employee(payroll_id)
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}

        net = net_salary(
            updates.get("base_salary", employee.base_salary),
            updates.get("bonuses", employee.bonuses),
            updates.get("deductions", employee.deductions),
        )
        with atomic(self.db):
            for key, value in updates.items():
                setattr(employee, key, value)
            employee.net_salary = net

        publish("payroll", "employee_updated", {"payroll_id": employee.id})
        return employee

    def deactivate_employee(self, payroll_id: int) -> PayrollEmployee:
        employee = self.get_employee(payroll_id)
        if not employee.is_active:
            raise HTTPException(status_code=409, detail="Employee is already inactive")
        with atomic(self.db):
            employee.is_active = False
            employee.end_date = utcnow().date()
        logger.info(f"👋 {employee.employee_name} removed from active payroll")
        publish("payroll", "employee_deactivated", {"payroll_id": employee.id})
        return employee

    # ============================================================================
    # PAYROLL RUNS
    # ============================================================================

    def process_payroll(self, payroll_id: int, data: PayrollProcess, staff: StaffUser) -> dict:
        employee = self.get_employee(payroll_id)
        if not employee.is_active:
            raise HTTPException(status_code=409, detail="Cannot process payroll for an inactive employee")
        if data.period_end < data.period_start:
            raise HTTPException(status_code=400, detail="Period end must be on or after period start")

        base = employee.base_salary if data.base_amount is None else data.base_amount
        bonuses = employee.bonuses if data.bonuses is None else data.bonuses
        deductions = employee.deductions if data.deductions is None else data.deductions
        total = net_salary(base, bonuses, deductions)

        with atomic(self.db):
            tx = self.repo.add(
                self.db,
                PayrollTransaction(
                    payroll_id=employee.id,
                    period_start=data.period_start,
                    period_end=data.period_end,
                    base_amount=round_money(base),
                    bonuses=round_money(bonuses),
                    deductions=round_money(deductions),
                    total_amount=total,
                    payment_method=data.payment_method,
                    payment_status="pending",
                    notes=data.notes,
                    processed_by=staff.id,
                    created_at=utcnow(),
                ),
            )

        logger.info(
            f"💰 Payroll processed for {employee.employee_name}: {total} "
            f"({data.period_start} → {data.period_end})"
        )
        publish("payroll", "processed", {"transaction_id": tx.id, "payroll_id": employee.id})
        return serialize_transaction(tx)

    def mark_paid(self, transaction_id: int) -> dict:
        with atomic(self.db):
            tx = self.repo.get_transaction_for_update(self.db, transaction_id)
            if not tx:
                raise HTTPException(status_code=404, detail="Payroll transaction not found")
            if tx.payment_status == "paid":
                raise HTTPException(status_code=409, detail="This payroll transaction is already paid")
            tx.payment_status = "paid"
            tx.paid_at = utcnow()

        invalidate_finance_cache()
        publish("payroll", "paid", {"transaction_id": tx.id, "payroll_id": tx.payroll_id})
        return serialize_transaction(tx)

    def transactions(self, payroll_id: Optional[int] = None, status: Optional[str] = None) -> list[dict]:
        return [serialize_transaction(tx) for tx in self.repo.get_transactions(self.db, payroll_id, status)]

    # ============================================================================
    # REPORTING
    # ============================================================================

    def summary(self) -> dict:
        employees = self.repo.get_employees(self.db, include_inactive=True)
        active = [e for e in employees if e.is_active]

        departments = defaultdict(lambda: {"headcount": 0, "monthly_total": 0.0})
        for employee in active:
            bucket = departments[employee.department or "Unassigned"]
            bucket["headcount"] += 1
            bucket["monthly_total"] += employee.net_salary * MONTHLY_FACTOR.get(employee.payment_frequency, 1.0)

        pending = self.repo.get_transactions(self.db, status="pending")
        today = utcnow().date()
        return {
            "active_employees": len(active),
            "inactive_employees": len(employees) - len(active),
            "monthly_payroll": round_money(sum(b["monthly_total"] for b in departments.values())),
            "pending_count": len(pending),
            "pending_total": round_money(sum(tx.total_amount for tx in pending)),
            "paid_this_month": round_money(
                self.repo.paid_between(self.db, month_start(today), next_month_start(today))
            ),
            "by_department": sorted(
                (
                    {"department": name, "headcount": b["headcount"], "monthly_total": round_money(b["monthly_total"])}
                    for name, b in departments.items()
                ),
                key=lambda d: d["monthly_total"],
                reverse=True,
            ),
        }

    def export_csv(self) -> StreamingResponse:
        """Payroll report as CSV"""
        employees = self.repo.get_employees(self.db, include_inactive=True)

        output = StringIO()
        writer = csv.writer(output)
        writer.writerow(
            [
                "Employee Name",
                "Employee ID",
                "Position",
                "Department",
                "Base Salary",
                "Bonuses",
                "Deductions",
                "Net Salary",
                "Payment Frequency",
                "Status",
                "Start Date",
            ]
        )
        for employee in employees:
            writer.writerow(
                [
                    employee.employee_name,
                    employee.employee_code,
                    employee.position,
                    employee.department or "",
                    employee.base_salary,
                    employee.bonuses or 0,
                    employee.deductions or 0,
                    employee.net_salary,
                    employee.payment_frequency,
                    "Active" if employee.is_active else "Inactive",
                    employee.start_date.strftime("%b %d, %Y"),
                ]
            )

        output.seek(0)
        filename = f"Payroll_Report_{utcnow().date().isoformat()}.csv"
        logger.info(f"✅ Payroll CSV export: {filename} ({len(employees)} employees)")

        return StreamingResponse(
            iter([output.getvalue()]),
            media_type="text/csv",
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
