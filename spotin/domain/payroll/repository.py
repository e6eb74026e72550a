"""Payroll repository - Database operations for employees and payroll runs"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import PayrollEmployee, PayrollTransaction


class PayrollRepository:
    """Repository for payroll database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_employees(db: Session, include_inactive: bool = False) -> list[PayrollEmployee]:
        query = db.query(PayrollEmployee)
        if not include_inactive:
            query = query.filter(PayrollEmployee.is_active.is_(True))
        return query.order_by(PayrollEmployee.employee_name.asc()).all()

    @staticmethod
    def get_employee(db: Session, payroll_id: int) -> Optional[PayrollEmployee]:
        return db.query(PayrollEmployee).filter(PayrollEmployee.id == payroll_id).first()

    @staticmethod
    def code_taken(db: Session, employee_code: str) -> bool:
        return (
            db.query(PayrollEmployee.id)
            .filter(func.lower(PayrollEmployee.employee_code) == employee_code.lower())
            .first()
            is not None
        )

    @staticmethod
    def get_transaction_for_update(db: Session, transaction_id: int) -> Optional[PayrollTransaction]:
        return (
            db.query(PayrollTransaction)
            .filter(PayrollTransaction.id == transaction_id)
            .with_for_update()
            .first()
        )

    @staticmethod
    def get_transactions(
        db: Session, payroll_id: Optional[int] = None, status: Optional[str] = None
    ) -> list[PayrollTransaction]:
        query = db.query(PayrollTransaction)
        if payroll_id is not None:
            query = query.filter(PayrollTransaction.payroll_id == payroll_id)
        if status:
            query = query.filter(PayrollTransaction.payment_status == status)
        return query.order_by(PayrollTransaction.created_at.desc()).all()

    @staticmethod
    def paid_between(db: Session, start: datetime, end: datetime) -> float:
        total = (
            db.query(func.coalesce(func.sum(PayrollTransaction.total_amount), 0))
            .filter(
                PayrollTransaction.payment_status == "paid",
                PayrollTransaction.paid_at >= start,
                PayrollTransaction.paid_at < end,
            )
            .scalar()
        )
        return float(total or 0)
