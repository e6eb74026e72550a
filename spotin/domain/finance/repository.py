"""Finance repository - Database operations for bills, vendors, expense categories and reporting queries"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Bill, Client, ExpenseCategory, Receipt, SessionLineItem, Vendor


class FinanceRepository:
    """Repository for finance database operations. Callers own the commit."""

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_bills(db: Session, status: Optional[str] = None) -> list[Bill]:
        query = db.query(Bill)
        if status:
            query = query.filter(Bill.status == status)
        return query.order_by(Bill.created_at.desc()).all()

    @staticmethod
    def get_bill_for_update(db: Session, bill_id: int) -> Optional[Bill]:
        return db.query(Bill).filter(Bill.id == bill_id).with_for_update().first()

    @staticmethod
    def get_vendors(db: Session, include_inactive: bool = True) -> list[Vendor]:
        query = db.query(Vendor)
        if not include_inactive:
            query = query.filter(Vendor.is_active.is_(True))
        return query.order_by(Vendor.name.asc()).all()

    @staticmethod
    def get_vendor(db: Session, vendor_id: int) -> Optional[Vendor]:
        return db.query(Vendor).filter(Vendor.id == vendor_id).first()

    @staticmethod
    def find_vendor_by_name(db: Session, name: str) -> Optional[Vendor]:
        return db.query(Vendor).filter(func.lower(Vendor.name) == name.lower()).first()

    @staticmethod
    def count_vendor_bills(db: Session, vendor_id: int) -> int:
        return db.query(Bill).filter(Bill.vendor_id == vendor_id).count()

    @staticmethod
    def get_categories(db: Session, include_inactive: bool = True) -> list[ExpenseCategory]:
        query = db.query(ExpenseCategory)
        if not include_inactive:
            query = query.filter(ExpenseCategory.is_active.is_(True))
        return query.order_by(ExpenseCategory.name.asc()).all()

    @staticmethod
    def get_category(db: Session, category_id: int) -> Optional[ExpenseCategory]:
        return db.query(ExpenseCategory).filter(ExpenseCategory.id == category_id).first()

    @staticmethod
    def find_category(db: Session, name: str) -> Optional[ExpenseCategory]:
        return db.query(ExpenseCategory).filter(ExpenseCategory.name == name).first()

    @staticmethod
    def count_category_bills(db: Session, name: str) -> int:
        return db.query(Bill).filter(Bill.category == name).count()

    @staticmethod
    def bills_paid_between(db: Session, start: datetime, end: datetime) -> float:
        total = (
            db.query(func.coalesce(func.sum(Bill.amount), 0))
            .filter(Bill.status == "paid", Bill.paid_at >= start, Bill.paid_at < end)
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def get_valid_receipts(db: Session, start: datetime, end: datetime) -> list[Receipt]:
        return (
            db.query(Receipt)
            .filter(Receipt.status != "cancelled", Receipt.receipt_date >= start, Receipt.receipt_date < end)
            .all()
        )

    @staticmethod
    def get_product_sales(db: Session, start: Optional[datetime], end: Optional[datetime], limit: int):
        """(product_id, name, quantity, revenue) for billed, non-cancelled line items"""
        revenue = func.sum(SessionLineItem.price * SessionLineItem.quantity)
        query = (
            db.query(
                SessionLineItem.product_id,
                SessionLineItem.item_name,
                func.sum(SessionLineItem.quantity).label("quantity"),
                revenue.label("revenue"),
            )
            .join(Receipt, Receipt.id == SessionLineItem.receipt_id)
            .filter(SessionLineItem.status != "cancelled", Receipt.status != "cancelled")
        )
        if start:
            query = query.filter(Receipt.receipt_date >= start)
        if end:
            query = query.filter(Receipt.receipt_date < end)
        return (
            query.group_by(SessionLineItem.product_id, SessionLineItem.item_name)
            .order_by(revenue.desc(), func.sum(SessionLineItem.quantity).desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def count_checked_in(db: Session) -> int:
        return db.query(Client).filter(Client.active.is_(True)).count()
