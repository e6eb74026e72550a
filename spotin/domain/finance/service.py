"""Finance service - Vendors, expense categories, bills, profit and loss, sales and traffic reporting"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import build_finance_key, cache, invalidate_finance_cache
from ...database import atomic
from ...models import Bill, ExpenseCategory, StaffUser, Vendor
from ...realtime import publish
from ...security_utils import sanitize_text
from ...shared.billing import round_money, utcnow
from ..checkins.repository import CheckInRepository
from ..orders.repository import OrderRepository
from ..payroll.repository import PayrollRepository
from ..receipts.repository import ReceiptRepository
from ..stock.repository import StockRepository
from ..stock.service import stock_status
from .repository import FinanceRepository
from .schemas import BillCreate, CategoryCreate, CategoryUpdate, VendorCreate, VendorUpdate

logger = logging.getLogger(__name__)

REPORT_TTL = 300


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start, end


def previous_months(now: datetime, months: int) -> list[tuple[int, int]]:
    """(year, month) pairs, current month first"""
    year, month = now.year, now.month
    result = []
    for _ in range(months):
        result.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return result


def profit_margin(revenue: float, profit: float) -> float:
    if revenue <= 0:
        return 0.0
    return round(profit / revenue * 100, 1)


class FinanceService:
    """Service layer for finance business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = FinanceRepository()

    # ============================================================================
    # VENDORS
    # ============================================================================

    def list_vendors(self, include_inactive: bool = True) -> list[Vendor]:
        return self.repo.get_vendors(self.db, include_inactive)

    def get_vendor(self, vendor_id: int) -> Vendor:
        vendor = self.repo.get_vendor(self.db, vendor_id)
        if not vendor:
            raise HTTPException(status_code=404, detail="Vendor not found")
        return vendor

    def create_vendor(self, data: VendorCreate) -> Vendor:
        if self.repo.find_vendor_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail=f"Vendor {data.name} already exists")
        values = data.model_dump()
        values["address"] = sanitize_text(values["address"])
        with atomic(self.db):
            vendor = self.repo.add(self.db, Vendor(**values, is_active=True, created_at=utcnow()))
        logger.info(f"🏭 Vendor added: {vendor.name}")
        return vendor

    def update_vendor(self, vendor_id: int, data: VendorUpdate) -> Vendor:
        updates = data.model_dump(exclude_unset=True)
        vendor = self.get_vendor(vendor_id)
        if updates.get("name"):
            existing = self.repo.find_vendor_by_name(self.db, updates["name"])
            if existing and existing.id != vendor.id:
                raise HTTPException(status_code=409, detail=f"Vendor {updates['name']} already exists")
        if "address" in updates:
            updates["address"] = sanitize_text(updates["address"])

        with atomic(self.db):
            for key, value in updates.items():
                if key in ("name", "is_active") and value is None:
                    continue
                setattr(vendor, key, value)
            vendor.updated_at = utcnow()
        return vendor

    def delete_vendor(self, vendor_id: int) -> dict:
        """Vendors with bills on file are kept; deactivate them instead"""
        vendor = self.get_vendor(vendor_id)
        if self.repo.count_vendor_bills(self.db, vendor.id):
            raise HTTPException(status_code=409, detail="Vendor has bills on file; deactivate it instead")
        name = vendor.name
        with atomic(self.db):
            self.db.delete(vendor)
        logger.info(f"🏭 Vendor deleted: {name}")
        return {"message": "Vendor deleted"}

    # ============================================================================
    # EXPENSE CATEGORIES
    # ============================================================================

    def list_categories(self, include_inactive: bool = True) -> list[ExpenseCategory]:
        return self.repo.get_categories(self.db, include_inactive)

    def get_category(self, category_id: int) -> ExpenseCategory:
        category = self.repo.get_category(self.db, category_id)
        if not category:
            raise HTTPException(status_code=404, detail="Expense category not found")
        return category

    def create_category(self, data: CategoryCreate) -> ExpenseCategory:
        if self.repo.find_category(self.db, data.name):
            raise HTTPException(status_code=409, detail=f"Expense category {data.name} already exists")
        with atomic(self.db):
            category = self.repo.add(
                self.db,
                ExpenseCategory(
                    name=data.name,
                    description=sanitize_text(data.description),
                    is_active=True,
                    created_at=utcnow(),
                ),
            )
        logger.info(f"🗂️ Expense category added: {category.name}")
        return category

    def update_category(self, category_id: int, data: CategoryUpdate) -> ExpenseCategory:
        updates = {k: v for k, v in data.model_dump(exclude_unset=True).items() if v is not None}
        category = self.get_category(category_id)
        with atomic(self.db):
            if "description" in updates:
                category.description = sanitize_text(updates["description"])
            if "is_active" in updates:
                category.is_active = updates["is_active"]
        return category

    def delete_category(self, category_id: int) -> dict:
        category = self.get_category(category_id)
        if self.repo.count_category_bills(self.db, category.name):
            raise HTTPException(status_code=409, detail="Expense category is in use; deactivate it instead")
        with atomic(self.db):
            self.db.delete(category)
        return {"message": "Expense category deleted"}

    def _check_category(self, name: str) -> None:
        """Once categories are managed, bills must use an active one"""
        categories = self.repo.get_categories(self.db)
        if categories and name not in {c.name for c in categories if c.is_active}:
            raise HTTPException(status_code=400, detail=f"Unknown expense category: {name}")

    # ============================================================================
    # BILLS
    # ============================================================================

    def list_bills(self, status: Optional[str] = None) -> list[Bill]:
        return self.repo.get_bills(self.db, status)

    def create_bill(self, data: BillCreate, staff: StaffUser) -> Bill:
        self._check_category(data.category)
        values = data.model_dump()
        values["description"] = sanitize_text(values["description"])
        if data.vendor_id is not None:
            vendor = self.repo.get_vendor(self.db, data.vendor_id)
            if not vendor or not vendor.is_active:
                raise HTTPException(status_code=404, detail="Vendor not found")
            values["vendor"] = vendor.name

        with atomic(self.db):
            bill = self.repo.add(
                self.db,
                Bill(**values, status="pending", created_by=staff.id, created_at=utcnow()),
            )
        logger.info(f"🧾 Bill recorded: {bill.vendor} {bill.amount} ({bill.category})")
        publish("finance", "bill_created", {"bill_id": bill.id})
        return bill

    def mark_bill_paid(self, bill_id: int) -> Bill:
        with atomic(self.db):
            bill = self.repo.get_bill_for_update(self.db, bill_id)
            if not bill:
                raise HTTPException(status_code=404, detail="Bill not found")
            if bill.status == "paid":
                raise HTTPException(status_code=409, detail="Bill is already paid")
            bill.status = "paid"
            bill.paid_at = utcnow()

        invalidate_finance_cache()
        publish("finance", "bill_paid", {"bill_id": bill.id})
        return bill

    # ============================================================================
    # REPORTS
    # ============================================================================

    def monthly_report(self, months: int = 6) -> list[dict]:
        """Revenue against paid bills and payroll, most recent month first"""
        now = utcnow()
        key = build_finance_key("monthly", months, now.strftime("%Y-%m"))
        cached_report = cache.get(key)
        if cached_report is not None:
            return cached_report

        report = []
        for year, month in previous_months(now, months):
            start, end = month_bounds(year, month)
            revenue = round_money(ReceiptRepository.revenue_between(self.db, start, end))
            bills = round_money(self.repo.bills_paid_between(self.db, start, end))
            payroll = round_money(PayrollRepository.paid_between(self.db, start, end))
            expenses = round_money(bills + payroll)
            profit = round_money(revenue - expenses)
            report.append(
                {
                    "month": f"{year:04d}-{month:02d}",
                    "revenue": revenue,
                    "bill_expenses": bills,
                    "payroll_expenses": payroll,
                    "expenses": expenses,
                    "profit": profit,
                    "margin": profit_margin(revenue, profit),
                }
            )

        cache.set(key, report, ttl=REPORT_TTL)
        return report

    def income_breakdown(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Cashier session view: takings per transaction type and payment method"""
        end = end or utcnow()
        start = start or end.replace(hour=0, minute=0, second=0, microsecond=0)
        if end <= start:
            raise HTTPException(status_code=400, detail="end must be after start")

        by_type = defaultdict(lambda: {"count": 0, "total": 0.0})
        by_method = defaultdict(lambda: {"count": 0, "total": 0.0})
        receipts = self.repo.get_valid_receipts(self.db, start, end)
        for receipt in receipts:
            for bucket in (by_type[receipt.transaction_type], by_method[receipt.payment_method]):
                bucket["count"] += 1
                bucket["total"] += receipt.total_amount

        return {
            "start": start,
            "end": end,
            "receipt_count": len(receipts),
            "gross_total": round_money(sum(r.amount for r in receipts)),
            "discount_total": round_money(sum(r.discount_amount for r in receipts)),
            "grand_total": round_money(sum(r.total_amount for r in receipts)),
            "by_type": [
                {"transaction_type": name, "count": b["count"], "total": round_money(b["total"])}
                for name, b in sorted(by_type.items())
            ],
            "by_payment_method": [
                {"payment_method": name, "count": b["count"], "total": round_money(b["total"])}
                for name, b in sorted(by_method.items())
            ],
        }

    def top_products(
        self, limit: int = 10, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[dict]:
        return [
            {
                "product_id": row.product_id,
                "name": row.item_name,
                "quantity": int(row.quantity or 0),
                "revenue": round_money(row.revenue),
            }
            for row in self.repo.get_product_sales(self.db, start, end, limit)
        ]

    def traffic(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        """Check-ins per hour of day and session lengths"""
        end = end or utcnow()
        start = start or end - timedelta(days=30)
        if end <= start:
            raise HTTPException(status_code=400, detail="end must be after start")

        check_ins = CheckInRepository.get_check_ins_between(self.db, start, end)
        hours = [0] * 24
        durations = []
        for check_in in check_ins:
            hours[check_in.checked_in_at.hour] += 1
            if check_in.checked_out_at:
                durations.append((check_in.checked_out_at - check_in.checked_in_at).total_seconds() / 60)

        return {
            "start": start,
            "end": end,
            "total_visits": len(check_ins),
            "unique_clients": len({c.client_id for c in check_ins}),
            "average_session_minutes": round(sum(durations) / len(durations), 1) if durations else 0.0,
            "peak_hour": max(range(24), key=lambda h: hours[h]) if check_ins else None,
            "by_hour": [{"hour": h, "check_ins": count} for h, count in enumerate(hours)],
        }

    def dashboard(self) -> dict:
        now = utcnow()
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        today = self.repo.get_valid_receipts(self.db, day_start, now + timedelta(seconds=1))
        pending_bills = self.repo.get_bills(self.db, status="pending")
        low_stock = [
            item
            for item in StockRepository.get_items(self.db)
            if stock_status(item.current_quantity, item.min_quantity) != "good"
        ]
        return {
            "today_revenue": round_money(sum(r.total_amount for r in today)),
            "today_receipts": len(today),
            "checked_in": self.repo.count_checked_in(self.db),
            "open_orders": OrderRepository.count_open(self.db),
            "low_stock_items": len(low_stock),
            "pending_bills": len(pending_bills),
            "pending_bills_total": round_money(sum(b.amount for b in pending_bills)),
        }
