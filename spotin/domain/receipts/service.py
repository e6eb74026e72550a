"""Receipt service - Receipt history, cancellation with restock, reporting"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...database import atomic
from ...models import Event, Receipt, StaffUser
from ...realtime import publish
from ...shared.billing import round_money, utcnow
from ..stock.service import StockService
from .repository import ReceiptRepository
from .schemas import ReceiptCancelRequest

logger = logging.getLogger(__name__)


def serialize_receipt(receipt: Receipt) -> dict:
    return {
        "id": receipt.id,
        "receipt_number": receipt.receipt_number,
        "client_id": receipt.client_id,
        "client_name": receipt.client.full_name if receipt.client else None,
        "staff_id": receipt.staff_id,
        "transaction_type": receipt.transaction_type,
        "line_items": receipt.line_items or [],
        "amount": receipt.amount,
        "discount_amount": receipt.discount_amount,
        "total_amount": receipt.total_amount,
        "payment_method": receipt.payment_method,
        "status": receipt.status,
        "receipt_date": receipt.receipt_date,
        "cancelled_at": receipt.cancelled_at,
        "cancelled_by": receipt.cancelled_by,
        "cancellation_reason": receipt.cancellation_reason,
    }


class ReceiptService:
    """Service layer for receipt business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReceiptRepository()

    def list_receipts(
        self,
        status: Optional[str] = None,
        transaction_type: Optional[str] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 200,
    ) -> list[dict]:
        receipts = self.repo.get_receipts(self.db, status, transaction_type, client_id, start, end, limit)
        return [serialize_receipt(r) for r in receipts]

    def get_receipt(self, receipt_id: int) -> Receipt:
        receipt = self.repo.get_receipt(self.db, receipt_id)
        if not receipt:
            raise HTTPException(status_code=404, detail="Receipt not found")
        return receipt

    def cancel_receipt(self, receipt_id: int, data: ReceiptCancelRequest, staff: StaffUser) -> dict:
        """
        Cancel (refund) a receipt in one transaction:
        - mark it cancelled with who/when/why
        - optionally return the ingredients of every product line to stock
        - cancel the line items it billed
        - end the membership or ticket it paid for, release event seats
        - take a membership discount back out of the savings total
        """
        reason = (data.reason or "").strip()
        if not reason:
            raise HTTPException(status_code=400, detail="A cancellation reason is required")

        with atomic(self.db):
            receipt = self.repo.get_receipt_for_update(self.db, receipt_id)
            if not receipt:
                raise HTTPException(status_code=404, detail="Receipt not found")
            if receipt.status == "cancelled":
                raise HTTPException(status_code=409, detail="Receipt is already cancelled")

            now = utcnow()
            receipt.status = "cancelled"
            receipt.cancelled_at = now
            receipt.cancelled_by = staff.id
            receipt.cancellation_reason = reason

            items = self.repo.get_linked_items(self.db, receipt.id)
            if data.restock:
                StockService(self.db).restock(
                    (item.product_id, item.quantity) for item in items if item.product_id
                )
            for item in items:
                item.status = "cancelled"
                item.updated_at = now

            for membership in self.repo.get_linked_memberships(self.db, receipt.id):
                membership.is_active = False
                membership.end_date = now
                logger.info(f"🎫 Membership {membership.id} ended by receipt cancellation")

            for ticket in self.repo.get_linked_tickets(self.db, receipt.id):
                # refunded tickets stop granting access
                ticket.is_paid = False
                ticket.payment_method = "refunded"
                ticket.expiry_date = min(ticket.expiry_date, now)

            for registration in self.repo.get_linked_registrations(self.db, receipt.id):
                registration.status = "cancelled"
                registration.cancelled_at = now
                event = self.db.query(Event).filter(Event.id == registration.event_id).with_for_update().first()
                if event and event.registered_attendees > 0:
                    event.registered_attendees -= 1

            if receipt.discount_amount and receipt.client_id:
                membership = self.repo.get_membership_at(self.db, receipt.client_id, receipt.receipt_date)
                if membership:
                    membership.total_savings = max(
                        0.0, round_money(membership.total_savings - receipt.discount_amount)
                    )

        logger.info(
            f"🧾 Receipt {receipt.receipt_number} cancelled by {staff.email}: {reason} "
            f"(restock={data.restock}, {len(items)} line item(s))"
        )
        invalidate_finance_cache()
        publish("receipts", "cancelled", {"receipt_id": receipt.id, "client_id": receipt.client_id})
        if items:
            publish("orders", "cancelled", {"receipt_id": receipt.id})
        if data.restock and items:
            publish("stock", "restocked", {"receipt_id": receipt.id})
        return serialize_receipt(receipt)

    def cancellation_report(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> dict:
        receipts = self.repo.get_cancelled(self.db, start, end)

        grouped = defaultdict(lambda: {"count": 0, "total_amount": 0.0})
        for receipt in receipts:
            bucket = grouped[receipt.cancellation_reason or "unspecified"]
            bucket["count"] += 1
            bucket["total_amount"] += receipt.total_amount

        by_reason = sorted(
            (
                {"reason": reason, "count": v["count"], "total_amount": round_money(v["total_amount"])}
                for reason, v in grouped.items()
            ),
            key=lambda r: (-r["count"], r["reason"]),
        )
        return {
            "count": len(receipts),
            "total_amount": round_money(sum(r.total_amount for r in receipts)),
            "by_reason": by_reason,
            "receipts": [serialize_receipt(r) for r in receipts],
        }
