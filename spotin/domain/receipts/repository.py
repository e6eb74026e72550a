"""Receipt repository - Database operations for receipts"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ...models import ClientMembership, ClientTicket, EventRegistration, Receipt, SessionLineItem
from ...shared.billing import generate_receipt_number


class ReceiptRepository:
    """Repository for receipt database operations. Callers own the commit."""

    @staticmethod
    def create_receipt(db: Session, **receipt_data) -> Receipt:
        """Insert a receipt with a fresh receipt number"""
        number = generate_receipt_number()
        for _ in range(5):
            if not db.query(Receipt.id).filter(Receipt.receipt_number == number).first():
                break
            number = generate_receipt_number()

        receipt = Receipt(receipt_number=number, **receipt_data)
        db.add(receipt)
        db.flush()
        return receipt

    @staticmethod
    def get_receipt(db: Session, receipt_id: int) -> Optional[Receipt]:
        return db.query(Receipt).filter(Receipt.id == receipt_id).first()

    @staticmethod
    def get_receipt_for_update(db: Session, receipt_id: int) -> Optional[Receipt]:
        return db.query(Receipt).filter(Receipt.id == receipt_id).with_for_update().first()

    @staticmethod
    def get_receipts(
        db: Session,
        status: Optional[str] = None,
        transaction_type: Optional[str] = None,
        client_id: Optional[int] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: int = 200,
    ) -> list[Receipt]:
        query = db.query(Receipt)
        if status:
            query = query.filter(Receipt.status == status)
        if transaction_type:
            query = query.filter(Receipt.transaction_type == transaction_type)
        if client_id:
            query = query.filter(Receipt.client_id == client_id)
        if start:
            query = query.filter(Receipt.receipt_date >= start)
        if end:
            query = query.filter(Receipt.receipt_date < end)
        return query.order_by(Receipt.receipt_date.desc(), Receipt.id.desc()).limit(limit).all()

    @staticmethod
    def get_cancelled(db: Session, start: Optional[datetime], end: Optional[datetime]) -> list[Receipt]:
        query = db.query(Receipt).filter(Receipt.status == "cancelled")
        if start:
            query = query.filter(Receipt.cancelled_at >= start)
        if end:
            query = query.filter(Receipt.cancelled_at < end)
        return query.order_by(Receipt.cancelled_at.desc()).all()

    @staticmethod
    def get_linked_items(db: Session, receipt_id: int) -> list[SessionLineItem]:
        return db.query(SessionLineItem).filter(SessionLineItem.receipt_id == receipt_id).all()

    @staticmethod
    def get_linked_memberships(db: Session, receipt_id: int) -> list[ClientMembership]:
        return db.query(ClientMembership).filter(ClientMembership.receipt_id == receipt_id).all()

    @staticmethod
    def get_linked_tickets(db: Session, receipt_id: int) -> list[ClientTicket]:
        return db.query(ClientTicket).filter(ClientTicket.receipt_id == receipt_id).all()

    @staticmethod
    def get_linked_registrations(db: Session, receipt_id: int) -> list[EventRegistration]:
        return (
            db.query(EventRegistration)
            .filter(EventRegistration.receipt_id == receipt_id, EventRegistration.status == "registered")
            .all()
        )

    @staticmethod
    def revenue_between(db: Session, start: datetime, end: datetime) -> float:
        total = (
            db.query(func.coalesce(func.sum(Receipt.total_amount), 0))
            .filter(
                Receipt.status != "cancelled",
                Receipt.receipt_date >= start,
                Receipt.receipt_date < end,
            )
            .scalar()
        )
        return float(total or 0)

    @staticmethod
    def get_membership_at(db: Session, client_id: int, moment: datetime) -> Optional[ClientMembership]:
        """The membership that was running at a given moment, whatever its state now"""
        return (
            db.query(ClientMembership)
            .filter(
                ClientMembership.client_id == client_id,
                ClientMembership.start_date <= moment,
                or_(ClientMembership.end_date.is_(None), ClientMembership.end_date > moment),
            )
            .order_by(ClientMembership.start_date.desc())
            .with_for_update()
            .first()
        )
