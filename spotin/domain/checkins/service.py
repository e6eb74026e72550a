"""Check-in service - Front desk check-in, checkout billing and session cleanup"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import invalidate_finance_cache
from ...config import STALE_SESSION_HOURS
from ...database import atomic
from ...models import CheckIn, CheckInLog, Client, StaffUser
from ...realtime import publish
from ...shared.billing import PAYMENT_METHODS, percentage_of, round_money, utcnow
from ..clients.repository import ClientRepository
from ..clients.service import membership_badge, ticket_badge
from ..memberships.repository import MembershipRepository
from ..orders.repository import BILLABLE_STATUSES, UNFINISHED_STATUSES, OrderRepository
from ..orders.service import OrderService, receipt_line, serialize_order
from ..receipts.repository import ReceiptRepository
from ..receipts.service import serialize_receipt
from ..tickets.repository import TicketRepository
from ..tickets.service import TicketService, ticket_receipt_line
from .repository import CheckInRepository

logger = logging.getLogger(__name__)

INVALID_BARCODE = "Invalid barcode. Please try again."


class CheckInService:
    """Service layer for check-in and checkout"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = CheckInRepository()
        self.orders = OrderService(db)

    def _get_client_for_update(self, client_id: int) -> Client:
        client = ClientRepository.get_client_for_update(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        if not client.is_active:
            raise HTTPException(status_code=409, detail="This client account is disabled")
        return client

    def _log(self, client_id: int, action: str, staff: Optional[StaffUser], barcode=None, notes=None, now=None):
        self.repo.add(
            self.db,
            CheckInLog(
                client_id=client_id,
                action=action,
                scanned_barcode=barcode,
                scanned_by=staff.id if staff else None,
                notes=notes,
                timestamp=now or utcnow(),
            ),
        )

    def _close_open_check_ins(self, client_id: int, now: datetime) -> Optional[CheckIn]:
        """Close every open check-in of the client, returning the earliest"""
        open_check_ins = self.repo.get_open_check_ins(self.db, client_id)
        for check_in in open_check_ins:
            check_in.status = "checked_out"
            check_in.checked_out_at = now
        return open_check_ins[0] if open_check_ins else None

    # ============================================================================
    # CHECK-IN
    # ============================================================================

    def scan(self, barcode: str, payment_method: str, staff: StaffUser) -> dict:
        """Barcode scan at the door: checks the client in, or out when already in"""
        code = (barcode or "").strip()
        client = ClientRepository.get_client_by_code(self.db, code) if code else None
        if not client:
            logger.warning(f"⚠️ Unknown barcode scanned: {code!r}")
            raise HTTPException(status_code=404, detail=INVALID_BARCODE)

        if client.active:
            return {"action": "checked_out", "checkout": self.checkout(client.id, payment_method, False, staff, code)}
        return {"action": "checked_in", "check_in": self.check_in(client.id, staff, barcode=code)}

    def check_in(
        self,
        client_id: int,
        staff: Optional[StaffUser],
        ticket_id: Optional[int] = None,
        ticket_payment_method: str = "pending",
        barcode: Optional[str] = None,
    ) -> dict:
        ticket = TicketService(self.db).get_ticket(ticket_id) if ticket_id is not None else None

        with atomic(self.db):
            client = self._get_client_for_update(client_id)
            if client.active:
                raise HTTPException(status_code=409, detail="Client is already checked in.")

            now = utcnow()
            # leftovers from a session that was never checked out properly
            lingering = self._close_open_check_ins(client.id, now)
            leftovers = OrderRepository.get_unbilled(self.db, client.id, UNFINISHED_STATUSES, lock=True)
            cancelled = self.orders.cancel_items(leftovers)
            if lingering or cancelled:
                logger.info(
                    f"🧹 Cleaned up previous session of {client.client_code}: "
                    f"{cancelled} order(s) cancelled"
                )

            client.active = True
            check_in = self.repo.add(
                self.db,
                CheckIn(client_id=client.id, staff_id=staff.id if staff else None, checked_in_at=now),
            )
            client_ticket = None
            if ticket is not None:
                client_ticket = TicketService(self.db).issue(client, ticket, ticket_payment_method, staff)
            self._log(client.id, "checked_in", staff, barcode=barcode, now=now)

        logger.info(f"✅ {client.full_name} ({client.client_code}) checked in")
        publish("clients", "checked_in", {"client_id": client.id})
        if cancelled:
            publish("orders", "cancelled", {"client_id": client.id, "count": cancelled})
        if client_ticket is not None:
            publish("tickets", "assigned", {"client_id": client.id, "client_ticket_id": client_ticket.id})
            if client_ticket.receipt_id:
                invalidate_finance_cache()
                publish("receipts", "created", {"receipt_id": client_ticket.receipt_id, "client_id": client.id})
        return {
            "action": "checked_in",
            "client": client,
            "check_in_id": check_in.id,
            "checked_in_at": check_in.checked_in_at,
            "cancelled_orders": cancelled,
            "ticket_id": client_ticket.id if client_ticket else None,
        }

    # ============================================================================
    # CHECKOUT
    # ============================================================================

    def _bill(self, client: Client, now: datetime, lock: bool) -> dict:
        """What checkout would charge right now"""
        items = OrderRepository.get_unbilled(self.db, client.id, BILLABLE_STATUSES, lock=lock)
        tickets = TicketRepository.get_unpaid_tickets(self.db, client.id)
        membership = MembershipRepository.get_active_membership(self.db, client.id, now)

        item_lines = [receipt_line(item) for item in items]
        ticket_lines = [ticket_receipt_line(ticket) for ticket in tickets]
        product_subtotal = round_money(sum(line["total"] for line in item_lines))
        subtotal = round_money(product_subtotal + sum(line["total"] for line in ticket_lines))
        # membership discounts apply to cafe products, not tickets
        discount = percentage_of(product_subtotal, membership.discount_percentage) if membership else 0.0
        return {
            "items": items,
            "tickets": tickets,
            "membership": membership,
            "item_lines": item_lines,
            "ticket_lines": ticket_lines,
            "product_subtotal": product_subtotal,
            "subtotal": subtotal,
            "discount": discount,
            "total": round_money(subtotal - discount),
        }

    def checkout_preview(self, client_id: int) -> dict:
        client = ClientRepository.get_client_by_id(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")

        now = utcnow()
        bill = self._bill(client, now, lock=False)
        pending = OrderRepository.get_unbilled(self.db, client.id, UNFINISHED_STATUSES)
        open_check_in = ClientRepository.get_open_check_in(self.db, client.id)
        return {
            "client": client,
            "checked_in_at": open_check_in.checked_in_at if open_check_in else None,
            "pending_orders": [serialize_order(item, now) for item in pending],
            "line_items": bill["item_lines"],
            "tickets": bill["ticket_lines"],
            "membership": membership_badge(bill["membership"]),
            "product_subtotal": bill["product_subtotal"],
            "subtotal": bill["subtotal"],
            "discount": bill["discount"],
            "total": bill["total"],
            "can_checkout": bool(client.active) and not pending,
        }

    def checkout(
        self,
        client_id: int,
        payment_method: str,
        force: bool,
        staff: Optional[StaffUser],
        barcode: Optional[str] = None,
    ) -> dict:
        """
        Bill the session and check the client out in one transaction.

        Billable: unbilled ready/served/completed items plus unpaid tickets.
        total = subtotal - membership discount on products. No receipt is
        written when nothing is billable.
        """
        if payment_method not in PAYMENT_METHODS:
            raise HTTPException(
                status_code=400,
                detail=f"payment_method must be one of {', '.join(PAYMENT_METHODS)}",
            )

        with atomic(self.db):
            client = self._get_client_for_update(client_id)
            if not client.active:
                raise HTTPException(status_code=409, detail="Client is already checked out.")

            unfinished = OrderRepository.get_unbilled(self.db, client.id, UNFINISHED_STATUSES, lock=True)
            if unfinished and not force:
                raise HTTPException(
                    status_code=409,
                    detail=f"Client has {len(unfinished)} order(s) still pending or in preparation. "
                    "Serve or cancel them before checkout.",
                )
            cancelled = self.orders.cancel_items(unfinished) if unfinished else 0

            now = utcnow()
            bill = self._bill(client, now, lock=True)

            receipt = None
            if bill["items"] or bill["tickets"]:
                receipt = ReceiptRepository.create_receipt(
                    self.db,
                    client_id=client.id,
                    staff_id=staff.id if staff else None,
                    transaction_type="session",
                    line_items=bill["item_lines"] + bill["ticket_lines"],
                    amount=bill["subtotal"],
                    discount_amount=bill["discount"],
                    total_amount=bill["total"],
                    payment_method=payment_method,
                    status="closed",
                    receipt_date=now,
                )
                for item in bill["items"]:
                    item.status = "completed"
                    item.receipt_id = receipt.id
                    item.updated_at = now
                for ticket in bill["tickets"]:
                    ticket.is_paid = True
                    ticket.payment_method = payment_method
                    ticket.receipt_id = receipt.id
                if bill["membership"] and bill["discount"]:
                    membership = bill["membership"]
                    membership.total_savings = round_money(membership.total_savings + bill["discount"])

            first_open = self._close_open_check_ins(client.id, now)
            client.active = False
            notes = f"Receipt {receipt.receipt_number}" if receipt else "Nothing to bill"
            self._log(client.id, "checked_out", staff, barcode=barcode, notes=notes, now=now)

        duration = None
        if first_open:
            duration = int((now - first_open.checked_in_at).total_seconds() // 60)

        logger.info(
            f"👋 {client.full_name} ({client.client_code}) checked out"
            + (f", billed {receipt.total_amount} on {receipt.receipt_number}" if receipt else "")
        )
        publish("clients", "checked_out", {"client_id": client.id})
        publish("orders", "settled", {"client_id": client.id, "cancelled": cancelled})
        if receipt:
            invalidate_finance_cache()
            publish("receipts", "created", {"receipt_id": receipt.id, "client_id": client.id})
        return {
            "action": "checked_out",
            "client": client,
            "receipt": serialize_receipt(receipt) if receipt else None,
            "cancelled_orders": cancelled,
            "duration_minutes": duration,
        }

    # ============================================================================
    # RECEPTION VIEWS
    # ============================================================================

    def active_sessions(self) -> list[dict]:
        now = utcnow()
        sessions = []
        for client in self.repo.get_checked_in_clients(self.db):
            open_check_in = ClientRepository.get_open_check_in(self.db, client.id)
            elapsed = None
            if open_check_in:
                elapsed = max(0, int((now - open_check_in.checked_in_at).total_seconds() // 60))
            sessions.append(
                {
                    "client": client,
                    "checked_in_at": open_check_in.checked_in_at if open_check_in else None,
                    "elapsed_minutes": elapsed,
                    "open_orders": OrderRepository.count_open(self.db, client.id),
                    "membership": membership_badge(
                        MembershipRepository.get_active_membership(self.db, client.id, now)
                    ),
                    "ticket": ticket_badge(TicketRepository.get_active_ticket(self.db, client.id, now), now),
                }
            )
        return sessions

    def logs(self, client_id: Optional[int] = None, limit: int = 100) -> list[CheckInLog]:
        return self.repo.get_logs(self.db, client_id, limit)

    # ============================================================================
    # AUTOMATION
    # ============================================================================

    def close_stale_sessions(self, max_hours: int = STALE_SESSION_HOURS) -> int:
        """Check out clients whose session has been open too long; nothing is billed"""
        now = utcnow()
        cutoff = now - timedelta(hours=max_hours)
        closed_clients = []

        with atomic(self.db):
            for check_in in self.repo.get_stale_check_ins(self.db, cutoff):
                check_in.status = "checked_out"
                check_in.checked_out_at = now
                client = ClientRepository.get_client_for_update(self.db, check_in.client_id)
                if client and client.active:
                    client.active = False
                    closed_clients.append(client.id)
                self._log(
                    check_in.client_id,
                    "auto_checked_out",
                    None,
                    notes=f"Session open longer than {max_hours}h closed automatically",
                    now=now,
                )

        for client_id in closed_clients:
            publish("clients", "auto_checked_out", {"client_id": client_id})
        if closed_clients:
            logger.info(f"⏰ Closed {len(closed_clients)} stale session(s) older than {max_hours}h")
        return len(closed_clients)
