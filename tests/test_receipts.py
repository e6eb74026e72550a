"""Receipt cancellation and what it reverses."""

from datetime import date, timedelta

import pytest
from fastapi import HTTPException

from spotin.domain.events.schemas import EventCreate, RegistrationCreate
from spotin.domain.events.service import EventService
from spotin.domain.memberships.schemas import MembershipAssign, PlanCreate
from spotin.domain.memberships.service import MembershipService
from spotin.domain.orders.schemas import DirectSaleRequest, OrderItemIn
from spotin.domain.orders.service import OrderService
from spotin.domain.receipts.schemas import ReceiptCancelRequest
from spotin.domain.receipts.service import ReceiptService
from spotin.domain.tickets.schemas import TicketAssign, TicketCreate
from spotin.domain.tickets.service import TicketService
from spotin.models import ClientTicket, Event, EventRegistration, SessionLineItem, StockItem
from spotin.shared.billing import utcnow


@pytest.fixture
def espresso_sale(db, admin, make_stock, make_product):
    beans = make_stock("Coffee beans", quantity=100, unit="g", min_quantity=20)
    espresso = make_product("Espresso", price=25.0, recipe={beans["id"]: 18})
    sale = OrderService(db).direct_sale(
        DirectSaleRequest(items=[OrderItemIn(product_id=espresso["id"], quantity=2)], payment_method="cash"), admin
    )
    return sale, beans


class TestCancelReceipt:
    """Tests for POST /receipts/{id}/cancel"""

    def test_cancel_with_restock(self, api, headers_for, db, espresso_sale):
        """Cancelling returns ingredients and cancels the billed items."""
        sale, beans = espresso_sale
        assert db.get(StockItem, beans["id"]).current_quantity == 64

        response = api.post(
            f"/receipts/{sale['receipt_id']}/cancel",
            headers=headers_for("finance"),
            json={"reason": "Wrong order", "restock": True},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["cancellation_reason"] == "Wrong order"
        assert db.get(StockItem, beans["id"]).current_quantity == 100
        assert db.get(SessionLineItem, sale["items"][0]["id"]).status == "cancelled"

    def test_cancel_without_restock(self, db, admin, espresso_sale):
        """Spilled drinks stay out of stock."""
        sale, beans = espresso_sale
        ReceiptService(db).cancel_receipt(sale["receipt_id"], ReceiptCancelRequest(reason="Spilled", restock=False), admin)
        assert db.get(StockItem, beans["id"]).current_quantity == 64

    def test_cancel_twice(self, db, admin, espresso_sale):
        """A cancelled receipt cannot be cancelled again."""
        sale, _ = espresso_sale
        service = ReceiptService(db)
        service.cancel_receipt(sale["receipt_id"], ReceiptCancelRequest(reason="Refund"), admin)
        with pytest.raises(HTTPException) as exc:
            service.cancel_receipt(sale["receipt_id"], ReceiptCancelRequest(reason="Refund"), admin)
        assert exc.value.status_code == 409

    def test_reason_required(self, db, admin, espresso_sale):
        """Given a blank reason, returns 400."""
        sale, _ = espresso_sale
        with pytest.raises(HTTPException) as exc:
            ReceiptService(db).cancel_receipt(sale["receipt_id"], ReceiptCancelRequest(reason="   "), admin)
        assert exc.value.status_code == 400

    def test_barista_cannot_cancel(self, api, headers_for, espresso_sale):
        """Refunds are limited to management, operations, finance and reception."""
        sale, _ = espresso_sale
        response = api.post(
            f"/receipts/{sale['receipt_id']}/cancel", headers=headers_for("barista"), json={"reason": "x"}
        )
        assert response.status_code == 403

    def test_cancellation_report(self, db, admin, espresso_sale):
        """Cancelled receipts are grouped by reason."""
        sale, _ = espresso_sale
        ReceiptService(db).cancel_receipt(sale["receipt_id"], ReceiptCancelRequest(reason="Wrong order"), admin)
        report = ReceiptService(db).cancellation_report()
        assert report["count"] == 1
        assert report["total_amount"] == 50
        assert report["by_reason"][0]["reason"] == "Wrong order"


class TestCancelLinkedPurchases:
    """Memberships, tickets and event seats paid on a receipt"""

    def test_membership_receipt_ends_membership(self, db, admin, make_member):
        """Refunding a membership ends it."""
        memberships = MembershipService(db)
        plan = memberships.create_plan(PlanCreate(plan_name="Monthly", price=1500, discount_percentage=10))
        member = make_member()
        membership = memberships.assign(
            MembershipAssign(client_id=member.id, plan_id=plan.id, payment_method="card"), admin
        )

        ReceiptService(db).cancel_receipt(membership["receipt_id"], ReceiptCancelRequest(reason="Changed mind"), admin)

        assert memberships.get_active_membership(member.id) is None

    def test_ticket_receipt_refunds_ticket(self, db, admin, make_member):
        """A refunded ticket expires and is never billed again at checkout."""
        tickets = TicketService(db)
        ticket = tickets.create_ticket(TicketCreate(name="Day Pass", price=100))
        member = make_member()
        issued = tickets.assign(TicketAssign(client_id=member.id, ticket_id=ticket.id, payment_method="cash"), admin)

        ReceiptService(db).cancel_receipt(issued["receipt_id"], ReceiptCancelRequest(reason="Left early"), admin)

        client_ticket = db.get(ClientTicket, issued["id"])
        assert client_ticket.is_paid is False
        assert client_ticket.payment_method == "refunded"
        assert client_ticket.expiry_date <= utcnow()
        assert tickets.active_ticket(member.id) is None

    def test_event_receipt_releases_seat(self, db, admin):
        """Refunding a paid seat cancels the registration and frees the seat."""
        events = EventService(db)
        event = events.create_event(
            EventCreate(title="Founders Breakfast", event_date=date.today() + timedelta(days=3), capacity=10, price=200),
            admin,
        )
        result = events.register(
            event["id"],
            RegistrationCreate(attendee_name="Laila", attendee_email="laila@example.com", payment_method="cash"),
            staff=admin,
        )
        registration = result["registration"]
        assert registration.receipt_id is not None

        ReceiptService(db).cancel_receipt(registration.receipt_id, ReceiptCancelRequest(reason="Cannot attend"), admin)

        assert db.get(EventRegistration, registration.id).status == "cancelled"
        assert db.get(Event, event["id"]).registered_attendees == 0

    def test_refund_takes_back_membership_savings(self, db, admin, make_member, make_stock, make_product):
        """Cancelling a discounted sale removes that discount from the member's savings."""
        milk = make_stock("Milk", quantity=1000)
        latte = make_product("Latte", price=40.0, recipe={milk["id"]: 200})
        memberships = MembershipService(db)
        plan = memberships.create_plan(PlanCreate(plan_name="Community", discount_percentage=10))
        member = make_member()
        memberships.assign(MembershipAssign(client_id=member.id, plan_id=plan.id), admin)
        orders = OrderService(db)
        kept = orders.direct_sale(
            DirectSaleRequest(items=[OrderItemIn(product_id=latte["id"])], payment_method="cash", client_id=member.id),
            admin,
        )
        refunded = orders.direct_sale(
            DirectSaleRequest(
                items=[OrderItemIn(product_id=latte["id"], quantity=2)], payment_method="cash", client_id=member.id
            ),
            admin,
        )
        assert (kept["discount_amount"], refunded["discount_amount"]) == (4, 8)

        ReceiptService(db).cancel_receipt(refunded["receipt_id"], ReceiptCancelRequest(reason="Wrong order"), admin)

        assert memberships.get_active_membership(member.id)["total_savings"] == 4
