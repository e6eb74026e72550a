"""Front desk check-in, checkout billing and session automation."""

from datetime import timedelta

import pytest
from fastapi import HTTPException

from spotin.domain.checkins.service import INVALID_BARCODE, CheckInService
from spotin.domain.memberships.schemas import MembershipAssign, PlanCreate
from spotin.domain.memberships.service import MembershipService
from spotin.domain.orders.schemas import OrderItemIn
from spotin.domain.orders.service import OrderService
from spotin.domain.tickets.schemas import TicketCreate
from spotin.domain.tickets.service import TicketService
from spotin.models import CheckIn, CheckInLog, Receipt, SessionLineItem, StockItem


@pytest.fixture
def latte(make_stock, make_product):
    milk = make_stock("Milk", quantity=1000)
    product = make_product("Latte", price=40.0, recipe={milk["id"]: 200})
    return product, milk


def serve(db, order_ids):
    orders = OrderService(db)
    for order_id in order_ids:
        for status in ("preparing", "ready"):
            orders.update_status(order_id, status)


class TestCheckIn:
    """Tests for check-in"""

    def test_check_in_marks_member_active(self, db, admin, make_member):
        """Given a member who is out, check-in opens a session and logs it."""
        member = make_member()
        result = CheckInService(db).check_in(member.id, admin)
        assert result["action"] == "checked_in"
        db.refresh(member)
        assert member.active is True
        assert db.query(CheckIn).filter(CheckIn.client_id == member.id, CheckIn.status == "checked_in").count() == 1
        assert db.query(CheckInLog).filter(CheckInLog.action == "checked_in").count() == 1

    def test_double_check_in(self, db, admin, make_member, checked_in):
        """Given a member already in, returns 409."""
        member = checked_in(make_member())
        with pytest.raises(HTTPException) as exc:
            CheckInService(db).check_in(member.id, admin)
        assert exc.value.status_code == 409
        assert exc.value.detail == "Client is already checked in."

    def test_check_in_with_day_ticket(self, db, admin, make_member):
        """A ticket can be assigned at the door and is billed at checkout when pending."""
        ticket = TicketService(db).create_ticket(TicketCreate(name="Day Pass", price=100))
        member = make_member()
        result = CheckInService(db).check_in(member.id, admin, ticket_id=ticket.id)
        assert result["ticket_id"] is not None

        checkout = CheckInService(db).checkout(member.id, "card", False, admin)
        receipt = checkout["receipt"]
        assert receipt["transaction_type"] == "session"
        assert receipt["total_amount"] == 100
        assert [line["kind"] for line in receipt["line_items"]] == ["ticket"]


class TestCheckout:
    """Tests for checkout billing"""

    def test_checkout_bills_served_orders(self, db, admin, make_member, checked_in, latte):
        """Ready orders are billed on one session receipt and completed."""
        product, _ = latte
        member = checked_in(make_member())
        placed = OrderService(db).place_order(member.id, [OrderItemIn(product_id=product["id"], quantity=2)], admin)
        serve(db, [o["id"] for o in placed])

        result = CheckInService(db).checkout(member.id, "cash", False, admin)

        receipt = result["receipt"]
        assert receipt["amount"] == 80
        assert receipt["discount_amount"] == 0
        assert receipt["total_amount"] == 80
        assert receipt["payment_method"] == "cash"
        item = db.get(SessionLineItem, placed[0]["id"])
        assert item.status == "completed"
        assert item.receipt_id == receipt["id"]
        db.refresh(member)
        assert member.active is False
        assert result["duration_minutes"] == 0

    def test_pending_orders_block_checkout(self, db, admin, make_member, checked_in, latte):
        """Orders still pending or preparing block a normal checkout."""
        product, _ = latte
        member = checked_in(make_member())
        OrderService(db).place_order(member.id, [OrderItemIn(product_id=product["id"])], admin)

        with pytest.raises(HTTPException) as exc:
            CheckInService(db).checkout(member.id, "cash", False, admin)
        assert exc.value.status_code == 409
        db.refresh(member)
        assert member.active is True

    def test_force_checkout_cancels_and_restocks(self, db, admin, make_member, checked_in, latte):
        """Forcing checkout cancels unfinished orders, returns stock and bills nothing."""
        product, milk = latte
        member = checked_in(make_member())
        placed = OrderService(db).place_order(member.id, [OrderItemIn(product_id=product["id"])], admin)
        assert db.get(StockItem, milk["id"]).current_quantity == 800

        result = CheckInService(db).checkout(member.id, "cash", True, admin)

        assert result["receipt"] is None
        assert result["cancelled_orders"] == 1
        assert db.get(SessionLineItem, placed[0]["id"]).status == "cancelled"
        assert db.get(StockItem, milk["id"]).current_quantity == 1000
        assert db.query(Receipt).count() == 0

    def test_membership_discount_applies_to_products_only(self, db, admin, make_member, checked_in, latte):
        """A 10% member pays 10% less on drinks but full price on the day ticket."""
        product, _ = latte
        memberships = MembershipService(db)
        plan = memberships.create_plan(PlanCreate(plan_name="Community", discount_percentage=10))
        member = make_member()
        memberships.assign(MembershipAssign(client_id=member.id, plan_id=plan.id), admin)
        ticket = TicketService(db).create_ticket(TicketCreate(name="Day Pass", price=50))
        CheckInService(db).check_in(member.id, admin, ticket_id=ticket.id)
        placed = OrderService(db).place_order(member.id, [OrderItemIn(product_id=product["id"], quantity=2)], admin)
        serve(db, [o["id"] for o in placed])

        preview = CheckInService(db).checkout_preview(member.id)
        assert preview["product_subtotal"] == 80
        assert preview["subtotal"] == 130
        assert preview["discount"] == 8
        assert preview["total"] == 122
        assert preview["can_checkout"] is True

        receipt = CheckInService(db).checkout(member.id, "mobile", False, admin)["receipt"]
        assert receipt["total_amount"] == 122
        assert memberships.get_active_membership(member.id)["total_savings"] == 8

    def test_checkout_when_not_checked_in(self, db, admin, make_member):
        """Given a member who is out, returns 409."""
        member = make_member()
        with pytest.raises(HTTPException) as exc:
            CheckInService(db).checkout(member.id, "cash", False, admin)
        assert exc.value.status_code == 409

    def test_invalid_payment_method(self, db, admin, make_member, checked_in):
        """Given an unknown payment method, returns 400."""
        member = checked_in(make_member())
        with pytest.raises(HTTPException) as exc:
            CheckInService(db).checkout(member.id, "bitcoin", False, admin)
        assert exc.value.status_code == 400


class TestScan:
    """Tests for POST /checkins/scan"""

    def test_scan_toggles(self, api, headers_for, make_member):
        """The first scan checks in, the second checks out."""
        member = make_member()
        headers = headers_for("receptionist")

        first = api.post("/checkins/scan", headers=headers, json={"barcode": member.barcode.lower()})
        assert first.status_code == 200
        assert first.json()["action"] == "checked_in"

        second = api.post("/checkins/scan", headers=headers, json={"barcode": member.barcode})
        assert second.status_code == 200
        body = second.json()
        assert body["action"] == "checked_out"
        assert body["checkout"]["receipt"] is None

    def test_unknown_barcode(self, api, headers_for):
        """Given a barcode nobody has, returns 404 with the retry message."""
        response = api.post("/checkins/scan", headers=headers_for("receptionist"), json={"barcode": "BC00000000"})
        assert response.status_code == 404
        assert response.json()["detail"] == INVALID_BARCODE

    def test_active_sessions(self, api, headers_for, make_member, checked_in):
        """Checked-in members appear on the reception board."""
        member = checked_in(make_member())
        make_member()
        response = api.get("/checkins/active", headers=headers_for("receptionist"))
        assert response.status_code == 200
        assert [s["client"]["id"] for s in response.json()] == [member.id]


class TestSessionCleanup:
    """Stale sessions and leftovers"""

    def test_stale_session_closed_without_receipt(self, db, make_member, checked_in):
        """Sessions open past the limit are closed and logged; nothing is billed."""
        member = checked_in(make_member())
        check_in = db.query(CheckIn).filter(CheckIn.client_id == member.id).one()
        check_in.checked_in_at = check_in.checked_in_at - timedelta(hours=20)
        db.commit()

        closed = CheckInService(db).close_stale_sessions(max_hours=16)

        assert closed == 1
        db.refresh(member)
        assert member.active is False
        assert db.query(CheckInLog).filter(CheckInLog.action == "auto_checked_out").count() == 1
        assert db.query(Receipt).count() == 0

    def test_next_check_in_cancels_leftover_orders(self, db, admin, make_member, checked_in, latte):
        """Orders left pending by an auto-closed session are cancelled and restocked on return."""
        product, milk = latte
        member = checked_in(make_member())
        placed = OrderService(db).place_order(member.id, [OrderItemIn(product_id=product["id"])], admin)
        check_in = db.query(CheckIn).filter(CheckIn.client_id == member.id).one()
        check_in.checked_in_at = check_in.checked_in_at - timedelta(hours=20)
        db.commit()
        CheckInService(db).close_stale_sessions(max_hours=16)

        result = CheckInService(db).check_in(member.id, admin)

        assert result["cancelled_orders"] == 1
        assert db.get(SessionLineItem, placed[0]["id"]).status == "cancelled"
        assert db.get(StockItem, milk["id"]).current_quantity == 1000
