"""Day-use tickets and the free drink perk."""

import pytest
from fastapi import HTTPException

from spotin.domain.orders.service import OrderService
from spotin.domain.tickets.schemas import TicketAssign, TicketCreate
from spotin.domain.tickets.service import TicketService
from spotin.models import ClientTicket, Receipt, SessionLineItem, StockItem


@pytest.fixture
def drinks(make_stock, make_product):
    milk = make_stock("Milk", quantity=500, unit="ml", min_quantity=100)
    latte = make_product("Latte", price=40.0, recipe={milk["id"]: 200})
    cookie = make_product("Cookie", price=15.0, category="snacks")
    return {"milk": milk, "latte": latte, "cookie": cookie}


@pytest.fixture
def day_pass(db):
    return TicketService(db).create_ticket(TicketCreate(name="Day Pass + Coffee", price=120, includes_free_drink=True))


class TestAssignTicket:
    """Tests for POST /tickets/assign"""

    def test_pending_ticket_has_no_receipt(self, api, headers_for, make_member, day_pass):
        """A pending ticket is left for checkout to bill."""
        member = make_member()
        response = api.post(
            "/tickets/assign",
            headers=headers_for("receptionist"),
            json={"client_id": member.id, "ticket_id": day_pass.id},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["payment_method"] == "pending"
        assert body["is_paid"] is False
        assert body["receipt_id"] is None
        assert 23 <= body["hours_remaining"] <= 24

    def test_paid_ticket_writes_receipt(self, db, admin, make_member, day_pass):
        """Paying up front writes a day_use_ticket receipt."""
        issued = TicketService(db).assign(
            TicketAssign(client_id=make_member().id, ticket_id=day_pass.id, payment_method="cash"), admin
        )
        assert issued["is_paid"] is True
        receipt = db.get(Receipt, issued["receipt_id"])
        assert receipt.transaction_type == "day_use_ticket"
        assert receipt.total_amount == 120

    def test_second_active_ticket(self, db, admin, make_member, day_pass):
        """Given a member with a running ticket, returns 409."""
        tickets = TicketService(db)
        member = make_member()
        tickets.assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)
        with pytest.raises(HTTPException) as exc:
            tickets.assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)
        assert exc.value.status_code == 409

    def test_invalid_payment_method(self, db, admin, make_member, day_pass):
        """Given an unknown payment method, returns 400."""
        with pytest.raises(HTTPException) as exc:
            TicketService(db).assign(
                TicketAssign(client_id=make_member().id, ticket_id=day_pass.id, payment_method="coupon"), admin
            )
        assert exc.value.status_code == 400


class TestFreeDrink:
    """Tests for POST /tickets/free-drink"""

    def test_claim_creates_free_order(self, api, headers_for, db, admin, make_member, day_pass, drinks):
        """The claim queues a zero-priced order and consumes its ingredients."""
        member = make_member()
        issued = TicketService(db).assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)

        response = api.post(
            "/tickets/free-drink",
            headers=headers_for("receptionist"),
            json={"client_id": member.id, "client_ticket_id": issued["id"], "product_id": drinks["latte"]["id"]},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["drink_name"] == "Latte"
        assert body["ticket"]["free_drink_claimed"] is True
        order = db.get(SessionLineItem, body["order_id"])
        assert order.price == 0
        assert order.status == "pending"
        assert db.get(StockItem, drinks["milk"]["id"]).current_quantity == 300

    def test_second_claim(self, db, admin, make_member, day_pass, drinks):
        """One free drink per ticket."""
        tickets = TicketService(db)
        member = make_member()
        issued = tickets.assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)
        tickets.claim_free_drink(member.id, issued["id"], drinks["latte"]["id"])
        with pytest.raises(HTTPException) as exc:
            tickets.claim_free_drink(member.id, issued["id"], drinks["latte"]["id"])
        assert exc.value.status_code == 409

    def test_food_is_not_a_drink(self, db, admin, make_member, day_pass, drinks):
        """Given a snack, returns 400."""
        tickets = TicketService(db)
        member = make_member()
        issued = tickets.assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)
        with pytest.raises(HTTPException) as exc:
            tickets.claim_free_drink(member.id, issued["id"], drinks["cookie"]["id"])
        assert exc.value.status_code == 400

    def test_ticket_without_free_drink(self, db, admin, make_member, drinks):
        """Given a plain ticket, returns 400."""
        tickets = TicketService(db)
        plain = tickets.create_ticket(TicketCreate(name="Half Day", price=60))
        member = make_member()
        issued = tickets.assign(TicketAssign(client_id=member.id, ticket_id=plain.id), admin)
        with pytest.raises(HTTPException) as exc:
            tickets.claim_free_drink(member.id, issued["id"], drinks["latte"]["id"])
        assert exc.value.status_code == 400

    def test_other_members_ticket(self, db, admin, make_member, day_pass, drinks):
        """A ticket can only be redeemed by its owner."""
        tickets = TicketService(db)
        owner, other = make_member(), make_member()
        issued = tickets.assign(TicketAssign(client_id=owner.id, ticket_id=day_pass.id), admin)
        with pytest.raises(HTTPException) as exc:
            tickets.claim_free_drink(other.id, issued["id"], drinks["latte"]["id"])
        assert exc.value.status_code == 404

    def test_cancelled_free_drink_can_be_claimed_again(self, db, admin, make_member, day_pass, drinks):
        """Cancelling the free drink order gives the claim back and returns the ingredients."""
        tickets = TicketService(db)
        member = make_member()
        issued = tickets.assign(TicketAssign(client_id=member.id, ticket_id=day_pass.id), admin)
        claimed = tickets.claim_free_drink(member.id, issued["id"], drinks["latte"]["id"])

        OrderService(db).cancel_order(claimed["order_id"])

        ticket = db.get(ClientTicket, issued["id"])
        assert ticket.free_drink_claimed is False
        assert ticket.free_drink_claimed_at is None
        assert ticket.claimed_drink_name is None
        assert db.get(StockItem, drinks["milk"]["id"]).current_quantity == 500

        again = tickets.claim_free_drink(member.id, issued["id"], drinks["latte"]["id"])
        assert again["ticket"]["free_drink_claimed"] is True
        assert again["order_id"] != claimed["order_id"]
