"""Session orders, the barista queue and counter sales."""

import pytest
from fastapi import HTTPException

from spotin.domain.memberships.schemas import MembershipAssign, PlanCreate
from spotin.domain.memberships.service import MembershipService
from spotin.domain.orders.schemas import DirectSaleRequest, OrderItemIn
from spotin.domain.orders.service import OrderService
from spotin.domain.stock.schemas import ProductUpdate
from spotin.domain.stock.service import StockService
from spotin.models import Receipt, StockItem


@pytest.fixture
def menu(make_stock, make_product):
    beans = make_stock("Coffee beans", quantity=100, unit="g", min_quantity=20)
    milk = make_stock("Milk", quantity=300, unit="ml", min_quantity=100)
    espresso = make_product("Espresso", price=25.0, recipe={beans["id"]: 18})
    latte = make_product("Latte", price=40.0, recipe={beans["id"]: 18, milk["id"]: 200})
    return {"beans": beans, "milk": milk, "espresso": espresso, "latte": latte}


class TestPlaceOrder:
    """Tests for POST /orders"""

    def test_order_deducts_stock(self, db, admin, make_member, checked_in, menu):
        """Placing an order deducts each ingredient of the recipe."""
        member = checked_in(make_member())
        orders = OrderService(db).place_order(
            member.id,
            [OrderItemIn(product_id=menu["latte"]["id"]), OrderItemIn(product_id=menu["espresso"]["id"], quantity=2)],
            admin,
        )
        assert [o["status"] for o in orders] == ["pending", "pending"]
        assert orders[1]["total"] == 50
        assert db.get(StockItem, menu["beans"]["id"]).current_quantity == 46
        assert db.get(StockItem, menu["milk"]["id"]).current_quantity == 100

    def test_short_stock_rejects_whole_order(self, db, admin, make_member, checked_in, menu):
        """If any ingredient falls short nothing is deducted and 409 names it."""
        member = checked_in(make_member())
        with pytest.raises(HTTPException) as exc:
            OrderService(db).place_order(
                member.id,
                [OrderItemIn(product_id=menu["espresso"]["id"]), OrderItemIn(product_id=menu["latte"]["id"], quantity=2)],
                admin,
            )
        assert exc.value.status_code == 409
        assert "Milk" in exc.value.detail
        assert db.get(StockItem, menu["beans"]["id"]).current_quantity == 100
        assert db.get(StockItem, menu["milk"]["id"]).current_quantity == 300

    def test_member_must_be_checked_in(self, db, admin, make_member, menu):
        """Given a member who is out, returns 409."""
        member = make_member()
        with pytest.raises(HTTPException) as exc:
            OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["espresso"]["id"])], admin)
        assert exc.value.status_code == 409
        assert exc.value.detail == "Client must be checked in to order"

    def test_unavailable_product(self, db, admin, make_member, checked_in, menu):
        """Products switched off on the menu cannot be ordered."""
        StockService(db).update_product(menu["espresso"]["id"], ProductUpdate(is_available=False))
        member = checked_in(make_member())
        with pytest.raises(HTTPException) as exc:
            OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["espresso"]["id"])], admin)
        assert exc.value.status_code == 409

    def test_portal_order(self, api, make_member, checked_in, member_headers, menu):
        """A checked-in member can order from their seat."""
        member = checked_in(make_member())
        response = api.post(
            "/portal/orders",
            headers=member_headers(member),
            json={"items": [{"product_id": menu["espresso"]["id"], "quantity": 1, "notes": "no sugar"}]},
        )
        assert response.status_code == 201
        assert response.json()[0]["notes"] == "no sugar"

        mine = api.get("/portal/orders", headers=member_headers(member))
        assert [o["item_name"] for o in mine.json()] == ["Espresso"]


class TestOrderStatus:
    """Tests for PATCH /orders/{id}/status"""

    def test_queue_flow(self, api, headers_for, db, admin, make_member, checked_in, menu):
        """The barista moves an order through preparing and ready."""
        member = checked_in(make_member())
        order = OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["espresso"]["id"])], admin)[0]
        headers = headers_for("barista")

        queue = api.get("/orders/queue", headers=headers)
        assert [o["id"] for o in queue.json()] == [order["id"]]

        for status in ("preparing", "ready"):
            response = api.patch(f"/orders/{order['id']}/status", headers=headers, json={"status": status})
            assert response.status_code == 200
            assert response.json()["status"] == status

    def test_invalid_transition(self, db, admin, make_member, checked_in, menu):
        """A pending order cannot jump to served."""
        member = checked_in(make_member())
        order = OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["espresso"]["id"])], admin)[0]
        with pytest.raises(HTTPException) as exc:
            OrderService(db).update_status(order["id"], "served")
        assert exc.value.status_code == 409

    def test_unknown_status(self, db, admin, make_member, checked_in, menu):
        """Given a status that does not exist, returns 400."""
        member = checked_in(make_member())
        order = OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["espresso"]["id"])], admin)[0]
        with pytest.raises(HTTPException) as exc:
            OrderService(db).update_status(order["id"], "lost")
        assert exc.value.status_code == 400

    def test_cancel_restocks(self, db, admin, make_member, checked_in, menu):
        """Cancelling an unbilled order returns its ingredients."""
        member = checked_in(make_member())
        order = OrderService(db).place_order(member.id, [OrderItemIn(product_id=menu["latte"]["id"])], admin)[0]
        result = OrderService(db).cancel_order(order["id"])
        assert result["status"] == "cancelled"
        assert db.get(StockItem, menu["beans"]["id"]).current_quantity == 100
        assert db.get(StockItem, menu["milk"]["id"]).current_quantity == 300

    def test_billed_order_is_frozen(self, db, admin, menu):
        """Once an order is on a receipt its status cannot change."""
        sale = OrderService(db).direct_sale(
            DirectSaleRequest(items=[OrderItemIn(product_id=menu["espresso"]["id"])], payment_method="cash"), admin
        )
        with pytest.raises(HTTPException) as exc:
            OrderService(db).update_status(sale["items"][0]["id"], "cancelled")
        assert exc.value.status_code == 409
        assert exc.value.detail == "Billed orders cannot be changed"


class TestDirectSale:
    """Tests for POST /orders/direct-sale"""

    def test_walk_in_sale(self, api, headers_for, db, menu):
        """A counter sale writes an order receipt right away."""
        response = api.post(
            "/orders/direct-sale",
            headers=headers_for("barista"),
            json={"items": [{"product_id": menu["espresso"]["id"], "quantity": 2}], "payment_method": "card"},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["total_amount"] == 50
        assert body["items"][0]["status"] == "completed"
        receipt = db.get(Receipt, body["receipt_id"])
        assert receipt.transaction_type == "order"
        assert receipt.client_id is None

    def test_member_sale_gets_discount(self, db, admin, make_member, menu):
        """A member buying at the counter gets their membership discount."""
        memberships = MembershipService(db)
        plan = memberships.create_plan(PlanCreate(plan_name="Resident", discount_percentage=20))
        member = make_member()
        memberships.assign(MembershipAssign(client_id=member.id, plan_id=plan.id), admin)

        sale = OrderService(db).direct_sale(
            DirectSaleRequest(
                items=[OrderItemIn(product_id=menu["latte"]["id"])], payment_method="cash", client_id=member.id
            ),
            admin,
        )
        assert sale["amount"] == 40
        assert sale["discount_amount"] == 8
        assert sale["total_amount"] == 32
        assert memberships.get_active_membership(member.id)["total_savings"] == 8

    def test_invalid_payment_method(self, db, admin, menu):
        """Given an unknown payment method, returns 400."""
        with pytest.raises(HTTPException) as exc:
            OrderService(db).direct_sale(
                DirectSaleRequest(items=[OrderItemIn(product_id=menu["espresso"]["id"])], payment_method="iou"), admin
            )
        assert exc.value.status_code == 400
