"""Bills, profit and loss and reporting."""

import pytest
from fastapi import HTTPException

from spotin.domain.finance.schemas import BillCreate, CategoryCreate, CategoryUpdate, VendorCreate, VendorUpdate
from spotin.domain.finance.service import FinanceService, previous_months, profit_margin
from spotin.domain.orders.schemas import DirectSaleRequest, OrderItemIn
from spotin.domain.orders.service import OrderService
from spotin.domain.receipts.schemas import ReceiptCancelRequest
from spotin.domain.receipts.service import ReceiptService
from spotin.shared.billing import utcnow


@pytest.fixture
def sales(db, admin, make_stock, make_product):
    """Two counter sales: 2 espressos by cash and 1 cookie by card"""
    beans = make_stock("Coffee beans", quantity=500, unit="g", min_quantity=20)
    espresso = make_product("Espresso", price=25.0, recipe={beans["id"]: 18})
    cookie = make_product("Cookie", price=15.0, category="snacks")
    orders = OrderService(db)
    first = orders.direct_sale(
        DirectSaleRequest(items=[OrderItemIn(product_id=espresso["id"], quantity=2)], payment_method="cash"), admin
    )
    second = orders.direct_sale(
        DirectSaleRequest(items=[OrderItemIn(product_id=cookie["id"])], payment_method="card"), admin
    )
    return first, second


class TestBills:
    """Tests for /finance/bills"""

    def test_create_and_pay(self, api, headers_for):
        """A bill starts pending and is paid once."""
        headers = headers_for("finance")
        response = api.post(
            "/finance/bills",
            headers=headers,
            json={"vendor": "Cairo Electricity", "category": "utilities", "amount": 900},
        )
        assert response.status_code == 201
        bill = response.json()
        assert bill["status"] == "pending"

        paid = api.post(f"/finance/bills/{bill['id']}/pay", headers=headers)
        assert paid.status_code == 200
        assert paid.json()["paid_at"] is not None
        assert api.post(f"/finance/bills/{bill['id']}/pay", headers=headers).status_code == 409

    def test_amount_must_be_positive(self, api, headers_for):
        """Given a zero amount, returns 422."""
        response = api.post(
            "/finance/bills",
            headers=headers_for("finance"),
            json={"vendor": "Nobody", "category": "misc", "amount": 0},
        )
        assert response.status_code == 422

    def test_unknown_bill(self, db):
        with pytest.raises(HTTPException) as exc:
            FinanceService(db).mark_bill_paid(404)
        assert exc.value.status_code == 404


class TestReports:
    """Monthly figures, takings and dashboards"""

    def test_monthly_report(self, db, admin, sales):
        """Revenue counts valid receipts; expenses count paid bills only."""
        service = FinanceService(db)
        paid = service.create_bill(BillCreate(vendor="Roastery", category="supplies", amount=20), admin)
        service.mark_bill_paid(paid.id)
        service.create_bill(BillCreate(vendor="Landlord", category="rent", amount=5000), admin)

        report = service.monthly_report(months=3)

        assert len(report) == 3
        current = report[0]
        assert current["month"] == utcnow().strftime("%Y-%m")
        assert current["revenue"] == 65
        assert current["expenses"] == 20
        assert current["profit"] == 45
        assert current["margin"] == 69.2
        assert report[1]["revenue"] == 0

    def test_cancelled_receipts_are_not_revenue(self, db, admin, sales):
        first, _ = sales
        ReceiptService(db).cancel_receipt(first["receipt_id"], ReceiptCancelRequest(reason="Refund"), admin)
        assert FinanceService(db).monthly_report(months=1)[0]["revenue"] == 15

    def test_income_breakdown(self, api, headers_for, sales):
        """Today's takings split by transaction type and payment method."""
        response = api.get("/finance/reports/income", headers=headers_for("finance"))
        assert response.status_code == 200
        body = response.json()
        assert body["receipt_count"] == 2
        assert body["grand_total"] == 65
        assert body["by_type"] == [{"transaction_type": "order", "count": 2, "total": 65}]
        methods = {m["payment_method"]: m["total"] for m in body["by_payment_method"]}
        assert methods == {"card": 15, "cash": 50}

    def test_top_products(self, db, sales):
        """Best sellers are ranked by revenue."""
        top = FinanceService(db).top_products()
        assert [(p["name"], p["quantity"], p["revenue"]) for p in top] == [("Espresso", 2, 50), ("Cookie", 1, 15)]

    def test_traffic(self, db, make_member, checked_in):
        """Visits are counted per hour of day."""
        checked_in(make_member())
        report = FinanceService(db).traffic()
        assert report["total_visits"] == 1
        assert report["unique_clients"] == 1
        assert report["peak_hour"] == utcnow().hour
        assert report["average_session_minutes"] == 0.0

    def test_dashboard(self, api, headers_for, db, admin, make_member, checked_in, sales):
        """The dashboard shows today's takings and what needs attention."""
        checked_in(make_member())
        FinanceService(db).create_bill(BillCreate(vendor="Landlord", category="rent", amount=5000), admin)

        response = api.get("/finance/dashboard", headers=headers_for("marketing"))

        assert response.status_code == 200
        body = response.json()
        assert body["today_revenue"] == 65
        assert body["today_receipts"] == 2
        assert body["checked_in"] == 1
        assert body["pending_bills"] == 1
        assert body["pending_bills_total"] == 5000

    def test_barista_cannot_see_finance(self, api, headers_for):
        assert api.get("/finance/reports/monthly", headers=headers_for("barista")).status_code == 403


class TestHelpers:
    def test_previous_months_cross_year(self):
        """Counting back from February crosses into December."""
        from datetime import datetime

        assert previous_months(datetime(2025, 2, 10), 3) == [(2025, 2), (2025, 1), (2024, 12)]

    def test_margin_without_revenue(self):
        assert profit_margin(0, -100) == 0.0


class TestVendors:
    """Tests for /finance/vendors"""

    def test_create_and_bill_vendor(self, api, headers_for):
        """A bill can point at a vendor on file and takes its name."""
        headers = headers_for("finance")
        created = api.post(
            "/finance/vendors",
            headers=headers,
            json={
                "name": "Fresh Coffee Supplies",
                "contact_email": "Orders@FreshCoffee.com",
                "contact_phone": "+20 100 555 0123",
            },
        )
        assert created.status_code == 201
        vendor = created.json()
        assert vendor["contact_email"] == "orders@freshcoffee.com"
        assert vendor["contact_phone"] == "+201005550123"
        assert vendor["is_active"] is True

        bill = api.post(
            "/finance/bills",
            headers=headers,
            json={"vendor_id": vendor["id"], "category": "supplies", "amount": 1200},
        )
        assert bill.status_code == 201
        assert bill.json()["vendor"] == "Fresh Coffee Supplies"
        assert bill.json()["vendor_id"] == vendor["id"]

    def test_duplicate_name(self, db):
        """Vendor names are unique regardless of case."""
        service = FinanceService(db)
        service.create_vendor(VendorCreate(name="Cairo Electricity"))
        with pytest.raises(HTTPException) as exc:
            service.create_vendor(VendorCreate(name="cairo electricity"))
        assert exc.value.status_code == 409

    def test_inactive_vendor_cannot_be_billed(self, db, admin):
        service = FinanceService(db)
        vendor = service.create_vendor(VendorCreate(name="Old Cleaners"))
        service.update_vendor(vendor.id, VendorUpdate(is_active=False))
        with pytest.raises(HTTPException) as exc:
            service.create_bill(BillCreate(vendor_id=vendor.id, category="maintenance", amount=300), admin)
        assert exc.value.status_code == 404

    def test_vendor_with_bills_is_kept(self, db, admin):
        """A vendor with bills on file cannot be deleted; one without can."""
        service = FinanceService(db)
        billed = service.create_vendor(VendorCreate(name="Landlord"))
        unused = service.create_vendor(VendorCreate(name="Print Shop"))
        service.create_bill(BillCreate(vendor_id=billed.id, category="rent", amount=5000), admin)

        with pytest.raises(HTTPException) as exc:
            service.delete_vendor(billed.id)
        assert exc.value.status_code == 409

        service.delete_vendor(unused.id)
        assert [v.name for v in service.list_vendors()] == ["Landlord"]

    def test_bill_needs_a_vendor(self, api, headers_for):
        """Given neither a vendor name nor a vendor id, returns 422."""
        response = api.post(
            "/finance/bills",
            headers=headers_for("finance"),
            json={"category": "misc", "amount": 50},
        )
        assert response.status_code == 422

    def test_receptionist_cannot_manage_vendors(self, api, headers_for):
        response = api.post("/finance/vendors", headers=headers_for("receptionist"), json={"name": "X"})
        assert response.status_code == 403


class TestExpenseCategories:
    """Tests for /finance/expense-categories"""

    def test_bills_use_managed_categories(self, api, headers_for):
        """Once categories are set up, a bill outside them returns 400."""
        headers = headers_for("finance")
        created = api.post(
            "/finance/expense-categories",
            headers=headers,
            json={"name": " Utilities ", "description": "Power, water, internet"},
        )
        assert created.status_code == 201
        assert created.json()["name"] == "utilities"

        ok = api.post(
            "/finance/bills",
            headers=headers,
            json={"vendor": "Cairo Electricity", "category": "Utilities", "amount": 900},
        )
        assert ok.status_code == 201
        assert ok.json()["category"] == "utilities"

        unknown = api.post(
            "/finance/bills",
            headers=headers,
            json={"vendor": "Bakery", "category": "snacks", "amount": 90},
        )
        assert unknown.status_code == 400

    def test_inactive_category_is_refused(self, db, admin):
        service = FinanceService(db)
        category = service.create_category(CategoryCreate(name="marketing"))
        service.create_category(CategoryCreate(name="rent"))
        service.update_category(category.id, CategoryUpdate(is_active=False))
        with pytest.raises(HTTPException) as exc:
            service.create_bill(BillCreate(vendor="Flyers Co", category="marketing", amount=250), admin)
        assert exc.value.status_code == 400
        assert [c.name for c in service.list_categories(include_inactive=False)] == ["rent"]

    def test_category_in_use_cannot_be_deleted(self, db, admin):
        service = FinanceService(db)
        rent = service.create_category(CategoryCreate(name="rent"))
        spare = service.create_category(CategoryCreate(name="travel"))
        service.create_bill(BillCreate(vendor="Landlord", category="rent", amount=5000), admin)

        with pytest.raises(HTTPException) as exc:
            service.delete_category(rent.id)
        assert exc.value.status_code == 409
        assert service.delete_category(spare.id) == {"message": "Expense category deleted"}

    def test_duplicate_category(self, db):
        service = FinanceService(db)
        service.create_category(CategoryCreate(name="supplies"))
        with pytest.raises(HTTPException) as exc:
            service.create_category(CategoryCreate(name="Supplies"))
        assert exc.value.status_code == 409
