"""Inventory levels, recipes and the bar menu."""

import pytest
from fastapi import HTTPException

from spotin.domain.stock.schemas import RecipeIngredient, RecipeUpdate, StockAdjustment
from spotin.domain.stock.service import StockService, stock_level_percent, stock_status


class TestStockStatus:
    """Tests for stock_status and stock_level_percent"""

    @pytest.mark.parametrize(
        "current, minimum, expected",
        [
            (50, 100, "critical"),
            (51, 100, "low"),
            (100, 100, "low"),
            (101, 100, "good"),
            (0, 0, "critical"),
        ],
    )
    def test_thresholds(self, current, minimum, expected):
        assert stock_status(current, minimum) == expected

    def test_level_is_relative_to_four_times_minimum(self):
        assert stock_level_percent(200, 100) == 50.0
        assert stock_level_percent(900, 100) == 100.0

    def test_level_without_minimum(self):
        """Given no reorder threshold, any stock counts as full."""
        assert stock_level_percent(5, 0) == 100.0
        assert stock_level_percent(0, 0) == 0.0


class TestStockItems:
    """Tests for /stock"""

    def test_create_item(self, api, headers_for):
        """Operations can add stock items; status is derived from the minimum."""
        response = api.post(
            "/stock",
            headers=headers_for("operations"),
            json={"name": "Oat milk", "unit": "ml", "current_quantity": 150, "min_quantity": 200},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "low"
        assert body["maximum_quantity"] == 800

    def test_barista_can_view_not_edit(self, api, headers_for):
        headers = headers_for("barista")
        assert api.get("/stock", headers=headers).status_code == 200
        assert api.post("/stock", headers=headers, json={"name": "Sugar", "unit": "g"}).status_code == 403

    def test_restock(self, db, make_stock):
        """A positive adjustment restocks and stamps the restock time."""
        milk = make_stock("Milk", quantity=100)
        result = StockService(db).adjust(milk["id"], StockAdjustment(delta=900, reason="Weekly delivery"))
        assert result["current_quantity"] == 1000
        assert result["last_restocked_at"] is not None

    def test_adjust_below_zero(self, api, headers_for, make_stock):
        """Given a write-off larger than what is left, returns 409."""
        milk = make_stock("Milk", quantity=100)
        response = api.post(
            f"/stock/{milk['id']}/adjust",
            headers=headers_for("operations"),
            json={"delta": -150, "reason": "Spoiled"},
        )
        assert response.status_code == 409

    def test_summary(self, db, make_stock):
        """Items are counted per status and low ones listed."""
        make_stock("Milk", quantity=50, min_quantity=200)
        make_stock("Sugar", quantity=150, unit="g", min_quantity=200)
        make_stock("Cups", quantity=500, unit="pcs", min_quantity=100)
        summary = StockService(db).summary()
        assert (summary["critical"], summary["low"], summary["good"]) == (1, 1, 1)
        assert sorted(i["name"] for i in summary["low_stock"]) == ["Milk", "Sugar"]


class TestRecipesAndMenu:
    """Recipes and what the bar can make"""

    def test_duplicate_ingredient(self, db, make_stock, make_product):
        """A stock item may appear once per recipe."""
        milk = make_stock("Milk")
        latte = make_product("Latte")
        with pytest.raises(HTTPException) as exc:
            StockService(db).set_recipe(
                latte["id"],
                RecipeUpdate(
                    ingredients=[
                        RecipeIngredient(stock_id=milk["id"], quantity_needed=100),
                        RecipeIngredient(stock_id=milk["id"], quantity_needed=50),
                    ]
                ),
            )
        assert exc.value.status_code == 400

    def test_unknown_ingredient(self, db, make_product):
        latte = make_product("Latte")
        with pytest.raises(HTTPException) as exc:
            StockService(db).set_recipe(
                latte["id"], RecipeUpdate(ingredients=[RecipeIngredient(stock_id=999, quantity_needed=1)])
            )
        assert exc.value.status_code == 400

    def test_menu_flags_missing_ingredients(self, api, headers_for, make_stock, make_product):
        """Products the stock cannot cover are shown with what is missing."""
        beans = make_stock("Coffee beans", quantity=100, unit="g", min_quantity=20)
        milk = make_stock("Milk", quantity=100, unit="ml", min_quantity=100)
        make_product("Espresso", price=25.0, recipe={beans["id"]: 18})
        make_product("Latte", price=40.0, recipe={beans["id"]: 18, milk["id"]: 200})

        response = api.get("/products/menu", headers=headers_for("barista"))

        assert response.status_code == 200
        menu = {item["name"]: item for item in response.json()}
        assert menu["Espresso"]["can_make"] is True
        assert menu["Latte"]["can_make"] is False
        assert menu["Latte"]["missing_ingredients"] == ["Milk"]

    def test_ingredient_usage(self, db, make_stock, make_product):
        """Each stock item lists the products that use it."""
        beans = make_stock("Coffee beans", quantity=100, unit="g", min_quantity=20)
        make_product("Espresso", price=25.0, recipe={beans["id"]: 18})
        make_product("Americano", price=30.0, recipe={beans["id"]: 18})

        usage = StockService(db).ingredient_usage()

        assert len(usage) == 1
        assert sorted(u["product_name"] for u in usage[0]["used_in"]) == ["Americano", "Espresso"]
