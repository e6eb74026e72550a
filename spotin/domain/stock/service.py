"""Stock service - Inventory levels, recipes and ingredient consumption"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...cache import MENU_KEY, cache, invalidate_menu_cache
from ...database import atomic
from ...models import Product, StockItem
from ...realtime import publish
from ...shared.billing import round_money, utcnow
from .repository import StockRepository
from .schemas import (
    ProductCreate,
    ProductUpdate,
    RecipeUpdate,
    StockAdjustment,
    StockItemCreate,
    StockItemUpdate,
)

logger = logging.getLogger(__name__)

# Full shelf is modelled as four times the reorder threshold
MAX_STOCK_MULTIPLIER = 4


def stock_status(current_quantity: float, min_quantity: float) -> str:
    """critical at or below half the minimum, low at or below the minimum"""
    if current_quantity <= min_quantity * 0.5:
        return "critical"
    if current_quantity <= min_quantity:
        return "low"
    return "good"


def stock_level_percent(current_quantity: float, min_quantity: float) -> float:
    maximum = min_quantity * MAX_STOCK_MULTIPLIER
    if maximum <= 0:
        return 100.0 if current_quantity > 0 else 0.0
    return round(min(100.0, current_quantity / maximum * 100), 1)


def serialize_stock_item(item: StockItem) -> dict:
    return {
        "id": item.id,
        "name": item.name,
        "unit": item.unit,
        "category": item.category,
        "current_quantity": item.current_quantity,
        "min_quantity": item.min_quantity,
        "maximum_quantity": item.min_quantity * MAX_STOCK_MULTIPLIER,
        "cost_per_unit": item.cost_per_unit,
        "supplier": item.supplier,
        "is_active": item.is_active,
        "status": stock_status(item.current_quantity, item.min_quantity),
        "stock_level_percent": stock_level_percent(item.current_quantity, item.min_quantity),
        "last_restocked_at": item.last_restocked_at,
    }


def serialize_product(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "category": product.category,
        "price": product.price,
        "description": product.description,
        "is_available": product.is_available,
        "prep_time_minutes": product.prep_time_minutes,
        "ingredients": [
            {
                "stock_id": ing.stock_id,
                "stock_name": ing.stock_item.name if ing.stock_item else "",
                "unit": ing.stock_item.unit if ing.stock_item else "",
                "quantity_needed": ing.quantity_needed,
            }
            for ing in product.ingredients
        ],
    }


class StockService:
    """Service layer for inventory business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = StockRepository()

    # ============================================================================
    # STOCK ITEMS
    # ============================================================================

    def list_items(self, include_inactive: bool = False) -> list[dict]:
        return [serialize_stock_item(i) for i in self.repo.get_items(self.db, include_inactive)]

    def get_item(self, item_id: int) -> StockItem:
        item = self.repo.get_item(self.db, item_id)
        if not item:
            raise HTTPException(status_code=404, detail="Stock item not found")
        return item

    def create_item(self, data: StockItemCreate) -> dict:
        with atomic(self.db):
            item = self.repo.add(
                self.db,
                StockItem(
                    name=data.name,
                    unit=data.unit,
                    category=data.category,
                    current_quantity=data.current_quantity,
                    min_quantity=data.min_quantity,
                    cost_per_unit=data.cost_per_unit,
                    supplier=data.supplier,
                    last_restocked_at=utcnow() if data.current_quantity else None,
                ),
            )
        logger.info(f"📦 Stock item created: {item.name} ({item.current_quantity} {item.unit})")
        self._changed("created", item)
        return serialize_stock_item(item)

    def update_item(self, item_id: int, data: StockItemUpdate) -> dict:
        item = self.get_item(item_id)
        with atomic(self.db):
            for key, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(item, key, value)
        self._changed("updated", item)
        return serialize_stock_item(item)

    def deactivate_item(self, item_id: int) -> dict:
        item = self.get_item(item_id)
        with atomic(self.db):
            item.is_active = False
        logger.info(f"📦 Stock item deactivated: {item.name}")
        self._changed("deactivated", item)
        return serialize_stock_item(item)

    def adjust(self, item_id: int, data: StockAdjustment) -> dict:
        """Manual restock or write-off; stock can never go below zero"""
        with atomic(self.db):
            item = self.repo.get_items_for_update(self.db, [item_id]).get(item_id)
            if not item:
                raise HTTPException(status_code=404, detail="Stock item not found")

            new_quantity = round(item.current_quantity + data.delta, 3)
            if new_quantity < 0:
                logger.warning(
                    f"⚠️ Rejected adjustment of {data.delta} on {item.name}: only {item.current_quantity} left"
                )
                raise HTTPException(
                    status_code=409,
                    detail=f"Cannot remove {abs(data.delta)} {item.unit}: only {item.current_quantity} in stock",
                )

            item.current_quantity = new_quantity
            if data.delta > 0:
                item.last_restocked_at = utcnow()

        logger.info(f"📦 {item.name} adjusted by {data.delta} ({data.reason}) -> {item.current_quantity}")
        self._changed("adjusted", item)
        return serialize_stock_item(item)

    def summary(self) -> dict:
        items = [serialize_stock_item(i) for i in self.repo.get_items(self.db)]
        counts = {"critical": 0, "low": 0, "good": 0}
        value = 0.0
        for item in items:
            counts[item["status"]] += 1
            value += item["current_quantity"] * item["cost_per_unit"]

        return {
            "total_items": len(items),
            **counts,
            "inventory_value": round_money(value),
            "low_stock": [i for i in items if i["status"] != "good"],
        }

    # ============================================================================
    # PRODUCTS & RECIPES
    # ============================================================================

    def list_products(self, category: Optional[str] = None) -> list[dict]:
        return [serialize_product(p) for p in self.repo.get_products(self.db, category)]

    def get_product(self, product_id: int) -> Product:
        product = self.repo.get_product(self.db, product_id)
        if not product:
            raise HTTPException(status_code=404, detail="Product not found")
        return product

    def create_product(self, data: ProductCreate) -> dict:
        with atomic(self.db):
            product = self.repo.add(self.db, Product(**data.model_dump()))
        logger.info(f"☕ Product created: {product.name} ({product.price})")
        invalidate_menu_cache()
        return serialize_product(product)

    def update_product(self, product_id: int, data: ProductUpdate) -> dict:
        product = self.get_product(product_id)
        with atomic(self.db):
            for key, value in data.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(product, key, value)
        invalidate_menu_cache()
        publish("stock", "product_updated", {"product_id": product.id})
        return serialize_product(product)

    def set_recipe(self, product_id: int, data: RecipeUpdate) -> dict:
        """Replace the product's ingredient list"""
        product = self.get_product(product_id)

        stock_ids = [i.stock_id for i in data.ingredients]
        if len(set(stock_ids)) != len(stock_ids):
            raise HTTPException(status_code=400, detail="Each stock item may appear once per recipe")

        for stock_id in stock_ids:
            item = self.repo.get_item(self.db, stock_id)
            if not item or not item.is_active:
                raise HTTPException(status_code=400, detail=f"Stock item {stock_id} not found")

        with atomic(self.db):
            self.repo.replace_recipe(
                self.db, product, [(i.stock_id, i.quantity_needed) for i in data.ingredients]
            )
        self.db.refresh(product)
        logger.info(f"🧾 Recipe for {product.name} set with {len(stock_ids)} ingredient(s)")
        invalidate_menu_cache()
        return serialize_product(product)

    def availability(self, product: Product, quantity: int = 1) -> tuple[bool, list[str]]:
        """Whether current stock covers `quantity` units, and which ingredients fall short"""
        missing = []
        for ing in product.ingredients:
            item = ing.stock_item
            if item is None or not item.is_active or item.current_quantity < ing.quantity_needed * quantity:
                missing.append(item.name if item else f"stock #{ing.stock_id}")
        return not missing, missing

    def menu(self) -> list[dict]:
        """Available products with whether the bar can make them right now"""
        cached_menu = cache.get(MENU_KEY)
        if cached_menu is not None:
            return cached_menu

        menu = []
        for product in self.repo.get_products(self.db, available_only=True):
            can_make, missing = self.availability(product)
            menu.append(
                {
                    "id": product.id,
                    "name": product.name,
                    "category": product.category,
                    "price": product.price,
                    "description": product.description,
                    "prep_time_minutes": product.prep_time_minutes,
                    "can_make": can_make,
                    "missing_ingredients": missing,
                }
            )

        cache.set(MENU_KEY, menu, ttl=60)
        return menu

    def ingredient_usage(self) -> list[dict]:
        usage = defaultdict(list)
        for row in self.repo.get_usage_rows(self.db):
            usage[row.stock_id].append(
                {
                    "product_id": row.product_id,
                    "product_name": row.product.name if row.product else "",
                    "quantity_needed": row.quantity_needed,
                }
            )

        return [
            {
                "stock_id": item.id,
                "name": item.name,
                "unit": item.unit,
                "current_quantity": item.current_quantity,
                "stock_level_percent": stock_level_percent(item.current_quantity, item.min_quantity),
                "status": stock_status(item.current_quantity, item.min_quantity),
                "used_in": usage.get(item.id, []),
            }
            for item in self.repo.get_items(self.db)
        ]

    # ============================================================================
    # CONSUMPTION (used inside other services' transactions, never commits)
    # ============================================================================

    def _requirements(self, lines: Iterable[tuple[int, int]]) -> dict[int, float]:
        """Total stock needed per stock item for (product_id, quantity) lines"""
        lines = [(pid, qty) for pid, qty in lines if pid is not None]
        needed: dict[int, float] = defaultdict(float)
        per_product = defaultdict(list)
        for row in self.repo.get_recipe_rows(self.db, list({pid for pid, _ in lines})):
            per_product[row.product_id].append(row)
        for product_id, quantity in lines:
            for row in per_product[product_id]:
                needed[row.stock_id] += row.quantity_needed * quantity
        return needed

    def consume(self, lines: Iterable[tuple[int, int]]):
        """
        Deduct ingredients for a whole order at once.
        Raises 409 naming every ingredient that falls short; nothing is deducted then.
        """
        needed = self._requirements(lines)
        items = self.repo.get_items_for_update(self.db, list(needed))

        short = [
            items[stock_id].name if stock_id in items else f"stock #{stock_id}"
            for stock_id, qty in needed.items()
            if stock_id not in items
            or not items[stock_id].is_active
            or items[stock_id].current_quantity < qty - 1e-9
        ]
        if short:
            logger.warning(f"⚠️ Insufficient stock for order: {short}")
            raise HTTPException(
                status_code=409,
                detail=f"Not enough stock: {', '.join(sorted(short))}",
            )

        for stock_id, qty in needed.items():
            item = items[stock_id]
            item.current_quantity = max(0.0, round(item.current_quantity - qty, 3))

        if needed:
            invalidate_menu_cache()

    def restock(self, lines: Iterable[tuple[int, int]]):
        """Return ingredients of cancelled items to stock"""
        needed = self._requirements(lines)
        items = self.repo.get_items_for_update(self.db, list(needed))
        for stock_id, qty in needed.items():
            if stock_id in items:
                items[stock_id].current_quantity = round(items[stock_id].current_quantity + qty, 3)
        if needed:
            logger.info(f"📦 Restocked {len(needed)} ingredient(s) from cancelled items")
            invalidate_menu_cache()

    def _changed(self, event: str, item: StockItem):
        invalidate_menu_cache()
        publish("stock", event, {"stock_id": item.id, "status": stock_status(item.current_quantity, item.min_quantity)})
