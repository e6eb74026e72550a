"""Stock repository - Database operations for stock items, products and recipes"""

from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import Product, ProductIngredient, StockItem


class StockRepository:
    """Repository for inventory database operations. Callers own the commit."""

    @staticmethod
    def get_items(db: Session, include_inactive: bool = False) -> list[StockItem]:
        query = db.query(StockItem)
        if not include_inactive:
            query = query.filter(StockItem.is_active.is_(True))
        return query.order_by(StockItem.name.asc()).all()

    @staticmethod
    def get_item(db: Session, item_id: int) -> Optional[StockItem]:
        return db.query(StockItem).filter(StockItem.id == item_id).first()

    @staticmethod
    def get_items_for_update(db: Session, item_ids: list[int]) -> dict[int, StockItem]:
        """Lock the rows being deducted so concurrent orders can't oversell"""
        if not item_ids:
            return {}
        rows = (
            db.query(StockItem)
            .filter(StockItem.id.in_(item_ids))
            .order_by(StockItem.id)
            .with_for_update()
            .all()
        )
        return {row.id: row for row in rows}

    @staticmethod
    def add(db: Session, obj):
        db.add(obj)
        db.flush()
        return obj

    @staticmethod
    def get_products(
        db: Session, category: Optional[str] = None, available_only: bool = False
    ) -> list[Product]:
        query = db.query(Product).options(
            joinedload(Product.ingredients).joinedload(ProductIngredient.stock_item)
        )
        if category:
            query = query.filter(Product.category == category)
        if available_only:
            query = query.filter(Product.is_available.is_(True))
        return query.order_by(Product.category.asc(), Product.name.asc()).all()

    @staticmethod
    def get_product(db: Session, product_id: int) -> Optional[Product]:
        return (
            db.query(Product)
            .options(joinedload(Product.ingredients).joinedload(ProductIngredient.stock_item))
            .filter(Product.id == product_id)
            .first()
        )

    @staticmethod
    def get_recipe_rows(db: Session, product_ids: list[int]) -> list[ProductIngredient]:
        if not product_ids:
            return []
        return (
            db.query(ProductIngredient)
            .filter(ProductIngredient.product_id.in_(product_ids))
            .all()
        )

    @staticmethod
    def get_usage_rows(db: Session) -> list[ProductIngredient]:
        return (
            db.query(ProductIngredient)
            .options(joinedload(ProductIngredient.product))
            .all()
        )

    @staticmethod
    def replace_recipe(db: Session, product: Product, ingredients: list[tuple[int, float]]) -> Product:
        product.ingredients.clear()
        db.flush()
        for stock_id, quantity_needed in ingredients:
            product.ingredients.append(
                ProductIngredient(stock_id=stock_id, quantity_needed=quantity_needed)
            )
        db.flush()
        return product
