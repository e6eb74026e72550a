"""Stock router - FastAPI endpoints for inventory, products and recipes"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_staff, require_roles
from ...database import get_db
from ...models import StaffUser
from ...permissions import STOCK_MANAGERS, STOCK_VIEWERS
from .schemas import (
    IngredientUsage,
    MenuItem,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    RecipeUpdate,
    StockAdjustment,
    StockItemCreate,
    StockItemResponse,
    StockItemUpdate,
    StockSummary,
)
from .service import StockService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stock", tags=["Stock"])
products_router = APIRouter(prefix="/products", tags=["Products"])


def get_stock_service(db: Session = Depends(get_db)) -> StockService:
    """Dependency injection for StockService"""
    return StockService(db)


# ============================================================================
# STOCK ITEMS
# ============================================================================


@router.get("", response_model=list[StockItemResponse])
async def list_stock(
    include_inactive: bool = Query(False),
    current_staff: StaffUser = Depends(require_roles(*STOCK_VIEWERS)),
    service: StockService = Depends(get_stock_service),
):
    """All stock items with their status (critical / low / good)"""
    return service.list_items(include_inactive)


@router.get("/summary", response_model=StockSummary)
async def stock_summary(
    current_staff: StaffUser = Depends(require_roles(*STOCK_VIEWERS)),
    service: StockService = Depends(get_stock_service),
):
    """Status counts, inventory value and the reorder list"""
    return service.summary()


@router.get("/usage", response_model=list[IngredientUsage])
async def ingredient_usage(
    current_staff: StaffUser = Depends(require_roles(*STOCK_VIEWERS)),
    service: StockService = Depends(get_stock_service),
):
    """Which products use each ingredient"""
    return service.ingredient_usage()


@router.post("", response_model=StockItemResponse, status_code=201)
async def create_stock_item(
    data: StockItemCreate,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.create_item(data)


@router.patch("/{item_id}", response_model=StockItemResponse)
async def update_stock_item(
    item_id: int,
    data: StockItemUpdate,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.update_item(item_id, data)


@router.post("/{item_id}/adjust", response_model=StockItemResponse)
async def adjust_stock_item(
    item_id: int,
    data: StockAdjustment,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    """Restock (positive delta) or write off (negative delta)"""
    logger.info(f"📦 Stock adjustment on {item_id} by {current_staff.email}")
    return service.adjust(item_id, data)


@router.delete("/{item_id}", response_model=StockItemResponse)
async def deactivate_stock_item(
    item_id: int,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.deactivate_item(item_id)


# ============================================================================
# PRODUCTS
# ============================================================================


@products_router.get("/menu", response_model=list[MenuItem])
async def get_menu(
    current_staff: StaffUser = Depends(get_current_staff),
    service: StockService = Depends(get_stock_service),
):
    """Available products and whether current stock can make them"""
    return service.menu()


@products_router.get("", response_model=list[ProductResponse])
async def list_products(
    category: Optional[str] = Query(None),
    current_staff: StaffUser = Depends(require_roles(*STOCK_VIEWERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.list_products(category)


@products_router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    data: ProductCreate,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.create_product(data)


@products_router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    return service.update_product(product_id, data)


@products_router.put("/{product_id}/recipe", response_model=ProductResponse)
async def set_recipe(
    product_id: int,
    data: RecipeUpdate,
    current_staff: StaffUser = Depends(require_roles(*STOCK_MANAGERS)),
    service: StockService = Depends(get_stock_service),
):
    """Replace the ingredient list of a product"""
    return service.set_recipe(product_id, data)
