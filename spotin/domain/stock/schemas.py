"""Stock domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_required_text


class StockItemCreate(BaseModel):
    name: str
    unit: str
    category: Optional[str] = None
    current_quantity: float = Field(0, ge=0)
    min_quantity: float = Field(0, ge=0)
    cost_per_unit: float = Field(0, ge=0)
    supplier: Optional[str] = None

    @field_validator("name", "unit")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Name and unit")


class StockItemUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    min_quantity: Optional[float] = Field(None, ge=0)
    cost_per_unit: Optional[float] = Field(None, ge=0)
    supplier: Optional[str] = None


class StockAdjustment(BaseModel):
    """Positive delta restocks, negative delta records waste or a count correction"""

    delta: float
    reason: str

    @field_validator("reason")
    @classmethod
    def reason_required(cls, v):
        return validate_required_text(v, "Reason")


class StockItemResponse(BaseModel):
    id: int
    name: str
    unit: str
    category: Optional[str]
    current_quantity: float
    min_quantity: float
    maximum_quantity: float
    cost_per_unit: float
    supplier: Optional[str]
    is_active: bool
    status: str  # critical, low, good
    stock_level_percent: float
    last_restocked_at: Optional[datetime] = None


class StockSummary(BaseModel):
    total_items: int
    critical: int
    low: int
    good: int
    inventory_value: float
    low_stock: list[StockItemResponse]


class ProductCreate(BaseModel):
    name: str
    category: str
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    is_available: bool = True
    prep_time_minutes: Optional[int] = Field(None, ge=0)

    @field_validator("name", "category")
    @classmethod
    def not_blank(cls, v):
        return validate_required_text(v, "Name and category")


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None
    is_available: Optional[bool] = None
    prep_time_minutes: Optional[int] = Field(None, ge=0)


class RecipeIngredient(BaseModel):
    stock_id: int
    quantity_needed: float = Field(..., gt=0)


class RecipeUpdate(BaseModel):
    ingredients: list[RecipeIngredient]


class RecipeIngredientResponse(BaseModel):
    stock_id: int
    stock_name: str
    unit: str
    quantity_needed: float


class ProductResponse(BaseModel):
    id: int
    name: str
    category: str
    price: float
    description: Optional[str]
    is_available: bool
    prep_time_minutes: Optional[int]
    ingredients: list[RecipeIngredientResponse] = []


class MenuItem(BaseModel):
    id: int
    name: str
    category: str
    price: float
    description: Optional[str]
    prep_time_minutes: Optional[int]
    can_make: bool
    missing_ingredients: list[str]


class IngredientUsage(BaseModel):
    stock_id: int
    name: str
    unit: str
    current_quantity: float
    stock_level_percent: float
    status: str
    used_in: list[dict]  # [{product_id, product_name, quantity_needed}]
