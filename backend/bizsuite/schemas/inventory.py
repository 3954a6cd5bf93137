"""Inventory Schemas"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional
from datetime import datetime

from bizsuite.schemas.common import reject_null


class InventoryItemBase(BaseModel):
    """Base inventory item fields"""

    sku: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    unit: str = Field("each", max_length=30)
    category: Optional[str] = Field(None, max_length=100)
    cost_price: float = Field(0.0, ge=0)
    selling_price: float = Field(0.0, ge=0)
    quantity_on_hand: float = Field(0.0, ge=0)
    reorder_level: float = Field(0.0, ge=0)


class InventoryItemCreate(InventoryItemBase):
    pass


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    unit: Optional[str] = Field(None, max_length=30)
    category: Optional[str] = Field(None, max_length=100)
    cost_price: Optional[float] = Field(None, ge=0)
    selling_price: Optional[float] = Field(None, ge=0)
    quantity_on_hand: Optional[float] = Field(None, ge=0)
    reorder_level: Optional[float] = Field(None, ge=0)

    @field_validator(
        "name", "unit", "cost_price", "selling_price", "quantity_on_hand", "reorder_level"
    )
    @classmethod
    def not_null(cls, value):
        return reject_null(value)


class InventoryItemResponse(InventoryItemBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None
