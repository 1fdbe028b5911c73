from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from marketplace.models.category import CATEGORY_NAME_MAX_LENGTH


class CategoryIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=CATEGORY_NAME_MAX_LENGTH)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str


class ProductIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=256)
    description: Optional[str] = Field(None, max_length=1024)
    price: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    stock: int = Field(..., ge=0)
    category_id: int = Field(..., gt=0)


class ProductUpdate(BaseModel):
    """Every field optional; only the ones sent are changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=256)
    description: Optional[str] = Field(None, max_length=1024)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=10, decimal_places=2)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, gt=0)


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    name: str
    description: str
    price: Decimal
    stock: int
    category_id: int
