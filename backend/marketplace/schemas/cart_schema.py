from typing import List, Optional

from pydantic import BaseModel, Field


class AddToCartIn(BaseModel):
    user_id: int = Field(..., gt=0)
    product_id: int = Field(..., gt=0)


class CartOut(BaseModel):
    cart_id: Optional[int] = None
    user_id: int
    product_ids: List[int]


class CartRemovalOut(CartOut):
    removed: int
