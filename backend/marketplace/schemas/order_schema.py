from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, Field


class PurchaseIn(BaseModel):
    user_id: int = Field(..., gt=0)


class PurchaseOut(BaseModel):
    order_id: int
    user_id: int
    product_ids: List[int]
    total_price: Decimal
    account_balance: Decimal


class OrderOut(BaseModel):
    order_id: int
    user_id: int
    created_on: datetime
    total_price: Decimal
    product_ids: List[int]
