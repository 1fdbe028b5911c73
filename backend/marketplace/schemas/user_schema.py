from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserIn(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    account_balance: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    username: str
    account_balance: Decimal
