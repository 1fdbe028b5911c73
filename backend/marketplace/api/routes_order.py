from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.db import get_db
from marketplace.schemas.order_schema import OrderOut, PurchaseIn, PurchaseOut
from marketplace.services.order_service import OrderService
from marketplace.services.purchase_service import PurchaseService

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post(
    "/purchase",
    summary="Buy everything in the user's cart",
    response_model=PurchaseOut,
    status_code=201,
)
def purchase(payload: PurchaseIn, db: Session = Depends(get_db)):
    return PurchaseService(db).purchase(payload.user_id)


@router.get("", summary="List orders", response_model=List[OrderOut])
def list_orders(
    user_id: Optional[int] = Query(None, gt=0),
    product_id: Optional[int] = Query(None, gt=0),
    db: Session = Depends(get_db),
):
    return OrderService(db).list_orders(user_id=user_id, product_id=product_id)


@router.get("/{order_id}", summary="Get order", response_model=OrderOut)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return OrderService(db).get_order(order_id)
