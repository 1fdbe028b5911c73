from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from marketplace.db import get_db
from marketplace.schemas.cart_schema import AddToCartIn, CartOut, CartRemovalOut
from marketplace.services.cart_service import CartService

router = APIRouter(prefix="/api/cart", tags=["cart"])


@router.get("", summary="Get cart", response_model=CartOut)
def get_cart(user_id: int = Query(..., gt=0), db: Session = Depends(get_db)):
    return CartService(db).get_cart(user_id)


@router.post("/items", summary="Add product to cart", response_model=CartOut)
def add_item(payload: AddToCartIn, db: Session = Depends(get_db)):
    return CartService(db).add_to_cart(payload.user_id, payload.product_id)


@router.delete(
    "/items/{product_id}", summary="Remove product from cart", response_model=CartRemovalOut
)
def remove_item(
    product_id: int,
    user_id: int = Query(..., gt=0),
    db: Session = Depends(get_db),
):
    return CartService(db).remove_from_cart(user_id, product_id)
