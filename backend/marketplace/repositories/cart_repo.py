from typing import List, Optional

from sqlalchemy.orm import Session

from marketplace.models.cart import Cart, CartLine


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_user(self, user_id: int) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.user_id == user_id).first()

    def create(self, user_id: int) -> Cart:
        c = Cart(user_id=user_id)
        self.db.add(c)
        self.db.flush()
        return c

    def product_ids(self, cart_id: int) -> List[int]:
        rows = (
            self.db.query(CartLine.product_id)
            .filter(CartLine.cart_id == cart_id)
            .order_by(CartLine.product_id)
            .all()
        )
        return [r.product_id for r in rows]

    def get_line(self, cart_id: int, product_id: int) -> Optional[CartLine]:
        return self.db.get(CartLine, (cart_id, product_id))

    def add_line(self, cart_id: int, product_id: int) -> CartLine:
        line = CartLine(cart_id=cart_id, product_id=product_id)
        self.db.add(line)
        self.db.flush()
        return line

    def remove_line(self, cart_id: int, product_id: int) -> int:
        removed = (
            self.db.query(CartLine)
            .filter(CartLine.cart_id == cart_id, CartLine.product_id == product_id)
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return removed

    def clear(self, cart_id: int) -> int:
        removed = (
            self.db.query(CartLine)
            .filter(CartLine.cart_id == cart_id)
            .delete(synchronize_session="fetch")
        )
        self.db.flush()
        return removed

    def delete(self, cart: Cart):
        self.db.delete(cart)
        self.db.flush()
