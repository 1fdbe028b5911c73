from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session, selectinload

from marketplace.models.order import Order, OrderLine


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self, user_id: int, total_price: Decimal, lines: Sequence[Tuple[int, Decimal]]
    ) -> Order:
        """Insert an order and one line per (product_id, unit_price) pair."""
        order = Order(user_id=user_id, total_price=total_price)
        self.db.add(order)
        self.db.flush()
        self.add_lines(order, lines)
        return order

    def add_lines(self, order: Order, lines: Sequence[Tuple[int, Decimal]]):
        for product_id, unit_price in lines:
            self.db.add(
                OrderLine(order_id=order.id, product_id=product_id, unit_price=unit_price)
            )
        self.db.flush()

    def get(self, order_id: int) -> Optional[Order]:
        return (
            self.db.query(Order)
            .options(selectinload(Order.lines))
            .filter(Order.id == order_id)
            .first()
        )

    def list(
        self, user_id: Optional[int] = None, product_id: Optional[int] = None
    ) -> List[Order]:
        query = self.db.query(Order).options(selectinload(Order.lines))
        if user_id is not None:
            query = query.filter(Order.user_id == user_id)
        if product_id is not None:
            query = query.filter(
                Order.lines.any(OrderLine.product_id == product_id)
            )
        return query.order_by(Order.id).all()

    def user_has_orders(self, user_id: int) -> bool:
        return (
            self.db.query(Order.id).filter(Order.user_id == user_id).first()
            is not None
        )
