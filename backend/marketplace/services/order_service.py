from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from marketplace.exceptions import InvalidArgument, NotFound
from marketplace.models.order import Order
from marketplace.repositories.order_repo import OrderRepository
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)


def order_to_dict(order: Order) -> Dict:
    return {
        "order_id": order.id,
        "user_id": order.user_id,
        "created_on": order.created_on,
        "total_price": order.total_price,
        "product_ids": [line.product_id for line in order.lines],
    }


class OrderService:
    """Read side of the order ledger. Orders are never updated or deleted."""

    def __init__(self, db: Session):
        self.db = db
        self.repo = OrderRepository(db)

    def list_orders(
        self, user_id: Optional[int] = None, product_id: Optional[int] = None
    ) -> List[Dict]:
        for value, what in ((user_id, "user"), (product_id, "product")):
            if value is not None and value < 1:
                raise InvalidArgument(f"Invalid {what} id: {value}")
        return [order_to_dict(o) for o in self.repo.list(user_id=user_id, product_id=product_id)]

    def get_order(self, order_id: int) -> Dict:
        if order_id is None or order_id < 1:
            raise InvalidArgument(f"Invalid order id: {order_id}")
        order = self.repo.get(order_id)
        if not order:
            raise NotFound("Order not found")
        return order_to_dict(order)

    def record_order(
        self, user_id: int, priced_lines: Sequence[Tuple[int, Decimal]]
    ) -> Order:
        """
        Append an order with one line per (product_id, unit_price).
        Must run inside the caller's transaction; nothing is committed here.
        """
        total = sum((price for _, price in priced_lines), Decimal("0.00"))
        order = self.repo.create(user_id, total, priced_lines)
        logger.debug("Recorded order %s for user %s", order.id, user_id)
        return order
