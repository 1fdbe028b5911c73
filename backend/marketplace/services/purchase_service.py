from decimal import Decimal
from typing import Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.exceptions import (
    FailedPrecondition,
    InternalError,
    InvalidArgument,
    NotFound,
)
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.user_repo import UserRepository
from marketplace.services.order_service import OrderService
from marketplace.utils.locks import user_lock
from marketplace.utils.logging import get_logger
from marketplace.utils.money import ZERO
from marketplace.utils.transactions import smart_transaction

logger = get_logger(__name__)


class PurchaseService:
    """
    Checkout: turns a user's cart into an order.

    The whole purchase runs under the user's lock inside one transaction:
      1. lock and reload the user row
      2. read the cart lines (empty or missing cart -> FailedPrecondition)
      3. price every product as it is now, summing with Decimal
      4. balance < total -> FailedPrecondition, nothing written
      5. debit balance, write order + lines, clear the cart
    A storage failure at any point rolls all of step 5 back and surfaces as
    InternalError, so a debit never exists without its order and a cart is
    never cleared without one.
    """

    def __init__(self, db: Session):
        self.db = db
        self.user_repo = UserRepository(db)
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.orders = OrderService(db)

    def purchase(self, user_id: int) -> Dict:
        if user_id is None or user_id < 1:
            raise InvalidArgument("Invalid userID provided")

        try:
            with smart_transaction(self.db), user_lock(user_id, self.db):
                user = self.user_repo.get_for_update(user_id)
                if not user:
                    raise NotFound("User does not exist")

                cart = self.cart_repo.get_by_user(user_id)
                product_ids = self.cart_repo.product_ids(cart.id) if cart else []
                if not product_ids:
                    raise FailedPrecondition("cart is empty")

                products = self.product_repo.get_many(product_ids)
                if len(products) != len(product_ids):
                    # FK on cart_lines keeps this from happening on a sane store
                    raise InternalError("Cart references a missing product")
                priced_lines = [(p.id, Decimal(p.price)) for p in products]
                total = sum((price for _, price in priced_lines), ZERO)

                balance = Decimal(user.account_balance)
                if balance < total:
                    logger.info(
                        "Purchase refused for user %s: balance %s < total %s",
                        user_id,
                        balance,
                        total,
                    )
                    raise FailedPrecondition("insufficient balance")

                self.user_repo.debit(user, total)
                order = self.orders.record_order(user_id, priced_lines)
                self.cart_repo.clear(cart.id)

                result = {
                    "order_id": order.id,
                    "user_id": user_id,
                    "product_ids": [pid for pid, _ in priced_lines],
                    "total_price": total,
                    "account_balance": balance - total,
                }
        except SQLAlchemyError as exc:
            logger.exception("Purchase for user %s rolled back", user_id)
            raise InternalError("Purchase failed; no changes were applied") from exc

        logger.info(
            "User %s purchased %s for %s (order %s)",
            user_id,
            result["product_ids"],
            total,
            result["order_id"],
        )
        return result
