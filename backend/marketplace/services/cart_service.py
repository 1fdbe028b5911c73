from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.exceptions import Conflict, InvalidArgument, NotFound
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.repositories.user_repo import UserRepository
from marketplace.utils.locks import user_lock
from marketplace.utils.logging import get_logger
from marketplace.utils.transactions import smart_transaction

logger = get_logger(__name__)


def _require_ids(user_id: int, product_id: Optional[int] = None):
    if user_id is None or user_id < 1:
        raise InvalidArgument("Invalid userID provided")
    if product_id is not None and product_id < 1:
        raise InvalidArgument("Invalid productID provided")


class CartService:
    """
    One cart per user, holding a set of product ids.

    The cart row is created by the first add_to_cart for a user and is never
    removed by cart operations; get_cart on a user without one reports an
    empty cart with cart_id None. Mutations for a user are serialized by the
    per-user lock.
    """

    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.product_repo = ProductRepository(db)
        self.user_repo = UserRepository(db)

    def _snapshot(self, user_id: int, cart) -> Dict:
        return {
            "cart_id": cart.id if cart else None,
            "user_id": user_id,
            "product_ids": self.cart_repo.product_ids(cart.id) if cart else [],
        }

    def get_cart(self, user_id: int) -> Dict:
        _require_ids(user_id)
        if not self.user_repo.get(user_id):
            raise NotFound("User does not exist")
        cart = self.cart_repo.get_by_user(user_id)
        return self._snapshot(user_id, cart)

    def add_to_cart(self, user_id: int, product_id: int) -> Dict:
        _require_ids(user_id, product_id)
        try:
            with smart_transaction(self.db), user_lock(user_id, self.db):
                if not self.user_repo.get(user_id):
                    raise NotFound("User does not exist")
                if not self.product_repo.get(product_id):
                    raise NotFound("Product does not exist")
                cart = self.cart_repo.get_by_user(user_id)
                if cart is None:
                    cart = self.cart_repo.create(user_id)
                    logger.info("Created cart %s for user %s", cart.id, user_id)
                if self.cart_repo.get_line(cart.id, product_id):
                    raise Conflict("Product already exists in the cart")
                self.cart_repo.add_line(cart.id, product_id)
                result = self._snapshot(user_id, cart)
        except IntegrityError:
            # unique cart per user / unique line per product
            raise Conflict("Product already exists in the cart")
        logger.info("Added product %s to cart of user %s", product_id, user_id)
        return result

    def remove_from_cart(self, user_id: int, product_id: int) -> Dict:
        """Removing a product that is not in the cart is a no-op (removed == 0)."""
        _require_ids(user_id, product_id)
        with smart_transaction(self.db), user_lock(user_id, self.db):
            if not self.user_repo.get(user_id):
                raise NotFound("User does not exist")
            if not self.product_repo.get(product_id):
                raise NotFound("Product does not exist")
            cart = self.cart_repo.get_by_user(user_id)
            if cart is None:
                raise NotFound("Cart does not exist")
            removed = self.cart_repo.remove_line(cart.id, product_id)
            result = self._snapshot(user_id, cart)
        result["removed"] = removed
        logger.info(
            "Removed product %s from cart of user %s (removed=%s)",
            product_id,
            user_id,
            removed,
        )
        return result
