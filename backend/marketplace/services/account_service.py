from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.exceptions import Conflict, InvalidArgument, NotFound
from marketplace.models.user import User
from marketplace.repositories.cart_repo import CartRepository
from marketplace.repositories.order_repo import OrderRepository
from marketplace.repositories.user_repo import UserRepository
from marketplace.utils.locks import user_lock
from marketplace.utils.logging import get_logger
from marketplace.utils.money import ZERO, to_money
from marketplace.utils.transactions import smart_transaction

logger = get_logger(__name__)


def _require_user_id(user_id: int):
    if user_id is None or user_id < 1:
        raise InvalidArgument("Invalid ID")


class AccountService:
    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.carts = CartRepository(db)
        self.orders = OrderRepository(db)

    def create_user(self, username: str, account_balance=None) -> User:
        username = (username or "").strip()
        if not username:
            raise InvalidArgument("Invalid or missing parameters")
        balance = ZERO if account_balance is None else to_money(account_balance, "account balance")
        if balance < 0:
            raise InvalidArgument("Account balance cannot be negative")
        try:
            with smart_transaction(self.db):
                if self.users.get_by_username(username):
                    raise Conflict("Username already taken")
                user = self.users.create(username, balance)
        except IntegrityError:
            # lost a race with a concurrent insert of the same username
            raise Conflict("Username already taken")
        logger.info("Created user %s (%s)", user.id, username)
        return user

    def get_user(self, user_id: int) -> User:
        _require_user_id(user_id)
        user = self.users.get(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def list_users(self) -> List[User]:
        return self.users.list()

    def delete_user(self, user_id: int):
        """
        Refuse while the user has orders or a non-empty cart; an empty cart is
        removed along with the user.
        """
        _require_user_id(user_id)
        with smart_transaction(self.db), user_lock(user_id, self.db):
            user = self.users.get(user_id)
            if not user:
                raise NotFound("User not found")
            if self.orders.user_has_orders(user_id):
                raise Conflict("User is referenced on Orders table")
            cart = self.carts.get_by_user(user_id)
            if cart is not None:
                if self.carts.product_ids(cart.id):
                    raise Conflict("User is referenced on Carts table")
                self.carts.delete(cart)
            self.users.delete(user)
        logger.info("Deleted user %s", user_id)
