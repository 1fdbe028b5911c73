from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from marketplace.models.user import User


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_for_update(self, user_id: int) -> Optional[User]:
        """
        Load the user row with a row-level lock where the backend has one
        (SQLite ignores FOR UPDATE; callers also hold the per-user file lock).
        The row is refreshed so a balance cached in the session is never used.
        """
        return (
            self.db.query(User)
            .filter(User.id == user_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def list(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def create(self, username: str, account_balance: Decimal) -> User:
        u = User(username=username, account_balance=account_balance)
        self.db.add(u)
        self.db.flush()
        return u

    def debit(self, user: User, amount: Decimal) -> User:
        user.account_balance = Decimal(user.account_balance) - amount
        self.db.flush()
        return user

    def delete(self, user: User):
        self.db.delete(user)
        self.db.flush()
