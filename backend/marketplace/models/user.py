from decimal import Decimal

from sqlalchemy import Column, Integer, Numeric, String
from sqlalchemy.orm import relationship

from marketplace.db import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    account_balance = Column(
        Numeric(12, 2, asdecimal=True), nullable=False, default=Decimal("0.00")
    )

    cart = relationship("Cart", back_populates="user", uselist=False)

    def __repr__(self):
        return f"<User id={self.id} username={self.username}>"
