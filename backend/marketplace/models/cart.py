from sqlalchemy import Column, ForeignKey, Integer
from sqlalchemy.orm import relationship

from marketplace.db import Base


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    # one cart per user
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)

    user = relationship("User", back_populates="cart")
    lines = relationship(
        "CartLine",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartLine.product_id",
    )


class CartLine(Base):
    __tablename__ = "cart_lines"

    # composite key keeps a product from appearing twice in one cart
    cart_id = Column(
        Integer, ForeignKey("carts.id", ondelete="CASCADE"), primary_key=True
    )
    product_id = Column(
        Integer, ForeignKey("products.id"), primary_key=True, index=True
    )

    cart = relationship("Cart", back_populates="lines")
