from sqlalchemy import Column, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from marketplace.config import settings
from marketplace.db import Base


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(256), nullable=False)
    description = Column(
        String(1024), nullable=False, default=settings.DEFAULT_PRODUCT_DESCRIPTION
    )
    price = Column(Numeric(10, 2, asdecimal=True), nullable=False)
    # carried for the catalog; nothing decrements or checks it
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=False, index=True)

    category = relationship("Category", back_populates="products")

    def __repr__(self):
        return f"<Product id={self.id} name={self.name} price={self.price}>"
