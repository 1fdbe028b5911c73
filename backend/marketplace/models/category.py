from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from marketplace.db import Base

CATEGORY_NAME_MAX_LENGTH = 50


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(CATEGORY_NAME_MAX_LENGTH), unique=True, nullable=False, index=True)

    products = relationship("Product", back_populates="category")

    def __repr__(self):
        return f"<Category id={self.id} name={self.name}>"
