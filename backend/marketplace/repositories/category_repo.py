from typing import List, Optional

from sqlalchemy.orm import Session

from marketplace.models.category import Category
from marketplace.models.product import Product


class CategoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, category_id: int) -> Optional[Category]:
        return self.db.get(Category, category_id)

    def get_by_name(self, name: str) -> Optional[Category]:
        return self.db.query(Category).filter(Category.name == name).first()

    def list(self) -> List[Category]:
        return self.db.query(Category).order_by(Category.id).all()

    def create(self, name: str) -> Category:
        c = Category(name=name)
        self.db.add(c)
        self.db.flush()
        return c

    def has_products(self, category_id: int) -> bool:
        return (
            self.db.query(Product.id).filter(Product.category_id == category_id).first()
            is not None
        )

    def delete(self, category: Category):
        self.db.delete(category)
        self.db.flush()
