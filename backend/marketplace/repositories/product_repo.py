from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from marketplace.models.cart import CartLine
from marketplace.models.order import OrderLine
from marketplace.models.product import Product


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, product_id: int) -> Optional[Product]:
        return self.db.get(Product, product_id)

    def get_many(self, product_ids: Iterable[int]) -> List[Product]:
        ids = list(product_ids)
        if not ids:
            return []
        return (
            self.db.query(Product)
            .filter(Product.id.in_(ids))
            .order_by(Product.id)
            .all()
        )

    def list(self, category_id: Optional[int] = None) -> List[Product]:
        query = self.db.query(Product)
        if category_id is not None:
            query = query.filter(Product.category_id == category_id)
        return query.order_by(Product.id).all()

    def create(self, **fields) -> Product:
        p = Product(**fields)
        self.db.add(p)
        self.db.flush()
        return p

    def update(self, product: Product, **fields) -> Product:
        for name, value in fields.items():
            setattr(product, name, value)
        self.db.flush()
        return product

    def is_referenced(self, product_id: int) -> bool:
        """True if any cart line or order line points at the product."""
        in_cart = (
            self.db.query(CartLine.cart_id)
            .filter(CartLine.product_id == product_id)
            .first()
        )
        if in_cart is not None:
            return True
        ordered = (
            self.db.query(OrderLine.id)
            .filter(OrderLine.product_id == product_id)
            .first()
        )
        return ordered is not None

    def delete(self, product: Product):
        self.db.delete(product)
        self.db.flush()
