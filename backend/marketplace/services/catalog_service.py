from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.config import settings
from marketplace.exceptions import Conflict, InvalidArgument, NotFound
from marketplace.models.category import CATEGORY_NAME_MAX_LENGTH, Category
from marketplace.models.product import Product
from marketplace.repositories.category_repo import CategoryRepository
from marketplace.repositories.product_repo import ProductRepository
from marketplace.utils.logging import get_logger
from marketplace.utils.money import to_money
from marketplace.utils.transactions import smart_transaction

logger = get_logger(__name__)

UPDATABLE_PRODUCT_FIELDS = ("name", "description", "price", "stock", "category_id")


def _require_positive_id(value: int, what: str):
    if value is None or value < 1:
        raise InvalidArgument(f"Invalid {what} id: {value}")


def _validate_price(price) -> Decimal:
    price = to_money(price, "price")
    if price <= 0:
        raise InvalidArgument("Price must be a positive amount")
    return price


class CatalogService:
    """Categories and products."""

    def __init__(self, db: Session):
        self.db = db
        self.categories = CategoryRepository(db)
        self.products = ProductRepository(db)

    # categories

    def list_categories(self) -> List[Category]:
        return self.categories.list()

    def get_category(self, category_id: int) -> Category:
        _require_positive_id(category_id, "category")
        category = self.categories.get(category_id)
        if not category:
            raise NotFound("Category not found")
        return category

    def create_category(self, name: str) -> Category:
        name = (name or "").strip()
        if not name or len(name) > CATEGORY_NAME_MAX_LENGTH:
            raise InvalidArgument("Invalid category name")
        try:
            with smart_transaction(self.db):
                if self.categories.get_by_name(name):
                    raise Conflict("Category already exists")
                category = self.categories.create(name)
        except IntegrityError:
            # lost a race with a concurrent insert of the same name
            raise Conflict("Category already exists")
        logger.info("Created category %s (%s)", category.id, name)
        return category

    def delete_category(self, category_id: int):
        _require_positive_id(category_id, "category")
        with smart_transaction(self.db):
            category = self.categories.get(category_id)
            if not category:
                raise NotFound("Category not found")
            if self.categories.has_products(category_id):
                raise Conflict("Category is referenced by products")
            self.categories.delete(category)
        logger.info("Deleted category %s", category_id)

    # products

    def get_product(self, product_id: int) -> Product:
        _require_positive_id(product_id, "product")
        product = self.products.get(product_id)
        if not product:
            raise NotFound("Product not found")
        return product

    def list_products(self, category_id: Optional[int] = None) -> List[Product]:
        return self.products.list(category_id=category_id)

    def create_product(
        self,
        name: str,
        price,
        stock: int,
        category_id: int,
        description: Optional[str] = None,
    ) -> Product:
        if not name:
            raise InvalidArgument("Invalid or missing parameters")
        price = _validate_price(price)
        if stock is None or stock < 0:
            raise InvalidArgument("Stock must be zero or more")
        with smart_transaction(self.db):
            if not self.categories.get(category_id):
                raise InvalidArgument("Category does not exist")
            product = self.products.create(
                name=name,
                description=description or settings.DEFAULT_PRODUCT_DESCRIPTION,
                price=price,
                stock=stock,
                category_id=category_id,
            )
        logger.info("Created product %s in category %s", product.id, category_id)
        return product

    def update_product(self, product_id: int, **fields) -> Product:
        """Apply the given non-None fields; unknown field names are rejected."""
        _require_positive_id(product_id, "product")
        unknown = set(fields) - set(UPDATABLE_PRODUCT_FIELDS)
        if unknown:
            raise InvalidArgument(f"Unknown product fields: {sorted(unknown)}")
        changes = {k: v for k, v in fields.items() if v is not None}
        if "name" in changes and not changes["name"]:
            raise InvalidArgument("Product name cannot be empty")
        if "price" in changes:
            changes["price"] = _validate_price(changes["price"])
        if "stock" in changes and changes["stock"] < 0:
            raise InvalidArgument("Stock must be zero or more")
        with smart_transaction(self.db):
            product = self.products.get(product_id)
            if not product:
                raise NotFound("Product not found")
            if "category_id" in changes and not self.categories.get(changes["category_id"]):
                raise InvalidArgument("Category does not exist")
            self.products.update(product, **changes)
        logger.info("Updated product %s: %s", product_id, sorted(changes))
        return product

    def delete_product(self, product_id: int):
        _require_positive_id(product_id, "product")
        with smart_transaction(self.db):
            product = self.products.get(product_id)
            if not product:
                raise NotFound("Product not found")
            if self.products.is_referenced(product_id):
                raise Conflict("Product is referenced by a cart or an order")
            self.products.delete(product)
        logger.info("Deleted product %s", product_id)
