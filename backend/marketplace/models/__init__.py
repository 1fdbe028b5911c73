# import every model so relationships resolve and Base.metadata is complete
from marketplace.models.category import Category
from marketplace.models.product import Product
from marketplace.models.user import User
from marketplace.models.cart import Cart, CartLine
from marketplace.models.order import Order, OrderLine

__all__ = ["Category", "Product", "User", "Cart", "CartLine", "Order", "OrderLine"]
