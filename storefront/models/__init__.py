from storefront.models.user import User, UserOrderLink
from storefront.models.address import Address
from storefront.models.category import Category
from storefront.models.product import Product
from storefront.models.order_item import OrderItem
from storefront.models.order import Order

# add ALL models here
