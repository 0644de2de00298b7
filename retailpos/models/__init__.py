"""Models package - exports all SQLAlchemy models."""
# Organisation
from retailpos.models.branch import Branch
from retailpos.models.register import Register
from retailpos.models.app_user import AppUser
from retailpos.models.role import Role, RolePermission, UserPermission, Permission, user_role

# Catalog
from retailpos.models.category import Category
from retailpos.models.product import Product
from retailpos.models.customer import Customer

# POS
from retailpos.models.discount import (
    Discount, DiscountType, DiscountScope, discount_product, discount_branch
)
from retailpos.models.cart import Cart
from retailpos.models.cart_item import CartItem

__all__ = [
    'Branch', 'Register', 'AppUser',
    'Role', 'RolePermission', 'UserPermission', 'Permission', 'user_role',
    'Category', 'Product', 'Customer',
    'Discount', 'DiscountType', 'DiscountScope', 'discount_product', 'discount_branch',
    'Cart', 'CartItem',
]
