"""Role and permission models (persistent role store)."""
import enum
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Table
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class Permission(str, enum.Enum):
    """Permission names granted through roles or directly to a user."""
    # Analytics
    VIEW_ANALYTICS = 'view_analytics'

    # User management
    VIEW_USERS = 'view_users'
    EDIT_USERS = 'edit_users'
    CREATE_USER = 'create_user'
    DELETE_USER = 'delete_user'

    # Product management
    VIEW_PRODUCTS = 'view_products'
    EDIT_PRODUCTS = 'edit_products'
    CREATE_PRODUCT = 'create_product'
    DELETE_PRODUCT = 'delete_product'
    ADJUST_INVENTORY = 'adjust_inventory'

    # Customer management
    VIEW_CUSTOMERS = 'view_customers'
    EDIT_CUSTOMERS = 'edit_customers'
    CREATE_CUSTOMER = 'create_customer'
    DELETE_CUSTOMER = 'delete_customer'

    # Sales & transactions
    VIEW_TRANSACTIONS = 'view_transactions'
    VIEW_SALES = 'view_sales'
    CREATE_SALE = 'create_sale'
    VOID_SALE = 'void_sale'
    ISSUE_REFUND = 'issue_refund'

    # Registers
    VIEW_REGISTER = 'view_register'
    OPEN_CLOSE_REGISTER = 'open_close_register'

    # Settings
    VIEW_SETTINGS = 'view_settings'
    EDIT_SETTINGS = 'edit_settings'

    # Discounts
    VIEW_DISCOUNTS = 'view_discounts'
    CREATE_DISCOUNT = 'create_discount'
    UPDATE_DISCOUNT = 'update_discount'
    DELETE_DISCOUNT = 'delete_discount'
    APPLY_DISCOUNT = 'apply_discount'

    # Roles
    VIEW_ROLES = 'view_roles'
    CREATE_ROLE = 'create_role'
    UPDATE_ROLE = 'update_role'
    DELETE_ROLE = 'delete_role'
    ASSIGN_PERMISSIONS = 'assign_permissions'


user_role = Table(
    'user_role',
    Base.metadata,
    Column('user_id', String(36), ForeignKey('app_user.id', ondelete='CASCADE'), primary_key=True),
    Column('role_id', String(36), ForeignKey('role.id', ondelete='CASCADE'), primary_key=True),
)


class Role(Base):
    """Named set of permissions. Built-in roles are seeded, custom ones are user-defined."""

    __tablename__ = 'role'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(80), nullable=False, unique=True)
    description = Column(String(255), nullable=True)
    is_builtin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    permissions = relationship('RolePermission', cascade='all, delete-orphan', back_populates='role')
    users = relationship('AppUser', secondary=user_role, back_populates='roles')

    @property
    def permission_names(self):
        return sorted(p.permission for p in self.permissions)

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class RolePermission(Base):
    """Permission granted by a role."""

    __tablename__ = 'role_permission'

    role_id = Column(String(36), ForeignKey('role.id', ondelete='CASCADE'), primary_key=True)
    permission = Column(String(64), primary_key=True)

    role = relationship('Role', back_populates='permissions')


class UserPermission(Base):
    """Permission granted directly to a user on top of their roles."""

    __tablename__ = 'user_permission'

    user_id = Column(String(36), ForeignKey('app_user.id', ondelete='CASCADE'), primary_key=True)
    permission = Column(String(64), primary_key=True)

    user = relationship('AppUser', back_populates='additional_permissions')
