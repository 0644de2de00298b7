"""Discount model."""
import enum
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, Numeric, Date, DateTime, Text, Enum, ForeignKey, Table
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class DiscountType(enum.Enum):
    """How the discount value is interpreted."""
    PERCENTAGE = "PERCENTAGE"
    FIXED = "FIXED"
    BUY_X_GET_Y = "BUY_X_GET_Y"


class DiscountScope(enum.Enum):
    """Which part of the cart a discount applies to."""
    ENTIRE_ORDER = "ENTIRE_ORDER"
    SPECIFIC_PRODUCTS = "SPECIFIC_PRODUCTS"
    SPECIFIC_CATEGORIES = "SPECIFIC_CATEGORIES"


CATEGORY_IDS_SEPARATOR = ','


discount_product = Table(
    'discount_product',
    Base.metadata,
    Column('discount_id', String(36), ForeignKey('discount.id', ondelete='CASCADE'), primary_key=True),
    Column('product_id', String(36), ForeignKey('product.id', ondelete='CASCADE'), primary_key=True),
)

discount_branch = Table(
    'discount_branch',
    Base.metadata,
    Column('discount_id', String(36), ForeignKey('discount.id', ondelete='CASCADE'), primary_key=True),
    Column('branch_id', String(36), ForeignKey('branch.id', ondelete='CASCADE'), primary_key=True),
)


class Discount(Base):
    """
    Discount policy.

    Created and edited from administration; the POS only reads it. Validity is
    re-checked on every cart read, and `current_uses` is incremented by the
    checkout flow, never by the cart.
    """

    __tablename__ = 'discount'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False)
    code = Column(String(64), nullable=True, unique=True)
    type = Column(Enum(DiscountType, name='discount_type'), nullable=False)
    value = Column(Numeric(10, 2), nullable=False)
    min_purchase_amount = Column(Numeric(10, 2), nullable=True)
    applies_to = Column(Enum(DiscountScope, name='discount_scope'), nullable=False,
                        default=DiscountScope.ENTIRE_ORDER)
    # Comma separated category ids; use the category_ids property
    category_ids_raw = Column('category_ids', Text, nullable=True)
    buy_x_quantity = Column(Integer, nullable=True)
    get_y_quantity = Column(Integer, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # NULL = no expiry
    max_uses = Column(Integer, nullable=True)  # NULL = unlimited
    current_uses = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.now)

    # Relationships
    products = relationship('Product', secondary=discount_product)
    branches = relationship('Branch', secondary=discount_branch)

    @property
    def category_ids(self):
        """Category ids as a set."""
        if not self.category_ids_raw:
            return frozenset()
        return frozenset(
            part.strip() for part in self.category_ids_raw.split(CATEGORY_IDS_SEPARATOR) if part.strip()
        )

    @category_ids.setter
    def category_ids(self, ids):
        cleaned = sorted({str(i).strip() for i in (ids or ()) if str(i).strip()})
        self.category_ids_raw = CATEGORY_IDS_SEPARATOR.join(cleaned) or None

    @property
    def product_ids(self):
        return frozenset(p.id for p in self.products)

    def __repr__(self):
        return f"<Discount(id={self.id}, name='{self.name}', type={self.type})>"
