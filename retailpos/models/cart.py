"""Cart model for the persistent POS cart (per user and branch)."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class Cart(Base):
    """
    Cart - persistent POS cart.

    A cashier may park several carts, but only one is active per user and
    branch at a time. The stored row never carries totals: they are
    recomputed from the items on every read.
    """

    __tablename__ = 'cart'

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey('app_user.id'), nullable=False, index=True)
    branch_id = Column(String(36), ForeignKey('branch.id'), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    customer_id = Column(String(36), ForeignKey('customer.id', ondelete='SET NULL'), nullable=True)
    discount_id = Column(String(36), ForeignKey('discount.id', ondelete='SET NULL'), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=datetime.now)

    # Relationships
    user = relationship('AppUser')
    branch = relationship('Branch')
    items = relationship(
        'CartItem',
        back_populates='cart',
        cascade='all, delete-orphan',
        order_by='CartItem.created_at',
    )

    def __repr__(self):
        return f"<Cart(id={self.id}, user_id={self.user_id}, branch_id={self.branch_id})>"
