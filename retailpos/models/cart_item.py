"""Cart item model (one line per product in a cart)."""
from datetime import datetime
from sqlalchemy import Column, String, Integer, Numeric, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class CartItem(Base):
    """
    Cart Item - a product line in the cart.

    Name, unit price and tax rate are captured when the product is added so
    later catalog edits do not reprice an open cart.
    """

    __tablename__ = 'cart_item'
    __table_args__ = (
        UniqueConstraint('cart_id', 'product_id', name='uq_cart_item_product'),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    cart_id = Column(String(36), ForeignKey('cart.id', ondelete='CASCADE'), nullable=False, index=True)
    product_id = Column(String(36), ForeignKey('product.id'), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    cart = relationship('Cart', back_populates='items')
    product = relationship('Product')

    def __repr__(self):
        return f"<CartItem(id={self.id}, product_id={self.product_id}, quantity={self.quantity})>"
