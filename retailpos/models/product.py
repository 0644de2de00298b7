"""Product model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class Product(Base):
    """Catalog product."""

    __tablename__ = 'product'

    id = Column(String(36), primary_key=True, default=generate_id)
    sku = Column(String(64), nullable=True, unique=True)
    barcode = Column(String(64), nullable=True)
    name = Column(String(200), nullable=False)
    category_id = Column(String(36), ForeignKey('category.id'), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    category = relationship('Category')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"
