"""Branch model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime
from retailpos.database import Base, generate_id


class Branch(Base):
    """Physical store location; carts and discounts are scoped per branch."""

    __tablename__ = 'branch'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False, unique=True)
    address = Column(String(255), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<Branch(id={self.id}, name='{self.name}')>"
