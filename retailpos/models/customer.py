"""Customer model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime
from retailpos.database import Base, generate_id


class Customer(Base):
    """Customer attached to a cart at checkout."""

    __tablename__ = 'customer'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.name}')>"
