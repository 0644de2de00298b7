"""Category model."""
from sqlalchemy import Column, String
from retailpos.database import Base, generate_id


class Category(Base):
    """Product Category."""

    __tablename__ = 'category'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False, unique=True)

    def __repr__(self):
        return f"<Category(id={self.id}, name='{self.name}')>"
