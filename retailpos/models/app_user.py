"""Application user model."""
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class AppUser(Base):
    """POS operator (cashier, manager, admin...)."""

    __tablename__ = 'app_user'

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    # Terminal assigned to the operator; resolves the branch for carts
    register_id = Column(String(36), ForeignKey('register.id'), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    register = relationship('Register')
    roles = relationship('Role', secondary='user_role', back_populates='users')
    additional_permissions = relationship(
        'UserPermission', cascade='all, delete-orphan', back_populates='user'
    )

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}')>"
