"""Register (POS terminal) model."""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from retailpos.database import Base, generate_id


class Register(Base):
    """
    Register - a physical POS terminal.

    A cashier session is bound to a register, and the register decides which
    branch the session (and therefore the cart) belongs to.
    """

    __tablename__ = 'register'

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(120), nullable=False)
    branch_id = Column(String(36), ForeignKey('branch.id'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    branch = relationship('Branch')

    def __repr__(self):
        return f"<Register(id={self.id}, branch_id={self.branch_id})>"
