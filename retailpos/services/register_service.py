"""Register Service - resolves which branch a POS terminal belongs to."""
from sqlalchemy.orm import Session
from retailpos.models import Register
from retailpos.exceptions import NotFoundError, ValidationError


def get_register_branch(session: Session, register_id: str) -> str:
    """Return the branch id of a register."""
    if not register_id:
        raise ValidationError('No register is assigned to this session.')

    register = session.query(Register).filter(Register.id == register_id).first()
    if not register:
        raise NotFoundError('Register not found')
    return register.branch_id
