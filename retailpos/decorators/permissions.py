"""
Permission decorators for role-based access control.
Extends require_login with checks against the persistent role store.
"""

from functools import wraps
from flask import g
from retailpos.database import get_session
from retailpos.exceptions import AuthenticationError, UnauthorizedError
from retailpos.services.role_service import user_has_any_permission


def require_permission(*permissions):
    """
    Decorator to check that the user holds at least one of the permissions.

    Usage:
        @require_permission(Permission.APPLY_DISCOUNT)
        @require_permission(Permission.UPDATE_DISCOUNT, Permission.CREATE_DISCOUNT)

    Args:
        *permissions: Permission members or their string values

    Returns:
        Decorator function
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Must be logged in
            if not g.get('user'):
                raise AuthenticationError()

            if not user_has_any_permission(get_session(), g.user_id, permissions):
                names = ', '.join(getattr(p, 'value', str(p)) for p in permissions)
                raise UnauthorizedError(f'Missing permission: {names}')

            return f(*args, **kwargs)

        return decorated_function
    return decorator
