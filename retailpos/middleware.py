"""Middleware for authentication and register context."""
from functools import wraps
from flask import session, g, current_app
from retailpos.database import get_session
from retailpos.models import AppUser
from retailpos.exceptions import AuthenticationError


def load_user_context():
    """
    Load current user and register into g (Flask's per-request global).

    Called before each request. Sets g.user, g.user_id and g.register_id when
    the session carries an active user. The register comes from the user's
    assignment, falling back to the one stored in the session.
    """
    g.user = None
    g.user_id = None
    g.register_id = None

    user_id = session.get('user_id')
    if not user_id:
        return

    try:
        db_session = get_session()
        user = db_session.query(AppUser).filter_by(id=user_id, active=True).first()
    except Exception as e:
        # A broken database connection should surface on the route, not here
        current_app.logger.error(f"Error in load_user_context: {e}")
        return

    if user:
        g.user = user
        g.user_id = user.id
        g.register_id = user.register_id or session.get('register_id')


def require_login(f):
    """
    Decorator: Require user to be logged in.

    Raises AuthenticationError (401 JSON) if not authenticated.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user') is None:
            raise AuthenticationError()
        return f(*args, **kwargs)
    return decorated_function
