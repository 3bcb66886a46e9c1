from functools import wraps
from flask import g
from security.session import session_from_request
from services.errors import UnauthorizedError


def load_current_user():
    """before_request hook: g.user is the logged-in User or None."""
    sess = session_from_request()
    g.session = sess
    g.user = sess.user if sess else None


def login_required(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if getattr(g, "user", None) is None:
            raise UnauthorizedError()
        return fn(*args, **kwargs)
    return wrapper
