from functools import wraps
from flask import g

from services.errors import AuthorizationError, UnauthorizedError


def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN")

    401 without a login, 403 when the user holds none of the roles.
    """
    wanted = set(role_names)

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                raise UnauthorizedError()
            if not wanted & user.role_names:
                raise AuthorizationError()
            return fn(*args, **kwargs)
        return wrapper
    return decorator
