from __future__ import annotations

from functools import wraps

from flask import session

from ..core.enums import Role
from .responses import send_error


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return send_error(401, "Unauthorized")
        return view(*args, **kwargs)

    return wrapper


def role_required(*roles: Role):
    """Restrict a view to users whose session role is one of ``roles``."""
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return send_error(401, "Unauthorized")
            if session.get("role") not in allowed:
                return send_error(403, "Access forbidden: insufficient permissions")
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = role_required(Role.ADMIN)
student_required = role_required(Role.STUDENT)


def current_user_id() -> int:
    return int(session["user_id"])


def current_user_name() -> str:
    return session.get("name") or "Admin"
