from __future__ import annotations
from functools import wraps
from flask import request, g, abort
from utils.security import decode_session_token
from utils.mobile_auth import authenticate
from models import storage
from models.user import User


def session_required():
    """Web session routes: Bearer session token -> g.current_user."""
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            auth = request.headers.get("Authorization", "")
            if not auth.startswith("Bearer "):
                abort(401, description="Missing or invalid Authorization header")
            token = auth.split(" ", 1)[1].strip()
            decoded = decode_session_token(token)
            if decoded is None:
                abort(401, description="Invalid or expired session")

            user = storage.get(User, decoded.get("sub"))
            if not user:
                abort(401, description="User not found")
            g.current_user = user
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def mobile_auth_required():
    """
    Mobile API routes: Bearer access token -> g.mobile_auth = {"userId", "deviceId"}.
    Verification is signature + expiry only; no database read.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = authenticate(request.headers.get("Authorization"))
            if identity is None:
                abort(401, description="Unauthorized")
            g.mobile_auth = identity
            return fn(*args, **kwargs)

        return wrapper

    return decorator
