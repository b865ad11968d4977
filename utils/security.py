"""
security helpers:
- Argon2 password hashing via argon2-cffi (web accounts)
- Mobile access tokens and web session tokens via PyJWT (HS256)
- sha256 hashing and secure random generation for pairing codes,
  refresh tokens and device ids
"""
from __future__ import annotations

import calendar
import hashlib
import secrets
from datetime import datetime, timezone
from typing import Dict, Any, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from flask import current_app

ph = PasswordHasher()

# Visually ambiguous characters (0, O, 1, I) are left out
DEVICE_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
DEVICE_CODE_LENGTH = 6

ACCESS_TOKEN_TYPE = "access"
SESSION_TOKEN_TYPE = "session"


def hash_password(password: str) -> str:
    """Hash a plaintext password using Argon2
    """
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """ Verify a plaintext password using argon2
    """
    try:
        return ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False


def utcnow() -> datetime:
    """Naive UTC now. Every expiry written or checked goes through this clock."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _epoch(dt: datetime) -> int:
    return calendar.timegm(dt.utctimetuple())


def hash_token(value: str) -> str:
    """One-way sha256 hex digest used as the lookup key for stored secrets."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def generate_device_code() -> str:
    return "".join(secrets.choice(DEVICE_CODE_ALPHABET) for _ in range(DEVICE_CODE_LENGTH))


def generate_refresh_token() -> str:
    """256 bits of randomness, hex encoded."""
    return secrets.token_hex(32)


def generate_device_id() -> str:
    return secrets.token_hex(16)


def _encode(payload: Dict[str, Any], secret: str) -> str:
    return jwt.encode(payload, secret, algorithm=current_app.config["JWT_ALGORITHM"])


def _decode(token: str, secret: str, expected_type: str) -> Optional[Dict[str, Any]]:
    """
    Verify signature and kind, then check iat/exp against utcnow().
    Expiry is checked here rather than by PyJWT so signer and verifier share
    one clock; there is no leeway.
    """
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"verify_exp": False, "verify_iat": False, "require": ["exp", "iat", "type"]},
        )
    except jwt.InvalidTokenError:
        return None

    if decoded.get("type") != expected_type:
        return None
    now = _epoch(utcnow())
    iat, exp = decoded.get("iat"), decoded.get("exp")
    if not isinstance(iat, int) or not isinstance(exp, int):
        return None
    if not (iat <= now < exp):
        return None
    return decoded


def create_access_token(user_id: str, device_id: str, now: Optional[datetime] = None) -> str:
    """Signed mobile access token for (user_id, device_id), valid ACCESS_TOKEN_EXPIRES."""
    issued = now or utcnow()
    exp = issued + current_app.config["ACCESS_TOKEN_EXPIRES"]
    payload = {
        "userId": str(user_id),
        "deviceId": str(device_id),
        "type": ACCESS_TOKEN_TYPE,
        "iat": _epoch(issued),
        "exp": _epoch(exp),
    }
    return _encode(payload, current_app.config["MOBILE_JWT_SECRET"])


def verify_access_token(token: str) -> Optional[Dict[str, str]]:
    """
    Return {"userId", "deviceId"} for a valid access token, else None.
    Malformed, mis-signed, wrong-kind and expired tokens are indistinguishable.
    """
    decoded = _decode(token, current_app.config["MOBILE_JWT_SECRET"], ACCESS_TOKEN_TYPE)
    if decoded is None:
        return None
    user_id, device_id = decoded.get("userId"), decoded.get("deviceId")
    if not isinstance(user_id, str) or not isinstance(device_id, str):
        return None
    return {"userId": user_id, "deviceId": device_id}


def access_token_lifetime_seconds() -> int:
    return int(current_app.config["ACCESS_TOKEN_EXPIRES"].total_seconds())


def create_session_token(user_id: str) -> str:
    """Web session credential returned by /auth/login."""
    issued = utcnow()
    exp = issued + current_app.config["SESSION_TOKEN_EXPIRES"]
    payload = {
        "sub": str(user_id),
        "type": SESSION_TOKEN_TYPE,
        "iat": _epoch(issued),
        "exp": _epoch(exp),
    }
    return _encode(payload, current_app.config["SECRET_KEY"])


def decode_session_token(token: str) -> Optional[Dict[str, Any]]:
    return _decode(token, current_app.config["SECRET_KEY"], SESSION_TOKEN_TYPE)
