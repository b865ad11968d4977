"""
Mobile device pairing and token lifecycle.

Flow:
- a signed-in web user asks for a pairing code (request_pairing_code)
- the mobile app trades the code for an access/refresh pair (exchange_device_code)
- the app refreshes before the 15 minute access token lapses (refresh_access_token);
  every refresh rotates the refresh token, the previous value stops working
- logout revokes the refresh token (revoke_refresh_token)
- API handlers resolve the caller from the Authorization header (authenticate)

Rejections are returned as None and never say why: an unknown, expired or
already used secret all look the same to the caller. Plaintext codes and
tokens are never stored or logged, only their sha256 hashes.
"""
from __future__ import annotations

import logging
from typing import Dict, Optional

from flask import current_app

import models
from models.secret_store import SecretStore
from utils import security

logger = logging.getLogger(__name__)


def _store(store: Optional[SecretStore]) -> SecretStore:
    return store if store is not None else SecretStore(models.storage)


def _token_pair(access_token: str, refresh_token: str) -> Dict[str, object]:
    return {
        "accessToken": access_token,
        "refreshToken": refresh_token,
        "expiresIn": security.access_token_lifetime_seconds(),
    }


def request_pairing_code(user_id: str, store: Optional[SecretStore] = None) -> str:
    """Mint a one-time pairing code for an already authenticated user.

    Stale (expired or consumed) codes of the same user are purged first.
    Returns the plaintext code; only its hash is persisted.
    """
    store = _store(store)
    now = security.utcnow()
    purged = store.purge_stale_device_codes(user_id, now)
    if purged:
        logger.debug("purged %d stale device codes for user=%s", purged, user_id)

    code = security.generate_device_code()
    expires_at = now + current_app.config["DEVICE_CODE_EXPIRES"]
    store.create_device_code(user_id, security.hash_token(code), expires_at)
    logger.info("pairing code issued user=%s expires_at=%s", user_id, expires_at.isoformat())
    return code


def exchange_device_code(
    code: str,
    device_name: Optional[str] = None,
    store: Optional[SecretStore] = None,
) -> Optional[Dict[str, object]]:
    """Trade a pairing code for a token pair. None when the code can't be used.

    Only the request that wins the conditional consume gets tokens; a
    concurrent exchange of the same code gets None.
    """
    store = _store(store)
    now = security.utcnow()
    code_hash = security.hash_token(code.strip().upper())

    device_code = store.find_usable_device_code(code_hash, now)
    if device_code is None:
        return None
    user_id = device_code.user_id
    if not store.consume_device_code(device_code.id, now):
        logger.info("pairing code lost consume race user=%s", user_id)
        return None

    device_id = security.generate_device_id()
    refresh_token = security.generate_refresh_token()
    store.create_refresh_token(
        user_id=user_id,
        token_hash=security.hash_token(refresh_token),
        device_id=device_id,
        device_name=device_name,
        expires_at=now + current_app.config["REFRESH_TOKEN_EXPIRES"],
    )
    access_token = security.create_access_token(user_id, device_id, now=now)
    logger.info("device paired user=%s device=%s name=%s", user_id, device_id, device_name)
    return _token_pair(access_token, refresh_token)


def refresh_access_token(
    refresh_token: str,
    store: Optional[SecretStore] = None,
) -> Optional[Dict[str, object]]:
    """Rotate a refresh token and mint a new access token.

    None means the device session is dead (unknown, expired, revoked or
    already rotated token); the client must pair again.
    """
    store = _store(store)
    now = security.utcnow()
    current_hash = security.hash_token(refresh_token)

    stored = store.find_usable_refresh_token(current_hash, now)
    if stored is None:
        return None

    new_refresh_token = security.generate_refresh_token()
    rotated = store.rotate_refresh_token(
        stored.id,
        current_hash=current_hash,
        new_hash=security.hash_token(new_refresh_token),
        new_expires_at=now + current_app.config["REFRESH_TOKEN_EXPIRES"],
        now=now,
    )
    if not rotated:
        logger.info("refresh lost rotation race device=%s", stored.device_id)
        return None

    access_token = security.create_access_token(stored.user_id, stored.device_id, now=now)
    logger.debug("refresh token rotated user=%s device=%s", stored.user_id, stored.device_id)
    return _token_pair(access_token, new_refresh_token)


def revoke_refresh_token(refresh_token: str, store: Optional[SecretStore] = None) -> bool:
    """Revoke a refresh token. False if it was unknown or already revoked."""
    store = _store(store)
    revoked = store.revoke_refresh_token(security.hash_token(refresh_token), security.utcnow())
    if revoked:
        logger.info("refresh token revoked")
    return revoked


def authenticate(authorization: Optional[str]) -> Optional[Dict[str, str]]:
    """Resolve `Bearer <access token>` to {"userId", "deviceId"}.

    Anything else, including a missing header, is anonymous (None). Never
    touches the database.
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    if not token:
        return None
    return security.verify_access_token(token)


def parse_device_name(user_agent: Optional[str]) -> str:
    """Best-effort human label for a device from its User-Agent."""
    ua = user_agent or ""
    if "iPhone" in ua:
        return "iPhone"
    if "iPad" in ua:
        return "iPad"
    if "Android" in ua:
        return "Android Device"
    if "Expo" in ua:
        return "Expo App"
    return "Mobile Device"
