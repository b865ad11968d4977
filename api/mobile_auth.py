"""
Mobile token blueprint (no prior authentication, these routes ARE the authentication):
- POST /mobile/auth/exchange  {code, deviceName?} -> token pair   (rate limited per client)
- POST /mobile/auth/refresh   {refreshToken}      -> rotated token pair
- POST /mobile/auth/logout    {refreshToken}      -> always success

Failures: 400 malformed body, 401 unusable code/token (one generic message),
429 too many exchange attempts.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, abort, current_app
from sqlalchemy.exc import SQLAlchemyError

from models.schemas.mobile_auth import DeviceCodeExchangeSchema, RefreshTokenRequestSchema
from utils.mobile_auth import (
    exchange_device_code,
    refresh_access_token,
    revoke_refresh_token,
    parse_device_name,
)

logger = logging.getLogger(__name__)

bp = Blueprint("mobile_auth", __name__, url_prefix="/mobile/auth")

exchange_schema = DeviceCodeExchangeSchema()
refresh_schema = RefreshTokenRequestSchema()


def client_key() -> str:
    # Peer address only. Behind a proxy, TRUSTED_PROXY_HOPS makes ProxyFix
    # rewrite remote_addr from X-Forwarded-For; the raw header is client-controlled.
    return request.remote_addr or "unknown"


@bp.post("/exchange")
def exchange():
    """
    Exchange a pairing code for access and refresh tokens.
    ---
    tags:
      - Mobile Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            code: { type: string, example: K7M9QX }
            deviceName: { type: string }
    responses:
      200:
        description: Token pair
        schema:
          type: object
          properties:
            accessToken: { type: string }
            refreshToken: { type: string }
            expiresIn: { type: integer, example: 900 }
      400:
        description: Malformed body
      401:
        description: Invalid or expired device code
      429:
        description: Too many attempts
    """
    limiter = current_app.extensions["exchange_rate_limiter"]
    key = client_key()
    if not limiter.allow(key):
        logger.warning("exchange rate limit hit client=%s", key)
        abort(429, description="Too many attempts. Please wait a minute.",
              retry_after=limiter.retry_after(key))

    payload = request.get_json(silent=True) or {}
    data = exchange_schema.load(payload)
    device_name = data.get("device_name") or parse_device_name(request.headers.get("User-Agent"))

    tokens = exchange_device_code(data["code"], device_name=device_name)
    if tokens is None:
        abort(401, description="Invalid or expired device code")

    return jsonify({"success": True, **tokens}), 200


@bp.post("/refresh")
def refresh():
    """
    Rotate a refresh token and get a new access token. The old refresh token stops working.
    ---
    tags:
      - Mobile Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            refreshToken: { type: string }
    responses:
      200:
        description: Token pair
      400:
        description: Malformed body
      401:
        description: Invalid or expired refresh token (device must pair again)
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    tokens = refresh_access_token(data["refresh_token"])
    if tokens is None:
        abort(401, description="Invalid or expired refresh token")

    return jsonify({"success": True, **tokens}), 200


@bp.post("/logout")
def logout():
    """
    Revoke a refresh token. Idempotent: unknown or already revoked tokens also succeed.
    ---
    tags:
      - Mobile Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            refreshToken: { type: string }
    responses:
      200:
        description: Logged out
      400:
        description: Malformed body
    """
    payload = request.get_json(silent=True) or {}
    data = refresh_schema.load(payload)

    try:
        revoke_refresh_token(data["refresh_token"])
    except SQLAlchemyError:
        # Logout is best-effort cleanup; the client drops its tokens either way
        logger.exception("logout: revoking refresh token failed")

    return jsonify({"success": True, "message": "Logged out successfully"}), 200
