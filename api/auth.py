"""
Web account blueprint:
- POST /auth/register
- POST /auth/login
- GET  /auth/me

The web session is what vouches for a user before a mobile device can be
paired (see device_codes.py). Passwords are hashed with argon2; the session
credential is a JWT of type "session", which the mobile access-token
verifier rejects.
"""
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, g, abort, current_app

from models import storage
from models.user import User
from models.schemas.user import UserCreateSchema, UserOutSchema, UserLoginSchema

from utils.decorators import session_required
from utils.security import hash_password, verify_password, create_session_token

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_create_schema = UserCreateSchema()
user_out_schema = UserOutSchema()
user_login_schema = UserLoginSchema()


@bp.post("/register")
def register():
    """
    register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            email: { type: string }
            password: { type: string }
            name: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    payload = request.get_json(silent=True) or {}
    data = user_create_schema.load(payload)

    session = storage.get_session()
    if session.query(User).filter(User.email == data.get("email")).first():
        abort(409, description="Email already registered")

    user = User(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        name=data.get("name"),
    )
    storage.new(user)
    storage.save()
    logger.info("user registered id=%s", user.id)

    return jsonify(
        {
            "data": user_out_schema.dump(user)
        }
    ), 201


@bp.post("/login")
def login():
    """
    Login: return a web session token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns session token)
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    data = user_login_schema.load(payload)

    session = storage.get_session()
    user: User = session.query(User).filter(User.email == data["email"]).first()
    if not user or not verify_password(data["password"], user.password_hash):
        abort(401, description="Invalid credential")

    return jsonify(
        {
            "session_token": create_session_token(user.id),
            "token_type": "bearer",
            "expires_in": int(current_app.config["SESSION_TOKEN_EXPIRES"].total_seconds())
        }
    ), 200


@bp.get("/me")
@session_required()
def me():
    """
    Get current web user.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(
        {
            "data": user_out_schema.dump(g.current_user)
        }
    ), 200
