from __future__ import annotations

from flask import Blueprint, request, jsonify, g
from sqlalchemy.exc import IntegrityError

from models import storage
from models.user_settings import UserSettings, DEFAULT_DIGEST_TIME, DEFAULT_TIMEZONE
from models.schemas.settings import UserSettingsUpdateSchema, UserSettingsOutSchema
from utils.decorators import mobile_auth_required

bp = Blueprint("mobile", __name__, url_prefix="/mobile")

settings_update_schema = UserSettingsUpdateSchema()
settings_out_schema = UserSettingsOutSchema()


def _settings_for(user_id: str) -> UserSettings:
    session = storage.get_session()
    settings = session.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if settings is None:
        settings = UserSettings(
            user_id=user_id,
            daily_digest_enabled=True,
            daily_digest_time=DEFAULT_DIGEST_TIME,
            timezone=DEFAULT_TIMEZONE,
        )
        storage.new(settings)
        try:
            storage.save()
        except IntegrityError:
            # Another request created the row first; save() already rolled back
            settings = session.query(UserSettings).filter(UserSettings.user_id == user_id).one()
    return settings


@bp.get("/me")
@mobile_auth_required()
def me():
    """
    Identity behind the presented access token.
    ---
    tags:
      - Mobile
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    return jsonify(g.mobile_auth), 200


@bp.get("/settings")
@mobile_auth_required()
def get_settings():
    """
    Digest settings of the mobile user (defaults are created on first read).
    ---
    tags:
      - Mobile
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
    """
    settings = _settings_for(g.mobile_auth["userId"])
    return jsonify({"settings": settings_out_schema.dump(settings)}), 200


@bp.patch("/settings")
@mobile_auth_required()
def update_settings():
    """
    Update digest settings.
    ---
    tags:
      - Mobile
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          properties:
            dailyDigestEnabled: { type: boolean }
            dailyDigestTime: { type: string, example: "08:00" }
            timezone: { type: string }
    responses:
      200:
        description: OK
      400:
        description: Malformed body
      401:
        description: Unauthorized
    """
    payload = request.get_json(silent=True) or {}
    updates = settings_update_schema.load(payload)

    settings = _settings_for(g.mobile_auth["userId"])
    for key, value in updates.items():
        setattr(settings, key, value)
    storage.new(settings)
    storage.save()
    return jsonify({"settings": settings_out_schema.dump(settings)}), 200
