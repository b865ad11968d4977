from flask import Blueprint, jsonify, g, current_app

from utils.decorators import session_required
from utils.mobile_auth import request_pairing_code

bp = Blueprint("device_codes", __name__, url_prefix="/device-code")


@bp.post("/create")
@session_required()
def create():
    """
    Create a pairing code for the signed-in user. Shown once; type it into the mobile app.
    ---
    tags:
      - Pairing
    security:
      - Bearer: []
    responses:
      200:
        description: OK
        schema:
          type: object
          properties:
            code: { type: string, example: K7M9QX }
            expiresIn: { type: integer, example: 600 }
      401:
        description: Unauthorized
    """
    code = request_pairing_code(g.current_user.id)
    return jsonify(
        {
            "success": True,
            "code": code,
            "expiresIn": int(current_app.config["DEVICE_CODE_EXPIRES"].total_seconds()),
            "message": "Enter this code in your mobile app to pair the device",
        }
    ), 200
