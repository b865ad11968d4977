import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from utils.rate_limit import FixedWindowRateLimiter, RateLimiter

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Capture API",
        "version": "1.0.0",
        "description": "Device pairing, mobile token lifecycle and mobile settings for the capture app.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, rate_limiter: RateLimiter | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
      - config is selected by name or APP_ENV (see config.get_config)
      - rate_limiter guards the pairing-code exchange; defaults to the
        in-process fixed window built from EXCHANGE_RATE_* settings
    """
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    if app.config["TRUSTED_PROXY_HOPS"]:
        # remote_addr becomes the client address as seen by the outermost trusted proxy
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=app.config["TRUSTED_PROXY_HOPS"])

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel(app.config["LOG_LEVEL"])

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    storage.init_engine(app.config["DATABASE_URL"], echo=app.config["SQL_ECHO"])
    storage.reload()

    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            max_attempts=app.config["EXCHANGE_RATE_LIMIT"],
            window_seconds=app.config["EXCHANGE_RATE_WINDOW_SECONDS"],
        )
    app.extensions["exchange_rate_limiter"] = rate_limiter

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .device_codes import bp as device_codes_bp
    from .mobile_auth import bp as mobile_auth_bp
    from .mobile import bp as mobile_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(auth_bp, url_prefix="/api/v1/auth")
    app.register_blueprint(device_codes_bp, url_prefix="/api/v1/device-code")
    app.register_blueprint(mobile_auth_bp, url_prefix="/api/v1/mobile/auth")
    app.register_blueprint(mobile_bp, url_prefix="/api/v1/mobile")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to the Capture API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
