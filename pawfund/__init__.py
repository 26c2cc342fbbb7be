import logging
import os
from datetime import date, datetime, timedelta
from decimal import Decimal

from dotenv import load_dotenv
from flask import Flask
from flask.json.provider import DefaultJSONProvider
from flask_jwt_extended import JWTManager

load_dotenv(dotenv_path=".env")

from pawfund.errors import register_error_handlers  # noqa: E402
from pawfund.realtime import init_socketio  # noqa: E402
from pawfund.routes import (  # noqa: E402
    adoption_requests,
    adoptions,
    auth_bp,
    case_updates,
    cases,
    core,
    doctors,
    donor,
    emergency,
    welfare,
)

logger = logging.getLogger(__name__)


class PawfundJSONProvider(DefaultJSONProvider):
    """NUMERIC columns as numbers, timestamps as ISO 8601."""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config=None):
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = Flask(__name__)
    app.json = PawfundJSONProvider(app)
    app.url_map.strict_slashes = False
    app.config["MAX_CONTENT_LENGTH"] = 25 * 1024 * 1024

    # JWT
    app.config["JWT_SECRET_KEY"] = os.getenv("JWT_SECRET", "dev-secret")
    app.config["JWT_TOKEN_LOCATION"] = ["headers"]
    app.config["JWT_HEADER_NAME"] = "Authorization"
    app.config["JWT_HEADER_TYPE"] = "Bearer"
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(
        minutes=int(os.getenv("JWT_ACCESS_MINUTES", "60"))
    )
    app.config["JWT_REFRESH_TOKEN_EXPIRES"] = timedelta(days=30)
    if config:
        app.config.update(config)
    jwt = JWTManager(app)

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return {"error": reason}, 401

    @jwt.invalid_token_loader
    def _bad_token(reason):
        return {"error": reason}, 401

    @jwt.expired_token_loader
    def _expired_token(header, payload):
        return {"error": "token expired"}, 401

    @app.get("/__ping")
    def __ping():
        return {"ok": True}, 200

    app.register_blueprint(core)
    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(adoptions, url_prefix="/api/adoptions")
    app.register_blueprint(adoption_requests, url_prefix="/api/adoption-request")
    app.register_blueprint(cases, url_prefix="/api/cases")
    app.register_blueprint(case_updates, url_prefix="/api/case-updates")
    app.register_blueprint(doctors, url_prefix="/api/doctors")
    app.register_blueprint(donor, url_prefix="/api/donor")
    app.register_blueprint(emergency, url_prefix="/api/emergency")
    app.register_blueprint(welfare, url_prefix="/api/welfare")
    register_error_handlers(app)

    logger.debug("routes: %s", sorted(str(rule) for rule in app.url_map.iter_rules()))

    init_socketio(app)
    return app
