# backoffice/__init__.py
import os
import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager

from backoffice.config import Config
from backoffice.extension.extensions import db
from backoffice.services.errors import BillingError, UnauthenticatedError

jwt = JWTManager()  # global instance


def _unauthenticated(reason):
    return jsonify(UnauthenticatedError("User must be authenticated", details={"reason": reason}).to_dict()), 401


def register_error_handlers(app):

    @app.errorhandler(BillingError)
    def handle_billing_error(err):
        if err.status_code >= 500:
            app.logger.error(f"{err.code}: {err.message}")
        return jsonify(err.to_dict()), err.status_code

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _unauthenticated(reason)

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _unauthenticated(reason)

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return _unauthenticated("Token has expired")


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    log_level = app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    logging.basicConfig(level=log_level)
    app.logger.setLevel(log_level)

    # JWT config BEFORE blueprints
    app.config.setdefault("JWT_TOKEN_LOCATION", ["headers"])
    app.config.setdefault("JWT_HEADER_NAME", "Authorization")
    app.config.setdefault("JWT_HEADER_TYPE", "Bearer")
    jwt.init_app(app)

    # Extensions
    CORS(app)
    db.init_app(app)
    Migrate(app, db)

    # Import models and blueprints AFTER extensions are inited
    from backoffice import models  # noqa: F401
    from backoffice.controllers.billing_controller import bp_billing
    from backoffice.controllers.subscription_controller import bp_subs
    from backoffice.commands import register_commands

    app.register_blueprint(bp_billing)
    app.register_blueprint(bp_subs)

    register_error_handlers(app)
    register_commands(app)

    return app
