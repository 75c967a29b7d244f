"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time, so tests can build isolated
         app instances and Alembic can load metadata without a server.

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Initialise SQLAlchemy via init_app()
  3. Register the splits blueprint under /api/v1/splits
  4. Register global error handlers (AppError → JSON, Exception → 500)
  5. Register a custom JSON provider to serialise Decimal as string
     (amounts leave the API as strings, never JS numbers)

Note on model imports:
  All model classes are imported inside create_app() so that SQLAlchemy's
  metadata is populated before Alembic or db.create_all() inspects it.
"""

from __future__ import annotations

import logging
import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from groupsplit.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("10.50") → "10.50" (not 10.5 or 10.500000001)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Defaults to "development".
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    _configure_logging(app)

    # ── Extensions ─────────────────────────────────────────────────────────
    from groupsplit.app.extensions import db
    db.init_app(app)

    # ── Model registration ─────────────────────────────────────────────────
    with app.app_context():
        from groupsplit.app.models import (  # noqa: F401
            group,
            membership,
            purchase,
            split,
            user,
        )

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _configure_logging(app: Flask) -> None:
    """
    Applies LOG_LEVEL to the app logger and to the service module loggers
    (groupsplit.app.services.*), which propagate to the root handler.
    """
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO

    app.logger.setLevel(level)
    logging.getLogger("groupsplit").setLevel(level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )


def _register_blueprints(app: Flask) -> None:
    from groupsplit.app.routes.splits import splits_bp

    app.register_blueprint(splits_bp, url_prefix="/api/v1/splits")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with its HTTP status
      ValidationError → first marshmallow error as MISSING_FIELD / INVALID_FIELD
                        or the registered code the schema raised (400)
      Exception       → generic INTERNAL_ERROR (500); traceback logged

    Stack traces never leave the server.
    """
    from groupsplit.app.errors import AppError, ErrorCode

    known_codes = set(vars(ErrorCode).values())

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        if error.http_status >= 500:
            app.logger.error("Internal error %s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Returns the FIRST error only: one error per response.

        messages look like {"rule": ["INVALID_SPLIT_RULE"]} or, for list
        items, {"participant_ids": {0: ["..."]}}.
        """
        field, raw_message = _first_validation_error(error.messages)

        if raw_message in known_codes:
            code = raw_message
        elif raw_message.startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
        else:
            code = ErrorCode.INVALID_FIELD

        response_body = {
            "error": {
                "code": code,
                "message": _code_to_message(code) if raw_message in known_codes else raw_message,
            }
        }
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        if isinstance(error, HTTPException):
            # Unknown routes and wrong methods keep their own status.
            return jsonify({
                "error": {"code": error.name.upper().replace(" ", "_"), "message": error.description}
            }), error.code
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _first_validation_error(messages) -> tuple[str | None, str]:
    """Walks marshmallow's nested messages down to the first leaf string."""
    field = None
    current = messages
    while True:
        if isinstance(current, dict):
            if not current:
                return field, "Invalid input."
            key, current = next(iter(current.items()))
            if field is None and isinstance(key, str) and key != "_schema":
                field = key
        elif isinstance(current, list):
            if not current:
                return field, "Invalid value."
            current = current[0]
        else:
            return field, str(current)


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so a frontend served from another
    local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _code_to_message(code: str) -> str:
    """Default message for a ValidationError whose message IS an error code."""
    _messages = {
        "INVALID_SPLIT_RULE": "rule must be one of 'equal', 'quantity' or 'custom'.",
        "DUPLICATE_PARTICIPANT": "The same user_id appears more than once.",
        "CUSTOM_SPLITS_REQUIRED": "custom_splits is required when rule is 'custom'.",
        "NO_PARTICIPANTS": "At least one participant is required.",
    }
    return _messages.get(code, "Invalid input.")
