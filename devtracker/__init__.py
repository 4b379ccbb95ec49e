"""
devtracker/__init__.py

Flask application factory for DevTracker, the development tracking and
profitability calculator.

Requirements:
- Clear architecture, stable imports.
- PostgreSQL-ready (SQLAlchemy + migrations) but SQLite is used for dev.
- JSON API under /api; every error response is JSON.

NOTE:
- The commission schedule is built once from config and stored in
  app.extensions["devtracker.commission"] (see utils.commission_schedule).
"""

from __future__ import annotations

import logging

import click
from flask import Flask, jsonify
from flask_wtf.csrf import CSRFError, generate_csrf
from werkzeug.exceptions import HTTPException

from .calculations import CommissionSchedule
from .extensions import csrf, db, migrate
from .models import MissingUnitTypeError

logger = logging.getLogger(__name__)


def _configure_logging(app: Flask) -> None:
    level = getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    app.logger.setLevel(level)


def create_app(config_object: str = "config.Config") -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    app.json.sort_keys = False  # keep payload key order

    _configure_logging(app)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    app.extensions["devtracker.commission"] = CommissionSchedule.from_config(app.config)

    # ----------------------------------------------------------------------
    # Blueprints
    # ----------------------------------------------------------------------
    from .blueprints.calculator import calculator_bp
    from .blueprints.projects import projects_bp
    from .blueprints.unit_types import unit_types_bp

    app.register_blueprint(projects_bp)
    app.register_blueprint(unit_types_bp)
    app.register_blueprint(calculator_bp)

    # ----------------------------------------------------------------------
    # Errors (JSON everywhere)
    # ----------------------------------------------------------------------
    @app.errorhandler(CSRFError)
    def handle_csrf_error(exc: CSRFError):
        logger.warning("CSRF validation failed: %s", exc.description)
        return jsonify({"error": exc.description}), 400

    @app.errorhandler(MissingUnitTypeError)
    def handle_missing_unit_type(exc: MissingUnitTypeError):
        db.session.rollback()
        logger.warning("Missing unit type: %s", exc)
        return jsonify({"error": str(exc)}), 409

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error"}), 500

    # ----------------------------------------------------------------------
    # Misc endpoints
    # ----------------------------------------------------------------------
    @app.get("/api/csrf-token")
    def csrf_token():
        """Token for the X-CSRFToken header of mutating requests."""
        return jsonify({"csrf_token": generate_csrf()})

    @app.get("/api/health")
    def health():
        """Health-check endpoint."""
        schedule = app.extensions["devtracker.commission"]
        return jsonify({"status": "ok", "app": app.config.get("APP_NAME"), "commission": schedule.describe()})

    # ----------------------------------------------------------------------
    # CLI
    # ----------------------------------------------------------------------
    @app.cli.command("seed-defaults")
    def seed_defaults_command():
        """Seed the default project and unit types."""
        from .seed import seed_defaults

        created = seed_defaults()
        click.echo(f"Default data seeded ({created} new rows).")

    return app
