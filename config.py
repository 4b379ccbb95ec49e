"""
Application configuration.
This module defines the configuration settings for the Flask application, including database connection, secret key,
commission schedule and logging. It uses environment variables (optionally from a .env file) and defaults for
development. In production, make sure to set the appropriate environment variables and secure the secret key.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent

load_dotenv(BASE_DIR / ".env")


class Config:
    """Base configuration shared by all environments."""

    # IMPORTANT: change this in production
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-change-me-please")

    # Database: SQLite for development (simple file in project folder)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'devtracker.db'}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # CSRF protection for mutating API calls (token from GET /api/csrf-token)
    WTF_CSRF_ENABLED = os.environ.get("WTF_CSRF_ENABLED", "true").lower() == "true"

    # Tiered sales commission (used when no manual sales cost is entered)
    COMMISSION_TIER1_RATE = os.environ.get("COMMISSION_TIER1_RATE", "0.05")
    COMMISSION_TIER2_RATE = os.environ.get("COMMISSION_TIER2_RATE", "0.03")
    COMMISSION_TIER1_THRESHOLD = os.environ.get("COMMISSION_TIER1_THRESHOLD", "100000")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # App UI name (used in report templates)
    APP_NAME = "DevTracker Pro"


class TestingConfig(Config):
    """In-memory database, no CSRF."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    WTF_CSRF_ENABLED = False
