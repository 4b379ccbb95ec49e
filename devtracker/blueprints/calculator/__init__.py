"""
devtracker/blueprints/calculator/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose calculator_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import calculator_bp  # noqa: F401
