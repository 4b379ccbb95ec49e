"""
devtracker/blueprints/unit_types/__init__.py

Blueprint package export.

IMPORTANT:
- Must expose unit_types_bp for app factory registration.
- Keep import minimal to avoid side effects.
"""

from __future__ import annotations

from .routes import unit_types_bp  # noqa: F401
