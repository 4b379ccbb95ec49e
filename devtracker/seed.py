"""
devtracker/seed.py

Seed the default project and unit type catalogues.

Rules:
- Safe to run multiple times (idempotent).
- Rows are matched by name; existing rows are never overwritten.

NOTE:
- Phases and phase units are not seeded; they are first-class user data.
"""

from __future__ import annotations

import logging

from .extensions import db
from .models import CalculatorUnitType, Project, UnitType

logger = logging.getLogger(__name__)


DEFAULT_PROJECT = {
    "name": "Townhome Development Project",
    "description": "Multi-phase townhome development",
    "total_phases": 12,
}

# (name, square_footage, bedrooms, lock_off_flex_rooms, description)
DEFAULT_UNIT_TYPES = [
    ("Type A", 1200, 2, 0, "Two bedroom townhome"),
    ("Type B", 1400, 3, 1, "Three bedroom townhome with lock-off flex room"),
    ("Type C", 1600, 3, 0, "Three bedroom end unit"),
]

DEFAULT_CALCULATOR_UNIT_TYPES = [
    ("Studio Apartment", 750, 0, 0, "Open-plan studio"),
]


def _seed_catalogue(model, rows) -> int:
    created = 0
    for name, sqft, bedrooms, flex, description in rows:
        if model.query.filter_by(name=name).first():
            continue
        db.session.add(
            model(
                name=name,
                square_footage=sqft,
                bedrooms=bedrooms,
                lock_off_flex_rooms=flex,
                description=description,
            )
        )
        created += 1
    return created


def seed_defaults() -> int:
    """
    Create the default project, unit types and calculator unit types if missing.

    Returns the number of rows created.
    """
    created = 0

    if not Project.query.filter_by(name=DEFAULT_PROJECT["name"]).first():
        db.session.add(Project(**DEFAULT_PROJECT))
        created += 1

    created += _seed_catalogue(UnitType, DEFAULT_UNIT_TYPES)
    created += _seed_catalogue(CalculatorUnitType, DEFAULT_CALCULATOR_UNIT_TYPES)

    db.session.commit()
    logger.info("Seeded %d default rows", created)
    return created
