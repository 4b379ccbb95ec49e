"""
devtracker/blueprints/unit_types/routes.py

Unit type catalogues (JSON API).

Scope:
- UnitType CRUD (phase tracker)
- CalculatorUnitType CRUD (what-if calculator)

IMPORTANT:
- A unit type referenced by phase units cannot be deleted (409).
- A calculator unit type with a saved scenario cannot be deleted (409).

AUDIT:
- CREATE/UPDATE/DELETE is audited via devtracker/audit.py.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, abort, jsonify

from ...audit import log_action, serialize_model
from ...extensions import db
from ...models import CalculatorScenario, CalculatorUnitType, FuturePhaseDefaults, PhaseUnit, UnitType
from ...utils import json_body, parse_optional_int, parse_required_int, parse_required_str

logger = logging.getLogger(__name__)

unit_types_bp = Blueprint("unit_types", __name__, url_prefix="/api")


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _apply_fields(unit_type, data: Dict[str, Any], *, partial: bool) -> None:
    """Copy request fields onto a UnitType/CalculatorUnitType (400 on bad input)."""
    if not partial or "name" in data:
        unit_type.name = parse_required_str(data.get("name"), field="name")

    if not partial or "square_footage" in data:
        sqft = parse_required_int(data.get("square_footage"), field="square_footage")
        if sqft <= 0:
            abort(400, description="'square_footage' must be greater than zero.")
        unit_type.square_footage = sqft

    if not partial or "bedrooms" in data:
        unit_type.bedrooms = parse_optional_int(data.get("bedrooms"), field="bedrooms")
    if not partial or "lock_off_flex_rooms" in data:
        unit_type.lock_off_flex_rooms = (
            parse_optional_int(data.get("lock_off_flex_rooms"), field="lock_off_flex_rooms") or 0
        )
    if not partial or "description" in data:
        unit_type.description = (data.get("description") or "").strip() or None


def _create(model):
    unit_type = model()
    _apply_fields(unit_type, json_body(), partial=False)
    db.session.add(unit_type)
    db.session.flush()

    log_action(unit_type, "CREATE", after=serialize_model(unit_type))
    db.session.commit()
    return jsonify(unit_type.to_dict()), 201


def _update(model, unit_type_id: int):
    unit_type = model.query.get_or_404(unit_type_id)
    before = serialize_model(unit_type)

    _apply_fields(unit_type, json_body(), partial=True)
    db.session.flush()

    log_action(unit_type, "UPDATE", before=before, after=serialize_model(unit_type))
    db.session.commit()
    return jsonify(unit_type.to_dict())


def _delete(unit_type) -> None:
    before = serialize_model(unit_type)
    db.session.delete(unit_type)
    db.session.flush()

    log_action(unit_type, "DELETE", before=before)
    db.session.commit()


# ----------------------------------------------------------------------
# Unit types
# ----------------------------------------------------------------------
@unit_types_bp.get("/unit-types")
def list_unit_types():
    unit_types = UnitType.query.order_by(UnitType.name.asc()).all()
    return jsonify([u.to_dict() for u in unit_types])


@unit_types_bp.post("/unit-types")
def create_unit_type():
    return _create(UnitType)


@unit_types_bp.put("/unit-types/<int:unit_type_id>")
def update_unit_type(unit_type_id: int):
    return _update(UnitType, unit_type_id)


@unit_types_bp.delete("/unit-types/<int:unit_type_id>")
def delete_unit_type(unit_type_id: int):
    """Delete a unit type that no phase unit uses (its future defaults go with it)."""
    unit_type = UnitType.query.get_or_404(unit_type_id)

    in_use = PhaseUnit.query.filter_by(unit_type_id=unit_type.id).count()
    if in_use:
        logger.warning("Refused delete of unit type %s: %d phase units", unit_type.id, in_use)
        abort(409, description=f"Unit type is used by {in_use} phase unit(s).")

    FuturePhaseDefaults.query.filter_by(unit_type_id=unit_type.id).delete()
    _delete(unit_type)
    return "", 204


# ----------------------------------------------------------------------
# Calculator unit types
# ----------------------------------------------------------------------
@unit_types_bp.get("/calculator-unit-types")
def list_calculator_unit_types():
    unit_types = CalculatorUnitType.query.order_by(CalculatorUnitType.name.asc()).all()
    return jsonify([u.to_dict() for u in unit_types])


@unit_types_bp.post("/calculator-unit-types")
def create_calculator_unit_type():
    return _create(CalculatorUnitType)


@unit_types_bp.put("/calculator-unit-types/<int:unit_type_id>")
def update_calculator_unit_type(unit_type_id: int):
    return _update(CalculatorUnitType, unit_type_id)


@unit_types_bp.delete("/calculator-unit-types/<int:unit_type_id>")
def delete_calculator_unit_type(unit_type_id: int):
    unit_type = CalculatorUnitType.query.get_or_404(unit_type_id)

    if CalculatorScenario.query.filter_by(calculator_unit_type_id=unit_type.id).first():
        logger.warning("Refused delete of calculator unit type %s: saved scenario exists", unit_type.id)
        abort(409, description="Calculator unit type has a saved scenario.")

    _delete(unit_type)
    return "", 204
