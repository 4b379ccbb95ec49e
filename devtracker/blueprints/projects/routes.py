"""
devtracker/blueprints/projects/routes.py

Projects, phases and phase units (JSON API).

Scope:
- Project CRUD, project summary and printable project report
- Future-phase defaults per (project, unit type)
- Phase CRUD (deleting a phase deletes its units)
- Phase unit CRUD with cost normalization at save time, plus a preview

IMPORTANT:
- Phase units store raw inputs, method tags AND normalized dollars.
  PhaseUnit.recalc_costs() runs on every create/update; aggregation only
  reads the normalized columns.

AUDIT:
- CREATE/UPDATE/DELETE is audited via devtracker/audit.py.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, abort, current_app, jsonify, render_template, request
from sqlalchemy.exc import IntegrityError

from ...audit import log_action, serialize_model
from ...calculations import COST_FIELDS, CostInputs, evaluate, evaluate_unit, summarize, summarize_phase
from ...extensions import db
from ...models import FuturePhaseDefaults, MissingUnitTypeError, Phase, PhaseUnit, Project, UnitType
from ...reports import project_report
from ...utils import (
    commission_schedule,
    costs_payload,
    json_body,
    metrics_payload,
    money,
    parse_decimal,
    parse_optional_int,
    parse_required_int,
    parse_required_str,
    parse_status,
)

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__, url_prefix="/api")


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------
def _has_cost_keys(data: Dict[str, Any]) -> bool:
    return any(name in data or f"{name}_method" in data for name in COST_FIELDS)


def _merged_cost_inputs(current: Dict[str, Any], data: Dict[str, Any]) -> CostInputs:
    """Overlay the cost keys present in `data` on the current raw inputs."""
    merged = dict(current)
    for name in COST_FIELDS:
        for key in (name, f"{name}_method"):
            if key in data:
                merged[key] = data[key]
    return CostInputs.from_mapping(merged)


def _get_unit_type(unit_type_id: int) -> UnitType:
    unit_type = db.session.get(UnitType, unit_type_id)
    if unit_type is None:
        raise MissingUnitTypeError(f"Unit type {unit_type_id} not found")
    return unit_type


def _parse_quantity(value: Any) -> int:
    quantity = parse_optional_int(value, field="quantity") or 0
    if quantity < 0:
        abort(400, description="'quantity' must be zero or greater.")
    return quantity


def _parse_total_phases(value: Any) -> int:
    """Planned phase count; missing means 12, zero or less is a 400."""
    total = parse_optional_int(value, field="total_phases")
    if total is None:
        return 12
    if total <= 0:
        abort(400, description="'total_phases' must be greater than zero.")
    return total


def _unit_payload(unit: PhaseUnit) -> Dict[str, Any]:
    data = unit.to_dict()
    data["normalized"] = costs_payload(unit.normalized_costs())
    data["metrics"] = metrics_payload(
        evaluate(unit.normalized_costs(), unit.sales_price, unit.square_footage)
    )
    return data


def _phase_payload(phase: Phase) -> Dict[str, Any]:
    data = phase.to_dict()
    data["units"] = [_unit_payload(u) for u in phase.units]
    data["summary"] = summarize_phase(phase.to_record()).to_dict()
    return data


def _commit_or_conflict(message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.warning("Integrity conflict: %s", message)
        abort(409, description=message)


# ----------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------
@projects_bp.get("/projects")
def list_projects():
    projects = Project.query.order_by(Project.id.asc()).all()
    return jsonify([p.to_dict() for p in projects])


@projects_bp.post("/projects")
def create_project():
    data = json_body()
    project = Project(
        name=parse_required_str(data.get("name"), field="name"),
        description=(data.get("description") or "").strip() or None,
        total_phases=_parse_total_phases(data.get("total_phases")),
    )
    db.session.add(project)
    db.session.flush()

    log_action(project, "CREATE", after=serialize_model(project))
    db.session.commit()
    return jsonify(project.to_dict()), 201


@projects_bp.get("/projects/<int:project_id>")
def get_project(project_id: int):
    project = Project.query.get_or_404(project_id)
    return jsonify(project.to_dict())


@projects_bp.put("/projects/<int:project_id>")
def update_project(project_id: int):
    project = Project.query.get_or_404(project_id)
    data = json_body()
    before = serialize_model(project)

    if "name" in data:
        project.name = parse_required_str(data.get("name"), field="name")
    if "description" in data:
        project.description = (data.get("description") or "").strip() or None
    if "total_phases" in data:
        project.total_phases = _parse_total_phases(data.get("total_phases"))

    db.session.flush()
    log_action(project, "UPDATE", before=before, after=serialize_model(project))
    db.session.commit()
    return jsonify(project.to_dict())


@projects_bp.delete("/projects/<int:project_id>")
def delete_project(project_id: int):
    """Delete a project with its phases, units and future-phase defaults."""
    project = Project.query.get_or_404(project_id)
    before = serialize_model(project)

    db.session.delete(project)
    db.session.flush()

    log_action(project, "DELETE", before=before)
    db.session.commit()
    return "", 204


@projects_bp.get("/projects/<int:project_id>/phases")
def list_project_phases(project_id: int):
    project = Project.query.get_or_404(project_id)
    return jsonify([_phase_payload(p) for p in project.phases])


@projects_bp.get("/projects/<int:project_id>/summary")
def project_summary(project_id: int):
    project = Project.query.get_or_404(project_id)
    summary = summarize(project.phase_records())
    data = summary.to_dict()
    data["planned_phases"] = project.total_phases
    return jsonify(data)


@projects_bp.get("/projects/<int:project_id>/report")
def project_report_view(project_id: int):
    """Project report payload; ?format=html renders the printable page."""
    project = Project.query.get_or_404(project_id)
    report = project_report(
        project.name,
        project.phase_records(),
        description=project.description or "",
        planned_phases=project.total_phases,
        app_name=current_app.config.get("APP_NAME", ""),
    )
    if request.args.get("format") == "html":
        return render_template("reports/project.html", report=report)
    return jsonify(report)


# ----------------------------------------------------------------------
# Future phase defaults
# ----------------------------------------------------------------------
@projects_bp.get("/projects/<int:project_id>/future-defaults/<int:unit_type_id>")
def get_future_defaults(project_id: int, unit_type_id: int):
    Project.query.get_or_404(project_id)
    UnitType.query.get_or_404(unit_type_id)

    defaults = FuturePhaseDefaults.query.filter_by(project_id=project_id, unit_type_id=unit_type_id).first()
    if defaults is None:
        return jsonify({"project_id": project_id, "unit_type_id": unit_type_id, "saved": False})

    data = defaults.to_dict()
    data["saved"] = True
    return jsonify(data)


@projects_bp.put("/projects/<int:project_id>/future-defaults/<int:unit_type_id>")
def upsert_future_defaults(project_id: int, unit_type_id: int):
    Project.query.get_or_404(project_id)
    UnitType.query.get_or_404(unit_type_id)
    data = json_body()

    defaults = FuturePhaseDefaults.query.filter_by(project_id=project_id, unit_type_id=unit_type_id).first()
    created = defaults is None
    if created:
        defaults = FuturePhaseDefaults(project_id=project_id, unit_type_id=unit_type_id)
        db.session.add(defaults)
        before = None
        current: Dict[str, Any] = {}
    else:
        before = serialize_model(defaults)
        current = defaults.cost_inputs_dict()

    defaults.apply_cost_inputs(_merged_cost_inputs(current, data))
    if "sales_price" in data or created:
        defaults.sales_price = parse_decimal(data.get("sales_price"), field="sales_price") or 0

    db.session.flush()
    log_action(defaults, "CREATE" if created else "UPDATE", before=before, after=serialize_model(defaults))
    _commit_or_conflict("Future phase defaults already exist for this unit type.")

    result = defaults.to_dict()
    result["saved"] = True
    return jsonify(result), 201 if created else 200


# ----------------------------------------------------------------------
# Phases
# ----------------------------------------------------------------------
@projects_bp.post("/phases")
def create_phase():
    data = json_body()
    project = Project.query.get_or_404(parse_required_int(data.get("project_id"), field="project_id"))

    phase = Phase(
        project=project,
        name=parse_required_str(data.get("name"), field="name"),
        status=parse_status(data.get("status")),
        total_square_footage=parse_optional_int(data.get("total_square_footage"), field="total_square_footage"),
    )
    db.session.add(phase)
    db.session.flush()

    log_action(phase, "CREATE", after=serialize_model(phase))
    db.session.commit()
    return jsonify(_phase_payload(phase)), 201


@projects_bp.get("/phases/<int:phase_id>")
def get_phase(phase_id: int):
    phase = Phase.query.get_or_404(phase_id)
    return jsonify(_phase_payload(phase))


@projects_bp.put("/phases/<int:phase_id>")
def update_phase(phase_id: int):
    phase = Phase.query.get_or_404(phase_id)
    data = json_body()
    before = serialize_model(phase)

    if "name" in data:
        phase.name = parse_required_str(data.get("name"), field="name")
    if "status" in data:
        phase.status = parse_status(data.get("status"))
    if "total_square_footage" in data:
        phase.total_square_footage = parse_optional_int(
            data.get("total_square_footage"), field="total_square_footage"
        )

    db.session.flush()
    log_action(phase, "UPDATE", before=before, after=serialize_model(phase))
    db.session.commit()
    return jsonify(_phase_payload(phase))


@projects_bp.delete("/phases/<int:phase_id>")
def delete_phase(phase_id: int):
    """Delete a phase and all of its units."""
    phase = Phase.query.get_or_404(phase_id)
    before = serialize_model(phase)

    db.session.delete(phase)
    db.session.flush()

    log_action(phase, "DELETE", before=before)
    db.session.commit()
    return "", 204


# ----------------------------------------------------------------------
# Phase units
# ----------------------------------------------------------------------
@projects_bp.post("/phase-units")
def create_phase_unit():
    """
    Add a unit line to a phase.

    Units of a `future` phase sent without any cost keys are pre-filled from
    the project's future-phase defaults for that unit type (sales price too,
    when omitted).
    """
    data = json_body()
    phase = Phase.query.get_or_404(parse_required_int(data.get("phase_id"), field="phase_id"))
    unit_type = _get_unit_type(parse_required_int(data.get("unit_type_id"), field="unit_type_id"))

    current: Dict[str, Any] = {}
    default_price = None
    if phase.status == "future" and not _has_cost_keys(data):
        defaults = FuturePhaseDefaults.query.filter_by(
            project_id=phase.project_id, unit_type_id=unit_type.id
        ).first()
        if defaults is not None:
            current = defaults.cost_inputs_dict()
            default_price = defaults.sales_price

    sales_price = parse_decimal(data.get("sales_price"), field="sales_price")
    unit = PhaseUnit(
        phase=phase,
        unit_type=unit_type,
        quantity=_parse_quantity(data.get("quantity")),
        sales_price=sales_price if sales_price is not None else (default_price or 0),
    )
    unit.apply_cost_inputs(_merged_cost_inputs(current, data))

    if isinstance(data.get("individual_prices"), list):
        unit.set_individual_prices(
            [parse_decimal(p, field="individual_prices") or 0 for p in data["individual_prices"]]
        )
    unit.sync_individual_prices()
    unit.recalc_costs(commission_schedule())

    db.session.add(unit)
    db.session.flush()

    log_action(unit, "CREATE", after=serialize_model(unit))
    db.session.commit()
    return jsonify(_unit_payload(unit)), 201


@projects_bp.put("/phase-units/<int:unit_id>")
def update_phase_unit(unit_id: int):
    unit = PhaseUnit.query.get_or_404(unit_id)
    data = json_body()
    before = serialize_model(unit)

    if "unit_type_id" in data:
        unit.unit_type = _get_unit_type(parse_required_int(data.get("unit_type_id"), field="unit_type_id"))
    if "quantity" in data:
        unit.quantity = _parse_quantity(data.get("quantity"))
    if "sales_price" in data:
        unit.sales_price = parse_decimal(data.get("sales_price"), field="sales_price") or 0
    if _has_cost_keys(data):
        unit.apply_cost_inputs(_merged_cost_inputs(unit.cost_inputs_dict(), data))
    if isinstance(data.get("individual_prices"), list):
        unit.set_individual_prices(
            [parse_decimal(p, field="individual_prices") or 0 for p in data["individual_prices"]]
        )

    unit.sync_individual_prices()
    unit.recalc_costs(commission_schedule())

    db.session.flush()
    log_action(unit, "UPDATE", before=before, after=serialize_model(unit))
    db.session.commit()
    return jsonify(_unit_payload(unit))


@projects_bp.delete("/phase-units/<int:unit_id>")
def delete_phase_unit(unit_id: int):
    unit = PhaseUnit.query.get_or_404(unit_id)
    before = serialize_model(unit)

    db.session.delete(unit)
    db.session.flush()

    log_action(unit, "DELETE", before=before)
    db.session.commit()
    return "", 204


@projects_bp.post("/phase-units/preview")
def preview_phase_unit():
    """
    Metrics for one unit from raw inputs, without saving.

    Square footage comes from `unit_type_id` or an explicit `square_footage`.
    """
    data = json_body()
    if data.get("unit_type_id") not in (None, ""):
        square_footage = _get_unit_type(
            parse_required_int(data.get("unit_type_id"), field="unit_type_id")
        ).square_footage
    else:
        square_footage = parse_decimal(data.get("square_footage"), field="square_footage", required=True)

    sales_price = parse_decimal(data.get("sales_price"), field="sales_price") or 0
    evaluation = evaluate_unit(
        CostInputs.from_mapping(data),
        square_footage,
        sales_price,
        schedule=commission_schedule(),
    )
    return jsonify(
        {
            "square_footage": square_footage,
            "sales_price": money(evaluation.sales_price),
            "normalized": costs_payload(evaluation.costs),
            "metrics": metrics_payload(evaluation.result),
        }
    )
