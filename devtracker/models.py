"""
DevTracker – Domain Models

Projects are split into phases; each phase holds unit lines (PhaseUnit) that
reference a UnitType and carry the seven per-unit cost inputs.

Cost inputs are stored three ways per line:
- <line>             : the raw amount as entered (Numeric string-safe decimal)
- <line>_method      : InputMethod tag (perUnit / perSqFt / percentage)
- <line>_normalized  : absolute dollars, computed when the unit is saved
                       (PhaseUnit only)

IMPORTANT:
- Aggregation reads only the *_normalized columns, so historical records stay
  reproducible even if commission defaults change later.
- recalc_costs() must be called whenever inputs, price or unit type change.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List

from .calculations import (
    COST_FIELDS,
    CommissionSchedule,
    CostInputs,
    InputMethod,
    NormalizedCosts,
    PhaseRecord,
    UnitRecord,
    normalize_unit_costs,
    safe_quantize,
)
from .extensions import db

PHASE_STATUSES = ("completed", "in_progress", "planned", "future")


class MissingUnitTypeError(LookupError):
    """A phase unit references a unit type that does not exist."""


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------
def _to_decimal(value) -> Decimal:
    """Convert Numeric/None to Decimal safely."""
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value))


def _money(x: Decimal) -> Decimal:
    return safe_quantize(x, Decimal("0.01"))


def _money_column():
    return db.Column(db.Numeric(12, 2), nullable=False, default=Decimal("0.00"))


def _method_column():
    return db.Column(db.String(20), nullable=False, default=InputMethod.PER_UNIT.value)


class CostInputColumnsMixin:
    """Raw cost amounts + method tags for the seven cost lines."""

    hard_costs = _money_column()
    hard_costs_method = _method_column()
    soft_costs = _money_column()
    soft_costs_method = _method_column()
    land_costs = _money_column()
    land_costs_method = _method_column()
    contingency_costs = _money_column()
    contingency_costs_method = _method_column()
    sales_costs = _money_column()
    sales_costs_method = _method_column()
    lawyer_fees = _money_column()
    lawyer_fees_method = _method_column()
    construction_financing = _money_column()
    construction_financing_method = _method_column()

    def cost_inputs(self) -> CostInputs:
        data: Dict[str, Any] = {}
        for name in COST_FIELDS:
            data[name] = getattr(self, name)
            data[f"{name}_method"] = getattr(self, f"{name}_method")
        return CostInputs.from_mapping(data)

    def apply_cost_inputs(self, inputs: CostInputs) -> None:
        for name in COST_FIELDS:
            entry = getattr(inputs, name)
            setattr(self, name, _money(entry.amount))
            setattr(self, f"{name}_method", entry.method.value)

    def cost_inputs_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        for name in COST_FIELDS:
            data[name] = _to_decimal(getattr(self, name))
            data[f"{name}_method"] = getattr(self, f"{name}_method") or InputMethod.PER_UNIT.value
        return data


# ---------------------------------------------------------------------
# Projects & phases
# ---------------------------------------------------------------------
class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    total_phases = db.Column(db.Integer, nullable=False, default=12)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    phases = db.relationship(
        "Phase",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="Phase.id",
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "total_phases": self.total_phases,
        }

    def phase_records(self) -> List[PhaseRecord]:
        return [phase.to_record() for phase in self.phases]

    def __repr__(self):
        return f"<Project {self.name}>"


class Phase(db.Model):
    __tablename__ = "phases"

    id = db.Column(db.Integer, primary_key=True)

    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default="planned", index=True)
    total_square_footage = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = db.relationship("Project", back_populates="phases")

    units = db.relationship(
        "PhaseUnit",
        back_populates="phase",
        cascade="all, delete-orphan",
        order_by="PhaseUnit.id",
    )

    def to_record(self) -> PhaseRecord:
        return PhaseRecord(status=self.status, units=[u.to_record() for u in self.units], name=self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "project_id": self.project_id,
            "name": self.name,
            "status": self.status,
            "total_square_footage": self.total_square_footage,
        }

    def __repr__(self):
        return f"<Phase {self.name} ({self.status})>"


# ---------------------------------------------------------------------
# Unit catalogues
# ---------------------------------------------------------------------
class UnitTypeColumnsMixin:
    name = db.Column(db.String(120), nullable=False)
    square_footage = db.Column(db.Integer, nullable=False)
    bedrooms = db.Column(db.Integer, nullable=True)
    lock_off_flex_rooms = db.Column(db.Integer, nullable=True, default=0)
    description = db.Column(db.Text, nullable=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "square_footage": self.square_footage,
            "bedrooms": self.bedrooms,
            "lock_off_flex_rooms": self.lock_off_flex_rooms,
            "description": self.description,
        }


class UnitType(UnitTypeColumnsMixin, db.Model):
    """Unit type used by the phase tracker."""

    __tablename__ = "unit_types"

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<UnitType {self.name}>"


class CalculatorUnitType(UnitTypeColumnsMixin, db.Model):
    """Unit type catalogue of the what-if calculator (independent of projects)."""

    __tablename__ = "calculator_unit_types"

    id = db.Column(db.Integer, primary_key=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    scenario = db.relationship("CalculatorScenario", back_populates="calculator_unit_type", uselist=False)

    def __repr__(self):
        return f"<CalculatorUnitType {self.name}>"


# ---------------------------------------------------------------------
# Phase units
# ---------------------------------------------------------------------
class PhaseUnit(CostInputColumnsMixin, db.Model):
    __tablename__ = "phase_units"

    id = db.Column(db.Integer, primary_key=True)

    phase_id = db.Column(
        db.Integer,
        db.ForeignKey("phases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # read-only reference; deleting a unit type in use is refused by the routes
    unit_type_id = db.Column(
        db.Integer,
        db.ForeignKey("unit_types.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    quantity = db.Column(db.Integer, nullable=False, default=0)
    sales_price = _money_column()

    # JSON list of per-unit prices, one entry per unit of `quantity`
    individual_prices = db.Column(db.Text, nullable=True)

    hard_costs_normalized = _money_column()
    soft_costs_normalized = _money_column()
    land_costs_normalized = _money_column()
    contingency_costs_normalized = _money_column()
    sales_costs_normalized = _money_column()
    lawyer_fees_normalized = _money_column()
    construction_financing_normalized = _money_column()

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    phase = db.relationship("Phase", back_populates="units")
    unit_type = db.relationship("UnitType", backref=db.backref("phase_units", lazy=True))

    @property
    def square_footage(self) -> int:
        if self.unit_type is None:
            raise MissingUnitTypeError(f"Unit type {self.unit_type_id} not found")
        return self.unit_type.square_footage

    def normalized_costs(self) -> NormalizedCosts:
        return NormalizedCosts(
            **{name: _to_decimal(getattr(self, f"{name}_normalized")) for name in COST_FIELDS}
        )

    def recalc_costs(self, schedule: CommissionSchedule) -> None:
        """Normalize the raw inputs at entry time and store absolute dollars."""
        normalized = normalize_unit_costs(
            self.cost_inputs(),
            self.square_footage,
            _to_decimal(self.sales_price),
            schedule=schedule,
        )
        for name in COST_FIELDS:
            setattr(self, f"{name}_normalized", _money(getattr(normalized, name)))

    def get_individual_prices(self) -> List[Decimal]:
        if not self.individual_prices:
            return []
        return [_to_decimal(p) for p in json.loads(self.individual_prices)]

    def set_individual_prices(self, prices: List[Decimal]) -> None:
        self.individual_prices = json.dumps([str(_money(_to_decimal(p))) for p in prices])

    def sync_individual_prices(self) -> None:
        """
        Keep one price per unit.

        - Growing quantity appends the base sales price.
        - Shrinking quantity drops trailing entries.
        - Zero entries follow the base sales price.
        """
        base = _to_decimal(self.sales_price)
        prices = self.get_individual_prices()
        quantity = max(int(self.quantity or 0), 0)

        if quantity > len(prices):
            prices = prices + [base] * (quantity - len(prices))
        elif quantity < len(prices):
            prices = prices[:quantity]

        prices = [base if p == 0 else p for p in prices]
        self.set_individual_prices(prices)

    def to_record(self) -> UnitRecord:
        return UnitRecord(
            quantity=int(self.quantity or 0),
            sales_price=_to_decimal(self.sales_price),
            costs=self.normalized_costs(),
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "phase_id": self.phase_id,
            "unit_type_id": self.unit_type_id,
            "unit_type": self.unit_type.to_dict() if self.unit_type else None,
            "quantity": self.quantity,
            "sales_price": _to_decimal(self.sales_price),
            "individual_prices": self.get_individual_prices(),
        }
        data.update(self.cost_inputs_dict())
        return data

    def __repr__(self):
        return f"<PhaseUnit phase={self.phase_id} type={self.unit_type_id} x{self.quantity}>"


# ---------------------------------------------------------------------
# Calculator scenarios & future phase defaults
# ---------------------------------------------------------------------
class CalculatorScenario(CostInputColumnsMixin, db.Model):
    """Saved calculator inputs, one per calculator unit type."""

    __tablename__ = "calculator_scenarios"

    id = db.Column(db.Integer, primary_key=True)

    calculator_unit_type_id = db.Column(
        db.Integer,
        db.ForeignKey("calculator_unit_types.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        index=True,
    )

    scenario1_price = db.Column(db.Numeric(12, 2), nullable=True)
    scenario2_price = db.Column(db.Numeric(12, 2), nullable=True)
    scenario3_price = db.Column(db.Numeric(12, 2), nullable=True)
    scenario4_price = db.Column(db.Numeric(12, 2), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    calculator_unit_type = db.relationship("CalculatorUnitType", back_populates="scenario")

    def prices(self) -> List[Decimal]:
        return [
            _to_decimal(self.scenario1_price),
            _to_decimal(self.scenario2_price),
            _to_decimal(self.scenario3_price),
            _to_decimal(self.scenario4_price),
        ]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "calculator_unit_type_id": self.calculator_unit_type_id,
            "scenario1_price": self.scenario1_price,
            "scenario2_price": self.scenario2_price,
            "scenario3_price": self.scenario3_price,
            "scenario4_price": self.scenario4_price,
        }
        data.update(self.cost_inputs_dict())
        return data


class FuturePhaseDefaults(CostInputColumnsMixin, db.Model):
    """Default cost inputs used to pre-fill units of future phases."""

    __tablename__ = "future_phase_defaults"

    id = db.Column(db.Integer, primary_key=True)

    project_id = db.Column(
        db.Integer,
        db.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    unit_type_id = db.Column(
        db.Integer,
        db.ForeignKey("unit_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    sales_price = _money_column()

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = db.relationship(
        "Project",
        backref=db.backref("future_defaults", lazy=True, cascade="all, delete-orphan"),
    )

    __table_args__ = (
        db.UniqueConstraint("project_id", "unit_type_id", name="uq_future_defaults_project_unit_type"),
    )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "project_id": self.project_id,
            "unit_type_id": self.unit_type_id,
            "sales_price": _to_decimal(self.sales_price),
        }
        data.update(self.cost_inputs_dict())
        return data


# ---------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------
class AuditLog(db.Model):
    """Audit trail of API mutations."""

    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)

    entity_type = db.Column(db.String(50), nullable=False, index=True)
    entity_id = db.Column(db.Integer, nullable=False, index=True)

    action = db.Column(db.String(20), nullable=False, index=True)

    before_data = db.Column(db.Text, nullable=True)
    after_data = db.Column(db.Text, nullable=True)

    ip_address = db.Column(db.String(45), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
