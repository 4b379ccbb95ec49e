"""
devtracker/calculations/costs.py

Cost input representations and their normalization to absolute dollars.

A cost line is entered in one of three ways:
- perUnit    : absolute dollars for one unit
- perSqFt    : dollars per square foot of the unit
- percentage : percent of a base amount supplied by the caller

IMPORTANT:
- normalize() is the single dispatch point for input methods. Call sites must
  not compare method tags themselves.
- Everything here is pure: inputs are never mutated, new values are returned.
- Arithmetic runs in ENGINE_CONTEXT (no traps). Overflow and invalid
  operations give non-finite values, which finite() turns into 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Any, Dict

ZERO = Decimal("0")
HUNDRED = Decimal("100")

ENGINE_CONTEXT = Context(traps=[])

COST_FIELDS = (
    "hard_costs",
    "soft_costs",
    "land_costs",
    "contingency_costs",
    "sales_costs",
    "lawyer_fees",
    "construction_financing",
)


def to_decimal(value: Any) -> Decimal:
    """
    Coerce a numeric-ish value to Decimal.

    Unparsable, empty, NaN and infinite values become 0.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        result = value
    else:
        raw = str(value).strip().replace(",", "")
        if raw == "":
            return ZERO
        try:
            result = Decimal(raw)
        except (InvalidOperation, ValueError):
            return ZERO
    if not result.is_finite():
        return ZERO
    return result



def finite(value: Decimal) -> Decimal:
    return value if value.is_finite() else ZERO


def safe_quantize(value: Decimal, exp: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    """
    Quantize without raising.

    Values with more digits than the context precision cannot be quantized;
    they are returned as they are (non-finite values become 0).
    """
    with localcontext(ENGINE_CONTEXT):
        result = value.quantize(exp, rounding=rounding)
    return result if result.is_finite() else finite(value)

class InputMethod(str, Enum):
    PER_UNIT = "perUnit"
    PER_SQFT = "perSqFt"
    PERCENTAGE = "percentage"

    @classmethod
    def parse(cls, raw: Any) -> "InputMethod":
        """Parse a stored/posted method tag. Unknown tags fall back to perUnit."""
        if isinstance(raw, cls):
            return raw
        tag = (str(raw).strip() if raw is not None else "")
        for method in cls:
            if method.value.lower() == tag.lower():
                return method
        # legacy tags from older forms
        if tag in ("total", "per_unit"):
            return cls.PER_UNIT
        if tag == "per_sqft":
            return cls.PER_SQFT
        return cls.PER_UNIT


@dataclass(frozen=True)
class CostEntry:
    """One cost line exactly as entered, before normalization."""

    amount: Decimal = ZERO
    method: InputMethod = InputMethod.PER_UNIT

    @classmethod
    def of(cls, amount: Any, method: Any = InputMethod.PER_UNIT) -> "CostEntry":
        return cls(amount=to_decimal(amount), method=InputMethod.parse(method))

    def is_zero(self) -> bool:
        return self.amount == ZERO

    def to_dict(self) -> Dict[str, str]:
        return {"amount": str(self.amount), "method": self.method.value}


@dataclass(frozen=True)
class UnitContext:
    """
    Context for one normalization pass.

    base_price is only read for percentage entries (e.g. contingency against a
    cost subtotal, or a scenario's sales price).
    """

    square_footage: Decimal = ZERO
    base_price: Decimal = ZERO

    @classmethod
    def of(cls, square_footage: Any, base_price: Any = None) -> "UnitContext":
        return cls(square_footage=to_decimal(square_footage), base_price=to_decimal(base_price))


@dataclass(frozen=True)
class CostInputs:
    """The seven raw cost lines of a unit."""

    hard_costs: CostEntry = field(default_factory=CostEntry)
    soft_costs: CostEntry = field(default_factory=CostEntry)
    land_costs: CostEntry = field(default_factory=CostEntry)
    contingency_costs: CostEntry = field(default_factory=CostEntry)
    sales_costs: CostEntry = field(default_factory=CostEntry)
    lawyer_fees: CostEntry = field(default_factory=CostEntry)
    construction_financing: CostEntry = field(default_factory=CostEntry)

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "CostInputs":
        """
        Build from a flat mapping such as a request payload or a model snapshot:
            {"hard_costs": "100", "hard_costs_method": "perSqFt", ...}

        Missing lines are zero/perUnit.
        """
        entries = {}
        for name in COST_FIELDS:
            entries[name] = CostEntry.of(data.get(name), data.get(f"{name}_method"))
        return cls(**entries)

    def to_dict(self) -> Dict[str, Dict[str, str]]:
        return {name: getattr(self, name).to_dict() for name in COST_FIELDS}


@dataclass(frozen=True)
class NormalizedCosts:
    """All cost lines in absolute dollars for one unit."""

    hard_costs: Decimal = ZERO
    soft_costs: Decimal = ZERO
    land_costs: Decimal = ZERO
    contingency_costs: Decimal = ZERO
    sales_costs: Decimal = ZERO
    lawyer_fees: Decimal = ZERO
    construction_financing: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        with localcontext(ENGINE_CONTEXT):
            return finite(sum((getattr(self, f.name) for f in fields(self)), ZERO))

    def to_dict(self) -> Dict[str, Decimal]:
        return {name: getattr(self, name) for name in COST_FIELDS}


def normalize(entry: CostEntry, ctx: UnitContext) -> Decimal:
    """Convert one cost entry to absolute dollars."""
    with localcontext(ENGINE_CONTEXT):
        if entry.method is InputMethod.PER_SQFT:
            return finite(entry.amount * ctx.square_footage)
        if entry.method is InputMethod.PERCENTAGE:
            if not ctx.base_price:
                return ZERO
            return finite(entry.amount / HUNDRED * ctx.base_price)
        return finite(entry.amount)


def normalize_costs(inputs: CostInputs, ctx: UnitContext) -> NormalizedCosts:
    """Normalize every cost line against the same context."""
    return NormalizedCosts(**{name: normalize(getattr(inputs, name), ctx) for name in COST_FIELDS})
