"""
devtracker/calculations/commission.py

Tiered sales commission.

Default schedule: 5% on the first $100,000 of the sales price, 3% on the balance.

Sales costs policy:
- A nonzero raw sales-cost entry is a manual override and is normalized like any
  other cost line.
- A zero entry means "auto": the tiered commission on the relevant sales price.
  The same unit can therefore carry different sales costs per price scenario.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Any, Mapping

from .costs import ENGINE_CONTEXT, ZERO, CostEntry, UnitContext, finite, normalize, to_decimal

DEFAULT_TIER1_RATE = Decimal("0.05")
DEFAULT_TIER2_RATE = Decimal("0.03")
DEFAULT_TIER1_THRESHOLD = Decimal("100000")


def calculate_tiered_commission(
    sales_price: Any,
    tier1_rate: Any = DEFAULT_TIER1_RATE,
    tier2_rate: Any = DEFAULT_TIER2_RATE,
    tier1_threshold: Any = DEFAULT_TIER1_THRESHOLD,
) -> Decimal:
    price = to_decimal(sales_price)
    if price <= ZERO:
        return ZERO

    threshold = to_decimal(tier1_threshold)
    with localcontext(ENGINE_CONTEXT):
        tier1_portion = min(price, threshold)
        tier2_portion = max(ZERO, price - threshold)
        return finite(tier1_portion * to_decimal(tier1_rate) + tier2_portion * to_decimal(tier2_rate))


@dataclass(frozen=True)
class CommissionSchedule:
    tier1_rate: Decimal = DEFAULT_TIER1_RATE
    tier2_rate: Decimal = DEFAULT_TIER2_RATE
    tier1_threshold: Decimal = DEFAULT_TIER1_THRESHOLD

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "CommissionSchedule":
        """Build from Flask app config (COMMISSION_* keys); missing keys keep defaults."""
        return cls(
            tier1_rate=to_decimal(config.get("COMMISSION_TIER1_RATE", DEFAULT_TIER1_RATE)),
            tier2_rate=to_decimal(config.get("COMMISSION_TIER2_RATE", DEFAULT_TIER2_RATE)),
            tier1_threshold=to_decimal(config.get("COMMISSION_TIER1_THRESHOLD", DEFAULT_TIER1_THRESHOLD)),
        )

    def commission(self, sales_price: Any) -> Decimal:
        return calculate_tiered_commission(
            sales_price,
            tier1_rate=self.tier1_rate,
            tier2_rate=self.tier2_rate,
            tier1_threshold=self.tier1_threshold,
        )

    def describe(self) -> str:
        tier1_pct = (self.tier1_rate * 100).normalize()
        tier2_pct = (self.tier2_rate * 100).normalize()
        return (
            f"{tier1_pct:f}% on first ${self.tier1_threshold:,.0f}, "
            f"{tier2_pct:f}% on balance"
        )


DEFAULT_SCHEDULE = CommissionSchedule()


def resolve_sales_costs(
    entry: CostEntry,
    ctx: UnitContext,
    sales_price: Any,
    schedule: CommissionSchedule = DEFAULT_SCHEDULE,
) -> Decimal:
    """Manual override when the raw amount is nonzero, tiered commission otherwise."""
    if not entry.is_zero():
        return normalize(entry, ctx)
    return schedule.commission(sales_price)
