# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Scenario Models

A scenario is the self-contained, read-only snapshot handed to the engine:
investor classes, ordered tiers, the exit being distributed and the structural
model. The engine performs no external lookups, so everything a calculation
needs lives on this object.

Example:
    ```python
    scenario = WaterfallScenario(
        id="fund-iii-base",
        name="Fund III Base Case",
        model="european",
        investor_classes=[
            InvestorClass(id="A", name="Class A", commitment=10_000_000, hurdle_rate=0.08)
        ],
        tiers=create_standard_tiers(hurdle_rate=0.08, carry_rate=0.20),
        exit_value=50_000_000,
    )
    ```
"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import Field

from ..core.primitives import (
    FloatBetween0And1,
    Model,
    Percentage,
    PositiveFloat,
    WaterfallModelEnum,
)
from .entities import Deal, InvestorClass
from .tiers import WaterfallTier


class BlendedConfig(Model):
    """Weights (percentages) applied to the European and American results."""

    european_weight: Percentage = Field(default=50.0)
    american_weight: Percentage = Field(default=50.0)

    @property
    def total_weight(self) -> float:
        return self.european_weight + self.american_weight


class ClawbackProvision(Model):
    """Fund-document clawback terms."""

    enabled: bool = True
    hurdle_rate: FloatBetween0And1 = Field(
        default=0.08, description="Annual return LPs must reach over the fund life"
    )
    clawback_rate: FloatBetween0And1 = Field(
        default=1.0, description="Share of excess carry the GP must return"
    )
    distribution_life_years: PositiveFloat = Field(
        default=1.0, description="Years over which the clawback hurdle accrues"
    )


class LookbackProvision(Model):
    """Fund-document lookback terms for carry held at risk."""

    enabled: bool = True
    lookback_years: PositiveFloat = Field(default=3.0)
    loss_carry_forward: PositiveFloat = Field(
        default=0.0, description="Realized losses still to be recovered before carry is released"
    )
    carry_at_risk_rate: FloatBetween0And1 = Field(
        default=0.0, description="Share of carry held back while losses remain"
    )


class WaterfallScenario(Model):
    """Complete, immutable input to a waterfall calculation."""

    # Identity
    id: str = Field(..., min_length=1)
    name: str = Field(default="")
    description: Optional[str] = None

    # Model configuration
    model: WaterfallModelEnum = Field(default=WaterfallModelEnum.EUROPEAN)
    blended_config: Optional[BlendedConfig] = Field(
        default=None, description="Required when model is blended"
    )
    investor_classes: List[InvestorClass] = Field(default_factory=list)
    tiers: List[WaterfallTier] = Field(default_factory=list)
    deals: List[Deal] = Field(
        default_factory=list,
        description="Deal-level capital for the American model. Empty means one fund-wide deal.",
    )

    # Input parameters
    exit_value: PositiveFloat = Field(..., description="Proceeds being distributed")
    total_invested: Optional[PositiveFloat] = Field(
        default=None, description="Total invested capital. Derived from commitments if None."
    )
    management_fees: PositiveFloat = Field(default=0.0)
    max_carry_percentage: Optional[FloatBetween0And1] = Field(
        default=None, description="Contractual maximum GP share of profit"
    )

    # Hurdle accrual period
    hold_period_years: Optional[PositiveFloat] = None
    inception_date: Optional[date] = None
    exit_date: Optional[date] = None

    # Provisions
    clawback_provision: Optional[ClawbackProvision] = None
    lookback_provision: Optional[LookbackProvision] = None

    @property
    def committed_capital(self) -> float:
        """Sum of investor class commitments."""
        return sum(ic.commitment for ic in self.investor_classes)

    @property
    def resolved_total_invested(self) -> float:
        """Total invested capital, derived from commitments when not given."""
        if self.total_invested is None:
            return self.committed_capital
        return self.total_invested

    @property
    def distributable_proceeds(self) -> float:
        """Exit value net of management fees (never negative)."""
        return max(0.0, self.exit_value - self.management_fees)

    @property
    def has_explicit_ownership(self) -> bool:
        """Check if ownership percentages are given explicitly (all or none)."""
        return all(ic.ownership_percentage is not None for ic in self.investor_classes)

    @property
    def capital_shares(self) -> Dict[str, float]:
        """Each class's share of committed capital."""
        total = self.committed_capital
        if total <= 0:
            count = len(self.investor_classes) or 1
            return {ic.id: 1.0 / count for ic in self.investor_classes}
        return {ic.id: ic.commitment / total for ic in self.investor_classes}

    @property
    def ownership_shares(self) -> Dict[str, float]:
        """Ownership used by OWNERSHIP-basis tiers (explicit, else capital shares)."""
        if self.investor_classes and self.has_explicit_ownership:
            return {ic.id: ic.ownership_percentage for ic in self.investor_classes}
        return self.capital_shares

    def hold_period(self, default_years: float = 1.0) -> float:
        """
        Years over which the preferred return accrues.

        Explicit ``hold_period_years`` wins, then inception/exit dates (Actual/365),
        then the supplied default.
        """
        if self.hold_period_years is not None:
            return self.hold_period_years
        if self.inception_date is not None and self.exit_date is not None:
            return max(0.0, (self.exit_date - self.inception_date).days / 365.0)
        return default_years

    def get_class(self, class_id: str) -> Optional[InvestorClass]:
        """Get investor class by id."""
        for investor_class in self.investor_classes:
            if investor_class.id == class_id:
                return investor_class
        return None

    def with_exit_value(self, exit_value: float) -> "WaterfallScenario":
        """Return a new snapshot distributing a different exit value."""
        return self.model_copy(update={"exit_value": max(0.0, exit_value)})

    def __str__(self) -> str:
        return (
            f"Scenario {self.id}: {self.model.value}, {len(self.investor_classes)} class(es), "
            f"{len(self.tiers)} tier(s), exit ${self.exit_value:,.0f}"
        )


__all__ = [
    "BlendedConfig",
    "ClawbackProvision",
    "LookbackProvision",
    "WaterfallScenario",
]
