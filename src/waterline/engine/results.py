# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall result models.

Results are frozen snapshots produced fresh by every calculation. They carry
the fund-level metrics, one entry per investor class and a tier-by-tier
breakdown, with pandas views for reporting and charting collaborators.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd
from pydantic import Field

from ..core.primitives import Model, TierKindEnum, WaterfallModelEnum
from ..fund.scenario import BlendedConfig


class TierBreakdown(Model):
    """What a single tier asked for and what it actually distributed."""

    tier_id: str
    tier_name: str
    tier_kind: TierKindEnum
    order: int
    target_amount: float = Field(description="Amount the tier rule asked for")
    total_amount: float = Field(description="Amount actually distributed by the tier")
    lp_amount: float
    gp_amount: float
    allocations: Dict[str, float] = Field(
        default_factory=dict, description="Investor class id to amount"
    )
    cumulative_amount: float = 0.0
    percentage: float = Field(
        default=0.0, description="Share of distributable proceeds (0-1)"
    )
    clamped: bool = Field(
        default=False, description="Target exceeded remaining proceeds and was cut short"
    )
    terminated: bool = Field(
        default=False, description="Proceeds were exhausted before this tier was reached"
    )
    synthetic: bool = Field(
        default=False, description="Entry added by the engine, not a configured tier"
    )


class InvestorClassResult(Model):
    """Totals and metrics for one investor class."""

    investor_class_id: str
    investor_class_name: str
    invested: float
    returned: float
    profit: float
    multiple: Optional[float] = Field(
        default=None, description="returned / invested; None when nothing was invested"
    )
    irr: Optional[float] = Field(
        default=None, description="IRR when inception and exit dates are known"
    )
    allocations: Dict[str, float] = Field(
        default_factory=dict, description="Tier id to amount received"
    )


class WaterfallResults(Model):
    """Fund-level outcome of a waterfall calculation."""

    scenario_id: str
    model: WaterfallModelEnum

    # Inputs echoed for reporting
    exit_value: float
    management_fees: float
    distributable_proceeds: float
    total_invested: float

    # LP metrics
    lp_total_return: float
    lp_average_multiple: Optional[float] = Field(
        default=None, description="lp_total_return / total_invested; None when nothing invested"
    )

    # GP metrics
    gp_carry: float
    gp_carry_percentage: float = Field(
        default=0.0, description="GP carry as a share of total profit (0 when no profit)"
    )
    carry_true_up: float = Field(
        default=0.0,
        description="Deal-level carry returned to LPs by the fund-level true-up",
    )

    # Detail
    investor_class_results: List[InvestorClassResult] = Field(default_factory=list)
    tier_breakdown: List[TierBreakdown] = Field(default_factory=list)
    unallocated: float = Field(
        default=0.0, description="Distributable proceeds left unassigned (should be 0)"
    )
    blended_config: Optional[BlendedConfig] = None

    @property
    def total_profit(self) -> float:
        """Distributed proceeds above invested capital (negative on a loss)."""
        return self.lp_total_return + self.gp_carry - self.total_invested

    @property
    def per_class_allocations(self) -> Dict[str, float]:
        """Investor class id to total amount returned."""
        return {r.investor_class_id: r.returned for r in self.investor_class_results}

    @property
    def conservation_error(self) -> float:
        """Absolute drift between distributable proceeds and what was allocated."""
        allocated = sum(self.per_class_allocations.values()) + self.gp_carry
        return abs(self.distributable_proceeds - allocated)

    def get_class_result(self, class_id: str) -> Optional[InvestorClassResult]:
        for result in self.investor_class_results:
            if result.investor_class_id == class_id:
                return result
        return None

    def get_tier(self, tier_id: str) -> Optional[TierBreakdown]:
        for tier in self.tier_breakdown:
            if tier.tier_id == tier_id:
                return tier
        return None

    def tier_breakdown_df(self) -> pd.DataFrame:
        """Tier breakdown as a DataFrame indexed by tier id."""
        rows = [
            {
                "tier_id": t.tier_id,
                "tier_name": t.tier_name,
                "tier_kind": t.tier_kind.value,
                "order": t.order,
                "target_amount": t.target_amount,
                "total_amount": t.total_amount,
                "lp_amount": t.lp_amount,
                "gp_amount": t.gp_amount,
                "cumulative_amount": t.cumulative_amount,
                "percentage": t.percentage,
                "clamped": t.clamped,
                "terminated": t.terminated,
            }
            for t in self.tier_breakdown
        ]
        return pd.DataFrame(rows).set_index("tier_id") if rows else pd.DataFrame()

    def class_results_df(self) -> pd.DataFrame:
        """Investor class results as a DataFrame indexed by class id."""
        rows = [
            {
                "investor_class_id": r.investor_class_id,
                "investor_class_name": r.investor_class_name,
                "invested": r.invested,
                "returned": r.returned,
                "profit": r.profit,
                "multiple": r.multiple,
                "irr": r.irr,
            }
            for r in self.investor_class_results
        ]
        return pd.DataFrame(rows).set_index("investor_class_id") if rows else pd.DataFrame()

    def allocation_matrix(self) -> pd.DataFrame:
        """Tier by investor class matrix of allocated amounts."""
        matrix = pd.DataFrame(
            {t.tier_id: t.allocations for t in self.tier_breakdown}
        ).T
        return matrix.fillna(0.0)


__all__ = ["InvestorClassResult", "TierBreakdown", "WaterfallResults"]
