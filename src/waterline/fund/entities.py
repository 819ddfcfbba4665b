# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Entity models for fund participants and investments.

Investor classes are the LP-side recipients of waterfall proceeds. The GP is
not modelled as a class: it receives carried interest directly from the
GP-facing tiers. Deals are the per-investment capital buckets used by the
American (deal-by-deal) model.
"""

from typing import Optional

from pydantic import Field

from ..core.primitives.model import Model
from ..core.primitives.types import FloatBetween0And1, PositiveFloat


class InvestorClass(Model):
    """Limited partner class with a capital commitment and hurdle terms."""

    # Core Identity
    id: str = Field(..., min_length=1, description="Unique class identifier")
    name: str = Field(..., description="Display name of the class")
    description: Optional[str] = Field(None, description="Additional class details")

    # Capital
    commitment: PositiveFloat = Field(..., description="Capital committed in dollars")

    # Ownership basis for carry-split tiers
    ownership_percentage: Optional[FloatBetween0And1] = Field(
        None,
        description="Explicit ownership share (0-1). "
        "If None for ALL classes, ownership is derived pro-rata from commitments.",
    )

    # Hurdle and priority
    hurdle_rate: Optional[FloatBetween0And1] = Field(
        None,
        description="Class preferred return rate. Overrides the preferred-return tier rate.",
    )
    seniority: int = Field(
        default=1, ge=1, description="Seniority rank (1 = most senior)"
    )

    def __str__(self) -> str:
        """Return string representation of the investor class."""
        return f"{self.name} [{self.id}]: ${self.commitment:,.0f} committed"


class Deal(Model):
    """Single portfolio investment evaluated on its own under the American model."""

    id: str = Field(..., min_length=1, description="Unique deal identifier")
    name: str = Field(..., description="Deal name")
    invested_capital: PositiveFloat = Field(
        ..., description="Fund capital invested in this deal"
    )
    exit_value: PositiveFloat = Field(
        ...,
        description="Realized proceeds of the deal. "
        "Used as the deal's weight when the scenario exit value is split across deals.",
    )
    management_fees: Optional[PositiveFloat] = Field(
        None,
        description="Fees charged against this deal. "
        "If None for ALL deals, scenario fees are spread pro-rata to invested capital.",
    )

    def __str__(self) -> str:
        return f"{self.name}: ${self.invested_capital:,.0f} in, ${self.exit_value:,.0f} out"


# Export all entity types
__all__ = [
    "InvestorClass",
    "Deal",
]
