# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall tier definitions.

A tier is one rule in the ordered distribution sequence. The meaning of
``rate`` depends on the tier kind:

- return_of_capital: unused
- preferred_return: hurdle rate (class ``hurdle_rate`` overrides it)
- gp_catch_up: target carry percentage the GP is caught up to
- carry_split / custom: GP share of the tier; LPs receive the rest
"""

from typing import List, Optional

from pydantic import Field

from ..core.primitives import (
    AllocationBasisEnum,
    FloatBetween0And1,
    Model,
    PositiveFloat,
    TierKindEnum,
)

_DEFAULT_BASIS = {
    TierKindEnum.RETURN_OF_CAPITAL: AllocationBasisEnum.UNRETURNED_CAPITAL,
    TierKindEnum.PREFERRED_RETURN: AllocationBasisEnum.UNPAID_PREFERRED_RETURN,
    TierKindEnum.GP_CATCH_UP: AllocationBasisEnum.OWNERSHIP,
    TierKindEnum.CARRY_SPLIT: AllocationBasisEnum.OWNERSHIP,
    TierKindEnum.CUSTOM: AllocationBasisEnum.OWNERSHIP,
}


class WaterfallTier(Model):
    """One ordered step of the distribution waterfall."""

    id: str = Field(..., min_length=1, description="Unique tier identifier")
    name: str = Field(..., description="Display name of the tier")
    order: int = Field(..., description="Position in the sequence (gapless, increasing)")
    kind: TierKindEnum = Field(..., description="Distribution rule for the tier")
    rate: FloatBetween0And1 = Field(
        default=0.0, description="Hurdle, catch-up target or GP split, by tier kind"
    )
    cap: Optional[PositiveFloat] = Field(
        default=None, description="Maximum dollars this tier may consume"
    )
    basis: Optional[AllocationBasisEnum] = Field(
        default=None, description="LP allocation basis override"
    )
    eligible_class_ids: Optional[List[str]] = Field(
        default=None, description="Classes that participate. None means all classes."
    )
    description: Optional[str] = None

    @property
    def allocation_basis(self) -> AllocationBasisEnum:
        """Basis used to split the LP portion of this tier."""
        return self.basis or _DEFAULT_BASIS[self.kind]

    @property
    def gp_share(self) -> float:
        """Fraction of the tier directed to the GP."""
        if self.kind == TierKindEnum.GP_CATCH_UP:
            return 1.0
        if self.kind in (TierKindEnum.CARRY_SPLIT, TierKindEnum.CUSTOM):
            return self.rate
        return 0.0

    def __str__(self) -> str:
        return f"Tier {self.order}: {self.name} ({self.kind.value}, {self.rate:.1%})"


__all__ = ["WaterfallTier"]
