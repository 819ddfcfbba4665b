# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from enum import Enum


class WaterfallModelEnum(str, Enum):
    """
    Structural policy that decides which capital basis feeds the sequencer.

    - EUROPEAN: whole-fund; capital and hurdle are pooled across the fund
    - AMERICAN: deal-by-deal; each deal returns its own capital and hurdle
    - BLENDED: weighted combination of the two
    """

    EUROPEAN = "european"
    AMERICAN = "american"
    BLENDED = "blended"


class TierKindEnum(str, Enum):
    """Distribution rule applied by a waterfall tier."""

    RETURN_OF_CAPITAL = "return_of_capital"
    PREFERRED_RETURN = "preferred_return"
    GP_CATCH_UP = "gp_catch_up"
    CARRY_SPLIT = "carry_split"
    CUSTOM = "custom"

    @property
    def is_lp_only(self) -> bool:
        return self in (TierKindEnum.RETURN_OF_CAPITAL, TierKindEnum.PREFERRED_RETURN)

    @property
    def is_carry_bearing(self) -> bool:
        return self in (TierKindEnum.GP_CATCH_UP, TierKindEnum.CARRY_SPLIT)


class AllocationBasisEnum(str, Enum):
    """
    What "pro-rata" means for a tier's LP allocation.

    - UNRETURNED_CAPITAL: capital each class has not yet had returned
    - UNPAID_PREFERRED_RETURN: preferred return accrued but not yet paid
    - OWNERSHIP: static ownership percentage of the class
    """

    UNRETURNED_CAPITAL = "unreturned_capital"
    UNPAID_PREFERRED_RETURN = "unpaid_preferred_return"
    OWNERSHIP = "ownership"


class PreferredReturnConventionEnum(str, Enum):
    """How the preferred-return hurdle accrues over the hold period."""

    SIMPLE = "simple"  # capital * rate * years
    COMPOUND = "compound"  # capital * ((1 + rate) ** years - 1)


class ManagementFeeTreatmentEnum(str, Enum):
    """Whether management fees are part of the LP capital basis."""

    EXCLUDED_FROM_BASIS = "excluded_from_basis"  # basis = commitment
    INCLUDED_IN_BASIS = "included_in_basis"  # basis = commitment + pro-rata fees


class ClawbackStatusEnum(str, Enum):
    CLEAR = "clear"
    AT_RISK = "at-risk"
    TRIGGERED = "triggered"


class LookbackStatusEnum(str, Enum):
    MONITOR = "monitor"
    AT_RISK = "at-risk"
    CLEARED = "cleared"
