# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Optional

from pydantic import Field

from .enums import ManagementFeeTreatmentEnum, PreferredReturnConventionEnum
from .model import Model
from .types import FloatBetween0And1, PositiveFloat, PositiveInt


class CalculationSettings(Model):
    """
    Configuration settings for the waterfall engine behavior.

    The preferred-return convention and management fee treatment are
    fund-document terms with no universal default. Both are explicit here so
    every golden vector states the convention it was computed under.

    Usage Examples:
        # Simple annual accrual, fees outside the capital basis (default)
        calc_settings = CalculationSettings()

        # Compounded hurdle with fees returned alongside capital
        calc_settings = CalculationSettings(
            preferred_return_convention=PreferredReturnConventionEnum.COMPOUND,
            management_fee_treatment=ManagementFeeTreatmentEnum.INCLUDED_IN_BASIS,
        )
    """

    preferred_return_convention: PreferredReturnConventionEnum = Field(
        default=PreferredReturnConventionEnum.SIMPLE,
        description="Accrual convention for the preferred-return hurdle.",
    )
    management_fee_treatment: ManagementFeeTreatmentEnum = Field(
        default=ManagementFeeTreatmentEnum.EXCLUDED_FROM_BASIS,
        description="Whether management fees are added to each class's capital basis.",
    )
    default_hold_period_years: PositiveFloat = Field(
        default=1.0,
        description="Hold period used for hurdle accrual when a scenario carries no dates.",
    )
    default_max_carry_percentage: FloatBetween0And1 = Field(
        default=0.20,
        description="Contractual maximum GP share of profit when a scenario does not set one.",
    )
    conservation_tolerance: PositiveFloat = Field(
        default=0.01,
        description="Allowed dollar drift between distributable proceeds and allocations.",
    )


class SensitivitySettings(Model):
    """Settings for sensitivity sweeps."""

    default_steps: PositiveInt = Field(
        default=20, description="Number of intervals for generated exit-value ranges."
    )
    max_workers: Optional[PositiveInt] = Field(
        default=None,
        description="Worker threads for sweeps. None or 1 runs points sequentially.",
    )


class WaterfallSettings(Model):
    """
    Global settings container for waterfall calculations.
    """

    calculation: CalculationSettings = Field(default_factory=CalculationSettings)
    sensitivity: SensitivitySettings = Field(default_factory=SensitivitySettings)
