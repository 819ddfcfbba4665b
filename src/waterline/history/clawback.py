# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Clawback Calculator

Compares the carry actually paid (from the distribution ledger) with the carry
the GP is entitled to at the fund's current valuation, and reports what the GP
would owe back. The ledger is only read.
"""

from __future__ import annotations

import logging
from typing import Optional

from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import ClawbackStatusEnum, Model, WaterfallSettings
from ..engine.api import calculate
from ..fund.scenario import ClawbackProvision, WaterfallScenario
from .ledger import DistributionLedger

logger = logging.getLogger(__name__)


class ClawbackResult(Model):
    """Clawback exposure of the GP."""

    actual_carry: float = Field(..., description="Carry received to date per the ledger")
    entitled_carry: float = Field(..., description="Carry owed at the current valuation")
    clawback_owed: float = Field(..., ge=0)
    required_return: float = Field(
        default=0.0, description="What LPs must receive to clear the clawback hurdle"
    )
    lp_distributions: float = 0.0
    shortfall: float = Field(default=0.0, description="LP distributions below required return")
    net_carry_after_clawback: float = 0.0
    status: ClawbackStatusEnum = ClawbackStatusEnum.CLEAR


class ClawbackCalculator:
    """Recomputes entitled carry and measures the GP's clawback obligation."""

    def __init__(self, settings: Optional[WaterfallSettings] = None):
        self.settings = settings or WaterfallSettings()

    def calculate(
        self,
        scenario: WaterfallScenario,
        ledger: DistributionLedger,
        current_valuation: Optional[float] = None,
    ) -> ClawbackResult:
        """
        Measure clawback owed.

        Args:
            scenario: Fund scenario with the waterfall terms
            ledger: Distributions paid to date
            current_valuation: Remaining value still to be realized. The
                waterfall is re-run on everything distributed so far plus this
                value. Defaults to the scenario exit value when None.

        Returns:
            ClawbackResult with a non-negative amount owed
        """
        provision = scenario.clawback_provision or ClawbackProvision()
        entries = ledger.entries
        actual_carry = sum(e.carry_paid for e in entries)
        lp_distributions = sum(e.lp_capital_returned for e in entries)

        if current_valuation is None:
            valuation_scenario = scenario
        else:
            valuation_scenario = scenario.with_exit_value(
                lp_distributions
                + actual_carry
                + scenario.management_fees
                + max(0.0, current_valuation)
            )
        entitled = calculate(valuation_scenario, self.settings).gp_carry

        required_return = scenario.resolved_total_invested * (
            1.0 + provision.hurdle_rate * provision.distribution_life_years
        )
        shortfall = max(0.0, required_return - lp_distributions)

        owed = 0.0
        if provision.enabled:
            owed = max(0.0, actual_carry - entitled) * provision.clawback_rate
            owed = FinancialCalculations.round_cents(min(actual_carry, owed))

        if owed > 0:
            status = ClawbackStatusEnum.TRIGGERED
            logger.warning(
                f"Scenario {scenario.id}: clawback of ${owed:,.2f} on "
                f"${actual_carry:,.2f} carry received"
            )
        elif shortfall > 0:
            status = ClawbackStatusEnum.AT_RISK
        else:
            status = ClawbackStatusEnum.CLEAR

        return ClawbackResult(
            actual_carry=actual_carry,
            entitled_carry=entitled,
            clawback_owed=owed,
            required_return=required_return,
            lp_distributions=lp_distributions,
            shortfall=shortfall,
            net_carry_after_clawback=actual_carry - owed,
            status=status,
        )


__all__ = ["ClawbackCalculator", "ClawbackResult"]
