# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Results Aggregator

Turns a strategy's cent-level distribution into the reported
``WaterfallResults``: fund totals, the GP carry share of profit and one
result per investor class.
"""

from __future__ import annotations

import logging
from typing import Union

from ..core.calculations import FinancialCalculations
from ..core.primitives import CalculationSettings, WaterfallModelEnum
from ..fund.scenario import WaterfallScenario
from .results import InvestorClassResult, WaterfallResults
from .strategies import AmericanResult, BlendedResult, EuropeanResult

logger = logging.getLogger(__name__)

_from_cents = FinancialCalculations.from_cents


def aggregate(
    scenario: WaterfallScenario,
    result: Union[EuropeanResult, AmericanResult, BlendedResult],
    settings: CalculationSettings,
) -> WaterfallResults:
    """
    Build reported results from a strategy outcome.

    Args:
        scenario: Scenario the outcome was computed for
        result: European, American or blended strategy outcome
        settings: Calculation settings (conservation tolerance)

    Returns:
        WaterfallResults for the scenario
    """
    class_results = []
    for investor_class in scenario.investor_classes:
        returned = _from_cents(result.class_totals_cents.get(investor_class.id, 0))
        invested = investor_class.commitment
        allocations = {}
        for entry in result.breakdown:
            amount = entry.allocations.get(investor_class.id)
            if amount:
                allocations[entry.tier_id] = amount
        class_results.append(
            InvestorClassResult(
                investor_class_id=investor_class.id,
                investor_class_name=investor_class.name,
                invested=invested,
                returned=returned,
                profit=round(returned - invested, 2),
                multiple=FinancialCalculations.calculate_equity_multiple(invested, returned),
                irr=FinancialCalculations.calculate_irr(
                    invested, returned, scenario.inception_date, scenario.exit_date
                ),
                allocations=allocations,
            )
        )

    lp_cents = sum(result.class_totals_cents.values())
    lp_total = _from_cents(lp_cents)
    gp_carry = _from_cents(result.gp_cents)
    total_invested = scenario.resolved_total_invested
    profit = lp_total + gp_carry - total_invested
    carry_percentage = gp_carry / profit if profit > 0 else 0.0

    unallocated = _from_cents(result.distributable_cents - lp_cents - result.gp_cents)
    if abs(unallocated) > settings.conservation_tolerance:
        logger.warning(
            f"Scenario {scenario.id}: ${unallocated:,.2f} of distributable proceeds "
            f"left unallocated"
        )

    return WaterfallResults(
        scenario_id=scenario.id,
        model=WaterfallModelEnum(scenario.model),
        exit_value=scenario.exit_value,
        management_fees=scenario.management_fees,
        distributable_proceeds=_from_cents(result.distributable_cents),
        total_invested=total_invested,
        lp_total_return=lp_total,
        lp_average_multiple=FinancialCalculations.safe_divide(lp_total, total_invested),
        gp_carry=gp_carry,
        gp_carry_percentage=carry_percentage,
        carry_true_up=_from_cents(result.carry_true_up_cents),
        investor_class_results=class_results,
        tier_breakdown=result.breakdown,
        unallocated=unallocated,
        blended_config=(
            scenario.blended_config if scenario.model == WaterfallModelEnum.BLENDED else None
        ),
    )


__all__ = ["aggregate"]
