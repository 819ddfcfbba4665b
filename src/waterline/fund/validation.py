# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Structural validation of waterfall scenarios.

Field-level checks (types, ranges, non-negativity) are enforced by the pydantic
models when a scenario is built. The cross-field rules below need the whole
snapshot and are run by the engine before every calculation, raising
``ConfigurationError`` on the first violation.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from ..core.exceptions import ConfigurationError
from ..core.primitives import CalculationSettings, TierKindEnum, WaterfallModelEnum
from .scenario import WaterfallScenario

logger = logging.getLogger(__name__)

OWNERSHIP_TOLERANCE = 0.001
WEIGHT_TOLERANCE = 1e-9


def coerce_scenario(
    scenario: Union[WaterfallScenario, Mapping[str, Any]],
) -> WaterfallScenario:
    """Accept a scenario model or a raw mapping; raise ConfigurationError on invalid input."""
    if isinstance(scenario, WaterfallScenario):
        return scenario
    if not isinstance(scenario, Mapping):
        raise ConfigurationError(
            f"Expected WaterfallScenario or mapping, got {type(scenario).__name__}"
        )
    try:
        return WaterfallScenario.model_validate(scenario)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid scenario fields: {exc}") from exc


def max_carry_for(scenario: WaterfallScenario, settings: CalculationSettings) -> float:
    """Contractual maximum GP share of profit for this scenario."""
    if scenario.max_carry_percentage is not None:
        return scenario.max_carry_percentage
    return settings.default_max_carry_percentage


def validate_scenario(
    scenario: WaterfallScenario, settings: CalculationSettings
) -> None:
    """
    Validate the structural invariants of a scenario.

    Raises:
        ConfigurationError: On the first structural problem found
    """
    _validate_classes(scenario)
    _validate_totals(scenario, settings)
    _validate_tiers(scenario, settings)
    _validate_blend(scenario)
    _validate_deals(scenario, settings)
    logger.debug(f"Scenario {scenario.id} passed structural validation")


def _validate_classes(scenario: WaterfallScenario) -> None:
    classes = scenario.investor_classes
    if not classes:
        raise ConfigurationError("Scenario must have at least one investor class")

    class_ids = [ic.id for ic in classes]
    if len(class_ids) != len(set(class_ids)):
        raise ConfigurationError("Investor class ids must be unique")

    has_any = any(ic.ownership_percentage is not None for ic in classes)
    has_all = all(ic.ownership_percentage is not None for ic in classes)
    if has_any and not has_all:
        raise ConfigurationError(
            "Mixed ownership mode not supported. "
            "Either all classes must have explicit ownership percentages or none."
        )
    if has_all:
        total_ownership = sum(ic.ownership_percentage for ic in classes)
        if abs(total_ownership - 1.0) > OWNERSHIP_TOLERANCE:
            raise ConfigurationError(
                f"Ownership percentages must sum to 100%, got {total_ownership:.3%}"
            )


def _validate_totals(scenario: WaterfallScenario, settings: CalculationSettings) -> None:
    if scenario.total_invested is None:
        return
    committed = scenario.committed_capital
    if abs(scenario.total_invested - committed) > settings.conservation_tolerance:
        raise ConfigurationError(
            f"total_invested (${scenario.total_invested:,.2f}) does not match "
            f"sum of class commitments (${committed:,.2f})"
        )


def _validate_tiers(scenario: WaterfallScenario, settings: CalculationSettings) -> None:
    tiers = scenario.tiers
    if not tiers:
        raise ConfigurationError("Scenario must have at least one waterfall tier")

    tier_ids = [tier.id for tier in tiers]
    if len(tier_ids) != len(set(tier_ids)):
        raise ConfigurationError("Waterfall tier ids must be unique")

    orders = [tier.order for tier in tiers]
    for previous, current in zip(orders, orders[1:]):
        if current != previous + 1:
            raise ConfigurationError(
                f"Tier order must be gapless and strictly increasing, got {orders}"
            )

    known_classes = {ic.id for ic in scenario.investor_classes}
    max_carry = max_carry_for(scenario, settings)
    for tier in tiers:
        if tier.eligible_class_ids is not None:
            unknown = set(tier.eligible_class_ids) - known_classes
            if unknown:
                raise ConfigurationError(
                    f"Tier '{tier.id}' references unknown classes: {sorted(unknown)}"
                )
        if tier.kind == TierKindEnum.GP_CATCH_UP and tier.rate >= 1.0:
            raise ConfigurationError(
                f"Catch-up tier '{tier.id}' carry percentage must be below 100%"
            )
        if tier.kind.is_carry_bearing and tier.rate > max_carry + 1e-12:
            raise ConfigurationError(
                f"Tier '{tier.id}' carry {tier.rate:.2%} exceeds the contractual "
                f"maximum of {max_carry:.2%}"
            )


def _validate_blend(scenario: WaterfallScenario) -> None:
    if scenario.model != WaterfallModelEnum.BLENDED:
        return
    config = scenario.blended_config
    if config is None:
        raise ConfigurationError("Blended scenarios require a blended_config")
    if abs(config.total_weight - 100.0) > WEIGHT_TOLERANCE:
        raise ConfigurationError(
            f"Blended weights must sum to 100, got {config.european_weight} + "
            f"{config.american_weight} = {config.total_weight}"
        )


def _validate_deals(scenario: WaterfallScenario, settings: CalculationSettings) -> None:
    deals = scenario.deals
    if not deals:
        return

    deal_ids = [deal.id for deal in deals]
    if len(deal_ids) != len(set(deal_ids)):
        raise ConfigurationError("Deal ids must be unique")

    invested = sum(deal.invested_capital for deal in deals)
    expected = scenario.resolved_total_invested
    if abs(invested - expected) > settings.conservation_tolerance:
        raise ConfigurationError(
            f"Deal invested capital (${invested:,.2f}) does not match "
            f"fund total invested (${expected:,.2f})"
        )

    has_any = any(deal.management_fees is not None for deal in deals)
    has_all = all(deal.management_fees is not None for deal in deals)
    if has_any and not has_all:
        raise ConfigurationError(
            "Either all deals must carry management fees or none."
        )
    if has_all:
        deal_fees = sum(deal.management_fees for deal in deals)
        if abs(deal_fees - scenario.management_fees) > settings.conservation_tolerance:
            raise ConfigurationError(
                f"Deal management fees (${deal_fees:,.2f}) do not match "
                f"scenario management fees (${scenario.management_fees:,.2f})"
            )
