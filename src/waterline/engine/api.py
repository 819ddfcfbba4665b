# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall calculation entry point.

``calculate`` is a pure function of its inputs: it validates the scenario,
dispatches on the structural model and aggregates the outcome. It performs no
I/O and never mutates the scenario, so it is safe to call from many threads.

Example:
    ```python
    from waterline import calculate
    from waterline.fund import create_single_class_scenario

    scenario = create_single_class_scenario(commitment=10_000_000, exit_value=50_000_000)
    results = calculate(scenario)
    print(f"GP carry: ${results.gp_carry:,.0f} ({results.gp_carry_percentage:.1%})")
    ```
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from ..core.primitives import WaterfallModelEnum, WaterfallSettings
from ..fund.scenario import WaterfallScenario
from ..fund.validation import coerce_scenario, validate_scenario
from .aggregator import aggregate
from .results import WaterfallResults
from .strategies import blend, run_american, run_european

logger = logging.getLogger(__name__)


def calculate(
    scenario: Union[WaterfallScenario, Mapping[str, Any]],
    settings: Optional[WaterfallSettings] = None,
) -> WaterfallResults:
    """
    Distribute a scenario's exit proceeds through its waterfall.

    Args:
        scenario: Scenario model or a mapping that validates as one
        settings: Engine settings (defaults to ``WaterfallSettings()``)

    Returns:
        WaterfallResults with fund, class and tier detail

    Raises:
        ConfigurationError: If the scenario is structurally invalid
    """
    scenario = coerce_scenario(scenario)
    settings = settings or WaterfallSettings()
    calc_settings = settings.calculation
    validate_scenario(scenario, calc_settings)

    model = WaterfallModelEnum(scenario.model)
    logger.debug(f"Calculating {scenario}")

    if model == WaterfallModelEnum.EUROPEAN:
        outcome = run_european(scenario, calc_settings)
    elif model == WaterfallModelEnum.AMERICAN:
        outcome = run_american(scenario, calc_settings)
    else:
        outcome = blend(
            run_european(scenario, calc_settings),
            run_american(scenario, calc_settings),
            scenario.blended_config,
            scenario.investor_classes,
        )

    results = aggregate(scenario, outcome, calc_settings)
    logger.info(
        f"Scenario {scenario.id} ({model.value}): LP ${results.lp_total_return:,.2f}, "
        f"GP ${results.gp_carry:,.2f} ({results.gp_carry_percentage:.2%})"
    )
    return results


__all__ = ["calculate"]
