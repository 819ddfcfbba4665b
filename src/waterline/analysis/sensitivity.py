# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Sensitivity Engine

Sweeps exit value, hurdle rate and carry rate across a grid and runs an
independent calculation per grid point. Every point is a derived scenario
snapshot, so points can run in any order or in parallel; results are always
collected back in grid order.

Example:
    ```python
    engine = SensitivityEngine()
    matrix = engine.run(
        scenario,
        exit_values=exit_value_range(10_000_000, 60_000_000, steps=10),
        carry_rates=[0.15, 0.20],
    )
    df = matrix.to_dataframe()
    break_evens = matrix.break_even_points()
    ```
"""

from __future__ import annotations

import itertools
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import Model, TierKindEnum, WaterfallSettings
from ..engine.api import calculate
from ..engine.results import WaterfallResults
from ..fund.scenario import WaterfallScenario
from ..fund.validation import max_carry_for

logger = logging.getLogger(__name__)


class SensitivityPoint(Model):
    """Outcome of one grid point."""

    exit_value: float
    hurdle_rate: Optional[float] = None
    carry_rate: Optional[float] = None
    lp_total_return: float
    lp_average_multiple: Optional[float] = None
    gp_carry: float
    gp_carry_percentage: float
    total_multiple: Optional[float] = Field(
        default=None, description="Exit value over total invested"
    )
    tier_amounts: Dict[str, float] = Field(default_factory=dict)
    tier_names: Dict[str, str] = Field(default_factory=dict)


class BreakEvenPoint(Model):
    """Exit value at which a tier first receives proceeds."""

    tier_id: str
    tier_name: str
    exit_value: float
    hurdle_rate: Optional[float] = None
    carry_rate: Optional[float] = None


class SensitivityMatrix(Model):
    """Grid of sensitivity points in grid order."""

    scenario_id: str
    points: List[SensitivityPoint] = Field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per grid point, with a column per tier amount."""
        rows = []
        for point in self.points:
            row = {
                "exit_value": point.exit_value,
                "hurdle_rate": point.hurdle_rate,
                "carry_rate": point.carry_rate,
                "lp_total_return": point.lp_total_return,
                "lp_average_multiple": point.lp_average_multiple,
                "gp_carry": point.gp_carry,
                "gp_carry_percentage": point.gp_carry_percentage,
                "total_multiple": point.total_multiple,
            }
            row.update({f"tier:{k}": v for k, v in point.tier_amounts.items()})
            rows.append(row)
        return pd.DataFrame(rows)

    def break_even_points(self) -> List[BreakEvenPoint]:
        """
        Exit values at which each tier starts receiving proceeds.

        Evaluated along the exit-value axis separately for every
        (hurdle, carry) combination. Tiers already paying at the lowest exit
        value of a sweep are not break-evens within that sweep.
        """
        groups: Dict[Tuple, List[SensitivityPoint]] = {}
        for point in self.points:
            groups.setdefault((point.hurdle_rate, point.carry_rate), []).append(point)

        found = []
        for (hurdle_rate, carry_rate), points in groups.items():
            ordered = sorted(points, key=lambda p: p.exit_value)
            active = {k for k, v in ordered[0].tier_amounts.items() if v > 0}
            for point in ordered[1:]:
                for tier_id, amount in point.tier_amounts.items():
                    if amount > 0 and tier_id not in active:
                        active.add(tier_id)
                        found.append(
                            BreakEvenPoint(
                                tier_id=tier_id,
                                tier_name=point.tier_names.get(tier_id, tier_id),
                                exit_value=point.exit_value,
                                hurdle_rate=hurdle_rate,
                                carry_rate=carry_rate,
                            )
                        )
        return found


def exit_value_range(minimum: float, maximum: float, steps: int = 20) -> List[float]:
    """``steps + 1`` evenly spaced exit values from minimum to maximum inclusive."""
    if steps < 1:
        raise ValueError("steps must be at least 1")
    if maximum < minimum:
        raise ValueError("maximum exit value must not be below minimum")
    return [float(v) for v in np.linspace(minimum, maximum, steps + 1)]


def with_hurdle_rate(scenario: WaterfallScenario, hurdle_rate: float) -> WaterfallScenario:
    """Variant with every preferred-return tier at ``hurdle_rate`` (class overrides cleared)."""
    tiers = [
        tier.model_copy(update={"rate": hurdle_rate})
        if tier.kind == TierKindEnum.PREFERRED_RETURN
        else tier
        for tier in scenario.tiers
    ]
    classes = [
        ic.model_copy(update={"hurdle_rate": None}) for ic in scenario.investor_classes
    ]
    return scenario.model_copy(update={"tiers": tiers, "investor_classes": classes})


def with_carry_rate(
    scenario: WaterfallScenario, carry_rate: float, settings: WaterfallSettings
) -> WaterfallScenario:
    """Variant with every carry-bearing tier at ``carry_rate``; max carry widened if needed."""
    tiers = [
        tier.model_copy(update={"rate": carry_rate}) if tier.kind.is_carry_bearing else tier
        for tier in scenario.tiers
    ]
    max_carry = max(carry_rate, max_carry_for(scenario, settings.calculation))
    return scenario.model_copy(update={"tiers": tiers, "max_carry_percentage": max_carry})


def _point(
    scenario: WaterfallScenario,
    results: WaterfallResults,
    hurdle_rate: Optional[float],
    carry_rate: Optional[float],
) -> SensitivityPoint:
    return SensitivityPoint(
        exit_value=scenario.exit_value,
        hurdle_rate=hurdle_rate,
        carry_rate=carry_rate,
        lp_total_return=results.lp_total_return,
        lp_average_multiple=results.lp_average_multiple,
        gp_carry=results.gp_carry,
        gp_carry_percentage=results.gp_carry_percentage,
        total_multiple=FinancialCalculations.calculate_equity_multiple(
            scenario.resolved_total_invested, scenario.exit_value
        ),
        tier_amounts={t.tier_id: t.total_amount for t in results.tier_breakdown},
        tier_names={t.tier_id: t.tier_name for t in results.tier_breakdown},
    )


class SensitivityEngine:
    """Runs waterfall calculations across a parameter grid."""

    def __init__(self, settings: Optional[WaterfallSettings] = None):
        self.settings = settings or WaterfallSettings()

    def run(
        self,
        scenario: WaterfallScenario,
        exit_values: Optional[Sequence[float]] = None,
        hurdle_rates: Optional[Sequence[float]] = None,
        carry_rates: Optional[Sequence[float]] = None,
        max_workers: Optional[int] = None,
    ) -> SensitivityMatrix:
        """
        Calculate every point of the cartesian grid.

        Axes left as None hold the scenario's own value. Results are returned
        in grid order (exit value varies fastest) regardless of how many
        worker threads run.

        Raises:
            ConfigurationError: If any grid point is structurally invalid
        """
        grid = list(
            itertools.product(
                list(hurdle_rates) if hurdle_rates is not None else [None],
                list(carry_rates) if carry_rates is not None else [None],
                list(exit_values) if exit_values is not None else [scenario.exit_value],
            )
        )
        variants = [self._variant(scenario, *point) for point in grid]

        workers = max_workers or self.settings.sensitivity.max_workers
        logger.debug(f"Sensitivity on {scenario.id}: {len(grid)} points, workers={workers}")

        if workers and workers > 1 and len(variants) > 1:
            results = self._run_with_pool(variants, workers)
        else:
            results = [calculate(variant, self.settings) for variant in variants]

        points = [
            _point(variant, result, hurdle_rate, carry_rate)
            for variant, result, (hurdle_rate, carry_rate, _) in zip(variants, results, grid)
        ]
        return SensitivityMatrix(scenario_id=scenario.id, points=points)

    def exit_value_sweep(
        self,
        scenario: WaterfallScenario,
        minimum: float,
        maximum: float,
        steps: Optional[int] = None,
    ) -> SensitivityMatrix:
        """Sweep exit value alone over an evenly spaced range."""
        steps = steps or self.settings.sensitivity.default_steps
        return self.run(scenario, exit_values=exit_value_range(minimum, maximum, steps))

    def _variant(
        self,
        scenario: WaterfallScenario,
        hurdle_rate: Optional[float],
        carry_rate: Optional[float],
        exit_value: float,
    ) -> WaterfallScenario:
        variant = scenario.with_exit_value(exit_value)
        if hurdle_rate is not None:
            variant = with_hurdle_rate(variant, hurdle_rate)
        if carry_rate is not None:
            variant = with_carry_rate(variant, carry_rate, self.settings)
        return variant

    def _run_with_pool(
        self, variants: List[WaterfallScenario], max_workers: int
    ) -> List[WaterfallResults]:
        results: List[Optional[WaterfallResults]] = [None] * len(variants)
        with ThreadPoolExecutor(max_workers=min(max_workers, len(variants))) as executor:
            future_to_index = {
                executor.submit(calculate, variant, self.settings): index
                for index, variant in enumerate(variants)
            }
            for future in as_completed(future_to_index):
                # Errors propagate to the caller
                results[future_to_index[future]] = future.result()
        return results


def compare_scenarios(
    scenarios: Sequence[WaterfallScenario],
    settings: Optional[WaterfallSettings] = None,
) -> pd.DataFrame:
    """Side-by-side headline metrics for several scenarios, indexed by scenario id."""
    settings = settings or WaterfallSettings()
    rows = []
    for scenario in scenarios:
        results = calculate(scenario, settings)
        rows.append(
            {
                "scenario_id": scenario.id,
                "name": scenario.name,
                "model": results.model.value,
                "exit_value": results.exit_value,
                "total_invested": results.total_invested,
                "lp_total_return": results.lp_total_return,
                "lp_average_multiple": results.lp_average_multiple,
                "gp_carry": results.gp_carry,
                "gp_carry_percentage": results.gp_carry_percentage,
            }
        )
    return pd.DataFrame(rows).set_index("scenario_id") if rows else pd.DataFrame()


__all__ = [
    "BreakEvenPoint",
    "SensitivityEngine",
    "SensitivityMatrix",
    "SensitivityPoint",
    "compare_scenarios",
    "exit_value_range",
    "with_carry_rate",
    "with_hurdle_rate",
]
