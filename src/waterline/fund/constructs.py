# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Fund Constructs - Tier and Scenario Builders

Constructs compose primitive models (`InvestorClass`, `WaterfallTier`,
`WaterfallScenario`) into the structures most funds use, with industry
standard defaults that can be inspected and replaced after creation.

### `create_standard_tiers()`
Return of capital, preferred return, 100% GP catch-up, then a final split.
Defaults: 8% preferred return, 20% carry.

### `create_classes_from_commitments()`
Investor classes whose ownership is implied by their commitments.

### `create_single_class_scenario()`
One LP class on the standard tiers, the smallest complete scenario.

Example:
    ```python
    scenario = create_single_class_scenario(
        commitment=10_000_000,
        exit_value=50_000_000,
        hurdle_rate=0.08,
        carry_rate=0.20,
    )
    results = calculate(scenario)
    ```
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..core.primitives import TierKindEnum, WaterfallModelEnum
from .entities import InvestorClass
from .scenario import BlendedConfig, WaterfallScenario
from .tiers import WaterfallTier


def create_standard_tiers(
    hurdle_rate: float = 0.08,
    carry_rate: float = 0.20,
    include_catch_up: bool = True,
) -> List[WaterfallTier]:
    """
    Creates the standard four-tier private equity waterfall.

    Args:
        hurdle_rate: Preferred return rate (e.g., 0.08 for 8%)
        carry_rate: GP carried interest (e.g., 0.20 for 20%)
        include_catch_up: Add a 100% GP catch-up tier after the preferred return

    Returns:
        Ordered list of tiers starting at order 1
    """
    specs: List[Tuple[str, str, TierKindEnum, float]] = [
        ("roc", "Return of Capital", TierKindEnum.RETURN_OF_CAPITAL, 0.0),
        ("pref", "Preferred Return", TierKindEnum.PREFERRED_RETURN, hurdle_rate),
    ]
    if include_catch_up:
        specs.append(("catch-up", "GP Catch-Up", TierKindEnum.GP_CATCH_UP, carry_rate))
    specs.append(
        (
            "split",
            f"Final Split ({1 - carry_rate:.0%}/{carry_rate:.0%})",
            TierKindEnum.CARRY_SPLIT,
            carry_rate,
        )
    )

    return [
        WaterfallTier(id=tier_id, name=name, order=order, kind=kind, rate=rate)
        for order, (tier_id, name, kind, rate) in enumerate(specs, start=1)
    ]


def create_classes_from_commitments(
    commitments: Sequence[Tuple[str, float]],
    hurdle_rate: Optional[float] = None,
) -> List[InvestorClass]:
    """
    Create investor classes with ownership implied by commitments.

    Args:
        commitments: (name, commitment) pairs; ids are derived from names
        hurdle_rate: Optional class-level hurdle applied to every class

    Raises:
        ValueError: If no classes are provided or a commitment is negative
    """
    if not commitments:
        raise ValueError("Must provide at least one investor class")

    classes = []
    for seniority, (name, commitment) in enumerate(commitments, start=1):
        if commitment < 0:
            raise ValueError(f"Commitment for {name} must be non-negative")
        classes.append(
            InvestorClass(
                id=name.lower().replace(" ", "-"),
                name=name,
                commitment=commitment,
                hurdle_rate=hurdle_rate,
                seniority=seniority,
            )
        )
    return classes


def create_single_class_scenario(
    commitment: float,
    exit_value: float,
    hurdle_rate: float = 0.08,
    carry_rate: float = 0.20,
    management_fees: float = 0.0,
    model: WaterfallModelEnum = WaterfallModelEnum.EUROPEAN,
    scenario_id: str = "single-class",
) -> WaterfallScenario:
    """
    Helper function to create a one-class scenario on the standard tiers.

    Blended scenarios get an even 50/50 weighting.
    """
    model = WaterfallModelEnum(model)
    return WaterfallScenario(
        id=scenario_id,
        name="Single Class",
        model=model,
        investor_classes=[
            InvestorClass(
                id="A", name="Class A", commitment=commitment, hurdle_rate=hurdle_rate
            )
        ],
        tiers=create_standard_tiers(hurdle_rate=hurdle_rate, carry_rate=carry_rate),
        exit_value=exit_value,
        total_invested=commitment,
        management_fees=management_fees,
        blended_config=BlendedConfig() if model == WaterfallModelEnum.BLENDED else None,
    )


__all__ = [
    "create_standard_tiers",
    "create_classes_from_commitments",
    "create_single_class_scenario",
]
