# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Test utilities and fixtures for Waterline testing.

Helpers build scenarios with sensible defaults so tests only spell out the
fields they care about.
"""

from __future__ import annotations

from datetime import date
from typing import List, Optional, Sequence, Tuple

import pytest

from waterline.core.primitives import WaterfallModelEnum, WaterfallSettings
from waterline.fund import (
    BlendedConfig,
    Deal,
    InvestorClass,
    WaterfallScenario,
    WaterfallTier,
    create_single_class_scenario,
    create_standard_tiers,
)


def make_classes(
    commitments: Sequence[Tuple[str, float]],
    hurdle_rate: Optional[float] = None,
) -> List[InvestorClass]:
    """
    Create investor classes with ids equal to their names.

    Seniority follows input order (first class is most senior).
    """
    return [
        InvestorClass(
            id=class_id,
            name=f"Class {class_id}",
            commitment=commitment,
            hurdle_rate=hurdle_rate,
            seniority=rank,
        )
        for rank, (class_id, commitment) in enumerate(commitments, start=1)
    ]


def make_scenario(
    exit_value: float = 50_000_000,
    commitments: Sequence[Tuple[str, float]] = (("A", 10_000_000),),
    hurdle_rate: float = 0.08,
    carry_rate: float = 0.20,
    model: WaterfallModelEnum = WaterfallModelEnum.EUROPEAN,
    management_fees: float = 0.0,
    tiers: Optional[List[WaterfallTier]] = None,
    deals: Optional[List[Deal]] = None,
    blended_config: Optional[BlendedConfig] = None,
    scenario_id: str = "test-scenario",
    **kwargs,
) -> WaterfallScenario:
    """Create a scenario on the standard tiers unless tiers are given."""
    model = WaterfallModelEnum(model)
    if model == WaterfallModelEnum.BLENDED and blended_config is None:
        blended_config = BlendedConfig()
    return WaterfallScenario(
        id=scenario_id,
        name="Test Scenario",
        model=model,
        blended_config=blended_config,
        investor_classes=make_classes(commitments),
        tiers=tiers if tiers is not None else create_standard_tiers(hurdle_rate, carry_rate),
        deals=deals or [],
        exit_value=exit_value,
        management_fees=management_fees,
        **kwargs,
    )


def make_deals(*specs: Tuple[str, float, float]) -> List[Deal]:
    """Create deals from (id, invested_capital, exit_value) triples."""
    return [
        Deal(id=deal_id, name=f"Deal {deal_id}", invested_capital=invested, exit_value=exit_value)
        for deal_id, invested, exit_value in specs
    ]


@pytest.fixture
def golden_scenario() -> WaterfallScenario:
    """Class A $10M, 8% hurdle, 20% carry with full catch-up, $50M exit."""
    return create_single_class_scenario(
        commitment=10_000_000,
        exit_value=50_000_000,
        hurdle_rate=0.08,
        carry_rate=0.20,
        scenario_id="golden",
    )


@pytest.fixture
def two_class_scenario() -> WaterfallScenario:
    """Senior class A ($6M) and junior class B ($4M) on the standard tiers."""
    return make_scenario(
        exit_value=30_000_000,
        commitments=(("A", 6_000_000), ("B", 4_000_000)),
        scenario_id="two-class",
    )


@pytest.fixture
def settings() -> WaterfallSettings:
    return WaterfallSettings()


@pytest.fixture
def dated_scenario() -> WaterfallScenario:
    """Golden terms with a two-year hold given by dates."""
    return make_scenario(
        inception_date=date(2022, 1, 1),
        exit_date=date(2024, 1, 1),
        scenario_id="dated",
    )
