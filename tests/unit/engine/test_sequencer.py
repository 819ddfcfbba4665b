# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the Tier Sequencer

Covers each tier rule, clamping and termination, eligibility, the carry gate
and the residual split.
"""

import pytest

from waterline.core.primitives import (
    CalculationSettings,
    ManagementFeeTreatmentEnum,
    PreferredReturnConventionEnum,
    TierKindEnum,
)
from waterline.engine.sequencer import RESIDUAL_TIER_ID, TierSequencer
from waterline.fund import InvestorClass, WaterfallTier, create_standard_tiers

from conftest import make_scenario


def run(scenario, **settings):
    return TierSequencer(scenario=scenario, settings=CalculationSettings(**settings)).run()


def amounts(output):
    return {t.tier_id: t.total_amount for t in output.breakdown}


class TestStandardWaterfall:
    """Four-tier waterfall on a single class."""

    def test_golden_vector(self):
        output = run(make_scenario(exit_value=50_000_000))
        tiers = {t.tier_id: t for t in output.breakdown}

        assert tiers["roc"].lp_amount == 10_000_000
        assert tiers["pref"].lp_amount == 800_000
        assert tiers["catch-up"].gp_amount == 200_000
        assert tiers["catch-up"].lp_amount == 0
        assert tiers["split"].gp_amount == 7_800_000
        assert tiers["split"].lp_amount == 31_200_000
        assert output.gp_carry == 8_000_000
        assert output.class_totals == {"A": 42_000_000}
        assert output.remaining == 0

    def test_cumulative_and_percentage(self):
        output = run(make_scenario(exit_value=50_000_000))
        last = output.breakdown[-1]
        assert last.cumulative_amount == 50_000_000
        assert output.breakdown[0].percentage == pytest.approx(0.2)

    def test_no_residual_when_split_takes_everything(self):
        output = run(make_scenario(exit_value=50_000_000))
        assert all(not t.synthetic for t in output.breakdown)


class TestClampingAndTermination:
    def test_partial_return_of_capital(self):
        output = run(make_scenario(exit_value=5_000_000))
        roc, pref, catch_up, split = output.breakdown

        assert roc.target_amount == 10_000_000
        assert roc.total_amount == 5_000_000
        assert roc.clamped
        assert not roc.terminated
        for tier in (pref, catch_up, split):
            assert tier.terminated
            assert tier.total_amount == 0
        assert output.gp_carry == 0

    def test_partial_preferred_return(self):
        output = run(make_scenario(exit_value=10_500_000))
        assert amounts(output) == {"roc": 10_000_000, "pref": 500_000, "catch-up": 0, "split": 0}
        assert output.breakdown[1].clamped
        assert output.gp_carry == 0

    def test_partial_catch_up(self):
        output = run(make_scenario(exit_value=10_900_000))
        catch_up = output.breakdown[2]
        assert catch_up.target_amount == 200_000
        assert catch_up.gp_amount == 100_000
        assert catch_up.clamped
        assert output.breakdown[3].terminated
        assert output.gp_carry == 100_000

    def test_zero_exit(self):
        output = run(make_scenario(exit_value=0))
        assert output.gp_carry == 0
        assert output.class_totals == {"A": 0}

    def test_tier_cap(self):
        tiers = [
            WaterfallTier(id="roc", name="ROC", order=1, kind=TierKindEnum.RETURN_OF_CAPITAL),
            WaterfallTier(
                id="bonus", name="LP Bonus", order=2, kind=TierKindEnum.CUSTOM, cap=1_000_000
            ),
            WaterfallTier(id="split", name="Split", order=3, kind=TierKindEnum.CARRY_SPLIT, rate=0.2),
        ]
        output = run(make_scenario(exit_value=20_000_000, tiers=tiers))
        assert amounts(output) == {"roc": 10_000_000, "bonus": 1_000_000, "split": 9_000_000}
        assert output.gp_carry == 1_800_000
        assert not output.breakdown[1].clamped


class TestMultipleClasses:
    def test_two_classes_pro_rata(self, two_class_scenario):
        output = run(two_class_scenario)
        tiers = {t.tier_id: t for t in output.breakdown}

        assert tiers["roc"].allocations == {"A": 6_000_000, "B": 4_000_000}
        assert tiers["pref"].allocations == {"A": 480_000, "B": 320_000}
        assert tiers["split"].allocations == {"A": 9_120_000, "B": 6_080_000}
        assert output.class_totals == {"A": 15_600_000, "B": 10_400_000}
        assert output.gp_carry == 4_000_000

    def test_eligibility_restricts_tier(self):
        tiers = create_standard_tiers()
        tiers[1] = tiers[1].model_copy(update={"eligible_class_ids": ["A"]})
        scenario = make_scenario(
            exit_value=30_000_000,
            commitments=(("A", 6_000_000), ("B", 4_000_000)),
            tiers=tiers,
        )
        output = run(scenario)
        tiers_by_id = {t.tier_id: t for t in output.breakdown}

        assert tiers_by_id["pref"].allocations == {"A": 480_000}
        assert tiers_by_id["catch-up"].gp_amount == 120_000
        assert tiers_by_id["split"].gp_amount == 3_880_000
        assert output.gp_carry == 4_000_000

    def test_class_hurdle_overrides_tier_rate(self):
        scenario = make_scenario(exit_value=50_000_000).model_copy(
            update={
                "investor_classes": [
                    InvestorClass(id="A", name="A", commitment=10_000_000, hurdle_rate=0.10)
                ]
            }
        )
        output = run(scenario)
        assert amounts(output)["pref"] == 1_000_000
        assert amounts(output)["catch-up"] == 250_000


class TestConventions:
    def test_compound_two_year_hold(self):
        output = run(
            make_scenario(exit_value=50_000_000, hold_period_years=2.0),
            preferred_return_convention=PreferredReturnConventionEnum.COMPOUND,
        )
        assert amounts(output)["pref"] == 1_664_000

    def test_fees_excluded_from_basis(self):
        output = run(make_scenario(exit_value=50_000_000, management_fees=1_000_000))
        assert amounts(output)["roc"] == 10_000_000
        assert output.gp_carry == 7_800_000
        assert output.distributable_cents == 4_900_000_000

    def test_fees_included_in_basis(self):
        output = run(
            make_scenario(exit_value=50_000_000, management_fees=1_000_000),
            management_fee_treatment=ManagementFeeTreatmentEnum.INCLUDED_IN_BASIS,
        )
        assert amounts(output)["roc"] == 11_000_000
        assert amounts(output)["pref"] == 880_000
        assert amounts(output)["catch-up"] == 220_000
        assert output.gp_carry == 7_600_000


class TestCarryGateAndResidual:
    def test_no_carry_without_profit(self):
        output = run(make_scenario(exit_value=10_000_000))
        assert output.gp_carry == 0

    def test_split_only_layout_respects_gate(self):
        tiers = [
            WaterfallTier(id="split", name="Split", order=1, kind=TierKindEnum.CARRY_SPLIT, rate=0.2)
        ]
        output = run(make_scenario(exit_value=12_000_000, tiers=tiers))
        # Carry is capped at 20% of the $2M profit
        assert output.gp_carry == 400_000
        assert output.class_totals == {"A": 11_600_000}

    def test_residual_split_without_final_split(self):
        tiers = create_standard_tiers(include_catch_up=True)[:3]
        output = run(make_scenario(exit_value=50_000_000, tiers=tiers))
        residual = output.breakdown[-1]

        assert residual.tier_id == RESIDUAL_TIER_ID
        assert residual.synthetic
        assert residual.gp_amount == 7_800_000
        assert output.gp_carry == 8_000_000

    def test_residual_goes_to_lps_without_carry_tiers(self):
        tiers = create_standard_tiers()[:2]
        output = run(make_scenario(exit_value=20_000_000, tiers=tiers))
        assert output.breakdown[-1].tier_id == RESIDUAL_TIER_ID
        assert output.gp_carry == 0
        assert output.class_totals == {"A": 20_000_000}
