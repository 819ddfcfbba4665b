# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Property Validation

Properties every calculation must satisfy regardless of tier layout or
structural model: conservation, monotonicity, no carry without profit, blended
boundaries and the catch-up closed form. Finishes with the reference
single-class vector.
"""

import pytest

from waterline import calculate
from waterline.core.primitives import (
    CalculationSettings,
    ManagementFeeTreatmentEnum,
    PreferredReturnConventionEnum,
    WaterfallModelEnum,
    WaterfallSettings,
)
from waterline.fund import BlendedConfig, InvestorClass, create_standard_tiers

from conftest import make_deals, make_scenario

MODELS = list(WaterfallModelEnum)

EXIT_VALUES = [0, 3_333_333.33, 10_000_000, 10_650_000, 10_950_000, 17_777_777.77, 50_000_000]


def multi_class_scenario(exit_value, model, management_fees=0.0):
    return make_scenario(
        exit_value=exit_value,
        commitments=(("A", 5_000_000), ("B", 3_000_000), ("C", 2_000_000)),
        model=model,
        management_fees=management_fees,
        deals=make_deals(
            ("X", 3_000_000, 9_000_000),
            ("Y", 4_000_000, 1_000_000),
            ("Z", 3_000_000, 6_500_000),
        ),
    )


class TestConservation:
    """Every distributable cent lands with a class or the GP."""

    @pytest.mark.parametrize("model", MODELS)
    @pytest.mark.parametrize("exit_value", EXIT_VALUES)
    def test_conservation(self, model, exit_value):
        results = calculate(multi_class_scenario(exit_value, model, management_fees=250_000))
        allocated = results.lp_total_return + results.gp_carry
        assert abs(results.distributable_proceeds - allocated) <= 0.01
        assert abs(results.unallocated) <= 0.01
        assert all(t.lp_amount >= 0 and t.gp_amount >= 0 for t in results.tier_breakdown)

    @pytest.mark.parametrize("model", MODELS)
    def test_conservation_fees_in_basis_compound(self, model):
        settings = WaterfallSettings(
            calculation=CalculationSettings(
                preferred_return_convention=PreferredReturnConventionEnum.COMPOUND,
                management_fee_treatment=ManagementFeeTreatmentEnum.INCLUDED_IN_BASIS,
            )
        )
        scenario = multi_class_scenario(23_456_789.01, model, management_fees=1_234_567.89)
        results = calculate(scenario.model_copy(update={"hold_period_years": 3.5}), settings)
        assert results.conservation_error <= 0.01

    def test_tier_totals_match_results(self):
        results = calculate(multi_class_scenario(31_000_000, WaterfallModelEnum.AMERICAN))
        lp = sum(t.lp_amount for t in results.tier_breakdown)
        gp = sum(t.gp_amount for t in results.tier_breakdown)
        assert lp == pytest.approx(results.lp_total_return, abs=0.05)
        assert gp == pytest.approx(results.gp_carry, abs=0.05)


def ownership_scenario(exit_value, model):
    """Large class A with little ownership, small class B owning most of the upside."""
    tiers = create_standard_tiers()
    tiers = [tiers[0], tiers[3].model_copy(update={"order": 2})]
    return make_scenario(
        exit_value=exit_value,
        model=model,
        tiers=tiers,
        deals=make_deals(("d1", 500_000, 1_000_000), ("d2", 9_500_000, 9_000_000)),
    ).model_copy(
        update={
            "investor_classes": [
                InvestorClass(
                    id="A", name="Class A", commitment=9_000_000, ownership_percentage=0.05
                ),
                InvestorClass(
                    id="B",
                    name="Class B",
                    commitment=1_000_000,
                    ownership_percentage=0.95,
                    seniority=2,
                ),
            ]
        }
    )


class TestMonotonicity:
    @staticmethod
    def assert_non_decreasing(scenarios):
        previous = None
        for scenario in scenarios:
            current = calculate(scenario).per_class_allocations
            if previous is not None:
                for class_id, amount in current.items():
                    assert amount >= previous[class_id] - 0.01, (scenario.exit_value, class_id)
            previous = current

    @pytest.mark.parametrize("model", MODELS)
    def test_class_totals_non_decreasing_in_exit_value(self, model):
        self.assert_non_decreasing(
            multi_class_scenario(exit_value, model)
            for exit_value in range(0, 40_000_001, 500_000)
        )

    @pytest.mark.parametrize("model", MODELS)
    def test_explicit_ownership_non_decreasing(self, model):
        self.assert_non_decreasing(
            ownership_scenario(exit_value, model)
            for exit_value in range(0, 30_000_001, 250_000)
        )

    def test_true_up_follows_capital_share(self):
        low = calculate(ownership_scenario(10_000_000, WaterfallModelEnum.AMERICAN))
        high = calculate(ownership_scenario(10_500_000, WaterfallModelEnum.AMERICAN))
        assert high.per_class_allocations["B"] >= low.per_class_allocations["B"]
        assert high.per_class_allocations["A"] >= low.per_class_allocations["A"]


class TestNoProfitNoCarry:
    @pytest.mark.parametrize("model", MODELS)
    @pytest.mark.parametrize("fees", [0.0, 400_000.0])
    def test_no_carry_at_or_below_capital(self, model, fees):
        for exit_value in [0, 5_000_000, 10_000_000 + fees]:
            results = calculate(multi_class_scenario(exit_value, model, management_fees=fees))
            assert results.gp_carry == 0
            assert results.gp_carry_percentage == 0

    def test_split_only_layout(self):
        tiers = create_standard_tiers()[3:]
        tiers = [tiers[0].model_copy(update={"order": 1})]
        results = calculate(make_scenario(exit_value=9_000_000, tiers=tiers))
        assert results.gp_carry == 0


class TestCarryBounds:
    @pytest.mark.parametrize("model", MODELS)
    @pytest.mark.parametrize("exit_value", [12_000_000, 25_000_000, 80_000_000])
    def test_carry_never_exceeds_maximum(self, model, exit_value):
        results = calculate(multi_class_scenario(exit_value, model))
        assert results.gp_carry <= 0.20 * results.total_profit + 0.01


class TestBlendedBoundaries:
    @pytest.mark.parametrize("exit_value", [9_500_000, 14_000_000, 45_000_000])
    def test_full_weight_matches_pure_models(self, exit_value):
        base = multi_class_scenario(exit_value, WaterfallModelEnum.BLENDED)
        european = calculate(base.model_copy(update={"model": WaterfallModelEnum.EUROPEAN}))
        american = calculate(base.model_copy(update={"model": WaterfallModelEnum.AMERICAN}))

        all_european = calculate(
            base.model_copy(update={"blended_config": BlendedConfig(european_weight=100, american_weight=0)})
        )
        all_american = calculate(
            base.model_copy(update={"blended_config": BlendedConfig(european_weight=0, american_weight=100)})
        )

        assert all_european.per_class_allocations == european.per_class_allocations
        assert all_european.gp_carry == european.gp_carry
        assert all_american.per_class_allocations == american.per_class_allocations
        assert all_american.gp_carry == american.gp_carry


class TestCatchUpClosedForm:
    @pytest.mark.parametrize("carry", [0.10, 0.20, 0.25])
    def test_gp_share_of_pref_and_catch_up(self, carry):
        scenario = make_scenario(
            exit_value=60_000_000, carry_rate=carry, max_carry_percentage=0.25
        )
        results = calculate(scenario)
        pref = results.get_tier("pref").total_amount
        catch_up = results.get_tier("catch-up").gp_amount
        assert catch_up / (pref + catch_up) == pytest.approx(carry, abs=1e-6)


class TestReferenceVector:
    """Simple accrual, one-year hold, fees outside the capital basis."""

    def test_single_class_european(self, golden_scenario):
        results = calculate(golden_scenario)
        tiers = {t.tier_id: t for t in results.tier_breakdown}

        assert tiers["roc"].total_amount == 10_000_000
        assert tiers["pref"].total_amount == 800_000
        assert tiers["catch-up"].total_amount == 200_000
        assert tiers["split"].gp_amount == 7_800_000
        assert tiers["split"].lp_amount == 31_200_000
        assert results.gp_carry == 8_000_000
        assert results.lp_total_return == 42_000_000
        assert results.gp_carry_percentage == pytest.approx(0.20)
        assert results.lp_average_multiple == pytest.approx(4.2)
