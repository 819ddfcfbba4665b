# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the calculate entry point and result aggregation.
"""

import pytest
from pydantic import ValidationError

from waterline import calculate
from waterline.core.exceptions import ConfigurationError
from waterline.core.primitives import WaterfallModelEnum
from waterline.fund import InvestorClass, create_standard_tiers

from conftest import make_scenario


class TestCalculate:
    """End-to-end behavior of calculate()."""

    def test_golden_results(self, golden_scenario):
        results = calculate(golden_scenario)

        assert results.lp_total_return == 42_000_000
        assert results.gp_carry == 8_000_000
        assert results.gp_carry_percentage == pytest.approx(0.20)
        assert results.lp_average_multiple == pytest.approx(4.2)
        assert results.total_profit == 40_000_000
        assert results.unallocated == 0
        assert results.conservation_error < 0.01

    def test_class_result(self, golden_scenario):
        results = calculate(golden_scenario)
        class_a = results.get_class_result("A")

        assert class_a.invested == 10_000_000
        assert class_a.returned == 42_000_000
        assert class_a.profit == 32_000_000
        assert class_a.multiple == pytest.approx(4.2)
        assert class_a.irr is None
        assert class_a.allocations == {"roc": 10_000_000, "pref": 800_000, "split": 31_200_000}

    def test_irr_with_dates(self, dated_scenario):
        results = calculate(dated_scenario)
        class_a = results.get_class_result("A")
        assert results.get_tier("pref").total_amount == 1_600_000
        assert class_a.irr == pytest.approx(4.2**0.5 - 1, rel=1e-3)

    def test_accepts_mapping(self):
        results = calculate(
            {
                "id": "mapping",
                "investor_classes": [{"id": "A", "name": "A", "commitment": 10_000_000}],
                "tiers": [t.model_dump() for t in create_standard_tiers()],
                "exit_value": 50_000_000,
            }
        )
        assert results.gp_carry == 8_000_000

    def test_invalid_scenario_raises(self):
        with pytest.raises(ConfigurationError):
            calculate(make_scenario(total_invested=1))

    def test_input_not_mutated(self, golden_scenario):
        before = golden_scenario.model_dump()
        calculate(golden_scenario)
        assert golden_scenario.model_dump() == before

    def test_zero_invested(self):
        results = calculate(make_scenario(exit_value=1_000_000, commitments=(("A", 0),)))
        assert results.lp_average_multiple is None
        assert results.get_class_result("A").multiple is None
        assert results.gp_carry == 200_000
        assert results.gp_carry_percentage == pytest.approx(0.2)

    def test_carry_percentage_zero_on_loss(self):
        results = calculate(make_scenario(exit_value=4_000_000))
        assert results.gp_carry == 0
        assert results.gp_carry_percentage == 0.0

    @pytest.mark.parametrize("model", list(WaterfallModelEnum))
    def test_model_echoed(self, model):
        results = calculate(make_scenario(model=model))
        assert results.model == model
        assert (results.blended_config is not None) == (model == WaterfallModelEnum.BLENDED)


class TestResultFrames:
    def test_tier_breakdown_df(self, golden_scenario):
        df = calculate(golden_scenario).tier_breakdown_df()
        assert list(df.index) == ["roc", "pref", "catch-up", "split"]
        assert df.loc["split", "gp_amount"] == 7_800_000

    def test_class_results_df(self, two_class_scenario):
        df = calculate(two_class_scenario).class_results_df()
        assert df.loc["B", "returned"] == 10_400_000

    def test_allocation_matrix(self, two_class_scenario):
        matrix = calculate(two_class_scenario).allocation_matrix()
        assert matrix.loc["split", "A"] == 9_120_000
        assert matrix.loc["catch-up"].sum() == 0


class TestPackageSurface:
    def test_documented_example(self):
        import waterline
        from waterline.fund import create_single_class_scenario

        scenario = create_single_class_scenario(commitment=10_000_000, exit_value=50_000_000)
        results = waterline.calculate(scenario)
        assert results.gp_carry == 8_000_000
        assert results.gp_carry_percentage == pytest.approx(0.20)

    def test_scenarios_are_frozen(self, golden_scenario):
        with pytest.raises(ValidationError):
            golden_scenario.exit_value = 1.0

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            InvestorClass(id="A", name="A", commitment=1_000, capital_called=500)
