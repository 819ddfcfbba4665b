# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the Lookback Tracker and lookback summaries.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import date

import pytest

from waterline.core.exceptions import ConfigurationError, LedgerError
from waterline.core.primitives import LookbackStatusEnum
from waterline.fund import LookbackProvision
from waterline.history import (
    DistributionHistoryEntry,
    LookbackTracker,
    summarize_lookback,
)

from conftest import make_scenario


def entry(distribution_id, period, lp=0.0, carry=0.0):
    return DistributionHistoryEntry(
        distribution_id=distribution_id,
        period=period,
        lp_capital_returned=lp,
        carry_paid=carry,
    )


class TestLookbackTracker:
    def test_entitled_carry_tracks_cumulative_distributions(self, golden_scenario):
        tracker = LookbackTracker()

        first = tracker.record_distribution(
            "fund-1", entry("d1", date(2024, 3, 31), lp=10_000_000), golden_scenario
        )
        assert first.entitled_carry == 0
        assert first.distribution_count == 1

        second = tracker.record_distribution(
            "fund-1",
            entry("d2", date(2024, 6, 30), lp=32_000_000, carry=8_000_000),
            golden_scenario,
        )
        assert second.cumulative_lp_distributions == 42_000_000
        assert second.cumulative_carry_paid == 8_000_000
        assert second.entitled_carry == 8_000_000
        assert second.excess_carry == 0

    def test_carry_paid_ahead_of_entitlement(self, golden_scenario):
        tracker = LookbackTracker()
        snapshot = tracker.record_distribution(
            "fund-1",
            entry("d1", date(2024, 3, 31), lp=10_500_000, carry=500_000),
            golden_scenario,
        )
        assert snapshot.entitled_carry == 200_000
        assert snapshot.excess_carry == pytest.approx(300_000)

    def test_rejects_history_revision(self, golden_scenario):
        tracker = LookbackTracker()
        tracker.record_distribution("fund-1", entry("d1", date(2024, 6, 30)), golden_scenario)
        with pytest.raises(LedgerError):
            tracker.record_distribution(
                "fund-1", entry("d2", date(2024, 3, 31)), golden_scenario
            )
        assert len(tracker.history("fund-1")) == 1

    def test_invalid_scenario_leaves_ledger_unchanged(self, golden_scenario):
        tracker = LookbackTracker()
        bad_scenario = make_scenario(total_invested=1.0)
        with pytest.raises(ConfigurationError):
            tracker.record_distribution(
                "fund-1", entry("d1", date(2024, 3, 31), lp=1_000), bad_scenario
            )
        assert tracker.history("fund-1") == ()

        snapshot = tracker.record_distribution(
            "fund-1", entry("d1", date(2024, 3, 31), lp=1_000), golden_scenario
        )
        assert snapshot.distribution_count == 1
        assert len(tracker.history("fund-1")) == 1

    def test_funds_are_independent(self, golden_scenario):
        tracker = LookbackTracker()
        tracker.record_distribution("fund-1", entry("d1", date(2024, 6, 30)), golden_scenario)
        tracker.record_distribution("fund-2", entry("d1", date(2024, 3, 31)), golden_scenario)
        assert len(tracker.history("fund-1")) == 1
        assert len(tracker.history("fund-2")) == 1
        assert tracker.history("unknown") == ()

    def test_concurrent_appends_are_serialized(self, golden_scenario):
        tracker = LookbackTracker()

        def record(i):
            return tracker.record_distribution(
                "fund-1", entry(f"d{i}", date(2024, 3, 31), lp=1_000), golden_scenario
            )

        with ThreadPoolExecutor(max_workers=8) as executor:
            list(executor.map(record, range(40)))

        history = tracker.history("fund-1")
        assert len(history) == 40
        assert len({e.distribution_id for e in history}) == 40


class TestLookbackSummary:
    def test_no_provision(self):
        assert summarize_lookback(None, 1_000_000) is None
        assert summarize_lookback(LookbackProvision(enabled=False), 1_000_000) is None

    def test_losses_with_carry_at_risk(self):
        summary = summarize_lookback(
            LookbackProvision(loss_carry_forward=1_000_000, carry_at_risk_rate=0.10),
            8_000_000,
        )
        assert summary.carry_at_risk == 800_000
        assert summary.carry_released == 7_200_000
        assert summary.losses_to_recover == 1_000_000
        assert summary.status == LookbackStatusEnum.AT_RISK

    def test_losses_without_holdback(self):
        summary = summarize_lookback(LookbackProvision(loss_carry_forward=1_000_000), 8_000_000)
        assert summary.status == LookbackStatusEnum.MONITOR
        assert summary.carry_released == 8_000_000

    def test_cleared(self):
        summary = summarize_lookback(LookbackProvision(carry_at_risk_rate=0.10), 8_000_000)
        assert summary.status == LookbackStatusEnum.CLEARED
