# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Lookback Tracker

Keeps one distribution ledger per fund and, after every recorded
distribution, recomputes the carry the GP is entitled to on cumulative
distributions so far.

Appends are serialized per fund with a lock (single writer). Reads return the
ledger's immutable tuple snapshot and take no lock.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, Optional, Tuple

from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import LookbackStatusEnum, Model, WaterfallSettings
from ..engine.api import calculate
from ..fund.scenario import LookbackProvision, WaterfallScenario
from .ledger import DistributionHistoryEntry, DistributionLedger

logger = logging.getLogger(__name__)


class LookbackSnapshot(Model):
    """Cumulative position of a fund after a recorded distribution."""

    fund_id: str
    distribution_count: int
    cumulative_lp_distributions: float
    cumulative_carry_paid: float
    entitled_carry: float = Field(
        ..., description="Carry owed on cumulative distributions under the waterfall"
    )

    @property
    def excess_carry(self) -> float:
        """Carry paid above entitlement (0 when the GP is not ahead)."""
        return max(0.0, self.cumulative_carry_paid - self.entitled_carry)


class LookbackSummary(Model):
    """Carry held at risk under a lookback provision."""

    lookback_years: float
    losses_to_recover: float
    carry_at_risk: float
    carry_released: float
    status: LookbackStatusEnum


def summarize_lookback(
    provision: Optional[LookbackProvision], gp_carry: float
) -> Optional[LookbackSummary]:
    """
    Apply a lookback provision to the GP's carry.

    Returns None when there is no enabled provision.
    """
    if provision is None or not provision.enabled:
        return None

    losses = provision.loss_carry_forward
    carry_at_risk = FinancialCalculations.round_cents(gp_carry * provision.carry_at_risk_rate)
    carry_released = max(0.0, gp_carry - carry_at_risk)

    if losses > 0 and carry_at_risk > 0:
        status = LookbackStatusEnum.AT_RISK
    elif losses > 0:
        status = LookbackStatusEnum.MONITOR
    else:
        status = LookbackStatusEnum.CLEARED

    return LookbackSummary(
        lookback_years=provision.lookback_years,
        losses_to_recover=losses,
        carry_at_risk=carry_at_risk,
        carry_released=carry_released,
        status=status,
    )


class LookbackTracker:
    """Per-fund distribution ledgers with entitled-carry recomputation."""

    def __init__(self, settings: Optional[WaterfallSettings] = None):
        self.settings = settings or WaterfallSettings()
        self._ledgers: Dict[str, DistributionLedger] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def _lock_for(self, fund_id: str) -> threading.Lock:
        with self._registry_lock:
            if fund_id not in self._locks:
                self._locks[fund_id] = threading.Lock()
                self._ledgers[fund_id] = DistributionLedger(fund_id)
            return self._locks[fund_id]

    def ledger(self, fund_id: str) -> DistributionLedger:
        self._lock_for(fund_id)
        return self._ledgers[fund_id]

    def history(self, fund_id: str) -> Tuple[DistributionHistoryEntry, ...]:
        """Immutable snapshot of a fund's recorded distributions."""
        ledger = self._ledgers.get(fund_id)
        return ledger.entries if ledger is not None else ()

    def record_distribution(
        self,
        fund_id: str,
        entry: DistributionHistoryEntry,
        scenario: WaterfallScenario,
    ) -> LookbackSnapshot:
        """
        Append a distribution and recompute entitled carry to date.

        The scenario is re-run with an exit value equal to everything
        distributed so far (LP distributions, carry and management fees).
        The entry is appended only once the snapshot succeeds, so a failed
        call leaves the ledger unchanged.

        Raises:
            LedgerError: On a duplicate id or out-of-order period
            ConfigurationError: If the scenario is structurally invalid
        """
        with self._lock_for(fund_id):
            ledger = self._ledgers[fund_id]
            ledger.check(entry)
            snapshot = self._snapshot(fund_id, ledger.entries + (entry,), scenario)
            ledger.append(entry)

        return snapshot

    def entitled_carry(self, fund_id: str, scenario: WaterfallScenario) -> float:
        return self._snapshot(fund_id, self.history(fund_id), scenario).entitled_carry

    def _snapshot(
        self,
        fund_id: str,
        entries: Tuple[DistributionHistoryEntry, ...],
        scenario: WaterfallScenario,
    ) -> LookbackSnapshot:
        cumulative_lp = sum(e.lp_capital_returned for e in entries)
        cumulative_carry = sum(e.carry_paid for e in entries)
        results = calculate(
            scenario.with_exit_value(
                cumulative_lp + cumulative_carry + scenario.management_fees
            ),
            self.settings,
        )
        snapshot = LookbackSnapshot(
            fund_id=fund_id,
            distribution_count=len(entries),
            cumulative_lp_distributions=cumulative_lp,
            cumulative_carry_paid=cumulative_carry,
            entitled_carry=results.gp_carry,
        )
        if snapshot.excess_carry > 0:
            logger.warning(
                f"Fund {fund_id}: carry paid ${cumulative_carry:,.2f} exceeds "
                f"entitlement ${results.gp_carry:,.2f}"
            )
        return snapshot


__all__ = [
    "LookbackSnapshot",
    "LookbackSummary",
    "LookbackTracker",
    "summarize_lookback",
]
