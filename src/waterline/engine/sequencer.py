# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Tier Sequencer

Walks the ordered tiers of a scenario and distributes proceeds one tier at a
time, tracking what every class has had returned and what the GP has earned.

Key Features:
- Remaining proceeds are tracked in integer cents so nothing leaks
- Each tier asks for a target from its rule; the target is clamped to the tier
  cap and to what remains. A tier that cannot be fully funded consumes the rest
  and terminates the sequence.
- GP-directed amounts pass through a carry gate so cumulative carry never
  exceeds the maximum carry share of profit
- Proceeds left after the last configured tier are distributed as a
  synthetic "Residual Split"

Example:
    ```python
    output = TierSequencer(scenario=scenario, settings=CalculationSettings()).run()
    print(output.gp_carry, output.class_totals)
    ```
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..core.calculations import FinancialCalculations
from ..core.primitives import (
    AllocationBasisEnum,
    CalculationSettings,
    ManagementFeeTreatmentEnum,
    TierKindEnum,
)
from ..fund.entities import InvestorClass
from ..fund.scenario import WaterfallScenario
from ..fund.tiers import WaterfallTier
from ..fund.validation import max_carry_for
from .allocator import ClassAllocator
from .results import TierBreakdown

logger = logging.getLogger(__name__)

RESIDUAL_TIER_ID = "residual"
RESIDUAL_TIER_NAME = "Residual Split"

_to_cents = FinancialCalculations.to_cents
_from_cents = FinancialCalculations.from_cents


def _floor_cents(value: float) -> int:
    """Floor a cent amount computed in floating point, tolerating representation noise."""
    return int(math.floor(value + 1e-6))


@dataclass
class SequencerOutput:
    """Raw cent-level outcome of one sequencer run."""

    breakdown: List[TierBreakdown]
    class_totals_cents: Dict[str, int]
    gp_cents: int
    distributable_cents: int
    remaining_cents: int = 0

    @property
    def class_totals(self) -> Dict[str, float]:
        return {k: _from_cents(v) for k, v in self.class_totals_cents.items()}

    @property
    def gp_carry(self) -> float:
        return _from_cents(self.gp_cents)

    @property
    def remaining(self) -> float:
        return _from_cents(self.remaining_cents)


@dataclass
class _ClassState:
    """Running position of one investor class."""

    investor_class: InvestorClass
    capital_basis_cents: int
    hurdle_rate: Optional[float]
    returned_capital_cents: int = 0
    pref_paid_cents: int = 0
    total_cents: int = 0

    @property
    def unreturned_capital_cents(self) -> int:
        return max(0, self.capital_basis_cents - self.returned_capital_cents)


@dataclass
class TierSequencer:
    """
    Distributes a scenario's proceeds across its tiers.

    A sequencer instance is single-use: state is built fresh by ``run``.
    """

    scenario: WaterfallScenario
    settings: CalculationSettings = field(default_factory=CalculationSettings)

    def __post_init__(self):
        self.max_carry = max_carry_for(self.scenario, self.settings)
        self.hold_years = self.scenario.hold_period(self.settings.default_hold_period_years)
        self.ownership = self.scenario.ownership_shares
        self.allocator = ClassAllocator(ownership=self.ownership)

    def run(self) -> SequencerOutput:
        """Distribute proceeds tier by tier."""
        scenario = self.scenario
        distributable = _to_cents(scenario.distributable_proceeds)
        self._states = self._initial_states()
        self._capital_basis_cents = max(
            _to_cents(scenario.resolved_total_invested),
            sum(s.capital_basis_cents for s in self._states.values()),
        )
        self._remaining = distributable
        self._distributed = 0
        self._gp = 0

        logger.debug(
            f"Sequencing {scenario.id}: {distributable} cents across {len(scenario.tiers)} tiers "
            f"(hold {self.hold_years:.4f}y, max carry {self.max_carry:.2%})"
        )

        breakdown: List[TierBreakdown] = []
        terminated = False
        for tier in sorted(scenario.tiers, key=lambda t: t.order):
            if terminated:
                breakdown.append(self._empty_entry(tier, terminated=True))
                continue
            entry = self._run_tier(tier)
            breakdown.append(entry)
            if entry.clamped:
                terminated = True
                logger.debug(f"Proceeds exhausted at tier {tier.id}; later tiers receive nothing")

        if not terminated and self._remaining > 0:
            breakdown.append(self._run_tier(self._residual_tier(), synthetic=True))

        breakdown = with_running_totals(breakdown, distributable)

        return SequencerOutput(
            breakdown=breakdown,
            class_totals_cents={
                class_id: state.total_cents for class_id, state in self._states.items()
            },
            gp_cents=self._gp,
            distributable_cents=distributable,
            remaining_cents=self._remaining,
        )

    # --- State ---------------------------------------------------------------

    def _initial_states(self) -> Dict[str, _ClassState]:
        scenario = self.scenario
        include_fees = (
            self.settings.management_fee_treatment
            == ManagementFeeTreatmentEnum.INCLUDED_IN_BASIS
        )
        shares = scenario.capital_shares
        states = {}
        for investor_class in scenario.investor_classes:
            basis = investor_class.commitment
            if include_fees:
                basis += scenario.management_fees * shares[investor_class.id]
            states[investor_class.id] = _ClassState(
                investor_class=investor_class,
                capital_basis_cents=_to_cents(basis),
                hurdle_rate=investor_class.hurdle_rate,
            )
        return states

    def _eligible(self, tier: WaterfallTier) -> List[_ClassState]:
        if tier.eligible_class_ids is None:
            return list(self._states.values())
        ids = set(tier.eligible_class_ids)
        return [s for s in self._states.values() if s.investor_class.id in ids]

    def _pref_owed_cents(self, state: _ClassState, tier_rate: float) -> int:
        rate = state.hurdle_rate if state.hurdle_rate is not None else tier_rate
        accrued = FinancialCalculations.preferred_return(
            _from_cents(state.capital_basis_cents),
            rate,
            self.hold_years,
            self.settings.preferred_return_convention,
        )
        return max(0, _to_cents(accrued) - state.pref_paid_cents)

    def _total_pref_paid_cents(self) -> int:
        return sum(s.pref_paid_cents for s in self._states.values())

    # --- Tiers ---------------------------------------------------------------

    def _run_tier(self, tier: WaterfallTier, synthetic: bool = False) -> TierBreakdown:
        if tier.kind == TierKindEnum.RETURN_OF_CAPITAL:
            return self._run_owed_tier(
                tier,
                {s.investor_class.id: s.unreturned_capital_cents for s in self._eligible(tier)},
            )
        if tier.kind == TierKindEnum.PREFERRED_RETURN:
            return self._run_owed_tier(
                tier,
                {
                    s.investor_class.id: self._pref_owed_cents(s, tier.rate)
                    for s in self._eligible(tier)
                },
            )
        if tier.kind == TierKindEnum.GP_CATCH_UP:
            return self._run_catch_up(tier)
        return self._run_split(tier, synthetic=synthetic)

    def _clamp(self, tier: WaterfallTier, target: int) -> Tuple[int, int, bool]:
        """Apply tier cap and remaining balance. Returns (target, paid, clamped)."""
        if tier.cap is not None:
            target = min(target, _to_cents(tier.cap))
        target = max(0, target)
        if target > self._remaining:
            return target, self._remaining, True
        return target, target, False

    def _run_owed_tier(self, tier: WaterfallTier, owed: Dict[str, int]) -> TierBreakdown:
        """Return-of-capital and preferred-return tiers: LPs are paid what they are owed."""
        target, paid, clamped = self._clamp(tier, sum(owed.values()))

        if paid == sum(owed.values()):
            shares = {class_id: cents for class_id, cents in owed.items() if cents > 0}
        else:
            eligible = [self._states[class_id].investor_class for class_id in owed]
            shares, _ = self.allocator.allocate_cents(
                paid, eligible, tier.allocation_basis, self._basis_values(tier, owed)
            )

        for class_id, cents in shares.items():
            self._credit_lp(class_id, cents, tier)

        lp_paid = sum(shares.values())
        self._consume(lp_paid)
        logger.debug(f"Tier {tier.id} ({tier.kind.value}): target {target}, paid {lp_paid} cents")
        return self._entry(tier, target, lp_paid, 0, shares, clamped=clamped)

    def _run_catch_up(self, tier: WaterfallTier) -> TierBreakdown:
        """GP-only catch-up, limited by the carry gate."""
        full = _to_cents(
            FinancialCalculations.catch_up_amount(
                _from_cents(self._total_pref_paid_cents()), tier.rate
            )
        )
        target = max(0, full - self._gp)
        target = min(target, self._gp_gate(target))
        target, paid, clamped = self._clamp(tier, target)

        self._gp += paid
        self._consume(paid)
        logger.debug(f"Tier {tier.id} (gp_catch_up): target {target}, paid {paid} cents to GP")
        return self._entry(tier, target, 0, paid, {}, clamped=clamped)

    def _run_split(self, tier: WaterfallTier, synthetic: bool = False) -> TierBreakdown:
        """Carry split and custom tiers: GP takes its rate, LPs the rest."""
        requested = _to_cents(tier.cap) if tier.cap is not None else self._remaining
        target, paid, clamped = self._clamp(tier, requested)

        gp_share_cents = int(math.floor(paid * tier.gp_share + 0.5))
        headroom = _floor_cents(
            self.max_carry * max(0, self._distributed + paid - self._capital_basis_cents)
            - self._gp
        )
        gp_cents = max(0, min(gp_share_cents, headroom, paid))
        if gp_cents < gp_share_cents:
            logger.debug(f"Tier {tier.id}: carry gate redirected GP share to LPs")

        eligible = self._eligible(tier)
        owed = self._owed_for_basis(tier, eligible)
        shares, unconsumed = self.allocator.allocate_cents(
            paid - gp_cents,
            [s.investor_class for s in eligible],
            tier.allocation_basis,
            self._basis_values(tier, owed),
        )
        if unconsumed:
            logger.warning(
                f"Tier {tier.id}: {unconsumed} cents had no eligible class basis and remain undistributed"
            )
            clamped = False

        for class_id, cents in shares.items():
            self._credit_lp(class_id, cents, tier, owed.get(class_id))

        lp_paid = sum(shares.values())
        self._gp += gp_cents
        self._consume(lp_paid + gp_cents)
        logger.debug(
            f"Tier {tier.id} ({tier.kind.value}): paid {lp_paid} LP / {gp_cents} GP cents"
        )
        return self._entry(
            tier, target, lp_paid, gp_cents, shares, clamped=clamped, synthetic=synthetic
        )

    # --- Helpers -------------------------------------------------------------

    def _gp_gate(self, amount: int) -> int:
        """Largest GP-only payment (up to ``amount``) the maximum carry allows."""
        m = self.max_carry
        surplus = self._distributed - self._capital_basis_cents
        if m >= 1.0:
            return amount if surplus >= self._gp else 0
        return max(0, min(amount, _floor_cents((m * surplus - self._gp) / (1.0 - m))))

    def _owed_for_basis(
        self, tier: WaterfallTier, eligible: List[_ClassState]
    ) -> Dict[str, int]:
        basis = tier.allocation_basis
        if basis == AllocationBasisEnum.UNRETURNED_CAPITAL:
            return {s.investor_class.id: s.unreturned_capital_cents for s in eligible}
        if basis == AllocationBasisEnum.UNPAID_PREFERRED_RETURN:
            return {s.investor_class.id: self._pref_owed_cents(s, tier.rate) for s in eligible}
        return {}

    def _basis_values(
        self, tier: WaterfallTier, owed: Dict[str, int]
    ) -> Dict[str, float]:
        if tier.allocation_basis == AllocationBasisEnum.OWNERSHIP:
            return self.ownership
        return {class_id: float(cents) for class_id, cents in owed.items()}

    def _credit_lp(
        self,
        class_id: str,
        cents: int,
        tier: WaterfallTier,
        owed: Optional[int] = None,
    ) -> None:
        state = self._states[class_id]
        state.total_cents += cents
        basis = tier.allocation_basis
        if tier.kind == TierKindEnum.RETURN_OF_CAPITAL:
            state.returned_capital_cents += cents
        elif tier.kind == TierKindEnum.PREFERRED_RETURN:
            state.pref_paid_cents += cents
        elif basis == AllocationBasisEnum.UNRETURNED_CAPITAL:
            state.returned_capital_cents += min(cents, owed or 0)
        elif basis == AllocationBasisEnum.UNPAID_PREFERRED_RETURN:
            state.pref_paid_cents += min(cents, owed or 0)

    def _consume(self, cents: int) -> None:
        self._remaining -= cents
        self._distributed += cents

    def _residual_tier(self) -> WaterfallTier:
        tiers = sorted(self.scenario.tiers, key=lambda t: t.order)
        rate = 0.0
        splits = [t for t in tiers if t.kind == TierKindEnum.CARRY_SPLIT]
        catch_ups = [t for t in tiers if t.kind == TierKindEnum.GP_CATCH_UP]
        if splits:
            rate = splits[-1].rate
        elif catch_ups:
            rate = catch_ups[-1].rate
        return WaterfallTier(
            id=RESIDUAL_TIER_ID,
            name=RESIDUAL_TIER_NAME,
            order=(tiers[-1].order + 1) if tiers else 1,
            kind=TierKindEnum.CARRY_SPLIT,
            rate=rate,
        )

    @staticmethod
    def _entry(
        tier: WaterfallTier,
        target: int,
        lp_cents: int,
        gp_cents: int,
        shares: Dict[str, int],
        clamped: bool = False,
        synthetic: bool = False,
    ) -> TierBreakdown:
        return TierBreakdown(
            tier_id=tier.id,
            tier_name=tier.name,
            tier_kind=tier.kind,
            order=tier.order,
            target_amount=_from_cents(target),
            total_amount=_from_cents(lp_cents + gp_cents),
            lp_amount=_from_cents(lp_cents),
            gp_amount=_from_cents(gp_cents),
            allocations={k: _from_cents(v) for k, v in shares.items()},
            clamped=clamped,
            synthetic=synthetic,
        )

    @staticmethod
    def _empty_entry(tier: WaterfallTier, terminated: bool = False) -> TierBreakdown:
        return TierBreakdown(
            tier_id=tier.id,
            tier_name=tier.name,
            tier_kind=tier.kind,
            order=tier.order,
            target_amount=0.0,
            total_amount=0.0,
            lp_amount=0.0,
            gp_amount=0.0,
            terminated=terminated,
        )


def with_running_totals(
    breakdown: List[TierBreakdown], distributable_cents: int
) -> List[TierBreakdown]:
    """Fill cumulative amounts and shares of distributable proceeds."""
    cumulative = 0
    updated = []
    for entry in breakdown:
        cumulative += int(round(entry.total_amount * 100))
        updated.append(
            entry.model_copy(
                update={
                    "cumulative_amount": _from_cents(cumulative),
                    "percentage": FinancialCalculations.safe_divide(
                        entry.total_amount, _from_cents(distributable_cents), default=0.0
                    ),
                }
            )
        )
    return updated


__all__ = ["RESIDUAL_TIER_ID", "SequencerOutput", "TierSequencer", "with_running_totals"]
