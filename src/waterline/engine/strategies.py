# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterfall Model Strategies

The structural model decides which capital basis feeds the sequencer:

- European (whole-fund): one sequencer run over the pooled fund
- American (deal-by-deal): one run per deal, each deal returning only its own
  capital and hurdle, followed by a fund-level carry true-up
- Blended: a weighted combination of the European and American outcomes

Strategy outputs form a tagged union discriminated on ``model`` so that the
blend step can consume either side without inspecting types.
"""

from __future__ import annotations

import logging
import math
from typing import Annotated, Dict, List, Literal, Union

from pydantic import Field

from ..core.calculations import FinancialCalculations
from ..core.primitives import (
    AllocationBasisEnum,
    CalculationSettings,
    ManagementFeeTreatmentEnum,
    Model,
    TierKindEnum,
    WaterfallModelEnum,
)
from ..fund.entities import Deal, InvestorClass
from ..fund.scenario import BlendedConfig, WaterfallScenario
from ..fund.validation import max_carry_for
from .allocator import ClassAllocator
from .results import TierBreakdown
from .sequencer import SequencerOutput, TierSequencer, with_running_totals

logger = logging.getLogger(__name__)

TRUE_UP_TIER_ID = "fund-true-up"
TRUE_UP_TIER_NAME = "Fund Clawback True-Up"
FUND_DEAL_ID = "fund"

_to_cents = FinancialCalculations.to_cents
_from_cents = FinancialCalculations.from_cents


class _StrategyResult(Model):
    """Cent-level distribution shared by every strategy output."""

    breakdown: List[TierBreakdown] = Field(default_factory=list)
    class_totals_cents: Dict[str, int] = Field(default_factory=dict)
    gp_cents: int = 0
    distributable_cents: int = 0
    carry_true_up_cents: int = 0


class EuropeanResult(_StrategyResult):
    model: Literal["european"] = "european"


class AmericanResult(_StrategyResult):
    model: Literal["american"] = "american"
    deal_results: Dict[str, Dict[str, int]] = Field(
        default_factory=dict, description="Deal id to class id to cents"
    )


class BlendedResult(_StrategyResult):
    model: Literal["blended"] = "blended"


StrategyResult = Annotated[
    Union[EuropeanResult, AmericanResult], Field(discriminator="model")
]


def _from_output(cls, output: SequencerOutput, **extra):
    return cls(
        breakdown=output.breakdown,
        class_totals_cents=output.class_totals_cents,
        gp_cents=output.gp_cents,
        distributable_cents=output.distributable_cents,
        **extra,
    )


def run_european(
    scenario: WaterfallScenario, settings: CalculationSettings
) -> EuropeanResult:
    """Whole-fund waterfall: one pass over the pooled capital."""
    output = TierSequencer(scenario=scenario, settings=settings).run()
    return _from_output(EuropeanResult, output)


def _resolve_deals(scenario: WaterfallScenario) -> List[Deal]:
    if scenario.deals:
        return list(scenario.deals)
    return [
        Deal(
            id=FUND_DEAL_ID,
            name=scenario.name or "Fund",
            invested_capital=scenario.resolved_total_invested,
            exit_value=scenario.exit_value,
        )
    ]


def _split_cents(weights: List[float], total_cents: int) -> List[int]:
    """Split cents across weights; falls back to an even split when all are zero."""
    if not weights:
        return []
    weight_sum = sum(weights)
    if weight_sum <= 0:
        weights = [1.0] * len(weights)
        weight_sum = float(len(weights))
    total = _from_cents(total_cents)
    return FinancialCalculations.largest_remainder_cents(
        [total * w / weight_sum for w in weights], total_cents
    )


def _deal_scenario(
    scenario: WaterfallScenario,
    deal: Deal,
    net_cents: int,
    fee_cents: int,
    hold_years: float,
) -> WaterfallScenario:
    """Scenario scoped to one deal: class capital is the deal's capital by commitment share."""
    shares = scenario.capital_shares
    classes = [
        investor_class.model_copy(
            update={"commitment": deal.invested_capital * shares[investor_class.id]}
        )
        for investor_class in scenario.investor_classes
    ]
    return scenario.model_copy(
        update={
            "id": f"{scenario.id}:{deal.id}",
            "name": deal.name,
            "model": WaterfallModelEnum.EUROPEAN,
            "blended_config": None,
            "investor_classes": classes,
            "deals": [],
            "exit_value": _from_cents(net_cents + fee_cents),
            "management_fees": _from_cents(fee_cents),
            "total_invested": None,
            "hold_period_years": hold_years,
            "clawback_provision": None,
            "lookback_provision": None,
        }
    )


def _merge_breakdowns(
    breakdowns: List[List[TierBreakdown]], weights: List[float] = None
) -> List[TierBreakdown]:
    """Sum (optionally weighted) breakdown entries by tier id, keeping first-seen order."""
    if weights is None:
        weights = [1.0] * len(breakdowns)
    merged: Dict[str, dict] = {}
    for entries, weight in zip(breakdowns, weights):
        for entry in entries:
            row = merged.get(entry.tier_id)
            if row is None:
                row = merged[entry.tier_id] = {
                    "entry": entry,
                    "target_amount": 0.0,
                    "lp_amount": 0.0,
                    "gp_amount": 0.0,
                    "allocations": {},
                    "clamped": False,
                    "terminated": True,
                }
            row["target_amount"] += entry.target_amount * weight
            row["lp_amount"] += entry.lp_amount * weight
            row["gp_amount"] += entry.gp_amount * weight
            for class_id, amount in entry.allocations.items():
                row["allocations"][class_id] = (
                    row["allocations"].get(class_id, 0.0) + amount * weight
                )
            row["clamped"] = row["clamped"] or entry.clamped
            row["terminated"] = row["terminated"] and entry.terminated

    round_cents = FinancialCalculations.round_cents
    result = []
    for row in merged.values():
        lp_amount = round_cents(row["lp_amount"])
        gp_amount = round_cents(row["gp_amount"])
        result.append(
            row["entry"].model_copy(
                update={
                    "target_amount": round_cents(row["target_amount"]),
                    "lp_amount": lp_amount,
                    "gp_amount": gp_amount,
                    "total_amount": round(lp_amount + gp_amount, 2),
                    "allocations": {
                        k: round_cents(v) for k, v in row["allocations"].items()
                    },
                    "clamped": row["clamped"],
                    "terminated": row["terminated"],
                }
            )
        )
    return result


def run_american(
    scenario: WaterfallScenario, settings: CalculationSettings
) -> AmericanResult:
    """
    Deal-by-deal waterfall.

    Distributable proceeds are split across deals by their exit values (invested
    capital when no deal has an exit value). Each deal then runs its own
    sequencer against its own capital, so no deal's proceeds fund another
    deal's capital return. Deal outcomes are summed and any carry above the
    maximum carry share of whole-fund profit is returned to LPs.
    """
    deals = _resolve_deals(scenario)
    distributable = _to_cents(scenario.distributable_proceeds)
    hold_years = scenario.hold_period(settings.default_hold_period_years)

    weights = [deal.exit_value for deal in deals]
    if sum(weights) <= 0:
        weights = [deal.invested_capital for deal in deals]
    net_split = _split_cents(weights, distributable)

    fee_cents = _to_cents(scenario.management_fees)
    if all(deal.management_fees is not None for deal in deals) and scenario.deals:
        fee_split = [_to_cents(deal.management_fees) for deal in deals]
    else:
        fee_split = _split_cents([deal.invested_capital for deal in deals], fee_cents)

    class_totals = {ic.id: 0 for ic in scenario.investor_classes}
    gp_cents = 0
    deal_results: Dict[str, Dict[str, int]] = {}
    breakdowns = []
    for deal, net_cents, deal_fee_cents in zip(deals, net_split, fee_split):
        deal_scenario = _deal_scenario(scenario, deal, net_cents, deal_fee_cents, hold_years)
        output = TierSequencer(scenario=deal_scenario, settings=settings).run()
        for class_id, cents in output.class_totals_cents.items():
            class_totals[class_id] += cents
        gp_cents += output.gp_cents
        deal_results[deal.id] = dict(output.class_totals_cents)
        breakdowns.append(output.breakdown)
        logger.debug(
            f"Deal {deal.id}: {net_cents} cents net, GP {output.gp_cents}, "
            f"LP {sum(output.class_totals_cents.values())}"
        )

    breakdown = _merge_breakdowns(breakdowns)

    true_up = _fund_true_up(scenario, settings, distributable, gp_cents)
    if true_up > 0:
        # Split by capital share, matching deal-level capital return
        shares, _ = ClassAllocator().allocate_cents(
            true_up,
            scenario.investor_classes,
            AllocationBasisEnum.UNRETURNED_CAPITAL,
            scenario.capital_shares,
        )
        for class_id, cents in shares.items():
            class_totals[class_id] += cents
        gp_cents -= true_up
        breakdown = _take_back_carry(breakdown, true_up)
        breakdown.append(_true_up_entry(breakdown, shares, true_up))
        logger.info(
            f"Scenario {scenario.id}: returned ${_from_cents(true_up):,.2f} of deal-level "
            f"carry to LPs in the fund true-up"
        )

    return AmericanResult(
        breakdown=with_running_totals(breakdown, distributable),
        class_totals_cents=class_totals,
        gp_cents=gp_cents,
        distributable_cents=distributable,
        carry_true_up_cents=true_up,
        deal_results=deal_results,
    )


def _fund_true_up(
    scenario: WaterfallScenario,
    settings: CalculationSettings,
    distributable_cents: int,
    gp_cents: int,
) -> int:
    """Deal-level carry in excess of the maximum carry share of whole-fund profit."""
    capital = _to_cents(scenario.resolved_total_invested)
    if settings.management_fee_treatment == ManagementFeeTreatmentEnum.INCLUDED_IN_BASIS:
        capital += _to_cents(scenario.management_fees)
    entitled = int(
        math.floor(
            max_carry_for(scenario, settings) * max(0, distributable_cents - capital) + 1e-6
        )
    )
    return max(0, gp_cents - entitled)


def _take_back_carry(
    breakdown: List[TierBreakdown], true_up: int
) -> List[TierBreakdown]:
    """Remove true-up cents from the GP side of carry-paying entries, pro-rata to their carry."""
    carrying = [i for i, entry in enumerate(breakdown) if entry.gp_amount > 0]
    gp_values = [breakdown[i].gp_amount for i in carrying]
    total_gp = sum(gp_values)
    if not carrying or total_gp <= 0:
        return breakdown
    reductions = FinancialCalculations.largest_remainder_cents(
        [_from_cents(true_up) * gp / total_gp for gp in gp_values], true_up
    )
    updated = list(breakdown)
    for i, cents in zip(carrying, reductions):
        entry = updated[i]
        gp_amount = _from_cents(max(0, _to_cents(entry.gp_amount) - cents))
        updated[i] = entry.model_copy(
            update={
                "gp_amount": gp_amount,
                "total_amount": FinancialCalculations.round_cents(entry.lp_amount + gp_amount),
            }
        )
    return updated


def _true_up_entry(
    breakdown: List[TierBreakdown], shares: Dict[str, int], true_up: int
) -> TierBreakdown:
    return TierBreakdown(
        tier_id=TRUE_UP_TIER_ID,
        tier_name=TRUE_UP_TIER_NAME,
        tier_kind=TierKindEnum.CUSTOM,
        order=(breakdown[-1].order + 1) if breakdown else 1,
        target_amount=_from_cents(true_up),
        total_amount=_from_cents(true_up),
        lp_amount=_from_cents(true_up),
        gp_amount=0.0,
        allocations={k: _from_cents(v) for k, v in shares.items()},
        synthetic=True,
    )


def blend(
    european: StrategyResult,
    american: StrategyResult,
    config: BlendedConfig,
    classes: List[InvestorClass],
) -> BlendedResult:
    """
    Weighted combination of a European and an American result.

    Per-class totals and GP carry are weighted in floating point and rounded
    together at the end with largest-remainder rounding, so the blended result
    distributes exactly the same cents as its inputs.
    """
    weighted = [
        (result, weight / 100.0)
        for result, weight in (
            (european, config.european_weight),
            (american, config.american_weight),
        )
    ]
    distributable = european.distributable_cents

    class_ids = [ic.id for ic in classes]
    values = [
        sum(r.class_totals_cents.get(class_id, 0) * w for r, w in weighted) / 100.0
        for class_id in class_ids
    ]
    values.append(sum(r.gp_cents * w for r, w in weighted) / 100.0)
    rounded = FinancialCalculations.largest_remainder_cents(
        values, sum(european.class_totals_cents.values()) + european.gp_cents
    )

    active = [(r, w) for r, w in weighted if w > 0]
    breakdown = _merge_breakdowns([r.breakdown for r, _ in active], [w for _, w in active])

    return BlendedResult(
        breakdown=with_running_totals(breakdown, distributable),
        class_totals_cents=dict(zip(class_ids, rounded[:-1])),
        gp_cents=rounded[-1],
        distributable_cents=distributable,
        carry_true_up_cents=int(
            round(sum(r.carry_true_up_cents * w for r, w in weighted))
        ),
    )


__all__ = [
    "AmericanResult",
    "BlendedResult",
    "EuropeanResult",
    "StrategyResult",
    "blend",
    "run_american",
    "run_european",
]
