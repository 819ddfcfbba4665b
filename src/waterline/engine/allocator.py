# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Class Allocator

Splits a tier's distributable amount pro-rata across the eligible investor
classes. What "pro-rata" means is set by the allocation basis: unreturned
capital, unpaid preferred return, or static ownership.

Allocation runs in integer cents. Each share is floored and the leftover cents
go to the most senior class (lowest seniority rank, then input order), so the
shares always sum exactly to the amount allocated.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from ..core.calculations import FinancialCalculations
from ..core.primitives import AllocationBasisEnum
from ..fund.entities import InvestorClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AllocationResult:
    """
    Outcome of one allocation.

    Attributes:
        shares: Investor class id to dollars allocated
        unconsumed: Dollars that could not be placed (no eligible classes or zero basis)
    """

    shares: Dict[str, float]
    unconsumed: float = 0.0

    @property
    def allocated(self) -> float:
        return sum(self.shares.values())


@dataclass
class ClassAllocator:
    """
    Pro-rata allocator across investor classes.

    Attributes:
        ownership: Class id to ownership share used when the basis is OWNERSHIP
                   and no basis values are supplied. Falls back to commitments.
    """

    ownership: Dict[str, float] = field(default_factory=dict)

    def allocate(
        self,
        amount: float,
        eligible_classes: Sequence[InvestorClass],
        basis: AllocationBasisEnum = AllocationBasisEnum.OWNERSHIP,
        basis_values: Optional[Mapping[str, float]] = None,
    ) -> AllocationResult:
        """
        Allocate a dollar amount across eligible classes.

        Args:
            amount: Dollars to allocate. Negative or NaN is treated as 0 and logged.
            eligible_classes: Classes participating in this allocation
            basis: What pro-rata means for this allocation
            basis_values: Class id to basis value. Required for capital and
                          preferred-return bases; optional for ownership.

        Returns:
            AllocationResult whose shares sum exactly (in cents) to the amount
            allocated, plus any unconsumed remainder
        """
        amount = self._sanitize_amount(amount)
        shares_cents, unconsumed_cents = self.allocate_cents(
            FinancialCalculations.to_cents(amount), eligible_classes, basis, basis_values
        )
        return AllocationResult(
            shares={
                class_id: FinancialCalculations.from_cents(cents)
                for class_id, cents in shares_cents.items()
            },
            unconsumed=FinancialCalculations.from_cents(unconsumed_cents),
        )

    def allocate_cents(
        self,
        amount_cents: int,
        eligible_classes: Sequence[InvestorClass],
        basis: AllocationBasisEnum = AllocationBasisEnum.OWNERSHIP,
        basis_values: Optional[Mapping[str, float]] = None,
    ) -> Tuple[Dict[str, int], int]:
        """
        Integer-cent allocation used by the sequencer.

        Returns:
            (class id to cents, unconsumed cents)
        """
        if amount_cents <= 0:
            return {}, 0
        if not eligible_classes:
            logger.debug(f"No eligible classes for {basis.value}; {amount_cents} cents unconsumed")
            return {}, amount_cents

        weights = self._weights(eligible_classes, basis, basis_values)
        total_weight = weights.sum()
        if total_weight <= 0:
            logger.debug(f"Zero {basis.value} basis across eligible classes; amount unconsumed")
            return {}, amount_cents

        raw = amount_cents * (weights / total_weight)
        floored = np.floor(raw + 1e-6).astype(np.int64)
        leftover = int(amount_cents - int(floored.sum()))

        if leftover:
            floored[self._most_senior_index(eligible_classes, weights)] += leftover

        shares = {
            investor_class.id: int(cents)
            for investor_class, cents in zip(eligible_classes, floored)
            if cents > 0
        }
        return shares, 0

    def _weights(
        self,
        eligible_classes: Sequence[InvestorClass],
        basis: AllocationBasisEnum,
        basis_values: Optional[Mapping[str, float]],
    ) -> np.ndarray:
        if basis_values is None:
            if basis != AllocationBasisEnum.OWNERSHIP:
                raise ValueError(f"Basis values are required for {basis.value} allocations")
            basis_values = self.ownership or {
                ic.id: ic.commitment for ic in eligible_classes
            }
        values = [basis_values.get(ic.id, 0.0) for ic in eligible_classes]
        return np.array(
            [v if v is not None and math.isfinite(v) and v > 0 else 0.0 for v in values],
            dtype=float,
        )

    @staticmethod
    def _most_senior_index(
        eligible_classes: Sequence[InvestorClass], weights: np.ndarray
    ) -> int:
        """Index of the most senior class with a positive basis (ties by input order)."""
        candidates = [i for i in range(len(eligible_classes)) if weights[i] > 0]
        return min(candidates, key=lambda i: (eligible_classes[i].seniority, i))

    @staticmethod
    def _sanitize_amount(amount: float) -> float:
        if amount is None or (isinstance(amount, float) and math.isnan(amount)):
            logger.warning("Allocation amount is NaN; treating as 0")
            return 0.0
        if amount < 0:
            logger.warning(f"Negative allocation amount {amount:,.2f}; treating as 0")
            return 0.0
        return amount


__all__ = ["AllocationResult", "ClassAllocator"]
