# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Financial calculation functions.

Contains static methods for core financial metrics. These functions are pure
(math-only) and independent of scenario structure; engine modules delegate to
these to keep a single source of truth for money arithmetic.
"""

import math
from datetime import date
from typing import List, Optional, Sequence

import numpy as np
from pyxirr import xirr

from .primitives.enums import PreferredReturnConventionEnum

CENTS_PER_DOLLAR = 100


class FinancialCalculations:
    """
    Pure mathematical functions for waterfall calculations.

    Money is carried in integer cents wherever conservation matters, so every
    helper that crosses the dollar/cent boundary lives here.
    """

    @staticmethod
    def to_cents(amount: float) -> int:
        """Convert a dollar amount to integer cents (half-up). NaN and negatives become 0."""
        if amount is None or math.isnan(amount) or amount <= 0:
            return 0
        return int(math.floor(amount * CENTS_PER_DOLLAR + 0.5))

    @staticmethod
    def from_cents(cents: int) -> float:
        return cents / CENTS_PER_DOLLAR

    @staticmethod
    def round_cents(amount: float) -> float:
        """Round a dollar amount to the nearest cent."""
        return FinancialCalculations.from_cents(FinancialCalculations.to_cents(amount))

    @staticmethod
    def safe_divide(
        numerator: float, denominator: float, default: Optional[float] = None
    ) -> Optional[float]:
        """
        Divide with an explicit zero-denominator guard.

        Returns ``default`` instead of raising when the denominator is zero or
        not a finite number.
        """
        if denominator is None or denominator == 0 or not math.isfinite(denominator):
            return default
        return numerator / denominator

    @staticmethod
    def calculate_equity_multiple(invested: float, returned: float) -> Optional[float]:
        """
        Calculate multiple on invested capital (returned / invested).

        Returns:
            Multiple as float (e.g., 2.5 for 2.5x) or None when nothing was invested
        """
        return FinancialCalculations.safe_divide(returned, invested, default=None)

    @staticmethod
    def preferred_return(
        capital: float,
        rate: float,
        years: float,
        convention: PreferredReturnConventionEnum = PreferredReturnConventionEnum.SIMPLE,
    ) -> float:
        """
        Preferred return accrued on a capital balance.

        Args:
            capital: Capital basis the hurdle accrues on
            rate: Annual hurdle rate as decimal (0.08 for 8%)
            years: Accrual period in years
            convention: SIMPLE (capital * rate * years) or COMPOUND

        Returns:
            Accrued preferred return in dollars (never negative)
        """
        if capital <= 0 or rate <= 0 or years <= 0:
            return 0.0
        if convention == PreferredReturnConventionEnum.COMPOUND:
            return capital * ((1.0 + rate) ** years - 1.0)
        return capital * rate * years

    @staticmethod
    def catch_up_amount(preferred_return_paid: float, carry_percentage: float) -> float:
        """
        Closed-form GP catch-up.

        The GP is caught up when its cumulative carry equals
        ``carry * (preferred_return_paid + catch_up)``, which solves to
        ``preferred_return_paid * carry / (1 - carry)``.
        """
        if preferred_return_paid <= 0 or carry_percentage <= 0:
            return 0.0
        if carry_percentage >= 1.0:
            raise ValueError("Catch-up carry percentage must be below 100%")
        return preferred_return_paid * carry_percentage / (1.0 - carry_percentage)

    @staticmethod
    def largest_remainder_cents(values: Sequence[float], total_cents: int) -> List[int]:
        """
        Round dollar values to cents so they sum exactly to ``total_cents``.

        Each value is floored to cents, then the leftover cents go to the values
        with the largest fractional remainders (earliest index wins ties).
        """
        if not values:
            return []
        raw = np.maximum(np.asarray(values, dtype=float), 0.0) * CENTS_PER_DOLLAR
        floored = np.floor(raw + 1e-6).astype(np.int64)
        leftover = int(total_cents - int(floored.sum()))
        if leftover > 0:
            remainders = raw - floored
            # Stable sort keeps input order among equal remainders
            order = np.argsort(-remainders, kind="stable")
            for i in range(leftover):
                floored[order[i % len(order)]] += 1
        elif leftover < 0:
            order = np.argsort(raw - floored, kind="stable")
            for i in range(-leftover):
                idx = order[i % len(order)]
                if floored[idx] > 0:
                    floored[idx] -= 1
        return [int(c) for c in floored]

    @staticmethod
    def calculate_irr(
        invested: float, returned: float, start: Optional[date], end: Optional[date]
    ) -> Optional[float]:
        """
        Calculate IRR for a single contribution and a single distribution using PyXIRR.

        Returns:
            IRR as decimal (e.g., 0.15 for 15%) or None if cannot calculate

        Edge Cases Handled:
            - Missing dates → None
            - Zero investment or zero return → None
            - End date not after start date → None
        """
        if start is None or end is None or end <= start:
            return None
        if invested <= 0 or returned <= 0:
            return None
        try:
            result = xirr([start, end], [-invested, returned])
            return float(result) if result is not None else None
        except Exception:
            # Return None for any calculation failures
            return None
