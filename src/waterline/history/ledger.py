# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Distribution history ledger.

An append-only, ordered record of distributions actually paid. History is
never revised: an append that repeats a distribution id or lands before the
latest recorded period raises ``LedgerError``. Readers get an immutable tuple
snapshot.
"""

from __future__ import annotations

from datetime import date
from typing import Tuple

from pydantic import Field

from ..core.exceptions import LedgerError
from ..core.primitives import Model, PositiveFloat


class DistributionHistoryEntry(Model):
    """One distribution event paid to LPs and the GP."""

    period: date = Field(..., description="Date the distribution was paid")
    distribution_id: str = Field(..., min_length=1)
    lp_capital_returned: PositiveFloat = Field(
        default=0.0, description="Total paid to LPs in this distribution"
    )
    carry_paid: PositiveFloat = Field(
        default=0.0, description="Carried interest paid to the GP in this distribution"
    )


class DistributionLedger:
    """Append-only ordered sequence of distribution entries."""

    def __init__(self, fund_id: str):
        self.fund_id = fund_id
        self._entries: Tuple[DistributionHistoryEntry, ...] = ()

    def check(self, entry: DistributionHistoryEntry) -> None:
        """
        Raise if the entry cannot be appended.

        Raises:
            LedgerError: If the id was already recorded or the period is
                earlier than the latest recorded period
        """
        if any(e.distribution_id == entry.distribution_id for e in self._entries):
            raise LedgerError(
                f"Distribution {entry.distribution_id} already recorded for fund {self.fund_id}"
            )
        if self._entries and entry.period < self._entries[-1].period:
            raise LedgerError(
                f"Distribution {entry.distribution_id} dated {entry.period} precedes "
                f"latest recorded period {self._entries[-1].period}"
            )

    def append(self, entry: DistributionHistoryEntry) -> None:
        """Append a distribution (see ``check`` for rejected entries)."""
        self.check(entry)
        # Rebinding a new tuple keeps earlier snapshots valid for readers
        self._entries = self._entries + (entry,)

    @property
    def entries(self) -> Tuple[DistributionHistoryEntry, ...]:
        return self._entries

    @property
    def total_lp_distributions(self) -> float:
        return sum(e.lp_capital_returned for e in self._entries)

    @property
    def total_carry_paid(self) -> float:
        return sum(e.carry_paid for e in self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)


__all__ = ["DistributionHistoryEntry", "DistributionLedger"]
