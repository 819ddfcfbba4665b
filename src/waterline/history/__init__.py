# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline History
Distribution ledgers, lookback tracking and clawback measurement.
"""

from .clawback import ClawbackCalculator, ClawbackResult
from .ledger import DistributionHistoryEntry, DistributionLedger
from .lookback import (
    LookbackSnapshot,
    LookbackSummary,
    LookbackTracker,
    summarize_lookback,
)

__all__ = [
    "DistributionHistoryEntry",
    "DistributionLedger",
    "LookbackTracker",
    "LookbackSnapshot",
    "LookbackSummary",
    "summarize_lookback",
    "ClawbackCalculator",
    "ClawbackResult",
]
