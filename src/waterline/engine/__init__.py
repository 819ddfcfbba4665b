# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline Engine
Public API for the waterline.engine subpackage.

Class allocation, tier sequencing, the European/American/Blended strategies
and result aggregation, tied together by ``calculate``.
"""

from .aggregator import aggregate
from .allocator import AllocationResult, ClassAllocator
from .api import calculate
from .results import InvestorClassResult, TierBreakdown, WaterfallResults
from .sequencer import SequencerOutput, TierSequencer
from .strategies import (
    AmericanResult,
    BlendedResult,
    EuropeanResult,
    StrategyResult,
    blend,
    run_american,
    run_european,
)

__all__ = [
    # Entry point
    "calculate",
    # Building blocks
    "ClassAllocator",
    "AllocationResult",
    "TierSequencer",
    "SequencerOutput",
    "run_european",
    "run_american",
    "blend",
    "aggregate",
    # Results
    "EuropeanResult",
    "AmericanResult",
    "BlendedResult",
    "StrategyResult",
    "TierBreakdown",
    "InvestorClassResult",
    "WaterfallResults",
]
