# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline Core Framework

Foundational building blocks for the waterfall engine: primitives, money
arithmetic and the error taxonomy.
"""

from . import primitives
from .calculations import FinancialCalculations
from .exceptions import ConfigurationError, LedgerError, WaterlineError

__all__ = [
    "primitives",
    "FinancialCalculations",
    "ConfigurationError",
    "LedgerError",
    "WaterlineError",
]
