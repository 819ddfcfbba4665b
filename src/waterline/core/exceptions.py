# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Typed errors raised by the waterfall engine.

Only structural problems escape as exceptions. Over-allocation and zero
denominators are resolved inside the engine and reported in results.
"""


class WaterlineError(Exception):
    """Base class for all waterline errors."""


class ConfigurationError(WaterlineError, ValueError):
    """
    A scenario is structurally invalid and cannot be calculated.

    Raised for malformed tier ordering, missing or invalid class/tier fields,
    blended weights that do not sum to 100, and inconsistent totals.
    """


class LedgerError(WaterlineError, ValueError):
    """An append to a distribution ledger would revise history."""
