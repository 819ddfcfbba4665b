# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline Analysis
Sensitivity sweeps and scenario comparison.
"""

from .sensitivity import (
    BreakEvenPoint,
    SensitivityEngine,
    SensitivityMatrix,
    SensitivityPoint,
    compare_scenarios,
    exit_value_range,
)

__all__ = [
    "SensitivityEngine",
    "SensitivityMatrix",
    "SensitivityPoint",
    "BreakEvenPoint",
    "compare_scenarios",
    "exit_value_range",
]
