# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline Fund Models
Public API for the waterline.fund subpackage.

Investor classes, deals, tiers and the immutable scenario snapshot that the
engine consumes, plus builders for common structures.
"""

from .constructs import (
    create_classes_from_commitments,
    create_single_class_scenario,
    create_standard_tiers,
)
from .entities import Deal, InvestorClass
from .scenario import (
    BlendedConfig,
    ClawbackProvision,
    LookbackProvision,
    WaterfallScenario,
)
from .tiers import WaterfallTier
from .validation import coerce_scenario, max_carry_for, validate_scenario

__all__ = [
    # Core fund components
    "InvestorClass",
    "Deal",
    "WaterfallTier",
    "WaterfallScenario",
    "BlendedConfig",
    "ClawbackProvision",
    "LookbackProvision",
    # Constructs
    "create_standard_tiers",
    "create_classes_from_commitments",
    "create_single_class_scenario",
    # Validation
    "coerce_scenario",
    "max_carry_for",
    "validate_scenario",
]
