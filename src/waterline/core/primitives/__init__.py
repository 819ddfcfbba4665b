# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline Core Primitives

Essential building blocks shared by the waterfall engine: the immutable base
model, constrained field types, enumerations and settings.
"""

from .enums import (
    AllocationBasisEnum,
    ClawbackStatusEnum,
    LookbackStatusEnum,
    ManagementFeeTreatmentEnum,
    PreferredReturnConventionEnum,
    TierKindEnum,
    WaterfallModelEnum,
)
from .model import Model
from .settings import CalculationSettings, SensitivitySettings, WaterfallSettings
from .types import (
    FloatBetween0And1,
    Percentage,
    PositiveFloat,
    PositiveInt,
)

__all__ = [
    # Core models
    "Model",
    # Settings
    "WaterfallSettings",
    "CalculationSettings",
    "SensitivitySettings",
    # Enums
    "AllocationBasisEnum",
    "ClawbackStatusEnum",
    "LookbackStatusEnum",
    "ManagementFeeTreatmentEnum",
    "PreferredReturnConventionEnum",
    "TierKindEnum",
    "WaterfallModelEnum",
    # Types
    "FloatBetween0And1",
    "Percentage",
    "PositiveFloat",
    "PositiveInt",
]
