# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Waterline - Multi-Tier Capital Distribution Waterfall Engine

Distributes fund exit proceeds across investor classes and the GP through an
ordered sequence of tiers: return of capital, preferred return, GP catch-up
and carried-interest splits.

Key Entry Points:
- waterline.calculate() - Run a waterfall for a scenario
- waterline.fund.* - Investor classes, tiers, deals and scenario builders
- waterline.history.* - Distribution ledgers, lookback and clawback
- waterline.analysis.* - Sensitivity sweeps and scenario comparison
- waterline.session.* - Scenario repository and last-good-result sessions

Example Usage:
    ```python
    from waterline import calculate
    from waterline.fund import create_single_class_scenario

    scenario = create_single_class_scenario(
        commitment=10_000_000, exit_value=50_000_000, hurdle_rate=0.08, carry_rate=0.20
    )
    results = calculate(scenario)
    print(f"GP carry: ${results.gp_carry:,.0f} ({results.gp_carry_percentage:.1%})")
    ```
"""

import importlib
import logging

# Library code installs no handlers; applications configure their own.
logging.getLogger(__name__).addHandler(logging.NullHandler())


# Public API surface (lazy-loaded on first attribute access)
__all__ = [  # noqa: F822 - lazy loading
    "analysis",
    "core",
    "engine",
    "fund",
    "history",
    "session",
    "calculate",
    "WaterfallScenario",
    "WaterfallResults",
    "WaterfallSettings",
    "ConfigurationError",
    "LedgerError",
]


_LAZY_MODULES = {
    "analysis": "waterline.analysis",
    "core": "waterline.core",
    "engine": "waterline.engine",
    "fund": "waterline.fund",
    "history": "waterline.history",
    "session": "waterline.session",
}

_LAZY_ATTRIBUTES = {
    "calculate": "waterline.engine.api",
    "WaterfallScenario": "waterline.fund.scenario",
    "WaterfallResults": "waterline.engine.results",
    "WaterfallSettings": "waterline.core.primitives",
    "ConfigurationError": "waterline.core.exceptions",
    "LedgerError": "waterline.core.exceptions",
}


def __getattr__(name: str):
    module_path = _LAZY_MODULES.get(name)
    if module_path is not None:
        value = importlib.import_module(module_path)
    elif name in _LAZY_ATTRIBUTES:
        value = getattr(importlib.import_module(_LAZY_ATTRIBUTES[name]), name)
    else:
        raise AttributeError(f"module 'waterline' has no attribute '{name}'")
    globals()[name] = value
    return value
