# Copyright 2024-2025 David Gordon Nix
# SPDX-License-Identifier: Apache-2.0

"""
Call-site helpers for interactive use.

``ScenarioRepository`` holds immutable scenario snapshots by id.
``WaterfallSession`` runs calculations and remembers the last good result per
scenario, so an edit that makes a scenario invalid can keep showing the
previous numbers, flagged as stale, instead of failing outright.
"""

from __future__ import annotations

import logging
import threading
from typing import Dict, List, Optional

from pydantic import Field

from .core.exceptions import ConfigurationError
from .core.primitives import Model, WaterfallSettings
from .engine.api import calculate
from .engine.results import WaterfallResults
from .fund.scenario import WaterfallScenario

logger = logging.getLogger(__name__)


class CalculationOutcome(Model):
    """Result of a session calculation."""

    results: Optional[WaterfallResults] = Field(
        default=None, description="Fresh results, or the last good results when stale"
    )
    stale: bool = False
    warning: Optional[str] = None


class ScenarioRepository:
    """In-memory store of scenario snapshots keyed by id. Saving replaces; there is no versioning."""

    def __init__(self):
        self._scenarios: Dict[str, WaterfallScenario] = {}
        self._lock = threading.Lock()

    def save(self, scenario: WaterfallScenario) -> WaterfallScenario:
        with self._lock:
            self._scenarios[scenario.id] = scenario
        return scenario

    def get(self, scenario_id: str) -> Optional[WaterfallScenario]:
        return self._scenarios.get(scenario_id)

    def delete(self, scenario_id: str) -> bool:
        with self._lock:
            return self._scenarios.pop(scenario_id, None) is not None

    def list_ids(self) -> List[str]:
        return sorted(self._scenarios)

    def __contains__(self, scenario_id: str) -> bool:
        return scenario_id in self._scenarios

    def __len__(self) -> int:
        return len(self._scenarios)


class WaterfallSession:
    """Runs calculations and falls back to the last good result on configuration errors."""

    def __init__(
        self,
        repository: Optional[ScenarioRepository] = None,
        settings: Optional[WaterfallSettings] = None,
    ):
        self.repository = repository or ScenarioRepository()
        self.settings = settings or WaterfallSettings()
        self._last_good: Dict[str, WaterfallResults] = {}

    def calculate(self, scenario: WaterfallScenario) -> CalculationOutcome:
        """
        Calculate a scenario, saving it to the repository on success.

        On ``ConfigurationError`` the last good result for the same scenario id
        is returned with ``stale=True``. Without a previous result the outcome
        carries only the warning.
        """
        try:
            results = calculate(scenario, self.settings)
        except ConfigurationError as exc:
            previous = self._last_good.get(scenario.id)
            logger.warning(
                f"Scenario {scenario.id} is invalid ({exc}); "
                + ("showing last good results" if previous else "no previous results")
            )
            return CalculationOutcome(results=previous, stale=previous is not None, warning=str(exc))

        self._last_good[scenario.id] = results
        self.repository.save(scenario)
        return CalculationOutcome(results=results)

    def calculate_by_id(self, scenario_id: str) -> CalculationOutcome:
        scenario = self.repository.get(scenario_id)
        if scenario is None:
            raise KeyError(f"Unknown scenario id: {scenario_id}")
        return self.calculate(scenario)

    def last_results(self, scenario_id: str) -> Optional[WaterfallResults]:
        return self._last_good.get(scenario_id)


__all__ = ["CalculationOutcome", "ScenarioRepository", "WaterfallSession"]
