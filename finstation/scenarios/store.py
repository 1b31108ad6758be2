from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
import logging
import uuid

from finstation.errors import DomainError, InvalidInputError
from finstation.forecasting.drivers import PRESETS
from finstation.forecasting.engine import DEFAULT_HORIZON_YEARS
from finstation.scenarios.actuals import IncomeRecord, derive_drivers
from finstation.scenarios.models import Scenario
from finstation.valuation.calculator import evaluate
from finstation.valuation.terminal import DEFAULT_TERMINAL_GROWTH_PCT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreResult:
    ok: bool
    scenario: Optional[Scenario] = None
    error: Optional[str] = None  # last_scenario|not_found|invalid_actuals|zero_prior_revenue
    message: Optional[str] = None

    @staticmethod
    def success(scenario: Optional[Scenario] = None) -> "StoreResult":
        return StoreResult(ok=True, scenario=scenario)

    @staticmethod
    def failure(error: str, message: str) -> "StoreResult":
        return StoreResult(ok=False, error=error, message=message)


@dataclass(frozen=True)
class ComparisonRow:
    scenario_id: str
    name: str
    npv: Optional[float] = None
    irr: Optional[float] = None
    irr_converged: Optional[bool] = None
    enterprise_value: Optional[float] = None
    error: Optional[str] = None


def preset_scenarios() -> List[Scenario]:
    return [Scenario(id=sid, name=name, drivers=d) for sid, name, d in PRESETS]


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


class ScenarioStore:
    """In-memory, ordered collection of scenarios with one active pointer.

    Single writer per process. Scenarios and their driver sets are frozen, so
    edits replace entries rather than mutate them. Always holds at least one
    scenario.
    """

    def __init__(self, scenarios: Optional[Iterable[Scenario]] = None, active_id: Optional[str] = None):
        items = list(scenarios) if scenarios is not None else preset_scenarios()
        if not items:
            raise InvalidInputError("store needs at least one scenario", field="scenarios")
        self._scenarios: Dict[str, Scenario] = {}
        for s in items:
            if s.id in self._scenarios:
                raise InvalidInputError(f"duplicate scenario id '{s.id}'", field="id")
            self._scenarios[s.id] = s
        self._active_id = active_id if active_id in self._scenarios else items[0].id

    def __len__(self) -> int:
        return len(self._scenarios)

    def list(self) -> List[Scenario]:
        return list(self._scenarios.values())

    def get(self, scenario_id: str) -> Optional[Scenario]:
        return self._scenarios.get(scenario_id)

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> Scenario:
        return self._scenarios[self._active_id]

    def set_active(self, scenario_id: str) -> StoreResult:
        s = self._scenarios.get(scenario_id)
        if s is None:
            return StoreResult.failure("not_found", f"no scenario '{scenario_id}'")
        self._active_id = scenario_id
        return StoreResult.success(s)

    def add(self, scenario: Scenario, activate: bool = False) -> Scenario:
        if scenario.id in self._scenarios:
            raise InvalidInputError(f"duplicate scenario id '{scenario.id}'", field="id")
        self._scenarios[scenario.id] = scenario
        if activate:
            self._active_id = scenario.id
        return scenario

    def update_drivers(self, scenario_id: str, **changes: float) -> StoreResult:
        """Replace driver values on one scenario. Invalid values raise InvalidInputError."""
        s = self._scenarios.get(scenario_id)
        if s is None:
            return StoreResult.failure("not_found", f"no scenario '{scenario_id}'")
        updated = Scenario(id=s.id, name=s.name, drivers=s.drivers.replace(**changes))
        self._scenarios[s.id] = updated
        return StoreResult.success(updated)

    def duplicate(self, scenario_id: Optional[str] = None) -> Scenario:
        """Copy a scenario (the active one by default) under a fresh id and make it active."""
        src = self._scenarios.get(scenario_id or self._active_id)
        if src is None:
            raise InvalidInputError(f"no scenario '{scenario_id}'", field="id")
        copy = Scenario(id=_new_id("custom"), name=self._next_name(), drivers=src.drivers.replace())
        self.add(copy, activate=True)
        logger.info("duplicated scenario %s as %s", src.id, copy.id)
        return copy

    def _next_name(self) -> str:
        taken = {s.name for s in self._scenarios.values()}
        n = len(self._scenarios) + 1
        while f"Scenario {n}" in taken:
            n += 1
        return f"Scenario {n}"

    def delete(self, scenario_id: str) -> StoreResult:
        s = self._scenarios.get(scenario_id)
        if s is None:
            return StoreResult.failure("not_found", f"no scenario '{scenario_id}'")
        if len(self._scenarios) == 1:
            logger.info("refused to delete last scenario %s", scenario_id)
            return StoreResult.failure("last_scenario", "cannot delete the last remaining scenario")
        del self._scenarios[scenario_id]
        if self._active_id == scenario_id:
            self._active_id = next(iter(self._scenarios))
        logger.info("deleted scenario %s; active is %s", scenario_id, self._active_id)
        return StoreResult.success(s)

    def import_from_actuals(
        self, latest: IncomeRecord, prior: IncomeRecord, name: Optional[str] = None
    ) -> StoreResult:
        """Create and activate a scenario seeded from two years of reported figures.

        `latest` must be the most recent period. Unset drivers are copied from
        the active scenario.
        """
        try:
            drivers = derive_drivers(latest, prior, self.active.drivers)
        except DomainError as e:
            logger.warning("import from actuals rejected: %s", e)
            return StoreResult.failure("zero_prior_revenue", str(e))
        except InvalidInputError as e:
            logger.warning("import from actuals rejected: %s", e)
            return StoreResult.failure("invalid_actuals", str(e))
        s = Scenario(id=_new_id("import"), name=name or f"Imported {latest.date or 'Actuals'}", drivers=drivers)
        self.add(s, activate=True)
        logger.info("imported scenario %s (base revenue %.2f)", s.id, drivers.base_revenue)
        return StoreResult.success(s)

    def compare(
        self,
        horizon_years: int = DEFAULT_HORIZON_YEARS,
        terminal_growth_pct: float = DEFAULT_TERMINAL_GROWTH_PCT,
    ) -> List[ComparisonRow]:
        """Value every scenario. A scenario that cannot be valued gets an error row."""
        out: List[ComparisonRow] = []
        for s in self._scenarios.values():
            try:
                _, res = evaluate(s.drivers, horizon_years, terminal_growth_pct)
            except DomainError as e:
                logger.warning("scenario %s cannot be valued: %s", s.id, e)
                out.append(ComparisonRow(scenario_id=s.id, name=s.name, error=str(e)))
                continue
            if not res.irr_converged:
                logger.warning("IRR search did not converge for scenario %s", s.id)
            out.append(ComparisonRow(
                scenario_id=s.id,
                name=s.name,
                npv=res.npv,
                irr=res.irr,
                irr_converged=res.irr_converged,
                enterprise_value=res.enterprise_value,
            ))
        return out
