from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
import time

from finstation.config.env import get_storage_config
from finstation.errors import InvalidInputError
from finstation.scenarios.models import Scenario
from finstation.scenarios.store import ScenarioStore

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def store_to_record(store: ScenarioStore) -> Dict[str, Any]:
    return {
        "version": FORMAT_VERSION,
        "active_id": store.active_id,
        "scenarios": [s.to_record() for s in store.list()],
        "saved_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
    }


def store_from_record(record: Dict[str, Any]) -> ScenarioStore:
    if not isinstance(record, dict):
        raise InvalidInputError("scenario file must hold a JSON object", field="version")
    if record.get("version") != FORMAT_VERSION:
        raise InvalidInputError(f"unsupported scenario file version {record.get('version')!r}", field="version")
    scenarios = [Scenario.from_record(r) for r in record.get("scenarios", [])]
    return ScenarioStore(scenarios, active_id=record.get("active_id"))


class ScenarioRepository:
    """Local JSON cache of the scenario store.

    json writes floats with their shortest round-tripping repr, so every
    driver value is restored bit for bit.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else get_storage_config().scenarios_path

    def save(self, store: ScenarioStore) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(store_to_record(store), indent=2))
        tmp.replace(self.path)
        logger.debug("saved %d scenarios to %s", len(store), self.path)

    def load(self) -> Optional[ScenarioStore]:
        """Return the persisted store, or None when nothing has been saved yet."""
        if not self.path.exists():
            return None
        try:
            record = json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise InvalidInputError(f"scenario file {self.path} is not valid JSON: {e}", field="path") from e
        store = store_from_record(record)
        logger.info("loaded %d scenarios from %s", len(store), self.path)
        return store
