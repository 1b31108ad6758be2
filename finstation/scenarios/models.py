from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping

from finstation.errors import InvalidInputError
from finstation.forecasting.drivers import DriverSet


@dataclass(frozen=True)
class Scenario:
    id: str
    name: str
    drivers: DriverSet

    def to_record(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "drivers": self.drivers.to_dict()}

    @staticmethod
    def from_record(record: Mapping[str, Any]) -> "Scenario":
        sid = record.get("id")
        if not sid:
            raise InvalidInputError("scenario record is missing 'id'", field="id")
        drivers = record.get("drivers")
        if not isinstance(drivers, Mapping):
            raise InvalidInputError("scenario record is missing 'drivers'", field="drivers")
        return Scenario(id=str(sid), name=str(record.get("name") or sid), drivers=DriverSet.from_dict(drivers))
