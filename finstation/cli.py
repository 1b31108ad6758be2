import json
import sys

from finstation.config.env import configure_logging
from finstation.errors import FinstationError
from finstation.forecasting.engine import DEFAULT_HORIZON_YEARS
from finstation.scenarios.persistence import ScenarioRepository
from finstation.scenarios.store import ScenarioStore
from finstation.valuation.calculator import evaluate


def main(argv=None):
    args = sys.argv[1:] if argv is None else argv
    if not args:
        print("Usage: python -m finstation.cli <scenario-id> [years]")
        sys.exit(2)
    configure_logging()
    store = ScenarioRepository().load() or ScenarioStore()
    scenario = store.get(args[0])
    if scenario is None:
        known = ", ".join(s.id for s in store.list())
        print(f"Unknown scenario '{args[0]}'. Known: {known}", file=sys.stderr)
        sys.exit(1)
    try:
        years = int(args[1]) if len(args) > 1 else DEFAULT_HORIZON_YEARS
        rows, result = evaluate(scenario.drivers, years)
    except (ValueError, FinstationError) as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps({
        "scenario": scenario.to_record(),
        "snapshots": [r.to_dict() for r in rows],
        "valuation": result.to_dict(),
    }, indent=2))


if __name__ == "__main__":
    main()
