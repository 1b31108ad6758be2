from __future__ import annotations
from collections import deque, defaultdict
from pathlib import Path
from typing import Any, Optional
import json
import logging
import time

from flask import Flask, Response, current_app, jsonify, request

from finstation.config.env import configure_logging, get_api_config
from finstation.errors import APIError, DomainError, InvalidInputError
from finstation.exports.reports import assumptions_md, validation_report_md, valuation_md
from finstation.exports.writers import write_comparison, write_projection
from finstation.forecasting.drivers import WIRE_NAMES
from finstation.forecasting.engine import DEFAULT_HORIZON_YEARS
from finstation.forecasting.identities import check_identities
from finstation.ingestion.market_client import MarketDataClient, validate_ticker
from finstation.scenarios.persistence import ScenarioRepository
from finstation.scenarios.store import ScenarioStore, StoreResult
from finstation.valuation.calculator import evaluate
from finstation.valuation.terminal import DEFAULT_TERMINAL_GROWTH_PCT

logger = logging.getLogger(__name__)

OPENAPI_PATH = Path(__file__).with_name("openapi.json")
_ATTR_NAMES = {wire: attr for attr, wire in WIRE_NAMES.items()}
EXPORT_NAMES = ('projection.csv', 'assumptions.md', 'validation_report.md', 'valuation.md')


# Configuration helpers (overridable via app.config in tests)

def _get_api_key() -> str | None:
    if 'API_KEY' in current_app.config:
        return current_app.config.get('API_KEY')
    return get_api_config().api_key


def _get_rate_limit() -> tuple[int, float]:
    cfg = get_api_config()
    n = current_app.config.get('RATE_LIMIT_N')
    w = current_app.config.get('RATE_LIMIT_WINDOW_SEC')
    if n is None:
        n = cfg.rate_limit_n
    if w is None:
        w = cfg.rate_limit_window_sec
    return int(n), float(w)


def _ext() -> dict[str, Any]:
    return current_app.extensions['finstation']


def _store() -> ScenarioStore:
    return _ext()['store']


def _client_ip() -> str:
    xff = request.headers.get('X-Forwarded-For')
    if xff:
        return xff.split(',')[0].strip()
    return request.remote_addr or 'anon'


def _check_api_key():
    api_key = _get_api_key()
    if api_key:
        provided = request.headers.get('X-API-Key')
        if provided != api_key:
            return jsonify({'error': 'unauthorized'}), 401
    return None


def _check_rate_limit(ip: str):
    n, window = _get_rate_limit()
    if n <= 0:
        return None
    now = time.time()
    dq = _ext()['recent'][ip]
    while dq and now - dq[0] > window:
        dq.popleft()
    if len(dq) >= n:
        retry = max(0.0, window - (now - dq[0]))
        resp = jsonify({'error': 'rate_limited'})
        resp.status_code = 429
        resp.headers['Retry-After'] = f"{retry:.2f}"
        return resp
    dq.append(now)
    return None


def _persist() -> None:
    repo: Optional[ScenarioRepository] = _ext()['repository']
    if repo is not None:
        repo.save(_store())


def _failure(res: StoreResult):
    status = {'not_found': 404, 'last_scenario': 409}.get(res.error or '', 422)
    return jsonify({'error': res.error, 'message': res.message}), status


def _scenario_json(s) -> dict[str, Any]:
    return {**s.to_record(), 'active': s.id == _store().active_id}


def _horizon_args() -> tuple[int, float]:
    raw_years = request.args.get('years')
    raw_g = request.args.get('terminal_growth')
    try:
        years = int(raw_years) if raw_years is not None else DEFAULT_HORIZON_YEARS
    except ValueError:
        raise InvalidInputError(f"years must be an integer, got {raw_years!r}", field='years')
    try:
        g = float(raw_g) if raw_g is not None else DEFAULT_TERMINAL_GROWTH_PCT
    except ValueError:
        raise InvalidInputError(f"terminal_growth must be a number, got {raw_g!r}", field='terminal_growth')
    return years, g


def create_app(
    store: Optional[ScenarioStore] = None,
    market: Optional[MarketDataClient] = None,
    repository: Optional[ScenarioRepository] = None,
) -> Flask:
    """Build the API around an injected store, market client and optional repository."""
    app = Flask(__name__)
    if store is None and repository is not None:
        store = repository.load()
    app.extensions['finstation'] = {
        'store': store if store is not None else ScenarioStore(),
        'market': market,
        'repository': repository,
        'recent': defaultdict(lambda: deque(maxlen=100)),
    }

    @app.errorhandler(InvalidInputError)
    def _invalid(e: InvalidInputError):
        return jsonify({'error': 'invalid_input', 'message': str(e), 'field': e.field}), 400

    @app.errorhandler(DomainError)
    def _domain(e: DomainError):
        return jsonify({'error': 'domain_error', 'message': str(e)}), 422

    @app.errorhandler(APIError)
    def _upstream(e: APIError):
        logger.warning("upstream %s failure: %s", e.service, e)
        return jsonify({'error': 'upstream_error', 'service': e.service, 'message': str(e)}), 502

    @app.before_request
    def _auth_and_rate_limit():
        # Only enforce for /scenarios routes
        if request.path.startswith('/scenarios'):
            unauthorized = _check_api_key()
            if unauthorized is not None:
                return unauthorized
            # Rate limit only the outbound-fetching import
            if request.method == 'POST' and request.path == '/scenarios/import':
                rl = _check_rate_limit(_client_ip())
                if rl is not None:
                    return rl
        return None

    @app.get('/scenarios')
    def list_scenarios():
        st = _store()
        return jsonify({'active_id': st.active_id, 'scenarios': [_scenario_json(s) for s in st.list()]})

    @app.get('/scenarios/<sid>')
    def get_scenario(sid: str):
        s = _store().get(sid)
        if s is None:
            return jsonify({'error': 'not_found'}), 404
        return jsonify(_scenario_json(s))

    @app.put('/scenarios/active')
    def set_active():
        payload = request.get_json(force=True, silent=True) or {}
        res = _store().set_active(str(payload.get('id') or ''))
        if not res.ok:
            return _failure(res)
        _persist()
        return jsonify(_scenario_json(res.scenario))

    @app.patch('/scenarios/<sid>/drivers')
    def patch_drivers(sid: str):
        payload = request.get_json(force=True, silent=True)
        if not isinstance(payload, dict) or not payload:
            return jsonify({'error': 'invalid_input', 'message': 'driver object is required'}), 400
        changes: dict[str, float] = {}
        for key, value in payload.items():
            attr = _ATTR_NAMES.get(key, key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInputError(f"driver '{key}' must be numeric", field=key)
            changes[attr] = float(value)
        res = _store().update_drivers(sid, **changes)
        if not res.ok:
            return _failure(res)
        _persist()
        return jsonify(_scenario_json(res.scenario))

    @app.post('/scenarios/<sid>/duplicate')
    def duplicate_scenario(sid: str):
        st = _store()
        if st.get(sid) is None:
            return jsonify({'error': 'not_found'}), 404
        copy = st.duplicate(sid)
        _persist()
        return jsonify(_scenario_json(copy)), 201

    @app.delete('/scenarios/<sid>')
    def delete_scenario(sid: str):
        st = _store()
        res = st.delete(sid)
        if not res.ok:
            return _failure(res)
        _persist()
        return jsonify({'deleted': sid, 'active_id': st.active_id})

    @app.post('/scenarios/import')
    def import_scenario():
        payload = request.get_json(force=True, silent=True) or {}
        ticker = validate_ticker(str(payload.get('ticker') or '').upper())
        market = _ext()['market']
        if market is None:
            market = _ext()['market'] = MarketDataClient()
        latest, prior = market.latest_two(ticker)
        res = _store().import_from_actuals(latest, prior, name=payload.get('name') or f"{ticker} Actuals")
        if not res.ok:
            return _failure(res)
        _persist()
        return jsonify(_scenario_json(res.scenario)), 201

    @app.get('/scenarios/<sid>/valuation')
    def get_valuation(sid: str):
        s = _store().get(sid)
        if s is None:
            return jsonify({'error': 'not_found'}), 404
        years, g = _horizon_args()
        rows, result = evaluate(s.drivers, years, g)
        return jsonify({
            'scenario_id': s.id,
            'snapshots': [r.to_dict() for r in rows],
            'valuation': result.to_dict(),
        })

    @app.get('/scenarios/compare')
    def compare():
        years, g = _horizon_args()
        rows = _store().compare(years, g)
        if request.args.get('format') == 'csv':
            return Response(write_comparison(rows), mimetype='text/csv')
        return jsonify({'rows': [vars(r) for r in rows]})

    @app.get('/scenarios/<sid>/export/<name>')
    def export(sid: str, name: str):
        s = _store().get(sid)
        if s is None:
            return jsonify({'error': 'not_found'}), 404
        if name not in EXPORT_NAMES:
            return jsonify({'error': 'artifact_not_found'}), 404
        years, g = _horizon_args()
        if name == 'assumptions.md':
            return Response(assumptions_md(s.drivers, s.name), mimetype='text/markdown')
        rows, result = evaluate(s.drivers, years, g)
        if name == 'projection.csv':
            return Response(write_projection(rows), mimetype='text/csv')
        if name == 'validation_report.md':
            body = validation_report_md(check_identities(rows), details={'years': years})
            return Response(body, mimetype='text/markdown')
        return Response(valuation_md(s.name, result), mimetype='text/markdown')

    @app.get('/openapi.json')
    def get_openapi():
        try:
            spec = json.loads(OPENAPI_PATH.read_text())
        except (OSError, ValueError):
            return jsonify({'error': 'openapi_not_found'}), 404
        return jsonify(spec)

    return app


if __name__ == '__main__':
    configure_logging()
    create_app(repository=ScenarioRepository()).run(host='0.0.0.0', port=8000)
