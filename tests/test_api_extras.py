import shutil
import tempfile
import unittest
from pathlib import Path

from finstation.api.server import create_app
from finstation.scenarios.persistence import ScenarioRepository
from finstation.scenarios.actuals import IncomeRecord
from finstation.scenarios.store import ScenarioStore


class FakeMarket:
    def latest_two(self, ticker):
        return IncomeRecord(revenue=110, date="2024-12-31"), IncomeRecord(revenue=100, date="2023-12-31")


class TestAPIExtras(unittest.TestCase):
    def setUp(self):
        self.app = create_app(store=ScenarioStore(), market=FakeMarket())
        self.app.testing = True
        # Clear API key so env settings do not leak into the tests
        self.app.config['API_KEY'] = None
        self.client = self.app.test_client()

    def test_openapi_endpoint(self):
        rv = self.client.get('/openapi.json')
        self.assertEqual(rv.status_code, 200)
        spec = rv.get_json()
        self.assertIn('openapi', spec)
        self.assertIn('/scenarios', spec.get('paths', {}))
        self.assertIn('/scenarios/import', spec['paths'])

    def test_rate_limit_import(self):
        self.app.config['RATE_LIMIT_N'] = 1
        self.app.config['RATE_LIMIT_WINDOW_SEC'] = 60.0
        rv1 = self.client.post('/scenarios/import', json={'ticker': 'ACME'})
        self.assertEqual(rv1.status_code, 201)
        rv2 = self.client.post('/scenarios/import', json={'ticker': 'ACME'})
        self.assertEqual(rv2.status_code, 429)
        self.assertEqual(rv2.get_json().get('error'), 'rate_limited')
        self.assertIn('Retry-After', rv2.headers)
        # reads are not rate limited
        self.assertEqual(self.client.get('/scenarios').status_code, 200)

    def test_auth_api_key(self):
        self.app.config['API_KEY'] = 'secret'
        rv = self.client.get('/scenarios/not-exist')
        self.assertEqual(rv.status_code, 401)
        rv2 = self.client.get('/scenarios/not-exist', headers={'X-API-Key': 'secret'})
        self.assertEqual(rv2.status_code, 404)

    def test_exports(self):
        rv = self.client.get('/scenarios/base/export/projection.csv?years=3')
        self.assertEqual(rv.status_code, 200)
        lines = rv.get_data(as_text=True).splitlines()
        self.assertTrue(lines[0].startswith('year,revenue'))
        self.assertEqual(len(lines), 5)
        for name in ('assumptions.md', 'validation_report.md', 'valuation.md'):
            rv = self.client.get(f'/scenarios/base/export/{name}')
            self.assertEqual(rv.status_code, 200, name)
        self.assertIn('IRR (approximation)', rv.get_data(as_text=True))
        self.assertEqual(self.client.get('/scenarios/base/export/x.bin').status_code, 404)
        self.assertEqual(self.client.get('/scenarios/nope/export/valuation.md').status_code, 404)


class TestAPIPersistence(unittest.TestCase):
    def setUp(self):
        self.tmp = Path(tempfile.mkdtemp())
        self.repo = ScenarioRepository(self.tmp / 'scenarios.json')

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _client(self):
        app = create_app(market=FakeMarket(), repository=self.repo)
        app.testing = True
        app.config['API_KEY'] = None
        return app.test_client()

    def test_mutations_survive_restart(self):
        client = self._client()
        copy = client.post('/scenarios/base/duplicate').get_json()
        client.patch(f"/scenarios/{copy['id']}/drivers", json={'revenueGrowth': 0.1 + 0.2})
        client.delete('/scenarios/pessimistic')

        body = self._client().get('/scenarios').get_json()
        self.assertEqual(body['active_id'], copy['id'])
        self.assertEqual([s['id'] for s in body['scenarios']], ['base', 'optimistic', copy['id']])
        self.assertEqual(body['scenarios'][2]['drivers']['revenueGrowth'], 0.1 + 0.2)

    def test_empty_repository_starts_from_presets(self):
        body = self._client().get('/scenarios').get_json()
        self.assertEqual(len(body['scenarios']), 3)


if __name__ == '__main__':
    unittest.main()
