import unittest

from finstation.api.server import create_app
from finstation.errors import APIError
from finstation.scenarios.actuals import IncomeRecord
from finstation.scenarios.store import ScenarioStore


class FakeMarket:
    def __init__(self, latest=None, prior=None, error=None):
        self.latest = latest or IncomeRecord(revenue=110, cost_of_revenue=44, income_before_tax=20, income_tax_expense=4, date="2024-12-31")
        self.prior = prior or IncomeRecord(revenue=100, date="2023-12-31")
        self.error = error
        self.calls = []

    def latest_two(self, ticker):
        self.calls.append(ticker)
        if self.error is not None:
            raise self.error
        return self.latest, self.prior


class TestScenarioAPI(unittest.TestCase):
    def setUp(self):
        self.market = FakeMarket()
        self.app = create_app(store=ScenarioStore(), market=self.market)
        self.app.testing = True
        self.app.config['API_KEY'] = None
        self.app.config['RATE_LIMIT_N'] = 0
        self.client = self.app.test_client()

    def test_list_scenarios(self):
        rv = self.client.get("/scenarios")
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        self.assertEqual(body["active_id"], "base")
        self.assertEqual([s["id"] for s in body["scenarios"]], ["base", "optimistic", "pessimistic"])
        self.assertTrue(body["scenarios"][0]["active"])
        self.assertIn("revenueGrowth", body["scenarios"][0]["drivers"])

    def test_get_unknown(self):
        self.assertEqual(self.client.get("/scenarios/nope").status_code, 404)

    def test_switch_active(self):
        rv = self.client.put("/scenarios/active", json={"id": "pessimistic"})
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(self.client.get("/scenarios").get_json()["active_id"], "pessimistic")
        rv = self.client.put("/scenarios/active", json={"id": "nope"})
        self.assertEqual(rv.status_code, 404)

    def test_patch_drivers(self):
        rv = self.client.patch("/scenarios/base/drivers", json={"revenueGrowth": 8, "tax_rate": 25})
        self.assertEqual(rv.status_code, 200)
        drivers = rv.get_json()["drivers"]
        self.assertEqual(drivers["revenueGrowth"], 8.0)
        self.assertEqual(drivers["taxRate"], 25.0)

    def test_patch_drivers_rejects_bad_values(self):
        rv = self.client.patch("/scenarios/base/drivers", json={"taxRate": 150})
        self.assertEqual(rv.status_code, 400)
        self.assertEqual(rv.get_json()["error"], "invalid_input")
        rv = self.client.patch("/scenarios/base/drivers", json={"taxRate": "high"})
        self.assertEqual(rv.status_code, 400)
        self.assertEqual(rv.get_json()["field"], "taxRate")
        rv = self.client.patch("/scenarios/base/drivers", json={})
        self.assertEqual(rv.status_code, 400)
        # unchanged after rejected edits
        drivers = self.client.get("/scenarios/base").get_json()["drivers"]
        self.assertEqual(drivers["taxRate"], 21)

    def test_duplicate_and_delete(self):
        rv = self.client.post("/scenarios/base/duplicate")
        self.assertEqual(rv.status_code, 201)
        copy = rv.get_json()
        self.assertTrue(copy["active"])
        self.assertEqual(copy["name"], "Scenario 4")
        rv = self.client.delete(f"/scenarios/{copy['id']}")
        self.assertEqual(rv.status_code, 200)
        self.assertEqual(rv.get_json()["active_id"], "base")
        self.assertEqual(self.client.post("/scenarios/nope/duplicate").status_code, 404)

    def test_delete_last_scenario_conflicts(self):
        self.assertEqual(self.client.delete("/scenarios/optimistic").status_code, 200)
        self.assertEqual(self.client.delete("/scenarios/pessimistic").status_code, 200)
        rv = self.client.delete("/scenarios/base")
        self.assertEqual(rv.status_code, 409)
        self.assertEqual(rv.get_json()["error"], "last_scenario")
        self.assertEqual(len(self.client.get("/scenarios").get_json()["scenarios"]), 1)

    def test_valuation(self):
        rv = self.client.get("/scenarios/base/valuation?years=5")
        self.assertEqual(rv.status_code, 200)
        body = rv.get_json()
        self.assertEqual(len(body["snapshots"]), 6)
        self.assertEqual(body["snapshots"][0]["year"], 0)
        val = body["valuation"]
        self.assertTrue(val["irrIsApproximation"])
        self.assertGreater(val["enterpriseValue"], val["npv"])

    def test_valuation_errors(self):
        rv = self.client.get("/scenarios/base/valuation?terminal_growth=10")
        self.assertEqual(rv.status_code, 422)
        self.assertEqual(rv.get_json()["error"], "domain_error")
        rv = self.client.get("/scenarios/base/valuation?years=0")
        self.assertEqual(rv.status_code, 400)

    def test_malformed_query_values_rejected(self):
        for query, field in (("years=abc", "years"), ("years=2.5", "years"),
                             ("terminal_growth=low", "terminal_growth")):
            rv = self.client.get(f"/scenarios/base/valuation?{query}")
            self.assertEqual(rv.status_code, 400, query)
            self.assertEqual(rv.get_json()["field"], field)
        rv = self.client.get("/scenarios/compare?years=abc")
        self.assertEqual(rv.status_code, 400)
        rv = self.client.get("/scenarios/base/export/projection.csv?years=2.5")
        self.assertEqual(rv.status_code, 400)

    def test_compare(self):
        rows = self.client.get("/scenarios/compare").get_json()["rows"]
        self.assertEqual(len(rows), 3)
        by_id = {r["scenario_id"]: r for r in rows}
        self.assertGreater(by_id["optimistic"]["npv"], by_id["pessimistic"]["npv"])
        rv = self.client.get("/scenarios/compare?format=csv")
        self.assertEqual(rv.mimetype, "text/csv")
        self.assertTrue(rv.get_data(as_text=True).startswith("scenario_id,"))

    def test_import(self):
        rv = self.client.post("/scenarios/import", json={"ticker": "acme"})
        self.assertEqual(rv.status_code, 201)
        body = rv.get_json()
        self.assertEqual(body["name"], "ACME Actuals")
        self.assertEqual(body["drivers"]["baseRevenue"], 110)
        self.assertTrue(body["active"])
        self.assertEqual(self.market.calls, ["ACME"])

    def test_import_failures(self):
        rv = self.client.post("/scenarios/import", json={"ticker": "NOT-A-TICKER"})
        self.assertEqual(rv.status_code, 400)
        self.assertEqual(rv.get_json()["field"], "ticker")

        self.market.prior = IncomeRecord(revenue=0)
        rv = self.client.post("/scenarios/import", json={"ticker": "ACME"})
        self.assertEqual(rv.status_code, 422)
        self.assertEqual(rv.get_json()["error"], "zero_prior_revenue")

        self.market.error = APIError("down", status_code=503, service="FMP")
        rv = self.client.post("/scenarios/import", json={"ticker": "ACME"})
        self.assertEqual(rv.status_code, 502)
        self.assertEqual(len(self.client.get("/scenarios").get_json()["scenarios"]), 3)


if __name__ == "__main__":
    unittest.main()
