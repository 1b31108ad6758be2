import unittest
from finstation.exports.writers import write_projection, write_comparison, SCHEMAS
from finstation.exports.reports import assumptions_md, validation_report_md, valuation_md
from finstation.forecasting.drivers import BASE_CASE
from finstation.forecasting.engine import project
from finstation.forecasting.identities import check_identities
from finstation.scenarios.store import ScenarioStore
from finstation.valuation.calculator import evaluate
import csv
import io

class TestExports(unittest.TestCase):
    def test_projection_csv(self):
        rows = project(BASE_CASE, 3)
        reader = csv.DictReader(io.StringIO(write_projection(rows)))
        recs = list(reader)
        self.assertEqual(len(recs), 4)
        self.assertEqual(recs[0]["year"], "0")
        self.assertEqual(reader.fieldnames, SCHEMAS["projection"])
        self.assertAlmostEqual(float(recs[1]["revenue"]), 1_050_000)
        self.assertNotIn("\r", write_projection(rows))

    def test_comparison_csv(self):
        txt = write_comparison(ScenarioStore().compare(5))
        lines = txt.splitlines()
        self.assertTrue(lines[0].startswith("scenario_id,name,npv,irr"))
        self.assertEqual(len(lines), 4)

    def test_reports_md(self):
        a = assumptions_md(BASE_CASE, "Base Case", warnings=["growth clamped to 0"])
        self.assertIn("# Assumptions: Base Case", a)
        self.assertIn("- Base revenue: 1,000,000.00", a)
        self.assertIn("- Revenue growth: 5.00%", a)
        self.assertIn("- D&A % of revenue: 3.00%", a)
        self.assertIn("## Warnings", a)
        v = validation_report_md(check_identities(project(BASE_CASE, 5)), details={"years": 5})
        self.assertIn("# Validation Report", v)
        self.assertNotIn("FAIL", v)
        self.assertIn("All 6 statement identities hold.", v)
        self.assertIn("- ppe roll forward: PASS", v)
        broken = validation_report_md({"ppe_roll_forward": False, "total_assets": True})
        self.assertIn("1 of 2 statement identities failed.", broken)

    def test_valuation_md(self):
        _, res = evaluate(BASE_CASE, 5)
        md = valuation_md("Base Case", res)
        self.assertIn("# Valuation: Base Case", md)
        self.assertIn("IRR (approximation)", md)

if __name__ == '__main__':
    unittest.main()
