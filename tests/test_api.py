"""
HTTP surface: configuration CRUD, assessments, data points and matching.
The app runs against the in-memory database configured in conftest.py.
Run: python -m pytest tests/test_api.py -v
"""
import unittest

from fastapi.testclient import TestClient

from main import app

client = None

_CUSTOM_CREDIT_POINT = {
    "id": "credit-score",
    "label": "Credit Score",
    "category": "creditworthiness",
    "good": "700-850",
    "average": "620-699",
    "negative": "300-619",
    "points": {"good": 4, "average": 3, "negative": 0},
}


def setUpModule():
    global client
    client = TestClient(app)
    client.__enter__()


def tearDownModule():
    client.__exit__(None, None, None)


class TestConfigurationsApi(unittest.TestCase):
    def test_health(self):
        self.assertEqual(client.get("/health").json(), {"status": "ok"})

    def test_seeded_configurations_listed(self):
        resp = client.get("/api/configurations", params={"instrumentType": "equipment_financing"})
        self.assertEqual(resp.status_code, 200)
        seeded = next(c for c in resp.json() if c["id"] == "equipment_financing")
        self.assertTrue(seeded["isDefault"])
        self.assertIn("minimumRequirements", seeded)
        self.assertIn("lastModified", seeded)

    def test_create_update_delete(self):
        resp = client.post("/api/configurations", json={"name": "API Fleet Lease", "instrumentType": "equipment_financing"})
        self.assertEqual(resp.status_code, 201)
        body = resp.json()
        self.assertEqual(body["id"], "api_fleet_lease")
        self.assertEqual(body["version"], 1)

        dup = client.post("/api/configurations", json={"name": "api fleet lease", "instrumentType": "term_loan"})
        self.assertEqual(dup.status_code, 409)

        patched = client.patch("/api/configurations/api_fleet_lease", json={"baseInterestRate": 7.25, "expectedVersion": 1})
        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["baseInterestRate"], 7.25)
        self.assertEqual(patched.json()["version"], 2)

        stale = client.patch("/api/configurations/api_fleet_lease", json={"name": "Late", "expectedVersion": 1})
        self.assertEqual(stale.status_code, 409)

        invalid = client.patch("/api/configurations/api_fleet_lease", json={"minLoanAmount": 99_000_000})
        self.assertEqual(invalid.status_code, 400)

        self.assertEqual(client.delete("/api/configurations/api_fleet_lease").status_code, 204)
        self.assertEqual(client.get("/api/configurations/api_fleet_lease").status_code, 404)

    def test_default_is_protected(self):
        resp = client.delete("/api/configurations/equipment_financing")
        self.assertEqual(resp.status_code, 409)
        self.assertEqual(client.get("/api/configurations/equipment_financing").status_code, 200)

    def test_set_default_moves_flag(self):
        client.post("/api/configurations", json={"name": "API Term Loan Alt", "instrumentType": "term_loan"})
        resp = client.post("/api/configurations/api_term_loan_alt/default")
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.json()["isDefault"])
        term_loans = client.get("/api/configurations", params={"instrumentType": "term_loan"}).json()
        self.assertEqual([c["id"] for c in term_loans if c["isDefault"]], ["api_term_loan_alt"])

    def test_checklist(self):
        resp = client.post(
            "/api/configurations/working_capital/checklist",
            json={"submittedDocumentIds": ["financial_statements"]},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["outstandingRequired"], ["bank_statements", "business_license"])
        self.assertFalse(resp.json()["complete"])

    def test_overrides_and_reset(self):
        client.post("/api/configurations", json={"name": "API Custom Bands", "instrumentType": "term_loan"})
        patched = client.patch(
            "/api/configurations/api_custom_bands",
            json={
                "dataPoints": [_CUSTOM_CREDIT_POINT],
                "categoryWeights": {"creditWorthinessWeight": 100},
                "baseInterestRate": 12.5,
            },
        )
        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["dataPoints"][0]["points"]["good"], 4)

        catalog = client.get("/api/risk/data-points", params={"configurationId": "api_custom_bands"}).json()
        self.assertEqual([dp["good"] for dp in catalog], ["700-850"])

        run = client.post(
            "/api/assessments", json={"configurationId": "api_custom_bands", "facts": {"credit-score": 650}}
        ).json()
        self.assertEqual(run["result"]["creditWorthinessScore"], 75)
        self.assertFalse(run["result"]["isCustomWeighted"])

        reset = client.post("/api/configurations/api_custom_bands/reset")
        self.assertEqual(reset.status_code, 200)
        body = reset.json()
        self.assertEqual(body["name"], "API Custom Bands")
        self.assertIsNone(body["dataPoints"])
        self.assertIsNone(body["categoryWeights"])
        self.assertNotEqual(body["baseInterestRate"], 12.5)
        self.assertEqual(body["version"], 3)
        self.assertEqual(client.post("/api/configurations/missing/reset").status_code, 404)
        self.assertEqual(
            client.get("/api/risk/data-points", params={"configurationId": "missing"}).status_code, 404
        )


class TestAssessmentsApi(unittest.TestCase):
    def test_blocked_assessment_persisted(self):
        resp = client.post(
            "/api/assessments",
            json={"configurationId": "working_capital", "facts": {"min_credit_score": 600, "credit-score": 600}},
        )
        self.assertEqual(resp.status_code, 201)
        run = resp.json()
        self.assertEqual(run["status"], "blocked")
        self.assertTrue(run["result"]["blocked"])
        self.assertEqual(run["result"]["grade"], "F")

        fetched = client.get(f"/api/assessments/{run['id']}")
        self.assertEqual(fetched.status_code, 200)
        self.assertEqual(fetched.json()["result"], run["result"])

        listed = client.get("/api/assessments", params={"configurationId": "working_capital"}).json()
        self.assertIn(run["id"], [r["id"] for r in listed])

    def test_requirement_facts_only_blocks(self):
        resp = client.post(
            "/api/assessments", json={"configurationId": "working_capital", "facts": {"min_credit_score": 600}}
        )
        self.assertEqual(resp.status_code, 201)
        run = resp.json()
        self.assertEqual(run["status"], "blocked")
        self.assertFalse(run["result"]["scored"])
        self.assertIsNone(run["result"]["grade"])
        self.assertIsNone(run["result"]["totalScore"])

    def test_requirement_facts_only_passing_is_unscored(self):
        facts = {"min_credit_score": 700, "min_revenue": 600_000, "time_in_business": 36}
        resp = client.post("/api/assessments", json={"configurationId": "working_capital", "facts": facts})
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.json()["status"], "unscored")
        self.assertFalse(resp.json()["blocked"])

    def test_request_data_points(self):
        resp = client.post(
            "/api/assessments",
            json={
                "configurationId": "term_loan",
                "facts": {"credit-score": 650},
                "dataPoints": [_CUSTOM_CREDIT_POINT],
            },
        )
        self.assertEqual(resp.status_code, 201)
        result = resp.json()["result"]
        self.assertEqual(result["creditWorthinessScore"], 75)
        self.assertEqual(result["excludedDataPoints"], [])

    def test_custom_weights_and_fico_scale(self):
        resp = client.post(
            "/api/assessments",
            json={
                "configurationId": "term_loan",
                "facts": {"credit-score": 780, "current-ratio": 2.5},
                "weights": {"creditWorthinessWeight": 50, "financialRatioWeight": 50},
                "customizedBy": "analyst@example.com",
                "scale": 850,
            },
        )
        self.assertEqual(resp.status_code, 201)
        result = resp.json()["result"]
        self.assertEqual(result["totalScore"], 850)
        self.assertTrue(result["isCustomWeighted"])
        self.assertEqual(result["customizedBy"], "analyst@example.com")

    def test_zero_weights_rejected_and_run_marked_failed(self):
        resp = client.post(
            "/api/assessments",
            json={"configurationId": "commercial_real_estate", "facts": {"credit-score": 700}, "weights": {}},
        )
        self.assertEqual(resp.status_code, 422)
        runs = client.get("/api/assessments", params={"configurationId": "commercial_real_estate"}).json()
        self.assertIn("failed", [r["status"] for r in runs])

    def test_unknown_configuration(self):
        resp = client.post("/api/assessments", json={"configurationId": "missing", "facts": {}})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(client.get("/api/assessments/run-missing").status_code, 404)

    def test_inactive_configuration_rejected(self):
        client.post("/api/configurations", json={"name": "API Dormant", "instrumentType": "working_capital"})
        client.post("/api/configurations/api_dormant/toggle-active")
        resp = client.post("/api/assessments", json={"configurationId": "api_dormant", "facts": {"credit-score": 700}})
        self.assertEqual(resp.status_code, 409)

    def test_data_points_by_category(self):
        resp = client.get("/api/risk/data-points", params={"category": "financial"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([dp["id"] for dp in resp.json()], ["debt-to-equity", "current-ratio", "interest-coverage"])
        self.assertEqual(len(client.get("/api/risk/data-points").json()), 18)
        self.assertEqual(client.get("/api/risk/data-points", params={"category": "weather"}).status_code, 400)


class TestMatchingApi(unittest.TestCase):
    def test_rank(self):
        payload = {
            "deal": {"id": "deal-1", "dealType": "equipment_financing"},
            "asOf": "2026-06-30",
            "candidates": [
                {"candidateId": "lender-b", "relationship": {"status": "active", "startedAt": "2024-01-01"}},
                {"candidateId": "lender-a", "relationship": {"status": "preferred", "startedAt": "2024-01-01"}},
            ],
        }
        resp = client.post("/api/matching/rank", json=payload)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual([r["candidateId"] for r in resp.json()], ["lender-a", "lender-b"])

    def test_rank_applies_lender_preferences(self):
        payload = {
            "deal": {"id": "deal-2", "dealType": "equipment_financing", "amount": 250_000, "state": "NV"},
            "asOf": "2026-06-30",
            "candidates": [
                {
                    "candidateId": "lender-a",
                    "relationship": {"status": "preferred", "startedAt": "2024-01-01"},
                    "preferences": {"dealSizeRange": {"min": 500_000, "max": 2_000_000, "sweetSpot": 1_000_000}},
                },
                {
                    "candidateId": "lender-b",
                    "relationship": {"status": "active", "startedAt": "2024-01-01"},
                    "preferences": {"geographicPreferences": [{"state": "NV", "isActive": True}]},
                },
            ],
        }
        resp = client.post("/api/matching/rank", json=payload)
        self.assertEqual(resp.status_code, 200)
        ranked = resp.json()
        self.assertEqual([r["candidateId"] for r in ranked], ["lender-b", "lender-a"])
        self.assertEqual(ranked[1]["breakdown"]["preference_fit"], 0.5)


if __name__ == "__main__":
    unittest.main()
