import os
import unittest

os.environ["DATABASE_URL"] = "sqlite://"

from fastapi.testclient import TestClient

from fintrack.main import app, engine
from fintrack.storage import metadata


class ApiTests(unittest.TestCase):
    def setUp(self) -> None:
        metadata.drop_all(engine)
        self.client = TestClient(app)
        self.client.__enter__()
        self.owner = self._signup("owner@example.com")
        self.other = self._signup("other@example.com")

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)

    def _signup(self, email: str) -> dict:
        response = self.client.post("/auth/signup", json={"email": email, "password": "secret"})
        self.assertEqual(response.status_code, 200)
        return {"x-user-id": str(response.json()["id"])}

    def test_login_checks_password(self) -> None:
        ok = self.client.post("/auth/login", json={"email": "owner@example.com", "password": "secret"})
        bad = self.client.post("/auth/login", json={"email": "owner@example.com", "password": "nope"})
        duplicate = self.client.post("/auth/signup", json={"email": "owner@example.com", "password": "x"})

        self.assertEqual(ok.status_code, 200)
        self.assertEqual(bad.status_code, 401)
        self.assertEqual(duplicate.status_code, 409)

    def test_requires_user_identity(self) -> None:
        self.assertEqual(self.client.get("/transactions").status_code, 401)
        self.assertEqual(self.client.get("/transactions", headers={"x-user-id": "abc"}).status_code, 400)
        self.assertEqual(self.client.get("/transactions", headers={"x-user-id": "999"}).status_code, 404)

    def test_recurring_transaction_is_enriched_and_expanded(self) -> None:
        response = self.client.post(
            "/transactions",
            headers=self.owner,
            json={
                "amount": 1500,
                "description": "Monthly Rent",
                "type": "Expense",
                "date": "2024-01-15",
                "repeatPattern": "monthly",
            },
        )

        self.assertEqual(response.status_code, 200)
        source = response.json()
        self.assertEqual(source["amount"], "1500")
        self.assertEqual(source["type"], "expense")
        self.assertEqual(source["category"], "Housing")
        self.assertEqual(source["intentTag"], "Necessary")
        self.assertIsNotNone(source["recurringGroupKey"])

        listed = self.client.get("/transactions", headers=self.owner).json()
        instances = [txn for txn in listed if txn["parentTransactionId"] == source["id"]]
        self.assertEqual(len(listed), 7)
        self.assertEqual(len(instances), 6)
        self.assertEqual(instances[0]["date"], "2024-02-15")
        self.assertEqual({txn["recurringGroupKey"] for txn in listed}, {source["recurringGroupKey"]})

    def test_rejects_unknown_transaction_type(self) -> None:
        response = self.client.post(
            "/transactions",
            headers=self.owner,
            json={"amount": "5", "description": "x", "type": "transfer", "date": "2024-01-01"},
        )

        self.assertEqual(response.status_code, 400)

    def test_dashboard_rolls_recurring_bills_once(self) -> None:
        self.client.post(
            "/bills",
            headers=self.owner,
            json={
                "name": "Internet",
                "amount": "45.00",
                "dueDate": "2024-12-25",
                "isRecurring": True,
                "autoPayEnabled": True,
            },
        )

        first = self.client.get("/dashboard", headers=self.owner)
        self.client.get("/dashboard", headers=self.owner)

        self.assertEqual(first.status_code, 200)
        bills = self.client.get("/bills", headers=self.owner).json()
        january = [bill for bill in bills if bill["dueDate"] == "2025-01-25"]
        self.assertEqual(len(january), 1)
        self.assertEqual(january[0]["status"], "paid")
        self.assertIn("savingsRate", first.json())
        self.assertIn("recentBills", first.json())

    def test_dashboard_survives_out_of_range_records(self) -> None:
        self.client.post(
            "/bills",
            headers=self.owner,
            json={"name": "Lease", "amount": "10", "dueDate": "9999-12-25", "isRecurring": True},
        )
        self.client.post("/incomes", headers=self.owner, json={"source": "Lottery", "amount": "1e1000000"})

        response = self.client.get("/dashboard", headers=self.owner)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["monthlyIncome"], 0.0)
        self.assertEqual(len(self.client.get("/bills", headers=self.owner).json()), 1)

    def test_partial_update_and_ownership(self) -> None:
        created = self.client.post(
            "/bills",
            headers=self.owner,
            json={"name": "Gym", "amount": "30", "dueDate": "2024-05-01", "icon": "dumbbell"},
        ).json()
        url = f"/bills/{created['id']}"

        cleared = self.client.put(url, headers=self.owner, json={"icon": None, "amount": 35})
        self.assertEqual(cleared.status_code, 200)
        self.assertIsNone(cleared.json()["icon"])
        self.assertEqual(cleared.json()["amount"], "35")
        self.assertEqual(cleared.json()["name"], "Gym")

        self.assertEqual(self.client.put(url, headers=self.owner, json={"name": None}).status_code, 400)
        self.assertEqual(self.client.put(url, headers=self.other, json={"name": "x"}).status_code, 403)
        self.assertEqual(self.client.delete(url, headers=self.other).status_code, 403)
        self.assertEqual(self.client.put("/bills/999", headers=self.owner, json={}).status_code, 404)
        self.assertEqual(self.client.delete(url, headers=self.owner).status_code, 200)
        self.assertEqual(self.client.get("/bills", headers=self.owner).json(), [])

    def test_projection_endpoints(self) -> None:
        self.client.post("/incomes", headers=self.owner, json={"source": "Salary", "amount": "5000"})
        self.client.post(
            "/investments",
            headers=self.owner,
            json={
                "symbol": "EPF",
                "name": "Provident fund",
                "type": "pf",
                "currentValue": "100000",
                "pfCurrentAge": 35,
            },
        )
        self.client.post("/budgets", headers=self.owner, json={"category": "Food & Dining", "amount": "400"})

        savings = self.client.get("/savings-projection", headers=self.owner).json()
        net_worth = self.client.get("/net-worth-projection", headers=self.owner).json()
        insights = self.client.get("/insights", headers=self.owner).json()
        budgets = self.client.get("/budgets", headers=self.owner).json()

        self.assertEqual(savings["pfInferredCurrentAge"], 35.0)
        self.assertEqual(set(savings["pfRetirementProjection"]), {"age50", "age55", "age60"})
        self.assertEqual(set(net_worth["futureNetWorth"]), {"oneYear", "fiveYears", "tenYears"})
        self.assertEqual(insights["totalIncome"], 5000.0)
        self.assertEqual(budgets[0]["spent"], "0")


if __name__ == "__main__":
    unittest.main()
