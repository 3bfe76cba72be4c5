import unittest

from fintrack.models import Bill, Income, Investment, Transaction
from fintrack.reports import (
    build_dashboard,
    build_insights,
    build_net_worth_projection,
    build_savings_projection,
)


class ReportTests(unittest.TestCase):
    def setUp(self) -> None:
        self.transactions = [
            Transaction(
                owner_id=1,
                amount="400",
                description="Cafe Mocha",
                type="expense",
                date="2024-05-01",
                category="Food & Dining",
                id=1,
            ),
            Transaction(
                owner_id=1,
                amount="1000",
                description="Bonus",
                type="income",
                date="2024-05-02",
                category="Income",
                id=2,
            ),
        ]
        self.bills = [
            Bill(owner_id=1, name="Rent", amount="1000", due_date="2024-05-05", status="pending", id=1),
            Bill(owner_id=1, name="Phone", amount="100", due_date="2024-05-06", status="paid", id=2),
        ]
        self.incomes = [Income(owner_id=1, source="Salary", amount="3000")]
        self.investments = [
            Investment(owner_id=1, symbol="AAPL", name="Apple", type="stock", current_value="1000"),
            Investment(
                owner_id=1,
                symbol="EPF",
                name="Provident fund",
                type="pf",
                current_value="2000",
                pf_current_age="40",
            ),
        ]

    def test_dashboard_fields(self) -> None:
        dashboard = build_dashboard(self.transactions, self.bills, self.incomes, self.investments)

        self.assertEqual(dashboard["monthlyIncome"], 4000.0)
        self.assertEqual(dashboard["monthlyExpenses"], 1500.0)
        self.assertEqual(dashboard["incomeFromRecords"], 3000.0)
        self.assertEqual(dashboard["incomeFromTransactions"], 1000.0)
        self.assertEqual(dashboard["transactionExpenses"], 400.0)
        self.assertEqual(dashboard["billExpenses"], 1100.0)
        self.assertEqual(dashboard["totalInvestments"], 3000.0)
        self.assertEqual(dashboard["totalBalance"], 5500.0)
        self.assertEqual(dashboard["savingsRate"], 62.5)
        self.assertEqual(
            dashboard["categoryBreakdown"],
            {"Food & Dining": 400.0, "Bills & Utilities": 1100.0},
        )
        self.assertEqual([txn["id"] for txn in dashboard["recentTransactions"]], [2, 1])
        self.assertEqual([bill["id"] for bill in dashboard["recentBills"]], [2, 1])
        self.assertEqual(dashboard["recentBills"][0]["dueDate"], "2024-05-06")

    def test_insights(self) -> None:
        insights = build_insights(self.transactions, self.bills, self.incomes, self.investments)

        self.assertEqual(insights["currentSavingsRate"], 62.5)
        self.assertEqual(insights["projectedMonthlySavings"], 2500.0)
        self.assertEqual(insights["projectedAnnualSavings"], 30000.0)
        self.assertEqual(insights["recommendedInvestmentAmount"], 750.0)
        self.assertEqual(insights["totalExpenses"], 1500.0)
        self.assertIn("Bills & Utilities accounts for 73% of your spending", insights["insights"])
        self.assertTrue(insights["investmentRecommendations"])

    def test_insights_for_empty_user(self) -> None:
        insights = build_insights([], [], [], [])

        self.assertEqual(insights["currentSavingsRate"], 0.0)
        self.assertEqual(insights["recommendedInvestmentAmount"], 0.0)
        self.assertEqual(insights["insights"], ["Add your income sources to track your savings rate"])

    def test_savings_projection(self) -> None:
        projection = build_savings_projection(self.transactions, self.bills, self.incomes, self.investments)

        self.assertEqual(set(projection["futureNetWorth"]), {"oneYear", "fiveYears", "tenYears"})
        self.assertAlmostEqual(projection["futureWealth"]["oneYear"], 1120 + 2165 + 30000, places=6)
        self.assertEqual(projection["futureNetWorth"], projection["futureWealth"])
        self.assertEqual(projection["pfInterestRate"], 8.25)
        self.assertEqual(projection["pfPrincipal"], 2000.0)
        self.assertEqual(projection["pfInferredCurrentAge"], 40.0)
        self.assertEqual(set(projection["pfRetirementProjection"]), {"age50", "age55", "age60"})
        self.assertAlmostEqual(projection["pfRetirementProjection"]["age50"], 2000 * 1.0825**10, places=4)

    def test_net_worth_projection_subtracts_unpaid_bills(self) -> None:
        projection = build_net_worth_projection(self.transactions, self.bills, self.incomes, self.investments)

        self.assertEqual(projection["currentAssets"], 5500.0)
        self.assertEqual(projection["currentDebts"], 1000.0)
        self.assertEqual(projection["monthlyDebtObligation"], 1000.0)
        self.assertAlmostEqual(
            projection["futureNetWorth"]["oneYear"],
            1120 + 2165 + 30000 - 12000,
            places=6,
        )
        self.assertEqual(projection["projectedNetWorth"], projection["futureNetWorth"])


if __name__ == "__main__":
    unittest.main()
