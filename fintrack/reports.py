"""Read models returned by the dashboard and insight endpoints."""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from fintrack.aggregator import FinancialTotals, aggregate, recent_bills, recent_transactions
from fintrack.amounts import ZERO
from fintrack.models import Bill, Income, Investment, Transaction, to_payload
from fintrack.projection_engine import (
    PF_INTEREST_RATE,
    monthly_debt_obligation,
    project_horizons,
    project_net_worth,
    project_pf_retirement,
    project_wealth,
)

RECOMMENDED_INVESTMENT_SHARE = Decimal("0.3")
EMERGENCY_FUND_MONTHS = 6

INVESTMENT_RECOMMENDATIONS = [
    "Consider increasing your provident fund contribution",
    "Diversify your investment portfolio across asset classes",
    "Look into index funds for long-term growth",
]


def build_dashboard(
    transactions: Sequence[Transaction],
    bills: Sequence[Bill],
    incomes: Iterable[Income],
    investments: Iterable[Investment],
) -> Dict[str, Any]:
    totals = aggregate(transactions, bills, incomes, investments)
    return {
        "totalBalance": _number(totals.current_balance),
        "monthlyIncome": _number(totals.total_income),
        "monthlyExpenses": _number(totals.total_expenses),
        "incomeFromRecords": _number(totals.income_from_records),
        "incomeFromTransactions": _number(totals.income_from_transactions),
        "transactionExpenses": _number(totals.transaction_expenses),
        "billExpenses": _number(totals.bill_expenses),
        "savingsRate": _number(totals.savings_rate),
        "categoryBreakdown": _numbers(totals.category_breakdown),
        "totalInvestments": _number(totals.total_investments),
        "recentTransactions": [to_payload(txn) for txn in recent_transactions(transactions)],
        "recentBills": [to_payload(bill) for bill in recent_bills(bills)],
    }


def build_insights(
    transactions: Sequence[Transaction],
    bills: Sequence[Bill],
    incomes: Iterable[Income],
    investments: Iterable[Investment],
) -> Dict[str, Any]:
    totals = aggregate(transactions, bills, incomes, investments)
    savings = totals.current_savings
    return {
        "currentSavingsRate": _number(totals.savings_rate),
        "projectedMonthlySavings": _number(savings),
        "projectedAnnualSavings": _number(savings * 12),
        "recommendedInvestmentAmount": _number(max(ZERO, savings * RECOMMENDED_INVESTMENT_SHARE)),
        **_income_and_expense_fields(totals),
        "insights": spending_insights(totals),
        "investmentRecommendations": list(INVESTMENT_RECOMMENDATIONS),
    }


def build_savings_projection(
    transactions: Sequence[Transaction],
    bills: Sequence[Bill],
    incomes: Iterable[Income],
    investments: Iterable[Investment],
) -> Dict[str, Any]:
    investments = list(investments)
    totals = aggregate(transactions, bills, incomes, investments)
    savings = totals.current_savings
    pf = project_pf_retirement(investments)
    wealth = project_horizons(lambda years: project_wealth(investments, savings, years))
    return {
        "currentSavings": _number(savings),
        "projectedMonthlySavings": _number(savings),
        "projectedAnnualSavings": _number(savings * 12),
        "totalInvestments": _number(totals.total_investments),
        **_income_and_expense_fields(totals),
        "futureWealth": _numbers(wealth),
        "futureNetWorth": _numbers(wealth),
        "pfInterestRate": _number(PF_INTEREST_RATE * 100),
        "pfPrincipal": _number(pf.principal),
        "pfCurrentCompanyTotal": _number(pf.current_company_total),
        "pfPreviousCompanyTotal": _number(pf.previous_company_total),
        "pfInferredCurrentAge": _number(pf.inferred_current_age),
        "pfRetirementProjection": {
            f"age{age}": _number(amount) for age, amount in pf.projections.items()
        },
    }


def build_net_worth_projection(
    transactions: Sequence[Transaction],
    bills: Sequence[Bill],
    incomes: Iterable[Income],
    investments: Iterable[Investment],
) -> Dict[str, Any]:
    investments = list(investments)
    totals = aggregate(transactions, bills, incomes, investments)
    savings = totals.current_savings
    monthly_debt = monthly_debt_obligation(bills)
    net_worth = _numbers(
        project_horizons(
            lambda years: project_net_worth(investments, savings, monthly_debt, years)
        )
    )
    return {
        "currentAssets": _number(totals.current_balance),
        "currentDebts": _number(monthly_debt),
        "currentSavingsRate": _number(totals.savings_rate),
        **_income_and_expense_fields(totals),
        "currentSavings": _number(savings),
        "monthlyDebtObligation": _number(monthly_debt),
        "projectedNetWorth": net_worth,
        "futureNetWorth": dict(net_worth),
    }


def spending_insights(totals: FinancialTotals) -> List[str]:
    messages: List[str] = []
    total_expenses = totals.total_expenses
    if total_expenses > ZERO and totals.category_breakdown:
        category, amount = max(totals.category_breakdown.items(), key=lambda item: item[1])
        share = round(amount / total_expenses * 100)
        messages.append(f"{category} accounts for {share}% of your spending")

    rate = totals.savings_rate
    if totals.total_income <= ZERO:
        messages.append("Add your income sources to track your savings rate")
    elif rate < 10:
        messages.append("Your savings rate is below 10%; review optional spending")
    elif rate < 30:
        messages.append("Consider setting up automatic savings transfers")
    else:
        messages.append("Great job! You are saving more than 30% of your income")

    if total_expenses > ZERO:
        covered = totals.current_balance / total_expenses
        if covered < EMERGENCY_FUND_MONTHS:
            messages.append("Your emergency fund should cover 3-6 months of expenses")
    return messages


def _income_and_expense_fields(totals: FinancialTotals) -> Dict[str, float]:
    return {
        "totalIncome": _number(totals.total_income),
        "incomeFromRecords": _number(totals.income_from_records),
        "incomeFromTransactions": _number(totals.income_from_transactions),
        "totalExpenses": _number(totals.total_expenses),
        "transactionExpenses": _number(totals.transaction_expenses),
        "billExpenses": _number(totals.bill_expenses),
    }


def _number(value: Decimal) -> float:
    return float(value)


def _numbers(values: Mapping[str, Decimal]) -> Dict[str, float]:
    return {key: _number(value) for key, value in values.items()}
