from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from fintrack.amounts import ZERO, parse_amount
from fintrack.models import Bill, Income, Investment, Transaction

RECENT_LIMIT = 5
DEFAULT_BILL_CATEGORY = "Bills & Utilities"
DEFAULT_EXPENSE_CATEGORY = "Other"

T = TypeVar("T")


@dataclass(frozen=True)
class FinancialTotals:
    income_from_records: Decimal
    income_from_transactions: Decimal
    transaction_expenses: Decimal
    bill_expenses: Decimal
    total_investments: Decimal
    category_breakdown: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_income(self) -> Decimal:
        return self.income_from_records + self.income_from_transactions

    @property
    def total_expenses(self) -> Decimal:
        return self.transaction_expenses + self.bill_expenses

    @property
    def current_savings(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def current_balance(self) -> Decimal:
        return self.current_savings + self.total_investments

    @property
    def savings_rate(self) -> Decimal:
        if self.total_income <= ZERO:
            return ZERO
        return self.current_savings / self.total_income * 100


def aggregate(
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
    incomes: Iterable[Income],
    investments: Iterable[Investment],
) -> FinancialTotals:
    transactions = list(transactions)
    bills = list(bills)
    return FinancialTotals(
        income_from_records=_sum_active_income(incomes),
        income_from_transactions=_sum_transactions(transactions, "income"),
        transaction_expenses=_sum_transactions(transactions, "expense"),
        bill_expenses=_sum_bills(bills),
        total_investments=_sum_investments(investments),
        category_breakdown=category_breakdown(transactions, bills),
    )


def category_breakdown(
    transactions: Iterable[Transaction],
    bills: Iterable[Bill],
) -> Dict[str, Decimal]:
    breakdown: Dict[str, Decimal] = {}
    for txn in transactions:
        if _normalize_type(txn.type) != "expense":
            continue
        category = _category_or(txn.category, DEFAULT_EXPENSE_CATEGORY)
        breakdown[category] = breakdown.get(category, ZERO) + parse_amount(txn.amount)
    for bill in bills:
        category = _category_or(bill.category, DEFAULT_BILL_CATEGORY)
        breakdown[category] = breakdown.get(category, ZERO) + parse_amount(bill.amount)
    return breakdown


def recent_transactions(transactions: Sequence[Transaction], limit: int = RECENT_LIMIT) -> List[Transaction]:
    return _reverse_last(transactions, limit)


def recent_bills(bills: Sequence[Bill], limit: int = RECENT_LIMIT) -> List[Bill]:
    return _reverse_last(bills, limit)


def _reverse_last(records: Sequence[T], limit: int) -> List[T]:
    if limit <= 0:
        return []
    return list(reversed(list(records)[-limit:]))


def _sum_active_income(incomes: Iterable[Income]) -> Decimal:
    total = ZERO
    for income in incomes:
        if not income.is_active:
            continue
        total += parse_amount(income.amount)
    return total


def _sum_transactions(transactions: Iterable[Transaction], txn_type: str) -> Decimal:
    total = ZERO
    for txn in transactions:
        if _normalize_type(txn.type) != txn_type:
            continue
        total += parse_amount(txn.amount)
    return total


def _sum_bills(bills: Iterable[Bill]) -> Decimal:
    total = ZERO
    for bill in bills:
        total += parse_amount(bill.amount)
    return total


def _sum_investments(investments: Iterable[Investment]) -> Decimal:
    total = ZERO
    for investment in investments:
        total += parse_amount(investment.current_value)
    return total


def _normalize_type(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def _category_or(value: Optional[str], default: str) -> str:
    if value is None or not value.strip():
        return default
    return value
