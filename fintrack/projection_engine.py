"""
Forward projections of wealth, net worth and provident-fund balances.

Investments compound annually at a per-asset-class expected return; savings
accumulate linearly. Every projection is evaluated for the same horizons so
the read models stay comparable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Optional

from fintrack.amounts import ZERO, parse_amount
from fintrack.models import Bill, Investment

ANNUAL_RETURN_RATES: Dict[str, Decimal] = {
    "pf": Decimal("0.0825"),
    "fd": Decimal("0.068"),
    "bond": Decimal("0.068"),
    "mutual-fund": Decimal("0.11"),
    "etf": Decimal("0.11"),
    "stock": Decimal("0.12"),
    "real-estate": Decimal("0.09"),
    "crypto": Decimal("0.15"),
}
DEFAULT_ANNUAL_RETURN = Decimal("0.08")

PF_TYPE = "pf"
PF_INTEREST_RATE = ANNUAL_RETURN_RATES[PF_TYPE]
PF_DEFAULT_AGE = Decimal("30")
RETIREMENT_AGES = (50, 55, 60)

HORIZONS: Dict[str, int] = {"oneYear": 1, "fiveYears": 5, "tenYears": 10}
MONTHS_PER_YEAR = 12


@dataclass(frozen=True)
class PfRetirementProjection:
    principal: Decimal
    current_company_total: Decimal
    previous_company_total: Decimal
    inferred_current_age: Decimal
    projections: Dict[int, Decimal] = field(default_factory=dict)


def normalize_asset_type(value: Optional[str]) -> str:
    normalized = (value or "").strip().lower()
    return normalized.replace("_", "-").replace(" ", "-")


def annual_return_rate(asset_type: Optional[str]) -> Decimal:
    return ANNUAL_RETURN_RATES.get(normalize_asset_type(asset_type), DEFAULT_ANNUAL_RETURN)


def project_investment_value(investment: Investment, years: int) -> Decimal:
    rate = annual_return_rate(investment.type)
    return parse_amount(investment.current_value) * (1 + rate) ** years


def project_wealth(
    investments: Iterable[Investment],
    monthly_savings: Decimal,
    years: int,
) -> Decimal:
    compounded = sum(
        (project_investment_value(investment, years) for investment in investments),
        ZERO,
    )
    return compounded + monthly_savings * MONTHS_PER_YEAR * years


def project_net_worth(
    investments: Iterable[Investment],
    monthly_savings: Decimal,
    monthly_debt: Decimal,
    years: int,
) -> Decimal:
    wealth = project_wealth(investments, monthly_savings, years)
    return wealth - monthly_debt * MONTHS_PER_YEAR * years


def monthly_debt_obligation(bills: Iterable[Bill]) -> Decimal:
    total = ZERO
    for bill in bills:
        if (bill.status or "").strip().lower() == "paid":
            continue
        total += parse_amount(bill.amount)
    return total


def project_horizons(projector: Callable[[int], Decimal]) -> Dict[str, Decimal]:
    return {label: projector(years) for label, years in HORIZONS.items()}


def project_pf_retirement(investments: Iterable[Investment]) -> PfRetirementProjection:
    pf_investments: List[Investment] = [
        investment
        for investment in investments
        if normalize_asset_type(investment.type) == PF_TYPE
    ]

    current_total = ZERO
    current_company_total = ZERO
    previous_company_total = ZERO
    weighted_age_sum = ZERO
    for investment in pf_investments:
        value = parse_amount(investment.current_value)
        current_total += value
        current_company_total += parse_amount(investment.pf_current_company)
        previous_company_total += parse_amount(investment.pf_previous_company)
        weighted_age_sum += value * parse_amount(investment.pf_current_age)

    principal = current_total + current_company_total + previous_company_total
    inferred_age = weighted_age_sum / current_total if current_total > ZERO else PF_DEFAULT_AGE

    projections: Dict[int, Decimal] = {}
    for retirement_age in RETIREMENT_AGES:
        years = max(ZERO, retirement_age - inferred_age)
        projections[retirement_age] = principal * (1 + PF_INTEREST_RATE) ** years

    return PfRetirementProjection(
        principal=principal,
        current_company_total=current_company_total,
        previous_company_total=previous_company_total,
        inferred_current_age=inferred_age,
        projections=projections,
    )
