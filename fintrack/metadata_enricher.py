"""
Transaction metadata enrichment.

Derives a category, context tag, intent tag, confidence indicator and
goal-impact narrative for a transaction from its description, amount, date
and type. Each tag is produced by an ordered rule table where the first
matching rule wins, so individual rules can be tested and reordered on their
own.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence

from fintrack.amounts import parse_amount
from fintrack.dates import days_in_month, parse_iso_date
from fintrack.models import Transaction

HEALTHCARE_KEYWORDS = (
    "hospital",
    "clinic",
    "pharmacy",
    "doctor",
    "medical",
    "medicine",
    "dental",
    "health",
    "apollo",
)
SHOPPING_KEYWORDS = ("amazon", "flipkart", "myntra", "mall", "shopping", "ajio", "meesho")
FOOD_KEYWORDS = (
    "food",
    "cafe",
    "restaurant",
    "pizza",
    "burger",
    "coffee",
    "swiggy",
    "zomato",
    "dinner",
    "lunch",
)
HOUSING_KEYWORDS = ("rent", "home")
INCOME_KEYWORDS = ("salary", "bonus")

NECESSARY_CATEGORIES = {"Healthcare", "Housing", "Bills & Utilities"}
FOOD_DINING_LIMIT = Decimal("150")
FALLBACK_CATEGORY = "Other"
IMPULSE_SPEND = "Impulse Spend"

INCOME_GOAL_IMPACT = "Boosts your savings goals and strengthens your emergency fund."
EXPENSE_GOAL_IMPACT = (
    "Delays your emergency fund goal by {days} day(s) and raises your "
    "monthly burn rate by {percent}%."
)


@dataclass(frozen=True)
class TransactionFacts:
    description: str
    amount: Decimal
    date: date
    type: str
    category: Optional[str] = None

    @property
    def is_income(self) -> bool:
        return self.type == "income"


@dataclass(frozen=True)
class TagRule:
    label: str
    matches: Callable[[TransactionFacts], bool]


@dataclass(frozen=True)
class TransactionTags:
    category: str
    context_tag: str
    intent_tag: str
    confidence_indicator: str
    goal_impact: str
    is_planned: bool


def _mentions(*keywords: str) -> Callable[[TransactionFacts], bool]:
    return lambda facts: any(keyword in facts.description for keyword in keywords)


def _always(facts: TransactionFacts) -> bool:
    return True


def _is_food(facts: TransactionFacts) -> bool:
    return _mentions(*FOOD_KEYWORDS)(facts)


def _is_weekend(facts: TransactionFacts) -> bool:
    return facts.date.weekday() >= 5


def _is_month_end_risk(facts: TransactionFacts) -> bool:
    return facts.date.day >= days_in_month(facts.date) - 2 and facts.amount > Decimal("1500")


CATEGORY_RULES: Sequence[TagRule] = (
    TagRule("Healthcare", _mentions(*HEALTHCARE_KEYWORDS)),
    TagRule("Shopping", _mentions(*SHOPPING_KEYWORDS)),
    TagRule("Food & Dining", lambda f: _is_food(f) and f.amount <= FOOD_DINING_LIMIT),
    TagRule("Entertainment", lambda f: _is_food(f) and f.amount > FOOD_DINING_LIMIT),
    TagRule("Housing", _mentions(*HOUSING_KEYWORDS)),
    TagRule("Income", _mentions(*INCOME_KEYWORDS)),
    TagRule(FALLBACK_CATEGORY, _always),
)

CONTEXT_RULES: Sequence[TagRule] = (
    TagRule("Planned Income", lambda f: f.is_income),
    TagRule("High Impact Spend", lambda f: f.amount >= Decimal("3000")),
    TagRule("Weekend Spend", _is_weekend),
    TagRule("Month-end Spend", lambda f: f.date.day > 25),
    TagRule("Planned Essential", lambda f: f.amount > Decimal("500")),
    TagRule(IMPULSE_SPEND, _always),
)

INTENT_RULES: Sequence[TagRule] = (
    TagRule("Investment in self", lambda f: f.is_income),
    TagRule("Necessary", lambda f: f.category in NECESSARY_CATEGORIES),
    TagRule("Convenience tax", lambda f: f.amount > Decimal("2000")),
    TagRule("Optional", _always),
)

CONFIDENCE_RULES: Sequence[TagRule] = (
    TagRule("Healthy", lambda f: f.is_income),
    TagRule("Risky", _is_month_end_risk),
    TagRule("Risky", lambda f: f.amount > Decimal("3000")),
    TagRule("Neutral", lambda f: f.amount > Decimal("1000")),
    TagRule("Healthy", _always),
)


def first_match(rules: Sequence[TagRule], facts: TransactionFacts) -> str:
    for rule in rules:
        if rule.matches(facts):
            return rule.label
    raise ValueError("Rule table has no fallback rule.")


def infer_category(description: str, amount: Decimal) -> str:
    facts = TransactionFacts(
        description=description.lower(),
        amount=amount,
        date=date.min,
        type="expense",
    )
    return first_match(CATEGORY_RULES, facts)


def goal_impact(facts: TransactionFacts) -> str:
    if facts.is_income:
        return INCOME_GOAL_IMPACT
    days = max(1, _round_half_up(facts.amount / Decimal("1000")))
    percent = max(1, _round_half_up(facts.amount / Decimal("50000") * 100))
    return EXPENSE_GOAL_IMPACT.format(days=days, percent=percent)


def derive_tags(
    description: str,
    amount: Decimal,
    on: date,
    transaction_type: str,
    category: Optional[str] = None,
) -> TransactionTags:
    """Derive every tag for one transaction; a pure function of its inputs."""
    normalized_type = transaction_type.strip().lower()
    if not category or category.strip() == FALLBACK_CATEGORY:
        category = infer_category(description or "", amount)
    facts = TransactionFacts(
        description=(description or "").lower(),
        amount=amount,
        date=on,
        type=normalized_type,
        category=category,
    )
    context_tag = first_match(CONTEXT_RULES, facts)
    return TransactionTags(
        category=category,
        context_tag=context_tag,
        intent_tag=first_match(INTENT_RULES, facts),
        confidence_indicator=first_match(CONFIDENCE_RULES, facts),
        goal_impact=goal_impact(facts),
        is_planned=context_tag != IMPULSE_SPEND,
    )


def enrich_transaction(transaction: Transaction, today: Optional[date] = None) -> Transaction:
    """Fill the derived fields the caller left empty.

    An unparseable date is replaced by ``today`` before tagging.
    """
    on = parse_iso_date(transaction.date)
    changes: dict = {}
    if on is None:
        on = today or date.today()
        changes["date"] = on.isoformat()

    tags = derive_tags(
        transaction.description,
        parse_amount(transaction.amount),
        on,
        transaction.type,
        transaction.category,
    )
    if _is_blank(transaction.category) or transaction.category.strip() == FALLBACK_CATEGORY:
        changes["category"] = tags.category
    if _is_blank(transaction.context_tag):
        changes["context_tag"] = tags.context_tag
    if _is_blank(transaction.intent_tag):
        changes["intent_tag"] = tags.intent_tag
    if _is_blank(transaction.confidence_indicator):
        changes["confidence_indicator"] = tags.confidence_indicator
    if _is_blank(transaction.goal_impact):
        changes["goal_impact"] = tags.goal_impact
    if transaction.is_planned is None:
        context_tag = changes.get("context_tag", transaction.context_tag)
        changes["is_planned"] = context_tag != IMPULSE_SPEND
    return replace(transaction, **changes)


def _round_half_up(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not value.strip()
