from __future__ import annotations

from dataclasses import dataclass, fields, replace
from datetime import date, datetime
from typing import Any, Mapping, Optional, TypeVar

TRANSACTION_TYPES = {"income", "expense"}
BILL_STATUSES = {"pending", "paid", "overdue"}


@dataclass(frozen=True)
class Transaction:
    owner_id: int
    amount: str
    description: str
    type: str
    date: str
    category: Optional[str] = None
    payment_method: Optional[str] = None
    context_tag: Optional[str] = None
    intent_tag: Optional[str] = None
    confidence_indicator: Optional[str] = None
    goal_impact: Optional[str] = None
    is_planned: Optional[bool] = None
    repeat_pattern: Optional[str] = None
    parent_transaction_id: Optional[int] = None
    recurring_group_key: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Bill:
    owner_id: int
    name: str
    amount: str
    due_date: str
    category: Optional[str] = None
    status: str = "pending"
    is_recurring: bool = False
    auto_pay_enabled: bool = False
    icon: Optional[str] = None
    color: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Income:
    owner_id: int
    source: str
    amount: str
    frequency: str = "monthly"
    is_active: bool = True
    id: Optional[int] = None


@dataclass(frozen=True)
class Investment:
    owner_id: int
    symbol: str
    name: str
    type: str
    shares: Optional[str] = None
    avg_cost: Optional[str] = None
    current_value: Optional[str] = None
    pf_current_company: Optional[str] = None
    pf_previous_company: Optional[str] = None
    pf_current_age: Optional[str] = None
    id: Optional[int] = None


@dataclass(frozen=True)
class Budget:
    owner_id: int
    category: str
    amount: str
    period: str = "monthly"
    spent: str = "0"
    id: Optional[int] = None


Record = TypeVar("Record", Transaction, Bill, Income, Investment, Budget)

# Fields a patch may set to None.
_NULLABLE_FIELDS = {
    Transaction: {
        "category",
        "payment_method",
        "context_tag",
        "intent_tag",
        "confidence_indicator",
        "goal_impact",
        "is_planned",
        "repeat_pattern",
        "parent_transaction_id",
        "recurring_group_key",
    },
    Bill: {"category", "icon", "color"},
    Income: set(),
    Investment: {
        "shares",
        "avg_cost",
        "current_value",
        "pf_current_company",
        "pf_previous_company",
        "pf_current_age",
    },
    Budget: set(),
}
_IMMUTABLE_FIELDS = {"id", "owner_id", "created_at"}


def apply_patch(record: Record, patch: Mapping[str, Any]) -> Record:
    """Return a copy of ``record`` with the fields named in ``patch`` replaced.

    Keys absent from ``patch`` are left unchanged. A key mapped to ``None``
    clears the field, which is only allowed for optional fields.
    """
    known = {item.name for item in fields(record)}
    nullable = _NULLABLE_FIELDS[type(record)]
    changes: dict[str, Any] = {}
    for name, value in patch.items():
        if name not in known or name in _IMMUTABLE_FIELDS:
            raise ValueError(f"Field cannot be updated: {name}")
        if value is None and name not in nullable:
            raise ValueError(f"Field cannot be cleared: {name}")
        changes[name] = value
    if not changes:
        return record
    return replace(record, **changes)


def normalize_transaction_type(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in TRANSACTION_TYPES:
        raise ValueError("Transaction type must be income or expense.")
    return normalized


def to_payload(record: Record) -> dict[str, Any]:
    """Render a record with camelCase keys, as consumed by the client."""
    payload: dict[str, Any] = {}
    for item in fields(record):
        value = getattr(record, item.name)
        if isinstance(value, (date, datetime)):
            value = value.isoformat()
        key = "userId" if item.name == "owner_id" else _camel_case(item.name)
        payload[key] = value
    return payload


def _camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)
