from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Callable, Iterable, List, Optional, Set

from fintrack.amounts import parse_amount
from fintrack.dates import add_months, parse_iso_date
from fintrack.models import Bill

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CycleKey:
    name: str
    category: Optional[str]
    amount: Decimal
    due_date: str


def roll_bill_cycles(
    owner_id: int,
    bills: Iterable[Bill],
    save: Callable[[Bill], Bill],
) -> List[Bill]:
    """Insert the next-cycle bill for every recurring bill that lacks one.

    Each source bill yields at most one new bill per call. A bill is skipped
    when one with the same name, category, amount and next due date already
    exists for the owner. Returns the saved bills.
    """
    snapshot = [bill for bill in bills if bill.owner_id == owner_id]
    existing_keys: Set[CycleKey] = {_cycle_key(bill, bill.due_date) for bill in snapshot}

    created: List[Bill] = []
    for source in snapshot:
        if not source.is_recurring:
            continue
        due_date = parse_iso_date(source.due_date)
        if due_date is None:
            logger.debug("Skipping bill %s with unparseable due date %r", source.id, source.due_date)
            continue

        try:
            next_due_date = next_cycle_due_date(due_date).isoformat()
        except (ValueError, OverflowError):
            logger.debug("Skipping bill %s whose next cycle is out of range", source.id)
            continue
        key = _cycle_key(source, next_due_date)
        if key in existing_keys:
            continue

        saved = save(next_cycle_bill(source, next_due_date))
        existing_keys.add(key)
        created.append(saved)
        logger.info(
            "Rolled bill %r for user %s forward to %s", source.name, owner_id, next_due_date
        )
    return created


def next_cycle_due_date(due_date: date) -> date:
    return add_months(due_date, 1)


def next_cycle_bill(source: Bill, next_due_date: str) -> Bill:
    return Bill(
        owner_id=source.owner_id,
        name=source.name,
        amount=source.amount,
        category=source.category,
        due_date=next_due_date,
        status="paid" if source.auto_pay_enabled else "pending",
        is_recurring=True,
        auto_pay_enabled=source.auto_pay_enabled,
        icon=source.icon,
        color=source.color,
    )


def _cycle_key(bill: Bill, due_date: str) -> CycleKey:
    return CycleKey(
        name=bill.name,
        category=bill.category,
        amount=parse_amount(bill.amount),
        due_date=due_date,
    )
