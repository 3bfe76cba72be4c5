from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Callable, List, Optional

from fintrack.dates import add_months, parse_iso_date
from fintrack.models import Transaction

DEFAULT_OCCURRENCES = 6
WEEKLY_DAYS = 7
RECURRING_KEYWORDS = ("salary", "emi", "loan", "mobile", "rent", "subscription")
NO_REPEAT = "none"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecurrenceExpansion:
    source: Transaction
    instances: List[Transaction]


def should_expand(transaction: Transaction) -> bool:
    pattern = _normalize_pattern(transaction.repeat_pattern)
    if not pattern or pattern == NO_REPEAT:
        return False
    description = (transaction.description or "").lower()
    return any(keyword in description for keyword in RECURRING_KEYWORDS)


def expand_recurring_transaction(
    source: Transaction,
    occurrences: int = DEFAULT_OCCURRENCES,
    key_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    today: Optional[date] = None,
) -> RecurrenceExpansion:
    """Generate future instances of a recurring transaction.

    Repeated calls for the same source produce new instances each time;
    callers that resubmit a source must guard against duplicates themselves.
    """
    if not should_expand(source):
        return RecurrenceExpansion(source=source, instances=[])

    pattern = _normalize_pattern(source.repeat_pattern)
    start_date = parse_iso_date(source.date) or today or date.today()
    group_key = source.recurring_group_key or key_factory()
    source = replace(source, recurring_group_key=group_key)

    instances: List[Transaction] = []
    for index in range(1, occurrences + 1):
        try:
            on = occurrence_date(start_date, pattern, index)
        except (ValueError, OverflowError):
            logger.debug("Stopping expansion of %s at out-of-range occurrence %d", source.id, index)
            break
        instances.append(
            replace(
                source,
                id=None,
                date=on.isoformat(),
                repeat_pattern=None,
                parent_transaction_id=source.id,
                recurring_group_key=group_key,
                created_at=None,
            )
        )
    logger.info(
        "Expanded %s transaction %s into %d instances (group %s)",
        pattern,
        source.id,
        len(instances),
        group_key,
    )
    return RecurrenceExpansion(source=source, instances=instances)


def occurrence_date(start_date: date, pattern: str, index: int) -> date:
    if pattern == "weekly":
        return start_date + timedelta(days=WEEKLY_DAYS * index)
    if pattern == "yearly":
        return add_months(start_date, 12 * index)
    return add_months(start_date, index)


def _normalize_pattern(value: Optional[str]) -> str:
    return (value or "").strip().lower()
