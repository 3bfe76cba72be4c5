from __future__ import annotations

import logging
import re
from decimal import Decimal, InvalidOperation

ZERO = Decimal("0")
# Amounts at or above 10**MAX_EXPONENT are treated as malformed.
MAX_EXPONENT = 100

_CURRENCY_CHARS = re.compile(r"[$€£¥,]")
_DECIMAL_LITERAL = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")

logger = logging.getLogger(__name__)


def parse_amount(value: Decimal | int | float | str | None) -> Decimal:
    """Parse a currency-formatted amount, degrading to zero on bad input."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return _within_range(value, value)
    if isinstance(value, bool):
        return ZERO
    if isinstance(value, (int, float)):
        value = str(value)

    cleaned = _CURRENCY_CHARS.sub("", value).strip()
    if not cleaned:
        return ZERO
    if not _DECIMAL_LITERAL.fullmatch(cleaned):
        logger.debug("Unparseable amount %r treated as zero", value)
        return ZERO
    try:
        parsed = Decimal(cleaned)
    except InvalidOperation:
        logger.debug("Unparseable amount %r treated as zero", value)
        return ZERO
    return _within_range(parsed, value)


def format_amount(amount: Decimal) -> str:
    return format(amount, "f")


def _within_range(parsed: Decimal, raw: object) -> Decimal:
    if not parsed.is_finite() or parsed.adjusted() >= MAX_EXPONENT:
        logger.debug("Out-of-range amount %r treated as zero", raw)
        return ZERO
    return parsed
