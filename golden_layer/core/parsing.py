"""
Fallible parsers and string normalizers for raw source values.

Raw records carry strings only. Every parser here returns None on failure
instead of raising, so a malformed value surfaces later as a named quality
rule failure rather than aborting the batch.
"""

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d", "%m/%d/%Y", "%d-%b-%Y", "%Y%m%d")

BIGINT_MIN = -(2**63)
BIGINT_MAX = 2**63 - 1


def trim(value: str | None) -> str | None:
    """Strip surrounding whitespace, keeping None."""
    if value is None:
        return None
    return value.strip()


def blank_to_none(value: str | None) -> str | None:
    """Trim and turn empty strings into None."""
    value = trim(value)
    return value or None


def upper_code(value: str | None) -> str | None:
    """Trim, upper-case and turn empty strings into None."""
    value = blank_to_none(value)
    return value.upper() if value is not None else None


def try_parse_date(value: str | None) -> date | None:
    """
    Parse a date from the formats sources are known to send.

    Args:
        value: Raw date string

    Returns:
        Parsed date, or None when empty or unparseable
    """
    value = blank_to_none(value)
    if value is None:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue

    # Timestamps are accepted for date columns; the time part is dropped
    parsed = try_parse_datetime(value)
    return parsed.date() if parsed is not None else None


def try_parse_datetime(value: str | None) -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Args:
        value: Raw timestamp string ("2025-01-15T10:30:00Z", "2025-01-15 10:30:00")

    Returns:
        Parsed datetime, or None when empty or unparseable
    """
    value = blank_to_none(value)
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def try_parse_decimal(value: str | None, precision: int = 18, scale: int = 2) -> Decimal | None:
    """
    Parse a fixed-point decimal and round it to the column scale.

    Values whose integer part does not fit in (precision - scale) digits are
    rejected, as are NaN and infinities.

    Args:
        value: Raw numeric string
        precision: Total number of significant digits allowed
        scale: Digits kept after the decimal point

    Returns:
        Quantized Decimal, or None when empty, unparseable or out of range
    """
    value = blank_to_none(value)
    if value is None:
        return None
    if "_" in value:
        return None
    try:
        number = Decimal(value)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None

    try:
        quantized = number.quantize(Decimal(1).scaleb(-scale), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None
    integer_digits = len(str(abs(int(quantized)))) if abs(quantized) >= 1 else 0
    if integer_digits > precision - scale:
        return None
    return quantized


def try_parse_int(value: str | None) -> int | None:
    """
    Parse a signed 64-bit integer.

    Args:
        value: Raw integer string

    Returns:
        Parsed int, or None when empty, unparseable or outside BIGINT range
    """
    value = blank_to_none(value)
    if value is None:
        return None
    if "_" in value:
        return None
    try:
        number = int(value)
    except ValueError:
        return None
    if number < BIGINT_MIN or number > BIGINT_MAX:
        return None
    return number
