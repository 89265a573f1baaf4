"""
Content hashing for idempotent change detection.

A row hash is a SHA-256 digest over the pipe-delimited rendering of an ordered
list of normalized business values. The rendering below is a stored contract:
changing it invalidates every hash already persisted in the conformed stores,
so any change must bump HASH_VERSION and trigger a rebuild.
"""

import hashlib
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable

HASH_VERSION = "sha256-pipe-v1"

NULL_SENTINEL = "\\N"
DELIMITER = "|"


def render_hash_value(value: Any) -> str:
    """
    Render a single normalized value into its canonical hash form.

    Args:
        value: A normalized business value (str, Decimal, int, date, datetime, bool or None)

    Returns:
        Canonical string representation used in the digest
    """
    if value is None:
        return NULL_SENTINEL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    text = str(value)
    # Escape so that ("a|b", "c") and ("a", "b|c") render differently
    return text.replace("\\", "\\\\").replace(DELIMITER, "\\" + DELIMITER)


def compute_row_hash(values: Iterable[Any]) -> str:
    """
    Compute the content hash over an ordered list of normalized values.

    Args:
        values: Business field values in the entity's fixed hash order.
                Audit and lineage fields must not be included.

    Returns:
        64-character hexadecimal SHA-256 digest
    """
    payload = DELIMITER.join(render_hash_value(v) for v in values)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()
