"""
Deep conversion of wide integers in query results to plain ints.

Database drivers hand back BIGINT / NUMERIC(p, 0) identifiers and integer
aggregates (SUM, COUNT_BIG) as decimal.Decimal. Those values do not
serialize as JSON numbers and break arithmetic with floats, so results are
walked once before they leave an operation.

Assumption: every wide integer is an auto-increment identifier or a count,
well inside the range a JSON client can represent exactly. No range check
is performed.

Result values are trees (no cycles); cycle detection is not attempted.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from sqlalchemy.engine import Row


def is_wide_integer(value: Any) -> bool:
    """
    True for a finite Decimal of scale 0, the shape integer columns come back in.

    Fixed-point values (NUMERIC(10, 2) -> Decimal("12.00")) keep their scale
    and are not wide integers, even when their value is integral.
    """
    return (
        isinstance(value, Decimal)
        and value.is_finite()
        and value.as_tuple().exponent >= 0
    )


def numberify(value: Any) -> Any:
    """
    Return `value` with every wide integer replaced by an int.

    - Decimal of scale 0 -> int
    - date/datetime/time -> returned as-is (same object)
    - Mapping (dict, RowMapping) -> new dict
    - Row -> dict keyed by column name
    - list -> new list, tuple -> new tuple
    - anything else -> returned as-is

    Normalizing an already normalized value is a no-op.
    """
    if value is None:
        return None
    if is_wide_integer(value):
        return int(value)
    if isinstance(value, (datetime, date, time)):
        return value
    if isinstance(value, (str, bytes, bool, int, float, Decimal)):
        return value
    if isinstance(value, Row):
        return {key: numberify(item) for key, item in value._mapping.items()}
    if isinstance(value, Mapping):
        return {key: numberify(item) for key, item in value.items()}
    if isinstance(value, list):
        return [numberify(item) for item in value]
    if isinstance(value, tuple):
        return tuple(numberify(item) for item in value)
    return value
