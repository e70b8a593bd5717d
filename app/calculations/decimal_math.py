"""
Decimal Arithmetic

Normalization, arithmetic and rounding helpers on top of ``decimal.Decimal``.

Intermediate results are computed in WORKING_CONTEXT (34 significant digits),
entered per call through ``decimal.localcontext``. The thread's default context
is never modified, and rounding to a currency precision only happens when
``round_to`` is called with an explicit RoundingMode.
"""

import decimal
import re
from decimal import Decimal, localcontext
from enum import Enum
from typing import Iterable, Tuple, Union

from app.calculations.errors import DivisionByZero, InvalidNumericInput

NumericInput = Union[int, float, str, Decimal]

WORKING_PRECISION = 34

WORKING_CONTEXT = decimal.Context(
    prec=WORKING_PRECISION,
    rounding=decimal.ROUND_HALF_EVEN,
    Emin=-999999,
    Emax=999999,
    traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
)

ZERO = Decimal(0)
ONE = Decimal(1)

_NUMBER_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")


class RoundingMode(Enum):
    """Rounding policies accepted by round_to."""

    HALF_UP = decimal.ROUND_HALF_UP
    HALF_DOWN = decimal.ROUND_HALF_DOWN
    HALF_EVEN = decimal.ROUND_HALF_EVEN
    UP = decimal.ROUND_UP
    DOWN = decimal.ROUND_DOWN
    FLOOR = decimal.ROUND_FLOOR
    CEILING = decimal.ROUND_CEILING

    @classmethod
    def parse(cls, value: Union["RoundingMode", str]) -> "RoundingMode":
        """Accept a member or its name (case-insensitive)."""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            raise InvalidNumericInput(f"Unknown rounding mode: {value!r}") from None


def working_context():
    """Scoped copy of WORKING_CONTEXT for multi-step formulas."""
    return localcontext(WORKING_CONTEXT)


def to_decimal(value: NumericInput) -> Decimal:
    """
    Normalize a caller-supplied number into a Decimal.

    Floats go through their shortest repr, so 0.1 becomes Decimal("0.1")
    rather than the binary expansion of the float.

    Args:
        value: int, float, numeric string (exponent notation allowed) or Decimal

    Returns:
        Finite Decimal value

    Raises:
        InvalidNumericInput: If the value is not a finite base-10 number
    """
    if isinstance(value, bool):
        raise InvalidNumericInput(f"Boolean is not a numeric value: {value!r}")

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        result = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not _NUMBER_PATTERN.match(text):
            raise InvalidNumericInput(f"Not a base-10 number: {value!r}")
        result = Decimal(text)
    else:
        raise InvalidNumericInput(
            f"Unsupported numeric type {type(value).__name__}: {value!r}"
        )

    if not result.is_finite():
        raise InvalidNumericInput(f"Value must be finite: {value!r}")
    return result


def add(a: NumericInput, b: NumericInput) -> Decimal:
    with working_context():
        return to_decimal(a) + to_decimal(b)


def subtract(a: NumericInput, b: NumericInput) -> Decimal:
    with working_context():
        return to_decimal(a) - to_decimal(b)


def multiply(a: NumericInput, b: NumericInput) -> Decimal:
    with working_context():
        return to_decimal(a) * to_decimal(b)


def divide(numerator: NumericInput, denominator: NumericInput) -> Decimal:
    """
    Divide at working precision.

    Raises:
        DivisionByZero: If the denominator is zero
    """
    num = to_decimal(numerator)
    den = to_decimal(denominator)
    if den.is_zero():
        raise DivisionByZero(f"Cannot divide {num} by zero")
    with working_context():
        return num / den


def power(base: NumericInput, exponent: NumericInput) -> Decimal:
    """
    Raise base to an integer or fractional exponent at working precision.

    Raises:
        DivisionByZero: Zero raised to a negative exponent
        InvalidNumericInput: Negative base with a fractional exponent,
            or a result outside the representable range
    """
    b = to_decimal(base)
    e = to_decimal(exponent)

    if e.is_zero():
        return ONE
    if b.is_zero() and e < 0:
        raise DivisionByZero(f"Zero cannot be raised to negative power {e}")
    if b < 0 and e != e.to_integral_value():
        raise InvalidNumericInput(
            f"Negative base {b} with fractional exponent {e} has no real result"
        )

    try:
        with working_context():
            return b ** e
    except (decimal.InvalidOperation, decimal.Overflow) as exc:
        raise InvalidNumericInput(f"Cannot compute {b} ** {e}: {exc!r}") from exc


def absolute(value: NumericInput) -> Decimal:
    return abs(to_decimal(value))


def compare(a: NumericInput, b: NumericInput) -> int:
    """Return -1, 0 or 1 as a is less than, equal to or greater than b."""
    return int(to_decimal(a).compare(to_decimal(b)))


def decimal_sum(values: Iterable[NumericInput]) -> Decimal:
    total = ZERO
    with working_context():
        for value in values:
            total += to_decimal(value)
    return total


def round_to(
    value: NumericInput,
    decimal_places: int,
    mode: RoundingMode = RoundingMode.HALF_UP,
) -> Decimal:
    """
    Round to a fixed number of decimal places.

    The rounding mode applies to this call only.

    Examples:
        >>> round_to("1.2345", 2)
        Decimal('1.23')
        >>> round_to("1.2345", 2, RoundingMode.UP)
        Decimal('1.24')
        >>> round_to("-1.5", 0, RoundingMode.HALF_EVEN)
        Decimal('-2')
    """
    d = to_decimal(value)
    quantum = ONE.scaleb(-decimal_places, context=WORKING_CONTEXT)
    try:
        result = d.quantize(quantum, rounding=mode.value, context=WORKING_CONTEXT)
    except decimal.InvalidOperation as exc:
        raise InvalidNumericInput(
            f"Cannot round {d} to {decimal_places} places: exceeds working precision"
        ) from exc
    if result.is_zero():
        # Drop the sign of negative zero
        result = abs(result)
    return result


def to_fixed_string(
    value: NumericInput,
    decimal_places: int,
    mode: RoundingMode = RoundingMode.HALF_UP,
) -> str:
    """Canonical fixed-point string for JSON/SQL (never exponent notation)."""
    return format(round_to(value, decimal_places, mode), "f")


def to_float(value: NumericInput) -> float:
    """Float approximation for display only; never feed it back into math."""
    return float(to_decimal(value))


def as_ratio(value: NumericInput) -> Tuple[int, int]:
    """
    Express a value in [0, 1] as a reduced fraction.

    Examples:
        >>> as_ratio("0.75")
        (3, 4)
        >>> as_ratio("0.666")
        (333, 500)
    """
    d = to_decimal(value)
    if d < 0 or d > 1:
        raise InvalidNumericInput(f"Ratio value must be between 0 and 1, got {d}")
    if d.is_zero():
        return 0, 1
    return d.as_integer_ratio()
