"""
Annuity and Interest Calculations

Closed-form time-value-of-money formulas: simple and compound interest,
present/future value, annuities, loan installments (Excel PMT) and remaining
balances.

Rate and period arguments are always per period. Convert an annual rate with
per_period_rate (and a percentage with percent_to_rate) before calling; none of
these functions divide by 12 or by 100 on the caller's behalf.

Results are unrounded Decimals. Round with decimal_math.round_to at the point
where a currency precision is needed.
"""

from datetime import date
from decimal import Decimal

from app.calculations.decimal_math import (
    ONE,
    ZERO,
    NumericInput,
    divide,
    power,
    to_decimal,
    working_context,
)
from app.calculations.business_calendar import DateInput, to_date
from app.calculations.errors import DivisionByZero, NonConvergentPeriods

DEFAULT_DAYS_IN_YEAR = 365


def _require_positive_periods(periods: Decimal, name: str = "periods") -> None:
    if periods <= 0:
        raise NonConvergentPeriods(f"{name} must be greater than zero, got {periods}")


def _growth_factor(rate: Decimal, periods: Decimal) -> Decimal:
    """(1 + rate) ** periods"""
    with working_context():
        base = ONE + rate
    return power(base, periods)


# ============================================================================
# RATE CONVERSION
# ============================================================================


def percent_to_rate(percent: NumericInput) -> Decimal:
    """Convert a percentage (5 for 5%) to a decimal rate (0.05)."""
    return divide(percent, 100)


def per_period_rate(annual_rate: NumericInput, periods_per_year: NumericInput) -> Decimal:
    """
    Convert a nominal annual rate to a per-period rate.

    Args:
        annual_rate: Nominal annual rate as decimal (0.05 for 5%)
        periods_per_year: Payment or compounding periods per year (12 = monthly)

    Returns:
        annual_rate / periods_per_year

    Example:
        >>> per_period_rate("0.06", 12)
        Decimal('0.005')
    """
    m = to_decimal(periods_per_year)
    _require_positive_periods(m, "periods_per_year")
    return divide(annual_rate, m)


def calculate_effective_annual_rate(
    nominal_rate: NumericInput, compounding_periods_per_year: NumericInput
) -> Decimal:
    """
    Effective annual rate of a nominal rate compounded m times a year.

    (1 + nominal / m) ** m - 1

    Example:
        >>> round_to(calculate_effective_annual_rate("0.05", 12), 5)
        Decimal('0.05116')
    """
    r = to_decimal(nominal_rate)
    m = to_decimal(compounding_periods_per_year)
    _require_positive_periods(m, "compounding_periods_per_year")
    with working_context():
        return power(ONE + r / m, m) - ONE


def daily_rate(annual_rate: NumericInput, days_in_year: int = DEFAULT_DAYS_IN_YEAR) -> Decimal:
    """Simple daily rate for day-count accrual (annual_rate / days_in_year)."""
    if days_in_year <= 0:
        raise NonConvergentPeriods(f"days_in_year must be greater than zero, got {days_in_year}")
    return divide(annual_rate, days_in_year)


# ============================================================================
# INTEREST
# ============================================================================


def calculate_simple_interest(
    principal: NumericInput, rate: NumericInput, time: NumericInput
) -> Decimal:
    """principal * rate * time, with rate and time in the same units."""
    p = to_decimal(principal)
    r = to_decimal(rate)
    t = to_decimal(time)
    with working_context():
        return p * r * t


def calculate_compound_amount(
    principal: NumericInput,
    rate: NumericInput,
    time: NumericInput,
    compounding_periods_per_time: NumericInput = 1,
) -> Decimal:
    """
    Total amount after compound interest.

    principal * (1 + rate / n) ** (n * time)

    Args:
        principal: Starting amount
        rate: Interest rate per unit of time
        time: Number of time units
        compounding_periods_per_time: Compounding periods per unit of time

    Example:
        >>> calculate_compound_amount(1000, "0.05", 1)
        Decimal('1050.00')
    """
    p = to_decimal(principal)
    r = to_decimal(rate)
    t = to_decimal(time)
    n = to_decimal(compounding_periods_per_time)
    _require_positive_periods(n, "compounding_periods_per_time")
    with working_context():
        factor = _growth_factor(r / n, n * t)
        return p * factor


def accrued_interest(
    balance: NumericInput,
    annual_rate: NumericInput,
    start: DateInput,
    end: DateInput,
    days_in_year: int = DEFAULT_DAYS_IN_YEAR,
) -> Decimal:
    """
    Simple interest on a balance over the actual days in [start, end).

    Returns zero when end is not after start.
    """
    start_date: date = to_date(start)
    end_date: date = to_date(end)
    days = (end_date - start_date).days
    if days <= 0:
        return ZERO
    return calculate_simple_interest(balance, daily_rate(annual_rate, days_in_year), days)


# ============================================================================
# PRESENT / FUTURE VALUE
# ============================================================================


def calculate_present_value(
    future_value: NumericInput, rate: NumericInput, periods: NumericInput
) -> Decimal:
    """
    Discount a single future amount: future_value / (1 + rate) ** periods

    Raises:
        DivisionByZero: If rate is -1
    """
    fv = to_decimal(future_value)
    r = to_decimal(rate)
    n = to_decimal(periods)
    if r == -ONE:
        raise DivisionByZero("Discount rate of -1 makes the discount factor zero")
    return divide(fv, _growth_factor(r, n))


def calculate_future_value(
    principal: NumericInput, rate: NumericInput, periods: NumericInput
) -> Decimal:
    """Compound a single amount: principal * (1 + rate) ** periods"""
    p = to_decimal(principal)
    r = to_decimal(rate)
    n = to_decimal(periods)
    with working_context():
        return p * _growth_factor(r, n)


def calculate_annuity_future_value(
    payment: NumericInput, rate: NumericInput, periods: NumericInput
) -> Decimal:
    """
    Future value of a level payment stream (payments at period end).

    payment * ((1 + rate) ** periods - 1) / rate, or payment * periods at 0%.

    Example:
        >>> round_to(calculate_annuity_future_value(100, "0.05", 12), 2)
        Decimal('1591.71')
    """
    pmt = to_decimal(payment)
    r = to_decimal(rate)
    n = to_decimal(periods)
    with working_context():
        if r.is_zero():
            return pmt * n
        return pmt * (_growth_factor(r, n) - ONE) / r


def calculate_annuity_present_value(
    payment: NumericInput, rate: NumericInput, periods: NumericInput
) -> Decimal:
    """
    Present value of a level payment stream (payments at period end).

    payment * (1 - (1 + rate) ** -periods) / rate, or payment * periods at 0%.
    """
    pmt = to_decimal(payment)
    r = to_decimal(rate)
    n = to_decimal(periods)
    if r.is_zero():
        with working_context():
            return pmt * n
    if r == -ONE:
        raise DivisionByZero("Discount rate of -1 makes the discount factor zero")
    with working_context():
        return pmt * (ONE - _growth_factor(r, -n)) / r


# ============================================================================
# LOANS
# ============================================================================


def calculate_payment(
    principal: NumericInput, rate: NumericInput, periods: NumericInput
) -> Decimal:
    """
    Calculate the level installment that amortizes a loan.

    Matches Excel's PMT() (sign flipped to positive).

    Args:
        principal: Loan principal amount
        rate: Interest rate per period (0.05 / 12 for 5% annual, monthly)
        periods: Number of installments

    Returns:
        Installment per period

    Raises:
        NonConvergentPeriods: If periods <= 0

    Example:
        >>> round_to(calculate_payment(1000, per_period_rate("0.05", 12), 12), 2)
        Decimal('85.61')
    """
    p = to_decimal(principal)
    r = to_decimal(rate)
    n = to_decimal(periods)
    _require_positive_periods(n)

    if r.is_zero():
        return divide(p, n)

    with working_context():
        factor = _growth_factor(r, n)
        denominator = factor - ONE
        if denominator.is_zero():
            raise DivisionByZero(f"Rate {r} makes the annuity factor zero")
        return p * r * factor / denominator


def calculate_remaining_balance(
    principal: NumericInput,
    rate: NumericInput,
    periods: NumericInput,
    payments_made: NumericInput,
) -> Decimal:
    """
    Remaining balance after a number of level installments.

    installment * ((1 + rate) ** (periods - payments_made) - 1) / rate

    This is the accumulated (future) value of the installments still due,
    not their present value, so it is larger than the outstanding principal
    of a schedule; use calculate_annuity_present_value on the installment
    for the latter. It is zero once every installment has been paid, and
    at 0% it prorates the principal linearly.

    Args:
        principal: Original loan principal
        rate: Interest rate per period
        periods: Total number of installments
        payments_made: Installments already paid

    Raises:
        NonConvergentPeriods: If periods <= 0

    Example:
        >>> round_to(calculate_remaining_balance(1000, "0.05", 12, 6), 2)
        Decimal('767.43')
    """
    p = to_decimal(principal)
    r = to_decimal(rate)
    n = to_decimal(periods)
    m = to_decimal(payments_made)
    _require_positive_periods(n)

    if m >= n:
        return ZERO

    if r.is_zero():
        with working_context():
            return p * (n - m) / n

    installment = calculate_payment(p, r, n)
    with working_context():
        return installment * (_growth_factor(r, n - m) - ONE) / r
