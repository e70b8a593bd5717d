"""
IRR and NPV Calculations

Implements IRR using Newton-Raphson method, matching Excel's IRR/XIRR functions.

All arithmetic is Decimal at working precision, so repeated NPV evaluation
does not accumulate float error. A search that fails to converge raises
IrrNotConverged; there is no best-effort fallback value.
"""

from decimal import Decimal
from typing import Callable, List, Sequence

from app.calculations.business_calendar import DateInput, to_date
from app.calculations.decimal_math import (
    ONE,
    ZERO,
    NumericInput,
    power,
    to_decimal,
    working_context,
)
from app.calculations.errors import (
    DivisionByZero,
    InvalidNumericInput,
    IrrNotConverged,
    NoSignChange,
)

MAX_ITERATIONS = 100
TOLERANCE = Decimal("1e-10")
DEFAULT_GUESS = Decimal("0.1")
DAYS_PER_YEAR = Decimal(365)


def _to_flows(cash_flows: Sequence[NumericInput]) -> List[Decimal]:
    return [to_decimal(cf) for cf in cash_flows]


def _discount_base(rate: NumericInput) -> Decimal:
    r = to_decimal(rate)
    if r == -ONE:
        raise DivisionByZero("Discount rate of -1 makes every discount factor zero")
    with working_context():
        return ONE + r


def _require_sign_change(flows: List[Decimal]) -> None:
    if len(flows) < 2:
        raise NoSignChange("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in flows)
    has_negative = any(cf < 0 for cf in flows)

    if not has_positive or not has_negative:
        raise NoSignChange("Cash flows must contain both positive and negative values")


def calculate_npv(cash_flows: Sequence[NumericInput], rate: NumericInput) -> Decimal:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Cash flows for periods 0..n (negative = outflow, positive = inflow)
        rate: Discount rate per period (e.g., 0.10 for 10%)

    Returns:
        Sum of cash_flows[t] / (1 + rate) ** t

    Raises:
        DivisionByZero: If rate is -1
    """
    base = _discount_base(rate)
    npv = ZERO
    with working_context():
        for period, cf in enumerate(_to_flows(cash_flows)):
            npv += cf / power(base, period)
    return npv


def npv_derivative(cash_flows: Sequence[NumericInput], rate: NumericInput) -> Decimal:
    """d(NPV)/d(rate) = -sum(t * cash_flows[t] / (1 + rate) ** (t + 1))"""
    base = _discount_base(rate)
    dnpv = ZERO
    with working_context():
        for period, cf in enumerate(_to_flows(cash_flows)):
            if period == 0:
                continue
            dnpv -= (period * cf) / power(base, period + 1)
    return dnpv


def _newton_raphson(
    func: Callable[[Decimal], Decimal],
    derivative: Callable[[Decimal], Decimal],
    guess: NumericInput,
    max_iterations: int,
    tolerance: NumericInput,
) -> Decimal:
    """Find a root of func, raising IrrNotConverged instead of guessing."""
    tol = to_decimal(tolerance)
    if tol <= 0:
        raise InvalidNumericInput(f"tolerance must be positive, got {tol}")
    if max_iterations < 1:
        raise InvalidNumericInput(f"max_iterations must be at least 1, got {max_iterations}")

    rate = to_decimal(guess)
    if rate <= -ONE:
        raise InvalidNumericInput(f"guess must be greater than -1, got {rate}")

    for iteration in range(1, max_iterations + 1):
        value = func(rate)
        if abs(value) < tol:
            return rate

        slope = derivative(rate)
        if abs(slope) < tol:
            raise IrrNotConverged(
                "IRR calculation failed: derivative too small",
                iterations=iteration,
                last_rate=rate,
            )

        with working_context():
            new_rate = rate - value / slope

        if new_rate <= -ONE:
            raise IrrNotConverged(
                f"IRR calculation diverged to rate {new_rate}",
                iterations=iteration,
                last_rate=new_rate,
            )

        with working_context():
            step = abs(new_rate - rate)
        if step < tol:
            return new_rate

        rate = new_rate

    raise IrrNotConverged(
        f"IRR calculation did not converge after {max_iterations} iterations",
        iterations=max_iterations,
        last_rate=rate,
    )


def calculate_irr(
    cash_flows: Sequence[NumericInput],
    guess: NumericInput = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: NumericInput = TOLERANCE,
) -> Decimal:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Matches Excel's IRR() function behavior for periodic cash flows.

    Args:
        cash_flows: Periodic cash flows, period 0 first
        guess: Initial guess for rate (default 0.1 = 10%)
        max_iterations: Upper bound on Newton steps
        tolerance: Stop when |NPV| or the rate step falls below this

    Returns:
        Per-period IRR as decimal (e.g., 0.15 for 15%)

    Raises:
        NoSignChange: If the flows are all inflows or all outflows
        IrrNotConverged: If the search stalls, diverges or runs out of iterations

    Example:
        >>> round_to(calculate_irr([-1000, 300, 400, 500]), 4)
        Decimal('0.0890')
    """
    flows = _to_flows(cash_flows)
    _require_sign_change(flows)

    return _newton_raphson(
        lambda rate: calculate_npv(flows, rate),
        lambda rate: npv_derivative(flows, rate),
        guess,
        max_iterations,
        tolerance,
    )


def _year_fractions(dates: Sequence[DateInput]) -> List[Decimal]:
    normalized = [to_date(d) for d in dates]
    base_date = normalized[0]
    with working_context():
        return [Decimal((d - base_date).days) / DAYS_PER_YEAR for d in normalized]


def _check_dated_flows(cash_flows: Sequence[NumericInput], dates: Sequence[DateInput]) -> None:
    if len(cash_flows) != len(dates):
        raise InvalidNumericInput("Cash flows and dates arrays must have same length")
    if not cash_flows:
        raise InvalidNumericInput("At least one dated cash flow required")


def calculate_xnpv(
    cash_flows: Sequence[NumericInput],
    dates: Sequence[DateInput],
    discount_rate: NumericInput,
) -> Decimal:
    """Calculate XNPV (NPV with specific dates, actual/365 from the first date)."""
    _check_dated_flows(cash_flows, dates)
    base = _discount_base(discount_rate)
    years = _year_fractions(dates)

    xnpv = ZERO
    with working_context():
        for cf, t in zip(_to_flows(cash_flows), years):
            xnpv += cf / power(base, t)
    return xnpv


def _xnpv_derivative(
    flows: List[Decimal], years: List[Decimal], rate: Decimal
) -> Decimal:
    base = _discount_base(rate)
    dxnpv = ZERO
    with working_context():
        for cf, t in zip(flows, years):
            dxnpv -= (t * cf) / power(base, t + ONE)
    return dxnpv


def calculate_xirr(
    cash_flows: Sequence[NumericInput],
    dates: Sequence[DateInput],
    guess: NumericInput = DEFAULT_GUESS,
    max_iterations: int = MAX_ITERATIONS,
    tolerance: NumericInput = TOLERANCE,
) -> Decimal:
    """
    Calculate XIRR (IRR with specific dates).

    Matches Excel's XIRR() function behavior for irregular cash flows.

    Returns:
        Annual IRR as decimal

    Raises:
        InvalidNumericInput: If cash flows and dates differ in length
        NoSignChange: If the flows are all inflows or all outflows
        IrrNotConverged: If the search does not converge
    """
    _check_dated_flows(cash_flows, dates)
    flows = _to_flows(cash_flows)
    _require_sign_change(flows)
    years = _year_fractions(dates)

    return _newton_raphson(
        lambda rate: calculate_xnpv(flows, dates, rate),
        lambda rate: _xnpv_derivative(flows, years, rate),
        guess,
        max_iterations,
        tolerance,
    )


def monthly_to_annual_rate(monthly_rate: NumericInput) -> Decimal:
    """Compound a monthly rate (e.g. a monthly IRR) to an annual one."""
    with working_context():
        return power(ONE + to_decimal(monthly_rate), 12) - ONE


def annual_to_monthly_rate(annual_rate: NumericInput) -> Decimal:
    """Convert an annual rate to the equivalent compounded monthly rate."""
    with working_context():
        return power(ONE + to_decimal(annual_rate), Decimal(1) / Decimal(12)) - ONE
