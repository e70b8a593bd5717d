"""
Financial Calculation Engine

Time-value-of-money formulas, NPV/IRR, amortization schedules and
business-day arithmetic. Every function is pure: precision, rounding mode
and calendar are passed in, never read from shared state.
"""

from app.calculations import (
    amortization,
    annuity,
    business_calendar,
    decimal_math,
    errors,
    irr,
)

__all__ = ["amortization", "annuity", "business_calendar", "decimal_math", "errors", "irr"]
