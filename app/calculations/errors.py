"""
Calculation Errors

Typed failures raised by the calculation engine. Every error derives from
ValueError so existing ``except ValueError`` handlers keep working, and each
class carries a ``kind`` string callers can branch on or serialize.
"""

from typing import Optional


class CalculationError(ValueError):
    """Base class for all recoverable calculation failures."""

    kind = "CalculationError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.kind, "message": self.message}


class InvalidNumericInput(CalculationError):
    """Input could not be interpreted as a base-10 number."""

    kind = "InvalidNumericInput"


class InvalidDateInput(CalculationError):
    """Input could not be interpreted as a calendar date."""

    kind = "InvalidDateInput"


class DivisionByZero(CalculationError, ZeroDivisionError):
    """A formula divided by zero (including a discount rate of -1)."""

    kind = "DivisionByZero"


class NonConvergentPeriods(CalculationError):
    """Period count (or compounding frequency) is zero or negative."""

    kind = "NonConvergentPeriods"


class NoSignChange(CalculationError):
    """Cash flows never change sign, so no real IRR exists."""

    kind = "NoSignChange"


class IrrNotConverged(CalculationError):
    """Newton-Raphson search failed to find a root."""

    kind = "IrrNotConverged"

    def __init__(
        self,
        message: str,
        iterations: int = 0,
        last_rate: Optional[object] = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        # Diagnostic only, never a usable result
        self.last_rate = last_rate
