"""
Loan Amortization Calculations

Builds period-by-period amortization schedules (Excel IPMT / PPMT per row)
on top of the closed-form installment from the annuity module.

Schedule policy: the final period pays off whatever balance remains, so its
principal (and therefore its payment) absorbs any rounding drift and the last
ending balance is exactly zero. Testers should expect the final payment to
differ from earlier payments by up to a few minimal currency units.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from app.calculations.annuity import calculate_payment
from app.calculations.business_calendar import BusinessCalendar, DateInput, to_date
from app.calculations.decimal_math import (
    NumericInput,
    RoundingMode,
    decimal_sum,
    divide,
    round_to,
    to_decimal,
    to_fixed_string,
    working_context,
)
from app.calculations.errors import InvalidNumericInput, NonConvergentPeriods


class AmortizationMethod(str, Enum):
    """How principal is spread across installments."""

    EQUAL_INSTALLMENT = "equal_installment"  # level payment (annuity)
    EQUAL_PRINCIPAL = "equal_principal"  # level principal, declining payment


@dataclass(frozen=True)
class AmortizationEntry:
    """One row of an amortization schedule."""

    period: int
    payment: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    ending_balance: Decimal
    beginning_balance: Decimal
    due_date: Optional[date] = None

    def to_dict(
        self, decimal_places: int = 2, rounding: RoundingMode = RoundingMode.HALF_UP
    ) -> Dict:
        """Serialize with amounts as fixed-point strings."""
        return {
            "period": self.period,
            "date": self.due_date.isoformat() if self.due_date else None,
            "beginning_balance": to_fixed_string(self.beginning_balance, decimal_places, rounding),
            "payment": to_fixed_string(self.payment, decimal_places, rounding),
            "interest": to_fixed_string(self.interest_portion, decimal_places, rounding),
            "principal": to_fixed_string(self.principal_portion, decimal_places, rounding),
            "ending_balance": to_fixed_string(self.ending_balance, decimal_places, rounding),
        }


@dataclass(frozen=True)
class ScheduleSummary:
    """Totals over a schedule."""

    periods: int
    total_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal


class AmortizationScheduleBuilder:
    """
    Lazy, restartable amortization schedule.

    Iterating the builder yields AmortizationEntry rows computed from the
    running balance; every new iteration starts again from the principal,
    so the schedule can be regenerated from the inputs at any time.

    Args:
        principal: Loan principal amount
        rate: Interest rate per period (convert annual rates with per_period_rate)
        periods: Number of installments
        decimal_places: Round installment and interest to this many places
            (e.g. 2 for cents). None keeps full working precision.
        rounding: Rounding mode used when decimal_places is set
        method: Level installment (default) or level principal
        first_due_date: Due date of period 1; later periods follow every
            period_months months
        calendar: Roll due dates falling on non-business days forward
        period_months: Months between due dates

    Raises:
        NonConvergentPeriods: If periods <= 0
    """

    def __init__(
        self,
        principal: NumericInput,
        rate: NumericInput,
        periods: int,
        decimal_places: Optional[int] = None,
        rounding: RoundingMode = RoundingMode.HALF_UP,
        method: AmortizationMethod = AmortizationMethod.EQUAL_INSTALLMENT,
        first_due_date: Optional[DateInput] = None,
        calendar: Optional[BusinessCalendar] = None,
        period_months: int = 1,
    ):
        if isinstance(periods, bool) or int(periods) != periods:
            raise InvalidNumericInput(f"periods must be a whole number, got {periods!r}")
        if periods <= 0:
            raise NonConvergentPeriods(f"periods must be greater than zero, got {periods}")
        if period_months <= 0:
            raise NonConvergentPeriods(f"period_months must be greater than zero, got {period_months}")

        self.principal = to_decimal(principal)
        self.rate = to_decimal(rate)
        self.periods = int(periods)
        self.decimal_places = decimal_places
        self.rounding = RoundingMode.parse(rounding)
        self.method = AmortizationMethod(method)
        self.first_due_date = to_date(first_due_date) if first_due_date is not None else None
        self.calendar = calendar
        self.period_months = period_months

        if self.method is AmortizationMethod.EQUAL_INSTALLMENT:
            self.installment = self._round(
                calculate_payment(self.principal, self.rate, self.periods)
            )
            self.level_principal = None
        else:
            self.installment = None
            self.level_principal = self._round(divide(self.principal, self.periods))

    def _round(self, value: Decimal) -> Decimal:
        if self.decimal_places is None:
            return value
        return round_to(value, self.decimal_places, self.rounding)

    def due_date(self, period: int) -> Optional[date]:
        if self.first_due_date is None:
            return None
        scheduled = self.first_due_date + relativedelta(months=(period - 1) * self.period_months)
        if self.calendar is not None:
            return self.calendar.next_business_day(scheduled)
        return scheduled

    def __iter__(self) -> Iterator[AmortizationEntry]:
        balance = self.principal

        for period in range(1, self.periods + 1):
            with working_context():
                interest = self._round(balance * self.rate)

                if period == self.periods:
                    # Pay off the remainder so the schedule closes at zero
                    principal_pmt = balance
                elif self.method is AmortizationMethod.EQUAL_INSTALLMENT:
                    principal_pmt = min(self.installment - interest, balance)
                else:
                    principal_pmt = min(self.level_principal, balance)

                payment = principal_pmt + interest
                ending_balance = balance - principal_pmt

            yield AmortizationEntry(
                period=period,
                payment=payment,
                principal_portion=principal_pmt,
                interest_portion=interest,
                ending_balance=ending_balance,
                beginning_balance=balance,
                due_date=self.due_date(period),
            )

            balance = ending_balance

    def __len__(self) -> int:
        return self.periods

    def build(self) -> List[AmortizationEntry]:
        return list(self)


def build_schedule(
    principal: NumericInput,
    rate: NumericInput,
    periods: int,
    **options,
) -> List[AmortizationEntry]:
    """
    Generate a full amortization schedule.

    Args:
        principal: Loan principal amount
        rate: Interest rate per period
        periods: Number of installments
        **options: Forwarded to AmortizationScheduleBuilder

    Returns:
        List of amortization rows, period 1 first
    """
    return AmortizationScheduleBuilder(principal, rate, periods, **options).build()


def summarize(entries: Iterable[AmortizationEntry]) -> ScheduleSummary:
    """Calculate total payment, interest and principal over a schedule."""
    rows = list(entries)
    return ScheduleSummary(
        periods=len(rows),
        total_payment=decimal_sum(row.payment for row in rows),
        total_interest=decimal_sum(row.interest_portion for row in rows),
        total_principal=decimal_sum(row.principal_portion for row in rows),
    )


def calculate_total_interest(entries: Iterable[AmortizationEntry]) -> Decimal:
    """Calculate total interest paid over loan term."""
    return decimal_sum(row.interest_portion for row in entries)


def calculate_debt_service(
    entries: Iterable[AmortizationEntry], start_period: int, end_period: int
) -> Decimal:
    """Calculate total debt service (P+I) for a range of periods."""
    return decimal_sum(
        row.payment for row in entries if start_period <= row.period <= end_period
    )
