"""
Financial calculation API endpoints.

These endpoints accept numbers (or decimal strings, for values beyond float
precision) and return results as fixed-point decimal strings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.calculations import amortization, annuity, irr
from app.calculations.business_calendar import BusinessCalendar
from app.calculations.decimal_math import to_decimal, to_fixed_string
from app.calculations.errors import CalculationError
from app.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter()

Numeric = Union[int, float, str]


def _amount(value: Decimal) -> str:
    return to_fixed_string(value, settings.output_decimal_places, settings.rounding_mode)


def _rate(value: Decimal) -> str:
    return to_fixed_string(value, settings.rate_decimal_places, settings.rounding_mode)


def _bad_request(exc: CalculationError) -> HTTPException:
    logger.warning("Rejected calculation request: %s (%s)", exc.message, exc.kind)
    return HTTPException(status_code=400, detail=exc.to_dict())


class RateInput(BaseModel):
    """
    Rate with optional frequency.

    Without periods_per_year the rate is already per period. With it, the
    rate is a nominal annual rate and is divided by periods_per_year here,
    before any formula sees it.
    """

    rate: Numeric
    periods_per_year: Optional[int] = None

    def per_period(self) -> Decimal:
        if self.periods_per_year is None:
            return to_decimal(self.rate)
        return annuity.per_period_rate(self.rate, self.periods_per_year)


class ValueResponse(BaseModel):
    """Single calculated amount."""

    value: str


class RateResponse(BaseModel):
    """Single calculated rate."""

    rate: str


class PaymentInput(RateInput):
    """Input for installment calculation."""

    principal: Numeric
    periods: Numeric


@router.post("/payment", response_model=ValueResponse)
async def calculate_payment_endpoint(inputs: PaymentInput):
    """Level installment that amortizes a loan (Excel PMT)."""
    try:
        value = annuity.calculate_payment(inputs.principal, inputs.per_period(), inputs.periods)
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class RemainingBalanceInput(PaymentInput):
    """Input for remaining balance calculation."""

    payments_made: Numeric


@router.post("/remaining-balance", response_model=ValueResponse)
async def calculate_remaining_balance_endpoint(inputs: RemainingBalanceInput):
    """Outstanding principal after a number of installments."""
    try:
        value = annuity.calculate_remaining_balance(
            inputs.principal, inputs.per_period(), inputs.periods, inputs.payments_made
        )
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class PresentValueInput(RateInput):
    """Input for discounting a single amount."""

    future_value: Numeric
    periods: Numeric


@router.post("/present-value", response_model=ValueResponse)
async def calculate_present_value_endpoint(inputs: PresentValueInput):
    try:
        value = annuity.calculate_present_value(
            inputs.future_value, inputs.per_period(), inputs.periods
        )
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class FutureValueInput(RateInput):
    """Input for compounding a single amount."""

    principal: Numeric
    periods: Numeric


@router.post("/future-value", response_model=ValueResponse)
async def calculate_future_value_endpoint(inputs: FutureValueInput):
    try:
        value = annuity.calculate_future_value(inputs.principal, inputs.per_period(), inputs.periods)
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class AnnuityFutureValueInput(RateInput):
    """Input for the future value of a payment stream."""

    payment: Numeric
    periods: Numeric


@router.post("/annuity-future-value", response_model=ValueResponse)
async def calculate_annuity_future_value_endpoint(inputs: AnnuityFutureValueInput):
    try:
        value = annuity.calculate_annuity_future_value(
            inputs.payment, inputs.per_period(), inputs.periods
        )
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class SimpleInterestInput(BaseModel):
    """Input for simple interest."""

    principal: Numeric
    rate: Numeric
    time: Numeric


@router.post("/simple-interest", response_model=ValueResponse)
async def calculate_simple_interest_endpoint(inputs: SimpleInterestInput):
    try:
        value = annuity.calculate_simple_interest(inputs.principal, inputs.rate, inputs.time)
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class CompoundInput(BaseModel):
    """Input for compound amount."""

    principal: Numeric
    rate: Numeric
    time: Numeric
    compounding_periods_per_time: Numeric = 1


@router.post("/compound", response_model=ValueResponse)
async def calculate_compound_endpoint(inputs: CompoundInput):
    try:
        value = annuity.calculate_compound_amount(
            inputs.principal, inputs.rate, inputs.time, inputs.compounding_periods_per_time
        )
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class EffectiveRateInput(BaseModel):
    """Input for effective annual rate."""

    nominal_rate: Numeric
    compounding_periods_per_year: Numeric


@router.post("/effective-rate", response_model=RateResponse)
async def calculate_effective_rate_endpoint(inputs: EffectiveRateInput):
    try:
        value = annuity.calculate_effective_annual_rate(
            inputs.nominal_rate, inputs.compounding_periods_per_year
        )
    except CalculationError as e:
        raise _bad_request(e)
    return RateResponse(rate=_rate(value))


class NPVInput(BaseModel):
    """Input for NPV calculation."""

    cash_flows: List[Numeric]
    rate: Numeric
    dates: Optional[List[date]] = None


@router.post("/npv", response_model=ValueResponse)
async def calculate_npv_endpoint(inputs: NPVInput):
    """NPV of periodic flows, or XNPV when dates are supplied."""
    try:
        if inputs.dates:
            value = irr.calculate_xnpv(inputs.cash_flows, inputs.dates, inputs.rate)
        else:
            value = irr.calculate_npv(inputs.cash_flows, inputs.rate)
    except CalculationError as e:
        raise _bad_request(e)
    return ValueResponse(value=_amount(value))


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[Numeric]
    dates: Optional[List[date]] = None
    guess: Numeric = "0.1"


class IRRResponse(BaseModel):
    """Response with IRR calculation."""

    irr: str
    npv_at_irr: str


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for given cash flows (XIRR when dates are supplied)."""
    try:
        if inputs.dates:
            irr_val = irr.calculate_xirr(
                inputs.cash_flows,
                inputs.dates,
                guess=inputs.guess,
                max_iterations=settings.irr_max_iterations,
                tolerance=settings.irr_tolerance,
            )
            residual = irr.calculate_xnpv(inputs.cash_flows, inputs.dates, irr_val)
        else:
            irr_val = irr.calculate_irr(
                inputs.cash_flows,
                guess=inputs.guess,
                max_iterations=settings.irr_max_iterations,
                tolerance=settings.irr_tolerance,
            )
            residual = irr.calculate_npv(inputs.cash_flows, irr_val)
    except CalculationError as e:
        raise _bad_request(e)

    return IRRResponse(irr=_rate(irr_val), npv_at_irr=_amount(residual))


class AmortizationInput(RateInput):
    """Input for amortization calculation."""

    principal: Numeric
    periods: int
    method: amortization.AmortizationMethod = amortization.AmortizationMethod.EQUAL_INSTALLMENT
    first_due_date: Optional[date] = None
    holidays: List[date] = []


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate loan amortization schedule."""
    try:
        calendar = BusinessCalendar(inputs.holidays) if inputs.first_due_date else None
        builder = amortization.AmortizationScheduleBuilder(
            principal=inputs.principal,
            rate=inputs.per_period(),
            periods=inputs.periods,
            decimal_places=settings.output_decimal_places,
            rounding=settings.rounding_mode,
            method=inputs.method,
            first_due_date=inputs.first_due_date,
            calendar=calendar,
        )
        schedule = builder.build()
    except CalculationError as e:
        raise _bad_request(e)

    summary = amortization.summarize(schedule)

    return {
        "schedule": [
            row.to_dict(settings.output_decimal_places, settings.rounding_mode)
            for row in schedule
        ],
        "total_payment": _amount(summary.total_payment),
        "total_interest": _amount(summary.total_interest),
        "total_principal": _amount(summary.total_principal),
    }
