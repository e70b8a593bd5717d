"""
Business-day calendar API endpoints.

Each request carries its own holiday list; no calendar is stored server-side.
"""

import logging
from datetime import date
from typing import List

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from app.calculations.business_calendar import DEFAULT_WEEKEND, BusinessCalendar
from app.calculations.errors import CalculationError

logger = logging.getLogger(__name__)

router = APIRouter()


class CalendarInput(BaseModel):
    """Holiday and weekend definition shared by calendar requests."""

    holidays: List[date] = []
    weekend: List[int] = list(DEFAULT_WEEKEND)

    def calendar(self) -> BusinessCalendar:
        return BusinessCalendar(self.holidays, self.weekend)


class CountInput(CalendarInput):
    start: date
    end: date


class AddInput(CalendarInput):
    start: date
    days: int


class CheckInput(CalendarInput):
    day: date


def _bad_request(exc: CalculationError) -> HTTPException:
    logger.warning("Rejected calendar request: %s (%s)", exc.message, exc.kind)
    return HTTPException(status_code=400, detail=exc.to_dict())


@router.post("/business-days/count")
async def count_business_days(inputs: CountInput):
    """Business days in [start, end]; 0 when end is before start."""
    try:
        count = inputs.calendar().count_business_days(inputs.start, inputs.end)
    except CalculationError as e:
        raise _bad_request(e)
    return {"business_days": count}


@router.post("/business-days/add")
async def add_business_days(inputs: AddInput):
    """Date reached after moving the given number of business days."""
    try:
        result = inputs.calendar().add_business_days(inputs.start, inputs.days)
    except CalculationError as e:
        raise _bad_request(e)
    return {"date": result.isoformat()}


@router.post("/business-days/check")
async def check_business_day(inputs: CheckInput):
    try:
        is_business_day = inputs.calendar().is_business_day(inputs.day)
    except CalculationError as e:
        raise _bad_request(e)
    return {"date": inputs.day.isoformat(), "is_business_day": is_business_day}
