"""
Business Day Calendar

Counts and advances business days over a weekend + holiday model.

Day counting delegates to numpy's busday functions, which take the weekend
as a weekmask and the holidays as a sorted datetime64 array. Results are the
same as walking day by day, at O(holidays) cost instead of O(days).
"""

from datetime import date, datetime
from typing import Iterable, Tuple, Union

import numpy as np

from app.calculations.errors import InvalidDateInput

DateInput = Union[date, datetime, str]

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)
DEFAULT_WEEKEND = (SATURDAY, SUNDAY)

_MIN_DAY = np.datetime64(date.min, "D")
_MAX_DAY = np.datetime64(date.max, "D")


def to_date(value: DateInput) -> date:
    """Normalize a date, datetime (date part) or ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidDateInput(f"Not an ISO date: {value!r}") from exc
    raise InvalidDateInput(f"Unsupported date type {type(value).__name__}: {value!r}")


def _from_datetime64(value: np.datetime64) -> date:
    """numpy days reach far beyond date.max; .item() would return an int there."""
    if value < _MIN_DAY or value > _MAX_DAY:
        raise InvalidDateInput(f"Resulting date {value} is outside {date.min} to {date.max}")
    return value.item()


class BusinessCalendar:
    """
    Immutable weekend + holiday calendar.

    Build one per query with the holidays that apply to it; there is no
    shared default calendar.

    Args:
        holidays: Non-business dates (timezone-naive calendar dates)
        weekend: Weekday numbers (Monday=0 ... Sunday=6) that are never
            business days. Defaults to Saturday and Sunday.
    """

    __slots__ = ("_holidays", "_weekend", "_weekmask", "_busdaycal")

    def __init__(
        self,
        holidays: Iterable[DateInput] = (),
        weekend: Iterable[int] = DEFAULT_WEEKEND,
    ):
        weekend_days = frozenset(weekend)
        invalid = [d for d in weekend_days if d not in range(7)]
        if invalid:
            raise InvalidDateInput(f"Weekend days must be 0-6, got {sorted(invalid)}")
        if len(weekend_days) == 7:
            raise InvalidDateInput("Weekend cannot cover every day of the week")

        holiday_dates = frozenset(to_date(h) for h in holidays)
        weekmask = "".join("0" if day in weekend_days else "1" for day in range(7))

        object.__setattr__(self, "_holidays", holiday_dates)
        object.__setattr__(self, "_weekend", weekend_days)
        object.__setattr__(self, "_weekmask", weekmask)
        object.__setattr__(
            self,
            "_busdaycal",
            np.busdaycalendar(
                weekmask=weekmask,
                holidays=np.array(sorted(holiday_dates), dtype="datetime64[D]"),
            ),
        )

    def __setattr__(self, name, value):
        raise AttributeError("BusinessCalendar is immutable")

    def __repr__(self) -> str:
        return (
            f"BusinessCalendar(weekend={sorted(self._weekend)}, "
            f"holidays={len(self._holidays)})"
        )

    @property
    def holidays(self) -> frozenset:
        return self._holidays

    @property
    def weekend(self) -> Tuple[int, ...]:
        return tuple(sorted(self._weekend))

    def is_business_day(self, day: DateInput) -> bool:
        """False for configured weekend days and holidays."""
        d = to_date(day)
        return d.weekday() not in self._weekend and d not in self._holidays

    def count_business_days(self, start: DateInput, end: DateInput) -> int:
        """
        Count business days in the closed interval [start, end].

        Returns 0 when end is before start. The arguments are never swapped,
        so callers wanting a signed or order-independent count must handle
        ordering themselves.

        Example:
            >>> BusinessCalendar().count_business_days("2023-04-17", "2023-04-21")
            5
        """
        start_date = to_date(start)
        end_date = to_date(end)
        if end_date < start_date:
            return 0
        return int(
            np.busday_count(
                np.datetime64(start_date, "D"),
                np.datetime64(end_date, "D") + 1,
                busdaycal=self._busdaycal,
            )
        )

    def add_business_days(self, start: DateInput, n: int) -> date:
        """
        Return the n-th business day after start.

        ``start`` itself is never counted, and it need not be a business day:
        adding 1 to a Saturday gives the following Monday. ``n == 0`` returns
        ``start`` unchanged even when it is a holiday. Negative n walks back
        the same way.

        Example:
            >>> BusinessCalendar().add_business_days("2023-04-21", 3)
            datetime.date(2023, 4, 26)
        """
        start_date = to_date(start)
        if n == 0:
            return start_date

        # Roll against the direction of travel so only business days strictly
        # beyond start are counted.
        roll = "backward" if n > 0 else "forward"
        result = np.busday_offset(
            np.datetime64(start_date, "D"),
            n,
            roll=roll,
            busdaycal=self._busdaycal,
        )
        return _from_datetime64(result)

    def next_business_day(self, day: DateInput) -> date:
        """Roll forward to a business day; a business day maps to itself."""
        d = to_date(day)
        result = np.busday_offset(
            np.datetime64(d, "D"), 0, roll="forward", busdaycal=self._busdaycal
        )
        return _from_datetime64(result)

    def previous_business_day(self, day: DateInput) -> date:
        """Roll backward to a business day; a business day maps to itself."""
        d = to_date(day)
        result = np.busday_offset(
            np.datetime64(d, "D"), 0, roll="backward", busdaycal=self._busdaycal
        )
        return _from_datetime64(result)
