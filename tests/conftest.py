"""
Pytest configuration and shared fixtures.
"""

import os
import sys
from datetime import date

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.calculations.business_calendar import BusinessCalendar


@pytest.fixture
def weekend_calendar():
    """Saturday/Sunday weekend, no holidays."""
    return BusinessCalendar()


@pytest.fixture
def holiday_calendar():
    """Saturday/Sunday weekend with a few 2023 US market holidays."""
    return BusinessCalendar(
        holidays=[
            date(2023, 1, 2),
            date(2023, 4, 7),
            date(2023, 7, 4),
            date(2023, 12, 25),
        ]
    )
