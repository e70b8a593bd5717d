"""
Tests for closed-form interest, present/future value and loan formulas.
"""

from datetime import date
from decimal import Decimal

import pytest

from app.calculations.annuity import (
    accrued_interest,
    calculate_annuity_future_value,
    calculate_annuity_present_value,
    calculate_compound_amount,
    calculate_effective_annual_rate,
    calculate_future_value,
    calculate_payment,
    calculate_present_value,
    calculate_remaining_balance,
    calculate_simple_interest,
    daily_rate,
    per_period_rate,
    percent_to_rate,
)
from app.calculations.decimal_math import round_to
from app.calculations.errors import DivisionByZero, NonConvergentPeriods

MONTHLY_5_PERCENT = per_period_rate("0.05", 12)


class TestRateConversion:
    """Test the single place annual rates become per-period rates."""

    def test_per_period_rate(self):
        assert per_period_rate("0.06", 12) == Decimal("0.005")
        assert per_period_rate(0.08, 4) == Decimal("0.02")

    def test_percent_to_rate(self):
        assert percent_to_rate(5) == Decimal("0.05")
        assert percent_to_rate("7.25") == Decimal("0.0725")

    def test_per_period_rate_requires_positive_frequency(self):
        with pytest.raises(NonConvergentPeriods):
            per_period_rate("0.05", 0)

    def test_effective_annual_rate(self):
        rate = calculate_effective_annual_rate("0.05", 12)
        assert round_to(rate, 5) == Decimal("0.05116")

    def test_effective_rate_annual_compounding_is_nominal(self):
        assert calculate_effective_annual_rate("0.05", 1) == Decimal("0.05")

    def test_effective_rate_requires_positive_frequency(self):
        with pytest.raises(NonConvergentPeriods):
            calculate_effective_annual_rate("0.05", -12)

    def test_daily_rate(self):
        assert daily_rate("0.0365") == Decimal("0.0001")
        assert daily_rate("0.036", 360) == Decimal("0.0001")


class TestInterest:
    """Test simple and compound interest."""

    def test_simple_interest(self):
        assert calculate_simple_interest(1000, "0.05", 1) == Decimal("50")
        assert calculate_simple_interest(1000, "0.05", 2) == Decimal("100")

    def test_compound_annual(self):
        assert calculate_compound_amount(1000, "0.05", 1, 1) == Decimal("1050")

    def test_compound_monthly(self):
        amount = calculate_compound_amount(1000, "0.05", 1, 12)
        assert round_to(amount, 2) == Decimal("1051.16")

    def test_compound_requires_positive_frequency(self):
        with pytest.raises(NonConvergentPeriods):
            calculate_compound_amount(1000, "0.05", 1, 0)

    def test_accrued_interest_by_actual_days(self):
        interest = accrued_interest(10000, "0.0365", date(2024, 1, 1), date(2024, 1, 11))
        assert interest == Decimal("10")

    def test_accrued_interest_empty_period(self):
        assert accrued_interest(10000, "0.05", "2024-01-11", "2024-01-01") == 0


class TestPresentFutureValue:
    """Test single-amount discounting and compounding."""

    def test_present_value(self):
        assert calculate_present_value(1050, "0.05", 1) == Decimal("1000")
        assert calculate_present_value("1102.5", "0.05", 2) == Decimal("1000")

    def test_future_value(self):
        value = calculate_future_value(1000, "0.05", 5)
        assert round_to(value, 2) == Decimal("1276.28")

    @pytest.mark.parametrize("principal,rate,periods", [
        (1000, "0.05", 5),
        ("250000.00", MONTHLY_5_PERCENT, 360),
        ("0.01", "0.5", 40),
        (1000, "-0.02", 10),
        (1000, "0.07", "2.5"),
    ])
    def test_round_trip(self, principal, rate, periods):
        """present_value(future_value(p)) == p at working precision."""
        fv = calculate_future_value(principal, rate, periods)
        pv = calculate_present_value(fv, rate, periods)
        assert abs(pv - Decimal(str(principal))) < Decimal("1e-20")

    def test_present_value_rate_minus_one(self):
        with pytest.raises(DivisionByZero):
            calculate_present_value(1000, -1, 5)


class TestAnnuities:
    """Test payment-stream values."""

    def test_annuity_future_value(self):
        value = calculate_annuity_future_value(100, "0.05", 12)
        assert round_to(value, 2) == Decimal("1591.71")

    def test_annuity_future_value_zero_rate(self):
        assert calculate_annuity_future_value(100, 0, 12) == Decimal("1200")

    def test_annuity_present_value(self):
        value = calculate_annuity_present_value(100, "0.05", 10)
        assert round_to(value, 2) == Decimal("772.17")

    def test_annuity_present_value_zero_rate(self):
        assert calculate_annuity_present_value(100, 0, 12) == Decimal("1200")


class TestPayment:
    """Test level installment (PMT)."""

    def test_monthly_loan(self):
        """5% annual loan over 12 monthly periods."""
        payment = calculate_payment(1000, MONTHLY_5_PERCENT, 12)
        assert round_to(payment, 2) == Decimal("85.61")

    def test_thirty_year_mortgage(self):
        payment = calculate_payment(1000000, MONTHLY_5_PERCENT, 360)
        assert round_to(payment, 2) == Decimal("5368.22")

    def test_per_period_rate(self):
        payment = calculate_payment(1000, "0.05", 12)
        assert round_to(payment, 2) == Decimal("112.83")

    def test_zero_rate(self):
        assert calculate_payment(1200, 0, 12) == Decimal("100")

    def test_string_inputs(self):
        payment = calculate_payment("1000.00", "0.004166666666666666666666666666666667", "12")
        assert round_to(payment, 2) == Decimal("85.61")

    @pytest.mark.parametrize("periods", [0, -1, "0"])
    def test_non_positive_periods(self, periods):
        with pytest.raises(NonConvergentPeriods):
            calculate_payment(1000, "0.05", periods)


class TestRemainingBalance:
    """Test remaining balance after installments."""

    def test_half_way(self):
        """Accumulated value of the six installments still due."""
        balance = calculate_remaining_balance(1000, "0.05", 12, 6)
        assert abs(balance - Decimal("767.43")) < Decimal("0.01")

    def test_matches_installment_growth_formula(self):
        installment = calculate_payment(1000, "0.05", 12)
        expected = installment * (Decimal("1.05") ** 6 - 1) / Decimal("0.05")
        balance = calculate_remaining_balance(1000, "0.05", 12, 6)
        assert abs(balance - expected) < Decimal("1e-20")

    def test_no_payments_made_is_future_value_of_principal(self):
        balance = calculate_remaining_balance(1000, MONTHLY_5_PERCENT, 12, 0)
        expected = calculate_future_value(1000, MONTHLY_5_PERCENT, 12)
        assert abs(balance - expected) < Decimal("1e-20")

    def test_last_installment_remaining(self):
        installment = calculate_payment(1000, "0.05", 12)
        balance = calculate_remaining_balance(1000, "0.05", 12, 11)
        assert abs(balance - installment) < Decimal("1e-20")

    @pytest.mark.parametrize("principal,rate,periods", [
        (1000, "0.05", 12),
        (250000, MONTHLY_5_PERCENT, 360),
        (5000, 0, 24),
        (1, "0.9", 3),
    ])
    def test_zero_after_all_payments(self, principal, rate, periods):
        assert calculate_remaining_balance(principal, rate, periods, periods) == 0
        assert calculate_remaining_balance(principal, rate, periods, periods + 5) == 0

    def test_zero_rate_linear(self):
        assert calculate_remaining_balance(1200, 0, 12, 3) == Decimal("900")

    def test_decreases_monotonically(self):
        balances = [
            calculate_remaining_balance(100000, MONTHLY_5_PERCENT, 60, m) for m in range(61)
        ]
        assert all(later < earlier for earlier, later in zip(balances, balances[1:]))

    def test_non_positive_periods(self):
        with pytest.raises(NonConvergentPeriods):
            calculate_remaining_balance(1000, "0.05", 0, 0)
