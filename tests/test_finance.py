import pytest

import finance


def test_monthly_rate_converts_annual_percent():
    assert finance.monthly_rate(12.0) == pytest.approx(0.01)
    assert finance.monthly_rate(0.0) == 0.0


def test_payment_matches_standard_annuity():
    # 240k at 6.5% over 30 years
    payment = finance.compute_monthly_payment(240_000, 6.5, 30)
    assert payment == pytest.approx(1517.50, abs=1.0)


def test_zero_rate_payment_is_straight_line():
    assert finance.compute_monthly_payment(240_000, 0, 30) == 240_000 / 360
    assert finance.compute_monthly_payment(1_000, 0, 1) == 1_000 / 12


def test_zero_term_has_no_payment():
    assert finance.compute_monthly_payment(240_000, 6.5, 0) == 0.0
    assert finance.compute_monthly_payment(240_000, 0, 0) == 0.0


def test_huge_rate_payment_is_interest_only():
    # (1 + r) ** 360 is beyond float range here
    assert finance.compute_monthly_payment(240_000, 10_000, 30) == pytest.approx(240_000 * 10_000 / 1200)


def test_payment_amortizes_balance_to_zero():
    balance = 100_000.0
    r = finance.monthly_rate(5.0)
    payment = finance.compute_monthly_payment(balance, 5.0, 15)
    for _ in range(15 * 12):
        balance = balance * (1 + r) - payment
    assert balance == pytest.approx(0.0, abs=1e-6)


def test_investment_balance_edges_are_zero():
    assert finance.calculate_investment_balance(500, 0, 8.0) == 0.0
    assert finance.calculate_investment_balance(0, 360, 8.0) == 0.0


def test_investment_balance_is_ordinary_annuity():
    # First contribution earns nothing; later ones grow before the deposit
    r = finance.monthly_rate(12.0)
    assert finance.calculate_investment_balance(100, 1, 12.0) == pytest.approx(100)
    assert finance.calculate_investment_balance(100, 2, 12.0) == pytest.approx(100 * (1 + r) + 100)

    n = 120
    closed_form = 100 * ((1 + r) ** n - 1) / r
    assert finance.calculate_investment_balance(100, n, 12.0) == pytest.approx(closed_form)


def test_investment_balance_zero_return_is_sum_of_contributions():
    assert finance.calculate_investment_balance(250, 48, 0.0) == pytest.approx(250 * 48)
    assert finance.investment_gain(250, 48, 0.0) == pytest.approx(0.0)


def test_negative_contribution_draws_down():
    assert finance.calculate_investment_balance(-100, 12, 8.0) < 0
