from dataclasses import replace

import pytest

import config as cfg
import finance
from simulation import run_strategy_simulation


@pytest.fixture
def rental_result(base_config):
    return run_strategy_simulation(replace(base_config, enable_rental_comparison=True))


def test_rental_disabled_leaves_no_rental_records(base_result):
    assert base_result.rental is None
    assert all(res.rental is None for res in base_result.strategies().values())


def test_rental_payment_is_discounted_mortgage_payment(rental_result):
    assert rental_result.rental.rental_payment == pytest.approx(
        rental_result.mortgage_payment * 0.9
    )


def test_each_strategy_uses_its_own_horizon(rental_result):
    summary = rental_result.rental
    assert set(summary.strategies) == set(cfg.STRATEGY_KEYS)
    for key, res in rental_result.strategies().items():
        assert res.rental == summary.strategies[key]
        assert res.rental.months == res.months


def test_rental_investment_includes_rent_saving(rental_result):
    rent = rental_result.rental.rental_payment
    contribution = rental_result.leftover + (rental_result.mortgage_payment - rent)
    trad = rental_result.traditional

    expected_gain = finance.investment_gain(contribution, trad.months, 8.0)
    assert trad.rental.investment_gain == pytest.approx(expected_gain)
    assert trad.rental.total_rent == pytest.approx(rent * trad.months)
    assert trad.rental.total == pytest.approx(expected_gain - rent * trad.months)


def test_summary_horizon_and_comparison_value(rental_result):
    summary = rental_result.rental
    months = [res.months for res in rental_result.strategies().values()]
    assert summary.rental_months == max(months)

    best_gain = max(c.investment_gain for c in summary.strategies.values())
    assert summary.comparison_value == pytest.approx(
        best_gain - summary.rental_payment * min(months)
    )


def test_rental_toggle_does_not_change_strategy_outcomes(base_result, rental_result):
    for key in cfg.STRATEGY_KEYS:
        with_rental = getattr(rental_result, key)
        without = getattr(base_result, key)
        assert with_rental.net_position == without.net_position
        assert with_rental.months == without.months
    assert rental_result.best_strategy == base_result.best_strategy


def test_no_discount_means_rent_equals_payment(base_config):
    result = run_strategy_simulation(
        replace(base_config, enable_rental_comparison=True, rental_discount_percent=0)
    )
    assert result.rental.rental_payment == pytest.approx(result.mortgage_payment)
    trad = result.traditional
    assert trad.rental.investment_gain == pytest.approx(
        finance.investment_gain(result.leftover, trad.months, 8.0)
    )
