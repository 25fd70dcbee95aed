import numpy as np
import pytest

import config as cfg
from simulation import (
    StrategyResult,
    build_chart_data,
    chart_arrays,
    select_best,
)


def _result(key, net_position=0.0, months=0, balances=(), portfolio=()):
    return StrategyResult(
        key=key,
        name=cfg.STRATEGY_NAMES[key],
        total_interest=0.0,
        total_tax_savings=0.0,
        total_maintenance=0.0,
        net_interest=0.0,
        net_cost=0.0,
        months=months,
        final_home_value=0.0,
        net_position=net_position,
        converged=True,
        yearly_balances=list(balances),
        yearly_portfolio=list(portfolio),
    )


def test_highest_net_position_wins():
    results = {
        cfg.TRADITIONAL: _result(cfg.TRADITIONAL, 100.0),
        cfg.EXTRA_PAYMENT: _result(cfg.EXTRA_PAYMENT, 300.0),
        cfg.ACCELERATED: _result(cfg.ACCELERATED, 200.0),
        cfg.INVESTMENT: _result(cfg.INVESTMENT, -50.0),
    }
    best = select_best(results)
    assert best.key == cfg.EXTRA_PAYMENT
    assert best.name == "Extra Principal"
    assert best.net_worth == 300.0


def test_exact_tie_keeps_earlier_strategy():
    results = {key: _result(key, 500.0) for key in reversed(cfg.STRATEGY_KEYS)}
    assert select_best(results).key == cfg.TRADITIONAL

    results[cfg.TRADITIONAL] = _result(cfg.TRADITIONAL, 499.0)
    assert select_best(results).key == cfg.EXTRA_PAYMENT


def test_select_best_needs_candidates():
    with pytest.raises(ValueError):
        select_best({})


@pytest.fixture
def chart_results():
    return {
        cfg.TRADITIONAL: _result(cfg.TRADITIONAL, months=60,
                                 balances=[80, 60, 40, 20, 0]),
        cfg.EXTRA_PAYMENT: _result(cfg.EXTRA_PAYMENT, months=24, balances=[50, 0]),
        cfg.ACCELERATED: _result(cfg.ACCELERATED, months=30, balances=[55, 10]),
        cfg.INVESTMENT: _result(cfg.INVESTMENT, months=60, balances=[80, 60, 40, 20, 0],
                                portfolio=[10, 21, 33, 46, 60]),
    }


def test_chart_year_zero_is_anchored_at_starting_balance(chart_results):
    points = build_chart_data(100.0, chart_results)
    first = points[0]
    assert first.year == 0
    assert first.traditional == first.extra_payment == first.accelerated == 100.0
    assert first.investment_portfolio == 0.0


def test_chart_spans_longest_debt_strategy_and_pads_with_zero(chart_results):
    points = build_chart_data(100.0, chart_results)
    assert [p.year for p in points] == [0, 1, 2, 3, 4, 5]
    assert [p.extra_payment for p in points] == [100.0, 50, 0, 0.0, 0.0, 0.0]
    assert [p.accelerated for p in points] == [100.0, 55, 10, 0.0, 0.0, 0.0]
    assert [p.investment_portfolio for p in points] == [0.0, 10, 21, 33, 46, 60]


def test_chart_arrays_are_columnar(chart_results):
    cols = chart_arrays(build_chart_data(100.0, chart_results))
    assert set(cols) == {"year", "traditional", "extra_payment", "accelerated",
                         "investment_portfolio"}
    np.testing.assert_array_equal(cols["year"], np.arange(6))
    assert cols["traditional"].dtype == float


def test_engine_chart_matches_yearly_balances(base_result):
    points = base_result.chart_data
    trad = base_result.traditional
    longest = max(r.months for r in (trad, base_result.extra_payment, base_result.accelerated))
    assert len(points) == longest // 12 + 1
    assert points[1].traditional == pytest.approx(trad.yearly_balances[0])
    assert points[-1].traditional == pytest.approx(0.0, abs=cfg.PAID_OFF_TOLERANCE)
    assert all(p.extra_payment <= p.traditional + 1e-6 for p in points)
