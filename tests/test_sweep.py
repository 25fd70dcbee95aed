import numpy as np

import config as cfg
from simulation import rate_sweep


def test_default_grid_shape(base_config):
    sweep = rate_sweep(base_config)
    shape = (len(cfg.SWEEP_MORTGAGE_RATES), len(cfg.SWEEP_LOC_RATES))
    assert sweep.loc_advantage.shape == shape
    assert sweep.winner.shape == shape
    np.testing.assert_array_equal(sweep.mortgage_rates, cfg.SWEEP_MORTGAGE_RATES)
    assert set(np.unique(sweep.winner)) <= set(range(len(cfg.STRATEGY_KEYS)))


def test_expensive_loc_loses_to_extra_principal(base_config):
    sweep = rate_sweep(base_config, mortgage_rates=[5.0], loc_rates=[5.0, 15.0])
    assert sweep.loc_advantage.shape == (1, 2)
    assert sweep.loc_advantage[0, 1] < 0
    assert sweep.loc_advantage[0, 1] < sweep.loc_advantage[0, 0]


def test_sweep_leaves_config_untouched(base_config):
    rate_sweep(base_config, mortgage_rates=[3.0], loc_rates=[4.0])
    assert base_config.mortgage_rate == cfg.DEFAULT_INPUTS["mortgage_rate"]
