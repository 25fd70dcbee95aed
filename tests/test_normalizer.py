import math

import pytest

import config as cfg
from simulation import (
    SimulationConfig,
    derive_constants,
    normalize_config,
    parse_flag,
    to_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (240000, 240000.0),
        ("240000", 240000.0),
        ("$1,234.50", 1234.5),
        ("6.5%", 6.5),
        ("  7 ", 7.0),
        ("-5", -5.0),
        (-2.5, -2.5),
        ("", 0.0),
        ("   ", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("nan", 0.0),
        ("inf", 0.0),
        (float("nan"), 0.0),
        (float("-inf"), 0.0),
    ],
)
def test_to_number(raw, expected):
    assert to_number(raw) == expected


@pytest.mark.parametrize("raw", ["on", "true", "1", "YES", True, 1])
def test_parse_flag_truthy(raw):
    assert parse_flag(raw) is True


@pytest.mark.parametrize("raw", ["", "off", "false", "0", None, False, 0])
def test_parse_flag_falsy(raw):
    assert parse_flag(raw) is False


def test_unset_fields_keep_raw_value_but_read_as_zero():
    config = SimulationConfig(mortgage_rate="", loc_limit=None)
    assert config.mortgage_rate == ""
    assert config.is_unset("mortgage_rate")
    assert config.is_unset("loc_limit")
    assert not config.is_unset("mortgage_balance")

    safe = normalize_config(config)
    assert safe.mortgage_rate == 0.0
    assert safe.loc_limit == 0.0
    assert all(math.isfinite(getattr(safe, n)) for n in cfg.NUMERIC_FIELDS)


def test_from_mapping_ignores_unknown_keys_and_keeps_defaults():
    config = SimulationConfig.from_mapping({
        "mortgage_balance": "300000",
        "enable_rental_comparison": "on",
        "something_else": 42,
    })
    assert config.mortgage_balance == "300000"
    assert config.enable_rental_comparison is True
    assert config.mortgage_rate == cfg.DEFAULT_INPUTS["mortgage_rate"]


def test_derived_constants_for_default_inputs():
    derived = derive_constants(normalize_config(SimulationConfig()))
    assert derived.home_value == pytest.approx(300_000)
    assert derived.monthly_maintenance == pytest.approx(375.0)
    assert derived.fixed_payment == pytest.approx(1517.50, abs=1.0)
    assert derived.leftover == pytest.approx(10_000 - 8_000 - derived.fixed_payment - 375.0)
    assert derived.cost_exceeds_income is False
    assert derived.total_months == 360
    assert derived.month_cap == 720
    assert derived.tax_rate == pytest.approx(0.22)


def test_cost_exceeds_income_gives_negative_leftover():
    derived = derive_constants(normalize_config(SimulationConfig(monthly_expenses=15_000)))
    assert derived.cost_exceeds_income is True
    assert derived.leftover < 0
