"""
Amortization and compounding primitives for the mortgage strategy simulator.

Rates are annual percentages (6.5 means 6.5%) and are converted to monthly
decimals here, so every caller shares one convention.
"""

from __future__ import annotations

import math

import config as cfg

# ln of the largest growth factor kept in floating point (float max is ~e^709)
MAX_GROWTH_EXPONENT = 700.0


# ─── Rate conversion ─────────────────────────────────────────────────

def monthly_rate(annual_rate_percent: float) -> float:
    """Convert an annual percentage rate into a monthly decimal rate."""
    return annual_rate_percent / 100 / cfg.MONTHS_PER_YEAR


# ─── Payment Calculator ──────────────────────────────────────────────

def compute_monthly_payment(balance: float, annual_rate_percent: float, years: float) -> float:
    """Fixed monthly payment that amortizes *balance* over *years*.

    Uses the standard annuity formula. A zero rate falls back to
    straight-line repayment, and a term of zero months has no defined
    payment, so 0.0 is returned and callers see a loan that never steps.
    Rates so high that the growth factor leaves float range return the
    interest-only limit ``balance * r``.

    Parameters
    ----------
    balance : float
        Principal outstanding.
    annual_rate_percent : float
        Nominal annual rate, e.g. ``6.5``.
    years : float
        Amortization term in years.

    Returns
    -------
    float
        Monthly payment.
    """
    r = monthly_rate(annual_rate_percent)
    n = years * cfg.MONTHS_PER_YEAR

    if n <= 0:
        return 0.0
    if r == 0:
        return balance / n
    # (1 + r) ** n would overflow; the payment has converged to interest-only
    if r > 0 and n * math.log1p(r) > MAX_GROWTH_EXPONENT:
        return balance * r

    growth = (1 + r) ** n
    return balance * r * growth / (growth - 1)


# ─── Compounding ─────────────────────────────────────────────────────

def grow_balance(balance: float, contribution: float, rate: float) -> float:
    """One month of compounding: grow the existing balance, then add the
    end-of-month contribution."""
    return balance * (1 + rate) + contribution


def calculate_investment_balance(
    monthly_contribution: float,
    months: int,
    annual_rate_percent: float,
) -> float:
    """Future value of a level monthly contribution (ordinary annuity).

    The first contribution earns no growth; each later month grows the
    running balance before the new contribution lands. Negative
    contributions are compounded as-is (a shortfall draws the pot down).
    """
    r = monthly_rate(annual_rate_percent)
    balance = 0.0
    for _ in range(int(months)):
        balance = grow_balance(balance, monthly_contribution, r)
    return balance


def investment_gain(monthly_contribution: float, months: int, annual_rate_percent: float) -> float:
    """Growth earned on top of the contributions themselves."""
    balance = calculate_investment_balance(monthly_contribution, months, annual_rate_percent)
    return balance - monthly_contribution * int(months)
