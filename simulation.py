"""
Deterministic strategy simulation engine for mortgage payoff comparison.

Compares four uses of the monthly cash left over after expenses, the
scheduled mortgage payment and home maintenance:
  A) Traditional      - scheduled payments only
  B) Extra Principal  - leftover goes straight to principal
  C) LOC Strategy     - principal is moved onto a line of credit in chunks
                        and the LOC is paid down with leftover
  D) Invest & Pay     - scheduled payments, leftover invested every month

Every strategy runs through one month-stepping loop driven by a
StrategyPolicy. A run is a pure function of its SimulationConfig: no I/O,
no state shared between calls.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

import config as cfg
import finance

RawValue = Union[float, int, str, None]


# ─── Data Classes ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class SimulationConfig:
    """User inputs exactly as entered.

    Numeric fields may hold a number, a numeric string, or the unset
    sentinel (``""`` or ``None``). Unset values are kept verbatim so a
    form being edited does not show a misleading 0; the engine reads
    them as 0 via normalize_config.
    """

    mortgage_balance: RawValue = cfg.DEFAULT_INPUTS["mortgage_balance"]
    mortgage_rate: RawValue = cfg.DEFAULT_INPUTS["mortgage_rate"]
    mortgage_years: RawValue = cfg.DEFAULT_INPUTS["mortgage_years"]
    monthly_income: RawValue = cfg.DEFAULT_INPUTS["monthly_income"]
    monthly_expenses: RawValue = cfg.DEFAULT_INPUTS["monthly_expenses"]
    loc_limit: RawValue = cfg.DEFAULT_INPUTS["loc_limit"]
    loc_rate: RawValue = cfg.DEFAULT_INPUTS["loc_rate"]
    tax_rate: RawValue = cfg.DEFAULT_INPUTS["tax_rate"]
    investment_return: RawValue = cfg.DEFAULT_INPUTS["investment_return"]
    maintenance_rate: RawValue = cfg.DEFAULT_INPUTS["maintenance_rate"]
    home_appreciation_rate: RawValue = cfg.DEFAULT_INPUTS["home_appreciation_rate"]
    rental_discount_percent: RawValue = cfg.DEFAULT_INPUTS["rental_discount_percent"]
    enable_rental_comparison: bool = cfg.DEFAULT_INPUTS["enable_rental_comparison"]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SimulationConfig:
        """Build a config from a dict (form or JSON). Unknown keys are
        ignored and missing keys keep their defaults."""
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        if "enable_rental_comparison" in kwargs:
            kwargs["enable_rental_comparison"] = parse_flag(kwargs["enable_rental_comparison"])
        return cls(**kwargs)

    def is_unset(self, name: str) -> bool:
        value = getattr(self, name)
        return value is None or (isinstance(value, str) and not value.strip())

    def as_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class SafeConfig:
    """Normalized inputs: every numeric field is a finite float."""

    mortgage_balance: float
    mortgage_rate: float
    mortgage_years: float
    monthly_income: float
    monthly_expenses: float
    loc_limit: float
    loc_rate: float
    tax_rate: float
    investment_return: float
    maintenance_rate: float
    home_appreciation_rate: float
    rental_discount_percent: float
    enable_rental_comparison: bool


@dataclass(frozen=True)
class DerivedConstants:
    """Figures computed once per run and shared by every simulator."""

    home_value: float            # balance / LTV
    fixed_payment: float         # annuity payment
    monthly_maintenance: float   # at the starting home value
    leftover: float              # may be negative (budget shortfall)
    cost_exceeds_income: bool
    total_months: float          # nominal term
    month_cap: float             # non-convergence guard
    loc_limit: float
    # Monthly decimal rates
    mortgage_rate: float
    loc_rate: float
    investment_rate: float
    maintenance_rate: float
    appreciation_rate: float
    tax_rate: float              # fraction of interest deductible


@dataclass
class MonthlyState:
    """Mutable per-strategy state, advanced one month per tick."""

    mortgage_balance: float
    current_home_value: float
    loc_balance: float = 0.0
    investment_balance: float = 0.0
    cumulative_interest: float = 0.0
    cumulative_loc_interest: float = 0.0
    cumulative_tax_savings: float = 0.0
    cumulative_maintenance: float = 0.0
    month_index: int = 0


@dataclass(frozen=True)
class TraceRow:
    """One month of the LOC strategy, for inspection tooling."""

    month: int
    mortgage_balance: float
    loc_balance: float
    mortgage_interest: float
    loc_interest: float
    principal_payment: float  # scheduled principal actually applied to the mortgage
    loc_payment: float
    leftover: float
    total_balance: float


@dataclass(frozen=True)
class RentalComparison:
    """Renting for exactly as long as one strategy took to pay off."""

    months: int
    investment_gain: float
    total_rent: float
    total: float                 # investment_gain - total_rent


@dataclass(frozen=True)
class RentalSummary:
    rental_payment: float
    rental_months: int           # longest strategy horizon
    comparison_value: float
    strategies: Dict[str, RentalComparison]


@dataclass
class StrategyResult:
    """Outcome of one strategy run."""

    key: str
    name: str
    total_interest: float
    total_tax_savings: float
    total_maintenance: float
    net_interest: float          # interest (incl. LOC) - tax savings
    net_cost: float              # net_interest - investment gain
    months: int
    final_home_value: float
    net_position: float
    converged: bool              # False when the month cap was hit
    total_loc_interest: Optional[float] = None
    investment_balance: Optional[float] = None
    investment_gain: Optional[float] = None
    effective_monthly_payment: Optional[float] = None
    rental: Optional[RentalComparison] = None

    # ── Per-year series: index y-1 = state after year y ──
    yearly_balances: List[float] = field(default_factory=list, repr=False)
    yearly_portfolio: List[float] = field(default_factory=list, repr=False)

    # ── Per-month LOC trace (LOC strategy only) ──
    trace: List[TraceRow] = field(default_factory=list, repr=False)


@dataclass(frozen=True)
class BestStrategy:
    key: str
    name: str
    net_worth: float


@dataclass(frozen=True)
class ChartPoint:
    """Remaining debt per strategy at the end of a year."""

    year: int
    traditional: float
    extra_payment: float
    accelerated: float
    investment_portfolio: float


@dataclass
class SimulationResult:
    traditional: StrategyResult
    extra_payment: StrategyResult
    accelerated: StrategyResult
    investment: StrategyResult
    rental: Optional[RentalSummary]
    chart_data: List[ChartPoint]
    best_strategy: BestStrategy
    leftover: float
    cost_exceeds_income: bool
    mortgage_payment: float
    home_value: float
    monthly_maintenance: float
    month_cap: float

    def strategies(self) -> Dict[str, StrategyResult]:
        """Ranked strategies keyed in ranking order."""
        return {key: getattr(self, key) for key in cfg.STRATEGY_KEYS}


@dataclass(frozen=True)
class StrategyPolicy:
    """Strategy-specific hooks plugged into the shared monthly step."""

    key: str
    extra_principal: bool = False    # leftover prepays principal
    uses_loc: bool = False           # LOC chunking, draw -> pay down -> accrue
    invests_leftover: bool = False   # leftover compounds in a portfolio
    records_trace: bool = False

    @property
    def name(self) -> str:
        return cfg.STRATEGY_NAMES[self.key]


TRADITIONAL_POLICY = StrategyPolicy(cfg.TRADITIONAL)
EXTRA_PAYMENT_POLICY = StrategyPolicy(cfg.EXTRA_PAYMENT, extra_principal=True)
ACCELERATED_POLICY = StrategyPolicy(cfg.ACCELERATED, uses_loc=True, records_trace=True)
INVESTMENT_POLICY = StrategyPolicy(cfg.INVESTMENT, invests_leftover=True)

POLICIES = [TRADITIONAL_POLICY, EXTRA_PAYMENT_POLICY, ACCELERATED_POLICY, INVESTMENT_POLICY]


# ─── Input Normalizer ─────────────────────────────────────────────────

def parse_flag(value: Any) -> bool:
    """Read a checkbox-style value ('on', 'true', '1', True...)."""
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def to_number(value: RawValue) -> float:
    """Coerce one raw field. Blank, non-numeric, NaN and inf all read as 0.

    Negative numbers pass through untouched.
    """
    if value is None:
        return 0.0
    if isinstance(value, str):
        value = value.replace("$", "").replace(",", "").replace("%", "").strip()
        if not value:
            return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def normalize_config(config: SimulationConfig) -> SafeConfig:
    return SafeConfig(
        **{name: to_number(getattr(config, name)) for name in cfg.NUMERIC_FIELDS},
        enable_rental_comparison=parse_flag(config.enable_rental_comparison),
    )


def derive_constants(safe: SafeConfig) -> DerivedConstants:
    """Home value, fixed payment, maintenance and leftover for one run."""
    home_value = safe.mortgage_balance / cfg.LOAN_TO_VALUE
    payment = finance.compute_monthly_payment(
        safe.mortgage_balance, safe.mortgage_rate, safe.mortgage_years,
    )
    maintenance_rate = finance.monthly_rate(safe.maintenance_rate)
    monthly_maintenance = home_value * maintenance_rate
    outgoings = safe.monthly_expenses + payment + monthly_maintenance
    total_months = safe.mortgage_years * cfg.MONTHS_PER_YEAR

    return DerivedConstants(
        home_value=home_value,
        fixed_payment=payment,
        monthly_maintenance=monthly_maintenance,
        leftover=safe.monthly_income - outgoings,
        cost_exceeds_income=outgoings > safe.monthly_income,
        total_months=total_months,
        month_cap=total_months * cfg.MONTH_CAP_MULTIPLIER,
        loc_limit=safe.loc_limit,
        mortgage_rate=finance.monthly_rate(safe.mortgage_rate),
        loc_rate=finance.monthly_rate(safe.loc_rate),
        investment_rate=finance.monthly_rate(safe.investment_return),
        maintenance_rate=maintenance_rate,
        appreciation_rate=finance.monthly_rate(safe.home_appreciation_rate),
        tax_rate=safe.tax_rate / 100,
    )


# ─── Strategy Simulators ──────────────────────────────────────────────

def _is_active(state: MonthlyState, policy: StrategyPolicy) -> bool:
    if state.mortgage_balance > cfg.PAID_OFF_TOLERANCE:
        return True
    return policy.uses_loc and state.loc_balance > cfg.PAID_OFF_TOLERANCE


def _apply_loc_chunking(
    state: MonthlyState,
    derived: DerivedConstants,
    surplus: float,
) -> tuple[float, float]:
    """Draw a chunk, pay the LOC down, then capitalize LOC interest.

    *surplus* is the part of the scheduled payment the mortgage no longer
    needed this month; it joins the leftover in paying down the LOC.
    Returns (loc_payment, loc_interest).
    """
    loc_payment = 0.0
    if derived.leftover > 0:
        if state.loc_balance == 0 and state.mortgage_balance > 0:
            chunk = max(0.0, min(derived.loc_limit, state.mortgage_balance))
            state.loc_balance += chunk
            state.mortgage_balance = max(0.0, state.mortgage_balance - chunk)

        if state.loc_balance > 0:
            loc_payment = min(derived.leftover + surplus, state.loc_balance)
            state.loc_balance = max(0.0, state.loc_balance - loc_payment)

    loc_interest = 0.0
    if state.loc_balance > 0:
        loc_interest = state.loc_balance * derived.loc_rate
        state.cumulative_loc_interest += loc_interest
        state.loc_balance += loc_interest
    return loc_payment, loc_interest


def _step(
    state: MonthlyState,
    derived: DerivedConstants,
    policy: StrategyPolicy,
    trace: List[TraceRow],
) -> None:
    """Advance *state* by one month."""
    # Common sub-steps: interest, tax relief, maintenance, appreciation
    interest = state.mortgage_balance * derived.mortgage_rate
    state.cumulative_interest += interest
    state.cumulative_tax_savings += interest * derived.tax_rate
    state.cumulative_maintenance += state.current_home_value * derived.maintenance_rate
    state.current_home_value *= 1 + derived.appreciation_rate

    # Scheduled payment; a payment below interest grows the balance
    principal = derived.fixed_payment - interest
    state.mortgage_balance -= principal
    surplus = 0.0
    if state.mortgage_balance < 0:
        surplus = -state.mortgage_balance
        state.mortgage_balance = 0.0

    if policy.extra_principal and derived.leftover > 0 and state.mortgage_balance > 0:
        state.mortgage_balance -= min(derived.leftover, state.mortgage_balance)

    loc_payment = loc_interest = 0.0
    if policy.uses_loc:
        loc_payment, loc_interest = _apply_loc_chunking(state, derived, surplus)

    if policy.invests_leftover:
        state.investment_balance = finance.grow_balance(
            state.investment_balance, derived.leftover, derived.investment_rate,
        )

    state.month_index += 1

    if policy.records_trace:
        trace.append(TraceRow(
            month=state.month_index,
            mortgage_balance=state.mortgage_balance,
            loc_balance=state.loc_balance,
            mortgage_interest=interest,
            loc_interest=loc_interest,
            principal_payment=principal - surplus,
            loc_payment=loc_payment,
            leftover=derived.leftover,
            total_balance=state.mortgage_balance + state.loc_balance,
        ))


def simulate_strategy(
    safe: SafeConfig,
    derived: DerivedConstants,
    policy: StrategyPolicy,
) -> StrategyResult:
    """Run one strategy until paid off or capped at 2x the nominal term."""
    state = MonthlyState(
        mortgage_balance=safe.mortgage_balance,
        current_home_value=derived.home_value,
    )
    yearly_balances: List[float] = []
    yearly_portfolio: List[float] = []
    trace: List[TraceRow] = []

    while _is_active(state, policy) and state.month_index < derived.month_cap:
        _step(state, derived, policy, trace)
        if state.month_index % cfg.MONTHS_PER_YEAR == 0:
            yearly_balances.append(max(0.0, state.mortgage_balance + state.loc_balance))
            yearly_portfolio.append(state.investment_balance)

    months = state.month_index
    gain = 0.0
    inv_balance: Optional[float] = None
    if policy.invests_leftover:
        inv_balance = state.investment_balance
        gain = inv_balance - derived.leftover * months

    net_interest = (state.cumulative_interest + state.cumulative_loc_interest
                    - state.cumulative_tax_savings)
    net_position = (state.current_home_value - safe.mortgage_balance
                    - state.cumulative_interest - state.cumulative_loc_interest
                    + state.cumulative_tax_savings - state.cumulative_maintenance
                    + gain)

    return StrategyResult(
        key=policy.key,
        name=policy.name,
        total_interest=state.cumulative_interest,
        total_tax_savings=state.cumulative_tax_savings,
        total_maintenance=state.cumulative_maintenance,
        net_interest=net_interest,
        net_cost=net_interest - gain,
        months=months,
        final_home_value=state.current_home_value,
        net_position=net_position,
        converged=not _is_active(state, policy),
        total_loc_interest=state.cumulative_loc_interest if policy.uses_loc else None,
        investment_balance=inv_balance,
        investment_gain=gain if policy.invests_leftover else None,
        effective_monthly_payment=(derived.fixed_payment + derived.leftover
                                   if policy.extra_principal else None),
        yearly_balances=yearly_balances,
        yearly_portfolio=yearly_portfolio,
        trace=trace,
    )


# ─── Rental Comparator ────────────────────────────────────────────────

def rental_payment(safe: SafeConfig, derived: DerivedConstants) -> float:
    return derived.fixed_payment * (1 - safe.rental_discount_percent / 100)


def compare_rental(safe: SafeConfig, derived: DerivedConstants, months: int) -> RentalComparison:
    """Rent for *months* and invest the leftover plus the rent saving.

    The renter's monthly contribution is the owner's leftover plus the
    gap between the mortgage payment and the (discounted) rent, compounded
    with the same end-of-month convention as the Investment strategy.
    """
    rent = rental_payment(safe, derived)
    contribution = derived.leftover + (derived.fixed_payment - rent)
    gain = finance.investment_gain(contribution, months, safe.investment_return)
    total_rent = rent * months
    return RentalComparison(
        months=months,
        investment_gain=gain,
        total_rent=total_rent,
        total=gain - total_rent,
    )


def build_rental_summary(
    safe: SafeConfig,
    derived: DerivedConstants,
    results: Mapping[str, StrategyResult],
) -> RentalSummary:
    """One comparison per strategy, each over that strategy's own horizon."""
    comparisons = {key: compare_rental(safe, derived, res.months)
                   for key, res in results.items()}
    horizons = [c.months for c in comparisons.values()]
    rent = rental_payment(safe, derived)
    best_gain = max(c.investment_gain for c in comparisons.values())

    return RentalSummary(
        rental_payment=rent,
        rental_months=max(horizons),
        comparison_value=best_gain - rent * min(horizons),
        strategies=comparisons,
    )


# ─── Strategy Ranker ──────────────────────────────────────────────────

def select_best(results: Mapping[str, StrategyResult]) -> BestStrategy:
    """Highest net position wins; exact ties keep the earlier strategy."""
    best: Optional[BestStrategy] = None
    for key in cfg.STRATEGY_KEYS:
        if key not in results:
            continue
        candidate = BestStrategy(key=key, name=cfg.STRATEGY_NAMES[key],
                                 net_worth=results[key].net_position)
        if best is None or candidate.net_worth > best.net_worth:
            best = candidate
    if best is None:
        raise ValueError("No strategies to rank")
    return best


# ─── Chart/Report Projector ───────────────────────────────────────────

def _year_value(series: Sequence[float], year: int) -> float:
    return series[year - 1] if year <= len(series) else 0.0


def build_chart_data(
    starting_balance: float,
    results: Mapping[str, StrategyResult],
) -> List[ChartPoint]:
    """Resample the yearly balances into one point per year.

    Year 0 anchors every debt series at the starting balance; years after
    a strategy's payoff read 0.
    """
    trad = results[cfg.TRADITIONAL]
    extra = results[cfg.EXTRA_PAYMENT]
    acc = results[cfg.ACCELERATED]
    inv = results[cfg.INVESTMENT]

    points = [ChartPoint(
        year=0,
        traditional=starting_balance,
        extra_payment=starting_balance,
        accelerated=starting_balance,
        investment_portfolio=0.0,
    )]
    max_months = max(trad.months, extra.months, acc.months)
    for year in range(1, max_months // cfg.MONTHS_PER_YEAR + 1):
        points.append(ChartPoint(
            year=year,
            traditional=_year_value(trad.yearly_balances, year),
            extra_payment=_year_value(extra.yearly_balances, year),
            accelerated=_year_value(acc.yearly_balances, year),
            investment_portfolio=_year_value(inv.yearly_portfolio, year),
        ))
    return points


def chart_arrays(chart_data: Sequence[ChartPoint]) -> Dict[str, np.ndarray]:
    """Column-wise numpy view of the chart points, for plotting."""
    return {
        f.name: np.array([getattr(p, f.name) for p in chart_data], dtype=float)
        for f in fields(ChartPoint)
    }


# ─── Core Simulation ──────────────────────────────────────────────────

def run_strategy_simulation(config: Union[SimulationConfig, Mapping[str, Any]]) -> SimulationResult:
    """Run every strategy for *config* and rank them."""
    if not isinstance(config, SimulationConfig):
        config = SimulationConfig.from_mapping(config)

    safe = normalize_config(config)
    derived = derive_constants(safe)

    results = {policy.key: simulate_strategy(safe, derived, policy) for policy in POLICIES}

    rental: Optional[RentalSummary] = None
    if safe.enable_rental_comparison:
        rental = build_rental_summary(safe, derived, results)
        results = {key: replace(res, rental=rental.strategies[key])
                   for key, res in results.items()}

    return SimulationResult(
        traditional=results[cfg.TRADITIONAL],
        extra_payment=results[cfg.EXTRA_PAYMENT],
        accelerated=results[cfg.ACCELERATED],
        investment=results[cfg.INVESTMENT],
        rental=rental,
        chart_data=build_chart_data(safe.mortgage_balance, results),
        best_strategy=select_best(results),
        leftover=derived.leftover,
        cost_exceeds_income=derived.cost_exceeds_income,
        mortgage_payment=derived.fixed_payment,
        home_value=derived.home_value,
        monthly_maintenance=derived.monthly_maintenance,
        month_cap=derived.month_cap,
    )


def result_to_dict(result: SimulationResult, include_trace: bool = False) -> Dict[str, Any]:
    """Plain-dict form of a result for JSON responses."""
    data = asdict(result)
    for key in cfg.STRATEGY_KEYS:
        data[key].pop("yearly_balances")
        data[key].pop("yearly_portfolio")
        if not include_trace:
            data[key].pop("trace")
    return data


# ─── Rate Sensitivity Sweep ───────────────────────────────────────────

@dataclass
class SweepResult:
    """Output of the mortgage-rate x LOC-rate sweep."""

    mortgage_rates: np.ndarray             # (n_mortgage,)
    loc_rates: np.ndarray                  # (n_loc,)
    loc_advantage: np.ndarray              # (n_mortgage, n_loc)
    # positive = LOC strategy beats extra principal
    winner: np.ndarray                     # (n_mortgage, n_loc) index into STRATEGY_KEYS


def rate_sweep(
    config: SimulationConfig,
    mortgage_rates: Optional[Sequence[float]] = None,
    loc_rates: Optional[Sequence[float]] = None,
) -> SweepResult:
    """Re-run the engine over a grid of mortgage and LOC rates."""
    m_rates = np.array(mortgage_rates if mortgage_rates is not None
                       else cfg.SWEEP_MORTGAGE_RATES, dtype=float)
    l_rates = np.array(loc_rates if loc_rates is not None
                       else cfg.SWEEP_LOC_RATES, dtype=float)

    advantage = np.empty((len(m_rates), len(l_rates)))
    winner = np.empty((len(m_rates), len(l_rates)), dtype=int)

    for i, m_rate in enumerate(m_rates):
        for j, l_rate in enumerate(l_rates):
            res = run_strategy_simulation(
                replace(config, mortgage_rate=float(m_rate), loc_rate=float(l_rate))
            )
            advantage[i, j] = res.accelerated.net_position - res.extra_payment.net_position
            winner[i, j] = cfg.STRATEGY_KEYS.index(res.best_strategy.key)

    return SweepResult(
        mortgage_rates=m_rates,
        loc_rates=l_rates,
        loc_advantage=advantage,
        winner=winner,
    )
