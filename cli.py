"""
CLI interface and shared display-data computation for the
mortgage payoff strategy simulator.
"""

from __future__ import annotations

import sys
from typing import Any, Dict, List, Optional

import config as cfg
import events
import report
from simulation import (
    SimulationConfig,
    SimulationResult,
    StrategyResult,
    SweepResult,
    TraceRow,
    normalize_config,
    rate_sweep,
    run_strategy_simulation,
)


# ═══════════════════════════════════════════════════════════════════
# Formatting helpers
# ═══════════════════════════════════════════════════════════════════

def fmt(val: float, decimals: int = 0) -> str:
    """Format number as $X,XXX (negatives as -$X,XXX)."""
    sign = "-" if val < 0 and round(abs(val), decimals) != 0 else ""
    return f"{sign}${abs(val):,.{decimals}f}"


def pct(val: float, decimals: int = 1) -> str:
    return f"{val:.{decimals}f}%"


def format_months(months: float) -> str:
    """'30 years' or '20 years 4 months'."""
    years = int(months // 12)
    remaining = round(months % 12)
    if remaining == 0:
        return f"{years} years"
    return f"{years} years {remaining} months"


# ═══════════════════════════════════════════════════════════════════
# Input collection (CLI)
# ═══════════════════════════════════════════════════════════════════

UNSET_TOKEN = "-"


def _strip_currency(s: str) -> str:
    """Remove currency symbols, commas, spaces."""
    return s.replace("$", "").replace(",", "").replace(" ", "")


def _prompt_number(label: str, default: Any) -> Any:
    """Ask for a number. Enter keeps the default, '-' leaves it unset."""
    while True:
        raw = input(f"  {label} [{default}]: ").strip()
        if not raw:
            return default
        if raw == UNSET_TOKEN:
            return ""
        try:
            return float(_strip_currency(raw).replace("%", ""))
        except ValueError:
            print("    Invalid number, try again.")


def _prompt_choice(label: str, options: list[str], default: str) -> str:
    opts = "/".join(options)
    while True:
        raw = input(f"  {label} ({opts}) [{default}]: ").strip().lower()
        if not raw:
            return default
        if raw in options:
            return raw
        print(f"    Choose from: {opts}")


def collect_inputs() -> SimulationConfig:
    """Prompt the user for every simulation parameter."""
    print("\n  Enter your details (Enter for defaults, '-' to leave blank):\n")

    values: Dict[str, Any] = {}
    for name in cfg.NUMERIC_FIELDS:
        if name in ("home_appreciation_rate", "rental_discount_percent"):
            continue
        values[name] = _prompt_number(cfg.FIELD_LABELS[name], cfg.DEFAULT_INPUTS[name])

    rental = _prompt_choice("Compare against renting?", ["yes", "no"], "no") == "yes"
    values["enable_rental_comparison"] = rental
    for name in ("home_appreciation_rate", "rental_discount_percent"):
        if rental:
            values[name] = _prompt_number(cfg.FIELD_LABELS[name], cfg.DEFAULT_INPUTS[name])
        else:
            values[name] = cfg.DEFAULT_INPUTS[name]

    return SimulationConfig(**values)


# ═══════════════════════════════════════════════════════════════════
# Shared display-data computation (used by CLI and web app)
# ═══════════════════════════════════════════════════════════════════

def input_warnings(config: SimulationConfig, result: SimulationResult) -> List[str]:
    """Display-layer validation: things worth flagging, never errors."""
    safe = normalize_config(config)
    warnings: List[str] = []

    blank = [cfg.FIELD_LABELS[n] for n in cfg.NUMERIC_FIELDS if config.is_unset(n)]
    if blank:
        warnings.append(f"Blank fields treated as 0: {', '.join(blank)}.")

    for name in ("mortgage_balance", "mortgage_rate", "mortgage_years", "loc_limit",
                 "loc_rate", "tax_rate", "maintenance_rate"):
        if getattr(safe, name) < 0:
            warnings.append(f"{cfg.FIELD_LABELS[name]} is negative.")

    if safe.mortgage_years <= 0:
        warnings.append("Term must be greater than zero; no payments were simulated.")

    if result.cost_exceeds_income:
        outgoings = safe.monthly_expenses + result.mortgage_payment + result.monthly_maintenance
        warnings.append(
            f"Total costs exceed income! Expenses + Mortgage + Maintenance = "
            f"{fmt(outgoings)} > {fmt(safe.monthly_income)}."
        )

    for res in result.strategies().values():
        if not res.converged:
            warnings.append(
                f"{res.name} does not pay off within {format_months(res.months)} "
                f"(the payment does not cover the interest)."
            )
    return warnings


def _strategy_row(res: StrategyResult, result: SimulationResult) -> Dict[str, Any]:
    payment = res.effective_monthly_payment or result.mortgage_payment
    return {
        "key": res.key,
        "name": res.name,
        "monthly_payment": payment,
        "payoff": format_months(res.months),
        "months": res.months,
        "total_interest": res.total_interest,
        "total_loc_interest": res.total_loc_interest,
        "total_tax_savings": res.total_tax_savings,
        "investment_gain": res.investment_gain,
        "total_maintenance": res.total_maintenance,
        "net_cost": res.net_cost,
        "net_position": res.net_position,
        "final_home_value": res.final_home_value,
        "rental": res.rental,
        "converged": res.converged,
        "is_best": res.key == result.best_strategy.key,
    }


def compute_display_data(config: SimulationConfig, result: SimulationResult) -> Dict[str, Any]:
    """Extract every metric needed for the output sections."""
    safe = normalize_config(config)
    strategies = [_strategy_row(r, result) for r in result.strategies().values()]
    ranked = sorted(strategies, key=lambda s: s["net_position"], reverse=True)
    runner_up = ranked[1] if len(ranked) > 1 else ranked[0]

    return {
        # Inputs echo
        "mortgage_balance": safe.mortgage_balance,
        "mortgage_rate": safe.mortgage_rate,
        "mortgage_years": safe.mortgage_years,
        "monthly_income": safe.monthly_income,
        "monthly_expenses": safe.monthly_expenses,
        "loc_limit": safe.loc_limit,
        "loc_rate": safe.loc_rate,
        "investment_return": safe.investment_return,
        "rental_enabled": safe.enable_rental_comparison,
        # Derived
        "home_value": result.home_value,
        "mortgage_payment": result.mortgage_payment,
        "monthly_maintenance": result.monthly_maintenance,
        "leftover": result.leftover,
        "cost_exceeds_income": result.cost_exceeds_income,
        # Strategies
        "strategies": strategies,
        "best": result.best_strategy,
        "margin": ranked[0]["net_position"] - runner_up["net_position"],
        "runner_up": runner_up["name"],
        "rental": result.rental,
        "warnings": input_warnings(config, result),
    }


def generate_verdict_text(d: Dict[str, Any]) -> str:
    """Build a 1-2 sentence plain-English verdict."""
    best = d["best"]
    margin = fmt(d["margin"])
    if d["leftover"] <= 0:
        return (
            f"{best.name} comes out ahead, but there is no money left over each "
            f"month ({fmt(d['leftover'])}), so no strategy can accelerate payoff."
        )
    if best.key == cfg.INVESTMENT:
        return (
            f"{best.name} wins by {margin} over {d['runner_up']}: investing "
            f"{fmt(d['leftover'])}/mo at {pct(d['investment_return'])} earns more "
            f"than the {pct(d['mortgage_rate'])} mortgage interest it leaves in place."
        )
    return (
        f"{best.name} wins by {margin} over {d['runner_up']}: directing "
        f"{fmt(d['leftover'])}/mo at the debt minimizes total interest paid."
    )


def trace_window(trace: List[TraceRow], period: str = "first",
                 rows: int = cfg.DEBUG_TRACE_ROWS) -> List[TraceRow]:
    """First or last *rows* months of the LOC trace."""
    return trace[:rows] if period == "first" else trace[-rows:]


# ═══════════════════════════════════════════════════════════════════
# Box-drawing CLI output
# ═══════════════════════════════════════════════════════════════════

W = 78  # box width (characters)
H = "═"


def _box_top(title: str) -> str:
    inner = W - 2
    return (
        f"╔{H * inner}╗\n"
        f"║  {title:<{inner - 2}}║\n"
        f"╠{H * inner}╣"
    )


def _box_line(text: str = "") -> str:
    inner = W - 4
    if len(text) > inner:
        text = text[:inner]
    return f"║  {text:<{inner}}║"


def _box_row(label: str, value: str, lw: int = 38) -> str:
    return _box_line(f"{label:<{lw}}{value}")


def _box_bottom() -> str:
    return f"╚{H * (W - 2)}╝"


def _print_section(title: str, rows: List[str]) -> None:
    """Print a titled box with content rows."""
    print(_box_top(title))
    for r in rows:
        print(r)
    print(_box_bottom())
    print()


def _wrap(text: str, width: int = W - 6) -> List[str]:
    lines, line = [], ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            lines.append(line)
            line = word
    if line:
        lines.append(line)
    return lines


# ═══════════════════════════════════════════════════════════════════
# CLI Section Printers
# ═══════════════════════════════════════════════════════════════════

def _print_budget(d: Dict[str, Any]) -> None:
    rows = [
        _box_row("Mortgage balance", fmt(d["mortgage_balance"])),
        _box_row("Home value (80% LTV)", fmt(d["home_value"])),
        _box_row("Rate / term", f"{pct(d['mortgage_rate'], 2)} over {d['mortgage_years']:.0f} years"),
        _box_line(),
        _box_row("Monthly income", fmt(d["monthly_income"])),
        _box_row("Monthly expenses", fmt(d["monthly_expenses"])),
        _box_row("Mortgage payment", fmt(d["mortgage_payment"], 2)),
        _box_row("Maintenance", fmt(d["monthly_maintenance"], 2)),
        _box_row("Left over each month", fmt(d["leftover"], 2)),
    ]
    _print_section("YOUR BUDGET", rows)


def _print_strategy(s: Dict[str, Any], rental_enabled: bool) -> None:
    rows = [
        _box_row("Monthly payment", fmt(s["monthly_payment"])),
        _box_row("Payoff time", s["payoff"] + ("" if s["converged"] else " (capped)")),
        _box_row("Mortgage interest", fmt(s["total_interest"])),
    ]
    if s["total_loc_interest"] is not None:
        rows.append(_box_row("LOC interest", fmt(s["total_loc_interest"])))
    rows.append(_box_row("Tax savings", fmt(s["total_tax_savings"])))
    if s["investment_gain"] is not None:
        rows.append(_box_row("Investment gains", fmt(s["investment_gain"])))
    if rental_enabled:
        rows.append(_box_row("Total maintenance", fmt(s["total_maintenance"])))
        rows.append(_box_row("Home value at payoff", fmt(s["final_home_value"])))
    rows.append(_box_row("Net cost", fmt(s["net_cost"])))
    rows.append(_box_row("Net position", fmt(s["net_position"])))

    if s["rental"] is not None:
        r = s["rental"]
        rows.append(_box_line())
        rows.append(_box_line(f"If you rented for {format_months(r.months)} instead:"))
        rows.append(_box_row("  Investment gain", fmt(r.investment_gain)))
        rows.append(_box_row("  Rent cost", fmt(r.total_rent)))
        rows.append(_box_row("  Total", fmt(r.total)))

    marker = "  ★ BEST" if s["is_best"] else ""
    _print_section(f"{s['name'].upper()}{marker}", rows)


def _print_rental(d: Dict[str, Any]) -> None:
    rental = d["rental"]
    if rental is None:
        return
    rows = [
        _box_row("Monthly rent", fmt(rental.rental_payment)),
        _box_row("Longest horizon", format_months(rental.rental_months)),
        _box_row("Rent & invest comparison value", fmt(rental.comparison_value)),
    ]
    _print_section(cfg.RENTAL_NAME.upper(), rows)


def _print_verdict(d: Dict[str, Any]) -> None:
    best = d["best"]
    rows = [
        _box_row("Best strategy", best.name),
        _box_row("Net position", fmt(best.net_worth)),
        _box_line(),
    ]
    rows.extend(_box_line(line) for line in _wrap(generate_verdict_text(d)))
    _print_section("THE VERDICT", rows)


def _print_warnings(d: Dict[str, Any]) -> None:
    if not d["warnings"]:
        return
    rows = []
    for w in d["warnings"]:
        wrapped = _wrap(w, W - 8)
        rows.append(_box_line(f"! {wrapped[0]}"))
        rows.extend(_box_line(f"  {line}") for line in wrapped[1:])
    _print_section("WARNINGS", rows)


def _print_trace(result: SimulationResult, period: str) -> None:
    trace = result.accelerated.trace
    if not trace:
        return
    header = (f"{'Month':>5} {'Mortgage':>10} {'LOC':>9} {'Mort.Int':>8} "
              f"{'LOC Int':>7} {'Principal':>9} {'LOC Pay':>8} {'Total':>10}")
    rows = [_box_line(header), _box_line("─" * (W - 6))]
    for t in trace_window(trace, period):
        rows.append(_box_line(
            f"{t.month:>5} {fmt(t.mortgage_balance):>10} {fmt(t.loc_balance):>9} "
            f"{fmt(t.mortgage_interest):>8} {fmt(t.loc_interest):>7} "
            f"{fmt(t.principal_payment):>9} {fmt(t.loc_payment):>8} "
            f"{fmt(t.total_balance):>10}"
        ))
    last = trace[-1]
    rows.append(_box_line())
    rows.append(_box_row("Total months calculated", str(len(trace))))
    rows.append(_box_row("Final mortgage balance", fmt(last.mortgage_balance)))
    rows.append(_box_row("Final LOC balance", fmt(last.loc_balance)))
    rows.append(_box_row("Final total balance", fmt(last.total_balance)))
    _print_section(f"LOC STRATEGY DEBUG OUTPUT ({period.upper()} 12 MONTHS)", rows)


def _print_sweep(sweep: SweepResult) -> None:
    wins = sweep.loc_advantage > 0
    rows = []
    if not wins.any():
        rows.append(_box_line("Extra principal beats LOC chunking at every rate tested."))
    else:
        for i, m_rate in enumerate(sweep.mortgage_rates):
            loc_wins = [f"{r:.0f}%" for r, w in zip(sweep.loc_rates, wins[i]) if w]
            if loc_wins:
                rows.append(_box_line(f"Mortgage {m_rate:.1f}%: LOC wins at {', '.join(loc_wins)}"))
    _print_section("WHEN DOES LOC CHUNKING WIN?", rows)


# ═══════════════════════════════════════════════════════════════════
# Main CLI entry point
# ═══════════════════════════════════════════════════════════════════

def run_cli(debug: bool = False, trace_period: str = "first",
            pdf_path: Optional[str] = cfg.PDF_FILENAME) -> None:
    """Run the full CLI workflow."""
    # Ensure box-drawing characters render on Windows
    try:
        sys.stdout.reconfigure(encoding="utf-8")
    except (AttributeError, OSError):
        pass
    print()
    print("=" * W)
    print("  Mortgage Payoff Strategies: Extra Principal vs LOC vs Invest")
    print("=" * W)

    config = collect_inputs()
    tracker = events.StrategyTracker(events.LoguruEventSink(),
                                     previous_config=SimulationConfig())

    result = run_strategy_simulation(config)
    tracker.observe(config, result)
    d = compute_display_data(config, result)

    print()
    _print_budget(d)
    for s in d["strategies"]:
        _print_strategy(s, d["rental_enabled"])
    _print_rental(d)
    _print_verdict(d)
    _print_warnings(d)
    if debug:
        _print_trace(result, trace_period)

    print("  Running rate sweep...")
    sweep = rate_sweep(config)
    print("  Done.\n")
    _print_sweep(sweep)

    if pdf_path:
        print("  Generating PDF report...")
        report.generate_pdf(config, result, sweep, d, generate_verdict_text(d), pdf_path)
        print(f"  Saved to {pdf_path}\n")


if __name__ == "__main__":
    run_cli()
