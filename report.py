"""
PDF report generation and reusable chart rendering for the
mortgage payoff strategy simulator.

Provides:
  - Multi-page PDF report (generate_pdf)
  - Base64-encoded chart images for web embedding (get_web_charts)
  - Individual page renderers reusable by both CLI and web
"""

from __future__ import annotations

import base64
import io
from typing import Any, Callable, Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
# Labels carry literal dollar signs; none of them are mathtext
matplotlib.rcParams["text.parse_math"] = False
import matplotlib.pyplot as plt
from matplotlib.backends.backend_pdf import PdfPages
from matplotlib.colors import TwoSlopeNorm
from matplotlib.ticker import FuncFormatter
import numpy as np

import config as cfg
from simulation import (
    SimulationConfig,
    SimulationResult,
    SweepResult,
    chart_arrays,
    normalize_config,
)

# ═══════════════════════════════════════════════════════════════════
# Style constants
# ═══════════════════════════════════════════════════════════════════

BG = "#0a101f"
CARD = "#131b2e"
TEXT = "#f1f5f9"
TEXT2 = "#cbd5e1"
INDIGO = "#818cf8"
EMERALD = "#34d399"
AMBER = "#fbbf24"
RED = "#f87171"
SLATE = "#94a3b8"
BORDER = "#1e293b"
VIOLET = "#c4b5fd"

STRATEGY_COLORS = {
    cfg.TRADITIONAL: SLATE,
    cfg.EXTRA_PAYMENT: INDIGO,
    cfg.ACCELERATED: AMBER,
    cfg.INVESTMENT: EMERALD,
}

A4W, A4H = 8.27, 11.69
WEB_W, WEB_H = 10, 7


# ═══════════════════════════════════════════════════════════════════
# Axis formatters
# ═══════════════════════════════════════════════════════════════════

def _usd_fmt(x, _):
    sign = "-" if x < 0 else ""
    x = abs(x)
    if x >= 1e6:
        return f"{sign}${x / 1e6:.1f}M"
    if x >= 1e3:
        return f"{sign}${x / 1e3:.0f}k"
    return f"{sign}${x:.0f}"


USD_FMT = FuncFormatter(_usd_fmt)


# ═══════════════════════════════════════════════════════════════════
# Style helpers
# ═══════════════════════════════════════════════════════════════════

def _style(fig, *axes):
    """Apply dark theme to figure and all axes."""
    fig.patch.set_facecolor(BG)
    for ax in axes:
        ax.set_facecolor(CARD)
        ax.tick_params(colors=TEXT, labelsize=8)
        ax.xaxis.label.set_color(TEXT)
        ax.yaxis.label.set_color(TEXT)
        ax.title.set_color(TEXT)
        for spine in ax.spines.values():
            spine.set_color(BORDER)
        ax.grid(True, alpha=0.15, color=SLATE)


def _legend(ax, loc="upper right"):
    ax.legend(loc=loc, fontsize=8, facecolor=CARD, edgecolor=BORDER, labelcolor=TEXT)


def _wrapped_text(fig, x, y, text, width=85, fontsize=9, color=TEXT2, step=0.022):
    """Word-wrap *text* onto the figure, returning the next free y."""
    line = ""
    for word in text.split():
        if len(line) + len(word) + 1 <= width:
            line = f"{line} {word}" if line else word
        else:
            fig.text(x, y, line, fontsize=fontsize, color=color)
            y -= step
            line = word
    if line:
        fig.text(x, y, line, fontsize=fontsize, color=color)
        y -= step
    return y


# ═══════════════════════════════════════════════════════════════════
# Summary page (text only, dark background)
# ═══════════════════════════════════════════════════════════════════

def _summary_page(config: SimulationConfig, d: Dict, verdict_text: str) -> plt.Figure:
    safe = normalize_config(config)
    fig = plt.figure(figsize=(A4W, A4H))
    fig.patch.set_facecolor(BG)

    fig.text(0.50, 0.93, "Mortgage Payoff Strategies",
             ha="center", fontsize=18, color=TEXT, fontweight="bold")
    fig.text(0.50, 0.91, "Extra Principal vs LOC vs Invest",
             ha="center", fontsize=11, color=TEXT2)

    y = 0.86
    fig.text(0.08, y, "Your Parameters", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.028
    params = [
        f"Balance: ${safe.mortgage_balance:,.0f}  |  Rate: {safe.mortgage_rate:.2f}%  |  "
        f"Term: {safe.mortgage_years:.0f} yrs  |  Home value: ${d['home_value']:,.0f}",
        f"Income: ${safe.monthly_income:,.0f}/mo  |  Expenses: ${safe.monthly_expenses:,.0f}/mo  |  "
        f"LOC: ${safe.loc_limit:,.0f} at {safe.loc_rate:.1f}%",
        f"Tax rate: {safe.tax_rate:.0f}%  |  Investment return: {safe.investment_return:.1f}%  |  "
        f"Maintenance: {safe.maintenance_rate:.1f}%/yr",
        f"Payment: ${d['mortgage_payment']:,.2f}/mo  |  "
        f"Left over: ${d['leftover']:,.2f}/mo",
    ]
    for p in params:
        fig.text(0.10, y, p, fontsize=9, color=TEXT2)
        y -= 0.024

    for s in d["strategies"]:
        y -= 0.02
        color = STRATEGY_COLORS[s["key"]]
        title = s["name"] + ("  ★ best" if s["is_best"] else "")
        fig.text(0.08, y, title, fontsize=12, color=color, fontweight="bold")
        y -= 0.026
        lines = [
            f"Payoff: {s['payoff']}  |  Payment: ${s['monthly_payment']:,.0f}/mo",
            f"Interest: ${s['total_interest']:,.0f}  |  Tax savings: "
            f"${s['total_tax_savings']:,.0f}  |  Net cost: ${s['net_cost']:,.0f}",
            f"Net position: ${s['net_position']:,.0f}",
        ]
        if s["total_loc_interest"] is not None:
            lines[1] += f"  |  LOC interest: ${s['total_loc_interest']:,.0f}"
        if s["investment_gain"] is not None:
            lines[2] += f"  |  Investment gains: ${s['investment_gain']:,.0f}"
        for line in lines:
            fig.text(0.10, y, line, fontsize=9, color=TEXT2)
            y -= 0.022

    y -= 0.03
    fig.text(0.08, y, "The Verdict", fontsize=13, color=TEXT, fontweight="bold")
    y -= 0.03
    best = d["best"]
    fig.text(0.10, y, f"{best.name.upper()} WINS: net position ${best.net_worth:,.0f}",
             fontsize=12, color=STRATEGY_COLORS[best.key], fontweight="bold")
    y -= 0.03
    y = _wrapped_text(fig, 0.10, y, verdict_text)

    if d["warnings"]:
        y -= 0.02
        fig.text(0.08, y, "Warnings", fontsize=13, color=RED, fontweight="bold")
        y -= 0.028
        for w in d["warnings"]:
            y = _wrapped_text(fig, 0.10, y, w, color=RED)

    fig.text(0.50, 0.03,
             "This is not financial advice. Rates are held constant for the "
             "life of the loan.",
             ha="center", fontsize=8, color=SLATE, style="italic")
    return fig


# ═══════════════════════════════════════════════════════════════════
# Debt Balance Over Time (the key chart)
# ═══════════════════════════════════════════════════════════════════

def _chart_balances(result: SimulationResult, figsize=(A4W, A4H * 0.6)) -> plt.Figure:
    cols = chart_arrays(result.chart_data)
    years = cols["year"]

    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    for key in (cfg.TRADITIONAL, cfg.EXTRA_PAYMENT, cfg.ACCELERATED):
        ax.plot(years, cols[key], color=STRATEGY_COLORS[key], linewidth=2.2,
                label=cfg.STRATEGY_NAMES[key], solid_capstyle="round")
    ax.plot(years, cols["investment_portfolio"], color=EMERALD, linewidth=1.8,
            linestyle="--", label=f"{cfg.STRATEGY_NAMES[cfg.INVESTMENT]} portfolio")

    ax.yaxis.set_major_formatter(USD_FMT)
    ax.set_xlabel("Year")
    ax.set_ylabel("Remaining Debt")
    ax.set_title("Debt Balance Over Time", fontsize=14, pad=15)
    _legend(ax)

    # Mark payoff of the fastest debt strategy
    fastest = min((result.extra_payment, result.accelerated), key=lambda r: r.months)
    if fastest.converged and fastest.months < result.traditional.months:
        saved = (result.traditional.months - fastest.months) / cfg.MONTHS_PER_YEAR
        ax.annotate(
            f"{fastest.name} pays off\n{saved:.1f} years sooner",
            xy=(fastest.months / cfg.MONTHS_PER_YEAR, 0), fontsize=9,
            color=STRATEGY_COLORS[fastest.key],
            xytext=(10, 40), textcoords="offset points",
            arrowprops=dict(arrowstyle="->", color=STRATEGY_COLORS[fastest.key], lw=1.2),
            bbox=dict(boxstyle="round,pad=0.3", facecolor=BG,
                      edgecolor=STRATEGY_COLORS[fastest.key], alpha=0.9),
        )
    return fig


# ═══════════════════════════════════════════════════════════════════
# Net Position + Cost Breakdown
# ═══════════════════════════════════════════════════════════════════

def _chart_net_position(result: SimulationResult, figsize=(WEB_W, WEB_H - 1)) -> plt.Figure:
    """Horizontal bars of net position, with the rental comparison when on."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    strategies = list(result.strategies().values())
    names = [s.name for s in strategies]
    values = [s.net_position for s in strategies]
    colors = [STRATEGY_COLORS[s.key] for s in strategies]
    if result.rental is not None:
        names.append(cfg.RENTAL_NAME)
        values.append(result.rental.comparison_value)
        colors.append(VIOLET)

    y = np.arange(len(names))
    ax.barh(y, values, color=colors, edgecolor=BORDER)
    ax.set_yticks(y)
    ax.set_yticklabels(names)
    ax.invert_yaxis()
    ax.axvline(0, color=TEXT, linewidth=1, alpha=0.5)
    ax.xaxis.set_major_formatter(USD_FMT)
    ax.set_xlabel("Net Position")
    ax.set_title("Net Position by Strategy", fontsize=13, pad=12)

    best_idx = next(i for i, s in enumerate(strategies) if s.key == result.best_strategy.key)
    ax.annotate("★ best", xy=(values[best_idx], best_idx), fontsize=9,
                color=AMBER, fontweight="bold", xytext=(6, -3),
                textcoords="offset points")
    return fig


def _chart_cost_breakdown(result: SimulationResult, figsize=(WEB_W, WEB_H - 1)) -> plt.Figure:
    """Stacked interest components per strategy, tax savings shown negative."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    strategies = list(result.strategies().values())
    x = np.arange(len(strategies))
    interest = np.array([s.total_interest for s in strategies])
    loc_interest = np.array([s.total_loc_interest or 0.0 for s in strategies])
    tax = np.array([s.total_tax_savings for s in strategies])
    gains = np.array([s.investment_gain or 0.0 for s in strategies])

    ax.bar(x, interest, 0.55, color=INDIGO, label="Mortgage interest")
    ax.bar(x, loc_interest, 0.55, bottom=interest, color=AMBER, label="LOC interest")
    ax.bar(x, -tax, 0.55, color=EMERALD, label="Tax savings")
    ax.bar(x, -gains, 0.55, bottom=-tax, color=VIOLET, label="Investment gains")
    ax.scatter(x, [s.net_cost for s in strategies], color=TEXT, zorder=5,
               marker="D", s=30, label="Net cost")

    ax.axhline(0, color=TEXT, linewidth=1, alpha=0.5)
    ax.set_xticks(x)
    ax.set_xticklabels([s.name for s in strategies])
    ax.yaxis.set_major_formatter(USD_FMT)
    ax.set_title("Where the Money Goes", fontsize=13, pad=12)
    _legend(ax)
    return fig


def _outcomes_page(result: SimulationResult, figsize=(A4W, A4H)) -> plt.Figure:
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=figsize, constrained_layout=True)
    _style(fig, ax1, ax2)

    strategies = list(result.strategies().values())
    names = [s.name for s in strategies]

    ax1.bar(names, [s.net_position for s in strategies],
            color=[STRATEGY_COLORS[s.key] for s in strategies], edgecolor=BORDER)
    ax1.axhline(0, color=TEXT, linewidth=1, alpha=0.5)
    ax1.yaxis.set_major_formatter(USD_FMT)
    ax1.set_ylabel("Net Position")
    ax1.set_title("Net Position at Payoff", fontsize=11, pad=10)

    months = [s.months / cfg.MONTHS_PER_YEAR for s in strategies]
    ax2.bar(names, months, color=[STRATEGY_COLORS[s.key] for s in strategies],
            edgecolor=BORDER)
    for i, s in enumerate(strategies):
        if not s.converged:
            ax2.annotate("capped", xy=(i, months[i]), fontsize=8, color=RED,
                         ha="center", xytext=(0, 4), textcoords="offset points")
    ax2.set_ylabel("Years")
    ax2.set_title("Time to Debt Free", fontsize=11, pad=10)
    return fig


# ═══════════════════════════════════════════════════════════════════
# LOC Strategy Trace
# ═══════════════════════════════════════════════════════════════════

def _chart_loc_trace(result: SimulationResult, figsize=(A4W, A4H * 0.6)) -> plt.Figure:
    trace = result.accelerated.trace
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=figsize, constrained_layout=True,
                                   sharex=True)
    _style(fig, ax1, ax2)

    if not trace:
        ax1.annotate("No LOC activity", xy=(0.5, 0.5), xycoords="axes fraction",
                     fontsize=11, color=SLATE, ha="center")
        return fig

    months = np.array([t.month for t in trace])
    ax1.plot(months, [t.mortgage_balance for t in trace], color=INDIGO,
             linewidth=1.8, label="Mortgage")
    ax1.plot(months, [t.loc_balance for t in trace], color=AMBER,
             linewidth=1.2, label="LOC")
    ax1.yaxis.set_major_formatter(USD_FMT)
    ax1.set_ylabel("Balance")
    ax1.set_title("LOC Strategy: Balances by Month", fontsize=11, pad=10)
    _legend(ax1)

    ax2.plot(months, [t.mortgage_interest for t in trace], color=INDIGO,
             linewidth=1.5, label="Mortgage interest")
    ax2.plot(months, [t.loc_interest for t in trace], color=AMBER,
             linewidth=1.2, label="LOC interest")
    ax2.yaxis.set_major_formatter(USD_FMT)
    ax2.set_xlabel("Month")
    ax2.set_ylabel("Interest / month")
    _legend(ax2)
    return fig


# ═══════════════════════════════════════════════════════════════════
# Rental comparison (only when enabled)
# ═══════════════════════════════════════════════════════════════════

def _chart_rental(result: SimulationResult, figsize=(WEB_W, WEB_H - 1)) -> plt.Figure:
    """Owning (net position) vs renting for the same horizon, per strategy."""
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)

    strategies = list(result.strategies().values())
    x = np.arange(len(strategies))
    w = 0.35
    own = [s.net_position for s in strategies]
    rent = [s.rental.total if s.rental is not None else 0.0 for s in strategies]
    ax.bar(x - w / 2, own, w, color=INDIGO, label="Own: net position")
    ax.bar(x + w / 2, rent, w, color=VIOLET, label="Rent & invest: gain - rent")
    ax.axhline(0, color=TEXT, linewidth=1, alpha=0.5)
    ax.set_xticks(x)
    ax.set_xticklabels([s.name for s in strategies])
    ax.yaxis.set_major_formatter(USD_FMT)
    ax.set_title(f"Owning vs Renting at ${result.rental.rental_payment:,.0f}/mo",
                 fontsize=13, pad=12)
    _legend(ax)
    return fig


# ═══════════════════════════════════════════════════════════════════
# Rate Sweep (heatmap)
# ═══════════════════════════════════════════════════════════════════

def _chart_sweep(sweep: SweepResult, config: SimulationConfig,
                 figsize=(A4W, A4H * 0.6)) -> plt.Figure:
    safe = normalize_config(config)
    fig, ax = plt.subplots(figsize=figsize, constrained_layout=True)
    _style(fig, ax)
    ax.grid(False)

    adv = sweep.loc_advantage
    span = max(float(np.abs(adv).max()), 1.0)
    norm = TwoSlopeNorm(vmin=-span, vcenter=0.0, vmax=span)
    im = ax.imshow(adv, cmap="RdYlGn", norm=norm, aspect="auto", origin="lower")

    ax.set_xticks(np.arange(len(sweep.loc_rates)))
    ax.set_xticklabels([f"{r:.0f}%" for r in sweep.loc_rates])
    ax.set_yticks(np.arange(len(sweep.mortgage_rates)))
    ax.set_yticklabels([f"{r:.1f}%" for r in sweep.mortgage_rates])
    ax.set_xlabel("LOC rate")
    ax.set_ylabel("Mortgage rate")

    for i in range(adv.shape[0]):
        for j in range(adv.shape[1]):
            ax.text(j, i, _usd_fmt(adv[i, j], None), ha="center", va="center",
                    fontsize=7, color=BG)

    # Star at user's position
    mi = int(np.argmin(np.abs(sweep.mortgage_rates - safe.mortgage_rate)))
    li = int(np.argmin(np.abs(sweep.loc_rates - safe.loc_rate)))
    ax.plot(li, mi, marker="*", markersize=16, color=AMBER,
            markeredgecolor="white", markeredgewidth=0.5)

    cbar = fig.colorbar(im, ax=ax, format=USD_FMT)
    cbar.ax.tick_params(colors=TEXT, labelsize=7)
    cbar.set_label("LOC advantage over Extra Principal", color=TEXT)
    ax.set_title("When Does LOC Chunking Win?", fontsize=13, pad=12)
    return fig


# ═══════════════════════════════════════════════════════════════════
# Public API
# ═══════════════════════════════════════════════════════════════════

def figure_to_base64(fig: plt.Figure) -> str:
    """Convert a matplotlib figure to a base64-encoded PNG string."""
    buf = io.BytesIO()
    fig.savefig(buf, format="png", facecolor=fig.get_facecolor(),
                dpi=150, bbox_inches="tight")
    buf.seek(0)
    b64 = base64.b64encode(buf.read()).decode()
    buf.close()
    return b64


def _page_builders(config, result, sweep, d, verdict_text) -> List[Callable[[], plt.Figure]]:
    """PDF pages in order; optional pages only when their data exists."""
    builders = [
        lambda: _summary_page(config, d, verdict_text),
        lambda: _chart_balances(result),
        lambda: _outcomes_page(result),
        lambda: _chart_cost_breakdown(result, figsize=(A4W, A4H * 0.55)),
        lambda: _chart_loc_trace(result),
    ]
    if result.rental is not None:
        builders.append(lambda: _chart_rental(result, figsize=(A4W, A4H * 0.55)))
    if sweep is not None:
        builders.append(lambda: _chart_sweep(sweep, config))
    return builders


def generate_pdf(
    config: SimulationConfig,
    result: SimulationResult,
    sweep: Optional[SweepResult],
    d: Dict[str, Any],
    verdict_text: str,
    path: str = cfg.PDF_FILENAME,
) -> str:
    """Generate the full PDF report. Returns the file path.

    Every figure opened here is closed again, even when a page fails.
    """
    pages: List[plt.Figure] = []
    try:
        for build in _page_builders(config, result, sweep, d, verdict_text):
            pages.append(build())
        with PdfPages(path) as pdf:
            for fig in pages:
                pdf.savefig(fig, facecolor=fig.get_facecolor())
    finally:
        for fig in pages:
            plt.close(fig)
    return path


def get_web_charts(
    config: SimulationConfig,
    result: SimulationResult,
    sweep: Optional[SweepResult] = None,
) -> Dict[str, str]:
    """Return base64-encoded PNG chart images for web embedding, keyed
    by chart type (the names reported on chart interaction)."""
    builders = {
        "balance": lambda: _chart_balances(result, figsize=(WEB_W, WEB_H)),
        "net_position": lambda: _chart_net_position(result),
        "cost_breakdown": lambda: _chart_cost_breakdown(result),
        "loc_trace": lambda: _chart_loc_trace(result, figsize=(WEB_W, WEB_H)),
    }
    if result.rental is not None:
        builders["rental"] = lambda: _chart_rental(result)
    if sweep is not None:
        builders["rate_sweep"] = lambda: _chart_sweep(sweep, config, figsize=(WEB_W, WEB_H))

    images: Dict[str, str] = {}
    for name, build in builders.items():
        fig = build()
        try:
            images[name] = figure_to_base64(fig)
        finally:
            plt.close(fig)
    return images
