"""
Flask web application for the mortgage payoff strategy simulator.

Single-file app using render_template_string.  Run via ``python main.py``
which starts the dev server on localhost:5000.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Optional, Tuple

from flask import Flask, abort, jsonify, render_template_string, request, send_file
from loguru import logger

import config as cfg
import events
from simulation import (
    SimulationConfig,
    rate_sweep,
    result_to_dict,
    run_strategy_simulation,
)
from cli import (
    compute_display_data,
    format_months,
    generate_verdict_text,
    fmt,
    pct,
)
import report

app = Flask(__name__)
app.config["PDF_PATH"] = cfg.PDF_FILENAME

# Replaced in tests with a RecordingEventSink
event_sink: events.EventSink = events.LoguruEventSink()

PREV_PREFIX = "prev_"

# ═══════════════════════════════════════════════════════════════════
# Form parsing
# ═══════════════════════════════════════════════════════════════════

def parse_form(form: Dict[str, str]) -> SimulationConfig:
    """Parse the HTML form into a SimulationConfig.

    Raw strings are kept as typed (a cleared field stays ``""``); the
    engine normalizes them, so this never raises. Fields absent from the
    post keep their defaults; an unticked checkbox is absent, so off.
    """
    data: Dict[str, Any] = {name: form.get(name, cfg.DEFAULT_INPUTS[name])
                            for name in cfg.NUMERIC_FIELDS}
    data["enable_rental_comparison"] = form.get("enable_rental_comparison", "")
    return SimulationConfig.from_mapping(data)


def parse_previous(form: Dict[str, str]) -> Tuple[Optional[SimulationConfig], Optional[str]]:
    """Config and best strategy of the last render, from hidden fields."""
    prev = {k[len(PREV_PREFIX):]: v for k, v in form.items() if k.startswith(PREV_PREFIX)}
    best = prev.pop("best", "") or None
    if not prev:
        return None, best
    return SimulationConfig.from_mapping(prev), best


def form_values(config: SimulationConfig) -> Dict[str, Any]:
    """Values to echo back into the form inputs."""
    values = {name: "" if config.is_unset(name) else getattr(config, name)
              for name in cfg.NUMERIC_FIELDS}
    values["enable_rental_comparison"] = config.enable_rental_comparison
    return values


# ═══════════════════════════════════════════════════════════════════
# HTML Template
# ═══════════════════════════════════════════════════════════════════

CHART_TITLES = {
    "balance": ("Debt Balance Over Time",
                "Remaining mortgage plus LOC balance at the end of each year. "
                "The dashed line is the Invest & Pay portfolio."),
    "net_position": ("Net Position by Strategy",
                     "Home value at payoff minus the loan, interest and maintenance, "
                     "plus tax savings and investment gains."),
    "cost_breakdown": ("Where the Money Goes",
                       "Interest paid above zero; tax savings and investment gains below."),
    "loc_trace": ("LOC Strategy Month by Month",
                  "Each chunk moves principal onto the line of credit, which the "
                  "leftover then pays down."),
    "rental": ("Owning vs Renting",
               "Renting for the same horizon and investing the difference."),
    "rate_sweep": ("When Does LOC Chunking Win?",
                   "LOC net position minus Extra Principal net position across "
                   "mortgage and LOC rates. Green cells favor the LOC."),
}

HTML_TEMPLATE = r"""
<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0">
<title>Mortgage Payoff Strategies</title>
<style>
  *{margin:0;padding:0;box-sizing:border-box}
  :root{
    --bg-deep:#050816;
    --bg-surface:rgba(15,23,42,0.55);
    --bg-input:rgba(8,11,22,0.85);
    --border-subtle:rgba(99,102,241,0.1);
    --text-primary:#f1f5f9;
    --text-secondary:#94a3b8;
    --text-muted:#64748b;
    --indigo:#818cf8;
    --emerald:#34d399;
    --amber:#fbbf24;
    --red:#f87171;
    --radius-lg:16px;
    --radius-md:10px;
  }
  body{
    background:var(--bg-deep);color:var(--text-primary);
    font-family:system-ui,-apple-system,sans-serif;line-height:1.6;
  }
  .container{max-width:1140px;margin:0 auto;padding:2rem 1.5rem}
  .hero{text-align:center;padding:1.5rem 0 2rem}
  .hero h1{font-size:2.2rem;font-weight:800}
  .hero-sub{color:var(--text-secondary)}
  .card{
    background:var(--bg-surface);border:1px solid var(--border-subtle);
    border-radius:var(--radius-lg);padding:1.5rem;margin-bottom:1.5rem;
  }
  .card h2{font-size:1.1rem;margin-bottom:1rem}
  .form-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(240px,1fr));gap:1rem}
  .form-group label{display:block;font-size:.8rem;color:var(--text-secondary);margin-bottom:.3rem}
  .form-group input[type=text]{
    width:100%;padding:.55rem .8rem;background:var(--bg-input);color:var(--text-primary);
    border:1px solid var(--border-subtle);border-radius:var(--radius-md);
  }
  .btn{
    display:inline-block;padding:.65rem 1.4rem;border:0;border-radius:var(--radius-md);
    font-weight:600;cursor:pointer;text-decoration:none;color:#fff;
  }
  .btn-primary{background:#6366f1}
  .btn-success{background:#10b981}
  .strategy-grid{display:grid;grid-template-columns:repeat(auto-fill,minmax(250px,1fr));gap:1rem}
  .best{border-color:var(--amber);box-shadow:0 0 24px rgba(251,191,36,.15)}
  .stat-row{display:flex;justify-content:space-between;padding:.35rem 0;border-bottom:1px solid var(--border-subtle);font-size:.9rem}
  .stat-label{color:var(--text-secondary)}
  .stat-value{font-weight:600}
  .tag-amber{color:var(--amber)}
  .tag-emerald{color:var(--emerald)}
  .warning{color:var(--red);margin:.3rem 0}
  .verdict{font-size:1.05rem}
  .chart-desc{color:var(--text-secondary);font-size:.85rem;margin-bottom:.8rem}
  .chart-img{width:100%;border-radius:var(--radius-md);cursor:pointer}
  .trace-table{width:100%;border-collapse:collapse;font-size:.8rem}
  .trace-table th,.trace-table td{padding:.3rem .5rem;text-align:right;border-bottom:1px solid var(--border-subtle)}
  .footer{text-align:center;color:var(--text-muted);font-size:.8rem;padding:2rem 0}
</style>
</head>
<body>
<div class="container">

<header class="hero">
  <h1>Mortgage Payoff Strategies</h1>
  <p class="hero-sub">Extra principal, LOC chunking or investing the difference: which leaves you ahead?</p>
</header>

<!-- Input Form -->
<div class="card">
  <h2>Your Details</h2>
  <form method="POST" id="sim-form">
    <div class="form-grid">
      {% for name in fields %}
      <div class="form-group">
        <label for="{{ name }}">{{ labels[name] }}</label>
        <input type="text" id="{{ name }}" name="{{ name }}" value="{{ form[name] }}">
      </div>
      {% endfor %}
      <div class="form-group">
        <label for="enable_rental_comparison">{{ labels.enable_rental_comparison }}</label>
        <input type="checkbox" id="enable_rental_comparison" name="enable_rental_comparison"
               value="1" {{ 'checked' if form.enable_rental_comparison }}>
      </div>
    </div>

    <!-- Last run, for change tracking -->
    {% for name in fields %}
    <input type="hidden" name="prev_{{ name }}" value="{{ form[name] }}">
    {% endfor %}
    <input type="hidden" name="prev_enable_rental_comparison" value="{{ '1' if form.enable_rental_comparison else '0' }}">
    <input type="hidden" name="prev_best" value="{{ d.best.name if d else '' }}">

    <div style="margin-top:1.2rem">
      <button type="submit" class="btn btn-primary">Compare Strategies</button>
    </div>
  </form>
</div>

{% if d %}
<!-- ═══════════════════════════════════════════════════════════ -->
<!-- RESULTS                                                     -->
<!-- ═══════════════════════════════════════════════════════════ -->

{% if d.warnings %}
<div class="card">
  <h2>Warnings</h2>
  {% for w in d.warnings %}<p class="warning">{{ w }}</p>{% endfor %}
</div>
{% endif %}

<div class="card">
  <h2>Your Budget</h2>
  <div class="stat-row"><span class="stat-label">Home value</span><span class="stat-value">{{ fmt(d.home_value) }}</span></div>
  <div class="stat-row"><span class="stat-label">Mortgage payment</span><span class="stat-value">{{ fmt(d.mortgage_payment, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Maintenance</span><span class="stat-value">{{ fmt(d.monthly_maintenance, 2) }}</span></div>
  <div class="stat-row"><span class="stat-label">Left over each month</span><span class="stat-value {{ 'tag-emerald' if d.leftover > 0 else 'tag-amber' }}">{{ fmt(d.leftover, 2) }}</span></div>
</div>

<div class="strategy-grid">
  {% for s in d.strategies %}
  <div class="card {{ 'best' if s.is_best }}">
    <h2>{{ s.name }}{% if s.is_best %} <span class="tag-amber">&#9733;</span>{% endif %}</h2>
    <div class="stat-row"><span class="stat-label">Monthly payment</span><span class="stat-value">{{ fmt(s.monthly_payment) }}</span></div>
    <div class="stat-row"><span class="stat-label">Payoff time</span><span class="stat-value">{{ s.payoff }}{% if not s.converged %} (capped){% endif %}</span></div>
    <div class="stat-row"><span class="stat-label">Mortgage interest</span><span class="stat-value">{{ fmt(s.total_interest) }}</span></div>
    {% if s.total_loc_interest is not none %}
    <div class="stat-row"><span class="stat-label">LOC interest</span><span class="stat-value">{{ fmt(s.total_loc_interest) }}</span></div>
    {% endif %}
    <div class="stat-row"><span class="stat-label">Tax savings</span><span class="stat-value">{{ fmt(s.total_tax_savings) }}</span></div>
    {% if s.investment_gain is not none %}
    <div class="stat-row"><span class="stat-label">Investment gains</span><span class="stat-value">{{ fmt(s.investment_gain) }}</span></div>
    {% endif %}
    {% if d.rental_enabled %}
    <div class="stat-row"><span class="stat-label">Total maintenance</span><span class="stat-value">{{ fmt(s.total_maintenance) }}</span></div>
    <div class="stat-row"><span class="stat-label">Home value at payoff</span><span class="stat-value">{{ fmt(s.final_home_value) }}</span></div>
    {% endif %}
    <div class="stat-row"><span class="stat-label">Net cost</span><span class="stat-value">{{ fmt(s.net_cost) }}</span></div>
    <div class="stat-row"><span class="stat-label">Net position</span><span class="stat-value">{{ fmt(s.net_position) }}</span></div>
    {% if s.rental %}
    <div class="stat-row"><span class="stat-label">Rent &amp; invest ({{ format_months(s.rental.months) }})</span><span class="stat-value">{{ fmt(s.rental.total) }}</span></div>
    {% endif %}
  </div>
  {% endfor %}
</div>

{% if d.rental %}
<div class="card">
  <h2>Rent &amp; Invest</h2>
  <div class="stat-row"><span class="stat-label">Monthly rent</span><span class="stat-value">{{ fmt(d.rental.rental_payment) }}</span></div>
  <div class="stat-row"><span class="stat-label">Longest horizon</span><span class="stat-value">{{ format_months(d.rental.rental_months) }}</span></div>
  <div class="stat-row"><span class="stat-label">Comparison value</span><span class="stat-value">{{ fmt(d.rental.comparison_value) }}</span></div>
</div>
{% endif %}

<div class="card best">
  <h2>The Verdict: <span class="tag-amber">{{ d.best.name }}</span> ({{ fmt(d.best.net_worth) }})</h2>
  <p class="verdict">{{ verdict_text }}</p>
</div>

{% for key, img in charts.items() %}
<div class="card">
  <h2>{{ chart_titles[key][0] }}</h2>
  <p class="chart-desc">{{ chart_titles[key][1] }}</p>
  <img class="chart-img" data-chart="{{ key }}" src="data:image/png;base64,{{ img }}" alt="{{ chart_titles[key][0] }}">
</div>
{% endfor %}

{% if trace %}
<div class="card">
  <details>
    <summary>LOC strategy: first {{ trace|length }} months</summary>
    <table class="trace-table">
      <tr><th>Month</th><th>Mortgage</th><th>LOC</th><th>Mortgage int.</th><th>LOC int.</th><th>Principal</th><th>LOC payment</th><th>Total</th></tr>
      {% for t in trace %}
      <tr><td>{{ t.month }}</td><td>{{ fmt(t.mortgage_balance) }}</td><td>{{ fmt(t.loc_balance) }}</td>
          <td>{{ fmt(t.mortgage_interest) }}</td><td>{{ fmt(t.loc_interest) }}</td><td>{{ fmt(t.principal_payment) }}</td>
          <td>{{ fmt(t.loc_payment) }}</td><td>{{ fmt(t.total_balance) }}</td></tr>
      {% endfor %}
    </table>
  </details>
</div>
{% endif %}

<div style="text-align:center;margin:1.5rem 0">
  <a href="/download-pdf" class="btn btn-success">Download PDF Report</a>
</div>
{% endif %}

<div class="footer">Deterministic monthly simulation &middot; rates held constant &middot; not financial advice</div>
</div>

<script>
document.querySelectorAll('.chart-img').forEach(function(img){
  img.addEventListener('click',function(){
    fetch('/api/events/chart',{method:'POST',headers:{'Content-Type':'application/json'},
      body:JSON.stringify({chart_type:img.dataset.chart})});
  });
});
</script>
</body>
</html>
"""


def _render(form: Dict[str, Any], d=None, charts=None, verdict_text="", trace=None):
    return render_template_string(
        HTML_TEMPLATE,
        form=form,
        fields=cfg.NUMERIC_FIELDS,
        labels=cfg.FIELD_LABELS,
        d=d,
        charts=charts or {},
        chart_titles=CHART_TITLES,
        verdict_text=verdict_text,
        trace=trace or [],
        fmt=fmt,
        pct=pct,
        format_months=format_months,
    )


# ═══════════════════════════════════════════════════════════════════
# Routes
# ═══════════════════════════════════════════════════════════════════

@app.route("/", methods=["GET", "POST"])
def index():
    if request.method == "GET":
        return _render(form_values(SimulationConfig()))

    # POST — run simulation
    form = request.form.to_dict()
    config = parse_form(form)
    previous, previous_best = parse_previous(form)

    result = run_strategy_simulation(config)
    events.StrategyTracker(event_sink, previous, previous_best).observe(config, result)
    logger.info("simulation_run", best=result.best_strategy.key,
                leftover=round(result.leftover, 2))

    sweep = rate_sweep(config)
    d = compute_display_data(config, result)
    verdict_text = generate_verdict_text(d)

    # Generate charts for web display
    chart_images = report.get_web_charts(config, result, sweep)

    # Save PDF for download
    report.generate_pdf(config, result, sweep, d, verdict_text, app.config["PDF_PATH"])

    return _render(
        form_values(config),
        d=d,
        charts=chart_images,
        verdict_text=verdict_text,
        trace=result.accelerated.trace[:cfg.DEBUG_TRACE_ROWS],
    )


@app.route("/download-pdf")
def download_pdf():
    path = app.config["PDF_PATH"]
    if os.path.exists(path):
        return send_file(os.path.abspath(path), as_attachment=True,
                         download_name=cfg.PDF_FILENAME)
    return "No report generated yet. Run a simulation first.", 404


@app.route("/api/simulate", methods=["POST"])
def api_simulate():
    """JSON in, SimulationResult out. Missing keys keep their defaults."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify(error="Request body must be a JSON object"), 400

    config = SimulationConfig.from_mapping(payload)
    result = run_strategy_simulation(config)
    include_trace = request.args.get("trace", "") in ("1", "true")
    return jsonify(result_to_dict(result, include_trace=include_trace))


@app.route("/api/events/chart", methods=["POST"])
def api_chart_event():
    payload = request.get_json(silent=True) or {}
    chart_type = payload.get("chart_type") if isinstance(payload, dict) else None
    if chart_type not in CHART_TITLES:
        abort(400)
    events.track_chart_interaction(event_sink, chart_type)
    return "", 204


# ═══════════════════════════════════════════════════════════════════
# Entry point
# ═══════════════════════════════════════════════════════════════════

def run_web(debug: bool = True) -> None:
    """Start the Flask development server and open browser."""
    import webbrowser
    import threading

    url = f"http://{cfg.WEB_HOST}:{cfg.WEB_PORT}"
    print(f"Starting web app at {url}")
    threading.Timer(1.0, lambda: webbrowser.open(url)).start()
    app.run(host=cfg.WEB_HOST, port=cfg.WEB_PORT, debug=debug)


if __name__ == "__main__":
    run_web()
