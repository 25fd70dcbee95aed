from dataclasses import replace

import pytest

import cli
import report
from simulation import rate_sweep, run_strategy_simulation


def _display(config, result):
    d = cli.compute_display_data(config, result)
    return d, cli.generate_verdict_text(d)


def test_dollar_labels_render_as_plain_text():
    assert report.matplotlib.rcParams["text.parse_math"] is False
    fig = report.plt.figure()
    try:
        fig.text(0.1, 0.5, "Payment $1,517 vs $2,000 leftover")
        fig.canvas.draw()
    finally:
        report.plt.close(fig)


def test_generate_pdf_writes_report_and_closes_figures(base_config, base_result, tmp_path):
    d, verdict = _display(base_config, base_result)
    before = report.plt.get_fignums()
    path = report.generate_pdf(base_config, base_result, None, d, verdict, str(tmp_path / "r.pdf"))
    assert path == str(tmp_path / "r.pdf")
    assert (tmp_path / "r.pdf").read_bytes()[:4] == b"%PDF"
    assert report.plt.get_fignums() == before


def test_generate_pdf_closes_figures_when_a_page_fails(base_config, base_result, tmp_path, monkeypatch):
    def broken(*_args, **_kwargs):
        raise RuntimeError("chart failed")

    monkeypatch.setattr(report, "_chart_loc_trace", broken)
    d, verdict = _display(base_config, base_result)
    before = report.plt.get_fignums()
    with pytest.raises(RuntimeError):
        report.generate_pdf(base_config, base_result, None, d, verdict, str(tmp_path / "r.pdf"))
    assert report.plt.get_fignums() == before


def test_page_order_follows_report_sections(base_config, tmp_path, monkeypatch):
    config = replace(base_config, enable_rental_comparison=True)
    result = run_strategy_simulation(config)
    sweep = rate_sweep(config, mortgage_rates=[5.0, 7.0], loc_rates=[6.0, 10.0])
    d, verdict = _display(config, result)

    calls = []
    for name in ("_summary_page", "_chart_balances", "_outcomes_page", "_chart_cost_breakdown",
                 "_chart_loc_trace", "_chart_rental", "_chart_sweep"):
        original = getattr(report, name)

        def wrapped(*args, _name=name, _original=original, **kwargs):
            calls.append(_name)
            return _original(*args, **kwargs)

        monkeypatch.setattr(report, name, wrapped)

    report.generate_pdf(config, result, sweep, d, verdict, str(tmp_path / "r.pdf"))
    assert calls == ["_summary_page", "_chart_balances", "_outcomes_page", "_chart_cost_breakdown",
                     "_chart_loc_trace", "_chart_rental", "_chart_sweep"]


def test_web_charts_keys(base_config, base_result):
    charts = report.get_web_charts(base_config, base_result)
    assert list(charts) == ["balance", "net_position", "cost_breakdown", "loc_trace"]
    assert all(charts.values())


def test_web_charts_include_optional_panels(base_config):
    config = replace(base_config, enable_rental_comparison=True)
    result = run_strategy_simulation(config)
    sweep = rate_sweep(config, mortgage_rates=[6.5], loc_rates=[8.0])
    before = report.plt.get_fignums()
    charts = report.get_web_charts(config, result, sweep)
    assert "rental" in charts
    assert "rate_sweep" in charts
    assert report.plt.get_fignums() == before
