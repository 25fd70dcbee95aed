import pytest

import app as web
import config as cfg
from simulation import SimulationConfig


def _full_form(**overrides):
    form = {name: str(value) for name, value in cfg.DEFAULT_INPUTS.items()
            if name != "enable_rental_comparison"}
    form.update({f"prev_{k}": v for k, v in form.items()})
    form["prev_enable_rental_comparison"] = "0"
    form.update(overrides)
    return form


def test_parse_form_keeps_raw_strings():
    config = web.parse_form({"mortgage_balance": "$300,000", "loc_rate": "",
                             "enable_rental_comparison": "1"})
    assert config.mortgage_balance == "$300,000"
    assert config.loc_rate == ""
    assert config.mortgage_rate == cfg.DEFAULT_INPUTS["mortgage_rate"]
    assert config.enable_rental_comparison is True


def test_parse_previous():
    assert web.parse_previous({"mortgage_rate": "6"}) == (None, None)

    previous, best = web.parse_previous({"prev_mortgage_rate": "6", "prev_best": "Traditional"})
    assert previous == SimulationConfig(mortgage_rate="6")
    assert best == "Traditional"


def test_form_values_show_blank_for_unset():
    values = web.form_values(SimulationConfig(loc_limit=None))
    assert values["loc_limit"] == ""
    assert values["mortgage_balance"] == cfg.DEFAULT_INPUTS["mortgage_balance"]


def test_index_get_renders_form(client):
    r = client.get("/")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "Mortgage Payoff Strategies" in html
    assert 'name="prev_mortgage_rate"' in html
    assert "The Verdict" not in html


def test_index_post_renders_results_and_pdf(client, recording_sink):
    r = client.post("/", data=_full_form(loc_rate="8"))
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert "The Verdict" in html
    assert "Extra Principal" in html
    assert "data:image/png;base64," in html

    names = recording_sink.names()
    assert "input_changed" in names
    assert "strategy_selected" in names

    pdf = client.get("/download-pdf")
    assert pdf.status_code == 200
    assert pdf.data[:4] == b"%PDF"


def test_download_before_any_run_is_404(client):
    assert client.get("/download-pdf").status_code == 404


def test_api_simulate_defaults(client):
    r = client.post("/api/simulate", json={})
    assert r.status_code == 200
    data = r.get_json()
    assert data["traditional"]["months"] == 360
    assert data["mortgage_payment"] == pytest.approx(1517.50, abs=1.0)
    assert "trace" not in data["accelerated"]
    assert data["rental"] is None
    assert data["chart_data"][0]["year"] == 0


def test_api_simulate_with_rental_and_trace(client):
    r = client.post("/api/simulate?trace=1",
                    json={"enable_rental_comparison": True, "mortgage_balance": "200000"})
    data = r.get_json()
    assert data["rental"]["rental_months"] > 0
    assert data["traditional"]["rental"]["months"] == data["traditional"]["months"]
    assert len(data["accelerated"]["trace"]) == data["accelerated"]["months"]


@pytest.mark.parametrize("body", ["[1, 2]", "not json", '"text"'])
def test_api_simulate_rejects_non_object(client, body):
    r = client.post("/api/simulate", data=body, content_type="application/json")
    assert r.status_code == 400
    assert "error" in r.get_json()


def test_chart_event_endpoint(client, recording_sink):
    assert client.post("/api/events/chart", json={"chart_type": "balance"}).status_code == 204
    assert recording_sink.names() == ["chart_interacted"]
    assert client.post("/api/events/chart", json={"chart_type": "pie"}).status_code == 400


def test_api_simulate_extreme_rate(client):
    r = client.post("/api/simulate", json={"mortgage_rate": 10000})
    assert r.status_code == 200
    assert r.get_json()["traditional"]["converged"] is False
