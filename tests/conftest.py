import pytest

from simulation import SimulationConfig, run_strategy_simulation


@pytest.fixture
def base_config():
    """$240k at 6.5% over 30 years, $2k/mo spare before housing costs."""
    return SimulationConfig()


@pytest.fixture
def base_result(base_config):
    return run_strategy_simulation(base_config)


@pytest.fixture
def recording_sink():
    import events
    return events.RecordingEventSink()


@pytest.fixture
def client(tmp_path, monkeypatch, recording_sink):
    import app as web

    web.app.config.update(TESTING=True, PDF_PATH=str(tmp_path / "report.pdf"))
    monkeypatch.setattr(web, "event_sink", recording_sink)
    with web.app.test_client() as c:
        yield c
