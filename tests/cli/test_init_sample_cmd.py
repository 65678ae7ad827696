"""Tests for the init-sample command."""

import pytest

from kusto_tool.cli.main import app
from kusto_tool.core.exceptions import ConfigError, QueryError
from tests.fakes import FakeClient

CREATE = ".create-merge table ProbeTest (Message:string, When:datetime)"


@pytest.fixture
def fake(monkeypatch):
    client = FakeClient()
    monkeypatch.setattr("kusto_tool.cli.commands.init_sample.get_client", lambda config: client)
    return client


@pytest.mark.unit
def test_init_sample(runner, fake):
    result = runner.invoke(app, ["init-sample", "mycluster"])
    assert result.exit_code == 0, result.output
    assert result.stdout.strip() == (
        "Initialized sample table ProbeTest with message 'kusto-sample-ok'"
    )
    assert [call[0] for call in fake.calls][0] == CREATE
    assert len(fake.calls) == 2
    assert fake.closed


@pytest.mark.unit
def test_init_sample_custom_table(runner, fake, monkeypatch):
    monkeypatch.setenv("KUSTO_SAMPLE_TABLE", "Heartbeat")
    monkeypatch.setenv("KUSTO_PROBE_EXPECT_MESSAGE", "alive")
    monkeypatch.setenv("KUSTO_DATABASE", "ops")
    result = runner.invoke(app, ["init-sample", "mycluster"])
    assert result.exit_code == 0, result.output
    assert fake.calls[1][0] == ".set-or-append Heartbeat <| print Message='alive', When=now()"
    assert fake.calls[1][1] == "ops"


@pytest.mark.unit
def test_init_sample_without_cluster(runner, fake):
    result = runner.invoke(app, ["init-sample"])
    assert isinstance(result.exception, ConfigError)
    assert fake.calls == []


@pytest.mark.unit
def test_init_sample_failure(runner, fake):
    fake.results[CREATE] = QueryError("Forbidden (403)")
    result = runner.invoke(app, ["init-sample", "mycluster"])
    assert isinstance(result.exception, QueryError)
    assert result.exception.message == "failed to create/merge sample table: Forbidden (403)"
    assert fake.closed
