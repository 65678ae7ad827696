"""Shared test fixtures for kusto-tool."""

from pathlib import Path
from tempfile import TemporaryDirectory

import pytest
from typer.testing import CliRunner

from kusto_tool.cli.main import app
from kusto_tool.core.config import ResolvedConfig
from kusto_tool.core.logging import setup_logging

_KUSTO_ENV = (
    "KUSTO_CLUSTER",
    "KUSTO_DATABASE",
    "KUSTO_QUERY",
    "KUSTO_SAMPLE_TABLE",
    "KUSTO_PROBE_EXPECT_MESSAGE",
    "KUSTO_PROBE_TIMEOUT",
    "SENTRY_DSN",
    "SENTRY_ENVIRONMENT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's KUSTO_* variables and config file."""
    for name in _KUSTO_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(
        "kusto_tool.core.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.toml"
    )
    setup_logging()


@pytest.fixture
def runner():
    """Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_runner(runner):
    """Invoke the CLI app with the given arguments."""

    def invoke(*args: str, **kwargs):
        return runner.invoke(app, list(args), **kwargs)

    return invoke


@pytest.fixture
def temp_dir():
    """Temporary directory for test files."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def config():
    """Resolved configuration pointing at a placeholder cluster."""
    return ResolvedConfig(
        cluster="https://mycluster.eastus.kusto.windows.net",
        database="sampledb",
    )
