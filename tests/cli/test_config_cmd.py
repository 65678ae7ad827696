"""Tests for the config command group."""

import pytest

from kusto_tool.cli.main import app


@pytest.mark.unit
def test_config_without_subcommand_shows_help(runner):
    result = runner.invoke(app, ["config"])
    assert result.exit_code == 0
    assert "show" in result.stdout


@pytest.mark.unit
def test_config_show_defaults(runner):
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0, result.output
    assert "cluster: not set (default)" in result.stdout
    assert "database: not set (default)" in result.stdout
    assert "sample_table: ProbeTest (default)" in result.stdout
    assert "probe_timeout: 3.0s (default)" in result.stdout
    assert "cluster('help').database('Samples')" in result.stdout


@pytest.mark.unit
def test_config_show_sources(runner, temp_dir, monkeypatch):
    path = temp_dir / "config.toml"
    path.write_text('database = "cfgdb"\nregion = "westeurope"\n')
    monkeypatch.setenv("KUSTO_PROBE_TIMEOUT", "1s")
    result = runner.invoke(app, ["--config", str(path), "--cluster", "c1", "config", "show"])
    assert result.exit_code == 0, result.output
    assert "cluster: https://c1.westeurope.kusto.windows.net (cli: --cluster)" in result.stdout
    assert "database: cfgdb (config)" in result.stdout
    assert "probe_timeout: 1.0s (env: KUSTO_PROBE_TIMEOUT)" in result.stdout
    assert f"Config File: {path}" in result.stdout
