"""Tests for Sentry setup and tagging."""

from unittest.mock import call, patch

import pytest

from kusto_tool import __version__
from kusto_tool.core.config import ResolvedConfig
from kusto_tool.core.monitoring import setup_sentry, tag_target


@pytest.mark.unit
class TestSetupSentry:
    def test_disabled_without_dsn(self):
        with patch("kusto_tool.core.monitoring.sentry_sdk.init") as init:
            setup_sentry()
        kwargs = init.call_args.kwargs
        assert kwargs["dsn"] is None
        assert kwargs["environment"] == "local"
        assert kwargs["release"] == __version__
        assert kwargs["send_default_pii"] is False

    def test_dsn_and_environment_from_env(self, monkeypatch):
        monkeypatch.setenv("SENTRY_DSN", "https://key@example.invalid/1")
        monkeypatch.setenv("SENTRY_ENVIRONMENT", "ci")
        with patch("kusto_tool.core.monitoring.sentry_sdk.init") as init:
            setup_sentry()
        assert init.call_args.kwargs["dsn"] == "https://key@example.invalid/1"
        assert init.call_args.kwargs["environment"] == "ci"


@pytest.mark.unit
class TestTagTarget:
    def test_tags_cluster_and_database(self, config):
        with patch("kusto_tool.core.monitoring.sentry_sdk.set_tag") as set_tag:
            tag_target(config)
        assert set_tag.call_args_list == [
            call("kusto.cluster", "https://mycluster.eastus.kusto.windows.net"),
            call("kusto.database", "sampledb"),
        ]

    def test_missing_values_tagged_unset(self):
        with patch("kusto_tool.core.monitoring.sentry_sdk.set_tag") as set_tag:
            tag_target(ResolvedConfig())
        assert set_tag.call_args_list == [
            call("kusto.cluster", "unset"),
            call("kusto.database", "unset"),
        ]
