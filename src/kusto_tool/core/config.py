"""Configuration management for kusto-tool.

Handles the optional TOML config file, KUSTO_* environment variables,
the positional cluster name and configuration precedence resolution.
The result is one ResolvedConfig built at process start and passed into
each mode; nothing below the CLI reads the environment.

Precedence order (highest to lowest):
1. CLI flags and the positional cluster name
2. Environment variables (KUSTO_CLUSTER, KUSTO_DATABASE, ...)
3. Config file values
4. Built-in defaults
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from pydantic import BaseModel, field_validator

from kusto_tool.core.exceptions import ConfigError
from kusto_tool.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "kusto-tool" / "config.toml"

DEFAULT_QUERY: Final = "cluster('help').database('Samples').StormEvents | take 5"
DEFAULT_REGION = "eastus"
DEFAULT_DATABASE = "sampledb"
DEFAULT_SAMPLE_TABLE = "ProbeTest"
DEFAULT_EXPECT_MESSAGE = "kusto-sample-ok"
DEFAULT_PROBE_TIMEOUT = 3.0
DEFAULT_QUERY_TIMEOUT = 120.0
DEFAULT_INIT_TIMEOUT = 30.0

CLUSTER_HINT = "https://<cluster>.<region>.kusto.windows.net"

_KUSTO_ENV_VARS: dict[str, str] = {
    "KUSTO_CLUSTER": "cluster",
    "KUSTO_DATABASE": "database",
    "KUSTO_QUERY": "query",
    "KUSTO_SAMPLE_TABLE": "sample_table",
    "KUSTO_PROBE_EXPECT_MESSAGE": "expect_message",
    "KUSTO_PROBE_TIMEOUT": "probe_timeout",
}

_DURATION_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_duration(value: str) -> float | None:
    """Parse a duration such as ``3s``, ``500ms`` or ``1m30s`` into seconds.

    A bare number is taken as seconds. Returns None when the value cannot
    be parsed or is not positive.
    """
    text = value.strip()
    if not text:
        return None
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                return None
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos != len(text):
            return None
    if not 0 < seconds < float("inf"):
        return None
    return seconds


def resolve_cluster_url(name: str, region: str = DEFAULT_REGION) -> str:
    """Expand a short cluster name into its endpoint URI.

    Values that already carry a scheme are returned unchanged.
    """
    name = name.strip()
    if "://" in name:
        return name
    return f"https://{name}.{region}.kusto.windows.net"


def _coerce_timeout(value: Any) -> Any:
    if isinstance(value, str):
        parsed = parse_duration(value)
        if parsed is None:
            msg = f"Invalid duration: '{value}'"
            raise ValueError(msg)
        return parsed
    return value


def _positive_timeout(value: float) -> float:
    if value <= 0:
        msg = f"Invalid timeout: {value}. Must be positive"
        raise ValueError(msg)
    return value


class AppConfig(BaseModel):
    cluster: str | None = None
    database: str | None = None
    region: str = DEFAULT_REGION
    sample_table: str = DEFAULT_SAMPLE_TABLE
    expect_message: str = DEFAULT_EXPECT_MESSAGE
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    init_timeout: float = DEFAULT_INIT_TIMEOUT

    @field_validator("probe_timeout", "query_timeout", "init_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> Any:
        return _coerce_timeout(v)


class ResolvedConfig(BaseModel):
    cluster: str | None = None
    database: str | None = None
    query: str | None = None
    region: str = DEFAULT_REGION
    sample_table: str = DEFAULT_SAMPLE_TABLE
    expect_message: str = DEFAULT_EXPECT_MESSAGE
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    query_timeout: float = DEFAULT_QUERY_TIMEOUT
    init_timeout: float = DEFAULT_INIT_TIMEOUT
    sources: dict[str, str] = {}

    @field_validator("cluster")
    @classmethod
    def validate_cluster(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith("https://"):
            msg = f"Invalid cluster URI: '{v}'. Expected {CLUSTER_HINT}"
            raise ValueError(msg)
        return v

    @field_validator("sample_table")
    @classmethod
    def validate_sample_table(cls, v: str) -> str:
        if not _IDENTIFIER.match(v):
            msg = f"Invalid sample table name: '{v}'. Use letters, digits and '_'"
            raise ValueError(msg)
        return v

    @field_validator("probe_timeout", "query_timeout", "init_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        return _positive_timeout(v)

    def require_cluster(self) -> str:
        if not self.cluster:
            msg = (
                "Cluster not provided. Pass a cluster name or set KUSTO_CLUSTER "
                f"to the full URI (e.g., {CLUSTER_HINT})"
            )
            raise ConfigError(msg)
        return self.cluster

    def require_database(self) -> str:
        if not self.database:
            msg = "Environment variable KUSTO_DATABASE is required (e.g., <database>)"
            raise ConfigError(msg)
        return self.database

    @property
    def probe_database(self) -> str:
        return self.database or DEFAULT_DATABASE


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load configuration from TOML file.

    Returns default AppConfig if file doesn't exist.
    Raises ConfigError on malformed TOML or invalid config.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return AppConfig()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Malformed TOML in {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        return AppConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigError(msg) from e


def resolve_config(
    config: AppConfig,
    cluster_name: str | None = None,
    environ: Mapping[str, str] | None = None,
    **cli_overrides: Any,
) -> ResolvedConfig:
    """Resolve configuration using precedence chain.

    CLI > env > config file > built-in defaults.
    """
    log = get_logger("config")
    env = os.environ if environ is None else environ
    sources: dict[str, str] = {}
    resolved: dict[str, Any] = {}

    # Layer 1: Built-in defaults
    resolved.update(AppConfig().model_dump())
    resolved["query"] = None
    for key in resolved:
        sources[key] = "default"

    # Layer 2: Config file
    for key in config.model_fields_set:
        resolved[key] = getattr(config, key)
        sources[key] = "config"

    # Layer 3: Environment variables
    for env_var, field_name in _KUSTO_ENV_VARS.items():
        value = env.get(env_var, "").strip()
        if not value:
            continue
        if field_name == "probe_timeout":
            seconds = parse_duration(value)
            if seconds is None:
                log.warning(
                    "unparseable probe timeout, using default",
                    env_var=env_var,
                    value=value,
                    default=resolved[field_name],
                )
                continue
            resolved[field_name] = seconds
        elif field_name == "query":
            resolved[field_name] = env[env_var]
        else:
            resolved[field_name] = value
        sources[field_name] = f"env: {env_var}"

    # Layer 4: CLI flags (highest priority), positional cluster name last
    cli_to_field = {
        "cluster": ("cluster", "--cluster"),
        "database": ("database", "--database"),
        "execute": ("query", "--execute"),
        "probe_timeout": ("probe_timeout", "--timeout"),
        "query_timeout": ("query_timeout", "--timeout"),
    }
    for cli_name, (field_name, flag) in cli_to_field.items():
        value = cli_overrides.get(cli_name)
        if value is not None:
            resolved[field_name] = value
            sources[field_name] = f"cli: {flag}"
    if cluster_name and cluster_name.strip():
        resolved["cluster"] = cluster_name
        sources["cluster"] = "cli: cluster name"

    if resolved["cluster"]:
        resolved["cluster"] = resolve_cluster_url(resolved["cluster"], resolved["region"])

    resolved["sources"] = sources
    try:
        return ResolvedConfig(**resolved)
    except ValueError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
