import importlib.util
import uuid
from pathlib import Path
from typing import Optional

import pytest


CONFIG_PATH = Path(__file__).resolve().parents[1] / "promql_cli" / "config.py"
CONFIG_ENV_KEYS = [
    "PROMQL_HOST",
    "PROMETHEUS_URL",
    "PROMQL_TIMEOUT",
    "PROMQL_OUTPUT",
    "PROMQL_NO_HEADERS",
    "PROMQL_STEP",
    "PROMQL_START",
    "PROMQL_LOG_LEVEL",
    "PROMQL_LOG_FORMAT",
    "PROMQL_LOG_FILE",
    "ALLOW_PROXIES",
]


def _load_config_module(monkeypatch: pytest.MonkeyPatch, overrides: Optional[dict[str, str]] = None):
    """Load a fresh instance of the config module with supplied env overrides."""
    overrides = overrides or {}
    for key in CONFIG_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    for key, value in overrides.items():
        monkeypatch.setenv(key, value)
    module_name = f"promql_cli.config_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(module_name, CONFIG_PATH)
    assert spec and spec.loader
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)  # type: ignore[arg-type]
    return module


def test_config_defaults_match_expected(monkeypatch: pytest.MonkeyPatch):
    cfg = _load_config_module(monkeypatch)
    assert cfg.PROMQL_HOST == "http://localhost:9090"
    assert cfg.PROMQL_TIMEOUT == 10.0
    assert cfg.PROMQL_OUTPUT == ""
    assert cfg.PROMQL_NO_HEADERS is False
    assert cfg.PROMQL_STEP == "1m"
    assert cfg.PROMQL_START == "1h"
    assert cfg.PROMQL_LOG_LEVEL == "WARNING"
    assert cfg.ALLOW_PROXIES is False


def test_config_env_overrides_take_precedence(monkeypatch: pytest.MonkeyPatch):
    cfg = _load_config_module(
        monkeypatch,
        {
            "PROMQL_HOST": "https://metrics.example.com",
            "PROMQL_TIMEOUT": "30",
            "PROMQL_OUTPUT": "CSV",
            "PROMQL_NO_HEADERS": "yes",
            "PROMQL_STEP": "15s",
            "PROMQL_LOG_LEVEL": "debug",
        },
    )
    assert cfg.PROMQL_HOST == "https://metrics.example.com"
    assert cfg.PROMQL_TIMEOUT == 30.0
    assert cfg.PROMQL_OUTPUT == "csv"
    assert cfg.PROMQL_NO_HEADERS is True
    assert cfg.PROMQL_STEP == "15s"
    assert cfg.PROMQL_LOG_LEVEL == "DEBUG"


def test_config_supports_legacy_host_alias(monkeypatch: pytest.MonkeyPatch):
    cfg = _load_config_module(monkeypatch, {"PROMETHEUS_URL": "http://legacy:9090"})
    assert cfg.PROMQL_HOST == "http://legacy:9090"


def test_invalid_timeout_falls_back_and_clamps(monkeypatch: pytest.MonkeyPatch):
    cfg = _load_config_module(monkeypatch, {"PROMQL_TIMEOUT": "soon"})
    assert cfg.PROMQL_TIMEOUT == 10.0

    cfg = _load_config_module(monkeypatch, {"PROMQL_TIMEOUT": "0"})
    assert cfg.PROMQL_TIMEOUT == 0.1


def test_client_settings_snapshot(monkeypatch: pytest.MonkeyPatch):
    cfg = _load_config_module(monkeypatch, {"PROMQL_HOST": "http://prom:9090/"})

    assert cfg.current_client_settings().host == "http://prom:9090"
    assert cfg.current_client_settings("http://other:9090").host == "http://other:9090"


@pytest.mark.parametrize("host", ["prom:9090", "ftp://prom:9090", "http://"])
def test_client_settings_reject_invalid_host(monkeypatch: pytest.MonkeyPatch, host: str):
    from promql_cli.exceptions import ConfigError

    cfg = _load_config_module(monkeypatch)

    with pytest.raises(ConfigError, match="Invalid query API host"):
        cfg.current_client_settings(host)


def test_invalid_env_host_is_reported_on_use(monkeypatch: pytest.MonkeyPatch):
    from promql_cli.exceptions import ConfigError

    cfg = _load_config_module(monkeypatch, {"PROMQL_HOST": "localhost:9090"})

    with pytest.raises(ConfigError):
        cfg.current_client_settings()
