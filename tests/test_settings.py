"""Tests for settings configuration loading."""

from __future__ import annotations

from textwrap import dedent

import pytest
from pydantic import ValidationError

from tbtc_tvl.domain import Chain
from tbtc_tvl.settings import ExtractorConfigError, TvlSettings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep the developer's .env, tbtc-tvl.toml and TBTC_TVL_* variables out of the way."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for name in [
        "TBTC_TVL_CONFIG",
        "TBTC_TVL_THEGRAPH_API_KEY",
        "TBTC_TVL_LOG_LEVEL",
        "TBTC_TVL_RETRIES",
        "TBTC_TVL_MAX_CONCURRENCY",
        "TBTC_TVL_ETHEREUM_RPC",
    ]:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, body: str):
    config_path = tmp_path / "config.toml"
    config_path.write_text(dedent(body).strip())
    return config_path


def test_defaults():
    settings = TvlSettings()

    assert settings.retries == 3
    assert settings.max_concurrency == 4
    assert settings.thegraph_api_key is None
    assert settings.rpc_url(Chain.SUI).startswith("https://")
    assert settings.retry_policy.delays() == [1.0, 2.0]
    assert settings.retry_policy.attempt_timeout is None


def test_loads_tbtc_tvl_table_from_config(tmp_path, monkeypatch):
    config_path = write_config(
        tmp_path,
        """
        [tbtc_tvl]
        log_level = "debug"
        max_concurrency = 8
        retries = 5
        retry_max_delay = 30.0
        extraction_attempt_timeout = 45.0
        ethereum_rpc = "https://node.example/rpc"
        """,
    )
    monkeypatch.setenv("TBTC_TVL_CONFIG", str(config_path))

    settings = TvlSettings()

    assert settings.log_level == "DEBUG"
    assert settings.max_concurrency == 8
    assert settings.rpc_url(Chain.ETHEREUM) == "https://node.example/rpc"
    assert settings.retry_policy.max_attempts == 5
    assert settings.retry_policy.max_delay == 30.0
    assert settings.retry_policy.attempt_timeout == 45.0


def test_loads_top_level_keys_from_local_config(tmp_path):
    (tmp_path / "tbtc-tvl.toml").write_text('request_timeout = 3.5\n')

    assert TvlSettings().request_timeout == 3.5


def test_env_overrides_config_and_cli_overrides_env(tmp_path, monkeypatch):
    config_path = write_config(tmp_path, "retries = 2\nmax_concurrency = 2")
    monkeypatch.setenv("TBTC_TVL_CONFIG", str(config_path))
    monkeypatch.setenv("TBTC_TVL_RETRIES", "6")
    monkeypatch.setenv("TBTC_TVL_MAX_CONCURRENCY", "3")

    settings = TvlSettings(max_concurrency=9)

    assert settings.retries == 6
    assert settings.max_concurrency == 9


def test_rejects_secrets_in_config_file(tmp_path, monkeypatch):
    config_path = write_config(
        tmp_path,
        """
        [tbtc_tvl]
        thegraph_api_key = "leaked"
        """,
    )
    monkeypatch.setenv("TBTC_TVL_CONFIG", str(config_path))

    with pytest.raises(ValueError, match="Security violation"):
        TvlSettings()


def test_api_key_from_env_is_redacted(monkeypatch):
    monkeypatch.setenv("TBTC_TVL_THEGRAPH_API_KEY", "secret-key")

    settings = TvlSettings()

    assert settings.thegraph_api_key_required == "secret-key"
    assert settings.as_safe_dict()["thegraph_api_key"] == "***redacted***"
    assert "secret-key" not in repr(settings)


def test_missing_api_key_is_a_config_error():
    settings = TvlSettings(thegraph_api_key="  ")

    assert settings.thegraph_api_key is None
    with pytest.raises(ExtractorConfigError, match="TBTC_TVL_THEGRAPH_API_KEY"):
        settings.thegraph_api_key_required


@pytest.mark.parametrize(
    "kwargs",
    [
        {"retries": 0},
        {"max_concurrency": 0},
        {"request_timeout": 0},
        {"retry_multiplier": 0.5},
        {"extraction_attempt_timeout": 0},
        {"retry_initial_delay": 20.0, "retry_max_delay": 10.0},
    ],
)
def test_rejects_invalid_values(kwargs):
    with pytest.raises(ValidationError):
        TvlSettings(**kwargs)
