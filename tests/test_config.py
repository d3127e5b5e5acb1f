"""Tests for settings and command-line parsing."""

import pytest
from front.config import Settings
from front.main import parse_args


def test_defaults(monkeypatch):
    for name in (
        "PROXY_HOST",
        "PROXY_PORT",
        "ELECTRUMX_HOST",
        "ELECTRUMX_PORT",
        "PROXY_CONNECTION_MODE",
        "PROXY_READ_TIMEOUT",
        "PROXY_CONNECT_TIMEOUT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()
    assert settings.host == "0.0.0.0"
    assert settings.port == 3000
    assert settings.electrumx_port == 50010
    assert settings.connection_mode == "shared"
    assert settings.read_timeout == 5.0


def test_from_env(monkeypatch):
    monkeypatch.setenv("ELECTRUMX_HOST", "electrumx.internal")
    monkeypatch.setenv("ELECTRUMX_PORT", "8000")
    monkeypatch.setenv("PROXY_CONNECTION_MODE", "ephemeral")
    monkeypatch.setenv("PROXY_READ_TIMEOUT", "2.5")
    settings = Settings.from_env()
    assert settings.electrumx_host == "electrumx.internal"
    assert settings.electrumx_port == 8000
    assert settings.connection_mode == "ephemeral"
    assert settings.read_timeout == 2.5


def test_flags_override_env(monkeypatch):
    monkeypatch.setenv("PROXY_PORT", "4000")
    settings = parse_args(["--port", "5000", "--connection-mode", "ephemeral"])
    assert settings.port == 5000
    assert settings.connection_mode == "ephemeral"


@pytest.mark.parametrize(
    "kwargs, match",
    [
        ({"connection_mode": "pooled"}, "connection mode"),
        ({"read_timeout": 0}, "timeouts"),
        ({"electrumx_port": 70000}, "electrumx_port"),
    ],
)
def test_validate_rejects(kwargs, match):
    with pytest.raises(ValueError, match=match):
        Settings(**kwargs).validate()


def test_bad_flag_exits():
    with pytest.raises(SystemExit):
        parse_args(["--read-timeout", "-1"])
