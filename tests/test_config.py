"""
Environment configuration and logging setup tests.
"""

import logging

import pytest

from stolon_admin.libs.core.config import CLIConfig, RPCServiceConfig
from stolon_admin.libs.core.exceptions import ConfigurationError
from stolon_admin.libs.core.utils import parse_log_level, setup_service_logging

RPC_ENV_VARS = [
    "STOLONRPC_LOG_LEVEL",
    "STOLONRPC_PORT",
    "STOLONRPC_DB_HOST",
    "STOLONRPC_DB_PORT",
    "STOLONRPC_DB_USERNAME",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in RPC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestRPCServiceConfig:
    """STOLONRPC_* parsing"""

    def test_all_variables(self, monkeypatch):
        monkeypatch.setenv("STOLONRPC_LOG_LEVEL", "debug")
        monkeypatch.setenv("STOLONRPC_PORT", "8080")
        monkeypatch.setenv("STOLONRPC_DB_HOST", "db.internal")
        monkeypatch.setenv("STOLONRPC_DB_PORT", "5433")
        monkeypatch.setenv("STOLONRPC_DB_USERNAME", "stolon")

        assert RPCServiceConfig.from_env() == RPCServiceConfig("debug", 8080, "db.internal", 5433, "stolon")

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("STOLONRPC_PORT", "8080")

        settings = RPCServiceConfig.from_env()

        assert settings.log_level == "info"
        assert settings.database_host == "127.0.0.1"
        assert settings.database_port == 5432
        assert settings.database_username == "postgres"

    def test_port_is_required(self):
        with pytest.raises(ConfigurationError) as exc_info:
            RPCServiceConfig.from_env()

        assert "Can't parse config" in str(exc_info.value)

    @pytest.mark.parametrize("name, value", [
        ("STOLONRPC_PORT", "http"),
        ("STOLONRPC_PORT", "70000"),
        ("STOLONRPC_DB_PORT", "five"),
    ])
    def test_malformed_values(self, monkeypatch, name, value):
        monkeypatch.setenv("STOLONRPC_PORT", "8080")
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigurationError):
            RPCServiceConfig.from_env()


class TestCLIConfig:
    """Store endpoint resolution"""

    def test_endpoints_are_trimmed(self):
        assert CLIConfig(store_endpoints=" a:1 , ,b:2").endpoint_list() == ["a:1", "b:2"]

    def test_backend_is_case_insensitive(self):
        assert CLIConfig(store_backend="Consul").endpoint_list() == ["127.0.0.1:8500"]

    def test_tls_detection(self):
        assert not CLIConfig().uses_tls()
        assert CLIConfig(store_cacert_file="ca.pem").uses_tls()


class TestLogLevels:
    """Severity names"""

    @pytest.mark.parametrize("name, level", [
        ("debug", logging.DEBUG),
        ("TRACE", logging.DEBUG),
        ("Info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
        ("fatal", logging.CRITICAL),
        ("panic", logging.CRITICAL),
    ])
    def test_known_levels(self, name, level):
        assert parse_log_level(name) == level

    @pytest.mark.parametrize("name", ["verbose", "", "5"])
    def test_unknown_levels(self, name):
        with pytest.raises(ConfigurationError):
            parse_log_level(name)

    def test_service_logging_writes_to_stdout(self, capsys):
        log = setup_service_logging("info")

        log.info("Start with config")
        log.debug("hidden")

        out = capsys.readouterr().out
        assert "INFO - Start with config" in out
        assert "hidden" not in out
