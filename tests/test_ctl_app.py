"""
stolonctl dispatcher tests: parsing, flag/env precedence and command execution
against an injected cluster client.
"""

import io
import json
from unittest.mock import Mock

import pytest

from stolon_admin.libs.core.config import CLIConfig
from stolon_admin.libs.core.exceptions import ClientError, ParseError
from stolon_admin.libs.core.models import (
    GetConfigCommand, ListCommand, PatchConfigCommand, ReplaceConfigCommand, StatusCommand
)
from stolon_admin.libs.ctl_app import StolonCtl, main, parse_command
from stolon_admin.libs.store import ClusterClient

from test_constants import CommonTestConstants, FakeStore, StoreTestConstants

STORE_ENV_VARS = [
    "STOLONCTL_STORE_ENDPOINTS",
    "STOLONCTL_STORE_BACKEND",
    "STOLONCTL_STORE_KEY",
    "STOLONCTL_STORE_CA_CERT",
    "STOLONCTL_STORE_CERT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in STORE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_client():
    return ClusterClient(CLIConfig(), store=FakeStore(StoreTestConstants.cluster_data()))


def run_main(argv, client, stdin=None):
    """Run main with an injected client and return (exit code, stdout text)"""
    stdout = io.StringIO()
    code = main(argv, client_factory=lambda cli_config: client, stdout=stdout, stdin=stdin)
    return code, stdout.getvalue()


class TestParseCommand:
    """Command line to Command and CLIConfig"""

    def test_config_command(self):
        command, _ = parse_command(["cluster", "config", "mycluster"])

        assert command == GetConfigCommand("mycluster", output="json")

    def test_patch_with_file(self):
        command, _ = parse_command(["cluster", "patch", "--file=./patch.json", "mycluster"])

        assert command == PatchConfigCommand("mycluster", "./patch.json", False)

    def test_patch_with_stdin_marker(self):
        command, _ = parse_command(["cluster", "patch", "mycluster", "-"])

        assert command == PatchConfigCommand("mycluster", "", True)

    def test_replace_with_short_file_flag(self):
        command, _ = parse_command(["cluster", "replace", "mycluster", "-f", "config.json"])

        assert command == ReplaceConfigCommand("mycluster", "config.json", False)

    def test_status_flags(self):
        command, _ = parse_command(["cluster", "status", "mycluster", "--master", "--json"])

        assert command == StatusCommand("mycluster", master_only=True, output_json=True)

    def test_list(self):
        command, _ = parse_command(["cluster", "list"])

        assert command == ListCommand()

    @pytest.mark.parametrize("argv", [
        [],
        ["cluster"],
        ["cluster", "destroy", "mycluster"],
        ["cluster", "config"],
        ["cluster", "patch", "mycluster", "extra"],
        ["node", "list"],
    ])
    def test_malformed_invocations(self, argv):
        with pytest.raises(ParseError):
            parse_command(argv)

    def test_global_flags_are_resolved(self):
        _, cli_config = parse_command([
            "--debug", "--store-endpoints", "10.0.0.1:2379,10.0.0.2:2379", "--store-backend", "etcd",
            "--store-cert", "cert.pem", "--store-key", "key.pem", "--store-cacert", "ca.pem",
            "cluster", "list",
        ])

        assert cli_config == CLIConfig(
            store_endpoints="10.0.0.1:2379,10.0.0.2:2379",
            store_backend="etcd",
            store_cert_file="cert.pem",
            store_key_file="key.pem",
            store_cacert_file="ca.pem",
            debug=True,
        )
        assert cli_config.endpoint_list() == ["10.0.0.1:2379", "10.0.0.2:2379"]

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setenv("STOLONCTL_STORE_BACKEND", "consul")
        monkeypatch.setenv("STOLONCTL_STORE_ENDPOINTS", "10.0.0.9:8500")
        monkeypatch.setenv("STOLONCTL_STORE_CA_CERT", "/etc/ca.pem")

        _, cli_config = parse_command(["cluster", "list"])

        assert cli_config.store_backend == "consul"
        assert cli_config.store_endpoints == "10.0.0.9:8500"
        assert cli_config.store_cacert_file == "/etc/ca.pem"

    def test_flag_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("STOLONCTL_STORE_BACKEND", "consul")

        _, cli_config = parse_command(["--store-backend", "etcd", "cluster", "list"])

        assert cli_config.store_backend == "etcd"

    def test_empty_flag_wins_over_environment(self, monkeypatch):
        monkeypatch.setenv("STOLONCTL_STORE_BACKEND", "consul")
        monkeypatch.setenv("STOLONCTL_STORE_CERT", "/etc/cert.pem")

        _, cli_config = parse_command(["--store-backend", "", "--store-cert", "", "cluster", "list"])

        assert cli_config.store_backend == ""
        assert cli_config.store_cert_file == ""
        assert cli_config.backend == "etcd"

    def test_misplaced_stdin_marker_shows_subcommand_usage(self):
        with pytest.raises(ParseError) as exc_info:
            parse_command(["cluster", "patch", "-", "mycluster"])

        assert "stolonctl cluster patch" in exc_info.value.usage
        assert "'-'" in str(exc_info.value)

    def test_global_flags_after_subcommand_are_rejected(self):
        with pytest.raises(ParseError):
            parse_command(["cluster", "list", "--store-backend", "etcd"])


class TestStolonCtl:
    """Command execution"""

    def test_patch_forwards_file_bytes_unchanged(self, tmp_path):
        # Arrange
        patch_file = tmp_path / "patch.json"
        patch_file.write_bytes(CommonTestConstants.PATCH_DOCUMENT)
        client = Mock()

        # Act
        StolonCtl(client).run(PatchConfigCommand("mycluster", str(patch_file), False))

        # Assert
        client.get_cluster.assert_called_once_with("mycluster")
        client.get_cluster.return_value.patch_config.assert_called_once_with(b'{"retention":"7d"}')

    def test_replace_reads_stdin(self):
        client = Mock()
        stdin = io.BytesIO(b'{"sleep_interval": "1s"}')

        StolonCtl(client, stdin=stdin).run(ReplaceConfigCommand("mycluster", "", True))

        client.get_cluster.return_value.replace_config.assert_called_once_with(b'{"sleep_interval": "1s"}')

    def test_list_prints_one_cluster_per_line(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(ListCommand())

        assert stdout.getvalue() == "mycluster\nothercluster\n"

    def test_config_is_tab_indented_json(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(GetConfigCommand("mycluster"))

        assert json.loads(stdout.getvalue()) == CommonTestConstants.CONFIG_DOCUMENT
        assert '\n\t"sleep_interval"' in stdout.getvalue()

    def test_config_as_yaml(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(GetConfigCommand("mycluster", output="yaml"))

        assert "sleep_interval: 5s" in stdout.getvalue()
        assert "max_connections: '100'" in stdout.getvalue()

    def test_status_json(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(StatusCommand("mycluster", output_json=True))

        status = json.loads(stdout.getvalue())
        assert status["master"] == "keeper0"
        assert [node["id"] for node in status["nodes"]] == ["keeper0", "keeper1"]

    def test_status_master_only_json(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(StatusCommand("mycluster", master_only=True, output_json=True))

        status = json.loads(stdout.getvalue())
        assert len(status["nodes"]) == 1
        assert status["nodes"][0]["role"] == "master"

    def test_status_human_readable(self, fake_client):
        stdout = io.StringIO()

        StolonCtl(fake_client, stdout=stdout).run(StatusCommand("mycluster"))

        lines = stdout.getvalue().splitlines()
        assert lines[0] == "Cluster: mycluster"
        assert lines[1] == "Master: keeper0"
        assert lines[3].split() == ["ID", "ROLE", "LISTEN", "ADDRESS", "PG", "ADDRESS"]
        assert lines[4].split() == ["keeper0", "master", "10.0.1.1:5431", "10.0.1.1:5432"]

    def test_status_master_only_without_master_prints_nothing(self):
        client = ClusterClient(CLIConfig(), store=FakeStore(StoreTestConstants.cluster_data(with_master=False)))
        stdout = io.StringIO()

        StolonCtl(client, stdout=stdout).run(StatusCommand("mycluster", master_only=True))

        assert stdout.getvalue() == ""

    def test_unsupported_command_type(self, fake_client):
        with pytest.raises(TypeError):
            StolonCtl(fake_client).run(object())


class TestMain:
    """Exit codes and output streams"""

    def test_successful_command_exits_zero(self, fake_client):
        code, out = run_main(["cluster", "list"], fake_client)

        assert code == 0
        assert out.splitlines() == ["mycluster", "othercluster"]

    def test_patch_without_source_makes_no_client_call(self, capsys):
        # Arrange
        client = Mock()

        # Act
        code, out = run_main(["cluster", "patch", "mycluster"], client)

        # Assert
        assert code == 1
        assert out == ""
        client.get_cluster.assert_not_called()
        assert "need either file to read from or readStdin option" in capsys.readouterr().err

    def test_patch_with_file_and_stdin_is_rejected(self, tmp_path):
        patch_file = tmp_path / "patch.json"
        patch_file.write_bytes(b"{}")
        client = Mock()

        code, _ = run_main(["cluster", "patch", "-f", str(patch_file), "mycluster", "-"], client)

        assert code == 1
        client.get_cluster.assert_not_called()

    def test_patch_from_stdin(self, fake_client):
        code, _ = run_main(["cluster", "patch", "mycluster", "-"], fake_client,
                           stdin=io.BytesIO(b'{"retention": "7d"}'))

        assert code == 0
        assert fake_client.get_cluster("mycluster").config()["retention"] == "7d"

    def test_client_construction_failure(self, capsys):
        def failing_factory(cli_config):
            raise ClientError("cannot read TLS cert file: /missing.pem")

        code = main(["cluster", "list"], client_factory=failing_factory)

        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == ""
        assert "cannot read TLS cert file" in captured.err

    def test_unknown_cluster_fails(self, fake_client, capsys):
        code, out = run_main(["cluster", "config", "nosuchcluster"], fake_client)

        assert code == 1
        assert out == ""
        assert "not found" in capsys.readouterr().err

    def test_debug_logs_traceback_of_failure(self, capsys):
        def failing_factory(cli_config):
            raise ClientError("etcd unreachable")

        code = main(["--debug", "cluster", "list"], client_factory=failing_factory)

        err = capsys.readouterr().err
        assert code == 1
        assert "Traceback (most recent call last)" in err
        assert "ClientError: etcd unreachable" in err
        assert "Error: etcd unreachable" in err

    def test_failure_without_debug_has_no_traceback(self, capsys):
        def failing_factory(cli_config):
            raise ClientError("etcd unreachable")

        main(["cluster", "list"], client_factory=failing_factory)

        assert "Traceback" not in capsys.readouterr().err

    def test_client_is_closed_after_command(self):
        store = FakeStore(StoreTestConstants.cluster_data())

        code, _ = run_main(["cluster", "list"], ClusterClient(CLIConfig(), store=store))

        assert code == 0
        assert store.closed

    def test_client_is_closed_after_failure(self):
        store = FakeStore(StoreTestConstants.cluster_data())

        code, _ = run_main(["cluster", "config", "nosuchcluster"], ClusterClient(CLIConfig(), store=store))

        assert code == 1
        assert store.closed

    def test_usage_error_exits_two(self, capsys):
        code, out = run_main(["cluster", "destroy"], Mock())

        captured = capsys.readouterr()
        assert code == 2
        assert out == ""
        assert "usage:" in captured.err

    def test_unknown_backend_through_default_factory(self, capsys):
        code = main(["--store-backend", "zookeeper", "cluster", "list"])

        assert code == 1
        assert "unknown store backend" in capsys.readouterr().err
