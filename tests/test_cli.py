"""Tests for the kconnect CLI.

Commands run against DummyConnectCluster by patching the client factory.
"""

import importlib
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from kconnect.cli import app
from kconnect.client import ConnectClient, DummyConnectCluster
from kconnect.errors import InvalidRequestError
from kconnect.models import State

from .conftest import FILE_SINK_CONFIG, _close_loggers

cli_app = importlib.import_module("kconnect.cli.app")


@pytest.fixture
def runner() -> CliRunner:
    """Provide a CLI test runner."""
    return CliRunner()


@pytest.fixture
def client_args() -> list:
    """Arguments each CLI invocation built its client with."""
    return []


@pytest.fixture
def cli_cluster(monkeypatch, client_args) -> DummyConnectCluster:
    """Route every CLI client to a dummy cluster."""
    cluster = DummyConnectCluster()

    def fake_create_client(url, username, password):
        client_args.append((url, username, password))
        return ConnectClient(url, username, password, transport=cluster.transport())

    monkeypatch.setattr(cli_app, "create_client", fake_create_client)
    yield cluster
    _close_loggers()


class TestConnectorCommands:
    """Tests for connector commands."""

    def test_list_empty(self, runner, cli_cluster):
        """Empty clusters say so."""
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "No connectors found" in result.output

    def test_list_json(self, runner, cli_cluster):
        """--json prints the names array."""
        cli_cluster.add_connector("b", FILE_SINK_CONFIG)
        cli_cluster.add_connector("a", FILE_SINK_CONFIG)
        result = runner.invoke(app, ["--json", "list"])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == ["b", "a"]

    def test_list_expanded(self, runner, cli_cluster):
        """--expand status shows states."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=2)
        result = runner.invoke(app, ["list", "--expand", "status"])
        assert result.exit_code == 0
        assert "RUNNING" in result.output
        assert "2 task(s)" in result.output

    def test_list_unknown_expansion(self, runner, cli_cluster):
        """Unknown expansions are rejected."""
        result = runner.invoke(app, ["list", "--expand", "tasks"])
        assert result.exit_code == 1
        assert not cli_cluster.was_called("list_connectors")

    def test_create_with_pairs(self, runner, cli_cluster):
        """key=value pairs become the config."""
        args = ["create", "file-sink-1"]
        for key, value in FILE_SINK_CONFIG.items():
            args += ["-c", f"{key}={value}"]
        result = runner.invoke(app, args)
        assert result.exit_code == 0
        assert "submitted" in result.output
        call = cli_cluster.get_call_log()[-1]
        assert call["method"] == "PUT"
        assert call["json"] == FILE_SINK_CONFIG

    def test_create_from_file_with_post(self, runner, cli_cluster, tmp_path: Path):
        """Config files may hold a {name, config} document."""
        config_file = tmp_path / "sink.json"
        config_file.write_text(json.dumps({"name": "ignored", "config": FILE_SINK_CONFIG}))
        result = runner.invoke(app, ["create", "file-sink-1", "-f", str(config_file), "--post"])
        assert result.exit_code == 0
        call = cli_cluster.get_call_log()[-1]
        assert call["method"] == "POST"
        assert call["json"] == {"name": "file-sink-1", "config": FILE_SINK_CONFIG}

    def test_create_from_file_converts_scalars(self, runner, cli_cluster, tmp_path: Path):
        """Numbers and booleans are sent as Kafka Connect strings."""
        config_file = tmp_path / "sink.json"
        config_file.write_text(json.dumps({
            "connector.class": "FileStreamSink",
            "tasks.max": 2,
            "batch.ratio": 0.5,
            "errors.tolerance.enabled": True,
        }))
        result = runner.invoke(app, ["create", "file-sink-1", "-f", str(config_file)])
        assert result.exit_code == 0
        assert cli_cluster.get_call_log()[-1]["json"] == {
            "connector.class": "FileStreamSink",
            "tasks.max": "2",
            "batch.ratio": "0.5",
            "errors.tolerance.enabled": "true",
        }

    @pytest.mark.parametrize("value, kind", [(None, "null"), ({"a": 1}, "dict"), ([1, 2], "list")])
    def test_create_from_file_rejects_non_scalars(
        self, runner, cli_cluster, client_args, tmp_path: Path, value, kind
    ):
        """null, objects and arrays are rejected before any request."""
        config_file = tmp_path / "sink.json"
        config_file.write_text(json.dumps({
            "connector.class": "FileStreamSink",
            "errors.deadletterqueue.topic.name": value,
        }))
        result = runner.invoke(app, ["create", "x", "-f", str(config_file)])
        assert result.exit_code == 1
        assert f"'errors.deadletterqueue.topic.name' is {kind}" in result.output
        assert client_args == []
        assert cli_cluster.connector_names() == []

    def test_create_bad_pair(self, runner, cli_cluster):
        """Entries without '=' are rejected before any request."""
        result = runner.invoke(app, ["create", "x", "-c", "no-equals"])
        assert result.exit_code == 1
        assert cli_cluster.get_call_log() == []

    def test_create_rejected_by_server(self, runner, cli_cluster):
        """Server validation errors exit 1 with the message."""
        result = runner.invoke(app, ["create", "x", "-c", "topics=t1"])
        assert result.exit_code == 1
        assert "contains no connector type" in result.output

    def test_status(self, runner, cli_cluster):
        """status shows connector and task lines."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=2)
        cli_cluster.set_task_state("a", 1, State.FAILED, trace="ConnectException: boom\n\tat x")
        result = runner.invoke(app, ["status", "a"])
        assert result.exit_code == 0
        assert "a: RUNNING" in result.output
        assert "task 1: FAILED" in result.output
        assert "ConnectException: boom" in result.output

    def test_status_not_found(self, runner, cli_cluster):
        """Unknown connectors exit 1."""
        result = runner.invoke(app, ["status", "ghost"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_health_exit_codes(self, runner, cli_cluster):
        """health exits 0 only for healthy connectors."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=1)
        assert runner.invoke(app, ["health", "a"]).exit_code == 0

        cli_cluster.set_task_state("a", 0, State.FAILED)
        result = runner.invoke(app, ["health", "a"])
        assert result.exit_code == 1
        assert "degraded" in result.output

    def test_health_json(self, runner, cli_cluster):
        """--json health includes the classification."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG)
        result = runner.invoke(app, ["--json", "health", "a"])
        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["health"] == "down"
        assert data["status"]["connector_state"] == "UNASSIGNED"

    def test_restart_with_tasks(self, runner, cli_cluster):
        """Restart flags are passed as query parameters."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=1)
        result = runner.invoke(app, ["restart", "a", "--include-tasks", "--only-failed"])
        assert result.exit_code == 0
        assert cli_cluster.get_call_log()[-1]["params"] == [
            ("includeTasks", "true"),
            ("onlyFailed", "true"),
        ]

    def test_restart_task(self, runner, cli_cluster):
        """restart-task targets connector-N."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=2)
        result = runner.invoke(app, ["restart-task", "a", "1"])
        assert result.exit_code == 0
        assert "a-1" in result.output

    def test_pause_resume(self, runner, cli_cluster):
        """pause and resume report acceptance only."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG, tasks=1)
        result = runner.invoke(app, ["pause", "a"])
        assert result.exit_code == 0
        assert "accepted" in result.output
        assert runner.invoke(app, ["resume", "a"]).exit_code == 0

    def test_delete(self, runner, cli_cluster):
        """delete removes the connector."""
        cli_cluster.add_connector("a", FILE_SINK_CONFIG)
        assert runner.invoke(app, ["delete", "a"]).exit_code == 0
        assert cli_cluster.connector_names() == []

    def test_conflict_exit_code(self, runner, cli_cluster):
        """Rebalancing workers give exit code 2."""
        cli_cluster.rebalancing = True
        result = runner.invoke(app, ["list"])
        assert result.exit_code == cli_app.EXIT_CONFLICT
        assert "rebalancing" in result.output


class TestClusterCommands:
    """Tests for cluster-level commands."""

    def test_info(self, runner, cli_cluster):
        """info shows the worker version."""
        result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "Kafka Connect 3.7.0" in result.output

    def test_plugins_json(self, runner, cli_cluster):
        """Plugins use the wire 'class' key in JSON."""
        result = runner.invoke(app, ["--json", "plugins"])
        assert result.exit_code == 0
        assert all("class" in plugin for plugin in json.loads(result.stdout))


class TestGlobalOptions:
    """Tests for the app callback."""

    def test_url_and_credentials(self, runner, cli_cluster, client_args):
        """--url and credentials reach the client factory."""
        result = runner.invoke(
            app, ["--url", "http://other:8083", "--username", "ops", "--password", "pw", "list"]
        )
        assert result.exit_code == 0
        assert client_args == [("http://other:8083", "ops", "pw")]

    def test_empty_url_reported(self, runner, cli_cluster):
        """A client that cannot be built is reported, not raised."""
        result = runner.invoke(app, ["--url", "", "list"])
        assert result.exit_code == 1
        assert not isinstance(result.exception, InvalidRequestError)
        assert "❌ Kafka Connect base URL is required" in result.output
        assert cli_cluster.get_call_log() == []

    def test_no_client_for_invalid_input(self, runner, cli_cluster, client_args):
        """Local validation failures never build a client."""
        result = runner.invoke(app, ["create", "x", "-c", "no-equals"])
        assert result.exit_code == 1
        assert client_args == []
