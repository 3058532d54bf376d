"""Connector CLI commands.

Commands for connector lifecycle and status:
- list: List connector names (optionally with status/info)
- get / config: Show a connector or its config
- create: Create or update a connector
- delete: Delete a connector
- status / health / tasks: Inspect run-time state
- pause / resume / restart / restart-task: Control a connector
- offsets: Show committed offsets
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional

import typer
from typer import Context

from kconnect.cli.app import app, echo_json, get_client, run_operation, wants_json
from kconnect.health import HealthClass
from kconnect.models import ConnectorStatus, TaskId

_HEALTH_ICONS = {
    HealthClass.HEALTHY: "✅",
    HealthClass.DEGRADED: "⚠️",
    HealthClass.PAUSED: "⏸️",
    HealthClass.DOWN: "❌",
}


def _config_value(key: str, value: object, config_file: Path) -> str:
    """Convert one JSON config value to the string Kafka Connect expects."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return json.dumps(value)
    kind = "null" if value is None else type(value).__name__
    typer.echo(
        f"❌ Config file {config_file}: value of '{key}' is {kind}, "
        "expected a string, number or boolean",
        err=True,
    )
    raise typer.Exit(1)


def _parse_config(pairs: List[str], config_file: Optional[Path]) -> Dict[str, str]:
    """Merge a JSON config file and key=value pairs (pairs win)."""
    result: Dict[str, str] = {}
    if config_file is not None:
        try:
            data = json.loads(config_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            typer.echo(f"❌ Cannot read config file {config_file}: {e}", err=True)
            raise typer.Exit(1)
        # Accept both a bare config map and a {"name", "config"} document
        if isinstance(data, dict) and isinstance(data.get("config"), dict):
            data = data["config"]
        if not isinstance(data, dict):
            typer.echo(f"❌ Config file {config_file} must contain a JSON object", err=True)
            raise typer.Exit(1)
        for key, value in data.items():
            result[key] = _config_value(key, value, config_file)

    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            typer.echo(f"❌ Invalid config entry '{pair}', expected key=value", err=True)
            raise typer.Exit(1)
        result[key.strip()] = value
    return result


def _render_status(status: ConnectorStatus) -> None:
    trace = f" ({status.trace.splitlines()[0]})" if status.trace else ""
    typer.echo(f"🔌 {status.name}: {status.connector_state.value} on {status.worker_id}{trace}")
    if not status.tasks:
        typer.echo("   No tasks assigned")
    for task in status.tasks:
        line = f"   task {task.id}: {task.state.value} on {task.worker_id}"
        if task.trace:
            line += f" ({task.trace.splitlines()[0]})"
        typer.echo(line)


@app.command(name="list")
def list_connectors(
    ctx: Context,
    expand: List[str] = typer.Option(
        [], "--expand", "-e", help="Include 'status' and/or 'info' for each connector"
    ),
):
    """List connectors.

    Examples:
        kconnect list
        kconnect list --expand status
    """
    client = get_client(ctx)
    unknown = set(expand) - {"status", "info"}
    if unknown:
        typer.echo(f"❌ Unknown expansion: {', '.join(sorted(unknown))}", err=True)
        raise typer.Exit(1)

    if not expand:
        names = run_operation(ctx, client.list_connectors)
        if wants_json(ctx):
            echo_json(names)
            return
        if not names:
            typer.echo("No connectors found")
        for name in names:
            typer.echo(name)
        return

    expanded = run_operation(
        ctx, client.list_connectors_expanded, status="status" in expand, info="info" in expand
    )
    if wants_json(ctx):
        echo_json(expanded)
        return
    for name, entry in expanded.items():
        parts = [name]
        if entry.status is not None:
            parts.append(entry.status.connector_state.value)
            parts.append(f"{len(entry.status.tasks)} task(s)")
        if entry.info is not None:
            parts.append(entry.info.config.get("connector.class", "?"))
        typer.echo("  ".join(parts))


@app.command(name="get")
def get_connector(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Show a connector's config and tasks."""
    connector = run_operation(ctx, get_client(ctx).get_connector, name)
    if wants_json(ctx):
        echo_json(connector)
        return
    kind = f" [{connector.type.value}]" if connector.type else ""
    typer.echo(f"🔌 {connector.name}{kind}")
    for key in sorted(connector.config):
        typer.echo(f"   {key} = {connector.config[key]}")
    typer.echo(f"   tasks: {', '.join(str(task) for task in connector.tasks) or 'none'}")


@app.command(name="config")
def get_connector_config(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Print a connector's config as JSON."""
    echo_json(run_operation(ctx, get_client(ctx).get_connector_config, name))


@app.command(name="create")
def create_connector(
    ctx: Context,
    name: str = typer.Argument(..., help="Connector name"),
    pairs: List[str] = typer.Option([], "--config", "-c", help="Config entry key=value"),
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", "-f", help="JSON file with the connector config"
    ),
    post: bool = typer.Option(
        False, "--post", help="Create with POST and fail if the connector exists"
    ),
):
    """Create a connector, or update its config if it exists.

    Examples:
        kconnect create file-sink-1 -c connector.class=FileStreamSink -c file=/tmp/out -c topics=t1
        kconnect create my-sink --config-file sink.json --post
    """
    config = _parse_config(pairs, config_file)
    client = get_client(ctx)
    operation = client.create_connector if post else client.create_or_update_connector
    connector = run_operation(ctx, operation, name, config)
    if wants_json(ctx):
        echo_json(connector)
        return
    typer.echo(f"✅ Connector {connector.name} submitted")
    typer.echo("   Tasks are assigned asynchronously; check 'kconnect status'.")


@app.command(name="delete")
def delete_connector(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Delete a connector."""
    run_operation(ctx, get_client(ctx).delete_connector, name)
    typer.echo(f"🗑️ Connector {name} deleted")


@app.command(name="status")
def connector_status(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Show connector and task states."""
    status = run_operation(ctx, get_client(ctx).get_status, name)
    if wants_json(ctx):
        echo_json(status)
        return
    _render_status(status)


@app.command(name="health")
def connector_health(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Classify a connector as healthy, degraded, paused or down.

    Exits with code 1 when the connector is not healthy.
    """
    health = run_operation(ctx, get_client(ctx).get_health, name)
    if wants_json(ctx):
        echo_json({"name": health.name, "health": health.health.value, "status": health.status})
    else:
        typer.echo(f"{_HEALTH_ICONS[health.health]} {health.name}: {health.health.value}")
        for task in health.unhealthy_tasks:
            typer.echo(f"   task {task.id}: {task.state.value}")
    if not health.is_healthy:
        raise typer.Exit(1)


@app.command(name="tasks")
def connector_tasks(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """List a connector's task ids."""
    tasks = run_operation(ctx, get_client(ctx).get_tasks, name)
    if wants_json(ctx):
        echo_json(tasks)
        return
    if not tasks:
        typer.echo("No tasks assigned")
    for task in tasks:
        typer.echo(str(task))


@app.command(name="pause")
def pause_connector(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Pause a connector and its tasks."""
    run_operation(ctx, get_client(ctx).pause_connector, name)
    typer.echo(f"⏸️ Pause of {name} accepted; poll 'kconnect status' to confirm.")


@app.command(name="resume")
def resume_connector(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Resume a paused connector."""
    run_operation(ctx, get_client(ctx).resume_connector, name)
    typer.echo(f"▶️ Resume of {name} accepted; poll 'kconnect status' to confirm.")


@app.command(name="restart")
def restart_connector(
    ctx: Context,
    name: str = typer.Argument(..., help="Connector name"),
    include_tasks: bool = typer.Option(False, "--include-tasks", help="Restart tasks too"),
    only_failed: bool = typer.Option(False, "--only-failed", help="Only restart failed instances"),
):
    """Restart a connector, optionally with its tasks."""
    status = run_operation(
        ctx,
        get_client(ctx).restart_connector,
        name,
        include_tasks=include_tasks,
        only_failed=only_failed,
    )
    if wants_json(ctx):
        echo_json(status)
        return
    typer.echo(f"🔄 Restart of {name} accepted")
    if status is not None:
        _render_status(status)


@app.command(name="restart-task")
def restart_task(
    ctx: Context,
    name: str = typer.Argument(..., help="Connector name"),
    task: int = typer.Argument(..., min=0, help="Task number"),
):
    """Restart a single task."""
    task_id = TaskId(connector=name, task=task)
    run_operation(ctx, get_client(ctx).restart_task, task_id)
    typer.echo(f"🔄 Restart of task {task_id} accepted")


@app.command(name="offsets")
def connector_offsets(ctx: Context, name: str = typer.Argument(..., help="Connector name")):
    """Show a connector's committed offsets."""
    offsets = run_operation(ctx, get_client(ctx).get_offsets, name)
    if wants_json(ctx):
        echo_json(offsets)
        return
    if not offsets.offsets:
        typer.echo("No offsets committed")
    for entry in offsets.offsets:
        if entry.is_sink:
            typer.echo(f"{entry.kafka_topic}[{entry.kafka_partition}] = {entry.kafka_offset}")
        else:
            typer.echo(f"{json.dumps(entry.partition)} = {json.dumps(entry.offset)}")
