"""Cluster-level CLI commands.

- info: Show the worker's version and Kafka cluster id
- plugins: List installed connector plugins
"""

from __future__ import annotations

import typer
from typer import Context

from kconnect.cli.app import app, echo_json, get_client, run_operation, wants_json


@app.command(name="info")
def cluster_info(ctx: Context):
    """Show the Connect worker version and Kafka cluster id."""
    info = run_operation(ctx, get_client(ctx).cluster_info)
    if wants_json(ctx):
        echo_json(info)
        return
    typer.echo(f"Kafka Connect {info.version} (commit {info.commit})")
    typer.echo(f"Kafka cluster: {info.kafka_cluster_id}")


@app.command(name="plugins")
def list_plugins(ctx: Context):
    """List installed connector plugins."""
    plugins = run_operation(ctx, get_client(ctx).list_plugins)
    if wants_json(ctx):
        echo_json(plugins)
        return
    for plugin in plugins:
        typer.echo(f"{plugin.type.value:<7} {plugin.class_name} ({plugin.version})")
