"""CLI app setup and common utilities.

This module creates the main Typer app and provides the helpers every
command uses: client construction, error reporting and output rendering.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional, TypeVar

import typer
from pydantic import BaseModel
from typer import Context, Typer

from kconnect.client import ClientPolicy, ConnectClient
from kconnect.config import config
from kconnect.errors import ConflictError, ConnectError

T = TypeVar("T")

# Initialize Typer app
app = Typer(
    name="kconnect",
    help="Manage Kafka Connect connectors through the Connect REST API.",
)

# Exit code for 409 so scripts can back off and try again
EXIT_CONFLICT = 2


class CLIState:
    """Shared state object for CLI commands."""

    def __init__(self):
        self.url: str = config.url
        self.username: Optional[str] = None
        self.password: Optional[str] = None
        self.json_output: bool = False
        self.client: Optional[ConnectClient] = None


def create_client(url: str, username: Optional[str], password: Optional[str]) -> ConnectClient:
    """Build the client used by all commands."""
    policy = ClientPolicy(
        connect_timeout=config.connect_timeout_s,
        read_timeout=config.read_timeout_s,
    )
    return ConnectClient(url, username, password, policy=policy)


def get_client(ctx: Context) -> ConnectClient:
    """Get (and create on first use) the client for this invocation."""
    state: CLIState = ctx.obj
    if state.client is None:
        state.client = run_operation(
            ctx, create_client, state.url, state.username, state.password
        )
        ctx.call_on_close(state.client.close)
    return state.client


def run_operation(ctx: Context, operation: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a client call, turning ConnectError into a CLI exit."""
    try:
        return operation(*args, **kwargs)
    except ConnectError as e:
        typer.echo(f"❌ {e}", err=True)
        if isinstance(e, ConflictError):
            typer.echo("   The cluster may be rebalancing; try again shortly.", err=True)
            raise typer.Exit(EXIT_CONFLICT)
        raise typer.Exit(1)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, dict):
        return {key: _to_jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


def wants_json(ctx: Context) -> bool:
    return bool(ctx.obj and ctx.obj.json_output)


def echo_json(value: Any) -> None:
    """Print a model, list or dict as indented JSON."""
    typer.echo(json.dumps(_to_jsonable(value), indent=2))


@app.callback()
def init_app(
    ctx: Context,
    url: str = typer.Option(
        config.url, "--url", "-u", help="Kafka Connect REST address", envvar="KCONNECT_URL"
    ),
    username: Optional[str] = typer.Option(
        config.username, "--username", help="Basic auth user", envvar="KCONNECT_USERNAME"
    ),
    password: Optional[str] = typer.Option(
        config.password,
        "--password",
        help="Basic auth password (enables basic auth)",
        envvar="KCONNECT_PASSWORD",
    ),
    json_output: bool = typer.Option(False, "--json", help="Print raw JSON output"),
):
    """Select the Connect worker and credentials used by every command."""
    logging.basicConfig(level=config.log_level.upper())

    ctx.ensure_object(CLIState)
    ctx.obj.url = url
    ctx.obj.username = username
    ctx.obj.password = password
    ctx.obj.json_output = json_output
