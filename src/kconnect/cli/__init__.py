"""CLI package for kconnect.

The main Typer app is created in app.py and commands are registered from
each module.
"""

# Import command modules to register commands with the app
import kconnect.cli.commands_cluster  # noqa: F401, E402
import kconnect.cli.commands_connectors  # noqa: F401, E402
from kconnect.cli.app import app

__all__ = ["app"]
