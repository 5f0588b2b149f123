# ==============================================================================
# Session Analysis CLI
# ==============================================================================
"""
Command-line interface for user visit session analysis.

Usage:
    session-analysis --help
    session-analysis run task.json
    session-analysis run task.json --json
    session-analysis data mock --users 1000 --seed 7
    session-analysis config show
"""

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
import os

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="session-analysis",
    help="User visit session analysis CLI",
    no_args_is_help=True,
)

# Run command is imported from session_analysis.cli.run
from session_analysis.cli.run import run_task

app.command("run")(run_task)

data_app = typer.Typer(
    help="Data management operations",
    no_args_is_help=True,
)
app.add_typer(data_app, name="data")

# Register data commands from cli.data module
from session_analysis.cli.data import data_mock

data_app.command("mock")(data_mock)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from session_analysis.cli.config import config_show

config_app.command("show")(config_show)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
