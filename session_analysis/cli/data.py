# ==============================================================================
# Data Commands
# ==============================================================================
"""
Data management commands for the session analysis CLI.

Commands for generating mock input data.
"""

from datetime import datetime
from pathlib import Path
from typing import Annotated, Optional

import typer

from session_analysis.cli.shared import C, I
from session_analysis.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def data_mock(
    users: Annotated[int, typer.Option("--users", "-u", min=1, help="Number of users")] = 100,
    sessions: Annotated[
        int, typer.Option("--sessions", "-s", min=1, help="Sessions per user")
    ] = 10,
    day: Annotated[
        Optional[str], typer.Option("--date", "-d", help="Date of the actions (YYYY-MM-DD)")
    ] = None,
    seed: Annotated[
        Optional[int], typer.Option("--seed", help="Random seed for reproducible data")
    ] = None,
    actions_file: Annotated[
        Optional[Path], typer.Option("--actions", help="Actions CSV (default: DATA_ACTIONS_FILE)")
    ] = None,
    users_file: Annotated[
        Optional[Path], typer.Option("--users-file", help="Users CSV (default: DATA_USERS_FILE)")
    ] = None,
) -> None:
    """Generate mock actions and users as CSV files.

    Every user gets the given number of sessions, each with 1-100 search,
    click, order or pay actions within one hour of the chosen day.

    Examples:
        session-analysis data mock
        session-analysis data mock --users 1000 --date 2024-01-15 --seed 7
    """
    from session_analysis.utils.mock_data import write_mock_data

    settings = get_settings()
    actions_path = actions_file or settings.data.resolve(settings.data.actions_file)
    users_path = users_file or settings.data.resolve(settings.data.users_file)

    mock_day = None
    if day:
        try:
            mock_day = datetime.strptime(day, "%Y-%m-%d").date()
        except ValueError:
            print(f"{C.BRIGHT_RED}{I.CROSS} Invalid date '{day}' (expected YYYY-MM-DD){C.RESET}")
            raise typer.Exit(1)

    print()
    action_rows, user_rows = write_mock_data(
        actions_path,
        users_path,
        num_users=users,
        sessions_per_user=sessions,
        day=mock_day,
        seed=seed,
    )
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Wrote {action_rows:,} actions to {actions_path}{C.RESET}")
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Wrote {user_rows:,} users to {users_path}{C.RESET}")
    print()
