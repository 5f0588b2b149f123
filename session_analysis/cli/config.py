# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the session analysis CLI.
"""

import json
from typing import Annotated

import typer

from session_analysis.cli.shared import C
from session_analysis.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()

    if json_output:
        config = {
            "job": settings.job.model_dump(),
            "data": {
                "actions_file": str(settings.data.resolve(settings.data.actions_file)),
                "users_file": str(settings.data.resolve(settings.data.users_file)),
                "output_file": str(settings.data.resolve(settings.data.output_file)),
            },
            "sink": {
                "impl": settings.sink.impl,
            },
            "postgresql": {
                "host": settings.postgres.host,
                "port": settings.postgres.port,
                "database": settings.postgres.database,
                "schema": settings.postgres.schema_name,
                "user": settings.postgres.user,
                "password": settings.postgres.password,
                "sslmode": settings.postgres.sslmode,
            },
            "log_level": settings.log_level,
            "debug": settings.debug,
        }
        print(json.dumps(config, indent=2))
        return

    job = settings.job
    seed = job.random_seed if job.random_seed is not None else "random"

    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    print(f"{C.CYAN}Job{C.RESET}")
    print(f"  Executor:   {C.WHITE}{job.executor} ({job.workers} workers){C.RESET}")
    print(f"  Shards:     {C.WHITE}{job.partitions}{C.RESET}")
    print(f"  Attempts:   {C.WHITE}{job.max_task_attempts} per task{C.RESET}")
    print(f"  Quota:      {C.WHITE}{job.total_quota} sessions{C.RESET}")
    print(f"  Seed:       {C.WHITE}{seed}{C.RESET}")
    print(f"  Time:       {C.WHITE}{job.time_format}{C.RESET}")
    print()

    print(f"{C.CYAN}Data{C.RESET}")
    print(f"  Actions:    {C.WHITE}{settings.data.resolve(settings.data.actions_file)}{C.RESET}")
    print(f"  Users:      {C.WHITE}{settings.data.resolve(settings.data.users_file)}{C.RESET}")
    print(f"  Output:     {C.WHITE}{settings.data.resolve(settings.data.output_file)}{C.RESET}")
    print()

    print(f"{C.CYAN}Sink{C.RESET}")
    print(f"  Impl:       {C.WHITE}{settings.sink.impl}{C.RESET}")
    print()

    print(f"{C.CYAN}PostgreSQL{C.RESET}")
    print(f"  Host:       {C.WHITE}{settings.postgres.host}{C.RESET}")
    print(f"  Port:       {C.WHITE}{settings.postgres.port}{C.RESET}")
    print(f"  Database:   {C.WHITE}{settings.postgres.database}{C.RESET}")
    print(f"  Schema:     {C.WHITE}{settings.postgres.schema_name}{C.RESET}")
    print(f"  User:       {C.WHITE}{settings.postgres.user}{C.RESET}")
    print(f"  SSL:        {C.WHITE}{settings.postgres.sslmode}{C.RESET}")
    print()
