# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.

Only the CLI calls get_settings(). The pipeline receives its JobSettings
explicitly through SessionAnalysisJob's constructor.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from session_analysis.core.models import TIME_FORMAT
from session_analysis.core.sampler import TOTAL_QUOTA

# Load .env file before any settings are instantiated
load_dotenv()


class JobSettings(BaseSettings):
    """Worker pool and sampling settings for one job run."""

    model_config = SettingsConfigDict(env_prefix="JOB_")

    executor: Literal["thread", "process"] = Field(
        default="thread", description="Worker pool implementation (thread, process)"
    )
    workers: int = Field(default=4, ge=1, description="Number of parallel workers")
    partitions: int = Field(
        default=8, ge=1, description="Number of session shards (units of parallel work)"
    )
    max_task_attempts: int = Field(
        default=3, ge=1, description="Attempts per worker task before the job fails"
    )
    total_quota: int = Field(
        default=TOTAL_QUOTA, ge=0, description="Sessions to sample across all dates"
    )
    random_seed: Optional[int] = Field(
        default=None, description="Seed for sampling index draws (None = random)"
    )
    time_format: str = Field(default=TIME_FORMAT, description="actionTime layout in sources")


class DataSettings(BaseSettings):
    """Input and output file locations."""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    actions_file: Path = Field(
        default=Path("data/user_visit_action.csv"), description="Path to actions CSV file"
    )
    users_file: Path = Field(
        default=Path("data/user_info.csv"), description="Path to user dimension CSV file"
    )
    output_file: Path = Field(
        default=Path("data/result.json"), description="Path to JSON result file"
    )

    def resolve(self, path: Path) -> Path:
        """Resolve a path relative to the project root."""
        if path.is_absolute():
            return path
        # Import here to avoid circular imports
        from session_analysis.utils.paths import get_project_root

        return get_project_root() / path


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings for the result sink."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL username")
    password: str = Field(default="", description="PostgreSQL password")
    database: str = Field(default="session_analysis", description="Database name")
    schema_name: str = Field(default="session_analysis", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class SinkSettings(BaseSettings):
    """Result sink selection."""

    model_config = SettingsConfigDict(env_prefix="SINK_")

    impl: Literal["json", "postgresql"] = Field(
        default="json", description="Result sink implementation (json, postgresql)"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    job: JobSettings = Field(default_factory=JobSettings)
    data: DataSettings = Field(default_factory=DataSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    sink: SinkSettings = Field(default_factory=SinkSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
