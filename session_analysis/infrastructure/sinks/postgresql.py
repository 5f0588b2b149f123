# ==============================================================================
# PostgreSQL Result Sink
# ==============================================================================
"""
PostgreSQL implementation of the ResultSink interface.

Writes one job result in a single transaction:
- session_aggr_stat: one row per task with histogram ratios
- session_random_extract: one row per sampled session
- session_detail: one row per action of a sampled session

Rows for the same task id are replaced, so rerunning a task is idempotent.
"""

import logging

import psycopg2
from psycopg2.extras import execute_batch

from session_analysis.base.sinks import ResultSink
from session_analysis.core.models import AnalysisResult
from session_analysis.core.stats import STEP_LENGTH_BUCKETS, VISIT_LENGTH_BUCKETS
from session_analysis.utils.config import PostgresSettings
from session_analysis.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_light

logger = logging.getLogger(__name__)

# Batch size for execute_batch
PAGE_SIZE = 1000

# Connection timeout
CONNECT_TIMEOUT = 10

RATIO_COLUMNS = [f"visit_length_{key}_ratio" for key in VISIT_LENGTH_BUCKETS] + [
    f"step_length_{key}_ratio" for key in STEP_LENGTH_BUCKETS
]


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


def schema_ddl(schema: str) -> str:
    """DDL for the result tables."""
    ratio_columns = ",\n    ".join(f"{col} NUMERIC(4, 2) NOT NULL" for col in RATIO_COLUMNS)
    return f"""
CREATE SCHEMA IF NOT EXISTS {schema};

CREATE TABLE IF NOT EXISTS {schema}.session_aggr_stat (
    task_id BIGINT PRIMARY KEY,
    session_count BIGINT NOT NULL,
    {ratio_columns}
);

CREATE TABLE IF NOT EXISTS {schema}.session_random_extract (
    task_id BIGINT NOT NULL,
    session_id TEXT NOT NULL,
    start_time TIMESTAMP NOT NULL,
    search_keywords TEXT NOT NULL,
    click_category_ids TEXT NOT NULL,
    PRIMARY KEY (task_id, session_id)
);

CREATE TABLE IF NOT EXISTS {schema}.session_detail (
    task_id BIGINT NOT NULL,
    user_id BIGINT NOT NULL,
    session_id TEXT NOT NULL,
    action_time TIMESTAMP NOT NULL,
    search_keyword TEXT,
    click_category_id BIGINT
);
"""


class PostgreSQLResultSink(ResultSink):
    """
    PostgreSQL implementation of ResultSink.

    Uses psycopg2.extras.execute_batch() for the sample and detail rows.
    """

    def __init__(self, settings: PostgresSettings):
        """
        Initialize the result sink.

        Args:
            settings: PostgreSQL connection settings
        """
        self._settings = settings
        self._conn: psycopg2.extensions.connection | None = None
        self._schema = settings.schema_name

    @retry_light(POSTGRES_RETRY_EXCEPTIONS, logger)
    def connect(self) -> None:
        """Establish connection to PostgreSQL and create the result tables."""
        conn_string = _add_connect_timeout(self._settings.connection_string)
        self._conn = psycopg2.connect(conn_string)
        with self._conn.cursor() as cur:
            cur.execute(schema_ddl(self._schema))
        self._conn.commit()
        logger.info("PostgreSQLResultSink connected (schema=%s)", self._schema)

    def save(self, result: AnalysisResult) -> int:
        """
        Persist a job result in one transaction.

        Returns:
            Count of sampled sessions written

        Raises:
            RuntimeError: If connect() was not called
            psycopg2.Error: On database errors (the transaction is rolled back)
        """
        if self._conn is None:
            raise RuntimeError("PostgreSQL connection not established. Call connect() first.")

        stat_record = result.stat.to_db_record()
        columns = ["task_id", "session_count", *RATIO_COLUMNS]

        extract_rows = []
        detail_rows = []
        for sample in result.samples:
            extract_rows.append({"task_id": result.task_id, **sample.to_db_record()})
            for action in sample.actions:
                detail_rows.append(
                    {
                        "task_id": result.task_id,
                        "user_id": action.user_id,
                        "session_id": action.session_id,
                        "action_time": action.action_time,
                        "search_keyword": action.search_keyword,
                        "click_category_id": action.click_category_id,
                    }
                )

        try:
            with self._conn.cursor() as cur:
                for table in ("session_aggr_stat", "session_random_extract", "session_detail"):
                    cur.execute(
                        f"DELETE FROM {self._schema}.{table} WHERE task_id = %(task_id)s",
                        {"task_id": result.task_id},
                    )

                cur.execute(
                    f"""
                    INSERT INTO {self._schema}.session_aggr_stat ({", ".join(columns)})
                    VALUES ({", ".join(f"%({c})s" for c in columns)})
                    """,
                    stat_record,
                )

                execute_batch(
                    cur,
                    f"""
                    INSERT INTO {self._schema}.session_random_extract
                        (task_id, session_id, start_time, search_keywords, click_category_ids)
                    VALUES
                        (%(task_id)s, %(session_id)s, %(start_time)s,
                         %(search_keywords)s, %(click_category_ids)s)
                    """,
                    extract_rows,
                    page_size=PAGE_SIZE,
                )

                execute_batch(
                    cur,
                    f"""
                    INSERT INTO {self._schema}.session_detail
                        (task_id, user_id, session_id, action_time,
                         search_keyword, click_category_id)
                    VALUES
                        (%(task_id)s, %(user_id)s, %(session_id)s, %(action_time)s,
                         %(search_keyword)s, %(click_category_id)s)
                    """,
                    detail_rows,
                    page_size=PAGE_SIZE,
                )
            self._conn.commit()
        except psycopg2.Error:
            self._conn.rollback()
            raise

        logger.info(
            "Saved task %d: %d sampled sessions, %d detail rows",
            result.task_id,
            len(extract_rows),
            len(detail_rows),
        )
        return len(extract_rows)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            logger.info("PostgreSQLResultSink closed")
