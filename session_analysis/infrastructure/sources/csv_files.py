# ==============================================================================
# CSV Row Sources
# ==============================================================================
"""
Row sources reading CSV files with Polars.

Columns are read positionally and as strings; parsing and validation happen
in ActionRecord.from_row() / UserDimension.from_row() so that an
unparseable value raises MalformedFieldError instead of being coerced.

Expected column order:
    actions: session_id, user_id, action_time, search_keyword, click_category_id
    users:   user_id, age, professional, city, sex
"""

import logging
from collections.abc import Iterator
from datetime import date
from pathlib import Path

import polars as pl

from session_analysis.base.sources import ActionSource, UserDimensionSource
from session_analysis.core.models import TIME_FORMAT, ActionRecord, UserDimension

logger = logging.getLogger(__name__)

ACTION_COLUMNS = 5
USER_COLUMNS = 5


def _read_positional(path: Path, num_columns: int) -> pl.DataFrame:
    """Read a CSV as all-string columns and keep the first num_columns."""
    # infer_schema_length=0 reads every column as String
    df = pl.read_csv(path, infer_schema_length=0)
    if df.width < num_columns:
        raise ValueError(f"{path}: expected at least {num_columns} columns, found {df.width}")
    return df.select(df.columns[:num_columns])


class CSVActionSource(ActionSource):
    """ActionSource backed by a CSV file."""

    def __init__(self, path: Path, time_format: str = TIME_FORMAT):
        self._path = Path(path)
        self._time_format = time_format

    def iter_actions(self, start_date: date, end_date: date) -> Iterator[ActionRecord]:
        df = _read_positional(self._path, ACTION_COLUMNS)
        logger.info("Loaded %s action rows from %s", f"{df.height:,}", self._path)

        for row in df.iter_rows():
            action = ActionRecord.from_row(row, self._time_format)
            if start_date <= action.action_time.date() <= end_date:
                yield action


class CSVUserSource(UserDimensionSource):
    """UserDimensionSource backed by a CSV file."""

    def __init__(self, path: Path):
        self._path = Path(path)

    def iter_users(self) -> Iterator[UserDimension]:
        df = _read_positional(self._path, USER_COLUMNS)
        logger.info("Loaded %s user rows from %s", f"{df.height:,}", self._path)

        for row in df.iter_rows():
            yield UserDimension.from_row(row)
