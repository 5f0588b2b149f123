# ==============================================================================
# Task Parameters
# ==============================================================================
"""
Per-run task parameters: task id, date range and filter criteria.

Task documents use the camelCase keys of the task table's JSON parameter
column (startDate, endDate, startAge, endAge, professionals, cities, sex,
keywords, categoryIds). Multi-valued parameters may be lists or
comma-separated strings.
"""

import json
from datetime import date
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, model_validator

from session_analysis.core.errors import MalformedFieldError
from session_analysis.core.models import FilterCriteria, parse_int


def _split(value: Any) -> list[str] | None:
    """Normalize a list or comma-separated string; empty means unset."""
    if value is None:
        return None
    if isinstance(value, str):
        items = [item.strip() for item in value.split(",")]
    else:
        items = [str(item).strip() for item in value]
    items = [item for item in items if item]
    return items or None


def _parse_date(field: str, value: Any) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError:
        raise MalformedFieldError(field, value, "expected date as YYYY-MM-DD") from None


class TaskParams(BaseModel):
    """
    Parameters of one analysis run.

    Attributes:
        task_id: Identifier the results are stored under
        start_date: First action date to include
        end_date: Last action date to include
        criteria: Session filter
    """

    task_id: int = Field(..., description="Task identifier")
    start_date: date = Field(..., description="Inclusive start date")
    end_date: date = Field(..., description="Inclusive end date")
    criteria: FilterCriteria = Field(default_factory=FilterCriteria)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _date_range_ordered(self) -> "TaskParams":
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date} is after end_date {self.end_date}")
        return self

    @classmethod
    def from_params(cls, task_id: int, params: dict[str, Any]) -> "TaskParams":
        """
        Build from a task parameter document.

        Raises:
            MalformedFieldError: If a date, age or category id cannot be parsed
        """

        def opt_int(key: str) -> int | None:
            value = params.get(key)
            if value is None or (isinstance(value, str) and not value.strip()):
                return None
            return parse_int(key, value)

        professionals = _split(params.get("professionals"))
        cities = _split(params.get("cities"))
        keywords = _split(params.get("keywords"))
        category_ids = _split(params.get("categoryIds"))
        sex = params.get("sex")

        criteria = FilterCriteria(
            start_age=opt_int("startAge"),
            end_age=opt_int("endAge"),
            professionals=frozenset(professionals) if professionals else None,
            cities=frozenset(cities) if cities else None,
            sex=sex.strip() if isinstance(sex, str) and sex.strip() else None,
            keywords=frozenset(keywords) if keywords else None,
            category_ids=(
                frozenset(parse_int("categoryIds", c) for c in category_ids)
                if category_ids
                else None
            ),
        )
        return cls(
            task_id=task_id,
            start_date=_parse_date("startDate", params.get("startDate")),
            end_date=_parse_date("endDate", params.get("endDate")),
            criteria=criteria,
        )

    @classmethod
    def from_json_file(cls, path: Path, task_id: int | None = None) -> "TaskParams":
        """
        Load a task document from a JSON file.

        The document may carry ``taskId`` and the parameters either at the top
        level or under ``taskParam``, as an object or as the JSON-encoded
        string stored in the task table. An explicit task_id argument wins.

        Raises:
            MalformedFieldError: If the document or its taskParam is not a JSON
                object
        """
        document = json.loads(Path(path).read_text())
        if not isinstance(document, dict):
            raise MalformedFieldError("task", document, "expected a JSON object")
        params = document.get("taskParam", document)
        if isinstance(params, str):
            params = json.loads(params)
        if not isinstance(params, dict):
            raise MalformedFieldError("taskParam", params, "expected a JSON object")
        resolved_id = task_id if task_id is not None else document.get("taskId", 0)
        return cls.from_params(parse_int("taskId", resolved_id), params)
