# ==============================================================================
# Session Analysis Domain Models
# ==============================================================================
"""
Pydantic models for user visit actions, sessions and filter criteria.

These models are used for:
- Validating rows read from the action and user sources
- Passing session records between pipeline stages (wire format)
- Type safety throughout the application

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from collections.abc import Sequence
from datetime import datetime
from urllib.parse import unquote

from pydantic import BaseModel, Field, model_validator

from session_analysis.core.errors import MalformedFieldError
from session_analysis.core.stats import AggregateStat

# Default timestamp layout of actionTime / startTime values
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Wire format delimiters
FIELD_DELIMITER = "|"
VALUE_DELIMITER = ","

# Wire field names, in encoding order
FIELD_SESSION_ID = "sessionid"
FIELD_USER_ID = "userid"
FIELD_SEARCH_KEYWORDS = "searchKeywords"
FIELD_CLICK_CATEGORY_IDS = "clickCategoryIds"
FIELD_VISIT_LENGTH = "visitLength"
FIELD_STEP_LENGTH = "stepLength"
FIELD_START_TIME = "startTime"
FIELD_END_TIME = "endTime"
FIELD_AGE = "age"
FIELD_PROFESSIONAL = "professional"
FIELD_CITY = "city"
FIELD_SEX = "sex"

WIRE_FIELDS = (
    FIELD_SESSION_ID,
    FIELD_USER_ID,
    FIELD_SEARCH_KEYWORDS,
    FIELD_CLICK_CATEGORY_IDS,
    FIELD_VISIT_LENGTH,
    FIELD_STEP_LENGTH,
    FIELD_START_TIME,
    FIELD_END_TIME,
    FIELD_AGE,
    FIELD_PROFESSIONAL,
    FIELD_CITY,
    FIELD_SEX,
)

_ESCAPES = {"%": "%25", "|": "%7C", ",": "%2C", "=": "%3D"}


# ==============================================================================
# Field Parsing Helpers
# ==============================================================================


def _is_null(value: object) -> bool:
    return value is None or (isinstance(value, str) and value.strip().lower() in ("", "null"))


def parse_int(field: str, value: object) -> int:
    """Parse an integer field, raising MalformedFieldError on failure."""
    if isinstance(value, bool):
        raise MalformedFieldError(field, value, "expected an integer")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        raise MalformedFieldError(field, value, "expected an integer") from None


def parse_time(field: str, value: object, time_format: str = TIME_FORMAT) -> datetime:
    """Parse a timestamp field, raising MalformedFieldError on failure."""
    if isinstance(value, datetime):
        return value
    try:
        return datetime.strptime(str(value).strip(), time_format)
    except (TypeError, ValueError):
        raise MalformedFieldError(field, value, f"expected time as {time_format}") from None


def escape_value(value: str) -> str:
    """Escape wire delimiters inside a single value."""
    return "".join(_ESCAPES.get(ch, ch) for ch in value)


def unescape_value(value: str) -> str:
    """Reverse escape_value()."""
    return unquote(value)


# ==============================================================================
# Input Records
# ==============================================================================


class ActionRecord(BaseModel):
    """
    A single user visit action.

    Only search actions carry a keyword and only click actions carry a
    category id, so at most one of the two is present.

    Attributes:
        session_id: Session the action belongs to
        user_id: User who performed the action
        action_time: When the action happened
        search_keyword: Search keyword (search actions only)
        click_category_id: Clicked category id (click actions only)
    """

    session_id: str = Field(..., alias="sessionId", description="Session identifier")
    user_id: int = Field(..., alias="userId", description="User identifier")
    action_time: datetime = Field(..., alias="actionTime", description="Action timestamp")
    search_keyword: str | None = Field(
        None, alias="searchKeyword", description="Search keyword (nullable)"
    )
    click_category_id: int | None = Field(
        None, alias="clickCategoryId", description="Clicked category id (nullable)"
    )

    model_config = {"populate_by_name": True, "frozen": True}

    @model_validator(mode="after")
    def _one_optional_field(self) -> "ActionRecord":
        if self.search_keyword is not None and self.click_category_id is not None:
            raise ValueError("an action cannot carry both a search keyword and a category id")
        return self

    @property
    def action_date(self) -> str:
        """Action date as YYYY-MM-DD."""
        return self.action_time.strftime("%Y-%m-%d")

    @classmethod
    def from_row(cls, row: Sequence, time_format: str = TIME_FORMAT) -> "ActionRecord":
        """
        Build an action from a positional row.

        Column order: sessionId, userId, actionTime, searchKeyword,
        clickCategoryId. Null-like optional values ("", "null", None) are
        treated as absent.

        Raises:
            MalformedFieldError: If a field cannot be parsed or both optional
                fields are present
        """
        if len(row) != 5:
            raise MalformedFieldError("row", row, "expected 5 columns")
        session_id, user_id, action_time, keyword, category_id = row
        if _is_null(session_id):
            raise MalformedFieldError("sessionId", session_id, "missing session id")

        keyword = None if _is_null(keyword) else str(keyword)
        category_id = None if _is_null(category_id) else parse_int("clickCategoryId", category_id)
        if keyword is not None and category_id is not None:
            raise MalformedFieldError(
                "clickCategoryId", category_id, "search keyword and category id both present"
            )

        return cls(
            session_id=str(session_id),
            user_id=parse_int("userId", user_id),
            action_time=parse_time("actionTime", action_time, time_format),
            search_keyword=keyword,
            click_category_id=category_id,
        )


class UserDimension(BaseModel):
    """Static attributes of a user, joined onto sessions by user id."""

    user_id: int = Field(..., alias="userId", description="User identifier")
    age: int = Field(..., description="Age in years")
    professional: str = Field(..., description="Profession")
    city: str = Field(..., description="City")
    sex: str = Field(..., description="Sex")

    model_config = {"populate_by_name": True, "frozen": True}

    @classmethod
    def from_row(cls, row: Sequence) -> "UserDimension":
        """
        Build a user from a positional row: userId, age, professional, city, sex.

        Raises:
            MalformedFieldError: If userId or age cannot be parsed
        """
        if len(row) != 5:
            raise MalformedFieldError("row", row, "expected 5 columns")
        user_id, age, professional, city, sex = row
        return cls(
            user_id=parse_int("userId", user_id),
            age=parse_int("age", age),
            professional=str(professional),
            city=str(city),
            sex=str(sex),
        )


# ==============================================================================
# Session Records
# ==============================================================================


class SessionSummary(BaseModel):
    """
    Aggregate of every action in one session.

    Attributes:
        session_id: Session identifier
        user_id: User who owns the session
        search_keywords: Distinct search keywords
        click_category_ids: Distinct clicked category ids
        start_time: Earliest action time
        end_time: Latest action time
        visit_length: end_time - start_time in whole seconds
        step_length: Number of actions
    """

    session_id: str
    user_id: int
    search_keywords: frozenset[str] = frozenset()
    click_category_ids: frozenset[int] = frozenset()
    start_time: datetime
    end_time: datetime
    visit_length: int
    step_length: int

    model_config = {"frozen": True}


class FullSessionRecord(BaseModel):
    """
    A session summary joined with its user's dimension attributes.

    Between pipeline stages the record travels as its wire encoding,
    ``field=value`` pairs joined by ``|`` (see to_wire()).
    """

    session_id: str
    user_id: int
    search_keywords: frozenset[str] = frozenset()
    click_category_ids: frozenset[int] = frozenset()
    start_time: datetime
    end_time: datetime
    visit_length: int
    step_length: int
    age: int
    professional: str
    city: str
    sex: str

    model_config = {"frozen": True}

    @classmethod
    def from_parts(cls, summary: SessionSummary, user: UserDimension) -> "FullSessionRecord":
        """Combine a session summary with the matching user row."""
        return cls(
            **summary.model_dump(),
            age=user.age,
            professional=user.professional,
            city=user.city,
            sex=user.sex,
        )

    @property
    def date_hour(self) -> tuple[str, str]:
        """(YYYY-MM-DD, HH) bucket of the session start time."""
        return self.start_time.strftime("%Y-%m-%d"), self.start_time.strftime("%H")

    @property
    def sort_key(self) -> tuple[datetime, str]:
        """Stable ordering key used to number sessions within a time bucket."""
        return self.start_time, self.session_id

    def to_wire(self) -> str:
        """
        Encode as ``sessionid=...|userid=...|...|sex=...``.

        Multi-valued fields are sorted and comma-joined. Delimiter characters
        inside values are percent-escaped.
        """
        values = {
            FIELD_SESSION_ID: escape_value(self.session_id),
            FIELD_USER_ID: str(self.user_id),
            FIELD_SEARCH_KEYWORDS: VALUE_DELIMITER.join(
                escape_value(k) for k in sorted(self.search_keywords)
            ),
            FIELD_CLICK_CATEGORY_IDS: VALUE_DELIMITER.join(
                str(c) for c in sorted(self.click_category_ids)
            ),
            FIELD_VISIT_LENGTH: str(self.visit_length),
            FIELD_STEP_LENGTH: str(self.step_length),
            FIELD_START_TIME: self.start_time.strftime(TIME_FORMAT),
            FIELD_END_TIME: self.end_time.strftime(TIME_FORMAT),
            FIELD_AGE: str(self.age),
            FIELD_PROFESSIONAL: escape_value(self.professional),
            FIELD_CITY: escape_value(self.city),
            FIELD_SEX: escape_value(self.sex),
        }
        return FIELD_DELIMITER.join(f"{name}={values[name]}" for name in WIRE_FIELDS)

    @classmethod
    def from_wire(cls, encoded: str) -> "FullSessionRecord":
        """
        Decode a record produced by to_wire().

        Raises:
            MalformedFieldError: If a field is missing or cannot be parsed
        """
        fields = parse_wire(encoded)
        missing = [name for name in WIRE_FIELDS if name not in fields]
        if missing:
            raise MalformedFieldError(missing[0], encoded, "field missing from record")

        keywords = fields[FIELD_SEARCH_KEYWORDS]
        categories = fields[FIELD_CLICK_CATEGORY_IDS]
        return cls(
            session_id=unescape_value(fields[FIELD_SESSION_ID]),
            user_id=parse_int(FIELD_USER_ID, fields[FIELD_USER_ID]),
            search_keywords=frozenset(
                unescape_value(k) for k in keywords.split(VALUE_DELIMITER) if k
            ),
            click_category_ids=frozenset(
                parse_int(FIELD_CLICK_CATEGORY_IDS, c)
                for c in categories.split(VALUE_DELIMITER)
                if c
            ),
            visit_length=parse_int(FIELD_VISIT_LENGTH, fields[FIELD_VISIT_LENGTH]),
            step_length=parse_int(FIELD_STEP_LENGTH, fields[FIELD_STEP_LENGTH]),
            start_time=parse_time(FIELD_START_TIME, fields[FIELD_START_TIME]),
            end_time=parse_time(FIELD_END_TIME, fields[FIELD_END_TIME]),
            age=parse_int(FIELD_AGE, fields[FIELD_AGE]),
            professional=unescape_value(fields[FIELD_PROFESSIONAL]),
            city=unescape_value(fields[FIELD_CITY]),
            sex=unescape_value(fields[FIELD_SEX]),
        )


def parse_wire(encoded: str) -> dict[str, str]:
    """Split a wire-encoded record into its raw (still escaped) field values."""
    fields = {}
    for pair in encoded.split(FIELD_DELIMITER):
        name, sep, value = pair.partition("=")
        if not sep:
            raise MalformedFieldError("record", encoded, f"pair without '=': {pair!r}")
        fields[name] = value
    return fields


def get_wire_field(encoded: str, field: str) -> str:
    """Return one unescaped field value from a wire-encoded record."""
    fields = parse_wire(encoded)
    if field not in fields:
        raise MalformedFieldError(field, encoded, "field missing from record")
    return unescape_value(fields[field])


# ==============================================================================
# Filter Criteria
# ==============================================================================


class FilterCriteria(BaseModel):
    """
    Multi-dimensional session filter.

    Every unset field is a wildcard, and so is an empty set. Set-valued
    fields match when any value matches (OR within a field); fields combine
    with AND.
    """

    start_age: int | None = Field(None, description="Inclusive lower age bound")
    end_age: int | None = Field(None, description="Inclusive upper age bound")
    professionals: frozenset[str] | None = Field(None, description="Accepted professions")
    cities: frozenset[str] | None = Field(None, description="Accepted cities")
    sex: str | None = Field(None, description="Required sex")
    keywords: frozenset[str] | None = Field(None, description="Any-of search keywords")
    category_ids: frozenset[int] | None = Field(None, description="Any-of clicked categories")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _age_range_ordered(self) -> "FilterCriteria":
        if self.start_age is not None and self.end_age is not None:
            if self.start_age > self.end_age:
                raise ValueError(f"start_age {self.start_age} is after end_age {self.end_age}")
        return self

    @property
    def is_wildcard(self) -> bool:
        """True when no criterion is set (empty sets count as unset)."""
        return all(
            value is None or value == frozenset() for value in self.model_dump().values()
        )


# ==============================================================================
# Results
# ==============================================================================


class SampledSession(BaseModel):
    """A sampled session together with its raw action detail records."""

    record: FullSessionRecord
    actions: list[ActionRecord] = Field(default_factory=list)

    model_config = {"frozen": True}

    def to_db_record(self) -> dict:
        """Convert to the session_random_extract row format."""
        record = self.record
        return {
            "session_id": record.session_id,
            "start_time": record.start_time,
            "search_keywords": ",".join(sorted(record.search_keywords)),
            "click_category_ids": ",".join(str(c) for c in sorted(record.click_category_ids)),
        }


class AnalysisResult(BaseModel):
    """
    Everything a job run publishes to the result sink.

    Attributes:
        task_id: Task the run belongs to
        stat: Histogram with per-bucket ratios
        samples: Time-stratified session sample with action details
        total_sessions: Sessions aggregated in the date range
        dropped_sessions: Sessions dropped for lack of a user dimension row
    """

    task_id: int
    stat: AggregateStat
    samples: list[SampledSession] = Field(default_factory=list)
    total_sessions: int = 0
    dropped_sessions: int = 0
