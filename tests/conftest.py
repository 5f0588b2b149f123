# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- Factories for ActionRecord, UserDimension and FullSessionRecord
- The "s1" scenario: one four-action session of a 25 year old IT user
- Deterministic JobSettings for end-to-end job runs
"""

from datetime import datetime, timedelta

import pytest

from session_analysis.core.models import ActionRecord, FullSessionRecord, UserDimension
from session_analysis.utils.config import JobSettings

T0 = datetime(2024, 1, 15, 10, 0, 0)


def make_action(
    session_id: str = "s1",
    user_id: int = 7,
    action_time: datetime = T0,
    search_keyword: str | None = None,
    click_category_id: int | None = None,
) -> ActionRecord:
    """Create an ActionRecord with sensible defaults."""
    return ActionRecord(
        session_id=session_id,
        user_id=user_id,
        action_time=action_time,
        search_keyword=search_keyword,
        click_category_id=click_category_id,
    )


def make_user(
    user_id: int = 7,
    age: int = 25,
    professional: str = "IT",
    city: str = "Beijing",
    sex: str = "M",
) -> UserDimension:
    """Create a UserDimension with sensible defaults."""
    return UserDimension(
        user_id=user_id, age=age, professional=professional, city=city, sex=sex
    )


def make_record(
    session_id: str = "s1",
    start_time: datetime = T0,
    visit_length: int = 12,
    step_length: int = 4,
    **overrides,
) -> FullSessionRecord:
    """Create a FullSessionRecord; any field can be overridden."""
    fields = {
        "session_id": session_id,
        "user_id": 7,
        "search_keywords": frozenset({"shoes"}),
        "click_category_ids": frozenset({42}),
        "start_time": start_time,
        "end_time": start_time + timedelta(seconds=visit_length),
        "visit_length": visit_length,
        "step_length": step_length,
        "age": 25,
        "professional": "IT",
        "city": "Beijing",
        "sex": "M",
    }
    fields.update(overrides)
    return FullSessionRecord(**fields)


@pytest.fixture()
def s1_actions() -> list[ActionRecord]:
    """Four actions of session s1 at t, t+5, t+12 and t+12 seconds."""
    return [
        make_action(action_time=T0, search_keyword="shoes"),
        make_action(action_time=T0 + timedelta(seconds=5), click_category_id=42),
        make_action(action_time=T0 + timedelta(seconds=12)),
        make_action(action_time=T0 + timedelta(seconds=12)),
    ]


@pytest.fixture()
def s1_user() -> UserDimension:
    """The owner of session s1: 25, IT, Beijing, M."""
    return make_user()


@pytest.fixture()
def job_settings() -> JobSettings:
    """Small, seeded worker pool settings."""
    return JobSettings(executor="thread", workers=2, partitions=4, random_seed=42)
