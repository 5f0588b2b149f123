# ==============================================================================
# Mock Data Generation
# ==============================================================================
"""
Generates a synthetic user table and one day of visit actions.

Each user gets a number of sessions; each session starts in a random hour
of the day and performs 1-100 actions of type search, click, order or pay.
Only search actions carry a keyword and only click actions a category id.
"""

import logging
import random
import uuid
from datetime import date, datetime, timedelta
from pathlib import Path

import polars as pl

from session_analysis.core.models import TIME_FORMAT

logger = logging.getLogger(__name__)

SEARCH_KEYWORDS = [
    "hotpot",
    "cake",
    "barbecue",
    "noodles",
    "sushi",
    "laptop",
    "phone",
    "shoes",
    "hoodie",
    "headphones",
]
ACTION_TYPES = ["search", "click", "order", "pay"]
SEXES = ["male", "female"]

ACTION_COLUMNS = ["session_id", "user_id", "action_time", "search_keyword", "click_category_id"]
USER_COLUMNS = ["user_id", "age", "professional", "city", "sex"]


def generate_mock_data(
    num_users: int = 100,
    sessions_per_user: int = 10,
    day: date | None = None,
    seed: int | None = None,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    """
    Generate mock actions and users.

    Args:
        num_users: Number of users
        sessions_per_user: Sessions generated for each user
        day: Date of every action (default: today)
        seed: Optional seed for reproducible output

    Returns:
        (actions, users) DataFrames with ACTION_COLUMNS / USER_COLUMNS
    """
    rng = random.Random(seed)
    day = day or date.today()
    midnight = datetime.combine(day, datetime.min.time())

    actions = {name: [] for name in ACTION_COLUMNS}
    for user_id in range(num_users):
        for _ in range(sessions_per_user):
            session_id = uuid.UUID(int=rng.getrandbits(128)).hex
            session_start = midnight + timedelta(hours=rng.randrange(24))

            for _ in range(rng.randint(1, 100)):
                action_time = session_start + timedelta(
                    minutes=rng.randrange(60), seconds=rng.randrange(60)
                )
                action_type = rng.choice(ACTION_TYPES)

                actions["session_id"].append(session_id)
                actions["user_id"].append(user_id)
                actions["action_time"].append(action_time.strftime(TIME_FORMAT))
                actions["search_keyword"].append(
                    rng.choice(SEARCH_KEYWORDS) if action_type == "search" else None
                )
                actions["click_category_id"].append(
                    rng.randrange(100) if action_type == "click" else None
                )

    users = {
        "user_id": list(range(num_users)),
        "age": [rng.randrange(60) for _ in range(num_users)],
        "professional": [f"professional{rng.randrange(100)}" for _ in range(num_users)],
        "city": [f"city{rng.randrange(100)}" for _ in range(num_users)],
        "sex": [rng.choice(SEXES) for _ in range(num_users)],
    }

    actions_df = pl.DataFrame(
        actions,
        schema={
            "session_id": pl.String,
            "user_id": pl.Int64,
            "action_time": pl.String,
            "search_keyword": pl.String,
            "click_category_id": pl.Int64,
        },
    )
    users_df = pl.DataFrame(users)
    return actions_df, users_df


def write_mock_data(
    actions_file: Path,
    users_file: Path,
    num_users: int = 100,
    sessions_per_user: int = 10,
    day: date | None = None,
    seed: int | None = None,
) -> tuple[int, int]:
    """
    Generate mock data and write it as CSV files.

    Returns:
        (action rows, user rows) written
    """
    actions_df, users_df = generate_mock_data(num_users, sessions_per_user, day, seed)

    for path in (actions_file, users_file):
        Path(path).parent.mkdir(parents=True, exist_ok=True)
    actions_df.write_csv(actions_file)
    users_df.write_csv(users_file)

    logger.info(
        "Wrote %s actions to %s and %s users to %s",
        f"{actions_df.height:,}",
        actions_file,
        f"{users_df.height:,}",
        users_file,
    )
    return actions_df.height, users_df.height
