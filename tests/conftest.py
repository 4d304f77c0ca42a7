from datetime import datetime

import pytest

from feedactivity.models import Activity, FeedReference

FIXED_NOW = datetime(2024, 3, 9, 14, 30, 5, 123450)


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def sample_activity():
    """Fully populated activity with an explicit timestamp."""
    return Activity(
        id="ef696c12-69ab-11e4-8080-80003644b625",
        actor="user:1",
        verb="tweet",
        object="tweet:42",
        target="board:7",
        origin="user:2",
        timestamp=datetime(2014, 11, 11, 8, 2, 51, 250000),
        foreign_id="tweet:42",
        data='{"text":"hello","likes":3}',
        metadata={"popularity": 100, "tags": ["a", "b"]},
        to=[
            FeedReference(slug="notification", user_id="1"),
            FeedReference(slug="timeline", user_id="3", token="tok123"),
        ],
    )
