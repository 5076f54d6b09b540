import copy
import json
import os
import sqlite3

import pytest

from workout_calendar.config import Config
from workout_calendar.data_file import WorkoutStore

TEST_DATA_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'test_data')

SAMPLE_WORKOUT = {
    "name": "Walking",
    "start": "2021-09-26 20:00:00 -0500",
    "end": "2021-09-26 20:15:00 -0500",
    "activeEnergy": {"qty": 100},
    "stepCadence": {"qty": 30},
    "distance": {"qty": 1},
    "speed": {"qty": 4},
    "avgHeartRate": {"qty": 120},
    "maxHeartRate": {"qty": 140},
}


def load_test_data(filename):
    with open(os.path.join(TEST_DATA_DIR, filename)) as f:
        return json.load(f)


def stored_values(db_path):
    """Raw value column of every row, read over a separate connection."""
    conn = sqlite3.connect(db_path)
    try:
        return [value for (value,) in conn.execute("SELECT value FROM workouts ORDER BY rowid")]
    finally:
        conn.close()


@pytest.fixture
def workout():
    """A fresh copy of a valid workout record."""
    return copy.deepcopy(SAMPLE_WORKOUT)


@pytest.fixture
def store(tmp_path):
    store = WorkoutStore.open(str(tmp_path / 'workouts.db'))
    yield store
    store.close()


@pytest.fixture
def config(tmp_path):
    return Config(
        db_path=str(tmp_path / 'workouts.db'),
        calendar_name='test ical',
        header_secret_key='x-test-secret',
        header_secret_value='header-secret',
        querystring_secret_key='key',
        querystring_secret_value='query-secret',
        latest_body_path=str(tmp_path / 'latest-posted-body.json'),
        merge_workers=2,
    )
