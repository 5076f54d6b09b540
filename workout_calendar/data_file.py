"""
SQLite storage for raw workout records.

Each row holds one record exactly as it was posted, serialised as JSON.
The start timestamp is pulled out into a generated, indexed column and is
the record's identity: a workout whose start string is already stored has
been seen before.
"""

import json
import logging
import os
import sqlite3
import threading

from .calendar_event import WorkoutEvent

logger = logging.getLogger(__name__)


SCHEMA = """
    CREATE TABLE IF NOT EXISTS workouts (
        value TEXT,
        start TEXT AS (json_extract(value, '$.start'))
    );

    CREATE INDEX IF NOT EXISTS workouts_start ON workouts(start);
"""


class WorkoutStoreError(Exception):
    pass


class WorkoutStore:
    """Persistent set of seen workouts.

    One connection is shared between request threads; a lock serialises
    every statement on it. exists() followed by insert() is not atomic.
    """

    def __init__(self, conn, db_path):
        self.db_path = db_path
        self._conn = conn
        self._lock = threading.Lock()

    @classmethod
    def open(cls, db_path='workouts.db'):
        """Open (creating if needed) the store at db_path."""
        db_dir = os.path.dirname(db_path)
        try:
            if db_dir and not os.path.exists(db_dir):
                os.makedirs(db_dir)
            conn = sqlite3.connect(db_path, check_same_thread=False)
        except (OSError, sqlite3.Error) as e:
            raise WorkoutStoreError(f"Could not open workout store {db_path}: {e}") from e

        try:
            conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            conn.close()
            raise WorkoutStoreError(f"Could not initialise workout store {db_path}: {e}") from e

        logger.info("Opened workout store %s", db_path)
        return cls(conn, db_path)

    def close(self):
        """Close the connection; the store is unusable afterwards."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _execute(self, sql, params=()):
        if self._conn is None:
            raise WorkoutStoreError("Workout store is closed")
        try:
            return self._conn.execute(sql, params)
        except sqlite3.Error as e:
            raise WorkoutStoreError(str(e)) from e

    def exists(self, start_key):
        """True if a workout with exactly this start string is stored."""
        with self._lock:
            row = self._execute(
                "SELECT COUNT(*) FROM workouts WHERE start = ?", (start_key,)
            ).fetchone()
        return row[0] > 0

    def insert(self, workout):
        """Store workout verbatim. The caller checks exists() first."""
        value = json.dumps(workout)
        with self._lock:
            self._execute("INSERT INTO workouts (value) VALUES (?)", (value,))
            try:
                self._conn.commit()
            except sqlite3.Error as e:
                raise WorkoutStoreError(str(e)) from e

    def count(self):
        with self._lock:
            return self._execute("SELECT COUNT(*) FROM workouts").fetchone()[0]

    def rows(self):
        """List of (start, record) for every stored workout, oldest first."""
        with self._lock:
            fetched = self._execute(
                "SELECT start, value FROM workouts ORDER BY rowid"
            ).fetchall()
        return [(start, json.loads(value)) for start, value in fetched]

    def load_events(self, timezone=None):
        """Build calendar events for every stored workout that can have one."""
        events = []
        for start, workout in self.rows():
            try:
                event = WorkoutEvent.from_workout_data(workout, timezone)
            except Exception:
                logger.exception("Skipping stored workout %r, could not build its event", start)
                continue
            if event is not None:
                events.append(event)
        return events
