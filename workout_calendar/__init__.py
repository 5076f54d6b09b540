"""
Workouts to iCal.

This package provides:
- Validation of workout records posted by the Health Auto Export iOS app
- SQLite storage of every posted workout, deduplicated on start timestamp
- Conversion of new workouts into all-day calendar events
- HTTP server for posting workouts and subscribing to the calendar

Usage:
    # Start the server
    python3 workouts_to_ical.py

    # Re-post the last received batch
    python3 replay_batch.py latest-posted-body.json

    # Inspect stored workouts
    python3 workout_report.py list
"""

from .calendar_event import WorkoutEvent, ALLOWED_WORKOUT_NAMES
from .data_file import WorkoutStore, WorkoutStoreError
from .feed import WorkoutCalendar
from .merge import MergeResult, merge_workouts
from .workout_data import InvalidWorkout, WorkoutRecord, decode_workout, is_workout_data

__all__ = [
    'ALLOWED_WORKOUT_NAMES',
    'InvalidWorkout',
    'MergeResult',
    'WorkoutCalendar',
    'WorkoutEvent',
    'WorkoutRecord',
    'WorkoutStore',
    'WorkoutStoreError',
    'decode_workout',
    'is_workout_data',
    'merge_workouts',
]
__version__ = '1.0.0'
