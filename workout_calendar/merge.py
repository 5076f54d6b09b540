"""
Merge a posted batch of workouts into the store.

Each record is handled on its own worker: look up its start key, insert it
if it hasn't been seen, then hand it to on_new_workout. Records don't wait
on each other and one record failing doesn't stop the rest of the batch.

Two batches carrying the same new workout at the same moment can both pass
the existence check and both be stored; at worst that workout shows up
twice on the calendar.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .data_file import WorkoutStoreError

logger = logging.getLogger(__name__)

NEW = 'new'
SEEN = 'seen'
FAILED = 'failed'
SKIPPED = 'skipped'


@dataclass
class MergeResult:
    new: int = 0
    seen: int = 0
    failed: int = 0
    skipped: int = 0

    @property
    def total(self):
        return self.new + self.seen + self.failed + self.skipped

    def as_dict(self):
        return {
            'new': self.new,
            'seen': self.seen,
            'failed': self.failed,
            'skipped': self.skipped,
        }


def start_key(workout):
    """The start string a workout is deduplicated on, or None."""
    if isinstance(workout, dict) and isinstance(workout.get('start'), str):
        return workout['start']
    return None


def merge_workout(store, workout, on_new_workout):
    """Merge one record; returns NEW, SEEN, FAILED or SKIPPED."""
    key = start_key(workout)
    if key is None:
        logger.warning("Workout has no start timestamp, not stored: %r", workout)
        return SKIPPED

    try:
        if store.exists(key):
            return SEEN
        store.insert(workout)
    except WorkoutStoreError as e:
        # Not merged; a later batch with the same workout will retry it
        logger.error("Failed to merge workout starting %s: %s", key, e)
        return FAILED

    try:
        on_new_workout(workout)
    except Exception:
        logger.exception("New workout handler failed for workout starting %s", key)
    return NEW


def merge_workouts(store, workouts, on_new_workout, max_workers=4):
    """Merge workouts into store, calling on_new_workout for each new one.

    on_new_workout runs on worker threads and must be thread safe.
    """
    workouts = list(workouts)
    result = MergeResult()
    if not workouts:
        return result

    with ThreadPoolExecutor(max_workers=min(max_workers, len(workouts))) as executor:
        outcomes = list(executor.map(
            lambda workout: merge_workout(store, workout, on_new_workout),
            workouts,
        ))

    for outcome in outcomes:
        setattr(result, outcome, getattr(result, outcome) + 1)

    logger.info(
        "Merged %d workouts: %d new, %d seen, %d failed, %d skipped",
        result.total, result.new, result.seen, result.failed, result.skipped,
    )
    return result
