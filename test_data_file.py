# test_data_file.py
# SQLite workout store: open, exists/insert, reload.

import json
import os

import pytest

from conftest import load_test_data, stored_values
from workout_calendar.calendar_event import WorkoutEvent
from workout_calendar.data_file import WorkoutStore, WorkoutStoreError


def test_open_creates_database(tmp_path):
    db_path = tmp_path / 'nested' / 'workouts.db'
    store = WorkoutStore.open(str(db_path))
    try:
        assert os.path.exists(db_path)
        assert store.count() == 0
        assert store.load_events() == []
    finally:
        store.close()


def test_open_fails_on_a_directory(tmp_path):
    with pytest.raises(WorkoutStoreError):
        WorkoutStore.open(str(tmp_path))


def test_open_fails_on_a_corrupt_file(tmp_path):
    db_path = tmp_path / 'corrupt.db'
    db_path.write_bytes(b'this is not a sqlite database' * 100)
    with pytest.raises(WorkoutStoreError):
        WorkoutStore.open(str(db_path))


def test_insert_then_exists(store, workout):
    assert not store.exists(workout['start'])
    store.insert(workout)
    assert store.exists(workout['start'])
    assert store.count() == 1


def test_exists_uses_exact_string(store, workout):
    store.insert(workout)
    # Same instant, different text
    assert not store.exists('2021-09-26T20:00:00-05:00')
    assert not store.exists('2021-09-26 20:00:00 -0500 ')


def test_rows_keep_record_verbatim(store, workout):
    workout['someNewField'] = {'nested': [1, 2, 3]}
    store.insert(workout)
    [(start, stored)] = store.rows()
    assert start == workout['start']
    assert stored == workout


def test_invalid_records_are_stored_but_make_no_event(store, workout):
    workout['name'] = 'Flying'
    store.insert(workout)
    del workout['speed']
    workout['start'] = '2021-09-27 20:00:00 -0500'
    store.insert(workout)

    assert store.count() == 2
    assert store.load_events() == []


def test_reload_round_trip(tmp_path, workout):
    db_path = str(tmp_path / 'workouts.db')
    names = ['Walking', 'Outdoor Run', 'Elliptical', 'Hiking']

    store = WorkoutStore.open(db_path)
    expected = []
    for day, name in enumerate(names, start=1):
        record = dict(workout, name=name, start=f"2021-10-0{day} 20:00:00 -0500",
                      end=f"2021-10-0{day} 20:45:00 -0500")
        store.insert(record)
        expected.append(record)
    store.close()

    reopened = WorkoutStore.open(db_path)
    try:
        events = reopened.load_events()
        assert len(events) == len(names)
        assert [e.title for e in events] == ['Cardio - walk', 'Cardio - run', 'Cardio - elliptical', 'Hiking']
        assert [e.start_key for e in events] == [r['start'] for r in expected]
        assert all(e.body.startswith('45:00\n') for e in events)
    finally:
        reopened.close()


def test_test_data_batch(store):
    for record in load_test_data('workoutA-workoutB.json')['data']['workouts']:
        store.insert(record)
    events = store.load_events()
    assert [e.title for e in events] == ['Cardio - walk', 'Cardio - elliptical']
    assert events[1].body.startswith('01:05:30\n')


def test_closed_store_is_unusable(tmp_path, workout):
    store = WorkoutStore.open(str(tmp_path / 'workouts.db'))
    store.close()
    with pytest.raises(WorkoutStoreError):
        store.exists(workout['start'])
    with pytest.raises(WorkoutStoreError):
        store.insert(workout)
    # Closing twice is harmless
    store.close()


def test_context_manager_closes(tmp_path, workout):
    with WorkoutStore.open(str(tmp_path / 'workouts.db')) as store:
        store.insert(workout)
    with pytest.raises(WorkoutStoreError):
        store.count()


def test_value_column_is_json(store, workout):
    store.insert(workout)
    [value] = stored_values(store.db_path)
    assert json.loads(value) == workout


def test_tiny_speed_does_not_stop_reload(tmp_path, workout):
    db_path = str(tmp_path / 'workouts.db')
    workout['speed'] = {'qty': 1e-320}
    with WorkoutStore.open(db_path) as store:
        store.insert(workout)

    with WorkoutStore.open(db_path) as reopened:
        [event] = reopened.load_events()
    assert 'Pace: --:--' in event.body


def test_reload_skips_row_that_fails_to_convert(store, workout, monkeypatch):
    store.insert(workout)
    store.insert(dict(workout, start='2021-09-27 20:00:00 -0500', end='2021-09-27 20:15:00 -0500'))

    build_event = WorkoutEvent.from_workout_data

    def fail_on_first_day(data, timezone=None):
        if data['start'].startswith('2021-09-26'):
            raise OverflowError("cannot convert float infinity to integer")
        return build_event(data, timezone)

    monkeypatch.setattr(WorkoutEvent, 'from_workout_data', fail_on_first_day)

    [event] = store.load_events()
    assert event.start_key == '2021-09-27 20:00:00 -0500'
