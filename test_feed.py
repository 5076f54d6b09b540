# test_feed.py
# The live calendar shared by ingestion and feed requests.

import threading

from icalendar import Calendar

from workout_calendar.calendar_event import WorkoutEvent
from workout_calendar.feed import WorkoutCalendar


def make_events(workout, count):
    events = []
    for day in range(1, count + 1):
        record = dict(workout, start=f"2021-10-{day:02d} 20:00:00 -0500")
        events.append(WorkoutEvent.from_workout_data(record))
    return events


def test_empty_calendar():
    calendar = WorkoutCalendar('Workouts')
    parsed = Calendar.from_ical(calendar.to_ical())
    assert str(parsed['x-wr-calname']) == 'Workouts'
    assert parsed.walk('VEVENT') == []


def test_events_are_rendered(workout):
    calendar = WorkoutCalendar('Workouts')
    calendar.extend(make_events(workout, 3))

    parsed = Calendar.from_ical(calendar.to_ical())
    summaries = [str(e['summary']) for e in parsed.walk('VEVENT')]
    assert summaries == ['Cardio - walk'] * 3


def test_snapshot_is_a_copy(workout):
    calendar = WorkoutCalendar()
    [event] = make_events(workout, 1)
    snapshot = calendar.events()
    calendar.add(event)
    assert snapshot == []
    assert len(calendar) == 1


def test_concurrent_adds(workout):
    calendar = WorkoutCalendar()
    events = make_events(workout, 20)

    threads = [threading.Thread(target=calendar.add, args=(event,)) for event in events]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calendar) == 20
    assert set(calendar.events()) == set(events)
