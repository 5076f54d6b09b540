"""
The live workout calendar served to subscribers.
"""

import threading

from icalendar import Calendar


class WorkoutCalendar:
    """Append-only, thread safe collection of WorkoutEvents.

    Shared by the ingestion and feed handlers. Readers work on a snapshot
    so rendering never holds the lock while building the iCalendar.
    """

    def __init__(self, name='Workouts', timezone='America/New_York'):
        self.name = name
        self.timezone = timezone
        self._events = []
        self._lock = threading.Lock()

    def add(self, event):
        with self._lock:
            self._events.append(event)

    def extend(self, events):
        with self._lock:
            self._events.extend(events)

    def events(self):
        with self._lock:
            return list(self._events)

    def __len__(self):
        with self._lock:
            return len(self._events)

    def to_calendar(self):
        """icalendar Calendar holding every event added so far."""
        cal = Calendar()
        cal.add('prodid', '-//Workouts to iCal//Health Auto Export//EN')
        cal.add('version', '2.0')
        cal.add('x-wr-calname', self.name)
        cal.add('x-wr-timezone', self.timezone)
        cal.add('x-wr-caldesc', 'Workouts exported from Apple Health')

        for event in self.events():
            cal.add_component(event.to_ical_event())
        return cal

    def to_ical(self):
        return self.to_calendar().to_ical()
