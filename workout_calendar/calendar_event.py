"""
Turn a validated workout record into an all-day calendar event.

Only workout names on ALLOWED_WORKOUT_NAMES become events; anything else is
dropped with a log line, the same way a record that fails validation is.
"""

import hashlib
import logging
import math
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Context, Decimal

import pytz
from icalendar import Event

from .workout_data import WorkoutRecord, decode_workout

logger = logging.getLogger(__name__)


# Legacy names from earlier versions of Auto Export / iOS: (indoor, outdoor)
LEGACY_TITLES = {
    'Walking': ('Cardio - treadmill', 'Cardio - walk'),
    'Running': ('Cardio - treadmill', 'Cardio - run'),
}

TITLES = {
    'Indoor Walk': 'Cardio - treadmill',
    'Outdoor Walk': 'Cardio - walk',
    'Indoor Run': 'Cardio - treadmill',
    'Outdoor Run': 'Cardio - run',
    'Elliptical': 'Cardio - elliptical',
    'Hiking': 'Hiking',
}

ALLOWED_WORKOUT_NAMES = frozenset(LEGACY_TITLES) | frozenset(TITLES)


class WorkoutEvent:
    """Title, body and calendar day for one workout.

    Build with WorkoutEvent.from_workout_data(); instances are never
    modified after construction.
    """

    def __init__(self, start_key, title, body, day):
        self.start_key = start_key
        self.title = title
        self.body = body
        self.day = day

    @classmethod
    def from_workout_data(cls, data, timezone=None):
        """Return a WorkoutEvent for data, or None if it can't be one."""
        workout = decode_workout(data)
        if not isinstance(workout, WorkoutRecord):
            logger.warning("Schema validation failed, no calendar event: %s", workout)
            return None

        if workout.name not in ALLOWED_WORKOUT_NAMES:
            logger.info("Invalid name for calendar bound event: %r", workout.name)
            return None

        return cls(
            start_key=workout.start,
            title=workout_title(workout),
            body=workout_body(workout),
            day=event_day(workout, timezone),
        )

    def to_ical_event(self):
        """All-day icalendar VEVENT for this workout."""
        event = Event()
        event.add('summary', self.title)
        event.add('dtstart', self.day)
        event.add('dtend', self.day + timedelta(days=1))
        event['dtstart'].params['VALUE'] = 'DATE'
        event['dtend'].params['VALUE'] = 'DATE'
        event.add('description', self.body)
        event.add('transp', 'TRANSPARENT')
        event.add('dtstamp', datetime.now(pytz.utc))

        # Stable across restarts since the start key is the workout's identity
        uid = hashlib.sha1(self.start_key.encode('utf-8')).hexdigest()
        event.add('uid', f"{uid}@workouts-to-ical")
        return event

    def __repr__(self):
        return f"WorkoutEvent({self.title!r}, {self.day.isoformat()})"


def workout_title(workout):
    if workout.name in LEGACY_TITLES:
        indoor_title, outdoor_title = LEGACY_TITLES[workout.name]
        return indoor_title if workout.is_indoor else outdoor_title
    return TITLES[workout.name]


def workout_body(workout):
    """Multi-line description: duration, calories, distance/pace or cadence, HR."""
    lines = [
        format_duration(_elapsed_seconds(workout)),
        f"{format_fixed(workout.active_energy.qty)} calories",
    ]

    if workout.name == 'Elliptical':
        # Elliptical has no meaningful distance, show cadence instead
        lines.append('')
        lines.append(f"Cadence: {format_fixed(workout.step_cadence.qty)} spm")
    else:
        lines.append(f"{format_fixed(workout.distance.qty, 2)} miles")
        lines.append('')
        lines.append(f"Pace: {format_pace(workout.speed.qty)}")

    avg_hr = format_fixed(workout.avg_heart_rate.qty)
    max_hr = format_fixed(workout.max_heart_rate.qty)
    lines.append(f"HR: {avg_hr} - {max_hr} bpm")
    return '\n'.join(lines) + '\n'


# Wide enough to hold any finite float to two decimal places
_FIXED_CONTEXT = Context(prec=400)


def format_fixed(value, places=0):
    """value with places decimals, exact halves rounded away from zero."""
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(exponent, rounding=ROUND_HALF_UP, context=_FIXED_CONTEXT)
    return str(rounded)


def event_day(workout, timezone=None):
    """Calendar day of the workout's start.

    Timestamps carrying an offset are moved into timezone first; naive ones
    are taken as already local.
    """
    start = workout.start_time
    if start.tzinfo is not None and timezone is not None:
        start = start.astimezone(timezone)
    return start.date()


def format_duration(total_seconds):
    """mm:ss under an hour, HH:mm:ss otherwise. Fractional seconds are dropped."""
    total_seconds = max(0, int(total_seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours >= 1:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


def format_pace(speed_mph):
    """Minutes per mile for a speed in miles per hour."""
    if speed_mph <= 0:
        return '--:--'
    seconds_per_mile = (1 / speed_mph) * 60 * 60
    if not math.isfinite(seconds_per_mile):
        return '--:--'
    return format_duration(seconds_per_mile)


def _elapsed_seconds(workout):
    start, end = workout.start_time, workout.end_time
    if (start.tzinfo is None) != (end.tzinfo is None):
        start, end = start.replace(tzinfo=None), end.replace(tzinfo=None)
    return (end - start).total_seconds()
