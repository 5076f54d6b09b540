#!/usr/bin/env python3
"""
Inspect the workout database and export the calendar without the server.

Usage:
    ./workout_report.py list              # Every stored workout and its event title
    ./workout_report.py list --rejected   # Only workouts that don't become events
    ./workout_report.py export workouts.ics
"""

import sys
import argparse

from workout_calendar.calendar_event import ALLOWED_WORKOUT_NAMES, WorkoutEvent
from workout_calendar.config import Config, ConfigError, configure_logging
from workout_calendar.data_file import WorkoutStore, WorkoutStoreError
from workout_calendar.feed import WorkoutCalendar
from workout_calendar.workout_data import WorkoutRecord, decode_workout


def describe_rejection(workout):
    """Why a stored workout produces no calendar event, or None if it does."""
    decoded = decode_workout(workout)
    if not isinstance(decoded, WorkoutRecord):
        return str(decoded)
    if decoded.name not in ALLOWED_WORKOUT_NAMES:
        return f"workout name {decoded.name!r} is not on the calendar list"
    return None


def list_workouts(store, timezone, rejected_only=False):
    rows = store.rows()
    shown = 0
    print(f"\n📅 {len(rows)} stored workouts in {store.db_path}:\n")

    for start, workout in rows:
        reason = describe_rejection(workout)
        if reason is None:
            if rejected_only:
                continue
            event = WorkoutEvent.from_workout_data(workout, timezone)
            print(f"✓ {start} - {event.title} ({event.day.isoformat()})")
            for line in event.body.strip().splitlines():
                if line:
                    print(f"         {line}")
        else:
            print(f"✗ {start} - {reason}")
        shown += 1
        print()

    if rejected_only:
        print(f"{shown} of {len(rows)} workouts are not on the calendar")


def export_calendar(store, config, output_path):
    calendar = WorkoutCalendar(config.calendar_name, config.timezone)
    calendar.extend(store.load_events(config.tzinfo()))

    with open(output_path, 'wb') as f:
        f.write(calendar.to_ical())

    print(f"✓ Calendar exported: {output_path}")
    print(f"  - {len(calendar)} calendar events")
    print(f"  - {store.count()} stored workouts")


def main():
    parser = argparse.ArgumentParser(
        description='Inspect stored workouts',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s list
  %(prog)s list --rejected
  %(prog)s export workouts.ics
        """
    )
    parser.add_argument('--db', help='Workout database file (default: WORKOUTS_DB or workouts.db)')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    list_parser = subparsers.add_parser('list', help='List stored workouts')
    list_parser.add_argument('--rejected', action='store_true',
                             help='Only show workouts that do not become calendar events')

    export_parser = subparsers.add_parser('export', help='Write the calendar to an .ics file')
    export_parser.add_argument('output', nargs='?', default='workouts.ics',
                               help='Output path (default: workouts.ics)')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    try:
        # Secrets aren't needed to read the database
        config = Config.from_env(require_secrets=False)
    except ConfigError as e:
        print(f"✗ {e}")
        sys.exit(1)
    if args.db:
        config.db_path = args.db
    configure_logging('WARNING')

    try:
        store = WorkoutStore.open(config.db_path)
    except WorkoutStoreError as e:
        print(f"✗ {e}")
        sys.exit(1)

    with store:
        if args.command == 'list':
            list_workouts(store, config.tzinfo(), args.rejected)
        elif args.command == 'export':
            export_calendar(store, config, args.output)


if __name__ == '__main__':
    main()
