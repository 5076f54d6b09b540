#!/usr/bin/env python3
"""
Run the workouts-to-ical server.

Usage:
    python3 workouts_to_ical.py [--port PORT] [--host HOST]

Settings are read from the environment / .env (see workout_calendar/config.py).
HEADER_SECRET_VALUE and QUERYSTRING_SECRET_VALUE are required.
"""

import sys
import argparse

from workout_calendar.config import Config, ConfigError, configure_logging
from workout_calendar.server import run_server


def main():
    parser = argparse.ArgumentParser(description='Serve Health Auto Export workouts as an iCal feed')
    parser.add_argument('--host', help='Host to bind (default: HOST or 127.0.0.1)')
    parser.add_argument('--port', type=int, help='Port to listen on (default: PORT or 8080)')
    parser.add_argument('--db', help='Workout database file (default: WORKOUTS_DB or workouts.db)')
    args = parser.parse_args()

    try:
        config = Config.from_env()
    except ConfigError as e:
        print(f"✗ {e}")
        sys.exit(1)

    if args.host:
        config.host = args.host
    if args.port:
        config.port = args.port
    if args.db:
        config.db_path = args.db

    configure_logging(config.log_level)
    run_server(config)


if __name__ == '__main__':
    main()
