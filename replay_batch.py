#!/usr/bin/env python3
"""
Re-post a saved batch of workouts to a running server.

Workouts that already made it into the database are skipped by the server,
so replaying a batch is safe; use it to pick up records that failed to
merge the first time.

Usage:
    python3 replay_batch.py [path/to/body.json] [--url http://host:port/]
    python3 replay_batch.py  # Replays latest-posted-body.json
"""

import sys
import json
import argparse
from urllib.parse import urljoin

import requests

from workout_calendar.config import Config, ConfigError
from workout_calendar.server import validate_body


def load_batch(path):
    """Read a posted body from disk; accepts a bare list of workouts too."""
    with open(path) as f:
        body = json.load(f)
    if isinstance(body, list):
        body = {'data': {'workouts': body}}
    return body


def replay_batch(path, base_url, header_key, header_value, timeout=60):
    try:
        body = load_batch(path)
    except (OSError, ValueError) as e:
        print(f"✗ Could not read {path}: {e}")
        return None

    if not validate_body(body):
        print(f"✗ {path} is not a workout batch (expected data.workouts list)")
        return None

    workouts = body["data"]["workouts"]
    url = urljoin(base_url, 'workoutData')
    print(f"Posting {len(workouts)} workouts to {url}...")

    try:
        resp = requests.post(url, json=body, headers={header_key: header_value}, timeout=timeout)
    except requests.RequestException as e:
        print(f"✗ Request failed: {e}")
        return None

    if resp.status_code != 200:
        print(f"✗ Server responded {resp.status_code}")
        if resp.text:
            print(f"  Response: {resp.text}")
        return None

    result = resp.json()
    print("✓ Batch merged")
    print(f"  - {result.get('new', 0)} new")
    print(f"  - {result.get('seen', 0)} already seen")
    print(f"  - {result.get('failed', 0)} failed")
    print(f"  - {result.get('skipped', 0)} skipped (no start timestamp)")
    return result


def main():
    try:
        config = Config.from_env()
    except ConfigError as e:
        print(f"✗ Error: {e}")
        sys.exit(1)

    parser = argparse.ArgumentParser(description='Re-post a saved workout batch')
    parser.add_argument('path', nargs='?', default=config.latest_body_path,
                        help=f'Saved request body (default: {config.latest_body_path})')
    parser.add_argument('--url', default=config.external_url,
                        help=f'Server base URL (default: {config.external_url})')
    args = parser.parse_args()

    result = replay_batch(args.path, args.url, config.header_secret_key, config.header_secret_value)
    if result is None:
        sys.exit(1)


if __name__ == '__main__':
    main()
