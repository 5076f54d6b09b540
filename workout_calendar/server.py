"""
HTTP server: Health Auto Export POSTs workouts in, calendar apps GET the feed.

Routes:
    POST /workoutData       - batch of workouts, gated by a secret header
    GET  /workoutCalendar   - iCalendar feed, gated by a secret querystring param
"""

import hmac
import json
import logging
import sys
from urllib.parse import urljoin

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from .calendar_event import WorkoutEvent
from .data_file import WorkoutStore, WorkoutStoreError
from .feed import WorkoutCalendar
from .merge import merge_workouts

logger = logging.getLogger(__name__)


def _secret_matches(given, expected):
    if given is None or not expected:
        return False
    return hmac.compare_digest(given.encode('utf-8'), expected.encode('utf-8'))


def validate_headers(headers, config):
    """Check the secret header sent with posted workout data."""
    return _secret_matches(headers.get(config.header_secret_key), config.header_secret_value)


def validate_query(args, config):
    """Check the secret querystring param sent with calendar requests."""
    return _secret_matches(args.get(config.querystring_secret_key), config.querystring_secret_value)


def validate_body(body):
    """True if body looks like {"data": {"workouts": [...]}}.

    Individual workouts aren't checked here: every posted workout is stored,
    valid or not, so a record rejected today can still become an event once
    the schema or the allowed names change.
    """
    if not isinstance(body, dict):
        return False
    data = body.get('data')
    if not isinstance(data, dict):
        return False
    return isinstance(data.get('workouts'), list)


def save_latest_body(body, path):
    """Keep a copy of the last posted body for debugging."""
    if not path:
        return
    try:
        with open(path, 'w') as f:
            json.dump(body, f, indent=4)
    except OSError as e:
        logger.warning("Could not write %s: %s", path, e)


def create_app(store, calendar, config):
    app = Flask(__name__)
    app.config['MAX_CONTENT_LENGTH'] = config.max_content_length
    timezone = config.tzinfo()

    def on_new_workout(workout):
        logger.info("Got a new workout starting %s", workout.get('start'))
        event = WorkoutEvent.from_workout_data(workout, timezone)
        if event is None:
            logger.warning("Could not create a calendar event, will not push to calendar: %s",
                           json.dumps(workout))
            return
        logger.info("Created calendar event %s:\n%s", event.title, event.body)
        calendar.add(event)

    @app.route('/workoutData', methods=['POST'])
    def post_workout_data():
        logger.info("%s - POST /workoutData", request.remote_addr)
        if not validate_headers(request.headers, config):
            logger.info("Posted headers not valid")
            return '', 403

        body = request.get_json(silent=True)
        save_latest_body(body, config.latest_body_path)

        if not validate_body(body):
            logger.info("Posted data not valid: %s", json.dumps(body)[:1000])
            return '', 400

        workouts = body['data']['workouts']
        logger.info("Got %d workouts in POST", len(workouts))
        result = merge_workouts(store, workouts, on_new_workout, max_workers=config.merge_workers)
        return jsonify(result.as_dict()), 200

    @app.route('/workoutCalendar', methods=['GET'])
    def get_workout_calendar():
        logger.info("%s - GET /workoutCalendar, %s", request.remote_addr, request.user_agent)
        if not validate_query(request.args, config):
            logger.info("Querystring not valid")
            return '', 403

        response = Response(calendar.to_ical(), mimetype='text/calendar')
        response.headers['Content-Type'] = 'text/calendar; charset=utf-8'
        response.headers['Content-Disposition'] = 'inline; filename="workouts.ics"'
        response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
        response.headers['Pragma'] = 'no-cache'
        response.headers['Expires'] = '0'
        return response

    @app.errorhandler(Exception)
    def log_unhandled(error):
        if isinstance(error, HTTPException):
            return error
        logger.error("Unhandled error: %s", error, exc_info=error)
        logger.error("Request body follows (%s bytes):\n%s",
                     request.content_length, request.get_data(as_text=True)[:10000])
        return '', 500

    return app


def run_server(config):
    """Open the store, rebuild the calendar from it and serve until stopped."""
    logger.info("Opening DB %s ...", config.db_path)
    try:
        store = WorkoutStore.open(config.db_path)
    except WorkoutStoreError as e:
        print(f"✗ {e}")
        sys.exit(1)

    calendar = WorkoutCalendar(config.calendar_name, config.timezone)
    logger.info("Creating calendar events...")
    calendar.extend(store.load_events(config.tzinfo()))
    logger.info("Created %d calendar events from %d stored workouts", len(calendar), store.count())

    app = create_app(store, calendar, config)
    calendar_path = config.calendar_path()
    logger.info("Internal calendar at http://%s:%s/%s", config.host, config.port, calendar_path)
    logger.info("External calendar at %s", urljoin(config.external_url, calendar_path))

    try:
        app.run(host=config.host, port=config.port, threaded=True)
    finally:
        store.close()
