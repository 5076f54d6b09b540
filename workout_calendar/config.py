"""
Configuration for the workouts-to-ical server.

Values come from environment variables; a .env file in the working
directory is loaded first when present.
"""

import os
import logging
from dataclasses import dataclass

import pytz
from dotenv import load_dotenv


class ConfigError(Exception):
    pass


@dataclass
class Config:
    db_path: str = 'workouts.db'
    calendar_name: str = 'Workouts'
    timezone: str = 'America/New_York'

    # Header checked before accepting POSTed workout data
    header_secret_key: str = 'x-workouts-secret'
    header_secret_value: str = ''

    # Querystring param checked before serving the calendar
    querystring_secret_key: str = 'key'
    querystring_secret_value: str = ''

    host: str = '127.0.0.1'
    port: int = 8080
    # Full URL of the reverse proxy mount point, including a non-standard port
    external_url: str = 'http://localhost:8080/'

    merge_workers: int = 4
    latest_body_path: str = 'latest-posted-body.json'
    max_content_length: int = 200 * 1024 * 1024
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env_file=None, require_secrets=True):
        """Build a Config from the environment (and .env, if any)."""
        load_dotenv(env_file)

        config = cls(
            db_path=os.environ.get('WORKOUTS_DB', cls.db_path),
            calendar_name=os.environ.get('CALENDAR_NAME', cls.calendar_name),
            timezone=os.environ.get('CALENDAR_TIMEZONE', cls.timezone),
            header_secret_key=os.environ.get('HEADER_SECRET_KEY', cls.header_secret_key).lower(),
            header_secret_value=os.environ.get('HEADER_SECRET_VALUE', ''),
            querystring_secret_key=os.environ.get('QUERYSTRING_SECRET_KEY', cls.querystring_secret_key),
            querystring_secret_value=os.environ.get('QUERYSTRING_SECRET_VALUE', ''),
            host=os.environ.get('HOST', cls.host),
            port=_int_env('PORT', cls.port),
            external_url=os.environ.get('EXTERNAL_URL', cls.external_url),
            merge_workers=_int_env('MERGE_WORKERS', cls.merge_workers),
            latest_body_path=os.environ.get('LATEST_BODY_PATH', cls.latest_body_path),
            log_level=os.environ.get('LOG_LEVEL', cls.log_level).upper(),
        )
        config.validate(require_secrets)
        return config

    def validate(self, require_secrets=True):
        if require_secrets and not self.header_secret_value:
            raise ConfigError("HEADER_SECRET_VALUE not set in environment")
        if require_secrets and not self.querystring_secret_value:
            raise ConfigError("QUERYSTRING_SECRET_VALUE not set in environment")
        if self.timezone not in pytz.all_timezones_set:
            raise ConfigError(f"Unknown CALENDAR_TIMEZONE: {self.timezone}")
        if self.merge_workers < 1:
            raise ConfigError("MERGE_WORKERS must be at least 1")

    def tzinfo(self):
        return pytz.timezone(self.timezone)

    def calendar_path(self):
        """Path + querystring under which the calendar is served."""
        return f"workoutCalendar?{self.querystring_secret_key}={self.querystring_secret_value}"


def _int_env(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {value!r}")


def configure_logging(level='INFO'):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
