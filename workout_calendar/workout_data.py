"""
Schema for a single workout record as exported by Health Auto Export.

decode_workout() is the only entry point the rest of the package needs: it
returns either a typed WorkoutRecord or an InvalidWorkout carrying the
field-level reasons the record was rejected. Malformed input never raises.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from dateutil import parser as date_parser
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    ValidationError,
    field_validator,
)


def parse_timestamp(value):
    """Parse an exported timestamp such as '2021-09-26 20:00:00 -0500'."""
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(f"not a parseable date-time: {value!r}") from e


class Quantity(BaseModel):
    model_config = ConfigDict(extra='allow', frozen=True)

    qty: float

    @field_validator('qty', mode='before')
    @classmethod
    def _check_number(cls, value):
        # JSON numbers only; no booleans, numeric strings, NaN or Infinity
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("must be a number")
        if isinstance(value, float) and not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value


class WorkoutRecord(BaseModel):
    """A workout record that passed schema validation.

    Field names follow Python conventions; the exporter's camelCase names
    are accepted as aliases. Unknown fields are kept so newer exports still
    validate.
    """

    model_config = ConfigDict(extra='allow', populate_by_name=True, frozen=True)

    name: StrictStr
    start: StrictStr
    end: StrictStr
    is_indoor: Optional[StrictBool] = Field(default=None, alias='isIndoor')

    active_energy: Quantity = Field(alias='activeEnergy')
    step_cadence: Quantity = Field(alias='stepCadence')
    distance: Quantity
    speed: Quantity
    avg_heart_rate: Quantity = Field(alias='avgHeartRate')
    max_heart_rate: Quantity = Field(alias='maxHeartRate')

    @field_validator('start', 'end')
    @classmethod
    def _check_timestamp(cls, value):
        parse_timestamp(value)
        return value

    @property
    def start_time(self):
        return parse_timestamp(self.start)

    @property
    def end_time(self):
        return parse_timestamp(self.end)


@dataclass(frozen=True)
class InvalidWorkout:
    """A record that failed validation, with one reason per failing field."""

    reasons: Tuple[str, ...]

    def __str__(self):
        return '; '.join(self.reasons)


def _format_error(error):
    location = '.'.join(str(part) for part in error['loc']) or 'record'
    return f"{location}: {error['msg']}"


def decode_workout(data) -> Union[WorkoutRecord, InvalidWorkout]:
    """Validate an arbitrary decoded-JSON value as a workout record."""
    try:
        return WorkoutRecord.model_validate(data)
    except ValidationError as e:
        return InvalidWorkout(reasons=tuple(_format_error(err) for err in e.errors()))


def is_workout_data(data) -> bool:
    return isinstance(decode_workout(data), WorkoutRecord)
