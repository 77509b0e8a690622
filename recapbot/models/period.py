"""
Period value type: an inclusive range of instants in a named timezone.
"""

import calendar
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Union

import pytz

from ..exceptions import InvalidInputError

DATE_FORMAT = "%Y/%m/%d"
DEFAULT_SEPARATOR = "〜"
DEFAULT_TIMEZONE = "UTC"
MIN_YEAR = 1
MAX_YEAR = 9999

DateLike = Union[date, datetime]


def get_timezone(name: str):
    """Resolve an IANA timezone name with pytz."""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as e:
        raise InvalidInputError(f"Unknown timezone: {name}", field_name="timezone", cause=e)


def to_local_date(value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> date:
    """Calendar date of `value` as seen in `timezone`.

    Aware datetimes are converted first; naive datetimes and dates are taken
    as already local.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(get_timezone(timezone)).date()
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidInputError(
        f"Expected a date or datetime, got {type(value).__name__}",
        field_name="date",
    )


def validate_year(year: int) -> int:
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidInputError(f"Year must be an integer, got {year!r}", field_name="year")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidInputError(f"Year out of range: {year}", field_name="year")
    return year


def validate_month(month: int) -> int:
    if isinstance(month, bool) or not isinstance(month, int) or not 1 <= month <= 12:
        raise InvalidInputError("Month must be between 1 and 12", field_name="month")
    return month


def start_of_day(day: date, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    return get_timezone(timezone).localize(datetime.combine(day, time.min))


def end_of_day(day: date, timezone: str = DEFAULT_TIMEZONE) -> datetime:
    return get_timezone(timezone).localize(datetime.combine(day, time.max))


@dataclass(frozen=True)
class Period:
    """Closed range [start, end] of timezone-aware instants.

    Two periods are equal when their start and end instants are equal; the
    timezone name only controls how naive inputs and rendered dates are read.
    """
    start: datetime
    end: datetime
    timezone: str = field(default=DEFAULT_TIMEZONE, compare=False)

    def __post_init__(self):
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidInputError("Period bounds must be datetimes", field_name="period")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise InvalidInputError("Period bounds must be timezone-aware", field_name="period")
        if self.start > self.end:
            raise InvalidInputError(
                "Period start must not be after its end", field_name="period"
            )

    @classmethod
    def create(cls, start: datetime, end: datetime,
               timezone: str = DEFAULT_TIMEZONE) -> "Period":
        return cls(start=start, end=end, timezone=timezone)

    @classmethod
    def for_days(cls, first: date, last: date,
                 timezone: str = DEFAULT_TIMEZONE) -> "Period":
        """Period from 00:00 of `first` to the last instant of `last`."""
        return cls(
            start=start_of_day(first, timezone),
            end=end_of_day(last, timezone),
            timezone=timezone,
        )

    @classmethod
    def for_week(cls, value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> "Period":
        """Monday 00:00 to Sunday end-of-day of the week containing `value`."""
        day = to_local_date(value, timezone)
        monday = day - timedelta(days=day.weekday())
        return cls.for_days(monday, monday + timedelta(days=6), timezone)

    @classmethod
    def for_month(cls, value: DateLike, timezone: str = DEFAULT_TIMEZONE) -> "Period":
        day = to_local_date(value, timezone)
        last = calendar.monthrange(day.year, day.month)[1]
        return cls.for_days(day.replace(day=1), day.replace(day=last), timezone)

    @classmethod
    def for_year(cls, year: int, timezone: str = DEFAULT_TIMEZONE) -> "Period":
        validate_year(year)
        return cls.for_days(date(year, 1, 1), date(year, 12, 31), timezone)

    @property
    def first_day(self) -> date:
        return to_local_date(self.start, self.timezone)

    @property
    def last_day(self) -> date:
        return to_local_date(self.end, self.timezone)

    @property
    def days(self) -> int:
        """Number of calendar days covered, both ends included."""
        return (self.last_day - self.first_day).days + 1

    def contains(self, instant: DateLike) -> bool:
        """Whether `instant` falls inside the period (bounds included).

        A plain date is contained when any part of that day is.
        """
        if not isinstance(instant, datetime):
            day = to_local_date(instant, self.timezone)
            return self.first_day <= day <= self.last_day
        if instant.tzinfo is None:
            instant = get_timezone(self.timezone).localize(instant)
        return self.start <= instant <= self.end

    def overlaps(self, other: "Period") -> bool:
        return not (self.start > other.end or self.end < other.start)

    def render(self, separator: str = DEFAULT_SEPARATOR) -> str:
        """Canonical `YYYY/MM/DD <sep> YYYY/MM/DD` form, parsed back by the codec."""
        return (
            f"{self.first_day.strftime(DATE_FORMAT)} {separator} "
            f"{self.last_day.strftime(DATE_FORMAT)}"
        )

    def to_dict(self):
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "timezone": self.timezone,
        }

    def __str__(self) -> str:
        return self.render()
