from .time import utc_now, parse_iso, since, time_of_day, day_of_week
from .text import to_bool, unique_preserve

__all__ = [
    "utc_now", "parse_iso", "since", "time_of_day", "day_of_week",
    "to_bool", "unique_preserve",
]
