from __future__ import annotations

from datetime import date, datetime

from .exceptions import DateParseError

DEFAULT_DATE_PATTERN = "%Y.%m.%d"

# Any date works for numeric directives; month/day names render at this
# date's width, so patterns using %B or %A only match names of that width.
_WIDTH_SAMPLE = date(2000, 1, 1)


def date_token_width(date_pattern: str) -> int:
    """Number of trailing characters of an index name that hold the date."""
    return len(_WIDTH_SAMPLE.strftime(date_pattern))


def extract_date_token(index_name: str, date_pattern: str = DEFAULT_DATE_PATTERN) -> str:
    width = date_token_width(date_pattern)
    if width <= 0 or len(index_name) < width:
        raise DateParseError(index_name, date_pattern)
    return index_name[-width:]


def age_days(date_pattern: str, date_token: str, reference_date: date) -> int:
    """
    Days between the date encoded in date_token and reference_date.

    Positive when the token lies in the past. Raises DateParseError if the
    token does not conform to date_pattern.
    """
    try:
        parsed = datetime.strptime(date_token, date_pattern).date()
    except ValueError as e:
        raise DateParseError(date_token, date_pattern) from e
    return (reference_date - parsed).days
