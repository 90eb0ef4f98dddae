"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# Book date patterns and their strftime equivalents
DATE_PATTERNS = {
    "yyyy-MM-dd": "%Y-%m-%d",
    "dd/MM/yyyy": "%d/%m/%Y",
    "MM/dd/yyyy": "%m/%d/%Y",
}


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "tomorrow", "last month", "this year"

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def format_book_date(value: date, date_pattern: str) -> str:
    """Format a date with a book's date pattern (e.g. 'dd/MM/yyyy').

    Raises:
        ValueError: If the pattern is not supported
    """
    return value.strftime(_strftime_format(date_pattern))


def parse_book_date(date_str: str, date_pattern: str) -> date:
    """Parse a date written with a book's date pattern.

    Falls back to ``parse_date`` for input not written in the pattern.

    Raises:
        ValueError: If date string cannot be parsed
    """
    fmt = _strftime_format(date_pattern)
    text = date_str.strip()
    if not _matches(text, fmt):
        return parse_date(text)
    try:
        return datetime.strptime(text, fmt).date()
    except ValueError as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def months_before(value: date, months: int) -> date:
    """Return the date ``months`` calendar months before ``value``."""
    return value - relativedelta(months=months)


def _strftime_format(date_pattern: str) -> str:
    try:
        return DATE_PATTERNS[date_pattern]
    except KeyError:
        supported = ", ".join(DATE_PATTERNS)
        raise ValueError(f"Unknown date pattern: '{date_pattern}'. Supported patterns: {supported}")


def _matches(text: str, fmt: str) -> bool:
    separator = "/" if "/" in fmt else "-"
    parts = text.split(separator)
    return len(parts) == 3 and all(part.isdigit() for part in parts)
