"""
Scalar conversions for configuration values.

Values come out of the reader as plain strings; these helpers turn them
into numbers, booleans and time periods, falling back to a default when
the text does not parse.
"""

import re

from ..const import ONE_DAY, ONE_HOUR, ONE_MINUTE, ONE_MONTH, ONE_WEEK, ONE_YEAR
from ..logging import get_logger


logger = get_logger("config.values")

# Time period multipliers in seconds (units are case-sensitive: m is minutes, M months)
TIME_UNITS = {
    "s": 1,
    "m": ONE_MINUTE,
    "h": ONE_HOUR,
    "d": ONE_DAY,
    "w": ONE_WEEK,
    "M": ONE_MONTH,
    "y": ONE_YEAR,
}

TRUE_WORDS = {"true", "on", "yes"}
FALSE_WORDS = {"false", "off", "no"}

LONG_MIN, LONG_MAX = -(2 ** 63), 2 ** 63 - 1
INT_MIN, INT_MAX = -(2 ** 31), 2 ** 31 - 1

_PERIOD_RE = re.compile(r"\s*(\d+)(.)", re.DOTALL)


def parse_time_period(value: str | None, default: int) -> int:
    """
    Parse a time period such as "1h 30m" into seconds.

    Examples:
        "30s"      -> 30
        "30s 5m"   -> 330
        "2w1d"     -> 1296000

    Unknown units are ignored with a warning. Returns `default` when the
    total is zero or nothing could be parsed.
    """
    if value is None:
        return default

    total = 0
    pos = 0
    while pos < len(value):
        match = _PERIOD_RE.match(value, pos)
        if not match:
            break

        period = int(match.group(1))
        unit = match.group(2)
        if unit in TIME_UNITS:
            total += period * TIME_UNITS[unit]
        else:
            logger.warning(f"Ignoring unknown multiplier: {unit}")

        pos = match.end()

    return total if total else default


def parse_long(value: str | None, default: int) -> int:
    """
    Parse an integer literal (decimal, 0x, 0o, 0b) within signed 64-bit range.

    Returns `default` for empty input, trailing garbage or overflow.
    """
    if value is None or value != value.strip():
        return default

    try:
        parsed = int(value, 0)
    except ValueError:
        return default

    if not LONG_MIN <= parsed <= LONG_MAX:
        return default

    return parsed


def parse_int(value: str | None, default: int) -> int:
    """Like parse_long(), limited to signed 32-bit range."""
    parsed = parse_long(value, default)
    if not INT_MIN <= parsed <= INT_MAX:
        return default
    return parsed


def parse_bool(value: str | None, default: bool) -> bool:
    """
    Parse a boolean.

    Accepts true/on/yes and false/off/no (case-sensitive); anything else
    is read as an integer, non-zero meaning True.
    """
    if value is None:
        return default

    if value in TRUE_WORDS:
        return True
    if value in FALSE_WORDS:
        return False

    return bool(parse_int(value, int(default)))
