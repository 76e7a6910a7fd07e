"""
Human duration parsing.

Accepts strings such as "30m", "1h", "1h30m", "1.5h", "45s" or "500ms":
an optional sign followed by one or more <number><unit> pairs. A bare "0"
is also accepted.
"""

import logging
import re
from datetime import timedelta

logger = logging.getLogger(__name__)

# Unit -> seconds
UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_PART_RE = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


class DurationError(ValueError):
    """Raised when a duration string is malformed"""
    pass


def parse_duration(text: str) -> timedelta:
    """
    Parse a human duration string into a timedelta.

    Args:
        text: Duration such as "30m" or "1h30m"

    Returns:
        Parsed timedelta (may be zero or negative if the input says so)

    Raises:
        DurationError: If the string is empty, has no unit or an unknown unit
    """
    if not isinstance(text, str):
        raise DurationError(f"invalid duration {text!r}: not a string")

    raw = text.strip()
    if not raw:
        raise DurationError("invalid duration \"\": empty string")

    sign = 1
    body = raw
    if body[0] in "+-":
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body:
        raise DurationError(f"invalid duration {raw!r}")

    total_seconds = 0.0
    pos = 0
    while pos < len(body):
        match = _PART_RE.match(body, pos)
        if not match:
            if body[pos].isdigit() or body[pos] == ".":
                raise DurationError(f"missing or unknown unit in duration {raw!r}")
            raise DurationError(f"invalid duration {raw!r}")
        number, unit = match.groups()
        total_seconds += float(number) * UNITS[unit]
        pos = match.end()

    try:
        result = timedelta(seconds=sign * total_seconds)
    except (OverflowError, ValueError) as e:
        raise DurationError(f"invalid duration {raw!r}: out of range") from e
    logger.debug(f"Parsed duration {raw!r} -> {result}")
    return result


def format_duration(value: timedelta) -> str:
    """Render a timedelta back into the compact "1h30m0s" form"""
    total = int(value.total_seconds())
    sign = "-" if total < 0 else ""
    total = abs(total)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"
