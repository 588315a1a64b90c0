"""Built-in helper functions for minibars templates."""

import functools
import math
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from .context import RenderContext, to_display_string, to_number, unwrap_number

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)
WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_FALLBACK_DATE_FORMATS = ("%B %d, %Y", "%b %d, %Y", "%Y/%m/%d", "%m/%d/%Y")


def ignores_context(fn: Callable[..., Any]) -> Callable[..., Any]:
    """Drop the trailing render context before calling a built-in helper.

    Every helper is invoked with the context as its last positional
    argument. Built-ins do not use it, and it must not land in an optional
    parameter such as ``truncate``'s suffix.
    """

    @functools.wraps(fn)
    def wrapper(*args: Any) -> Any:
        if args and isinstance(args[-1], RenderContext):
            args = args[:-1]
        return fn(*args)

    return wrapper


def parse_date(value: Any) -> Optional[datetime]:
    """Parse a date-like value, returning None when it is not a valid date.

    Args:
        value: datetime, date, ISO-8601 string or epoch milliseconds

    Returns:
        Parsed datetime or None
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str):
        return None

    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _short_date(d: datetime) -> str:
    return f"{MONTH_NAMES[d.month - 1][:3]} {d.day}, {d.year}"


def _long_date(d: datetime) -> str:
    return f"{WEEKDAY_NAMES[d.weekday()]}, {MONTH_NAMES[d.month - 1]} {d.day}, {d.year}"


def _time_of_day(d: datetime) -> str:
    hour = d.hour % 12 or 12
    meridiem = "AM" if d.hour < 12 else "PM"
    return f"{d.month}/{d.day}/{d.year}, {hour}:{d.minute:02d} {meridiem}"


DATE_PRESETS = {
    "short": _short_date,
    "long": _long_date,
    "time": _time_of_day,
}


def format_date(value: Any, preset: Any = "long") -> Any:
    """Format a date using one of the named presets.

    Month and weekday names are always en-US, whatever the process locale.

    Args:
        value: Date-like value
        preset: 'short', 'long' or 'time'; anything else means 'long'

    Returns:
        Formatted string, '' for a falsy value, or the value unchanged when
        it does not parse as a date
    """
    if not value:
        return ""

    parsed = parse_date(value)
    if parsed is None:
        return value

    if not isinstance(preset, str) or preset not in DATE_PRESETS:
        preset = "long"
    return DATE_PRESETS[preset](parsed)


def truncate(text: Any, length: Any = 100, suffix: str = "...") -> Any:
    """Truncate text to a number of characters.

    Args:
        text: Text to truncate
        length: Number of characters kept before the suffix
        suffix: Suffix appended when text was cut

    Returns:
        Text unchanged when falsy or short enough, otherwise the cut text
    """
    if not text:
        return text
    if not isinstance(text, str):
        text = to_display_string(text)

    limit = to_number(length)
    if math.isnan(limit):
        limit = 100
    if len(text) <= limit:
        return text
    return text[: max(int(limit), 0)] + to_display_string(suffix)


def join(items: Any, separator: Any = ", ") -> str:
    """Join list items with a separator; non-lists give ''."""
    if not isinstance(items, (list, tuple)):
        return ""
    return to_display_string(separator).join(to_display_string(item) for item in items)


def upper(text: Any) -> str:
    return to_display_string(text).upper()


def lower(text: Any) -> str:
    return to_display_string(text).lower()


def capitalize(text: Any) -> str:
    """Capitalize the first character only."""
    text = to_display_string(text)
    if not text:
        return text
    return text[0].upper() + text[1:]


def default(value: Any, fallback: Any = "") -> Any:
    """Return fallback when value is None or an empty string."""
    if value is None or (isinstance(value, str) and value == ""):
        return fallback
    return value


def add(a: Any, b: Any) -> Any:
    return unwrap_number(to_number(a) + to_number(b))


def subtract(a: Any, b: Any) -> Any:
    return unwrap_number(to_number(a) - to_number(b))


def multiply(a: Any, b: Any) -> Any:
    return unwrap_number(to_number(a) * to_number(b))


def divide(a: Any, b: Any) -> Any:
    """Divide with float semantics: x/0 is +-Infinity and 0/0 is NaN."""
    x, y = to_number(a), to_number(b)
    try:
        return unwrap_number(x / y)
    except ZeroDivisionError:
        if x == 0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)


def _strict_equal(a: Any, b: Any) -> bool:
    # true is never equal to 1
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def eq(a: Any, b: Any) -> bool:
    return _strict_equal(a, b)


def ne(a: Any, b: Any) -> bool:
    return not _strict_equal(a, b)


def gt(a: Any, b: Any) -> bool:
    return to_number(a) > to_number(b)


def lt(a: Any, b: Any) -> bool:
    return to_number(a) < to_number(b)


def gte(a: Any, b: Any) -> bool:
    return to_number(a) >= to_number(b)


def lte(a: Any, b: Any) -> bool:
    return to_number(a) <= to_number(b)


DEFAULT_HELPERS = {
    "formatDate": format_date,
    "truncate": truncate,
    "join": join,
    "upper": upper,
    "lower": lower,
    "capitalize": capitalize,
    "default": default,
    "add": add,
    "subtract": subtract,
    "multiply": multiply,
    "divide": divide,
    "eq": eq,
    "ne": ne,
    "gt": gt,
    "lt": lt,
    "gte": gte,
    "lte": lte,
}


def register_default_helpers(engine: Any) -> None:
    """Register all built-in helpers with a template engine.

    Args:
        engine: TemplateEngine instance
    """
    for name, fn in DEFAULT_HELPERS.items():
        engine.register_helper(name, ignores_context(fn))
