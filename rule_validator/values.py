"""
Value classification and coercion helpers shared by the rule predicates.

Field values arrive as whatever the caller decoded: strings from a form,
numbers and booleans from JSON, nested mappings and lists. The helpers here
give every predicate one consistent reading of those values:

- ``kind_of`` classifies a value into a closed set of ``ValueKind`` variants
- ``parse_int`` / ``parse_float`` accept numbers and numeric strings the way
  form input is usually written ("17", " 3.5 ", "1e3")
- ``get_size`` is the rule engine's single notion of magnitude
- ``parse_timestamp`` / ``parse_with_format`` read date strings
"""

import math
import re
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union


class ValueKind(Enum):
    """Closed set of shapes a field value can take."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    OTHER = "other"


CONTAINER_KINDS = frozenset({ValueKind.SEQUENCE, ValueKind.MAPPING})
SCALAR_KINDS = frozenset(
    {ValueKind.BOOL, ValueKind.INT, ValueKind.FLOAT, ValueKind.STRING}
)

_INT_PATTERN = re.compile(r"[+-]?(?:0|[1-9][0-9]*)")
_FLOAT_PATTERN = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

# Integers must fit a signed 64-bit word
INT_MIN = -2 ** 63
INT_MAX = 2 ** 63 - 1


def kind_of(value: Any) -> ValueKind:
    """Classify a value. ``bool`` is checked before ``int`` since it subclasses it."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    return ValueKind.OTHER


def parse_int(value: Any) -> Optional[int]:
    """
    Read value as an integer, or return None.

    Accepts ints, finite floats with no fractional part, and strings of decimal
    digits with an optional sign and surrounding whitespace. Leading zeros
    ("017") are not integers (they still read as floats). Anything outside the
    signed 64-bit range is not an integer either.
    """
    kind = kind_of(value)
    number = None
    if kind is ValueKind.INT:
        number = value
    elif kind is ValueKind.FLOAT:
        if math.isfinite(value) and value.is_integer():
            number = int(value)
    elif kind is ValueKind.STRING:
        text = value.strip()
        if _INT_PATTERN.fullmatch(text):
            number = int(text)
    if number is None or not INT_MIN <= number <= INT_MAX:
        return None
    return number


def parse_float(value: Any) -> Optional[float]:
    """Read value as a finite float, or return None. nan/inf are rejected."""
    kind = kind_of(value)
    number = None
    if kind is ValueKind.FLOAT:
        number = value
    elif kind is ValueKind.INT:
        try:
            number = float(value)
        except OverflowError:
            return None
    elif kind is ValueKind.STRING:
        text = value.strip()
        if _FLOAT_PATTERN.fullmatch(text):
            number = float(text)
    if number is None or not math.isfinite(number):
        return None
    return number


def parse_number(text: str) -> Optional[Union[int, float]]:
    """Read a rule parameter as a number, preferring int."""
    number = parse_int(text)
    if number is not None:
        return number
    return parse_float(text)


def get_size(value: Any) -> Union[int, float]:
    """
    Compute the size of a value.

    Priority: container element count, then integer value, then float value,
    then character length of the string form. Numeric strings are therefore
    sized by value: the size of "42" is 42, not 2.
    """
    kind = kind_of(value)
    if kind in CONTAINER_KINDS:
        return len(value)
    if kind is ValueKind.NULL:
        return 0
    if kind is ValueKind.BOOL:
        return int(value)
    number = parse_int(value)
    if number is not None:
        return number
    number = parse_float(value)
    if number is not None:
        return number
    return len(str(value))


# Date handling

_RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M:%S",
    "%d-%m-%Y",
    "%d.%m.%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d %Y",
    "%B %d, %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%a, %d %b %Y %H:%M:%S %z",
)

_TIME_FORMATS = ("%H:%M", "%H:%M:%S")

# PHP-style date format letters, as used in "Y-m-d H:i:s" patterns
_PHP_FORMAT_DIRECTIVES = {
    "d": "%d",
    "j": "%d",
    "D": "%a",
    "l": "%A",
    "m": "%m",
    "n": "%m",
    "M": "%b",
    "F": "%B",
    "Y": "%Y",
    "y": "%y",
    "H": "%H",
    "G": "%H",
    "h": "%I",
    "g": "%I",
    "i": "%M",
    "s": "%S",
    "A": "%p",
    "a": "%p",
    "u": "%f",
    "O": "%z",
    "P": "%z",
    "T": "%Z",
}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a date/time string, or return None.

    Understands ISO-8601 (with an optional trailing "Z"), a set of common
    day/month/year spellings, bare times (taken as today), and the keywords
    now, today, tomorrow and yesterday.
    """
    if kind_of(value) is not ValueKind.STRING:
        return None
    text = value.strip()
    if not text:
        return None

    keyword = text.lower()
    if keyword == "now":
        return datetime.now()
    if keyword in _RELATIVE_DAYS:
        midnight = datetime.now().replace(hour=0, minute=0, second=0, microsecond=0)
        return midnight + timedelta(days=_RELATIVE_DAYS[keyword])

    iso_text = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        return datetime.fromisoformat(iso_text)
    except ValueError:
        pass

    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    for fmt in _TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        return datetime.combine(datetime.now().date(), parsed.time())

    return None


def to_epoch(moment: datetime) -> float:
    """Seconds since the epoch; naive datetimes are read as local time."""
    if moment.tzinfo is None:
        return moment.timestamp()
    return moment.astimezone(timezone.utc).timestamp()


def translate_date_format(pattern: str) -> str:
    """
    Turn a date format pattern into a ``strptime`` format.

    Patterns that already contain ``%`` directives are returned unchanged.
    Otherwise PHP-style letters are translated ("Y-m-d" -> "%Y-%m-%d"); a
    backslash escapes the next character.
    """
    if "%" in pattern:
        return pattern

    parts = []
    escaped = False
    for char in pattern:
        if escaped:
            parts.append(char)
            escaped = False
        elif char == "\\":
            escaped = True
        else:
            parts.append(_PHP_FORMAT_DIRECTIVES.get(char, char))
    return "".join(parts)


def parse_with_format(value: Any, pattern: str) -> Optional[datetime]:
    """Parse value exactly against pattern, or return None."""
    if kind_of(value) is not ValueKind.STRING:
        return None
    try:
        return datetime.strptime(value, translate_date_format(pattern))
    except ValueError:
        return None
