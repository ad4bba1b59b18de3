"""
The fixed rule set.

Every rule is a predicate ``(value, parameters, data) -> bool`` where ``value``
is the resolved field value, ``parameters`` the raw string parameters from the
rule expression and ``data`` the whole input mapping (only ``Confirm`` looks at
it). Rules are addressed by ``RuleKind``, whose values are the canonical rule
names used in rule expressions and message templates.

The set is closed: there is no registration hook.
"""

import ipaddress
import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Sequence
from urllib.parse import urlparse

from email_validator import EmailNotValidError, validate_email

from .values import (
    CONTAINER_KINDS,
    SCALAR_KINDS,
    ValueKind,
    get_size,
    kind_of,
    parse_float,
    parse_int,
    parse_number,
    parse_timestamp,
    parse_with_format,
    to_epoch,
)


class RuleKind(Enum):
    """Every rule the validator understands, keyed by canonical name."""

    REQUIRED = "Required"
    ACCEPT = "Accept"
    NUMERIC = "Numeric"
    INTEGER = "Integer"
    FLOAT = "Float"
    BOOLEAN = "Boolean"
    STRING = "String"
    ARRAY = "Array"
    URL = "Url"
    EMAIL = "Email"
    IP = "Ip"
    DATE = "Date"
    DATE_FORMAT = "DateFormat"
    DATE_BEFORE = "DateBefore"
    DATE_AFTER = "DateAfter"
    JSON = "Json"
    NULLABLE = "Nullable"
    CONFIRM = "Confirm"
    SIZE = "Size"
    MIN = "Min"
    MAX = "Max"
    RANGE = "Range"
    REGEX = "Regex"
    IN = "In"

    @classmethod
    def lookup(cls, name: str) -> Optional["RuleKind"]:
        """Return the kind for a rule name, matched without regard to case, or None."""
        return _KINDS_BY_KEY.get(name.lower())


_KINDS_BY_KEY = {kind.value.lower(): kind for kind in RuleKind}


# Rules checked even when their field is absent from the data
FORCE_RULES = frozenset({RuleKind.REQUIRED})

Predicate = Callable[[Any, Sequence[str], Mapping[str, Any]], bool]
ParameterCheck = Callable[[Sequence[str]], Optional[str]]


@dataclass(frozen=True)
class RuleDefinition:
    """A rule's predicate plus what it needs from its parameters."""

    kind: RuleKind
    predicate: Predicate
    description: str
    min_parameters: int = 0
    check_parameters: Optional[ParameterCheck] = None

    @property
    def name(self) -> str:
        return self.kind.value

    def parameter_problem(self, parameters: Sequence[str]) -> Optional[str]:
        """Describe why parameters are unusable for this rule, or return None."""
        if len(parameters) < self.min_parameters:
            return (
                f"expected at least {self.min_parameters} parameter(s), "
                f"got {len(parameters)}"
            )
        if self.check_parameters is not None:
            return self.check_parameters(parameters)
        return None


# Parameter checks

def _integer_parameter(parameters: Sequence[str]) -> Optional[str]:
    if parse_int(parameters[0]) is None:
        return f"expected an integer parameter, got '{parameters[0]}'"
    return None


def _numeric_parameter(parameters: Sequence[str]) -> Optional[str]:
    if parse_number(parameters[0]) is None:
        return f"expected a numeric parameter, got '{parameters[0]}'"
    return None


def _range_parameters(parameters: Sequence[str]) -> Optional[str]:
    for bound in parameters[:2]:
        if bound != "" and parse_number(bound) is None:
            return f"expected numeric or empty bounds, got '{bound}'"
    return None


def _date_parameter(parameters: Sequence[str]) -> Optional[str]:
    if parse_timestamp(parameters[0]) is None:
        return f"expected a recognizable date parameter, got '{parameters[0]}'"
    return None


def _pattern_parameter(
parameters: Sequence[str]) -> Optional[str]:
    try:
        re.compile(parameters[0])
    except re.error as e:
        return f"invalid pattern '{parameters[0]}': {e}"
    return None


# Predicates

_ACCEPTED_WORDS = frozenset({"yes", "on", "1", "true"})
_HOSTLESS_SCHEMES = frozenset({"mailto", "news", "file"})


def check_required(value, parameters, data) -> bool:
    return value is not None


def check_accept(value, parameters, data) -> bool:
    if value is True:
        return True
    kind = kind_of(value)
    if kind is ValueKind.INT:
        return value == 1
    if kind is ValueKind.STRING:
        return value.lower() in _ACCEPTED_WORDS
    return False


def check_numeric(value, parameters, data) -> bool:
    return parse_int(value) is not None or parse_float(value) is not None


def check_integer(value, parameters, data) -> bool:
    return parse_int(value) is not None


def check_float(value, parameters, data) -> bool:
    return parse_float(value) is not None


def check_boolean(value, parameters, data) -> bool:
    kind = kind_of(value)
    if kind is ValueKind.BOOL:
        return True
    if kind is ValueKind.INT:
        return value in (0, 1)
    if kind is ValueKind.STRING:
        return value in ("0", "1")
    return False


def check_string(value, parameters, data) -> bool:
    return kind_of(value) is ValueKind.STRING


def check_array(value, parameters, data) -> bool:
    return kind_of(value) in CONTAINER_KINDS


def check_url(value, parameters, data) -> bool:
    if kind_of(value) is not ValueKind.STRING or not value:
        return False
    if any(char.isspace() for char in value):
        return False
    try:
        parsed = urlparse(value)
        host = parsed.hostname
    except ValueError:
        return False
    if not parsed.scheme:
        return False
    if parsed.scheme.lower() in _HOSTLESS_SCHEMES:
        return bool(parsed.netloc or parsed.path)
    return bool(host)


def check_email(value, parameters, data) -> bool:
    if kind_of(value) is not ValueKind.STRING:
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def check_ip(value, parameters, data) -> bool:
    if kind_of(value) is not ValueKind.STRING:
        return False
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def check_date(value, parameters, data) -> bool:
    return parse_timestamp(value) is not None


def check_date_format(value, parameters, data) -> bool:
    return parse_with_format(value, parameters[0]) is not None


def _compare_dates(value, reference) -> Optional[float]:
    moment = parse_timestamp(value)
    other = parse_timestamp(reference)
    if moment is None or other is None:
        return None
    return to_epoch(moment) - to_epoch(other)


def check_date_before(value, parameters, data) -> bool:
    difference = _compare_dates(value, parameters[0])
    return difference is not None and difference < 0


def check_date_after(value, parameters, data) -> bool:
    difference = _compare_dates(value, parameters[0])
    return difference is not None and difference > 0


def check_json(value, parameters, data) -> bool:
    if kind_of(value) is not ValueKind.STRING:
        return False
    try:
        decoded = json.loads(value)
    except ValueError:
        return False
    return isinstance(decoded, dict)


def check_nullable(value, parameters, data) -> bool:
    return True


def check_confirm(value, parameters, data) -> bool:
    """The value must equal, with the same type, the top-level field named by parameter 0."""
    other_field = parameters[0]
    if other_field not in data:
        return False
    other = data[other_field]
    return type(other) is type(value) and other == value


def check_size(value, parameters, data) -> bool:
    size = get_size(value)
    return isinstance(size, int) and size == parse_int(parameters[0])


def check_min(value, parameters, data) -> bool:
    return get_size(value) >= parse_number(parameters[0])


def check_max(value, parameters, data) -> bool:
    return get_size(value) <= parse_number(parameters[0])


def check_range(value, parameters, data) -> bool:
    """
    Both bounds must be given as two slots; an empty slot means unbounded
    on that side. Both slots empty, or fewer than two slots, never passes.
    """
    if len(parameters) < 2:
        return False
    lower, upper = parameters[0], parameters[1]
    if lower == "" and upper == "":
        return False

    size = get_size(value)
    if lower == "":
        return size <= parse_number(upper)
    if upper == "":
        return size >= parse_number(lower)
    return parse_number(lower) <= size <= parse_number(upper)


def _regex_subject(value) -> str:
    """The text a scalar is matched as: true is "1", false is "", 2.0 is "2"."""
    if value is True:
        return "1"
    if value is False:
        return ""
    if kind_of(value) is ValueKind.FLOAT and value.is_integer():
        return str(int(value))
    return str(value)


def check_regex(value, parameters, data) -> bool:
    kind = kind_of(value)
    if kind not in SCALAR_KINDS:
        return False
    return re.search(parameters[0], _regex_subject(value)) is not None


def check_in(value, parameters, data) -> bool:
    return kind_of(value) is ValueKind.STRING and value in parameters


RULES: Dict[RuleKind, RuleDefinition] = {
    definition.kind: definition
    for definition in (
        RuleDefinition(RuleKind.REQUIRED, check_required,
                       "Field must be present and not null"),
        RuleDefinition(RuleKind.ACCEPT, check_accept,
                       "Field must be yes, on, 1 or true"),
        RuleDefinition(RuleKind.NUMERIC, check_numeric,
                       "Field must be an integer or a float"),
        RuleDefinition(RuleKind.INTEGER, check_integer,
                       "Field must be an integer"),
        RuleDefinition(RuleKind.FLOAT, check_float,
                       "Field must be a float"),
        RuleDefinition(RuleKind.BOOLEAN, check_boolean,
                       "Field must be true, false, 0, 1, '0' or '1'"),
        RuleDefinition(RuleKind.STRING, check_string,
                       "Field must be a string"),
        RuleDefinition(RuleKind.ARRAY, check_array,
                       "Field must be a mapping or a list"),
        RuleDefinition(RuleKind.URL, check_url,
                       "Field must be a well-formed URL"),
        RuleDefinition(RuleKind.EMAIL, check_email,
                       "Field must be a well-formed email address"),
        RuleDefinition(RuleKind.IP, check_ip,
                       "Field must be an IPv4 or IPv6 address"),
        RuleDefinition(RuleKind.DATE, check_date,
                       "Field must be a recognizable date"),
        RuleDefinition(RuleKind.DATE_FORMAT, check_date_format,
                       "Field must match the date format", min_parameters=1),
        RuleDefinition(RuleKind.DATE_BEFORE, check_date_before,
                       "Field must be a date before the given date",
                       min_parameters=1, check_parameters=_date_parameter),
        RuleDefinition(RuleKind.DATE_AFTER, check_date_after,
                       "Field must be a date after the given date",
                       min_parameters=1, check_parameters=_date_parameter),
        RuleDefinition(RuleKind.JSON, check_json,
                       "Field must be a JSON object string"),
        RuleDefinition(RuleKind.NULLABLE, check_nullable,
                       "Field may be null"),
        RuleDefinition(RuleKind.CONFIRM, check_confirm,
                       "Field must equal the named field", min_parameters=1),
        RuleDefinition(RuleKind.SIZE, check_size,
                       "Field size must equal the given integer",
                       min_parameters=1, check_parameters=_integer_parameter),
        RuleDefinition(RuleKind.MIN, check_min,
                       "Field size must be at least the given number",
                       min_parameters=1, check_parameters=_numeric_parameter),
        RuleDefinition(RuleKind.MAX, check_max,
                       "Field size must be at most the given number",
                       min_parameters=1, check_parameters=_numeric_parameter),
        RuleDefinition(RuleKind.RANGE, check_range,
                       "Field size must lie between the given bounds",
                       check_parameters=_range_parameters),
        RuleDefinition(RuleKind.REGEX, check_regex,
                       "Field must match the given pattern",
                       min_parameters=1, check_parameters=_pattern_parameter),
        RuleDefinition(RuleKind.IN, check_in,
                       "Field must be one of the given values"),
    )
}
