"""
Rule Parser - Rule Expression to Rule Table

Turns caller rule groups such as::

    {"age": "required|integer|min:18", "starts": "date_format:Y-m-d"}

into a normalized rule table::

    {"age": {"Required": [], "Integer": [], "Min": ["18"]},
     "starts": {"DateFormat": ["Y-m-d"]}}

## Expression grammar

- Rules are separated by ``|``
- A rule name is separated from its parameters by the first ``:``
- Parameters are separated by ``,``; no parameter string means no parameters,
  while ``range:,10`` keeps its empty first slot (``["", "10"]``)
- Names are canonicalized by upper-casing the first letter of every
  ``_``-separated segment and joining them (``date_format`` -> ``DateFormat``),
  then matched to a rule without regard to case, so ``MIN``, ``dateformat``
  and ``DATE_FORMAT`` all resolve. The table is keyed by the rule's own
  name (``Min``, ``DateFormat``)
- Within a field, a later rule with the same canonical name replaces an
  earlier one

Every name is resolved to its ``RuleKind`` here, so an unknown rule or a rule
missing a required parameter is reported when the validator is built rather
than part-way through a validation run.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Tuple

from .errors import RuleDefinitionError, RuleParameterError, UnknownRuleError
from .rules import RULES, RuleDefinition, RuleKind

logger = logging.getLogger(__name__)

RULE_SEPARATOR = "|"
PARAMETER_MARKER = ":"
PARAMETER_SEPARATOR = ","


@dataclass(frozen=True)
class ParsedRule:
    """One rule invocation on one field."""

    name: str
    parameters: Tuple[str, ...]
    definition: RuleDefinition

    @property
    def kind(self) -> RuleKind:
        return self.definition.kind


RuleTable = Dict[str, Dict[str, ParsedRule]]


def canonicalize(name: str) -> str:
    """``date_format`` -> ``DateFormat``. Only first letters change case."""
    return "".join(segment[:1].upper() + segment[1:] for segment in name.split("_"))


def split_rule(token: str) -> Tuple[str, List[str]]:
    """Split one rule token into its raw name and parameter list."""
    name, _, parameter_string = token.partition(PARAMETER_MARKER)
    if parameter_string == "":
        return name, []
    return name, parameter_string.split(PARAMETER_SEPARATOR)


def parse_rule_groups(rule_groups: Mapping[str, str]) -> RuleTable:
    """
    Parse rule groups into a rule table.

    Args:
        rule_groups: Mapping of field path to rule expression

    Returns:
        Mapping of field path to {canonical rule name: ParsedRule}, in the
        order fields were declared

    Raises:
        RuleDefinitionError: If rule_groups is not a mapping of strings
        UnknownRuleError: If a rule name is empty or not a known rule
        RuleParameterError: If a rule's parameters are missing or unusable
    """
    if not isinstance(rule_groups, Mapping):
        raise RuleDefinitionError(
            f"Rule groups must be a mapping, got {type(rule_groups).__name__}"
        )

    canonical_names: Dict[str, str] = {}
    table: RuleTable = {}

    for field, expression in rule_groups.items():
        if not isinstance(field, str):
            raise RuleDefinitionError(
                f"Field names must be strings, got {type(field).__name__}"
            )
        if not isinstance(expression, str):
            raise RuleDefinitionError(
                f"Rules for field '{field}' must be a string, "
                f"got {type(expression).__name__}"
            )

        field_rules = table.setdefault(field, {})
        for token in expression.split(RULE_SEPARATOR):
            raw_name, parameters = split_rule(token)

            if raw_name not in canonical_names:
                canonical_names[raw_name] = canonicalize(raw_name)
            kind = RuleKind.lookup(canonical_names[raw_name])
            if kind is None:
                raise UnknownRuleError(field, raw_name)

            definition = RULES[kind]
            name = definition.name
            problem = definition.parameter_problem(parameters)
            if problem:
                raise RuleParameterError(field, name, problem)

            field_rules[name] = ParsedRule(name, tuple(parameters), definition)

    logger.debug(
        f"Parsed rules for {len(table)} field(s) "
        f"({len(canonical_names)} distinct rule token(s))"
    )
    return table


def to_plain_table(table: RuleTable) -> Dict[str, Dict[str, List[str]]]:
    """Render a rule table as plain dicts and lists (a fresh copy)."""
    return {
        field: {name: list(rule.parameters) for name, rule in rules.items()}
        for field, rules in table.items()
    }
