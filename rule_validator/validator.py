import logging
from collections.abc import Mapping
from typing import Dict, List, Optional, Sequence

from .field_resolver import FieldResolver
from .message_builder import MessageBuilder
from .message_store import get_message_templates
from .rule_parser import RuleTable, parse_rule_groups, to_plain_table
from .rules import FORCE_RULES

logger = logging.getLogger(__name__)


class Validator:
    """
    Validates a data mapping against declarative field rules.

    Example:
        from rule_validator import Validator

        validator = Validator(
            {"age": "17", "email": "a@b.com"},
            {"age": "required|integer|min:18", "email": "required|email"},
        )
        if not validator.validate():
            validator.fails()     # ["age"]
            validator.messages()  # {"age": {"Min": "age must be at least 18"}}

    A Validator is meant for one ``validate()`` call. Failure messages are
    accumulated on the instance and never reset, and instances are not safe
    to share between threads; build a fresh Validator per validation.
    """

    def __init__(
        self,
        data: Mapping,
        rule_groups: Mapping[str, str],
        templates: Optional[Mapping[str, str]] = None,
    ):
        """
        Initialize validator and parse its rules.

        Args:
            data: Input data, keyed by field name; nested mappings are
                addressed with dot paths ("user.address.city")
            rule_groups: Field path -> rule expression ("required|min:3")
            templates: Canonical rule name -> message template. Defaults to
                the process-wide message template store.

        Raises:
            TypeError: If data is not a mapping
            ConfigurationError: If a rule expression is malformed, names an
                unknown rule, or gives a rule unusable parameters
        """
        if not isinstance(data, Mapping):
            raise TypeError(f"Data must be a mapping, got {type(data).__name__}")

        self._data = data
        self._rules: RuleTable = parse_rule_groups(rule_groups)
        self._messages: Dict[str, Dict[str, str]] = {}

        if templates is None:
            templates = get_message_templates().templates
        self.resolver = FieldResolver(data)
        self.message_builder = MessageBuilder(templates)

    def validate(self) -> bool:
        """
        Run every declared rule against the data.

        Fields are checked in declaration order. A present field runs all of
        its rules; an absent field only fails its force rules (Required) and
        skips the rest.

        Returns:
            True if no rule failed

        Raises:
            MessageTemplateError: If a failure message cannot be built
        """
        for field, rules in self._rules.items():
            if self.resolver.has_field(field):
                value = self.resolver.get_field(field)
                for name, rule in rules.items():
                    if not rule.definition.predicate(value, rule.parameters, self._data):
                        self._record_failure(field, name, rule.parameters)
            else:
                for name, rule in rules.items():
                    if rule.kind in FORCE_RULES:
                        self._record_failure(field, name, ())

        logger.debug(
            f"Validated {len(self._rules)} field(s): "
            f"{len(self._messages)} failed"
        )
        return not self._messages

    def fails(self) -> List[str]:
        """Field names with at least one failure, in the order they first failed."""
        return list(self._messages)

    def messages(self) -> Dict[str, Dict[str, str]]:
        """Failure messages: field -> canonical rule name -> message."""
        return {field: dict(messages) for field, messages in self._messages.items()}

    def data(self) -> Mapping:
        """The input data, as passed in."""
        return self._data

    def rules(self) -> Dict[str, Dict[str, List[str]]]:
        """The normalized rule table: field -> canonical rule name -> parameters."""
        return to_plain_table(self._rules)

    def _record_failure(self, field: str, rule: str, parameters: Sequence[str]):
        message = self.message_builder.build(rule, field, parameters)
        logger.debug(f"Field '{field}' failed rule {rule}: {message}")
        self._messages.setdefault(field, {})[rule] = message


def validate(
    data: Mapping,
    rule_groups: Mapping[str, str],
    templates: Optional[Mapping[str, str]] = None,
) -> Validator:
    """Build a Validator, run it once and return it for inspection."""
    validator = Validator(data, rule_groups, templates)
    validator.validate()
    return validator
