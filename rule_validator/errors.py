"""Configuration error taxonomy.

A rule that does not hold for the data is never an exception: it is recorded
as a failure message. The errors below signal that the validator itself was
set up wrongly, so callers can tell "data is invalid" apart from "validator
was misconfigured".
"""


class ConfigurationError(ValueError):
    """Base class for every validator misconfiguration."""


class RuleDefinitionError(ConfigurationError):
    """The rule-group mapping is not a mapping of field name to rule string."""


class UnknownRuleError(ConfigurationError):
    """A rule token names no rule in the fixed rule set."""

    def __init__(self, field: str, rule: str):
        self.field = field
        self.rule = rule
        if rule:
            message = f"Unknown rule '{rule}' declared for field '{field}'"
        else:
            message = f"Empty rule declared for field '{field}'"
        super().__init__(message)


class RuleParameterError(ConfigurationError):
    """A rule was given missing or unusable parameters."""

    def __init__(self, field: str, rule: str, reason: str):
        self.field = field
        self.rule = rule
        super().__init__(f"Rule '{rule}' on field '{field}': {reason}")


class MessageTemplateError(ConfigurationError):
    """The message template store is malformed or a template cannot be filled."""
