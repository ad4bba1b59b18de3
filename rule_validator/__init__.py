"""
rule-validator: declarative field validation with pipe-delimited rules

This library validates a mapping of field values against rule expressions:
- Pipe-delimited rule DSL ("required|integer|min:18")
- Dot-path access into nested mappings ("user.address.city")
- A fixed set of 24 rules (types, formats, dates, sizes, patterns)
- Per-field, per-rule failure messages from YAML templates

Example:
    from rule_validator import Validator

    validator = Validator({"age": "17"}, {"age": "required|integer|min:18"})
    if not validator.validate():
        print(validator.messages())
"""

from .errors import (
    ConfigurationError,
    MessageTemplateError,
    RuleDefinitionError,
    RuleParameterError,
    UnknownRuleError,
)
from .rules import RuleKind
from .validator import Validator, validate

__version__ = "0.1.0"
__all__ = [
    "Validator",
    "validate",
    "RuleKind",
    "ConfigurationError",
    "RuleDefinitionError",
    "UnknownRuleError",
    "RuleParameterError",
    "MessageTemplateError",
]
