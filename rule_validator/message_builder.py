import string
from typing import Mapping, Sequence

from .errors import MessageTemplateError


class _TemplateFormatter(string.Formatter):
    """Positional-only formatting; placeholders past the supplied parameters render empty."""

    def get_value(self, key, args, kwargs):
        if isinstance(key, int):
            return args[key] if key < len(args) else ""
        raise KeyError(key)


_formatter = _TemplateFormatter()


class MessageBuilder:
    """Formats rule failures into display strings from per-rule templates"""

    def __init__(self, templates: Mapping[str, str]):
        """
        Initialize message builder.

        Args:
            templates: Canonical rule name -> template fragment. Fragments use
                positional placeholders ({0}, {1}, ...) filled from the rule's
                parameters and are prefixed with the field name.
        """
        self.templates = templates

    def build(self, rule: str, field: str, parameters: Sequence[str] = ()) -> str:
        """
        Build the failure message for one field/rule pair.

        Rules without a template get a generic message. Parameters beyond
        those the template consumes are ignored; placeholders beyond the
        supplied parameters (an unbounded Range slot, a Required failure on
        an absent field) render as empty text.

        Raises:
            MessageTemplateError: If the template is not a valid positional
                format string
        """
        template = self.templates.get(rule)
        if template is None:
            return f"{field} field check failed"

        try:
            detail = _formatter.format(template, *parameters)
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
            raise MessageTemplateError(
                f"Cannot fill template for rule '{rule}' on field '{field}': "
                f"{template!r} ({e})"
            ) from e
        return f"{field} {detail}"
