"""
Tests for the rule parser

Covers the rule expression grammar, canonical names and parse-time errors.
"""
import pytest

from rule_validator.errors import RuleDefinitionError, RuleParameterError, UnknownRuleError
from rule_validator.rule_parser import (
    canonicalize,
    parse_rule_groups,
    split_rule,
    to_plain_table,
)
from rule_validator.rules import RuleKind


def parse(rule_groups):
    return to_plain_table(parse_rule_groups(rule_groups))


class TestCanonicalize:
    """Test rule name canonicalization."""

    @pytest.mark.parametrize("raw, expected", [
        ("required", "Required"),
        ("date_format", "DateFormat"),
        ("dateFormat", "DateFormat"),
        ("date_Format", "DateFormat"),
        ("DateFormat", "DateFormat"),
        ("ip", "Ip"),
        ("", ""),
    ])
    def test_canonical_names(self, raw, expected):
        """Test that first letters of underscore segments are upper-cased."""
        assert canonicalize(raw) == expected

    def test_rest_of_segment_untouched(self):
        """Test that only the first letter changes case."""
        assert canonicalize("DATE_FORMAT") == "DATEFORMAT"

    def test_spellings_share_dispatch_target(self):
        """Test that different spellings across fields reach the same rule."""
        table = parse_rule_groups({
            "a": "date_format:Y-m-d",
            "b": "dateFormat:Y-m-d",
            "c": "date_Format:Y-m-d",
        })
        kinds = {rules["DateFormat"].kind for rules in table.values()}
        assert kinds == {RuleKind.DATE_FORMAT}

    @pytest.mark.parametrize("expression, name, kind", [
        ("MIN:3", "Min", RuleKind.MIN),
        ("dateformat:Y-m-d", "DateFormat", RuleKind.DATE_FORMAT),
        ("DATE_FORMAT:Y-m-d", "DateFormat", RuleKind.DATE_FORMAT),
        ("REQUIRED", "Required", RuleKind.REQUIRED),
    ])
    def test_case_insensitive_names(self, expression, name, kind):
        """Test that any letter case reaches the rule, keyed by its own name."""
        table = parse_rule_groups({"field": expression})
        assert list(table["field"]) == [name]
        assert table["field"][name].kind is kind

    def test_mixed_case_duplicates_collapse(self):
        """Test that MIN and min are the same rule, so the later one wins."""
        assert parse({"age": "MIN:3|min:5"}) == {"age": {"Min": ["5"]}}



class TestSplitRule:
    """Test splitting a single rule token."""

    def test_no_parameters(self):
        """Test a rule without a colon."""
        assert split_rule("required") == ("required", [])

    def test_empty_parameter_string(self):
        """Test that a trailing colon still means no parameters."""
        assert split_rule("in:") == ("in", [])

    def test_parameters(self):
        """Test comma-separated parameters."""
        assert split_rule("in:a,b,c") == ("in", ["a", "b", "c"])

    def test_empty_first_slot_kept(self):
        """Test that range:,10 keeps the empty lower slot."""
        assert split_rule("range:,10") == ("range", ["", "10"])

    def test_splits_on_first_colon_only(self):
        """Test that later colons stay in the parameters."""
        assert split_rule("date_format:H:i:s") == ("date_format", ["H:i:s"])


class TestParseRuleGroups:
    """Test building the rule table."""

    def test_basic_table(self):
        """Test a typical set of rule groups."""
        assert parse({
            "age": "required|integer|min:18",
            "role": "in:admin,editor",
        }) == {
            "age": {"Required": [], "Integer": [], "Min": ["18"]},
            "role": {"In": ["admin", "editor"]},
        }

    def test_last_duplicate_wins(self):
        """Test that a repeated rule replaces the earlier one."""
        assert parse({"age": "min:3|max:10|min:5"}) == {
            "age": {"Min": ["5"], "Max": ["10"]}
        }

    def test_duplicate_after_canonicalization(self):
        """Test that differently spelled duplicates collapse."""
        table = parse({"d": "date_format:Y-m-d|dateFormat:d/m/Y"})
        assert table == {"d": {"DateFormat": ["d/m/Y"]}}

    def test_field_order_preserved(self):
        """Test that fields keep declaration order."""
        table = parse_rule_groups({"z": "string", "a": "string", "m": "string"})
        assert list(table) == ["z", "a", "m"]

    def test_parameters_are_strings(self):
        """Test that parameters are never converted."""
        table = parse({"n": "size:3|range:1.5,"})
        assert table["n"]["Size"] == ["3"]
        assert table["n"]["Range"] == ["1.5", ""]


class TestParseErrors:
    """Test configuration errors raised while parsing."""

    def test_unknown_rule(self):
        """Test that an unknown rule name is rejected."""
        with pytest.raises(UnknownRuleError) as exc_info:
            parse_rule_groups({"age": "required|adult"})
        assert exc_info.value.field == "age"
        assert exc_info.value.rule == "adult"

    def test_empty_expression(self):
        """Test that an empty expression yields an empty, unknown rule."""
        with pytest.raises(UnknownRuleError, match="Empty rule"):
            parse_rule_groups({"age": ""})

    def test_empty_token_between_pipes(self):
        """Test that a doubled pipe is rejected."""
        with pytest.raises(UnknownRuleError):
            parse_rule_groups({"age": "required||min:3"})

    @pytest.mark.parametrize("expression", [
        "min", "max", "size", "regex", "confirm",
        "date_format", "date_before", "date_after",
    ])
    def test_missing_required_parameter(self, expression):
        """Test rules that cannot run without a parameter."""
        with pytest.raises(RuleParameterError):
            parse_rule_groups({"field": expression})

    @pytest.mark.parametrize("expression", [
        "min:abc", "max:ten", "size:1.5", "range:a,10", "range:1,b", "regex:[unclosed",
        "date_before:garbage", "date_after:someday",
    ])
    def test_unusable_parameter(self, expression):
        """Test parameters that cannot be read as the rule needs them."""
        with pytest.raises(RuleParameterError):
            parse_rule_groups({"field": expression})

    @pytest.mark.parametrize("expression", ["range", "range:5", "range:,", "in"])
    def test_failing_but_valid_configurations(self, expression):
        """Test rule forms that always fail validation but are not errors."""
        parse_rule_groups({"field": expression})

    def test_rule_groups_must_be_mapping(self):
        """Test that rule groups must be a mapping."""
        with pytest.raises(RuleDefinitionError):
            parse_rule_groups(["required"])

    def test_expression_must_be_string(self):
        """Test that each expression must be a string."""
        with pytest.raises(RuleDefinitionError):
            parse_rule_groups({"age": ["required", "min:3"]})

    def test_field_must_be_string(self):
        """Test that field names must be strings."""
        with pytest.raises(RuleDefinitionError):
            parse_rule_groups({1: "required"})
