"""Tests for column type descriptor parsing and composition.

Covers parse_type()/compose_type() round-trips, suffix word handling and
pass-through of types outside the NAME(LENGTH) grammar.
"""

import pytest

from mysql_designer.schema.types import TypeDescriptor, compose_type, parse_type


# ============================================================================
# Test: parse_type()
# ============================================================================


class TestParseType:
    """Verify parse_type() splits raw MySQL type strings."""

    def test_plain_type(self) -> None:
        """Type without length or flags."""
        assert parse_type("text") == TypeDescriptor(base_type="text")

    def test_type_with_length(self) -> None:
        """Length is captured without parentheses."""
        desc = parse_type("varchar(255)")
        assert desc.base_type == "varchar"
        assert desc.length == "255"
        assert not desc.unsigned
        assert not desc.zerofill

    def test_precision_and_scale(self) -> None:
        """decimal(10,2) keeps the comma-separated precision intact."""
        assert parse_type("decimal(10,2)").length == "10,2"

    def test_unsigned(self) -> None:
        desc = parse_type("int(10) unsigned")
        assert desc == TypeDescriptor("int", "10", True, False)

    def test_unsigned_zerofill(self) -> None:
        desc = parse_type("int(10) unsigned zerofill")
        assert desc == TypeDescriptor("int", "10", True, True)

    def test_suffix_order_insensitive(self) -> None:
        """zerofill before unsigned parses to the same descriptor."""
        assert parse_type("int(10) zerofill unsigned") == parse_type(
            "int(10) unsigned zerofill"
        )

    def test_suffix_case_insensitive(self) -> None:
        assert parse_type("bigint(20) UNSIGNED").unsigned

    def test_enum_values_kept_as_length(self) -> None:
        """enum value lists go through the length slot unchanged."""
        desc = parse_type("enum('a','b','c')")
        assert desc.base_type == "enum"
        assert desc.length == "'a','b','c'"

    def test_unknown_suffix_passes_through(self) -> None:
        """Unrecognized suffix words leave the whole string as the base type."""
        raw = "varchar(32) binary"
        assert parse_type(raw) == TypeDescriptor(base_type=raw)

    def test_surrounding_whitespace_stripped(self) -> None:
        assert parse_type("  int(11)  ") == TypeDescriptor("int", "11")


# ============================================================================
# Test: compose_type()
# ============================================================================


class TestComposeType:
    """Verify compose_type() reassembles parts in server order."""

    def test_base_only(self) -> None:
        assert compose_type("json") == "json"

    def test_empty_length_omits_parentheses(self) -> None:
        assert compose_type("datetime", "") == "datetime"

    def test_full(self) -> None:
        assert (
            compose_type("decimal", "10,2", unsigned=True, zerofill=True)
            == "decimal(10,2) unsigned zerofill"
        )

    def test_zerofill_without_unsigned(self) -> None:
        assert compose_type("int", "5", zerofill=True) == "int(5) zerofill"


# ============================================================================
# Test: Round Trip
# ============================================================================


class TestRoundTrip:
    """parse_type(compose_type(...)) returns the original parts."""

    @pytest.mark.parametrize(
        "parts",
        [
            ("int", "11", False, False),
            ("int", "10", True, False),
            ("tinyint", "3", True, True),
            ("decimal", "10,2", False, True),
            ("varchar", "255", False, False),
            ("datetime", "", False, False),
            ("bigint", "", True, False),
        ],
    )
    def test_compose_then_parse(self, parts: tuple[str, str, bool, bool]) -> None:
        assert parse_type(compose_type(*parts)) == TypeDescriptor(*parts)

    def test_reported_string_survives(self) -> None:
        """A server-reported string recomposes to itself."""
        raw = "smallint(5) unsigned zerofill"
        assert compose_type(*parse_type(raw)) == raw
