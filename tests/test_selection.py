"""Tests for the field-selection compiler."""

import pytest

from gql_pycli.core.errors import FieldSyntaxError, InvalidArgsError
from gql_pycli.core.ir import SelectionNode
from gql_pycli.core.selection import (
    auto_select,
    build_selection,
    parse_fields,
    render_selection,
    tokenize,
)


class TestParseFields:
    """Tests for shorthand parsing."""

    def test_flat_fields(self):
        """Test comma and whitespace separators."""
        nodes = parse_fields("id, name age")
        assert [n.name for n in nodes] == ["id", "name", "age"]
        assert all(n.is_leaf for n in nodes)

    def test_nested_fields(self):
        """Test nested braces build child nodes."""
        nodes = parse_fields("id profile { bio owner { name } }")
        assert nodes == [
            SelectionNode("id"),
            SelectionNode(
                "profile",
                [SelectionNode("bio"), SelectionNode("owner", [SelectionNode("name")])],
            ),
        ]

    def test_unexpected_character_reports_position(self):
        """Test tokenizer errors carry the offending position."""
        with pytest.raises(FieldSyntaxError) as exc_info:
            parse_fields("id $name")
        assert exc_info.value.position == 3
        assert "position 3" in str(exc_info.value)

    def test_missing_closing_brace(self):
        """Test unterminated nested selection."""
        with pytest.raises(FieldSyntaxError, match='Missing closing "}" for field "profile"'):
            parse_fields("profile { bio")

    def test_empty_braces(self):
        """Test empty nested selection is rejected."""
        with pytest.raises(FieldSyntaxError, match="empty selection"):
            parse_fields("profile { }")

    def test_stray_closing_brace(self):
        """Test unmatched closing brace."""
        with pytest.raises(FieldSyntaxError, match="Unexpected"):
            parse_fields("id }")

    def test_leading_brace(self):
        """Test a brace where a name is expected."""
        with pytest.raises(FieldSyntaxError, match="Expected a field name"):
            parse_fields("{ id }")

    def test_syntax_error_is_invalid_input(self):
        """Test syntax errors belong to the invalid-input category."""
        with pytest.raises(InvalidArgsError):
            tokenize("id!")


class TestRenderSelection:
    """Tests for rendering against schema types."""

    def test_render_preserves_order(self, schema):
        """Test fields render in the order given, not alphabetized."""
        user = schema.get_type("User")
        text = render_selection(schema, user, parse_fields("name id contact { phone email }"))
        assert text == "name\nid\ncontact {\n  phone\n  email\n}"

    def test_unknown_field_names_field(self, schema):
        """Test unknown fields are reported by name."""
        user = schema.get_type("User")
        with pytest.raises(InvalidArgsError, match='Field "nickname" not found on type User'):
            render_selection(schema, user, parse_fields("id nickname"))

    def test_composite_requires_children(self, schema):
        """Test object fields need subfields."""
        user = schema.get_type("User")
        with pytest.raises(InvalidArgsError, match='Field "contact" requires subfields'):
            render_selection(schema, user, parse_fields("contact"))

    def test_list_wrapped_composite_requires_children(self, schema):
        """Test list and non-null wrappers are unwrapped before checking."""
        user = schema.get_type("User")
        with pytest.raises(InvalidArgsError, match='Field "friends" requires subfields'):
            render_selection(schema, user, parse_fields("friends"))

    def test_leaf_rejects_children(self, schema):
        """Test scalar fields cannot take subfields."""
        user = schema.get_type("User")
        with pytest.raises(InvalidArgsError, match="cannot accept subfields"):
            render_selection(schema, user, parse_fields("name { first }"))

    def test_typename_needs_no_lookup(self, schema):
        """Test __typename is accepted on any composite type."""
        result_type = schema.get_type("SearchResult")
        assert render_selection(schema, result_type, parse_fields("__typename")) == "__typename"


class TestAutoSelect:
    """Tests for depth-bounded auto-selection."""

    def test_leaf_fields_only_at_depth_zero(self, schema):
        """Test depth 0 selects leaves and skips composites."""
        nodes = auto_select(schema, schema.get_type("User"), depth_limit=0)
        assert [n.name for n in nodes] == ["__typename", "id", "name", "age", "role"]

    def test_every_leaf_once(self, schema):
        """Test a leaf-only type yields each leaf exactly once."""
        nodes = auto_select(schema, schema.get_type("Contact"), include_typename=False)
        text = render_selection(schema, schema.get_type("Contact"), nodes)
        assert text.split("\n") == ["email", "phone"]

    def test_recurses_into_composites(self, schema):
        """Test nested objects are followed while depth remains."""
        nodes = auto_select(schema, schema.get_type("Profile"), depth_limit=1, include_typename=False)
        owner = next(n for n in nodes if n.name == "owner")
        assert [n.name for n in owner.children] == ["id", "name", "age", "role"]

    def test_cyclic_schema_terminates(self, schema):
        """Test self-referencing types stop at the depth limit."""
        nodes = auto_select(schema, schema.get_type("Hollow"), depth_limit=2)
        text = render_selection(schema, schema.get_type("Hollow"), nodes)
        assert text.count("inner {") == 2

    def test_no_selectable_fields_fails(self, schema):
        """Test a leafless type never produces an empty selection."""
        with pytest.raises(InvalidArgsError, match="Type Hollow has no selectable scalar fields"):
            auto_select(schema, schema.get_type("Hollow"), include_typename=False)

    def test_negative_depth_is_clamped(self, schema):
        """Test a negative depth behaves like zero."""
        nodes = auto_select(schema, schema.get_type("User"), depth_limit=-5, include_typename=False)
        assert [n.name for n in nodes] == ["id", "name", "age", "role"]


class TestBuildSelection:
    """Tests for building a root field's selection."""

    def test_leaf_return_type_has_no_selection(self, schema):
        """Test scalar-returning fields get no selection block."""
        assert build_selection(schema, schema.query_type.fields["hello"]) is None

    def test_shorthand_wins_over_auto(self, schema):
        """Test explicit shorthand is used as given."""
        text = build_selection(schema, schema.query_type.fields["user"], shorthand="id")
        assert text == "id"

    def test_blank_shorthand_falls_back_to_auto(self, schema):
        """Test whitespace-only shorthand triggers auto-selection."""
        text = build_selection(schema, schema.query_type.fields["user"], shorthand="  ", depth_limit=0)
        assert text.split("\n") == ["__typename", "id", "name", "age", "role"]

    def test_comma_only_shorthand_fails(self, schema):
        """Test shorthand that parses to nothing is rejected."""
        with pytest.raises(InvalidArgsError, match="selects nothing"):
            build_selection(schema, schema.query_type.fields["user"], shorthand=",")
