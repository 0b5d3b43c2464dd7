"""Tests for document construction."""

from gql_pycli.core.ir import RootKind
from gql_pycli.core.query_builder import QueryBuilder, SelectionOptions, build_variable_definitions


class TestQueryBuilder:
    """Tests for QueryBuilder."""

    def test_leaf_field_without_args(self, schema):
        """Test scalar root field renders without a selection block."""
        builder = QueryBuilder(schema)
        document = builder.build(RootKind.QUERY, "createUser", schema.query_type.fields["createUser"])
        assert document == "query {\n  createUser\n}"

    def test_variables_and_arguments(self, schema):
        """Test every argument becomes a variable declaration and invocation."""
        builder = QueryBuilder(schema)
        document = builder.build(
            RootKind.QUERY,
            "users",
            schema.query_type.fields["users"],
            SelectionOptions(shorthand="id name"),
        )
        assert document == (
            "query ($limit: Int!, $roles: [Role!]) {\n"
            "  users(limit: $limit, roles: $roles) {\n"
            "    id\n"
            "    name\n"
            "  }\n"
            "}"
        )

    def test_mutation_with_input_object(self, schema):
        """Test mutation documents use the mutation keyword."""
        builder = QueryBuilder(schema)
        document = builder.build(
            RootKind.MUTATION,
            "createUser",
            schema.mutation_type.fields["createUser"],
            SelectionOptions(shorthand="id"),
        )
        assert document.startswith("mutation ($input: UserInput!) {\n  createUser(input: $input) {")

    def test_nested_selection_indentation(self, schema):
        """Test nested selections are indented two spaces per level."""
        builder = QueryBuilder(schema)
        document = builder.build(
            RootKind.QUERY,
            "user",
            schema.query_type.fields["user"],
            SelectionOptions(shorthand="contact { email }"),
        )
        assert "    contact {\n      email\n    }" in document

    def test_auto_selection_without_typename(self, schema):
        """Test auto-selection settings are honored."""
        builder = QueryBuilder(schema)
        document = builder.build(
            RootKind.QUERY,
            "user",
            schema.query_type.fields["user"],
            SelectionOptions(depth_limit=0, include_typename=False),
        )
        assert "__typename" not in document
        assert "    id\n    name\n    age\n    role\n" in document


class TestVariableDefinitions:
    """Tests for build_variable_definitions."""

    def test_defaults_and_requiredness(self, schema):
        """Test schema defaults make non-null arguments optional."""
        definitions = build_variable_definitions(schema.query_type.fields["users"].args)
        limit, roles = definitions
        assert limit.name == "limit"
        assert limit.has_default and limit.default_value == 10
        assert not limit.is_required
        assert not roles.has_default
        assert not roles.is_required

    def test_non_null_without_default_is_required(self, schema):
        """Test ID! arguments are required."""
        (definition,) = build_variable_definitions(schema.query_type.fields["user"].args)
        assert definition.is_required
