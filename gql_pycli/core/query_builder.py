"""Query builder for root-field operations.

Constructs a GraphQL document invoking a single root field, with one
variable per argument and the compiled selection set.
"""

from dataclasses import dataclass

from graphql import GraphQLArgument, GraphQLField, GraphQLSchema

from .ir import RootKind, VariableDefinition, render_type_ref, schema_default
from .selection import DEFAULT_DEPTH_LIMIT, INDENT, build_selection


@dataclass
class SelectionOptions:
    """How to select fields of a composite return type."""
    shorthand: str | None = None
    depth_limit: int = DEFAULT_DEPTH_LIMIT
    include_typename: bool = True


def build_variable_definitions(args: dict[str, GraphQLArgument]) -> list[VariableDefinition]:
    """One variable definition per field argument, in declaration order."""
    return [
        VariableDefinition(
            name=name,
            type=arg.type,  # type: ignore[arg-type]
            default_value=schema_default(arg),
        )
        for name, arg in args.items()
    ]


class QueryBuilder:
    """Builds GraphQL documents for root fields of a schema."""

    def __init__(self, schema: GraphQLSchema):
        self.schema = schema

    def build(
        self,
        kind: RootKind,
        name: str,
        field: GraphQLField,
        selection: SelectionOptions | None = None,
    ) -> str:
        """Build a document invoking ``name`` under the ``kind`` root.

        Args:
            kind: Root operation kind
            name: Root field name
            field: The root field definition
            selection: Shorthand or auto-selection settings

        Returns:
            Complete GraphQL document text
        """
        selection = selection or SelectionOptions()
        var_decls = self._build_variable_declarations(field)
        arg_invocations = self._build_field_arguments(field)
        header = f"{kind.value} ({var_decls})" if var_decls else kind.value

        selection_text = build_selection(
            self.schema,
            field,
            shorthand=selection.shorthand,
            depth_limit=selection.depth_limit,
            include_typename=selection.include_typename,
        )

        lines = [f"{header} {{"]
        if selection_text is None:
            lines.append(f"{INDENT}{name}{arg_invocations}")
        else:
            lines.append(f"{INDENT}{name}{arg_invocations} {{")
            lines.extend(INDENT * 2 + line for line in selection_text.split("\n"))
            lines.append(f"{INDENT}}}")
        lines.append("}")
        return "\n".join(lines)

    def _build_variable_declarations(self, field: GraphQLField) -> str:
        """Build the variable declaration part: $id: ID!, $input: UserInput"""
        return ", ".join(
            f"${name}: {render_type_ref(arg.type)}" for name, arg in field.args.items()
        )

    def _build_field_arguments(self, field: GraphQLField) -> str:
        """Build the argument string for the field: (id: $id, input: $input)"""
        if not field.args:
            return ""
        return "(" + ", ".join(f"{name}: ${name}" for name in field.args) + ")"

