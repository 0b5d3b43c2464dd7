"""Intermediate representation for request construction.

Dataclasses shared by the operation index, the selection compiler, the
variable coercion engine and the document store, plus a closed
``TypeKind`` classification of graphql-core types.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from graphql import (
    GraphQLField,
    GraphQLInputType,
    GraphQLNamedType,
    GraphQLType,
    TypeKind,
    Undefined,
    is_enum_type,
    is_input_object_type,
    is_interface_type,
    is_list_type,
    is_non_null_type,
    is_object_type,
    is_scalar_type,
    is_union_type,
    value_from_ast,
)

from .errors import InvalidArgsError


class RootKind(str, Enum):
    """Root operation kinds, declared in canonical order."""
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"

    @property
    def label(self) -> str:
        """Capitalized kind, e.g. 'Mutation'."""
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: "str | RootKind") -> "RootKind":
        """Parse a kind name case-insensitively."""
        if isinstance(value, RootKind):
            return value
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise InvalidArgsError(
                f'Unsupported operation kind "{value}". Use query, mutation, or subscription.'
            ) from None


ROOT_ORDER: list[RootKind] = [RootKind.QUERY, RootKind.MUTATION, RootKind.SUBSCRIPTION]


def type_kind(type_: GraphQLType) -> TypeKind:
    """Classify a graphql-core type into its introspection kind."""
    if is_non_null_type(type_):
        return TypeKind.NON_NULL
    if is_list_type(type_):
        return TypeKind.LIST
    if is_scalar_type(type_):
        return TypeKind.SCALAR
    if is_enum_type(type_):
        return TypeKind.ENUM
    if is_object_type(type_):
        return TypeKind.OBJECT
    if is_interface_type(type_):
        return TypeKind.INTERFACE
    if is_union_type(type_):
        return TypeKind.UNION
    if is_input_object_type(type_):
        return TypeKind.INPUT_OBJECT
    raise TypeError(f"Unknown GraphQL type: {type_!r}")


LEAF_KINDS = frozenset({TypeKind.SCALAR, TypeKind.ENUM})
COMPOSITE_KINDS = frozenset({TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION})


def unwrap_type(type_: GraphQLType) -> GraphQLNamedType:
    """Strip every non-null and list wrapper."""
    while type_kind(type_) in (TypeKind.NON_NULL, TypeKind.LIST):
        type_ = type_.of_type  # type: ignore[union-attr]
    return type_  # type: ignore[return-value]


def is_leaf(type_: GraphQLType) -> bool:
    return type_kind(unwrap_type(type_)) in LEAF_KINDS


def is_composite(type_: GraphQLType) -> bool:
    return type_kind(unwrap_type(type_)) in COMPOSITE_KINDS


def render_type_ref(type_: GraphQLType) -> str:
    """Render a type reference in SDL notation, e.g. '[Role!]!'."""
    kind = type_kind(type_)
    if kind is TypeKind.NON_NULL:
        return f"{render_type_ref(type_.of_type)}!"  # type: ignore[union-attr]
    if kind is TypeKind.LIST:
        return f"[{render_type_ref(type_.of_type)}]"  # type: ignore[union-attr]
    return type_.name  # type: ignore[union-attr]


@dataclass
class OperationRecord:
    """One root field under one root kind."""
    kind: RootKind
    name: str
    field: GraphQLField

    @property
    def scoped_key(self) -> str:
        """Kind-qualified lowercase key, e.g. 'mutation.createuser'."""
        return f"{self.kind.value}.{self.name}".lower()


@dataclass
class OperationIndex:
    """Root fields of a schema, by name and by kind."""
    by_name: dict[str, list[OperationRecord]] = field(default_factory=dict)
    by_kind: dict[RootKind, list[OperationRecord]] = field(
        default_factory=lambda: {kind: [] for kind in ROOT_ORDER}
    )

    @property
    def names(self) -> list[str]:
        return list(self.by_name)


@dataclass
class SelectionNode:
    """A field in a selection tree; ``children`` is None for leaves."""
    name: str
    children: list["SelectionNode"] | None = None

    @property
    def is_leaf(self) -> bool:
        return self.children is None


def schema_default(value: Any) -> Any:
    """The schema default of an argument or input field, or ``Undefined``.

    graphql-core 3.2 exposes coerced defaults as ``default_value``; 3.3
    keeps them on ``default`` as either a coerced value or a literal.
    """
    default_value = getattr(value, "default_value", Undefined)
    if default_value is not Undefined:
        return default_value
    usage = getattr(value, "default", None)
    if usage is None or usage is Undefined:
        return Undefined
    literal = getattr(usage, "literal", None)
    if literal is not None:
        return value_from_ast(literal, value.type)
    return getattr(usage, "value", Undefined)


@dataclass
class VariableDefinition:
    """A variable derived from a field argument."""
    name: str
    type: GraphQLInputType
    default_value: Any = Undefined

    @property
    def has_default(self) -> bool:
        return self.default_value is not Undefined

    @property
    def is_required(self) -> bool:
        """Non-null with no schema default."""
        return is_non_null_type(self.type) and not self.has_default


@dataclass
class DocumentDefinition:
    """A named operation loaded from a document file."""
    name: str
    root_kind: RootKind
    file_path: Path
    source_text: str


@dataclass
class DocumentResolution:
    """A ready-to-send document and the operation to run from it."""
    document: str
    operation_name: str | None = None
