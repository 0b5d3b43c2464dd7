"""Field-selection compiler.

Turns compact shorthand such as ``id, name, posts { title }`` into a
validated selection set for a field's return type, or builds one
automatically with a depth-bounded walk when no shorthand is given.
"""

import re
from dataclasses import dataclass
from enum import Enum

from graphql import GraphQLField, GraphQLNamedType, GraphQLSchema, TypeKind

from .errors import FieldSyntaxError, InvalidArgsError
from .ir import COMPOSITE_KINDS, LEAF_KINDS, SelectionNode, type_kind, unwrap_type

TYPENAME = "__typename"
DEFAULT_DEPTH_LIMIT = 3
INDENT = "  "

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


class TokenKind(Enum):
    NAME = "Name"
    COMMA = "Comma"
    LBRACE = "LBrace"
    RBRACE = "RBrace"


@dataclass
class Token:
    kind: TokenKind
    position: int
    value: str = ""


def tokenize(text: str) -> list[Token]:
    """Split shorthand into names, commas and braces.

    Raises:
        FieldSyntaxError: On any other character, with its position
    """
    tokens: list[Token] = []
    i = 0
    while i < len(text):
        char = text[i]
        if char.isspace():
            i += 1
        elif char == ",":
            tokens.append(Token(TokenKind.COMMA, i))
            i += 1
        elif char == "{":
            tokens.append(Token(TokenKind.LBRACE, i))
            i += 1
        elif char == "}":
            tokens.append(Token(TokenKind.RBRACE, i))
            i += 1
        else:
            match = _NAME_RE.match(text, i)
            if not match:
                raise FieldSyntaxError(f'Unexpected character "{char}" at position {i}.', position=i)
            tokens.append(Token(TokenKind.NAME, i, match.group(0)))
            i = match.end()
    return tokens


class _ShorthandParser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str):
        self.text = text
        self.tokens = tokenize(text)
        self.index = 0

    def peek(self) -> Token | None:
        return self.tokens[self.index] if self.index < len(self.tokens) else None

    def consume(self) -> Token:
        token = self.peek()
        if token is None:
            raise FieldSyntaxError("Unexpected end of field selection.", position=len(self.text))
        self.index += 1
        return token

    def parse(self) -> list[SelectionNode]:
        nodes = self.parse_selection()
        trailing = self.peek()
        if trailing is not None:
            raise FieldSyntaxError(
                f'Unexpected "}}" at position {trailing.position}.', position=trailing.position
            )
        return nodes

    def parse_selection(self) -> list[SelectionNode]:
        nodes: list[SelectionNode] = []
        while self.index < len(self.tokens):
            token = self.tokens[self.index]
            if token.kind is TokenKind.RBRACE:
                break
            if token.kind is TokenKind.COMMA:
                self.consume()
                continue
            if token.kind is not TokenKind.NAME:
                raise FieldSyntaxError(
                    f'Expected a field name at position {token.position}.', position=token.position
                )
            name = self.consume().value
            children = None
            following = self.peek()
            if following is not None and following.kind is TokenKind.LBRACE:
                self.consume()
                children = self.parse_selection()
                if self.peek() is None:
                    raise FieldSyntaxError(
                        f'Missing closing "}}" for field "{name}".', position=len(self.text)
                    )
                self.consume()
                if not children:
                    raise FieldSyntaxError(
                        f'Field "{name}" has an empty selection.', position=following.position
                    )
            nodes.append(SelectionNode(name=name, children=children))
        return nodes


def parse_fields(shorthand: str) -> list[SelectionNode]:
    """Parse field shorthand into a selection tree.

    Args:
        shorthand: Comma- or whitespace-separated field names, each optionally
            followed by ``{ ... }`` with nested fields

    Returns:
        Selection nodes in the order given

    Raises:
        FieldSyntaxError: If the shorthand is malformed
    """
    return _ShorthandParser(shorthand).parse()


def _fields_of(type_: GraphQLNamedType) -> dict[str, GraphQLField]:
    # Unions expose no fields; only __typename is selectable on them
    if type_kind(type_) is TypeKind.UNION:
        return {}
    return type_.fields  # type: ignore[union-attr]


def render_selection(
    schema: GraphQLSchema,
    parent: GraphQLNamedType,
    nodes: list[SelectionNode],
) -> str:
    """Render a selection tree against a composite type.

    Every name is checked against the parent's fields: unknown names fail,
    composite fields need children and leaf fields must not have any.

    Args:
        schema: The schema the type belongs to
        parent: Object, interface or union type being selected from
        nodes: Parsed or auto-selected nodes

    Returns:
        Selection lines (without the outer braces), two-space indented per level

    Raises:
        InvalidArgsError: If a node does not fit the type
    """
    return "\n".join(_render_lines(schema, parent, nodes))


def _render_lines(
    schema: GraphQLSchema,
    parent: GraphQLNamedType,
    nodes: list[SelectionNode],
) -> list[str]:
    fields = _fields_of(parent)
    lines: list[str] = []
    for node in nodes:
        if node.name == TYPENAME:
            if node.children is not None:
                raise InvalidArgsError(f'Field "{TYPENAME}" cannot accept subfields.')
            lines.append(TYPENAME)
            continue

        schema_field = fields.get(node.name)
        if schema_field is None:
            raise InvalidArgsError(f'Field "{node.name}" not found on type {parent.name}.')

        target = unwrap_type(schema_field.type)
        composite = type_kind(target) in COMPOSITE_KINDS
        if node.children is not None and not composite:
            raise InvalidArgsError(
                f'Field "{node.name}" is not an object type and cannot accept subfields.'
            )
        if node.children is None and composite:
            raise InvalidArgsError(
                f'Field "{node.name}" requires subfields.',
                hint=f'Select fields of {target.name}, e.g. "{node.name} {{ {TYPENAME} }}".',
            )

        if node.children is None:
            lines.append(node.name)
        else:
            lines.append(f"{node.name} {{")
            lines.extend(INDENT + line for line in _render_lines(schema, target, node.children))
            lines.append("}")
    return lines


def auto_select(
    schema: GraphQLSchema,
    parent: GraphQLNamedType,
    depth_limit: int = DEFAULT_DEPTH_LIMIT,
    include_typename: bool = True,
) -> list[SelectionNode]:
    """Build a selection of every leaf field, descending into composites.

    Composite fields are followed only while remaining depth is above
    zero, so cyclic schemas terminate.

    Raises:
        InvalidArgsError: If nothing at all is selectable on ``parent``
    """
    nodes = _auto_collect(parent, max(depth_limit, 0), include_typename)
    if not nodes:
        raise InvalidArgsError(
            f"Type {parent.name} has no selectable scalar fields.",
            hint="Use --fields to specify a selection.",
        )
    return nodes


def _auto_collect(
    parent: GraphQLNamedType,
    depth: int,
    include_typename: bool,
) -> list[SelectionNode]:
    nodes: list[SelectionNode] = []
    if include_typename:
        nodes.append(SelectionNode(TYPENAME))
    for name, schema_field in _fields_of(parent).items():
        target = unwrap_type(schema_field.type)
        kind = type_kind(target)
        if kind in LEAF_KINDS:
            nodes.append(SelectionNode(name))
        elif kind in COMPOSITE_KINDS and depth > 0:
            children = _auto_collect(target, depth - 1, include_typename)
            # A composite with nothing selectable would render as "name {}"
            if children:
                nodes.append(SelectionNode(name, children))
    return nodes


def build_selection(
    schema: GraphQLSchema,
    field: GraphQLField,
    shorthand: str | None = None,
    depth_limit: int = DEFAULT_DEPTH_LIMIT,
    include_typename: bool = True,
) -> str | None:
    """Selection block text for a root field's return type.

    Returns:
        Rendered selection lines, or None when the return type is a leaf
    """
    target = unwrap_type(field.type)
    if type_kind(target) not in COMPOSITE_KINDS:
        return None
    if shorthand is not None and shorthand.strip():
        nodes = parse_fields(shorthand)
        if not nodes:
            raise InvalidArgsError(f'Field selection "{shorthand}" selects nothing.')
    else:
        nodes = auto_select(schema, target, depth_limit, include_typename)
    return render_selection(schema, target, nodes)
