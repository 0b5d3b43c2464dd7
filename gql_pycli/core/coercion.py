"""Variable coercion engine.

Maps flat, string-typed command-line bindings onto the declared input
types of a field's arguments. Dotted keys (``input.contact.email``)
address nested input-object fields; comma-joined strings become lists.

Example:
    defs = build_variable_definitions(field.args)
    coerce_variables(defs, {"input.name": "Jess", "input.age": "31"})
    # -> {"input": {"name": "Jess", "age": 31}}
"""

import logging
import re
from typing import Any, Union

from graphql import (
    GraphQLEnumType,
    GraphQLInputObjectType,
    GraphQLInputType,
    GraphQLScalarType,
    TypeKind,
    Undefined,
    is_non_null_type,
)
from pydantic import BaseModel

from .errors import InvalidArgsError
from .ir import VariableDefinition, schema_default, type_kind

logger = logging.getLogger(__name__)

FlagScalar = Union[str, int, float, bool, None]
FlagValue = Union[FlagScalar, list[Any], dict[str, Any]]
FlagTree = dict[str, FlagValue]

_MISSING = object()

_INT_RE = re.compile(r"^[-+]?\d+$")
_FLOAT_RE = re.compile(r"^[-+]?(\d+(\.\d+)?|\.\d+)$")
_TRUE_RE = re.compile(r"^(true|1)$", re.IGNORECASE)
_FALSE_RE = re.compile(r"^(false|0)$", re.IGNORECASE)


def build_flag_tree(entries: dict[str, FlagValue]) -> FlagTree:
    """Build a nested tree from dotted-path entries.

    ``{"name": "a", "contact.email": "b"}`` becomes
    ``{"name": "a", "contact": {"email": "b"}}``. A later path that
    descends through a scalar replaces it with a subtree.
    """
    root: FlagTree = {}
    for path, value in entries.items():
        parts = [part for part in path.split(".") if part]
        if not parts:
            continue
        target = root
        for part in parts[:-1]:
            child = target.get(part)
            if not isinstance(child, dict):
                child = {}
                target[part] = child
            target = child
        target[parts[-1]] = value
    return root


def pick_flag_value(flags: dict[str, FlagValue], name: str) -> Any:
    """Find the raw value for a variable.

    A direct ``name`` key wins; otherwise every ``name.``-prefixed key is
    gathered into a tree. Returns ``_MISSING`` when neither exists.
    """
    if name in flags:
        return flags[name]

    prefix = f"{name}."
    nested = {key[len(prefix):]: value for key, value in flags.items() if key.startswith(prefix)}
    if not nested:
        return _MISSING
    return build_flag_tree(nested)


def coerce_variables(
    definitions: list[VariableDefinition],
    flags: dict[str, FlagValue],
    split_lists: bool = True,
) -> dict[str, Any]:
    """Coerce flat flag values against variable definitions.

    Args:
        definitions: Variables declared by the target field
        flags: Flat bindings; dotted keys denote nested input paths
        split_lists: Split comma-containing strings into list elements

    Returns:
        Variables ready for JSON serialization

    Raises:
        InvalidArgsError: If a required variable is missing or a value
            does not fit its declared type
    """
    variables: dict[str, Any] = {}

    for definition in definitions:
        raw = pick_flag_value(flags, definition.name)

        if raw is _MISSING:
            if definition.is_required:
                raise InvalidArgsError(f'Missing required variable "{definition.name}".')
            if definition.has_default:
                variables[definition.name] = definition.default_value
            continue

        variables[definition.name] = coerce_input_value(
            definition.type, raw, definition.name, split_lists
        )

    unknown = sorted(
        {key.split(".", 1)[0] for key in flags} - {d.name for d in definitions}
    )
    if unknown:
        logger.debug("Ignoring flags with no matching argument: %s", ", ".join(unknown))

    return variables


def coerce_input_value(
    type_: GraphQLInputType,
    raw: Any,
    label: str,
    split_lists: bool = True,
) -> Any:
    """Recursively coerce one raw value against a declared input type.

    ``label`` is the fully qualified path used in error messages, e.g.
    ``input.contact.email`` or ``tags[2]``.
    """
    kind = type_kind(type_)
    if kind is TypeKind.NON_NULL:
        return coerce_input_value(type_.of_type, raw, label, split_lists)  # type: ignore[union-attr]

    if raw is None:
        return None
    if isinstance(raw, BaseModel):
        # By alias, None fields dropped
        raw = raw.model_dump(by_alias=True, exclude_none=True)

    if kind is TypeKind.LIST:
        items = _to_list(raw, split_lists)
        return [
            coerce_input_value(type_.of_type, item, f"{label}[{index}]", split_lists)  # type: ignore[union-attr]
            for index, item in enumerate(items)
        ]
    if kind is TypeKind.INPUT_OBJECT:
        return _coerce_input_object(type_, raw, label, split_lists)  # type: ignore[arg-type]
    if kind is TypeKind.ENUM:
        return _coerce_enum(type_, raw, label)  # type: ignore[arg-type]
    if kind is TypeKind.SCALAR:
        return _coerce_scalar(type_, raw, label)  # type: ignore[arg-type]

    raise InvalidArgsError(f'Unsupported input type for variable "{label}".')


def _coerce_input_object(
    type_: GraphQLInputObjectType,
    raw: Any,
    label: str,
    split_lists: bool,
) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise InvalidArgsError(
            f'Variable "{label}" expects an object.',
            hint=f"Set its fields with dotted keys, e.g. {label}.<field>=value.",
        )

    result: dict[str, Any] = {}
    for name, input_field in type_.fields.items():
        field_label = f"{label}.{name}"
        if name not in raw:
            default = schema_default(input_field)
            has_default = default is not Undefined
            if is_non_null_type(input_field.type) and not has_default:
                raise InvalidArgsError(f'Missing required field "{field_label}".')
            if has_default:
                result[name] = default
            continue
        result[name] = coerce_input_value(input_field.type, raw[name], field_label, split_lists)

    unknown = sorted(set(raw) - set(type_.fields))
    if unknown:
        raise InvalidArgsError(
            f'Unknown field "{label}.{unknown[0]}" on input type {type_.name}.',
            hint=f"Known fields: {', '.join(type_.fields)}.",
        )
    return result


def _coerce_enum(type_: GraphQLEnumType, raw: Any, label: str) -> str:
    value = _normalize_primitive(raw)
    if not value:
        raise InvalidArgsError(f'Variable "{label}" expected enum {type_.name}.')
    if value not in type_.values:
        allowed = ", ".join(type_.values)
        raise InvalidArgsError(f'Variable "{label}" expected one of [{allowed}].')
    return value


def _coerce_scalar(type_: GraphQLScalarType, raw: Any, label: str) -> Any:
    value = _normalize_primitive(raw)
    if value is None:
        # Structured values (e.g. JSON scalars) pass through untouched
        return raw

    if type_.name == "Int":
        if not _INT_RE.match(value):
            raise InvalidArgsError(f'Variable "{label}" expected an integer, got "{value}".')
        return int(value)
    if type_.name == "Float":
        if not _FLOAT_RE.match(value):
            raise InvalidArgsError(f'Variable "{label}" expected a float, got "{value}".')
        return float(value)
    if type_.name == "Boolean":
        if _TRUE_RE.match(value):
            return True
        if _FALSE_RE.match(value):
            return False
        raise InvalidArgsError(f'Variable "{label}" expected a boolean, got "{value}".')
    # ID, String and custom scalars
    return value


def _to_list(value: Any, split_lists: bool) -> list[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    if isinstance(value, str) and split_lists and "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]
    return [value]


def _normalize_primitive(value: Any) -> str | None:
    """String form of a primitive; None for structured values."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    return None
