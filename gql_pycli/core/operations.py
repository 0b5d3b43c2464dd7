"""Operation index and name resolution.

Indexes every root field of every root kind, translates requested names
through alias and rename maps, disambiguates same-named fields across
kinds and suggests close names on a miss.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from graphql import GraphQLSchema, Undefined, is_non_null_type

from .errors import InvalidArgsError
from .ir import ROOT_ORDER, OperationIndex, OperationRecord, RootKind, render_type_ref, schema_default

if TYPE_CHECKING:
    from .config import EndpointConfig

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 3
MAX_SUGGESTION_DISTANCE = 3


def build_operation_index(schema: GraphQLSchema) -> OperationIndex:
    """Index root fields by name and by kind.

    Args:
        schema: Materialized schema

    Returns:
        OperationIndex with per-kind lists in canonical kind order
    """
    index = OperationIndex()
    roots = [
        (RootKind.QUERY, schema.query_type),
        (RootKind.MUTATION, schema.mutation_type),
        (RootKind.SUBSCRIPTION, schema.subscription_type),
    ]
    for kind, root in roots:
        if root is None:
            continue
        for name, root_field in root.fields.items():
            record = OperationRecord(kind=kind, name=name, field=root_field)
            index.by_name.setdefault(name, []).append(record)
            index.by_kind[kind].append(record)
    return index


def extract_field_key(key: str) -> str:
    """Field name from a possibly kind-scoped key ('mutation.createUser')."""
    return key.rsplit(".", 1)[-1]


def resolve_operation_name(
    name: str,
    aliases: dict[str, str] | None = None,
    renames: dict[str, str] | None = None,
    disable_aliases: bool = False,
) -> str:
    """Translate a requested name into a canonical field name.

    Aliases are consulted first (unless disabled); a name that is not an
    alias is then matched against configured display names. When both
    would apply, the alias wins.

    Args:
        name: Name typed by the user
        aliases: alias -> canonical field name
        renames: canonical (optionally kind-scoped) key -> display name
        disable_aliases: Skip alias translation

    Returns:
        The canonical name (``name`` itself when nothing matched)
    """
    if not disable_aliases and aliases and name in aliases:
        logger.debug("Alias %s -> %s", name, aliases[name])
        return aliases[name]
    for key, display in (renames or {}).items():
        if display == name:
            canonical = extract_field_key(key)
            logger.debug("Display name %s -> %s", name, canonical)
            return canonical
    return name


def levenshtein(a: str, b: str) -> int:
    """Edit distance between two strings."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def suggest_operations(index: OperationIndex, name: str) -> list[str]:
    """Up to three known names within edit distance three, closest first."""
    scored = sorted((levenshtein(name, candidate), candidate) for candidate in index.by_name)
    return [
        candidate
        for score, candidate in scored
        if score <= MAX_SUGGESTION_DISTANCE
    ][:MAX_SUGGESTIONS]


def resolve_operation(
    index: OperationIndex,
    name: str,
    prefer: RootKind | None = None,
    requested: RootKind | None = None,
    target_label: str | None = None,
) -> OperationRecord:
    """Pick the operation record for a canonical name.

    A single match is returned as is. With matches under several kinds, an
    explicit ``requested`` kind must be among them; otherwise ``prefer``
    (default query) is tried, then the canonical kind order.

    Raises:
        InvalidArgsError: If the name is unknown (with suggestions) or the
            requested kind has no such field
    """
    matches = index.by_name.get(name, [])
    if not matches:
        suggestions = suggest_operations(index, name)
        where = f' on endpoint "{target_label}"' if target_label else ""
        suffix = f" Did you mean: {', '.join(suggestions)}?" if suggestions else ""
        raise InvalidArgsError(f'Operation "{name}" not found{where}.{suffix}')

    if len(matches) == 1:
        return matches[0]

    if requested is not None:
        for record in matches:
            if record.kind is requested:
                return record
        valid = "/".join(record.kind.value for record in matches)
        raise InvalidArgsError(
            f'Operation "{name}" does not exist on {requested.label}. Use --kind {valid}.'
        )

    for kind in [prefer or RootKind.QUERY, *ROOT_ORDER]:
        for record in matches:
            if record.kind is kind:
                return record
    return matches[0]


# Display helpers driven by endpoint configuration


def _lookup_configured(values: dict[str, str], record: OperationRecord) -> str | None:
    """Scoped keys ('query.user') win over bare keys ('user')."""
    for key, value in values.items():
        if "." in key and key.lower() == record.scoped_key:
            return value
    for key, value in values.items():
        if "." not in key and key.lower() == record.name.lower():
            return value
    return None


def get_display_name(record: OperationRecord, config: "EndpointConfig | None" = None) -> str:
    if config is None:
        return record.name
    return _lookup_configured(config.help.rename, record) or record.name


def is_hidden(record: OperationRecord, config: "EndpointConfig | None" = None) -> bool:
    if config is None:
        return False
    for pattern in config.help.hide:
        if "." in pattern:
            if pattern.lower() == record.scoped_key:
                return True
        elif pattern.lower() == record.name.lower():
            return True
    return False


def describe_operation(
    record: OperationRecord,
    config: "EndpointConfig | None" = None,
) -> tuple[str | None, str]:
    """Description text and its source: 'config', 'schema' or 'none'."""
    if config is not None:
        text = _lookup_configured(config.help.describe, record)
        if text:
            return text, "config"
    if record.field.description:
        return record.field.description, "schema"
    return None, "none"


def group_order(config: "EndpointConfig | None" = None) -> list[RootKind]:
    """Configured kind order followed by any kinds it leaves out."""
    custom = list(config.help.group_order) if config is not None else []
    return list(dict.fromkeys([*custom, *ROOT_ORDER]))


def build_alias_map(aliases: dict[str, str]) -> dict[str, list[str]]:
    """canonical name -> aliases pointing at it"""
    reverse: dict[str, list[str]] = {}
    for alias, canonical in aliases.items():
        reverse.setdefault(canonical, []).append(alias)
    return reverse


@dataclass
class ArgumentSummary:
    name: str
    type: str
    required: bool
    description: str | None = None


@dataclass
class OperationSummary:
    """A listable view of one operation."""
    canonical_name: str
    display_name: str
    kind: RootKind
    description: str | None
    description_source: str
    hidden: bool
    aliases: list[str] = field(default_factory=list)
    args: list[ArgumentSummary] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "canonicalName": self.canonical_name,
            "displayName": self.display_name,
            "kind": self.kind.value,
            "description": self.description,
            "descriptionSource": self.description_source,
            "hidden": self.hidden,
            "aliases": self.aliases,
            "args": [
                {
                    "name": arg.name,
                    "type": arg.type,
                    "required": arg.required,
                    "description": arg.description,
                }
                for arg in self.args
            ],
        }


def list_operations(
    schema: GraphQLSchema,
    config: "EndpointConfig | None" = None,
    show_hidden: bool = False,
    kind: RootKind | None = None,
    match: str | None = None,
) -> list[OperationSummary]:
    """Summaries of every (visible) operation.

    Args:
        schema: Materialized schema
        config: Endpoint configuration for renames, hiding and descriptions
        show_hidden: Include operations matched by ``help.hide``
        kind: Only this root kind
        match: Case-insensitive substring over names, display names and aliases

    Returns:
        Summaries sorted by the configured group order, then display name
    """
    index = build_operation_index(schema)
    alias_map = build_alias_map(config.aliases) if config is not None else {}
    needle = match.lower() if match else None

    order = group_order(config)
    summaries: list[OperationSummary] = []
    for root_kind in order:
        if kind is not None and root_kind is not kind:
            continue
        for record in index.by_kind[root_kind]:
            hidden = is_hidden(record, config)
            if hidden and not show_hidden:
                continue
            display_name = get_display_name(record, config)
            aliases = alias_map.get(record.name, [])
            if needle:
                haystack = " ".join([record.name, display_name, *aliases]).lower()
                if needle not in haystack:
                    continue
            description, source = describe_operation(record, config)
            summaries.append(
                OperationSummary(
                    canonical_name=record.name,
                    display_name=display_name,
                    kind=record.kind,
                    description=description,
                    description_source=source,
                    hidden=hidden,
                    aliases=aliases,
                    args=[
                        ArgumentSummary(
                            name=arg_name,
                            type=render_type_ref(arg.type),
                            required=is_non_null_type(arg.type) and schema_default(arg) is Undefined,
                            description=arg.description,
                        )
                        for arg_name, arg in record.field.args.items()
                    ],
                )
            )

    summaries.sort(key=lambda s: (order.index(s.kind), s.display_name))
    return summaries


GROUP_LABELS = {
    RootKind.QUERY: "Queries",
    RootKind.MUTATION: "Mutations",
    RootKind.SUBSCRIPTION: "Subscriptions",
}


def render_operations_text(
    summaries: list[OperationSummary],
    target_label: str,
    order: list[RootKind] | None = None,
) -> str:
    """Plain-text listing grouped by kind, in ``order`` (default canonical)."""
    if not summaries:
        return f"No operations matched the provided filters for {target_label}."

    lines = [f"Operations for {target_label}"]
    for kind in order or ROOT_ORDER:
        group = [s for s in summaries if s.kind is kind]
        if not group:
            continue
        lines.append("")
        lines.append(f"{GROUP_LABELS[kind]} ({len(group)})")
        width = max(len(s.display_name) for s in group) + 2
        for summary in group:
            entry = f"  {summary.display_name.ljust(width)}"
            if summary.description:
                entry += f"- {summary.description}"
            if summary.hidden:
                entry += " (hidden)"
            lines.append(entry.rstrip())
            lines.append(f"    GraphQL: {kind.label}.{summary.canonical_name}")
            if summary.aliases:
                lines.append(f"    Aliases: {', '.join(summary.aliases)}")
            if not summary.args:
                lines.append("    Args: none")
                continue
            lines.append("    Args:")
            for arg in summary.args:
                required = " (required)" if arg.required else ""
                description = f" - {arg.description}" if arg.description else ""
                lines.append(f"      {arg.name}: {arg.type}{required}{description}")
    return "\n".join(lines)
