"""Document store for pre-authored operations and fragments.

Operation files and fragment files are discovered with glob patterns
relative to a root directory and parsed with graphql-core. Every stored
operation must be named, and names are unique across all files.
"""

import glob
import logging
from pathlib import Path

from graphql import (
    DocumentNode,
    FragmentDefinitionNode,
    OperationDefinitionNode,
    parse,
)

from .errors import InvalidArgsError
from .ir import DocumentDefinition, DocumentResolution, RootKind

logger = logging.getLogger(__name__)


def _operations(document: DocumentNode) -> list[OperationDefinitionNode]:
    return [d for d in document.definitions if isinstance(d, OperationDefinitionNode)]


def _operation_name(node: OperationDefinitionNode) -> str | None:
    return node.name.value if node.name else None


def _format_path(path: str | Path) -> str:
    path = Path(path)
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


def _with_label(message: str, file_label: str | Path | None) -> str:
    if file_label is None:
        return message
    return f"{message} ({_format_path(file_label)})"


def append_fragments(document: str, fragments: str) -> str:
    if not fragments:
        return document
    return f"{document.strip()}\n\n{fragments}"


def prepare_document(
    source: str,
    operation_name: str | None = None,
    file_label: str | Path | None = None,
    fragments: str = "",
) -> DocumentResolution:
    """Select the operation to run from document text.

    Args:
        source: GraphQL document text
        operation_name: Operation to select; required when there are several
        file_label: Where the text came from, for error messages
        fragments: Fragment source appended to the document

    Returns:
        DocumentResolution with fragments appended

    Raises:
        InvalidArgsError: If there are no operations, the named one is
            absent, or several operations exist and none was named
    """
    operations = _operations(parse(source))
    if not operations:
        raise InvalidArgsError(_with_label("Document does not contain any operations.", file_label))

    if operation_name is not None:
        names = [name for name in map(_operation_name, operations) if name]
        if operation_name not in names:
            suffix = f" Available operations: {', '.join(names)}." if names else ""
            raise InvalidArgsError(
                _with_label(f'Operation "{operation_name}" not found.{suffix}', file_label)
            )
        selected = operation_name
    elif len(operations) > 1:
        names = ", ".join(_operation_name(op) or "<unnamed>" for op in operations)
        raise InvalidArgsError(
            _with_label(
                f"Document defines multiple operations ({names}). Use --operation-name to select one.",
                file_label,
            )
        )
    else:
        selected = _operation_name(operations[0])

    return DocumentResolution(
        document=append_fragments(source, fragments),
        operation_name=selected,
    )


class DocumentStore:
    """Named operations loaded from configured document globs.

    Examples:
        store = DocumentStore(config_dir, documents=["ops/**/*.graphql"],
                              fragments=["fragments/*.graphql"])
        store.init()
        resolved = store.resolve_by_name("GetUser")
    """

    def __init__(
        self,
        root_dir: str | Path,
        documents: list[str] | None = None,
        fragments: list[str] | None = None,
    ):
        self.root_dir = Path(root_dir)
        self.document_patterns = list(documents or [])
        self.fragment_patterns = list(fragments or [])
        self.fragments_text = ""
        self._docs_by_name: dict[str, DocumentDefinition] = {}
        self._initialized = False

    def init(self):
        """Load fragments, then documents. Safe to call more than once.

        Raises:
            InvalidArgsError: On non-fragment definitions in a fragment
                file, a document without operations, an unnamed
                operation, or a duplicate operation name
        """
        if self._initialized:
            return
        self._load_fragments()
        self._load_documents()
        self._initialized = True
        logger.debug(
            "Loaded %d stored operation(s) from %s", len(self._docs_by_name), self.root_dir
        )

    @property
    def definitions(self) -> list[DocumentDefinition]:
        return list(self._docs_by_name.values())

    def resolve_by_name(self, name: str) -> DocumentResolution | None:
        """Stored operation ``name`` with fragments appended, or None."""
        definition = self._docs_by_name.get(name)
        if definition is None:
            return None
        return DocumentResolution(
            document=append_fragments(definition.source_text, self.fragments_text),
            operation_name=definition.name,
        )

    def resolve_from_path(self, path: str | Path, operation_name: str | None = None) -> DocumentResolution:
        """Load an ad-hoc document file, not indexed at init."""
        source = Path(path).read_text(encoding="utf-8")
        return prepare_document(
            source,
            operation_name=operation_name,
            file_label=path,
            fragments=self.fragments_text,
        )

    def _glob(self, patterns: list[str]) -> list[Path]:
        seen: dict[Path, None] = {}
        for pattern in patterns:
            matches = glob.glob(pattern, root_dir=self.root_dir, recursive=True)
            for match in sorted(matches):
                path = (self.root_dir / match).resolve()
                if path.is_file():
                    seen.setdefault(path, None)
        return list(seen)

    def _load_fragments(self):
        parts: list[str] = []
        for path in self._glob(self.fragment_patterns):
            text = path.read_text(encoding="utf-8")
            document = parse(text)
            if any(not isinstance(d, FragmentDefinitionNode) for d in document.definitions):
                raise InvalidArgsError(
                    f"Fragments file {_format_path(path)} contains non-fragment definitions. "
                    "Only fragments are allowed."
                )
            if text.strip():
                parts.append(text.strip())
        self.fragments_text = "\n\n".join(parts)

    def _load_documents(self):
        for path in self._glob(self.document_patterns):
            text = path.read_text(encoding="utf-8")
            operations = _operations(parse(text))
            if not operations:
                raise InvalidArgsError(
                    f"Document {_format_path(path)} does not contain any GraphQL operations."
                )
            for operation in operations:
                name = _operation_name(operation)
                if name is None:
                    raise InvalidArgsError(
                        f"Document {_format_path(path)} defines an unnamed "
                        f"{operation.operation.value} operation. Name it to reference via --doc."
                    )
                existing = self._docs_by_name.get(name)
                if existing is not None:
                    raise InvalidArgsError(
                        f'Duplicate document name "{name}" in {_format_path(path)} '
                        f"(already defined in {_format_path(existing.file_path)}). "
                        "Each operation must be unique across configured documents."
                    )
                self._docs_by_name[name] = DocumentDefinition(
                    name=name,
                    root_kind=RootKind(operation.operation.value),
                    file_path=path,
                    source_text=text,
                )


def _find_existing_path(value: str, search_dirs: list[Path]) -> Path | None:
    candidate = Path(value).expanduser()
    attempts = [candidate] if candidate.is_absolute() else [d / candidate for d in search_dirs]
    for attempt in attempts:
        try:
            if attempt.is_file():
                return attempt
        except OSError:
            # Inline document text can be too long to be a valid path
            continue
    return None


def resolve_document_input(
    value: str,
    operation_name: str | None = None,
    store: DocumentStore | None = None,
    search_dirs: list[str | Path] | None = None,
) -> DocumentResolution:
    """Interpret a --doc value as a file, a stored name, or inline text.

    Args:
        value: Path, stored operation name, or document text
        operation_name: Operation to select within the document
        store: Initialized document store, if any
        search_dirs: Directories for relative paths (default: cwd)

    Returns:
        The resolved document
    """
    dirs = [Path(d) for d in (search_dirs or [Path.cwd()])]
    path = _find_existing_path(value, dirs)
    if path is not None:
        if store is not None:
            return store.resolve_from_path(path, operation_name)
        return prepare_document(path.read_text(encoding="utf-8"), operation_name, file_label=path)

    if store is not None:
        stored = store.resolve_by_name(value)
        if stored is not None:
            if operation_name and stored.operation_name != operation_name:
                raise InvalidArgsError(
                    f'Document "{value}" defines operation "{stored.operation_name}". '
                    f"Use --operation-name={stored.operation_name} or omit the flag."
                )
            return stored

    return prepare_document(value, operation_name=operation_name)


def find_auto_document(store: DocumentStore | None, candidates: list[str | None]) -> DocumentResolution | None:
    """First stored document named after any candidate."""
    if store is None:
        return None
    for candidate in candidates:
        if not candidate:
            continue
        resolved = store.resolve_by_name(candidate)
        if resolved is not None:
            return resolved
    return None
