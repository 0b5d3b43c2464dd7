"""Per-endpoint session tying configuration to the request pipeline.

An ``EndpointSession`` lives for one invocation. It loads the schema,
operation index and document store lazily and at most once, then turns a
requested operation name plus flags into an executed request.
"""

import logging
from pathlib import Path

from graphql import GraphQLSchema

from .coercion import FlagValue
from .config import EndpointConfig
from .documents import DocumentStore, find_auto_document, resolve_document_input
from .errors import InvalidArgsError
from .executor import ExecutionRequest, ExecutionResult, GraphQLExecutor
from .headers import Auth, BuiltHeaders, HeaderDirective, HeaderLayer, build_headers
from .introspection import IntrospectionCache
from .ir import DocumentResolution, OperationIndex, RootKind
from .operations import (
    OperationSummary,
    build_operation_index,
    list_operations,
    resolve_operation,
    resolve_operation_name,
)
from .selection import DEFAULT_DEPTH_LIMIT

logger = logging.getLogger(__name__)


class EndpointSession:
    """Runs operations against one configured endpoint.

    Examples:
        cache = IntrospectionCache()
        session = EndpointSession("api", endpoint_config, config_dir, cache)
        result = await session.run("user", variables={"id": "42"}, fields="id name")
    """

    def __init__(
        self,
        name: str,
        config: EndpointConfig,
        config_dir: str | Path,
        cache: IntrospectionCache,
        executor: GraphQLExecutor | None = None,
    ):
        """Initialize the session.

        Args:
            name: Endpoint name used in messages
            config: Endpoint configuration
            config_dir: Root for document globs and relative --doc paths
            cache: Introspection cache shared with the executor
            executor: Executor to use (default: one built on ``cache``)
        """
        self.name = name
        self.config = config
        self.config_dir = Path(config_dir)
        self.cache = cache
        self.executor = executor or GraphQLExecutor(cache)
        self._schema: GraphQLSchema | None = None
        self._index: OperationIndex | None = None
        self._store: DocumentStore | None = None

    @classmethod
    def for_url(
        cls,
        url: str,
        cache: IntrospectionCache,
        executor: GraphQLExecutor | None = None,
    ) -> "EndpointSession":
        """Session for a bare URL with no configuration."""
        return cls(url, EndpointConfig(url=url), Path.cwd(), cache, executor)

    def build_request_headers(self, header_directives: list[HeaderDirective] | None = None) -> BuiltHeaders:
        """Configured headers, then configured auth, then command-line directives."""
        layers: list[HeaderLayer | Auth] = [HeaderLayer(headers=dict(self.config.headers))]
        if self.config.auth is not None:
            layers.append(self.config.auth.to_auth())
        layers.append(HeaderLayer(directives=list(header_directives or [])))
        return build_headers(layers)

    async def get_schema(
        self,
        ttl: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> GraphQLSchema:
        """Introspect once per session; ``headers`` also key the cache entry."""
        if self._schema is None:
            if headers is None:
                headers = self.build_request_headers().headers
            self._schema = await self.cache.load_schema(
                self.config.url,
                headers,
                self.config.introspection_ttl if ttl is None else ttl,
            )
        return self._schema

    async def get_operation_index(
        self,
        ttl: float | None = None,
        headers: dict[str, str] | None = None,
    ) -> OperationIndex:
        if self._index is None:
            self._index = build_operation_index(await self.get_schema(ttl, headers))
        return self._index

    def get_document_store(self) -> DocumentStore | None:
        """Initialized store, or None when no documents are configured."""
        if not self.config.has_documents:
            return None
        if self._store is None:
            store = DocumentStore(
                self.config_dir,
                documents=self.config.documents,
                fragments=self.config.fragments,
            )
            store.init()
            self._store = store
        return self._store

    async def run(
        self,
        operation: str,
        *,
        variables: dict[str, FlagValue] | None = None,
        fields: str | None = None,
        doc: str | None = None,
        operation_name: str | None = None,
        kind: str | RootKind | None = None,
        header_directives: list[HeaderDirective] | None = None,
        cache_ttl: float | None = None,
        disable_aliases: bool = False,
        split_lists: bool = True,
        depth_limit: int = DEFAULT_DEPTH_LIMIT,
        include_typename: bool = True,
        print_request: bool = False,
    ) -> ExecutionResult:
        """Resolve ``operation`` and execute it.

        Args:
            operation: Name as typed (canonical, alias or display name)
            variables: Flat flag bindings, dotted keys for nested inputs
            fields: Selection shorthand (ignored when a document is used)
            doc: Document path, stored document name, or inline text
            operation_name: Operation to select within ``doc``
            kind: Root kind to use when the name exists under several
            header_directives: Command-line header overrides
            cache_ttl: Introspection TTL in seconds (default: from config)
            disable_aliases: Skip alias translation
            split_lists: Split comma-joined strings for list arguments
            depth_limit: Auto-selection depth
            include_typename: Add ``__typename`` to auto-selections
            print_request: Write the outgoing request to the executor's
                diagnostics stream

        Returns:
            ExecutionResult; GraphQL errors in the envelope are not raised

        Raises:
            InvalidArgsError: For bad names, kinds, documents or variables
        """
        if operation_name and not doc:
            raise InvalidArgsError("--operation-name requires --doc.")

        canonical = resolve_operation_name(
            operation,
            aliases=self.config.aliases,
            renames=self.config.help.rename,
            disable_aliases=disable_aliases,
        )
        built = self.build_request_headers(header_directives)
        index = await self.get_operation_index(cache_ttl, built.headers)
        record = resolve_operation(
            index,
            canonical,
            prefer=self.config.help.prefer_kind_on_conflict,
            requested=RootKind.parse(kind) if kind else None,
            target_label=self.name,
        )
        if record.kind is RootKind.SUBSCRIPTION:
            raise InvalidArgsError("Subscriptions are not supported yet.")

        document = self._resolve_document(doc, operation_name, [record.name, canonical, operation])

        request = ExecutionRequest(
            endpoint=self.config.url,
            kind=record.kind,
            operation_name=record.name,
            raw_variables=dict(variables or {}),
            selection_shorthand=None if document else fields,
            literal_document=document.document if document else None,
            document_operation_name=document.operation_name if document else None,
            headers=built.headers,
            split_lists=split_lists,
            depth_limit=depth_limit,
            include_typename=include_typename,
            cache_ttl=self.config.introspection_ttl if cache_ttl is None else cache_ttl,
            print_request=print_request,
        )
        return await self.executor.execute(request, schema=await self.get_schema(cache_ttl, built.headers))

    def _resolve_document(
        self,
        doc: str | None,
        operation_name: str | None,
        candidates: list[str],
    ) -> DocumentResolution | None:
        store = self.get_document_store()
        if doc:
            return resolve_document_input(
                doc,
                operation_name=operation_name,
                store=store,
                search_dirs=[Path.cwd(), self.config_dir],
            )
        resolved = find_auto_document(store, candidates)
        if resolved is not None:
            logger.debug("Using stored document %s", resolved.operation_name)
        return resolved

    async def list_operations(
        self,
        kind: str | RootKind | None = None,
        match: str | None = None,
        show_hidden: bool = False,
        cache_ttl: float | None = None,
        header_directives: list[HeaderDirective] | None = None,
    ) -> list[OperationSummary]:
        headers = self.build_request_headers(header_directives).headers
        return list_operations(
            await self.get_schema(cache_ttl, headers),
            config=self.config,
            show_hidden=show_hidden,
            kind=RootKind.parse(kind) if kind else None,
            match=match,
        )

    async def close(self):
        await self.executor.close()
        await self.cache.close()
