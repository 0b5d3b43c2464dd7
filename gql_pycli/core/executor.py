"""GraphQL executor for running one root-field operation over HTTP.

Resolves the root field, coerces variables against its arguments, builds
(or accepts) the document and performs a single POST. GraphQL-level
errors in the response are returned to the caller untouched; only
HTTP-level failures raise.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, TextIO

import httpx
from graphql import GraphQLObjectType, GraphQLSchema

from .coercion import FlagValue, coerce_variables
from .config import DEFAULT_INTROSPECTION_TTL
from .errors import InternalError, InvalidArgsError, NetworkError, SchemaError
from .headers import redact_headers
from .introspection import IntrospectionCache
from .ir import RootKind
from .query_builder import QueryBuilder, SelectionOptions, build_variable_definitions
from .selection import DEFAULT_DEPTH_LIMIT

logger = logging.getLogger(__name__)


@dataclass
class ExecutionRequest:
    """Everything needed to run one operation."""
    endpoint: str
    kind: RootKind
    operation_name: str  # root field name
    raw_variables: dict[str, FlagValue] = field(default_factory=dict)
    selection_shorthand: str | None = None
    literal_document: str | None = None
    # operationName sent with a literal document that defines several operations
    document_operation_name: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    split_lists: bool = True
    depth_limit: int = DEFAULT_DEPTH_LIMIT
    include_typename: bool = True
    cache_ttl: float = DEFAULT_INTROSPECTION_TTL
    print_request: bool = False


@dataclass
class ExecutionResult:
    """The sent document and variables, plus the raw response envelope."""
    document: str
    variables: dict[str, Any]
    result: dict[str, Any]

    @property
    def errors(self) -> list[dict[str, Any]]:
        errors = self.result.get("errors")
        return errors if isinstance(errors, list) else []

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def format_request_log(
    method: str,
    url: str,
    headers: dict[str, str],
    body: Any = None,
) -> str:
    """Render a request as ``[request]``-prefixed diagnostic lines."""
    lines = [f"{method.upper()} {url}"]
    if headers:
        lines.append("Headers:")
        lines.extend(f"  {name}: {value}" for name, value in sorted(headers.items()))
    else:
        lines.append("Headers: <none>")
    if body is not None:
        serialized = body if isinstance(body, str) else json.dumps(body, indent=2)
        lines.append("Body:")
        lines.extend(f"  {line}" for line in serialized.split("\n"))
    return "\n".join(f"[request] {line}" for line in lines) + "\n"


def get_root_type(schema: GraphQLSchema, kind: RootKind) -> GraphQLObjectType:
    """Root object type for a kind.

    Raises:
        InvalidArgsError: For subscriptions, which are not executed
        SchemaError: If the schema has no such root
    """
    if kind is RootKind.SUBSCRIPTION:
        raise InvalidArgsError("Subscriptions are not supported.")
    root = schema.query_type if kind is RootKind.QUERY else schema.mutation_type
    if root is None:
        raise SchemaError(f"Schema does not define a {kind.value} root.")
    return root


class GraphQLExecutor:
    """Executes root-field operations against GraphQL endpoints.

    Examples:
        cache = IntrospectionCache()
        executor = GraphQLExecutor(cache)
        result = await executor.execute(ExecutionRequest(
            endpoint="https://api.example.com/graphql",
            kind=RootKind.QUERY,
            operation_name="user",
            raw_variables={"id": "42"},
            selection_shorthand="id, name",
        ))
        await executor.close()
    """

    def __init__(
        self,
        cache: IntrospectionCache | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        diagnostics: TextIO | None = None,
    ):
        """Initialize the executor.

        Args:
            cache: Source of schemas when ``execute`` is not given one
            client: HTTP client to use instead of an owned one
            timeout: Request timeout in seconds for the owned client
            diagnostics: Stream for ``print_request`` output
        """
        self.cache = cache
        self.timeout = timeout
        self.diagnostics = diagnostics
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        """Close the HTTP client if this executor created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def execute(
        self,
        request: ExecutionRequest,
        schema: GraphQLSchema | None = None,
    ) -> ExecutionResult:
        """Run one operation.

        Args:
            request: What to run and how
            schema: Already-loaded schema; fetched through the cache otherwise

        Returns:
            ExecutionResult with the response envelope (data/errors/extensions)

        Raises:
            InvalidArgsError: On unknown operations, bad selections or variables
            SchemaError: If the schema lacks the requested root
            NetworkError: On transport failure, non-2xx status, or a non-JSON body
        """
        if schema is None:
            if self.cache is None:
                raise InternalError("No schema given and no introspection cache configured.")
            schema = await self.cache.load_schema(request.endpoint, request.headers, request.cache_ttl)

        root = get_root_type(schema, request.kind)
        root_field = root.fields.get(request.operation_name)
        if root_field is None:
            raise InvalidArgsError(f'Operation "{request.operation_name}" not found on {root.name}.')

        # Client-side validation applies to literal documents too
        variables = coerce_variables(
            build_variable_definitions(root_field.args),
            request.raw_variables,
            split_lists=request.split_lists,
        )

        if request.literal_document is not None:
            document = request.literal_document
        else:
            document = QueryBuilder(schema).build(
                request.kind,
                request.operation_name,
                root_field,
                SelectionOptions(
                    shorthand=request.selection_shorthand,
                    depth_limit=request.depth_limit,
                    include_typename=request.include_typename,
                ),
            )

        payload: dict[str, Any] = {"query": document, "variables": variables}
        if request.document_operation_name:
            payload["operationName"] = request.document_operation_name

        result = await self._post(request, payload)
        return ExecutionResult(document=document, variables=variables, result=result)

    async def _post(self, request: ExecutionRequest, payload: dict[str, Any]) -> dict[str, Any]:
        headers = {"content-type": "application/json", **request.headers}
        log_text = format_request_log("POST", request.endpoint, redact_headers(headers), payload)
        logger.debug("%s", log_text.rstrip())
        if request.print_request and self.diagnostics is not None:
            self.diagnostics.write(log_text)

        try:
            client = await self._get_client()
            response = await client.post(request.endpoint, headers=headers, json=payload)
        except httpx.HTTPError as e:
            raise NetworkError(f"GraphQL request to {request.endpoint} failed: {e}") from e

        if not response.is_success:
            raise NetworkError(
                f"GraphQL request failed ({response.status_code}).",
                status_code=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            raise NetworkError("GraphQL response is not valid JSON.") from e
        if not isinstance(result, dict):
            raise NetworkError("GraphQL response is not a JSON object.")
        return result
