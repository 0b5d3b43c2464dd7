"""Core modules for building and executing GraphQL requests."""

from .coercion import build_flag_tree, coerce_input_value, coerce_variables
from .config import (
    AuthConfig,
    CacheConfig,
    EndpointConfig,
    GqlConfig,
    HelpConfig,
    load_config,
)
from .documents import (
    DocumentStore,
    find_auto_document,
    prepare_document,
    resolve_document_input,
)
from .errors import (
    ExitCode,
    ExitInfo,
    FieldSyntaxError,
    GqlError,
    GraphQLExecutionError,
    InternalError,
    InvalidArgsError,
    NetworkError,
    SchemaError,
    map_error_to_exit_info,
)
from .executor import (
    ExecutionRequest,
    ExecutionResult,
    GraphQLExecutor,
    format_request_log,
)
from .headers import (
    ApiKeyAuth,
    Auth,
    BasicAuth,
    BearerAuth,
    HeaderDirective,
    HeaderLayer,
    build_headers,
    parse_header_directive,
    redact_headers,
)
from .introspection import CacheEntry, IntrospectionCache
from .ir import (
    DocumentDefinition,
    DocumentResolution,
    OperationIndex,
    OperationRecord,
    RootKind,
    SelectionNode,
    VariableDefinition,
    schema_default,
)
from .operations import (
    OperationSummary,
    build_operation_index,
    group_order,
    list_operations,
    render_operations_text,
    resolve_operation,
    resolve_operation_name,
)
from .query_builder import QueryBuilder, SelectionOptions
from .selection import auto_select, build_selection, parse_fields, render_selection
from .session import EndpointSession

__all__ = [
    # Errors
    "ExitCode",
    "ExitInfo",
    "GqlError",
    "InvalidArgsError",
    "FieldSyntaxError",
    "SchemaError",
    "NetworkError",
    "GraphQLExecutionError",
    "InternalError",
    "map_error_to_exit_info",
    # Config
    "AuthConfig",
    "CacheConfig",
    "HelpConfig",
    "EndpointConfig",
    "GqlConfig",
    "load_config",
    # IR types
    "RootKind",
    "OperationRecord",
    "OperationIndex",
    "SelectionNode",
    "VariableDefinition",
    "DocumentDefinition",
    "DocumentResolution",
    "schema_default",
    # Headers and auth
    "Auth",
    "ApiKeyAuth",
    "BearerAuth",
    "BasicAuth",
    "HeaderDirective",
    "HeaderLayer",
    "build_headers",
    "parse_header_directive",
    "redact_headers",
    # Introspection
    "CacheEntry",
    "IntrospectionCache",
    # Documents
    "DocumentStore",
    "prepare_document",
    "resolve_document_input",
    "find_auto_document",
    # Operations
    "OperationSummary",
    "build_operation_index",
    "resolve_operation_name",
    "resolve_operation",
    "list_operations",
    "group_order",
    "render_operations_text",
    # Selection
    "parse_fields",
    "render_selection",
    "auto_select",
    "build_selection",
    # Variables
    "build_flag_tree",
    "coerce_variables",
    "coerce_input_value",
    # Query Builder
    "QueryBuilder",
    "SelectionOptions",
    # Executor
    "ExecutionRequest",
    "ExecutionResult",
    "GraphQLExecutor",
    "format_request_log",
    # Session
    "EndpointSession",
]
