"""Error types and exit-code mapping.

Every error raised by the core belongs to one of a few categories so
callers can tell "your request was wrong" apart from "the service was
unreachable".
"""

import os
import traceback
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class ExitCode(IntEnum):
    """Process exit codes, one per error category."""
    SUCCESS = 0
    INVALID_INPUT = 2
    SCHEMA = 3
    GRAPHQL = 4
    NETWORK = 5
    INTERNAL = 6


class GqlError(Exception):
    """Base class for errors raised by the client core."""

    exit_code: ExitCode = ExitCode.INTERNAL

    def __init__(self, message: str, hint: str | None = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class InvalidArgsError(GqlError):
    """The invocation itself is wrong (detected before any network call)."""
    exit_code = ExitCode.INVALID_INPUT


class FieldSyntaxError(InvalidArgsError):
    """Field shorthand could not be tokenized or parsed."""

    def __init__(self, message: str, position: int | None = None):
        self.position = position
        super().__init__(message)


class SchemaError(GqlError):
    """The schema lacks something the request needs."""
    exit_code = ExitCode.SCHEMA


class NetworkError(GqlError):
    """Transport failure, unexpected HTTP status, or malformed response body."""
    exit_code = ExitCode.NETWORK

    def __init__(self, message: str, hint: str | None = None, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message, hint)


class GraphQLExecutionError(GqlError):
    """The response envelope carried GraphQL errors."""
    exit_code = ExitCode.GRAPHQL

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        self.errors = errors or []
        super().__init__(message)


class InternalError(GqlError):
    """A bug or misuse of the API rather than bad input."""
    exit_code = ExitCode.INTERNAL


@dataclass
class ExitInfo:
    """What a command-line caller needs to report a failure."""
    code: ExitCode
    message: str
    hint: str | None = None
    traceback: str | None = None


def map_error_to_exit_info(error: BaseException, debug: bool | None = None) -> ExitInfo:
    """Map any exception to an exit code and a printable message.

    Args:
        error: The exception to report
        debug: Include the traceback; defaults to ``GQL_DEBUG=1``

    Returns:
        ExitInfo for the error
    """
    if debug is None:
        debug = os.environ.get("GQL_DEBUG") == "1"
    trace = "".join(traceback.format_exception(error)) if debug else None

    if isinstance(error, GqlError):
        return ExitInfo(
            code=error.exit_code,
            message=error.message,
            hint=error.hint,
            traceback=trace,
        )

    internal = InternalError("Unexpected error. Rerun with GQL_DEBUG=1 for details.")
    return ExitInfo(code=internal.exit_code, message=internal.message, traceback=trace)
